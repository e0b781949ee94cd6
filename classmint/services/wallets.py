from __future__ import annotations

import logging
import secrets

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from classmint.errors import RpcError
from classmint.models import Wallet, WalletType

log = logging.getLogger(__name__)


def random_address() -> str:
    """A 0x-prefixed 40 hex digit pseudo-address."""
    return "0x" + secrets.token_hex(20)


def random_hash() -> str:
    """A 0x-prefixed 64 hex digit pseudo transaction hash."""
    return "0x" + secrets.token_hex(32)


def find_wallet(session: Session, user_id: int | None) -> Wallet | None:
    if user_id is None:
        return None
    try:
        return session.query(Wallet).filter_by(user_id=user_id).first()
    except SQLAlchemyError as e:
        raise RpcError(f"Failed to look up wallet: {e}") from e


def get_or_create_wallet(session: Session, user_id: int, wallet_type: str) -> tuple[Wallet, bool]:
    """
    Idempotently resolve the wallet for `user_id`, creating it on first use.
    Returns (wallet, created). An existing wallet is returned as-is whatever its type.
    """
    wallet = find_wallet(session, user_id)
    if wallet:
        return wallet, False

    wallet = Wallet(user_id=user_id, address=random_address(), type=wallet_type)
    session.add(wallet)
    try:
        session.commit()
    except IntegrityError as e:
        # Lost a race with a concurrent first sign-in; that wallet is the one
        session.rollback()
        wallet = find_wallet(session, user_id)
        if wallet is None:
            raise RpcError(f"Failed to create wallet: {e}") from e
        return wallet, False
    except SQLAlchemyError as e:
        session.rollback()
        raise RpcError(f"Failed to create wallet: {e}") from e
    log.info("Created %s wallet %s for user %s", wallet_type, wallet.id, user_id)
    return wallet, True


def get_or_create_teacher_wallet(session: Session, user_id: int) -> Wallet:
    wallet, _ = get_or_create_wallet(session, user_id, WalletType.ADMIN)
    return wallet
