from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from classmint.config import settings
from classmint.errors import AuthError, RpcError, ValidationError
from classmint.models import Nft
from classmint.services.awarding import award_metadata, new_token_id
from classmint.services.wallets import find_wallet, get_or_create_teacher_wallet, random_address
from classmint.session import SessionContext

log = logging.getLogger(__name__)

DEFAULT_POINTS = 100


def validate_award_fields(title: str | None, description: str | None, points: int | None) -> tuple[str, str]:
    """Check the typed fields of a new award; returns the trimmed title and description."""
    title = (title or "").strip()
    description = (description or "").strip()
    if not title:
        raise ValidationError("Please enter a title")
    if not description:
        raise ValidationError("Please enter a description")
    if points is None or points < 0:
        raise ValidationError("Points cannot be negative")
    return title, description


def create_award(
    session: Session,
    context: SessionContext | None,
    title: str | None,
    description: str | None,
    points: int = DEFAULT_POINTS,
    image_url: str | None = None,
) -> Nft:
    """
    Create a teacher-authored award that nobody owns yet.
    Title, description and artwork are all required.
    """
    title, description = validate_award_fields(title, description, points)
    if not image_url:
        raise ValidationError("Please upload or generate an image")
    if context is None:
        raise AuthError()

    wallet = get_or_create_teacher_wallet(session, context.user_id)
    nft = Nft(
        token_id=new_token_id(),
        contract_address=random_address(),
        award_metadata=award_metadata(title, description, points, image=image_url),
        image_url=image_url,
        creator_wallet_id=wallet.id,
        owner_wallet_id=None,
        network=settings.AWARD_NETWORK,
    )
    session.add(nft)
    try:
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        raise RpcError(f"Failed to create award: {e}") from e

    log.info("Created unassigned award %s (%r) by wallet %s", nft.id, title, wallet.id)
    return nft


def list_unassigned_awards(session: Session, context: SessionContext) -> list[Nft]:
    wallet = find_wallet(session, context.user_id)
    if wallet is None:
        return []
    return (
        session.query(Nft)
        .filter(Nft.creator_wallet_id == wallet.id, Nft.owner_wallet_id.is_(None))
        .order_by(Nft.created_at.desc(), Nft.id.desc())
        .all()
    )
