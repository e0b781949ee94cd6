from __future__ import annotations

import enum
import logging
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from classmint.config import settings
from classmint.errors import AuthError, ClassMintError, PreconditionError, RpcError, ValidationError
from classmint.models import Nft, Student, Transaction, TransactionStatus, Wallet
from classmint.services.rpc import increment_student_points
from classmint.services.wallets import find_wallet, get_or_create_teacher_wallet, random_address, random_hash
from classmint.session import SessionContext

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class AwardTemplate:
    title: str
    description: str
    points: int
    icon: str


CATALOG: tuple[AwardTemplate, ...] = (
    AwardTemplate("Academic Excellence Trophy", "Awarded for outstanding academic achievement", 1000, "trophy"),
    AwardTemplate("Innovation Star", "Recognition for creative thinking and innovation", 750, "star"),
    AwardTemplate("Leadership Crown", "Awarded for exceptional leadership qualities", 850, "crown"),
    AwardTemplate("STEM Excellence", "Outstanding achievement in Science and Technology", 900, "brain"),
    AwardTemplate("Sports Champion", "Excellence in athletic performance", 800, "medal"),
    AwardTemplate("Special Achievement", "Recognition for exceptional accomplishment", 700, "sparkles"),
)


def find_template(title: str) -> AwardTemplate:
    for template in CATALOG:
        if template.title == title:
            return template
    raise ValidationError(f"Unknown award: {title}")


def new_token_id() -> str:
    return f"award-{int(time.time() * 1000)}"


def award_metadata(title: str, description: str, points: int, image: str | None = None) -> dict:
    metadata = {
        "name": title,
        "description": description,
        "points": points,
        "created_at": datetime.now(timezone.utc).isoformat(),
    }
    if image is not None:
        metadata["image"] = image
    return metadata


class TransferState(str, enum.Enum):
    PENDING = "pending"
    VALIDATED = "validated"
    WALLETS_RESOLVED = "wallets_resolved"
    MINTED = "minted"
    RECORDED = "recorded"
    CREDITED = "credited"
    COMPLETED = "completed"
    COMPENSATING = "compensating"
    FAILED = "failed"


@dataclass
class TransferOutcome:
    transfer_key: str
    nft: Nft
    transaction: Transaction
    student: Student
    teacher_wallet: Wallet
    student_wallet: Wallet
    points_total: int


class AwardTransfer:
    """Moves one catalog award from the signed-in teacher to a student.

    Each step is its own committed store call. Mint, record and credit all
    carry `transfer_key`, so running again with the same key picks up rows an
    earlier attempt already wrote and never credits points twice. When a step
    fails, rows written by this run are removed in reverse order before the
    error propagates.
    """

    def __init__(self, session: Session, context: SessionContext | None, *, idempotency_key: str | None = None):
        self.session = session
        self.context = context
        self.transfer_key = idempotency_key or uuid.uuid4().hex
        self.state = TransferState.PENDING
        self._compensations: list[tuple[str, Callable[[], None]]] = []

    def run(self, template: AwardTemplate, student_id: int | str | None) -> TransferOutcome:
        if student_id is None or str(student_id).strip() == "":
            raise ValidationError("Please select a student first")
        try:
            student_id = int(student_id)
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid student id: {student_id!r}") from None
        if self.context is None:
            raise AuthError()
        self.state = TransferState.VALIDATED

        try:
            student, student_wallet = self._resolve_student(student_id)
            teacher_wallet = get_or_create_teacher_wallet(self.session, self.context.user_id)
            self.state = TransferState.WALLETS_RESOLVED

            nft = self._mint(template, teacher_wallet, student_wallet)
            self.state = TransferState.MINTED

            transaction = self._record(nft, teacher_wallet, student_wallet)
            self.state = TransferState.RECORDED

            total = increment_student_points(
                self.session,
                student.id,
                template.points,
                idempotency_key=self.transfer_key,
                reason=f"Award: {template.title}",
            )
            self.state = TransferState.CREDITED
        except ClassMintError:
            self._compensate()
            raise
        except SQLAlchemyError as e:
            self.session.rollback()
            self._compensate()
            raise RpcError(f"Failed to transfer award: {e}") from e

        try:
            self.session.refresh(student)
        except SQLAlchemyError as e:
            raise RpcError(f"Award transferred but refreshing the student failed: {e}") from e
        self.state = TransferState.COMPLETED
        log.info(
            "Transferred %r (nft %s) from wallet %s to student %s; total now %s",
            template.title, nft.id, teacher_wallet.id, student.id, total,
        )
        return TransferOutcome(
            transfer_key=self.transfer_key,
            nft=nft,
            transaction=transaction,
            student=student,
            teacher_wallet=teacher_wallet,
            student_wallet=student_wallet,
            points_total=total,
        )

    def _resolve_student(self, student_id: int) -> tuple[Student, Wallet]:
        try:
            student = self.session.get(Student, student_id)
        except SQLAlchemyError as e:
            raise RpcError(f"Failed to load student: {e}") from e
        if not student:
            raise PreconditionError(f"Student {student_id} not found")
        wallet = find_wallet(self.session, student.user_id)
        if not wallet:
            raise PreconditionError(
                "Student wallet not found. Please make sure the student has completed registration."
            )
        return student, wallet

    def _mint(self, template: AwardTemplate, teacher_wallet: Wallet, student_wallet: Wallet) -> Nft:
        existing = self.session.query(Nft).filter_by(transfer_key=self.transfer_key).first()
        if existing:
            if existing.owner_wallet_id != student_wallet.id or existing.name != template.title:
                raise ValidationError(self._key_reused_message())
            return existing

        nft = Nft(
            token_id=new_token_id(),
            contract_address=random_address(),
            award_metadata=award_metadata(template.title, template.description, template.points),
            creator_wallet_id=teacher_wallet.id,
            owner_wallet_id=student_wallet.id,
            network=settings.AWARD_NETWORK,
            transfer_key=self.transfer_key,
        )
        self._commit(nft, "mint award")
        self._compensations.append(("delete minted award", lambda: self._delete(Nft, nft.id)))
        return nft

    def _record(self, nft: Nft, teacher_wallet: Wallet, student_wallet: Wallet) -> Transaction:
        existing = self.session.query(Transaction).filter_by(transfer_key=self.transfer_key).first()
        if existing:
            if existing.nft_id != nft.id or existing.to_wallet_id != student_wallet.id:
                raise ValidationError(self._key_reused_message())
            return existing

        transaction = Transaction(
            nft_id=nft.id,
            from_wallet_id=teacher_wallet.id,
            to_wallet_id=student_wallet.id,
            transaction_hash=random_hash(),
            status=TransactionStatus.COMPLETED,
            transfer_key=self.transfer_key,
        )
        self._commit(transaction, "record transaction")
        self._compensations.append(("delete transaction", lambda: self._delete(Transaction, transaction.id)))
        return transaction

    def _key_reused_message(self) -> str:
        return f"Transfer key {self.transfer_key!r} was already used for a different award or student"

    def _commit(self, row, action: str) -> None:
        self.session.add(row)
        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise RpcError(f"Failed to {action}: {e}") from e

    def _delete(self, model, row_id: int) -> None:
        row = self.session.get(model, row_id)
        if row is not None:
            self.session.delete(row)
            self.session.commit()

    def _compensate(self) -> None:
        if not self._compensations:
            self.state = TransferState.FAILED
            return
        self.state = TransferState.COMPENSATING
        for label, undo in reversed(self._compensations):
            try:
                undo()
            except SQLAlchemyError:
                self.session.rollback()
                log.exception("Compensation %r failed for transfer %s", label, self.transfer_key)
        self._compensations.clear()
        self.state = TransferState.FAILED


def transfer_award(
    session: Session,
    context: SessionContext | None,
    title: str,
    student_id: int | str | None,
    *,
    idempotency_key: str | None = None,
) -> TransferOutcome:
    template = find_template(title)
    return AwardTransfer(session, context, idempotency_key=idempotency_key).run(template, student_id)
