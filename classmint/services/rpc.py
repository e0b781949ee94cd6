from __future__ import annotations

import logging

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from classmint.errors import PreconditionError, RpcError, ValidationError
from classmint.models import PointLedger, Student

log = logging.getLogger(__name__)


def increment_student_points(
    session: Session,
    student_id: int,
    points_to_add: int,
    *,
    idempotency_key: str | None = None,
    reason: str | None = None,
    source: str = "award",
) -> int:
    """
    Atomically add `points_to_add` to a student's total and return the new total.

    The increment is a single UPDATE evaluated by the database, so concurrent
    callers never lose each other's credit. When `idempotency_key` has already
    been applied the current total is returned and nothing is credited.
    """
    if points_to_add is None or points_to_add <= 0:
        raise ValidationError("Points to add must be a positive number")

    try:
        if idempotency_key is not None:
            applied = session.execute(
                select(PointLedger.student_id).where(PointLedger.idempotency_key == idempotency_key)
            ).first()
            if applied:
                if applied.student_id != student_id:
                    raise ValidationError(f"Points credit {idempotency_key!r} belongs to another student")
                log.info("Points credit %s already applied; skipping", idempotency_key)
                return _current_points(session, student_id)

        result = session.execute(
            update(Student)
            .where(Student.id == student_id)
            .values(points=Student.points + points_to_add)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            session.rollback()
            raise PreconditionError(f"Student {student_id} not found")

        session.add(PointLedger(
            student_id=student_id,
            delta=points_to_add,
            reason=reason,
            source=source,
            idempotency_key=idempotency_key,
        ))
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        raise RpcError(f"Failed to increment points: {e}") from e

    total = _current_points(session, student_id)
    log.info("Credited %s points to student %s (total %s)", points_to_add, student_id, total)
    return total


def _current_points(session: Session, student_id: int) -> int:
    points = session.execute(select(Student.points).where(Student.id == student_id)).scalar_one_or_none()
    if points is None:
        raise PreconditionError(f"Student {student_id} not found")
    return int(points)
