from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from classmint.errors import AuthError, PreconditionError, RpcError
from classmint.models import Seat
from classmint.session import SessionContext

log = logging.getLogger(__name__)

ROWS = 5
COLUMNS = 6


def _ordered_seats(session: Session) -> list[Seat]:
    return session.query(Seat).order_by(Seat.row, Seat.column).all()


def load_board(session: Session) -> list[Seat]:
    """Return the seating board, creating the fixed ROWS x COLUMNS grid the first time it is read."""
    try:
        seats = _ordered_seats(session)
        if seats:
            return seats

        session.add_all(Seat(row=row, column=column) for row in range(ROWS) for column in range(COLUMNS))
        try:
            session.commit()
        except IntegrityError:
            # Another request initialised the board first; use theirs
            session.rollback()
            log.info("Seating board was initialised concurrently")
            return _ordered_seats(session)
        log.info("Initialised seating board with %s seats", ROWS * COLUMNS)
        return _ordered_seats(session)
    except SQLAlchemyError as e:
        session.rollback()
        raise RpcError(f"Failed to load seating plan: {e}") from e


def toggle_seat(session: Session, context: SessionContext | None, seat_id: int) -> tuple[Seat, bool]:
    """
    Claim an empty seat for the current user, or clear an occupied one.
    Returns (seat, claimed). No locking: the later of two concurrent writes wins.
    """
    if context is None:
        raise AuthError()
    try:
        seat = session.get(Seat, seat_id)
        if seat is None:
            raise PreconditionError(f"Seat {seat_id} not found")
        claimed = seat.student is None
        seat.student = context.email if claimed else None
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        raise RpcError(f"Failed to update seat: {e}") from e
    return seat, claimed
