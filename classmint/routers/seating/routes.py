from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from classmint.dependencies import get_db, require_session
from classmint.models import Seat
from classmint.services.seating import load_board, toggle_seat
from classmint.session import SessionContext
from classmint.utils import flash

router = APIRouter(prefix="/seating", tags=["seating"])


def _as_seat_payload(seat: Seat) -> dict:
    return {"id": seat.id, "row": seat.row, "column": seat.column, "student": seat.student}


@router.get("/", name="seating.board")
def board(
    session: Session = Depends(get_db),
    context: SessionContext = Depends(require_session),
):
    return [_as_seat_payload(s) for s in load_board(session)]


@router.post("/{seat_id}/toggle", name="seating.toggle")
def toggle(
    seat_id: int,
    request: Request,
    session: Session = Depends(get_db),
    context: SessionContext = Depends(require_session),
):
    seat, claimed = toggle_seat(session, context, seat_id)
    if claimed:
        flash(request, "You've claimed this seat", "success")
    else:
        flash(request, "You've removed your seat", "info")
    return {"ok": True, "claimed": claimed, "seat": _as_seat_payload(seat)}
