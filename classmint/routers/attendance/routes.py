from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from classmint.dependencies import get_db, require_session
from classmint.schemas.attendance import AttendanceUpdateForm
from classmint.services.attendance_service import classroom_roster, update_attendance
from classmint.session import SessionContext
from classmint.utils import flash

router = APIRouter(prefix="/attendance", tags=["attendance"])


@router.get("/classrooms/{classroom_id}", name="attendance.roster")
def roster(
    classroom_id: int,
    on: Optional[date] = None,
    session: Session = Depends(get_db),
    context: SessionContext = Depends(require_session),
):
    on = on or date.today()
    return {
        "classroom_id": classroom_id,
        "date": on.isoformat(),
        "can_edit": context.is_teacher,
        "students": [
            {"id": entry.id, "name": entry.name, "status": entry.status.value}
            for entry in classroom_roster(session, classroom_id, on)
        ],
    }


@router.post("/classrooms/{classroom_id}/students/{student_id}", name="attendance.update")
def update(
    classroom_id: int,
    student_id: int,
    request: Request,
    form: AttendanceUpdateForm,
    on: Optional[date] = None,
    session: Session = Depends(get_db),
    context: SessionContext = Depends(require_session),
):
    # The role check lives in the service so every caller gets it
    record = update_attendance(session, context, student_id, classroom_id, form.status, on)
    flash(request, "Attendance status updated", "success")
    return {
        "ok": True,
        "student_id": record.student_id,
        "classroom_id": record.classroom_id,
        "date": record.date.isoformat(),
        "status": record.status,
    }
