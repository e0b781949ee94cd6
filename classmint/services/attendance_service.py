from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from classmint.errors import AuthError, PermissionDeniedError, PreconditionError, RpcError, ValidationError
from classmint.models import Attendance, AttendanceStatus, Classroom, ClassroomStudent, Student
from classmint.session import SessionContext

log = logging.getLogger(__name__)


@dataclass
class RosterEntry:
    id: int
    name: str
    status: AttendanceStatus


def parse_status(value: str | AttendanceStatus) -> AttendanceStatus:
    try:
        return AttendanceStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in AttendanceStatus)
        raise ValidationError(f"Unknown attendance status {value!r}; expected one of {allowed}") from None


def classroom_roster(session: Session, classroom_id: int, on: Optional[date] = None) -> list[RosterEntry]:
    """Enrolled students with their status for `on` (today by default); unmarked students count as present."""
    on = on or date.today()
    try:
        rows = (
            session.query(Student, Attendance.status)
            .join(ClassroomStudent, ClassroomStudent.student_id == Student.id)
            .outerjoin(
                Attendance,
                (Attendance.student_id == Student.id)
                & (Attendance.classroom_id == classroom_id)
                & (Attendance.date == on),
            )
            .filter(ClassroomStudent.classroom_id == classroom_id)
            .order_by(Student.name)
            .all()
        )
    except SQLAlchemyError as e:
        raise RpcError(f"Failed to load students: {e}") from e
    return [
        RosterEntry(id=student.id, name=student.name, status=AttendanceStatus(status or AttendanceStatus.PRESENT))
        for student, status in rows
    ]


def update_attendance(
    session: Session,
    context: SessionContext | None,
    student_id: int,
    classroom_id: int,
    status: str | AttendanceStatus,
    on: Optional[date] = None,
) -> Attendance:
    """Set the status for (student, classroom, day), overwriting any earlier mark for that day."""
    if context is None:
        raise AuthError()
    if not context.is_teacher:
        raise PermissionDeniedError("Only teachers can update attendance")
    status = parse_status(status)
    on = on or date.today()

    try:
        if session.get(Classroom, classroom_id) is None:
            raise PreconditionError(f"Classroom {classroom_id} not found")
        if session.get(Student, student_id) is None:
            raise PreconditionError(f"Student {student_id} not found")

        record = (
            session.query(Attendance)
            .filter_by(student_id=student_id, classroom_id=classroom_id, date=on)
            .first()
        )
        if record is None:
            record = Attendance(student_id=student_id, classroom_id=classroom_id, date=on)
            session.add(record)
        record.status = status.value
        record.marked_by_id = context.user_id
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        raise RpcError(f"Failed to update attendance: {e}") from e

    log.info("Attendance for student %s in classroom %s on %s set to %s", student_id, classroom_id, on, status.value)
    return record


def attendance_history(session: Session, student_id: int) -> list[Attendance]:
    return (
        session.query(Attendance)
        .filter_by(student_id=student_id)
        .order_by(Attendance.date.desc(), Attendance.classroom_id)
        .all()
    )
