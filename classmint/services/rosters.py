from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from classmint.errors import AuthError, PreconditionError, RpcError
from classmint.models import (
    Attendance,
    Classroom,
    ClassroomStudent,
    Nft,
    Student,
    Wallet,
    student_ledger_total,
)
from classmint.services.attendance_service import attendance_history
from classmint.services.classrooms import find_teacher_profile
from classmint.session import SessionContext


@dataclass
class Roster:
    """A teacher's students. An empty roster says why it is empty instead of hiding it."""
    students: list[Student] = field(default_factory=list)
    empty_reason: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.students


@dataclass
class StudentRecord:
    student: Student
    ledger_total: int
    awards: list[Nft]
    attendance: list[Attendance]
    wallet: Optional[Wallet] = None


def list_students(session: Session) -> list[Student]:
    try:
        return session.query(Student).order_by(Student.name).all()
    except SQLAlchemyError as e:
        raise RpcError(f"Failed to load students: {e}") from e


def teacher_roster(session: Session, context: SessionContext | None) -> Roster:
    """Students enrolled in any of the signed-in teacher's classrooms, ordered by name."""
    if context is None:
        return Roster(empty_reason="no_session")
    try:
        profile = find_teacher_profile(session, context.user_id)
        if profile is None:
            return Roster(empty_reason="no_teacher_profile")

        classroom_ids = [cid for (cid,) in session.query(Classroom.id).filter_by(teacher_id=profile.id)]
        if not classroom_ids:
            return Roster(empty_reason="no_classrooms")

        students = (
            session.query(Student)
            .join(ClassroomStudent, ClassroomStudent.student_id == Student.id)
            .filter(ClassroomStudent.classroom_id.in_(classroom_ids))
            .distinct()
            .order_by(Student.name)
            .all()
        )
    except SQLAlchemyError as e:
        raise RpcError(f"Failed to load students: {e}") from e
    if not students:
        return Roster(empty_reason="no_enrolled_students")
    return Roster(students=students)


def student_record(session: Session, context: SessionContext | None) -> StudentRecord:
    """The signed-in student's own profile, points, awards and attendance."""
    if context is None:
        raise AuthError()
    try:
        student = session.query(Student).filter_by(user_id=context.user_id).first()
        if student is None:
            raise PreconditionError("No student profile found for this account")
        wallet = session.query(Wallet).filter_by(user_id=context.user_id).first()
        awards = []
        if wallet is not None:
            awards = (
                session.query(Nft)
                .filter(Nft.owner_wallet_id == wallet.id)
                .order_by(Nft.created_at.desc(), Nft.id.desc())
                .all()
            )
        return StudentRecord(
            student=student,
            ledger_total=student_ledger_total(session, student.id),
            awards=awards,
            attendance=attendance_history(session, student.id),
            wallet=wallet,
        )
    except SQLAlchemyError as e:
        raise RpcError(f"Failed to load your records: {e}") from e
