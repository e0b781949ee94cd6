from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from classmint.errors import AuthError, PermissionDeniedError, PreconditionError, RpcError, ValidationError
from classmint.models import Classroom, ClassroomStudent, Student, TeacherProfile
from classmint.session import SessionContext

log = logging.getLogger(__name__)


def _require_teacher(context: SessionContext | None) -> SessionContext:
    if context is None:
        raise AuthError()
    if not context.is_teacher:
        raise PermissionDeniedError("Only teachers can manage classrooms")
    return context


def find_teacher_profile(session: Session, user_id: int) -> TeacherProfile | None:
    return session.query(TeacherProfile).filter_by(user_id=user_id).first()


def get_or_create_teacher_profile(session: Session, user_id: int) -> TeacherProfile:
    profile = find_teacher_profile(session, user_id)
    if profile:
        return profile
    profile = TeacherProfile(user_id=user_id)
    session.add(profile)
    session.commit()
    return profile


def create_classroom(session: Session, context: SessionContext | None, name: str) -> Classroom:
    context = _require_teacher(context)
    name = (name or "").strip()
    if not name:
        raise ValidationError("Classroom name is required")
    try:
        profile = get_or_create_teacher_profile(session, context.user_id)
        classroom = Classroom(name=name, teacher_id=profile.id)
        session.add(classroom)
        session.commit()
    except IntegrityError:
        session.rollback()
        raise ValidationError(f"You already have a classroom named {name!r}") from None
    except SQLAlchemyError as e:
        session.rollback()
        raise RpcError(f"Failed to create classroom: {e}") from e
    log.info("Teacher %s created classroom %s (%r)", context.user_id, classroom.id, name)
    return classroom


def teacher_classrooms(session: Session, context: SessionContext) -> list[Classroom]:
    profile = find_teacher_profile(session, context.user_id)
    if profile is None:
        return []
    return session.query(Classroom).filter_by(teacher_id=profile.id).order_by(Classroom.name).all()


def enroll_student(
    session: Session, context: SessionContext | None, classroom_id: int, student_id: int
) -> tuple[ClassroomStudent, bool]:
    """Idempotently enrol a student. Returns (enrolment, created)."""
    context = _require_teacher(context)
    try:
        classroom = session.get(Classroom, classroom_id)
        if classroom is None:
            raise PreconditionError(f"Classroom {classroom_id} not found")
        profile = find_teacher_profile(session, context.user_id)
        if profile is None or classroom.teacher_id != profile.id:
            raise PermissionDeniedError("You can only enrol students in your own classrooms")
        if session.get(Student, student_id) is None:
            raise PreconditionError(f"Student {student_id} not found")

        enrolment = session.get(ClassroomStudent, (classroom_id, student_id))
        if enrolment:
            return enrolment, False
        enrolment = ClassroomStudent(classroom_id=classroom_id, student_id=student_id)
        session.add(enrolment)
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        raise RpcError(f"Failed to enrol student: {e}") from e
    return enrolment, True
