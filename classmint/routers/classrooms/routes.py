from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from classmint.dependencies import get_db, require_role
from classmint.models import Classroom, Role
from classmint.schemas.classroom import ClassroomForm, EnrolmentForm
from classmint.services.classrooms import create_classroom, enroll_student, teacher_classrooms
from classmint.session import SessionContext
from classmint.utils import flash

router = APIRouter(prefix="/classrooms", tags=["classrooms"])


def _as_payload(classroom: Classroom) -> dict:
    return {"id": classroom.id, "name": classroom.name, "teacher_id": classroom.teacher_id}


@router.get("/", name="classrooms.list")
def list_classrooms(
    session: Session = Depends(get_db),
    context: SessionContext = Depends(require_role(Role.TEACHER)),
):
    return [_as_payload(c) for c in teacher_classrooms(session, context)]


@router.post("/", status_code=201, name="classrooms.create")
def create(
    request: Request,
    form: ClassroomForm,
    session: Session = Depends(get_db),
    context: SessionContext = Depends(require_role(Role.TEACHER)),
):
    classroom = create_classroom(session, context, form.name)
    flash(request, "Classroom created.", "success")
    return _as_payload(classroom)


@router.post("/{classroom_id}/students", name="classrooms.enroll")
def enroll(
    classroom_id: int,
    request: Request,
    form: EnrolmentForm,
    session: Session = Depends(get_db),
    context: SessionContext = Depends(require_role(Role.TEACHER)),
):
    _, created = enroll_student(session, context, classroom_id, form.student_id)
    if created:
        flash(request, "Student enrolled.", "success")
    return {"ok": True, "created": created}
