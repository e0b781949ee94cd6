from datetime import date

import pytest

from classmint.errors import AuthError, PermissionDeniedError, PreconditionError
from classmint.models import Role, Student
from classmint.services.attendance_service import update_attendance
from classmint.services.awarding import transfer_award
from classmint.services.classrooms import create_classroom, enroll_student
from classmint.services.rosters import list_students, student_record, teacher_roster

from conftest import make_user


def test_roster_says_why_it_is_empty(session, teacher):
    assert teacher_roster(session, None).empty_reason == "no_session"

    roster = teacher_roster(session, teacher)
    assert roster.is_empty and roster.empty_reason == "no_classrooms"

    create_classroom(session, teacher, "Homeroom")
    roster = teacher_roster(session, teacher)
    assert roster.is_empty and roster.empty_reason == "no_enrolled_students"


def test_student_has_no_teacher_profile(session, student_context):
    assert teacher_roster(session, student_context).empty_reason == "no_teacher_profile"


def test_roster_spans_classrooms_without_duplicates(session, teacher, student):
    other = make_user(session, "keesha@school.test", Role.STUDENT)
    other_student = session.query(Student).filter_by(user_id=other.user_id).one()
    first = create_classroom(session, teacher, "Art")
    second = create_classroom(session, teacher, "Biology")
    enroll_student(session, teacher, first.id, student.id)
    enroll_student(session, teacher, second.id, student.id)
    enroll_student(session, teacher, second.id, other_student.id)

    roster = teacher_roster(session, teacher)
    assert [s.name for s in roster.students] == ["arnold", "keesha"]
    assert roster.empty_reason is None


def test_enrolment_is_idempotent_and_owner_only(session, teacher, student):
    classroom = create_classroom(session, teacher, "Art")
    _, created = enroll_student(session, teacher, classroom.id, student.id)
    _, again = enroll_student(session, teacher, classroom.id, student.id)
    assert created and not again

    other_teacher = make_user(session, "mr.ruhle@school.test", Role.TEACHER)
    with pytest.raises(PermissionDeniedError):
        enroll_student(session, other_teacher, classroom.id, student.id)
    with pytest.raises(PreconditionError):
        enroll_student(session, teacher, 999, student.id)


def test_list_students_orders_by_name(session):
    session.add_all([Student(name="Zed"), Student(name="Amy")])
    session.commit()
    assert [s.name for s in list_students(session)] == ["Amy", "Zed"]


def test_student_record(session, teacher, student_context, student):
    classroom = create_classroom(session, teacher, "Art")
    enroll_student(session, teacher, classroom.id, student.id)
    update_attendance(session, teacher, student.id, classroom.id, "late", on=date(2024, 5, 1))
    transfer_award(session, teacher, "Innovation Star", student.id)

    record = student_record(session, student_context)
    assert record.student.points == 750
    assert record.ledger_total == 750
    assert [a.name for a in record.awards] == ["Innovation Star"]
    assert [a.status for a in record.attendance] == ["late"]

    with pytest.raises(AuthError):
        student_record(session, None)
    with pytest.raises(PreconditionError):
        student_record(session, teacher)
