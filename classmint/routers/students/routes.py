from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from classmint.config import settings
from classmint.dependencies import get_db, require_role, require_session
from classmint.models import Nft, Role, Student
from classmint.services.rosters import list_students, student_record, teacher_roster
from classmint.session import SessionContext

router = APIRouter(prefix="/students", tags=["students"])

# Shown to teachers who have not enrolled anyone yet
DEMO_STUDENTS = [
    {"id": "demo-1", "name": "Alex Johnson", "points": 1200},
    {"id": "demo-2", "name": "Sam Rivera", "points": 950},
    {"id": "demo-3", "name": "Jordan Lee", "points": 700},
    {"id": "demo-4", "name": "Taylor Kim", "points": 450},
    {"id": "demo-5", "name": "Morgan Patel", "points": 300},
]


def student_payload(student: Student) -> dict:
    return {"id": student.id, "user_id": student.user_id, "name": student.name, "points": student.points}


def award_payload(nft: Nft) -> dict:
    return {
        "id": nft.id,
        "token_id": nft.token_id,
        "contract_address": nft.contract_address,
        "metadata": nft.award_metadata,
        "image_url": nft.image_url,
        "creator_wallet_id": nft.creator_wallet_id,
        "owner_wallet_id": nft.owner_wallet_id,
        "network": nft.network,
    }


@router.get("/", name="students.list_students")
def all_students(
    session: Session = Depends(get_db),
    context: SessionContext = Depends(require_session),
):
    return [student_payload(s) for s in list_students(session)]


@router.get("/mine", name="students.teacher_roster")
def my_students(
    session: Session = Depends(get_db),
    context: SessionContext = Depends(require_role(Role.TEACHER)),
):
    roster = teacher_roster(session, context)
    if roster.is_empty and settings.ROSTER_DEMO_FALLBACK:
        return {"students": DEMO_STUDENTS, "demo": True, "empty_reason": roster.empty_reason}
    return {
        "students": [student_payload(s) for s in roster.students],
        "demo": False,
        "empty_reason": roster.empty_reason,
    }


@router.get("/me", name="students.my_record")
def my_record(
    session: Session = Depends(get_db),
    context: SessionContext = Depends(require_session),
):
    record = student_record(session, context)
    return {
        "student": student_payload(record.student),
        "ledger_total": record.ledger_total,
        "wallet": {"id": record.wallet.id, "address": record.wallet.address} if record.wallet else None,
        "awards": [award_payload(n) for n in record.awards],
        "attendance": [
            {"classroom_id": a.classroom_id, "date": a.date.isoformat(), "status": a.status}
            for a in record.attendance
        ],
    }
