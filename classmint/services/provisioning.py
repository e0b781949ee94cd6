from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from classmint.errors import RpcError, ValidationError
from classmint.models import Role, Student, TeacherProfile, User, UserRole, Wallet, WalletType
from classmint.services.classrooms import get_or_create_teacher_profile
from classmint.services.wallets import get_or_create_wallet
from classmint.session import SIGNED_IN, SessionContext

log = logging.getLogger(__name__)


def ensure_role(session: Session, user_id: int, requested_role: str | None) -> str:
    """Return the user's role, recording `requested_role` if this is their first sign-in."""
    existing = session.query(UserRole).filter_by(user_id=user_id).first()
    if existing:
        return existing.role
    if requested_role not in Role.ALL:
        raise ValidationError(f"Role must be one of {', '.join(Role.ALL)}")
    session.add(UserRole(user_id=user_id, role=requested_role))
    session.commit()
    return requested_role


def ensure_student_profile(session: Session, user_id: int, email: str) -> Student:
    student = session.query(Student).filter_by(user_id=user_id).first()
    if student:
        return student
    student = Student(user_id=user_id, name=email.split("@")[0], points=0)
    session.add(student)
    session.commit()
    return student


def provision_user(session: Session, user_id: int, email: str, requested_role: str | None = None) -> str:
    """
    Idempotently create everything a signed-in user needs: role, wallet and
    teacher or student profile. Returns the effective role.
    """
    try:
        role = ensure_role(session, user_id, requested_role)
        wallet_type = WalletType.ADMIN if role == Role.TEACHER else WalletType.USER
        get_or_create_wallet(session, user_id, wallet_type)
        if role == Role.TEACHER:
            get_or_create_teacher_profile(session, user_id)
        else:
            ensure_student_profile(session, user_id, email)
    except SQLAlchemyError as e:
        session.rollback()
        raise RpcError(f"Failed to set up account: {e}") from e
    return role


def on_auth_event(event: str, context: SessionContext, details: dict) -> None:
    if event != SIGNED_IN:
        return
    session = details.get("session")
    if session is None:
        log.warning("Sign-in event for user %s carried no store session; skipping provisioning", context.user_id)
        return
    provision_user(session, context.user_id, context.email, details.get("requested_role") or context.role)


def remove_account(session: Session, user_id: int) -> None:
    """Undo a sign-up whose provisioning failed so the email can register again."""
    session.rollback()
    try:
        for model in (Student, TeacherProfile, Wallet, UserRole):
            for row in session.query(model).filter_by(user_id=user_id):
                session.delete(row)
        session.flush()
        user = session.get(User, user_id)
        if user is not None:
            session.delete(user)
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        log.exception("Could not remove half-provisioned account %s", user_id)
        return
    log.info("Removed half-provisioned account %s", user_id)
