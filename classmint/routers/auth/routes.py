import logging

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from classmint.config import settings
from classmint.dependencies import get_db, get_session_context, require_session
from classmint.errors import AuthError, ClassMintError, RpcError, ValidationError
from classmint.models import Role, User
from classmint.security import check_login, issue_session_token
from classmint.services.provisioning import remove_account
from classmint.session import SIGNED_IN, SIGNED_OUT, SessionContext, auth_events
from classmint.utils import flash

log = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _session_payload(context: SessionContext | None) -> dict:
    if context is None:
        return {"authenticated": False}
    return {"authenticated": True, "user_id": context.user_id, "email": context.email, "role": context.role}


def _announce_sign_in(session: Session, user: User, requested_role: str | None) -> None:
    context = SessionContext(user_id=user.id, email=user.email, role=user.role)
    auth_events.emit(SIGNED_IN, context, session=session, requested_role=requested_role)


def _signed_in_response(request: Request, session: Session, user: User) -> JSONResponse:
    session.refresh(user)
    context = SessionContext(user_id=user.id, email=user.email, role=user.role)

    token = issue_session_token(user.id, user.session_epoch or 0)
    flash(request, "Signed in.", "success")
    response = JSONResponse({"ok": True, "access_token": token, "session": _session_payload(context)})
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=token,
        httponly=True,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        samesite=settings.SESSION_COOKIE_SAMESITE.lower(),
        secure=settings.SESSION_COOKIE_SECURE,
    )
    return response


@router.post("/signup", name="auth.signup")
def signup(
    request: Request,
    email: str = Form(...),
    password: str = Form(...),
    role: str = Form("teacher"),
    session: Session = Depends(get_db),
):
    """Creates an account and signs it in. The chosen role is fixed at first sign-in."""
    email = email.lower().strip()
    if not email or "@" not in email:
        raise ValidationError("A valid email address is required")
    if role not in Role.ALL:
        raise ValidationError(f"Role must be one of {', '.join(Role.ALL)}")
    if len(password) < 6:
        raise ValidationError("Password must be at least 6 characters")

    user = User(email=email)
    user.set_password(password)
    session.add(user)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise ValidationError("Email already registered.") from None
    user_id = user.id
    try:
        _announce_sign_in(session, user, role)
    except ClassMintError:
        # A user without a role could never sign in again
        remove_account(session, user_id)
        raise
    log.info("Registered user %s as %s", user_id, role)
    return _signed_in_response(request, session, user)


@router.post("/login", name="auth.login")
def login(
    request: Request,
    email: str = Form(...),
    password: str = Form(...),
    session: Session = Depends(get_db),
):
    """Verifies credentials and issues a JWT cookie."""
    user = session.query(User).filter(User.email == email.lower().strip()).first()
    if not user:
        raise AuthError("Invalid credentials")

    verified, new_hash = check_login(password, user.password_hash)
    if not verified:
        raise AuthError("Invalid credentials")
    if new_hash:
        user.password_hash = new_hash
        session.commit()
    _announce_sign_in(session, user, None)
    return _signed_in_response(request, session, user)


@router.post("/logout", name="auth.logout")
def logout(
    request: Request,
    session: Session = Depends(get_db),
    context: SessionContext = Depends(require_session),
):
    """Signs out every token the user holds and clears the JWT cookie."""
    try:
        session.query(User).filter_by(id=context.user_id).update(
            {User.session_epoch: User.session_epoch + 1}, synchronize_session=False
        )
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        raise RpcError(f"Failed to sign out: {e}") from e
    auth_events.emit(SIGNED_OUT, context, session=session)
    flash(request, "Signed out.", "info")
    response = JSONResponse({"ok": True})
    response.delete_cookie(settings.AUTH_COOKIE_NAME)
    return response


@router.get("/session", name="auth.session")
def current_session(context: SessionContext | None = Depends(get_session_context)):
    return _session_payload(context)
