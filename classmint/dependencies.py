from typing import Any
from fastapi import Depends, Request
from sqlalchemy.orm import Session
from .config import settings
from .errors import AuthError, PermissionDeniedError
from .extensions import db
from .models import User
from .security import read_session_token
from .session import SessionContext


def get_db() -> Any:
    """Dependency to provide a database session."""
    try:
        yield db.session
    finally:
        db.remove_session()


def _request_token(request: Request) -> str | None:
    auth = request.headers.get("Authorization", "")
    if auth.lower().startswith("bearer ") and auth[7:].strip():
        return auth[7:].strip()
    return request.cookies.get(settings.AUTH_COOKIE_NAME)


def get_session_context(request: Request, session: Session = Depends(get_db)) -> SessionContext | None:
    """Resolves the signed-in user from the JWT cookie or bearer header, or None."""
    token = _request_token(request)
    if not token:
        return None

    claims = read_session_token(token)
    if claims is None:
        return None

    user_id, epoch = claims
    user = session.get(User, user_id)
    # Tokens from before the last sign-out are dead
    if not user or user.session_epoch != epoch:
        return None
    return SessionContext(user_id=user.id, email=user.email, role=user.role)


def require_session(context: SessionContext | None = Depends(get_session_context)) -> SessionContext:
    """Dependency that ensures a user is signed in."""
    if context is None:
        raise AuthError()
    return context


def require_role(*roles: str):
    """Dependency factory that ensures the signed-in user has one of the required roles."""
    def role_checker(context: SessionContext = Depends(require_session)) -> SessionContext:
        if context.role not in roles:
            raise PermissionDeniedError("Permission denied")
        return context
    return role_checker
