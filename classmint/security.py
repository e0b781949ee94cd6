from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from passlib.context import CryptContext

from classmint.config import settings

# Old bcrypt hashes are upgraded to argon2 on the next successful login
pwd_context = CryptContext(schemes=["argon2", "bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def check_login(password: str, hashed_password: str) -> tuple[bool, str | None]:
    """Returns (valid, replacement_hash). replacement_hash is set when the stored hash is outdated."""
    return pwd_context.verify_and_update(password, hashed_password)


def issue_session_token(user_id: int, epoch: int = 0, lifetime: timedelta | None = None) -> str:
    """
    Signs a token naming the user; it is carried as the auth cookie or a Bearer header.
    `epoch` is the user's session epoch at issue time; signing out bumps it, which
    invalidates every token issued before.
    """
    issued = datetime.now(timezone.utc)
    lifetime = lifetime or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    claims = {"sub": str(user_id), "epoch": epoch, "iat": issued, "exp": issued + lifetime}
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def read_session_token(token: str) -> tuple[int, int] | None:
    """(user_id, epoch) carried by the token, or None when it is forged, expired or malformed."""
    try:
        claims = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None
    try:
        return int(claims.get("sub")), int(claims.get("epoch", 0))
    except (TypeError, ValueError):
        return None
