"""Dashboard user authentication: bcrypt password hashes and JWT bearer tokens.

Tokens carry the user id and username; both must still match an active user
when the token is presented.
"""

from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt

from broker.config import settings
from broker.models.user import User


def hash_password(password: str) -> str:
    # bcrypt only looks at the first 72 bytes
    pw = password.encode("utf-8")[:72]
    return bcrypt.hashpw(pw, bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    pw = plain.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(pw, hashed.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def create_access_token(user: User) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.jwt_expire_minutes)
    payload = {"sub": user.username, "uid": user.id, "exp": expire}
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> tuple[int, str] | None:
    """Return (user_id, username) from a valid token, or None."""
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
    uid, username = payload.get("uid"), payload.get("sub")
    if not isinstance(uid, int) or not username:
        return None
    return uid, username
