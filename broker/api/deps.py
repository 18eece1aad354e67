"""Shared API dependencies."""

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlmodel import Session

from broker.database import get_session
from broker.models.user import User
from broker.services.auth import decode_access_token
from broker.services.credential_store import SqlCredentialStore
from broker.services.encryption import get_cipher
from broker.services.proxy_broker import ProxyBroker
from broker.services.vault import CredentialVault

bearer_scheme = HTTPBearer()
optional_bearer_scheme = HTTPBearer(auto_error=False)


def _user_from_token(token: str, session: Session) -> User:
    claims = decode_access_token(token)
    if claims is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )
    user_id, username = claims
    user = session.get(User, user_id)
    if user is None or user.username != username or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive",
        )
    return user


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    session: Session = Depends(get_session),
) -> User:
    """Validate JWT and return the current user."""
    return _user_from_token(credentials.credentials, session)


def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(optional_bearer_scheme),
    session: Session = Depends(get_session),
) -> User | None:
    """Current user if a bearer token was sent; raw-secret widget calls need none."""
    if credentials is None:
        return None
    return _user_from_token(credentials.credentials, session)


def get_vault(session: Session = Depends(get_session)) -> CredentialVault:
    return CredentialVault(SqlCredentialStore(session), get_cipher())


def get_broker(request: Request) -> ProxyBroker:
    return request.app.state.broker
