"""Authentication API: exchange dashboard username/password for a bearer token."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlmodel import Session, select

from broker.config import settings
from broker.database import get_session
from broker.models.user import User
from broker.services.auth import create_access_token, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


class LoginRequest(BaseModel):
    username: str
    password: str


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    username: str


@router.post("/login", response_model=LoginResponse)
def login(body: LoginRequest, session: Session = Depends(get_session)):
    user = session.exec(select(User).where(User.username == body.username)).first()

    # Same answer for unknown user, inactive user and wrong password
    if user is None or not user.is_active or not verify_password(body.password, user.hashed_password):
        logger.info(f"Rejected dashboard login for '{body.username}'")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )

    return LoginResponse(
        access_token=create_access_token(user),
        expires_in=settings.jwt_expire_minutes * 60,
        username=user.username,
    )
