"""Database models."""

from broker.models.credential import Credential
from broker.models.user import User

__all__ = [
    "Credential",
    "User",
]
