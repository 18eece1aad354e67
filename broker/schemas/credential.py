"""Pydantic schemas for Credential API."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from broker.utils.constants import SERVICE_TYPES


def _trim_name(value: str) -> str:
    text = value.strip()
    if not text:
        raise ValueError("must not be empty")
    return text


class CredentialCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    description: str | None = None
    service_type: str
    data: dict[str, Any]  # Raw secrets, encrypted before storage

    @field_validator("name")
    @classmethod
    def _validate_name(cls, value: str) -> str:
        return _trim_name(value)

    @field_validator("data")
    @classmethod
    def _validate_data(cls, value: dict[str, Any]) -> dict[str, Any]:
        if not value:
            raise ValueError("must not be empty")
        return value


class CredentialUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=120)
    description: str | None = None
    service_type: str | None = None
    data: dict[str, Any] | None = None  # If provided, re-encrypts

    @field_validator("name")
    @classmethod
    def _validate_optional_name(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return _trim_name(value)


class CredentialRead(BaseModel):
    id: int
    name: str
    description: str | None
    service_type: str
    created_at: datetime
    updated_at: datetime
    # credential_data is NEVER exposed

    model_config = {"from_attributes": True}


class CredentialTestResult(BaseModel):
    valid: bool
    message: str
    service_type: str


class ServiceTypesRead(BaseModel):
    service_types: list[str] = SERVICE_TYPES
