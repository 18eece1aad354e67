"""Credential vault: owner-scoped CRUD over encrypted credential records.

Payloads go through the Cipher before they reach storage and are decrypted
only by ``resolve``, on every call. A credential that is missing and one
that belongs to another user produce the same ``NotFound``.
"""

import logging
from datetime import datetime, timezone
from typing import Any

from broker.models.credential import Credential
from broker.services.encryption import Cipher
from broker.services.errors import InvalidServiceType, NotFound
from broker.utils.constants import SERVICE_TYPES

logger = logging.getLogger(__name__)

# Fields a stored payload must carry for the format check
REQUIRED_FIELDS: dict[str, tuple[str, ...]] = {
    "pihole": ("password",),
    "unifi": ("username", "password"),
    "unifi_protect": ("username", "password"),
    "home_assistant": ("token",),
    "snmp": ("community",),
}

_UPDATABLE = ("name", "description", "service_type", "data")


def _check_service_type(service_type: str) -> None:
    if service_type not in SERVICE_TYPES:
        raise InvalidServiceType(
            f"Invalid service_type '{service_type}'; valid types: {', '.join(SERVICE_TYPES)}"
        )


class CredentialVault:
    def __init__(self, store, cipher: Cipher):
        self.store = store
        self.cipher = cipher

    def create(
        self,
        user_id: int,
        name: str,
        service_type: str,
        payload: dict[str, Any],
        description: str | None = None,
    ) -> Credential:
        _check_service_type(service_type)
        record = Credential(
            user_id=user_id,
            name=name,
            description=description,
            service_type=service_type,
            credential_data=self.cipher.encrypt_structured(payload),
        )
        record = self.store.put(record)
        logger.info(f"Created {service_type} credential {record.id} for user {user_id}")
        return record

    def list(self, user_id: int) -> list[Credential]:
        return self.store.list(user_id)

    def get(self, credential_id: int, user_id: int) -> Credential:
        record = self.store.get(user_id, credential_id)
        if record is None:
            raise NotFound()
        return record

    def resolve(self, credential_id: int, user_id: int) -> dict[str, Any]:
        """Return the decrypted payload. Cipher errors propagate."""
        record = self.get(credential_id, user_id)
        return self.cipher.decrypt_structured(record.credential_data)

    def update(self, credential_id: int, user_id: int, fields: dict[str, Any]) -> Credential:
        record = self.get(credential_id, user_id)
        changes = {
            k: v for k, v in fields.items()
            if k in _UPDATABLE and (v is not None or k == "description")
        }
        if not changes:
            raise ValueError("No fields to update")

        if "service_type" in changes:
            _check_service_type(changes["service_type"])
        if "data" in changes:
            record.credential_data = self.cipher.encrypt_structured(changes.pop("data"))

        for key, value in changes.items():
            setattr(record, key, value)
        record.updated_at = datetime.now(timezone.utc)
        return self.store.put(record)

    def delete(self, credential_id: int, user_id: int) -> None:
        if not self.store.delete(user_id, credential_id):
            raise NotFound()
        logger.info(f"Deleted credential {credential_id} for user {user_id}")

    def check_format(self, credential_id: int, user_id: int) -> tuple[bool, str, str]:
        """Check the stored payload carries the fields its service type needs.

        Returns (valid, message, service_type).
        """
        record = self.get(credential_id, user_id)
        data = self.cipher.decrypt_structured(record.credential_data)
        required = REQUIRED_FIELDS.get(record.service_type, ())
        missing = [f for f in required if not isinstance(data, dict) or not data.get(f)]
        if missing:
            return False, f"Missing {' and '.join(missing)}", record.service_type
        if required:
            return True, f"{record.service_type} credential format is valid", record.service_type
        return True, "Credential data exists", record.service_type
