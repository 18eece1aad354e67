"""Fernet symmetric encryption for stored credentials.

Envelopes are Fernet tokens: version byte, timestamp, a fresh 16-byte IV,
AES-128-CBC ciphertext and an HMAC-SHA256 tag, urlsafe-base64 encoded. The IV
travels inside the token, so decryption needs nothing but the envelope and
the key.
"""

import base64
import binascii
import hashlib
import json
from typing import Any

from cryptography.fernet import Fernet, InvalidToken

from broker.config import settings
from broker.services.errors import DeserializationError, KeyMismatch, MalformedEnvelope

_VERSION = 0x80
_HEADER_LEN = 1 + 8 + 16  # version + timestamp + IV
_HMAC_LEN = 32
_BLOCK = 16


def derive_key(secret: str | bytes) -> bytes:
    """Return a Fernet key for ``secret``.

    A valid Fernet key is used unchanged; any other secret is stretched with SHA-256.
    """
    raw = secret.encode() if isinstance(secret, str) else secret
    try:
        Fernet(raw)
        return raw
    except (ValueError, binascii.Error):
        return base64.urlsafe_b64encode(hashlib.sha256(raw).digest())


def _check_structure(envelope: str) -> None:
    try:
        blob = base64.urlsafe_b64decode(envelope.encode())
    except (binascii.Error, ValueError) as e:
        raise MalformedEnvelope(f"Envelope is not valid base64: {e}") from None
    body_len = len(blob) - _HEADER_LEN - _HMAC_LEN
    if not blob or blob[0] != _VERSION:
        raise MalformedEnvelope("Envelope is missing the version marker")
    if body_len < _BLOCK or body_len % _BLOCK:
        raise MalformedEnvelope("Envelope has no IV/ciphertext boundary")


class Cipher:
    """Encrypt/decrypt byte payloads with a key derived from one secret."""

    def __init__(self, secret: str | bytes):
        if not secret:
            raise RuntimeError(
                "BROKER_ENCRYPTION_KEY not set. Generate one with: python -m broker.cli generate-key"
            )
        self._fernet = Fernet(derive_key(secret))

    def encrypt(self, plaintext: bytes) -> str:
        return self._fernet.encrypt(plaintext).decode()

    def decrypt(self, envelope: str) -> bytes:
        if not isinstance(envelope, str) or not envelope:
            raise MalformedEnvelope("Envelope is empty")
        _check_structure(envelope)
        try:
            return self._fernet.decrypt(envelope.encode())
        except InvalidToken:
            raise KeyMismatch("Envelope failed integrity check (wrong key or tampered)") from None

    def encrypt_structured(self, value: Any) -> str:
        """Serialize ``value`` to JSON and encrypt it."""
        return self.encrypt(json.dumps(value, separators=(",", ":")).encode())

    def decrypt_structured(self, envelope: str) -> Any:
        plaintext = self.decrypt(envelope)
        try:
            return json.loads(plaintext.decode())
        except (UnicodeDecodeError, ValueError):
            raise DeserializationError("Decrypted payload is not valid JSON") from None


_cipher: Cipher | None = None


def get_cipher() -> Cipher:
    """Process-wide cipher built from settings.encryption_key."""
    global _cipher
    if _cipher is None:
        _cipher = Cipher(settings.encryption_key)
    return _cipher
