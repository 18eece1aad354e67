"""Error taxonomy for the vault, cipher and proxy broker.

Every error carries a machine-readable ``kind`` and a human-readable
``detail``; the API layer renders both and uses ``status_code`` for the
HTTP response.
"""


class BrokerError(Exception):
    kind = "broker_error"
    status_code = 500

    def __init__(self, detail: str = "", status_code: int | None = None):
        super().__init__(detail or self.kind)
        self.detail = detail or self.kind
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict:
        return {"error": self.kind, "detail": self.detail}


class InvalidServiceType(BrokerError):
    kind = "invalid_service_type"
    status_code = 400


class CredentialMissingField(BrokerError):
    kind = "credential_missing_field"
    status_code = 400


class NotFound(BrokerError):
    kind = "not_found"
    status_code = 404

    def __init__(self, detail: str = "Credential not found"):
        super().__init__(detail)


class MalformedEnvelope(BrokerError):
    kind = "malformed_envelope"


class KeyMismatch(BrokerError):
    kind = "key_mismatch"


class DeserializationError(BrokerError):
    kind = "deserialization_error"


class AuthenticationFailed(BrokerError):
    """Remote login rejected, or the session was rejected again after one re-login."""

    kind = "authentication_failed"
    status_code = 401

    def __init__(self, detail: str = "", remote_status: int | None = None):
        super().__init__(detail)
        self.remote_status = remote_status

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.remote_status is not None:
            data["remote_status"] = self.remote_status
        return data


class UpstreamTimeout(BrokerError):
    kind = "upstream_timeout"
    status_code = 504


class UpstreamError(BrokerError):
    """Remote service answered with a non-auth error status."""

    kind = "upstream_error"
    status_code = 502

    def __init__(self, detail: str = "", remote_status: int | None = None):
        super().__init__(detail)
        self.remote_status = remote_status

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.remote_status is not None:
            data["remote_status"] = self.remote_status
        return data


class Unauthorized(Exception):
    """Raised by an adapter fetch when the remote rejects the session (HTTP 401).

    Internal signal for the broker's retry-once policy; never reaches callers.
    """
