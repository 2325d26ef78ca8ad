"""
avrocheck.tier0_core.errors
────────────────────────────
Error taxonomy for payload validation. Callers can always tell "the schema
says the payload is invalid" (a plain ``False``) apart from "validity could
not be determined" (one of the errors below).

    AvrocheckError
    ├── PayloadParseError   payload is not JSON (caller bug)
    ├── SchemaError         registry returned an uncompilable schema
    └── FetchError          registry/network failure, retryable
        ├── FetchHttpStatusError
        ├── FetchTransportError
        └── FetchDecodeError
"""
from __future__ import annotations

from typing import Any


# ── Base error ────────────────────────────────────────────────────────────────

class AvrocheckError(Exception):
    """
    Base class for all avrocheck errors. Every error has:
    - code: stable machine-readable string (snake_case)
    - user_message: safe to surface to end users
    - detail: internal context, never shown to users
    - status_code: HTTP status code for API responses
    """

    status_code: int = 500
    code: str = "internal_error"
    retryable: bool = False

    def __init__(
        self,
        code: str | None = None,
        user_message: str = "An unexpected error occurred.",
        detail: str | None = None,
        **metadata: Any,
    ) -> None:
        self.code = code or self.__class__.code
        self.user_message = user_message
        self.detail = detail or user_message
        self.metadata = metadata
        super().__init__(self.detail)

    def to_dict(self) -> dict:
        return {
            "error": {
                "code": self.code,
                "message": self.user_message,
            }
        }


# ── Typed error classes ───────────────────────────────────────────────────────

class PayloadParseError(AvrocheckError):
    """Payload text is not valid JSON."""
    status_code = 400
    code = "payload_parse_error"

    def __init__(
        self,
        detail: str | None = None,
        user_message: str = "Payload is not valid JSON.",
        **metadata: Any,
    ) -> None:
        super().__init__(None, user_message, detail, **metadata)


class SchemaError(AvrocheckError):
    """Schema text does not describe a supported Avro record."""
    status_code = 422
    code = "schema_malformed"

    def __init__(
        self,
        detail: str | None = None,
        user_message: str = "Schema definition is malformed.",
        schema_id: int | None = None,
        **metadata: Any,
    ) -> None:
        self.schema_id = schema_id
        super().__init__(None, user_message, detail, schema_id=schema_id, **metadata)


class FetchError(AvrocheckError):
    """The schema registry could not deliver a schema."""
    status_code = 502
    code = "fetch_error"
    retryable = True

    def __init__(
        self,
        detail: str | None = None,
        user_message: str = "Schema registry request failed.",
        schema_id: int | None = None,
        **metadata: Any,
    ) -> None:
        self.schema_id = schema_id
        super().__init__(None, user_message, detail, schema_id=schema_id, **metadata)


class FetchHttpStatusError(FetchError):
    """Registry answered with a non-2xx status."""
    code = "fetch_http_status"

    def __init__(
        self,
        registry_status: int,
        detail: str | None = None,
        schema_id: int | None = None,
        **metadata: Any,
    ) -> None:
        self.registry_status = registry_status
        super().__init__(
            detail or f"Registry returned HTTP {registry_status}",
            schema_id=schema_id,
            registry_status=registry_status,
            **metadata,
        )


class FetchTransportError(FetchError):
    """Connection refused, DNS failure, timeout and other network failures."""
    code = "fetch_transport"


class FetchDecodeError(FetchError):
    """Registry body is not JSON or lacks the ``schema`` string."""
    code = "fetch_decode"


__all__ = [
    "AvrocheckError",
    "PayloadParseError",
    "SchemaError",
    "FetchError",
    "FetchHttpStatusError",
    "FetchTransportError",
    "FetchDecodeError",
]
