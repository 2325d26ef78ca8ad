"""
avrocheck.tier1_runtime.serialize
──────────────────────────────────
Payload decoding. Turns caller-supplied JSON text into Python values before
anything is checked against a schema, so "payload does not parse" is always
a PayloadParseError and never a validation result.
"""
from __future__ import annotations

import json
from typing import Any

from avrocheck.tier0_core.errors import PayloadParseError


def _reject_constant(name: str) -> Any:
    # NaN, Infinity and -Infinity are Python extensions, not JSON
    raise PayloadParseError(f"Payload is not valid JSON: {name} is not a JSON value")


def parse_payload(payload: str | bytes | bytearray) -> Any:
    """
    Decode a JSON payload.

    Usage:
        value = parse_payload('{"message": "hi", "sender": "me"}')
    """
    if isinstance(payload, (bytes, bytearray)):
        try:
            payload = payload.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise PayloadParseError(f"Payload is not UTF-8: {exc}") from exc
    if not isinstance(payload, str):
        raise PayloadParseError(
            f"Payload must be JSON text, got {type(payload).__name__}"
        )
    try:
        return json.loads(payload, parse_constant=_reject_constant)
    except json.JSONDecodeError as exc:
        raise PayloadParseError(
            f"Payload is not valid JSON: {exc.msg} at line {exc.lineno} column {exc.colno}",
            position=exc.pos,
        ) from exc


__all__ = ["parse_payload"]
