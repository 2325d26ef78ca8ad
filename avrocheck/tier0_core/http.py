"""
avrocheck.tier0_core.http
──────────────────────────
HTTP primitives shared by the registry client: the success predicate and
the standard request headers.
"""
from __future__ import annotations


JSON_ACCEPT_HEADERS: dict[str, str] = {"Accept": "application/json"}


def is_success(status_code: int) -> bool:
    """True for any 2xx status."""
    return 200 <= status_code < 300


__all__ = ["JSON_ACCEPT_HEADERS", "is_success"]
