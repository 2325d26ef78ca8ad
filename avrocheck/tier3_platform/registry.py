"""
avrocheck.tier3_platform.registry
──────────────────────────────────
Schema registry client. Fetches a raw Avro schema by numeric ID:

    GET {registry_url}/{schema_id}
    Accept: application/json
    → 2xx {"schema": "<avro schema json string>"}

One outbound request per ``fetch`` call, nothing prefetched, no retries.
``fetch_timeout`` is a deadline for the whole request, body included; its
expiry is a FetchTransportError.
Retry and caching policy belong to the caller (SchemaCache). Every failure
is mapped onto the FetchError family.

Backed by: httpx (async HTTP).
"""
from __future__ import annotations

import asyncio
import time
from typing import Any

import httpx

from avrocheck.tier0_core.config import ValidatorConfig, get_config
from avrocheck.tier0_core.errors import (
    FetchDecodeError,
    FetchHttpStatusError,
    FetchTransportError,
)
from avrocheck.tier0_core.http import JSON_ACCEPT_HEADERS, is_success
from avrocheck.tier0_core.logging import get_logger
from avrocheck.tier0_core.metrics import registry_fetch_seconds

logger = get_logger(__name__)


def check_schema_id(schema_id: Any) -> int:
    """Schema IDs are positive integers; reject anything else before any I/O."""
    if isinstance(schema_id, bool) or not isinstance(schema_id, int) or schema_id <= 0:
        raise ValueError(f"schema_id must be a positive integer, got {schema_id!r}")
    return schema_id


class RegistryClient:
    """
    Async client for a read-only schema registry.

    Usage::

        async with RegistryClient(ValidatorConfig(registry_url="http://sr:8081/schemas/ids")) as rc:
            raw = await rc.fetch(2)
    """

    def __init__(
        self,
        config: ValidatorConfig | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config or get_config()
        self._base_url = self._config.registry_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=self._config.fetch_timeout,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    def url_for(self, schema_id: int) -> str:
        return f"{self._base_url}/{schema_id}"

    async def fetch(self, schema_id: int) -> str:
        """Return the raw schema string registered under ``schema_id``."""
        check_schema_id(schema_id)
        url = self.url_for(schema_id)
        logger.debug("registry.fetch.start", schema_id=schema_id, url=url)
        started = time.monotonic()

        try:
            response = await asyncio.wait_for(
                self._client.get(
                    url,
                    headers=JSON_ACCEPT_HEADERS,
                    timeout=self._config.fetch_timeout,
                ),
                timeout=self._config.fetch_timeout,
            )
        except (httpx.RequestError, asyncio.TimeoutError) as exc:
            self._observe("transport", started)
            logger.warning(
                "registry.fetch.failed",
                schema_id=schema_id,
                url=url,
                reason="transport",
                error=f"{type(exc).__name__}: {exc}",
            )
            raise FetchTransportError(
                f"Request to {url} failed: {type(exc).__name__}: {exc}",
                schema_id=schema_id,
            ) from exc

        if not is_success(response.status_code):
            self._observe("http_status", started)
            logger.warning(
                "registry.fetch.failed",
                schema_id=schema_id,
                url=url,
                reason="http_status",
                status=response.status_code,
            )
            raise FetchHttpStatusError(response.status_code, schema_id=schema_id)

        try:
            body = response.json()
        except ValueError as exc:
            self._observe("decode", started)
            logger.warning("registry.fetch.failed", schema_id=schema_id, reason="decode")
            raise FetchDecodeError(
                f"Registry body is not JSON: {exc}", schema_id=schema_id
            ) from exc

        raw = body.get("schema") if isinstance(body, dict) else None
        if not isinstance(raw, str):
            self._observe("decode", started)
            logger.warning("registry.fetch.failed", schema_id=schema_id, reason="decode")
            raise FetchDecodeError(
                "Registry body lacks a 'schema' string", schema_id=schema_id
            )

        self._observe("ok", started)
        logger.info(
            "registry.fetch.ok",
            schema_id=schema_id,
            elapsed_ms=round((time.monotonic() - started) * 1000, 2),
        )
        return raw

    def _observe(self, outcome: str, started: float) -> None:
        registry_fetch_seconds(outcome=outcome).observe(time.monotonic() - started)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "RegistryClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()


__all__ = ["RegistryClient", "check_schema_id"]
