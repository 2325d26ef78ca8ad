"""
avrocheck.tier2_reliability.cache
──────────────────────────────────
Compiled-schema cache keyed by schema ID, with single-flight fetches.

Per schema ID:

    Absent ──first caller──▶ Pending ──ok──▶ Ready (served until invalidated)
                                 │
                                 └──error──▶ Absent (next call fetches again)

- Pending holds one shared asyncio.Task doing fetch+compile. Concurrent
  callers for the same ID await that task instead of starting their own and
  all observe its outcome.
- Waiters await through ``asyncio.shield``: cancelling one caller never
  cancels the shared fetch other callers still depend on.
- Failures are never cached. The registry may just be down, and a bad ID
  cannot be told apart from an outage, so the next call retries.
- There is no global lock. Bookkeeping happens between awaits on the event
  loop, so distinct IDs fetch fully in parallel.

A cache instance belongs to the event loop it is first used on.
"""
from __future__ import annotations

import asyncio
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from avrocheck.tier0_core.config import ValidatorConfig, get_config
from avrocheck.tier0_core.logging import get_logger
from avrocheck.tier0_core.metrics import (
    schema_cache_fetch_failures,
    schema_cache_fetches,
    schema_cache_hits,
    schema_cache_misses,
)
from avrocheck.tier1_runtime.retry import fetch_retrying
from avrocheck.tier1_runtime.validate import CompiledSchema, compile_schema
from avrocheck.tier3_platform.registry import RegistryClient, check_schema_id

logger = get_logger(__name__)


@dataclass(frozen=True)
class CacheStats:
    hits: int
    misses: int
    fetches: int
    failures: int
    size: int
    pending: int


class SchemaCache:
    """
    Memoizes CompiledSchemas by schema ID on top of a RegistryClient.

    Usage::

        cache = SchemaCache(RegistryClient(config), config)
        compiled = await cache.get_or_fetch(2)
    """

    def __init__(
        self,
        client: RegistryClient,
        config: ValidatorConfig | None = None,
        *,
        retry_sleep: Callable[[float], Any] | None = None,
    ) -> None:
        self._client = client
        self._config = config or get_config()
        self._max_entries = self._config.cache_max_entries
        self._retry_sleep = retry_sleep
        self._ready: OrderedDict[int, CompiledSchema] = OrderedDict()
        self._pending: dict[int, asyncio.Task[CompiledSchema]] = {}
        self._hits = 0
        self._misses = 0
        self._fetches = 0
        self._failures = 0

    # ── Lookup ────────────────────────────────────────────────────────────────

    async def get_or_fetch(self, schema_id: int) -> CompiledSchema:
        """
        Return the compiled schema for ``schema_id``, fetching it at most once
        concurrently. Raises SchemaError or a FetchError subclass.
        """
        check_schema_id(schema_id)

        compiled = self._ready.get(schema_id)
        if compiled is not None:
            self._ready.move_to_end(schema_id)
            self._hits += 1
            schema_cache_hits().inc()
            logger.debug("schema_cache.hit", schema_id=schema_id)
            return compiled

        task = self._pending.get(schema_id)
        if task is None:
            self._misses += 1
            schema_cache_misses().inc()
            logger.debug("schema_cache.miss", schema_id=schema_id)
            task = asyncio.get_running_loop().create_task(
                self._load(schema_id), name=f"avrocheck-fetch-{schema_id}"
            )
            self._pending[schema_id] = task
        else:
            logger.debug("schema_cache.join", schema_id=schema_id)

        return await asyncio.shield(task)

    @property
    def client(self) -> RegistryClient:
        return self._client

    def peek(self, schema_id: int) -> CompiledSchema | None:
        """Return the cached schema without fetching or touching LRU order."""
        return self._ready.get(schema_id)

    async def _load(self, schema_id: int) -> CompiledSchema:
        try:
            raw = await self._fetch(schema_id)
            compiled = compile_schema(
                raw, extra_fields=self._config.extra_fields, schema_id=schema_id
            )
            self._store(schema_id, compiled)
            return compiled
        except Exception as exc:
            self._failures += 1
            schema_cache_fetch_failures(error=type(exc).__name__).inc()
            logger.warning(
                "schema_cache.failed",
                schema_id=schema_id,
                error=type(exc).__name__,
                code=getattr(exc, "code", None),
                detail=str(exc),
            )
            raise
        finally:
            if self._pending.get(schema_id) is asyncio.current_task():
                del self._pending[schema_id]

    async def _fetch(self, schema_id: int) -> str:
        raw = ""
        async for attempt in fetch_retrying(self._config, sleep=self._retry_sleep):
            with attempt:
                self._fetches += 1
                schema_cache_fetches().inc()
                raw = await self._client.fetch(schema_id)
        return raw

    def _store(self, schema_id: int, compiled: CompiledSchema) -> None:
        self._ready[schema_id] = compiled
        self._ready.move_to_end(schema_id)
        if self._max_entries is not None:
            while len(self._ready) > self._max_entries:
                evicted, _ = self._ready.popitem(last=False)
                logger.info("schema_cache.evicted", schema_id=evicted)

    # ── Maintenance ───────────────────────────────────────────────────────────

    def invalidate(self, schema_id: int) -> bool:
        """
        Drop a Ready entry so the next lookup fetches again. An in-flight
        fetch is left alone. Returns True if something was dropped.
        """
        dropped = self._ready.pop(schema_id, None) is not None
        if dropped:
            logger.info("schema_cache.invalidated", schema_id=schema_id)
        return dropped

    def clear(self) -> None:
        """Drop every Ready entry."""
        self._ready.clear()

    async def aclose(self) -> None:
        """Cancel in-flight fetches. Waiters see CancelledError."""
        tasks = list(self._pending.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._pending.clear()

    def stats(self) -> CacheStats:
        return CacheStats(
            hits=self._hits,
            misses=self._misses,
            fetches=self._fetches,
            failures=self._failures,
            size=len(self._ready),
            pending=len(self._pending),
        )

    def __len__(self) -> int:
        return len(self._ready)

    def __contains__(self, schema_id: object) -> bool:
        return schema_id in self._ready


__all__ = ["CacheStats", "SchemaCache"]
