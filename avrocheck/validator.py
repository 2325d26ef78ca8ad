"""
avrocheck.validator
────────────────────
Public validation surface.

    validator = SchemaValidator(ValidatorConfig(registry_url="http://sr:8081/schemas/ids"))
    validator.validate_local('{"message": "be home early!", "sender": "momma"}')   # True
    await validator.validate_remote(payload, 2)                                     # True/False

Outcomes:
    True / False        the payload does / does not match the schema
    PayloadParseError   the payload is not JSON
    SchemaError         the schema could not be compiled
    FetchError          the registry could not deliver the schema

Errors are never folded into ``False``.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from avrocheck.tier0_core.config import ValidatorConfig, get_config
from avrocheck.tier0_core.logging import get_logger
from avrocheck.tier1_runtime.serialize import parse_payload
from avrocheck.tier1_runtime.validate import CompiledSchema, compile_schema
from avrocheck.tier2_reliability.cache import SchemaCache
from avrocheck.tier3_platform.registry import RegistryClient

logger = get_logger(__name__)

HELLO_WORLD_SCHEMA: dict[str, Any] = {
    "type": "record",
    "name": "HelloWorldMessage",
    "fields": [
        {"name": "message", "type": "string"},
        {"name": "sender", "type": "string"},
    ],
}


class SchemaValidator:
    """
    Validates JSON payloads against a local schema or registry schemas.

    Each instance carries its own config, registry client and cache, so
    several can point at different registries in the same process.
    """

    def __init__(
        self,
        config: ValidatorConfig | None = None,
        *,
        local_schema: str | bytes | Mapping[str, Any] | CompiledSchema = HELLO_WORLD_SCHEMA,
        client: RegistryClient | None = None,
        cache: SchemaCache | None = None,
    ) -> None:
        self._config = config or get_config()
        if isinstance(local_schema, CompiledSchema):
            self._local = local_schema
        else:
            self._local = compile_schema(
                local_schema, extra_fields=self._config.extra_fields
            )
        if cache is not None:
            self._cache = cache
            self._client = cache.client
            self._owns_client = False
        else:
            self._owns_client = client is None
            self._client = client or RegistryClient(self._config)
            self._cache = SchemaCache(self._client, self._config)

    @property
    def local_schema(self) -> CompiledSchema:
        return self._local

    @property
    def cache(self) -> SchemaCache:
        return self._cache

    def validate_local(self, payload: str | bytes) -> bool:
        """Validate against the local schema. Never touches the network."""
        return self.validate_with(payload, self._local)

    async def validate_remote(self, payload: str | bytes, schema_id: int) -> bool:
        """
        Validate against the registry schema ``schema_id``.

        The payload is decoded first, so a malformed payload raises
        PayloadParseError without costing a registry round trip.
        """
        value = parse_payload(payload)
        compiled = await self._cache.get_or_fetch(schema_id)
        return self._check(value, compiled, schema_id=schema_id)

    def validate_with(self, payload: str | bytes, compiled: CompiledSchema) -> bool:
        """Validate against an already compiled schema."""
        return self._check(parse_payload(payload), compiled)

    def _check(self, value: Any, compiled: CompiledSchema, **log_fields: Any) -> bool:
        valid = compiled.is_valid(value)
        if not valid and logger.is_enabled_for(logging.DEBUG):
            logger.debug(
                "payload.invalid",
                schema=compiled.name,
                problems=compiled.explain(value),
                **log_fields,
            )
        return valid

    async def aclose(self) -> None:
        await self._cache.aclose()
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "SchemaValidator":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()


__all__ = ["HELLO_WORLD_SCHEMA", "SchemaValidator"]
