"""
avrocheck
─────────
Stable top-level exports. Import from here, not from sub-modules directly.
Every name exported here is part of the public API and subject to semver.
"""
from avrocheck.tier0_core.logging import get_logger
from avrocheck.tier0_core.errors import (
    AvrocheckError,
    PayloadParseError,
    SchemaError,
    FetchError,
    FetchHttpStatusError,
    FetchTransportError,
    FetchDecodeError,
)
from avrocheck.tier0_core.config import get_config, ValidatorConfig

from avrocheck.tier1_runtime.serialize import parse_payload
from avrocheck.tier1_runtime.validate import CompiledSchema, ExtraFields, compile_schema

from avrocheck.tier2_reliability.cache import CacheStats, SchemaCache

from avrocheck.tier3_platform.registry import RegistryClient

from avrocheck.validator import HELLO_WORLD_SCHEMA, SchemaValidator

__version__ = "0.1.0"
__all__ = [
    # logging
    "get_logger",
    # errors
    "AvrocheckError", "PayloadParseError", "SchemaError", "FetchError",
    "FetchHttpStatusError", "FetchTransportError", "FetchDecodeError",

    # config
    "get_config", "ValidatorConfig",
    # payloads
    "parse_payload",
    # schemas
    "CompiledSchema", "ExtraFields", "compile_schema",
    # cache
    "CacheStats", "SchemaCache",
    # registry
    "RegistryClient",
    # facade
    "HELLO_WORLD_SCHEMA", "SchemaValidator",
]
