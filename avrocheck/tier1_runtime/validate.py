"""
avrocheck.tier1_runtime.validate
─────────────────────────────────
Avro schema compilation and payload evaluation via fastavro. Raises
avrocheck SchemaError (not raw fastavro errors) for bad schemas; payload
mismatches are reported as ``False``, never raised.

Extra-field policy
    ExtraFields.FORBID (default): a record value may only carry the fields
    its schema declares. Any undeclared key, at the top level or inside a
    nested record, makes the payload invalid.
    ExtraFields.IGNORE: undeclared keys are skipped, which is what fastavro
    (and most Avro libraries) do when left to themselves.

In both modes every declared field without a default is required and types
must match exactly: a string must be a ``str``, an ``int``/``long`` must be an
integer that is not a bool, a ``boolean`` must be a bool.
"""
from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from fastavro import parse_schema
from fastavro.schema import SchemaParseException
from fastavro.validation import ValidationError as AvroValidationError
from fastavro.validation import validate

from avrocheck.tier0_core.errors import SchemaError
from avrocheck.tier0_core.logging import get_logger

logger = get_logger(__name__)

_NAMED_TYPES = frozenset({"record", "error", "enum", "fixed"})


class ExtraFields(str, Enum):
    FORBID = "forbid"
    IGNORE = "ignore"


@dataclass(frozen=True, eq=False)
class CompiledSchema:
    """
    An Avro record schema ready to check decoded JSON values.

    Immutable after construction; safe to share between concurrent
    validation calls.
    """

    raw: str
    name: str
    definition: dict[str, Any]
    parsed: dict[str, Any]
    extra_fields: ExtraFields = ExtraFields.FORBID
    named: dict[str, dict[str, Any]] = field(default_factory=dict, repr=False)

    @property
    def field_names(self) -> list[str]:
        return [f["name"] for f in self.definition["fields"]]

    def with_extra_fields(self, policy: ExtraFields | str) -> "CompiledSchema":
        """Return a copy of this schema evaluated under another policy."""
        return CompiledSchema(
            raw=self.raw,
            name=self.name,
            definition=self.definition,
            parsed=self.parsed,
            extra_fields=ExtraFields(policy),
            named=self.named,
        )

    def is_valid(self, value: Any) -> bool:
        """True if ``value`` (already decoded JSON) belongs to this schema."""
        if self.extra_fields is ExtraFields.FORBID and _undeclared(
            value, self.definition, self.named, "", None
        ):
            return False
        return validate(value, self.parsed, raise_errors=False)

    def explain(self, value: Any) -> list[str]:
        """
        Return the reasons ``value`` is invalid; an empty list means valid.
        Intended for logs and debugging, the wording is not stable.
        """
        problems: list[str] = []
        if self.extra_fields is ExtraFields.FORBID:
            problems.extend(_undeclared(value, self.definition, self.named, "", None))
        try:
            validate(value, self.parsed, raise_errors=True)
        except AvroValidationError as exc:
            problems.extend(str(err) for err in exc.errors)
        return problems


def compile_schema(
    raw: str | bytes | Mapping[str, Any],
    *,
    extra_fields: ExtraFields | str = ExtraFields.FORBID,
    schema_id: int | None = None,
) -> CompiledSchema:
    """
    Parse an Avro record schema into a CompiledSchema.

    Raises SchemaError when the text is not JSON, is not a valid Avro schema,
    or its top-level type is not a record.

    Usage:
        compiled = compile_schema('{"type": "record", "name": "Msg", "fields": []}')
        compiled.is_valid({})
    """
    try:
        if isinstance(raw, Mapping):
            text = json.dumps(raw)
        elif isinstance(raw, bytes):
            text = raw.decode("utf-8")
        else:
            text = raw
        definition = json.loads(text)
    except (ValueError, TypeError) as exc:
        logger.warning("schema.compile.failed", schema_id=schema_id, reason="not_json")
        raise SchemaError(f"Schema is not valid JSON: {exc}", schema_id=schema_id) from exc

    if not isinstance(definition, dict) or definition.get("type") not in ("record", "error"):
        logger.warning("schema.compile.failed", schema_id=schema_id, reason="not_a_record")
        raise SchemaError(
            "Schema must be an Avro record definition", schema_id=schema_id
        )

    try:
        parsed = parse_schema(definition)
    except (SchemaParseException, ValueError, KeyError, TypeError, AttributeError) as exc:
        logger.warning(
            "schema.compile.failed",
            schema_id=schema_id,
            reason="invalid_avro",
            error=str(exc),
        )
        raise SchemaError(f"Invalid Avro schema: {exc}", schema_id=schema_id) from exc

    named: dict[str, dict[str, Any]] = {}
    _collect_named(definition, named, definition.get("namespace"))

    return CompiledSchema(
        raw=text,
        name=parsed["name"],
        definition=definition,
        parsed=parsed,
        extra_fields=ExtraFields(extra_fields),
        named=named,
    )


# ── Extra-field check ─────────────────────────────────────────────────────────

def _collect_named(
    schema: Any, named: dict[str, dict[str, Any]], namespace: str | None
) -> None:
    if isinstance(schema, list):
        for branch in schema:
            _collect_named(branch, named, namespace)
        return
    if not isinstance(schema, dict):
        return
    kind = schema.get("type")
    if kind in _NAMED_TYPES and "name" in schema:
        name = schema["name"]
        ns = schema.get("namespace", namespace)
        named[name] = schema
        if ns and "." not in name:
            named[f"{ns}.{name}"] = schema
        namespace = ns
    if kind in ("record", "error"):
        for f in schema.get("fields", []):
            _collect_named(f.get("type"), named, namespace)
    elif kind == "array":
        _collect_named(schema.get("items"), named, namespace)
    elif kind == "map":
        _collect_named(schema.get("values"), named, namespace)
    elif isinstance(kind, (dict, list)):
        _collect_named(kind, named, namespace)


def _resolve(schema: Any, named: dict[str, dict[str, Any]], namespace: str | None) -> Any:
    if isinstance(schema, str):
        target = named.get(schema)
        if target is None and namespace:
            target = named.get(f"{namespace}.{schema}")
        return target if target is not None else schema
    if isinstance(schema, dict) and isinstance(schema.get("type"), (dict, list)):
        return _resolve(schema["type"], named, namespace)
    return schema


def _kind(schema: Any, named: dict[str, dict[str, Any]], namespace: str | None) -> str | None:
    schema = _resolve(schema, named, namespace)
    if isinstance(schema, dict):
        return schema.get("type")
    if isinstance(schema, str):
        return schema
    return None


def _undeclared(
    value: Any,
    schema: Any,
    named: dict[str, dict[str, Any]],
    path: str,
    namespace: str | None,
) -> list[str]:
    """Paths of keys that ``value`` carries but its record schemas don't declare."""
    schema = _resolve(schema, named, namespace)

    if isinstance(schema, list):
        # Only union branches that could hold this value are considered; the
        # value passes if any of them declares all of its keys.
        if isinstance(value, Mapping):
            wanted = ("record", "error", "map")
        elif isinstance(value, list):
            wanted = ("array",)
        else:
            return []
        problems: list[str] | None = None
        for branch in schema:
            if _kind(branch, named, namespace) not in wanted:
                continue
            found = _undeclared(value, branch, named, path, namespace)
            if not found:
                return []
            if problems is None:
                problems = found
        return problems or []

    if not isinstance(schema, dict):
        return []

    kind = schema.get("type")

    if kind in ("record", "error"):
        if not isinstance(value, Mapping):
            return []
        namespace = schema.get("namespace", namespace)
        fields = {f["name"]: f.get("type") for f in schema.get("fields", [])}
        problems = [
            f"{path}{key} is not declared by {schema.get('name')}"
            for key in value
            if key not in fields
        ]
        for key, field_type in fields.items():
            if key in value:
                problems.extend(
                    _undeclared(value[key], field_type, named, f"{path}{key}.", namespace)
                )
        return problems

    if kind == "array" and isinstance(value, list):
        problems = []
        for i, item in enumerate(value):
            problems.extend(
                _undeclared(item, schema.get("items"), named, f"{path}{i}.", namespace)
            )
        return problems

    if kind == "map" and isinstance(value, Mapping):
        problems = []
        for key, item in value.items():
            problems.extend(
                _undeclared(item, schema.get("values"), named, f"{path}{key}.", namespace)
            )
        return problems

    return []


__all__ = ["CompiledSchema", "ExtraFields", "compile_schema"]
