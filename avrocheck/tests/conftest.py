"""
avrocheck test configuration.

No network access: the schema registry is simulated with httpx.MockTransport.
"""
from __future__ import annotations

import asyncio
import json
import os

import httpx
import pytest

os.environ.setdefault("AVROCHECK_LOG_LEVEL", "WARNING")
os.environ.setdefault("AVROCHECK_LOG_FORMAT", "console")
os.environ.setdefault("APP_ENV", "test")

REGISTRY_URL = "http://registry.test/schemas/ids"

HELLO_WORLD = {
    "type": "record",
    "name": "HelloWorldMessage",
    "fields": [
        {"name": "message", "type": "string"},
        {"name": "sender", "type": "string"},
    ],
}

READING = {
    "type": "record",
    "name": "Reading",
    "namespace": "sensors",
    "fields": [
        {"name": "device", "type": "string"},
        {"name": "value", "type": "double"},
        {"name": "count", "type": "long"},
        {"name": "ok", "type": "boolean"},
    ],
}


class FakeRegistry:
    """In-memory schema registry speaking the GET /schemas/ids/{id} contract."""

    def __init__(self) -> None:
        self.schemas: dict[int, str] = {}
        self.statuses: dict[int, int] = {}
        self.status_queue: dict[int, list[int]] = {}
        self.bodies: dict[int, bytes] = {}
        self.errors: dict[int, Exception] = {}
        self.gates: dict[int, asyncio.Event] = {}
        self.requests: list[httpx.Request] = []

    def publish(self, schema_id: int, schema: dict | str) -> None:
        self.schemas[schema_id] = schema if isinstance(schema, str) else json.dumps(schema)

    def fetch_count(self, schema_id: int) -> int:
        return sum(1 for r in self.requests if r.url.path.endswith(f"/{schema_id}"))

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        schema_id = int(request.url.path.rsplit("/", 1)[-1])
        gate = self.gates.get(schema_id)
        if gate is not None:
            await gate.wait()
        if schema_id in self.errors:
            raise self.errors[schema_id]
        if self.status_queue.get(schema_id):
            status = self.status_queue[schema_id].pop(0)
            return httpx.Response(status, json={"message": "unavailable"})
        if schema_id in self.statuses:
            return httpx.Response(self.statuses[schema_id], json={"message": "unavailable"})
        if schema_id in self.bodies:
            return httpx.Response(200, content=self.bodies[schema_id])
        if schema_id not in self.schemas:
            return httpx.Response(404, json={"error_code": 40403, "message": "Schema not found"})
        return httpx.Response(200, json={"schema": self.schemas[schema_id]})


# ── Fixtures ───────────────────────────────────────────────────────────────

@pytest.fixture(autouse=True)
def reset_config_cache():
    from avrocheck.tier0_core.config import _reset_config

    _reset_config()
    yield
    _reset_config()


@pytest.fixture
def registry() -> FakeRegistry:
    reg = FakeRegistry()
    reg.publish(1, READING)
    reg.publish(2, HELLO_WORLD)
    return reg


@pytest.fixture
def config():
    from avrocheck.tier0_core.config import ValidatorConfig

    return ValidatorConfig(registry_url=REGISTRY_URL, fetch_timeout=2.0)


@pytest.fixture
def registry_client(registry, config):
    from avrocheck.tier3_platform.registry import RegistryClient

    return RegistryClient(config, transport=httpx.MockTransport(registry.handler))
