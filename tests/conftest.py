"""Pytest configuration and fixtures for CostSync tests.

Provides sample records, an in-memory HTTP endpoint and a hand-driven
sleep function for scheduler tests.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

import httpx
import pytest

from costsync.config import AppConfig, RefreshConfig, SourceConfig
from costsync.models import Record

SOURCE_URL = "https://slides.example.test/costos.json"


def build_record_data() -> dict[str, Any]:
    return {
        "configuration": {"format": {"thousandsSeparator": ",", "currencySymbol": "$"}},
        "formulas": {"slide14": {}, "slide19": {}},
        "slides": {
            "slide14": {
                "title": "Media distribution",
                "distribution": {
                    "facebook": {"investment": 3000, "leads": 50},
                    "instagram": {"investment": 2000, "leads": 40},
                },
            },
            "slide19": {
                "title": "Investment",
                "services": {
                    "content": {"oneTime": 500, "monthly": 300},
                    "adCreation": {"oneTime": 200},
                    "adManagement": {"setupCost": 100, "monthly": 400, "commission": 0.1},
                },
                "totals": {"note": "VAT not included"},
                "metrics": {"reach": 120000},
            },
        },
    }


@pytest.fixture
def record_data() -> dict[str, Any]:
    """Fresh raw record content."""
    return build_record_data()


@pytest.fixture
def record(record_data: dict[str, Any]) -> Record:
    """Raw (not yet derived) record."""
    return Record(data=record_data)


@pytest.fixture
def record_file(tmp_path: Path, record_data: dict[str, Any]) -> Path:
    """Record saved as a local JSON file."""
    path = tmp_path / "costos.json"
    path.write_text(json.dumps(record_data), encoding="utf-8")
    return path


class FakeEndpoint:
    """Serves a mutable record over httpx.MockTransport."""

    def __init__(self, data: dict[str, Any] | None = None):
        self.data = data if data is not None else build_record_data()
        self.status_code = 200
        self.body: str | None = None
        self.error: Exception | None = None
        self.gate: asyncio.Event | None = None
        self.requests: list[httpx.Request] = []

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        body = self.body if self.body is not None else json.dumps(self.data)
        return httpx.Response(self.status_code, text=body)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def endpoint() -> FakeEndpoint:
    return FakeEndpoint()


@pytest.fixture
def config() -> AppConfig:
    """Config pointing at the fake endpoint, auto-refresh off."""
    return AppConfig(
        source=SourceConfig(url=SOURCE_URL),
        refresh=RefreshConfig(enabled=False),
    )


class ManualSleep:
    """Sleep replacement whose waits only end when the test advances time."""

    def __init__(self):
        self.delays: list[float] = []
        self._pending: list[asyncio.Future] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)
        future = asyncio.get_running_loop().create_future()
        self._pending.append(future)
        await future

    @property
    def waiting(self) -> int:
        return sum(1 for future in self._pending if not future.done())

    def advance(self) -> None:
        pending, self._pending = self._pending, []
        for future in pending:
            if not future.done():
                future.set_result(None)


@pytest.fixture
def manual_sleep() -> ManualSleep:
    return ManualSleep()


async def settle(rounds: int = 20) -> None:
    """Let every ready task run until the loop is quiet."""
    for _ in range(rounds):
        await asyncio.sleep(0)
