"""Shared test fixtures for hatx.

Provides a controllable clock for TTL tests, a recording fake transport that
can hold requests in flight, and automatic cleanup of the global output
manager and the ``hatx`` logger between tests.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Union

import pytest

from hatx.client import HatxService
from hatx.models import CacheConfig
from hatx.output import reset_output


BASE_URL = "https://hatx.example.org/api"

BEAD_A0101 = {"allele": "A*01:01", "manufacturer": "ONE_LAMBDA", "kit": "STANDARD"}
BEAD_A0102 = {"allele": "A*01:02", "manufacturer": "IMMUCOR", "kit": "EXPLEX"}
SEROLOGICAL_A0101 = {"allele": "A*01:01", "abhi": "A1", "imgt": "A1"}
SEROTYPE_A0101 = {
    "allele": "A*01:01",
    "comment": "",
    "serotype": "A1",
    "inputted_antigen": "A1",
    "broad": "A1",
    "ciwd_3_0": "C",
    "cwd_2_0": "C",
    "eurcwd": "C",
    "bw": "",
    "version": 2,
}
ARD_A0101 = {"allele": "A*01:01:01:01", "group": "g_group", "value": "A*01:01:01G"}


# ---------------------------------------------------------------------------
# Global state cleanup
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager and the hatx logger after every test.

    CLI tests attach a Rich handler bound to CliRunner's captured stderr;
    once the runner closes that stream the handler must not be reused.
    """
    yield
    reset_output()
    logger = logging.getLogger("hatx")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# ---------------------------------------------------------------------------
# Transport
# ---------------------------------------------------------------------------


@dataclass
class RecordedRequest:
    method: str
    path: str
    params: Optional[dict[str, Any]]
    headers: Optional[dict[str, str]]
    json_body: Any
    response_format: str


Responder = Union[Any, Exception, Callable[[RecordedRequest], Any]]


@dataclass
class FakeTransport:
    """Transport double that records requests and replays canned responses.

    ``routes`` maps ``(method, path)`` to a value, an exception instance to
    raise, or a callable receiving the :class:`RecordedRequest`.  When
    ``gate`` is set, every request waits on it before answering, which keeps
    calls in flight for concurrency tests.
    """

    routes: dict[tuple[str, str], Responder] = field(default_factory=dict)
    requests: list[RecordedRequest] = field(default_factory=list)
    gate: Optional[asyncio.Event] = None
    closed: bool = False

    async def request(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
        json_body: Optional[Any] = None,
        response_format: str = "json",
    ) -> Any:
        recorded = RecordedRequest(method, path, params, headers, json_body, response_format)
        self.requests.append(recorded)
        if self.gate is not None:
            await self.gate.wait()
        responder = self.routes[(method, path)]
        if isinstance(responder, Exception):
            raise responder
        if callable(responder):
            return responder(recorded)
        return responder

    async def aclose(self) -> None:
        self.closed = True

    def calls(self, method: str, path: str) -> int:
        return sum(1 for r in self.requests if r.method == method and r.path == path)


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport(
        routes={
            ("GET", "/system/health"): {"database": "ok", "cache": "ok"},
            ("GET", "/system/info"): {"title": "HATX", "description": None, "version": "1.4.0"},
            ("GET", "/system/changelog"): "# Changelog\n\n- 1.4.0\n",
            ("GET", "/bead"): [BEAD_A0101],
            ("POST", "/bead"): [BEAD_A0101, BEAD_A0102],
            ("POST", "/bead/filter"): [BEAD_A0101],
            ("GET", "/serological"): [SEROLOGICAL_A0101],
            ("POST", "/serological"): [SEROLOGICAL_A0101],
            ("GET", "/serotype"): [SEROTYPE_A0101],
            ("POST", "/serotype"): [SEROTYPE_A0101],
            ("POST", "/serotype/filter"): [SEROTYPE_A0101],
            ("GET", "/ard/reduce"): [ARD_A0101],
            ("POST", "/ard/reduce"): [ARD_A0101],
        }
    )


@pytest.fixture
def service(transport: FakeTransport, clock: FakeClock) -> HatxService:
    """Service with default pools, the fake transport and the fake clock."""
    return HatxService(BASE_URL, transport=transport, timer=clock)


@pytest.fixture
def uncached_service(transport: FakeTransport) -> HatxService:
    return HatxService(BASE_URL, cache=CacheConfig(enabled=False), transport=transport)
