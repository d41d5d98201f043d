"""Pytest configuration and fixtures for pillow-request tests.

This file provides:
- make_envelope: ResponseEnvelope factory with sensible defaults
- RecordingTransport: in-memory Transport that records every perform() call
- RecordingCookieStore: CookieStore that records every set() call
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import pytest

from pillow_request.models import ResponseEnvelope
from pillow_request.transport import TransportOutcome


def make_envelope(
    status_code: int | None = 200,
    headers: dict[str, str | list[str]] | None = None,
    body: str = "",
    response_error: str | None = None,
    request_url: str = "http://localhost/",
    elapsed_time: float = 10.0,
) -> ResponseEnvelope:
    """Create a ResponseEnvelope for testing.

    Prefer this over constructing ResponseEnvelope directly - it provides
    sensible defaults and documents which fields are typically varied in tests.
    """
    return ResponseEnvelope(
        request_url=request_url,
        response_headers=headers or {},
        response_status_code=status_code,
        response_body=body,
        response_error=response_error,
        elapsed_time=elapsed_time,
    )


@dataclass
class PerformCall:
    method: str | None
    full_url: str
    options: dict[str, Any]
    body: Any
    use_https: bool


@dataclass
class RecordingTransport:
    """Transport that returns a canned outcome and records its calls."""

    outcome: TransportOutcome = field(
        default_factory=lambda: TransportOutcome.delivered(make_envelope(body="ok"))
    )
    calls: list[PerformCall] = field(default_factory=list)

    async def perform(
        self,
        method: str,
        full_url: str,
        options: dict[str, Any],
        body: Any = None,
        use_https: bool = False,
    ) -> TransportOutcome:
        self.calls.append(PerformCall(method, full_url, options, body, use_https))
        return self.outcome

    @property
    def last(self) -> PerformCall:
        return self.calls[-1]


@dataclass
class RecordingCookieStore:
    cookies: list[tuple[str, str]] = field(default_factory=list)

    def set(self, name: str, value: str) -> None:
        self.cookies.append((name, value))


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def cookie_store() -> RecordingCookieStore:
    return RecordingCookieStore()
