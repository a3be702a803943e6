"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from typing import Any

import pytest

from hyperconnect.config import Settings


@pytest.fixture
def settings() -> Settings:
    """Default settings, independent of the environment."""
    return Settings()


class FakeRequest:
    """Minimal stand-in for an incoming request."""

    def __init__(
        self,
        method: str = "GET",
        url: str = "/",
        headers: dict[str, str] | None = None,
        body: Any = None,
    ):
        self.method = method
        self.url = url
        self.path = url.split("?", 1)[0]
        self.headers = headers or {}
        self.body = body


class RecordingResponse:
    """Live response that records every call made on it."""

    def __init__(self) -> None:
        self.calls: list[tuple[Any, ...]] = []
        self._status_code = 200

    @property
    def status_code(self) -> int:
        return self._status_code

    @status_code.setter
    def status_code(self, value: int) -> None:
        self.calls.append(("status", value))
        self._status_code = value

    def set_header(self, name: str, value: str) -> None:
        self.calls.append(("header", name, value))

    def end(self, body: Any = None) -> None:
        self.calls.append(("end", body))

    def pipe(self, source: Any) -> None:
        self.calls.append(("pipe", source))


class NextRecorder:
    """Records calls made to a pipeline ``next`` function."""

    def __init__(self, response: RecordingResponse | None = None):
        self.calls: list[tuple[Any, ...]] = []
        self._response = response
        self.response_calls_at_call: list[list[tuple[Any, ...]]] = []

    def __call__(self, *args: Any) -> None:
        self.calls.append(args)
        if self._response is not None:
            self.response_calls_at_call.append(list(self._response.calls))


@pytest.fixture
def request_factory():
    return FakeRequest


@pytest.fixture
def recording_response() -> RecordingResponse:
    return RecordingResponse()


@pytest.fixture
def next_factory():
    return NextRecorder
