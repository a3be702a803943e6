"""Structural types shared by the adapter and the callback pipeline."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from typing import Any, Protocol, runtime_checkable

from .actions import StreamSource


@runtime_checkable
class IncomingMessage(Protocol):
    """The request side of a callback pipeline.

    ``body`` holds whatever an upstream body parser attached, ``None`` when
    no parser ran.
    """

    method: str
    url: str
    headers: Mapping[str, str]
    body: Any


@runtime_checkable
class LiveResponse(Protocol):
    """The mutable response object handlers write to."""

    status_code: int

    def set_header(self, name: str, value: str) -> None:
        """Set a single response header."""
        ...

    def end(self, body: str | bytes | None = None) -> None:
        """Terminate the response, optionally with a body."""
        ...

    def pipe(self, source: StreamSource) -> None:
        """Terminate the response by draining ``source`` into it."""
        ...


# next() continues the pipeline, next(error) aborts to error handling
NextFunction = Callable[..., None]

RequestHandler = Callable[[Any, Any, NextFunction], "Awaitable[None] | None"]
ErrorHandler = Callable[[Any, Any, Any, NextFunction], "Awaitable[None] | None"]
