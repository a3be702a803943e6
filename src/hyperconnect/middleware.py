"""A small phase-indexed middleware engine.

A :class:`Middleware` is an async function from a connection to
``Ok((value, next_connection))`` or ``Err(error)``. Response steps move the
connection through its phases; composing steps in the wrong order raises
:class:`~hyperconnect.errors.PhaseError` as soon as the step runs.

Example:
    hello = (
        status(200)
        .chain(lambda _: header("X-Greeting", "hi"))
        .chain(lambda _: close_headers())
        .chain(lambda _: send("Hello!"))
    )
"""

from __future__ import annotations

import inspect
import json as _json
from collections.abc import Awaitable, Callable
from http import HTTPStatus
from typing import Any, Generic, TypeVar

from pydantic import TypeAdapter, ValidationError

from .actions import CookieOptions, StreamSource
from .connection import (
    BodyOpenConnection,
    Connection,
    HeadersOpenConnection,
    StatusOpenConnection,
)
from .errors import PhaseError
from .result import Err, Ok, Result

A = TypeVar("A")
B = TypeVar("B")

Step = Result[tuple[Any, Connection], Any]
Decoder = Callable[[Any], Result[Any, Any]]

MEDIA_TYPE_JSON = "application/json"


class Middleware(Generic[A]):
    """One composable step of the computation."""

    __slots__ = ("_run",)

    def __init__(self, run: Callable[[Connection], Awaitable[Step]]):
        self._run = run

    async def __call__(self, connection: Connection) -> Step:
        return await self._run(connection)

    def map(self, f: Callable[[A], B]) -> Middleware[B]:
        async def run(connection: Connection) -> Step:
            result = await self(connection)
            return result.map(lambda pair: (f(pair[0]), pair[1]))

        return Middleware(run)

    def chain(self, f: Callable[[A], Middleware[B]]) -> Middleware[B]:
        """Sequence ``f(value)`` after this step, threading the connection."""

        async def run(connection: Connection) -> Step:
            result = await self(connection)
            if isinstance(result, Err):
                return result
            value, next_connection = result.value
            return await f(value)(next_connection)

        return Middleware(run)

    def chain_first(self, f: Callable[[A], Middleware[Any]]) -> Middleware[A]:
        """Like ``chain`` but keep this step's value."""
        return self.chain(lambda a: f(a).map(lambda _: a))

    def map_err(self, f: Callable[[Any], Any]) -> Middleware[A]:
        async def run(connection: Connection) -> Step:
            result = await self(connection)
            return result.map_err(f)

        return Middleware(run)

    def or_else(self, f: Callable[[Any], Middleware[A]]) -> Middleware[A]:
        """Recover from a failure by running ``f(error)`` on the original connection."""

        async def run(connection: Connection) -> Step:
            result = await self(connection)
            if isinstance(result, Err):
                return await f(result.error)(connection)
            return result

        return Middleware(run)


# =============================================================================
# Constructors
# =============================================================================


def right(value: A) -> Middleware[A]:
    async def run(connection: Connection) -> Step:
        return Ok((value, connection))

    return Middleware(run)


def left(error: Any) -> Middleware[Any]:
    async def run(connection: Connection) -> Step:
        return Err(error)

    return Middleware(run)


def from_connection(f: Callable[[Connection], Result[A, Any]]) -> Middleware[A]:
    """Lift a function that reads the connection and may fail."""

    async def run(connection: Connection) -> Step:
        return f(connection).map(lambda a: (a, connection))

    return Middleware(run)


def gets(f: Callable[[Connection], A]) -> Middleware[A]:
    async def run(connection: Connection) -> Step:
        return Ok((f(connection), connection))

    return Middleware(run)


def from_callable(f: Callable[[], Any]) -> Middleware[Any]:
    """Run a side effect (sync or async) and succeed with its return value."""

    async def run(connection: Connection) -> Step:
        value = f()
        if inspect.isawaitable(value):
            value = await value
        return Ok((value, connection))

    return Middleware(run)


def _modify(step: str, phase: type[Connection], f: Callable[[Any], Connection]) -> Middleware[None]:
    async def run(connection: Connection) -> Step:
        if not isinstance(connection, phase):
            raise PhaseError(step, phase.__name__, type(connection).__name__)
        return Ok((None, f(connection)))

    return Middleware(run)


# =============================================================================
# Response steps
# =============================================================================


def status(code: int | HTTPStatus) -> Middleware[None]:
    return _modify("status", StatusOpenConnection, lambda c: c.set_status(int(code)))


def header(name: str, value: str) -> Middleware[None]:
    return _modify("header", HeadersOpenConnection, lambda c: c.set_header(name, value))


def content_type(media_type: str) -> Middleware[None]:
    return header("Content-Type", media_type)


def cookie(name: str, value: str, options: CookieOptions | None = None) -> Middleware[None]:
    return _modify("cookie", HeadersOpenConnection, lambda c: c.set_cookie(name, value, options))


def clear_cookie(name: str, options: CookieOptions | None = None) -> Middleware[None]:
    return _modify("clear_cookie", HeadersOpenConnection, lambda c: c.clear_cookie(name, options))


def close_headers() -> Middleware[None]:
    return _modify("close_headers", HeadersOpenConnection, lambda c: c.retag(BodyOpenConnection))


def send(body: str | bytes) -> Middleware[None]:
    return _modify("send", BodyOpenConnection, lambda c: c.set_body(body))


def end() -> Middleware[None]:
    return _modify("end", BodyOpenConnection, lambda c: c.end_response())


def pipe_stream(stream: StreamSource) -> Middleware[None]:
    return _modify("pipe_stream", BodyOpenConnection, lambda c: c.pipe_stream(stream))


def json(body: Any, on_error: Callable[[Exception], Any]) -> Middleware[None]:
    """Serialize ``body``, set the JSON content type, close headers and send.

    Must run while headers are open. Serialization errors are mapped
    through ``on_error`` into the failure channel.
    """
    try:
        payload = _json.dumps(body, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError) as e:
        return left(on_error(e))
    return (
        content_type(MEDIA_TYPE_JSON)
        .chain(lambda _: close_headers())
        .chain(lambda _: send(payload))
    )


def redirect(uri: str) -> Middleware[None]:
    return status(HTTPStatus.FOUND).chain(lambda _: header("Location", uri))


# =============================================================================
# Decoders
# =============================================================================


def decode_param(name: str, decoder: Decoder) -> Middleware[Any]:
    def read(c: Connection) -> Result[Any, Any]:
        params = c.get_params()
        return decoder(params.get(name) if params else None)

    return from_connection(read)


def decode_params(decoder: Decoder) -> Middleware[Any]:
    return from_connection(lambda c: decoder(c.get_params()))


def decode_query(decoder: Decoder) -> Middleware[Any]:
    return from_connection(lambda c: decoder(c.get_query()))


def decode_body(decoder: Decoder) -> Middleware[Any]:
    return from_connection(lambda c: decoder(c.get_body()))


def decode_method(decoder: Decoder) -> Middleware[Any]:
    return from_connection(lambda c: decoder(c.get_method()))


def decode_header(name: str, decoder: Decoder) -> Middleware[Any]:
    return from_connection(lambda c: decoder(c.get_header(name)))


def pydantic_decoder(tp: Any) -> Decoder:
    """Build a decoder that validates with pydantic.

    ``tp`` may be a model class or any type pydantic understands
    (``Literal["GET", "POST"]``, ``str``, ...). Validation errors are
    returned as ``Err(ValidationError)``.
    """
    adapter = TypeAdapter(tp)

    def decode(raw: Any) -> Result[Any, ValidationError]:
        try:
            return Ok(adapter.validate_python(raw))
        except ValidationError as e:
            return Err(e)

    return decode


# =============================================================================
# Execution
# =============================================================================


async def exec_middleware(middleware: Middleware[Any], connection: Connection) -> Result[Connection, Any]:
    """Run ``middleware`` and keep only the final connection."""
    result = await middleware(connection)
    return result.map(lambda pair: pair[1])
