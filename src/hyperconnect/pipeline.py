"""Connect-style callback pipeline served as an ASGI application.

Handlers have the shape ``(request, response, next)`` and may be plain
functions or coroutines. They mutate the live :class:`ServerResponse` and
either end it or call ``next()`` to hand over to the next layer.
``next(error)`` with a truthy error skips to the next error layer,
registered with ``use_error`` and shaped ``(error, request, response,
next)``. A falsy argument continues like ``next()``.

The pipeline only decides *what* the response is; Starlette response
classes render it to ASGI once it has ended.

Usage:
    app = App()
    app.use(json_body_parser())
    app.use(to_request_handler(hello))
    uvicorn.run(app)
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from functools import partial
from http import HTTPStatus
from typing import Any

from starlette.requests import Request
from starlette.responses import Response, StreamingResponse
from starlette.types import Receive, Scope, Send

from .actions import StreamSource
from .types import ErrorHandler, NextFunction, RequestHandler

logger = logging.getLogger(__name__)

ENCODING = "utf-8"


class IncomingRequest:
    """Request handed to pipeline handlers.

    ``url`` is the original request target (raw path plus query string).
    ``body`` starts as ``None``; body parsers attach the decoded body there.
    """

    def __init__(self, request: Request):
        self._request = request
        scope = request.scope
        raw_path = (scope.get("raw_path") or scope["path"].encode(ENCODING)).split(b"?", 1)[0]
        query = scope.get("query_string", b"")

        self.method: str = request.method
        self.path: str = request.url.path
        self.url: str = raw_path.decode("latin-1") + ("?" + query.decode("latin-1") if query else "")
        self.headers: Mapping[str, str] = request.headers
        self.body: Any = None

    async def read(self) -> bytes:
        """Read the raw request body."""
        return await self._request.body()

    def __repr__(self) -> str:
        return f"IncomingRequest({self.method} {self.url})"


class ServerResponse:
    """Live response written to by handlers.

    Nothing reaches the client until the response ends via ``end`` or
    ``pipe``; after that it is rendered with ``to_asgi``.
    """

    def __init__(self) -> None:
        self.status_code: int = 200
        self._headers: dict[str, str] = {}
        self._body: bytes = b""
        self._stream: StreamSource | None = None
        self._finished = asyncio.Event()

    @property
    def finished(self) -> bool:
        return self._finished.is_set()

    @property
    def headers(self) -> dict[str, str]:
        """Copy of the headers set so far (names lowercased)."""
        return dict(self._headers)

    @property
    def body(self) -> bytes:
        return self._body

    def set_header(self, name: str, value: str) -> None:
        if self.finished:
            logger.warning("Cannot set header %r after the response ended", name)
            return
        self._headers[name.lower()] = str(value)

    def get_header(self, name: str) -> str | None:
        return self._headers.get(name.lower())

    def remove_header(self, name: str) -> None:
        self._headers.pop(name.lower(), None)

    def end(self, body: str | bytes | None = None) -> None:
        if self.finished:
            logger.warning("Response already ended; ignoring end()")
            return
        if body is not None:
            self._body = body.encode(ENCODING) if isinstance(body, str) else bytes(body)
        self._finished.set()

    def pipe(self, source: StreamSource) -> None:
        """End the response by streaming ``source`` to the client."""
        if self.finished:
            logger.warning("Response already ended; ignoring pipe()")
            return
        self._stream = source
        self._finished.set()

    async def wait_finished(self) -> None:
        await self._finished.wait()

    def to_asgi(self) -> Response:
        if self._stream is not None:
            return StreamingResponse(self._stream, status_code=self.status_code, headers=self._headers)
        return Response(self._body, status_code=self.status_code, headers=self._headers)


@dataclass(frozen=True)
class _Layer:
    handler: Callable[..., Any]
    handles_errors: bool


class App:
    """A stack of callback handlers behind an ASGI entry point."""

    def __init__(self) -> None:
        self._stack: list[_Layer] = []
        self._tasks: set[asyncio.Task[Any]] = set()

    def use(self, handler: RequestHandler) -> App:
        """Append a ``(request, response, next)`` handler."""
        self._stack.append(_Layer(handler, handles_errors=False))
        return self

    def use_error(self, handler: ErrorHandler) -> App:
        """Append an ``(error, request, response, next)`` handler."""
        self._stack.append(_Layer(handler, handles_errors=True))
        return self

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "lifespan":
            await _lifespan(receive, send)
            return
        if scope["type"] != "http":
            raise RuntimeError(f"Unsupported ASGI scope type: {scope['type']}")

        request = IncomingRequest(Request(scope, receive))
        response = ServerResponse()
        self.handle(request, response)
        await response.wait_finished()
        await response.to_asgi()(scope, receive, send)

    def handle(self, request: Any, response: ServerResponse) -> None:
        """Run ``request`` through the stack, starting at the first layer."""

        def dispatch(index: int, error: Any) -> None:
            while index < len(self._stack):
                layer = self._stack[index]
                index += 1
                if layer.handles_errors == bool(error):
                    next_fn = _one_shot(partial(dispatch, index))
                    self._invoke(layer, error, request, response, next_fn)
                    return
            self._finalize(request, response, error)

        dispatch(0, None)

    def _invoke(
        self,
        layer: _Layer,
        error: Any,
        request: Any,
        response: ServerResponse,
        next_fn: NextFunction,
    ) -> None:
        try:
            if layer.handles_errors:
                outcome = layer.handler(error, request, response, next_fn)
            else:
                outcome = layer.handler(request, response, next_fn)
        except Exception as e:
            next_fn(e)
            return

        if inspect.isawaitable(outcome):
            task = asyncio.ensure_future(outcome)
            self._tasks.add(task)
            task.add_done_callback(partial(self._on_task_done, next_fn))

    def _on_task_done(self, next_fn: NextFunction, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            next_fn(error)

    def _finalize(self, request: Any, response: ServerResponse, error: Any) -> None:
        """Answer whatever the stack left unanswered."""
        if error:
            status_code = _error_status(error)
            logger.error(
                "Unhandled error for %s %s: %r",
                request.method,
                request.url,
                error,
                exc_info=error if isinstance(error, BaseException) else None,
            )
            if response.finished:
                return
            response.status_code = status_code
            response.set_header("Content-Type", f"text/plain; charset={ENCODING}")
            response.end(_status_phrase(status_code))
            return

        if response.finished:
            return
        response.status_code = HTTPStatus.NOT_FOUND
        response.set_header("Content-Type", f"text/plain; charset={ENCODING}")
        response.end(f"Cannot {request.method} {request.path}")


def _one_shot(dispatch: Callable[[Any], None]) -> NextFunction:
    called = False

    def next_fn(error: Any = None) -> None:
        nonlocal called
        if called:
            logger.warning("next() called more than once; ignoring")
            return
        called = True
        dispatch(error)

    return next_fn


def _error_status(error: Any) -> int:
    status_code = getattr(error, "status_code", None)
    if isinstance(status_code, int) and 400 <= status_code < 600:
        return status_code
    return HTTPStatus.INTERNAL_SERVER_ERROR


def _status_phrase(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return str(status_code)


async def _lifespan(receive: Receive, send: Send) -> None:
    while True:
        message = await receive()
        if message["type"] == "lifespan.startup":
            await send({"type": "lifespan.startup.complete"})
        elif message["type"] == "lifespan.shutdown":
            await send({"type": "lifespan.shutdown.complete"})
            return
