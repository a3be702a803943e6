"""Bridges between phase-typed middleware and connect-style handlers.

``to_request_handler`` runs a middleware inside a callback pipeline: the
computation only records actions, and they are replayed on the live
response once it has finished.

``from_request_handler`` goes the other way and lifts a callback-style
handler (e.g. a body parser) into one step of a middleware.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable
from typing import Any

from .actions import COOKIE_ACTIONS
from .config import CookiePolicy, Settings
from .connection import Connection, StatusOpenConnection
from .errors import UnsupportedActionError
from .interpreter import replay
from .middleware import Middleware, exec_middleware
from .result import Err, Ok
from .types import NextFunction, RequestHandler

logger = logging.getLogger(__name__)

# Keeps wrapped-handler tasks alive until they finish
_background_tasks: set[asyncio.Task[Any]] = set()


def to_request_handler(
    middleware: Middleware[Any],
    settings: Settings | None = None,
) -> Callable[[Any, Any, NextFunction], Any]:
    """Turn a middleware into an ``async (request, response, next)`` handler.

    On failure the error is passed to ``next(error)`` and the response is
    left untouched. On success the recorded actions are applied in the
    order they were recorded; ``next()`` is then called only if none of
    them ended the response.

    Args:
        middleware: Computation to run, starting at ``StatusOpen``
        settings: Cookie policy source (default: ``Settings.from_env()``)
    """
    cookie_policy = (settings or Settings.from_env()).cookie_policy

    async def handler(request: Any, response: Any, next: NextFunction) -> None:
        result = await exec_middleware(middleware, StatusOpenConnection(request, response))

        if isinstance(result, Err):
            next(result.error)
            return

        connection: Connection = result.value
        if cookie_policy is CookiePolicy.RAISE:
            unsupported = first_cookie_action(connection)
            if unsupported is not None:
                next(UnsupportedActionError(unsupported))
                return

        replay(connection.response, connection.actions)

        if not connection.ended:
            next()

    return handler


def first_cookie_action(connection: Connection) -> Any:
    """Return the first recorded cookie action, or ``None``."""
    for action in connection.actions.to_reversed_list():
        if isinstance(action, COOKIE_ACTIONS):
            return action
    return None


def from_request_handler(
    handler: RequestHandler,
    project: Callable[[Any], Any],
    on_error: Callable[[Any], Any],
) -> Middleware[Any]:
    """Lift a callback-style handler into a middleware step.

    The handler is called with the connection's request and response and a
    one-shot ``done`` callback:

    - ``done(error)`` with a truthy error resolves the step to
      ``Err(on_error(error))``
    - ``done()``, or any falsy argument, resolves it to ``Ok(project(request))`` with the connection
      passed through unchanged

    An exception raised by the handler is treated like ``done(error)``.
    Only the first ``done`` call counts; later calls are logged and ignored.
    """

    async def run(connection: Connection) -> Any:
        loop = asyncio.get_running_loop()
        resolved: asyncio.Future[Any] = loop.create_future()
        request = connection.request

        def done(error: Any = None) -> None:
            if resolved.done():
                logger.warning(
                    "Callback of %s invoked more than once; ignoring",
                    getattr(handler, "__name__", repr(handler)),
                )
                return
            resolved.set_result(error)

        try:
            outcome = handler(request, connection.response, done)
        except Exception as e:
            done(e)
        else:
            if inspect.isawaitable(outcome):
                task = asyncio.ensure_future(outcome)
                _background_tasks.add(task)
                task.add_done_callback(lambda t: _on_handler_done(t, resolved))

        error = await resolved
        if error:
            return Err(on_error(error))
        return Ok((project(request), connection))

    return Middleware(run)


def _on_handler_done(task: asyncio.Task[Any], resolved: asyncio.Future[Any]) -> None:
    _background_tasks.discard(task)
    if task.cancelled():
        return
    error = task.exception()
    if error is None:
        return
    if resolved.done():
        logger.warning("Wrapped handler raised after resolving: %r", error)
        return
    resolved.set_result(error)
