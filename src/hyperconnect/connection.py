"""Phase-typed connection over a callback pipeline's request/response pair.

One class per response phase. Each class only exposes the mutators that are
legal in its phase, and every mutator returns a new connection of the next
phase's class:

    StatusOpenConnection   --set_status-->            HeadersOpenConnection
    HeadersOpenConnection  --set_header/cookies-->    HeadersOpenConnection
    HeadersOpenConnection  --(engine closes headers)-> BodyOpenConnection
    BodyOpenConnection     --set_body/pipe_stream/end_response--> ResponseEndedConnection

Mutators never touch the live response; they append an action to the log.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, TypeVar

from .actions import (
    Action,
    ActionLog,
    ClearCookie,
    CookieOptions,
    EndResponse,
    PipeStream,
    SetBody,
    SetCookie,
    SetHeader,
    SetStatus,
    StreamSource,
)
from .querystring import QueryValue, query_from_url

C = TypeVar("C", bound="Connection")

_END_RESPONSE = EndResponse()


class Phase(str, Enum):
    """How much of the response has been committed."""

    STATUS_OPEN = "status_open"
    HEADERS_OPEN = "headers_open"
    BODY_OPEN = "body_open"
    RESPONSE_ENDED = "response_ended"


class Connection:
    """Immutable request/response pair plus the recorded action log.

    Read accessors are available in every phase and record nothing.
    """

    __slots__ = ("request", "response", "actions", "ended")

    phase: Phase

    request: Any
    response: Any
    actions: ActionLog
    ended: bool

    def __init__(
        self,
        request: Any,
        response: Any,
        actions: ActionLog | None = None,
        ended: bool = False,
    ):
        object.__setattr__(self, "request", request)
        object.__setattr__(self, "response", response)
        object.__setattr__(self, "actions", actions if actions is not None else ActionLog.empty())
        object.__setattr__(self, "ended", ended)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(phase={self.phase.value}, "
            f"actions={len(self.actions)}, ended={self.ended})"
        )

    def _chain(self, cls: type[C], action: Action, ended: bool = False) -> C:
        return cls(self.request, self.response, self.actions.cons(action), ended)

    def retag(self, cls: type[C]) -> C:
        """Return this connection in another phase without recording an action.

        The computation engine uses this to close headers.
        """
        return cls(self.request, self.response, self.actions, self.ended)

    # -- read accessors -----------------------------------------------------

    def get_request(self) -> Any:
        return self.request

    def get_method(self) -> str:
        return self.request.method

    def get_original_url(self) -> str:
        return self.request.url

    def get_header(self, name: str) -> str | None:
        """Read a header of the incoming request."""
        headers = self.request.headers
        value = headers.get(name)
        if value is None:
            value = headers.get(name.lower())
        return value

    def get_body(self) -> Any:
        """Return the body attached by an upstream body parser, if any."""
        return getattr(self.request, "body", None)

    def get_query(self) -> dict[str, QueryValue]:
        return query_from_url(self.request.url)

    def get_params(self) -> None:
        """There is no router in a callback pipeline, so this is always ``None``.

        Route parameters have to be extracted by a routing layer that runs
        inside the computation, e.g. by matching ``get_original_url()``.
        """
        return None


class StatusOpenConnection(Connection):
    __slots__ = ()

    phase = Phase.STATUS_OPEN

    def set_status(self, status: int) -> HeadersOpenConnection:
        return self._chain(HeadersOpenConnection, SetStatus(int(status)))


class HeadersOpenConnection(Connection):
    __slots__ = ()

    phase = Phase.HEADERS_OPEN

    def set_header(self, name: str, value: str) -> HeadersOpenConnection:
        return self._chain(HeadersOpenConnection, SetHeader(name, value))

    def set_cookie(
        self, name: str, value: str, options: CookieOptions | None = None
    ) -> HeadersOpenConnection:
        """Record a cookie. Not applied to the response; see the interpreter."""
        return self._chain(HeadersOpenConnection, SetCookie(name, value, options or CookieOptions()))

    def clear_cookie(self, name: str, options: CookieOptions | None = None) -> HeadersOpenConnection:
        """Record a cookie removal. Not applied to the response; see the interpreter."""
        return self._chain(HeadersOpenConnection, ClearCookie(name, options or CookieOptions()))


class BodyOpenConnection(Connection):
    __slots__ = ()

    phase = Phase.BODY_OPEN

    def set_body(self, body: str | bytes | None) -> ResponseEndedConnection:
        return self._chain(ResponseEndedConnection, SetBody(body), ended=True)

    def pipe_stream(self, stream: StreamSource) -> ResponseEndedConnection:
        return self._chain(ResponseEndedConnection, PipeStream(stream), ended=True)

    def end_response(self) -> ResponseEndedConnection:
        return self._chain(ResponseEndedConnection, _END_RESPONSE, ended=True)


class ResponseEndedConnection(Connection):
    __slots__ = ()

    phase = Phase.RESPONSE_ENDED
