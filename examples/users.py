"""A small user directory with a hand-rolled route table.

Routes:
    GET /health           -> 200
    GET /users            -> list of users (JSON)
    GET /user/<username>  -> one user (JSON) or 404

Unknown paths answer 404, known paths with other methods answer 405.

Run with:
    hyperconnect serve examples.users:app
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from http import HTTPStatus
from typing import Any, Literal

from pydantic import BaseModel

from hyperconnect import App, Err, Ok, to_request_handler
from hyperconnect.middleware import (
    Middleware,
    close_headers,
    decode_method,
    end,
    from_connection,
    json,
    pydantic_decoder,
    status,
)

HttpMethod = Literal["get", "post", "patch", "put"]


class NotFound(Exception):
    pass


class MethodNotAllowed(Exception):
    pass


class User(BaseModel):
    username: str
    email: str


USERS: dict[str, User] = {
    "ninkasi": User(username="ninkasi", email="ninkasi@bee.rs"),
}


@dataclass(frozen=True)
class Route:
    name: str
    params: dict[str, str]


_ROUTES: list[tuple[str, re.Pattern[str]]] = [
    ("health", re.compile(r"^/health$")),
    ("users", re.compile(r"^/users$")),
    ("user", re.compile(r"^/user/(?P<username>[^/]+)$")),
]


def match_route(url: str) -> Ok[Route] | Err[NotFound]:
    path = url.split("?", 1)[0]
    for name, pattern in _ROUTES:
        matched = pattern.match(path)
        if matched:
            return Ok(Route(name, matched.groupdict()))
    return Err(NotFound(path))


def send_status(code: int) -> Middleware[None]:
    return status(code).chain(lambda _: close_headers()).chain(lambda _: end())


def send_json(code: int, body: Any) -> Middleware[None]:
    return (
        status(code)
        .chain(lambda _: json(body, lambda e: e))
        .or_else(lambda _: send_status(HTTPStatus.INTERNAL_SERVER_ERROR))
    )


def get_users(route: Route) -> Middleware[None]:
    return send_json(HTTPStatus.OK, [user.model_dump() for user in USERS.values()])


def get_user(route: Route) -> Middleware[None]:
    user = USERS.get(route.params["username"])
    if user is None:
        return send_status(HTTPStatus.NOT_FOUND)
    return send_json(HTTPStatus.OK, user.model_dump())


HANDLERS: dict[str, dict[str, Callable[[Route], Middleware[None]]]] = {
    "health": {"get": lambda route: send_status(HTTPStatus.OK)},
    "users": {"get": get_users},
    "user": {"get": get_user},
}

_decode_http_method = pydantic_decoder(HttpMethod)


def handle(route: Route) -> Middleware[None]:
    def dispatch(method: str) -> Middleware[None]:
        handler = HANDLERS[route.name].get(method)
        if handler is None:
            return send_status(HTTPStatus.METHOD_NOT_ALLOWED)
        return handler(route)

    return (
        decode_method(lambda m: _decode_http_method(m.lower()))
        .map_err(lambda _: MethodNotAllowed())
        .chain(dispatch)
    )


def on_error(error: Any) -> Middleware[None]:
    if isinstance(error, MethodNotAllowed):
        return send_status(HTTPStatus.METHOD_NOT_ALLOWED)
    return send_status(HTTPStatus.NOT_FOUND)


router = from_connection(lambda c: match_route(c.get_original_url())).chain(handle).or_else(on_error)

app = App()
app.use(to_request_handler(router))
