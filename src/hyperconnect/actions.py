"""Deferred response effects.

A connection never writes to the live response. It records one of the
actions below instead, and the interpreter applies them once the whole
computation has finished.

Actions are kept in an :class:`ActionLog`, a persistent linked list that is
built by prepending. Storage order is therefore most-recent-first and the
log is reversed once at replay time.
"""

from __future__ import annotations

from collections.abc import AsyncIterable, Iterable, Iterator
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict

# Anything the transport can drain into a response body
StreamSource = Union[AsyncIterable[bytes], AsyncIterable[str], Iterable[bytes], Iterable[str]]


class CookieOptions(BaseModel):
    """Cookie attributes recorded alongside cookie actions."""

    model_config = ConfigDict(frozen=True)

    expires: datetime | None = None
    domain: str | None = None
    http_only: bool | None = None
    max_age: int | None = None
    path: str | None = None
    same_site: Literal["strict", "lax", "none"] | None = None
    secure: bool | None = None
    signed: bool | None = None


@dataclass(frozen=True, slots=True)
class SetBody:
    body: str | bytes | None = None


@dataclass(frozen=True, slots=True)
class EndResponse:
    pass


@dataclass(frozen=True, slots=True)
class SetStatus:
    status: int


@dataclass(frozen=True, slots=True)
class SetHeader:
    name: str
    value: str


@dataclass(frozen=True, slots=True)
class ClearCookie:
    name: str
    options: CookieOptions


@dataclass(frozen=True, slots=True)
class SetCookie:
    name: str
    value: str
    options: CookieOptions


@dataclass(frozen=True, slots=True)
class PipeStream:
    stream: Any


Action = Union[SetBody, EndResponse, SetStatus, SetHeader, ClearCookie, SetCookie, PipeStream]

# Actions that terminate the response
TERMINAL_ACTIONS: tuple[type, ...] = (SetBody, EndResponse, PipeStream)

COOKIE_ACTIONS: tuple[type, ...] = (SetCookie, ClearCookie)


class ActionLog:
    """Immutable cons list of actions.

    ``cons`` is O(1) and shares the existing nodes, so the log of an earlier
    connection is always the tail of the logs derived from it. Iterating
    yields the most recent action first.
    """

    __slots__ = ("_head", "_tail", "_length")

    _EMPTY: ActionLog | None = None

    def __init__(self, head: Action | None = None, tail: ActionLog | None = None):
        self._head = head
        self._tail = tail
        self._length = 0 if tail is None else tail._length + 1

    @classmethod
    def empty(cls) -> ActionLog:
        """Return the shared empty log."""
        if cls._EMPTY is None:
            cls._EMPTY = cls()
        return cls._EMPTY

    @classmethod
    def of(cls, *actions: Action) -> ActionLog:
        """Build a log whose chronological order is ``actions``."""
        log = cls.empty()
        for action in actions:
            log = log.cons(action)
        return log

    def cons(self, action: Action) -> ActionLog:
        """Return a new log with ``action`` as the most recent entry."""
        return ActionLog(action, self)

    @property
    def head(self) -> Action | None:
        """The most recently recorded action, or ``None`` for an empty log."""
        return self._head

    @property
    def tail(self) -> ActionLog | None:
        return self._tail

    def is_empty(self) -> bool:
        return self._tail is None

    def __len__(self) -> int:
        return self._length

    def __iter__(self) -> Iterator[Action]:
        node = self
        while node._tail is not None:
            yield node._head  # type: ignore[misc]
            node = node._tail

    def to_reversed_list(self) -> list[Action]:
        """Return the actions in the order they were recorded."""
        actions: list[Action] = [None] * self._length  # type: ignore[list-item]
        index = self._length - 1
        for action in self:
            actions[index] = action
            index -= 1
        return actions

    def __repr__(self) -> str:
        return f"ActionLog({self.to_reversed_list()!r})"
