"""Exceptions raised by the adapter layer and its collaborators."""

from __future__ import annotations

from http import HTTPStatus
from typing import Any


class HyperConnectError(Exception):
    """Base class for all hyperconnect errors."""


class HTTPError(HyperConnectError):
    """An error that carries the HTTP status the pipeline should answer with.

    The final handler of :class:`hyperconnect.pipeline.App` reads
    ``status_code`` from any error passed to ``next``. Errors without one
    are answered with 500.
    """

    def __init__(self, status_code: int, detail: str | None = None):
        self.status_code = status_code
        self.detail = detail or HTTPStatus(status_code).phrase
        super().__init__(f"{status_code}: {self.detail}")


class PhaseError(HyperConnectError, TypeError):
    """A response step ran against a connection in the wrong phase.

    This is a composition bug (e.g. sending a body before closing headers),
    so it is raised rather than returned as a failure value.
    """

    def __init__(self, step: str, expected: str, actual: str):
        self.step = step
        self.expected = expected
        self.actual = actual
        super().__init__(f"{step} requires a {expected} connection, got {actual}")


class UnsupportedActionError(HyperConnectError):
    """A recorded action cannot be applied to the live response.

    Only raised when the cookie policy is ``raise``. The default policy
    logs a warning instead.
    """

    def __init__(self, action: Any):
        self.action = action
        super().__init__(f"{type(action).__name__} is not implemented")
