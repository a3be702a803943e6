"""Applies recorded actions to a live response."""

from __future__ import annotations

import logging

from .actions import (
    Action,
    ActionLog,
    ClearCookie,
    EndResponse,
    PipeStream,
    SetBody,
    SetCookie,
    SetHeader,
    SetStatus,
)
from .types import LiveResponse

logger = logging.getLogger(__name__)


def apply_action(response: LiveResponse, action: Action) -> None:
    """Apply one action to ``response``.

    Cookie actions are recorded by connections but not implemented here:
    they log a warning and leave the response alone. Write failures belong
    to the transport and propagate unchanged.
    """
    match action:
        case SetHeader(name=name, value=value):
            response.set_header(name, value)
        case SetStatus(status=status):
            response.status_code = status
        case SetBody(body=body):
            response.end(body)
        case EndResponse():
            response.end()
        case PipeStream(stream=stream):
            response.pipe(stream)
        case SetCookie():
            logger.warning("setCookie is not implemented")
        case ClearCookie():
            logger.warning("clearCookie is not implemented")
        case _:
            raise TypeError(f"Unknown action: {action!r}")


def replay(response: LiveResponse, log: ActionLog) -> None:
    """Apply every action in ``log`` in the order it was recorded."""
    for action in log.to_reversed_list():
        apply_action(response, action)
