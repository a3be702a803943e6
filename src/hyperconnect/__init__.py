"""hyperconnect - phase-typed HTTP middleware for connect-style pipelines.

Middleware built with :mod:`hyperconnect.middleware` records response
effects on an immutable connection; :func:`to_request_handler` replays them
on a live response, and :func:`from_request_handler` lifts callback-style
handlers back into middleware steps.
"""

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
)
from .adapter import from_request_handler, to_request_handler
from .body_parser import json_body_parser
from .config import CookiePolicy, Settings
from .connection import (
    BodyOpenConnection,
    Connection,
    HeadersOpenConnection,
    Phase,
    ResponseEndedConnection,
    StatusOpenConnection,
)
from .errors import HTTPError, HyperConnectError, PhaseError, UnsupportedActionError
from .interpreter import apply_action, replay
from .middleware import Middleware, exec_middleware
from .pipeline import App, IncomingRequest, ServerResponse
from .result import Err, Ok, Result

__all__ = [
    # Actions
    "Action",
    "ActionLog",
    "ClearCookie",
    "CookieOptions",
    "EndResponse",
    "PipeStream",
    "SetBody",
    "SetCookie",
    "SetHeader",
    "SetStatus",
    # Connection
    "Connection",
    "Phase",
    "StatusOpenConnection",
    "HeadersOpenConnection",
    "BodyOpenConnection",
    "ResponseEndedConnection",
    # Interpreter / adapters
    "apply_action",
    "replay",
    "to_request_handler",
    "from_request_handler",
    # Engine
    "Middleware",
    "exec_middleware",
    "Ok",
    "Err",
    "Result",
    # Pipeline
    "App",
    "IncomingRequest",
    "ServerResponse",
    "json_body_parser",
    # Config / errors
    "Settings",
    "CookiePolicy",
    "HyperConnectError",
    "HTTPError",
    "PhaseError",
    "UnsupportedActionError",
]
