"""Request body parsing for the callback pipeline."""

from __future__ import annotations

import json
import logging
from typing import Any

from .config import Settings
from .errors import HTTPError
from .types import NextFunction

logger = logging.getLogger(__name__)

MEDIA_TYPE_JSON = "application/json"


def json_body_parser(max_bytes: int | None = None, settings: Settings | None = None) -> Any:
    """Create a handler that decodes JSON request bodies onto ``request.body``.

    Requests that are not ``application/json`` get an empty ``{}`` body and
    are passed on untouched. Malformed JSON fails with 400, bodies above
    ``max_bytes`` with 413.

    Args:
        max_bytes: Size limit (default: ``settings.max_body_bytes``)
        settings: Settings to read the default limit from (default: from env)
    """
    limit = max_bytes if max_bytes is not None else (settings or Settings.from_env()).max_body_bytes

    async def parse_json(request: Any, response: Any, next: NextFunction) -> None:
        if request.body is not None:
            next()
            return

        content_type = request.headers.get("content-type", "")
        if content_type.split(";", 1)[0].strip().lower() != MEDIA_TYPE_JSON:
            request.body = {}
            next()
            return

        declared = request.headers.get("content-length")
        if declared is not None and declared.isdigit() and int(declared) > limit:
            next(HTTPError(413, f"Request body exceeds {limit} bytes"))
            return

        raw = await request.read()
        if len(raw) > limit:
            next(HTTPError(413, f"Request body exceeds {limit} bytes"))
            return

        if not raw.strip():
            request.body = {}
            next()
            return

        try:
            request.body = json.loads(raw)
        except ValueError as e:
            logger.debug("Rejecting malformed JSON body: %s", e)
            next(HTTPError(400, f"Invalid JSON body: {e}"))
            return

        next()

    return parse_json
