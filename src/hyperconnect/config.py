"""Runtime configuration.

Defaults live on :class:`Settings`; ``Settings.from_env()`` overrides them
from ``HYPERCONNECT_*`` environment variables:

    HYPERCONNECT_COOKIE_POLICY     warn | raise
    HYPERCONNECT_MAX_BODY_BYTES    body parser limit in bytes
    HYPERCONNECT_LOG_LEVEL         DEBUG, INFO, WARNING, ...
    HYPERCONNECT_HOST              bind host for ``hyperconnect serve``
    HYPERCONNECT_PORT              bind port for ``hyperconnect serve``
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, replace
from enum import Enum

ENV_PREFIX = "HYPERCONNECT_"


class CookiePolicy(str, Enum):
    """What to do with recorded cookie actions at replay time."""

    # Log a warning and skip the action
    WARN = "warn"
    # Fail the request through next(error) before anything is written
    RAISE = "raise"


@dataclass(frozen=True)
class Settings:
    """Adapter and pipeline settings."""

    cookie_policy: CookiePolicy = CookiePolicy.WARN

    # Body parser
    max_body_bytes: int = 1 * 1024 * 1024

    # Logging / serving
    log_level: str = "WARNING"
    host: str = "127.0.0.1"
    port: int = 3000

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Build settings from environment variables.

        Args:
            environ: Mapping to read from (default: ``os.environ``)

        Raises:
            ValueError: If a variable holds an invalid value
        """
        env = os.environ if environ is None else environ
        settings = cls()

        if (policy := env.get(f"{ENV_PREFIX}COOKIE_POLICY")) is not None:
            try:
                settings = replace(settings, cookie_policy=CookiePolicy(policy.strip().lower()))
            except ValueError:
                raise ValueError(
                    f"Invalid {ENV_PREFIX}COOKIE_POLICY: {policy!r} (expected 'warn' or 'raise')"
                ) from None

        if (max_body := env.get(f"{ENV_PREFIX}MAX_BODY_BYTES")) is not None:
            settings = replace(settings, max_body_bytes=_positive_int("MAX_BODY_BYTES", max_body))

        if (level := env.get(f"{ENV_PREFIX}LOG_LEVEL")) is not None:
            level = level.strip().upper()
            if not isinstance(logging.getLevelName(level), int):
                raise ValueError(f"Invalid {ENV_PREFIX}LOG_LEVEL: {level!r}")
            settings = replace(settings, log_level=level)

        if (host := env.get(f"{ENV_PREFIX}HOST")) is not None:
            settings = replace(settings, host=host)

        if (port := env.get(f"{ENV_PREFIX}PORT")) is not None:
            settings = replace(settings, port=_positive_int("PORT", port))

        return settings


def _positive_int(name: str, raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"Invalid {ENV_PREFIX}{name}: {raw!r} (expected an integer)") from None
    if value <= 0:
        raise ValueError(f"Invalid {ENV_PREFIX}{name}: {raw!r} (must be positive)")
    return value
