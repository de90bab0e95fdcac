# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Configuration helpers for restclient."""

import os
from dataclasses import dataclass

from .version import __version__

DEFAULT_USER_AGENT = f"restclient/{__version__}"


def _optional_float_env(name: str, default: float | None) -> float | None:
    try:
        value = os.getenv(name)
        if value is None or not value.strip():
            return default
        parsed = float(value)
        return parsed if parsed > 0 else None
    except ValueError:
        return default


def _bool_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


@dataclass
class HttpSettings:
    """Transport defaults shared by every Client."""

    timeout: float | None = None
    user_agent: str = DEFAULT_USER_AGENT
    verify_ssl: bool = True
    allow_redirects: bool = False

    @classmethod
    def from_env(cls) -> "HttpSettings":
        """Create settings from environment variables (evaluated at call time)."""
        return cls(
            timeout=_optional_float_env("RESTCLIENT_HTTP_TIMEOUT", cls.timeout),
            user_agent=_str_env("RESTCLIENT_USER_AGENT", cls.user_agent),
            verify_ssl=_bool_env("RESTCLIENT_HTTP_VERIFY_SSL", cls.verify_ssl),
            allow_redirects=_bool_env("RESTCLIENT_HTTP_REDIRECTS", cls.allow_redirects),
        )


def load_http_settings() -> HttpSettings:
    """Load HTTP settings from environment with sensible defaults."""
    return HttpSettings.from_env()
