# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
restclient package entrypoint.

A thin convenience layer over httpx: a ``Client`` keeps connection defaults
(host, port, base path, headers, query params, body encoding) and exposes
``get``/``post``/``put``/``delete``/``patch`` helpers that merge those
defaults into each request and report the outcome to a callback.
"""

from .config import HttpSettings, load_http_settings
from .errors import ErrorCategory, categorize_exception, error_category_to_reason
from .http import (
    BodyType,
    Client,
    ClientConfig,
    PreparedRequest,
    Reply,
    RequestHandle,
    RequestOptions,
    ResponseFormat,
    create_client,
)
from .log import setup_logging
from .version import __version__

__all__ = [
    "BodyType",
    "Client",
    "ClientConfig",
    "ErrorCategory",
    "HttpSettings",
    "PreparedRequest",
    "Reply",
    "RequestHandle",
    "RequestOptions",
    "ResponseFormat",
    "categorize_exception",
    "create_client",
    "error_category_to_reason",
    "load_http_settings",
    "setup_logging",
    "__version__",
]
