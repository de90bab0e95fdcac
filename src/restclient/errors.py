# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Error taxonomy for failures surfaced to request callbacks.

Errors are never wrapped: callbacks receive the original ``httpx`` exception
or ``json.JSONDecodeError``. The categories here only label them for logging
and for callers that want a coarse classification.
"""

import json
import socket
import ssl
from enum import Enum
from typing import Optional

import httpx


class ErrorCategory(str, Enum):
    TIMEOUT = "TIMEOUT"
    SSL_ERROR = "SSL_ERROR"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    DNS_ERROR = "DNS_ERROR"
    PARSE_ERROR = "PARSE_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    NONE = "NONE"


def _root_cause(exc: BaseException) -> BaseException:
    seen: set[int] = set()
    current: BaseException = exc
    while id(current) not in seen:
        seen.add(id(current))
        nested = current.__cause__ or current.__context__
        if nested is None:
            break
        current = nested
    return current


def categorize_exception(exc: BaseException) -> ErrorCategory:
    """
    Map transport and decoding exceptions to ErrorCategory.
    """
    if isinstance(exc, json.JSONDecodeError):
        return ErrorCategory.PARSE_ERROR

    if isinstance(exc, httpx.TimeoutException):
        return ErrorCategory.TIMEOUT

    # httpx chains the socket-level error, which tells DNS and TLS failures apart.
    cause = _root_cause(exc)
    if isinstance(cause, (socket.gaierror, socket.herror)):
        return ErrorCategory.DNS_ERROR
    if isinstance(cause, (ssl.SSLError, ssl.CertificateError)):
        return ErrorCategory.SSL_ERROR

    if isinstance(exc, (httpx.ConnectError, httpx.RemoteProtocolError, httpx.NetworkError, httpx.ProxyError)):
        return ErrorCategory.CONNECTION_ERROR

    if isinstance(exc, (ConnectionError, ConnectionRefusedError, ConnectionResetError)):
        return ErrorCategory.CONNECTION_ERROR

    if isinstance(exc, (httpx.DecodingError, UnicodeDecodeError, LookupError)):
        return ErrorCategory.PARSE_ERROR

    return ErrorCategory.UNKNOWN_ERROR


def error_category_to_reason(category: Optional[ErrorCategory]) -> str:
    """User-facing reason string."""
    mapping = {
        ErrorCategory.TIMEOUT: "Network timeout during request",
        ErrorCategory.SSL_ERROR: "TLS/certificate issue",
        ErrorCategory.CONNECTION_ERROR: "Network connectivity issue",
        ErrorCategory.DNS_ERROR: "DNS resolution failure",
        ErrorCategory.PARSE_ERROR: "Response body could not be decoded",
        ErrorCategory.UNKNOWN_ERROR: "Request failed",
        ErrorCategory.NONE: "",
        None: "",
    }
    return mapping.get(category, "Request failed")
