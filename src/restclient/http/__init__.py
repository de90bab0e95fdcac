# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""HTTP client exports."""

from .body import CONTENT_TYPES, encode_body
from .client import Callback, Client, create_client
from .handle import RequestHandle
from .headers import has_header, header_value, merge_headers, set_header
from .models import (
    BodyType,
    ClientConfig,
    Headers,
    Params,
    PreparedRequest,
    Reply,
    RequestOptions,
    ResponseFormat,
)
from .url import append_query, encode_pairs, join_path

__all__ = [
    "CONTENT_TYPES",
    "BodyType",
    "Callback",
    "Client",
    "ClientConfig",
    "Headers",
    "Params",
    "PreparedRequest",
    "Reply",
    "RequestHandle",
    "RequestOptions",
    "ResponseFormat",
    "append_query",
    "create_client",
    "encode_body",
    "encode_pairs",
    "has_header",
    "header_value",
    "join_path",
    "merge_headers",
    "set_header",
]
