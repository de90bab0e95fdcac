# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Path and query-string helpers."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from urllib.parse import quote, urlencode


def join_path(base_path: str, path: str) -> str:
    """
    Prefix ``path`` with the client's base path.

    The two are concatenated as-is, so the default base path ``/`` followed by
    ``/users`` gives ``//users``. Clients that address absolute paths set
    ``base_path=""``.
    """
    return str(base_path or "") + str(path or "")


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


def encode_pairs(data: Mapping[str, Any] | Any, *, quote_via=quote) -> str:
    """
    URL-encode a mapping (or sequence of key/value pairs).

    Sequence values repeat the key (``tag=a&tag=b``); booleans encode as
    ``true``/``false`` and ``None`` as an empty value.
    """
    items = data.items() if isinstance(data, Mapping) else data
    pairs: list[tuple[str, str]] = []
    for key, value in items:
        if isinstance(value, (list, tuple)):
            pairs.extend((str(key), _stringify(item)) for item in value)
        else:
            pairs.append((str(key), _stringify(value)))
    return urlencode(pairs, quote_via=quote_via)


def append_query(path: str, params: Mapping[str, Any] | None) -> str:
    """Append ``?`` plus the encoded params when there are any."""
    if not params:
        return path
    return f"{path}?{encode_pairs(params)}"


__all__ = ["append_query", "encode_pairs", "join_path"]
