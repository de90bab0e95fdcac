# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Header merging utilities.

HTTP header field names are case-insensitive (RFC 9110), but callers hand us plain dicts.
Merges keep the caller's spelling of a name while making sure a later value replaces an
earlier one regardless of casing, so a request never carries two ``Content-Type`` keys.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


def _coerce_headers_mapping(headers: Any) -> Mapping[object, object] | None:
    """
    Best-effort coercion of "dict-like" header containers into a Mapping.

    Accepts plain dicts, httpx.Headers, and iterables of pairs.
    """
    if not headers:
        return None
    if isinstance(headers, Mapping):
        return headers

    items = getattr(headers, "items", None)
    if callable(items):
        try:
            return dict(items())
        except (TypeError, ValueError):
            pass

    try:
        return dict(headers)
    except (TypeError, ValueError):
        return None


def header_value(headers: Mapping[object, object] | None, name: str, default: str = "") -> str:
    """Return a header value using case-insensitive key matching."""
    coerced = _coerce_headers_mapping(headers)
    if not coerced or not name:
        return default

    lower = str(name).lower()
    for key, value in coerced.items():
        if key is None:
            continue
        if str(key).lower() == lower:
            return default if value is None else str(value).strip()
    return default


def has_header(headers: Mapping[object, object] | None, name: str) -> bool:
    coerced = _coerce_headers_mapping(headers)
    if not coerced:
        return False
    lower = str(name).lower()
    return any(key is not None and str(key).lower() == lower for key in coerced)


def set_header(headers: dict[str, str], name: str, value: object) -> None:
    """Set ``name`` in place, dropping any differently-cased duplicate first."""
    lower = name.lower()
    for key in [k for k in headers if k.lower() == lower and k != name]:
        del headers[key]
    headers[name] = str(value)


def merge_headers(*layers: Mapping[object, object] | None) -> dict[str, str]:
    """Return a fresh dict with later layers overriding earlier ones."""
    merged: dict[str, str] = {}
    for layer in layers:
        coerced = _coerce_headers_mapping(layer)
        if not coerced:
            continue
        for key, value in coerced.items():
            if key is None:
                continue
            name = str(key).strip()
            if not name:
                continue
            set_header(merged, name, "" if value is None else value)
    return merged


__all__ = ["has_header", "header_value", "merge_headers", "set_header"]
