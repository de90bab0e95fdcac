# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Request body serialization."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any
from urllib.parse import quote_plus

from .models import Body, BodyType
from .url import encode_pairs

CONTENT_TYPES: dict[BodyType, str] = {
    BodyType.JSON: "application/json",
    BodyType.FORM: "application/x-www-form-urlencoded",
}


def is_structured(body: Any) -> bool:
    """True for values that still need serializing (mappings and lists)."""
    return isinstance(body, (Mapping, list, tuple))


def encode_body(body: Body, body_type: BodyType | None) -> tuple[bytes | None, BodyType | None]:
    """
    Serialize ``body`` and return ``(payload, effective_type)``.

    Structured values become compact JSON for ``json`` and a form-encoded string
    otherwise (the effective type is then ``form``). Form-encoded lists use the
    item index as the key. Strings and bytes pass through unchanged. Empty
    payloads come back as ``None``.
    """
    if body is None:
        return None, body_type

    if is_structured(body):
        if body_type is BodyType.JSON:
            text = json.dumps(body, separators=(",", ":"), ensure_ascii=False)
        else:
            body_type = BodyType.FORM
            if not isinstance(body, Mapping):
                # [1, 2] -> 0=1&1=2
                body = {str(index): item for index, item in enumerate(body)}
            text = encode_pairs(body, quote_via=quote_plus)
        payload = text.encode("utf-8")
    elif isinstance(body, (bytes, bytearray, memoryview)):
        payload = bytes(body)
    else:
        payload = str(body).encode("utf-8")

    return (payload or None), body_type


def content_type_for(body_type: BodyType | None) -> str | None:
    if body_type is None:
        return None
    return CONTENT_TYPES.get(body_type)


__all__ = ["CONTENT_TYPES", "content_type_for", "encode_body", "is_structured"]
