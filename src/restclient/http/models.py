# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Client configuration and per-request option models."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, NamedTuple

import httpx

DEFAULT_ENCODING = "utf-8"

Headers = dict[str, str]
ParamValue = str | int | float | bool | None | list[Any] | tuple[Any, ...]
Params = dict[str, ParamValue]
Body = str | bytes | Mapping[str, Any] | list[Any] | tuple[Any, ...] | None


class BodyType(str, Enum):
    JSON = "json"
    FORM = "form"


class ResponseFormat(str, Enum):
    RAW = "raw"
    JSON = "json"


def _first_key(data: Mapping[str, Any], *keys: str) -> tuple[bool, Any]:
    for key in keys:
        if key in data:
            return True, data[key]
    return False, None


def _coerce_str_mapping(value: Any) -> dict[str, Any]:
    if not value:
        return {}
    if isinstance(value, Mapping):
        return {str(k): v for k, v in value.items() if k is not None}
    try:
        return {str(k): v for k, v in dict(value).items()}
    except (TypeError, ValueError):
        return {}


def _coerce_headers(value: Any) -> Headers:
    return {k: "" if v is None else str(v) for k, v in _coerce_str_mapping(value).items()}


def _coerce_body_type(value: Any) -> BodyType | None:
    if value is None or value == "":
        return None
    try:
        return BodyType(str(getattr(value, "value", value)).lower())
    except ValueError:
        # Unknown types are treated like an unset type, as are unknown option keys.
        return None


def _coerce_response_format(value: Any) -> ResponseFormat | None:
    if value is None or value == "":
        return None
    try:
        return ResponseFormat(str(getattr(value, "value", value)).lower())
    except ValueError:
        return ResponseFormat.RAW


@dataclass(frozen=True)
class ClientConfig:
    """Connection defaults applied to every request a Client issues."""

    host: str
    secure: bool = False
    port: int | None = None
    base_path: str = "/"
    headers: Headers = field(default_factory=dict)
    params: Params = field(default_factory=dict)
    body_type: BodyType | None = None
    response_format: ResponseFormat | None = None

    def __post_init__(self) -> None:
        if not self.host:
            raise ValueError("ClientConfig requires a host")
        object.__setattr__(self, "port", int(self.port) if self.port else (443 if self.secure else 80))
        object.__setattr__(self, "base_path", "/" if self.base_path is None else str(self.base_path))
        object.__setattr__(self, "headers", _coerce_headers(self.headers))
        object.__setattr__(self, "params", dict(self.params or {}))
        object.__setattr__(self, "body_type", _coerce_body_type(self.body_type))
        object.__setattr__(self, "response_format", _coerce_response_format(self.response_format))

    @property
    def scheme(self) -> str:
        return "https" if self.secure else "http"

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ClientConfig:
        """Build a config from an option bag; unrecognized keys are ignored."""
        has_base_path, base_path = _first_key(data, "base_path", "basePath", "path")
        _, body_type = _first_key(data, "body_type", "type")
        _, response_format = _first_key(data, "response_format", "responseFormat", "response")
        return cls(
            host=str(data.get("host") or ""),
            secure=bool(data.get("secure") or False),
            port=data.get("port") or None,
            base_path=base_path if has_base_path else "/",
            headers=_coerce_headers(data.get("headers")),
            params=_coerce_str_mapping(data.get("params")),
            body_type=body_type,
            response_format=response_format,
        )


@dataclass
class RequestOptions:
    """Per-call options; unset values fall back to the client's defaults."""

    headers: Headers = field(default_factory=dict)
    params: Params = field(default_factory=dict)
    body: Body = None
    body_type: BodyType | None = None
    encoding: str | None = DEFAULT_ENCODING
    response_format: ResponseFormat | None = None
    stream: bool = False
    end: bool = True

    def __post_init__(self) -> None:
        self.body_type = _coerce_body_type(self.body_type)
        self.response_format = _coerce_response_format(self.response_format)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> RequestOptions:
        """Normalize an option bag; an absent ``encoding`` keeps the default."""
        data = data or {}
        has_encoding, encoding = _first_key(data, "encoding")
        _, body_type = _first_key(data, "body_type", "type")
        _, response_format = _first_key(data, "response_format", "responseFormat", "response")
        _, stream = _first_key(data, "stream", "streamResponse")
        has_end, end = _first_key(data, "end", "endImmediately")
        return cls(
            headers=_coerce_headers(data.get("headers")),
            params=_coerce_str_mapping(data.get("params")),
            body=data.get("body"),
            body_type=body_type,
            encoding=encoding if has_encoding else DEFAULT_ENCODING,
            response_format=response_format,
            stream=bool(stream),
            end=True if not has_end or end is None else bool(end),
        )


@dataclass
class PreparedRequest:
    """Fully normalized request, ready to hand to the transport."""

    method: str
    url: str
    path: str
    headers: Headers = field(default_factory=dict)
    body: bytes | None = None
    body_type: BodyType | None = None
    encoding: str | None = DEFAULT_ENCODING
    response_format: ResponseFormat = ResponseFormat.RAW
    stream: bool = False
    end: bool = True

    @property
    def streams_response(self) -> bool:
        """True when the caller reads the response body itself."""
        return self.stream or not self.encoding


class Reply(NamedTuple):
    """Result of an awaited request: the transport response and the decoded body."""

    response: httpx.Response
    body: Any
