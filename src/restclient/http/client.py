# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""REST client with per-verb helpers over httpx."""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, Union

import httpx

from ..config import HttpSettings, load_http_settings
from ..errors import categorize_exception
from .body import content_type_for, encode_body
from .handle import RequestHandle
from .headers import has_header, merge_headers, set_header
from .models import BodyType, ClientConfig, PreparedRequest, Reply, RequestOptions, ResponseFormat
from .url import append_query, join_path

logger = logging.getLogger(__name__)

Callback = Callable[[BaseException | None, httpx.Response | None, Any], Union[Awaitable[None], None]]
OptionsArg = Union[RequestOptions, Mapping[str, Any], Callback, None]


class Client:
    """
    Holds connection defaults and issues requests through one dispatch routine.

    Every verb method returns a ``RequestHandle`` immediately and must be called
    with an asyncio event loop running. The outcome is reported once to
    ``callback(error, response, body)``: ``body`` is the decoded text, the parsed
    JSON value when the response format is ``json``, or ``None`` when the caller
    streams the response. Failures arrive as ``callback(error, None, None)``.
    """

    def __init__(
        self,
        config: ClientConfig | Mapping[str, Any] | None = None,
        *,
        settings: HttpSettings | None = None,
        http_client: httpx.AsyncClient | None = None,
        **options: Any,
    ):
        if isinstance(config, ClientConfig):
            if options:
                raise TypeError("Pass either a ClientConfig or keyword options, not both")
            self._config = config
        else:
            data = dict(config or {})
            data.update(options)
            self._config = ClientConfig.from_mapping(data)

        self.settings = settings or load_http_settings()
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(
            follow_redirects=self.settings.allow_redirects,
            timeout=self.settings.timeout,
            verify=self.settings.verify_ssl,
        )

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def host(self) -> str:
        return self._config.host

    @property
    def port(self) -> int:
        return self._config.port or (443 if self._config.secure else 80)

    @property
    def secure(self) -> bool:
        return self._config.secure

    @property
    def base_path(self) -> str:
        return self._config.base_path

    @property
    def headers(self) -> dict[str, str]:
        return dict(self._config.headers)

    @property
    def params(self) -> dict[str, Any]:
        return dict(self._config.params)

    @property
    def body_type(self) -> BodyType | None:
        return self._config.body_type

    @property
    def response_format(self) -> ResponseFormat | None:
        return self._config.response_format

    @property
    def origin(self) -> str:
        host = self._config.host
        if ":" in host and not host.startswith("["):
            host = f"[{host}]"
        return f"{self._config.scheme}://{host}:{self.port}"

    def get(self, path: str, options: OptionsArg = None, callback: Callback | None = None) -> RequestHandle:
        return self._request("GET", path, options, callback)

    def post(self, path: str, options: OptionsArg = None, callback: Callback | None = None) -> RequestHandle:
        return self._request("POST", path, options, callback)

    def put(self, path: str, options: OptionsArg = None, callback: Callback | None = None) -> RequestHandle:
        return self._request("PUT", path, options, callback)

    def delete(self, path: str, options: OptionsArg = None, callback: Callback | None = None) -> RequestHandle:
        return self._request("DELETE", path, options, callback)

    def patch(self, path: str, options: OptionsArg = None, callback: Callback | None = None) -> RequestHandle:
        return self._request("PATCH", path, options, callback)

    def prepare(
        self,
        method: str,
        path: str,
        options: RequestOptions | Mapping[str, Any] | None = None,
    ) -> PreparedRequest:
        """Merge call options over the client defaults and encode path, query and body."""
        opts = options if isinstance(options, RequestOptions) else RequestOptions.from_mapping(options)
        method = method.upper()
        config = self._config

        headers = merge_headers(config.headers, opts.headers)
        params = {**config.params, **opts.params}
        request_path = append_query(join_path(config.base_path, path), params)

        payload, body_type = encode_body(opts.body, opts.body_type or config.body_type)
        if payload is not None:
            # An open body may grow past its first chunk; a caller-declared length wins then.
            if opts.end or not has_header(opts.headers, "Content-Length"):
                set_header(headers, "Content-Length", len(payload))
            content_type = content_type_for(body_type)
            if content_type:
                set_header(headers, "Content-Type", content_type)
        elif method != "GET":
            set_header(headers, "Content-Length", 0)

        if not has_header(headers, "User-Agent"):
            headers["User-Agent"] = self.settings.user_agent

        return PreparedRequest(
            method=method,
            url=f"{self.origin}{request_path}",
            path=request_path,
            headers=headers,
            body=payload,
            body_type=body_type,
            encoding=opts.encoding,
            response_format=opts.response_format or config.response_format or ResponseFormat.RAW,
            stream=opts.stream,
            end=opts.end,
        )

    def _request(
        self,
        method: str,
        path: str,
        options: OptionsArg,
        callback: Callback | None,
    ) -> RequestHandle:
        if callable(options):
            callback = options
            options = None

        loop = asyncio.get_running_loop()
        handle = RequestHandle(self.prepare(method, path, options))
        if handle.request.body:
            handle.write(handle.request.body)
        if handle.request.end:
            handle.end()
        handle.attach(loop.create_task(self._dispatch(handle, callback)))
        return handle

    async def _dispatch(self, handle: RequestHandle, callback: Callback | None) -> Reply:
        prepared = handle.request
        logger.debug("%s %s", prepared.method, prepared.url)

        try:
            request = self._http.build_request(
                prepared.method,
                prepared.url,
                headers=prepared.headers,
                content=handle.content(),
            )
        except Exception as exc:  # noqa: BLE001
            # Header values that cannot be encoded and other malformed parts.
            await self._fail(handle, callback, exc)
            raise

        try:
            response = await self._http.send(request, stream=True)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            await self._fail(handle, callback, exc)
            raise

        if prepared.encoding:
            response.encoding = prepared.encoding

        if prepared.streams_response:
            await _notify(callback, None, response, None)
            return Reply(response, None)

        try:
            text = "".join([chunk async for chunk in response.aiter_text()])
        except (httpx.HTTPError, LookupError) as exc:
            await self._fail(handle, callback, exc)
            raise
        finally:
            await response.aclose()

        body: Any = text
        if prepared.response_format is ResponseFormat.JSON:
            try:
                body = json.loads(text)
            except json.JSONDecodeError as exc:
                await self._fail(handle, callback, exc)
                raise

        await _notify(callback, None, response, body)
        return Reply(response, body)

    async def _fail(self, handle: RequestHandle, callback: Callback | None, exc: BaseException) -> None:
        prepared = handle.request
        logger.debug(
            "%s %s failed (%s): %s",
            prepared.method,
            prepared.url,
            categorize_exception(exc).value,
            exc,
        )
        handle.mark_delivered(exc)
        await _notify(callback, exc, None, None)

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self) -> Client:
        return self

    async def __aexit__(self, _exc_type, _exc, _tb) -> None:  # noqa: ANN001
        await self.aclose()


async def _notify(
    callback: Callback | None,
    error: BaseException | None,
    response: httpx.Response | None,
    body: Any,
) -> None:
    if callback is None:
        return
    result = callback(error, response, body)
    if inspect.isawaitable(result):
        await result


def create_client(
    config: ClientConfig | Mapping[str, Any] | None = None,
    *,
    settings: HttpSettings | None = None,
    http_client: httpx.AsyncClient | None = None,
    **options: Any,
) -> Client:
    """Alternative constructor mirroring ``Client(...)``."""
    return Client(config, settings=settings, http_client=http_client, **options)
