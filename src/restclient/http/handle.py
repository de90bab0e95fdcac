# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""In-flight request handle returned by the verb methods."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable, Generator
from typing import Any

from .models import PreparedRequest, Reply

logger = logging.getLogger(__name__)


class RequestHandle:
    """
    Live view of one request.

    The request body is fed through ``write()``/``end()``; the dispatch task
    sends whatever was written before ``end()`` as a single payload, or streams
    chunks as they arrive when the body is still open at send time. Awaiting
    the handle yields a ``Reply`` or raises the error the callback received.
    """

    def __init__(self, request: PreparedRequest):
        self.request = request
        self._chunks: asyncio.Queue[bytes | None] = asyncio.Queue()
        self._ended = False
        self._task: asyncio.Task[Reply] | None = None
        self._delivered: BaseException | None = None

    @property
    def ended(self) -> bool:
        return self._ended

    def write(self, data: bytes | str) -> None:
        if self._ended:
            raise RuntimeError("write() called after end()")
        if not data:
            return
        chunk = data.encode("utf-8") if isinstance(data, str) else bytes(data)
        self._chunks.put_nowait(chunk)

    def end(self, data: bytes | str | None = None) -> None:
        if self._ended:
            return
        if data:
            self.write(data)
        self._ended = True
        self._chunks.put_nowait(None)

    def abort(self) -> bool:
        """Cancel the request; the callback is not invoked."""
        if self._task is None or self._task.done():
            return False
        return self._task.cancel()

    def done(self) -> bool:
        return self._task is not None and self._task.done()

    def cancelled(self) -> bool:
        return self._task is not None and self._task.cancelled()

    def add_done_callback(self, fn: Callable[[RequestHandle], Any]) -> None:
        self._require_task().add_done_callback(lambda _task: fn(self))

    def attach(self, task: asyncio.Task[Reply]) -> None:
        self._task = task
        task.add_done_callback(self._on_done)

    def mark_delivered(self, error: BaseException) -> None:
        self._delivered = error

    def content(self) -> bytes | AsyncIterator[bytes] | None:
        """Body for the transport: buffered bytes once ended, else a chunk stream."""
        if not self._ended:
            return self._stream_chunks()
        chunks: list[bytes] = []
        while not self._chunks.empty():
            chunk = self._chunks.get_nowait()
            if chunk is None:
                break
            chunks.append(chunk)
        return b"".join(chunks) or None

    async def _stream_chunks(self) -> AsyncIterator[bytes]:
        while True:
            chunk = await self._chunks.get()
            if chunk is None:
                return
            yield chunk

    def _require_task(self) -> asyncio.Task[Reply]:
        if self._task is None:
            raise RuntimeError("Request has not been dispatched")
        return self._task

    def _on_done(self, task: asyncio.Task[Reply]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        # Errors handed to the callback are not reported a second time.
        if exc is not None and exc is not self._delivered:
            logger.error(
                "%s %s failed outside the request callback",
                self.request.method,
                self.request.url,
                exc_info=exc,
            )

    def __await__(self) -> Generator[Any, None, Reply]:
        return self._require_task().__await__()
