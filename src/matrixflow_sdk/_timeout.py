"""
Idle-timeout enforcement for blocking byte sources.

A stalled upstream must not hang a consumer forever, but a long stream that
keeps making progress must not be cut either. Each individual read is therefore
raced against its own timer; there is no overall deadline.

The sync reader runs the source read on a daemon thread and waits on it with a
timeout. Python threads cannot be interrupted, so a read that times out keeps
running in the background: the next call to ``read`` waits on that same read
again instead of starting a second one, which keeps the source single-reader
and loses no bytes. Closing the source (for httpx, closing the response) is
what finally unblocks it.

The async reader does the same with an ``asyncio`` task and cancels the pending
task on close.
"""

from __future__ import annotations

import asyncio
import threading
from typing import Any, AsyncIterable, Awaitable, Callable, Iterable, Protocol

from matrixflow_sdk._errors import StreamReadTimeoutError


class ByteSource(Protocol):
    def read(self, size: int = -1) -> bytes: ...

    def close(self) -> None: ...


class AsyncByteSource(Protocol):
    async def read(self, size: int = -1) -> bytes: ...

    async def aclose(self) -> None: ...


class _ChunkBuffer:
    """Leftover bytes of the last chunk, handed out in ``size`` slices."""

    __slots__ = ("_data",)

    def __init__(self) -> None:
        self._data = b""

    def __bool__(self) -> bool:
        return bool(self._data)

    def put(self, chunk: bytes) -> None:
        self._data = bytes(chunk)

    def take(self, size: int) -> bytes:
        if size < 0 or size >= len(self._data):
            out, self._data = self._data, b""
            return out
        out, self._data = self._data[:size], self._data[size:]
        return out


class ChunkReader:
    """
    Adapts an iterator of byte chunks (e.g. ``httpx.Response.iter_bytes()``)
    to a ``read(size)`` interface. Returns ``b""`` once the iterator is exhausted.
    """

    def __init__(self, chunks: Iterable[bytes], close: Callable[[], Any] | None = None) -> None:
        self._chunks = iter(chunks)
        self._close = close
        self._buffer = _ChunkBuffer()
        self._exhausted = False

    def read(self, size: int = -1) -> bytes:
        while not self._buffer and not self._exhausted:
            try:
                chunk = next(self._chunks)
            except StopIteration:
                self._exhausted = True
                break
            if chunk:
                self._buffer.put(chunk)
        return self._buffer.take(size)

    def close(self) -> None:
        self._exhausted = True
        if self._close is not None:
            self._close()


class AsyncChunkReader:
    """Async counterpart of ChunkReader for ``httpx.Response.aiter_bytes()``."""

    def __init__(
        self,
        chunks: AsyncIterable[bytes],
        close: Callable[[], Awaitable[Any]] | None = None,
    ) -> None:
        self._chunks = aiter(chunks)
        self._close = close
        self._buffer = _ChunkBuffer()
        self._exhausted = False

    async def read(self, size: int = -1) -> bytes:
        while not self._buffer and not self._exhausted:
            try:
                chunk = await anext(self._chunks)
            except StopAsyncIteration:
                self._exhausted = True
                break
            if chunk:
                self._buffer.put(chunk)
        return self._buffer.take(size)

    async def aclose(self) -> None:
        self._exhausted = True
        if self._close is not None:
            await self._close()


class _BackgroundRead:
    """One ``source.read(size)`` call running on a daemon thread."""

    __slots__ = ("_done", "_result", "_error")

    def __init__(self, read: Callable[[int], bytes], size: int) -> None:
        self._done = threading.Event()
        self._result = b""
        self._error: Exception | None = None
        threading.Thread(
            target=self._run,
            args=(read, size),
            name="matrixflow-stream-read",
            daemon=True,
        ).start()

    def _run(self, read: Callable[[int], bytes], size: int) -> None:
        try:
            self._result = read(size)
        except Exception as e:
            self._error = e
        finally:
            self._done.set()

    def wait(self, timeout_s: float) -> bool:
        return self._done.wait(timeout_s)

    def result(self) -> bytes:
        if self._error is not None:
            raise self._error
        return self._result


class TimeoutReader:
    """
    Bounds every ``read`` on ``source`` by ``timeout_s`` seconds of idleness.

    With ``timeout_s <= 0`` reads are delegated directly, without threads.
    On timeout, ``StreamReadTimeoutError`` is raised and no bytes are returned;
    the reader stays usable.
    """

    def __init__(self, source: ByteSource, timeout_s: float = 0.0) -> None:
        self._source = source
        self._timeout_s = timeout_s
        self._pending: _BackgroundRead | None = None
        self._close_lock = threading.Lock()
        self._closed = False

    @property
    def timeout_s(self) -> float:
        return self._timeout_s

    @property
    def closed(self) -> bool:
        return self._closed

    def read(self, size: int = -1) -> bytes:
        if self._timeout_s <= 0:
            return self._source.read(size)

        # A read abandoned by a previous timeout is still the one in flight.
        pending = self._pending or _BackgroundRead(self._source.read, size)
        if not pending.wait(self._timeout_s):
            self._pending = pending
            raise StreamReadTimeoutError(self._timeout_s)

        self._pending = None
        return pending.result()

    def close(self) -> None:
        with self._close_lock:
            if self._closed:
                return
            self._closed = True
        self._source.close()


class AsyncTimeoutReader:
    """Async counterpart of TimeoutReader, racing an ``asyncio`` task against the timer."""

    def __init__(self, source: AsyncByteSource, timeout_s: float = 0.0) -> None:
        self._source = source
        self._timeout_s = timeout_s
        self._pending: asyncio.Future[bytes] | None = None
        self._closed = False

    @property
    def timeout_s(self) -> float:
        return self._timeout_s

    @property
    def closed(self) -> bool:
        return self._closed

    async def read(self, size: int = -1) -> bytes:
        if self._timeout_s <= 0:
            return await self._source.read(size)

        if self._pending is None:
            self._pending = asyncio.ensure_future(self._source.read(size))
        pending = self._pending

        # asyncio.wait never cancels the task on timeout, unlike wait_for.
        done, _ = await asyncio.wait({pending}, timeout=self._timeout_s)
        if not done:
            raise StreamReadTimeoutError(self._timeout_s)

        self._pending = None
        return pending.result()

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
        await self._source.aclose()
