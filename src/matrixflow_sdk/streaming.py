"""
Stream objects returned by streaming and download endpoints.

``DataAnalysisStream`` owns the HTTP response of an analysis request and turns
its body into ``StreamEvent`` objects, one ``read_event`` call at a time. Each
read on the body is bounded by an idle timeout; the stream as a whole has no
deadline.

``FileStream`` wraps a raw download response.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, AsyncIterator, Iterator, Mapping

import httpx

from matrixflow_sdk._client import MIME_EVENT_STREAM, MatrixFlowHttpClient
from matrixflow_sdk._errors import StreamError, StreamReadTimeoutError, UnexpectedContentTypeError
from matrixflow_sdk._options import CallOptions
from matrixflow_sdk._sse import (
    AsyncLineReader,
    FrameAssembler,
    LineReader,
    StreamEvent,
    aread_event,
    read_event,
)
from matrixflow_sdk._timeout import (
    AsyncByteSource,
    AsyncChunkReader,
    AsyncTimeoutReader,
    ByteSource,
    ChunkReader,
    TimeoutReader,
)

logger = logging.getLogger(__name__)

STREAM_CONTENT_TYPES = (MIME_EVENT_STREAM, "text/plain")


def _is_stream_content_type(resp: httpx.Response) -> bool:
    ctype = resp.headers.get("content-type", "")
    return any(t in ctype for t in STREAM_CONTENT_TYPES)


def _unexpected_content_type(resp: httpx.Response) -> UnexpectedContentTypeError:
    try:
        body = resp.text
    except Exception:
        body = ""
    return UnexpectedContentTypeError(resp.headers.get("content-type", ""), body)


class DataAnalysisStream:
    """
    Incremental reader of a data analysis event stream.

    Usage:
        with client.data_asking.analyze_data_stream(req) as stream:
            for event in stream:
                print(event.type, event.step_name)

    ``read_event`` returns None once the stream is exhausted. An idle period
    longer than the read timeout raises ``StreamReadTimeoutError``; the stream
    stays open and the next ``read_event`` resumes waiting on the same read,
    completing any frame that was cut by the timeout.
    """

    def __init__(
        self,
        source: ByteSource,
        *,
        headers: Mapping[str, str] | None = None,
        status_code: int = 200,
        buffer_size: int = 0,
        read_timeout_s: float = 0.0,
    ) -> None:
        self.headers = httpx.Headers(headers or {})
        self.status_code = status_code
        self._reader = TimeoutReader(source, read_timeout_s)
        self._lines = LineReader(self._reader, buffer_size=buffer_size)
        self._frame = FrameAssembler()

    @classmethod
    def from_response(
        cls,
        resp: httpx.Response,
        *,
        buffer_size: int = 0,
        read_timeout_s: float = 0.0,
    ) -> DataAnalysisStream:
        """Takes ownership of an open streaming response."""
        return cls(
            ChunkReader(resp.iter_bytes(), close=resp.close),
            headers=resp.headers,
            status_code=resp.status_code,
            buffer_size=buffer_size,
            read_timeout_s=read_timeout_s,
        )

    @property
    def closed(self) -> bool:
        return self._reader.closed

    @property
    def read_timeout_s(self) -> float:
        return self._reader.timeout_s

    def read_event(self) -> StreamEvent | None:
        if self.closed:
            raise StreamError("read on closed stream")
        try:
            return read_event(self._lines, self._frame)
        except StreamReadTimeoutError as e:
            logger.debug("analysis stream idle: %s", e)
            raise

    def close(self) -> None:
        """Closes the underlying response. Safe to call more than once, from any thread."""
        if not self.closed:
            logger.debug("closing analysis stream")
        self._reader.close()

    def __iter__(self) -> Iterator[StreamEvent]:
        while True:
            event = self.read_event()
            if event is None:
                return
            yield event

    def __enter__(self) -> DataAnalysisStream:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()


class AsyncDataAnalysisStream:
    """Async counterpart of DataAnalysisStream."""

    def __init__(
        self,
        source: AsyncByteSource,
        *,
        headers: Mapping[str, str] | None = None,
        status_code: int = 200,
        buffer_size: int = 0,
        read_timeout_s: float = 0.0,
    ) -> None:
        self.headers = httpx.Headers(headers or {})
        self.status_code = status_code
        self._reader = AsyncTimeoutReader(source, read_timeout_s)
        self._lines = AsyncLineReader(self._reader, buffer_size=buffer_size)
        self._frame = FrameAssembler()

    @classmethod
    def from_response(
        cls,
        resp: httpx.Response,
        *,
        buffer_size: int = 0,
        read_timeout_s: float = 0.0,
    ) -> AsyncDataAnalysisStream:
        return cls(
            AsyncChunkReader(resp.aiter_bytes(), close=resp.aclose),
            headers=resp.headers,
            status_code=resp.status_code,
            buffer_size=buffer_size,
            read_timeout_s=read_timeout_s,
        )

    @property
    def closed(self) -> bool:
        return self._reader.closed

    @property
    def read_timeout_s(self) -> float:
        return self._reader.timeout_s

    async def aread_event(self) -> StreamEvent | None:
        if self.closed:
            raise StreamError("read on closed stream")
        try:
            return await aread_event(self._lines, self._frame)
        except StreamReadTimeoutError as e:
            logger.debug("analysis stream idle: %s", e)
            raise

    async def aclose(self) -> None:
        if not self.closed:
            logger.debug("closing analysis stream")
        await self._reader.aclose()

    async def __aiter__(self) -> AsyncIterator[StreamEvent]:
        while True:
            event = await self.aread_event()
            if event is None:
                return
            yield event

    async def __aenter__(self) -> AsyncDataAnalysisStream:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()


def open_stream(
    http: MatrixFlowHttpClient,
    path: str,
    payload: dict[str, Any] | None,
    options: CallOptions | None = None,
) -> DataAnalysisStream:
    """
    POSTs ``payload`` to ``path`` and wraps the event-stream response.

    Raises:
        MatrixFlowHTTPError: On a non-2xx status.
        UnexpectedContentTypeError: If the response is not an event stream.
    """
    opts = options or CallOptions()
    resp = http.open_stream("POST", path, payload, opts, accept=MIME_EVENT_STREAM)
    if not _is_stream_content_type(resp):
        try:
            resp.read()
        finally:
            resp.close()
        raise _unexpected_content_type(resp)

    return DataAnalysisStream.from_response(
        resp,
        buffer_size=opts.stream_buffer_size,
        read_timeout_s=opts.stream_read_timeout_s,
    )


async def aopen_stream(
    http: MatrixFlowHttpClient,
    path: str,
    payload: dict[str, Any] | None,
    options: CallOptions | None = None,
) -> AsyncDataAnalysisStream:
    opts = options or CallOptions()
    resp = await http.aopen_stream("POST", path, payload, opts, accept=MIME_EVENT_STREAM)
    if not _is_stream_content_type(resp):
        try:
            await resp.aread()
        finally:
            await resp.aclose()
        raise _unexpected_content_type(resp)

    return AsyncDataAnalysisStream.from_response(
        resp,
        buffer_size=opts.stream_buffer_size,
        read_timeout_s=opts.stream_read_timeout_s,
    )


class FileStream:
    """Raw body of a download endpoint. Close it, or use it as a context manager."""

    def __init__(self, resp: httpx.Response) -> None:
        self._resp = resp
        self._closed = False

    @property
    def headers(self) -> httpx.Headers:
        return self._resp.headers

    @property
    def status_code(self) -> int:
        return self._resp.status_code

    @property
    def content_type(self) -> str:
        return self._resp.headers.get("content-type", "")

    @property
    def closed(self) -> bool:
        return self._closed

    def iter_bytes(self, chunk_size: int | None = None) -> Iterator[bytes]:
        return self._resp.iter_bytes(chunk_size)

    def read(self) -> bytes:
        """Reads the whole body into memory."""
        return self._resp.read()

    def write_to_file(self, path: str | Path) -> int:
        """
        Streams the body into ``path``, creating parent directories.

        The stream is closed afterwards. Returns the number of bytes written.
        """
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        written = 0
        try:
            with target.open("wb") as f:
                for chunk in self.iter_bytes():
                    f.write(chunk)
                    written += len(chunk)
        finally:
            self.close()
        return written

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._resp.close()

    def __enter__(self) -> FileStream:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()


class AsyncFileStream:
    """Async counterpart of FileStream."""

    def __init__(self, resp: httpx.Response) -> None:
        self._resp = resp
        self._closed = False

    @property
    def headers(self) -> httpx.Headers:
        return self._resp.headers

    @property
    def status_code(self) -> int:
        return self._resp.status_code

    @property
    def content_type(self) -> str:
        return self._resp.headers.get("content-type", "")

    @property
    def closed(self) -> bool:
        return self._closed

    def aiter_bytes(self, chunk_size: int | None = None) -> AsyncIterator[bytes]:
        return self._resp.aiter_bytes(chunk_size)

    async def aread(self) -> bytes:
        return await self._resp.aread()

    async def awrite_to_file(self, path: str | Path) -> int:
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        written = 0
        try:
            with target.open("wb") as f:
                async for chunk in self.aiter_bytes():
                    f.write(chunk)
                    written += len(chunk)
        finally:
            await self.aclose()
        return written

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._resp.aclose()

    async def __aenter__(self) -> AsyncFileStream:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()
