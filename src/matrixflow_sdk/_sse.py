"""
Server-Sent Events (SSE) decoding for the data analysis stream.

Bytes are turned into lines by a buffered reader with no maximum line length,
and lines into events by a small frame assembler:

    event: <name>        (optional, last one wins)
    data: <payload>      (zero or more, joined with "\\n")
    <blank line>         (terminates the frame)

Payloads are decoded as JSON opportunistically. A payload that is not JSON, or
not the expected shape, still produces an event with its raw bytes.
"""

from __future__ import annotations

import io
import json
from dataclasses import dataclass
from typing import Any, Iterator, Optional

from pydantic import BaseModel, ConfigDict, ValidationError

from matrixflow_sdk._errors import StreamError, StreamReadError
from matrixflow_sdk._timeout import AsyncByteSource, ByteSource

DEFAULT_BUFFER_SIZE = 4096

DATA_PREFIX = b"data: "
EVENT_PREFIX = b"event: "


class AnalysisEventFields(BaseModel):
    """
    Loosely typed view of an analysis event payload.

    The backend emits heterogeneous shapes (init, classification, decomposition,
    step_start/step_complete, RAG chunks, NL2SQL steps, complete, error);
    unknown keys are kept as extra fields.
    """
    model_config = ConfigDict(extra="allow")

    type: Optional[str] = None
    source: Optional[str] = None
    data: Optional[dict[str, Any]] = None
    step_type: Optional[str] = None
    step_name: Optional[str] = None


def decode_event_fields(raw: bytes) -> AnalysisEventFields | None:
    """
    Returns the typed view of ``raw``, or None when it is not a JSON object.

    A known field with an unexpected type (e.g. a string ``data``) is left
    unset; the other fields are still decoded.
    """
    try:
        payload = json.loads(raw)
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None

    try:
        return AnalysisEventFields.model_validate(payload)
    except ValidationError as e:
        bad = {err["loc"][0] for err in e.errors() if err["loc"]}
        return AnalysisEventFields.model_validate({k: v for k, v in payload.items() if k not in bad})


@dataclass(frozen=True, slots=True)
class StreamEvent:
    """
    One reassembled SSE frame.

    ``raw_data`` is authoritative and always populated from the ``data:`` lines;
    ``fields`` is None when the payload could not be decoded.
    """

    event: str
    raw_data: bytes
    fields: AnalysisEventFields | None = None

    @property
    def type(self) -> str:
        """The ``event:`` name when present, otherwise the payload's ``type``."""
        if self.event:
            return self.event
        if self.fields is not None and self.fields.type:
            return self.fields.type
        return ""

    @property
    def source(self) -> str:
        return (self.fields.source if self.fields else None) or ""

    @property
    def step_type(self) -> str:
        return (self.fields.step_type if self.fields else None) or ""

    @property
    def step_name(self) -> str:
        return (self.fields.step_name if self.fields else None) or ""

    @property
    def data(self) -> dict[str, Any]:
        return (self.fields.data if self.fields else None) or {}

    @property
    def request_id(self) -> str | None:
        """Request id echoed by the init event, usable with ``cancel_analyze``."""
        rid = self.data.get("request_id")
        return rid if isinstance(rid, str) and rid else None

    @property
    def text(self) -> str:
        return self.raw_data.decode("utf-8", "replace")

    def json(self) -> Any:
        return json.loads(self.raw_data)


def _strip_cr(line: bytes) -> bytes:
    return line[:-1] if line.endswith(b"\r") else line


class _LineBuffer:
    """
    Shared buffering logic of the sync and async line readers.

    The read size starts at the initial buffer size and doubles every time a
    line does not fit, so a single line is never rejected for its length.
    """

    def __init__(self, buffer_size: int) -> None:
        self.buffer_size = buffer_size if buffer_size > 0 else DEFAULT_BUFFER_SIZE
        self.eof = False
        self._buf = bytearray()
        self._scanned = 0

    def next_line(self) -> bytes | None:
        """A complete line if one is buffered (or the final partial line at EOF)."""
        idx = self._buf.find(b"\n", self._scanned)
        if idx >= 0:
            line = bytes(self._buf[:idx])
            del self._buf[: idx + 1]
            self._scanned = 0
            return _strip_cr(line)

        self._scanned = len(self._buf)
        if self.eof and self._buf:
            line = bytes(self._buf)
            self._buf.clear()
            self._scanned = 0
            return _strip_cr(line)
        return None

    def read_size(self) -> int:
        if len(self._buf) >= self.buffer_size:
            self.buffer_size *= 2
        return self.buffer_size - len(self._buf)

    def feed(self, chunk: bytes) -> None:
        if chunk:
            self._buf += chunk
        else:
            self.eof = True


class LineReader:
    """
    Reads ``\\n``-terminated lines from a byte source.

    ``readline`` returns the line without its terminator (and without a
    trailing ``\\r``), or None at end of stream. Trailing data without a final
    newline is returned as a last line.
    """

    def __init__(self, source: ByteSource, buffer_size: int = 0) -> None:
        self._source = source
        self._lines = _LineBuffer(buffer_size)

    @property
    def buffer_size(self) -> int:
        return self._lines.buffer_size

    def readline(self) -> bytes | None:
        while True:
            line = self._lines.next_line()
            if line is not None or self._lines.eof:
                return line
            try:
                chunk = self._source.read(self._lines.read_size())
            except StreamError:
                raise
            except Exception as e:
                raise StreamReadError(f"failed reading stream: {e}") from e
            self._lines.feed(chunk)


class AsyncLineReader:
    """Async counterpart of LineReader."""

    def __init__(self, source: AsyncByteSource, buffer_size: int = 0) -> None:
        self._source = source
        self._lines = _LineBuffer(buffer_size)

    @property
    def buffer_size(self) -> int:
        return self._lines.buffer_size

    async def readline(self) -> bytes | None:
        while True:
            line = self._lines.next_line()
            if line is not None or self._lines.eof:
                return line
            try:
                chunk = await self._source.read(self._lines.read_size())
            except StreamError:
                raise
            except Exception as e:
                raise StreamReadError(f"failed reading stream: {e}") from e
            self._lines.feed(chunk)


class FrameAssembler:
    """Accumulates field lines of one frame until it is terminated."""

    def __init__(self) -> None:
        self._event = ""
        self._data_lines: list[bytes] = []

    @property
    def pending(self) -> bool:
        return bool(self._data_lines)

    def feed(self, line: bytes) -> StreamEvent | None:
        """Consumes one line; returns an event when the line terminates a frame."""
        if not line:
            # Blank lines with nothing pending (leading or repeated) are skipped.
            return self.flush()

        if line.startswith(DATA_PREFIX):
            self._data_lines.append(line[len(DATA_PREFIX):])
        elif line.startswith(EVENT_PREFIX):
            self._event = line[len(EVENT_PREFIX):].decode("utf-8", "replace")
        # id:, retry:, comments and unknown fields are ignored.
        return None

    def flush(self) -> StreamEvent | None:
        if not self._data_lines:
            return None
        raw = b"\n".join(self._data_lines)
        event = StreamEvent(event=self._event, raw_data=raw, fields=decode_event_fields(raw))
        self._event = ""
        self._data_lines = []
        return event


def read_event(lines: LineReader, frame: FrameAssembler | None = None) -> StreamEvent | None:
    """
    Reads the next event from ``lines``.

    Returns None at end of stream. A final frame without its terminating blank
    line is still returned. Read errors propagate and no partial event is built.

    Lines consumed so far live in ``frame``. Pass the same assembler on every
    call so that a frame interrupted by a read timeout is completed by the next
    call instead of being lost.
    """
    if frame is None:
        frame = FrameAssembler()
    while True:
        line = lines.readline()
        if line is None:
            return frame.flush()
        event = frame.feed(line)
        if event is not None:
            return event


async def aread_event(lines: AsyncLineReader, frame: FrameAssembler | None = None) -> StreamEvent | None:
    if frame is None:
        frame = FrameAssembler()
    while True:
        line = await lines.readline()
        if line is None:
            return frame.flush()
        event = frame.feed(line)
        if event is not None:
            return event


def iter_sse_events_from_bytes(data: bytes, *, buffer_size: int = 0) -> Iterator[StreamEvent]:
    """
    Parses every event of an already captured stream body.

    Args:
        data: The raw ``text/event-stream`` body.
        buffer_size: Initial line buffer size, 0 for the default.

    Yields:
        StreamEvent objects in stream order.
    """
    lines = LineReader(io.BytesIO(data), buffer_size=buffer_size)
    frame = FrameAssembler()
    while True:
        event = read_event(lines, frame)
        if event is None:
            return
        yield event
