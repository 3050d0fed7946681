import io
import json
import time

import pytest

from matrixflow_sdk import iter_sse_events_from_bytes
from matrixflow_sdk._errors import StreamReadError, StreamReadTimeoutError
from matrixflow_sdk._sse import (
    DEFAULT_BUFFER_SIZE,
    AsyncLineReader,
    FrameAssembler,
    LineReader,
    StreamEvent,
    aread_event,
    read_event,
)
from matrixflow_sdk._timeout import TimeoutReader


class ChunkedSource:
    """Entrega como máximo `step` bytes por read, para partir líneas entre lecturas."""

    def __init__(self, data: bytes, step: int) -> None:
        self._data = data
        self._step = step

    def read(self, size: int = -1) -> bytes:
        n = min(size, self._step) if size >= 0 else self._step
        out, self._data = self._data[:n], self._data[n:]
        return out

    def close(self) -> None:
        pass


def lines_of(data: bytes, buffer_size: int = 0) -> LineReader:
    return LineReader(io.BytesIO(data), buffer_size=buffer_size)


def events_of(data: bytes) -> list[StreamEvent]:
    return list(iter_sse_events_from_bytes(data))


def test_frames_round_trip_then_end_of_stream() -> None:
    body = b"".join(
        b'event: step\ndata: {"type":"step_start","step_name":"s%d"}\n\n' % i for i in range(5)
    )
    lines = lines_of(body)

    for i in range(5):
        event = read_event(lines)
        assert event is not None
        assert event.event == "step"
        assert event.step_name == f"s{i}"

    assert read_event(lines) is None
    assert read_event(lines) is None


def test_multi_line_data_is_joined_with_newline() -> None:
    (event,) = events_of(b"data: first\ndata: second\ndata: third\n\n")

    assert event.raw_data == b"first\nsecond\nthird"
    assert event.fields is None


def test_malformed_json_is_not_an_error() -> None:
    (event,) = events_of(b"event: error\ndata: {not json\n\n")

    assert event.event == "error"
    assert event.type == "error"
    assert event.raw_data == b"{not json"
    assert event.fields is None
    assert event.data == {}


def test_non_object_json_has_no_fields() -> None:
    (event,) = events_of(b"data: [1, 2, 3]\n\n")

    assert event.fields is None
    assert event.json() == [1, 2, 3]


def test_mistyped_field_keeps_the_other_fields() -> None:
    (event,) = events_of(b'data: {"type":"error","source":"rag","data":"boom","step_name":7}\n\n')

    assert event.fields is not None
    assert event.type == "error"
    assert event.source == "rag"
    assert event.data == {}
    assert event.step_name == ""
    assert event.json()["data"] == "boom"


def test_frame_state_survives_a_timeout_with_a_shared_assembler() -> None:
    class StallingSource:
        def __init__(self) -> None:
            self.chunks = [b"event: answer\ndata: part-1\n", None, b"data: part-2\n\n"]

        def read(self, size: int = -1) -> bytes:
            chunk = self.chunks.pop(0) if self.chunks else b""
            if chunk is None:
                raise StreamReadTimeoutError(0.1)
            return chunk

        def close(self) -> None:
            pass

    lines = LineReader(StallingSource())
    frame = FrameAssembler()

    with pytest.raises(StreamReadTimeoutError):
        read_event(lines, frame)
    assert frame.pending

    event = read_event(lines, frame)

    assert event is not None
    assert (event.event, event.raw_data) == ("answer", b"part-1\npart-2")


def test_blank_lines_around_a_frame() -> None:
    lines = lines_of(b"\n\nevent: x\ndata: {}\n\n\n\n")

    event = read_event(lines)

    assert event is not None
    assert event.event == "x"
    assert event.raw_data == b"{}"
    assert read_event(lines) is None


def test_unterminated_trailing_frame_is_delivered() -> None:
    events = events_of(b'data: {"type":"a"}\n\ndata: {"type":"complete"}')

    assert [e.type for e in events] == ["a", "complete"]


def test_frame_ended_by_newline_without_blank_line() -> None:
    lines = lines_of(b"data: {}\n")

    event = read_event(lines)

    assert event is not None and event.raw_data == b"{}"
    assert read_event(lines) is None


def test_empty_stream_ends_immediately() -> None:
    assert read_event(lines_of(b"")) is None


@pytest.mark.parametrize("buffer_size", [0, DEFAULT_BUFFER_SIZE, 16])
def test_two_megabyte_line_is_intact(buffer_size: int) -> None:
    payload = b"x" * (2 * 1024 * 1024)
    body = b"data: " + payload + b"\n\n"

    lines = LineReader(ChunkedSource(body, step=65536), buffer_size=buffer_size)
    event = read_event(lines)

    assert event is not None
    assert event.raw_data == payload
    assert read_event(lines) is None
    assert lines.buffer_size >= len(body) - 1


def test_event_name_overrides_payload_type() -> None:
    (event,) = events_of(b'event: complete\ndata: {"type":"step_complete","source":"nl2sql"}\n\n')

    assert event.type == "complete"
    assert event.fields is not None
    assert event.fields.type == "step_complete"
    assert event.source == "nl2sql"


def test_payload_type_used_without_event_name() -> None:
    payload = {"type": "init", "source": "rag", "data": {"request_id": "req-42"}}
    (event,) = events_of(b"data: " + json.dumps(payload).encode() + b"\n\n")

    assert event.event == ""
    assert event.type == "init"
    assert event.request_id == "req-42"
    assert event.data == {"request_id": "req-42"}


def test_unknown_fields_and_comments_are_ignored() -> None:
    body = b": keep-alive\nid: 7\nretry: 1000\ndata:no-space\ndata: kept\n\n"

    (event,) = events_of(body)

    assert event.raw_data == b"kept"


def test_crlf_line_endings() -> None:
    (event,) = events_of(b'event: init\r\ndata: {"type":"x"}\r\n\r\n')

    assert event.event == "init"
    assert event.raw_data == b'{"type":"x"}'


def test_event_only_frame_carries_name_to_next_data() -> None:
    events = events_of(b'event: ping\n\ndata: {"a":1}\n\n')

    assert len(events) == 1
    assert events[0].event == "ping"


def test_extra_payload_keys_are_kept() -> None:
    (event,) = events_of(b'data: {"step_type":"sql","step_name":"run","rows":3}\n\n')

    assert event.step_type == "sql"
    assert event.step_name == "run"
    assert event.fields is not None
    assert event.fields.model_extra == {"rows": 3}
    assert event.text == '{"step_type":"sql","step_name":"run","rows":3}'


def test_frame_assembler_direct() -> None:
    frame = FrameAssembler()

    assert frame.feed(b"") is None
    assert frame.feed(b"event: x") is None
    assert not frame.pending
    assert frame.feed(b"data: 1") is None
    assert frame.pending

    event = frame.feed(b"")

    assert event == StreamEvent(event="x", raw_data=b"1", fields=None)
    assert frame.flush() is None


def test_line_reader_splits_across_reads() -> None:
    lines = LineReader(ChunkedSource(b"alpha\nbe\r\ngamma", step=3), buffer_size=4)

    assert lines.readline() == b"alpha"
    assert lines.readline() == b"be"
    assert lines.readline() == b"gamma"
    assert lines.readline() is None


def test_line_reader_wraps_transport_errors() -> None:
    class Broken:
        def read(self, size: int = -1) -> bytes:
            raise ConnectionError("boom")

        def close(self) -> None:
            pass

    with pytest.raises(StreamReadError, match="failed reading stream: boom") as exc:
        read_event(LineReader(Broken()))

    assert isinstance(exc.value.__cause__, ConnectionError)


def test_line_reader_lets_timeouts_through() -> None:
    class Silent:
        def read(self, size: int = -1) -> bytes:
            time.sleep(1)
            return b""

        def close(self) -> None:
            pass

    lines = LineReader(TimeoutReader(Silent(), timeout_s=0.05))

    with pytest.raises(StreamReadTimeoutError):
        read_event(lines)


class AsyncBytes:
    def __init__(self, data: bytes, step: int) -> None:
        self._inner = ChunkedSource(data, step)

    async def read(self, size: int = -1) -> bytes:
        return self._inner.read(size)

    async def aclose(self) -> None:
        pass


@pytest.mark.asyncio
async def test_async_read_event() -> None:
    body = b'data: {"type":"init"}\n\nevent: done\ndata: {}\n\n'
    lines = AsyncLineReader(AsyncBytes(body, step=5))

    first = await aread_event(lines)
    second = await aread_event(lines)

    assert first is not None and first.type == "init"
    assert second is not None and second.type == "done"
    assert await aread_event(lines) is None
