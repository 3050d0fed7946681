from __future__ import annotations
from dataclasses import dataclass
from typing import Any


class MatrixFlowError(RuntimeError):
    """Base error of the library."""


@dataclass(slots=True)
class MatrixFlowAPIError(MatrixFlowError):
    """
    Application-level error reported inside the catalog service envelope.

    The service answers every non-streaming call with:
    {
        "code": "OK" | "<ERROR_CODE>",
        "msg": "...",
        "data": {...},
        "request_id": "..."
    }

    Any code other than "" or "OK" is turned into this error, even when the
    HTTP status itself was 2xx.
    """
    code: str
    message: str
    request_id: str | None = None
    http_status: int | None = None

    def __str__(self) -> str:
        parts = [f"MatrixFlowAPIError(code={self.code!r}, message={self.message!r}"]
        if self.request_id:
            parts.append(f", request_id={self.request_id!r}")
        if self.http_status is not None:
            parts.append(f", status={self.http_status}")
        parts.append(")")
        return "".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Converts the error to a dict for structured logging."""
        return {
            "code": self.code,
            "message": self.message,
            "request_id": self.request_id,
            "http_status": self.http_status,
        }


@dataclass(slots=True)
class MatrixFlowHTTPError(MatrixFlowError):
    """Non-2xx response received before the envelope could be parsed."""
    status_code: int
    body: str | None = None

    def __str__(self) -> str:
        if not self.body:
            return f"http error: status={self.status_code}"
        return f"http error: status={self.status_code} body={self.body}"

    def to_dict(self) -> dict[str, Any]:
        return {"status_code": self.status_code, "body": self.body}

    @property
    def is_client_error(self) -> bool:
        """True for 4xx responses."""
        return 400 <= self.status_code < 500

    @property
    def is_server_error(self) -> bool:
        """True for 5xx responses."""
        return 500 <= self.status_code < 600

    @property
    def is_auth_error(self) -> bool:
        """True for 401 and 403."""
        return self.status_code in (401, 403)


class EnvelopeDecodeError(MatrixFlowError):
    """The response body is not a JSON envelope, or its data does not match the model."""


class UnexpectedContentTypeError(MatrixFlowError):
    """A streaming endpoint answered with something other than an event stream."""

    def __init__(self, content_type: str, body: str = "") -> None:
        self.content_type = content_type
        self.body = body
        super().__init__(f"unexpected content type: {content_type}, body: {body}")


class StreamError(MatrixFlowError):
    """Base class for errors raised while draining a stream."""


class StreamReadError(StreamError):
    """The underlying transport failed while reading the stream."""


class StreamReadTimeoutError(StreamError, TimeoutError):
    """A single read on the stream stayed idle longer than the configured timeout."""

    def __init__(self, timeout_s: float) -> None:
        self.timeout_s = timeout_s
        super().__init__(f"read timeout after {format_duration(timeout_s)}")


def format_duration(seconds: float) -> str:
    """
    Formats a duration the way it is shown in timeout messages.

    Sub-second values are rendered in milliseconds ("100ms"), the rest in
    seconds ("1.5s", "60s").
    """
    if seconds < 1:
        return f"{round(seconds * 1000)}ms"
    return f"{seconds:g}s"
