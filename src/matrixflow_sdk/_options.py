"""
Client-wide and per-call configuration.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlsplit, urlunsplit

ENV_BASE_URL = "MATRIXFLOW_BASE_URL"

DEFAULT_HTTP_TIMEOUT_S = 30.0
# Idle time allowed between two chunks of an analysis stream.
DEFAULT_STREAM_READ_TIMEOUT_S = 60.0


def resolve_base_url(base_url: str | None) -> str:
    """
    Validates and normalizes the service base URL.

    The value falls back to MATRIXFLOW_BASE_URL. Query and fragment are dropped
    and trailing slashes trimmed, so paths can be appended directly.

    Raises:
        ValueError: If the URL is missing or lacks a scheme or host.
    """
    raw = (base_url or os.getenv(ENV_BASE_URL) or "").strip()
    if not raw:
        raise ValueError("Base URL missing. Define MATRIXFLOW_BASE_URL in environment or pass base_url value")

    parts = urlsplit(raw)
    if not parts.scheme or not parts.netloc:
        raise ValueError(f"base_url must include scheme and host: {raw!r}")

    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", "")).rstrip("/")


@dataclass(slots=True)
class CallOptions:
    """
    Per-request customization.

    - headers: set on the request, overriding client default headers.
    - query: extra query parameters.
    - request_id: sent as X-Request-ID.
    - stream_buffer_size: initial line buffer for event streams (<= 0: default, grows as needed).
    - stream_read_timeout_s: idle timeout per stream read (<= 0: DEFAULT_STREAM_READ_TIMEOUT_S).
    """
    headers: dict[str, str] = field(default_factory=dict)
    query: dict[str, Any] = field(default_factory=dict)
    request_id: str | None = None
    stream_buffer_size: int = 0
    stream_read_timeout_s: float = DEFAULT_STREAM_READ_TIMEOUT_S

    def __post_init__(self) -> None:
        if self.request_id is not None:
            self.request_id = self.request_id.strip() or None
        if self.stream_buffer_size < 0:
            self.stream_buffer_size = 0
        if self.stream_read_timeout_s <= 0:
            self.stream_read_timeout_s = DEFAULT_STREAM_READ_TIMEOUT_S

    def with_query(self, **params: Any) -> CallOptions:
        """Returns a copy with ``params`` merged into the query."""
        return CallOptions(
            headers=dict(self.headers),
            query={**self.query, **params},
            request_id=self.request_id,
            stream_buffer_size=self.stream_buffer_size,
            stream_read_timeout_s=self.stream_read_timeout_s,
        )
