from __future__ import annotations

from matrixflow_sdk.client import HealthStatus, RawClient
from matrixflow_sdk.data_asking import DataAnalysisConfig, DataAnalysisRequest, DataSource
from matrixflow_sdk.sdk_client import SDKClient
from matrixflow_sdk.streaming import AsyncDataAnalysisStream, AsyncFileStream, DataAnalysisStream, FileStream
from matrixflow_sdk._errors import (
    EnvelopeDecodeError,
    MatrixFlowAPIError,
    MatrixFlowError,
    MatrixFlowHTTPError,
    StreamError,
    StreamReadError,
    StreamReadTimeoutError,
    UnexpectedContentTypeError,
)
from matrixflow_sdk._options import CallOptions
from matrixflow_sdk._sse import StreamEvent, iter_sse_events_from_bytes

__all__ = [
    "AsyncDataAnalysisStream",
    "AsyncFileStream",
    "CallOptions",
    "DataAnalysisConfig",
    "DataAnalysisRequest",
    "DataAnalysisStream",
    "DataSource",
    "EnvelopeDecodeError",
    "FileStream",
    "HealthStatus",
    "MatrixFlowAPIError",
    "MatrixFlowError",
    "MatrixFlowHTTPError",
    "RawClient",
    "SDKClient",
    "StreamError",
    "StreamEvent",
    "StreamReadError",
    "StreamReadTimeoutError",
    "UnexpectedContentTypeError",
    "iter_sse_events_from_bytes",
]

__version__ = "0.1.0"
