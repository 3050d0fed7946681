"""
Data asking: natural-language questions answered by a long-running analysis.

The analysis is streamed back as Server-Sent Events. Typical flow:

    with client.data_asking.analyze_data_stream(DataAnalysisRequest(question="...")) as stream:
        for event in stream:
            if event.type == "init":
                request_id = event.request_id
            ...

A running analysis can be stopped from elsewhere with ``cancel_analyze``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict

from matrixflow_sdk._client import MatrixFlowHttpClient, parse_data, to_payload
from matrixflow_sdk._options import CallOptions
from matrixflow_sdk.streaming import AsyncDataAnalysisStream, DataAnalysisStream, aopen_stream, open_stream

ANALYZE_PATH = "/byoa/api/v1/data_asking/analyze"
CANCEL_PATH = "/byoa/api/v1/data_asking/cancel"

SelectionType = Literal["all", "none", "specified"]


class DataAskingTableConfig(BaseModel):
    """Tables the NL2SQL steps may query."""
    model_config = ConfigDict(extra="forbid")
    type: SelectionType
    db_name: Optional[str] = None
    table_list: Optional[list[str]] = None


class FileConfig(BaseModel):
    """Files the retrieval (RAG) steps may read."""
    model_config = ConfigDict(extra="forbid")
    type: SelectionType
    target_volume_name: Optional[str] = None
    target_volume_id: Optional[str] = None
    file_id_list: Optional[list[str]] = None


class DataSource(BaseModel):
    model_config = ConfigDict(extra="forbid")
    type: Literal["all", "specified"]
    tables: Optional[DataAskingTableConfig] = None
    files: Optional[FileConfig] = None


class FilterConditions(BaseModel):
    model_config = ConfigDict(extra="forbid")
    type: Literal["all", "non_inter_data"]


class CodeGroup(BaseModel):
    model_config = ConfigDict(extra="forbid")
    code: str
    name: str
    values: list[str] = []


class DataScope(BaseModel):
    """``code_type``: 0 for company codes, 1 for business unit codes."""
    model_config = ConfigDict(extra="forbid")
    type: Literal["all", "specified"]
    code_type: Optional[int] = None
    code_group: Optional[list[CodeGroup]] = None


class DataAnalysisConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    data_category: Optional[Literal["admin", "common"]] = None
    filter_conditions: Optional[FilterConditions] = None
    data_source: Optional[DataSource] = None
    data_scope: Optional[DataScope] = None


class DataAnalysisRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")
    question: str
    source: Optional[str] = None
    session_id: Optional[str] = None
    session_name: Optional[str] = None
    config: Optional[DataAnalysisConfig] = None


class CancelAnalyzeResponse(BaseModel):
    model_config = ConfigDict(extra="allow")
    request_id: str = ""
    status: str = ""
    user_name: str = ""


def _analyze_payload(req: DataAnalysisRequest) -> dict:
    if not req.question.strip():
        raise ValueError("question cannot be empty")
    return to_payload(req)


def _cancel_options(request_id: str, options: CallOptions | None) -> CallOptions:
    if not request_id or not request_id.strip():
        raise ValueError("request_id cannot be empty")
    return (options or CallOptions()).with_query(request_id=request_id)


@dataclass(slots=True)
class DataAsking:
    _http: MatrixFlowHttpClient

    def analyze_data_stream(
        self, req: DataAnalysisRequest, options: CallOptions | None = None
    ) -> DataAnalysisStream:
        """
        Starts an analysis and returns its event stream.

        ``options.stream_read_timeout_s`` bounds the silence between two chunks
        (60s by default); ``options.stream_buffer_size`` sets the initial line
        buffer. The caller must close the stream.

        Raises:
            ValueError: If the question is empty.
            MatrixFlowHTTPError: On a non-2xx status.
            UnexpectedContentTypeError: If the service does not answer with an event stream.
        """
        return open_stream(self._http, ANALYZE_PATH, _analyze_payload(req), options)

    def cancel_analyze(self, request_id: str, options: CallOptions | None = None) -> CancelAnalyzeResponse:
        """
        Cancels a running analysis. Only the user who started it may cancel it.

        Raises:
            ValueError: If ``request_id`` is empty or blank.
        """
        data = self._http.post_json(CANCEL_PATH, None, _cancel_options(request_id, options))
        return parse_data(CancelAnalyzeResponse, data)

    async def aanalyze_data_stream(
        self, req: DataAnalysisRequest, options: CallOptions | None = None
    ) -> AsyncDataAnalysisStream:
        return await aopen_stream(self._http, ANALYZE_PATH, _analyze_payload(req), options)

    async def acancel_analyze(
        self, request_id: str, options: CallOptions | None = None
    ) -> CancelAnalyzeResponse:
        data = await self._http.apost_json(CANCEL_PATH, None, _cancel_options(request_id, options))
        return parse_data(CancelAnalyzeResponse, data)
