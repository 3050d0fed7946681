"""
Table endpoints: schema, previews, loads from files and lifecycle of the tables of a database.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Sequence

from pydantic import BaseModel, ConfigDict, Field

from matrixflow_sdk._client import MatrixFlowHttpClient, parse_data, to_payload
from matrixflow_sdk._errors import EnvelopeDecodeError
from matrixflow_sdk._options import CallOptions
from matrixflow_sdk.database import DatabaseID

TableID = int


class Column(BaseModel):
    name: str
    type: str = ""
    is_pk: bool = False
    default: str = ""
    comment: str = ""


class ColumnStats(BaseModel):
    model_config = ConfigDict(extra="allow")
    name: str = ""
    type: str = ""
    max_value: str = ""
    min_value: str = ""


class TableCreateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")
    database_id: DatabaseID
    name: str
    columns: list[Column] = []
    comment: str = ""


class TableIDResponse(BaseModel):
    model_config = ConfigDict(extra="allow")
    id: TableID = 0


class TableInfoResponse(BaseModel):
    model_config = ConfigDict(extra="allow")
    name: str = ""
    lines: int = 0
    size: int = 0
    columns: list[Column] = []
    stats: list[ColumnStats] = []
    create_sql: str = ""
    created_at: str = ""
    created_by: str = ""
    comment: str = ""


class TableOverview(BaseModel):
    model_config = ConfigDict(extra="allow")
    db_name: str = ""
    table_name: str = ""
    col_names: list[str] = []


class TablePreviewResponse(BaseModel):
    model_config = ConfigDict(extra="allow")
    columns: list[Column] = []
    data: list[list[Any]] = []


class CsvConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    separator: str = ""
    quote: str = ""
    is_escaped: bool = False


class FileOption(BaseModel):
    """Where the rows come from: a data file already uploaded to the service."""
    model_config = ConfigDict(extra="forbid")
    data_file_url: str
    type: str = ""
    start_row: int = 0
    csv_config: CsvConfig = Field(default_factory=CsvConfig)


class ColumnLoadOption(BaseModel):
    model_config = ConfigDict(extra="forbid")
    col_name: str
    data_from: int = 0
    col_number_in_file: int = 0


class TableOption(BaseModel):
    model_config = ConfigDict(extra="forbid")
    conflict_policy: int = 0
    column_load_options: list[ColumnLoadOption] = []


class TableLoadRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")
    id: TableID
    file_option: FileOption
    table_option: TableOption = Field(default_factory=TableOption)


class TableLoadResponse(BaseModel):
    model_config = ConfigDict(extra="allow")
    lines: int = 0


class TableDownloadLinkResponse(BaseModel):
    model_config = ConfigDict(extra="allow")
    url: str = ""


class FullPath(BaseModel):
    """Ids and names from the catalog down to the table."""
    model_config = ConfigDict(extra="allow")
    id_list: list[str] = []
    name_list: list[str] = []


class TableFullPathResponse(BaseModel):
    model_config = ConfigDict(extra="allow")
    table_full_path: list[FullPath] = []


class TableRef(BaseModel):
    model_config = ConfigDict(extra="allow")
    table_id: TableID = 0
    table_name: str = ""
    ref_type: str = ""
    ref_id: str = ""


class TableRefListResponse(BaseModel):
    model_config = ConfigDict(extra="allow")
    list: List[TableRef] = []


def _parse_exists(data: Any) -> bool:
    if data is None:
        return False
    if not isinstance(data, bool):
        raise EnvelopeDecodeError(f"decode data field: expected a boolean, got {type(data).__name__}")
    return data


def _parse_overview(data: Any) -> list[TableOverview]:
    if data is None:
        return []
    if not isinstance(data, list):
        raise EnvelopeDecodeError(f"decode data field: expected a list, got {type(data).__name__}")
    return [parse_data(TableOverview, item) for item in data]


@dataclass(slots=True)
class Tables:
    """Sync and async access to /catalog/table/*."""

    _http: MatrixFlowHttpClient

    def create(self, req: TableCreateRequest, options: CallOptions | None = None) -> TableIDResponse:
        data = self._http.post_json("/catalog/table/create", to_payload(req), options)
        return parse_data(TableIDResponse, data)

    def info(self, table_id: TableID, options: CallOptions | None = None) -> TableInfoResponse:
        """Schema, column statistics and DDL of one table."""
        data = self._http.post_json("/catalog/table/info", {"id": table_id}, options)
        return parse_data(TableInfoResponse, data)

    def overview(self, options: CallOptions | None = None) -> list[TableOverview]:
        data = self._http.post_json("/catalog/table/overview", {}, options)
        return _parse_overview(data)

    def exists(self, database_id: DatabaseID, name: str, options: CallOptions | None = None) -> bool:
        data = self._http.post_json("/catalog/table/exist", {"database_id": database_id, "name": name}, options)
        return _parse_exists(data)

    def preview(self, table_id: TableID, lines: int = 10, options: CallOptions | None = None) -> TablePreviewResponse:
        data = self._http.post_json("/catalog/table/preview", {"id": table_id, "lines": lines}, options)
        return parse_data(TablePreviewResponse, data)

    def load(self, req: TableLoadRequest, options: CallOptions | None = None) -> TableLoadResponse:
        """Imports rows from an uploaded file. Large files can take a while."""
        data = self._http.post_json("/catalog/table/load", to_payload(req), options)
        return parse_data(TableLoadResponse, data)

    def download_link(self, table_id: TableID, options: CallOptions | None = None) -> TableDownloadLinkResponse:
        """Signed URL of the table data. See ``Catalogs.download_table_data`` for a direct stream."""
        data = self._http.post_json("/catalog/table/download", {"id": table_id}, options)
        return parse_data(TableDownloadLinkResponse, data)

    def truncate(self, table_id: TableID, options: CallOptions | None = None) -> None:
        """Removes every row and keeps the schema. Irreversible."""
        self._http.post_json("/catalog/table/truncate", {"id": table_id}, options)

    def delete(self, table_id: TableID, options: CallOptions | None = None) -> None:
        self._http.post_json("/catalog/table/delete", {"id": table_id}, options)

    def full_path(self, table_ids: Sequence[TableID], options: CallOptions | None = None) -> TableFullPathResponse:
        data = self._http.post_json("/catalog/table/full_path", {"table_id_list": list(table_ids)}, options)
        return parse_data(TableFullPathResponse, data)

    def ref_list(self, table_id: TableID, options: CallOptions | None = None) -> TableRefListResponse:
        data = self._http.post_json("/catalog/table/ref_list", {"id": table_id}, options)
        return parse_data(TableRefListResponse, data)

    async def acreate(self, req: TableCreateRequest, options: CallOptions | None = None) -> TableIDResponse:
        data = await self._http.apost_json("/catalog/table/create", to_payload(req), options)
        return parse_data(TableIDResponse, data)

    async def ainfo(self, table_id: TableID, options: CallOptions | None = None) -> TableInfoResponse:
        data = await self._http.apost_json("/catalog/table/info", {"id": table_id}, options)
        return parse_data(TableInfoResponse, data)

    async def aoverview(self, options: CallOptions | None = None) -> list[TableOverview]:
        data = await self._http.apost_json("/catalog/table/overview", {}, options)
        return _parse_overview(data)

    async def aexists(self, database_id: DatabaseID, name: str, options: CallOptions | None = None) -> bool:
        data = await self._http.apost_json(
            "/catalog/table/exist", {"database_id": database_id, "name": name}, options
        )
        return _parse_exists(data)

    async def apreview(
        self, table_id: TableID, lines: int = 10, options: CallOptions | None = None
    ) -> TablePreviewResponse:
        data = await self._http.apost_json("/catalog/table/preview", {"id": table_id, "lines": lines}, options)
        return parse_data(TablePreviewResponse, data)

    async def aload(self, req: TableLoadRequest, options: CallOptions | None = None) -> TableLoadResponse:
        data = await self._http.apost_json("/catalog/table/load", to_payload(req), options)
        return parse_data(TableLoadResponse, data)

    async def adownload_link(
        self, table_id: TableID, options: CallOptions | None = None
    ) -> TableDownloadLinkResponse:
        data = await self._http.apost_json("/catalog/table/download", {"id": table_id}, options)
        return parse_data(TableDownloadLinkResponse, data)

    async def atruncate(self, table_id: TableID, options: CallOptions | None = None) -> None:
        await self._http.apost_json("/catalog/table/truncate", {"id": table_id}, options)

    async def adelete(self, table_id: TableID, options: CallOptions | None = None) -> None:
        await self._http.apost_json("/catalog/table/delete", {"id": table_id}, options)

    async def afull_path(
        self, table_ids: Sequence[TableID], options: CallOptions | None = None
    ) -> TableFullPathResponse:
        data = await self._http.apost_json(
            "/catalog/table/full_path", {"table_id_list": list(table_ids)}, options
        )
        return parse_data(TableFullPathResponse, data)

    async def aref_list(self, table_id: TableID, options: CallOptions | None = None) -> TableRefListResponse:
        data = await self._http.apost_json("/catalog/table/ref_list", {"id": table_id}, options)
        return parse_data(TableRefListResponse, data)
