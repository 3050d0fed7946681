"""
Catalog endpoints: the top-level containers of databases, tables and volumes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from matrixflow_sdk._client import MatrixFlowHttpClient, parse_data, to_payload
from matrixflow_sdk._options import CallOptions
from matrixflow_sdk.streaming import AsyncFileStream, FileStream

CatalogID = int


class CatalogCreateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")
    name: str
    description: str = ""


class CatalogUpdateRequest(BaseModel):
    """Omitted name or description are left unchanged by the service."""
    model_config = ConfigDict(extra="forbid")
    id: CatalogID
    name: str = ""
    description: str = ""


class CatalogIDResponse(BaseModel):
    """Returned by create, delete and update."""
    model_config = ConfigDict(extra="allow")
    id: CatalogID = 0


class CatalogInfoResponse(BaseModel):
    model_config = ConfigDict(extra="allow")
    id: CatalogID = 0
    name: str = ""
    description: str = ""


class CatalogSummary(BaseModel):
    model_config = ConfigDict(extra="allow")
    id: CatalogID = 0
    name: str = ""
    description: str = ""
    database_count: int = 0
    table_count: int = 0
    volume_count: int = 0
    file_count: int = 0
    reserved: bool = False
    created_at: str = ""
    created_by: str = ""
    updated_at: str = ""
    updated_by: str = ""


class CatalogListResponse(BaseModel):
    model_config = ConfigDict(extra="allow")
    list: List[CatalogSummary] = []


class TreeNode(BaseModel):
    """A catalog, database, table or volume node of the resource tree."""
    model_config = ConfigDict(extra="allow")
    type: str = ""
    id: str = ""
    name: str = ""
    description: str = ""
    reserved: bool = False
    has_workflow_target_ref: bool = False
    node_list: Optional[list[TreeNode]] = None


class CatalogTreeResponse(BaseModel):
    model_config = ConfigDict(extra="allow")
    tree: list[TreeNode] = []


class VolumeRef(BaseModel):
    model_config = ConfigDict(extra="allow")
    volume_id: str = ""
    volume_name: str = ""
    ref_type: str = ""
    ref_id: str = ""


class RefListResponse(BaseModel):
    model_config = ConfigDict(extra="allow")
    list: List[VolumeRef] = []


@dataclass(slots=True)
class Catalogs:
    """Sync and async access to /catalog/*."""

    _http: MatrixFlowHttpClient

    def create(self, req: CatalogCreateRequest, options: CallOptions | None = None) -> CatalogIDResponse:
        data = self._http.post_json("/catalog/create", to_payload(req), options)
        return parse_data(CatalogIDResponse, data)

    def delete(self, catalog_id: CatalogID, options: CallOptions | None = None) -> CatalogIDResponse:
        """Deletes the catalog together with its databases, tables and volumes."""
        data = self._http.post_json("/catalog/delete", {"id": catalog_id}, options)
        return parse_data(CatalogIDResponse, data)

    def update(self, req: CatalogUpdateRequest, options: CallOptions | None = None) -> CatalogIDResponse:
        data = self._http.post_json("/catalog/update", to_payload(req), options)
        return parse_data(CatalogIDResponse, data)

    def info(self, catalog_id: CatalogID, options: CallOptions | None = None) -> CatalogInfoResponse:
        data = self._http.post_json("/catalog/info", {"id": catalog_id}, options)
        return parse_data(CatalogInfoResponse, data)

    def list(self, options: CallOptions | None = None) -> CatalogListResponse:
        data = self._http.post_json("/catalog/list", {}, options)
        return parse_data(CatalogListResponse, data)

    def tree(self, options: CallOptions | None = None) -> CatalogTreeResponse:
        """Full catalog > database > table/volume hierarchy."""
        data = self._http.post_json("/catalog/tree", {}, options)
        return parse_data(CatalogTreeResponse, data)

    def ref_list(self, catalog_id: CatalogID, options: CallOptions | None = None) -> RefListResponse:
        data = self._http.post_json("/catalog/ref_list", {"id": catalog_id}, options)
        return parse_data(RefListResponse, data)

    def download_table_data(self, table_id: int, options: CallOptions | None = None) -> FileStream:
        """
        Streams the data of a table as CSV.

        Only the connection phase is bounded by the client timeout, so large
        tables are not cut off. The returned stream must be closed.

        Raises:
            MatrixFlowHTTPError: On a non-2xx status.
        """
        resp = self._http.open_stream("POST", "/catalog/table/download_data", {"id": table_id}, options)
        return FileStream(resp)

    async def acreate(
        self, req: CatalogCreateRequest, options: CallOptions | None = None
    ) -> CatalogIDResponse:
        data = await self._http.apost_json("/catalog/create", to_payload(req), options)
        return parse_data(CatalogIDResponse, data)

    async def adelete(self, catalog_id: CatalogID, options: CallOptions | None = None) -> CatalogIDResponse:
        data = await self._http.apost_json("/catalog/delete", {"id": catalog_id}, options)
        return parse_data(CatalogIDResponse, data)

    async def aupdate(
        self, req: CatalogUpdateRequest, options: CallOptions | None = None
    ) -> CatalogIDResponse:
        data = await self._http.apost_json("/catalog/update", to_payload(req), options)
        return parse_data(CatalogIDResponse, data)

    async def ainfo(self, catalog_id: CatalogID, options: CallOptions | None = None) -> CatalogInfoResponse:
        data = await self._http.apost_json("/catalog/info", {"id": catalog_id}, options)
        return parse_data(CatalogInfoResponse, data)

    async def alist(self, options: CallOptions | None = None) -> CatalogListResponse:
        data = await self._http.apost_json("/catalog/list", {}, options)
        return parse_data(CatalogListResponse, data)

    async def atree(self, options: CallOptions | None = None) -> CatalogTreeResponse:
        data = await self._http.apost_json("/catalog/tree", {}, options)
        return parse_data(CatalogTreeResponse, data)

    async def aref_list(self, catalog_id: CatalogID, options: CallOptions | None = None) -> RefListResponse:
        data = await self._http.apost_json("/catalog/ref_list", {"id": catalog_id}, options)
        return parse_data(RefListResponse, data)

    async def adownload_table_data(self, table_id: int, options: CallOptions | None = None) -> AsyncFileStream:
        resp = await self._http.aopen_stream("POST", "/catalog/table/download_data", {"id": table_id}, options)
        return AsyncFileStream(resp)
