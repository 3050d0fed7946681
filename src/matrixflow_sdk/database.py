"""
Database endpoints. Databases live inside a catalog and hold tables, volumes and files.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from pydantic import BaseModel, ConfigDict

from matrixflow_sdk._client import MatrixFlowHttpClient, parse_data, to_payload
from matrixflow_sdk._options import CallOptions
from matrixflow_sdk.catalog import CatalogID, RefListResponse

DatabaseID = int


class DatabaseCreateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")
    name: str
    catalog_id: CatalogID
    description: str = ""


class DatabaseUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")
    id: DatabaseID
    description: str = ""


class DatabaseIDResponse(BaseModel):
    model_config = ConfigDict(extra="allow")
    id: DatabaseID = 0


class DatabaseInfoResponse(BaseModel):
    model_config = ConfigDict(extra="allow")
    id: DatabaseID = 0
    name: str = ""
    description: str = ""
    created_at: str = ""
    updated_at: str = ""


class DatabaseSummary(BaseModel):
    model_config = ConfigDict(extra="allow")
    id: DatabaseID = 0
    name: str = ""
    description: str = ""
    table_count: int = 0
    volume_count: int = 0
    file_count: int = 0
    reserved: bool = False
    created_at: str = ""
    created_by: str = ""
    updated_at: str = ""
    updated_by: str = ""


class DatabaseListResponse(BaseModel):
    model_config = ConfigDict(extra="allow")
    list: List[DatabaseSummary] = []


class DatabaseChild(BaseModel):
    """A table or volume directly under a database."""
    model_config = ConfigDict(extra="allow")
    id: str = ""
    name: str = ""
    type: str = ""
    children_count: int = 0
    size: int = 0
    description: str = ""
    reserved: bool = False
    created_at: str = ""
    created_by: str = ""
    updated_at: str = ""
    updated_by: str = ""


class DatabaseChildrenResponse(BaseModel):
    model_config = ConfigDict(extra="allow")
    list: List[DatabaseChild] = []


@dataclass(slots=True)
class Databases:
    """Sync and async access to /catalog/database/*."""

    _http: MatrixFlowHttpClient

    def create(self, req: DatabaseCreateRequest, options: CallOptions | None = None) -> DatabaseIDResponse:
        data = self._http.post_json("/catalog/database/create", to_payload(req), options)
        return parse_data(DatabaseIDResponse, data)

    def delete(self, database_id: DatabaseID, options: CallOptions | None = None) -> DatabaseIDResponse:
        data = self._http.post_json("/catalog/database/delete", {"id": database_id}, options)
        return parse_data(DatabaseIDResponse, data)

    def update(self, req: DatabaseUpdateRequest, options: CallOptions | None = None) -> DatabaseIDResponse:
        data = self._http.post_json("/catalog/database/update", to_payload(req), options)
        return parse_data(DatabaseIDResponse, data)

    def info(self, database_id: DatabaseID, options: CallOptions | None = None) -> DatabaseInfoResponse:
        data = self._http.post_json("/catalog/database/info", {"id": database_id}, options)
        return parse_data(DatabaseInfoResponse, data)

    def list(self, catalog_id: CatalogID, options: CallOptions | None = None) -> DatabaseListResponse:
        """Databases of one catalog."""
        data = self._http.post_json("/catalog/database/list", {"id": catalog_id}, options)
        return parse_data(DatabaseListResponse, data)

    def children(self, database_id: DatabaseID, options: CallOptions | None = None) -> DatabaseChildrenResponse:
        data = self._http.post_json("/catalog/database/children", {"id": database_id}, options)
        return parse_data(DatabaseChildrenResponse, data)

    def ref_list(self, database_id: DatabaseID, options: CallOptions | None = None) -> RefListResponse:
        data = self._http.post_json("/catalog/database/ref_list", {"id": database_id}, options)
        return parse_data(RefListResponse, data)

    async def acreate(
        self, req: DatabaseCreateRequest, options: CallOptions | None = None
    ) -> DatabaseIDResponse:
        data = await self._http.apost_json("/catalog/database/create", to_payload(req), options)
        return parse_data(DatabaseIDResponse, data)

    async def adelete(self, database_id: DatabaseID, options: CallOptions | None = None) -> DatabaseIDResponse:
        data = await self._http.apost_json("/catalog/database/delete", {"id": database_id}, options)
        return parse_data(DatabaseIDResponse, data)

    async def aupdate(
        self, req: DatabaseUpdateRequest, options: CallOptions | None = None
    ) -> DatabaseIDResponse:
        data = await self._http.apost_json("/catalog/database/update", to_payload(req), options)
        return parse_data(DatabaseIDResponse, data)

    async def ainfo(self, database_id: DatabaseID, options: CallOptions | None = None) -> DatabaseInfoResponse:
        data = await self._http.apost_json("/catalog/database/info", {"id": database_id}, options)
        return parse_data(DatabaseInfoResponse, data)

    async def alist(self, catalog_id: CatalogID, options: CallOptions | None = None) -> DatabaseListResponse:
        data = await self._http.apost_json("/catalog/database/list", {"id": catalog_id}, options)
        return parse_data(DatabaseListResponse, data)

    async def achildren(
        self, database_id: DatabaseID, options: CallOptions | None = None
    ) -> DatabaseChildrenResponse:
        data = await self._http.apost_json("/catalog/database/children", {"id": database_id}, options)
        return parse_data(DatabaseChildrenResponse, data)

    async def aref_list(self, database_id: DatabaseID, options: CallOptions | None = None) -> RefListResponse:
        data = await self._http.apost_json("/catalog/database/ref_list", {"id": database_id}, options)
        return parse_data(RefListResponse, data)
