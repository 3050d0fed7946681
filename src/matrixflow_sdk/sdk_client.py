"""
Higher-level operations that sequence several ``RawClient`` calls.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from matrixflow_sdk._options import CallOptions
from matrixflow_sdk.catalog import CatalogCreateRequest, CatalogID
from matrixflow_sdk.client import RawClient
from matrixflow_sdk.database import DatabaseCreateRequest, DatabaseID
from matrixflow_sdk.nl2sql import RunSqlRequest, RunSqlResponse

logger = logging.getLogger(__name__)


def _require(value: str, what: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError(f"{what} is required")
    return value


@dataclass(slots=True)
class SDKClient:
    """
    Convenience layer over a RawClient.

    Example:
        with RawClient() as raw:
            sdk = SDKClient(raw)
            catalog_id, created = sdk.create_catalog_if_not_exists("sales")
            db_id, _ = sdk.create_database_if_not_exists(catalog_id, "orders")
    """

    raw: RawClient

    def create_catalog_if_not_exists(
        self, name: str, description: str = "", options: CallOptions | None = None
    ) -> tuple[CatalogID, bool]:
        """
        Returns the id of the catalog called ``name``, creating it when missing.

        Returns:
            ``(catalog_id, created)``; ``created`` is False when the catalog already existed.
        """
        name = _require(name, "catalog name")
        for catalog in self.raw.catalogs.list(options).list:
            if catalog.name == name:
                return catalog.id, False

        resp = self.raw.catalogs.create(CatalogCreateRequest(name=name, description=description), options)
        logger.debug("created catalog %s id=%s", name, resp.id)
        return resp.id, True

    def create_database_if_not_exists(
        self,
        catalog_id: CatalogID,
        name: str,
        description: str = "",
        options: CallOptions | None = None,
    ) -> tuple[DatabaseID, bool]:
        """Same as ``create_catalog_if_not_exists`` for a database of ``catalog_id``."""
        name = _require(name, "database name")
        for database in self.raw.databases.list(catalog_id, options).list:
            if database.name == name:
                return database.id, False

        resp = self.raw.databases.create(
            DatabaseCreateRequest(name=name, catalog_id=catalog_id, description=description), options
        )
        logger.debug("created database %s id=%s in catalog %s", name, resp.id, catalog_id)
        return resp.id, True

    def run_sql(self, statement: str, options: CallOptions | None = None) -> RunSqlResponse:
        """Runs ``statement``. Tables must be referenced as ``database.table``."""
        statement = _require(statement, "statement")
        return self.raw.nl2sql.run_sql(RunSqlRequest(operation="run_sql", statement=statement), options)

    async def acreate_catalog_if_not_exists(
        self, name: str, description: str = "", options: CallOptions | None = None
    ) -> tuple[CatalogID, bool]:
        name = _require(name, "catalog name")
        for catalog in (await self.raw.catalogs.alist(options)).list:
            if catalog.name == name:
                return catalog.id, False

        resp = await self.raw.catalogs.acreate(CatalogCreateRequest(name=name, description=description), options)
        logger.debug("created catalog %s id=%s", name, resp.id)
        return resp.id, True

    async def acreate_database_if_not_exists(
        self,
        catalog_id: CatalogID,
        name: str,
        description: str = "",
        options: CallOptions | None = None,
    ) -> tuple[DatabaseID, bool]:
        name = _require(name, "database name")
        for database in (await self.raw.databases.alist(catalog_id, options)).list:
            if database.name == name:
                return database.id, False

        resp = await self.raw.databases.acreate(
            DatabaseCreateRequest(name=name, catalog_id=catalog_id, description=description), options
        )
        logger.debug("created database %s id=%s in catalog %s", name, resp.id, catalog_id)
        return resp.id, True

    async def arun_sql(self, statement: str, options: CallOptions | None = None) -> RunSqlResponse:
        statement = _require(statement, "statement")
        return await self.raw.nl2sql.arun_sql(RunSqlRequest(operation="run_sql", statement=statement), options)
