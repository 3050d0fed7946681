from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel, ConfigDict

from matrixflow_sdk._client import MatrixFlowHttpClient, parse_data, to_payload
from matrixflow_sdk._options import CallOptions

RUN_SQL_PATH = "/nl2sql/run_sql"


Nl2SqlOperationType = Literal[
    "show_table",
    "desc_table",
    "run_sql",
    "select_3",
    "show_create_table",
    "show_databases",
]


class DbAndTables(BaseModel):
    model_config = ConfigDict(extra="forbid")
    db_name: str
    table_names: list[str] = []


class RunSqlRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")
    operation: Nl2SqlOperationType
    statement: str = ""
    db_names: list[str] = []
    table_names: list[DbAndTables] = []


class SqlResult(BaseModel):
    """Columns and string-encoded rows of one statement."""
    model_config = ConfigDict(extra="allow")
    columns: list[str] = []
    rows: list[list[str]] = []


class RunSqlResponse(BaseModel):
    model_config = ConfigDict(extra="allow")
    results: list[SqlResult] = []


@dataclass(slots=True)
class Nl2Sql:
    _http: MatrixFlowHttpClient

    def run_sql(self, req: RunSqlRequest, options: CallOptions | None = None) -> RunSqlResponse:
        data = self._http.post_json(RUN_SQL_PATH, to_payload(req), options)
        return parse_data(RunSqlResponse, data)

    async def arun_sql(self, req: RunSqlRequest, options: CallOptions | None = None) -> RunSqlResponse:
        data = await self._http.apost_json(RUN_SQL_PATH, to_payload(req), options)
        return parse_data(RunSqlResponse, data)
