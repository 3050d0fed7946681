import json

import httpx
import pytest

from matrixflow_sdk._errors import EnvelopeDecodeError, MatrixFlowAPIError, MatrixFlowHTTPError
from matrixflow_sdk.catalog import CatalogCreateRequest, CatalogUpdateRequest
from matrixflow_sdk.database import DatabaseCreateRequest, DatabaseUpdateRequest
from matrixflow_sdk.nl2sql import DbAndTables, RunSqlRequest
from mock_service import Recorder, envelope


def test_catalog_create_update_delete(make_raw_client):
    rec = Recorder({"/catalog/create": {"id": 11}, "/catalog/update": {"id": 11}, "/catalog/delete": {"id": 11}})
    client = make_raw_client(rec)

    created = client.catalogs.create(CatalogCreateRequest(name="sales", description="Ventas"))
    assert created.id == 11
    assert rec.last_body == {"name": "sales", "description": "Ventas"}

    updated = client.catalogs.update(CatalogUpdateRequest(id=11, name="sales-2"))
    assert updated.id == 11
    assert rec.last_body == {"id": 11, "name": "sales-2", "description": ""}

    deleted = client.catalogs.delete(11)
    assert deleted.id == 11
    assert rec.last_body == {"id": 11}
    assert [r.url.path for r in rec.requests] == ["/catalog/create", "/catalog/update", "/catalog/delete"]


def test_catalog_info_list_tree(make_raw_client):
    rec = Recorder(
        {
            "/catalog/info": {"id": 3, "name": "c3", "description": "d"},
            "/catalog/list": {"list": [{"id": 3, "name": "c3", "database_count": 2, "table_count": 9}]},
            "/catalog/tree": {
                "tree": [
                    {
                        "type": "catalog",
                        "id": "3",
                        "name": "c3",
                        "node_list": [{"type": "database", "id": "30", "name": "db"}],
                    }
                ]
            },
        }
    )
    client = make_raw_client(rec)

    info = client.catalogs.info(3)
    assert (info.id, info.name, info.description) == (3, "c3", "d")

    listed = client.catalogs.list()
    assert listed.list[0].database_count == 2
    assert listed.list[0].reserved is False
    assert rec.last_body == {}

    tree = client.catalogs.tree()
    assert tree.tree[0].node_list is not None
    assert tree.tree[0].node_list[0].type == "database"


def test_catalog_ref_list(make_raw_client):
    rec = Recorder({"/catalog/ref_list": {"list": [{"volume_id": "v1", "volume_name": "vol", "ref_type": "workflow", "ref_id": "w1"}]}})
    client = make_raw_client(rec)

    refs = client.catalogs.ref_list(3)

    assert refs.list[0].volume_name == "vol"
    assert rec.last_body == {"id": 3}


def test_empty_data_gives_empty_list(make_raw_client):
    client = make_raw_client(Recorder({}))

    assert client.catalogs.list().list == []


def test_service_error_code_raises(make_raw_client):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=envelope(code="ErrCatalogExists", msg="already exists", request_id="r-5"))

    client = make_raw_client(handler)

    with pytest.raises(MatrixFlowAPIError) as exc:
        client.catalogs.create(CatalogCreateRequest(name="dup"))

    assert exc.value.code == "ErrCatalogExists"
    assert exc.value.request_id == "r-5"


def test_mismatched_data_raises_decode_error(make_raw_client):
    client = make_raw_client(Recorder({"/catalog/info": {"id": "not-a-number"}}))

    with pytest.raises(EnvelopeDecodeError):
        client.catalogs.info(1)


def test_download_table_data_writes_file(make_raw_client, tmp_path):
    csv = b"id,name\n1,a\n2,b\n"
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["request"] = request
        return httpx.Response(200, headers={"content-type": "text/csv"}, content=csv)

    client = make_raw_client(handler)
    stream = client.catalogs.download_table_data(42)

    written = stream.write_to_file(tmp_path / "exports" / "t42.csv")

    assert seen["request"].url.path == "/catalog/table/download_data"
    assert json.loads(seen["request"].content) == {"id": 42}
    assert written == len(csv)
    assert (tmp_path / "exports" / "t42.csv").read_bytes() == csv
    assert stream.closed


def test_download_table_data_http_error(make_raw_client):
    client = make_raw_client(lambda request: httpx.Response(404, text="table not found"))

    with pytest.raises(MatrixFlowHTTPError) as exc:
        client.catalogs.download_table_data(1)

    assert exc.value.body == "table not found"


def test_database_operations(make_raw_client):
    rec = Recorder(
        {
            "/catalog/database/create": {"id": 5},
            "/catalog/database/update": {"id": 5},
            "/catalog/database/info": {"id": 5, "name": "db", "created_at": "2025-01-01"},
            "/catalog/database/list": {"list": [{"id": 5, "name": "db", "table_count": 4}]},
            "/catalog/database/children": {"list": [{"id": "t1", "name": "orders", "type": "table", "size": 2048}]},
            "/catalog/database/ref_list": {"list": []},
            "/catalog/database/delete": {"id": 5},
        }
    )
    client = make_raw_client(rec)

    assert client.databases.create(DatabaseCreateRequest(name="db", catalog_id=3)).id == 5
    assert rec.last_body == {"name": "db", "catalog_id": 3, "description": ""}

    assert client.databases.update(DatabaseUpdateRequest(id=5, description="new")).id == 5
    assert client.databases.info(5).created_at == "2025-01-01"

    assert client.databases.list(3).list[0].table_count == 4
    assert rec.last_body == {"id": 3}

    children = client.databases.children(5)
    assert children.list[0].type == "table"
    assert children.list[0].size == 2048

    assert client.databases.ref_list(5).list == []
    assert client.databases.delete(5).id == 5


def test_run_sql(make_raw_client):
    rec = Recorder({"/nl2sql/run_sql": {"results": [{"columns": ["a", "b"], "rows": [["1", "x"], ["2", "y"]]}]}})
    client = make_raw_client(rec)

    res = client.nl2sql.run_sql(
        RunSqlRequest(
            operation="run_sql",
            statement="select a, b from t",
            db_names=["db"],
            table_names=[DbAndTables(db_name="db", table_names=["t"])],
        )
    )

    assert res.results[0].columns == ["a", "b"]
    assert res.results[0].rows[1] == ["2", "y"]
    assert rec.last_body == {
        "operation": "run_sql",
        "statement": "select a, b from t",
        "db_names": ["db"],
        "table_names": [{"db_name": "db", "table_names": ["t"]}],
    }


def test_run_sql_rejects_unknown_operation():
    with pytest.raises(ValueError):
        RunSqlRequest(operation="drop_everything")


@pytest.mark.asyncio
async def test_async_catalog_and_database_calls(make_raw_client, tmp_path):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/catalog/table/download_data":
            return httpx.Response(200, content=b"a,b\n")
        return Recorder({"/catalog/list": {"list": [{"id": 1}]}, "/catalog/database/list": {"list": [{"id": 2}]}})(request)

    client = make_raw_client(handler)

    assert (await client.catalogs.alist()).list[0].id == 1
    assert (await client.databases.alist(1)).list[0].id == 2
    assert (await client.catalogs.ainfo(1)).id == 0

    stream = await client.catalogs.adownload_table_data(9)
    assert await stream.awrite_to_file(tmp_path / "t.csv") == 4

    res = await client.nl2sql.arun_sql(RunSqlRequest(operation="show_databases"))
    assert res.results == []

    await client.aclose()
