"""End to end tests for the HTTP endpoints."""

import pytest
from fastapi.testclient import TestClient

from main import app, get_registry
from utils.errors import RegistryMissError
from utils.registry import ConnectionRegistry


@pytest.fixture
def registry():
    registry = ConnectionRegistry()
    app.dependency_overrides[get_registry] = lambda: registry
    yield registry
    app.dependency_overrides.clear()


@pytest.fixture
def client(registry):
    return TestClient(app)


def open_db(client, path, connection_id="conn-1"):
    return client.post("/sqlite/open", json={"connectionId": connection_id, "filePath": path}).json()


class TestOpen:
    """Tests for /sqlite/open."""

    def test_open_registers_file(self, client, registry, simple_db):
        assert open_db(client, simple_db) == {"success": True}
        assert registry.resolve("conn-1") == simple_db

    def test_empty_path(self, client, simple_db):
        response = open_db(client, "")
        assert response == {"success": False, "message": "filePath is required"}
        assert open_db(client, simple_db) == {"success": True}

    def test_not_a_database(self, client, registry, not_a_db):
        response = open_db(client, not_a_db)

        assert response["success"] is False
        assert response["message"].startswith("Not a valid SQLite database: ")
        with pytest.raises(RegistryMissError):
            registry.resolve("conn-1")

    def test_missing_file(self, client, tmp_path):
        response = open_db(client, str(tmp_path / "missing.db"))
        assert response["success"] is False
        assert response["message"].startswith("Failed to open SQLite file: ")


class TestClose:
    """Tests for /sqlite/close."""

    def close(self, client, connection_id="conn-1"):
        return client.post("/sqlite/close", json={"connectionId": connection_id}).json()

    def test_close_forgets_connection(self, client, registry, simple_db):
        open_db(client, simple_db)

        assert self.close(client) == {"success": True}
        with pytest.raises(RegistryMissError):
            registry.resolve("conn-1")

    def test_close_twice(self, client, simple_db):
        open_db(client, simple_db)
        self.close(client)
        assert self.close(client) == {"success": False, "message": "No SQLite file registered for this connection"}

    def test_queries_fail_after_close(self, client, simple_db):
        open_db(client, simple_db)
        self.close(client)

        response = client.post("/sqlite/query", json={
            "connectionId": "conn-1", "sql": "SELECT 1", "page": 0, "pageSize": 10,
        }).json()
        assert response == {"success": False, "message": "No SQLite file registered for this connection"}


class TestQuery:
    """Tests for /sqlite/query."""

    def query(self, client, sql, page=0, page_size=10, connection_id="conn-1"):
        return client.post("/sqlite/query", json={
            "connectionId": connection_id, "sql": sql, "page": page, "pageSize": page_size,
        }).json()

    def test_select(self, client, simple_db):
        open_db(client, simple_db)
        response = self.query(client, "SELECT * FROM t")

        assert response["success"] is True
        data = response["data"]
        assert data["columns"] == ["id", "name"]
        assert len(data["rows"]) == 5
        assert data["totalRows"] == 5
        assert data["rowsScannedEstimate"] == 5
        assert any("t" in step for step in data["planSteps"])

    def test_total_rows_ignores_paging(self, client, simple_db):
        open_db(client, simple_db)
        totals = {self.query(client, "SELECT * FROM t", page, size)["data"]["totalRows"]
                  for page, size in [(0, 1), (1, 2), (9, 9), (0, 0)]}
        assert totals == {5}

    def test_non_select(self, client, simple_db):
        open_db(client, simple_db)
        response = self.query(client, "PRAGMA user_version")

        assert response["success"] is True
        assert response["data"] == {
            "columns": [],
            "rows": [],
            "totalRows": None,
            "planSteps": None,
            "insights": None,
            "planTables": None,
            "rowsScannedEstimate": None,
        }

    def test_write_is_refused(self, client, simple_db):
        open_db(client, simple_db)
        response = self.query(client, "DELETE FROM t")

        assert response["success"] is False
        assert response["message"].startswith("Execution error: ")

    def test_unknown_connection(self, client):
        response = self.query(client, "SELECT 1", connection_id="ghost")
        assert response == {"success": False, "message": "No SQLite file registered for this connection"}

    def test_poisoned_registry(self, client, registry, simple_db):
        open_db(client, simple_db)
        with pytest.raises(RuntimeError):
            with registry._locked():
                raise RuntimeError("boom")

        response = self.query(client, "SELECT 1")
        assert response == {"success": False, "message": "state poisoned"}

    @pytest.mark.parametrize("page, page_size", [(-1, 10), (0, -1), (2**32, 1), (0, 2**32)])
    def test_paging_must_fit_u32(self, client, simple_db, page, page_size):
        open_db(client, simple_db)
        response = client.post("/sqlite/query", json={
            "connectionId": "conn-1", "sql": "SELECT 1", "page": page, "pageSize": page_size,
        })
        assert response.status_code == 422


class TestSummaries:
    """Tests for /sqlite/schema_summary and /sqlite/table_summary."""

    def test_schema_summary(self, client, shop_db):
        open_db(client, shop_db)
        response = client.post("/sqlite/schema_summary", json={"connectionId": "conn-1"}).json()

        assert response["success"] is True
        data = response["data"]
        assert [t["name"] for t in data["tables"]] == ["customers", "items", "orders"]
        assert {
            "fromTable": "orders",
            "fromColumns": ["customer_id", "region"],
            "toTable": "customers",
            "toColumns": ["id", "region"],
        } in data["foreignKeys"]

        items = data["tables"][1]
        assert items["columns"][0] == {"name": "item_id", "dataType": "INTEGER", "notNull": False, "pk": True}
        assert items["keys"][-1] == {
            "keyType": "INDEX",
            "name": "idx_items_sku",
            "columns": ["sku"],
            "refTable": None,
            "refColumns": None,
            "unique": True,
        }

    def test_table_summary(self, client, shop_db):
        open_db(client, shop_db)
        response = client.post("/sqlite/table_summary", json={
            "connectionId": "conn-1", "tableName": "items",
        }).json()

        assert response["success"] is True
        assert [t["name"] for t in response["data"]["tables"]] == ["items"]
        assert response["data"]["foreignKeys"] == [{
            "fromTable": "items", "fromColumns": ["order_id"], "toTable": "orders", "toColumns": ["order_id"],
        }]

    def test_unknown_connection(self, client):
        response = client.post("/sqlite/schema_summary", json={"connectionId": "ghost"}).json()
        assert response == {"success": False, "message": "No SQLite file registered for this connection"}


def test_health(client):
    assert client.get("/health").status_code == 200
