"""Tests for ``finder.core.adapters.sqlite`` and the shared SQLAdapter operations."""

from __future__ import annotations

import sqlite3
from unittest.mock import patch

import pytest

from finder.core.adapters.sqlite import SQLiteAdapter
from finder.core.errors import DatabaseConnectionError, QueryArgumentError
from finder.model.query import Query, QueryKind, Selector
from tests._support.models import GreenSmoothie, Ingredient, Milkshake


@pytest.fixture
def adapter():
    adapter = SQLiteAdapter(":memory:")
    with adapter.acquire() as conn:
        for model in (GreenSmoothie, Milkshake, Ingredient):
            adapter.create_model_storage(conn, model)
    yield adapter
    adapter.disconnect()


def props(model, *names):
    return {model.properties[name]: value for name, value in names}


class TestSQLiteAdapterInit:
    def test_default_memory(self):
        adapter = SQLiteAdapter()
        assert adapter.db_type.value == "sqlite"
        assert adapter.path == ":memory:"
        assert adapter.is_connected is False

    def test_dialect(self):
        assert SQLiteAdapter().dialect.name == "sqlite"


class TestSQLiteAdapterConnect:
    def test_connect_memory(self):
        adapter = SQLiteAdapter(path=":memory:")
        adapter.connect()
        assert adapter.is_connected is True
        adapter.disconnect()
        assert adapter.is_connected is False

    def test_acquire_connects_lazily(self):
        adapter = SQLiteAdapter()
        with adapter.acquire() as conn:
            assert adapter.is_connected is True
            assert conn.execute("PRAGMA foreign_keys").fetchone()[0] == 1
        adapter.disconnect()

    def test_connection_survives_scopes(self):
        adapter = SQLiteAdapter()
        with adapter.acquire() as first:
            pass
        with adapter.acquire() as second:
            assert first is second
        adapter.disconnect()

    def test_readonly(self):
        adapter = SQLiteAdapter(readonly=True)
        with adapter.acquire() as conn:
            with pytest.raises(sqlite3.OperationalError):
                conn.execute("CREATE TABLE t (id INTEGER)")
        adapter.disconnect()

    @patch("sqlite3.connect", side_effect=sqlite3.OperationalError("unable to open database"))
    def test_connect_failure_raises(self, mock_connect):
        adapter = SQLiteAdapter(path="/nonexistent/path.db")
        with pytest.raises(DatabaseConnectionError, match="Failed to connect to SQLite"):
            adapter.connect()

    def test_context_manager(self):
        with SQLiteAdapter() as adapter:
            assert adapter.is_connected
        assert not adapter.is_connected


class TestStorage:
    def test_create_model_storage_uses_physical_fields(self, adapter):
        with adapter.acquire() as conn:
            columns = [row[1] for row in conn.execute("PRAGMA table_info(milkshakes)")]
        assert columns == ["id", "ml_name", "bl_lactose"]

    def test_composite_key(self, adapter):
        with adapter.acquire() as conn:
            info = {row[1]: row[5] for row in conn.execute("PRAGMA table_info(pantry)")}
        assert info["smoothie_id"] == 1
        assert info["position"] == 2
        assert info["name"] == 0

    def test_create_is_idempotent(self, adapter):
        with adapter.acquire() as conn:
            adapter.create_model_storage(conn, GreenSmoothie)

    def test_destroy_model_storage(self, adapter):
        with adapter.acquire() as conn:
            adapter.destroy_model_storage(conn, GreenSmoothie)
            with pytest.raises(sqlite3.OperationalError):
                adapter.select(conn, "SELECT * FROM green_smoothies")


class TestWrites:
    def test_create_returns_serial(self, adapter):
        with adapter.acquire() as conn:
            first = adapter.create(conn, GreenSmoothie, props(GreenSmoothie, ("name", "Banana")))
            second = adapter.create(conn, GreenSmoothie, props(GreenSmoothie, ("name", "Kale")))
        assert (first, second) == (1, 2)

    def test_create_default_values(self, adapter):
        with adapter.acquire() as conn:
            assert adapter.create(conn, GreenSmoothie, {}) == 1
            assert adapter.select(conn, "SELECT id, name FROM green_smoothies") == [{"id": 1, "name": None}]

    def test_create_without_serial_returns_none(self, adapter):
        values = props(Ingredient, ("smoothie_id", 1), ("position", 1), ("name", "kale"))
        with adapter.acquire() as conn:
            assert adapter.create(conn, Ingredient, values) is None

    def test_update(self, adapter):
        with adapter.acquire() as conn:
            key = adapter.create(conn, GreenSmoothie, props(GreenSmoothie, ("name", "Banana")))
            count = adapter.update(
                conn, GreenSmoothie, props(GreenSmoothie, ("id", key)), props(GreenSmoothie, ("name", "Mango"))
            )
            rows = adapter.select(conn, "SELECT name FROM green_smoothies")
        assert count == 1
        assert rows == [{"name": "Mango"}]

    def test_update_nothing(self, adapter):
        with adapter.acquire() as conn:
            assert adapter.update(conn, GreenSmoothie, props(GreenSmoothie, ("id", 1)), {}) == 0

    def test_delete(self, adapter):
        with adapter.acquire() as conn:
            adapter.create(conn, GreenSmoothie, props(GreenSmoothie, ("name", "Banana")))
            adapter.create(conn, GreenSmoothie, props(GreenSmoothie, ("name", "Kale")))
            assert adapter.delete(conn, GreenSmoothie, props(GreenSmoothie, ("name", "Kale"))) == 1
            assert adapter.delete(conn, GreenSmoothie, {}) == 1


class TestReads:
    @pytest.fixture(autouse=True)
    def _rows(self, adapter):
        with adapter.acquire() as conn:
            for name in ("Banana", "Kale", "Mango"):
                adapter.create(conn, GreenSmoothie, props(GreenSmoothie, ("name", name)))
            adapter.create(conn, Milkshake, props(Milkshake, ("name", "Vanilla"), ("contains_lactose", True)))

    def test_compile_select(self, adapter):
        query = Query.build(GreenSmoothie, QueryKind.ATTRIBUTE_MATCH, Selector.FIRST, {"name": "Kale"})
        sql, binds = adapter.compile_select(query)
        assert sql == 'SELECT "id", "name" FROM "green_smoothies" WHERE "name" = ? ORDER BY "id" ASC LIMIT 1'
        assert binds == ["Kale"]

    def test_compile_select_null_and_in(self, adapter):
        query = Query.build(GreenSmoothie, QueryKind.ATTRIBUTE_MATCH, Selector.ALL, {"name": None, "id": [1, 2]})
        sql, binds = adapter.compile_select(query)
        assert 'WHERE "name" IS NULL AND "id" IN ?' in sql
        assert binds == [[1, 2]]

    def test_read_structured(self, adapter):
        query = Query.build(GreenSmoothie, QueryKind.SYMBOLIC, Selector.ALL, order="-name", limit=2)
        with adapter.acquire() as conn:
            rows = adapter.read(conn, query)
        assert [row["name"] for row in rows] == ["Mango", "Kale"]

    def test_read_in_list(self, adapter):
        query = Query.build(GreenSmoothie, QueryKind.ATTRIBUTE_MATCH, Selector.ALL, {"name": ["Banana", "Mango"]})
        with adapter.acquire() as conn:
            assert [row["id"] for row in adapter.read(conn, query)] == [1, 3]

    def test_read_empty_in_list_matches_nothing(self, adapter):
        query = Query.build(GreenSmoothie, QueryKind.ATTRIBUTE_MATCH, Selector.ALL, {"name": []})
        with adapter.acquire() as conn:
            assert adapter.read(conn, query) == []

    def test_read_offset(self, adapter):
        query = Query.build(GreenSmoothie, QueryKind.SYMBOLIC, Selector.ALL, offset=1)
        with adapter.acquire() as conn:
            assert [row["id"] for row in adapter.read(conn, query)] == [2, 3]

    def test_read_uses_physical_fields(self, adapter):
        query = Query.build(Milkshake, QueryKind.SYMBOLIC, Selector.FIRST)
        with adapter.acquire() as conn:
            assert adapter.read(conn, query) == [{"id": 1, "ml_name": "Vanilla", "bl_lactose": 1}]

    def test_select_with_binds(self, adapter):
        with adapter.acquire() as conn:
            rows = adapter.select(conn, "SELECT id, name FROM green_smoothies WHERE id = ?", [2])
        assert rows == [{"id": 2, "name": "Kale"}]

    def test_select_bind_mismatch(self, adapter):
        with adapter.acquire() as conn:
            with pytest.raises(QueryArgumentError):
                adapter.select(conn, "SELECT id FROM green_smoothies WHERE id = ?", [])

    def test_select_no_rows(self, adapter):
        with adapter.acquire() as conn:
            assert adapter.select(conn, "SELECT id FROM green_smoothies WHERE id = ?", [99]) == []

    def test_malformed_sql_propagates(self, adapter):
        with adapter.acquire() as conn:
            with pytest.raises(sqlite3.OperationalError):
                adapter.select(conn, "SELEKT nonsense")
