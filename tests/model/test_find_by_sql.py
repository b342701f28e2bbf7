"""Tests for find_by_sql."""

from __future__ import annotations

import sqlite3

import pytest

import finder
from finder.core.errors import PersistenceError, QueryArgumentError, UnsupportedQueryError
from finder.model.collection import Collection
from finder.model.query import Query, QueryKind, Selector
from tests._support.models import GreenSmoothie, Milkshake


@pytest.fixture
def milkshakes(default_repository):
    return [
        Milkshake.create(name="Vanilla", contains_lactose=True),
        Milkshake.create(name="Sorbet", contains_lactose=False),
    ]


class TestArguments:
    def test_none(self, default_repository):
        with pytest.raises(QueryArgumentError, match="find_by_sql requires a query"):
            Milkshake.find_by_sql(None)

    @pytest.mark.parametrize("selector", [Selector.FIRST, "first", "ALL", " last "])
    def test_selectors_rejected(self, default_repository, selector):
        with pytest.raises(QueryArgumentError, match="selector"):
            Milkshake.find_by_sql(selector)

    @pytest.mark.parametrize("query", [42, {"sql": "SELECT 1"}, [], [1, "SELECT 1"], "", "   "])
    def test_bad_shapes(self, default_repository, query):
        with pytest.raises(QueryArgumentError):
            Milkshake.find_by_sql(query)

    def test_unknown_option(self, default_repository):
        with pytest.raises(QueryArgumentError, match="does not accept option"):
            Milkshake.find_by_sql("SELECT * FROM milkshakes", limit=1)

    def test_query_for_other_model(self, default_repository):
        with pytest.raises(QueryArgumentError, match="got a query for GreenSmoothie"):
            Milkshake.find_by_sql(Query.build(GreenSmoothie, QueryKind.SYMBOLIC))

    def test_validated_before_store(self):
        finder.setup("default", "memory://")
        with pytest.raises(QueryArgumentError):
            Milkshake.find_by_sql("SELECT * FROM milkshakes", reload="yes")


class TestResults:
    def test_empty_result_is_collection(self, default_repository):
        found = Milkshake.find_by_sql("SELECT * FROM milkshakes")
        assert isinstance(found, Collection)
        assert found.empty

    def test_star_select(self, milkshakes):
        found = Milkshake.find_by_sql("SELECT * FROM milkshakes")
        assert [(m.name, m.contains_lactose) for m in found] == [("Vanilla", True), ("Sorbet", False)]

    def test_binds(self, milkshakes):
        found = Milkshake.find_by_sql(["SELECT * FROM milkshakes WHERE ml_name = ? AND bl_lactose = ?", "Sorbet", 0])
        assert [m.id for m in found] == [2]

    def test_sequence_bind(self, milkshakes):
        found = Milkshake.find_by_sql(("SELECT * FROM milkshakes WHERE id IN ? ORDER BY id DESC", [1, 2]))
        assert [m.id for m in found] == [2, 1]

    def test_question_mark_in_literal(self, milkshakes):
        found = Milkshake.find_by_sql(["SELECT * FROM milkshakes WHERE ml_name != '?' AND id = ?", 1])
        assert found.first.name == "Vanilla"

    def test_collection_remembers_query(self, milkshakes):
        found = Milkshake.find_by_sql("SELECT * FROM milkshakes")
        assert found.query.is_raw
        assert found.query.sql == "SELECT * FROM milkshakes"
        assert found.repository.name == "default"

    def test_malformed_sql_propagates(self, default_repository):
        with pytest.raises(sqlite3.OperationalError):
            Milkshake.find_by_sql("SELEKT everything")


class TestColumnMapping:
    def test_physical_columns(self, milkshakes):
        resource = Milkshake.find_by_sql("SELECT id, ml_name, bl_lactose FROM milkshakes").first
        assert resource.name == "Vanilla"
        assert resource.contains_lactose is True

    def test_positional_aliases(self, milkshakes):
        resource = Milkshake.find_by_sql("SELECT id AS a, ml_name AS b, bl_lactose AS c FROM milkshakes").first
        assert resource.attributes() == {"id": 1, "name": "Vanilla", "contains_lactose": True}

    def test_unselected_requested_property_loaded_as_none(self, milkshakes):
        resource = Milkshake.find_by_sql("SELECT id, ml_name FROM milkshakes").first
        assert resource.attribute_loaded("contains_lactose")
        assert resource.contains_lactose is None

    def test_key_required(self, milkshakes):
        with pytest.raises(PersistenceError, match="no value for key id"):
            Milkshake.find_by_sql("SELECT ml_name, bl_lactose FROM milkshakes")


class TestPropertiesOption:
    @pytest.mark.parametrize(
        "properties",
        [
            "name",
            Milkshake.properties["name"],
            ["name"],
            [Milkshake.properties["name"]],
        ],
    )
    def test_restricted_shapes(self, milkshakes, properties):
        resource = Milkshake.find_by_sql("SELECT * FROM milkshakes", properties=properties).first
        assert resource.attribute_loaded("id")
        assert resource.attribute_loaded("name")
        assert not resource.attribute_loaded("contains_lactose")

    def test_full_set(self, milkshakes):
        resource = Milkshake.find_by_sql("SELECT * FROM milkshakes", properties=Milkshake.properties).first
        assert all(resource.attribute_loaded(name) for name in ("id", "name", "contains_lactose"))

    def test_fields_alias(self, milkshakes):
        resource = Milkshake.find_by_sql("SELECT * FROM milkshakes", fields="contains_lactose").first
        assert not resource.attribute_loaded("name")

    def test_requested_properties_win_over_selected_columns(self, milkshakes):
        resource = Milkshake.find_by_sql("SELECT id, ml_name FROM milkshakes", properties="contains_lactose").first
        assert resource.attribute_loaded("contains_lactose")
        assert not resource.attribute_loaded("name")

    def test_unloaded_property_is_fetched_on_read(self, milkshakes):
        resource = Milkshake.find_by_sql("SELECT * FROM milkshakes", properties="name").first
        assert resource.contains_lactose is True
        assert resource.attribute_loaded("contains_lactose")


class TestReload:
    def test_default_keeps_cached_instance(self, milkshakes):
        name = Milkshake.properties["name"]
        with finder.repository() as scope:
            cached = Milkshake.find(1)
            scope.update(Milkshake, {Milkshake.properties["id"]: 1}, {name: "Chocolate"})
            again = Milkshake.find_by_sql("SELECT * FROM milkshakes WHERE id = 1").first
            assert again is cached
            assert again.name == "Vanilla"

    def test_reload_overwrites_cached_instance(self, milkshakes):
        name = Milkshake.properties["name"]
        with finder.repository() as scope:
            cached = Milkshake.find(1)
            scope.update(Milkshake, {Milkshake.properties["id"]: 1}, {name: "Chocolate"})
            again = Milkshake.find_by_sql("SELECT * FROM milkshakes WHERE id = 1", reload=True).first
            assert again is cached
            assert again.name == "Chocolate"


class TestRepositories:
    def test_repository_option(self, alternate_repository):
        with finder.repository("alternate"):
            GreenSmoothie.create(name="Kale")
        found = GreenSmoothie.find_by_sql("SELECT * FROM green_smoothies", repository="alternate")
        assert [s.name for s in found] == ["Kale"]
        assert found.first.repository_name == "alternate"
        assert GreenSmoothie.find_by_sql("SELECT * FROM green_smoothies").empty

    def test_open_scope_is_default(self, alternate_repository):
        with finder.repository("alternate"):
            GreenSmoothie.create(name="Kale")
            assert GreenSmoothie.find_by_sql("SELECT * FROM green_smoothies").first.name == "Kale"

    def test_memory_store_rejects_raw_sql(self, memory_repository):
        with pytest.raises(UnsupportedQueryError, match="cannot execute raw SQL"):
            GreenSmoothie.find_by_sql("SELECT * FROM green_smoothies")

    def test_memory_store_cannot_compile(self, memory_repository):
        with pytest.raises(UnsupportedQueryError, match="cannot compile"):
            GreenSmoothie.find_by_sql(Query.build(GreenSmoothie, QueryKind.SYMBOLIC))


class TestQueryReuse:
    def test_rerun_raw_query(self, milkshakes):
        first = Milkshake.find_by_sql(["SELECT * FROM milkshakes WHERE id = ?", 2])
        again = Milkshake.find_by_sql(first.query)
        assert again == first

    def test_override_options_of_reused_query(self, milkshakes):
        first = Milkshake.find_by_sql("SELECT * FROM milkshakes")
        again = Milkshake.find_by_sql(first.query, properties="name")
        assert not again.first.attribute_loaded("contains_lactose")
        assert again.query.sql == first.query.sql

    def test_structured_query_is_compiled(self, milkshakes):
        query = Milkshake.find("all", contains_lactose=False).query
        found = Milkshake.find_by_sql(query)
        assert [m.name for m in found] == ["Sorbet"]
        assert found.query.is_raw
        assert found.query.sql.startswith('SELECT "id", "ml_name", "bl_lactose" FROM "milkshakes"')

    def test_structured_last(self, milkshakes):
        found = Milkshake.find_by_sql(Query.build(Milkshake, QueryKind.SYMBOLIC, Selector.LAST))
        assert [m.name for m in found] == ["Sorbet"]


class TestScenarios:
    def test_aliased_column_matches_first_finder(self, milkshakes):
        raw = Milkshake.find_by_sql("SELECT * FROM milkshakes LIMIT 1").first
        assert raw.contains_lactose is True
        assert raw == Milkshake.find("first")

    def test_query_reflects_reload_option(self, milkshakes):
        assert Milkshake.find_by_sql("SELECT * FROM milkshakes").query.reload is False
        assert Milkshake.find_by_sql("SELECT * FROM milkshakes", reload=True).query.reload is True

    def test_loaded_state_through_property(self, milkshakes):
        resource = Milkshake.find_by_sql("SELECT * FROM milkshakes", properties="name").first
        assert Milkshake.properties["name"].loaded(resource)
        assert not Milkshake.properties["contains_lactose"].loaded(resource)
