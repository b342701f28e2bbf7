"""Tests for Property descriptors, PropertySet and property-option normalization."""

from __future__ import annotations

import pytest

from finder.core.errors import QueryArgumentError, UnknownPropertyError
from finder.model.properties import Property, PropertySet, normalize_properties
from finder.model.types import PropertyType
from tests._support.models import GreenSmoothie, Ingredient, Milkshake


class TestProperty:
    def test_names_and_fields(self):
        prop = Milkshake.properties["name"]
        assert prop.name == "name"
        assert prop.field == "ml_name"
        assert prop.model is Milkshake

    def test_field_defaults_to_name(self):
        assert GreenSmoothie.properties["name"].field == "name"

    def test_serial_is_key(self):
        prop = GreenSmoothie.properties["id"]
        assert prop.serial and prop.key

    def test_natural_keys(self):
        assert Ingredient.properties.key.names() == ("smoothie_id", "position")

    def test_class_access_returns_descriptor(self):
        assert isinstance(GreenSmoothie.name, Property)

    def test_repr(self):
        assert repr(Milkshake.properties["name"]) == "<Property Milkshake.name string field='ml_name'>"

    def test_type_coerced(self):
        assert Property("integer").type is PropertyType.INTEGER


class TestPropertySet:
    def test_declaration_order(self):
        assert Milkshake.properties.names() == ("id", "name", "contains_lactose")
        assert Milkshake.properties.fields() == ("id", "ml_name", "bl_lactose")

    def test_index_by_name_and_position(self):
        assert Milkshake.properties["name"] is Milkshake.properties[1]

    def test_contains(self):
        assert "name" in Milkshake.properties
        assert Milkshake.properties["name"] in Milkshake.properties
        assert GreenSmoothie.properties["name"] not in Milkshake.properties

    def test_union_keeps_order(self):
        props = Milkshake.properties
        merged = props.key.union([props["contains_lactose"], props["id"]])
        assert merged.names() == ("id", "contains_lactose")

    def test_equality(self):
        props = Milkshake.properties
        assert PropertySet([props["id"]]) == props.key
        assert hash(PropertySet([props["id"]])) == hash(props.key)


class TestNormalizeProperties:
    props = Milkshake.properties

    def test_none_means_all(self):
        assert normalize_properties(None, self.props) is self.props

    @pytest.mark.parametrize(
        "value",
        [
            "name",
            Milkshake.properties["name"],
            ["name"],
            (Milkshake.properties["name"],),
            PropertySet([Milkshake.properties["name"]]),
        ],
    )
    def test_single_name_shapes(self, value):
        assert normalize_properties(value, self.props).names() == ("name",)

    def test_mixed_sequence_dedupes(self):
        result = normalize_properties(["contains_lactose", self.props["name"], "contains_lactose"], self.props)
        assert result.names() == ("contains_lactose", "name")

    def test_whole_set(self):
        assert normalize_properties(self.props, self.props) == self.props

    def test_unknown_name(self):
        with pytest.raises(UnknownPropertyError, match="Milkshake has no property 'colour'"):
            normalize_properties("colour", self.props, model="Milkshake")

    def test_foreign_property(self):
        with pytest.raises(UnknownPropertyError):
            normalize_properties(GreenSmoothie.properties["name"], self.props)

    @pytest.mark.parametrize("value", [42, {"name": True}, [1]])
    def test_bad_shapes(self, value):
        with pytest.raises(QueryArgumentError):
            normalize_properties(value, self.props)

    def test_empty(self):
        with pytest.raises(QueryArgumentError, match="at least one"):
            normalize_properties([], self.props)
