# tests/unit/core/test_define.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import logging

import pytest

from typedtree import DefinitionError, Map, Number, Record, String, TypeBuilder, define_type
from typedtree.core.record import Field
from typedtree.interfaces.protocols import is_type_descriptor


def test_define_creates_record_subclass(registry, user_type):
    assert issubclass(user_type, Record)
    assert user_type.display_name == "User"
    assert user_type.type_id == "User"
    assert registry.get("User") is user_type
    assert is_type_descriptor(user_type)


def test_fields_become_descriptors(user_type):
    assert isinstance(user_type.__dict__["name"], Field)
    assert set(user_type.get_fields_spec()) == {"name", "age"}


def test_defaults_follow_field_spec(user_type, user_with_address_type):
    assert user_type.defaults() == {"name": "", "age": 10}
    assert user_with_address_type.get_fields_spec()["user"].defaults()["name"] == ""


def test_explicit_type_id(registry):
    Point = define_type("Point", lambda Point: {"x": Number}, registry=registry, type_id="geo.Point")
    assert Point.type_id == "geo.Point"
    assert Point.display_name == "Point"
    assert registry.get("geo.Point") is Point


def test_duplicate_type_id_raises(registry, user_type):
    with pytest.raises(DefinitionError):
        define_type("User", lambda User: {}, registry=registry)


def test_reserved_field_name_raises(registry):
    with pytest.raises(DefinitionError) as exc_info:
        define_type("Broken", lambda Broken: {"set_value": String}, registry=registry)
    assert exc_info.value.path == "Broken.set_value"


def test_private_field_name_raises(registry):
    with pytest.raises(DefinitionError):
        define_type("Broken", lambda Broken: {"_hidden": String}, registry=registry)


def test_non_descriptor_field_raises(registry):
    with pytest.raises(DefinitionError) as exc_info:
        define_type("Broken", lambda Broken: {"value": int}, registry=registry)
    assert "not a data type" in str(exc_info.value)


def test_field_with_definition_error_raises(registry):
    with pytest.raises(DefinitionError) as exc_info:
        define_type("Broken", lambda Broken: {"items": Map}, registry=registry)
    assert "Untyped" in str(exc_info.value)


def test_failed_definition_is_not_registered(registry):
    with pytest.raises(DefinitionError):
        define_type("Broken", lambda Broken: {"items": Map}, registry=registry)
    assert "Broken" not in registry


def test_self_reference_through_nullable(node_type):
    child_type = node_type.get_fields_spec()["child"]
    assert issubclass(child_type, node_type)
    assert child_type.defaults() is None


def test_mixin_base_is_placed_before_record(registry):
    class Greeting:
        def greet(self):
            return f"hello {self.name}"

    Person = define_type("Person", lambda Person: {"name": String}, base=Greeting, registry=registry)
    assert issubclass(Person, Record)
    assert Person.create({"name": "ada"}).greet() == "hello ada"


def test_builder_rejects_bad_input(registry):
    with pytest.raises(DefinitionError):
        TypeBuilder("", registry)
    with pytest.raises(DefinitionError):
        TypeBuilder("Thing", registry).with_spec("not callable")
    with pytest.raises(DefinitionError):
        TypeBuilder("Thing", registry).with_base("not a class")


def test_definition_is_logged(registry, caplog):
    with caplog.at_level(logging.DEBUG, logger="typedtree.core.define"):
        define_type("Logged", lambda Logged: {"x": Number}, registry=registry)
    assert "Logged" in caplog.text


def test_registry_define_shortcut(registry):
    Tag = registry.define("Tag", lambda Tag: {"label": String})
    assert registry.get("Tag") is Tag
    assert Tag.registry is registry
