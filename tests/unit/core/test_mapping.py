# tests/unit/core/test_mapping.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import logging

import pytest

from typedtree import (
    DefinitionError,
    KeyMismatchError,
    MalformedPayloadError,
    Map,
    Number,
    String,
    TypeMismatchError,
    define_type,
    either,
)
from typedtree.core.generics import TYPE_KEY

# -----------------------------------------------------------------------------
# FIXTURES
# -----------------------------------------------------------------------------


@pytest.fixture
def user_map(user_type):
    return Map.of(user_type).create({"a": {"name": "avi", "age": 12}, "b": {"name": "shlomo"}})


# -----------------------------------------------------------------------------
# DEFINITION ERRORS
# -----------------------------------------------------------------------------


def test_untyped_map_cannot_be_built():
    with pytest.raises(DefinitionError) as exc_info:
        Map()
    assert "Untyped" in str(exc_info.value)


def test_of_without_types_raises_on_every_construction():
    Empty = Map.of()
    for _ in range(2):
        with pytest.raises(DefinitionError) as exc_info:
            Empty.create({})
        assert "Missing types" in str(exc_info.value)


def test_of_with_too_many_types(user_type, address_type):
    Wide = Map.of(user_type, address_type)
    with pytest.raises(DefinitionError) as exc_info:
        Wide()
    assert "Too many types" in str(exc_info.value)
    assert "User|Address" in exc_info.value.path


def test_of_with_non_descriptor():
    with pytest.raises(DefinitionError):
        Map.of(dict).create({})


def test_describe_includes_subtypes(user_type, address_type):
    assert Map.of(user_type).describe() == "Map<User>"
    assert Map.of(either(user_type, address_type)).describe() == "Map<User|Address>"


def test_of_inherits_subtype_registry(registry, user_type):
    assert Map.of(user_type).get_registry() is registry


# -----------------------------------------------------------------------------
# CONSTRUCTION
# -----------------------------------------------------------------------------


def test_create_from_mapping(user_map, user_type):
    assert user_map.size == 2
    assert isinstance(user_map.get("a"), user_type)
    assert user_map.get("b").age == 10


def test_create_from_pairs():
    numbers = Map.of(Number).create([("x", 1), ["y", 2]])
    assert numbers.to_js() == {"x": 1, "y": 2}


def test_create_from_typed_map_rewraps_entries(user_type):
    source = Map.of(user_type).create({"a": {}})
    copy = Map.of(user_type)(source)
    assert copy.get("a") is source.get("a")
    assert copy is not source


def test_type_key_is_dropped():
    numbers = Map.of(Number).create({TYPE_KEY: "Map", "x": 1})
    assert numbers.keys() == ["x"]


def test_wrong_entry_type_raises(user_type):
    with pytest.raises(TypeMismatchError) as exc_info:
        Map.of(user_type).create({"a": 5})
    assert exc_info.value.path == "Map<User>[a]"
    assert exc_info.value.expected == "User"
    assert exc_info.value.actual == 5


def test_non_string_key_raises():
    with pytest.raises(KeyMismatchError):
        Map.of(Number).create({1: 1})


def test_malformed_payload_raises():
    with pytest.raises(MalformedPayloadError):
        Map.of(Number).create(7)
    with pytest.raises(MalformedPayloadError):
        Map.of(Number).create([1, 2, 3])


def test_warning_level_wrap_skips_bad_entries(lenient_registry):
    Item = define_type("Item", lambda Item: {"count": Number}, registry=lenient_registry)
    items = Map.of(Item).create({"good": {"count": 1}, "bad": "nope"})
    assert items.keys() == ["good"]
    assert isinstance(lenient_registry.mailbox.last_diagnostic, TypeMismatchError)


def test_untagged_union_entries(user_type, address_type):
    mixed = Map.of(either(String, user_type)).create({"s": "text", "u": {"name": "avi"}})
    assert mixed.get("s") == "text"
    assert isinstance(mixed.get("u"), user_type)


def test_tagged_entries(user_type, address_type):
    data = {
        "u": {TYPE_KEY: "UserType", "name": "avi", "age": 12},
        "a": {TYPE_KEY: "AddressType", "address": "Main st"},
    }
    mixed = Map.of({"UserType": user_type, "AddressType": address_type}).create(data)
    assert isinstance(mixed.get("u"), user_type)
    assert isinstance(mixed.get("a"), address_type)


def test_nested_maps(user_type):
    nested = Map.of(Map.of(user_type)).create({"team": {"lead": {"name": "avi"}}})
    assert nested.get("team").get("lead").name == "avi"


# -----------------------------------------------------------------------------
# SINGLE ENTRY OPERATIONS
# -----------------------------------------------------------------------------


def test_set_returns_receiver(user_map, user_type):
    assert user_map.set("c", {"name": "new"}) is user_map
    assert isinstance(user_map.get("c"), user_type)
    assert user_map.get("c").owner is user_map


def test_set_mismatch_raises(user_map):
    with pytest.raises(TypeMismatchError):
        user_map.set("c", "not a user")
    assert not user_map.has("c")


def test_set_keeps_typed_value_identity(user_map, user_type):
    user = user_type.create({"name": "kept"})
    user_map.set("c", user)
    assert user_map.get("c") is user


def test_get_with_non_string_key_warns(user_map, caplog):
    with caplog.at_level(logging.WARNING):
        assert user_map.get(1) is None
    assert "key of type <string>" in caplog.text


def test_get_missing_key(user_map):
    assert user_map.get("zzz") is None


def test_has_and_contains(user_map):
    assert user_map.has("a")
    assert not user_map.has("zzz")
    assert "a" in user_map
    assert [] not in user_map


def test_delete(user_map):
    assert user_map.delete("a")
    assert not user_map.delete("a")
    assert user_map.keys() == ["b"]


def test_clear(user_map):
    user_map.clear()
    assert user_map.size == 0


def test_delete_releases_owner(user_map):
    removed = user_map.get("a")
    assert removed.owner is user_map
    user_map.delete("a")
    assert removed.owner is None


def test_replacing_an_entry_releases_owner(user_map):
    replaced = user_map.get("a")
    user_map.set("a", {"name": "other"})
    assert replaced.owner is None
    assert user_map.get("a").owner is user_map


def test_clear_releases_owners(user_map):
    entries = user_map.values()
    user_map.clear()
    assert all(entry.owner is None for entry in entries)


# -----------------------------------------------------------------------------
# BULK UPDATE
# -----------------------------------------------------------------------------


def test_set_value_replaces_entries(user_map):
    assert user_map.set_value({"c": {"name": "c"}})
    assert user_map.keys() == ["c"]


def test_set_value_detects_removed_keys():
    numbers = Map.of(Number).create({"x": 1, "y": 2})
    assert numbers.set_value({"x": 1})
    assert numbers.to_js() == {"x": 1}


def test_set_value_without_changes():
    numbers = Map.of(Number).create({"x": 1})
    assert not numbers.set_value({"x": 1})
    assert not numbers.is_invalidated()


def test_set_value_deep_preserves_identity(user_map):
    a, b = user_map.get("a"), user_map.get("b")
    assert user_map.set_value_deep({"a": {"name": "avi", "age": 12}, "b": {"name": "changed"}})
    assert user_map.get("a") is a
    assert user_map.get("b") is b
    assert b.name == "changed"


def test_set_value_deep_removed_key_counts_as_change(user_map):
    a = user_map.get("a")
    assert user_map.set_value_deep({"a": {"name": "avi", "age": 12}})
    assert user_map.keys() == ["a"]
    assert user_map.get("a") is a


def test_set_value_deep_unchanged(user_map):
    assert not user_map.set_value_deep({"a": {"name": "avi", "age": 12}, "b": {"name": "shlomo"}})


def test_set_value_deep_adds_new_entries(user_map, user_type):
    assert user_map.set_value_deep({"a": {}, "b": {}, "c": {"name": "c"}})
    assert isinstance(user_map.get("c"), user_type)


def test_set_value_releases_dropped_entries(user_map):
    dropped, kept = user_map.get("a"), user_map.get("b")
    assert user_map.set_value({"b": kept, "c": {"name": "new"}})
    assert dropped.owner is None
    assert kept.owner is user_map


def test_entry_moved_elsewhere_keeps_new_owner(user_map, user_type):
    other = Map.of(user_type).create({})
    moved = user_map.get("a")
    other.set("x", moved)
    user_map.delete("a")
    assert moved.owner is other


# -----------------------------------------------------------------------------
# ITERATION AND EXPORT
# -----------------------------------------------------------------------------


def test_iteration_helpers(user_map):
    assert user_map.keys() == ["a", "b"]
    assert [user.name for user in user_map.values()] == ["avi", "shlomo"]
    assert [key for key, _ in user_map.entries()] == ["a", "b"]
    assert list(user_map) == ["a", "b"]
    assert len(user_map) == 2
    assert user_map["a"].name == "avi"
    with pytest.raises(KeyError):
        user_map["zzz"]


def test_for_each(user_map):
    seen = []
    user_map.for_each(lambda value, key, container: seen.append((key, value.name, container)))
    assert seen == [("a", "avi", user_map), ("b", "shlomo", user_map)]


def test_typed_export(user_map):
    exported = user_map.to_json(True, True)
    assert exported[TYPE_KEY] == "Map"
    assert exported["a"][TYPE_KEY] == "User"
    assert user_map.to_js() == {"a": {"name": "avi", "age": 12}, "b": {"name": "shlomo", "age": 10}}


def test_validate(user_type):
    UserMap = Map.of(user_type)
    assert UserMap.validate({"a": {}})
    assert UserMap.validate(UserMap.create({}))
    assert not UserMap.validate(3)
    assert UserMap.allow_plain_val({"a": {"name": "x"}})
    assert not UserMap.allow_plain_val({"a": 1})
    assert not UserMap.allow_plain_val(UserMap.create({}))


def test_typed_maps_resolve_to_their_own_specialization(user_type, address_type):
    UserMap, AddressMap = Map.of(user_type), Map.of(address_type)
    addresses = AddressMap.create({"h": {"address": "Main"}})
    assert AddressMap.validate_type(addresses)
    assert not UserMap.validate_type(addresses)
    Holder = Map.of(either(UserMap, AddressMap))
    holder = Holder.create({"home": addresses})
    assert holder.get("home") is addresses
