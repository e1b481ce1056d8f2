# tests/conftest.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import pytest

from typedtree import DiagnosticPolicy, Number, String, TypeRegistry, define_type


@pytest.fixture
def registry():
    """A fresh registry with the default raising policy."""
    return TypeRegistry("test")


@pytest.fixture
def lenient_registry():
    """A registry whose diagnostics are logged instead of raised."""
    return TypeRegistry("lenient", policy=DiagnosticPolicy.LOG)


@pytest.fixture
def user_type(registry):
    """User record: name and age."""
    return define_type(
        "User",
        lambda User: {"name": String.with_default(""), "age": Number.with_default(10)},
        registry=registry,
    )


@pytest.fixture
def address_type(registry):
    """Address record: address and code."""
    return define_type(
        "Address",
        lambda Address: {"address": String.with_default(""), "code": Number.with_default(10)},
        registry=registry,
    )


@pytest.fixture
def user_with_address_type(registry, user_type, address_type):
    """Record nesting a User and an Address."""
    return define_type(
        "UserWithAddress",
        lambda UserWithAddress: {"user": user_type, "address": address_type},
        registry=registry,
    )


@pytest.fixture
def node_type(registry):
    """Self-referential record with an optional child."""
    return define_type(
        "Node",
        lambda Node: {"label": String, "child": Node.nullable()},
        registry=registry,
    )
