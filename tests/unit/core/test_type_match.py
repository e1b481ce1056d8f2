# tests/unit/core/test_type_match.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import pytest

from typedtree import List, Number, TypeMismatchError
from typedtree.core.diagnostics import DiagnosticPolicy, Mailbox, Severity
from typedtree.core.type_match import NO_MATCH, validate_and_wrap, wrap_resolved
from typedtree.core.validation import ErrorContext


@pytest.fixture
def context():
    return ErrorContext("unit error", Severity.ERROR, "Root")


def test_typed_value_keeps_identity(user_type, context):
    user = user_type()
    assert validate_and_wrap(user, user_type, context, Mailbox("m")) is user


def test_read_only_value_stays_read_only(user_type, context):
    view = user_type().as_read_only()
    assert validate_and_wrap(view, user_type, context, Mailbox("m")) is view


def test_plain_value_is_wrapped(user_type, context):
    user = validate_and_wrap({"name": "avi"}, user_type, context, Mailbox("m"))
    assert isinstance(user, user_type)
    assert user.name == "avi"


def test_scalars_pass_through(context):
    assert validate_and_wrap(3, Number, context, Mailbox("m")) == 3


def test_nullable_none(user_type, context):
    assert wrap_resolved(None, user_type.nullable(), context) is None


def test_generic_value_is_retyped(context):
    loose = List.of(Number).create([1, 2])
    Positive = List.of(Number.with_default(1, validate=lambda value: value > 0))
    retyped = wrap_resolved(loose, Positive, context)
    assert retyped is not loose
    assert retyped.to_js() == [1, 2]
    assert retyped._options.subtypes == Positive.options.subtypes


def test_same_generic_value_is_kept(context):
    numbers = List.of(Number).create([1])
    assert wrap_resolved(numbers, List.of(Number), context) is numbers


def test_mismatch_raises(user_type, context):
    with pytest.raises(TypeMismatchError) as exc_info:
        validate_and_wrap(3, user_type, context, Mailbox("m"))
    assert exc_info.value.path == "Root"
    assert exc_info.value.expected == "User"


def test_mismatch_returns_no_match_when_not_fatal(user_type, context):
    mailbox = Mailbox("m", policy=DiagnosticPolicy.SILENT)
    assert validate_and_wrap(3, user_type, context, mailbox) is NO_MATCH
    assert isinstance(context.last_error, TypeMismatchError)
