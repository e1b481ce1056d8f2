# typedtree/core/type_match.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
from typing import Any

from typedtree.core.base import BaseType
from typedtree.core.diagnostics import Mailbox
from typedtree.core.errors import TypeMismatchError
from typedtree.core.validation import ErrorContext, mismatch_message, report, validate_null_value


class _NoMatch:
    def __repr__(self) -> str:
        return "NO_MATCH"


# Returned when a value was rejected and the diagnostic did not raise.
NO_MATCH: Any = _NoMatch()


def same_constraints(value: BaseType, type_: Any) -> bool:
    """True when ``value`` carries the subtype constraint of ``type_``."""
    target = type_.options
    if target is None or target.subtypes is None:
        return True
    current = value._options
    return current is not None and current.subtypes == target.subtypes


def wrap_resolved(value: Any, type_: Any, error_context: ErrorContext) -> Any:
    """
    Wrap ``value`` as ``type_`` once the type has been resolved.

    Typed values of the right type are returned as-is, which keeps both their
    identity and their read-only state. Typed values of a generic type with
    different subtype constraints are re-wrapped under ``type_``.
    """
    if validate_null_value(type_, value):
        return None
    if isinstance(value, BaseType) and isinstance(value, type_.base_type or type_):
        if not same_constraints(value, type_):
            return type_(value, value.is_read_only(), None, error_context)
        if type_.validate_type(value):
            return value
    return type_.create(value, False, error_context)


def validate_and_wrap(value: Any, type_: Any, error_context: ErrorContext, mailbox: Mailbox) -> Any:
    """
    Check ``value`` against ``type_`` and wrap it.

    :return: The wrapped value, or NO_MATCH when the value was rejected at a
        non-fatal severity.
    :raises TypeMismatchError: When rejected at a fatal severity.
    """
    if type_.validate_type(value) or type_.allow_plain_val(value) or type_.allows_retyped(value):
        return wrap_resolved(value, type_, error_context)
    expected = type_.describe()
    report(
        mailbox,
        error_context,
        TypeMismatchError(
            mismatch_message(error_context, expected, value),
            path=error_context.path,
            expected=expected,
            actual=value,
        ),
    )
    return NO_MATCH
