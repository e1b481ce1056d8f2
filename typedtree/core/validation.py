# typedtree/core/validation.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Optional

from typedtree.core.diagnostics import Mailbox, Severity
from typedtree.core.errors import TypedTreeError

if TYPE_CHECKING:
    from typedtree.core.base import BaseType

# Marks the offending segment in definition error paths.
ARROW = "→"


@dataclass
class ErrorContext:
    """
    Diagnostic carrier for a single validate/wrap call.

    Attributes:
        entry_point: Label of the public operation, e.g. "Map set error".
        level: Severity to post mismatches at.
        path: Structural path built while descending, e.g. "Map<User>[a].age".
        last_error: Last diagnostic posted without aborting the operation.
    """

    entry_point: str
    level: Severity
    path: str
    last_error: Optional[TypedTreeError] = None
    parent: Optional["ErrorContext"] = field(default=None, repr=False, compare=False)

    def descend(self, segment: str) -> "ErrorContext":
        """Return a child context whose path is extended by ``segment``."""
        return replace(self, path=f"{self.path}{segment}", last_error=None, parent=self)

    def record(self, error: TypedTreeError) -> None:
        """Remember ``error`` here and on every ancestor context."""
        context: Optional[ErrorContext] = self
        while context is not None:
            context.last_error = error
            context = context.parent


def value_type_name(value: Any) -> str:
    """
    Describe the type of ``value`` for diagnostics.
    """
    if value is None:
        return "None"
    display_name = getattr(type(value), "display_name", None)
    if display_name:
        return display_name
    return type(value).__name__


def mismatch_message(
    error_context: ErrorContext,
    expected: str,
    actual: Any,
    override_path: Optional[str] = None,
    template: Optional[str] = None,
) -> str:
    """
    Build the standard mismatch message.

    :param error_context: Context of the failing call.
    :param expected: Description of the expected type(s).
    :param actual: The offending value.
    :param override_path: Path to report instead of the context's path.
    :param template: Kind of the checked item, e.g. "key" or "value".
    """
    path = override_path or error_context.path
    kind = f"{template} of " if template else ""
    return f'{error_context.entry_point}: "{path}" expected {kind}type {expected} but got {value_type_name(actual)}'


def report(mailbox: Mailbox, error_context: ErrorContext, error: TypedTreeError) -> None:
    """
    Post ``error`` at the context's severity. When the post does not raise,
    the error stays available as ``error_context.last_error``.
    """
    error_context.record(error)
    mailbox.post(error_context.level, error)


def validate_null_value(type_: "type[BaseType]", value: Any) -> bool:
    """
    True when ``value`` is None and ``type_`` was declared nullable.
    """
    if value is not None:
        return False
    options = getattr(type_, "options", None)
    return bool(options is not None and options.nullable)
