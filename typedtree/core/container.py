# typedtree/core/container.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
from __future__ import annotations

from typing import Any, Dict, Optional

from typedtree.core.base import BaseType, TypeOptions
from typedtree.core.diagnostics import Mailbox
from typedtree.core.errors import TypeMismatchError
from typedtree.core.generics import (
    SubtypeSet,
    get_matching_type,
    normalize_types,
    report_definition_errors,
    to_unwrapped_string,
)
from typedtree.core.type_match import NO_MATCH, same_constraints, wrap_resolved
from typedtree.core.validation import ARROW, ErrorContext, mismatch_message, report


class Container(BaseType):
    """
    Generic container parameterized by a subtype constraint.

    Concrete containers are declared through ``define_type`` and specialized
    with ``of``; an unspecialized container cannot be instantiated.
    """

    display_name = "Container"
    type_id = "Container"

    @classmethod
    def of(cls, *subtypes: Any) -> type:
        """
        Specialize this container for ``subtypes``.

        Exactly one constraint is accepted: a descriptor, ``either(...)``, a
        sequence of descriptors or a ``tag -> descriptor`` mapping. Anything
        else is recorded as a definition error, raised on construction.
        """
        definition_error: Optional[Dict[str, str]] = None
        normalized: Optional[SubtypeSet] = None
        if not subtypes:
            definition_error = {
                "path": f"{ARROW}{cls.display_name}",
                "message": f"Missing types for {cls.display_name}. Use {cls.display_name}.of(SomeType)",
            }
        elif len(subtypes) == 1:
            normalized = normalize_types(subtypes[0])
        else:
            normalized = normalize_types(list(subtypes))
            definition_error = {
                "path": f"{cls.display_name}<{to_unwrapped_string(normalized)},{ARROW}unallowed>",
                "message": (
                    f"Too many types for {cls.display_name} ({len(subtypes)}). " f"Use {cls.display_name}.of(SomeType)"
                ),
            }
        specialized = cls._derive(
            options=TypeOptions(subtypes=normalized, definition_error=definition_error, nullable=cls._is_nullable())
        )
        registry = _registry_of(normalized)
        if registry is not None:
            specialized.registry = registry
        return specialized

    @classmethod
    def _is_nullable(cls) -> bool:
        return cls.options is not None and cls.options.nullable

    @classmethod
    def _coerce_options(cls, options: Any) -> Optional[TypeOptions]:
        if options is None or isinstance(options, (TypeOptions, dict)):
            return super()._coerce_options(options)
        return cls._merge_options({"subtypes": normalize_types(options)})

    @classmethod
    def subtypes(cls) -> Optional[SubtypeSet]:
        return cls.options.subtypes if cls.options is not None else None

    @classmethod
    def validate_type(cls, value: Any) -> bool:
        """True when ``value`` is an instance of this container with the same subtype constraint."""
        return super().validate_type(value) and same_constraints(value, cls)

    @classmethod
    def allows_retyped(cls, value: Any) -> bool:
        if not isinstance(value, cls.base_type or cls) or cls.validate_type(value):
            return False
        subtypes = cls.subtypes()
        return cls.allow_plain_val(value.to_js(bool(subtypes and subtypes.tagged)))

    @classmethod
    def report_definition_errors(cls, options: Optional[TypeOptions] = None) -> Optional[Dict[str, str]]:
        options = options or cls.options
        if options is not None and options.definition_error:
            return options.definition_error
        if options is None or not options.subtypes:
            return {
                "path": f"{ARROW}{cls.display_name}",
                "message": (
                    f"Untyped {cls.display_name}s are not supported, "
                    f"state the value type in the format {cls.display_name}.of(SomeType)"
                ),
            }
        value_error = report_definition_errors(options.subtypes, "value")
        if value_error:
            inner = value_error.get("path") or f"{ARROW}{to_unwrapped_string(options.subtypes)}"
            return {"path": f"{cls.display_name}<{inner}>", "message": value_error["message"]}
        return None

    @classmethod
    def _wrap_entry_value(
        cls, value: Any, options: Optional[TypeOptions], error_context: ErrorContext, mailbox: Mailbox
    ) -> Any:
        """
        Resolve and wrap one entry. Reports a mismatch and returns NO_MATCH
        when no subtype accepts ``value``.
        """
        subtypes = options.subtypes if options is not None else None
        type_ = get_matching_type(subtypes, value)
        if type_ is None:
            expected = to_unwrapped_string(subtypes)
            report(
                mailbox,
                error_context,
                TypeMismatchError(
                    mismatch_message(error_context, expected, value, template="value"),
                    path=error_context.path,
                    expected=expected,
                    actual=value,
                ),
            )
            return NO_MATCH
        return wrap_resolved(value, type_, error_context)

    def _wrap_entry(self, value: Any, error_context: ErrorContext) -> Any:
        return type(self)._wrap_entry_value(value, self._options, error_context, type(self).mailbox())


def _registry_of(subtypes: Optional[SubtypeSet]) -> Optional[Any]:
    for type_ in subtypes or ():
        registry = getattr(type_, "registry", None)
        if registry is not None:
            return registry
    return None
