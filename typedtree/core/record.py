# typedtree/core/record.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Callable, Dict, Optional

from typedtree.core.base import BaseType, TypeOptions, can_merge, same_value
from typedtree.core.errors import MalformedPayloadError
from typedtree.core.generics import TYPE_KEY, describe_type
from typedtree.core.type_match import NO_MATCH, validate_and_wrap
from typedtree.core.validation import ErrorContext, report, validate_null_value
from typedtree.runtime.readonly import as_read_only


class Field:
    """
    Data descriptor for one declared record field. Reads expose the stored
    entry, writes go through the validate/wrap pipeline.
    """

    def __init__(self, name: str, field_type: Any) -> None:
        self.name = name
        self.field_type = field_type

    def __get__(self, instance: Optional["Record"], owner: type) -> Any:
        if instance is None:
            return self
        return instance._expose(instance._payload[self.name])

    def __set__(self, instance: "Record", value: Any) -> None:
        instance._set_field(self.name, value)

    def __repr__(self) -> str:
        return f"Field({self.name!r}, {describe_type(self.field_type)})"


class Record(BaseType):
    """
    Structured value with a fixed set of typed fields, declared through
    ``define_type``.
    """

    display_name = "Record"
    type_id = "Record"

    @classmethod
    def get_fields_spec(cls) -> Dict[str, Any]:
        """Field name to descriptor mapping, as declared."""
        return dict(cls._spec)

    @classmethod
    def _default_payload(cls) -> Dict[str, Any]:
        return {name: field_type.defaults() for name, field_type in cls._spec.items()}

    @classmethod
    def allow_plain_val(cls, value: Any, error_details: Optional[dict] = None) -> bool:
        if validate_null_value(cls, value):
            return True
        if not isinstance(value, Mapping):
            return False
        tag = value.get(TYPE_KEY)
        if tag is not None and tag != cls.type_id:
            return False
        for name, field_type in cls._spec.items():
            if name not in value:
                continue
            item = value[name]
            if field_type.validate_type(item) or field_type.allow_plain_val(item):
                continue
            if not field_type.allows_retyped(item):
                if error_details is not None:
                    error_details.update(
                        path=f"{cls.display_name}.{name}", expected=describe_type(field_type), actual=item
                    )
                return False
        return cls._accepts(value)

    @classmethod
    def test(cls, value: Any) -> bool:
        if cls.validate_type(value):
            return True
        if not isinstance(value, Mapping):
            return False
        return all(name in value and field_type.test(value[name]) for name, field_type in cls._spec.items())

    @classmethod
    def _source_fields(cls, value: Any, error_context: ErrorContext) -> Optional[Mapping]:
        if isinstance(value, BaseType) and isinstance(value._payload, dict):
            if value.is_read_only():
                return {name: as_read_only(item) for name, item in value._payload.items()}
            return value._payload
        if isinstance(value, Mapping):
            return value
        report(
            cls.mailbox(),
            error_context,
            MalformedPayloadError(
                f"{error_context.entry_point}: unknown or incompatible {cls.display_name} value {value!r}",
                value=value,
            ),
        )
        return None

    @classmethod
    def wrap_value(
        cls, value: Any, spec: Dict[str, Any], options: Optional[TypeOptions], error_context: ErrorContext
    ) -> Dict[str, Any]:
        source = cls._source_fields(value, error_context) or {}
        mailbox = cls.mailbox()
        result: Dict[str, Any] = {}
        for name, field_type in spec.items():
            field_context = error_context.descend(f".{name}")
            if name in source:
                item = validate_and_wrap(source[name], field_type, field_context, mailbox)
                if item is not NO_MATCH:
                    result[name] = item
                    continue
            result[name] = validate_and_wrap(field_type.defaults(), field_type, field_context, mailbox)
        return result

    # ----- field access -----

    def _set_field(self, name: str, value: Any) -> None:
        if not self._is_dirtyable():
            return
        cls = type(self)
        context = self._error_context("set").descend(f".{name}")
        item = validate_and_wrap(value, cls._spec[name], context, cls.mailbox())
        if item is NO_MATCH or same_value(self._value[name], item):
            return
        previous = self._value[name]
        self._value[name] = item
        self._adopt(item)
        self._release(previous)
        self._set_dirty()

    def set_value(self, value: Any, error_context: Optional[ErrorContext] = None) -> bool:
        """
        Shallow update from the fields present in ``value``.

        :return: True if any field was replaced.
        """
        if not self._is_dirtyable():
            return False
        cls = type(self)
        error_context = error_context or self._error_context("setValue")
        source = cls._source_fields(value, error_context)
        if not source:
            return False
        changed = False
        for name, field_type in cls._spec.items():
            if name not in source:
                continue
            item = validate_and_wrap(source[name], field_type, error_context.descend(f".{name}"), cls.mailbox())
            if item is NO_MATCH or same_value(self._value[name], item):
                continue
            previous = self._value[name]
            self._value[name] = item
            self._adopt(item)
            self._release(previous)
            changed = True
        if changed:
            self._set_dirty()
        return changed

    def set_value_deep(self, value: Any, error_context: Optional[ErrorContext] = None) -> bool:
        """
        Recursive update from the fields present in ``value``. Nested mutable
        values compatible with the incoming data are updated in place, so
        unchanged sub-objects keep their identity.

        :return: True if anything in this subtree changed.
        """
        if not self._is_dirtyable():
            return False
        cls = type(self)
        error_context = error_context or self._error_context("setValueDeep")
        source = cls._source_fields(value, error_context)
        if not source:
            return False
        own_changed = False
        nested_changed = False
        for name, field_type in cls._spec.items():
            if name not in source:
                continue
            old, item = self._value[name], source[name]
            if same_value(old, item):
                continue
            if can_merge(old, item):
                nested_changed = old.set_value_deep(item) or nested_changed
                continue
            wrapped = validate_and_wrap(item, field_type, error_context.descend(f".{name}"), cls.mailbox())
            if wrapped is NO_MATCH or same_value(old, wrapped):
                continue
            self._value[name] = wrapped
            self._adopt(wrapped)
            self._release(old)
            own_changed = True
        if own_changed:
            self._set_dirty()
        return own_changed or nested_changed

    # ----- traversal and export -----

    def dirtyable_elements_iterator(self, visit: Callable[[Any, Any], None]) -> None:
        for item in list(self._payload.values()):
            if isinstance(item, BaseType):
                visit(self, item)

    def to_json(self, recursive: bool = True, typed: bool = False) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        for name, item in self._payload.items():
            if recursive and isinstance(item, BaseType):
                result[name] = item.to_json(True, typed)
            else:
                result[name] = self._expose(item)
        if typed:
            result[TYPE_KEY] = type(self).type_id
        return result

    def to_js(self, typed: bool = False) -> Dict[str, Any]:
        result = {
            name: item.to_js(typed) if isinstance(item, BaseType) else item for name, item in self._payload.items()
        }
        if typed:
            result[TYPE_KEY] = type(self).type_id
        return result
