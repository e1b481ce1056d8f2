# typedtree/core/sequence.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Callable, Iterator, List, Optional

from typedtree.core.base import BaseType, TypeOptions, can_merge, same_value
from typedtree.core.container import Container
from typedtree.core.define import define_type
from typedtree.core.errors import MalformedPayloadError
from typedtree.core.generics import get_matching_type, to_string
from typedtree.core.type_match import NO_MATCH
from typedtree.core.validation import ErrorContext, report, validate_null_value
from typedtree.runtime.readonly import as_read_only


def _items(value: Any) -> Optional[List[Any]]:
    if isinstance(value, BaseType):
        payload = value._payload
        if not isinstance(payload, list):
            return None
        return as_read_only(payload) if value.is_read_only() else list(payload)
    if isinstance(value, (str, bytes, Mapping)) or not isinstance(value, Iterable):
        return None
    return list(value)


def _identity(value: Any) -> Any:
    return value._source if isinstance(value, BaseType) else value


class _TypedList(Container):
    """
    Ordered typed container. Declare the item type with ``List.of(SomeType)``.

    Runtime Invariants:
    - Every item satisfies the subtype constraint.
    - Mutators on a read-only list change nothing and return neutral results.
    """

    @classmethod
    def _default_payload(cls) -> List[Any]:
        return []

    @classmethod
    def validate(cls, value: Any) -> bool:
        if cls.validate_type(value):
            return isinstance(value._payload, list)
        return _items(value) is not None

    @classmethod
    def allow_plain_val(cls, value: Any, error_details: Optional[dict] = None) -> bool:
        if validate_null_value(cls, value):
            return True
        if not isinstance(value, (list, tuple)):
            return False
        subtypes = cls.subtypes()
        if subtypes:
            for index, item in enumerate(value):
                if get_matching_type(subtypes, item) is None:
                    if error_details is not None:
                        error_details.update(
                            path=f"{error_details.get('path', cls.display_name)}[{index}]",
                            expected=to_string(subtypes),
                            actual=item,
                        )
                    return False
        return cls._accepts(value)

    @classmethod
    def _items_or_report(cls, value: Any, error_context: ErrorContext) -> Optional[List[Any]]:
        items = _items(value)
        if items is None:
            report(
                cls.mailbox(),
                error_context,
                MalformedPayloadError(
                    f"{error_context.entry_point}: unknown or incompatible {cls.display_name} value {value!r}",
                    value=value,
                ),
            )
        return items

    @classmethod
    def _wrap_items(
        cls, items: List[Any], options: Optional[TypeOptions], error_context: ErrorContext, offset: int = 0
    ) -> List[Any]:
        mailbox = cls.mailbox()
        result: List[Any] = []
        for index, item in enumerate(items, offset):
            wrapped = cls._wrap_entry_value(item, options, error_context.descend(f"[{index}]"), mailbox)
            if wrapped is not NO_MATCH:
                result.append(wrapped)
        return result

    @classmethod
    def wrap_value(
        cls, value: Any, spec: Any, options: Optional[TypeOptions], error_context: ErrorContext
    ) -> List[Any]:
        items = cls._items_or_report(value, error_context)
        if items is None:
            return []
        return cls._wrap_items(items, options, error_context)

    def _mutate(self, items: List[Any], operation: str, offset: int) -> List[Any]:
        wrapped = type(self)._wrap_items(items, self._options, self._error_context(operation), offset)
        for item in wrapped:
            self._adopt(item)
        return wrapped

    def _normalize_index(self, index: int) -> Optional[int]:
        length = len(self._payload)
        if index < 0:
            index += length
        if 0 <= index < length:
            return index
        return None

    # ----- item access -----

    @property
    def length(self) -> int:
        return len(self._payload)

    def at(self, index: int) -> Any:
        """
        The item at ``index`` (negative counts from the end), or None when
        out of range.
        """
        position = self._normalize_index(index)
        if position is None:
            return None
        return self._expose(self._payload[position])

    def set_at(self, index: int, value: Any) -> "_TypedList":
        """
        Replace the item at ``index``; ``index == length`` appends.

        :raises IndexError: If ``index`` is out of range.
        :raises TypeMismatchError: If ``value`` matches none of the subtypes.
        """
        if not self._is_dirtyable():
            return self
        if index == len(self._value):
            self.push(value)
            return self
        position = self._normalize_index(index)
        if position is None:
            raise IndexError(f"{type(self).describe()} index {index} out of range")
        wrapped = self._mutate([value], "setAt", position)
        if not wrapped or same_value(self._value[position], wrapped[0]):
            return self
        previous = self._value[position]
        self._value[position] = wrapped[0]
        self._release(previous)
        self._set_dirty()
        return self

    def index_of(self, value: Any) -> int:
        """Position of ``value`` (identity for typed items), or -1."""
        for index, item in enumerate(self._payload):
            if same_value(_identity(item), _identity(value)):
                return index
        return -1

    # ----- mutators -----

    def push(self, *values: Any) -> int:
        """Append ``values`` and return the new length."""
        if not self._is_dirtyable():
            return len(self._payload)
        wrapped = self._mutate(list(values), "push", len(self._value))
        if wrapped:
            self._value.extend(wrapped)
            self._set_dirty()
        return len(self._value)

    def unshift(self, *values: Any) -> int:
        """Prepend ``values`` and return the new length."""
        if not self._is_dirtyable():
            return len(self._payload)
        wrapped = self._mutate(list(values), "unshift", 0)
        if wrapped:
            self._value[0:0] = wrapped
            self._set_dirty()
        return len(self._value)

    def pop(self) -> Any:
        """Remove and return the last item, or None."""
        if not self._is_dirtyable() or not self._value:
            return None
        item = self._value.pop()
        self._release(item)
        self._set_dirty()
        return item

    def shift(self) -> Any:
        """Remove and return the first item, or None."""
        if not self._is_dirtyable() or not self._value:
            return None
        item = self._value.pop(0)
        self._release(item)
        self._set_dirty()
        return item

    def splice(self, start: int, delete_count: Optional[int] = None, *values: Any) -> List[Any]:
        """
        Remove ``delete_count`` items at ``start`` (all remaining when None)
        and insert ``values`` in their place.

        :return: The removed items.
        """
        if not self._is_dirtyable():
            return []
        length = len(self._value)
        if start < 0:
            start = max(length + start, 0)
        start = min(start, length)
        if delete_count is None:
            delete_count = length - start
        delete_count = max(0, min(delete_count, length - start))
        wrapped = self._mutate(list(values), "splice", start)
        removed = self._value[start : start + delete_count]
        self._value[start : start + delete_count] = wrapped
        if removed or wrapped:
            self._release(*removed)
            self._set_dirty()
        return removed

    def clear(self) -> None:
        if self._is_dirtyable() and self._value:
            removed, self._value = self._value, []
            self._release(*removed)
            self._set_dirty()

    # ----- bulk update -----

    def set_value(self, value: Any, error_context: Optional[ErrorContext] = None) -> bool:
        """
        Shallow replace with ``value``.

        :return: True if the length or any item changed.
        """
        if not self._is_dirtyable():
            return False
        cls = type(self)
        error_context = error_context or self._error_context("setValue")
        new_value = cls.wrap_value(value, None, self._options, error_context)
        old_value = self._value
        changed = len(new_value) != len(old_value) or any(
            not same_value(old, new) for old, new in zip(old_value, new_value)
        )
        if changed:
            self._value = new_value
            self._adopt_all()
            self._release(*old_value)
            self._set_dirty()
        return changed

    def set_value_deep(self, value: Any, error_context: Optional[ErrorContext] = None) -> bool:
        """
        Recursive merge of ``value`` by position. Existing mutable items
        compatible with the incoming data are updated in place.

        :return: True if anything in this subtree changed.
        """
        if not self._is_dirtyable():
            return False
        cls = type(self)
        error_context = error_context or self._error_context("setValueDeep")
        items = cls._items_or_report(value, error_context)
        if items is None:
            return False
        old_value = self._value
        result: List[Any] = []
        changed = len(items) != len(old_value)
        for index, item in enumerate(items):
            if index < len(old_value):
                old = old_value[index]
                if same_value(old, item):
                    result.append(old)
                    continue
                if can_merge(old, item):
                    changed = old.set_value_deep(item) or changed
                    result.append(old)
                    continue
            wrapped = cls._wrap_entry_value(item, self._options, error_context.descend(f"[{index}]"), cls.mailbox())
            if wrapped is NO_MATCH:
                changed = True
                continue
            result.append(wrapped)
            changed = True
        if changed:
            self._value = result
            self._adopt_all()
            self._release(*old_value)
            self._set_dirty()
        return changed

    # ----- iteration -----

    def for_each(self, callback: Callable[[Any, int, "_TypedList"], Any]) -> None:
        """Call ``callback(item, index, list)`` for every item."""
        for index, item in enumerate(list(self._payload)):
            callback(self._expose(item), index, self)

    def __len__(self) -> int:
        return len(self._payload)

    def __iter__(self) -> Iterator[Any]:
        return iter([self._expose(item) for item in self._payload])

    def __getitem__(self, index: int) -> Any:
        position = self._normalize_index(index)
        if position is None:
            raise IndexError(index)
        return self._expose(self._payload[position])

    # ----- export -----

    def to_json(self, recursive: bool = True, typed: bool = False) -> List[Any]:
        return [
            item.to_json(True, typed) if recursive and isinstance(item, BaseType) else self._expose(item)
            for item in self._payload
        ]

    def to_js(self, typed: bool = False) -> List[Any]:
        return [item.to_js(typed) if isinstance(item, BaseType) else item for item in self._payload]

    def dirtyable_elements_iterator(self, visit: Callable[[Any, Any], None]) -> None:
        for item in list(self._payload):
            if isinstance(item, BaseType):
                visit(self, item)


TypedList = define_type("List", base=_TypedList)
