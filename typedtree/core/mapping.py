# typedtree/core/mapping.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
"""
Keyed typed container.

Keys are strings, values are resolved against the container's subtype
constraint. Accepts a typed instance, a mapping or an iterable of
``(key, value)`` pairs as input.
"""

from __future__ import annotations

from collections.abc import Hashable, Iterable, Mapping
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from typedtree.core.base import BaseType, TypeOptions, can_merge, same_value
from typedtree.core.container import Container
from typedtree.core.define import define_type
from typedtree.core.diagnostics import Mailbox, Severity
from typedtree.core.errors import KeyMismatchError, MalformedPayloadError
from typedtree.core.generics import TYPE_KEY, get_matching_type, to_string
from typedtree.core.type_match import NO_MATCH
from typedtree.core.validation import ErrorContext, mismatch_message, report, validate_null_value
from typedtree.runtime.readonly import as_read_only

Pairs = List[Tuple[Any, Any]]


def _entries(value: Any) -> Optional[Pairs]:
    """
    Normalize map input to a list of pairs, or None for unsupported shapes.
    """
    if isinstance(value, BaseType):
        payload = value._payload
        if not isinstance(payload, dict):
            return None
        if value.is_read_only():
            return [(key, as_read_only(item)) for key, item in payload.items()]
        return list(payload.items())
    if isinstance(value, Mapping):
        return list(value.items())
    if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
        return None
    pairs: Pairs = []
    for item in value:
        if not isinstance(item, (list, tuple)) or len(item) != 2:
            return None
        pairs.append((item[0], item[1]))
    return pairs


class _TypedMap(Container):
    """
    Typed string-keyed map. Declare the value type with ``Map.of(SomeType)``.

    Runtime Invariants:
    - Every key is a string and the reserved ``_type`` key is never stored.
    - Every value satisfies the subtype constraint.
    """

    @classmethod
    def _default_payload(cls) -> Dict[str, Any]:
        return {}

    @classmethod
    def validate(cls, value: Any) -> bool:
        if cls.validate_type(value):
            return isinstance(value._payload, dict)
        return _entries(value) is not None

    @classmethod
    def allow_plain_val(cls, value: Any, error_details: Optional[dict] = None) -> bool:
        if validate_null_value(cls, value):
            return True
        if isinstance(value, BaseType):
            return False
        pairs = _entries(value)
        if pairs is None:
            return False
        subtypes = cls.subtypes()
        if subtypes:
            for key, item in pairs:
                if key == TYPE_KEY:
                    continue
                if not isinstance(key, str) or get_matching_type(subtypes, item) is None:
                    if error_details is not None:
                        error_details.update(
                            path=f"{error_details.get('path', cls.display_name)}[{key}]",
                            expected=to_string(subtypes),
                            actual=item,
                        )
                    return False
        return cls._accepts(value)

    @classmethod
    def _validate_entry_key(cls, key: Any, error_context: ErrorContext, mailbox: Mailbox) -> bool:
        if isinstance(key, str):
            return True
        report(
            mailbox,
            error_context,
            KeyMismatchError(
                mismatch_message(error_context, "<string>", key, template="key"),
                path=error_context.path,
                expected="<string>",
                actual=key,
            ),
        )
        return False

    @classmethod
    def _wrap_entries(cls, pairs: Pairs, options: Optional[TypeOptions], error_context: ErrorContext) -> Dict[str, Any]:
        mailbox = cls.mailbox()
        result: Dict[str, Any] = {}
        for key, item in pairs:
            if key == TYPE_KEY:
                continue
            entry_context = error_context.descend(f"[{key}]")
            if not cls._validate_entry_key(key, entry_context, mailbox):
                continue
            wrapped = cls._wrap_entry_value(item, options, entry_context, mailbox)
            if wrapped is not NO_MATCH:
                result[key] = wrapped
        return result

    @classmethod
    def _pairs_or_report(cls, value: Any, error_context: ErrorContext) -> Optional[Pairs]:
        pairs = _entries(value)
        if pairs is None:
            report(
                cls.mailbox(),
                error_context,
                MalformedPayloadError(
                    f"{error_context.entry_point}: unknown or incompatible {cls.display_name} value {value!r}",
                    value=value,
                ),
            )
        return pairs

    @classmethod
    def wrap_value(
        cls, value: Any, spec: Any, options: Optional[TypeOptions], error_context: ErrorContext
    ) -> Dict[str, Any]:
        pairs = cls._pairs_or_report(value, error_context)
        if pairs is None:
            return {}
        return cls._wrap_entries(pairs, options, error_context)

    # ----- single entry access -----

    def _readable_key(self, key: Any, operation: str) -> bool:
        cls = type(self)
        cls._validate_entry_key(key, self._error_context(operation, Severity.WARNING), cls.mailbox())
        return isinstance(key, Hashable)

    def get(self, key: Any) -> Any:
        """
        The entry stored under ``key``, or None. A non-string key posts a
        warning and the lookup continues.
        """
        if not self._readable_key(key, "get"):
            return None
        return self._expose(self._payload.get(key))

    def has(self, key: Any) -> bool:
        if not self._readable_key(key, "has"):
            return False
        return key in self._payload

    def set(self, key: Any, value: Any) -> "_TypedMap":
        """
        Store ``value`` under ``key``. No-op on a read-only map.

        :return: The map itself.
        :raises KeyMismatchError: If ``key`` is not a string.
        :raises TypeMismatchError: If ``value`` matches none of the subtypes.
        """
        if not self._is_dirtyable():
            return self
        cls = type(self)
        context = self._error_context("set").descend(f"[{key}]")
        if not cls._validate_entry_key(key, context, cls.mailbox()):
            return self
        item = self._wrap_entry(value, context)
        if item is NO_MATCH:
            return self
        previous = self._value.get(key)
        if key in self._value and same_value(previous, item):
            return self
        self._value[key] = item
        self._adopt(item)
        self._release(previous)
        self._set_dirty()
        return self

    def delete(self, key: Any) -> bool:
        """
        Remove ``key``. Returns False when absent or when the map is read-only.
        """
        if not self._is_dirtyable():
            return False
        cls = type(self)
        if not cls._validate_entry_key(key, self._error_context("delete"), cls.mailbox()):
            return False
        if key not in self._value:
            return False
        self._release(self._value.pop(key))
        self._set_dirty()
        return True

    def clear(self) -> None:
        if self._is_dirtyable() and self._value:
            removed, self._value = self._value, {}
            self._release(*removed.values())
            self._set_dirty()

    # ----- bulk update -----

    def set_value(self, value: Any, error_context: Optional[ErrorContext] = None) -> bool:
        """
        Shallow replace with ``value``. Keys missing from ``value`` are dropped.

        :return: True if any key was added, removed or changed.
        """
        if not self._is_dirtyable():
            return False
        cls = type(self)
        error_context = error_context or self._error_context("setValue")
        new_value = cls.wrap_value(value, None, self._options, error_context)
        old_value = self._value
        changed = new_value.keys() != old_value.keys() or any(
            not same_value(old_value[key], item) for key, item in new_value.items()
        )
        if changed:
            self._value = new_value
            self._adopt_all()
            self._release(*old_value.values())
            self._set_dirty()
        return changed

    def set_value_deep(self, value: Any, error_context: Optional[ErrorContext] = None) -> bool:
        """
        Recursive merge of ``value``. Existing mutable entries compatible with
        the incoming data are updated in place and keep their identity.
        Keys missing from ``value`` are dropped.

        :return: True if anything in this subtree changed.
        """
        if not self._is_dirtyable():
            return False
        cls = type(self)
        error_context = error_context or self._error_context("setValueDeep")
        pairs = cls._pairs_or_report(value, error_context)
        if pairs is None:
            return False
        old_value = self._value
        result: Dict[str, Any] = {}
        changed = False
        for key, item in pairs:
            if key == TYPE_KEY:
                continue
            entry_context = error_context.descend(f"[{key}]")
            if not cls._validate_entry_key(key, entry_context, cls.mailbox()):
                continue
            if key in old_value:
                old = old_value[key]
                if same_value(old, item):
                    result[key] = old
                    continue
                if can_merge(old, item):
                    changed = old.set_value_deep(item) or changed
                    result[key] = old
                    continue
            wrapped = self._wrap_entry(item, entry_context)
            if wrapped is NO_MATCH:
                continue
            result[key] = wrapped
            changed = True
        if not changed:
            changed = any(key not in result for key in old_value)
        if changed:
            self._value = result
            self._adopt_all()
            self._release(*old_value.values())
            self._set_dirty()
        return changed

    # ----- iteration -----

    @property
    def size(self) -> int:
        return len(self._payload)

    def keys(self) -> List[str]:
        return list(self._payload)

    def values(self) -> List[Any]:
        return [self._expose(item) for item in self._payload.values()]

    def entries(self) -> List[Tuple[str, Any]]:
        return [(key, self._expose(item)) for key, item in self._payload.items()]

    def for_each(self, callback: Callable[[Any, str, "_TypedMap"], Any]) -> None:
        """Call ``callback(value, key, map)`` for every entry."""
        for key, item in list(self._payload.items()):
            callback(self._expose(item), key, self)

    def __len__(self) -> int:
        return len(self._payload)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, Hashable) and key in self._payload

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._payload))

    def __getitem__(self, key: str) -> Any:
        if key not in self:
            raise KeyError(key)
        return self._expose(self._payload[key])

    # ----- export -----

    def to_json(self, recursive: bool = True, typed: bool = False) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        for key, item in self._payload.items():
            if recursive and isinstance(item, BaseType):
                result[key] = item.to_json(True, typed)
            else:
                result[key] = self._expose(item)
        if typed:
            result[TYPE_KEY] = type(self).type_id
        return result

    def to_js(self, typed: bool = False) -> Dict[str, Any]:
        result = {key: item.to_js(typed) if isinstance(item, BaseType) else item for key, item in self._payload.items()}
        if typed:
            result[TYPE_KEY] = type(self).type_id
        return result

    def dirtyable_elements_iterator(self, visit: Callable[[Any, Any], None]) -> None:
        for item in list(self._payload.values()):
            if isinstance(item, BaseType):
                visit(self, item)


TypedMap = define_type("Map", base=_TypedMap)
Map = TypedMap
