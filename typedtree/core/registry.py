# typedtree/core/registry.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterator, Optional

from typedtree.core.diagnostics import DiagnosticPolicy, Mailbox, Severity
from typedtree.core.errors import DefinitionError, TypeMismatchError
from typedtree.core.generics import SubtypeSet, get_matching_type, tagged
from typedtree.core.validation import ErrorContext, mismatch_message, report
from typedtree.runtime.invalidation import ChangeClock

logger = logging.getLogger(__name__)


class TypeRegistry:
    """
    Owns a set of declared types together with the change clock and the
    diagnostics mailbox their instances use.

    Lifecycle: construct the registry, define types into it, then build values.

    Example:
        registry = TypeRegistry("orders")
        Order = registry.define("Order", lambda Order: {"qty": Number.with_default(1)})
        order = Order.create({"qty": 3})
    """

    def __init__(
        self,
        name: str = "default",
        policy: DiagnosticPolicy = DiagnosticPolicy.RAISE,
        mailbox: Optional[Mailbox] = None,
    ) -> None:
        """
        :param name: Registry name, also used for the default mailbox.
        :param policy: Diagnostics policy of the default mailbox.
        :param mailbox: Mailbox to use instead of a new one.
        """
        self.name = name
        self.mailbox = mailbox or Mailbox(name, policy)
        self.clock = ChangeClock()
        self._types: Dict[str, Any] = {}

    def register(self, type_: Any) -> Any:
        """
        Add ``type_`` under its type_id.

        :raises DefinitionError: If another type already uses the same type_id.
        """
        existing = self._types.get(type_.type_id)
        if existing is not None and existing is not type_:
            self.mailbox.fatal(
                DefinitionError(
                    f'Type id "{type_.type_id}" is already registered in registry "{self.name}"',
                    path=type_.type_id,
                )
            )
        self._types[type_.type_id] = type_
        logger.debug("registered type %s in registry %s", type_.type_id, self.name)
        return type_

    def define(
        self,
        name: str,
        spec: Optional[Callable[[Any], Dict[str, Any]]] = None,
        base: Optional[type] = None,
        type_id: Optional[str] = None,
    ) -> Any:
        """Declare a type in this registry. See ``define_type``."""
        from typedtree.core.define import define_type

        return define_type(name, spec, base, registry=self, type_id=type_id)

    def get(self, type_id: str) -> Optional[Any]:
        return self._types.get(type_id)

    def __contains__(self, type_id: object) -> bool:
        return type_id in self._types

    def __iter__(self) -> Iterator[Any]:
        return iter(list(self._types.values()))

    def __len__(self) -> int:
        return len(self._types)

    def tagged_union(self, *type_ids: str) -> SubtypeSet:
        """
        Tagged union of the named types, or of every registered type.
        """
        names = type_ids or tuple(self._types)
        return tagged(*(self._types[type_id] for type_id in names))

    def create_tagged(self, data: Any, read_only: bool = False) -> Any:
        """
        Rebuild a typed value from data carrying a ``_type`` discriminant.

        Only types that can be constructed as declared take part, so a tagged
        export of a root ``Map.of(T)`` (tagged ``Map``) does not resolve;
        rebuild such values with ``Map.of(T).create(data)``.

        :raises TypeMismatchError: If no constructible registered type matches ``data``.
        """
        candidates = [candidate for candidate in self._types.values() if not candidate.report_definition_errors()]
        union = tagged(*candidates)
        type_ = get_matching_type(union, data)
        if type_ is None:
            context = ErrorContext(f'Registry "{self.name}" create error', Severity.ERROR, "")
            expected = "|".join(candidate.type_id for candidate in candidates)
            report(
                self.mailbox,
                context,
                TypeMismatchError(
                    mismatch_message(context, expected, data, override_path="<root>"),
                    path="<root>",
                    expected=expected,
                    actual=data,
                ),
            )
            return None
        return type_.create(data, read_only)


_default_registry: Optional[TypeRegistry] = None


def get_default_registry() -> TypeRegistry:
    """
    The registry used by types declared without an explicit one.
    """
    global _default_registry
    if _default_registry is None:
        _default_registry = TypeRegistry("default")
    return _default_registry
