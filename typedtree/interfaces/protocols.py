# typedtree/interfaces/protocols.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
from typing import Any, Callable, Optional, Protocol, runtime_checkable


@runtime_checkable
class TypeDescriptor(Protocol):
    """
    Protocol every data type satisfies. Descriptors are classes; the methods
    below are classmethods.

    Runtime Invariants:
    - A descriptor is immutable once its definition returns.
    - ``type_id`` is unique within the descriptor's registry.
    """

    display_name: str
    type_id: str

    def test(self, value: Any) -> bool: ...

    def wrap_value(self, value: Any, spec: Any, options: Any, error_context: Any) -> Any: ...

    def defaults(self) -> Any: ...

    def with_default(
        self, default_value: Any = ..., validate: Optional[Callable[[Any], bool]] = None, options: Any = None
    ) -> Any: ...

    def validate_type(self, value: Any) -> bool: ...

    def allow_plain_val(self, value: Any, error_details: Optional[dict] = None) -> bool: ...

    def allows_retyped(self, value: Any) -> bool: ...

@runtime_checkable
class Dirtyable(Protocol):
    """
    Protocol for values taking part in change tracking.
    """

    def is_invalidated(self, memoize: bool = False) -> bool: ...

    def revalidate(self) -> None: ...

    def reset_validation_check(self) -> None: ...

    def dirtyable_elements_iterator(self, visit: Callable[[Any, Any], None]) -> None: ...


def is_type_descriptor(candidate: Any) -> bool:
    """
    True when ``candidate`` is a class implementing TypeDescriptor.
    """
    return isinstance(candidate, type) and isinstance(candidate, TypeDescriptor)
