# typedtree/runtime/readonly.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
from typing import Any


def as_read_only(value: Any) -> Any:
    """
    Project ``value`` to its read-only form.

    Typed instances return their cached projection, lists and tuples are
    projected element-wise, anything else is returned unchanged.
    """
    if isinstance(value, list):
        return [as_read_only(item) for item in value]
    if isinstance(value, tuple):
        return tuple(as_read_only(item) for item in value)
    if isinstance(value, type):
        return value
    project = getattr(value, "as_read_only", None)
    return project() if callable(project) else value


def is_read_only(value: Any) -> bool:
    """
    True for read-only typed instances. Untyped values count as read-only.
    """
    check = getattr(value, "is_read_only", None)
    if isinstance(value, type) or not callable(check):
        return True
    return bool(check())
