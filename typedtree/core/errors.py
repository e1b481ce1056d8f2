# typedtree/core/errors.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
from typing import Any, Dict, Optional


class TypedTreeError(Exception):
    """
    Base exception class for errors within the typed value runtime.

    :param message: Human readable description.
    :param details: Optional structured context for the error.
    """

    def __init__(self, message: str = "", details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.details: Dict[str, Any] = details or {}


class DefinitionError(TypedTreeError):
    """
    Raised when a type was declared incorrectly, e.g. a generic container
    without subtype constraints.
    """

    def __init__(self, message: str = "", path: str = "", details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, details)
        self.path = path


class TypeMismatchError(TypedTreeError):
    """
    Raised when a value does not satisfy any candidate type.
    """

    def __init__(
        self,
        message: str = "",
        path: str = "",
        expected: str = "",
        actual: Any = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details)
        self.path = path
        self.expected = expected
        self.actual = actual


class KeyMismatchError(TypeMismatchError):
    """
    Raised when a container key does not satisfy the key constraint.
    """


class MalformedPayloadError(TypedTreeError):
    """
    Raised when wrapped data has a shape the pipeline cannot interpret.
    """

    def __init__(self, message: str = "", value: Any = None, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, details)
        self.value = value
