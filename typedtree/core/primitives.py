# typedtree/core/primitives.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
"""
Scalar leaf types. Scalars are stored as plain Python values inside typed
containers, so these descriptors are never instantiated: calling one
returns the validated value.
"""

from typing import Any, Optional, Tuple

from typedtree.core.base import DataType, TypeOptions
from typedtree.core.diagnostics import Severity
from typedtree.core.errors import TypeMismatchError
from typedtree.core.registry import get_default_registry
from typedtree.core.validation import ErrorContext, mismatch_message, report, validate_null_value


class Primitive(DataType):
    """
    Base for scalar descriptors.
    """

    display_name = "Primitive"
    type_id = "Primitive"
    _python_types: Tuple[type, ...] = ()
    _excluded_types: Tuple[type, ...] = ()
    _empty: Any = None

    def __new__(cls, value: Any = None) -> Any:
        return cls.create(value)

    @classmethod
    def validate_type(cls, value: Any) -> bool:
        if not isinstance(value, cls._python_types) or isinstance(value, cls._excluded_types):
            return False
        return cls._accepts(value)

    @classmethod
    def allow_plain_val(cls, value: Any, error_details: Optional[dict] = None) -> bool:
        if validate_null_value(cls, value) or cls.validate_type(value):
            return True
        if error_details is not None:
            error_details.update(path=cls.display_name, expected=cls.describe(), actual=value)
        return False

    @classmethod
    def _default_payload(cls) -> Any:
        return cls._empty

    @classmethod
    def wrap_value(
        cls, value: Any, spec: Any, options: Optional[TypeOptions], error_context: ErrorContext
    ) -> Any:
        if cls.allow_plain_val(value):
            return value
        expected = cls.describe()
        report(
            cls.mailbox(),
            error_context,
            TypeMismatchError(
                mismatch_message(error_context, expected, value),
                path=error_context.path,
                expected=expected,
                actual=value,
            ),
        )
        return cls.defaults()

    @classmethod
    def create(cls, value: Any = None, read_only: bool = False, error_context: Optional[ErrorContext] = None) -> Any:
        if value is None and not validate_null_value(cls, value):
            return cls.defaults()
        if error_context is None:
            error_context = cls.create_error_context(f"{cls.display_name} create error", Severity.ERROR)
        return cls.wrap_value(value, None, cls.options, error_context)


class String(Primitive):
    display_name = "String"
    type_id = "String"
    _python_types = (str,)
    _empty = ""


class Number(Primitive):
    display_name = "Number"
    type_id = "Number"
    _python_types = (int, float)
    _excluded_types = (bool,)
    _empty = 0


class Boolean(Primitive):
    display_name = "Boolean"
    type_id = "Boolean"
    _python_types = (bool,)
    _empty = False


for _scalar in (String, Number, Boolean):
    _scalar.base_type = _scalar
    get_default_registry().register(_scalar)
