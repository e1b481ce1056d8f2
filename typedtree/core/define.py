# typedtree/core/define.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
"""
Type definition protocol.

``define_type`` turns a name, a field spec and an optional implementation base
into a registered descriptor class. All checks happen here, once; a type that
passes is never re-validated when instances are built.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, Tuple

from typedtree.core.base import BaseType, DataType
from typedtree.core.errors import DefinitionError
from typedtree.core.generics import describe_type
from typedtree.core.record import Field, Record
from typedtree.interfaces.protocols import is_type_descriptor

if TYPE_CHECKING:
    from typedtree.core.registry import TypeRegistry

logger = logging.getLogger(__name__)

SpecFunction = Callable[[type], Dict[str, Any]]

# Capabilities every descriptor must provide.
REQUIRED_CAPABILITIES: Tuple[str, ...] = ("test", "with_default", "defaults", "wrap_value")


class TypeBuilder:
    """Builds descriptor classes.

    Class Invariants:
    1. A built class is registered under its type_id exactly once
    2. Every declared field has a Field accessor and a descriptor type
    3. Definition problems raise DefinitionError before the class is visible

    Example:
        builder = TypeBuilder("User", registry)
        User = builder.with_spec(lambda User: {"name": String}).build()
    """

    def __init__(self, name: str, registry: Optional["TypeRegistry"] = None) -> None:
        if not name or not isinstance(name, str):
            raise DefinitionError("Type name must be a non-empty string", path=repr(name))
        self._name = name
        self._type_id = name
        self._registry = registry
        self._spec_function: Optional[SpecFunction] = None
        self._base: Optional[type] = None

    def with_base(self, base: Optional[type]) -> "TypeBuilder":
        """Use ``base`` as the implementation the new type derives from."""
        if base is not None and not isinstance(base, type):
            raise DefinitionError(f"{self._name}: base must be a class, got {base!r}", path=self._name)
        self._base = base
        return self

    def with_spec(self, spec: Optional[SpecFunction]) -> "TypeBuilder":
        """
        :param spec: Called with the class under construction; returns the
            ``field name -> descriptor`` mapping.
        """
        if spec is not None and not callable(spec):
            raise DefinitionError(f"{self._name}: spec must be callable", path=self._name)
        self._spec_function = spec
        return self

    def with_type_id(self, type_id: Optional[str]) -> "TypeBuilder":
        if type_id is not None:
            self._type_id = type_id
        return self

    def _bases(self) -> Tuple[type, ...]:
        base = self._base
        if base is None:
            return (Record,)
        if issubclass(base, BaseType):
            return (base,)
        return (base, Record)

    def _check_capabilities(self, cls: type) -> None:
        for capability in REQUIRED_CAPABILITIES:
            member = getattr(cls, capability, None)
            if not callable(member):
                raise DefinitionError(f'{self._name}: missing capability "{capability}"', path=self._name)
        if getattr(cls.wrap_value, "__func__", None) is DataType.wrap_value.__func__:
            raise DefinitionError(f'{self._name}: missing capability "wrap_value"', path=self._name)

    def _check_fields(self, cls: type, bases: Tuple[type, ...], spec: Dict[str, Any]) -> None:
        for name, field_type in spec.items():
            path = f"{self._name}.{name}"
            if not isinstance(name, str) or not name.isidentifier() or name.startswith("_"):
                raise DefinitionError(f"{self._name}: invalid field name {name!r}", path=path)
            if any(hasattr(base, name) for base in bases):
                raise DefinitionError(f'{self._name}: field "{name}" collides with a reserved name', path=path)
            if not is_type_descriptor(field_type):
                raise DefinitionError(
                    f'{self._name}: type of field "{name}" is not a data type: {describe_type(field_type)}',
                    path=path,
                )
            problem = field_type.report_definition_errors()
            if problem:
                raise DefinitionError(
                    f'{self._name}: field "{name}" {problem["path"]} {problem["message"]}',
                    path=path,
                    details=problem,
                )

    def build(self) -> type:
        """
        Create, check and register the descriptor class.

        :raises DefinitionError: If the type is declared incorrectly.
        """
        bases = self._bases()
        namespace = {
            "__module__": bases[0].__module__,
            "__qualname__": self._name,
            "display_name": self._name,
            "type_id": self._type_id,
        }
        if self._registry is not None:
            namespace["registry"] = self._registry
        cls = type(self._name, bases, namespace)
        cls.base_type = cls
        self._check_capabilities(cls)

        spec = dict(self._spec_function(cls)) if self._spec_function is not None else {}
        if spec and not issubclass(cls, Record):
            raise DefinitionError(f"{self._name}: only record types declare fields", path=self._name)
        self._check_fields(cls, bases, spec)
        cls._spec = spec
        for name, field_type in spec.items():
            setattr(cls, name, Field(name, field_type))

        cls.get_registry().register(cls)
        logger.debug("defined type %s with fields %s", self._name, sorted(spec))
        return cls


def define_type(
    name: str,
    spec: Optional[SpecFunction] = None,
    base: Optional[type] = None,
    registry: Optional["TypeRegistry"] = None,
    type_id: Optional[str] = None,
) -> type:
    """
    Declare a new data type.

    :param name: Display name, also the default type_id.
    :param spec: Callable receiving the new class and returning its fields.
    :param base: Implementation class. A BaseType subclass is used as-is,
        any other class is mixed in front of Record.
    :param registry: Registry to define into; the default registry if omitted.
    :param type_id: Discriminant tag, when it must differ from ``name``.
    :return: The new descriptor class.
    :raises DefinitionError: If the type is declared incorrectly.
    """
    return TypeBuilder(name, registry).with_base(base).with_spec(spec).with_type_id(type_id).build()
