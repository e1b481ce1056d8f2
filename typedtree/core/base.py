# typedtree/core/base.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
"""
Descriptor and instance base classes.

A data type is a class. Its classmethods form the descriptor protocol
(``test``, ``wrap_value``, ``defaults``, ``with_default``, ...); its instances,
for non-scalar types, are the typed values.
"""

from __future__ import annotations

import copy
import weakref
from dataclasses import dataclass, fields, replace
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

from typedtree.core.diagnostics import Mailbox, Severity
from typedtree.core.errors import DefinitionError
from typedtree.core.generics import SubtypeSet, to_string
from typedtree.core.validation import ErrorContext, validate_null_value
from typedtree.runtime.invalidation import ChangeClock, Invalidatable
from typedtree.runtime.readonly import as_read_only

if TYPE_CHECKING:
    from typedtree.core.registry import TypeRegistry


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"


# Marks "no value supplied" where None is a legal value.
MISSING: Any = _Missing()


@dataclass(frozen=True)
class TypeOptions:
    """
    Options a descriptor is parameterized with.

    Attributes:
        subtypes: Subtype constraint of a generic container.
        definition_error: Pending ``{path, message}`` problem, raised on construction.
        nullable: Whether None is an acceptable value.
    """

    subtypes: Optional[SubtypeSet] = None
    definition_error: Optional[Dict[str, str]] = None
    nullable: bool = False


class DataType:
    """
    Descriptor protocol shared by scalar and structured types. All members
    are class-level; concrete types override what they need.
    """

    display_name: str = "DataType"
    type_id: str = "DataType"
    base_type: Optional[type] = None
    options: Optional[TypeOptions] = None
    registry: Optional["TypeRegistry"] = None
    _spec: Dict[str, Any] = {}
    _default_value: Any = MISSING
    _default_validator: Optional[Callable[[Any], bool]] = None

    @classmethod
    def describe(cls) -> str:
        """Display name including subtype constraints, e.g. ``Map<User>``."""
        if cls.options is not None and cls.options.subtypes:
            return f"{cls.display_name}{to_string(cls.options.subtypes)}"
        return cls.display_name

    @classmethod
    def get_registry(cls) -> "TypeRegistry":
        if cls.registry is not None:
            return cls.registry
        from typedtree.core.registry import get_default_registry

        return get_default_registry()

    @classmethod
    def mailbox(cls) -> Mailbox:
        return cls.get_registry().mailbox

    @classmethod
    def _accepts(cls, value: Any) -> bool:
        validator = cls._default_validator
        return validator is None or bool(validator(value))

    @classmethod
    def validate_type(cls, value: Any) -> bool:
        """True when ``value`` is already an instance of this type."""
        return isinstance(value, cls.base_type or cls) and cls._accepts(value)

    @classmethod
    def allow_plain_val(cls, value: Any, error_details: Optional[dict] = None) -> bool:
        """True when untyped ``value`` is structurally acceptable."""
        return validate_null_value(cls, value)

    @classmethod
    def allows_retyped(cls, value: Any) -> bool:
        """True when ``value`` is typed under another specialization of this type and fits this one."""
        return False

    @classmethod
    def validate(cls, value: Any) -> bool:
        return cls.validate_type(value) or cls.allow_plain_val(value)

    @classmethod
    def test(cls, value: Any) -> bool:
        return cls.validate(value)

    @classmethod
    def defaults(cls) -> Any:
        """A fresh default payload for this type."""
        if cls._default_value is not MISSING:
            default = cls._default_value
            if hasattr(default, "to_js") and not isinstance(default, type):
                return default.to_js()
            return copy.deepcopy(default)
        return cls._default_payload()

    @classmethod
    def _default_payload(cls) -> Any:
        return None

    @classmethod
    def wrap_value(cls, value: Any, spec: Any, options: Optional[TypeOptions], error_context: ErrorContext) -> Any:
        raise NotImplementedError()

    @classmethod
    def create(cls, value: Any = None, read_only: bool = False, error_context: Optional[ErrorContext] = None) -> Any:
        raise NotImplementedError()

    @classmethod
    def _derive(cls, **attributes: Any) -> type:
        namespace = {"__module__": cls.__module__, "__qualname__": cls.__qualname__}
        namespace.update(attributes)
        return type(cls.__name__, (cls,), namespace)

    @classmethod
    def _merge_options(cls, options: Any) -> TypeOptions:
        base = cls.options or TypeOptions()
        if isinstance(options, TypeOptions):
            options = {
                field.name: getattr(options, field.name)
                for field in fields(options)
                if getattr(options, field.name) != field.default
            }
        return replace(base, **options)

    @classmethod
    def with_default(
        cls,
        default_value: Any = MISSING,
        validate: Optional[Callable[[Any], bool]] = None,
        options: Any = None,
    ) -> type:
        """
        Derive a factory descriptor bound to a default value and extra options.

        :param default_value: Value used by ``defaults()``.
        :param validate: Extra predicate values must satisfy.
        :param options: TypeOptions (or a dict of its fields) to merge in.
        :return: A subclass of this type; its instances pass ``validate_type``.
        """
        attributes: Dict[str, Any] = {}
        if default_value is not MISSING:
            attributes["_default_value"] = default_value
        if validate is not None:
            attributes["_default_validator"] = staticmethod(validate)
        if options is not None:
            attributes["options"] = cls._merge_options(options)
        return cls._derive(**attributes)

    @classmethod
    def nullable(cls) -> type:
        """Derive a descriptor that also accepts None and defaults to it."""
        return cls.with_default(None, options={"nullable": True})

    @classmethod
    def report_definition_errors(cls, options: Optional[TypeOptions] = None) -> Optional[Dict[str, str]]:
        options = options or cls.options
        if options is not None and options.definition_error:
            return options.definition_error
        return None

    @classmethod
    def create_error_context(
        cls, entry_point: str, level: Severity = Severity.ERROR, options: Optional[TypeOptions] = None
    ) -> ErrorContext:
        path = cls.display_name
        options = options or cls.options
        if options is not None and options.subtypes:
            path += to_string(options.subtypes)
        return ErrorContext(entry_point, level, path)


class BaseType(DataType, Invalidatable):
    """
    Base class of every structured typed value.

    Instances are mutable unless constructed read-only or obtained through
    ``as_read_only()``. Mutating a read-only instance is a silent no-op.

    Runtime Invariants:
    - Typed payload entries are themselves typed instances.
    - Every effective mutation advances the instance's change tick.
    - ``as_read_only()`` returns the same projection on every call.
    """

    display_name = "BaseType"
    type_id = "BaseType"

    def __init__(
        self,
        value: Any = None,
        read_only: bool = False,
        options: Any = None,
        error_context: Optional[ErrorContext] = None,
    ) -> None:
        """
        Wrap ``value`` into a new instance.

        :param value: Raw or typed input; None means the type's defaults.
        :param read_only: Create the instance read-only.
        :param options: Options overriding the type's own.
        :param error_context: Context to report mismatches in.
        :raises DefinitionError: If the type was declared incorrectly.
        :raises TypeMismatchError: If ``value`` does not fit the type.
        """
        cls = type(self)
        options = cls._coerce_options(options)
        cls.pre_constructor(options)
        if error_context is None:
            error_context = cls.create_error_context(f"{cls.display_name} constructor error", Severity.ERROR, options)
        if value is None:
            value = cls.defaults()
        self._options = options
        self._value = cls.wrap_value(value, cls._spec, options, error_context)
        self._read_only = bool(read_only)
        self._source = self
        self._tracked = self
        self._read_only_view: Optional[BaseType] = self if self._read_only else None
        self._owner_ref: Optional[weakref.ReferenceType] = None
        self._init_tracking(cls.get_registry().clock)
        self._adopt_all()

    @classmethod
    def _coerce_options(cls, options: Any) -> Optional[TypeOptions]:
        if options is None:
            return cls.options
        return cls._merge_options(options)

    @classmethod
    def pre_constructor(cls, options: Optional[TypeOptions] = None) -> None:
        """
        Raise any pending definition error before an instance is built.
        """
        report = cls.report_definition_errors(options)
        if report:
            cls.mailbox().fatal(
                DefinitionError(
                    f'{cls.display_name} constructor: "{report["path"]}" {report["message"]}',
                    path=report["path"],
                )
            )

    @classmethod
    def create(cls, value: Any = None, read_only: bool = False, error_context: Optional[ErrorContext] = None) -> Any:
        if value is None and validate_null_value(cls, value):
            return None
        return cls(value, read_only, None, error_context)

    # ----- payload access -----

    @property
    def _payload(self) -> Any:
        return self._source._value

    def _expose(self, item: Any) -> Any:
        if self._read_only:
            return as_read_only(item)
        return item

    def _error_context(self, operation: str, level: Severity = Severity.ERROR) -> ErrorContext:
        cls = type(self)
        return cls.create_error_context(f"{cls.display_name} {operation} error", level, self._options)

    # ----- ownership -----

    @property
    def owner(self) -> Optional["BaseType"]:
        """The container currently holding this instance, if still alive."""
        ref = self._source._owner_ref
        return ref() if ref is not None else None

    def _adopt(self, item: Any) -> None:
        if isinstance(item, BaseType) and item._source is item:
            item._owner_ref = weakref.ref(self._source)

    def _adopt_all(self) -> None:
        self.dirtyable_elements_iterator(lambda _container, item: self._adopt(item))

    def _release(self, *items: Any) -> None:
        """Drop the owner link of removed ``items`` this instance no longer holds."""
        held = set()
        self.dirtyable_elements_iterator(lambda _container, item: held.add(id(item)))
        for item in items:
            if not isinstance(item, BaseType) or id(item) in held or item._source is not item:
                continue
            if item.owner is self._source:
                item._owner_ref = None

    # ----- read-only projection -----

    def is_read_only(self) -> bool:
        return self._read_only

    def _is_dirtyable(self) -> bool:
        return not self._read_only

    def as_read_only(self) -> "BaseType":
        """
        Return the read-only projection of this instance.

        The projection shares this instance's payload and change tracking;
        nested values are projected when accessed.
        """
        if self._read_only:
            return self
        view = self._read_only_view
        if view is None:
            cls = type(self)
            view = cls.__new__(cls)
            view._options = self._options
            view._read_only = True
            view._source = self
            view._tracked = self
            view._read_only_view = view
            self._read_only_view = view
        return view

    def _clock(self) -> ChangeClock:
        return type(self).get_registry().clock

    # ----- bulk update -----

    def set_value(self, value: Any, error_context: Optional[ErrorContext] = None) -> bool:
        raise NotImplementedError()

    def set_value_deep(self, value: Any, error_context: Optional[ErrorContext] = None) -> bool:
        raise NotImplementedError()

    # ----- serialization -----

    def to_json(self, recursive: bool = True, typed: bool = False) -> Any:
        raise NotImplementedError()

    def to_js(self, typed: bool = False) -> Any:
        raise NotImplementedError()

    def __repr__(self) -> str:
        flag = " read-only" if self._read_only else ""
        return f"<{type(self).describe()}{flag} {self.to_js()!r}>"


def same_value(old: Any, new: Any) -> bool:
    """
    Identity for typed instances, equality of same-typed values for scalars.
    """
    if old is new:
        return True
    if isinstance(old, BaseType) or isinstance(new, BaseType):
        return False
    return type(old) is type(new) and old == new


def can_merge(old: Any, new: Any) -> bool:
    """
    True when ``new`` can be deep-merged into the existing entry ``old``.
    """
    if not isinstance(old, BaseType) or not old._is_dirtyable():
        return False
    old_type = type(old)
    return old_type.validate_type(new) or old_type.allow_plain_val(new)
