# typedtree/core/generics.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
"""
Subtype resolution for generic containers.

A container's subtype constraint is normalized into a SubtypeSet: an ordered
set of descriptors, optionally with a closed ``tag -> descriptor`` table for
discriminated unions. Resolution never raises; callers turn a missing match
into a diagnostic that fits their context.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional, Tuple

from typedtree.core.validation import ARROW
from typedtree.interfaces.protocols import is_type_descriptor

# Reserved discriminant key in plain data.
TYPE_KEY = "_type"


@dataclass(frozen=True)
class SubtypeSet:
    """
    Normalized subtype constraint.

    Attributes:
        types: Candidate descriptors in resolution order.
        tags: ``(tag, descriptor)`` pairs for tagged unions, empty otherwise.
    """

    types: Tuple[Any, ...]
    tags: Tuple[Tuple[str, Any], ...] = ()

    @property
    def tagged(self) -> bool:
        return bool(self.tags)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.types)

    def __len__(self) -> int:
        return len(self.types)

    def by_tag(self, tag: Any) -> Optional[Any]:
        """
        Look up the variant for ``tag``, by explicit tag first, then by type_id.
        """
        for name, type_ in self.tags:
            if name == tag:
                return type_
        for type_ in self.types:
            if getattr(type_, "type_id", None) == tag:
                return type_
        return None


def either(*types: Any) -> SubtypeSet:
    """
    Declare an untagged union, resolved by first structural match in order.
    """
    return SubtypeSet(tuple(types))


def tagged(*types: Any) -> SubtypeSet:
    """
    Declare a tagged union keyed by each descriptor's type_id.
    """
    return SubtypeSet(tuple(types), tuple((type_.type_id, type_) for type_ in types))


def normalize_types(spec: Any) -> Optional[SubtypeSet]:
    """
    Normalize a subtype constraint.

    :param spec: A descriptor, a SubtypeSet, a sequence of descriptors
        (untagged) or a ``tag -> descriptor`` mapping (tagged).
    """
    if spec is None or isinstance(spec, SubtypeSet):
        return spec
    if isinstance(spec, Mapping):
        return SubtypeSet(tuple(spec.values()), tuple(spec.items()))
    if isinstance(spec, (list, tuple)):
        return SubtypeSet(tuple(spec))
    return SubtypeSet((spec,))


def get_matching_type(subtypes: Optional[SubtypeSet], value: Any) -> Optional[Any]:
    """
    Pick the descriptor ``value`` belongs to, or None.

    Tagged sets read the discriminant from mapping input. Otherwise every
    candidate's ``validate_type`` is tried before any ``allow_plain_val``,
    so already typed values are never claimed by a looser structural match.
    Typed containers of another specialization come last and are re-wrapped
    by the caller.
    """
    if not subtypes:
        return None
    if subtypes.tagged and isinstance(value, Mapping) and TYPE_KEY in value:
        return subtypes.by_tag(value[TYPE_KEY])
    for type_ in subtypes:
        if type_.validate_type(value):
            return type_
    for type_ in subtypes:
        if type_.allow_plain_val(value):
            return type_
    for type_ in subtypes:
        if type_.allows_retyped(value):
            return type_
    return None


def describe_type(type_: Any) -> str:
    describe = getattr(type_, "describe", None)
    if callable(describe):
        return describe()
    return getattr(type_, "__name__", repr(type_))


def to_unwrapped_string(subtypes: Optional[SubtypeSet]) -> str:
    if not subtypes:
        return ""
    return "|".join(describe_type(type_) for type_ in subtypes)


def to_string(subtypes: Optional[SubtypeSet]) -> str:
    """
    Display string for diagnostics, e.g. ``<User|Address>``.
    """
    return f"<{to_unwrapped_string(subtypes)}>"


def report_definition_errors(subtypes: Optional[SubtypeSet], kind: str = "value") -> Optional[Dict[str, str]]:
    """
    Return the first definition problem among ``subtypes`` as ``{path, message}``.
    """
    for type_ in subtypes or ():
        if not is_type_descriptor(type_):
            return {"path": f"{ARROW}{describe_type(type_)}", "message": f"Type of {kind} is not a data type"}
        type_error = type_.report_definition_errors()
        if type_error:
            return type_error
    return None
