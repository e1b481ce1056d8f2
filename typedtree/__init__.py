"""typedtree: typed value trees over plain key/value data

This package provides runtime-declared data types whose instances validate
inbound data, can be handed out as read-only projections, and report whether
anything beneath them changed since the last checkpoint.

Responsibilities:
    - Type definition (records and generic containers)
    - Validation and wrapping of plain data into typed instances
    - Subtype resolution, including tagged unions
    - Read-only projections sharing their source's data
    - Pull-based change invalidation

Interactions:
    - Client code through public API
    - Plain nested dicts and lists as the data format
    - Logging system for diagnostics

Cross-cutting Concerns:
    Thread Safety:
        - The runtime is single-threaded
        - Hosts sharing a tree serialize access with ``tree_lock``

    Error Handling:
        - Structured error hierarchy rooted at TypedTreeError
        - Diagnostics routed through a per-registry Mailbox policy
        - Definition errors always raise

    Logging:
        - Standard library logging, one logger per module
        - Non-fatal diagnostics logged under ``typedtree.core.diagnostics``
"""

from typedtree.core.base import MISSING, BaseType, TypeOptions
from typedtree.core.define import TypeBuilder, define_type
from typedtree.core.diagnostics import DiagnosticPolicy, Mailbox, Severity
from typedtree.core.errors import (
    DefinitionError,
    KeyMismatchError,
    MalformedPayloadError,
    TypedTreeError,
    TypeMismatchError,
)
from typedtree.core.generics import TYPE_KEY, SubtypeSet, either, get_matching_type, normalize_types, tagged
from typedtree.core.mapping import Map, TypedMap
from typedtree.core.primitives import Boolean, Number, String
from typedtree.core.record import Record
from typedtree.core.registry import TypeRegistry, get_default_registry
from typedtree.core.sequence import TypedList
from typedtree.runtime.concurrency import tree_lock
from typedtree.runtime.readonly import as_read_only, is_read_only

List = TypedList

__version__ = "0.1.0"

__all__ = [
    "MISSING",
    "TYPE_KEY",
    "BaseType",
    "Boolean",
    "DefinitionError",
    "DiagnosticPolicy",
    "KeyMismatchError",
    "List",
    "Mailbox",
    "MalformedPayloadError",
    "Map",
    "Number",
    "Record",
    "Severity",
    "String",
    "SubtypeSet",
    "TypeBuilder",
    "TypeMismatchError",
    "TypeOptions",
    "TypeRegistry",
    "TypedList",
    "TypedMap",
    "TypedTreeError",
    "as_read_only",
    "define_type",
    "either",
    "get_default_registry",
    "get_matching_type",
    "is_read_only",
    "normalize_types",
    "tagged",
    "tree_lock",
]
