from .protocols import Dirtyable, TypeDescriptor, is_type_descriptor

__all__ = ["Dirtyable", "TypeDescriptor", "is_type_descriptor"]
