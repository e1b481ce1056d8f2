"""Type definitions, the validate/wrap pipeline and the built-in types."""
