"""Change tracking, read-only projection and locking helpers."""
