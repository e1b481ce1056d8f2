# typedtree/runtime/concurrency.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
"""
Mutual exclusion for hosts that share a value tree between threads.

The runtime itself is single-threaded and never locks. A tree rooted at one
top-level instance is a single unit of exclusion: callers wrap every access
in ``tree_lock(root)``.
"""

from __future__ import annotations

import threading
import weakref
from contextlib import contextmanager
from typing import Any, Iterator

_tree_locks: "weakref.WeakKeyDictionary[Any, threading.RLock]" = weakref.WeakKeyDictionary()
_tree_locks_guard = threading.Lock()


def get_tree_lock(root: Any) -> threading.RLock:
    """
    Return the re-entrant lock guarding ``root``'s tree. A read-only
    projection shares the lock of its source. Locks live as long as the root.
    """
    key = getattr(root, "_tracked", root)
    with _tree_locks_guard:
        lock = _tree_locks.get(key)
        if lock is None:
            lock = threading.RLock()
            _tree_locks[key] = lock
        return lock


@contextmanager
def tree_lock(root: Any) -> Iterator[Any]:
    """
    Hold ``root``'s tree lock for the duration of the with-block.

    Example:
        with tree_lock(orders) as tree:
            tree.set("a", {"qty": 2})
    """
    lock = get_tree_lock(root)
    lock.acquire()
    try:
        yield root
    finally:
        lock.release()
