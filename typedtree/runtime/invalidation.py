# typedtree/runtime/invalidation.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
"""
Pull-based change tracking for typed value trees.

Every mutable instance remembers the tick of its last change and the tick of
its last checkpoint. A container is invalidated when its own tick advanced
past its checkpoint, or when any dirtyable element it holds is invalidated.
Nothing is pushed upward: the check walks the tree on demand.
"""

from __future__ import annotations

from typing import Any, Callable, Optional, Set

Visitor = Callable[[Any, "Invalidatable"], None]


class ChangeClock:
    """
    Monotonic tick counter shared by the instances of one registry.
    """

    def __init__(self) -> None:
        self._tick = 0

    def now(self) -> int:
        """The current tick, without advancing."""
        return self._tick

    def tick(self) -> int:
        """Advance and return the new tick."""
        self._tick += 1
        return self._tick


class Invalidatable:
    """
    Mixin implementing the invalidation protocol.

    Hosts must provide ``_clock()``, ``_is_dirtyable()``, a ``_tracked``
    attribute naming the object that owns the tracking state (the instance
    itself, or the source of a read-only projection) and
    ``dirtyable_elements_iterator(visit)``.

    Runtime Invariants:
    - ``_last_change`` never decreases.
    - After ``revalidate()``, ``is_invalidated()`` is False for the whole
      reachable tree until the next mutation.
    """

    _tracked: "Invalidatable"
    _last_change: int
    _checkpoint: int
    _memo: Optional[bool]

    def _init_tracking(self, clock: ChangeClock) -> None:
        now = clock.now()
        self._last_change = now
        self._checkpoint = now
        self._memo = None

    def _clock(self) -> ChangeClock:
        raise NotImplementedError()

    def _is_dirtyable(self) -> bool:
        raise NotImplementedError()

    def dirtyable_elements_iterator(self, visit: Visitor) -> None:
        """
        Call ``visit(self, element)`` for every held element that tracks changes.
        Scalar entries are skipped.
        """
        raise NotImplementedError()

    def _set_dirty(self) -> bool:
        """
        Record a change. Returns False (and records nothing) when read-only.
        """
        if not self._is_dirtyable():
            return False
        self._tracked._last_change = self._clock().tick()
        return True

    def _dirtyable_children(self) -> list:
        children: list = []
        self.dirtyable_elements_iterator(lambda _container, element: children.append(element))
        return children

    def is_invalidated(self, memoize: bool = False) -> bool:
        """
        True when this instance or any dirtyable descendant changed since the
        last checkpoint.

        :param memoize: Report a previously computed result until
            ``reset_validation_check()`` or ``revalidate()`` is called.
        """
        return self._check_invalidated(memoize, set())

    def _check_invalidated(self, memoize: bool, visited: Set[int]) -> bool:
        tracked = self._tracked
        if id(tracked) in visited:
            return False
        visited.add(id(tracked))
        if memoize and tracked._memo is not None:
            return tracked._memo
        result = tracked._last_change > tracked._checkpoint
        if not result:
            result = any(child._check_invalidated(memoize, visited) for child in self._dirtyable_children())
        if memoize:
            tracked._memo = result
        return result

    def revalidate(self) -> None:
        """
        Establish a new checkpoint for this instance and every dirtyable descendant.
        """
        self._walk("_checkpoint_one", set())

    def reset_validation_check(self) -> None:
        """
        Forget memoized invalidation results for this instance and its descendants.
        """
        self._walk("_reset_memo", set())

    def _checkpoint_one(self) -> None:
        tracked = self._tracked
        tracked._checkpoint = self._clock().now()
        tracked._memo = None

    def _reset_memo(self) -> None:
        self._tracked._memo = None

    def _walk(self, action: str, visited: Set[int]) -> None:
        if id(self._tracked) in visited:
            return
        visited.add(id(self._tracked))
        getattr(self, action)()
        for child in self._dirtyable_children():
            child._walk(action, visited)
