"""An ordered collection of model actions, sorted by sequence number."""

from __future__ import annotations

import bisect
from typing import Dict, Iterator, List, Optional

from mocheck.action import ModelAction

__all__ = ["ActionList", "MODELCLOCKBITS"]

#: Width of the sequence numbers used as ordering keys.
MODELCLOCKBITS = 32

_CLOCK_MASK = (1 << MODELCLOCKBITS) - 1


class ActionList:
    """Actions kept in sequence-number order.

    Actions sharing a sequence number keep the order in which they were added.
    """

    def __init__(self) -> None:
        self._buckets: Dict[int, List[ModelAction]] = {}
        self._clocks: List[int] = []
        self._size = 0

    @staticmethod
    def _key(act: ModelAction) -> int:
        return act.seq_number & _CLOCK_MASK

    def add(self, act: ModelAction) -> None:
        """Insert ``act`` after every action with a smaller or equal sequence number."""
        key = self._key(act)
        bucket = self._buckets.get(key)
        if bucket is None:
            bucket = self._buckets[key] = []
            bisect.insort(self._clocks, key)
        bucket.append(act)
        self._size += 1

    def remove(self, act: ModelAction) -> None:
        """Remove ``act`` if present; an absent action is ignored."""
        key = self._key(act)
        bucket = self._buckets.get(key)
        if bucket is None:
            return
        # Search from the most recently added action with this clock.
        for index in range(len(bucket) - 1, -1, -1):
            if bucket[index] is act:
                del bucket[index]
                self._size -= 1
                break
        else:
            return
        if not bucket:
            del self._buckets[key]
            del self._clocks[bisect.bisect_left(self._clocks, key)]

    def clear(self) -> None:
        """Remove every action."""
        self._buckets.clear()
        self._clocks.clear()
        self._size = 0

    def is_empty(self) -> bool:
        return not self._clocks

    def __len__(self) -> int:
        return self._size

    def __iter__(self) -> Iterator[ModelAction]:
        for key in self._clocks:
            yield from self._buckets[key]

    def __reversed__(self) -> Iterator[ModelAction]:
        for key in reversed(self._clocks):
            yield from reversed(self._buckets[key])

    def first(self) -> Optional[ModelAction]:
        """Return the earliest action, or None if the list is empty."""
        if not self._clocks:
            return None
        return self._buckets[self._clocks[0]][0]

    def last(self) -> Optional[ModelAction]:
        """Return the latest action, or None if the list is empty."""
        if not self._clocks:
            return None
        return self._buckets[self._clocks[-1]][-1]

    def __repr__(self) -> str:
        return f"ActionList({list(self)!r})"