"""Vector clocks keyed by thread identifier."""

from __future__ import annotations

from typing import Optional, Protocol

__all__ = ["ClockVector"]


class _Stamped(Protocol):
    tid: int
    seq_number: int


class ClockVector:
    """A vector of per-thread clocks.

    Actions passed in need ``tid`` and ``seq_number`` attributes.
    """

    def __init__(self, parent: Optional["ClockVector"] = None, act: Optional[_Stamped] = None) -> None:
        size = act.tid + 1 if act is not None else 0
        if parent is not None and len(parent) > size:
            size = len(parent)
        self._clock = [0] * size
        if parent is not None:
            self._clock[: len(parent)] = parent._clock
        if act is not None:
            self._clock[act.tid] = act.seq_number

    def _grow_to(self, size: int) -> None:
        if size > len(self._clock):
            self._clock.extend([0] * (size - len(self._clock)))

    def merge(self, other: "ClockVector") -> bool:
        """Take the element-wise maximum with ``other``; return True if anything changed."""
        if other is None:
            raise ValueError("cannot merge with a missing clock vector")
        self._grow_to(len(other))
        changed = False
        for i, value in enumerate(other._clock):
            if value > self._clock[i]:
                self._clock[i] = value
                changed = True
        return changed

    def minmerge(self, other: "ClockVector") -> bool:
        """Take the element-wise minimum with ``other``; return True if anything changed."""
        if other is None:
            raise ValueError("cannot merge with a missing clock vector")
        self._grow_to(len(other))
        changed = False
        for i, value in enumerate(other._clock):
            if value < self._clock[i]:
                self._clock[i] = value
                changed = True
        return changed

    def synchronized_since(self, act: _Stamped) -> bool:
        """True if ``act`` is covered by this vector's clock for its thread."""
        i = act.tid
        if 0 <= i < len(self._clock):
            return act.seq_number <= self._clock[i]
        return False

    def get_clock(self, tid: int) -> int:
        """Return the clock for thread ``tid``, or 0 if it is not recorded."""
        if 0 <= tid < len(self._clock):
            return self._clock[tid]
        return 0

    def __len__(self) -> int:
        return len(self._clock)

    def __str__(self) -> str:
        return "(" + ", ".join(f"{c:2d}" for c in self._clock) + ")"

    def __repr__(self) -> str:
        return f"ClockVector{tuple(self._clock)}"