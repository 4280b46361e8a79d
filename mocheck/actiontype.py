"""Kinds of actions recorded by the model checker."""

from __future__ import annotations

import enum

__all__ = ["ActionType", "VALUE_NONE", "WRITE_REFERENCED", "FENCE_LOCATION"]

#: A recognisable don't-care value for an action's value field.
VALUE_NONE = 0xDEADBEEF

WRITE_REFERENCED = 0x1

#: Non-zero location associated with fences.
FENCE_LOCATION = 0x7


class ActionType(enum.IntEnum):
    """The type of a model action."""

    THREAD_CREATE = 0
    THREAD_START = enum.auto()
    THREAD_YIELD = enum.auto()
    THREAD_JOIN = enum.auto()
    THREAD_FINISH = enum.auto()
    THREADONLY_FINISH = enum.auto()
    THREAD_SLEEP = enum.auto()
    PTHREAD_CREATE = enum.auto()
    PTHREAD_JOIN = enum.auto()
    NONATOMIC_WRITE = enum.auto()
    ATOMIC_INIT = enum.auto()
    ATOMIC_WRITE = enum.auto()
    ATOMIC_RMW = enum.auto()
    ATOMIC_READ = enum.auto()
    ATOMIC_RMWR = enum.auto()
    ATOMIC_RMWRCAS = enum.auto()
    ATOMIC_RMWC = enum.auto()
    ATOMIC_FENCE = enum.auto()
    ATOMIC_LOCK = enum.auto()
    ATOMIC_TRYLOCK = enum.auto()
    ATOMIC_UNLOCK = enum.auto()
    ATOMIC_NOTIFY_ONE = enum.auto()
    ATOMIC_NOTIFY_ALL = enum.auto()
    ATOMIC_WAIT = enum.auto()
    ATOMIC_TIMEDWAIT = enum.auto()
    ATOMIC_ANNOTATION = enum.auto()
    READY_FREE = enum.auto()
    ATOMIC_NOP = enum.auto()

    def describe(self) -> str:
        """Return the human-readable name used in execution traces."""
        return _TYPE_NAMES.get(self, "unknown type")


_TYPE_NAMES = {
    ActionType.THREAD_CREATE: "thread create",
    ActionType.THREAD_START: "thread start",
    ActionType.THREAD_YIELD: "thread yield",
    ActionType.THREAD_JOIN: "thread join",
    ActionType.THREAD_FINISH: "thread finish",
    ActionType.THREAD_SLEEP: "thread sleep",
    ActionType.THREADONLY_FINISH: "pthread_exit finish",
    ActionType.PTHREAD_CREATE: "pthread create",
    ActionType.PTHREAD_JOIN: "pthread join",
    ActionType.NONATOMIC_WRITE: "nonatomic write",
    ActionType.ATOMIC_READ: "atomic read",
    ActionType.ATOMIC_WRITE: "atomic write",
    ActionType.ATOMIC_RMW: "atomic rmw",
    ActionType.ATOMIC_FENCE: "fence",
    ActionType.ATOMIC_RMWR: "atomic rmwr",
    ActionType.ATOMIC_RMWRCAS: "atomic rmwrcas",
    ActionType.ATOMIC_RMWC: "atomic rmwc",
    ActionType.ATOMIC_INIT: "init atomic",
    ActionType.ATOMIC_LOCK: "lock",
    ActionType.ATOMIC_UNLOCK: "unlock",
    ActionType.ATOMIC_TRYLOCK: "trylock",
    ActionType.ATOMIC_WAIT: "wait",
    ActionType.ATOMIC_TIMEDWAIT: "timed wait",
    ActionType.ATOMIC_NOTIFY_ONE: "notify one",
    ActionType.ATOMIC_NOTIFY_ALL: "notify all",
    ActionType.ATOMIC_ANNOTATION: "annotation",
}