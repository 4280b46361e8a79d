"""Model actions: the individual events recorded during an execution."""

from __future__ import annotations

from typing import Any, Optional

from mocheck.actiontype import VALUE_NONE, ActionType
from mocheck.clockvector import ClockVector
from mocheck.memorder import MemoryOrder

__all__ = [
    "ModelAction",
    "ACTION_INITIAL_CLOCK",
    "VALUE_TRYSUCCESS",
    "VALUE_TRYFAILED",
]

ACTION_INITIAL_CLOCK = 0

#: Value stored by a successful trylock.
VALUE_TRYSUCCESS = 1

#: Value stored by a failed trylock.
VALUE_TRYFAILED = 0

_UINT32 = 0xFFFFFFFF

_MUTEX_OPS = frozenset(
    {
        ActionType.ATOMIC_LOCK,
        ActionType.ATOMIC_TRYLOCK,
        ActionType.ATOMIC_UNLOCK,
        ActionType.ATOMIC_WAIT,
        ActionType.ATOMIC_TIMEDWAIT,
        ActionType.ATOMIC_NOTIFY_ONE,
        ActionType.ATOMIC_NOTIFY_ALL,
    }
)
_READS = frozenset(
    {
        ActionType.ATOMIC_READ,
        ActionType.ATOMIC_RMWR,
        ActionType.ATOMIC_RMWRCAS,
        ActionType.ATOMIC_RMW,
    }
)
_WRITES = frozenset(
    {
        ActionType.ATOMIC_WRITE,
        ActionType.ATOMIC_RMW,
        ActionType.ATOMIC_INIT,
        ActionType.NONATOMIC_WRITE,
    }
)
_ACQUIRE_ORDERS = frozenset({MemoryOrder.ACQUIRE, MemoryOrder.ACQ_REL, MemoryOrder.SEQ_CST})
_RELEASE_ORDERS = frozenset({MemoryOrder.RELEASE, MemoryOrder.ACQ_REL, MemoryOrder.SEQ_CST})


def _describe_type(action_type: int) -> str:
    try:
        return ActionType(action_type).describe()
    except ValueError:
        return "unknown type"


def _describe_order(order: int) -> str:
    try:
        return MemoryOrder(order).describe()
    except ValueError:
        return "unknown"


class ModelAction:
    """A single action taken by a thread: a memory access, fence, lock operation and so on.

    ``location`` identifies the object acted on and ``tid`` is the integer id of the
    thread performing the action.
    """

    def __init__(
        self,
        type: ActionType,
        order: int = MemoryOrder.RELAXED,
        location: Any = None,
        value: int = VALUE_NONE,
        tid: int = -1,
        position: Optional[str] = None,
        size: int = 0,
        time: int = 0,
    ) -> None:
        self.type = type
        self.order = order
        self.original_order = order
        self.location = location
        self.value = value
        self.tid = tid
        self.position = position
        self.size = size
        self.time = time
        self.reads_from: Optional[ModelAction] = None
        self.last_fence_release: Optional[ModelAction] = None
        self.cv: Optional[ClockVector] = None
        self.rf_cv: Optional[ClockVector] = None
        self.action_ref: Any = None
        self.thread_operand: Any = None
        self.seq_number = ACTION_INITIAL_CLOCK

    def __repr__(self) -> str:
        return (
            f"ModelAction({_describe_type(self.type)!r}, seq={self.seq_number}, "
            f"tid={self.tid}, location={self.location!r})"
        )

    # --- sequence numbers -------------------------------------------------

    def set_seq_number(self, num: int) -> None:
        """Assign the sequence number; it may only be assigned once."""
        if self.seq_number != ACTION_INITIAL_CLOCK:
            raise RuntimeError("sequence number already assigned")
        self.seq_number = num

    def reset_seq_number(self) -> None:
        self.seq_number = 0

    def copy_from_new(self, newaction: "ModelAction") -> None:
        self.seq_number = newaction.seq_number

    def copy_typeandorder(self, act: "ModelAction") -> None:
        self.type = act.type
        self.order = act.order

    def set_free(self) -> None:
        self.type = ActionType.READY_FREE

    # --- classification ---------------------------------------------------

    def is_thread_start(self) -> bool:
        return self.type == ActionType.THREAD_START

    def is_thread_join(self) -> bool:
        return self.type in (ActionType.THREAD_JOIN, ActionType.PTHREAD_JOIN)

    def is_mutex_op(self) -> bool:
        return self.type in _MUTEX_OPS

    def is_lock(self) -> bool:
        return self.type == ActionType.ATOMIC_LOCK

    def is_sleep(self) -> bool:
        return self.type == ActionType.THREAD_SLEEP

    def is_wait(self) -> bool:
        return self.type in (ActionType.ATOMIC_WAIT, ActionType.ATOMIC_TIMEDWAIT)

    def is_timedwait(self) -> bool:
        return self.type == ActionType.ATOMIC_TIMEDWAIT

    def is_notify(self) -> bool:
        return self.type in (ActionType.ATOMIC_NOTIFY_ONE, ActionType.ATOMIC_NOTIFY_ALL)

    def is_notify_one(self) -> bool:
        return self.type == ActionType.ATOMIC_NOTIFY_ONE

    def is_unlock(self) -> bool:
        return self.type == ActionType.ATOMIC_UNLOCK

    def is_trylock(self) -> bool:
        return self.type == ActionType.ATOMIC_TRYLOCK

    def is_success_lock(self) -> bool:
        return self.type == ActionType.ATOMIC_LOCK or (
            self.type == ActionType.ATOMIC_TRYLOCK and self.value == VALUE_TRYSUCCESS
        )

    def is_failed_trylock(self) -> bool:
        return self.type == ActionType.ATOMIC_TRYLOCK and self.value == VALUE_TRYFAILED

    def is_atomic_var(self) -> bool:
        """True if this operation is performed on an atomic variable."""
        return self.is_read() or self.could_be_write()

    def is_read(self) -> bool:
        return self.type in _READS

    def is_write(self) -> bool:
        return self.type in _WRITES

    def is_create(self) -> bool:
        return self.type in (ActionType.THREAD_CREATE, ActionType.PTHREAD_CREATE)

    def is_free(self) -> bool:
        return self.type == ActionType.READY_FREE

    def could_be_write(self) -> bool:
        return self.is_write() or self.is_rmwr()

    def is_yield(self) -> bool:
        return self.type == ActionType.THREAD_YIELD

    def is_rmwr(self) -> bool:
        return self.type in (ActionType.ATOMIC_RMWR, ActionType.ATOMIC_RMWRCAS)

    def is_rmwrcas(self) -> bool:
        return self.type == ActionType.ATOMIC_RMWRCAS

    def is_rmw(self) -> bool:
        return self.type == ActionType.ATOMIC_RMW

    def is_rmwc(self) -> bool:
        return self.type == ActionType.ATOMIC_RMWC

    def is_fence(self) -> bool:
        return self.type == ActionType.ATOMIC_FENCE

    def is_initialization(self) -> bool:
        return self.type == ActionType.ATOMIC_INIT

    def is_annotation(self) -> bool:
        return self.type == ActionType.ATOMIC_ANNOTATION

    def is_relaxed(self) -> bool:
        return self.order == MemoryOrder.RELAXED

    def is_acquire(self) -> bool:
        return self.order in _ACQUIRE_ORDERS

    def is_release(self) -> bool:
        return self.order in _RELEASE_ORDERS

    def is_seqcst(self) -> bool:
        return self.order == MemoryOrder.SEQ_CST

    # --- relations --------------------------------------------------------

    def same_var(self, act: "ModelAction") -> bool:
        """True if both actions touch the same object; waits are matched by their mutex."""
        if act.is_wait() and self.is_wait():
            if self.value == act.value:
                return True
        elif self.is_wait():
            if self.value == act.location:
                return True
        elif act.is_wait():
            if self.location == act.value:
                return True
        return self.location == act.location

    def same_thread(self, act: "ModelAction") -> bool:
        return self.tid == act.tid

    def get_thread_operand(self) -> Any:
        """Return the thread created or joined by this action, or None."""
        if self.type in (ActionType.THREAD_CREATE, ActionType.PTHREAD_CREATE):
            return self.thread_operand
        if self.type in (ActionType.THREAD_JOIN, ActionType.PTHREAD_JOIN):
            return self.location
        return None

    def process_rmw(self, act: "ModelAction") -> None:
        """Turn this RMW read part into a full RMW or a plain read, according to ``act``."""
        self.order = act.order
        if act.is_rmwc():
            self.type = ActionType.ATOMIC_READ
        elif act.is_rmw():
            self.type = ActionType.ATOMIC_RMW
            self.value = act.value

    def could_synchronize_with(self, act: "ModelAction") -> bool:
        """True if reordering with ``act`` might create or break synchronization."""
        if self.same_thread(act):
            return False
        if not self.same_var(act) and not self.is_fence() and not act.is_fence():
            return False
        if (
            self.could_be_write() or act.could_be_write() or self.is_fence() or act.is_fence()
        ) and self.is_seqcst() and act.is_seqcst():
            return True
        if self.is_acquire() and act.is_release() and self.is_read() and act.could_be_write():
            return True
        if (self.is_lock() or self.is_trylock()) and (act.is_unlock() or act.is_wait()):
            return True
        if self.is_trylock() and act.is_success_lock():
            return True
        if self.is_unlock() and (act.is_trylock() or act.is_lock()):
            return True
        if self.is_trylock() and (act.is_unlock() or act.is_wait()):
            return True
        if self.is_notify() and act.is_wait():
            return True
        if self.is_wait() and act.is_notify():
            return True
        return False

    def is_conflicting_lock(self, act: "ModelAction") -> bool:
        if self.same_thread(act):
            return False
        if act.is_success_lock():
            return True
        succeeded = self.is_trylock() and self.value == VALUE_TRYSUCCESS
        if act.is_unlock() and succeeded:
            return True
        if act.is_wait() and succeeded:
            return True
        return False

    # --- clocks -----------------------------------------------------------

    def create_cv(self, parent: Optional["ModelAction"] = None) -> None:
        """Create this action's clock vector, inheriting from ``parent`` if given."""
        self.cv = ClockVector(parent.cv if parent is not None else None, self)

    def synchronize_with(self, act: "ModelAction") -> bool:
        """Merge ``act``'s clock into ours; False if ``act`` comes later in the execution."""
        if self < act:
            return False
        self.cv.merge(act.cv)
        return True

    def has_synchronized_with(self, act: "ModelAction") -> bool:
        return self.cv.synchronized_since(act)

    def happens_before(self, act: "ModelAction") -> bool:
        return act.cv.synchronized_since(self)

    # --- values -----------------------------------------------------------

    def set_try_lock(self, obtained: bool) -> None:
        self.value = VALUE_TRYSUCCESS if obtained else VALUE_TRYFAILED

    def get_reads_from_value(self) -> int:
        """Return the value this load read, or VALUE_NONE if it reads from nothing yet."""
        if not self.is_read():
            raise ValueError("action is not a read")
        if self.reads_from is not None:
            return self.reads_from.get_write_value()
        return VALUE_NONE

    def get_write_value(self) -> int:
        """Return the value this store wrote."""
        if not self.is_write():
            raise ValueError("action is not a write")
        return self.value

    def get_return_value(self) -> int:
        if self.is_read():
            return self.get_reads_from_value()
        if self.is_write():
            return self.get_write_value()
        return self.value

    def set_read_from(self, act: "ModelAction") -> None:
        if act is None:
            raise ValueError("reads-from action must be given")
        self.reads_from = act

    def get_mutex(self) -> Any:
        """Return the mutex operated on by a lock, trylock, unlock or wait, else None."""
        if self.is_trylock() or self.is_lock() or self.is_unlock():
            return self.location
        if self.is_wait():
            return self.value
        return None

    # --- output -----------------------------------------------------------

    def action_hash(self) -> int:
        """Return a 32-bit hash of the action's type, order, clock, thread and read value."""
        h = int(self.type) & _UINT32
        h ^= (int(self.order) << 3) & _UINT32
        h ^= (self.seq_number << 5) & _UINT32
        h ^= (self.tid << 6) & _UINT32
        if self.is_read():
            if self.reads_from is not None:
                h ^= self.reads_from.seq_number & _UINT32
            h ^= self.get_reads_from_value() & _UINT32
        return h & _UINT32

    def format(self) -> str:
        """Return a trace line describing this action, ending with a newline."""
        location = "(nil)" if self.location is None else (
            hex(self.location) if isinstance(self.location, int) else str(self.location)
        )
        ret = self.get_return_value()
        ret_str = "0" if ret == 0 else f"{ret:#x}"
        parts = [
            f"{self.seq_number:<4d} {self.tid:<2d}   {_describe_type(self.type):<14}  "
            f"{_describe_order(self.order):>7}  {location:>14}   {ret_str:<18}"
        ]
        if self.is_read():
            if self.is_write():
                parts.append(f"({self.get_write_value():x})")
            if self.reads_from is not None:
                parts.append(f"  {self.reads_from.seq_number:<3d}")
            else:
                parts.append("  ?  ")
        if self.cv is not None:
            parts.append(" " if self.is_read() else "      ")
            parts.append(f"{self.cv}\n")
        else:
            parts.append("\n")
        return "".join(parts)

    def __str__(self) -> str:
        return self.format().rstrip("\n")

    def __lt__(self, other: "ModelAction") -> bool:
        return self.seq_number < other.seq_number

    def __gt__(self, other: "ModelAction") -> bool:
        return self.seq_number > other.seq_number