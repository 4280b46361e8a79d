"""Shadow memory for data-race detection.

Every byte address maps to a shadow value. That value is one of three things:
zero, meaning the byte has not been accessed; a compact 64-bit record; or a
full :class:`RaceRecord`.

The compact form is laid out as follows:

* bit 0 is always 1
* bits 1-6 hold the read thread id
* bits 7-31 hold the read clock
* bits 32-37 hold the write thread id
* bits 38-62 hold the write clock
* bit 63 is set when the last write was atomic
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from mocheck.clockvector import ClockVector

__all__ = [
    "THREADMASK",
    "READMASK",
    "WRITEMASK",
    "ATOMICMASK",
    "NONATOMICMASK",
    "MAXTHREADID",
    "MAXREADVECTOR",
    "MAXWRITEVECTOR",
    "INITCAPACITY",
    "INVALIDSHADOWVAL",
    "MASK16BIT",
    "FIRST_STACK_FRAME",
    "encode_op",
    "is_short_record",
    "read_thread_id",
    "read_clock",
    "write_thread_id",
    "write_clock",
    "clock_may_race",
    "RaceRecord",
    "DataRace",
    "ShadowMemory",
]

_UINT64 = (1 << 64) - 1

THREADMASK = 0x3F
READMASK = 0x1FFFFFF
WRITEMASK = READMASK
ATOMICMASK = 1 << 63
NONATOMICMASK = ~ATOMICMASK & _UINT64

MAXTHREADID = THREADMASK - 1
MAXREADVECTOR = READMASK - 1
MAXWRITEVECTOR = WRITEMASK - 1

INITCAPACITY = 4
INVALIDSHADOWVAL = 0x2
MASK16BIT = 0xFFFF

#: Stack frames below this index are ignored when comparing races.
FIRST_STACK_FRAME = 2


def encode_op(rdthread: int, rdtime: int, wrthread: int, wrtime: int) -> int:
    """Pack a read and a write access into a compact shadow value."""
    return (
        0x1
        | (rdthread << 1)
        | (rdtime << 7)
        | (wrthread << 32)
        | (wrtime << 38)
    ) & _UINT64


def is_short_record(value: int) -> bool:
    """True if ``value`` is a compact shadow record."""
    return bool(value & 0x1)


def read_thread_id(value: int) -> int:
    return (value >> 1) & THREADMASK


def read_clock(value: int) -> int:
    return (value >> 7) & READMASK


def write_thread_id(value: int) -> int:
    return (value >> 32) & THREADMASK


def write_clock(value: int) -> int:
    return (value >> 38) & WRITEMASK


def clock_may_race(clock: ClockVector, tid: int, other_clock: int, other_tid: int) -> bool:
    """True if an access by ``tid`` with vector ``clock`` may race with the event at ``other_clock``/``other_tid``."""
    return tid != other_tid and other_clock != 0 and clock.get_clock(other_tid) <= other_clock


@dataclass
class RaceRecord:
    """The full form of a shadow value: any number of reads and the last write."""

    write_thread: int = 0
    write_clock: int = 0
    is_atomic: bool = False
    reads: List[Tuple[int, int]] = field(default_factory=list)

    @staticmethod
    def from_short(value: int) -> "RaceRecord":
        """Expand a compact shadow value (or zero) into a full record."""
        record = RaceRecord(
            write_thread=write_thread_id(value),
            write_clock=write_clock(value),
            is_atomic=bool(value & ATOMICMASK),
        )
        rclock = read_clock(value)
        if rclock != 0:
            record.reads.append((read_thread_id(value), rclock))
        return record


@dataclass(eq=False)
class DataRace:
    """A detected race between an earlier access and a new action."""

    oldthread: int
    oldclock: int
    isoldwrite: bool
    newaction: Any
    isnewwrite: bool
    address: Any
    backtrace: Tuple[str, ...] = ()

    def _frames(self) -> Tuple[str, ...]:
        return tuple(self.backtrace[FIRST_STACK_FRAME:])

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DataRace):
            return NotImplemented
        return len(self.backtrace) == len(other.backtrace) and self._frames() == other._frames()

    def __hash__(self) -> int:
        return hash((len(self.backtrace), self._frames()))

    def format(self) -> str:
        """Return the report printed when this race is first seen."""
        address = f"{self.address:#x}" if isinstance(self.address, int) else str(self.address)
        lines = ["Race detected at location: \n"]
        lines.extend(f"{frame}\n" for frame in self.backtrace)
        lines.append(
            f"\nData race detected @ address {address}:\n"
            f"    Access 1: {'write' if self.isoldwrite else 'read':>5} in thread "
            f"{self.oldthread:2d} @ clock {self.oldclock:3d}\n"
            f"    Access 2: {'write' if self.isnewwrite else 'read':>5} in thread "
            f"{self.newaction.tid:2d} @ clock {self.newaction.seq_number:3d}\n\n"
        )
        return "".join(lines)


ShadowValue = Union[int, RaceRecord]


class ShadowMemory:
    """Maps byte addresses to shadow values; unseen addresses read as zero."""

    def __init__(self) -> None:
        self._table: Dict[int, ShadowValue] = {}

    def get(self, address: int) -> ShadowValue:
        """Return the shadow value for ``address``."""
        return self._table.get(address, 0)

    def set(self, address: int, value: ShadowValue) -> None:
        """Store a compact value or a full record for ``address``."""
        if isinstance(value, bool) or not isinstance(value, (int, RaceRecord)):
            raise TypeError("shadow value must be an int or a RaceRecord")
        if isinstance(value, int) and not 0 <= value <= _UINT64:
            raise ValueError("shadow value must fit in 64 bits")
        self._table[address] = value

    def expand(self, address: int) -> RaceRecord:
        """Turn the value at ``address`` into a full record and return it."""
        value = self.get(address)
        if isinstance(value, RaceRecord):
            return value
        record = RaceRecord.from_short(value)
        self._table[address] = record
        return record

    def has_nonatomic_store(self, address: int) -> bool:
        """True unless the last store to ``address`` was atomic."""
        value = self.get(address)
        if isinstance(value, RaceRecord):
            return not value.is_atomic
        if value == 0:
            return True
        return not (value & ATOMICMASK)

    def set_atomic_store_flag(self, address: int) -> None:
        """Mark the last store to ``address`` as atomic."""
        value = self.get(address)
        if isinstance(value, RaceRecord):
            value.is_atomic = True
        elif value == 0:
            self._table[address] = ATOMICMASK | encode_op(0, 0, 0, 0)
        else:
            self._table[address] = value | ATOMICMASK

    def store_thread_and_clock(self, address: int) -> Tuple[int, int]:
        """Return the thread and clock of the last store to ``address``."""
        value = self.get(address)
        if isinstance(value, RaceRecord):
            return value.write_thread, value.write_clock
        return write_thread_id(value), write_clock(value)

    def record(self, address: int) -> Optional[RaceRecord]:
        """Return the full record at ``address``, or None if it is compact."""
        value = self.get(address)
        return value if isinstance(value, RaceRecord) else None