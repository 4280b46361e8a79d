"""Data-race detection over shadow memory, driven by per-thread clock vectors."""

from __future__ import annotations

import sys
import traceback
from typing import Any, Callable, List, Optional, Set, TextIO, Tuple

from mocheck.clockvector import ClockVector
from mocheck.shadow import (
    ATOMICMASK,
    INVALIDSHADOWVAL,
    MASK16BIT,
    MAXTHREADID,
    MAXWRITEVECTOR,
    DataRace,
    RaceRecord,
    ShadowMemory,
    clock_may_race,
    encode_op,
    read_clock,
    read_thread_id,
    write_clock,
    write_thread_id,
)

__all__ = ["RaceDetector"]

_ACCESS_SIZES = (1, 2, 4, 8)

_ByteResult = Tuple[Optional[DataRace], int, int]
_ByteCheck = Callable[[int, int, ClockVector], _ByteResult]


def _too_large(tid: int, clock: int) -> bool:
    """True if ``tid`` or ``clock`` cannot be stored in a compact record."""
    return tid > MAXTHREADID or clock > MAXWRITEVECTOR


class RaceDetector:
    """Checks memory accesses for data races.

    ``get_cv(tid)`` returns the current clock vector of a thread, or None if the
    thread has none yet; ``get_parent_action(tid)`` returns the action that a
    newly detected race is attributed to. Reports are written to ``out``.
    """

    def __init__(
        self,
        get_cv: Callable[[int], Optional[ClockVector]],
        get_parent_action: Callable[[int], Any],
        out: Optional[TextIO] = None,
    ) -> None:
        self._get_cv = get_cv
        self._get_parent_action = get_parent_action
        self._out = out if out is not None else sys.stdout
        self.shadow = ShadowMemory()
        self.races: List[DataRace] = []
        self._seen: Set[DataRace] = set()

    # --- reporting ----------------------------------------------------------

    def _race(self, tid: int, oldthread: int, oldclock: int, isoldwrite: bool,
              isnewwrite: bool, address: int) -> DataRace:
        return DataRace(
            oldthread=oldthread,
            oldclock=oldclock,
            isoldwrite=isoldwrite,
            newaction=self._get_parent_action(tid),
            isnewwrite=isnewwrite,
            address=address,
        )

    @staticmethod
    def _backtrace() -> Tuple[str, ...]:
        frames = list(reversed(traceback.extract_stack()))
        inner = [f for f in frames if f.filename == __file__]
        outer = [f for f in frames if f.filename != __file__]
        chosen = [inner[0], inner[-1]] + outer
        return tuple(f"{f.filename}:{f.lineno} in {f.name}" for f in chosen)

    def _report(self, race: Optional[DataRace]) -> None:
        if race is None:
            return
        race.backtrace = self._backtrace()
        if race in self._seen:
            return
        self._seen.add(race)
        self.races.append(race)
        self._out.write(race.format())

    # --- full records -------------------------------------------------------

    def _full_write(self, tid: int, address: int, record: RaceRecord,
                    cv: ClockVector, atomic: bool) -> Optional[DataRace]:
        race = None
        if not (atomic and record.is_atomic):
            for rthread, rclock in record.reads:
                if clock_may_race(cv, tid, rclock, rthread):
                    race = self._race(tid, rthread, rclock, False, True, address)
                    break
            else:
                if clock_may_race(cv, tid, record.write_clock, record.write_thread):
                    race = self._race(tid, record.write_thread, record.write_clock,
                                      True, True, address)
        record.reads.clear()
        record.write_thread = tid
        record.is_atomic = atomic
        record.write_clock = cv.get_clock(tid)
        return race

    def _full_read(self, tid: int, address: int, record: RaceRecord,
                   cv: ClockVector) -> Optional[DataRace]:
        race = None
        if clock_may_race(cv, tid, record.write_clock, record.write_thread):
            race = self._race(tid, record.write_thread, record.write_clock,
                              True, False, address)
        # Keep only the reads this one does not subsume.
        record.reads = [
            (rthread, rclock)
            for rthread, rclock in record.reads
            if clock_may_race(cv, tid, rclock, rthread)
        ]
        record.reads.append((tid, cv.get_clock(tid)))
        return race

    @staticmethod
    def _set_full_store(tid: int, record: RaceRecord, cv: ClockVector, atomic: bool) -> None:
        record.reads.clear()
        record.write_thread = tid
        record.write_clock = cv.get_clock(tid)
        record.is_atomic = atomic

    # --- single-byte checks -------------------------------------------------

    def _write_byte(self, tid: int, address: int, cv: ClockVector) -> _ByteResult:
        value = self.shadow.get(address)
        if isinstance(value, RaceRecord):
            return self._full_write(tid, address, value, cv, False), INVALIDSHADOWVAL, INVALIDSHADOWVAL
        our = cv.get_clock(tid)
        if _too_large(tid, our):
            record = self.shadow.expand(address)
            return self._full_write(tid, address, record, cv, False), INVALIDSHADOWVAL, INVALIDSHADOWVAL

        race = None
        rthread, rclock = read_thread_id(value), read_clock(value)
        if clock_may_race(cv, tid, rclock, rthread):
            race = self._race(tid, rthread, rclock, False, True, address)
        else:
            wthread, wclock = write_thread_id(value), write_clock(value)
            if clock_may_race(cv, tid, wclock, wthread):
                race = self._race(tid, wthread, wclock, True, True, address)
        new = encode_op(0, 0, tid, our)
        self.shadow.set(address, new)
        return race, value, new

    def _read_byte(self, tid: int, address: int, cv: ClockVector) -> _ByteResult:
        value = self.shadow.get(address)
        if isinstance(value, RaceRecord):
            return self._full_read(tid, address, value, cv), INVALIDSHADOWVAL, INVALIDSHADOWVAL
        our = cv.get_clock(tid)
        if _too_large(tid, our):
            record = self.shadow.expand(address)
            return self._full_read(tid, address, record, cv), INVALIDSHADOWVAL, INVALIDSHADOWVAL

        race = None
        wthread, wclock = write_thread_id(value), write_clock(value)
        if clock_may_race(cv, tid, wclock, wthread):
            race = self._race(tid, wthread, wclock, True, False, address)

        rthread, rclock = read_thread_id(value), read_clock(value)
        if clock_may_race(cv, tid, rclock, rthread):
            # This read does not subsume the previous one: keep both.
            record = self.shadow.expand(address)
            record.reads.append((tid, our))
            return race, INVALIDSHADOWVAL, INVALIDSHADOWVAL

        new = encode_op(tid, our, wthread, wclock) | (value & ATOMICMASK)
        self.shadow.set(address, new)
        return race, value, new

    # --- multi-byte checks --------------------------------------------------

    def _check_access(self, tid: int, address: int, size: int, byte_check: _ByteCheck) -> None:
        if size not in _ACCESS_SIZES:
            raise ValueError(f"access size must be one of {_ACCESS_SIZES}, not {size}")
        cv = self._get_cv(tid)
        if cv is None:
            return
        race, old, new = byte_check(tid, address, cv)
        self._report(race)
        start = 1
        if (address & MASK16BIT) + size - 1 <= MASK16BIT:
            # Neighbouring bytes holding the same shadow value get the same result.
            while start < size:
                value = self.shadow.get(address + start)
                if isinstance(value, int) and value == old:
                    self.shadow.set(address + start, new)
                    start += 1
                else:
                    break
        for offset in range(start, size):
            race, _, _ = byte_check(tid, address + offset, cv)
            self._report(race)

    def _check_memop(self, tid: int, address: int, size: int, byte_check: _ByteCheck) -> None:
        cv = self._get_cv(tid)
        if cv is None:
            return
        reported = False
        for offset in range(size):
            race, _, _ = byte_check(tid, address + offset, cv)
            if race is not None and not reported:
                reported = True
                self._report(race)

    def check_read(self, tid: int, address: int, size: int) -> None:
        """Check a non-atomic load of ``size`` bytes (1, 2, 4 or 8)."""
        self._check_access(tid, address, size, self._read_byte)

    def check_write(self, tid: int, address: int, size: int) -> None:
        """Check a non-atomic store of ``size`` bytes (1, 2, 4 or 8)."""
        self._check_access(tid, address, size, self._write_byte)

    def check_read_memop(self, tid: int, address: int, size: int) -> None:
        """Check a bulk read of ``size`` bytes; at most one race is reported."""
        self._check_memop(tid, address, size, self._read_byte)

    def check_write_memop(self, tid: int, address: int, size: int) -> None:
        """Check a bulk write of ``size`` bytes; at most one race is reported."""
        self._check_memop(tid, address, size, self._write_byte)

    # --- atomic accesses ----------------------------------------------------

    def atom_check_write(self, tid: int, address: int) -> None:
        """Check an atomic store to one byte against earlier non-atomic accesses."""
        cv = self._get_cv(tid)
        if cv is None:
            return
        value = self.shadow.get(address)
        if isinstance(value, RaceRecord):
            self._report(self._full_write(tid, address, value, cv, True))
            return
        our = cv.get_clock(tid)
        if _too_large(tid, our):
            record = self.shadow.expand(address)
            self._report(self._full_write(tid, address, record, cv, True))
            return

        race = None
        if not value & ATOMICMASK:
            rthread, rclock = read_thread_id(value), read_clock(value)
            if clock_may_race(cv, tid, rclock, rthread):
                race = self._race(tid, rthread, rclock, False, True, address)
            else:
                wthread, wclock = write_thread_id(value), write_clock(value)
                if clock_may_race(cv, tid, wclock, wthread):
                    race = self._race(tid, wthread, wclock, True, True, address)
        self.shadow.set(address, encode_op(0, 0, tid, our) | ATOMICMASK)
        self._report(race)

    def atom_check_read(self, tid: int, address: int) -> None:
        """Check an atomic load of one byte against an earlier non-atomic store."""
        cv = self._get_cv(tid)
        if cv is None:
            return
        value = self.shadow.get(address)
        if isinstance(value, RaceRecord):
            if value.is_atomic:
                return
            wthread, wclock = value.write_thread, value.write_clock
        else:
            if value & ATOMICMASK:
                return
            wthread, wclock = write_thread_id(value), write_clock(value)
        if clock_may_race(cv, tid, wclock, wthread):
            self._report(self._race(tid, wthread, wclock, True, False, address))

    def _require_cv(self, tid: int) -> ClockVector:
        cv = self._get_cv(tid)
        if cv is None:
            raise RuntimeError(f"thread {tid} has no clock vector")
        return cv

    def record_write(self, tid: int, address: int) -> None:
        """Record an atomic store to one byte without checking for races."""
        cv = self._require_cv(tid)
        value = self.shadow.get(address)
        if isinstance(value, RaceRecord):
            self._set_full_store(tid, value, cv, True)
            return
        our = cv.get_clock(tid)
        if _too_large(tid, our):
            self._set_full_store(tid, self.shadow.expand(address), cv, True)
            return
        self.shadow.set(address, encode_op(0, 0, tid, our) | ATOMICMASK)

    def record_calloc(self, tid: int, address: int, size: int) -> None:
        """Record non-atomic stores to ``size`` bytes of freshly zeroed memory."""
        cv = self._require_cv(tid)
        for offset in range(size):
            location = address + offset
            value = self.shadow.get(location)
            if isinstance(value, RaceRecord):
                self._set_full_store(tid, value, cv, False)
                return
            our = cv.get_clock(tid)
            if _too_large(tid, our):
                self._set_full_store(tid, self.shadow.expand(location), cv, False)
                return
            self.shadow.set(location, encode_op(0, 0, tid, our))

    # --- queries --------------------------------------------------------------

    def has_nonatomic_store(self, address: int) -> bool:
        """True unless the last store to ``address`` was atomic."""
        return self.shadow.has_nonatomic_store(address)

    def set_atomic_store_flag(self, address: int) -> None:
        """Mark the last store to ``address`` as atomic."""
        self.shadow.set_atomic_store_flag(address)

    def store_thread_and_clock(self, address: int) -> Tuple[int, int]:
        """Return the thread and clock of the last store to ``address``."""
        return self.shadow.store_thread_and_clock(address)