import pytest

from mocheck.action import ModelAction
from mocheck.actiontype import ActionType
from mocheck.clockvector import ClockVector
from mocheck.shadow import (
    ATOMICMASK,
    MAXTHREADID,
    MAXWRITEVECTOR,
    DataRace,
    RaceRecord,
    ShadowMemory,
    clock_may_race,
    encode_op,
    is_short_record,
    read_clock,
    read_thread_id,
    write_clock,
    write_thread_id,
)


def make_action(tid, seq):
    act = ModelAction(ActionType.ATOMIC_WRITE, location=0x100, value=0, tid=tid)
    act.set_seq_number(seq)
    return act


def test_encode_empty_is_marker_bit():
    assert encode_op(0, 0, 0, 0) == 0x1
    assert is_short_record(encode_op(0, 0, 0, 0))
    assert not is_short_record(0)


@pytest.mark.parametrize(
    "rt,rc,wt,wc",
    [(0, 0, 0, 0), (3, 17, 5, 42), (MAXTHREADID, MAXWRITEVECTOR, MAXTHREADID, MAXWRITEVECTOR)],
)
def test_encode_round_trip(rt, rc, wt, wc):
    value = encode_op(rt, rc, wt, wc)
    assert (read_thread_id(value), read_clock(value)) == (rt, rc)
    assert (write_thread_id(value), write_clock(value)) == (wt, wc)
    assert not value & ATOMICMASK


def test_encode_atomic_flag_preserves_fields():
    value = encode_op(2, 9, 4, 11) | ATOMICMASK
    assert read_thread_id(value) == 2
    assert write_clock(value) == 11
    assert value < (1 << 64)


def test_clock_may_race():
    cv = ClockVector(None, make_action(1, 5))
    assert clock_may_race(cv, 0, 5, 1) is True
    assert clock_may_race(cv, 0, 4, 1) is False
    assert clock_may_race(cv, 1, 5, 1) is False
    assert clock_may_race(cv, 0, 0, 2) is False


def test_race_record_from_short_with_read():
    record = RaceRecord.from_short(encode_op(2, 9, 4, 11) | ATOMICMASK)
    assert record.write_thread == 4
    assert record.write_clock == 11
    assert record.is_atomic is True
    assert record.reads == [(2, 9)]


def test_race_record_from_short_without_read():
    record = RaceRecord.from_short(encode_op(0, 0, 3, 7))
    assert record.reads == []
    assert record.is_atomic is False


def test_shadow_default_and_set():
    mem = ShadowMemory()
    assert mem.get(0x10) == 0
    mem.set(0x10, encode_op(1, 2, 3, 4))
    assert mem.get(0x10) == encode_op(1, 2, 3, 4)
    assert mem.get(0x11) == 0


def test_shadow_set_rejects_bad_values():
    mem = ShadowMemory()
    with pytest.raises(TypeError):
        mem.set(0x10, "x")
    with pytest.raises(ValueError):
        mem.set(0x10, -1)


def test_nonatomic_store_on_fresh_address():
    mem = ShadowMemory()
    assert mem.has_nonatomic_store(0x20) is True
    mem.set_atomic_store_flag(0x20)
    assert mem.get(0x20) == ATOMICMASK | encode_op(0, 0, 0, 0)
    assert mem.has_nonatomic_store(0x20) is False


def test_atomic_flag_on_short_record_keeps_store():
    mem = ShadowMemory()
    mem.set(0x30, encode_op(0, 0, 3, 7))
    assert mem.has_nonatomic_store(0x30) is True
    mem.set_atomic_store_flag(0x30)
    assert mem.has_nonatomic_store(0x30) is False
    assert mem.store_thread_and_clock(0x30) == (3, 7)


def test_expand_preserves_store_and_flags():
    mem = ShadowMemory()
    mem.set(0x40, encode_op(1, 6, 3, 7))
    before = mem.store_thread_and_clock(0x40)
    record = mem.expand(0x40)
    assert mem.get(0x40) is record
    assert mem.expand(0x40) is record
    assert mem.store_thread_and_clock(0x40) == before
    assert record.reads == [(1, 6)]
    assert mem.has_nonatomic_store(0x40) is True
    mem.set_atomic_store_flag(0x40)
    assert record.is_atomic is True
    assert mem.has_nonatomic_store(0x40) is False


def test_data_race_equality_ignores_first_frames():
    a = DataRace(1, 2, True, make_action(0, 3), False, 0x10, ("x", "y", "f", "g"))
    b = DataRace(4, 5, False, make_action(2, 6), True, 0x20, ("p", "q", "f", "g"))
    c = DataRace(1, 2, True, make_action(0, 3), False, 0x10, ("x", "y", "f", "h"))
    assert a == b
    assert hash(a) == hash(b)
    assert a != c
    assert len({a, b, c}) == 2


def test_data_race_format():
    race = DataRace(1, 2, True, make_action(3, 8), False, 0x10, ("frame0",))
    text = race.format()
    assert text.startswith("Race detected at location: \nframe0\n")
    assert "Data race detected @ address 0x10:" in text
    assert "Access 1: write in thread  1" in text
    assert "Access 2:  read in thread  3" in text
    assert text.endswith("\n\n")