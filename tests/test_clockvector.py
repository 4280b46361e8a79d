from dataclasses import dataclass

import pytest

from mocheck.clockvector import ClockVector


@dataclass
class Stamp:
    tid: int
    seq_number: int


def clocks(cv):
    return [cv.get_clock(i) for i in range(len(cv))]


def test_empty_vector():
    cv = ClockVector()
    assert len(cv) == 0
    assert cv.get_clock(0) == 0


def test_action_sets_its_thread_clock():
    cv = ClockVector(None, Stamp(tid=2, seq_number=9))
    assert len(cv) == 3
    assert clocks(cv) == [0, 0, 9]


def test_inherits_parent_and_keeps_longer_length():
    parent = ClockVector(None, Stamp(tid=3, seq_number=4))
    child = ClockVector(parent, Stamp(tid=1, seq_number=6))
    assert len(child) == 4
    assert clocks(child) == [0, 6, 0, 4]
    # parent untouched
    assert clocks(parent) == [0, 0, 0, 4]


def test_merge_takes_maximum_and_reports_change():
    a = ClockVector(None, Stamp(tid=0, seq_number=5))
    b = ClockVector(None, Stamp(tid=2, seq_number=3))
    assert a.merge(b) is True
    assert clocks(a) == [5, 0, 3]
    assert a.merge(b) is False


def test_merge_with_smaller_values_is_no_change():
    a = ClockVector(None, Stamp(tid=0, seq_number=8))
    b = ClockVector(None, Stamp(tid=0, seq_number=2))
    assert a.merge(b) is False
    assert a.get_clock(0) == 8


def test_minmerge_takes_minimum():
    a = ClockVector(None, Stamp(tid=1, seq_number=8))
    b = ClockVector(None, Stamp(tid=1, seq_number=2))
    assert a.minmerge(b) is True
    assert a.get_clock(1) == 2
    assert a.minmerge(b) is False


def test_merge_rejects_none():
    with pytest.raises(ValueError):
        ClockVector().merge(None)


def test_synchronized_since():
    cv = ClockVector(None, Stamp(tid=1, seq_number=10))
    assert cv.synchronized_since(Stamp(tid=1, seq_number=10))
    assert cv.synchronized_since(Stamp(tid=1, seq_number=3))
    assert not cv.synchronized_since(Stamp(tid=1, seq_number=11))
    assert not cv.synchronized_since(Stamp(tid=5, seq_number=1))


def test_get_clock_out_of_range_is_zero():
    cv = ClockVector(None, Stamp(tid=1, seq_number=4))
    assert cv.get_clock(7) == 0


def test_str_format():
    cv = ClockVector(None, Stamp(tid=1, seq_number=5))
    assert str(cv) == "( 0,  5)"