import pytest

from mocheck.action import ModelAction
from mocheck.actionlist import ActionList
from mocheck.actiontype import ActionType


def make(seq, tid=0):
    act = ModelAction(ActionType.ATOMIC_WRITE, location=0x100, value=seq, tid=tid)
    act.set_seq_number(seq)
    return act


@pytest.fixture
def actions():
    return [make(s) for s in (5, 1, 9, 3)]


def test_iteration_is_sorted(actions):
    lst = ActionList()
    for act in actions:
        lst.add(act)
    assert [a.seq_number for a in lst] == sorted(a.seq_number for a in actions)
    assert len(lst) == len(actions)


def test_equal_clocks_keep_insertion_order():
    lst = ActionList()
    a, b, c = make(4), make(4), make(2)
    for act in (a, b, c):
        lst.add(act)
    assert list(lst) == [c, a, b]
    assert list(reversed(lst)) == [b, a, c]


def test_first_and_last(actions):
    lst = ActionList()
    assert lst.first() is None
    assert lst.last() is None
    for act in actions:
        lst.add(act)
    assert lst.first() is min(actions, key=lambda a: a.seq_number)
    assert lst.last() is max(actions, key=lambda a: a.seq_number)


def test_remove(actions):
    lst = ActionList()
    for act in actions:
        lst.add(act)
    lst.remove(actions[0])
    assert actions[0] not in list(lst)
    assert len(lst) == len(actions) - 1


def test_remove_one_of_equal_clocks():
    lst = ActionList()
    a, b = make(7), make(7)
    lst.add(a)
    lst.add(b)
    lst.remove(a)
    assert list(lst) == [b]
    lst.remove(b)
    assert lst.is_empty()
    assert len(lst) == 0


def test_remove_missing_is_ignored(actions):
    lst = ActionList()
    lst.add(actions[0])
    lst.remove(make(actions[0].seq_number))
    lst.remove(make(42))
    assert list(lst) == [actions[0]]


def test_clear(actions):
    lst = ActionList()
    for act in actions:
        lst.add(act)
    lst.clear()
    assert lst.is_empty()
    assert list(lst) == []
    assert len(lst) == 0


def test_reversed_is_reverse_of_iter(actions):
    lst = ActionList()
    for act in actions:
        lst.add(act)
    assert list(reversed(lst)) == list(lst)[::-1]