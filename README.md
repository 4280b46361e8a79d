# mocheck

Core data structures for checking concurrent programs against the C11/C++11
memory model. The package has no dependencies outside the standard library.

## Modules

- `mocheck.memorder` – `MemoryOrder` (an `IntEnum` of the six standard orders,
  with `describe()`), and helpers for wildcard orders: `wildcard`,
  `get_wildcard_id`, `get_wildcard_id_zero`, `is_wildcard`, `is_normal_mo`,
  `is_normal_mo_infer`, plus constants such as `MEMORY_ORDER_NORMAL` and
  `WILDCARD_NONEXIST`.
- `mocheck.actiontype` – `ActionType`, the kinds of events a thread performs,
  with `describe()`; and the constants `VALUE_NONE` and `FENCE_LOCATION`.
- `mocheck.clockvector` – `ClockVector`, per-thread logical clocks with
  `merge`, `minmerge`, `synchronized_since` and `get_clock`.
- `mocheck.action` – `ModelAction`, one recorded event: classification
  predicates (`is_read`, `is_write`, `is_lock`, `is_acquire`, ...),
  `same_var`, `could_synchronize_with`, `is_conflicting_lock`, `process_rmw`,
  the reads-from link (`set_read_from`, `get_return_value`), clock handling
  (`create_cv`, `synchronize_with`, `happens_before`), `action_hash` and a
  trace line from `format()`.
- `mocheck.concretepredicate` – `ConcretePredicate`, a list of
  `ConcretePredExpr` entries recorded for one thread.
- `mocheck.actionlist` – `ActionList`, actions kept in sequence-number order
  (ties keep insertion order), iterable forwards and backwards, with `first()`
  and `last()`.
- `mocheck.cyclegraph` – `CycleGraph` and `CycleNode`, the modification-order
  graph. Reachability is tracked through clock vectors; RMW chains are
  followed when edges are added. `dump_nodes` and `dump_graph_to_file` write
  the graph in dot syntax.
- `mocheck.shadow` – the compact 64-bit shadow encoding (`encode_op`,
  `read_thread_id`, `read_clock`, `write_thread_id`, `write_clock`),
  `clock_may_race`, the full `RaceRecord`, `ShadowMemory` and `DataRace`.
- `mocheck.datarace` – `RaceDetector`, which checks plain accesses
  (`check_read`, `check_write`, `check_read_memop`, `check_write_memop`) and
  atomic ones (`atom_check_read`, `atom_check_write`, `record_write`,
  `record_calloc`). It writes a report for each new race to its output stream
  and keeps the list in `races`.

## Installing

```
pip install .
```

Run the tests with:

```
pip install .[test]
pytest
```

## Example: happens-before through a release/acquire pair

```python
from mocheck.action import ModelAction
from mocheck.actiontype import ActionType
from mocheck.memorder import MemoryOrder

store = ModelAction(ActionType.ATOMIC_WRITE, MemoryOrder.RELEASE, 0x1000, value=5, tid=0)
store.set_seq_number(1)
store.create_cv(None)

load = ModelAction(ActionType.ATOMIC_READ, MemoryOrder.ACQUIRE, 0x1000, tid=1)
load.set_seq_number(2)
load.create_cv(None)
load.set_read_from(store)
load.synchronize_with(store)

assert load.get_return_value() == 5
assert store.happens_before(load)
```

## Example: detecting a race

```python
import io

from mocheck.action import ModelAction
from mocheck.actiontype import ActionType
from mocheck.datarace import RaceDetector

actions = {}
for tid, seq in ((0, 1), (1, 2)):
    act = ModelAction(ActionType.ATOMIC_WRITE, location=0x10, value=0, tid=tid)
    act.set_seq_number(seq)
    act.create_cv(None)
    actions[tid] = act

out = io.StringIO()
detector = RaceDetector(
    get_cv=lambda tid: actions[tid].cv,
    get_parent_action=lambda tid: actions[tid],
    out=out,
)
detector.check_write(0, 0x2000, 4)
detector.check_write(1, 0x2000, 4)   # unordered with thread 0's write

print(len(detector.races))  # 1
print(out.getvalue())
```

## What this package does not do

`mocheck` provides the data structures only. It does not run or instrument
programs, schedule threads, explore executions, or take snapshots; there is
no command-line tool. The caller supplies the actions, their sequence
numbers and thread ids, and the per-thread clock vectors that
`RaceDetector` consults.