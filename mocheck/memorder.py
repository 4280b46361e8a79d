"""Memory orders for atomic operations, including wildcard orders used for inference."""

from __future__ import annotations

import enum

__all__ = [
    "MemoryOrder",
    "THREAD_ID_NONE",
    "MAX_WILDCARD_NUM",
    "INIT_WILDCARD_NUM",
    "WILDCARD_BASE",
    "MEMORY_ORDER_NORMAL",
    "WILDCARD_NONEXIST",
    "wildcard",
    "get_wildcard_id",
    "get_wildcard_id_zero",
    "is_wildcard",
    "is_normal_mo",
    "is_normal_mo_infer",
]

#: Thread identifier meaning "no thread".
THREAD_ID_NONE = -1

MAX_WILDCARD_NUM = 50
INIT_WILDCARD_NUM = 20

#: Wildcard order ``n`` is encoded as ``WILDCARD_BASE + n``.
WILDCARD_BASE = 0x1000

#: The order given to plain, non-atomic accesses.
MEMORY_ORDER_NORMAL = 0x2000

#: Marks an order that has no wildcard counterpart.
WILDCARD_NONEXIST = -1


class MemoryOrder(enum.IntEnum):
    """The six C11/C++11 memory orders."""

    RELAXED = 0
    CONSUME = 1
    ACQUIRE = 2
    RELEASE = 3
    ACQ_REL = 4
    SEQ_CST = 5

    def describe(self) -> str:
        """Return the short name used in execution traces."""
        return _ORDER_NAMES.get(self, "unknown")


_ORDER_NAMES = {
    MemoryOrder.RELAXED: "relaxed",
    MemoryOrder.ACQUIRE: "acquire",
    MemoryOrder.RELEASE: "release",
    MemoryOrder.ACQ_REL: "acq_rel",
    MemoryOrder.SEQ_CST: "seq_cst",
}


def _is_standard(order: int) -> bool:
    return MemoryOrder.RELAXED <= order <= MemoryOrder.SEQ_CST


def wildcard(x: int) -> int:
    """Return the encoded wildcard order with identifier ``x``."""
    return WILDCARD_BASE + x


def get_wildcard_id(order: int) -> int:
    """Return the wildcard identifier encoded in ``order``."""
    return int(order) - WILDCARD_BASE


def get_wildcard_id_zero(order: int) -> int:
    """Return the wildcard identifier, or 0 if it is not positive."""
    ident = get_wildcard_id(order)
    return ident if ident > 0 else 0


def is_wildcard(order: int) -> bool:
    """True if ``order`` is neither a standard order nor the normal order."""
    return not _is_standard(order) and order != MEMORY_ORDER_NORMAL


def is_normal_mo(order: int) -> bool:
    """True for a standard order or the normal (non-atomic) order."""
    return _is_standard(order) or order == MEMORY_ORDER_NORMAL


def is_normal_mo_infer(order: int) -> bool:
    """Like :func:`is_normal_mo`, but also accepts ``WILDCARD_NONEXIST``."""
    return is_normal_mo(order) or order == WILDCARD_NONEXIST