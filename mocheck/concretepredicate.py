"""Concrete predicates: predicate expressions evaluated for one thread."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List

__all__ = ["ConcretePredExpr", "ConcretePredicate"]


@dataclass(frozen=True)
class ConcretePredExpr:
    """One evaluated predicate expression: a token, its value and the expected equality."""

    token: Any
    value: int
    equality: bool


class ConcretePredicate:
    """A list of concrete predicate expressions recorded for a thread and location."""

    def __init__(self, tid: int) -> None:
        self.tid = tid
        self.location: Any = None
        self.expressions: List[ConcretePredExpr] = []

    def add_expression(self, token: Any, value: int, equality: bool) -> None:
        """Append an expression to this predicate."""
        self.expressions.append(ConcretePredExpr(token, value, equality))

    def __repr__(self) -> str:
        return (
            f"ConcretePredicate(tid={self.tid}, location={self.location!r}, "
            f"expressions={self.expressions!r})"
        )