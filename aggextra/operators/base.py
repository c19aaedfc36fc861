"""
Base operator class for Volcano-style execution

These operators are a minimal host: enough of an engine to drive
accumulators the way a real query engine does (per-group update, partial
states shipped between stages, final merge) and to test them end to end.
"""

from collections.abc import Iterable, Iterator
from typing import Any


class Operator:
    """
    Base class for all operators

    The pull-based model: each operator iterates its child on demand.
    Leaf operators yield arrow record batches; aggregation operators yield
    rows as dictionaries.
    """

    def __init__(self, child: Iterable[Any] | None = None):
        """
        Initialize operator

        Args:
            child: Operator (or any iterable) to pull data from; None for
                leaf operators
        """
        self.child = child

    def __iter__(self) -> Iterator[Any]:
        raise NotImplementedError(f"{self.__class__.__name__} must implement __iter__()")

    def explain(self, indent: int = 0) -> list[str]:
        """Execution plan as indented lines"""
        lines = [" " * indent + repr(self)]
        if isinstance(self.child, Operator):
            lines.extend(self.child.explain(indent + 2))
        return lines

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"
