"""
Partial-state containers

FrequencyState backs MODE; MomentState backs the variance, skewness and
kurtosis family. Both merge by plain addition, which is what makes partial
aggregation order-independent.
"""

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any


class FrequencyState:
    """
    Occurrence count per distinct value

    Keys keep their first-insertion order. Order carries no meaning except
    as the tie-break for types without a natural order.

    Invariants:
        - every count is > 0
        - total == sum of counts == number of values observed
    """

    def __init__(self):
        self.counts: dict[Any, int] = {}
        self.total = 0

    def add(self, key: Any, count: int = 1) -> bool:
        """
        Add occurrences of a key

        Args:
            key: Non-null value
            count: Occurrences to add (must be positive)

        Returns:
            True if the key was not present before
        """
        if count <= 0:
            raise ValueError(f"count must be positive, got {count}")

        existing = self.counts.get(key)
        self.counts[key] = count if existing is None else existing + count
        self.total += count
        return existing is None

    def merge(self, other: "FrequencyState") -> list[Any]:
        """
        Add every count of other into self

        Returns:
            Keys that were new to self
        """
        added = []
        for key, count in other.counts.items():
            if self.add(key, count):
                added.append(key)
        return added

    def items(self) -> Iterator[tuple[Any, int]]:
        return iter(self.counts.items())

    def __len__(self) -> int:
        return len(self.counts)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FrequencyState):
            return NotImplemented
        return self.total == other.total and list(self.counts.items()) == list(other.counts.items())

    def __repr__(self) -> str:
        return f"FrequencyState(distinct={len(self.counts)}, total={self.total})"


@dataclass
class MomentState:
    """
    Count and raw power sums of the observed values

    s1..s4 are the sums of x, x**2, x**3 and x**4 over every non-null x.
    """

    count: int = 0
    s1: float = 0.0
    s2: float = 0.0
    s3: float = 0.0
    s4: float = 0.0

    def merge(self, other: "MomentState") -> None:
        """Component-wise addition"""
        self.count += other.count
        self.s1 += other.s1
        self.s2 += other.s2
        self.s3 += other.s3
        self.s4 += other.s4

    def as_tuple(self) -> tuple[int, float, float, float, float]:
        return (self.count, self.s1, self.s2, self.s3, self.s4)
