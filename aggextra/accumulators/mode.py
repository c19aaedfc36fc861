"""
MODE aggregate - most frequent non-null value

State is an exact frequency map: one entry per distinct value. Nothing
bounds its size except the number of distinct inputs, so a high-cardinality
column costs memory proportional to its distinct count. This is logged once
the map crosses config.cardinality_warning_threshold (and again at every
doubling) but never capped; capping would turn MODE into an approximate
top-k.

Ties are broken only at finalize time:
- orderable types: smallest tied value under the type's natural order
  (NaN sorts after every number)
- unordered types (intervals): first tied value inserted into the map
"""

from typing import Any

import pyarrow as pa
import structlog

from aggextra.accumulators import codec
from aggextra.accumulators.base import Accumulator
from aggextra.accumulators.state import FrequencyState
from aggextra.core.batch import TypedColumn
from aggextra.core.config import AccumulatorConfig
from aggextra.kernels import frequency_kernel

logger = structlog.get_logger(__name__)

# Per-entry overhead of a dict slot plus the count, in bytes
_ENTRY_OVERHEAD = 16


class ModeAccumulator(Accumulator):
    """
    MODE accumulator

    Example:
        >>> acc = ModeAccumulator(LogicalType.INT64)
        >>> acc.update(pa.array([3, 1, 4, 1, 5]))
        >>> acc.finalize()
        1
    """

    kind = codec.FREQUENCY

    def __init__(self, data_type: Any, config: AccumulatorConfig | None = None):
        super().__init__(data_type, config)
        self._kernel = frequency_kernel(self.logical_type)
        self._state = FrequencyState()
        self._key_bytes = 0
        self._next_warning = self.config.cardinality_warning_threshold

    def _update_column(self, column: TypedColumn) -> None:
        for key, count in self._kernel.count(column.values):
            if self._state.add(key, count):
                self._key_bytes += self._kernel.key_size(key)
        self._check_cardinality()

    def _take_state(self) -> FrequencyState:
        state = self._state
        self._state = FrequencyState()
        self._key_bytes = 0
        return state

    def _merge_state(self, state: FrequencyState) -> None:
        for key in self._state.merge(state):
            self._key_bytes += self._kernel.key_size(key)
        self._check_cardinality()

    def _merge_arrays(self, arrays: list[pa.Array]) -> None:
        if arrays:
            self._fix_arrow_type(arrays[0].type)
        self._merge_state(codec.decode_frequency(arrays))

    def state(self) -> list[pa.Array]:
        return codec.encode_frequency(self._state, self.arrow_type)

    def state_schema(self) -> pa.Schema:
        return codec.state_fields(self.kind, self.arrow_type)

    def _ranked(self) -> list[tuple[Any, int]]:
        """Entries ordered by descending count, then by the tie-break rule"""
        entries = list(self._state.items())
        if self._kernel.ordered:
            sort_key = self._kernel.sort_key
            entries.sort(key=lambda entry: sort_key(entry[0]))
        # Stable sort keeps the tie-break order within equal counts
        entries.sort(key=lambda entry: entry[1], reverse=True)
        return entries

    def _evaluate(self) -> Any:
        if not self._state:
            return None

        best_key, best_count = None, 0
        if self._kernel.ordered:
            sort_key = self._kernel.sort_key
            for key, count in self._state.items():
                if count > best_count or (
                    count == best_count and sort_key(key) < sort_key(best_key)
                ):
                    best_key, best_count = key, count
        else:
            for key, count in self._state.items():
                if count > best_count:
                    best_key, best_count = key, count
        return best_key

    def most_common(self, k: int | None = None) -> list[tuple[Any, int]]:
        """
        Top-k (value, count) pairs in finalize order

        Does not close the accumulator.

        Args:
            k: Number of entries (all when None)
        """
        ranked = self._ranked()
        return ranked if k is None else ranked[:k]

    @property
    def frequencies(self) -> FrequencyState:
        """Current state (read-only by convention)"""
        return self._state

    def size(self) -> int:
        return self._key_bytes + _ENTRY_OVERHEAD * len(self._state)

    def is_empty(self) -> bool:
        return not self._state

    def _check_cardinality(self) -> None:
        distinct = len(self._state)
        if distinct < self._next_warning:
            return
        logger.warning(
            "high-cardinality mode state",
            logical_type=str(self.logical_type),
            distinct_keys=distinct,
            approx_bytes=self.size(),
        )
        while self._next_warning <= distinct:
            self._next_warning *= 2
