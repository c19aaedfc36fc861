"""
HashAggregate Operator

Hash-based GROUP BY over arrow record batches, driving the accumulators
exactly as a distributed engine does:

- SINGLE:  update per group, finalize per group
- PARTIAL: update per group, emit each group's serialized partial state
- FINAL:   merge serialized partial states per group, finalize per group

A two-stage plan is PARTIAL on every partition, then one FINAL over the
concatenated partial outputs.
"""

from collections.abc import Iterable, Iterator
from enum import Enum
from typing import Any

import pyarrow as pa
import structlog

from aggextra.accumulators import codec
from aggextra.accumulators.base import Accumulator
from aggextra.core.config import AccumulatorConfig
from aggextra.functions import AggregateFunction, create_accumulator
from aggextra.operators.base import Operator

logger = structlog.get_logger(__name__)


class AggregateMode(Enum):
    SINGLE = "SINGLE"
    PARTIAL = "PARTIAL"
    FINAL = "FINAL"


class HashAggregate(Operator):
    """
    GROUP BY operator with extra aggregates

    Input for SINGLE and PARTIAL is an iterable of pa.RecordBatch; input for
    FINAL is an iterable of rows emitted by PARTIAL operators. Output is one
    row dict per group, in first-seen group order. An aggregate whose
    column only ever held untyped nulls has no accumulator: it outputs None,
    and PARTIAL emits None in place of its state.

    Note: This operator keeps one accumulator per (group, aggregate) in
    memory until the input is exhausted.
    """

    def __init__(
        self,
        source: Iterable[Any],
        group_by_columns: list[str],
        aggregates: list[AggregateFunction],
        mode: AggregateMode = AggregateMode.SINGLE,
        config: AccumulatorConfig | None = None,
        input_types: dict[str, pa.DataType] | None = None,
    ):
        """
        Initialize HashAggregate operator

        Args:
            source: Child operator or iterable (batches, or partial rows for FINAL)
            group_by_columns: Columns to group by (empty for a global aggregate)
            aggregates: Aggregate calls to compute
            mode: SINGLE, PARTIAL or FINAL
            config: Options passed to every accumulator
            input_types: Argument types by column. Without one, SINGLE and
                PARTIAL take the batch field type, deferring construction
                while a column is untyped nulls; FINAL takes the key type of
                frequency states and float64 otherwise.
        """
        super().__init__(source)
        self.group_by_columns = group_by_columns
        self.aggregates = aggregates
        self.mode = mode
        self.config = config or AccumulatorConfig()
        self.input_types = input_types or {}

    def __iter__(self) -> Iterator[dict[str, Any]]:
        # Hash map: group_key -> accumulators (one per aggregate, None until typed)
        groups: dict[tuple, list[Accumulator | None]] = {}

        if self.mode is AggregateMode.FINAL:
            for row in self.child:
                self._merge_row(groups, row)
        else:
            for batch in self.child:
                self._update_batch(groups, batch)

        logger.debug(
            "hash aggregate complete",
            mode=self.mode.value,
            groups=len(groups),
            aggregates=len(self.aggregates),
        )

        # A global aggregate over no input still yields one row
        if not groups and not self.group_by_columns and self.mode is not AggregateMode.PARTIAL:
            groups[()] = [None] * len(self.aggregates)

        for group_key, accumulators in groups.items():
            yield self._build_output_row(group_key, accumulators)

    def _update_batch(self, groups: dict[tuple, list], batch: pa.RecordBatch) -> None:
        for group_key, indices in self._partition(batch).items():
            rows = batch if len(indices) == batch.num_rows else batch.take(pa.array(indices))
            accumulators = groups.setdefault(group_key, [None] * len(self.aggregates))
            for i, agg in enumerate(self.aggregates):
                if accumulators[i] is None:
                    data_type = self.input_types.get(agg.column, batch.schema.field(agg.column).type)
                    if pa.types.is_null(data_type):
                        # Nothing but untyped nulls so far
                        continue
                    accumulators[i] = create_accumulator(agg.function, data_type, self.config)
                accumulators[i].update(rows, column=agg.column)

    def _partition(self, batch: pa.RecordBatch) -> dict[tuple, list[int]]:
        """Row indices of a batch by group key, in first-seen order"""
        if not self.group_by_columns:
            return {(): list(range(batch.num_rows))}

        columns = [batch.column(name).to_pylist() for name in self.group_by_columns]
        partitions: dict[tuple, list[int]] = {}
        for i, key in enumerate(zip(*columns)):
            # Unhashable values (lists, dicts) group by their string form
            key = tuple(str(v) if isinstance(v, (list, dict)) else v for v in key)
            partitions.setdefault(key, []).append(i)
        return partitions

    def _merge_row(self, groups: dict[tuple, list], row: dict[str, Any]) -> None:
        group_key = tuple(row[name] for name in self.group_by_columns)
        states = [row[agg.output_name] for agg in self.aggregates]

        accumulators = groups.setdefault(group_key, [None] * len(self.aggregates))
        for i, (agg, state) in enumerate(zip(self.aggregates, states)):
            if state is None:
                continue
            if accumulators[i] is None:
                data_type = self._final_input_type(agg, state)
                accumulators[i] = create_accumulator(agg.function, data_type, self.config)
            accumulators[i].merge_batch(state)

    def _final_input_type(self, agg: AggregateFunction, state: pa.RecordBatch) -> pa.DataType:
        if agg.column in self.input_types:
            return self.input_types[agg.column]
        if state.schema.names == codec.FREQUENCY_COLUMNS:
            return state.schema.field("keys").type
        return pa.float64()

    def _build_output_row(self, group_key: tuple, accumulators: list) -> dict[str, Any]:
        row = {}

        for i, col_name in enumerate(self.group_by_columns):
            row[col_name] = group_key[i]

        for agg, acc in zip(self.aggregates, accumulators):
            if acc is None:
                row[agg.output_name] = None
            elif self.mode is AggregateMode.PARTIAL:
                row[agg.output_name] = acc.serialize_state()
            else:
                row[agg.output_name] = acc.finalize()

        return row

    def explain(self, indent: int = 0) -> list[str]:
        lines = [" " * indent + f"HashAggregate(mode={self.mode.value}, keys={self.group_by_columns})"]

        for agg in self.aggregates:
            lines.append(" " * (indent + 2) + f"→ {agg}")

        if isinstance(self.child, Operator):
            lines.extend(self.child.explain(indent + 2))

        return lines
