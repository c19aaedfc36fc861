"""
Base accumulator contract

The host engine drives one accumulator per group or partition:

    acc = SomeAccumulator(logical_type, config)
    acc.update(batch)          # zero or more times
    acc.merge(other_partial)   # optional, any order
    value = acc.finalize()     # exactly once

Partial states travel between stages as flat arrow columns (state() and
merge_batch()), so the host can move them like ordinary query data.
"""

from collections.abc import Sequence
from typing import Any

import pyarrow as pa
import structlog

from aggextra.accumulators import codec
from aggextra.core.batch import TypedColumn, extract_column
from aggextra.core.config import AccumulatorConfig
from aggextra.core.errors import TypeMismatchError, UnsupportedTypeError
from aggextra.core.types import LogicalType, resolve_type

logger = structlog.get_logger(__name__)


class Accumulator:
    """
    Base class for accumulators

    Subclasses implement _update_column, _take_state, _merge_state,
    _merge_arrays, state, state_schema, _evaluate, size and is_empty.
    The accumulator exclusively owns its state; merge() consumes the other
    instance's state and leaves it empty.
    """

    # Name of the aggregate family, used in messages and state checks
    kind = "accumulator"

    def __init__(self, data_type: Any, config: AccumulatorConfig | None = None):
        """
        Initialize accumulator

        Args:
            data_type: LogicalType, tag name or concrete arrow type
            config: Accumulator options (defaults to AccumulatorConfig())
        """
        self.logical_type, self._arrow_type = resolve_type(data_type)
        self.config = config or AccumulatorConfig()
        self._finalized = False
        logger.debug("created accumulator", kind=self.kind, logical_type=str(self.logical_type))

    @property
    def arrow_type(self) -> pa.DataType:
        """Concrete arrow type of the input values"""
        return self._arrow_type or self.logical_type.to_arrow()

    def update(
        self,
        batch: Any,
        validity: Sequence[bool] | pa.Array | None = None,
        column: int | str = 0,
    ) -> None:
        """
        Fold one batch of values into the state

        Args:
            batch: Host batch (see extract_column for accepted forms)
            validity: Optional per-row presence mask
            column: Column index or name within the batch

        Raises:
            TypeMismatchError: If the column type does not match, including
                decimal scale or timestamp unit and time zone
        """
        self._check_open()
        typed = extract_column(batch, self.logical_type, column, validity, self._arrow_type)
        self._fix_arrow_type(typed.source_type)
        if typed.valid_count == 0:
            return
        self._update_column(typed)

    def merge(self, other: "Accumulator") -> None:
        """
        Merge another accumulator's partial state into this one

        The other accumulator is left empty.

        Raises:
            TypeMismatchError: If the other accumulator is of another
                family, logical type or concrete arrow type
        """
        self._check_open()
        if other is self:
            raise ValueError("Cannot merge an accumulator into itself")
        if type(other) is not type(self) or other.logical_type != self.logical_type:
            raise TypeMismatchError(
                f"Cannot merge {other.kind}<{other.logical_type}> "
                f"into {self.kind}<{self.logical_type}>"
            )
        self._fix_arrow_type(other._arrow_type)
        self._merge_state(other._take_state())
        logger.debug(
            "merged partial accumulator",
            kind=self.kind,
            logical_type=str(self.logical_type),
        )

    def merge_batch(self, states: Sequence[pa.Array] | pa.RecordBatch) -> None:
        """
        Merge serialized partial states

        Args:
            states: State columns as produced by state(); columns of several
                partial states may be concatenated row-wise

        Raises:
            StateDecodeError: If the columns are malformed
            TypeMismatchError: If frequency keys are of another type
        """
        self._check_open()
        if isinstance(states, pa.RecordBatch):
            states = states.columns
        self._merge_arrays(list(states))
        logger.debug(
            "merged serialized partial state",
            kind=self.kind,
            logical_type=str(self.logical_type),
            rows=len(states[0]) if states else 0,
        )

    def serialize_state(self) -> pa.RecordBatch:
        """Partial state as a record batch with state_schema()"""
        return codec.to_record_batch(self.state(), self.state_schema())

    def deserialize_state(self, batch: pa.RecordBatch) -> None:
        """Merge a record batch produced by serialize_state()"""
        self.merge_batch(codec.from_record_batch(batch))

    def finalize(self) -> Any:
        """
        Produce the output value

        Callable exactly once; the accumulator is closed afterwards.

        Returns:
            Aggregate result, or None when there is not enough data
        """
        self._check_open()
        self._finalized = True
        return self._evaluate()

    def _check_open(self) -> None:
        if self._finalized:
            raise RuntimeError(f"{self.kind} accumulator was already finalized")

    def _fix_arrow_type(self, data_type: pa.DataType | None) -> None:
        """Adopt the first concrete input type seen; later ones must equal it"""
        if data_type is None or pa.types.is_null(data_type):
            return
        try:
            tag = LogicalType.from_arrow(data_type)
        except UnsupportedTypeError as e:
            raise TypeMismatchError(f"Expected {self.logical_type} values, got {data_type}") from e
        if tag != self.logical_type:
            raise TypeMismatchError(f"Expected {self.logical_type} values, got {data_type}")
        if self._arrow_type is None:
            self._arrow_type = data_type
        elif data_type != self._arrow_type:
            raise TypeMismatchError(f"Expected {self._arrow_type} values, got {data_type}")

    def _update_column(self, column: TypedColumn) -> None:
        raise NotImplementedError

    def _take_state(self) -> Any:
        raise NotImplementedError

    def _merge_state(self, state: Any) -> None:
        raise NotImplementedError

    def _merge_arrays(self, arrays: list[pa.Array]) -> None:
        raise NotImplementedError

    def _evaluate(self) -> Any:
        raise NotImplementedError

    def state(self) -> list[pa.Array]:
        """Partial state as flat arrow columns"""
        raise NotImplementedError

    def state_schema(self) -> pa.Schema:
        """Schema of the columns returned by state()"""
        raise NotImplementedError

    def size(self) -> int:
        """Approximate memory held by the state, in bytes"""
        raise NotImplementedError

    def is_empty(self) -> bool:
        """True when no valid value has been observed or merged"""
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.logical_type})"
