"""
Typed batch adapter

Pulls one column out of whatever batch the host hands over and checks that
its element type matches the accumulator's logical type. The result keeps
the arrow array intact; the validity mask is the array's null bitmap AND-ed
with any explicit mask the host passed alongside the batch.
"""

from collections.abc import Iterator, Sequence
from typing import Any

import pandas as pd
import pyarrow as pa
import pyarrow.compute as pc

from aggextra.core.errors import TypeMismatchError, UnsupportedTypeError
from aggextra.core.types import LogicalType


class TypedColumn:
    """
    A null-aware column of a single, checked logical type

    Attributes:
        logical_type: Tag the column was checked against
        array: Full column including invalid slots
        validity: Boolean array, True where the value is present
        source_type: Arrow type the host sent (null for untyped nulls)
    """

    def __init__(
        self,
        logical_type: LogicalType,
        array: pa.Array,
        validity: pa.BooleanArray,
        source_type: pa.DataType | None = None,
    ):
        self.logical_type = logical_type
        self.array = array
        self.validity = validity
        self.source_type = array.type if source_type is None else source_type
        self._values: pa.Array | None = None

    def __len__(self) -> int:
        return len(self.array)

    @property
    def values(self) -> pa.Array:
        """Valid values only, in input order"""
        if self._values is None:
            self._values = self.array.filter(self.validity)
        return self._values

    @property
    def valid_count(self) -> int:
        return len(self.values)

    @property
    def null_count(self) -> int:
        return len(self.array) - self.valid_count

    def pairs(self) -> Iterator[tuple[Any, bool]]:
        """Yield (value, is_valid) for every slot"""
        yield from zip(self.array.to_pylist(), self.validity.to_pylist())

    def __repr__(self) -> str:
        return f"TypedColumn({self.logical_type}, len={len(self)}, nulls={self.null_count})"


def extract_column(
    batch: Any,
    logical_type: LogicalType,
    column: int | str = 0,
    validity: Sequence[bool] | pa.Array | None = None,
    arrow_type: pa.DataType | None = None,
) -> TypedColumn:
    """
    Extract a typed, null-aware column from a host batch

    Args:
        batch: pa.RecordBatch, pa.Table, pa.Array, pa.ChunkedArray,
            pandas.DataFrame or pandas.Series
        logical_type: Type the accumulator was built for
        column: Column index or name (ignored for single-column inputs)
        validity: Optional extra validity mask, one boolean per row
        arrow_type: Concrete type the accumulator is fixed to, if known. A
            typed column must match it exactly; untyped nulls take it on.

    Returns:
        TypedColumn

    Raises:
        TypeMismatchError: If the column's type tag is not logical_type, or
            its concrete type differs from arrow_type
        ValueError: If the validity mask length differs from the column's
    """
    array = _column_array(batch, column)

    if pa.types.is_dictionary(array.type):
        array = array.dictionary_decode()
    source_type = array.type

    if pa.types.is_null(array.type):
        # Untyped nulls fit every accumulator
        array = pa.nulls(len(array), type=arrow_type or logical_type.to_arrow())
    else:
        try:
            actual = LogicalType.from_arrow(array.type)
        except UnsupportedTypeError as e:
            raise TypeMismatchError(
                f"Expected {logical_type} column, got unsupported arrow type {array.type}"
            ) from e
        if actual != logical_type:
            raise TypeMismatchError(f"Expected {logical_type} column, got {actual} ({array.type})")
        # Scale, unit and time zone are part of the type
        if arrow_type is not None and array.type != arrow_type:
            raise TypeMismatchError(f"Expected {arrow_type} column, got {array.type}")

    valid = pc.is_valid(array)
    if validity is not None:
        mask = validity if isinstance(validity, pa.Array) else pa.array(validity, type=pa.bool_())
        if len(mask) != len(array):
            raise ValueError(
                f"Validity mask has {len(mask)} entries but column has {len(array)} rows"
            )
        # A null mask entry counts as invalid
        valid = pc.and_(valid, pc.fill_null(mask, False))

    return TypedColumn(logical_type, array, valid, source_type)


def _column_array(batch: Any, column: int | str) -> pa.Array:
    """Resolve a single contiguous arrow array from a host batch"""
    if isinstance(batch, pa.Array):
        return batch

    if isinstance(batch, pa.ChunkedArray):
        return batch.combine_chunks()

    if isinstance(batch, pa.RecordBatch):
        return batch.column(column)

    if isinstance(batch, pa.Table):
        return batch.column(column).combine_chunks()

    if isinstance(batch, pd.DataFrame):
        series = batch.iloc[:, column] if isinstance(column, int) else batch[column]
        return pa.Array.from_pandas(series)

    if isinstance(batch, pd.Series):
        return pa.Array.from_pandas(batch)

    raise TypeError(f"Unsupported batch type: {type(batch).__name__}")
