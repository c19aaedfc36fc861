"""
Partial-state serialization

States are encoded as flat arrow columns so the host engine can ship them
between partitions exactly like query data:

    frequency: keys <input type>, counts uint64   (one row per distinct key)
    moments:   count uint64, sum, sum_sq, sum_cube, sum_quad float64
               (one row per partial state)

Decoding accepts the columns of several states concatenated row-wise and
merges them, so a stage can decode everything it received in one call.
"""

import math
from collections.abc import Sequence

import pyarrow as pa

from aggextra.accumulators.state import FrequencyState, MomentState
from aggextra.core.errors import StateDecodeError
from aggextra.kernels import NAN_KEY

FREQUENCY = "frequency"
MOMENTS = "moments"

FREQUENCY_COLUMNS = ["keys", "counts"]

MOMENT_SCHEMA = pa.schema(
    [
        pa.field("count", pa.uint64(), nullable=False),
        pa.field("sum", pa.float64(), nullable=False),
        pa.field("sum_sq", pa.float64(), nullable=False),
        pa.field("sum_cube", pa.float64(), nullable=False),
        pa.field("sum_quad", pa.float64(), nullable=False),
    ]
)


def frequency_schema(key_type: pa.DataType) -> pa.Schema:
    """State schema of a frequency accumulator over key_type values"""
    return pa.schema(
        [
            pa.field(FREQUENCY_COLUMNS[0], key_type, nullable=False),
            pa.field(FREQUENCY_COLUMNS[1], pa.uint64(), nullable=False),
        ]
    )


def state_fields(kind: str, key_type: pa.DataType | None = None) -> pa.Schema:
    """
    Schema of the serialized state for an aggregate family

    Args:
        kind: FREQUENCY or MOMENTS
        key_type: Input value type (required for FREQUENCY)
    """
    if kind == MOMENTS:
        return MOMENT_SCHEMA
    if kind == FREQUENCY:
        if key_type is None:
            raise ValueError("Frequency state needs a key type")
        return frequency_schema(key_type)
    raise ValueError(f"Unknown state kind: {kind}")


def encode_frequency(state: FrequencyState, key_type: pa.DataType) -> list[pa.Array]:
    """Encode a frequency state as [keys, counts] in insertion order"""
    keys = pa.array(list(state.counts.keys()), type=key_type)
    counts = pa.array(list(state.counts.values()), type=pa.uint64())
    return [keys, counts]


def decode_frequency(arrays: Sequence[pa.Array]) -> FrequencyState:
    """
    Decode [keys, counts] columns into a FrequencyState

    Duplicate keys (from concatenated partial states) are summed.

    Raises:
        StateDecodeError: On wrong column count, mismatched lengths, null
            entries or non-positive counts
    """
    keys, counts = _columns(arrays, 2, FREQUENCY)

    if keys.null_count or counts.null_count:
        raise StateDecodeError("Frequency state contains null keys or counts")

    state = FrequencyState()
    for key, count in zip(keys.to_pylist(), counts.to_pylist()):
        if count <= 0:
            raise StateDecodeError(f"Frequency state has non-positive count {count}")
        if isinstance(key, float) and math.isnan(key):
            key = NAN_KEY
        state.add(key, count)
    return state


def encode_moments(state: MomentState) -> list[pa.Array]:
    """Encode a moment state as five single-row columns"""
    return [
        pa.array([state.count], type=pa.uint64()),
        pa.array([state.s1], type=pa.float64()),
        pa.array([state.s2], type=pa.float64()),
        pa.array([state.s3], type=pa.float64()),
        pa.array([state.s4], type=pa.float64()),
    ]


def decode_moments(arrays: Sequence[pa.Array]) -> MomentState:
    """
    Decode moment columns, merging every row into one MomentState

    Raises:
        StateDecodeError: On wrong column count, mismatched lengths or nulls
    """
    columns = _columns(arrays, 5, MOMENTS)
    if any(column.null_count for column in columns):
        raise StateDecodeError("Moment state contains nulls")

    state = MomentState()
    for count, s1, s2, s3, s4 in zip(*(column.to_pylist() for column in columns)):
        state.merge(MomentState(int(count), float(s1), float(s2), float(s3), float(s4)))
    return state


def to_record_batch(arrays: Sequence[pa.Array], schema: pa.Schema) -> pa.RecordBatch:
    return pa.RecordBatch.from_arrays(list(arrays), schema=schema)


def from_record_batch(batch: pa.RecordBatch) -> list[pa.Array]:
    return list(batch.columns)


def _columns(arrays: Sequence[pa.Array], expected: int, kind: str) -> list[pa.Array]:
    if len(arrays) != expected:
        raise StateDecodeError(f"{kind} state needs {expected} columns, got {len(arrays)}")

    columns = [a.combine_chunks() if isinstance(a, pa.ChunkedArray) else a for a in arrays]
    lengths = {len(c) for c in columns}
    if len(lengths) > 1:
        raise StateDecodeError(f"{kind} state columns differ in length: {sorted(lengths)}")
    return columns
