"""
Kernel dispatch tables

Each accumulator looks up its kernel once, at construction, by logical type
tag. Kernels work on whole arrow arrays through pyarrow.compute, so the
update path never inspects the type of an individual value.

Frequency kernels count the valid values of a column. Moment kernels reduce
a column to its count and first four raw power sums in float64.
"""

import math
from collections import Counter
from collections.abc import Iterator
from typing import Any, Callable

import pyarrow as pa
import pyarrow.compute as pc

from aggextra.core.errors import UnsupportedTypeError
from aggextra.core.types import LogicalType

# Single NaN key object. Dict lookups match it by identity, so every NaN
# observed lands on the same entry.
NAN_KEY = float("nan")


class FrequencyKernel:
    """
    Counts values of one fixed-width, orderable type

    Uses the arrow hash kernel: value_counts groups equal values in one
    pass and reports them in first-seen order.
    """

    ordered = True

    def __init__(self, key_width: int):
        """
        Args:
            key_width: Bytes per key, used for memory accounting
        """
        self.key_width = key_width

    def count(self, values: pa.Array) -> Iterator[tuple[Any, int]]:
        """Yield (key, occurrences) for a null-free array"""
        if len(values) == 0:
            return
        counted = pc.value_counts(values)
        keys = counted.field("values").to_pylist()
        counts = counted.field("counts").to_pylist()
        for key, n in zip(keys, counts):
            yield self.normalize(key), n

    def normalize(self, key: Any) -> Any:
        return key

    def sort_key(self, key: Any) -> Any:
        return key

    def key_size(self, key: Any) -> int:
        return self.key_width


class FloatFrequencyKernel(FrequencyKernel):
    """Floating point keys: one NaN key, ordered after every number"""

    def normalize(self, key: float) -> float:
        return NAN_KEY if math.isnan(key) else key

    def sort_key(self, key: float) -> tuple[bool, float]:
        if math.isnan(key):
            return (True, 0.0)
        return (False, key)


class VariableWidthFrequencyKernel(FrequencyKernel):
    """String and binary keys, sized by their byte length"""

    def __init__(self, offset_width: int):
        super().__init__(offset_width)

    def key_size(self, key: str | bytes) -> int:
        if isinstance(key, str):
            return self.key_width + len(key.encode("utf-8"))
        return self.key_width + len(key)


class ViewFrequencyKernel(VariableWidthFrequencyKernel):
    """
    String and binary view keys

    Each key costs a 16-byte view; values longer than the 12 bytes a view
    holds inline also occupy a data buffer. Counted in Python, since not
    every arrow hash kernel accepts view arrays.
    """

    inline_width = 12

    def __init__(self):
        super().__init__(16)

    def count(self, values: pa.Array) -> Iterator[tuple[Any, int]]:
        yield from Counter(values.to_pylist()).items()

    def key_size(self, key: str | bytes) -> int:
        length = len(key.encode("utf-8")) if isinstance(key, str) else len(key)
        return self.key_width + (length if length > self.inline_width else 0)


class UnorderedFrequencyKernel(FrequencyKernel):
    """
    Keys without a natural order (month/day/nano intervals)

    Counted in Python so that first-insertion order is exactly the input
    order; finalize breaks ties on that order.
    """

    ordered = False

    def count(self, values: pa.Array) -> Iterator[tuple[Any, int]]:
        yield from Counter(values.to_pylist()).items()

    def sort_key(self, key: Any) -> Any:
        return None


class MomentKernel:
    """
    Reduces a numeric column to (count, sum, sum of squares, cubes, 4th powers)

    Every input type is cast to float64 first; the power sums are computed
    with arrow's pairwise summation.
    """

    narrows = False

    def power_sums(self, values: pa.Array) -> tuple[int, float, float, float, float]:
        n = len(values)
        if n == 0:
            return 0, 0.0, 0.0, 0.0, 0.0

        x = self._to_float64(values)
        x2 = pc.multiply(x, x)
        x3 = pc.multiply(x2, x)
        x4 = pc.multiply(x2, x2)
        return n, _sum(x), _sum(x2), _sum(x3), _sum(x4)

    def _to_float64(self, values: pa.Array) -> pa.Array:
        if pa.types.is_float64(values.type):
            return values
        # safe=False: int64 beyond 2**53 rounds instead of raising
        return pc.cast(values, pa.float64(), safe=False)


class DecimalMomentKernel(MomentKernel):
    """Decimal input; narrowing to float64 may drop digits"""

    narrows = True


def _sum(values: pa.Array) -> float:
    total = pc.sum(values).as_py()
    return 0.0 if total is None else float(total)


def _fixed(width: int) -> Callable[[], FrequencyKernel]:
    return lambda: FrequencyKernel(width)


# Type tag -> kernel factory. Tags missing from a table are unsupported for
# that function family.
FREQUENCY_KERNELS: dict[LogicalType, Callable[[], FrequencyKernel]] = {
    LogicalType.BOOLEAN: _fixed(1),
    LogicalType.INT8: _fixed(1),
    LogicalType.INT16: _fixed(2),
    LogicalType.INT32: _fixed(4),
    LogicalType.INT64: _fixed(8),
    LogicalType.UINT8: _fixed(1),
    LogicalType.UINT16: _fixed(2),
    LogicalType.UINT32: _fixed(4),
    LogicalType.UINT64: _fixed(8),
    LogicalType.FLOAT32: lambda: FloatFrequencyKernel(4),
    LogicalType.FLOAT64: lambda: FloatFrequencyKernel(8),
    LogicalType.DECIMAL128: _fixed(16),
    LogicalType.DATE32: _fixed(4),
    LogicalType.TIMESTAMP: _fixed(8),
    LogicalType.INTERVAL: lambda: UnorderedFrequencyKernel(16),
    LogicalType.STRING: lambda: VariableWidthFrequencyKernel(4),
    LogicalType.LARGE_STRING: lambda: VariableWidthFrequencyKernel(8),
    LogicalType.BINARY: lambda: VariableWidthFrequencyKernel(4),
    LogicalType.LARGE_BINARY: lambda: VariableWidthFrequencyKernel(8),
    LogicalType.STRING_VIEW: ViewFrequencyKernel,
    LogicalType.BINARY_VIEW: ViewFrequencyKernel,
}

MOMENT_KERNELS: dict[LogicalType, Callable[[], MomentKernel]] = {
    **{tag: MomentKernel for tag in LogicalType if tag.is_integer()},
    LogicalType.FLOAT32: MomentKernel,
    LogicalType.FLOAT64: MomentKernel,
    LogicalType.DECIMAL128: DecimalMomentKernel,
}


def frequency_kernel(logical_type: LogicalType) -> FrequencyKernel:
    """
    Look up the counting kernel for a type

    Raises:
        UnsupportedTypeError: If the type cannot be counted
    """
    try:
        return FREQUENCY_KERNELS[logical_type]()
    except KeyError:
        raise UnsupportedTypeError(f"No frequency kernel for type {logical_type}") from None


def moment_kernel(logical_type: LogicalType) -> MomentKernel:
    """
    Look up the power-sum kernel for a type

    Raises:
        UnsupportedTypeError: If the type is not numeric or has no kernel
    """
    try:
        return MOMENT_KERNELS[logical_type]()
    except KeyError:
        raise UnsupportedTypeError(f"No moment kernel for type {logical_type}") from None
