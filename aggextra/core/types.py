"""Logical type tags for accumulators.

An accumulator is specialised for exactly one logical type at construction.
The tag decides which kernel runs and never changes afterwards.
"""

from enum import Enum

import pyarrow as pa

from aggextra.core.errors import UnsupportedTypeError


class LogicalType(Enum):
    """Element types an accumulator can be specialised for."""

    BOOLEAN = "BOOLEAN"

    # Integer types
    INT8 = "INT8"
    INT16 = "INT16"
    INT32 = "INT32"
    INT64 = "INT64"
    UINT8 = "UINT8"
    UINT16 = "UINT16"
    UINT32 = "UINT32"
    UINT64 = "UINT64"

    # Floating point and fixed point
    FLOAT16 = "FLOAT16"
    FLOAT32 = "FLOAT32"
    FLOAT64 = "FLOAT64"
    DECIMAL128 = "DECIMAL128"

    # Temporal types
    DATE32 = "DATE32"
    TIMESTAMP = "TIMESTAMP"
    INTERVAL = "INTERVAL"

    # String and binary types
    STRING = "STRING"
    LARGE_STRING = "LARGE_STRING"
    BINARY = "BINARY"
    LARGE_BINARY = "LARGE_BINARY"
    STRING_VIEW = "STRING_VIEW"
    BINARY_VIEW = "BINARY_VIEW"

    # Special
    NULL = "NULL"

    def __str__(self) -> str:
        return self.value

    def is_integer(self) -> bool:
        """Check if type is a signed or unsigned integer."""
        return self in _INTEGER_TYPES

    def is_floating(self) -> bool:
        """Check if type is a binary floating point type."""
        return self in (LogicalType.FLOAT16, LogicalType.FLOAT32, LogicalType.FLOAT64)

    def is_numeric(self) -> bool:
        """Check if type is numeric (integer, floating or decimal)."""
        return self.is_integer() or self.is_floating() or self == LogicalType.DECIMAL128

    def is_string(self) -> bool:
        """Check if type holds text or raw bytes."""
        return self in (
            LogicalType.STRING,
            LogicalType.LARGE_STRING,
            LogicalType.BINARY,
            LogicalType.LARGE_BINARY,
            LogicalType.STRING_VIEW,
            LogicalType.BINARY_VIEW,
        )

    def is_orderable(self) -> bool:
        """Check if values of this type have a natural total order.

        Month/day/nano intervals do not: one month is neither shorter nor
        longer than 30 days.
        """
        return self not in (LogicalType.INTERVAL, LogicalType.NULL)

    def to_arrow(self) -> pa.DataType:
        """Default concrete arrow type for this tag."""
        return _DEFAULT_ARROW_TYPES[self]

    @staticmethod
    def from_arrow(data_type: pa.DataType) -> "LogicalType":
        """Map a concrete arrow type to its tag.

        Args:
            data_type: Arrow data type

        Returns:
            Matching LogicalType

        Raises:
            UnsupportedTypeError: If the arrow type has no tag
        """
        if pa.types.is_dictionary(data_type):
            return LogicalType.from_arrow(data_type.value_type)

        for predicate, tag in _ARROW_PREDICATES:
            if predicate(data_type):
                return tag

        raise UnsupportedTypeError(f"Arrow type {data_type} has no logical type")


_INTEGER_TYPES = frozenset(
    {
        LogicalType.INT8,
        LogicalType.INT16,
        LogicalType.INT32,
        LogicalType.INT64,
        LogicalType.UINT8,
        LogicalType.UINT16,
        LogicalType.UINT32,
        LogicalType.UINT64,
    }
)

_DEFAULT_ARROW_TYPES = {
    LogicalType.BOOLEAN: pa.bool_(),
    LogicalType.INT8: pa.int8(),
    LogicalType.INT16: pa.int16(),
    LogicalType.INT32: pa.int32(),
    LogicalType.INT64: pa.int64(),
    LogicalType.UINT8: pa.uint8(),
    LogicalType.UINT16: pa.uint16(),
    LogicalType.UINT32: pa.uint32(),
    LogicalType.UINT64: pa.uint64(),
    LogicalType.FLOAT16: pa.float16(),
    LogicalType.FLOAT32: pa.float32(),
    LogicalType.FLOAT64: pa.float64(),
    LogicalType.DECIMAL128: pa.decimal128(38, 10),
    LogicalType.DATE32: pa.date32(),
    LogicalType.TIMESTAMP: pa.timestamp("us"),
    LogicalType.INTERVAL: pa.month_day_nano_interval(),
    LogicalType.STRING: pa.string(),
    LogicalType.LARGE_STRING: pa.large_string(),
    LogicalType.BINARY: pa.binary(),
    LogicalType.LARGE_BINARY: pa.large_binary(),
    LogicalType.STRING_VIEW: pa.string_view(),
    LogicalType.BINARY_VIEW: pa.binary_view(),
    LogicalType.NULL: pa.null(),
}

# Order matters only where predicates overlap (none do today).
_ARROW_PREDICATES = [
    (pa.types.is_boolean, LogicalType.BOOLEAN),
    (pa.types.is_int8, LogicalType.INT8),
    (pa.types.is_int16, LogicalType.INT16),
    (pa.types.is_int32, LogicalType.INT32),
    (pa.types.is_int64, LogicalType.INT64),
    (pa.types.is_uint8, LogicalType.UINT8),
    (pa.types.is_uint16, LogicalType.UINT16),
    (pa.types.is_uint32, LogicalType.UINT32),
    (pa.types.is_uint64, LogicalType.UINT64),
    (pa.types.is_float16, LogicalType.FLOAT16),
    (pa.types.is_float32, LogicalType.FLOAT32),
    (pa.types.is_float64, LogicalType.FLOAT64),
    (pa.types.is_decimal128, LogicalType.DECIMAL128),
    (pa.types.is_date32, LogicalType.DATE32),
    (pa.types.is_timestamp, LogicalType.TIMESTAMP),
    (lambda t: t == pa.month_day_nano_interval(), LogicalType.INTERVAL),
    (pa.types.is_string, LogicalType.STRING),
    (pa.types.is_large_string, LogicalType.LARGE_STRING),
    (pa.types.is_binary, LogicalType.BINARY),
    (pa.types.is_large_binary, LogicalType.LARGE_BINARY),
    (pa.types.is_string_view, LogicalType.STRING_VIEW),
    (pa.types.is_binary_view, LogicalType.BINARY_VIEW),
    (pa.types.is_null, LogicalType.NULL),
]


def resolve_type(data_type) -> tuple[LogicalType, pa.DataType | None]:
    """Normalise a construction argument to a tag and optional arrow type.

    Args:
        data_type: LogicalType, tag name (e.g. "INT64") or arrow DataType

    Returns:
        Tuple of (LogicalType, concrete arrow type or None when only a tag
        was given)

    Examples:
        >>> resolve_type("int64")
        (LogicalType.INT64, None)
        >>> resolve_type(pa.decimal128(10, 2))
        (LogicalType.DECIMAL128, Decimal128Type(decimal128(10, 2)))
    """
    if isinstance(data_type, LogicalType):
        return data_type, None

    if isinstance(data_type, pa.DataType):
        if pa.types.is_dictionary(data_type):
            data_type = data_type.value_type
        return LogicalType.from_arrow(data_type), data_type

    if isinstance(data_type, str):
        try:
            return LogicalType[data_type.upper()], None
        except KeyError:
            raise UnsupportedTypeError(f"Unknown logical type: {data_type}") from None

    raise TypeError(f"Expected LogicalType, arrow DataType or str, got {type(data_type).__name__}")
