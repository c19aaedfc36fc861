"""Tests for logical type tags."""

import pyarrow as pa
import pytest

from aggextra.core.errors import UnsupportedTypeError
from aggextra.core.types import LogicalType, resolve_type


class TestLogicalType:
    """Test LogicalType enum."""

    def test_is_numeric(self):
        """Test is_numeric method."""
        assert LogicalType.INT8.is_numeric()
        assert LogicalType.UINT64.is_numeric()
        assert LogicalType.FLOAT32.is_numeric()
        assert LogicalType.DECIMAL128.is_numeric()
        assert not LogicalType.STRING.is_numeric()
        assert not LogicalType.BOOLEAN.is_numeric()
        assert not LogicalType.DATE32.is_numeric()
        assert not LogicalType.NULL.is_numeric()

    def test_is_integer_and_floating(self):
        """Test integer/floating split."""
        assert LogicalType.INT32.is_integer()
        assert not LogicalType.INT32.is_floating()
        assert LogicalType.FLOAT64.is_floating()
        assert not LogicalType.DECIMAL128.is_floating()
        assert not LogicalType.DECIMAL128.is_integer()

    def test_is_string(self):
        """Test string and binary tags."""
        for tag in (LogicalType.STRING, LogicalType.LARGE_STRING, LogicalType.BINARY):
            assert tag.is_string()
        assert not LogicalType.INT64.is_string()

    def test_is_orderable(self):
        """Intervals have no natural order; everything else does."""
        assert LogicalType.INT64.is_orderable()
        assert LogicalType.STRING.is_orderable()
        assert LogicalType.TIMESTAMP.is_orderable()
        assert not LogicalType.INTERVAL.is_orderable()

    def test_str(self):
        """Test string form."""
        assert str(LogicalType.FLOAT64) == "FLOAT64"


class TestFromArrow:
    """Test mapping arrow types to tags."""

    @pytest.mark.parametrize(
        "arrow_type,expected",
        [
            (pa.bool_(), LogicalType.BOOLEAN),
            (pa.int8(), LogicalType.INT8),
            (pa.int64(), LogicalType.INT64),
            (pa.uint16(), LogicalType.UINT16),
            (pa.float32(), LogicalType.FLOAT32),
            (pa.float64(), LogicalType.FLOAT64),
            (pa.decimal128(10, 2), LogicalType.DECIMAL128),
            (pa.date32(), LogicalType.DATE32),
            (pa.timestamp("ms", tz="UTC"), LogicalType.TIMESTAMP),
            (pa.month_day_nano_interval(), LogicalType.INTERVAL),
            (pa.string(), LogicalType.STRING),
            (pa.large_string(), LogicalType.LARGE_STRING),
            (pa.binary(), LogicalType.BINARY),
            (pa.null(), LogicalType.NULL),
        ],
    )
    def test_known_types(self, arrow_type, expected):
        """Test every supported arrow type maps to its tag."""
        assert LogicalType.from_arrow(arrow_type) == expected

    def test_dictionary_maps_to_value_type(self):
        """Dictionary-encoded columns take the tag of their values."""
        assert LogicalType.from_arrow(pa.dictionary(pa.int32(), pa.string())) == LogicalType.STRING

    def test_unsupported_type(self):
        """Nested types have no tag."""
        with pytest.raises(UnsupportedTypeError):
            LogicalType.from_arrow(pa.list_(pa.int64()))

    def test_default_arrow_type_roundtrip(self):
        """Every tag's default arrow type maps back to the tag."""
        for tag in LogicalType:
            assert LogicalType.from_arrow(tag.to_arrow()) == tag


class TestResolveType:
    """Test normalising construction arguments."""

    def test_tag(self):
        assert resolve_type(LogicalType.INT64) == (LogicalType.INT64, None)

    def test_name(self):
        assert resolve_type("float64") == (LogicalType.FLOAT64, None)

    def test_unknown_name(self):
        with pytest.raises(UnsupportedTypeError):
            resolve_type("complex128")

    def test_arrow_type_is_kept(self):
        """Concrete arrow types are kept for serializing keys."""
        tag, arrow_type = resolve_type(pa.decimal128(10, 2))
        assert tag == LogicalType.DECIMAL128
        assert arrow_type == pa.decimal128(10, 2)

    def test_bad_argument(self):
        with pytest.raises(TypeError):
            resolve_type(42)
