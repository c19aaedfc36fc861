"""Tests for the typed batch adapter."""

import pandas as pd
import pyarrow as pa
import pytest

from aggextra.core.batch import TypedColumn, extract_column
from aggextra.core.errors import TypeMismatchError
from aggextra.core.types import LogicalType


class TestExtractColumn:
    """Test extracting a typed column from host batches"""

    def test_array(self):
        """Test a plain arrow array"""
        column = extract_column(pa.array([1, None, 3]), LogicalType.INT64)

        assert isinstance(column, TypedColumn)
        assert len(column) == 3
        assert column.values.to_pylist() == [1, 3]
        assert column.null_count == 1
        assert column.valid_count == 2

    def test_record_batch_by_index_and_name(self, scenario_batch):
        """Test selecting a record batch column by index and by name"""
        by_index = extract_column(scenario_batch, LogicalType.INT64, column=0)
        by_name = extract_column(scenario_batch, LogicalType.INT64, column="x")

        assert by_index.values.to_pylist() == by_name.values.to_pylist()

    def test_table_and_chunked_array(self):
        """Test multi-chunk inputs are combined"""
        chunked = pa.chunked_array([[1, 2], [3]], type=pa.int32())
        table = pa.table({"a": chunked})

        assert extract_column(chunked, LogicalType.INT32).values.to_pylist() == [1, 2, 3]
        assert extract_column(table, LogicalType.INT32, column="a").values.to_pylist() == [1, 2, 3]

    def test_pandas_inputs(self):
        """Test pandas Series and DataFrame; NaN is treated as missing"""
        series = pd.Series([1.5, float("nan"), 2.5])
        frame = pd.DataFrame({"v": pd.Series(["a", None, "b"], dtype=object)})

        from_series = extract_column(series, LogicalType.FLOAT64)
        from_frame = extract_column(frame, LogicalType.STRING, column="v")

        assert from_series.values.to_pylist() == [1.5, 2.5]
        assert from_frame.values.to_pylist() == ["a", "b"]

    def test_dictionary_is_decoded(self):
        """Test dictionary-encoded strings are decoded"""
        array = pa.array(["x", "y", "x"]).dictionary_encode()
        column = extract_column(array, LogicalType.STRING)

        assert column.values.to_pylist() == ["x", "y", "x"]

    def test_explicit_validity_mask(self):
        """Test an explicit mask is AND-ed with the array's own nulls"""
        array = pa.array([1, None, 3, 4])
        column = extract_column(array, LogicalType.INT64, validity=[True, True, False, None])

        assert column.values.to_pylist() == [1]
        assert list(column.pairs()) == [(1, True), (None, False), (3, False), (4, False)]

    def test_validity_mask_length_mismatch(self):
        """Test a mask of the wrong length is rejected"""
        with pytest.raises(ValueError, match="Validity mask"):
            extract_column(pa.array([1, 2]), LogicalType.INT64, validity=[True])

    def test_type_mismatch(self):
        """Test a column of another type raises TypeMismatchError"""
        with pytest.raises(TypeMismatchError):
            extract_column(pa.array([1.0, 2.0]), LogicalType.INT64)

    def test_type_mismatch_same_family(self):
        """Width is part of the type: int32 is not int64"""
        with pytest.raises(TypeMismatchError):
            extract_column(pa.array([1, 2], type=pa.int32()), LogicalType.INT64)

    def test_type_mismatch_unsupported_arrow_type(self):
        """Test nested columns are a mismatch, not a crash"""
        with pytest.raises(TypeMismatchError):
            extract_column(pa.array([[1], [2]]), LogicalType.INT64)

    def test_untyped_nulls_match_any_type(self):
        """Test an all-null untyped column is accepted as all-invalid"""
        column = extract_column(pa.nulls(3), LogicalType.STRING)

        assert column.array.type == pa.string()
        assert column.valid_count == 0

    def test_unsupported_batch(self):
        """Test plain Python lists are not batches"""
        with pytest.raises(TypeError):
            extract_column([1, 2, 3], LogicalType.INT64)

    def test_concrete_type_must_match(self):
        """Test a known concrete type is enforced beyond the tag"""
        with pytest.raises(TypeMismatchError):
            extract_column(
                pa.array([1], type=pa.decimal128(20, 4)),
                LogicalType.DECIMAL128,
                arrow_type=pa.decimal128(10, 2),
            )

    def test_untyped_nulls_take_concrete_type(self):
        """Test untyped nulls are cast to the known concrete type"""
        column = extract_column(pa.nulls(2), LogicalType.TIMESTAMP, arrow_type=pa.timestamp("s", tz="UTC"))

        assert column.array.type == pa.timestamp("s", tz="UTC")
        assert pa.types.is_null(column.source_type)
