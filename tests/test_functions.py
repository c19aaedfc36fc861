"""
Tests for the aggregate function registry
"""

import pyarrow as pa
import pytest

from aggextra.accumulators.mode import ModeAccumulator
from aggextra.accumulators.moments import MomentAccumulator, Statistic
from aggextra.core.config import AccumulatorConfig
from aggextra.core.errors import UnsupportedTypeError
from aggextra.core.types import LogicalType
from aggextra.functions import AggregateFunction, available_functions, create_accumulator


class TestCreateAccumulator:
    """Test factory function"""

    def test_create_mode(self):
        """Test creating MODE accumulator"""
        acc = create_accumulator("MODE", pa.string())
        assert isinstance(acc, ModeAccumulator)
        assert acc.logical_type == LogicalType.STRING

    @pytest.mark.parametrize(
        "name,statistic,sample",
        [
            ("VAR_SAMP", Statistic.VARIANCE, True),
            ("VAR_POP", Statistic.VARIANCE, False),
            ("STDDEV_SAMP", Statistic.STDDEV, True),
            ("STDDEV_POP", Statistic.STDDEV, False),
            ("SKEWNESS", Statistic.SKEWNESS, True),
            ("SKEWNESS_POP", Statistic.SKEWNESS, False),
            ("KURTOSIS", Statistic.KURTOSIS, True),
            ("KURTOSIS_POP", Statistic.KURTOSIS, False),
        ],
    )
    def test_fixed_divisor_functions(self, name, statistic, sample):
        """Test _SAMP/_POP names ignore the configured divisor"""
        for config in (AccumulatorConfig(sample_correction=True), AccumulatorConfig(sample_correction=False)):
            acc = create_accumulator(name, LogicalType.FLOAT64, config)

            assert isinstance(acc, MomentAccumulator)
            assert acc.statistic is statistic
            assert acc.sample is sample

    @pytest.mark.parametrize("name", ["VARIANCE", "STDDEV", "MEAN"])
    def test_configured_divisor_functions(self, name):
        """Test plain names follow config.sample_correction"""
        assert create_accumulator(name, "float64").sample is True
        assert create_accumulator(name, "float64", {"sample_correction": False}).sample is False

    def test_case_insensitive(self):
        """Test function names are case-insensitive"""
        acc1 = create_accumulator("mode", "int64")
        acc2 = create_accumulator("Mode", "int64")

        assert isinstance(acc1, ModeAccumulator)
        assert isinstance(acc2, ModeAccumulator)

    def test_unknown_function(self):
        """Test error on unknown function"""
        with pytest.raises(ValueError, match="Unknown aggregate function"):
            create_accumulator("MEDIAN", "int64")

    def test_unsupported_type_at_construction(self):
        """Test type errors surface before any update"""
        with pytest.raises(UnsupportedTypeError):
            create_accumulator("KURTOSIS", pa.string())

    def test_config_mapping_validated(self):
        """Test bad host options are rejected"""
        with pytest.raises(ValueError):
            create_accumulator("MODE", "int64", {"null_policy": "RESPECT_NULLS"})

    def test_fresh_state(self):
        """Test each call returns an independent, empty accumulator"""
        acc1 = create_accumulator("MODE", "int64")
        acc1.update(pa.array([1, 1]))
        acc2 = create_accumulator("MODE", "int64")

        assert acc2.is_empty()
        assert not acc1.is_empty()

    def test_available_functions(self):
        names = available_functions()

        assert names == sorted(names)
        assert {"MODE", "VAR_SAMP", "SKEWNESS", "KURTOSIS_POP"} <= set(names)


class TestAggregateFunction:
    """Test aggregate call descriptions"""

    def test_output_name(self):
        assert AggregateFunction("MODE", "city").output_name == "mode_city"
        assert AggregateFunction("VAR_SAMP", "amount", "spread").output_name == "spread"

    def test_repr(self):
        assert repr(AggregateFunction("KURTOSIS", "latency", "k")) == "KURTOSIS(latency) AS k"
