"""Tests for accumulator configuration."""

import pytest

from aggextra.core.config import AccumulatorConfig, NullPolicy


class TestAccumulatorConfig:
    """Test AccumulatorConfig"""

    def test_defaults(self):
        """Test default options"""
        config = AccumulatorConfig()

        assert config.sample_correction is True
        assert config.null_policy is NullPolicy.SKIP_NULLS
        assert config.cardinality_warning_threshold == 1_000_000

    def test_from_dict(self):
        """Test building from host options, null policy by name"""
        config = AccumulatorConfig.from_dict({"sample_correction": False, "null_policy": "skip_nulls"})

        assert config.sample_correction is False
        assert config.null_policy is NullPolicy.SKIP_NULLS

    def test_from_empty_dict(self):
        """Test missing options give defaults"""
        assert AccumulatorConfig.from_dict(None) == AccumulatorConfig()
        assert AccumulatorConfig.from_dict({}) == AccumulatorConfig()

    def test_unknown_option(self):
        """Test unknown keys are rejected"""
        with pytest.raises(ValueError, match="Unknown accumulator options"):
            AccumulatorConfig.from_dict({"approximate": True})

    def test_unsupported_null_policy(self):
        """Test only SKIP_NULLS is accepted"""
        with pytest.raises(ValueError, match="null policy"):
            AccumulatorConfig.from_dict({"null_policy": "RESPECT_NULLS"})

        with pytest.raises(ValueError, match="null policy"):
            AccumulatorConfig(null_policy="SKIP_NULLS")

    def test_bad_threshold(self):
        """Test the cardinality threshold must be positive"""
        with pytest.raises(ValueError):
            AccumulatorConfig(cardinality_warning_threshold=0)

    def test_with_sample_correction(self):
        """Test copying with another divisor leaves the original alone"""
        config = AccumulatorConfig()
        population = config.with_sample_correction(False)

        assert population.sample_correction is False
        assert config.sample_correction is True

    def test_frozen(self):
        """Test configs are immutable"""
        with pytest.raises(AttributeError):
            AccumulatorConfig().sample_correction = False
