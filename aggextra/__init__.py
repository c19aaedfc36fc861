"""
aggextra - extra aggregate functions for columnar SQL engines

Provides mergeable accumulators for MODE and the moment statistics
(variance, standard deviation, skewness, kurtosis) over Apache Arrow
batches, with partial-state serialization for distributed plans.
"""

__version__ = "0.1.0"

# Main API
from aggextra.accumulators import Accumulator, ModeAccumulator, MomentAccumulator, Statistic
from aggextra.core.config import AccumulatorConfig, NullPolicy
from aggextra.core.errors import (
    AggregateError,
    StateDecodeError,
    TypeMismatchError,
    UnsupportedTypeError,
)
from aggextra.core.types import LogicalType
from aggextra.functions import AggregateFunction, available_functions, create_accumulator

__all__ = [
    "__version__",
    "Accumulator",
    "AccumulatorConfig",
    "AggregateError",
    "AggregateFunction",
    "LogicalType",
    "ModeAccumulator",
    "MomentAccumulator",
    "NullPolicy",
    "StateDecodeError",
    "Statistic",
    "TypeMismatchError",
    "UnsupportedTypeError",
    "available_functions",
    "create_accumulator",
]
