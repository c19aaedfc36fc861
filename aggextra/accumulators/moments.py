"""
Moment statistics - mean, variance, standard deviation, skewness, kurtosis

The state is the count plus the raw power sums s1..s4 of the non-null
inputs. Every statistic is derived in closed form at finalize:

    mean = s1 / n
    m2   = s2/n - mean**2
    m3   = s3/n - 3*mean*s2/n + 2*mean**3
    m4   = s4/n - 4*mean*s3/n + 6*mean**2*s2/n - 3*mean**4

    variance  population m2,               sample m2 * n/(n-1)
    skewness  population g1 = m3/m2**1.5,  sample g1 * sqrt(n(n-1))/(n-2)
    kurtosis  population g2 = m4/m2**2 - 3,
              sample ((n+1)*g2 + 6) * (n-1)/((n-2)(n-3))   (excess)

Raw sums merge by plain addition, which keeps partial aggregation exact up
to float rounding. The price is precision: m2..m4 are differences of large
nearly-equal terms when the mean is large relative to the spread, so
results lose digits (catastrophic cancellation). Skewness and kurtosis
also return None once m2 falls below 64 machine epsilons of s2/n. That
cutoff scales with mean**2, so data far from zero relative to its spread
(say 1e8 plus or minus 1) reads as constant even when it is not. All
arithmetic is float64 regardless of input type. A Welford-style
central-moment update would be more stable but needs a more involved merge.
"""

import math
import sys
import warnings
from enum import Enum
from typing import Any

import pyarrow as pa
import structlog

from aggextra.accumulators import codec
from aggextra.accumulators.base import Accumulator
from aggextra.accumulators.state import MomentState
from aggextra.core.batch import TypedColumn
from aggextra.core.config import AccumulatorConfig
from aggextra.kernels import moment_kernel

logger = structlog.get_logger(__name__)


class Statistic(Enum):
    """Statistics derivable from the first four power sums"""

    MEAN = "MEAN"
    VARIANCE = "VARIANCE"
    STDDEV = "STDDEV"
    SKEWNESS = "SKEWNESS"
    KURTOSIS = "KURTOSIS"

    def __str__(self) -> str:
        return self.value

    @property
    def min_count(self) -> int:
        """Fewest observations for which the statistic is defined"""
        return _MIN_COUNTS[self]


_MIN_COUNTS = {
    Statistic.MEAN: 1,
    Statistic.VARIANCE: 2,
    Statistic.STDDEV: 2,
    Statistic.SKEWNESS: 3,
    Statistic.KURTOSIS: 4,
}

_ZERO_VARIANCE_TOLERANCE = 64 * sys.float_info.epsilon


def central_moments(state: MomentState) -> tuple[float, float, float, float]:
    """
    Mean and the 2nd to 4th central moments (population, divisor n)

    Args:
        state: Non-empty moment state

    Returns:
        Tuple of (mean, m2, m3, m4). m2 is clamped at 0 since cancellation
        can push it slightly negative.
    """
    n = state.count
    mean = state.s1 / n
    e2 = state.s2 / n
    e3 = state.s3 / n
    e4 = state.s4 / n

    # Products rather than ** so overflow gives inf instead of raising
    mean2 = mean * mean
    m2 = max(e2 - mean2, 0.0)
    m3 = e3 - 3 * mean * e2 + 2 * mean2 * mean
    m4 = e4 - 4 * mean * e3 + 6 * mean2 * e2 - 3 * mean2 * mean2
    return mean, m2, m3, m4


def compute_statistic(state: MomentState, statistic: Statistic, sample: bool = True) -> float | None:
    """
    Evaluate one statistic from a moment state

    Args:
        state: Moment state
        statistic: Which statistic to compute
        sample: Use sample corrections (False for population formulas)

    Returns:
        The statistic, or None when the state has fewer than
        statistic.min_count observations, or when skewness/kurtosis is
        undefined because the variance is zero
    """
    n = state.count
    if n < statistic.min_count:
        return None

    mean, m2, m3, m4 = central_moments(state)

    if statistic is Statistic.MEAN:
        return mean

    if statistic in (Statistic.VARIANCE, Statistic.STDDEV):
        variance = m2 * n / (n - 1) if sample else m2
        return math.sqrt(variance) if statistic is Statistic.STDDEV else variance

    # Constant input: m2 is zero up to rounding noise of the s2/n term
    if m2 <= _ZERO_VARIANCE_TOLERANCE * (state.s2 / n):
        return None

    if statistic is Statistic.SKEWNESS:
        g1 = m3 / (m2 * math.sqrt(m2))
        if not sample:
            return g1
        return g1 * math.sqrt(n * (n - 1)) / (n - 2)

    g2 = m4 / (m2 * m2) - 3.0
    if not sample:
        return g2
    return ((n + 1) * g2 + 6.0) * (n - 1) / ((n - 2) * (n - 3))


class MomentAccumulator(Accumulator):
    """
    Accumulator for the variance/skewness/kurtosis family

    One instance computes one statistic; statistics() exposes all of them
    for the current state.

    Example:
        >>> acc = MomentAccumulator(LogicalType.INT64, Statistic.VARIANCE)
        >>> acc.update(pa.array([3, 1, 4, 1, 5, 9, 2, 6]))
        >>> acc.finalize()
        7.553571428571429
    """

    kind = codec.MOMENTS

    def __init__(
        self,
        data_type: Any,
        statistic: Statistic = Statistic.VARIANCE,
        config: AccumulatorConfig | None = None,
    ):
        super().__init__(data_type, config)
        self.statistic = statistic
        self._kernel = moment_kernel(self.logical_type)
        self._state = MomentState()
        self._warned_narrowing = False
        self._logged_overflow = False

    @property
    def sample(self) -> bool:
        return self.config.sample_correction

    def _update_column(self, column: TypedColumn) -> None:
        if self._kernel.narrows and not self._warned_narrowing:
            warnings.warn(
                f"{self.statistic} over {self.arrow_type} converts values to float64; "
                "digits beyond double precision are lost",
                UserWarning,
                stacklevel=3,
            )
            self._warned_narrowing = True

        sums = MomentState(*self._kernel.power_sums(column.values))
        if not self._logged_overflow and not all(map(math.isfinite, sums.as_tuple()[1:])):
            # NaN input or x**4 overflowing float64
            logger.warning(
                "non-finite power sums",
                logical_type=str(self.logical_type),
                statistic=str(self.statistic),
                rows=sums.count,
            )
            self._logged_overflow = True
        self._state.merge(sums)

    def _take_state(self) -> MomentState:
        state = self._state
        self._state = MomentState()
        return state

    def _merge_state(self, state: MomentState) -> None:
        self._state.merge(state)

    def _merge_arrays(self, arrays: list[pa.Array]) -> None:
        self._merge_state(codec.decode_moments(arrays))

    def state(self) -> list[pa.Array]:
        return codec.encode_moments(self._state)

    def state_schema(self) -> pa.Schema:
        return codec.state_fields(self.kind)

    @property
    def moments(self) -> MomentState:
        """Current state (read-only by convention)"""
        return self._state

    def _evaluate(self) -> float | None:
        return compute_statistic(self._state, self.statistic, self.sample)

    def statistics(self) -> dict[str, float | None]:
        """Every statistic for the current state; does not close the accumulator"""
        result: dict[str, float | None] = {"count": self._state.count}
        for statistic in Statistic:
            result[statistic.value.lower()] = compute_statistic(
                self._state, statistic, self.sample
            )
        return result

    def size(self) -> int:
        # One uint64 and four float64
        return 40

    def is_empty(self) -> bool:
        return self._state.count == 0

    def __repr__(self) -> str:
        divisor = "sample" if self.sample else "population"
        return f"MomentAccumulator({self.logical_type}, {self.statistic}, {divisor})"
