"""
Accumulators - stateful, mergeable aggregate implementations

- Accumulator: contract called by the host engine
- ModeAccumulator: most frequent value (frequency family)
- MomentAccumulator: mean/variance/stddev/skewness/kurtosis (moment family)
- codec: partial-state serialization to arrow columns

Example:
    ```python
    import pyarrow as pa
    from aggextra.accumulators import ModeAccumulator

    acc = ModeAccumulator(pa.int64())
    acc.update(pa.array([1, 1, 2, None]))
    acc.finalize()  # 1
    ```
"""

from aggextra.accumulators.base import Accumulator
from aggextra.accumulators.mode import ModeAccumulator
from aggextra.accumulators.moments import MomentAccumulator, Statistic, compute_statistic
from aggextra.accumulators.state import FrequencyState, MomentState

__all__ = [
    "Accumulator",
    "ModeAccumulator",
    "MomentAccumulator",
    "Statistic",
    "compute_statistic",
    "FrequencyState",
    "MomentState",
]
