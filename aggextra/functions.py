"""
Aggregate function registry

Maps SQL function names to accumulator constructors. The host engine's
catalog calls create_accumulator once per group (or partition) with the
argument type it resolved during planning.
"""

from dataclasses import dataclass
from typing import Any, Callable

from aggextra.accumulators.base import Accumulator
from aggextra.accumulators.mode import ModeAccumulator
from aggextra.accumulators.moments import MomentAccumulator, Statistic
from aggextra.core.config import AccumulatorConfig


@dataclass
class AggregateFunction:
    """
    An aggregate call on one column

    Examples:
        MODE(city), VAR_SAMP(amount) AS spread, KURTOSIS(latency)
    """

    function: str  # 'MODE', 'VAR_SAMP', 'SKEWNESS', ...
    column: str
    alias: str | None = None

    @property
    def output_name(self) -> str:
        return self.alias or f"{self.function.lower()}_{self.column}"

    def __repr__(self) -> str:
        result = f"{self.function}({self.column})"
        if self.alias:
            result += f" AS {self.alias}"
        return result


def _moment(statistic: Statistic, sample: bool | None) -> Callable[..., Accumulator]:
    """Constructor for a moment function; sample=None follows the config"""

    def build(data_type: Any, config: AccumulatorConfig) -> Accumulator:
        if sample is not None:
            config = config.with_sample_correction(sample)
        return MomentAccumulator(data_type, statistic, config)

    return build


_FUNCTIONS: dict[str, Callable[..., Accumulator]] = {
    "MODE": ModeAccumulator,
    "MEAN": _moment(Statistic.MEAN, None),
    "VARIANCE": _moment(Statistic.VARIANCE, None),
    "VAR_SAMP": _moment(Statistic.VARIANCE, True),
    "VAR_POP": _moment(Statistic.VARIANCE, False),
    "STDDEV": _moment(Statistic.STDDEV, None),
    "STDDEV_SAMP": _moment(Statistic.STDDEV, True),
    "STDDEV_POP": _moment(Statistic.STDDEV, False),
    "SKEWNESS": _moment(Statistic.SKEWNESS, True),
    "SKEWNESS_POP": _moment(Statistic.SKEWNESS, False),
    "KURTOSIS": _moment(Statistic.KURTOSIS, True),
    "KURTOSIS_POP": _moment(Statistic.KURTOSIS, False),
}


def available_functions() -> list[str]:
    """Names accepted by create_accumulator"""
    return sorted(_FUNCTIONS)


def create_accumulator(
    function: str,
    data_type: Any,
    config: AccumulatorConfig | dict | None = None,
) -> Accumulator:
    """
    Factory function to create the accumulator for an aggregate function

    Args:
        function: Aggregate function name (MODE, VAR_SAMP, KURTOSIS, ...)
        data_type: Argument type: LogicalType, tag name or arrow DataType
        config: AccumulatorConfig or a mapping of config options

    Returns:
        Fresh accumulator with empty state

    Raises:
        ValueError: If function is not recognized
        UnsupportedTypeError: If the function has no kernel for data_type
    """
    try:
        build = _FUNCTIONS[function.upper()]
    except KeyError:
        raise ValueError(f"Unknown aggregate function: {function}") from None

    if not isinstance(config, AccumulatorConfig):
        config = AccumulatorConfig.from_dict(config)

    return build(data_type, config)
