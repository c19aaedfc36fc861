"""Accumulator configuration recognised at construction."""

from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Any, Mapping


class NullPolicy(Enum):
    """How null inputs are treated. Only skipping is supported."""

    SKIP_NULLS = "SKIP_NULLS"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class AccumulatorConfig:
    """
    Options fixed for the lifetime of one accumulator

    Attributes:
        sample_correction: Use sample divisors (n - 1 for variance, adjusted
            estimators for skewness and kurtosis) instead of population ones
        null_policy: Null handling; always SKIP_NULLS
        cardinality_warning_threshold: Distinct-key count at which a mode
            accumulator starts logging high-cardinality warnings
    """

    sample_correction: bool = True
    null_policy: NullPolicy = NullPolicy.SKIP_NULLS
    cardinality_warning_threshold: int = 1_000_000

    def __post_init__(self):
        if self.null_policy is not NullPolicy.SKIP_NULLS:
            raise ValueError(f"Unsupported null policy: {self.null_policy}")
        if self.cardinality_warning_threshold < 1:
            raise ValueError(
                "cardinality_warning_threshold must be >= 1, "
                f"got {self.cardinality_warning_threshold}"
            )

    @staticmethod
    def from_dict(options: Mapping[str, Any] | None) -> "AccumulatorConfig":
        """
        Build a config from host-supplied options

        Args:
            options: Mapping with any of the config field names. null_policy
                may be given as a NullPolicy or its name.

        Returns:
            AccumulatorConfig

        Raises:
            ValueError: On unknown keys or an unsupported null policy
        """
        if not options:
            return AccumulatorConfig()

        known = {f.name for f in fields(AccumulatorConfig)}
        unknown = set(options) - known
        if unknown:
            raise ValueError(f"Unknown accumulator options: {', '.join(sorted(unknown))}")

        kwargs = dict(options)
        policy = kwargs.get("null_policy")
        if isinstance(policy, str):
            try:
                kwargs["null_policy"] = NullPolicy[policy.upper()]
            except KeyError:
                raise ValueError(f"Unsupported null policy: {policy}") from None

        if "sample_correction" in kwargs:
            kwargs["sample_correction"] = bool(kwargs["sample_correction"])

        return AccumulatorConfig(**kwargs)

    def with_sample_correction(self, sample_correction: bool) -> "AccumulatorConfig":
        """Return a copy with a different divisor setting."""
        return replace(self, sample_correction=sample_correction)
