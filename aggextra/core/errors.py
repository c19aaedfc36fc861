"""Errors raised by the accumulator engine.

Too few observations for a statistic is not an error: finalize returns
None in that case.
"""


class AggregateError(Exception):
    """Base class for accumulator errors"""

    pass


class TypeMismatchError(AggregateError, TypeError):
    """Raised when a batch or partial state does not match the accumulator's type"""

    pass


class UnsupportedTypeError(AggregateError, ValueError):
    """Raised at construction when no kernel exists for a logical type"""

    pass


class StateDecodeError(AggregateError, ValueError):
    """Raised when a serialized partial state is malformed"""

    pass
