"""Custom exceptions for taptempo."""


class InsufficientDataError(ValueError):
    """Raised when an estimator gets fewer than two tap offsets."""

    def __init__(self, message: str = "not enough data in input vector") -> None:
        super().__init__(message)


class InvalidInputError(ValueError):
    """Raised when tap timestamps or parameters are invalid."""
