"""
Exceptions and warnings raised by the percent cover calculations.
"""

from typing import Iterable


class LPICoverError(Exception):
    """Base class for all lpi-cover errors."""


class InvalidConfigurationError(LPICoverError, ValueError):
    """Raised when the calculation is asked for with unusable options."""


class SchemaViolationError(LPICoverError, KeyError):
    """
    Raised when the tall LPI table is missing a required column.

    The missing column names are available as ``missing``.
    """

    def __init__(self, missing: Iterable[str]):
        self.missing = list(missing)
        super().__init__(f"LPI table is missing required column(s): {', '.join(self.missing)}")

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]


class UndefinedCoverError(LPICoverError, ZeroDivisionError):
    """Raised when a group has records to aggregate but no valid points."""

    def __init__(self, groups: list):
        self.groups = groups
        super().__init__(
            f"Undefined cover for {len(groups)} group(s) with a point count of 0: {groups}"
        )


class UndefinedCoverWarning(RuntimeWarning):
    """Issued when cover could not be computed for a group and was set to NaN or dropped."""
