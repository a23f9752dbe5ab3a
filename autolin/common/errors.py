"""
Exception family for autolin.

Malformed arguments raise the builtin ValueError/TypeError. The classes here
mark fatal programming errors: they derive from AssertionError so that a
caller catching ordinary numerical failures does not swallow them.
"""

from __future__ import annotations


class LinearizationAssertionError(AssertionError):
    """Base for fatal contract violations detected at linearization time."""


class NonFiniteError(LinearizationAssertionError):
    """An argument handed to a finiteness guard contains inf or nan."""

    def __init__(self, index: int, value_repr: str):
        self.index = index
        super().__init__(f"assert_finite: argument {index} is not finite: {value_repr}")


class CovarianceRepairError(LinearizationAssertionError):
    """Eigenvalue clamping did not produce a positive-definite matrix."""
