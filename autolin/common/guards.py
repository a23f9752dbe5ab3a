"""
Finiteness guards for linearization boundaries.

isfinite() is a plain query. assert_finite() is a debug check: it raises
NonFiniteError on the first offending argument while
LinearizationParams.debug_checks is enabled, and is a no-op otherwise or when
Python runs with -O.
"""

from __future__ import annotations

from typing import Any

import numpy as np

from autolin.common.errors import NonFiniteError
from autolin.common.geometry.manifolds import Manifold
from autolin.common.param_models import get_params


def isfinite(value: Any) -> bool:
    """
    True iff every element is finite.

    Accepts arrays of any rank, Python/NumPy scalars and manifolds (the
    stored global parameters are checked).
    """
    if isinstance(value, Manifold):
        value = value.to_array()
    return bool(np.all(np.isfinite(np.asarray(value, dtype=np.float64))))


def assert_finite(*args: Any) -> None:
    """Raise NonFiniteError on the first non-finite argument."""
    if not __debug__ or not get_params().debug_checks:
        return
    for index, value in enumerate(args):
        if not isfinite(value):
            raise NonFiniteError(index, repr(value))
