"""
Type descriptor for state types.

Maps a state (or state type) to its degrees of freedom, the size of its
stored representation and its scalar type:

    manifold class/instance -> declared DOF, GLOBAL_SIZE, SCALAR_TYPE
    compound instance       -> sums over its components
    1-D / column array      -> rows, rows, dtype
    scalar / scalar type    -> 1, 1, type

Anything else raises TypeError; there is no generic fallback.
"""

from __future__ import annotations

import numbers
from dataclasses import dataclass
from typing import Any, Tuple

import numpy as np

from autolin.common.geometry.manifolds import CompoundManifold, Manifold


@dataclass(frozen=True)
class StateInfo:
    """(DOF, GLOBAL_SIZE, scalar type) of a state. dof <= global_size."""
    dof: int
    global_size: int
    scalar_type: Any


def _numeric_type(cls: Any) -> Any:
    """NumPy scalar type for cls, or None. JAX scalar classes map via their dtype."""
    if not isinstance(cls, type) or issubclass(cls, (bool, np.bool_)):
        return None
    if issubclass(cls, (numbers.Real, np.number)):
        return cls
    dtype = getattr(cls, "dtype", None)
    if dtype is None:
        return None
    try:
        scalar = np.dtype(dtype).type
    except TypeError:
        return None
    return scalar if issubclass(scalar, np.number) else None


def _scalar_type_of_manifold(cls: type) -> Any:
    return _numeric_type(cls.SCALAR_TYPE) or cls.SCALAR_TYPE


def _manifold_class_info(cls: type) -> StateInfo:
    dof = getattr(cls, "DOF", None)
    global_size = getattr(cls, "GLOBAL_SIZE", None)
    if not isinstance(dof, int) or not isinstance(global_size, int):
        if issubclass(cls, CompoundManifold):
            raise TypeError(
                f"state_info: {cls.__name__} does not declare DOF/GLOBAL_SIZE; "
                "query an instance instead"
            )
        raise TypeError(f"state_info: manifold {cls.__name__} does not declare DOF/GLOBAL_SIZE")
    return StateInfo(dof=dof, global_size=global_size, scalar_type=_scalar_type_of_manifold(cls))


def _array_info(value: Any) -> StateInfo:
    shape = np.shape(value)
    dtype = np.dtype(value.dtype).type
    if len(shape) == 0:
        return StateInfo(dof=1, global_size=1, scalar_type=dtype)
    if len(shape) == 1 or (len(shape) == 2 and shape[1] == 1):
        return StateInfo(dof=int(shape[0]), global_size=int(shape[0]), scalar_type=dtype)
    raise TypeError(f"state_info: arrays must be vectors, got shape {shape}")


def state_info(state: Any) -> StateInfo:
    """Describe a state instance or state type."""
    if isinstance(state, type):
        if issubclass(state, Manifold):
            return _manifold_class_info(state)
        if issubclass(state, (bool, np.bool_)):
            raise TypeError("state_info: bool is not a numeric state type")
        scalar_type = _numeric_type(state)
        if scalar_type is not None:
            return StateInfo(dof=1, global_size=1, scalar_type=scalar_type)
        raise TypeError(f"state_info: unsupported state type {state.__name__}")

    if isinstance(state, Manifold):
        scalar_type = _scalar_type_of_manifold(type(state))
        return StateInfo(dof=state.dof, global_size=state.global_size, scalar_type=scalar_type)
    if isinstance(state, bool):
        raise TypeError("state_info: bool is not a numeric state")
    if isinstance(state, (numbers.Real, np.number)):
        return StateInfo(dof=1, global_size=1, scalar_type=type(state))
    if hasattr(state, "shape") and hasattr(state, "dtype"):
        return _array_info(state)
    raise TypeError(f"state_info: unsupported state {type(state).__name__}")


def dof_of(state: Any) -> int:
    return state_info(state).dof


def global_size_of(state: Any) -> int:
    return state_info(state).global_size


def scalar_type_of(state: Any) -> Any:
    return state_info(state).scalar_type


def covariance_shape(state: Any) -> Tuple[int, int]:
    """Shape of a covariance over the tangent space of state."""
    dof = dof_of(state)
    return (dof, dof)
