"""
Dual-number seeding and Jacobian extraction.

A DualVector is a vector of dual numbers: value (L,) together with
derivative (L, R), where row j holds the partial derivatives of entry j with
respect to R independent input directions. Forward-mode arithmetic on these
pairs is JAX's jvp; push_forward() evaluates a function on a DualVector by
pushing every seeded direction through jax.jvp at once (vmap over directions).

Typical use:

    seed = get_derivator(3)                 # value 0, derivative I
    out = push_forward(f, seed)             # f evaluated at 0, df/dδ attached
    J = extract_jacobi(out)                 # (len(f(0)), 3)
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, NamedTuple

import numpy as np

from autolin.common.jax_init import jax, jnp

_logger = logging.getLogger(__name__)


class DualVector(NamedTuple):
    """Vector of dual numbers."""
    value: jnp.ndarray  # (L,)
    derivative: jnp.ndarray  # (L, R)


# =============================================================================
# Seed cache
# =============================================================================

_lock = threading.Lock()
_derivators: Dict[int, DualVector] = {}


def get_derivator(size: int) -> DualVector:
    """
    Return the dual seed vector of length size.

    Entry i has value 0 and derivative e_i (the i-th standard basis vector),
    so derivative == I. Built once per size under a lock and shared
    read-only afterwards.
    """
    if isinstance(size, bool) or not isinstance(size, (int, np.integer)) or size <= 0:
        raise ValueError(f"get_derivator: size must be a positive int, got {size!r}")
    size = int(size)

    seed = _derivators.get(size)
    if seed is not None:
        return seed

    with _lock:
        seed = _derivators.get(size)
        if seed is None:
            seed = DualVector(
                value=jnp.zeros(size, dtype=jnp.float64),
                derivative=jnp.eye(size, dtype=jnp.float64),
            )
            _derivators[size] = seed
            _logger.debug("get_derivator: created seed for size %d", size)
    return seed


def clear_derivator_cache() -> None:
    """Drop every cached seed."""
    with _lock:
        _derivators.clear()


# =============================================================================
# Forward-mode evaluation
# =============================================================================


def _check_dual(dual: DualVector, name: str) -> tuple[jnp.ndarray, jnp.ndarray]:
    value = jnp.reshape(jnp.asarray(dual.value, dtype=jnp.float64), (-1,))
    derivative = jnp.asarray(dual.derivative, dtype=jnp.float64)
    if derivative.ndim != 2 or derivative.shape[0] != value.shape[0]:
        raise ValueError(
            f"{name}: derivative must be ({value.shape[0]}, R), got {derivative.shape}"
        )
    return value, derivative


def push_forward(fn: Callable[[jnp.ndarray], jnp.ndarray], seed: DualVector) -> DualVector:
    """
    Evaluate fn on a vector of dual numbers.

    Args:
        fn: Function of a (L,) vector returning a scalar or a vector,
            written in jax.numpy
        seed: Input duals, e.g. get_derivator(L)

    Returns:
        DualVector with value fn(seed.value) and derivative
        d fn / d input @ seed.derivative
    """
    value, derivative = _check_dual(seed, "push_forward")

    def pushfwd(direction: jnp.ndarray):
        return jax.jvp(fn, (value,), (direction,))

    out_value, out_derivative = jax.vmap(pushfwd, in_axes=1, out_axes=(None, -1))(derivative)
    out_value = jnp.asarray(out_value)
    if out_value.ndim > 1:
        raise ValueError(f"push_forward: fn must return a scalar or vector, got {out_value.shape}")

    out_value = jnp.reshape(out_value, (-1,))
    out_derivative = jnp.reshape(out_derivative, (out_value.shape[0], derivative.shape[1]))
    return DualVector(value=out_value, derivative=out_derivative)


def extract_jacobi(result: DualVector) -> jnp.ndarray:
    """
    Read the Jacobian off a vector of dual numbers.

    Row j of the returned (L, R) matrix is the derivative vector of entry j.
    No arithmetic is performed.
    """
    _, derivative = _check_dual(result, "extract_jacobi")
    return derivative
