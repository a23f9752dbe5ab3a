"""
Reference transform Jacobians.

A Gaussian belief over a manifold-valued quantity is stored as a reference
point ref1, a tangent offset (mean) Er1 and a covariance Σ in the tangent
space at ref1. Re-expressing the same belief around a different reference
ref2 (after an update moved the estimate, say) transports the covariance with

    J = d/dδ [ (ref1 + (Er1 + δ)) - ref2 ] at δ = 0
    Σ' ≈ J Σ Jᵀ

Atomic manifolds evaluate J with one forward-mode pass seeded by
get_derivator(DOF). Compound manifolds recurse per component and assemble J
block-diagonally; vector and scalar states transform with the identity.

Precondition for compounds: a component's tangent directions must not
influence any other component under the compound's boxplus/boxminus. Only
the diagonal blocks are computed, so coupling would go unnoticed.
numerical_reference_jacobian() differentiates the whole compound and can be
used to check a new compound type against this.
"""

from __future__ import annotations

from typing import Any, List, Optional, Tuple

from autolin.common import constants
from autolin.common.geometry.manifolds import CompoundManifold, Manifold
from autolin.common.jax_init import jnp
from autolin.linearization.dual import extract_jacobi, get_derivator, push_forward
from autolin.linearization.state_info import dof_of


def noise_segment(noise: jnp.ndarray, start: int, size: int) -> jnp.ndarray:
    """Slice noise[start:start + size] of a tangent/noise vector."""
    noise = jnp.reshape(jnp.asarray(noise), (-1,))
    if start < 0 or size < 0 or start + size > noise.shape[0]:
        raise ValueError(
            f"noise_segment: [{start}, {start + size}) out of range for length {noise.shape[0]}"
        )
    return noise[start:start + size]


def _as_offset(offset: Any, dof: int) -> Optional[jnp.ndarray]:
    if offset is None:
        return None
    offset = jnp.reshape(jnp.asarray(offset, dtype=jnp.float64), (-1,))
    if offset.shape[0] != dof:
        raise ValueError(f"transform_reference_jacobian: offset must be ({dof},), got {offset.shape}")
    return offset


def _atomic_jacobian(ref1: Manifold, ref2: Manifold, offset: Optional[jnp.ndarray], dof: int) -> jnp.ndarray:
    if offset is None:
        def rereferenced(delta):
            return (ref1 + delta) - ref2
    else:
        def rereferenced(delta):
            return (ref1 + (offset + delta)) - ref2

    return extract_jacobi(push_forward(rereferenced, get_derivator(dof)))


def _write_diagonal_block(
    jacobian: jnp.ndarray,
    sub: Any,
    other_sub: Any,
    offset: Optional[jnp.ndarray],
    start: int,
) -> Tuple[jnp.ndarray, int]:
    """Write the component's block at (start, start); return the next start."""
    size = dof_of(sub)
    sub_offset = None if offset is None else noise_segment(offset, start, size)
    block = transform_reference_jacobian(sub, other_sub, sub_offset)
    jacobian = jacobian.at[start:start + size, start:start + size].set(block)
    return jacobian, start + size


def _compound_jacobian(
    ref1: CompoundManifold,
    ref2: CompoundManifold,
    offset: Optional[jnp.ndarray],
    dof: int,
) -> jnp.ndarray:
    pairs: List[Tuple[Any, Any]] = []
    ref1.for_each_manifold_with_other(lambda sub, other_sub: pairs.append((sub, other_sub)), ref2)

    # Untouched coordinates keep the identity
    jacobian = jnp.eye(dof, dtype=jnp.float64)
    start = 0
    for sub, other_sub in pairs:
        jacobian, start = _write_diagonal_block(jacobian, sub, other_sub, offset, start)
    return jacobian


def transform_reference_jacobian(ref1: Any, ref2: Any, offset: Any = None) -> jnp.ndarray:
    """
    Jacobian that moves a covariance from reference ref1 to reference ref2.

    Args:
        ref1: Base reference (manifold, vector or scalar state)
        ref2: Target reference, same type and structure as ref1
        offset: Mean of the belief in the tangent space of ref1 (DOF,).
            None means the mean is ref1 itself.

    Returns:
        (DOF, DOF) Jacobian J; the re-referenced covariance is J Σ Jᵀ.

    ref1 and ref2 must have the same structure; a mismatch is not detected.
    """
    dof = dof_of(ref1)
    offset = _as_offset(offset, dof)

    if isinstance(ref1, CompoundManifold):
        return _compound_jacobian(ref1, ref2, offset, dof)
    if isinstance(ref1, Manifold):
        return _atomic_jacobian(ref1, ref2, offset, dof)
    # Vector/scalar state: no manifold structure to re-reference
    return jnp.eye(dof, dtype=jnp.float64)


def rereference_covariance(cov: jnp.ndarray, ref1: Any, ref2: Any, offset: Any = None) -> jnp.ndarray:
    """
    Move a tangent-space covariance from ref1 to ref2: J Σ Jᵀ.

    Args:
        cov: Covariance at ref1 (DOF, DOF)
        ref1, ref2, offset: As for transform_reference_jacobian

    Returns:
        Covariance at ref2 (DOF, DOF)
    """
    J = transform_reference_jacobian(ref1, ref2, offset)
    cov = jnp.asarray(cov, dtype=jnp.float64)
    if cov.shape != J.shape:
        raise ValueError(f"rereference_covariance: cov must be {J.shape}, got {cov.shape}")
    return J @ cov @ J.T


def numerical_reference_jacobian(
    ref1: Any,
    ref2: Any,
    offset: Any = None,
    step: float = constants.AUTOLIN_FD_STEP,
) -> jnp.ndarray:
    """
    Central finite-difference counterpart of transform_reference_jacobian.

    Differentiates (ref1 + (offset + δ)) - ref2 as a whole, so compound
    cross-coupling, if any, shows up in the off-diagonal blocks.
    """
    if step <= 0.0:
        raise ValueError(f"numerical_reference_jacobian: step must be > 0, got {step}")
    dof = dof_of(ref1)
    base = _as_offset(offset, dof)
    if base is None:
        base = jnp.zeros(dof, dtype=jnp.float64)

    columns = []
    for i in range(dof):
        e = jnp.zeros(dof, dtype=jnp.float64).at[i].set(step)
        forward = jnp.reshape((ref1 + (base + e)) - ref2, (-1,))
        backward = jnp.reshape((ref1 + (base - e)) - ref2, (-1,))
        columns.append((forward - backward) / (2.0 * step))
    return jnp.stack(columns, axis=1)
