"""
Linearization engine.

Modules:
- state_info: DOF / global size / scalar type of states
- dual: dual seed vectors, forward-mode evaluation, Jacobian extraction
- reference_transform: covariance re-referencing Jacobians

Usage:
    from autolin.linearization import transform_reference_jacobian

    J = transform_reference_jacobian(ref1, ref2)
    cov_at_ref2 = J @ cov_at_ref1 @ J.T
"""

from __future__ import annotations

from autolin.linearization.dual import (
    DualVector,
    clear_derivator_cache,
    extract_jacobi,
    get_derivator,
    push_forward,
)
from autolin.linearization.reference_transform import (
    noise_segment,
    numerical_reference_jacobian,
    rereference_covariance,
    transform_reference_jacobian,
)
from autolin.linearization.state_info import (
    StateInfo,
    covariance_shape,
    dof_of,
    global_size_of,
    scalar_type_of,
    state_info,
)

__all__ = [
    # Type descriptor
    "StateInfo",
    "state_info",
    "dof_of",
    "global_size_of",
    "scalar_type_of",
    "covariance_shape",
    # Dual numbers
    "DualVector",
    "get_derivator",
    "clear_derivator_cache",
    "push_forward",
    "extract_jacobi",
    # Reference transform
    "transform_reference_jacobian",
    "rereference_covariance",
    "numerical_reference_jacobian",
    "noise_segment",
]
