"""
autolin: automatic-differentiation linearization for manifold-valued states.

The public API is resolved lazily so that importing the package does not
initialize JAX until something that needs it is touched.
"""

from __future__ import annotations

from importlib import import_module
from typing import Any

__version__ = "0.1.0"

_LAZY_ATTRS: dict[str, tuple[str, str]] = {
    # Type descriptor
    "StateInfo": ("autolin.linearization.state_info", "StateInfo"),
    "state_info": ("autolin.linearization.state_info", "state_info"),
    "dof_of": ("autolin.linearization.state_info", "dof_of"),
    "global_size_of": ("autolin.linearization.state_info", "global_size_of"),
    "scalar_type_of": ("autolin.linearization.state_info", "scalar_type_of"),
    "covariance_shape": ("autolin.linearization.state_info", "covariance_shape"),
    # Dual numbers
    "DualVector": ("autolin.linearization.dual", "DualVector"),
    "get_derivator": ("autolin.linearization.dual", "get_derivator"),
    "push_forward": ("autolin.linearization.dual", "push_forward"),
    "extract_jacobi": ("autolin.linearization.dual", "extract_jacobi"),
    # Reference transform
    "transform_reference_jacobian": ("autolin.linearization.reference_transform", "transform_reference_jacobian"),
    "rereference_covariance": ("autolin.linearization.reference_transform", "rereference_covariance"),
    "numerical_reference_jacobian": ("autolin.linearization.reference_transform", "numerical_reference_jacobian"),
    "noise_segment": ("autolin.linearization.reference_transform", "noise_segment"),
    # Covariance conditioning
    "is_positive_definite": ("autolin.common.primitives", "is_positive_definite"),
    "assure_positive_definite": ("autolin.common.primitives", "assure_positive_definite"),
    "condition_covariance": ("autolin.common.primitives", "condition_covariance"),
    "symmetrize": ("autolin.common.primitives", "symmetrize"),
    # Guards
    "isfinite": ("autolin.common.guards", "isfinite"),
    "assert_finite": ("autolin.common.guards", "assert_finite"),
    # Manifolds
    "Manifold": ("autolin.common.geometry.manifolds", "Manifold"),
    "CompoundManifold": ("autolin.common.geometry.manifolds", "CompoundManifold"),
    "SO2": ("autolin.common.geometry.manifolds", "SO2"),
    "SO3": ("autolin.common.geometry.manifolds", "SO3"),
    "SE3": ("autolin.common.geometry.manifolds", "SE3"),
    # Configuration
    "LinearizationParams": ("autolin.common.param_models", "LinearizationParams"),
    "load_params": ("autolin.common.param_models", "load_params"),
    "get_params": ("autolin.common.param_models", "get_params"),
    "set_params": ("autolin.common.param_models", "set_params"),
}

__all__ = sorted(_LAZY_ATTRS) + ["__version__"]


def __getattr__(name: str) -> Any:
    target = _LAZY_ATTRS.get(name)
    if target is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    module_name, attr_name = target
    return getattr(import_module(module_name), attr_name)


def __dir__() -> list[str]:
    return sorted(set(globals().keys()) | set(_LAZY_ATTRS.keys()))
