"""
Common package for autolin.

Shared configuration, errors, numeric guards and covariance primitives.

Subpackages:
- geometry/: manifold state types and quaternion kernels
"""

from __future__ import annotations

from importlib import import_module
from typing import Any

__all__ = [
    "LinearizationParams",
    "load_params",
    "get_params",
    "set_params",
    "ConditioningCert",
    "symmetrize",
    "is_positive_definite",
    "condition_covariance",
    "assure_positive_definite",
    "isfinite",
    "assert_finite",
    "LinearizationAssertionError",
    "NonFiniteError",
    "CovarianceRepairError",
    "constants",
]

_LAZY_ATTRS: dict[str, tuple[str, str | None]] = {
    # Configuration
    "LinearizationParams": ("autolin.common.param_models", "LinearizationParams"),
    "load_params": ("autolin.common.param_models", "load_params"),
    "get_params": ("autolin.common.param_models", "get_params"),
    "set_params": ("autolin.common.param_models", "set_params"),
    # Covariance conditioning
    "ConditioningCert": ("autolin.common.certificates", "ConditioningCert"),
    "symmetrize": ("autolin.common.primitives", "symmetrize"),
    "is_positive_definite": ("autolin.common.primitives", "is_positive_definite"),
    "condition_covariance": ("autolin.common.primitives", "condition_covariance"),
    "assure_positive_definite": ("autolin.common.primitives", "assure_positive_definite"),
    # Guards and errors
    "isfinite": ("autolin.common.guards", "isfinite"),
    "assert_finite": ("autolin.common.guards", "assert_finite"),
    "LinearizationAssertionError": ("autolin.common.errors", "LinearizationAssertionError"),
    "NonFiniteError": ("autolin.common.errors", "NonFiniteError"),
    "CovarianceRepairError": ("autolin.common.errors", "CovarianceRepairError"),
    # Expose as a submodule without importing it at package import time.
    "constants": ("autolin.common.constants", None),
}


def __getattr__(name: str) -> Any:
    target = _LAZY_ATTRS.get(name)
    if target is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    module_name, attr_name = target
    module = import_module(module_name)
    return module if attr_name is None else getattr(module, attr_name)


def __dir__() -> list[str]:
    return sorted(set(globals().keys()) | set(_LAZY_ATTRS.keys()))
