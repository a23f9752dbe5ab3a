"""
Geometry package for autolin.

Manifold state types and the JAX quaternion kernels they are built on.

Modules:
- quat_jax: unit-quaternion exp/log/product kernels (forward-mode safe)
- manifolds: Manifold / CompoundManifold bases and SO2, SO3, SE3

Usage:
    from autolin.common.geometry import SO3, CompoundManifold

    r = SO3.from_rotvec(jnp.array([0.1, 0.0, 0.0]))
    delta = (r + jnp.array([0.0, 0.2, 0.0])) - r
"""

from __future__ import annotations

from autolin.common.geometry.manifolds import (
    CompoundManifold,
    Manifold,
    SE3,
    SO2,
    SO3,
)

__all__ = [
    "Manifold",
    "CompoundManifold",
    "SO2",
    "SO3",
    "SE3",
]
