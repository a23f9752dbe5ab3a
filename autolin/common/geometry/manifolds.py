"""
Manifold state types.

A manifold exposes two operators that the linearization engine composes:

    x + δ   boxplus:  apply a tangent perturbation δ (length DOF)
    x1 - x2 boxminus: tangent vector δ such that x2 + δ == x1

Class attributes DOF, GLOBAL_SIZE and SCALAR_TYPE describe the type.
GLOBAL_SIZE may exceed DOF (SO3 stores 4 numbers for 3 degrees of freedom).

Compound manifolds are frozen dataclasses deriving from CompoundManifold. Their
fields, in declaration order, are the sub-states (manifolds, 1-D arrays or
floats) and fix the layout of the compound tangent vector.

All operators are written in jax.numpy so forward-mode tangents pass through.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Tuple

import numpy as np

from autolin.common.jax_init import jnp
from autolin.common.geometry import quat_jax


class Manifold:
    """Base class for all manifold states."""

    DOF: int
    GLOBAL_SIZE: int
    SCALAR_TYPE = np.float64

    @property
    def dof(self) -> int:
        return type(self).DOF

    @property
    def global_size(self) -> int:
        return type(self).GLOBAL_SIZE

    def boxplus(self, delta: jnp.ndarray) -> "Manifold":
        raise NotImplementedError

    def boxminus(self, other: "Manifold") -> jnp.ndarray:
        raise NotImplementedError

    def to_array(self) -> jnp.ndarray:
        """Stored (global) parameters, length GLOBAL_SIZE."""
        raise NotImplementedError

    def __add__(self, delta):
        return self.boxplus(jnp.asarray(delta))

    def __sub__(self, other):
        if not isinstance(other, type(self)):
            return NotImplemented
        return self.boxminus(other)


def _as_tangent(delta: jnp.ndarray, size: int, owner: str) -> jnp.ndarray:
    delta = jnp.reshape(jnp.asarray(delta), (-1,))
    if delta.shape[0] != size:
        raise ValueError(f"{owner}: tangent must be ({size},), got {delta.shape}")
    return delta


# =============================================================================
# Atomic manifolds
# =============================================================================


@dataclass(frozen=True, eq=False)
class SO2(Manifold):
    """Planar rotation stored as (cos θ, sin θ)."""

    cs: jnp.ndarray

    DOF = 1
    GLOBAL_SIZE = 2

    @classmethod
    def from_angle(cls, angle: float) -> "SO2":
        angle = jnp.asarray(angle, dtype=jnp.float64)
        return cls(jnp.stack([jnp.cos(angle), jnp.sin(angle)]))

    def angle(self) -> jnp.ndarray:
        return jnp.arctan2(self.cs[1], self.cs[0])

    def boxplus(self, delta: jnp.ndarray) -> "SO2":
        d = _as_tangent(delta, 1, "SO2.boxplus")[0]
        c, s = self.cs[0], self.cs[1]
        cd, sd = jnp.cos(d), jnp.sin(d)
        return SO2(jnp.stack([c * cd - s * sd, s * cd + c * sd]))

    def boxminus(self, other: "SO2") -> jnp.ndarray:
        c1, s1 = self.cs[0], self.cs[1]
        c2, s2 = other.cs[0], other.cs[1]
        return jnp.reshape(jnp.arctan2(s1 * c2 - c1 * s2, c1 * c2 + s1 * s2), (1,))

    def to_array(self) -> jnp.ndarray:
        return self.cs


@dataclass(frozen=True, eq=False)
class SO3(Manifold):
    """
    3D rotation stored as a unit quaternion [w, x, y, z].

    Perturbations act on the right: q + δ = q (x) Exp(δ).
    """

    quat: jnp.ndarray

    DOF = 3
    GLOBAL_SIZE = 4

    def __post_init__(self):
        quat = jnp.asarray(self.quat, dtype=jnp.float64).reshape(-1)
        if quat.shape != (4,):
            raise ValueError(f"SO3: quat must be (4,), got {quat.shape}")
        object.__setattr__(self, "quat", quat)

    @classmethod
    def identity(cls) -> "SO3":
        return cls(quat_jax.quat_identity())

    @classmethod
    def from_rotvec(cls, rotvec: jnp.ndarray) -> "SO3":
        return cls(quat_jax.quat_exp(rotvec))

    @classmethod
    def from_quaternion(cls, quat: jnp.ndarray) -> "SO3":
        """Build from a possibly non-normalized quaternion."""
        return cls(quat_jax.quat_normalize(quat))

    def inverse(self) -> "SO3":
        return SO3(quat_jax.quat_conjugate(self.quat))

    def matrix(self) -> jnp.ndarray:
        return quat_jax.quat_to_rotmat(self.quat)

    def rotate(self, v: jnp.ndarray) -> jnp.ndarray:
        return quat_jax.quat_rotate(self.quat, jnp.asarray(v))

    def log(self) -> jnp.ndarray:
        return quat_jax.quat_log(self.quat)

    def __mul__(self, other: "SO3") -> "SO3":
        if not isinstance(other, SO3):
            return NotImplemented
        return SO3(quat_jax.quat_multiply(self.quat, other.quat))

    def boxplus(self, delta: jnp.ndarray) -> "SO3":
        d = _as_tangent(delta, 3, "SO3.boxplus")
        return SO3(quat_jax.quat_multiply(self.quat, quat_jax.quat_exp(d)))

    def boxminus(self, other: "SO3") -> jnp.ndarray:
        rel = quat_jax.quat_multiply(quat_jax.quat_conjugate(other.quat), self.quat)
        return quat_jax.quat_log(rel)

    def to_array(self) -> jnp.ndarray:
        return self.quat


@dataclass(frozen=True, eq=False)
class SE3(Manifold):
    """
    Rigid transform stored as quaternion (4,) + translation (3,).

    Tangent ordering is [trans(3), rot(3)]:

        (q, p) + [δp, δω] = (q (x) Exp(δω), p + R(q) δp)
        x1 - x2 = [R(q2)ᵀ (p1 - p2), Log(q2⁻¹ (x) q1)]
    """

    quat: jnp.ndarray
    trans: jnp.ndarray

    DOF = 6
    GLOBAL_SIZE = 7

    def __post_init__(self):
        quat = jnp.asarray(self.quat, dtype=jnp.float64).reshape(-1)
        trans = jnp.asarray(self.trans, dtype=jnp.float64).reshape(-1)
        if quat.shape != (4,):
            raise ValueError(f"SE3: quat must be (4,), got {quat.shape}")
        if trans.shape != (3,):
            raise ValueError(f"SE3: trans must be (3,), got {trans.shape}")
        object.__setattr__(self, "quat", quat)
        object.__setattr__(self, "trans", trans)

    @classmethod
    def identity(cls) -> "SE3":
        return cls(quat_jax.quat_identity(), jnp.zeros(3, dtype=jnp.float64))

    @classmethod
    def from_rotvec_trans(cls, rotvec: jnp.ndarray, trans: jnp.ndarray) -> "SE3":
        return cls(quat_jax.quat_exp(rotvec), trans)

    @property
    def rotation(self) -> SO3:
        return SO3(self.quat)

    def transform_point(self, point: jnp.ndarray) -> jnp.ndarray:
        return quat_jax.quat_rotate(self.quat, jnp.asarray(point)) + self.trans

    def boxplus(self, delta: jnp.ndarray) -> "SE3":
        d = _as_tangent(delta, 6, "SE3.boxplus")
        quat = quat_jax.quat_multiply(self.quat, quat_jax.quat_exp(d[3:6]))
        trans = self.trans + quat_jax.quat_rotate(self.quat, d[:3])
        return SE3(quat, trans)

    def boxminus(self, other: "SE3") -> jnp.ndarray:
        q2_inv = quat_jax.quat_conjugate(other.quat)
        d_rot = quat_jax.quat_log(quat_jax.quat_multiply(q2_inv, self.quat))
        d_trans = quat_jax.quat_rotate(q2_inv, self.trans - other.trans)
        return jnp.concatenate([d_trans, d_rot])

    def to_array(self) -> jnp.ndarray:
        return jnp.concatenate([self.quat, self.trans])


# =============================================================================
# Compound manifolds
# =============================================================================


def _component_dof(value: Any) -> int:
    if isinstance(value, Manifold):
        return value.dof
    return int(jnp.size(value))


def _component_global_size(value: Any) -> int:
    if isinstance(value, Manifold):
        return value.global_size
    return int(jnp.size(value))


def _component_plus(value: Any, delta: jnp.ndarray) -> Any:
    if isinstance(value, Manifold):
        return value + delta
    if jnp.ndim(value) == 0:
        return value + delta[0]
    return jnp.reshape(value + jnp.reshape(delta, jnp.shape(value)), jnp.shape(value))


def _component_minus(value: Any, other: Any) -> jnp.ndarray:
    if isinstance(value, Manifold):
        return value - other
    return jnp.reshape(jnp.asarray(value) - jnp.asarray(other), (-1,))


class CompoundManifold(Manifold):
    """
    Ordered product of independent sub-states.

    Subclasses are frozen dataclasses; the fields are the components:

        @dataclass(frozen=True, eq=False)
        class Attitude(CompoundManifold):
            rot: SO3
            gyro_bias: jnp.ndarray

    DOF is the sum of component DOFs and is known per instance. Subclasses may
    additionally declare DOF/GLOBAL_SIZE as class attributes when every
    component has a fixed size.
    """

    def components(self) -> Iterator[Tuple[str, Any]]:
        for f in dataclasses.fields(self):
            yield f.name, getattr(self, f.name)

    @property
    def dof(self) -> int:
        return sum(_component_dof(v) for _, v in self.components())

    @property
    def global_size(self) -> int:
        return sum(_component_global_size(v) for _, v in self.components())

    def for_each_manifold_with_other(
        self,
        callback: Callable[[Any, Any], None],
        other: "CompoundManifold",
    ) -> None:
        """
        Call callback(sub, other_sub) once per component, in tangent layout order.

        Plain vector and scalar components are visited too.
        """
        for name, value in self.components():
            callback(value, getattr(other, name))

    def boxplus(self, delta: jnp.ndarray) -> "CompoundManifold":
        delta = _as_tangent(delta, self.dof, f"{type(self).__name__}.boxplus")
        updated = {}
        offset = 0
        for name, value in self.components():
            size = _component_dof(value)
            updated[name] = _component_plus(value, delta[offset:offset + size])
            offset += size
        return dataclasses.replace(self, **updated)

    def boxminus(self, other: "CompoundManifold") -> jnp.ndarray:
        parts = [
            _component_minus(value, getattr(other, name))
            for name, value in self.components()
        ]
        return jnp.concatenate(parts)

    def to_array(self) -> jnp.ndarray:
        parts = []
        for _, value in self.components():
            if isinstance(value, Manifold):
                parts.append(value.to_array())
            else:
                parts.append(jnp.reshape(jnp.asarray(value, dtype=jnp.float64), (-1,)))
        return jnp.concatenate(parts)
