"""
JAX unit-quaternion kernels for SO(3).

Quaternions are [w, x, y, z] (scalar first). All functions are plain
jax.numpy code, so they compose with jit, vmap and forward-mode jvp.

Key functions:
- quat_exp: rotation vector -> unit quaternion
- quat_log: unit quaternion -> rotation vector
- quat_multiply: Hamilton product p (x) q
- quat_rotate: R(q) @ v

The exp/log pair uses the double-where pattern near zero angle: the unsafe
branch is fed a dummy argument so that neither the value nor the tangent of
the discarded branch can become nan. Both are evaluated exactly at zero by the
linearization engine (identity re-referencing), so this matters.

Reference: Sola, "Quaternion kinematics for the error-state Kalman filter" (2017)
"""

from __future__ import annotations

from autolin.common import constants
from autolin.common.jax_init import jnp

SMALL_ANGLE_SQ = constants.AUTOLIN_SMALL_ANGLE_SQ


def quat_identity() -> jnp.ndarray:
    """Return the identity quaternion [1, 0, 0, 0]."""
    return jnp.array([1.0, 0.0, 0.0, 0.0], dtype=jnp.float64)


def quat_normalize(q: jnp.ndarray) -> jnp.ndarray:
    q = jnp.asarray(q, dtype=jnp.float64)
    return q / jnp.linalg.norm(q)


def quat_conjugate(q: jnp.ndarray) -> jnp.ndarray:
    """Conjugate (inverse for unit quaternions)."""
    return q * jnp.array([1.0, -1.0, -1.0, -1.0], dtype=jnp.float64)


def quat_multiply(p: jnp.ndarray, q: jnp.ndarray) -> jnp.ndarray:
    """Hamilton product p (x) q."""
    pw, px, py, pz = p[0], p[1], p[2], p[3]
    qw, qx, qy, qz = q[0], q[1], q[2], q[3]
    return jnp.stack([
        pw * qw - px * qx - py * qy - pz * qz,
        pw * qx + px * qw + py * qz - pz * qy,
        pw * qy - px * qz + py * qw + pz * qx,
        pw * qz + px * qy - py * qx + pz * qw,
    ])


def quat_to_rotmat(q: jnp.ndarray) -> jnp.ndarray:
    """Rotation matrix of a unit quaternion."""
    w, x, y, z = q[0], q[1], q[2], q[3]
    return jnp.stack([
        jnp.stack([1.0 - 2.0 * (y * y + z * z), 2.0 * (x * y - z * w), 2.0 * (x * z + y * w)]),
        jnp.stack([2.0 * (x * y + z * w), 1.0 - 2.0 * (x * x + z * z), 2.0 * (y * z - x * w)]),
        jnp.stack([2.0 * (x * z - y * w), 2.0 * (y * z + x * w), 1.0 - 2.0 * (x * x + y * y)]),
    ])


def quat_rotate(q: jnp.ndarray, v: jnp.ndarray) -> jnp.ndarray:
    """Rotate a 3-vector: R(q) @ v."""
    return quat_to_rotmat(q) @ v


def quat_exp(omega: jnp.ndarray) -> jnp.ndarray:
    """
    Exponential map: rotation vector (3,) -> unit quaternion (4,).

        q = [cos(θ/2), sin(θ/2)/θ · ω],  θ = ||ω||

    Small angles use cos(θ/2) ≈ 1 - θ²/8 and sin(θ/2)/θ ≈ 1/2 - θ²/48.
    """
    omega = jnp.asarray(omega, dtype=jnp.float64).reshape(-1)
    theta_sq = jnp.dot(omega, omega)
    is_small = theta_sq < SMALL_ANGLE_SQ

    safe_theta = jnp.sqrt(jnp.where(is_small, 1.0, theta_sq))
    half = 0.5 * safe_theta

    w = jnp.where(is_small, 1.0 - theta_sq / 8.0, jnp.cos(half))
    k = jnp.where(is_small, 0.5 - theta_sq / 48.0, jnp.sin(half) / safe_theta)

    return jnp.concatenate([jnp.reshape(w, (1,)), k * omega])


def quat_log(q: jnp.ndarray) -> jnp.ndarray:
    """
    Logarithm map: unit quaternion (4,) -> rotation vector (3,).

    The quaternion is first moved to the w >= 0 hemisphere so the result has
    angle in [0, π].

        ω = 2 atan2(||u||, w) / ||u|| · u,  q = [w, u]

    Small ||u|| uses 2/w · (1 - ||u||²/(3w²)).
    """
    q = jnp.asarray(q, dtype=jnp.float64).reshape(-1)
    q = jnp.where(q[0] < 0.0, -q, q)
    w = q[0]
    u = q[1:]

    n_sq = jnp.dot(u, u)
    is_small = n_sq < SMALL_ANGLE_SQ

    safe_n = jnp.sqrt(jnp.where(is_small, 1.0, n_sq))
    safe_w = jnp.where(is_small, w, 1.0)

    k = jnp.where(
        is_small,
        (2.0 / safe_w) * (1.0 - n_sq / (3.0 * safe_w * safe_w)),
        2.0 * jnp.arctan2(safe_n, w) / safe_n,
    )
    return k * u
