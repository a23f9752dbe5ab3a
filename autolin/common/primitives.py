"""
Covariance conditioning primitives for autolin.

Covariances drift away from positive-definiteness after repeated Jacobian
transport and subtraction in the update step. These primitives detect that
and repair it by clamping eigenvalues from below.

Unlike a PSD projection that always runs, assure_positive_definite only
rebuilds the matrix when some eigenvalue is actually below the floor, so a
healthy covariance is returned bit-for-bit unchanged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
import scipy.linalg

from autolin.common import constants
from autolin.common.certificates import ConditioningCert
from autolin.common.errors import CovarianceRepairError
from autolin.common.jax_init import jnp
from autolin.common.param_models import get_params

_logger = logging.getLogger(__name__)


# =============================================================================
# Result Types
# =============================================================================


@dataclass
class SymmetrizeResult:
    """Result of Symmetrize operation."""
    M_sym: jnp.ndarray  # Symmetric matrix
    sym_delta: float  # ||M_sym - M||_F


@dataclass
class ConditioningResult:
    """Result of condition_covariance."""
    cov: jnp.ndarray  # Positive-definite matrix (input if no repair was needed)
    cert: ConditioningCert


# =============================================================================
# Primitives
# =============================================================================


def _as_square(matrix, name: str) -> jnp.ndarray:
    M = jnp.asarray(matrix, dtype=jnp.float64)
    if M.ndim != 2 or M.shape[0] != M.shape[1]:
        raise ValueError(f"{name}: expected a square matrix, got shape {M.shape}")
    return M


def symmetrize(M: jnp.ndarray) -> SymmetrizeResult:
    """
    Symmetrize a matrix.

    Args:
        M: Input matrix (d, d)

    Returns:
        SymmetrizeResult with symmetric matrix and delta magnitude
    """
    M = _as_square(M, "symmetrize")
    M_sym = 0.5 * (M + M.T)
    sym_delta = jnp.linalg.norm(M_sym - M, ord="fro")
    return SymmetrizeResult(M_sym=M_sym, sym_delta=float(sym_delta))


def is_positive_definite(matrix) -> bool:
    """
    Check the sign of a symmetric matrix with an LDLᵀ (Bunch-Kaufman) decomposition.

    The matrix is reported positive iff the decomposition only needs 1x1
    pivots and no pivot is negative, so singular PSD matrices (the zero
    matrix included) pass. Only the lower triangle is read, as for any
    symmetric solver. Non-finite input is never positive.
    """
    M = np.asarray(_as_square(matrix, "is_positive_definite"))
    if M.shape[0] == 0:
        return True
    if not np.all(np.isfinite(M)):
        return False
    try:
        _, d, _ = scipy.linalg.ldl(M, lower=True, hermitian=True)
    except (ValueError, np.linalg.LinAlgError):
        return False
    # 2x2 pivot blocks only occur for indefinite matrices
    if d.shape[0] > 1 and np.any(np.diag(d, -1) != 0.0):
        return False
    return bool(np.all(np.diag(d) >= 0.0))


def condition_covariance(matrix, eps: Optional[float] = None) -> ConditioningResult:
    """
    Clamp eigenvalues below eps and report what happened.

    Args:
        matrix: Symmetric matrix (d, d)
        eps: Eigenvalue floor (defaults to LinearizationParams.eps_pd)

    Returns:
        ConditioningResult; cov is the input itself when every eigenvalue
        is already >= eps.
    """
    eps = get_params().eps_pd if eps is None else float(eps)
    if eps <= 0.0:
        raise ValueError(f"condition_covariance: eps must be > 0, got {eps}")
    M = _as_square(matrix, "condition_covariance")

    # eigh reads the symmetric part; sym_delta records what it ignored
    sym = symmetrize(M)
    eigvals, eigvecs = jnp.linalg.eigh(sym.M_sym)
    below = eigvals < eps
    clamped_count = int(jnp.sum(below))
    eig_min = float(jnp.min(eigvals)) if eigvals.size else 0.0
    eig_max = float(jnp.max(eigvals)) if eigvals.size else 0.0

    if clamped_count == 0:
        cond = eig_max / eig_min if eigvals.size else 1.0
        cert = ConditioningCert(eig_min=eig_min, eig_max=eig_max, cond=cond, sym_delta=sym.sym_delta)
        return ConditioningResult(cov=M, cert=cert)

    vals_clamped = jnp.where(below, eps, eigvals)
    repaired = eigvecs @ jnp.diag(vals_clamped) @ jnp.linalg.inv(eigvecs)

    cert = ConditioningCert(
        eig_min=eig_min,
        eig_max=eig_max,
        cond=float(jnp.max(vals_clamped) / jnp.min(vals_clamped)),
        clamped_count=clamped_count,
        projection_delta=float(jnp.linalg.norm(repaired - M, ord="fro")),
        sym_delta=sym.sym_delta,
        repaired=True,
        positive_definite=is_positive_definite(repaired),
    )
    _logger.info(
        "condition_covariance: clamped %d/%d eigenvalues (eig_min=%.3e, eps=%.1e)",
        clamped_count, eigvals.size, eig_min, eps,
    )
    return ConditioningResult(cov=repaired, cert=cert)


def assure_positive_definite(matrix, eps: Optional[float] = None) -> jnp.ndarray:
    """
    Return a positive-definite version of a symmetric matrix.

    Every eigenvalue below eps is raised to eps and the matrix is rebuilt as
    V diag(λ) V⁻¹. The input is returned unchanged when no eigenvalue is
    below eps.

    Raises:
        CovarianceRepairError: the rebuilt matrix is still not positive
            definite (eigendecomposition breakdown). With
            repair_failure_policy == "warn" a warning is logged and the
            rebuilt matrix is returned instead.
    """
    result = condition_covariance(matrix, eps)
    if result.cert.positive_definite:
        return result.cov

    message = (
        "assure_positive_definite: repaired matrix is not positive definite "
        f"({result.cert.clamped_count} eigenvalues clamped, eig_min={result.cert.eig_min:.3e})"
    )
    if get_params().repair_failure_policy == constants.AUTOLIN_REPAIR_POLICY_WARN:
        _logger.warning(message)
        return result.cov
    raise CovarianceRepairError(message)
