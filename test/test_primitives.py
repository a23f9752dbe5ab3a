"""
Tests for covariance conditioning primitives.
"""

import logging

import numpy as np
import pytest

import autolin.common.primitives as primitives
from autolin.common.errors import CovarianceRepairError
from autolin.common.jax_init import jnp
from autolin.common.param_models import LinearizationParams, set_params
from autolin.common.primitives import (
    assure_positive_definite,
    condition_covariance,
    is_positive_definite,
    symmetrize,
)


def _rotated_diag(eigvals, seed=0):
    """Symmetric matrix Q diag(eigvals) Qᵀ with a random orthogonal Q."""
    rng = np.random.default_rng(seed)
    Q, _ = np.linalg.qr(rng.normal(size=(len(eigvals), len(eigvals))))
    return jnp.asarray(Q @ np.diag(eigvals) @ Q.T)


class TestSymmetrize:
    """Tests for the symmetric part and its defect."""

    def test_defect_of_skew_part(self):
        """M = S + K with K skew: the defect is ||K||_F."""
        M = jnp.array([[2.0, 0.5, 0.0], [0.1, 1.0, -0.3], [0.0, 0.3, 4.0]])
        result = symmetrize(M)
        assert jnp.array_equal(result.M_sym, result.M_sym.T)
        skew = 0.5 * (M - M.T)
        assert result.sym_delta == pytest.approx(float(jnp.linalg.norm(skew)))

    def test_symmetric_input_has_no_defect(self):
        result = symmetrize(_rotated_diag([1.0, 2.0]))
        assert result.sym_delta == pytest.approx(0.0, abs=1e-15)

    def test_rejects_non_square(self):
        with pytest.raises(ValueError, match="square"):
            symmetrize(jnp.zeros((2, 3)))


class TestIsPositiveDefinite:
    """Tests for the LDLᵀ positive-definiteness check."""

    def test_identity(self):
        assert is_positive_definite(jnp.eye(4))

    def test_random_spd(self):
        A = np.random.default_rng(3).normal(size=(5, 5))
        assert is_positive_definite(A @ A.T + 1e-3 * np.eye(5))

    @pytest.mark.parametrize(
        "M",
        [
            [[0.0, 0.0], [0.0, 0.0]],
            [[1.0, 0.0], [0.0, 0.0]],
            [[1.0, 1.0], [1.0, 1.0]],
        ],
    )
    def test_singular_psd_is_positive(self, M):
        """Zero pivots do not make a matrix negative."""
        assert is_positive_definite(jnp.array(M))

    @pytest.mark.parametrize(
        "M",
        [
            [[1.0, 0.0], [0.0, -1.0]],
            [[0.0, 0.0], [0.0, -1e-12]],
            [[0.0, 1.0], [1.0, 0.0]],
            [[1.0, 2.0], [2.0, 1.0]],
        ],
    )
    def test_negative_direction_rejected(self, M):
        assert not is_positive_definite(jnp.array(M))

    def test_indefinite_rotated(self):
        assert not is_positive_definite(_rotated_diag([3.0, 1.0, -0.2]))

    def test_non_finite(self):
        assert not is_positive_definite(jnp.array([[1.0, 0.0], [0.0, jnp.nan]]))
        assert not is_positive_definite(jnp.array([[jnp.inf, 0.0], [0.0, 1.0]]))

    def test_empty_matrix(self):
        assert is_positive_definite(jnp.zeros((0, 0)))

    def test_rejects_non_square(self):
        with pytest.raises(ValueError, match="square"):
            is_positive_definite(jnp.zeros(3))


class TestAssurePositiveDefinite:
    """Tests for eigenvalue-floor repair."""

    def test_healthy_matrix_unchanged(self):
        M = _rotated_diag([2.0, 1.0, 0.5])
        out = assure_positive_definite(M)
        assert jnp.array_equal(out, M)

    def test_negative_eigenvalue_raised_to_floor(self):
        eps = 1e-3
        M = _rotated_diag([2.0, 1.0, -0.5])
        out = assure_positive_definite(M, eps=eps)
        assert is_positive_definite(out)
        eigvals = np.sort(np.linalg.eigvalsh(np.asarray(out)))
        np.testing.assert_allclose(eigvals, [eps, 1.0, 2.0], rtol=1e-8, atol=1e-12)

    def test_repair_is_idempotent(self):
        eps = 1e-3
        once = assure_positive_definite(_rotated_diag([4.0, -1.0, 1e-6, 0.3]), eps=eps)
        twice = assure_positive_definite(once, eps=eps)
        assert jnp.allclose(twice, once, atol=1e-12)

    def test_default_floor_from_params(self):
        set_params(LinearizationParams(eps_pd=1e-4))
        out = assure_positive_definite(jnp.diag(jnp.array([1.0, -1.0])))
        assert jnp.allclose(out, jnp.diag(jnp.array([1.0, 1e-4])))

    def test_zero_matrix(self):
        out = assure_positive_definite(jnp.zeros((3, 3)), eps=1e-10)
        assert is_positive_definite(out)
        assert jnp.allclose(out, 1e-10 * jnp.eye(3))

    def test_rejects_non_positive_eps(self):
        with pytest.raises(ValueError, match="eps must be"):
            assure_positive_definite(jnp.eye(2), eps=0.0)

    def test_failed_repair_raises(self, monkeypatch):
        monkeypatch.setattr(primitives, "is_positive_definite", lambda M: False)
        with pytest.raises(CovarianceRepairError, match="not positive definite"):
            assure_positive_definite(jnp.diag(jnp.array([1.0, -1.0])))

    def test_failed_repair_is_assertion(self, monkeypatch):
        monkeypatch.setattr(primitives, "is_positive_definite", lambda M: False)
        with pytest.raises(AssertionError):
            assure_positive_definite(jnp.diag(jnp.array([1.0, -1.0])))

    def test_failed_repair_warns_under_policy(self, monkeypatch, caplog):
        set_params(LinearizationParams(repair_failure_policy="warn"))
        monkeypatch.setattr(primitives, "is_positive_definite", lambda M: False)
        with caplog.at_level(logging.WARNING, logger="autolin.common.primitives"):
            out = assure_positive_definite(jnp.diag(jnp.array([1.0, -1.0])), eps=1e-2)
        assert jnp.allclose(out, jnp.diag(jnp.array([1.0, 1e-2])))
        assert "not positive definite" in caplog.text


class TestConditionCovariance:
    """Tests for the certificate-reporting conditioner."""

    def test_cert_without_repair(self):
        result = condition_covariance(jnp.diag(jnp.array([4.0, 2.0])))
        assert not result.cert.repaired
        assert result.cert.clamped_count == 0
        assert result.cert.positive_definite
        assert result.cert.cond == pytest.approx(2.0)
        assert result.cert.projection_delta == 0.0

    def test_cert_with_repair(self, caplog):
        with caplog.at_level(logging.INFO, logger="autolin.common.primitives"):
            result = condition_covariance(jnp.diag(jnp.array([4.0, -1.0, -2.0])), eps=0.5)
        cert = result.cert
        assert cert.repaired
        assert cert.clamped_count == 2
        assert cert.eig_min == pytest.approx(-2.0)
        assert cert.eig_max == pytest.approx(4.0)
        assert cert.cond == pytest.approx(8.0)
        assert cert.projection_delta == pytest.approx(np.sqrt(1.5 ** 2 + 2.5 ** 2))
        assert cert.positive_definite
        assert "clamped 2/3" in caplog.text

    def test_cert_to_dict(self):
        cert = condition_covariance(jnp.eye(2)).cert
        assert set(cert.to_dict()) == {
            "eig_min", "eig_max", "cond", "clamped_count",
            "projection_delta", "sym_delta", "repaired", "positive_definite",
        }

    def test_cert_reports_asymmetry(self):
        M = jnp.array([[2.0, 0.4], [0.0, 1.0]])
        result = condition_covariance(M)
        assert not result.cert.repaired
        assert result.cert.sym_delta == pytest.approx(np.sqrt(2.0) * 0.2)
        assert jnp.array_equal(result.cov, M)

    def test_repair_of_asymmetric_input_is_symmetric(self):
        M = jnp.array([[1.0, 0.3], [0.1, -1.0]])
        result = condition_covariance(M, eps=1e-3)
        assert result.cert.repaired
        assert result.cert.sym_delta > 0.0
        assert jnp.allclose(result.cov, result.cov.T, atol=1e-12)
        assert result.cert.positive_definite
