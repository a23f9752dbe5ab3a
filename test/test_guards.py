"""
Tests for finiteness guards.
"""

import math

import numpy as np
import pytest

from autolin.common.errors import LinearizationAssertionError, NonFiniteError
from autolin.common.guards import assert_finite, isfinite
from autolin.common.jax_init import jnp
from autolin.common.geometry import SO3
from autolin.common.param_models import LinearizationParams, set_params


class TestIsFinite:
    """Tests for the finiteness query."""

    @pytest.mark.parametrize(
        "value",
        [1.0, 0, np.float32(2.5), jnp.zeros(3), np.eye(3), jnp.zeros((2, 2, 2)), SO3.identity()],
    )
    def test_finite(self, value):
        assert isfinite(value)

    @pytest.mark.parametrize(
        "value",
        [
            math.nan,
            math.inf,
            -math.inf,
            jnp.array([1.0, jnp.nan]),
            np.array([[1.0, 0.0], [0.0, np.inf]]),
        ],
    )
    def test_not_finite(self, value):
        assert not isfinite(value)

    def test_manifold_with_nan(self):
        assert not isfinite(SO3(jnp.array([jnp.nan, 0.0, 0.0, 0.0])))


class TestAssertFinite:
    """Tests for the debug guard."""

    def test_all_finite_passes(self):
        assert_finite(1.0, jnp.ones(3), np.eye(2), SO3.identity())

    def test_no_arguments(self):
        assert_finite()

    def test_reports_offending_index(self):
        with pytest.raises(NonFiniteError, match="argument 2") as excinfo:
            assert_finite(1.0, jnp.zeros(2), jnp.array([0.0, jnp.inf]), math.nan)
        assert excinfo.value.index == 2

    def test_is_assertion_error(self):
        with pytest.raises(AssertionError):
            assert_finite(math.nan)
        with pytest.raises(LinearizationAssertionError):
            assert_finite(math.nan)

    def test_disabled_by_params(self):
        set_params(LinearizationParams(debug_checks=False))
        assert_finite(math.nan, jnp.array([jnp.inf]))
