import os
import sys
from dataclasses import dataclass

import pytest

# Ensure local package import works for pytest collection.
_TEST_DIR = os.path.dirname(__file__)
_PKG_ROOT = os.path.abspath(os.path.join(_TEST_DIR, ".."))
if _PKG_ROOT not in sys.path:
    sys.path.insert(0, _PKG_ROOT)

from autolin.common.jax_init import jnp
from autolin.common.geometry import CompoundManifold, SE3, SO2, SO3
from autolin.common.param_models import LinearizationParams, set_params
from autolin.linearization.dual import clear_derivator_cache


# =============================================================================
# Test compound states
# =============================================================================


@dataclass(frozen=True, eq=False)
class RotationWithBias(CompoundManifold):
    """SO3 (3 DOF) followed by a 2-vector (2 DOF)."""
    rot: SO3
    bias: jnp.ndarray


@dataclass(frozen=True, eq=False)
class PlanarPose(CompoundManifold):
    """Heading, position and a scalar clock offset."""
    heading: SO2
    position: jnp.ndarray
    clock: float


@dataclass(frozen=True, eq=False)
class Rig(CompoundManifold):
    """Nested compound: a pose plus an attitude-with-bias block."""
    body: SE3
    imu: RotationWithBias


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def default_params():
    """Every test starts from default parameters."""
    previous = set_params(LinearizationParams())
    yield
    set_params(previous)


@pytest.fixture
def fresh_derivators():
    """Empty seed cache before and after the test."""
    clear_derivator_cache()
    yield
    clear_derivator_cache()


@pytest.fixture
def so3_pair():
    """Two rotations about 40 degrees apart."""
    ref1 = SO3.from_rotvec(jnp.array([0.3, -0.2, 0.5]))
    ref2 = SO3.from_rotvec(jnp.array([-0.1, 0.4, 0.2]))
    return ref1, ref2


@pytest.fixture
def se3_pair():
    ref1 = SE3.from_rotvec_trans(jnp.array([0.1, 0.2, -0.3]), jnp.array([1.0, -2.0, 0.5]))
    ref2 = SE3.from_rotvec_trans(jnp.array([-0.2, 0.1, 0.4]), jnp.array([0.8, -1.5, 0.7]))
    return ref1, ref2


@pytest.fixture
def compound_pair(so3_pair):
    ref1_rot, ref2_rot = so3_pair
    ref1 = RotationWithBias(rot=ref1_rot, bias=jnp.array([0.01, -0.02]))
    ref2 = RotationWithBias(rot=ref2_rot, bias=jnp.array([0.03, 0.00]))
    return ref1, ref2


@pytest.fixture
def config_yaml(tmp_path):
    """Write a small YAML config and return its path."""
    path = tmp_path / "autolin.yaml"
    path.write_text(
        "autolin:\n"
        "  eps_pd: 1.0e-6\n"
        "  debug_checks: false\n"
        "  repair_failure_policy: warn\n"
    )
    return str(path)
