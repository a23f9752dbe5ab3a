"""Pydantic parameter models for autolin."""

from __future__ import annotations

import threading
from typing import Any, Dict, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field

from autolin.common import constants

# YAML files may wrap the parameters in a top-level section of this name.
CONFIG_SECTION = "autolin"


class LinearizationParams(BaseModel):
    """Process-wide knobs for the guards and the covariance conditioner."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    eps_pd: float = Field(constants.AUTOLIN_EPS_PD, gt=0.0)
    debug_checks: bool = True
    repair_failure_policy: Literal["raise", "warn"] = constants.AUTOLIN_REPAIR_POLICY_RAISE


_lock = threading.Lock()
_active = LinearizationParams()


def _load_yaml_file(path: str) -> Dict[str, Any]:
    """Load a YAML config file, handling the optional section wrapper."""
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if CONFIG_SECTION in data and isinstance(data[CONFIG_SECTION], dict):
        return data[CONFIG_SECTION]
    return data


def load_params(path: str) -> LinearizationParams:
    """Build parameters from a YAML file. Unknown keys are rejected."""
    return LinearizationParams(**_load_yaml_file(path))


def get_params() -> LinearizationParams:
    """Return the active parameters."""
    with _lock:
        return _active


def set_params(params: LinearizationParams) -> LinearizationParams:
    """Install new active parameters and return the previous ones."""
    global _active
    if not isinstance(params, LinearizationParams):
        raise TypeError(f"set_params: expected LinearizationParams, got {type(params).__name__}")
    with _lock:
        previous = _active
        _active = params
    return previous
