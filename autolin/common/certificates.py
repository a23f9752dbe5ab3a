"""
Certificate structures for autolin.

Certificates record what a numerical stabilization did to its input so that
the caller can audit it instead of receiving a bare pass/fail signal.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict


@dataclass
class ConditioningCert:
    """Conditioning information from eigenvalue analysis."""
    eig_min: float = 1.0  # Smallest eigenvalue before clamping
    eig_max: float = 1.0
    cond: float = 1.0  # eig_max / eig_min after clamping
    clamped_count: int = 0  # Eigenvalues raised to the floor
    projection_delta: float = 0.0  # ||M_out - M_in||_F
    sym_delta: float = 0.0  # ||sym(M_in) - M_in||_F
    repaired: bool = False
    positive_definite: bool = True  # Post-condition result

    def to_dict(self) -> Dict[str, Any]:
        return {
            "eig_min": self.eig_min,
            "eig_max": self.eig_max,
            "cond": self.cond,
            "clamped_count": self.clamped_count,
            "projection_delta": self.projection_delta,
            "sym_delta": self.sym_delta,
            "repaired": self.repaired,
            "positive_definite": self.positive_definite,
        }
