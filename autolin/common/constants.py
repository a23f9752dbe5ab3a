"""
autolin constants only.

=============================================================================
CONVENTION QUICK REFERENCE
=============================================================================

QUATERNIONS:
  [w, x, y, z] (scalar first), unit norm, w >= 0 after log canonicalization.

TANGENT VECTORS:
  SO2: [dtheta]
  SO3: [rx, ry, rz] rotation vector, right perturbation q (x) Exp(d)
  SE3: [trans(3), rot(3)] = [dx, dy, dz, rx, ry, rz]
  Compound: concatenation of component tangents in field declaration order.

JACOBIANS:
  Rows index output tangent coordinates, columns index input tangent
  coordinates. Covariance transport is J @ cov @ J.T.
=============================================================================
"""

# =============================================================================
# Covariance conditioning
# =============================================================================

# Floor substituted for every eigenvalue below it during repair.
AUTOLIN_EPS_PD = 1e-10

# Failure policies for a repair that still fails the definiteness check.
AUTOLIN_REPAIR_POLICY_RAISE = "raise"
AUTOLIN_REPAIR_POLICY_WARN = "warn"

# =============================================================================
# Geometry
# =============================================================================

# Below this squared angle the Taylor branches are used in exp/log.
# Second-order Taylor terms keep the first derivative exact at zero.
AUTOLIN_SMALL_ANGLE_SQ = 1e-12

# =============================================================================
# Finite-difference verification
# =============================================================================

# Central-difference step along each tangent direction.
AUTOLIN_FD_STEP = 1e-6

# Relative agreement expected between forward-mode and central differences.
AUTOLIN_FD_RTOL = 1e-5
AUTOLIN_FD_ATOL = 1e-7
