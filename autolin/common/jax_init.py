"""
Common JAX Initialization Module.

This module initializes JAX once at import time.
All other modules should import JAX from here instead of importing jax directly
so that x64 precision is enabled before the first array is created.

Usage:
    from autolin.common.jax_init import jax, jnp

    # JAX is already configured for x64 precision
    seed = jnp.eye(3)  # float64
"""

from __future__ import annotations

import os

# Configure JAX environment variables BEFORE importing JAX.
# Platform selection is left to JAX (CPU when no accelerator is present).
os.environ.setdefault("XLA_PYTHON_CLIENT_PREALLOCATE", "false")

import jax
import jax.numpy as jnp

# Jacobians and covariances are float64 throughout.
jax.config.update("jax_enable_x64", True)

__all__ = ["jax", "jnp"]
