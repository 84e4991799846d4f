"""Shared numeric helpers for grids."""

from __future__ import annotations

import numpy as np

from utils.checks import require


# -----------------------------------------------------------------------------
# Scalars
# -----------------------------------------------------------------------------


def clip(a, lo, hi):
    """Clamp ``a`` into ``[lo, hi]``."""
    return min(max(a, lo), hi)


# -----------------------------------------------------------------------------
# Norms
# -----------------------------------------------------------------------------


def grid_norm(grid: np.ndarray) -> float:
    """Coefficient-wise L2 (Frobenius) norm of a grid."""
    return float(np.linalg.norm(np.asarray(grid, dtype=np.float64)))


def norm_inf(values: np.ndarray) -> float:
    """Maximum absolute value, 0.0 for an empty array."""
    values = np.asarray(values)
    if values.size == 0:
        return 0.0
    return float(np.max(np.abs(values)))


def discrete_l2_norm(values: np.ndarray, dx: float, dy: float) -> float:
    """Approximate the continuous L2 norm of a cell-centred field."""
    return float(np.sqrt(dx * dy * np.sum(np.abs(values) ** 2)))


# -----------------------------------------------------------------------------
# Shape checks
# -----------------------------------------------------------------------------


def as_grid(grid, name: str = "grid") -> np.ndarray:
    """Return ``grid`` as a 2D float64 array, rejecting other ranks."""
    arr = np.asarray(grid, dtype=np.float64)
    require(arr.ndim == 2, f"{name} must be 2D, got shape {arr.shape}")
    return arr


def require_same_shape(*grids, names=None):
    """Fail unless every grid has the same shape."""
    shapes = [np.shape(g) for g in grids]
    if names is None:
        names = [f"grid{k}" for k in range(len(grids))]
    for name, shape in zip(names[1:], shapes[1:]):
        require(
            shape == shapes[0],
            f"shape mismatch: {names[0]} is {shapes[0]} but {name} is {shape}",
        )
