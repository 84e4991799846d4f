"""Bilinear sampling in array-index coordinates.

Coordinates are measured in cells: ``x`` indexes rows and ``y`` indexes
columns, so ``sample(A, 2.0, 3.0) == A[2, 3]``. Sampling needs both the
floor and floor+1 neighbours in range; semi-Lagrangian callers run
``clamp_position`` on back-traced points first.
"""

import math

import numpy as np
from scipy.ndimage import map_coordinates

from utils.checks import PreconditionError, require
from .helpers import as_grid


def sample(grid, x: float, y: float) -> float:
    """Bilinearly interpolate ``grid`` at the fractional index ``(x, y)``."""
    A = as_grid(grid)
    n, m = A.shape
    require(math.isfinite(x) and math.isfinite(y), f"non-finite position ({x}, {y})")

    xi1 = math.floor(x)
    yi1 = math.floor(y)
    xi2, yi2 = xi1 + 1, yi1 + 1
    xs, ys = x - xi1, y - yi1

    require(0 <= xi1 < n, f"xi1={xi1} out of range [0, {n})")
    require(0 <= xi2 < n, f"xi2={xi2} out of range [0, {n})")
    require(0 <= yi1 < m, f"yi1={yi1} out of range [0, {m})")
    require(0 <= yi2 < m, f"yi2={yi2} out of range [0, {m})")

    ret = (
        A[xi1, yi1] * (1 - xs) * (1 - ys)
        + A[xi1, yi2] * (1 - xs) * ys
        + A[xi2, yi1] * xs * (1 - ys)
        + A[xi2, yi2] * xs * ys
    )
    require(not math.isnan(ret), f"interpolated value at ({x}, {y}) is NaN")
    return float(ret)


def sample_many(grid, xs, ys) -> np.ndarray:
    """Vectorised ``sample`` over arrays of positions (same contract)."""
    A = as_grid(grid)
    n, m = A.shape
    xs = np.asarray(xs, dtype=np.float64)
    ys = np.asarray(ys, dtype=np.float64)
    require(xs.shape == ys.shape, f"position shapes differ: {xs.shape} vs {ys.shape}")
    if xs.size == 0:
        return np.empty(xs.shape, dtype=np.float64)
    require(
        np.all(np.isfinite(xs)) and np.all(np.isfinite(ys)),
        "non-finite sample positions",
    )

    xi1 = np.floor(xs)
    yi1 = np.floor(ys)
    if not np.all((xi1 >= 0) & (xi1 + 1 < n)):
        raise PreconditionError(
            f"row positions out of range for {n} rows: [{xs.min()}, {xs.max()}]"
        )
    if not np.all((yi1 >= 0) & (yi1 + 1 < m)):
        raise PreconditionError(
            f"column positions out of range for {m} columns: [{ys.min()}, {ys.max()}]"
        )

    coords = np.stack([xs.ravel(), ys.ravel()])
    ret = map_coordinates(A, coords, order=1, mode="nearest").reshape(xs.shape)
    require(not np.any(np.isnan(ret)), "interpolated values contain NaN")
    return ret


def clamp_position(grid, x: float, y: float):
    """Clamp ``(x, y)`` into ``[0.5, n-1.5] x [0.5, m-1.5]``."""
    n, m = np.shape(grid)
    if x < 0.5:
        x = 0.5
    if x > n - 1.5:
        x = n - 1.5
    if y < 0.5:
        y = 0.5
    if y > m - 1.5:
        y = m - 1.5
    return x, y


def wrap_index(grid, i: int, j: int):
    """Reduce ``(i, j)`` modulo the grid shape (periodic indexing)."""
    n, m = np.shape(grid)
    return i % n, j % m
