"""Constraint masks: grid cells pinned to fixed values.

A mask models sources, sinks and obstacles. Shapes are given in normalised
coordinates, where row ``i`` sits at ``i / n`` and column ``j`` at ``j / m``.
Successive ``set_*`` calls overwrite each other on overlapping cells.
"""

import logging

import numpy as np

from utils.checks import require
from .helpers import as_grid, clip

log = logging.getLogger(__name__)


class ConstraintMask:
    """Pinned-cell mask and the values the pinned cells are forced to.

    Parameters
    ----------
    shape : tuple of int
        ``(n, m)`` of the grids this mask will be applied to.
    """

    def __init__(self, shape):
        self.reset(shape)

    @classmethod
    def like(cls, grid):
        """Empty mask matching ``grid``'s shape."""
        return cls(np.shape(grid))

    def reset(self, shape):
        """Clear all pinned cells and resize to ``shape``."""
        shape = tuple(int(s) for s in shape)
        require(len(shape) == 2, f"mask shape must be 2D, got {shape}")
        require(shape[0] > 0 and shape[1] > 0, f"mask shape must be positive, got {shape}")
        self.mask = np.zeros(shape, dtype=bool)
        self.delta = np.zeros(shape, dtype=np.float64)

    @property
    def shape(self):
        return self.mask.shape

    @property
    def masked_count(self) -> int:
        return int(np.count_nonzero(self.mask))

    def set_box(self, x0: float, x1: float, y0: float, y1: float, value: float):
        """Pin the inclusive index box spanned by the normalised bounds."""
        n, m = self.shape
        i0 = clip(int(x0 * n), 0, n - 1)
        i1 = clip(int(x1 * n), 0, n - 1)
        j0 = clip(int(y0 * m), 0, m - 1)
        j1 = clip(int(y1 * m), 0, m - 1)
        self.mask[i0 : i1 + 1, j0 : j1 + 1] = True
        self.delta[i0 : i1 + 1, j0 : j1 + 1] = value
        log.debug(f"box rows {i0}..{i1}, cols {j0}..{j1} pinned to {value}")

    def set_ellipse(self, cx: float, cy: float, a: float, b: float, value: float):
        """Pin cells inside the axis-aligned ellipse centred at ``(cx, cy)``.

        ``a`` is the semi-axis along rows and ``b`` along columns, both in
        normalised units.
        """
        n, m = self.shape
        x = np.arange(n)[:, None] / n
        y = np.arange(m)[None, :] / m
        ddx = x - cx
        ddy = y - cy
        inside = ddx * ddx * b * b + ddy * ddy * a * a <= a * a * b * b
        self.mask[inside] = True
        self.delta[inside] = value

    def set_circle(self, cx: float, cy: float, radius: float, value: float):
        """Pin a circle of ``radius`` (in row-normalised units).

        The column semi-axis is rescaled by the grid's aspect ratio so the
        shape is round in cell space on non-square grids.
        """
        n, m = self.shape
        self.set_ellipse(cx, cy, radius, radius * n / m, value)

    def apply(self, grid):
        """Overwrite every pinned cell of ``grid`` in place; returns ``grid``."""
        require(isinstance(grid, np.ndarray), "constraint target must be a numpy array")
        as_grid(grid)
        require(
            grid.shape == self.shape,
            f"constraint mask size {self.shape} does not match grid {grid.shape}",
        )
        grid[self.mask] = self.delta[self.mask]
        return grid


def apply_constraint_mask(grid, mask: ConstraintMask):
    """Function form of ``ConstraintMask.apply``."""
    return mask.apply(grid)
