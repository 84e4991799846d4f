"""Tests for constraint masks built from boxes, ellipses and circles."""

import numpy as np
import pytest

from grid.constraints import ConstraintMask, apply_constraint_mask
from utils.checks import PreconditionError


class TestSetBox:
    """Tests for box primitives."""

    def test_box_overwrites_inside_only(self, rng):
        """Only the inclusive box changes."""
        grid = rng.standard_normal((10, 20))
        original = grid.copy()
        mask = ConstraintMask.like(grid)
        mask.set_box(0.2, 0.5, 0.25, 0.5, 7.0)
        mask.apply(grid)

        # rows int(0.2*10)=2..5, cols int(0.25*20)=5..10 (inclusive)
        inside = np.zeros_like(grid, dtype=bool)
        inside[2:6, 5:11] = True
        assert np.all(grid[inside] == 7.0)
        assert np.array_equal(grid[~inside], original[~inside])

    @pytest.mark.parametrize(
        "bounds,rows,cols",
        [
            ((0.25, 0.55, 0.33, 0.61), (2, 5), (3, 6)),
            ((0.29, 0.29, 0.01, 0.09), (2, 2), (0, 0)),
            ((0.71, 0.99, 0.5, 0.999), (7, 9), (5, 9)),
        ],
    )
    def test_box_bounds_between_grid_lines_truncate(self, bounds, rows, cols, rng):
        """Normalised bounds map to int(x * n), so fractional cells round down."""
        grid = rng.standard_normal((10, 10))
        before = grid.copy()
        mask = ConstraintMask.like(grid)
        mask.set_box(*bounds, 5.0)
        mask.apply(grid)

        inside = np.zeros_like(grid, dtype=bool)
        inside[rows[0] : rows[1] + 1, cols[0] : cols[1] + 1] = True
        assert mask.masked_count == np.count_nonzero(inside)
        assert np.all(grid[inside] == 5.0)
        assert np.array_equal(grid[~inside], before[~inside])

    def test_box_uses_column_count_for_y(self):
        """y bounds scale by the column count."""
        mask = ConstraintMask((4, 40))
        mask.set_box(0.0, 0.0, 0.5, 0.5, 1.0)
        assert mask.mask[0, 20]
        assert mask.masked_count == 1

    def test_box_bounds_are_clipped(self):
        """Bounds outside [0, 1] clip to the grid."""
        mask = ConstraintMask((5, 5))
        mask.set_box(-1.0, 2.0, -0.5, 3.0, 2.0)
        assert mask.masked_count == 25

    def test_later_calls_override_earlier(self):
        """Overlapping primitives keep the last value."""
        mask = ConstraintMask((10, 10))
        mask.set_box(0.0, 0.5, 0.0, 0.5, 1.0)
        mask.set_box(0.3, 0.9, 0.3, 0.9, -1.0)
        grid = mask.apply(np.zeros((10, 10)))
        assert grid[1, 1] == 1.0
        assert grid[4, 4] == -1.0
        assert grid[8, 8] == -1.0


class TestEllipseAndCircle:
    """Tests for curved primitives."""

    def test_ellipse_membership(self):
        """Ellipse semi-axes are measured per axis."""
        mask = ConstraintMask((20, 20))
        mask.set_ellipse(0.5, 0.5, 0.32, 0.12, 4.0)
        assert mask.mask[10, 10]
        # along rows the semi-axis is 0.32 -> 6.4 cells
        assert mask.mask[16, 10] and not mask.mask[17, 10]
        # along columns the semi-axis is 0.12 -> 2.4 cells
        assert mask.mask[10, 12] and not mask.mask[10, 13]
        assert np.all(mask.delta[mask.mask] == 4.0)

    def test_circle_is_round_in_cell_space(self):
        """Circle radius is the same number of cells along both axes."""
        mask = ConstraintMask((20, 40))
        mask.set_circle(0.5, 0.5, 0.26, 1.0)
        # radius 0.26 rows -> 5.2 cells in both directions
        assert mask.mask[15, 20] and not mask.mask[16, 20]
        assert mask.mask[10, 25] and not mask.mask[10, 26]

    def test_circle_symmetric_about_centre(self):
        """Centred circle is mirror symmetric."""
        mask = ConstraintMask((21, 21))
        mask.set_circle(10 / 21, 10 / 21, 0.2, 1.0)
        assert np.array_equal(mask.mask, mask.mask[::-1, :])
        assert np.array_equal(mask.mask, mask.mask[:, ::-1])
        assert np.array_equal(mask.mask, mask.mask.T)


class TestApply:
    """Tests for applying masks to grids."""

    def test_empty_mask_leaves_grid_untouched(self, rng):
        """Applying an empty mask is a no-op."""
        grid = rng.standard_normal((6, 6))
        before = grid.copy()
        apply_constraint_mask(grid, ConstraintMask((6, 6)))
        assert np.array_equal(grid, before)

    def test_apply_is_in_place(self):
        """apply writes into and returns the grid."""
        grid = np.zeros((4, 4))
        mask = ConstraintMask((4, 4))
        mask.set_box(0.0, 1.0, 0.0, 1.0, 3.0)
        result = mask.apply(grid)
        assert result is grid
        assert np.all(grid == 3.0)

    def test_size_mismatch_rejected(self):
        """Mask and grid shapes must match."""
        mask = ConstraintMask((4, 4))
        with pytest.raises(PreconditionError, match="does not match"):
            mask.apply(np.zeros((4, 5)))

    def test_reset_clears_and_resizes(self):
        """reset empties the mask at a new shape."""
        mask = ConstraintMask((4, 4))
        mask.set_box(0.0, 1.0, 0.0, 1.0, 3.0)
        mask.reset((2, 3))
        assert mask.shape == (2, 3)
        assert mask.masked_count == 0

    def test_invalid_shape_rejected(self):
        """Empty shapes are refused."""
        with pytest.raises(PreconditionError):
            ConstraintMask((0, 4))
