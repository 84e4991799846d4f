"""Periodic finite-difference operators on structured Cartesian grids.

Axis convention: ``Axis.X`` runs along rows (array axis 0, spacing ``dx``)
and ``Axis.Y`` along columns (array axis 1, spacing ``dy``). Every operator
wraps around at the grid edge, so the last row's forward neighbour is the
first row and the first row's backward neighbour is the last row.
"""

from enum import Enum

import numpy as np

from utils.checks import require
from .helpers import as_grid, require_same_shape

DX = 0.01
DY = 0.01


class Axis(Enum):
    X = 0
    Y = 1


class DiffType(Enum):
    FORWARD = "forward"
    BACKWARD = "backward"
    CENTER = "center"


def difference(grid, axis: Axis, kind: DiffType, dx: float = DX, dy: float = DY):
    """First derivative of ``grid`` along ``axis`` with periodic wraparound.

    Parameters
    ----------
    grid : ndarray (n, m)
        Field values. Not modified.
    axis : Axis
        Direction of differentiation.
    kind : DiffType
        FORWARD ``(f[i+1] - f[i]) / h``, BACKWARD ``(f[i] - f[i-1]) / h``
        or CENTER ``(f[i+1] - f[i-1]) / (2 h)``.
    dx, dy : float
        Grid spacing along X (rows) and Y (columns).

    Returns
    -------
    ndarray (n, m)
        New array holding the derivative.
    """
    A = as_grid(grid)
    ax = Axis(axis).value
    require(
        A.shape[ax] >= 2,
        f"difference along {Axis(axis).name} needs at least 2 cells, got shape {A.shape}",
    )
    h = dx if ax == 0 else dy

    # roll(-1) brings f[i+1] to position i, roll(+1) brings f[i-1]
    kind = DiffType(kind)
    if kind is DiffType.FORWARD:
        return (np.roll(A, -1, axis=ax) - A) / h
    if kind is DiffType.BACKWARD:
        return (A - np.roll(A, 1, axis=ax)) / h
    return (np.roll(A, -1, axis=ax) - np.roll(A, 1, axis=ax)) / (2.0 * h)


def skew_symmetric_advection(u, v, phi, dx: float = DX, dy: float = DY):
    """Energy-conserving advective term ``0.5 * (u.grad(phi) + div(u phi))``.

    Expands to ``0.5 * (u dphi/dx + v dphi/dy + d(u phi)/dx + d(v phi)/dy)``
    with central differences.
    """
    U = as_grid(u, "u")
    V = as_grid(v, "v")
    phi = as_grid(phi, "phi")
    require_same_shape(U, V, phi, names=["u", "v", "phi"])

    def d(field, axis):
        return difference(field, axis, DiffType.CENTER, dx=dx, dy=dy)

    ret = U * d(phi, Axis.X) + V * d(phi, Axis.Y) + d(U * phi, Axis.X) + d(V * phi, Axis.Y)
    return ret / 2.0
