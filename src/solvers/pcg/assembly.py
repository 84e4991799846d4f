"""Vectorized stencil assembly for MFPCG on structured grids.

Builders take full-grid fields of shape ``(n+2, m+2)`` and fill the
solver's coefficient vectors for the ``n x m`` interior. The one-cell
border is never solved for.
"""

import numpy as np

from grid.helpers import as_grid
from utils.checks import require


def _check_full_grid(solver, field, name):
    A = as_grid(field, name)
    expected = (solver.n + 2, solver.m + 2)
    require(A.shape == expected, f"{name} must have shape {expected}, got {A.shape}")
    return A


def _couplings(solver, ci, cj):
    """Off-diagonal vectors with the last row/column coupling cut off."""
    n, m = solver.shape
    aplusi = np.full((n, m), -ci)
    aplusj = np.full((n, m), -cj)
    aplusi[-1, :] = 0.0
    aplusj[:, -1] = 0.0
    return aplusi, aplusj


def assemble_diffusion(solver, field, nu: float, dt: float, dx: float, dy: float):
    """Load the implicit diffusion system ``(I - nu dt Laplacian) phi' = phi``.

    Parameters
    ----------
    solver : MFPCG
        Solver sized for ``field``.
    field : ndarray (n+2, m+2)
        Current field. Its border cells are Dirichlet values and are moved
        to the right-hand side.
    nu, dt : float
        Diffusivity and time step.
    dx, dy : float
        Grid spacing along rows and columns.
    """
    phi = _check_full_grid(solver, field, "field")
    require(nu >= 0.0 and dt >= 0.0, f"nu and dt must be non-negative, got {nu}, {dt}")
    n, m = solver.shape

    cx = nu * dt / (dx * dx)
    cy = nu * dt / (dy * dy)

    adiag = np.full((n, m), 1.0 + 2.0 * cx + 2.0 * cy)
    aplusi, aplusj = _couplings(solver, cx, cy)

    # Border values enter through the missing neighbour terms
    b = phi[1:-1, 1:-1].copy()
    b[0, :] += cx * phi[0, 1:-1]
    b[-1, :] += cx * phi[-1, 1:-1]
    b[:, 0] += cy * phi[1:-1, 0]
    b[:, -1] += cy * phi[1:-1, -1]

    solver.set_system(adiag, aplusi, aplusj, b)


def assemble_pressure(solver, divergence, dt: float, dx: float, dy: float, rho: float = 1.0):
    """Load the pressure Poisson system ``-(dt / rho) Laplacian p = -div u``.

    Pressure outside the interior is taken as zero, which keeps the
    system symmetric positive definite.
    """
    div = _check_full_grid(solver, divergence, "divergence")
    require(dt > 0.0 and rho > 0.0, f"dt and rho must be positive, got {dt}, {rho}")
    n, m = solver.shape

    kx = dt / (rho * dx * dx)
    ky = dt / (rho * dy * dy)

    adiag = np.full((n, m), 2.0 * kx + 2.0 * ky)
    aplusi, aplusj = _couplings(solver, kx, ky)
    b = -div[1:-1, 1:-1]

    solver.set_system(adiag, aplusi, aplusj, b)


def scatter_solution(solver, grid):
    """Write the solver's interior solution into ``grid[1:-1, 1:-1]`` in place."""
    target = _check_full_grid(solver, grid, "grid")
    require(target is grid, "scatter target must be a float64 numpy array")
    grid[1:-1, 1:-1] = solver.solution(copy=False)
    return grid
