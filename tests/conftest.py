"""Pytest configuration and fixtures for grid-math and PCG solver tests."""

import sys
from pathlib import Path

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


@pytest.fixture
def rng():
    """Seeded random generator."""
    return np.random.default_rng(1234)


@pytest.fixture
def smooth_grid():
    """Periodic sin/cos field on a 16x12 grid."""
    n, m = 16, 12
    i = np.arange(n)[:, None]
    j = np.arange(m)[None, :]
    return np.sin(2 * np.pi * i / n) * np.cos(2 * np.pi * j / m)


@pytest.fixture
def laplacian_solver():
    """MFPCG on a 10x9 grid loaded with a 2D Laplacian-like SPD stencil."""
    from solvers.pcg import MFPCG

    solver = MFPCG(10, 9, preconditioner="diagonal", max_iterations=500, tolerance=1e-10)
    n, m = solver.shape
    aplusi = np.full((n, m), -1.0)
    aplusj = np.full((n, m), -1.0)
    aplusi[-1, :] = 0.0
    aplusj[:, -1] = 0.0
    adiag = np.full((n, m), 4.5)
    b = np.linspace(-1.0, 1.0, n * m)
    solver.set_system(adiag, aplusi, aplusj, b)
    return solver
