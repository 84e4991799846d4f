"""Scipy reference solve of an MFPCG system using conjugate gradients."""

import numpy as np
from scipy.sparse.linalg import LinearOperator, cg


def stencil_operator(solver) -> LinearOperator:
    """Wrap the solver's loaded stencil as a scipy LinearOperator."""
    return LinearOperator(
        shape=(solver.size, solver.size),
        matvec=lambda x: solver.apply_stencil(x),
        dtype=np.float64,
    )


def scipy_solver(solver, tolerance=1e-10, max_iterations=1000):
    """Solve the system loaded in ``solver`` with scipy CG.

    Parameters
    ----------
    solver : MFPCG
        Solver whose coefficients and right-hand side are loaded.
    tolerance : float, optional
        Relative residual tolerance (default: 1e-10).
    max_iterations : int, optional
        Maximum iterations (default: 1000).

    Returns
    -------
    x_np : np.ndarray
        Solution vector (flat, interior indexing).
    info : int
        Scipy convergence flag (0 on success).
    """
    A = stencil_operator(solver)
    x, info = cg(A, solver.b.copy(), rtol=tolerance, atol=0, maxiter=max_iterations)

    if info < 0:
        raise RuntimeError(f"CG failed (info={info})")

    return x, info
