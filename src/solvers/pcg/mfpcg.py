"""Matrix-free preconditioned conjugate gradient (MFPCG) solver.

Solves ``A x = b`` where ``A`` is a symmetric 5-point stencil over the
interior of a structured grid (the full grid minus a one-cell border). The
matrix is never materialised: it is held as three coefficient vectors

- ``adiag[idx(i, j)]``: diagonal entry of cell (i, j)
- ``aplusi[idx(i, j)]``: coupling between (i, j) and (i+1, j)
- ``aplusj[idx(i, j)]``: coupling between (i, j) and (i, j+1)

with ``idx(i, j) = i * m + j``. Couplings to the (i-1) and (j-1)
neighbours are read from the neighbour's entry, so each off-diagonal is
stored once.

All vectors are allocated at construction and reused by every solve; the
caller refreshes the coefficients and right-hand side through
``set_system`` before each step.
"""

import logging
import time
from dataclasses import asdict

import numpy as np

from grid.helpers import norm_inf
from utils.checks import require
from ..datastructures import PCGMetrics, PCGParameters, ResidualHistory, StencilArrays
from .kernels import apply_stencil, combine, dot
from .preconditioners import create_preconditioner

log = logging.getLogger(__name__)


def load_array_from_grid(dest: np.ndarray, grid) -> np.ndarray:
    """Copy ``grid`` (flat or 2D, row-major) into the flat vector ``dest``."""
    src = np.asarray(grid, dtype=np.float64)
    require(
        src.size == dest.size,
        f"cannot load {src.shape} ({src.size} values) into a vector of length {dest.size}",
    )
    dest[:] = src.ravel()
    return dest


class MFPCG:
    """Matrix-free PCG solver for a fixed grid size.

    Parameters
    ----------
    height, width : int
        Full grid dimensions. The system is solved on the
        ``(height-2) x (width-2)`` interior.
    preconditioner : str or Preconditioner
        "diagonal" (default), "jacobi" or "identity".
    max_iterations : int
        Iteration cap per solve.
    tolerance : float
        Default max-norm residual tolerance.
    warm_start : bool
        Start from the previous solution instead of zero.
    record_history : bool
        Keep the residual of every iteration in ``self.history``.
    """

    Parameters = PCGParameters

    def __init__(
        self,
        height: int,
        width: int,
        preconditioner="diagonal",
        max_iterations: int = 500,
        tolerance: float = 1e-6,
        warm_start: bool = False,
        record_history: bool = False,
    ):
        self.n = int(height) - 2
        self.m = int(width) - 2
        require(
            self.n > 0 and self.m > 0,
            f"grid {height}x{width} has an empty interior ({self.n}x{self.m})",
        )
        require(max_iterations >= 0, f"max_iterations must be >= 0, got {max_iterations}")
        self.size = self.n * self.m
        self.shape = (self.n, self.m)

        self.preconditioner = create_preconditioner(preconditioner)
        self.max_iterations = int(max_iterations)
        self.tolerance = float(tolerance)
        self.warm_start = warm_start
        self.record_history = record_history

        self.arrays = StencilArrays.allocate(self.size)
        self.metrics = PCGMetrics()
        self.history = ResidualHistory()

        log.info(
            f"MFPCG interior {self.n}x{self.m}, preconditioner={self.preconditioner.name}, "
            f"max_iterations={self.max_iterations}"
        )

    @classmethod
    def from_parameters(cls, params: PCGParameters):
        return cls(**asdict(params))

    def idx(self, i: int, j: int) -> int:
        return i * self.m + j

    # Views on the solver vectors
    @property
    def adiag(self):
        return self.arrays.adiag

    @property
    def aplusi(self):
        return self.arrays.aplusi

    @property
    def aplusj(self):
        return self.arrays.aplusj

    @property
    def b(self):
        return self.arrays.b

    @property
    def p(self):
        return self.arrays.p

    def set_system(self, adiag, aplusi, aplusj, b):
        """Copy stencil coefficients and right-hand side into the solver.

        Each argument is a flat vector of length ``n * m`` or an ``(n, m)``
        grid over the interior.
        """
        a = self.arrays
        load_array_from_grid(a.adiag, adiag)
        load_array_from_grid(a.aplusi, aplusi)
        load_array_from_grid(a.aplusj, aplusj)
        load_array_from_grid(a.b, b)

    def apply_stencil(self, x, out=None):
        """Return ``A x`` (flat), written into ``out`` when given."""
        x = np.ascontiguousarray(x, dtype=np.float64).ravel()
        require(x.size == self.size, f"vector length {x.size} != system size {self.size}")
        if out is None:
            out = np.empty(self.size)
        require(
            isinstance(out, np.ndarray)
            and out.shape == (self.size,)
            and out.dtype == np.float64
            and out.flags.c_contiguous
            and out.flags.writeable,
            f"out must be a writeable contiguous float64 vector of length {self.size}",
        )
        require(not np.shares_memory(out, x), "apply_stencil cannot write into its input")
        a = self.arrays
        apply_stencil(a.adiag, a.aplusi, a.aplusj, x, out, self.n, self.m)
        return out

    def residual(self) -> np.ndarray:
        """True residual ``b - A p`` of the current solution."""
        out = self.apply_stencil(self.arrays.p)
        combine(self.arrays.b, out, -1.0, out)
        return out

    def solution(self, copy: bool = True) -> np.ndarray:
        """Solution as an ``(n, m)`` interior grid."""
        p = self.arrays.p.reshape(self.shape)
        return p.copy() if copy else p

    def solve(self, tolerance: float = None) -> PCGMetrics:
        """Run PCG on the loaded system; the solution is left in ``self.p``.

        Parameters
        ----------
        tolerance : float, optional
            Max-norm residual tolerance. If None, uses ``self.tolerance``.

        Returns
        -------
        PCGMetrics
            Iteration count and convergence status. Hitting the iteration
            cap or a degenerate search direction is reported with
            ``converged=False`` rather than raised.
        """
        tol = self.tolerance if tolerance is None else float(tolerance)
        require(tol >= 0.0, f"tolerance must be non-negative, got {tol}")

        a = self.arrays
        n, m = self.n, self.m
        prec = self.preconditioner
        time_start = time.perf_counter()

        if self.warm_start:
            # r = b - A p from the previous solution
            apply_stencil(a.adiag, a.aplusi, a.aplusj, a.p, a.r, n, m)
            combine(a.b, a.r, -1.0, a.r)
        else:
            a.p[:] = 0.0
            np.copyto(a.r, a.b)

        prec.apply(a.r, a.adiag, out=a.z)
        np.copyto(a.s, a.z)
        sigma = dot(a.z, a.r)
        residual = norm_inf(a.r)

        self.history.clear()
        iterations = 0
        converged = False
        breakdown = False

        # A warm start may already satisfy the tolerance
        max_iterations = self.max_iterations
        if self.warm_start and residual <= tol:
            max_iterations = 0

        for it in range(max_iterations):
            iterations = it + 1

            apply_stencil(a.adiag, a.aplusi, a.aplusj, a.s, a.z, n, m)
            denom = dot(a.z, a.s)
            if denom == 0.0 or not np.isfinite(denom):
                # Zero or non-finite curvature: nothing more to gain
                converged = residual <= tol
                breakdown = not converged
                break

            alpha = sigma / denom
            combine(a.p, a.s, alpha, a.p)
            combine(a.r, a.z, -alpha, a.r)

            residual = norm_inf(a.r)
            if self.record_history:
                self.history.append(residual)
            log.debug(f"PCG iteration {iterations}: residual={residual:.6e}")

            if residual <= tol:
                converged = True
                break

            prec.apply(a.r, a.adiag, out=a.z)
            sigma1 = dot(a.z, a.r)
            if sigma == 0.0 or not np.isfinite(sigma1):
                breakdown = True
                break
            beta = sigma1 / sigma
            combine(a.z, a.s, beta, a.s)
            sigma = sigma1
        else:
            converged = residual <= tol

        # Verify against the true residual; the recursive one can drift
        apply_stencil(a.adiag, a.aplusi, a.aplusj, a.p, a.z, n, m)
        combine(a.b, a.z, -1.0, a.z)
        true_residual = norm_inf(a.z)
        if converged and true_residual > tol:
            log.warning(
                f"PCG recursive residual {residual:.3e} met tolerance but true residual "
                f"is {true_residual:.3e}"
            )
            converged = False

        self.metrics = PCGMetrics(
            iterations=iterations,
            converged=converged,
            breakdown=breakdown,
            final_residual=residual,
            true_residual=true_residual,
            wall_time_seconds=time.perf_counter() - time_start,
        )

        if breakdown:
            log.warning(
                f"PCG breakdown at iteration {iterations} (degenerate search direction), "
                f"residual={residual:.3e}"
            )
        elif not converged:
            log.warning(
                f"PCG did not converge in {iterations} iterations: "
                f"residual={residual:.3e} > tolerance={tol:.1e}"
            )
        else:
            log.debug(f"PCG converged in {iterations} iterations, residual={residual:.3e}")

        return self.metrics
