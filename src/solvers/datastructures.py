"""Data structures for PCG solver configuration and results.

Structure:
- PCGParameters: Input configuration (logged to MLflow at start)
- PCGMetrics: Output of one solve (logged to MLflow per step)
- ResidualHistory: Residual per PCG iteration (optional)
- StencilArrays: Preallocated coefficient and work vectors
"""

from dataclasses import dataclass, asdict, field
from typing import List

import numpy as np
import pandas as pd


# ========================================================
# Parameters (Input Configuration)
# ========================================================


@dataclass
class PCGParameters:
    """Matrix-free PCG parameters.

    ``height``/``width`` are the full grid dimensions; the linear system
    lives on the interior ``(height-2) x (width-2)``.
    """

    height: int = 64
    width: int = 64
    max_iterations: int = 500
    tolerance: float = 1e-6
    preconditioner: str = "diagonal"
    warm_start: bool = False
    record_history: bool = False

    def to_dataframe(self):
        return pd.DataFrame([asdict(self)])

    def to_mlflow(self):
        return {k: str(v) for k, v in asdict(self).items()}


# ========================================================
# Metrics (Output Results)
# ========================================================


@dataclass
class PCGMetrics:
    """Outcome of one ``MFPCG.solve`` call.

    ``converged`` is False when the iteration cap was hit or the search
    direction degenerated (``breakdown``); ``p`` then holds the best-effort
    iterate.
    """

    iterations: int = 0
    converged: bool = False
    breakdown: bool = False
    final_residual: float = float("inf")
    true_residual: float = float("inf")
    wall_time_seconds: float = 0.0

    def to_dataframe(self):
        return pd.DataFrame([asdict(self)])

    def to_mlflow(self):
        return {k: float(v) for k, v in asdict(self).items()}


# ========================================================
# Time Series (Convergence History)
# ========================================================


@dataclass
class ResidualHistory:
    """Max-norm residual after each PCG iteration."""

    residual: List[float] = field(default_factory=list)

    def append(self, value: float):
        self.residual.append(float(value))

    def clear(self):
        self.residual.clear()

    def to_dataframe(self) -> pd.DataFrame:
        """One row per iteration (1-based)."""
        return pd.DataFrame(
            {"iteration": np.arange(1, len(self.residual) + 1), "residual": self.residual}
        )


# ========================================================
# Solver State
# ========================================================


@dataclass
class StencilArrays:
    """Stencil coefficients, right-hand side, solution and work vectors.

    All vectors are flat with length ``n * m`` and row-major interior
    indexing ``idx(i, j) = i * m + j``.
    """

    # System definition (refreshed by the caller every step)
    adiag: np.ndarray
    aplusi: np.ndarray
    aplusj: np.ndarray
    b: np.ndarray

    # Solution accumulator
    p: np.ndarray

    # Work buffers
    r: np.ndarray
    z: np.ndarray
    s: np.ndarray

    @classmethod
    def allocate(cls, size: int):
        """Allocate all arrays with proper sizes."""
        return cls(
            adiag=np.zeros(size),
            aplusi=np.zeros(size),
            aplusj=np.zeros(size),
            b=np.zeros(size),
            p=np.zeros(size),
            r=np.zeros(size),
            z=np.zeros(size),
            s=np.zeros(size),
        )
