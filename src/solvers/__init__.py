"""Linear solvers for the implicit steps of the flow simulation.

Solver Hierarchy:
-----------------
MFPCG (matrix-free PCG on the 5-point interior stencil)
└── Preconditioner (pluggable)
    ├── DiagonalPreconditioner (multiply by diag(A), default)
    ├── JacobiPreconditioner (divide by diag(A))
    └── IdentityPreconditioner (plain CG)
"""

from .datastructures import (
    PCGParameters,
    PCGMetrics,
    ResidualHistory,
    StencilArrays,
)
from solvers.pcg.mfpcg import MFPCG
from solvers.pcg.preconditioners import (
    Preconditioner,
    DiagonalPreconditioner,
    JacobiPreconditioner,
    IdentityPreconditioner,
    create_preconditioner,
)


__all__ = [
    # Solver
    "MFPCG",
    # Data structures
    "PCGParameters",
    "PCGMetrics",
    "ResidualHistory",
    "StencilArrays",
    # Preconditioners
    "Preconditioner",
    "DiagonalPreconditioner",
    "JacobiPreconditioner",
    "IdentityPreconditioner",
    "create_preconditioner",
]
