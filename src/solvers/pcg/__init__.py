"""Matrix-free preconditioned conjugate gradient solver package."""

from .assembly import assemble_diffusion, assemble_pressure, scatter_solution
from .mfpcg import MFPCG, load_array_from_grid
from .preconditioners import (
    DiagonalPreconditioner,
    IdentityPreconditioner,
    JacobiPreconditioner,
    Preconditioner,
    create_preconditioner,
)

__all__ = [
    "MFPCG",
    "load_array_from_grid",
    "Preconditioner",
    "DiagonalPreconditioner",
    "JacobiPreconditioner",
    "IdentityPreconditioner",
    "create_preconditioner",
    "assemble_diffusion",
    "assemble_pressure",
    "scatter_solution",
]
