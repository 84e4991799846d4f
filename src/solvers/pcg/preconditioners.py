"""Preconditioners for the matrix-free PCG solver.

Three variants:

1. Diagonal: multiplies the residual by the stencil diagonal.
   - Default, kept for parity with the stable-fluids reference results
   - Note this is M = diag(A), not an approximation of A^-1; PCG still
     converges for SPD systems with a positive diagonal but is not
     accelerated the way Jacobi is

2. Jacobi: divides by the stencil diagonal (true inverse-diagonal).

3. Identity: copies the residual, reducing PCG to plain CG.
"""

from abc import ABC, abstractmethod

import numpy as np


# =============================================================================
# Abstract Base Class
# =============================================================================


class Preconditioner(ABC):
    """Maps a residual to a preconditioned residual."""

    name = ""

    @abstractmethod
    def apply(self, residual: np.ndarray, adiag: np.ndarray, out: np.ndarray = None) -> np.ndarray:
        """Return ``M r`` written into ``out`` (allocated if None)."""
        pass

    def __repr__(self):
        return f"{type(self).__name__}()"


# =============================================================================
# Concrete Variants
# =============================================================================


class DiagonalPreconditioner(Preconditioner):
    name = "diagonal"

    def apply(self, residual, adiag, out=None):
        return np.multiply(residual, adiag, out=out)


class JacobiPreconditioner(Preconditioner):
    """Inverse-diagonal scaling; zero diagonal entries pass the residual through."""

    name = "jacobi"

    def apply(self, residual, adiag, out=None):
        if out is None:
            out = np.empty_like(residual)
        np.divide(residual, adiag, out=out, where=adiag != 0.0)
        np.copyto(out, residual, where=adiag == 0.0)
        return out


class IdentityPreconditioner(Preconditioner):
    name = "identity"

    def apply(self, residual, adiag, out=None):
        if out is None:
            return residual.copy()
        np.copyto(out, residual)
        return out


# =============================================================================
# Factory Function
# =============================================================================

_PRECONDITIONERS = {
    "diagonal": DiagonalPreconditioner,
    "jacobi": JacobiPreconditioner,
    "identity": IdentityPreconditioner,
    "none": IdentityPreconditioner,
}


def create_preconditioner(method="diagonal") -> Preconditioner:
    """Create a preconditioner from a name, or pass an instance through.

    Parameters
    ----------
    method : str or Preconditioner
        "diagonal", "jacobi", "identity" (alias "none"), or an instance.

    Returns
    -------
    Preconditioner
    """
    if isinstance(method, Preconditioner):
        return method

    method_lower = str(method).lower()
    if method_lower not in _PRECONDITIONERS:
        raise ValueError(
            f"Unknown preconditioner: {method}. "
            f"Use 'diagonal', 'jacobi', or 'identity'."
        )
    return _PRECONDITIONERS[method_lower]()
