"""Vector kernels for the matrix-free PCG iteration.

The stencil product and the axpy-style combination are numba loops over
independent cells; reductions use numpy.
"""

import numpy as np
from numba import njit, prange


@njit(parallel=True, nogil=True)
def apply_stencil(adiag, aplusi, aplusj, x, out, n, m):
    """out = A x for the implicit 5-point stencil on an n x m interior.

    The coupling to the (i-1, j) and (i, j-1) neighbours is read from the
    neighbour's own ``aplusi``/``aplusj`` entry. Cells outside the interior
    contribute nothing.
    """
    for i in prange(n):
        for j in range(m):
            t = i * m + j
            acc = adiag[t] * x[t]
            if i > 0:
                acc += aplusi[t - m] * x[t - m]
            if j > 0:
                acc += aplusj[t - 1] * x[t - 1]
            if i + 1 < n:
                acc += aplusi[t] * x[t + m]
            if j + 1 < m:
                acc += aplusj[t] * x[t + 1]
            out[t] = acc


@njit(parallel=True, nogil=True)
def combine(a, b, c, out):
    """out[k] = a[k] + c * b[k]; ``out`` may alias ``a`` or ``b``."""
    for k in prange(out.shape[0]):
        out[k] = a[k] + c * b[k]


def dot(a: np.ndarray, b: np.ndarray) -> float:
    return float(np.dot(a, b))
