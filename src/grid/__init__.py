"""Grid math: finite differences, interpolation and constraint masks."""

from .constraints import ConstraintMask, apply_constraint_mask
from .helpers import clip, discrete_l2_norm, grid_norm, norm_inf
from .interpolation import clamp_position, sample, sample_many, wrap_index
from .operators import Axis, DiffType, difference, skew_symmetric_advection

__all__ = [
    # Operators
    "Axis",
    "DiffType",
    "difference",
    "skew_symmetric_advection",
    # Interpolation
    "sample",
    "sample_many",
    "clamp_position",
    "wrap_index",
    # Constraints
    "ConstraintMask",
    "apply_constraint_mask",
    # Helpers
    "clip",
    "grid_norm",
    "norm_inf",
    "discrete_l2_norm",
]
