"""Shared utilities (precondition checks)."""

from .checks import PreconditionError, require

__all__ = ["PreconditionError", "require"]
