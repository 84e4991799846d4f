"""Fatal precondition checks shared by the grid and solver layers.

A failed check means the caller handed in inconsistent data (mismatched
shapes, out-of-range coordinates, corrupted values). These are never
recovered from inside the numeric core.
"""


class PreconditionError(ValueError):
    """Raised when a caller violates an operator's input contract."""


def require(condition, message: str):
    """Raise PreconditionError with ``message`` unless ``condition`` holds."""
    if not condition:
        raise PreconditionError(message)
