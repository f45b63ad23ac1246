"""
Error handling for dokcsr.

Bounds and shape checks raise exceptions instead of aborting, so callers can
recover from bad coordinates. Every exception carries a numeric code; the
bounds and shape errors also derive from the matching builtin exception
(IndexError, ValueError) so generic handlers keep working.

Absent entries are not errors: lookups and removals report them as None.
"""

from __future__ import annotations

from typing import Optional, Tuple


# =============================================================================
# Error Codes
# =============================================================================

DOKCSR_OK = 0

# General errors
DOKCSR_ERROR_UNKNOWN = 1
DOKCSR_ERROR_STALE_CACHE = 2

# Argument errors
DOKCSR_ERROR_SHAPE_MISMATCH = 11
DOKCSR_ERROR_INVALID_VALUE = 12
DOKCSR_ERROR_INDEX_OUT_OF_BOUNDS = 14


_ERROR_MESSAGES = {
    DOKCSR_OK: "Success",
    DOKCSR_ERROR_UNKNOWN: "Unknown error",
    DOKCSR_ERROR_STALE_CACHE: "Compressed view is stale",
    DOKCSR_ERROR_SHAPE_MISMATCH: "Shape mismatch",
    DOKCSR_ERROR_INVALID_VALUE: "Invalid value",
    DOKCSR_ERROR_INDEX_OUT_OF_BOUNDS: "Index out of bounds",
}


# =============================================================================
# Exception Classes
# =============================================================================

class SparseError(Exception):
    """
    Base exception for all dokcsr errors.

    Attributes:
        code: Numeric error code (one of the DOKCSR_ERROR_* constants)
        message: Human-readable description
    """

    code = DOKCSR_ERROR_UNKNOWN

    def __init__(self, message: Optional[str] = None, code: Optional[int] = None):
        if code is not None:
            self.code = code
        if message is None:
            message = _ERROR_MESSAGES.get(self.code, f"Unknown error (code={self.code})")
        self.message = message
        super().__init__(message)


class IndexOutOfBoundsError(SparseError, IndexError):
    """A coordinate fell outside the matrix shape."""

    code = DOKCSR_ERROR_INDEX_OUT_OF_BOUNDS

    def __init__(self, index: int, bound: int, axis: str = "index"):
        self.index = index
        self.bound = bound
        super().__init__(f"{axis} {index} out of bounds [0, {bound})")


class RowOutOfBoundsError(IndexOutOfBoundsError):
    """Row index outside [0, rows)."""

    def __init__(self, row: int, rows: int):
        super().__init__(row, rows, axis="Row")


class ColOutOfBoundsError(IndexOutOfBoundsError):
    """Column index outside [0, cols)."""

    def __init__(self, col: int, cols: int):
        super().__init__(col, cols, axis="Column")


class ShapeMismatchError(SparseError, ValueError):
    """Two operands of an element-wise operation have different shapes."""

    code = DOKCSR_ERROR_SHAPE_MISMATCH

    def __init__(self, left: Tuple[int, int], right: Tuple[int, int], op: str = "operation"):
        self.left = tuple(left)
        self.right = tuple(right)
        super().__init__(f"Shape mismatch for {op}: {self.left} vs {self.right}")


class InvalidValueError(SparseError, ValueError):
    """A stored value must be a finite float."""

    code = DOKCSR_ERROR_INVALID_VALUE


class StaleCacheError(SparseError, RuntimeError):
    """The compressed view was read without being rebuilt after a mutation."""

    code = DOKCSR_ERROR_STALE_CACHE


__all__ = [
    "DOKCSR_OK",
    "DOKCSR_ERROR_UNKNOWN",
    "DOKCSR_ERROR_STALE_CACHE",
    "DOKCSR_ERROR_SHAPE_MISMATCH",
    "DOKCSR_ERROR_INVALID_VALUE",
    "DOKCSR_ERROR_INDEX_OUT_OF_BOUNDS",
    "SparseError",
    "IndexOutOfBoundsError",
    "RowOutOfBoundsError",
    "ColOutOfBoundsError",
    "ShapeMismatchError",
    "InvalidValueError",
    "StaleCacheError",
]
