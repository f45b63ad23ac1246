"""
Dictionary-of-Keys Sparse Matrix with a Lazy CSR View

SparseMatrix keeps two representations of the same matrix:

    ┌──────────────────────────────────────────────┐
    │  entries: {(row, col): value}   (authoritative, mutable)
    ├──────────────────────────────────────────────┤
    │  CompressedRows snapshot        (derived cache, read-only)
    │  fresh flag                     (False after any mutation)
    └──────────────────────────────────────────────┘

Mutations (insert, insert_triplets, clear_at, transpose_inplace) only touch
the dictionary and clear the fresh flag. The snapshot is recomputed when the
caller asks for it with rebuild_compressed(), so a long run of inserts pays
the O(E log E) conversion once.

Row iteration and text rendering read the cached snapshot as it is. A stale
snapshot still has a valid layout for the current shape and yields the rows
as of the last rebuild; a missing snapshot, or one built for a different
shape, raises StaleCacheError.

Stored zeros:
    Inserting 0.0 stores an entry like any other value, and an addition whose
    sum is exactly 0.0 keeps the entry. Both count towards nnz. Only
    clear_at() removes entries.

Example:
    >>> mat = SparseMatrix.empty_with_shape(2, 3)
    >>> mat.insert_triplets([(0, 0, 1.0), (1, 2, 5.0)])
    >>> mat.rebuild_compressed().indptr.tolist()
    [0, 1, 2]
    >>> [row.tolist() for row in mat.row_iter()]
    [[1.0, 0.0, 0.0], [0.0, 0.0, 5.0]]
"""

import logging
import math
import operator
from typing import Dict, Iterable, Iterator, List, Optional, Tuple, Union, TYPE_CHECKING

import numpy as np

from ._base import SparseBase, SparseFormat, VALUE_DTYPE, _check_axis
from ._compressed import CompressedRows
from ._config import config
from .error import (
    RowOutOfBoundsError,
    ColOutOfBoundsError,
    ShapeMismatchError,
    InvalidValueError,
    StaleCacheError,
)

if TYPE_CHECKING:
    from scipy.sparse import csr_matrix

__all__ = ['SparseMatrix', 'RowIterator']

logger = logging.getLogger("dokcsr.matrix")

Triplet = Tuple[int, int, float]


def _as_index(value, name: str) -> int:
    """Coerce an integer-like index, rejecting floats and bools."""
    if isinstance(value, (bool, np.bool_)):
        raise TypeError(f"{name} must be an integer, got bool")
    try:
        return operator.index(value)
    except TypeError:
        raise TypeError(f"{name} must be an integer, got {type(value).__name__}") from None


def _as_value(value) -> float:
    if isinstance(value, (str, bytes, bytearray)):
        raise TypeError(f"value must be a real number, got {type(value).__name__}")
    try:
        value = float(value)
    except (TypeError, ValueError):
        raise TypeError(f"value must be a real number, got {type(value).__name__}") from None
    if config.check_finite and not math.isfinite(value):
        raise InvalidValueError(f"value must be finite, got {value}")
    return value


class RowIterator:
    """
    Iterator over the dense rows of a compressed snapshot.

    Each step zero-fills a float64 vector of the row width and scatters the
    row's stored (column, value) pairs into it. Rows come out in ascending
    order; every call to SparseMatrix.row_iter() makes a new iterator.
    """

    __slots__ = ('_view', '_row')

    def __init__(self, view: CompressedRows):
        self._view = view
        self._row = 0

    def __iter__(self) -> 'RowIterator':
        return self

    def __next__(self) -> np.ndarray:
        if self._row >= self._view.rows:
            raise StopIteration
        row = self._view.get_row_dense(self._row)
        self._row += 1
        return row

    def __len__(self) -> int:
        """Rows left to yield."""
        return self._view.rows - self._row


class SparseMatrix(SparseBase):
    """
    Mutable sparse matrix stored as a dictionary of keys.

    Attributes:
        shape: Matrix dimensions (rows, cols)
        nnz: Number of stored entries
        is_fresh: Whether the compressed view reflects the current entries
        compressed: The CompressedRows snapshot (only while fresh)

    Errors:
        RowOutOfBoundsError / ColOutOfBoundsError: coordinate outside shape
        ShapeMismatchError: addition of matrices with different shapes
        StaleCacheError: compressed view read before rebuild_compressed()

    Not thread-safe: callers sharing an instance must serialize access.
    """

    __slots__ = ('_shape', '_entries', '_compressed', '_fresh')

    def __init__(self, rows: int = 0, cols: int = 0):
        """Create an empty matrix of the given shape.

        Args:
            rows: Number of rows (>= 0)
            cols: Number of columns (>= 0)
        """
        rows = _as_index(rows, "rows")
        cols = _as_index(cols, "cols")
        if rows < 0 or cols < 0:
            raise ValueError(f"Invalid shape: ({rows}, {cols})")

        self._shape: Tuple[int, int] = (rows, cols)
        self._entries: Dict[Tuple[int, int], float] = {}
        self._compressed: Optional[CompressedRows] = None
        self._fresh = False

    # =========================================================================
    # Factory Methods
    # =========================================================================

    @classmethod
    def new(cls) -> 'SparseMatrix':
        """Empty (0, 0) matrix."""
        return cls(0, 0)

    @classmethod
    def empty_with_shape(cls, rows: int, cols: int) -> 'SparseMatrix':
        """Empty matrix with the given shape."""
        return cls(rows, cols)

    @classmethod
    def identity(cls, n: int) -> 'SparseMatrix':
        """(n, n) matrix with 1.0 stored on every diagonal cell."""
        mat = cls(n, n)
        for i in range(mat.rows):
            mat.insert(i, i, 1.0)
        return mat

    @classmethod
    def from_triplets(cls, rows: int, cols: int, triplets: Iterable[Triplet]) -> 'SparseMatrix':
        """Matrix of the given shape filled from (row, col, value) triplets."""
        mat = cls(rows, cols)
        mat.insert_triplets(triplets)
        return mat

    # =========================================================================
    # Properties (SparseBase)
    # =========================================================================

    @property
    def shape(self) -> Tuple[int, int]:
        return self._shape

    @property
    def nnz(self) -> int:
        return len(self._entries)

    @property
    def format(self) -> str:
        return SparseFormat.DOK

    def num_nonzero(self) -> int:
        """Number of stored entries, explicit zeros included."""
        return len(self._entries)

    # =========================================================================
    # Bounds Checking
    # =========================================================================

    def _check_bounds(self, row, col) -> Tuple[int, int]:
        row = _as_index(row, "row")
        col = _as_index(col, "col")
        if not 0 <= row < self._shape[0]:
            raise RowOutOfBoundsError(row, self._shape[0])
        if not 0 <= col < self._shape[1]:
            raise ColOutOfBoundsError(col, self._shape[1])
        return row, col

    def _invalidate(self) -> None:
        self._fresh = False

    # =========================================================================
    # Authoritative Store
    # =========================================================================

    def insert(self, row: int, col: int, value: float) -> None:
        """Store value at (row, col), overwriting any previous entry.

        Raises:
            RowOutOfBoundsError, ColOutOfBoundsError: coordinate outside shape
            InvalidValueError: value is NaN or infinite (when checked)
        """
        key = self._check_bounds(row, col)
        value = _as_value(value)
        self._entries[key] = value
        self._invalidate()

    def insert_triplets(self, triplets: Iterable[Triplet]) -> None:
        """Store a batch of (row, col, value) triplets.

        The batch is all-or-nothing: every triplet is validated before any is
        stored, so an invalid one leaves the matrix unchanged. Later triplets
        overwrite earlier ones at the same coordinate.
        """
        staged: List[Tuple[Tuple[int, int], float]] = []
        for position, triplet in enumerate(triplets):
            try:
                row, col, value = triplet
            except (TypeError, ValueError):
                raise TypeError(
                    f"triplet {position} must be (row, col, value), got {triplet!r}"
                ) from None
            staged.append((self._check_bounds(row, col), _as_value(value)))

        self._entries.update(staged)
        self._invalidate()
        logger.debug("Inserted %d triplets into %s matrix (nnz=%d)",
                     len(staged), self._shape, len(self._entries))

    def clear_at(self, row: int, col: int) -> Optional[float]:
        """Remove the entry at (row, col).

        Returns:
            The removed value, or None if nothing was stored there
        """
        key = self._check_bounds(row, col)
        self._invalidate()
        return self._entries.pop(key, None)

    def peek_at(self, row: int, col: int) -> Optional[float]:
        """Read the entry at (row, col) without mutating anything.

        Returns:
            The stored value, or None if nothing is stored there
        """
        return self._entries.get(self._check_bounds(row, col))

    def items(self) -> Iterator[Tuple[Tuple[int, int], float]]:
        """Iterate over ((row, col), value) pairs in storage order."""
        return iter(self._entries.items())

    def triplets(self) -> List[Triplet]:
        """Stored entries as (row, col, value), sorted row-major."""
        return sorted((r, c, v) for (r, c), v in self._entries.items())

    def __contains__(self, key) -> bool:
        return key in self._entries

    # =========================================================================
    # Compressed View
    # =========================================================================

    @property
    def is_fresh(self) -> bool:
        """Whether the compressed view matches the current entries."""
        return self._fresh

    def rebuild_compressed(self) -> CompressedRows:
        """Recompute the CSR snapshot from the entries and mark it fresh.

        Returns:
            The new snapshot
        """
        self._compressed = CompressedRows.from_entries(self._entries, self._shape)
        self._fresh = True
        logger.debug("Rebuilt compressed view for %s matrix (nnz=%d)",
                     self._shape, self._compressed.nnz)
        return self._compressed

    @property
    def compressed(self) -> CompressedRows:
        """The CSR snapshot.

        Raises:
            StaleCacheError: If entries changed since the last rebuild
        """
        if not self._fresh:
            raise StaleCacheError(
                "Compressed view is stale; call rebuild_compressed() first"
            )
        return self._compressed

    @property
    def row_offsets(self) -> np.ndarray:
        """Row pointer array of the fresh snapshot."""
        return self.compressed.indptr

    @property
    def col_array(self) -> np.ndarray:
        """Column index array of the fresh snapshot."""
        return self.compressed.indices

    @property
    def val_array(self) -> np.ndarray:
        """Value array of the fresh snapshot."""
        return self.compressed.data

    def _cached_view(self) -> CompressedRows:
        """Snapshot usable for row traversal, stale or not."""
        view = self._compressed
        if view is None:
            raise StaleCacheError(
                "Compressed view was never built; call rebuild_compressed() first"
            )
        if view.shape != self._shape:
            raise StaleCacheError(
                f"Compressed view was built for shape {view.shape}, matrix is "
                f"{self._shape}; call rebuild_compressed() first"
            )
        if not self._fresh:
            logger.debug("Reading rows through a stale compressed view")
        return view

    def row_iter(self) -> RowIterator:
        """Dense rows of the cached snapshot, one float64 vector per row.

        Call rebuild_compressed() first if the matrix changed since the last
        rebuild; otherwise the rows reflect the older entries.

        Raises:
            StaleCacheError: If no snapshot exists for the current shape
        """
        return RowIterator(self._cached_view())

    def __iter__(self) -> RowIterator:
        return self.row_iter()

    # =========================================================================
    # Transpose
    # =========================================================================

    def create_transpose(self) -> 'SparseMatrix':
        """New (cols, rows) matrix with every entry mirrored; self unchanged."""
        result = SparseMatrix(self._shape[1], self._shape[0])
        result._entries = {(c, r): v for (r, c), v in self._entries.items()}
        return result

    @property
    def T(self) -> 'SparseMatrix':
        """Transposed copy."""
        return self.create_transpose()

    def transpose_inplace(self) -> None:
        """Swap the shape and re-key every entry (r, c) -> (c, r)."""
        self._shape = (self._shape[1], self._shape[0])
        self._entries = {(c, r): v for (r, c), v in self._entries.items()}
        self._invalidate()
        logger.debug("Transposed in place to %s (nnz=%d)", self._shape, len(self._entries))

    # =========================================================================
    # Arithmetic
    # =========================================================================

    def __add__(self, other: 'SparseMatrix') -> 'SparseMatrix':
        """Element-wise sum; absent cells count as 0.0.

        Raises:
            ShapeMismatchError: If the shapes differ
        """
        if not isinstance(other, SparseMatrix):
            return NotImplemented
        if self._shape != other._shape:
            raise ShapeMismatchError(self._shape, other._shape, op="addition")

        result = self.copy()
        entries = result._entries
        for key, value in other._entries.items():
            entries[key] = entries.get(key, 0.0) + value
        result._invalidate()
        return result

    def __eq__(self, other) -> bool:
        if not isinstance(other, SparseMatrix):
            return NotImplemented
        return self._shape == other._shape and self._entries == other._entries

    __hash__ = None

    # =========================================================================
    # Statistics
    # =========================================================================

    def sum(self, axis: Optional[int] = None) -> Union[float, np.ndarray]:
        """Compute sum along axis from the entries."""
        if axis is None:
            return math.fsum(self._entries.values())
        _check_axis(axis)
        out = np.zeros(self._shape[1 - axis], dtype=VALUE_DTYPE)
        pos = 1 - axis
        for key, value in self._entries.items():
            out[key[pos]] += value
        return out

    # =========================================================================
    # Conversion
    # =========================================================================

    def to_dense(self) -> np.ndarray:
        """Dense numpy copy of the entries."""
        out = np.zeros(self._shape, dtype=VALUE_DTYPE)
        for key, value in self._entries.items():
            out[key] = value
        return out

    def to_scipy(self) -> 'csr_matrix':
        """Convert the entries to a scipy CSR matrix (no rebuild needed)."""
        return CompressedRows.from_entries(self._entries, self._shape).to_scipy()

    def copy(self) -> 'SparseMatrix':
        """Deep copy. The immutable snapshot and freshness carry over."""
        result = SparseMatrix(*self._shape)
        result._entries = dict(self._entries)
        result._compressed = self._compressed
        result._fresh = self._fresh
        return result

    # =========================================================================
    # Display
    # =========================================================================

    def to_string(self) -> str:
        """Boxed rendering of the cached rows.

        Every value is right-aligned in a fixed-width field with fixed
        precision (DisplayConfig, 6 and 2 by default). Reads the snapshot the
        same way row_iter() does.
        """
        display = config.display
        pad = " " * (display.cell_width * self._shape[1])
        fmt = f">{display.width}.{display.precision}f"

        lines = [f"{display.indent}/{pad}\\"]
        for row in self.row_iter():
            cells = ", ".join(format(float(v), fmt) for v in row)
            lines.append(f"{display.indent}| {cells} |")
        lines.append(f"{display.indent}\\{pad}/")
        return "\n".join(lines) + "\n"

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        return (f"SparseMatrix(shape={self._shape}, nnz={len(self._entries)}, "
                f"fresh={self._fresh})")
