"""
Compressed Row Snapshot

The CSR half of a dokcsr matrix: three contiguous numpy arrays derived from
the dictionary store and rebuilt wholesale, never patched in place.

Memory Layout:
    - data[nnz]: Stored values (float64)
    - indices[nnz]: Column index of each value (int64)
    - indptr[rows+1]: Cumulative offsets; row i owns data[indptr[i]:indptr[i+1]]

Within a row, column indices are strictly ascending.

The arrays are marked read-only. The only way to obtain new ones is
CompressedRows.from_entries(), which SparseMatrix.rebuild_compressed() calls.

Example:
    >>> rows = CompressedRows.from_entries({(0, 1): 2.0, (1, 0): 3.0}, (2, 2))
    >>> rows.indptr.tolist()
    [0, 1, 2]
    >>> rows.get_row(1)
    (array([3.]), array([0]))
"""

from typing import Dict, Tuple, Optional, Union, TYPE_CHECKING
import numpy as np

from ._base import CSRBase, VALUE_DTYPE, INDEX_DTYPE, _check_axis

if TYPE_CHECKING:
    from scipy.sparse import csr_matrix

__all__ = ['CompressedRows']


def _frozen(arr: np.ndarray) -> np.ndarray:
    arr.flags.writeable = False
    return arr


class CompressedRows(CSRBase):
    """
    Immutable CSR snapshot of a sparse matrix.

    Attributes:
        data: Stored values array (nnz elements)
        indices: Column indices array (nnz elements)
        indptr: Row pointer array (rows + 1 elements)
        shape: Matrix dimensions (rows, cols)

    Aliases:
        row_offsets -> indptr, col_array -> indices, val_array -> data
    """

    __slots__ = ('_data', '_indices', '_indptr', '_shape')

    def __init__(
        self,
        data: np.ndarray,
        indices: np.ndarray,
        indptr: np.ndarray,
        shape: Tuple[int, int],
    ):
        """Initialize from arrays. The arrays are copied and frozen.

        Args:
            data: Stored values array
            indices: Column indices array
            indptr: Row pointer array (length = rows + 1)
            shape: Matrix dimensions (rows, cols)

        Raises:
            ValueError: If the arrays do not describe a valid CSR layout
        """
        data = np.array(data, dtype=VALUE_DTYPE)
        indices = np.array(indices, dtype=INDEX_DTYPE)
        indptr = np.array(indptr, dtype=INDEX_DTYPE)
        self._validate_arrays(data, indices, indptr, shape)

        self._data = _frozen(data)
        self._indices = _frozen(indices)
        self._indptr = _frozen(indptr)
        self._shape = (int(shape[0]), int(shape[1]))

    @staticmethod
    def _validate_arrays(
        data: np.ndarray,
        indices: np.ndarray,
        indptr: np.ndarray,
        shape: Tuple[int, int],
    ) -> None:
        rows, cols = shape
        if rows < 0 or cols < 0:
            raise ValueError(f"Invalid shape: {shape}")
        if data.ndim != 1 or indices.ndim != 1 or indptr.ndim != 1:
            raise ValueError("data, indices and indptr must be 1-D")
        if len(indptr) != rows + 1:
            raise ValueError(f"indptr size mismatch: expected {rows + 1}, got {len(indptr)}")
        if len(data) != len(indices):
            raise ValueError(f"data/indices size mismatch: {len(data)} vs {len(indices)}")
        if indptr[0] != 0 or indptr[-1] != len(data):
            raise ValueError(f"indptr must run from 0 to nnz={len(data)}")
        if np.any(np.diff(indptr) < 0):
            raise ValueError("indptr must be non-decreasing")
        if len(indices) and (indices.min() < 0 or indices.max() >= cols):
            raise ValueError(f"column indices must lie in [0, {cols})")

    # =========================================================================
    # Construction
    # =========================================================================

    @classmethod
    def from_entries(
        cls,
        entries: Dict[Tuple[int, int], float],
        shape: Tuple[int, int],
    ) -> 'CompressedRows':
        """Build the CSR arrays from a (row, col) -> value mapping.

        Entries are bucketed by row (counted into indptr), then ordered by
        column within each row. Keys are unique, so no two entries of a row
        share a column. O(E log E) in the number of entries.

        Args:
            entries: Mapping of in-bounds coordinates to values
            shape: Matrix dimensions (rows, cols)
        """
        rows, cols = shape
        nnz = len(entries)

        indptr = np.zeros(rows + 1, dtype=INDEX_DTYPE)
        if nnz == 0:
            return cls(np.empty(0, VALUE_DTYPE), np.empty(0, INDEX_DTYPE), indptr, shape)

        # dict keys and values iterate in the same order
        coords = np.fromiter(
            (k for key in entries for k in key), dtype=INDEX_DTYPE, count=2 * nnz
        ).reshape(nnz, 2)
        values = np.fromiter(entries.values(), dtype=VALUE_DTYPE, count=nnz)

        row_ids = coords[:, 0]
        col_ids = coords[:, 1]

        # Row-major order: primary key row, secondary key column
        order = np.lexsort((col_ids, row_ids))

        indptr[1:] = np.cumsum(np.bincount(row_ids, minlength=rows))
        return cls(values[order], col_ids[order], indptr, shape)

    # =========================================================================
    # Properties (SparseBase)
    # =========================================================================

    @property
    def shape(self) -> Tuple[int, int]:
        return self._shape

    @property
    def nnz(self) -> int:
        return len(self._data)

    # =========================================================================
    # Array Access Properties
    # =========================================================================

    @property
    def data(self) -> np.ndarray:
        """Stored values array (read-only)."""
        return self._data

    @property
    def indices(self) -> np.ndarray:
        """Column indices array (read-only)."""
        return self._indices

    @property
    def indptr(self) -> np.ndarray:
        """Row pointer array (read-only)."""
        return self._indptr

    row_offsets = indptr
    col_array = indices
    val_array = data

    # =========================================================================
    # CSRBase Interface
    # =========================================================================

    def _row_bounds(self, i: int) -> Tuple[int, int]:
        if not 0 <= i < self.rows:
            raise IndexError(f"Row {i} out of bounds [0, {self.rows})")
        return int(self._indptr[i]), int(self._indptr[i + 1])

    def row_values(self, i: int) -> np.ndarray:
        """Get stored values for row i (view into data)."""
        start, end = self._row_bounds(i)
        return self._data[start:end]

    def row_indices(self, i: int) -> np.ndarray:
        """Get column indices for row i (view into indices)."""
        start, end = self._row_bounds(i)
        return self._indices[start:end]

    def row_length(self, i: int) -> int:
        """Get number of stored elements in row i."""
        start, end = self._row_bounds(i)
        return end - start

    @property
    def row_lengths(self) -> np.ndarray:
        """Stored elements per row."""
        return np.diff(self._indptr)

    # =========================================================================
    # Statistics
    # =========================================================================

    def sum(self, axis: Optional[int] = None) -> Union[float, np.ndarray]:
        """Compute sum along axis."""
        if axis is None:
            return float(np.sum(self._data))
        _check_axis(axis)
        if axis == 1:
            row_ids = np.repeat(np.arange(self.rows, dtype=INDEX_DTYPE), self.row_lengths)
            return np.bincount(row_ids, weights=self._data, minlength=self.rows).astype(VALUE_DTYPE)
        return np.bincount(self._indices, weights=self._data, minlength=self.cols).astype(VALUE_DTYPE)

    # =========================================================================
    # Conversion
    # =========================================================================

    def to_scipy(self) -> 'csr_matrix':
        """Convert to scipy CSR matrix (owned copies of the arrays)."""
        try:
            import scipy.sparse as sp
        except ImportError:
            raise ImportError("scipy required for to_scipy()")

        return sp.csr_matrix(
            (self._data.copy(), self._indices.copy(), self._indptr.copy()),
            shape=self._shape,
        )

    def to_dense(self) -> np.ndarray:
        """Convert to dense numpy array without going through scipy."""
        out = np.zeros(self._shape, dtype=VALUE_DTYPE)
        for i in range(self.rows):
            start, end = int(self._indptr[i]), int(self._indptr[i + 1])
            out[i, self._indices[start:end]] = self._data[start:end]
        return out

    def copy(self) -> 'CompressedRows':
        """Create deep copy."""
        return CompressedRows(self._data, self._indices, self._indptr, self._shape)
