"""
Sparse Matrix Base Classes

Abstract interfaces shared by the two representations of a dokcsr matrix.

Type Hierarchy:

    SparseBase (ABC)
    ├── SparseMatrix        # Dictionary of keys, the mutable authoritative store
    └── CSRBase (ABC)       # Row-oriented read interface
        └── CompressedRows  # Immutable CSR snapshot (data, indices, indptr)

Both sides answer the same questions (shape, nnz, sums, scipy export), so
code that only reads a matrix does not need to know which one it holds.
"""

from abc import ABC, abstractmethod
from typing import Tuple, Optional, Union, TYPE_CHECKING, Iterator
import numpy as np

if TYPE_CHECKING:
    from scipy.sparse import spmatrix

__all__ = [
    'SparseBase',
    'CSRBase',
    'SparseFormat',
    'VALUE_DTYPE',
    'INDEX_DTYPE',
]


# All stored values are IEEE 754 binary64, all indices int64.
VALUE_DTYPE = np.float64
INDEX_DTYPE = np.int64


class SparseFormat:
    """Enumeration of sparse matrix formats."""
    DOK = 'dok'
    CSR = 'csr'


class SparseBase(ABC):
    """
    Abstract base class for all sparse matrices.

    Required Properties (subclasses must implement):
        shape: Matrix dimensions (rows, cols)
        nnz: Number of stored elements
        format: Sparse format ('dok' or 'csr')

    Required Methods (subclasses must implement):
        sum(axis): Compute sums along axis
        to_scipy(): Convert to scipy sparse matrix
        copy(): Create a deep copy
    """

    # =========================================================================
    # Abstract Properties
    # =========================================================================

    @property
    @abstractmethod
    def shape(self) -> Tuple[int, int]:
        """Matrix dimensions (rows, cols)."""
        ...

    @property
    @abstractmethod
    def nnz(self) -> int:
        """Number of stored elements (explicit zeros included)."""
        ...

    @property
    @abstractmethod
    def format(self) -> str:
        """Sparse format ('dok' or 'csr')."""
        ...

    # =========================================================================
    # Derived Properties
    # =========================================================================

    @property
    def dtype(self) -> str:
        """Data type string (always 'float64')."""
        return 'float64'

    @property
    def rows(self) -> int:
        """Number of rows."""
        return self.shape[0]

    @property
    def cols(self) -> int:
        """Number of columns."""
        return self.shape[1]

    @property
    def ndim(self) -> int:
        """Number of dimensions (always 2 for sparse matrices)."""
        return 2

    @property
    def size(self) -> int:
        """Total number of elements (rows * cols)."""
        return self.shape[0] * self.shape[1]

    @property
    def density(self) -> float:
        """Fraction of stored elements."""
        total = self.size
        return self.nnz / total if total > 0 else 0.0

    # =========================================================================
    # Abstract Methods
    # =========================================================================

    @abstractmethod
    def sum(self, axis: Optional[int] = None) -> Union[float, np.ndarray]:
        """Compute sum along axis.

        Args:
            axis: None for total sum, 0 for column sums, 1 for row sums

        Returns:
            Scalar (axis=None) or 1D array (axis=0 or 1)
        """
        ...

    @abstractmethod
    def to_scipy(self) -> 'spmatrix':
        """Convert to a scipy sparse matrix."""
        ...

    @abstractmethod
    def copy(self) -> 'SparseBase':
        """Create a deep copy of this matrix."""
        ...

    # =========================================================================
    # Shared Implementations
    # =========================================================================

    def mean(self, axis: Optional[int] = None) -> Union[float, np.ndarray]:
        """Compute mean along axis, counting implicit zeros."""
        if axis is None:
            return self.sum() / self.size if self.size else 0.0
        _check_axis(axis)
        n = self.shape[axis]
        sums = self.sum(axis=axis)
        return sums / n if n else np.zeros_like(sums)

    def to_dense(self) -> np.ndarray:
        """Convert to dense numpy array.

        Default implementation converts to scipy first.
        """
        return self.to_scipy().toarray()

    # =========================================================================
    # Magic Methods
    # =========================================================================

    def __repr__(self) -> str:
        return (f"{self.__class__.__name__}("
                f"shape={self.shape}, nnz={self.nnz}, format={self.format})")

    def __len__(self) -> int:
        """Return number of rows."""
        return self.shape[0]

    def __bool__(self) -> bool:
        """Return True if matrix has any stored elements."""
        return self.nnz > 0


class CSRBase(SparseBase):
    """
    Abstract base class for CSR (Compressed Sparse Row) matrices.

    CSR format gives O(1) access to the run of stored elements of any row,
    which makes it the natural layout for row iteration and printing.

    Additional Required Methods:
        row_values(i): Get values for row i
        row_indices(i): Get column indices for row i
        row_length(i): Get number of stored elements in row i
    """

    @property
    def format(self) -> str:
        """Sparse format (always 'csr')."""
        return SparseFormat.CSR

    # =========================================================================
    # Abstract Methods - Row Access
    # =========================================================================

    @abstractmethod
    def row_values(self, i: int) -> np.ndarray:
        """Get stored values for row i."""
        ...

    @abstractmethod
    def row_indices(self, i: int) -> np.ndarray:
        """Get column indices of stored values for row i."""
        ...

    @abstractmethod
    def row_length(self, i: int) -> int:
        """Get number of stored elements in row i."""
        ...

    # =========================================================================
    # Convenience Methods
    # =========================================================================

    def get_row(self, i: int) -> Tuple[np.ndarray, np.ndarray]:
        """Get both values and indices for row i.

        Returns:
            Tuple of (values, indices) arrays
        """
        return self.row_values(i), self.row_indices(i)

    def get_row_dense(self, i: int) -> np.ndarray:
        """Get row i as a dense vector of length cols."""
        out = np.zeros(self.cols, dtype=VALUE_DTYPE)
        out[self.row_indices(i)] = self.row_values(i)
        return out

    def iter_rows(self) -> Iterator[Tuple[np.ndarray, np.ndarray]]:
        """Iterate over rows, yielding (values, indices) tuples."""
        for i in range(self.rows):
            yield self.row_values(i), self.row_indices(i)


def _check_axis(axis: int) -> None:
    if axis not in (0, 1):
        raise ValueError(f"axis must be None, 0 or 1, got {axis}")
