"""
dokcsr - Sparse Matrix with a Lazy Compressed-Row View

A small reusable sparse matrix for numeric pipelines:
- Dictionary-of-keys storage for cheap random inserts and removals
- CSR snapshot rebuilt on demand for ordered row traversal
- Transpose (copying or in place), element-wise addition
- Boxed text rendering

Architecture:
    ┌──────────────────────────────────────────────┐
    │        SparseMatrix (authoritative DOK)      │
    ├──────────────────────────────────────────────┤
    │  CompressedRows: indptr | indices | data     │
    │  fresh flag: cleared on every mutation       │
    └──────────────────────────────────────────────┘

Example:
    >>> from dokcsr import SparseMatrix
    >>>
    >>> mat = SparseMatrix.empty_with_shape(3, 3)
    >>> mat.insert_triplets([(0, 0, 10.0), (0, 1, 20.0), (2, 2, 50.0)])
    >>> mat.peek_at(0, 1)
    20.0
    >>>
    >>> # Pay the conversion cost once, after all inserts
    >>> mat.rebuild_compressed()
    >>> print(mat)
"""

import logging

__version__ = '0.1.0'

from ._base import (
    SparseBase,
    CSRBase,
    SparseFormat,
)
from ._compressed import CompressedRows
from ._matrix import SparseMatrix, RowIterator
from ._config import (
    DisplayConfig,
    ValidationConfig,
    DokcsrConfig,
    config,
    get_config,
    set_display,
)
from .error import (
    SparseError,
    IndexOutOfBoundsError,
    RowOutOfBoundsError,
    ColOutOfBoundsError,
    ShapeMismatchError,
    InvalidValueError,
    StaleCacheError,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Version
    '__version__',

    # ---- Matrices ----
    'SparseMatrix',
    'RowIterator',
    'CompressedRows',

    # ---- Base Classes ----
    'SparseBase',
    'CSRBase',
    'SparseFormat',

    # ---- Configuration ----
    'DisplayConfig',
    'ValidationConfig',
    'DokcsrConfig',
    'config',
    'get_config',
    'set_display',

    # ---- Errors ----
    'SparseError',
    'IndexOutOfBoundsError',
    'RowOutOfBoundsError',
    'ColOutOfBoundsError',
    'ShapeMismatchError',
    'InvalidValueError',
    'StaleCacheError',
]
