"""
Pytest configuration and shared fixtures for dokcsr tests.
"""

import pytest
import numpy as np
from pathlib import Path
import sys

# Add src to path for imports
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root / "src"))

from dokcsr import SparseMatrix, config


# Try to import scipy
try:
    import scipy.sparse as sp
    HAS_SCIPY = True
except ImportError:
    HAS_SCIPY = False


# The 4x6 matrix used throughout:
# [[10, 20,  0,  0,  0,  0],
#  [ 0, 30,  0, 40,  0,  0],
#  [ 0,  0, 50, 60, 70,  0],
#  [ 0,  0,  0,  0,  0, 80]]
WIDE_TRIPLETS = [
    (0, 0, 10.0),
    (0, 1, 20.0),
    (1, 1, 30.0),
    (2, 2, 50.0),
    (1, 3, 40.0),
    (2, 3, 60.0),
    (2, 4, 70.0),
    (3, 5, 80.0),
]


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture(scope="session")
def requires_scipy():
    """Skip test if scipy is not available."""
    if not HAS_SCIPY:
        pytest.skip("scipy not available")


@pytest.fixture(autouse=True)
def reset_config():
    """Every test starts from the default configuration."""
    config.reset()
    yield
    config.reset()


@pytest.fixture
def wide_matrix():
    """4x6 matrix with 8 stored entries, cache not built."""
    mat = SparseMatrix.empty_with_shape(4, 6)
    mat.insert_triplets(WIDE_TRIPLETS)
    return mat


@pytest.fixture
def square_matrix():
    """3x3 matrix with 4 stored entries.

    Matrix:
    [[10, 20,  0],
     [ 0, 30,  0],
     [ 0,  0, 50]]
    """
    mat = SparseMatrix.empty_with_shape(3, 3)
    mat.insert_triplets([(0, 0, 10.0), (0, 1, 20.0), (1, 1, 30.0), (2, 2, 50.0)])
    return mat


@pytest.fixture
def random_matrix():
    """Random 20x30 matrix with roughly 10% of cells stored."""
    rng = np.random.default_rng(42)
    rows, cols = 20, 30
    mat = SparseMatrix.empty_with_shape(rows, cols)
    mask = rng.random((rows, cols)) < 0.1
    for r, c in zip(*np.nonzero(mask)):
        mat.insert(int(r), int(c), float(rng.normal()))
    return mat


# =============================================================================
# Helper Functions
# =============================================================================

def assert_array_equal(a1, a2, rtol=1e-12, atol=1e-12):
    """Assert two arrays are approximately equal."""
    np.testing.assert_allclose(np.asarray(a1), np.asarray(a2), rtol=rtol, atol=atol)


def as_triplet_set(mat):
    """Order-independent set of stored (row, col, value) triplets."""
    return {(r, c, v) for (r, c), v in mat.items()}
