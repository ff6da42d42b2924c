from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Ensure `import src...` works when pytest uses importlib import mode.
REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT))

from src.cf.sparse import SparseMatrix  # noqa: E402


@pytest.fixture()
def two_user_ratings() -> SparseMatrix:
    """Users {1, 2} rating items {10, 20}; global average is 4.0."""
    return SparseMatrix([(1, 10, 5.0), (1, 20, 3.0), (2, 10, 4.0), (2, 20, 4.0)])


@pytest.fixture()
def three_user_ratings() -> SparseMatrix:
    """User 1 has not rated item 30; users 2 and 3 have."""
    return SparseMatrix(
        [
            (1, 10, 5.0),
            (1, 20, 3.0),
            (2, 10, 4.0),
            (2, 20, 2.0),
            (2, 30, 5.0),
            (3, 10, 5.0),
            (3, 20, 1.0),
            (3, 30, 4.0),
        ]
    )

