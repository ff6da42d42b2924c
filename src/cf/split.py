from __future__ import annotations

import logging
from typing import List, Tuple

import numpy as np

from .sparse import Entry, SparseMatrix


logger = logging.getLogger(__name__)


def make_train_test(
    mat: SparseMatrix,
    test_count: int,
    *,
    seed: int = 42,
) -> Tuple[SparseMatrix, SparseMatrix]:
    """Hold out `test_count` ratings per user.

    A single offset is drawn from `seed`; for each user the held-out ratings are
    the circular window of `test_count` positions starting at `offset % len(row)`.
    Users with `len(row) <= test_count` keep all their ratings in train.
    """
    test_count = int(test_count)
    if test_count < 0:
        raise ValueError(f"test_count must be >= 0, got {test_count}")

    rng = np.random.default_rng(int(seed))
    offset = int(rng.integers(0, np.iinfo(np.int32).max))

    train: List[Entry] = []
    test: List[Entry] = []
    skipped = 0
    for row_id in mat.row_indexes():
        row = mat.get_row(row_id)
        size = len(row)
        if size <= test_count:
            skipped += 1
            train.extend(row)
            continue

        start = offset % size
        for i, entry in enumerate(row):
            if (i - start) % size < test_count:
                test.append(entry)
            else:
                train.append(entry)

    logger.info(
        "Split: train=%d test=%d users_kept_in_train=%d test_count=%d",
        len(train),
        len(test),
        skipped,
        test_count,
    )
    return SparseMatrix(train), SparseMatrix(test)
