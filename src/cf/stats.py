from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Mapping

import numpy as np

from .sparse import SparseMatrix


logger = logging.getLogger(__name__)


def average_by_row(mat: SparseMatrix) -> Dict[int, float]:
    """Mean value of every populated row."""
    out: Dict[int, float] = {}
    for row_id in mat.row_indexes():
        row = mat.get_row(row_id)
        out[row_id] = sum(e.val for e in row) / len(row)
    return out


def global_average(mat: SparseMatrix) -> float:
    entries = mat.get_all()
    if not entries:
        raise ValueError("Cannot average an empty matrix")
    return float(np.fromiter((e.val for e in entries), dtype=np.float64, count=len(entries)).mean())


@dataclass(frozen=True)
class RatingStats:
    """Averages computed once from the training ratings and read-only afterwards.

    `user_avg` is keyed by rows of the ratings matrix, `item_avg` by rows of its
    transpose. A user or item absent from training has zero bias.
    """

    global_avg: float
    user_avg: Mapping[int, float]
    item_avg: Mapping[int, float]

    @classmethod
    def from_matrix(cls, ratings: SparseMatrix) -> "RatingStats":
        stats = cls(
            global_avg=global_average(ratings),
            user_avg=MappingProxyType(average_by_row(ratings)),
            item_avg=MappingProxyType(average_by_row(ratings.transpose())),
        )
        logger.info(
            "Rating stats: global_avg=%.4f users=%d items=%d",
            stats.global_avg,
            len(stats.user_avg),
            len(stats.item_avg),
        )
        return stats

    def user_bias(self, user_id: int) -> float:
        return self.user_avg.get(user_id, self.global_avg) - self.global_avg

    def item_bias(self, item_id: int) -> float:
        return self.item_avg.get(item_id, self.global_avg) - self.global_avg

    def baseline(self, user_id: int, item_id: int) -> float:
        """Additive bias decomposition: global + user bias + item bias."""
        return self.global_avg + self.user_bias(user_id) + self.item_bias(item_id)
