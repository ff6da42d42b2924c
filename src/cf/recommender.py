from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from tqdm import tqdm

from .predict import DEFAULT_FEATURES, Explanation, Feature, explain_rating, validate_features
from .similarity import Neighbor, NeighborMap, build_neighbor_map
from .sparse import SparseMatrix
from .stats import RatingStats


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NeighborhoodModel:
    """Everything prediction needs, computed once from the training ratings.

    All members are read-only after `fit`; the model is rebuilt from scratch for
    every run.
    """

    ratings: SparseMatrix
    stats: RatingStats
    neighbors: NeighborMap
    item_attr: SparseMatrix
    item_attr_rev: SparseMatrix
    k: int
    features: Feature = DEFAULT_FEATURES

    @classmethod
    def fit(
        cls,
        ratings: SparseMatrix,
        item_attr: Optional[SparseMatrix] = None,
        *,
        k: int,
        features: Feature = DEFAULT_FEATURES,
        progress: bool = False,
    ) -> "NeighborhoodModel":
        features = validate_features(features)
        stats = RatingStats.from_matrix(ratings)
        item_attr = item_attr if item_attr is not None else SparseMatrix()
        neighbors = build_neighbor_map(ratings, int(k), stats.user_avg, progress=progress)
        logger.info(
            "NeighborhoodModel fitted: users=%d ratings=%d attribute_entries=%d k=%d features=%s",
            len(ratings.row_indexes()),
            len(ratings),
            len(item_attr),
            int(k),
            features,
        )
        return cls(
            ratings=ratings,
            stats=stats,
            neighbors=neighbors,
            item_attr=item_attr,
            item_attr_rev=item_attr.transpose(),
            k=int(k),
            features=features,
        )

    def has_user(self, user_id: int) -> bool:
        return int(user_id) in self.neighbors

    def similar_users(self, user_id: int, *, top_n: int = 10) -> list[Neighbor]:
        uid = int(user_id)
        if uid not in self.neighbors:
            raise KeyError(f"Unknown userId: {uid}")
        return list(self.neighbors[uid][: int(top_n)])

    def explain(self, user_id: int, item_id: int) -> Explanation:
        return explain_rating(
            int(user_id),
            int(item_id),
            self.ratings,
            self.stats,
            self.neighbors,
            self.item_attr,
            self.item_attr_rev,
            features=self.features,
        )

    def predict_rating(self, user_id: int, item_id: int) -> float:
        return self.explain(user_id, item_id).score

    def predict_matrix(self, query: SparseMatrix, *, progress: bool = False) -> SparseMatrix:
        """Score every (row, col) key of `query`; its values are ignored."""
        entries = query.get_all()
        results = []
        for entry in tqdm(entries, desc="Predict", unit="rating", disable=not progress):
            results.append((entry.row, entry.col, self.predict_rating(entry.row, entry.col)))
        logger.info("Predicted %d ratings for %d users", len(results), len(query.row_indexes()))
        return SparseMatrix(results)


def predict(
    train: SparseMatrix,
    query: SparseMatrix,
    item_attr: Optional[SparseMatrix],
    k: int,
    flags: Feature = DEFAULT_FEATURES,
    *,
    progress: bool = False,
) -> SparseMatrix:
    """Fit on `train` and predict every key of `query`."""
    model = NeighborhoodModel.fit(train, item_attr, k=k, features=flags, progress=progress)
    return model.predict_matrix(query, progress=progress)
