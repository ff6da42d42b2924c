"""Rating prediction: bias-corrected neighbor aggregation with attribute fallback.

A query (user, item) is first scored from the user's top-K neighbors that rated
the item. When fewer than two neighbors contribute (or their similarities sum to
~0), the items sharing an attribute with the target are averaged instead; siblings
the user never rated are themselves predicted, but without a second fallback.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Mapping, Sequence

from .similarity import EPSILON, Neighbor
from .sparse import NOT_FOUND, SparseMatrix
from .stats import RatingStats


MIN_RATING = 0.0
MAX_RATING = 100.0


class Feature(enum.IntFlag):
    NONE = 0
    USE_ATTRIBUTE = 1
    USE_WEIGHT = 2


DEFAULT_FEATURES = Feature.USE_ATTRIBUTE | Feature.USE_WEIGHT


def validate_features(features: Feature) -> Feature:
    features = Feature(int(features))
    if Feature.USE_WEIGHT in features and Feature.USE_ATTRIBUTE not in features:
        raise ValueError("USE_WEIGHT requires USE_ATTRIBUTE")
    return features


@dataclass(frozen=True)
class Explanation:
    """How a single prediction was produced."""

    userId: int
    itemId: int
    score: float
    baseline: float
    neighbors_used: int
    source: str  # "neighbors" | "attributes" | "baseline" | "none"


def clamp_rating(score: float) -> float:
    return min(max(score, MIN_RATING), MAX_RATING)


def _attribute_score(
    user_id: int,
    item_id: int,
    ratings: SparseMatrix,
    stats: RatingStats,
    neighbors: Mapping[int, Sequence[Neighbor]],
    item_attr: SparseMatrix,
    item_attr_rev: SparseMatrix,
    features: Feature,
) -> float:
    """Weighted mean score over items sharing an attribute with `item_id`."""
    numerator = 0.0
    denominator = 0.0
    for attr in item_attr.get_row(item_id):
        group = item_attr_rev.get_row(attr.col)
        # the item itself is a member of its own group
        sibling_count = len(group) - 1
        if sibling_count <= 0:
            continue
        weight = 1.0 / sibling_count if Feature.USE_WEIGHT in features else 1.0

        for entry in group:
            sibling = entry.col
            if sibling == item_id:
                continue
            score = ratings.get(user_id, sibling)
            if score < 0:
                score = predict_rating(
                    user_id,
                    sibling,
                    ratings,
                    stats,
                    neighbors,
                    item_attr,
                    item_attr_rev,
                    features=features,
                    allow_attribute_fallback=False,
                )
            if score < 0:
                continue
            numerator += weight * score
            denominator += weight

    if denominator > EPSILON:
        return numerator / denominator
    return NOT_FOUND


def explain_rating(
    user_id: int,
    item_id: int,
    ratings: SparseMatrix,
    stats: RatingStats,
    neighbors: Mapping[int, Sequence[Neighbor]],
    item_attr: SparseMatrix,
    item_attr_rev: SparseMatrix,
    *,
    features: Feature = DEFAULT_FEATURES,
    allow_attribute_fallback: bool = True,
) -> Explanation:
    item_bias = stats.item_bias(item_id)
    base = stats.global_avg + stats.user_bias(user_id) + item_bias

    numerator = 0.0
    denominator = 0.0
    count = 0
    for neighbor, similarity in neighbors.get(user_id, ()):
        neighbor_score = ratings.get(neighbor, item_id)
        if neighbor_score < 0:
            continue
        count += 1
        neighbor_base = stats.global_avg + stats.user_bias(neighbor) + item_bias
        numerator += similarity * (neighbor_score - neighbor_base)
        denominator += abs(similarity)

    def _result(score: float, source: str) -> Explanation:
        return Explanation(
            userId=int(user_id),
            itemId=int(item_id),
            score=score,
            baseline=base,
            neighbors_used=count,
            source=source,
        )

    if denominator >= EPSILON and count > 1:
        return _result(clamp_rating(base + numerator / denominator), "neighbors")

    if not allow_attribute_fallback:
        return _result(NOT_FOUND, "none")

    if Feature.USE_ATTRIBUTE in features:
        score = _attribute_score(
            user_id, item_id, ratings, stats, neighbors, item_attr, item_attr_rev, features
        )
        if score >= 0:
            return _result(clamp_rating(score), "attributes")

    return _result(clamp_rating(base), "baseline")


def predict_rating(
    user_id: int,
    item_id: int,
    ratings: SparseMatrix,
    stats: RatingStats,
    neighbors: Mapping[int, Sequence[Neighbor]],
    item_attr: SparseMatrix,
    item_attr_rev: SparseMatrix,
    *,
    features: Feature = DEFAULT_FEATURES,
    allow_attribute_fallback: bool = True,
) -> float:
    """Predicted rating in [MIN_RATING, MAX_RATING], or NOT_FOUND.

    NOT_FOUND is only returned when `allow_attribute_fallback` is False and the
    neighbors alone cannot support a prediction.
    """
    return explain_rating(
        user_id,
        item_id,
        ratings,
        stats,
        neighbors,
        item_attr,
        item_attr_rev,
        features=features,
        allow_attribute_fallback=allow_attribute_fallback,
    ).score
