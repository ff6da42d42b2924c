"""Neighborhood collaborative filtering with an item-attribute fallback.

Core idea:
- Store ratings in an immutable row-major sparse matrix
- Score every user pair with Pearson correlation and keep each user's top-K neighbors
- Predict a rating as baseline + similarity-weighted neighbor residuals
- When neighbors are too few, average the user's scores on items sharing an attribute
"""

from .evaluate import rmse
from .predict import Feature, predict_rating
from .recommender import NeighborhoodModel, predict
from .sparse import NOT_FOUND, Entry, SparseMatrix

__all__ = [
    "Entry",
    "Feature",
    "NOT_FOUND",
    "NeighborhoodModel",
    "SparseMatrix",
    "predict",
    "predict_rating",
    "rmse",
]
