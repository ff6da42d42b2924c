"""Pydantic schemas for the rating prediction API."""

from __future__ import annotations

from pydantic import BaseModel, Field


class PredictRequest(BaseModel):
    """Request for a single (user, item) rating prediction."""

    userId: int = Field(..., ge=0, description="User id from the training file")
    itemId: int = Field(..., ge=0, description="Item id to predict")


class PredictResponse(BaseModel):
    userId: int
    itemId: int
    score: float
    baseline: float
    neighbors_used: int
    source: str = Field(..., description="neighbors | attributes | baseline")


class SimilarUsersRequest(BaseModel):
    """Request for the most similar users by Pearson correlation."""

    userId: int = Field(..., ge=0, description="User id from the training file")
    top_n: int = Field(10, ge=1, le=1000, description="Number of similar users to return")


class SimilarUserItem(BaseModel):
    userId: int
    similarity: float


class SimilarUsersResponse(BaseModel):
    userId: int
    top_n: int
    results: list[SimilarUserItem]
