"""FastAPI service answering rating predictions from a model fitted at startup."""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from dataclasses import replace
from pathlib import Path

from fastapi import FastAPI, HTTPException

from ..cf.recommender import NeighborhoodModel
from ..paths import get_repo_root
from ..pipelines.cf_predict import load_model_inputs, load_run_config
from ..utils import setup_logging
from .schemas import PredictRequest, PredictResponse, SimilarUsersRequest, SimilarUsersResponse

logger = logging.getLogger(__name__)


def _get_env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or str(raw).strip() == "":
        return default
    p = Path(str(raw))
    return p if p.is_absolute() else (get_repo_root() / p).resolve()


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(os.getenv("LOG_LEVEL", "INFO"))

    config_path = _get_env_path("CONFIG_PATH", get_repo_root() / "config.yaml")
    cfg = replace(load_run_config(config_path), progress=False)
    cfg.validate()

    logger.info("Fitting model with config=%s train=%s k=%d", config_path, cfg.train_path, cfg.k)
    ratings, item_attr = load_model_inputs(cfg)
    app.state.model = NeighborhoodModel.fit(ratings, item_attr, k=cfg.k, features=cfg.features)
    yield


app = FastAPI(title="Neighborhood CF Rating Service", lifespan=lifespan)


def _model(app_: FastAPI) -> NeighborhoodModel:
    model = getattr(app_.state, "model", None)
    if model is None:
        raise HTTPException(status_code=503, detail="Model not initialized")
    return model


@app.post("/predict", response_model=PredictResponse)
def predict(req: PredictRequest) -> dict:
    """Predict a user's rating for an item, with how it was derived."""
    model = _model(app)
    return model.explain(int(req.userId), int(req.itemId)).__dict__


@app.post("/similar_users", response_model=SimilarUsersResponse)
def similar_users(req: SimilarUsersRequest) -> dict:
    """Return the user's top neighbors by Pearson correlation."""
    model = _model(app)
    try:
        sims = model.similar_users(int(req.userId), top_n=int(req.top_n))
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc

    return {
        "userId": int(req.userId),
        "top_n": int(req.top_n),
        "results": [{"userId": s.user_id, "similarity": s.similarity} for s in sims],
    }
