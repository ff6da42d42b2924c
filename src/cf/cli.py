"""Inspect one user: most similar users and, optionally, how a rating is predicted.

Usage (from project root):
    python -m src.cf.cli --user-id 42 --item-id 1007 --k 200
"""
from __future__ import annotations

import argparse
from dataclasses import replace
from pathlib import Path

import pandas as pd

from ..pipelines.cf_predict import load_model_inputs, load_run_config
from ..utils import setup_logging
from .recommender import NeighborhoodModel


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Explain neighborhood CF predictions for a user")
    p.add_argument("--user-id", type=int, required=True, help="User id from the training file")
    p.add_argument("--item-id", type=int, default=None, help="Item to predict for the user")
    p.add_argument("--top-similar", type=int, default=10, help="How many similar users to show")
    p.add_argument("--k", type=int, default=None, help="Neighbors kept per user (default: config)")
    p.add_argument("--config", type=Path, default=None, help="Path to config YAML")
    p.add_argument("--train", type=Path, default=None, help="Training ratings file (default: config)")
    p.add_argument("--attribute", type=Path, default=None, help="Item attribute file (default: config)")
    return p


def main(argv: list[str] | None = None) -> None:
    setup_logging("WARNING")
    args = build_arg_parser().parse_args(argv)

    cfg = load_run_config(args.config)
    overrides: dict = {"progress": False}
    if args.k is not None:
        overrides["k"] = int(args.k)
    if args.train is not None:
        overrides["train_path"] = Path(args.train).resolve()
    if args.attribute is not None:
        overrides["attribute_path"] = Path(args.attribute).resolve()
    cfg = replace(cfg, **overrides)
    cfg.validate()

    ratings, item_attr = load_model_inputs(cfg)
    model = NeighborhoodModel.fit(ratings, item_attr, k=cfg.k, features=cfg.features)

    if not model.has_user(args.user_id):
        raise SystemExit(f"Unknown userId: {args.user_id}")

    sims = model.similar_users(int(args.user_id), top_n=int(args.top_similar))
    print("\n=== Similar Users ===")
    if sims:
        df_s = pd.DataFrame([s._asdict() for s in sims])
        print(df_s.to_string(index=False))
    else:
        print("No similar users found.")

    if args.item_id is not None:
        explanation = model.explain(int(args.user_id), int(args.item_id))
        print("\n=== Prediction ===")
        print(pd.DataFrame([explanation.__dict__]).to_string(index=False))


if __name__ == "__main__":
    main()
