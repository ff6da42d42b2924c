"""Batch rating prediction: load -> (split) -> fit -> predict -> (RMSE) -> write.

Usage (from project root):
    python -m src.pipelines.cf_predict --offline --k 500 --use-attribute --use-weight
"""

from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Optional

import yaml

from ..cf.evaluate import rmse
from ..cf.predict import Feature
from ..cf.recommender import NeighborhoodModel
from ..cf.sparse import SparseMatrix
from ..cf.split import make_train_test
from ..data import (
    read_item_attribute,
    read_test_dataset,
    read_train_dataset,
    write_dataset,
    write_dataset_in_order,
)
from ..paths import ProjectPaths, get_repo_root
from ..utils import log_stage, setup_logging


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CFRunConfig:
    train_path: Path
    test_path: Path
    attribute_path: Path
    result_path: Path
    k: int = 5000
    use_attribute: bool = True
    use_weight: bool = True
    offline: bool = False
    test_count: int = 3
    seed: int = 42
    progress: bool = True

    @property
    def features(self) -> Feature:
        flags = Feature.NONE
        if self.use_attribute:
            flags |= Feature.USE_ATTRIBUTE
        if self.use_weight:
            flags |= Feature.USE_WEIGHT
        return flags

    def validate(self) -> None:
        if self.use_weight and not self.use_attribute:
            raise ValueError("use_weight requires use_attribute")
        if self.k < 1:
            raise ValueError(f"k must be >= 1, got {self.k}")
        if self.test_count < 0:
            raise ValueError(f"test_count must be >= 0, got {self.test_count}")


@dataclass(frozen=True)
class RunSummary:
    train_entries: int
    query_entries: int
    result_path: Path
    rmse: Optional[float] = None


def load_run_config(config_path: Optional[Path] = None) -> CFRunConfig:
    """Read `config.yaml`; relative paths resolve against the config's directory.

    Without an explicit path, `config.yaml` at the repo root is used if present,
    otherwise built-in defaults relative to the current directory.
    """
    if config_path is None:
        try:
            candidate = get_repo_root() / "config.yaml"
        except FileNotFoundError:
            candidate = None
        if candidate is None or not candidate.is_file():
            return _config_from_mapping({}, Path.cwd().resolve())
        config_path = candidate

    config_path = Path(config_path).resolve()
    if not config_path.is_file():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    cfg_yaml = yaml.safe_load(config_path.read_text()) or {}
    if not isinstance(cfg_yaml, dict):
        raise ValueError("config.yaml must be a mapping")
    return _config_from_mapping(cfg_yaml, config_path.parent)


def _config_from_mapping(cfg_yaml: dict[str, Any], root: Path) -> CFRunConfig:
    dataset_cfg = cfg_yaml.get("dataset", {}) if isinstance(cfg_yaml.get("dataset"), dict) else {}
    cf_cfg = cfg_yaml.get("cf", {}) if isinstance(cfg_yaml.get("cf"), dict) else {}

    paths = ProjectPaths.from_root(
        root,
        data_dir=str(dataset_cfg.get("data_dir", "data")),
        train_file=str(dataset_cfg.get("train_file", "train.txt")),
        test_file=str(dataset_cfg.get("test_file", "test.txt")),
        attribute_file=str(dataset_cfg.get("attribute_file", "itemAttribute.txt")),
        result_file=str(dataset_cfg.get("result_file", "results/result.txt")),
    )
    use_attribute = bool(cf_cfg.get("use_attribute", True))
    return CFRunConfig(
        train_path=paths.train_path,
        test_path=paths.test_path,
        attribute_path=paths.attribute_path,
        result_path=paths.result_path,
        k=int(cf_cfg.get("k", 5000)),
        use_attribute=use_attribute,
        # weighting only applies to the attribute fallback
        use_weight=bool(cf_cfg.get("use_weight", use_attribute)),
        offline=bool(cf_cfg.get("offline", False)),
        test_count=int(cf_cfg.get("test_count", 3)),
        seed=int(cf_cfg.get("seed", 42)),
        progress=bool(cf_cfg.get("progress", True)),
    )


def load_model_inputs(cfg: CFRunConfig) -> tuple[SparseMatrix, SparseMatrix]:
    """Training ratings and the item-attribute matrix (empty when attributes are off)."""
    ratings = read_train_dataset(cfg.train_path)
    if cfg.use_attribute:
        item_attr = read_item_attribute(cfg.attribute_path)
    else:
        item_attr = SparseMatrix()
    return ratings, item_attr


def run_prediction(cfg: CFRunConfig) -> RunSummary:
    cfg.validate()

    with log_stage(logger, "Loading datasets"):
        ratings, item_attr = load_model_inputs(cfg)
        if cfg.offline:
            train, query = make_train_test(ratings, cfg.test_count, seed=cfg.seed)
        else:
            train, query = ratings, read_test_dataset(cfg.test_path)

    with log_stage(logger, "Fitting neighborhood model"):
        model = NeighborhoodModel.fit(
            train,
            item_attr,
            k=cfg.k,
            features=cfg.features,
            progress=cfg.progress,
        )

    with log_stage(logger, "Predicting"):
        result = model.predict_matrix(query, progress=cfg.progress)

    score: Optional[float] = None
    if cfg.offline:
        score = rmse(result, query)
        logger.info("RMSE = %.6f (held-out ratings=%d)", score, len(query))

    with log_stage(logger, "Writing result"):
        if cfg.offline:
            write_dataset(cfg.result_path, result)
        else:
            write_dataset_in_order(cfg.test_path, cfg.result_path, result)

    return RunSummary(
        train_entries=len(train),
        query_entries=len(query),
        result_path=cfg.result_path,
        rmse=score,
    )


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Predict ratings with neighborhood CF and an item-attribute fallback.")
    p.add_argument("--config", type=Path, default=None, help="Path to config YAML (default: repo config.yaml).")
    p.add_argument("--train", type=Path, default=None, help="Training ratings file")
    p.add_argument("--test", type=Path, default=None, help="Query file (ignored with --offline)")
    p.add_argument("--attribute", type=Path, default=None, help="Item attribute file")
    p.add_argument("--result", type=Path, default=None, help="Where to write predictions")
    p.add_argument(
        "--offline",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Hold out ratings from the training file and report RMSE",
    )
    p.add_argument("--test-count", type=int, default=None, help="Held-out ratings per user in offline mode")
    p.add_argument("--k", type=int, default=None, help="Number of neighbors kept per user")
    p.add_argument(
        "--use-attribute",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Fall back to items sharing an attribute",
    )
    p.add_argument(
        "--use-weight",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Weight attribute groups by 1/(group size - 1); requires --use-attribute",
    )
    p.add_argument("--seed", type=int, default=None, help="Seed for the offline split")
    p.add_argument("--no-progress", action="store_true", help="Disable progress bars")
    p.add_argument("--log-level", type=str, default="INFO", help="Logging level")
    return p


def _apply_overrides(cfg: CFRunConfig, args: argparse.Namespace) -> CFRunConfig:
    overrides: dict[str, Any] = {}
    for field, value in (
        ("train_path", args.train),
        ("test_path", args.test),
        ("attribute_path", args.attribute),
        ("result_path", args.result),
    ):
        if value is not None:
            overrides[field] = Path(value).resolve()
    for field, value in (
        ("offline", args.offline),
        ("test_count", args.test_count),
        ("k", args.k),
        ("use_attribute", args.use_attribute),
        ("use_weight", args.use_weight),
        ("seed", args.seed),
    ):
        if value is not None:
            overrides[field] = value
    if args.use_attribute is False and args.use_weight is None:
        overrides["use_weight"] = False
    if args.no_progress:
        overrides["progress"] = False
    return replace(cfg, **overrides)


def main(argv: list[str] | None = None) -> None:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    setup_logging(str(args.log_level).upper())

    try:
        cfg = _apply_overrides(load_run_config(args.config), args)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        logger.error("Invalid configuration: %s", exc)
        raise SystemExit(1) from exc

    if cfg.use_weight and not cfg.use_attribute:
        parser.error("--use-weight requires --use-attribute")

    try:
        summary = run_prediction(cfg)
    except (OSError, ValueError) as exc:
        logger.error("Prediction failed: %s", exc)
        raise SystemExit(1) from exc

    logger.info(
        "Done: train=%d query=%d result=%s rmse=%s",
        summary.train_entries,
        summary.query_entries,
        summary.result_path,
        "n/a" if summary.rmse is None else f"{summary.rmse:.6f}",
    )


if __name__ == "__main__":
    main()
