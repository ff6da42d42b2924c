from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Iterator


def setup_logging(level: int | str = "INFO") -> None:
    """Configure stdlib logging with a consistent, project-wide format."""
    root_logger = logging.getLogger()
    if root_logger.handlers:
        # Avoid duplicate handlers if called multiple times (e.g., tests + CLI).
        root_logger.setLevel(level)
        return

    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


@contextmanager
def log_stage(logger: logging.Logger, name: str) -> Iterator[None]:
    """Log the start and wall-clock duration of a pipeline stage."""
    logger.info("%s ...", name)
    t0 = time.perf_counter()
    yield
    logger.info("%s finished in %.2fs", name, time.perf_counter() - t0)
