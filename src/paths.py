from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class ProjectPaths:
    data_dir: Path
    train_path: Path
    test_path: Path
    attribute_path: Path
    result_path: Path

    @classmethod
    def from_root(
        cls,
        root: Path,
        *,
        data_dir: Path | str = "data",
        train_file: Path | str = "train.txt",
        test_file: Path | str = "test.txt",
        attribute_file: Path | str = "itemAttribute.txt",
        result_file: Path | str = "results/result.txt",
    ) -> "ProjectPaths":
        """Resolve dataset files: inputs relative to `data_dir`, the result relative to `root`."""

        def _resolve(p: Path | str, base: Path) -> Path:
            p_path = Path(p) if isinstance(p, str) else p
            if not p_path.is_absolute():
                p_path = base / p_path
            return p_path.resolve()

        data_dir_p = _resolve(data_dir, root)
        return cls(
            data_dir=data_dir_p,
            train_path=_resolve(train_file, data_dir_p),
            test_path=_resolve(test_file, data_dir_p),
            attribute_path=_resolve(attribute_file, data_dir_p),
            result_path=_resolve(result_file, root),
        )


def get_repo_root() -> Path:
    """Return repo root by searching upwards for `config.yaml` or `.git`."""
    start = Path.cwd().resolve()
    if start.is_file():
        start = start.parent

    for candidate in (start, *start.parents):
        if (candidate / "config.yaml").is_file() or (candidate / ".git").exists():
            return candidate

    # Fallback: search upwards from this file (useful if called from elsewhere).
    start = Path(__file__).resolve().parent
    for candidate in (start, *start.parents):
        if (candidate / "config.yaml").is_file() or (candidate / ".git").exists():
            return candidate

    raise FileNotFoundError("Could not locate repo root (expected `config.yaml` or `.git`).")
