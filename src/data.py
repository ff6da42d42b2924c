from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterator, List, Tuple

import pandas as pd

from .cf.sparse import SparseMatrix


logger = logging.getLogger(__name__)

ABSENT_ATTRIBUTE = "None"

_ATTR_LINE_RE = re.compile(r"^\s*(\d+)\s*[|:]\s*(.*?)\s*$")


def _open_lines(path: Path) -> Iterator[Tuple[int, str]]:
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Cannot open file {path}")
    with path.open("r", encoding="utf-8") as f:
        for lineno, line in enumerate(f, start=1):
            yield lineno, line.strip()


def _read_dataset(path: Path, *, has_score: bool) -> SparseMatrix:
    """Parse per-user blocks: `user_id|item_count` then one line per item.

    Item lines are `item_id value` for training data and `item_id` for queries,
    whose value is stored as 0.
    """
    path = Path(path)
    entries: List[Tuple[int, int, float]] = []
    lines = (item for item in _open_lines(path) if item[1])

    for lineno, header in lines:
        user_str, sep, count_str = header.partition("|")
        try:
            user_id = int(user_str)
            item_count = int(count_str)
        except ValueError:
            raise ValueError(f"{path.name}:{lineno}: expected 'user_id|item_count', got {header!r}") from None
        if not sep or item_count < 0:
            raise ValueError(f"{path.name}:{lineno}: expected 'user_id|item_count', got {header!r}")

        for _ in range(item_count):
            try:
                lineno, line = next(lines)
            except StopIteration:
                raise ValueError(
                    f"{path.name}: user {user_id} declares {item_count} items but the file ended"
                ) from None
            parts = line.split()
            try:
                item_id = int(parts[0])
                score = float(parts[1]) if has_score else 0.0
            except (IndexError, ValueError):
                raise ValueError(f"{path.name}:{lineno}: malformed item line {line!r}") from None
            entries.append((user_id, item_id, score))

    mat = SparseMatrix(entries)
    logger.info("Loaded %s: users=%d entries=%d", path.name, len(mat.row_indexes()), len(mat))
    return mat


def read_train_dataset(path: Path) -> SparseMatrix:
    return _read_dataset(path, has_score=True)


def read_test_dataset(path: Path) -> SparseMatrix:
    return _read_dataset(path, has_score=False)


def read_item_attribute(path: Path) -> SparseMatrix:
    """Parse `item_id|attr1|attr2` lines into (item, attribute, 1) entries.

    Either attribute may be the literal `None`; `:` is also accepted after the item id.
    """
    path = Path(path)
    entries: List[Tuple[int, int, int]] = []
    for lineno, line in _open_lines(path):
        if not line:
            continue
        m = _ATTR_LINE_RE.match(line)
        if m is None or "|" not in m.group(2):
            raise ValueError(f"{path.name}:{lineno}: item attribute format error: {line!r}")
        item_id = int(m.group(1))
        attr1, _, attr2 = m.group(2).partition("|")
        for raw in (attr1.strip(), attr2.strip()):
            if raw == ABSENT_ATTRIBUTE:
                continue
            try:
                entries.append((item_id, int(raw), 1))
            except ValueError:
                raise ValueError(f"{path.name}:{lineno}: invalid attribute id {raw!r}") from None

    mat = SparseMatrix(entries)
    logger.info("Loaded %s: items=%d attribute_entries=%d", path.name, len(mat.row_indexes()), len(mat))
    return mat


def _format_value(val: float) -> str:
    return f"{val:g}"


def write_dataset(path: Path, mat: SparseMatrix) -> None:
    """Write `mat` in the per-user block format, rows and columns ascending."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        for row_id in mat.row_indexes():
            row = mat.get_row(row_id)
            f.write(f"{row_id}|{len(row)}\n")
            for entry in row:
                f.write(f"{entry.col}  {_format_value(entry.val)}\n")
    logger.info("Wrote %d entries to %s", len(mat), path)


def write_dataset_in_order(reference: Path, path: Path, mat: SparseMatrix) -> None:
    """Write `mat` following the user/item order of the query file `reference`.

    Every (user, item) of the reference must be present in `mat`.
    """
    path = Path(path)
    order = _read_block_order(Path(reference))
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        for user_id, item_ids in order:
            f.write(f"{user_id}|{len(item_ids)}\n")
            for item_id in item_ids:
                if (user_id, item_id) not in mat:
                    raise ValueError(f"No prediction for user={user_id} item={item_id}")
                f.write(f"{item_id}  {_format_value(mat.get(user_id, item_id))}\n")
    logger.info("Wrote %d entries to %s in the order of %s", len(mat), path, Path(reference).name)


def _read_block_order(path: Path) -> List[Tuple[int, List[int]]]:
    # Validates the format; the re-read below keeps file order, which the matrix sorts away.
    read_test_dataset(path)
    blocks: List[Tuple[int, List[int]]] = []
    lines = (item for item in _open_lines(path) if item[1])
    for _, header in lines:
        user_str, _, count_str = header.partition("|")
        user_id = int(user_str)
        items = [int(next(lines)[1].split()[0]) for _ in range(int(count_str))]
        blocks.append((user_id, items))
    return blocks


def matrix_to_frame(mat: SparseMatrix) -> pd.DataFrame:
    """Tabular view of a matrix with columns row, col, value."""
    return pd.DataFrame(list(mat.get_all()), columns=["row", "col", "value"])
