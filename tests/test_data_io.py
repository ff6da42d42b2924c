from __future__ import annotations

from pathlib import Path

import pytest

from src.cf.sparse import SparseMatrix
from src.data import (
    matrix_to_frame,
    read_item_attribute,
    read_test_dataset,
    read_train_dataset,
    write_dataset,
    write_dataset_in_order,
)


TRAIN_TEXT = """\
2|2
30  70
10  90
1|3
10  50
20  0
40  100
"""

TEST_TEXT = """\
2|2
40
20
1|1
30
"""


def test_read_train_dataset(tmp_path: Path) -> None:
    path = tmp_path / "train.txt"
    path.write_text(TRAIN_TEXT)

    mat = read_train_dataset(path)
    assert list(mat.row_indexes()) == [1, 2]
    assert len(mat) == 5
    assert mat.get(2, 30) == 70.0
    assert mat.get(1, 20) == 0.0
    assert [e.col for e in mat.get_row(2)] == [10, 30]


def test_read_test_dataset_stores_zero_values(tmp_path: Path) -> None:
    path = tmp_path / "test.txt"
    path.write_text(TEST_TEXT)

    mat = read_test_dataset(path)
    assert [(e.row, e.col, e.val) for e in mat.get_all()] == [(1, 30, 0.0), (2, 20, 0.0), (2, 40, 0.0)]


def test_read_dataset_truncated_block_fails(tmp_path: Path) -> None:
    path = tmp_path / "train.txt"
    path.write_text("1|3\n10  50\n")
    with pytest.raises(ValueError, match="declares 3 items"):
        read_train_dataset(path)


def test_read_dataset_bad_header_fails(tmp_path: Path) -> None:
    path = tmp_path / "train.txt"
    path.write_text("1 3\n10  50\n")
    with pytest.raises(ValueError, match="user_id\\|item_count"):
        read_train_dataset(path)


def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        read_train_dataset(tmp_path / "absent.txt")


def test_read_item_attribute(tmp_path: Path) -> None:
    path = tmp_path / "itemAttribute.txt"
    path.write_text("1|100|200\n2|None|200\n3|None|None\n\n4: 300|None\n")

    mat = read_item_attribute(path)
    assert [(e.row, e.col, e.val) for e in mat.get_all()] == [
        (1, 100, 1),
        (1, 200, 1),
        (2, 200, 1),
        (4, 300, 1),
    ]
    assert [e.col for e in mat.transpose().get_row(200)] == [1, 2]


def test_read_item_attribute_format_error(tmp_path: Path) -> None:
    path = tmp_path / "itemAttribute.txt"
    path.write_text("1|100|200\n2|None\n")
    with pytest.raises(ValueError, match="itemAttribute.txt:2"):
        read_item_attribute(path)


def test_write_dataset_block_format(tmp_path: Path) -> None:
    mat = SparseMatrix([(2, 10, 90.0), (1, 20, 12.5), (1, 10, 50.0)])
    out = tmp_path / "out" / "result.txt"

    write_dataset(out, mat)
    assert out.read_text() == "1|2\n10  50\n20  12.5\n2|1\n10  90\n"
    assert read_train_dataset(out) == mat


def test_write_dataset_in_order_follows_reference(tmp_path: Path) -> None:
    reference = tmp_path / "test.txt"
    reference.write_text(TEST_TEXT)
    result = SparseMatrix([(1, 30, 42.0), (2, 20, 7.0), (2, 40, 99.5)])
    out = tmp_path / "result.txt"

    write_dataset_in_order(reference, out, result)
    assert out.read_text() == "2|2\n40  99.5\n20  7\n1|1\n30  42\n"


def test_write_dataset_in_order_requires_every_key(tmp_path: Path) -> None:
    reference = tmp_path / "test.txt"
    reference.write_text(TEST_TEXT)
    with pytest.raises(ValueError, match="No prediction"):
        write_dataset_in_order(reference, tmp_path / "result.txt", SparseMatrix([(1, 30, 1.0)]))


def test_matrix_to_frame() -> None:
    df = matrix_to_frame(SparseMatrix([(2, 1, 3.0), (1, 5, 4.0)]))
    assert list(df.columns) == ["row", "col", "value"]
    assert df["row"].tolist() == [1, 2]
