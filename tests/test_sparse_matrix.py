from __future__ import annotations

from src.cf.sparse import NOT_FOUND, Entry, SparseMatrix


def test_entries_sorted_and_rows_tracked() -> None:
    mat = SparseMatrix([(3, 1, 1.0), (1, 9, 2.0), (1, 2, 3.0), (2, 5, 4.0)])

    keys = [(e.row, e.col) for e in mat.get_all()]
    assert keys == sorted(keys)
    assert list(mat.row_indexes()) == [1, 2, 3]
    assert set(mat.row_indexes()) == {e.row for e in mat.get_all()}
    assert len(mat) == 4


def test_get_returns_value_or_sentinel() -> None:
    mat = SparseMatrix([(1, 10, 5.0), (1, 20, 0.0), (2, 10, 4.0)])

    assert mat.get(1, 10) == 5.0
    assert mat.get(1, 20) == 0.0
    assert mat.get(1, 30) == NOT_FOUND
    assert mat.get(7, 10) == NOT_FOUND
    assert NOT_FOUND < 0
    assert (2, 10) in mat
    assert (2, 20) not in mat


def test_get_row_is_contiguous_and_column_ordered() -> None:
    mat = SparseMatrix([(2, 30, 1.0), (1, 10, 2.0), (2, 10, 3.0), (3, 5, 4.0), (2, 20, 5.0)])

    row = mat.get_row(2)
    assert [e.col for e in row] == [10, 20, 30]
    assert all(e.row == 2 for e in row)
    assert list(mat.get_row(4)) == []
    assert list(mat.get_row(0)) == []


def test_transpose_swaps_and_round_trips() -> None:
    mat = SparseMatrix([(1, 10, 5.0), (1, 20, 3.0), (2, 10, 4.0)])

    t = mat.transpose()
    assert list(t.row_indexes()) == [10, 20]
    assert [e for e in t.get_row(10)] == [Entry(10, 1, 5.0), Entry(10, 2, 4.0)]
    assert t.transpose() == mat
    # transposing produces an independent matrix
    assert mat.get(1, 20) == 3.0


def test_empty_matrix() -> None:
    mat = SparseMatrix()

    assert len(mat) == 0
    assert list(mat.row_indexes()) == []
    assert list(mat.get_row(1)) == []
    assert mat.get(1, 1) == NOT_FOUND
    assert len(mat.transpose()) == 0
