from __future__ import annotations

import math

import pytest

from src.cf.similarity import Neighbor, TopK, build_neighbor_map, pearson
from src.cf.sparse import SparseMatrix
from src.cf.stats import average_by_row


def test_pearson_uses_full_row_variance(three_user_ratings: SparseMatrix) -> None:
    avg = average_by_row(three_user_ratings)

    # user 2 centered: 10 -> 1/3, 20 -> -5/3, 30 -> 4/3; item 30 only feeds its denominator
    expected_12 = 2.0 / math.sqrt(2.0 * 14.0 / 3.0)
    expected_13 = 4.0 / math.sqrt(2.0 * 26.0 / 3.0)

    assert pearson(three_user_ratings, 1, 2, avg) == pytest.approx(expected_12)
    assert pearson(three_user_ratings, 1, 3, avg) == pytest.approx(expected_13)


def test_pearson_is_symmetric(three_user_ratings: SparseMatrix) -> None:
    avg = average_by_row(three_user_ratings)
    for x, y in [(1, 2), (1, 3), (2, 3)]:
        assert pearson(three_user_ratings, x, y, avg) == pearson(three_user_ratings, y, x, avg)


def test_pearson_zero_when_a_row_has_no_variance(two_user_ratings: SparseMatrix) -> None:
    avg = average_by_row(two_user_ratings)
    # user 2 rated everything 4.0
    assert pearson(two_user_ratings, 1, 2, avg) == 0.0


def test_pearson_disjoint_rows_score_zero() -> None:
    mat = SparseMatrix([(1, 10, 1.0), (1, 20, 5.0), (2, 30, 2.0), (2, 40, 4.0)])
    avg = average_by_row(mat)
    assert pearson(mat, 1, 2, avg) == 0.0


def test_topk_keeps_highest_and_orders_descending() -> None:
    heap = TopK(3)
    for uid, sim in [(1, 0.1), (2, 0.9), (3, -0.5), (4, 0.4), (5, 0.7), (6, 0.05)]:
        heap.push(uid, sim)

    assert len(heap) == 3
    assert heap.ranked() == [Neighbor(2, 0.9), Neighbor(5, 0.7), Neighbor(4, 0.4)]


def test_topk_rejects_candidates_not_above_minimum() -> None:
    heap = TopK(1)
    heap.push(1, 0.5)
    heap.push(2, 0.5)
    assert heap.ranked() == [Neighbor(1, 0.5)]


def test_neighbor_map_bounded_and_sorted(three_user_ratings: SparseMatrix) -> None:
    avg = average_by_row(three_user_ratings)

    full = build_neighbor_map(three_user_ratings, 10, avg)
    assert set(full) == {1, 2, 3}
    for uid, neighbors in full.items():
        assert len(neighbors) == 2
        assert uid not in [n.user_id for n in neighbors]
        sims = [n.similarity for n in neighbors]
        assert sims == sorted(sims, reverse=True)
    assert [n.user_id for n in full[1]] == [3, 2]

    top1 = build_neighbor_map(three_user_ratings, 1, avg)
    assert all(len(neighbors) == 1 for neighbors in top1.values())
    assert top1[1][0].user_id == 3
    assert top1[1][0].similarity == pytest.approx(pearson(three_user_ratings, 1, 3, avg))


def test_neighbor_map_single_row_is_empty() -> None:
    mat = SparseMatrix([(1, 10, 5.0), (1, 20, 3.0)])
    assert build_neighbor_map(mat, 5, average_by_row(mat)) == {1: []}
    assert build_neighbor_map(SparseMatrix(), 5, {}) == {}


def test_neighbor_map_slices_each_row_once(
    three_user_ratings: SparseMatrix, monkeypatch: pytest.MonkeyPatch
) -> None:
    avg = average_by_row(three_user_ratings)
    expected = {x: {y: pearson(three_user_ratings, x, y, avg) for y in (1, 2, 3) if y != x} for x in (1, 2, 3)}

    calls: list[int] = []
    original = SparseMatrix.get_row

    def counting_get_row(self: SparseMatrix, row: int):
        calls.append(row)
        return original(self, row)

    monkeypatch.setattr(SparseMatrix, "get_row", counting_get_row)
    neighbors = build_neighbor_map(three_user_ratings, 5, avg)

    assert sorted(calls) == [1, 2, 3]
    for x, lst in neighbors.items():
        assert {n.user_id: n.similarity for n in lst} == expected[x]
