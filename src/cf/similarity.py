"""User-user Pearson similarity and top-K neighbor selection."""

from __future__ import annotations

import heapq
import logging
import math
import sys
from typing import Dict, List, Mapping, NamedTuple, Sequence, Tuple

from tqdm import tqdm

from .sparse import Entry, SparseMatrix


logger = logging.getLogger(__name__)

EPSILON = sys.float_info.epsilon


class Neighbor(NamedTuple):
    user_id: int
    similarity: float


NeighborMap = Dict[int, List[Neighbor]]


def pearson(mat: SparseMatrix, x: int, y: int, row_avg: Mapping[int, float]) -> float:
    """Pearson correlation between rows `x` and `y`.

    Only columns rated by both rows feed the numerator, while each denominator
    term runs over the full row, so a small overlap cannot inflate the score.
    Returns 0.0 when either row has no variance.
    """
    return pearson_rows(mat.get_row(x), mat.get_row(y), row_avg[x], row_avg[y])


def pearson_rows(row_x: Sequence[Entry], row_y: Sequence[Entry], avg_x: float, avg_y: float) -> float:
    """Two-pointer sweep over two column-sorted rows."""
    i = j = 0
    numerator = 0.0
    denominator_x = 0.0
    denominator_y = 0.0
    while i < len(row_x) and j < len(row_y):
        col_x = row_x[i].col
        col_y = row_y[j].col
        if col_x < col_y:
            denominator_x += (row_x[i].val - avg_x) ** 2
            i += 1
        elif col_x > col_y:
            denominator_y += (row_y[j].val - avg_y) ** 2
            j += 1
        else:
            dx = row_x[i].val - avg_x
            dy = row_y[j].val - avg_y
            numerator += dx * dy
            denominator_x += dx * dx
            denominator_y += dy * dy
            i += 1
            j += 1

    for p in range(i, len(row_x)):
        denominator_x += (row_x[p].val - avg_x) ** 2
    for q in range(j, len(row_y)):
        denominator_y += (row_y[q].val - avg_y) ** 2

    denominator = math.sqrt(denominator_x * denominator_y)
    if abs(denominator) < EPSILON:
        return 0.0
    return numerator / denominator


class TopK:
    """Bounded min-heap keeping the `k` highest-similarity candidates."""

    __slots__ = ("k", "_heap")

    def __init__(self, k: int) -> None:
        self.k = int(k)
        self._heap: List[Tuple[float, int]] = []

    def __len__(self) -> int:
        return len(self._heap)

    def push(self, user_id: int, similarity: float) -> None:
        if self.k <= 0:
            return
        if len(self._heap) < self.k:
            heapq.heappush(self._heap, (similarity, user_id))
        elif self._heap[0][0] < similarity:
            heapq.heapreplace(self._heap, (similarity, user_id))

    def ranked(self) -> List[Neighbor]:
        """Kept candidates, most similar first (ties by ascending id)."""
        ordered = sorted(self._heap, key=lambda e: (-e[0], e[1]))
        return [Neighbor(user_id=uid, similarity=sim) for sim, uid in ordered]


def build_neighbor_map(
    mat: SparseMatrix,
    k: int,
    row_avg: Mapping[int, float],
    *,
    progress: bool = False,
) -> NeighborMap:
    """Top-`k` most similar rows for every row of `mat`.

    Each unordered pair is scored once and offered to both rows' heaps.
    """
    row_ids = list(mat.row_indexes())
    heaps = {rid: TopK(k) for rid in row_ids}
    # one slice per row, shared by all of its pairs
    rows = [mat.get_row(rid) for rid in row_ids]
    avgs = [row_avg[rid] for rid in row_ids]

    n = len(row_ids)
    total_pairs = n * (n - 1) // 2
    logger.info("Scoring %d row pairs (rows=%d k=%d)", total_pairs, n, int(k))

    with tqdm(total=total_pairs, desc="Train", unit="pair", disable=not progress) as bar:
        for a in range(n):
            x = row_ids[a]
            heap_x = heaps[x]
            row_x = rows[a]
            avg_x = avgs[a]
            for b in range(a + 1, n):
                y = row_ids[b]
                score = pearson_rows(row_x, rows[b], avg_x, avgs[b])
                heap_x.push(y, score)
                heaps[y].push(x, score)
            bar.update(n - a - 1)

    return {rid: heaps[rid].ranked() for rid in row_ids}
