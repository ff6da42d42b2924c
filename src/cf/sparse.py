"""Row-major sparse matrix of (row, col, value) triples."""

from __future__ import annotations

from bisect import bisect_left
from typing import Iterable, Iterator, NamedTuple, Sequence, Tuple, Union


# Ratings live in [0, 100], so any negative value marks "no entry".
NOT_FOUND = -1.0

Value = Union[int, float]


class Entry(NamedTuple):
    row: int
    col: int
    val: Value


class SparseMatrix:
    """Immutable sparse matrix, entries sorted by (row, col).

    Construction sorts a copy of the input; every other operation is read-only.
    Duplicate (row, col) keys are not resolved: callers must deduplicate upstream.
    """

    __slots__ = ("_entries", "_keys", "_rows")

    def __init__(self, entries: Iterable[Tuple[int, int, Value]] = ()) -> None:
        items = sorted(
            (Entry(int(r), int(c), v) for r, c, v in entries),
            key=lambda e: (e.row, e.col),
        )
        self._entries: Tuple[Entry, ...] = tuple(items)
        self._keys: Tuple[Tuple[int, int], ...] = tuple((e.row, e.col) for e in items)
        self._rows: Tuple[int, ...] = tuple(sorted({e.row for e in items}))

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Entry]:
        return iter(self._entries)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, tuple) or len(key) != 2:
            return False
        i = bisect_left(self._keys, key)
        return i < len(self._keys) and self._keys[i] == key

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SparseMatrix):
            return NotImplemented
        return self._entries == other._entries

    def __repr__(self) -> str:
        return f"SparseMatrix(entries={len(self._entries)}, rows={len(self._rows)})"

    def get(self, row: int, col: int) -> Value:
        """Return the value at (row, col), or NOT_FOUND."""
        key = (row, col)
        i = bisect_left(self._keys, key)
        if i < len(self._keys) and self._keys[i] == key:
            return self._entries[i].val
        return NOT_FOUND

    def get_row(self, row: int) -> Sequence[Entry]:
        """Entries of one row, ordered by column (empty if the row is absent)."""
        # (row,) sorts before every (row, col) key and after every (row - 1, col) key.
        lo = bisect_left(self._keys, (row,))
        hi = bisect_left(self._keys, (row + 1,), lo)
        return self._entries[lo:hi]

    def get_all(self) -> Sequence[Entry]:
        return self._entries

    def row_indexes(self) -> Sequence[int]:
        """Distinct row ids, ascending. Every listed row has at least one entry."""
        return self._rows

    def transpose(self) -> "SparseMatrix":
        return SparseMatrix((e.col, e.row, e.val) for e in self._entries)
