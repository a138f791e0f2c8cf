"""Per-cell candidate sets backed by boolean numpy masks."""
from __future__ import annotations

from typing import Iterator, List, Optional

import numpy as np

DIMENSION = 9


class CandidateSet:
    """Values 1-9 still possible for one cell.

    A set built from a grid wraps a view of the grid's own mask, so removals
    land in the grid. Values are only ever removed, never re-added.
    """

    __slots__ = ("_mask",)

    def __init__(self, mask: Optional[np.ndarray] = None) -> None:
        if mask is None:
            mask = np.ones(DIMENSION, dtype=bool)
        self._mask = mask

    def possible(self, value: int) -> bool:
        if not 1 <= value <= DIMENSION:
            return False
        return bool(self._mask[value - 1])

    def remove(self, value: int) -> None:
        if 1 <= value <= DIMENSION:
            self._mask[value - 1] = False

    def clear_all(self) -> None:
        self._mask[:] = False

    def unique_value(self) -> Optional[int]:
        """Return the only remaining value, or None when zero or several remain."""
        if self.count() != 1:
            return None
        return int(np.flatnonzero(self._mask)[0]) + 1

    def count(self) -> int:
        return int(np.count_nonzero(self._mask))

    def is_exhausted(self) -> bool:
        return not self._mask.any()

    def values(self) -> List[int]:
        return [int(index) + 1 for index in np.flatnonzero(self._mask)]

    def largest(self) -> Optional[int]:
        remaining = np.flatnonzero(self._mask)
        if remaining.size == 0:
            return None
        return int(remaining[-1]) + 1

    def copy(self) -> "CandidateSet":
        return CandidateSet(self._mask.copy())

    def __contains__(self, value: object) -> bool:
        return isinstance(value, (int, np.integer)) and self.possible(int(value))

    def __iter__(self) -> Iterator[int]:
        return iter(self.values())

    def __len__(self) -> int:
        return self.count()

    def __repr__(self) -> str:
        return f"CandidateSet({self.values()})"
