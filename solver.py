"""Constraint-propagation Sudoku solver with snapshot backtracking."""
from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

import numpy as np

from candidates import DIMENSION, CandidateSet

logger = logging.getLogger(__name__)

Grid = List[List[int]]
Branch = Tuple[int, int, int]
Unit = Tuple[np.ndarray, np.ndarray]

BOX = 3
CELLS = DIMENSION * DIMENSION
BLANK = "."
DEFAULT_MAX_BRANCHES: Optional[int] = 200_000
# Stop looking for a branch cell once one this small turns up.
EARLY_BRANCH_COUNT = 2


def _unit(cells: Sequence[Tuple[int, int]]) -> Unit:
    rows, cols = zip(*cells)
    return np.array(rows, dtype=np.intp), np.array(cols, dtype=np.intp)


ROW_UNITS: Tuple[Unit, ...] = tuple(_unit([(row, col) for col in range(DIMENSION)]) for row in range(DIMENSION))
COLUMN_UNITS: Tuple[Unit, ...] = tuple(_unit([(row, col) for row in range(DIMENSION)]) for col in range(DIMENSION))
BOX_UNITS: Tuple[Unit, ...] = tuple(
    _unit(
        [
            (start_row + r, start_col + c)
            for r in range(BOX)
            for c in range(BOX)
        ]
    )
    for start_row in range(0, DIMENSION, BOX)
    for start_col in range(0, DIMENSION, BOX)
)
ALL_UNITS = ROW_UNITS + COLUMN_UNITS + BOX_UNITS
DIGITS = np.arange(1, DIMENSION + 1)


def encode_board(board: Sequence[Sequence[int]]) -> str:
    """Flatten a board into the 81-character puzzle encoding ('.' for blanks)."""
    return "".join(
        str(int(value)) if 1 <= value <= DIMENSION else BLANK
        for row in board
        for value in row
    )


class SudokuGrid:
    """Candidate masks and committed values for one puzzle.

    ``_candidates[row, col, value - 1]`` is True while ``value`` is still
    possible for the cell. Resolved cells keep an empty mask and their value
    in ``_solution``; every commitment goes through :meth:`assign`, which
    also strikes the value from the cell's peers.
    """

    def __init__(self, puzzle: str) -> None:
        self._candidates = np.ones((DIMENSION, DIMENSION, DIMENSION), dtype=bool)
        self._solution = np.zeros((DIMENSION, DIMENSION), dtype=np.int8)
        self.solvable = True
        self.unsolved = CELLS
        self.branches = 0
        self.backtracks = 0
        self.cutoff = False

        if not isinstance(puzzle, str) or len(puzzle) != CELLS:
            logger.debug("Rejecting puzzle of length %s", len(puzzle) if isinstance(puzzle, str) else None)
            self.solvable = False
            return

        for index, char in enumerate(puzzle):
            if char not in "123456789":
                continue
            row, col = divmod(index, DIMENSION)
            if not self.assign(row, col, int(char)):
                logger.debug("Given %s at r%dc%d contradicts earlier givens", char, row + 1, col + 1)
                self.solvable = False
                break

    @classmethod
    def from_board(cls, board: Sequence[Sequence[int]]) -> "SudokuGrid":
        return cls(encode_board(board))

    def copy(self) -> "SudokuGrid":
        clone = SudokuGrid.__new__(SudokuGrid)
        clone._candidates = self._candidates.copy()
        clone._solution = self._solution.copy()
        clone.solvable = self.solvable
        clone.unsolved = self.unsolved
        clone.branches = 0
        clone.backtracks = 0
        clone.cutoff = False
        return clone

    def _adopt(self, other: "SudokuGrid") -> None:
        # ``other`` is discarded by the caller, so its arrays change hands.
        self._candidates = other._candidates
        self._solution = other._solution
        self.unsolved = other.unsolved

    # ------------------------------------------------------------------
    # Read access

    def candidates(self, row: int, col: int) -> CandidateSet:
        return CandidateSet(self._candidates[row, col])

    def value(self, row: int, col: int) -> int:
        return int(self._solution[row, col])

    @property
    def board(self) -> Grid:
        return [[int(value) for value in row] for row in self._solution]

    def to_string(self) -> str:
        return "".join(str(int(value)) if value else BLANK for value in self._solution.flat)

    def __repr__(self) -> str:
        return f"SudokuGrid({self.to_string()!r}, solvable={self.solvable}, unsolved={self.unsolved})"

    # ------------------------------------------------------------------
    # Assignment

    def assign(self, row: int, col: int, value: int) -> bool:
        if not self.solvable:
            return False
        if not (0 <= row < DIMENSION and 0 <= col < DIMENSION):
            return False
        cell = self.candidates(row, col)
        if not cell.possible(value) or cell.is_exhausted():
            return False
        cell.clear_all()
        self._solution[row, col] = value
        self._update_peers(row, col, value)
        self.unsolved -= 1
        return True

    def _update_peers(self, row: int, col: int, value: int) -> None:
        index = value - 1
        start_row = (row // BOX) * BOX
        start_col = (col // BOX) * BOX
        self._candidates[row, :, index] = False
        self._candidates[:, col, index] = False
        self._candidates[start_row : start_row + BOX, start_col : start_col + BOX, index] = False

    # ------------------------------------------------------------------
    # Unit consistency

    def check_peers(self) -> bool:
        return self.check_rows() and self.check_columns() and self.check_boxes()

    def check_rows(self) -> bool:
        return all(self._check_unit(unit) for unit in ROW_UNITS)

    def check_columns(self) -> bool:
        return all(self._check_unit(unit) for unit in COLUMN_UNITS)

    def check_boxes(self) -> bool:
        return all(self._check_unit(unit) for unit in BOX_UNITS)

    def _check_unit(self, unit: Unit) -> bool:
        """Place every value that only one cell of ``unit`` can still take."""
        rows, cols = unit
        # Resolved cells have empty masks, so they exclude every value.
        excluded = np.count_nonzero(~self._candidates[rows, cols], axis=0)
        for index in np.flatnonzero(excluded == DIMENSION - 1):
            holders = np.flatnonzero(self._candidates[rows, cols, index])
            if holders.size == 0:
                return False
            cell = holders[0]
            if not self.assign(int(rows[cell]), int(cols[cell]), int(index) + 1):
                return False
        return True

    def set_unique(self) -> None:
        counts = np.count_nonzero(self._candidates, axis=2)
        for row, col in np.argwhere((counts == 1) & (self._solution == 0)):
            # Earlier placements in this sweep may have emptied the cell.
            value = self.candidates(row, col).unique_value()
            if value is not None:
                self.assign(int(row), int(col), value)

    # ------------------------------------------------------------------
    # Solving

    def eliminate(self) -> bool:
        while not self.complete():
            before = self.unsolved
            if not self.check_peers():
                return False
            self.set_unique()
            if before == self.unsolved:
                break
        return True

    def branch_point(self) -> Optional[Branch]:
        """Pick the next guess as (row, col, value), or None for a dead end.

        The cell is the first unresolved one in row-major order with the
        fewest candidates; the value is its largest candidate.
        """
        best: Optional[Tuple[int, int]] = None
        best_count = DIMENSION + 1
        for row in range(DIMENSION):
            for col in range(DIMENSION):
                if self._solution[row, col]:
                    continue
                count = int(np.count_nonzero(self._candidates[row, col]))
                if count == 0:
                    return None
                if count < best_count:
                    best, best_count = (row, col), count
                    if best_count <= EARLY_BRANCH_COUNT:
                        break
            if best_count <= EARLY_BRANCH_COUNT:
                break
        if best is None:
            return None
        row, col = best
        value = self.candidates(row, col).largest()
        if value is None:
            return None
        return row, col, value

    def test_square(self, row: int, col: int, value: int) -> Optional["SudokuGrid"]:
        """Try ``value`` at (row, col) on a copy; return the copy if it holds up."""
        trial = self.copy()
        if not trial.assign(row, col, value) or not trial.eliminate():
            return None
        return trial

    def _disprove(self, row: int, col: int, value: int) -> bool:
        self.candidates(row, col).remove(value)
        return self.eliminate()

    def propagate(self, max_branches: Optional[int] = None) -> bool:
        """Depth-first search over owned grid snapshots.

        ``stack[0]`` is this grid; every deeper entry is a copy holding one
        more guess than its parent. A refuted guess is struck from the
        parent's candidates and the parent is re-eliminated. The first
        complete snapshot is adopted as this grid's state.
        """
        stack: List[SudokuGrid] = [self]
        guesses: List[Branch] = []
        alive = True
        while True:
            node = stack[-1]
            branch: Optional[Branch] = None
            if alive:
                if node.complete():
                    if node is not self:
                        self._adopt(node)
                    return True
                branch = node.branch_point()
                alive = branch is not None

            if branch is None:
                if len(stack) == 1:
                    return False
                stack.pop()
                row, col, value = guesses.pop()
                self.backtracks += 1
                logger.debug("Backtracking r%dc%d != %d at depth %d", row + 1, col + 1, value, len(stack))
                alive = stack[-1]._disprove(row, col, value)
                continue

            if max_branches is not None and self.branches >= max_branches:
                logger.info("Search stopped after %d branches", self.branches)
                self.cutoff = True
                return False
            self.branches += 1

            row, col, value = branch
            child = node.test_square(row, col, value)
            if child is None:
                alive = node._disprove(row, col, value)
                continue
            logger.debug("Guessing r%dc%d = %d at depth %d", row + 1, col + 1, value, len(stack))
            stack.append(child)
            guesses.append(branch)

    def solve(self, max_branches: Optional[int] = None) -> bool:
        if not self.solvable:
            return False
        return self.eliminate() and self.propagate(max_branches)

    def complete(self) -> bool:
        if self.unsolved:
            return False
        for rows, cols in ALL_UNITS:
            if not np.array_equal(np.sort(self._solution[rows, cols]), DIGITS):
                return False
        return True


class SudokuSolver:
    """Runs puzzles through :class:`SudokuGrid` under a branch budget."""

    def __init__(self, max_branches: Optional[int] = DEFAULT_MAX_BRANCHES) -> None:
        self.max_branches = max_branches
        self.last_status: str = "idle"
        self.last_grid: Optional[SudokuGrid] = None

    def _reset_state(self) -> None:
        self.last_status = "idle"
        self.last_grid = None

    def solve_puzzle(self, puzzle: str) -> Optional[Grid]:
        self._reset_state()
        grid = SudokuGrid(puzzle)
        self.last_grid = grid
        if not grid.solvable:
            self.last_status = "invalid"
            return None
        if grid.solve(self.max_branches) and grid.complete():
            self.last_status = "solved"
            return grid.board
        self.last_status = "timeout" if grid.cutoff else "unsolved"
        return None

    def solve_board(self, board: Sequence[Sequence[int]]) -> Optional[Grid]:
        if len(board) != DIMENSION or any(len(row) != DIMENSION for row in board):
            self._reset_state()
            self.last_status = "invalid"
            return None
        return self.solve_puzzle(encode_board(board))
