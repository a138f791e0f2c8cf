"""Utility helpers for puzzle files, text layout, and grid rendering."""
from __future__ import annotations

from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Union

import cv2
import numpy as np
from matplotlib import colormaps

from solver import BOX, CELLS, DIMENSION, Grid, encode_board

# Precompute a soft-green palette (leveraging matplotlib dependency)
_DIGIT_COLORS = (colormaps["Greens"](np.linspace(0.35, 0.95, 10))[:, :3] * 255).astype("uint8")

GIVEN_COLOR = (0, 0, 0)
LINE_COLOR = (40, 40, 40)
BACKGROUND = 255
THIN_LINE = 1
THICK_LINE = 3
BAND_RULE = "_" * 12
INVALID_MESSAGE = "INCORRECT PUZZLE!"


def read_puzzles(path: Union[str, Path]) -> Iterator[str]:
    """Yield puzzle strings from a text file.

    A line of 81 characters is a whole puzzle and replaces any partial block.
    Otherwise up to nine consecutive rows are joined into one; lines shorter
    than a row (blank lines, separators) are skipped.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Unable to read puzzles at {path}")

    rows: List[str] = []
    with path.open(encoding="utf-8") as handle:
        for raw in handle:
            line = raw.strip()
            if len(line) == CELLS:
                rows = []
                yield line
                continue
            if len(line) < DIMENSION:
                continue
            rows.append(line)
            if len(rows) == DIMENSION:
                yield "".join(rows)
                rows = []
    if rows:
        yield "".join(rows)


def puzzle_to_board(puzzle: str) -> Grid:
    """Decode an 81-character puzzle; anything but 1-9 becomes 0."""
    if len(puzzle) != CELLS:
        raise ValueError(f"Puzzle must have {CELLS} characters, got {len(puzzle)}")
    values = [int(char) if char in "123456789" else 0 for char in puzzle]
    return [values[row * DIMENSION : (row + 1) * DIMENSION] for row in range(DIMENSION)]


def board_to_puzzle(board: Sequence[Sequence[int]]) -> str:
    if len(board) != DIMENSION or any(len(row) != DIMENSION for row in board):
        raise ValueError("Board must be 9x9")
    if any(not 0 <= value <= DIMENSION for row in board for value in row):
        raise ValueError("Board values must lie in 0-9")
    return encode_board(board)


def format_grid(board: Sequence[Sequence[int]]) -> str:
    """Lay the board out as text, one row per line with box separators."""
    lines: List[str] = []
    for row in range(DIMENSION):
        if row % BOX == 0:
            lines.append(BAND_RULE)
        text = ""
        for col in range(DIMENSION):
            if col % BOX == 0:
                text += "|"
            text += str(board[row][col])
        lines.append(text)
    return "\n".join(lines)


def _draw_lines(image: np.ndarray, cell_size: int) -> None:
    size = cell_size * DIMENSION
    for index in range(DIMENSION + 1):
        thickness = THICK_LINE if index % BOX == 0 else THIN_LINE
        offset = min(index * cell_size, size - 1)
        cv2.line(image, (offset, 0), (offset, size - 1), LINE_COLOR, thickness)
        cv2.line(image, (0, offset), (size - 1, offset), LINE_COLOR, thickness)


def render_grid_image(
    solution: Sequence[Sequence[int]],
    givens: Optional[Sequence[Sequence[int]]] = None,
    cell_size: int = 60,
) -> np.ndarray:
    """Render the grid as a BGR image; solver-filled digits get the green palette."""
    size = cell_size * DIMENSION
    image = np.full((size, size, 3), BACKGROUND, dtype="uint8")
    _draw_lines(image, cell_size)

    scale = cell_size / 60 * 0.9
    for row in range(DIMENSION):
        for col in range(DIMENSION):
            value = solution[row][col]
            if value == 0:
                continue
            if givens is not None and givens[row][col] != 0:
                color = GIVEN_COLOR
            else:
                color = tuple(int(channel) for channel in _DIGIT_COLORS[value])
            text = str(value)
            text_size, _ = cv2.getTextSize(text, cv2.FONT_HERSHEY_SIMPLEX, scale, 2)
            text_x = int(col * cell_size + (cell_size - text_size[0]) / 2)
            text_y = int(row * cell_size + (cell_size + text_size[1]) / 2)
            cv2.putText(
                image,
                text,
                (text_x, text_y),
                cv2.FONT_HERSHEY_SIMPLEX,
                scale,
                color,
                2,
                cv2.LINE_AA,
            )
    return image


def save_grid_image(path: Union[str, Path], image: np.ndarray) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    if not cv2.imwrite(str(path), image):
        raise OSError(f"Unable to write image at {path}")
    return path
