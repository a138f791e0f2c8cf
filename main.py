"""Batch Sudoku solver driven by a puzzle file."""
from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Dict, List, Optional

from solver import DEFAULT_MAX_BRANCHES, SudokuGrid
from utils import INVALID_MESSAGE, format_grid, read_puzzles, render_grid_image, save_grid_image

logger = logging.getLogger(__name__)


def process_puzzle(
    puzzle: str,
    max_branches: Optional[int] = DEFAULT_MAX_BRANCHES,
    render_path: Optional[Path] = None,
    quiet: bool = False,
) -> Dict[str, object]:
    grid = SudokuGrid(puzzle)
    givens = grid.board
    info: Dict[str, object] = {
        "solvable": grid.solvable,
        "solved": False,
        "complete": False,
        "branches": 0,
        "backtracks": 0,
        "cutoff": False,
        "image": None,
    }

    if not quiet:
        print("PUZZLE: ")
        print(format_grid(givens) if grid.solvable else INVALID_MESSAGE)

    solved = grid.solve(max_branches)
    complete = grid.complete()
    info.update(
        solved=solved,
        complete=complete,
        branches=grid.branches,
        backtracks=grid.backtracks,
        cutoff=grid.cutoff,
    )

    if not quiet:
        print("SOLUTION: ")
        print(format_grid(grid.board) if grid.solvable else INVALID_MESSAGE)
        print()

    if render_path is not None and grid.solvable:
        info["image"] = save_grid_image(render_path, render_grid_image(grid.board, givens))
    return info


def run(
    puzzle_path: str,
    max_branches: Optional[int] = DEFAULT_MAX_BRANCHES,
    render_dir: Optional[str] = None,
    quiet: bool = False,
) -> List[Dict[str, object]]:
    render_root: Optional[Path] = None
    if render_dir:
        render_root = Path(render_dir).expanduser().resolve()
        render_root.mkdir(parents=True, exist_ok=True)

    results: List[Dict[str, object]] = []
    for index, puzzle in enumerate(read_puzzles(puzzle_path), start=1):
        render_path = render_root / f"puzzle_{index:03d}.png" if render_root is not None else None
        info = process_puzzle(puzzle, max_branches, render_path, quiet=quiet)
        logger.debug(
            "Puzzle %d: solved=%s branches=%d backtracks=%d",
            index,
            info["solved"],
            info["branches"],
            info["backtracks"],
        )
        results.append(info)

    count = len(results)
    good_count = sum(1 for info in results if info["complete"])
    print(f"puzzles attempted: {count}")
    print(f"puzzles solved correctly out of {count}: {good_count}")
    return results


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Constraint-propagation Sudoku solver")
    parser.add_argument("puzzles", type=str, help="Text file of puzzles (81-character lines or 9-line blocks)")
    parser.add_argument(
        "--max-branches",
        type=int,
        default=DEFAULT_MAX_BRANCHES,
        help=f"Give up on a puzzle after this many guesses (default: {DEFAULT_MAX_BRANCHES})",
    )
    parser.add_argument("--render-dir", type=str, default=None, help="Directory to save a PNG of every solved grid")
    parser.add_argument("--quiet", action="store_true", help="Only print the final tally")
    parser.add_argument("--verbose", action="store_true", help="Log search progress")
    args = parser.parse_args(argv)
    if not Path(args.puzzles).is_file():
        parser.error(f"puzzle file not found: {args.puzzles}")
    if args.max_branches is not None and args.max_branches < 0:
        parser.error("--max-branches must be non-negative")
    return args


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    run(args.puzzles, args.max_branches, render_dir=args.render_dir, quiet=args.quiet)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
