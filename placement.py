# placement.py
"""
Virtual placement of pieces on a grid.

Pieces are dropped straight down from their anchor row onto a private working
copy of the grid, so later pieces in a sequence land on earlier ones without
the caller's grid ever being written to. No rows are cleared between pieces.
"""
import math
from typing import Iterable, Optional, Tuple

import numpy as np

from core_game import Grid, Tetromino, column_heights

INVALID_HEIGHT = math.inf
INVALID_COUNT = -1


def drop_offset(grid: Grid, piece: Tetromino, column: int) -> int:
    """
    Row shift at which the piece comes to rest when its anchor is moved to
    `column`. Returns -1 if the piece already collides before dropping.
    """
    col_shift = column - piece.col
    if grid.collides(piece.cells(0, col_shift)):
        return -1
    row_shift = 0
    while not grid.collides(piece.cells(row_shift + 1, col_shift)):
        row_shift += 1
    return row_shift


class Simulation:
    """Outcome of dropping a sequence of pieces on a read-only grid."""

    def __init__(self, grid: Grid, working: Optional[Grid] = None,
                 cells: frozenset = frozenset(), landing_rows: Tuple[int, ...] = (),
                 invalid: bool = False):
        self.grid = grid
        self.working = None if invalid else (working if working is not None else grid.copy())
        self.cells = cells
        self.landing_rows = landing_rows
        self.invalid = invalid

    def extend(self, piece: Tetromino, column: int) -> "Simulation":
        """Drop one more piece. Returns a new simulation; self is left untouched."""
        if self.invalid:
            return self
        row_shift = drop_offset(self.working, piece, column)
        if row_shift < 0:
            return Simulation(self.grid, cells=self.cells, landing_rows=self.landing_rows, invalid=True)

        placed = piece.cells(row_shift, column - piece.col)
        working = self.working.copy()
        working.set_cells(placed, piece.code)
        return Simulation(
            self.grid,
            working,
            self.cells | frozenset(placed),
            self.landing_rows + (piece.row + row_shift,),
        )

    # ----------------------------
    # Derived queries
    # ----------------------------
    def aggregate_height(self) -> float:
        if self.invalid:
            return INVALID_HEIGHT
        return int(np.sum(column_heights(self.working.occupied)))

    def lines_cleared(self) -> int:
        if self.invalid:
            return INVALID_COUNT
        return int(np.sum(np.all(self.working.occupied, axis=1)))

    def holes(self) -> int:
        if self.invalid:
            return INVALID_COUNT
        occ = self.working.occupied
        n_rows = occ.shape[0]
        tops = np.where(occ.any(axis=0), np.argmax(occ, axis=0), n_rows)
        r_idx = np.arange(n_rows)[:, None]
        return int(np.sum((r_idx >= tops[None, :]) & ~occ))

    def bumpiness(self) -> int:
        if self.invalid:
            return INVALID_COUNT
        heights = column_heights(self.working.occupied)
        return int(np.sum(np.abs(np.diff(heights))))

    def features(self) -> dict:
        return {
            "aggregate_height": self.aggregate_height(),
            "complete_lines": self.lines_cleared(),
            "holes": self.holes(),
            "bumpiness": self.bumpiness(),
        }

    def resolve(self) -> Optional[Grid]:
        """Grid after the placement with its full rows cleared, or None if invalid."""
        if self.invalid:
            return None
        settled = self.working.copy()
        settled.clear_rows(settled.full_rows())
        return settled

    def __repr__(self) -> str:
        state = "invalid" if self.invalid else f"{len(self.cells)} cells"
        return f"Simulation({state}, landing_rows={list(self.landing_rows)})"


def simulate(grid: Grid, drops: Iterable[Tuple[Tetromino, int]]) -> Simulation:
    """Drop each (piece, target column) in order, accumulating virtual occupancy."""
    simulation = Simulation(grid)
    for piece, column in drops:
        simulation = simulation.extend(piece, column)
        if simulation.invalid:
            break
    return simulation
