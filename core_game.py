# core_game.py (headless, vectorized)
from dataclasses import dataclass
from typing import Iterable, Optional

import numpy as np

cols, rows = 10, 20
ROWS, COLS = rows, cols
HIDDEN_ROWS = 2  # spawn buffer above the visible field, a rendering offset only

SPAWN_ROW = 0
SPAWN_COL = cols // 2 - 2
ROTATION_COUNT = 4

EMPTY = 0

# Base orientations; rotation r is this matrix turned clockwise r times
tetrominoes = {
    'I': np.array([[1,1,1,1]], dtype=np.int8),
    'O': np.array([[1,1],
                   [1,1]], dtype=np.int8),
    'T': np.array([[0,1,0],
                   [1,1,1]], dtype=np.int8),
    'S': np.array([[0,1,1],
                   [1,1,0]], dtype=np.int8),
    'Z': np.array([[1,1,0],
                   [0,1,1]], dtype=np.int8),
    'J': np.array([[1,0,0],
                   [1,1,1]], dtype=np.int8),
    'L': np.array([[0,0,1],
                   [1,1,1]], dtype=np.int8),
}

SHAPE_CODES = {shape: code for code, shape in enumerate(tetrominoes, start=1)}


def _offsets(shape: np.ndarray) -> tuple:
    rs, cs = np.nonzero(shape)
    return tuple((int(r), int(c)) for r, c in zip(rs, cs))


ROTATIONS = {
    name: tuple(_offsets(np.rot90(base, -r)) for r in range(ROTATION_COUNT))
    for name, base in tetrominoes.items()
}

DISTINCT_ROTATIONS = {name: len(set(states)) for name, states in ROTATIONS.items()}


def check_shape(shape: str) -> str:
    if shape not in ROTATIONS:
        raise ValueError(f"Unknown tetromino shape: {shape!r}")
    return shape


@dataclass
class Tetromino:
    """
    A falling piece: shape tag, rotation state and anchor (row, col).
    Absolute cells are the rotation's offsets added to the anchor.
    """
    shape: str
    rotation: int = 0
    row: int = SPAWN_ROW
    col: int = SPAWN_COL

    def __post_init__(self):
        check_shape(self.shape)
        self.rotation %= ROTATION_COUNT

    @property
    def code(self) -> int:
        return SHAPE_CODES[self.shape]

    @property
    def offsets(self) -> tuple:
        return ROTATIONS[self.shape][self.rotation]

    @property
    def height(self) -> int:
        return max(dr for dr, _ in self.offsets) + 1

    @property
    def width(self) -> int:
        return max(dc for _, dc in self.offsets) + 1

    def rotate(self, times: int = 1) -> "Tetromino":
        # No grid validation here; the simulator decides what is legal
        self.rotation = (self.rotation + times) % ROTATION_COUNT
        return self

    def rotated(self, times: int = 1) -> "Tetromino":
        return Tetromino(self.shape, self.rotation + times, self.row, self.col)

    def cells(self, row_shift: int = 0, col_shift: int = 0) -> list:
        r0, c0 = self.row + row_shift, self.col + col_shift
        return [(r0 + dr, c0 + dc) for dr, dc in self.offsets]


class Grid:
    """Fixed-size occupancy table. 0 is empty, anything else is a cell tag."""

    def __init__(self, rows: int = ROWS, cols: int = COLS, cells: Optional[np.ndarray] = None):
        if cells is None:
            cells = np.zeros((rows, cols), dtype=np.int8)
        elif cells.shape != (rows, cols):
            raise ValueError(f"Grid cells must be {rows}x{cols}, got {cells.shape[0]}x{cells.shape[1]}")
        self.rows = rows
        self.cols = cols
        self.cells = cells

    @classmethod
    def from_strings(cls, lines: Iterable[str]) -> "Grid":
        """'.' is empty, any other character an occupied cell."""
        lines = list(lines)
        width = len(lines[0]) if lines else 0
        if any(len(line) != width for line in lines):
            raise ValueError("Grid rows must all have the same width")
        cells = np.array([[EMPTY if ch == '.' else 1 for ch in line] for line in lines],
                         dtype=np.int8).reshape(len(lines), width)
        return cls(len(lines), width, cells)

    @property
    def occupied(self) -> np.ndarray:
        return self.cells != EMPTY

    def copy(self) -> "Grid":
        return Grid(self.rows, self.cols, self.cells.copy())

    def get(self, row: int, col: int) -> Optional[int]:
        if 0 <= row < self.rows and 0 <= col < self.cols:
            return int(self.cells[row, col])
        return None

    # ----------------------------
    # Queries
    # ----------------------------
    def collides(self, cells) -> bool:
        for r, c in cells:
            if r < 0 or r >= self.rows or c < 0 or c >= self.cols:
                return True
            if self.cells[r, c] != EMPTY:
                return True
        return False

    def is_row_full(self, row: int) -> bool:
        return bool(np.all(self.cells[row] != EMPTY))

    def full_rows(self, candidates: Optional[Iterable[int]] = None) -> list:
        if candidates is None:
            return np.nonzero(np.all(self.occupied, axis=1))[0].tolist()
        return sorted(r for r in set(candidates) if self.is_row_full(r))

    def height_of_column(self, col: int) -> int:
        if col < 0 or col >= self.cols:
            return 0
        filled = np.flatnonzero(self.cells[:, col])
        return int(self.rows - filled[0]) if filled.size else 0

    def heights(self) -> list:
        return column_heights(self.occupied).tolist()

    # ----------------------------
    # Mutation (working copies only)
    # ----------------------------
    def set_cells(self, cells, value: int) -> set:
        touched = set()
        for r, c in cells:
            self.cells[r, c] = value
            touched.add(r)
        return touched

    def clear_rows(self, rows_to_clear: Iterable[int]) -> None:
        doomed = sorted(set(rows_to_clear))
        if not doomed:
            return
        kept = np.delete(self.cells, doomed, axis=0)
        fresh = np.zeros((len(doomed), self.cols), dtype=self.cells.dtype)
        self.cells = np.vstack((fresh, kept))

    def __eq__(self, other) -> bool:
        if not isinstance(other, Grid):
            return NotImplemented
        return self.cells.shape == other.cells.shape and bool(np.array_equal(self.cells, other.cells))

    def __str__(self) -> str:
        return "\n".join("".join('#' if cell else '.' for cell in row) for row in self.cells)

    def __repr__(self) -> str:
        return f"Grid(rows={self.rows}, cols={self.cols}, filled={int(np.count_nonzero(self.cells))})"


def column_heights(occ: np.ndarray) -> np.ndarray:
    """Per-column height measured from the floor: rows - first occupied row, 0 if empty."""
    n_rows = occ.shape[0]
    any_col = occ.any(axis=0)
    first_occ = np.where(any_col, np.argmax(occ, axis=0), n_rows)
    return n_rows - first_occ


def create_grid(n_rows: int = ROWS, n_cols: int = COLS) -> Grid:
    return Grid(n_rows, n_cols)
