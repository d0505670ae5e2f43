import math

import numpy as np
import pytest

from core_game import ROTATIONS, Grid, Tetromino, create_grid
from placement import INVALID_COUNT, INVALID_HEIGHT, Simulation, drop_offset, simulate


def footprint_height(piece):
    return sum(
        piece.height - min(dr for dr, dc in piece.offsets if dc == c)
        for c in range(piece.width)
    )


def test_drop_offset_on_empty_grid():
    grid = create_grid()
    assert drop_offset(grid, Tetromino('I'), 0) == 19
    assert drop_offset(grid, Tetromino('I', 1), 9) == 16
    assert drop_offset(grid, Tetromino('I'), 7) == -1


def test_drop_offset_blocked_at_spawn():
    grid = Grid.from_strings(["#...", "....", "...."])
    assert drop_offset(grid, Tetromino('O', col=0), 0) == -1
    assert drop_offset(grid, Tetromino('O', col=0), 1) == 1


@pytest.mark.parametrize("shape", sorted(ROTATIONS))
def test_single_drop_on_empty_grid(shape):
    grid = create_grid()
    for rotation in range(4):
        piece = Tetromino(shape, rotation)
        for column in range(grid.cols):
            sim = simulate(grid, [(piece, column)])
            if column + piece.width > grid.cols:
                assert sim.invalid
                continue
            assert not sim.invalid
            assert sim.aggregate_height() == footprint_height(piece)
            assert max(r for r, _ in sim.cells) == grid.rows - 1


def test_flat_i_at_column_three():
    grid = create_grid()
    sim = simulate(grid, [(Tetromino('I'), 3)])
    assert not sim.invalid
    assert sim.cells == {(19, 3), (19, 4), (19, 5), (19, 6)}
    assert sim.landing_rows == (19,)
    assert sim.aggregate_height() == 4
    assert sim.holes() == 0
    assert sim.lines_cleared() == 0
    assert sim.bumpiness() == 2


def test_filling_single_gap_clears_one_line():
    rows = ["." * 10] * 19 + ["#####.####"]
    grid = Grid.from_strings(rows)
    sim = simulate(grid, [(Tetromino('I', 1), 5)])
    assert not sim.invalid
    assert sim.cells == {(16, 5), (17, 5), (18, 5), (19, 5)}
    assert sim.lines_cleared() == 1

    settled = sim.resolve()
    assert settled.rows == grid.rows == 20
    assert not settled.is_row_full(19)
    assert np.count_nonzero(settled.cells) == 3
    assert all(settled.get(r, 5) for r in (17, 18, 19))


def test_holes_under_overhang():
    sim = simulate(create_grid(), [(Tetromino('T', 2), 0)])
    assert sim.cells == {(18, 0), (18, 1), (18, 2), (19, 1)}
    assert sim.holes() == 2
    assert sim.aggregate_height() == 6
    assert sim.bumpiness() == 2


def test_holes_count_existing_grid_cells():
    grid = Grid.from_strings([
        "...",
        "#..",
        "..#",
        ".#.",
    ])
    assert Simulation(grid).holes() == 3


def test_sequence_accumulates_virtual_cells():
    grid = create_grid()
    piece = Tetromino('O')
    sim = simulate(grid, [(piece, 0), (piece, 0)])
    assert not sim.invalid
    assert sim.landing_rows == (18, 16)
    assert len(sim.cells) == 8
    assert sim.aggregate_height() == 8


def test_later_piece_blocked_by_earlier_virtual_piece():
    grid = create_grid(2, 4)
    piece = Tetromino('O', col=0)
    assert not simulate(grid, [(piece, 0), (piece, 2)]).invalid
    assert simulate(grid, [(piece, 0), (piece, 0)]).invalid
    assert simulate(grid, [(piece, 1), (piece, 3)]).invalid


def test_invalid_sentinels():
    sim = simulate(create_grid(), [(Tetromino('I'), 8)])
    assert sim.invalid
    assert sim.working is None
    assert sim.aggregate_height() == INVALID_HEIGHT == math.inf
    assert sim.lines_cleared() == INVALID_COUNT == -1
    assert sim.holes() == -1
    assert sim.bumpiness() == -1
    assert sim.resolve() is None
    assert sim.extend(Tetromino('O'), 0) is sim


def test_simulation_never_touches_caller_grid():
    grid = Grid.from_strings(["." * 10] * 19 + ["#########."])
    snapshot = grid.copy()
    sim = simulate(grid, [(Tetromino('I', 1), 9), (Tetromino('O'), 0)])
    sim.resolve()
    assert grid == snapshot


def test_extend_leaves_parent_untouched():
    root = Simulation(create_grid())
    child = root.extend(Tetromino('O'), 4)
    assert not root.cells
    assert root.aggregate_height() == 0
    assert child.aggregate_height() == 4


def test_features():
    sim = simulate(create_grid(), [(Tetromino('I'), 3)])
    assert sim.features() == {
        "aggregate_height": 4,
        "complete_lines": 0,
        "holes": 0,
        "bumpiness": 2,
    }
