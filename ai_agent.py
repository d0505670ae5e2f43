# ai_agent.py
from typing import Optional, Sequence

from core_game import Grid
from heuristics import WEIGHTS, evaluate, evaluate_board
from placement import Simulation
from search import MAX_LOOKAHEAD, Move, PieceLike, SearchResult, find_best_move


class AIAgent:
    def __init__(self, weights: Optional[dict[str, float]] = None, lookahead: int = 1,
                 maximizing: bool = True):
        if not 1 <= lookahead <= MAX_LOOKAHEAD:
            raise ValueError(f"lookahead must be between 1 and {MAX_LOOKAHEAD}, got {lookahead}")
        self.weights: dict[str, float] = dict(weights or WEIGHTS)
        self.lookahead = lookahead
        # True: ply 0 is our own move and picks the highest score
        self.maximizing = maximizing

    # ----------------------------
    # Feature extraction
    # ----------------------------
    def get_features(self, grid: Grid) -> dict[str, float]:
        return Simulation(grid).features()

    def evaluate_board(self, grid: Grid) -> float:
        return evaluate_board(grid, self.weights)

    def _score(self, simulation: Simulation) -> float:
        return evaluate(simulation, self.weights)

    # ----------------------------
    # Decision
    # ----------------------------
    def choose_route(self, grid: Grid, pieces: Sequence[PieceLike]) -> SearchResult:
        """Search the first `lookahead` pieces of the queue."""
        return find_best_move(grid, list(pieces)[:self.lookahead], self.maximizing, self._score)

    def choose_action(self, grid: Grid, pieces: Sequence[PieceLike]) -> Optional[Move]:
        """(column, rotation) for the current piece, or None if it cannot be placed."""
        return self.choose_route(grid, pieces).move
