# heuristics.py
import math

from core_game import Grid
from placement import Simulation

WEIGHTS: dict[str, float] = {
    "aggregate_height": -0.510066,
    "complete_lines": 0.760666,
    "holes": -0.35663,
    "bumpiness": -0.184483,
}


def score_features(features: dict[str, float], weights: dict[str, float] = WEIGHTS) -> float:
    return float(sum(weights.get(k, 0.0) * v for k, v in features.items()))


def evaluate(simulation: Simulation, weights: dict[str, float] = WEIGHTS) -> float:
    """Fitness of a simulated placement sequence; -inf when it cannot be placed."""
    if simulation.invalid:
        return -math.inf
    return score_features(simulation.features(), weights)


def evaluate_board(grid: Grid, weights: dict[str, float] = WEIGHTS) -> float:
    # A settled board is an empty placement sequence on itself
    return evaluate(Simulation(grid), weights)
