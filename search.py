# search.py
"""
Lookahead search over (column, rotation) placements.

`evaluate` builds the full tree: one ply per upcoming piece, every legal
(column, rotation) edge explored, leaves scored by the heuristic over the
whole placement sequence from the root. `resolve` folds the tree with
alternating minimax. Ply 0 minimizes unless `maximizing=True` is passed
(two agents sharing one board and taking alternate turns); ties keep the
first edge visited, columns left to right and rotations 0 to 3.
"""
import math
from dataclasses import dataclass, field
from typing import Callable, Dict, List, NamedTuple, Optional, Sequence, Union

from core_game import ROTATION_COUNT, Grid, Tetromino
from heuristics import evaluate as heuristic_score
from placement import Simulation

MAX_LOOKAHEAD = 3

PieceLike = Union[str, Tetromino]


class Move(NamedTuple):
    column: int
    rotation: int


@dataclass
class SearchNode:
    score: Optional[float] = None
    children: Dict[Move, "SearchNode"] = field(default_factory=dict)

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def size(self) -> int:
        return 1 + sum(child.size() for child in self.children.values())


@dataclass(frozen=True)
class SearchResult:
    score: float
    route: List[Move]

    @property
    def legal(self) -> bool:
        """False when the first piece has nowhere to go (board topped out)."""
        return bool(self.route)

    @property
    def move(self) -> Optional[Move]:
        return self.route[0] if self.route else None


def _as_pieces(pieces: Sequence[PieceLike]) -> List[Tetromino]:
    pieces = list(pieces)
    if not pieces:
        raise ValueError("Piece sequence must not be empty")
    if len(pieces) > MAX_LOOKAHEAD:
        raise ValueError(f"Lookahead of {len(pieces)} pieces exceeds the limit of {MAX_LOOKAHEAD}")
    return [p if isinstance(p, Tetromino) else Tetromino(p) for p in pieces]


def _expand(simulation: Simulation, pieces: List[Tetromino], depth: int,
            scorer: Callable[[Simulation], float]) -> SearchNode:
    if depth == len(pieces):
        return SearchNode(score=scorer(simulation))

    node = SearchNode()
    piece = pieces[depth]
    for column in range(simulation.grid.cols):
        for rotation in range(ROTATION_COUNT):
            edge_piece = Tetromino(piece.shape, rotation, piece.row, piece.col)
            child = simulation.extend(edge_piece, column)
            if child.invalid:
                continue
            node.children[Move(column, rotation)] = _expand(child, pieces, depth + 1, scorer)

    if not node.children:
        # Dead end: this piece cannot be placed anywhere
        node.score = -math.inf
    return node


def evaluate(grid: Grid, pieces: Sequence[PieceLike],
             scorer: Callable[[Simulation], float] = heuristic_score) -> SearchNode:
    """Full evaluation tree for placing `pieces` in order on `grid`."""
    return _expand(Simulation(grid), _as_pieces(pieces), 0, scorer)


def resolve(node: SearchNode, maximizing: bool = False) -> SearchResult:
    if not node.children:
        score = node.score if node.score is not None else -math.inf
        return SearchResult(score, [])

    best_move, best = None, None
    for move, child in node.children.items():
        outcome = resolve(child, not maximizing)
        if best is None:
            better = True
        elif maximizing:
            better = outcome.score > best.score
        else:
            better = outcome.score < best.score
        if better:
            best_move, best = move, outcome
    return SearchResult(best.score, [best_move] + best.route)


def find_best_move(grid: Grid, pieces: Sequence[PieceLike], maximizing: bool = False,
                   scorer: Callable[[Simulation], float] = heuristic_score) -> SearchResult:
    """
    Resolved route, one (column, rotation) per piece. `legal` is False when the
    first piece cannot be placed; the route can be shorter than `pieces` when a
    later piece in the chosen line has no placement.
    """
    return resolve(evaluate(grid, pieces, scorer), maximizing)
