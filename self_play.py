# self_play.py
"""
Headless games driven by the lookahead agent.

Turns alternate between a "player" and the "AI" sharing one board (odd turns
are the player's); both sides are played by the engine here, each taking the
move it finds for the piece at the front of the queue.
"""
import random
import statistics
import time
from concurrent.futures import ProcessPoolExecutor
from dataclasses import asdict, dataclass
from typing import Dict, List, Optional

from ai_agent import AIAgent
from core_game import COLS, HIDDEN_ROWS, ROWS, Tetromino, create_grid, tetrominoes
from placement import simulate

LINE_SCORES = {0: 0, 1: 100, 2: 300, 3: 500, 4: 800}
BAG_COPIES = 4
MIN_QUEUE = 3


class PieceQueue:
    """
    Shuffled queue of shape tags: four copies of every shape per refill, so
    the sequence stays fair without long single-shape streaks.
    """

    def __init__(self, seed: Optional[int] = None):
        self.rng = random.Random(seed)
        self.queue: List[str] = []
        self.refill()

    def refill(self):
        bag = list(tetrominoes) * BAG_COPIES
        self.rng.shuffle(bag)
        # Pieces are taken from the end, so new ones go in front
        self.queue = bag + self.queue

    def peek(self, n: int = 1) -> List[str]:
        while len(self.queue) < n:
            self.refill()
        return self.queue[::-1][:n]

    def pop(self) -> str:
        if len(self.queue) < MIN_QUEUE:
            self.refill()
        return self.queue.pop()


@dataclass
class GameResult:
    score: int = 0
    lines: int = 0
    pieces: int = 0
    player_score: int = 0
    player_lines: int = 0
    ai_score: int = 0
    ai_lines: int = 0
    topped_out: bool = False


def play_game(max_pieces: int = 100, lookahead: int = 1, seed: Optional[int] = None,
              weights: Optional[Dict[str, float]] = None,
              n_rows: int = ROWS + HIDDEN_ROWS, n_cols: int = COLS) -> GameResult:
    grid = create_grid(n_rows, n_cols)
    queue = PieceQueue(seed)
    agent = AIAgent(weights, lookahead)
    result = GameResult()
    turn = 1

    while result.pieces < max_pieces:
        decision = agent.choose_route(grid, queue.peek(lookahead))
        if not decision.legal:
            result.topped_out = True
            break

        column, rotation = decision.move
        piece = Tetromino(queue.pop()).rotate(rotation)
        simulation = simulate(grid, [(piece, column)])
        lines = simulation.lines_cleared()
        grid = simulation.resolve()

        points = LINE_SCORES.get(lines, 0)
        if turn % 2 == 1:
            result.player_score += points
            result.player_lines += lines
        else:
            result.ai_score += points
            result.ai_lines += lines
        result.score += points
        result.lines += lines
        result.pieces += 1
        turn += 1

    return result


def play_game_worker(args):
    """Worker function for parallel games"""
    max_pieces, lookahead, seed, weights = args
    return play_game(max_pieces, lookahead, seed, weights)


def run_games(games: int = 4, max_pieces: int = 100, lookahead: int = 1,
              processes: int = 1, seed: Optional[int] = None,
              weights: Optional[Dict[str, float]] = None) -> List[GameResult]:
    base = seed if seed is not None else random.randrange(1 << 30)
    game_args = [(max_pieces, lookahead, base + i, weights) for i in range(games)]

    if processes > 1:
        with ProcessPoolExecutor(max_workers=processes) as executor:
            return list(executor.map(play_game_worker, game_args))
    return [play_game_worker(args) for args in game_args]


def main():
    print("Tetris lookahead self-play")
    print("=" * 40)

    games, max_pieces, lookahead = 4, 200, 2
    start_time = time.time()
    results = run_games(games, max_pieces, lookahead, processes=min(games, 4), seed=0)
    elapsed = time.time() - start_time

    for i, result in enumerate(results, start=1):
        status = "topped out" if result.topped_out else "piece limit"
        print(f"[Game {i}] {result.score} points, {result.lines} lines, "
              f"{result.pieces} pieces ({status})")
        print(f"         player {result.player_score}/{result.player_lines} | "
              f"AI {result.ai_score}/{result.ai_lines}")

    totals = [asdict(r) for r in results]
    print(f"\n[Summary] Avg score: {statistics.mean(t['score'] for t in totals):.1f} | "
          f"Avg lines: {statistics.mean(t['lines'] for t in totals):.1f} | "
          f"Avg pieces: {statistics.mean(t['pieces'] for t in totals):.1f} | "
          f"Time: {elapsed:.1f}s")


if __name__ == "__main__":
    main()
