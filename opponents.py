# opponents.py
# The closed set of players a game can seat. Every player exposes `name` and
# `decide_move(board, player) -> Move | None`; PlayerKind picks the implementation.

from enum import Enum

import numpy as np

from agent import QLearningAgent
from data_structures import Move
from game import BOARD_SIZE, legal_moves, apply_move, is_terminal, score


class PlayerKind(Enum):
    RANDOM = "random"
    HEURISTIC = "heuristic"
    HEURISTIC_VARIANT = "heuristic_variant"
    Q_LEARNING = "q_learning"
    HUMAN = "human"


POSITION_VALUES = np.array([
    [ 30, -12,  0,  0, -12,  30],
    [-12, -15, -3, -3, -15, -12],
    [  0,  -3,  0,  0,  -3,   0],
    [  0,  -3,  0,  0,  -3,   0],
    [-12, -15, -3, -3, -15, -12],
    [ 30, -12,  0,  0, -12,  30],
], dtype=np.int32)

MOBILITY_WEIGHT = 5
FINAL_SCORE_WEIGHT = 100


class RandomPlayer:
    name = "RandomAI"

    def __init__(self, rng=None):
        self.rng = rng if rng is not None else np.random.default_rng()

    def decide_move(self, board, player):
        moves = legal_moves(board, player)
        if not moves:
            return None
        return moves[self.rng.integers(len(moves))]


class HeuristicPlayer:
    """
    One-ply search over a positional table. The variant flavour perturbs the table
    once at construction and plays a random legal move `random_factor` of the time.
    """
    def __init__(self, kind=PlayerKind.HEURISTIC, rng=None, random_factor=0.1, noise=5):
        if kind not in (PlayerKind.HEURISTIC, PlayerKind.HEURISTIC_VARIANT):
            raise ValueError(f"HeuristicPlayer cannot play as {kind}")
        self.kind = kind
        self.rng = rng if rng is not None else np.random.default_rng()
        self.position_values = POSITION_VALUES.copy()
        self.random_factor = 0.0
        if kind is PlayerKind.HEURISTIC_VARIANT:
            self.position_values += self.rng.integers(-noise, noise + 1, size=POSITION_VALUES.shape).astype(np.int32)
            self.random_factor = random_factor

    @property
    def name(self):
        return "SimpleAIVariant" if self.kind is PlayerKind.HEURISTIC_VARIANT else "SimpleAI"

    def evaluate(self, board, player):
        # Own stones add their square value, opponent stones subtract it.
        total = int((self.position_values * board).sum()) * player
        if is_terminal(board):
            return total + score(board) * player * FINAL_SCORE_WEIGHT
        return total + (len(legal_moves(board, player)) - len(legal_moves(board, -player))) * MOBILITY_WEIGHT

    def decide_move(self, board, player):
        moves = legal_moves(board, player)
        if not moves:
            return None
        if self.random_factor and self.rng.random() < self.random_factor:
            return moves[self.rng.integers(len(moves))]

        evaluations = [self.evaluate(apply_move(board, move, player), player) for move in moves]
        best = max(evaluations)
        best_moves = [m for m, e in zip(moves, evaluations) if e == best]
        return best_moves[self.rng.integers(len(best_moves))]


class HumanPlayer:
    name = "Human Player"

    def __init__(self, input_fn=input, output_fn=print):
        self.input_fn = input_fn
        self.output_fn = output_fn

    def decide_move(self, board, player):
        moves = legal_moves(board, player)
        if not moves:
            self.output_fn("No legal moves. You pass.")
            return None

        self.output_fn("\nValid moves: " + " ".join(f"({m.row}, {m.col})" for m in moves))
        while True:
            parts = self.input_fn("\nEnter your move (row col): ").strip().split()
            if len(parts) != 2:
                self.output_fn("Invalid input format. Please enter two numbers separated by space.")
                continue
            try:
                row, col = int(parts[0]), int(parts[1])
            except ValueError:
                self.output_fn("Invalid input format. Please enter numbers only.")
                continue
            if not (0 <= row < BOARD_SIZE and 0 <= col < BOARD_SIZE):
                self.output_fn(f"Invalid position. Row and column must be between 0 and {BOARD_SIZE - 1}.")
                continue
            if Move(row, col) not in moves:
                self.output_fn("Invalid move. Please choose from the valid moves listed above.")
                continue
            return Move(row, col)


def create_player(kind, config=None, rng=None, agent=None):
    """Factory over PlayerKind. A Q_LEARNING seat reuses `agent` when given."""
    kind = PlayerKind(kind)
    if kind is PlayerKind.RANDOM:
        return RandomPlayer(rng=rng)
    if kind in (PlayerKind.HEURISTIC, PlayerKind.HEURISTIC_VARIANT):
        return HeuristicPlayer(kind, rng=rng)
    if kind is PlayerKind.HUMAN:
        return HumanPlayer()
    if agent is not None:
        return agent
    if config is None:
        raise ValueError("A Q-learning player needs a config")
    return QLearningAgent(config, rng=rng)
