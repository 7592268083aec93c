# agent.py
# Tabular Q-learning player: epsilon-greedy move choice over afterstate values,
# and experience-replay TD updates written back through the value store.

import logging
from collections import defaultdict

import numpy as np

from db_manager import QValueStore
from game import legal_moves, apply_move
from replay_buffer import ReplayBuffer
from state_encoder import encode_state

logger = logging.getLogger("Agent")

TIE_TOLERANCE = 1e-4


class QLearningAgent:
    name = "QLearningAgent"

    def __init__(self, config, value_store=None, rng=None):
        self.rng = rng if rng is not None else np.random.default_rng()
        self.value_store = value_store if value_store is not None else QValueStore(config.DB_PATH)
        self.replay_buffer = ReplayBuffer(config.REPLAY_BUFFER_SIZE, rng=self.rng)
        self.batch_size = config.BATCH_SIZE
        self.discount_factor = config.DISCOUNT_FACTOR
        self.epsilon_floor = config.EPSILON_FLOOR
        self._learning_rate = config.LEARNING_RATE
        self._epsilon = config.EPSILON

    @property
    def epsilon(self):
        return self._epsilon

    @property
    def learning_rate(self):
        return self._learning_rate

    def set_epsilon(self, value):
        self._epsilon = value

    def update_epsilon(self, decay_factor):
        self._epsilon = max(self._epsilon * decay_factor, self.epsilon_floor)

    def decide_move(self, board, player, epsilon=None):
        moves = legal_moves(board, player)
        if not moves:
            return None
        epsilon = self._epsilon if epsilon is None else epsilon

        if self.rng.random() < epsilon:
            return moves[self.rng.integers(len(moves))]

        # Greedy on the value of the board each move leads to. Near-equal values
        # count as ties so unseen (0.0) states are not always resolved by move order.
        values = [self.value_store.get(encode_state(apply_move(board, move, player))) for move in moves]
        max_q = max(values)
        # Ties are measured against the final maximum, not a running one, so move order never matters.
        best_moves = [move for move, q in zip(moves, values) if max_q - q < TIE_TOLERANCE]
        return best_moves[self.rng.integers(len(best_moves))]

    def record_transition(self, transition):
        self.replay_buffer.add(transition)

    def batch_update(self, new_transitions, learning_rate=None) -> int:
        """
        Adds this game's transitions to the replay buffer, then runs one TD update
        over `batch_size` samples drawn with replacement.

        Updates that land on the same state are averaged, so the result does not
        depend on sample order. Returns the number of states written, 0 when the
        buffer is still smaller than one batch.
        """
        lr = self._learning_rate if learning_rate is None else learning_rate
        for t in new_transitions:
            self.record_transition(t)

        if len(self.replay_buffer) < self.batch_size:
            logger.debug(f"Replay buffer has {len(self.replay_buffer)}/{self.batch_size} transitions; skipping update.")
            return 0

        batch = self.replay_buffer.sample(self.batch_size)
        sums, counts = defaultdict(float), defaultdict(int)
        for current_state, next_state, reward, done in batch:
            current_q = self.value_store.get(current_state)
            next_q = 0.0 if done else self.value_store.get(next_state)
            new_q = current_q + lr * (reward + self.discount_factor * next_q - current_q)
            sums[current_state] += new_q
            counts[current_state] += 1

        updates = {state: sums[state] / counts[state] for state in sums}
        return self.value_store.batch_set(updates)

    def clear_values(self):
        self.value_store.clear()
        self.replay_buffer.clear()
