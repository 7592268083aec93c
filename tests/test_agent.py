import unittest
from unittest.mock import patch
import numpy as np
import sys
import os
import tempfile

# --- Path Setup ---
current_dir = os.path.dirname(os.path.abspath(__file__))
project_root = os.path.dirname(current_dir)
sys.path.insert(0, project_root)

# --- Project Imports ---
from agent import QLearningAgent
from config import Config
from data_structures import Move, Transition
from db_manager import QValueStore
from game import BLACK, initial_board, apply_move, legal_moves
from state_encoder import encode_state


class AgentTestCase(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.config = Config()
        self.config.DB_PATH = os.path.join(self.tmp.name, "qvalues.db")
        self.config.BATCH_SIZE = 2
        self.config.REPLAY_BUFFER_SIZE = 10
        self.config.LEARNING_RATE = 0.5
        self.config.DISCOUNT_FACTOR = 0.9
        self.config.EPSILON = 0.0
        self.agent = self.make_agent()

    def tearDown(self):
        self.agent.value_store.close()
        self.tmp.cleanup()

    def make_agent(self, seed=0):
        return QLearningAgent(self.config, rng=np.random.default_rng(seed))


class TestDecideMove(AgentTestCase):

    def test_pass_when_no_legal_moves(self):
        full_board = np.ones((6, 6), dtype=np.int8)
        self.assertIsNone(self.agent.decide_move(full_board, BLACK))

    def test_exploration_returns_a_legal_move(self):
        board = initial_board()
        moves = legal_moves(board, BLACK)
        for _ in range(20):
            self.assertIn(self.agent.decide_move(board, BLACK, epsilon=1.0), moves)

    def test_greedy_picks_highest_valued_afterstate(self):
        board = initial_board()
        target = Move(3, 4)
        self.agent.value_store.set(encode_state(apply_move(board, target, BLACK)), 5.0)
        for _ in range(20):
            self.assertEqual(self.agent.decide_move(board, BLACK), target)

    def test_unseen_states_tie_and_are_chosen_uniformly(self):
        board = initial_board()
        chosen = {self.agent.decide_move(board, BLACK) for _ in range(200)}
        self.assertEqual(chosen, set(legal_moves(board, BLACK)))

    def test_values_within_tolerance_are_tied(self):
        board = initial_board()
        a, b = Move(1, 2), Move(2, 1)
        self.agent.value_store.set(encode_state(apply_move(board, a, BLACK)), 1.0)
        self.agent.value_store.set(encode_state(apply_move(board, b, BLACK)), 1.00005)
        chosen = {self.agent.decide_move(board, BLACK) for _ in range(200)}
        self.assertEqual(chosen, {a, b})


class TestEpsilon(AgentTestCase):

    def test_decay_never_goes_below_floor(self):
        self.agent.set_epsilon(0.5)
        for _ in range(1000):
            self.agent.update_epsilon(0.9)
        self.assertAlmostEqual(self.agent.epsilon, 0.01)

    def test_growth_is_capped_by_set_epsilon(self):
        initial = 0.2
        self.agent.set_epsilon(initial)
        for _ in range(100):
            self.agent.update_epsilon(1 / 0.9)
            if self.agent.epsilon > initial:
                self.agent.set_epsilon(initial)
        self.assertEqual(self.agent.epsilon, initial)


class TestBatchUpdate(AgentTestCase):

    def test_no_update_below_batch_size(self):
        written = self.agent.batch_update([Transition("s", "t", 10.0, True)], 0.5)
        self.assertEqual(written, 0)
        self.assertEqual(self.agent.value_store.count(), 0)
        self.assertEqual(len(self.agent.replay_buffer), 1)

    def test_td_update_for_non_terminal_transition(self):
        self.config.BATCH_SIZE = 1
        agent = self.make_agent()
        agent.value_store.batch_set({"s": 1.0, "t": 2.0})
        agent.batch_update([Transition("s", "t", 0.5, False)], 0.1)
        # 1.0 + 0.1 * (0.5 + 0.9 * 2.0 - 1.0)
        self.assertAlmostEqual(agent.value_store.get("s"), 1.13)

    def test_terminal_transition_ignores_successor_value(self):
        self.config.BATCH_SIZE = 1
        agent = self.make_agent()
        agent.value_store.set("t", 50.0)
        agent.batch_update([Transition("s", "t", 100.0, True)], 0.5)
        self.assertAlmostEqual(agent.value_store.get("s"), 50.0)

    def test_duplicate_states_are_averaged_regardless_of_order(self):
        t1 = Transition("s", "x", 10.0, True)   # -> 0 + 0.5 * 10 = 5
        t2 = Transition("s", "y", -4.0, True)   # -> 0 + 0.5 * -4 = -2
        for order in ([t1, t2], [t2, t1]):
            self.agent.clear_values()
            with patch.object(self.agent.replay_buffer, 'sample', return_value=order):
                written = self.agent.batch_update([t1, t2], 0.5)
            self.assertEqual(written, 1)
            self.assertAlmostEqual(self.agent.value_store.get("s"), 1.5)

    def test_update_reaches_durable_storage(self):
        self.agent.batch_update([Transition("a", "b", 2.0, True), Transition("b", "c", 4.0, True)], 0.5)
        path = self.config.DB_PATH
        self.agent.value_store.close()
        reloaded = QValueStore(path)
        self.assertEqual(reloaded.snapshot(), self.agent.value_store.snapshot())

    def test_replay_buffer_is_bounded(self):
        self.agent.batch_update([Transition(f"s{i}", f"s{i + 1}", 0.0, False) for i in range(25)], 0.5)
        self.assertEqual(len(self.agent.replay_buffer), self.config.REPLAY_BUFFER_SIZE)
        self.assertEqual(next(iter(self.agent.replay_buffer)).current_state, "s15")


if __name__ == '__main__':
    unittest.main(verbosity=2)
