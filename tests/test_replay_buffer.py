import unittest
import numpy as np
import sys
import os

current_dir = os.path.dirname(os.path.abspath(__file__))
project_root = os.path.dirname(current_dir)
sys.path.insert(0, project_root)

from replay_buffer import ReplayBuffer
from data_structures import Transition


def make_transition(i, done=False):
    return Transition(f"s{i}", f"s{i + 1}", float(i), done)


class TestReplayBuffer(unittest.TestCase):

    def test_fifo_bound_keeps_most_recent_in_order(self):
        buffer = ReplayBuffer(capacity=5)
        for i in range(12):
            buffer.add(make_transition(i))
        self.assertEqual(len(buffer), 5)
        self.assertEqual([t.current_state for t in buffer], ["s7", "s8", "s9", "s10", "s11"])

    def test_under_capacity_keeps_everything(self):
        buffer = ReplayBuffer(capacity=10)
        buffer.extend(make_transition(i) for i in range(3))
        self.assertEqual(len(buffer), 3)
        self.assertEqual(buffer.sample(0), [])

    def test_sample_is_with_replacement(self):
        buffer = ReplayBuffer(capacity=10, rng=np.random.default_rng(0))
        buffer.add(make_transition(0))
        buffer.add(make_transition(1))
        batch = buffer.sample(50)
        self.assertEqual(len(batch), 50)
        # Two items, fifty draws: duplicates are unavoidable and both items should appear.
        self.assertEqual({t.current_state for t in batch}, {"s0", "s1"})

    def test_sample_on_empty_buffer(self):
        self.assertIsNone(ReplayBuffer(capacity=3).sample(2))

    def test_capacity_must_be_positive(self):
        with self.assertRaises(ValueError):
            ReplayBuffer(capacity=0)

    def test_clear(self):
        buffer = ReplayBuffer(capacity=3)
        buffer.add(make_transition(0))
        buffer.clear()
        self.assertEqual(len(buffer), 0)


if __name__ == '__main__':
    unittest.main(verbosity=2)
