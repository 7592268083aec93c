import unittest
import sys
import os
import json
import tempfile
from dataclasses import replace

current_dir = os.path.dirname(os.path.abspath(__file__))
project_root = os.path.dirname(current_dir)
sys.path.insert(0, project_root)

from errors import SessionError
from training_session import TrainingSession


class TestTrainingSession(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.tmp.name, "session.json")

    def tearDown(self):
        self.tmp.cleanup()

    def test_save_load_round_trip(self):
        session = TrainingSession(total_games=500, completed_games=120, wins=70, opponent_wins=40,
                                  agent_name="QLearningAgent", opponent_name="OpponentMix")
        session.save(self.path)
        loaded = TrainingSession.load(self.path)

        self.assertIsNotNone(loaded.last_save_time)
        self.assertEqual(replace(loaded, last_save_time=None), replace(session, last_save_time=None))

    def test_file_holds_exactly_the_session_fields(self):
        TrainingSession(total_games=3).save(self.path)
        with open(self.path, encoding="utf-8") as f:
            raw = json.load(f)
        self.assertEqual(set(raw), {"total_games", "completed_games", "wins", "opponent_wins",
                                    "start_time", "last_save_time", "agent_name", "opponent_name"})

    def test_exists_and_clear(self):
        self.assertFalse(TrainingSession.exists(self.path))
        self.assertIsNone(TrainingSession.load(self.path))
        TrainingSession(total_games=3).save(self.path)
        self.assertTrue(TrainingSession.exists(self.path))
        TrainingSession.clear(self.path)
        self.assertFalse(TrainingSession.exists(self.path))
        TrainingSession.clear(self.path)  # clearing twice is harmless

    def test_save_leaves_no_temp_files(self):
        session = TrainingSession(total_games=3)
        session.save(self.path)
        session.completed_games = 1
        session.save(self.path)
        self.assertEqual(os.listdir(self.tmp.name), ["session.json"])

    def test_corrupt_file_raises(self):
        with open(self.path, "w", encoding="utf-8") as f:
            f.write("{not json")
        with self.assertRaises(SessionError):
            TrainingSession.load(self.path)

    def test_completed_cannot_exceed_total(self):
        with self.assertRaises(SessionError):
            TrainingSession(total_games=3, completed_games=4)


if __name__ == '__main__':
    unittest.main(verbosity=2)
