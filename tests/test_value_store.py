import unittest
import sys
import os
import tempfile
import threading

# --- Path Setup ---
current_dir = os.path.dirname(os.path.abspath(__file__))
project_root = os.path.dirname(current_dir)
sys.path.insert(0, project_root)

# --- Project Imports ---
from db_manager import QValueStore, get_db_connection
from errors import StorageError


class TestQValueStore(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.db_path = os.path.join(self.tmp.name, "qvalues.db")
        self.store = QValueStore(self.db_path)

    def tearDown(self):
        self.store.close()
        self.tmp.cleanup()

    def reopen(self):
        """Simulates a process restart: drop the connection and load from disk again."""
        self.store.close()
        self.store = QValueStore(self.db_path)
        return self.store

    def test_absent_key_defaults_to_zero(self):
        self.assertEqual(self.store.get("never-seen"), 0.0)
        self.assertEqual(self.store.count(), 0)

    def test_set_then_get_survives_cold_start(self):
        self.store.set("s1", 1.25)
        self.store.set("s1", -3.5)  # last write wins
        self.store.set("s2", 7.0)
        self.assertEqual(self.store.get("s1"), -3.5)

        store = self.reopen()
        self.assertEqual(store.get("s1"), -3.5)
        self.assertEqual(store.get("s2"), 7.0)
        self.assertEqual(store.count(), 2)

    def test_failed_single_write_leaves_cache_unchanged(self):
        self.store.set("s1", 1.0)
        with self.assertRaises(StorageError):
            self.store.set("s1", "not a number")
        self.assertEqual(self.store.get("s1"), 1.0)
        self.assertEqual(self.reopen().get("s1"), 1.0)

    def test_batch_set_writes_everything(self):
        written = self.store.batch_set({"a": 1.0, "b": 2.0, "c": 3.0})
        self.assertEqual(written, 3)
        store = self.reopen()
        self.assertEqual(store.snapshot(), {"a": 1.0, "b": 2.0, "c": 3.0})

    def test_batch_failure_midway_rolls_back_everything(self):
        """A bad value after two good rows: none of the three may be visible afterwards."""
        self.store.set("a", 1.0)
        with self.assertRaises(StorageError):
            self.store.batch_set({"a": 2.0, "b": 3.0, "c": object()})

        self.assertEqual(self.store.get("a"), 1.0)
        self.assertEqual(self.store.get("b"), 0.0)
        self.assertEqual(self.store.count(), 1)

        store = self.reopen()
        self.assertEqual(store.snapshot(), {"a": 1.0})

    def test_batch_failure_from_sqlite_keeps_cache_consistent(self):
        self.store.set("a", 1.0)
        # Pull the table out from under the store so the transaction itself fails.
        with get_db_connection(self.db_path) as conn:
            conn.execute("DROP TABLE qvalues")
        with self.assertRaises(StorageError):
            self.store.batch_set({"a": 5.0, "b": 6.0})
        self.assertEqual(self.store.get("a"), 1.0)
        self.assertEqual(self.store.get("b"), 0.0)

    def test_empty_batch_is_a_no_op(self):
        self.assertEqual(self.store.batch_set({}), 0)
        self.assertEqual(self.store.count(), 0)

    def test_clear_drops_cache_and_table(self):
        self.store.batch_set({"a": 1.0, "b": 2.0})
        self.store.clear()
        self.assertEqual(self.store.count(), 0)
        self.assertEqual(self.store.get("a"), 0.0)
        self.assertEqual(self.reopen().count(), 0)

    def test_concurrent_writers(self):
        def writer(prefix):
            store_for_thread = self.store
            for i in range(25):
                store_for_thread.set(f"{prefix}-{i}", float(i))

        threads = [threading.Thread(target=writer, args=(f"t{n}",)) for n in range(4)]
        for t in threads: t.start()
        for t in threads: t.join()

        self.assertEqual(self.store.count(), 100)
        self.assertEqual(self.reopen().count(), 100)


if __name__ == '__main__':
    unittest.main(verbosity=2)
