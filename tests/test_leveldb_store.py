"""Tests for the LevelDB backend."""

import unittest
from unittest import mock

from smt_storage.base import BranchKey
from smt_storage.config import StoreConfig
from smt_storage.errors import BackendError
from smt_storage.hashing import Blake3Hasher, HashAlgorithm, Sha256Hasher
from smt_storage.leveldb import BRANCH_DIR, LEAF_DIR, LevelDBKeyspace, LevelDBStore
from tests.test_base import StoreContractMixin, TempDirTestCase, h, sample_nodes


class TestLevelDBStore(StoreContractMixin, TempDirTestCase):

    def make_store(self):
        return LevelDBStore(self.tmpdir / "store")

    def test_keyspace_directories(self):
        self.assertTrue((self.tmpdir / "store" / LEAF_DIR).is_dir())
        self.assertTrue((self.tmpdir / "store" / BRANCH_DIR).is_dir())

    def test_default_hasher_follows_config(self):
        self.assertIs(self.store.hasher_class, Blake3Hasher)
        config = StoreConfig(backend="leveldb", hash_algorithm=HashAlgorithm.SHA256)
        with LevelDBStore(self.tmpdir / "sha", config=config) as store:
            self.assertIs(store.hasher_class, Sha256Hasher)

    def test_data_survives_reopen(self):
        key = BranchKey(12, h(0x0C))
        node = sample_nodes()[3]
        self.store.put(h(0xAA), b"leaf-value")
        self.store.insert_branch(key, node)
        self.store.close()

        with LevelDBStore(self.tmpdir / "store") as reopened:
            self.assertEqual(reopened.get(h(0xAA)), b"leaf-value")
            self.assertBranchNodesEqual(reopened.get_branch(key), node)

    def test_batch_is_written_on_finish(self):
        self.store.init_batch()
        self.store.put(h(0x01), b"pending")
        self.assertIsNone(self.store.leaves.db.get(h(0x01)))
        self.store.finish_batch()
        self.assertEqual(self.store.leaves.db.get(h(0x01)), b"pending")

    def test_close_commits_open_batch(self):
        path = self.tmpdir / "batched"
        store = LevelDBStore(path)
        store.init_batch()
        store.put(h(0x01), b"v")
        store.insert_branch(BranchKey(1, h(0x01)), sample_nodes()[0])
        store.close()

        with LevelDBStore(path) as reopened:
            self.assertEqual(reopened.get(h(0x01)), b"v")
            self.assertEqual(reopened.get_branch(BranchKey(1, h(0x01))), sample_nodes()[0])

    def test_error_inside_batch_drops_buffered_writes(self):
        path = self.tmpdir / "aborted"
        with self.assertLogs("smt_storage", level="WARNING") as logs:
            with self.assertRaises(RuntimeError):
                with LevelDBStore(path) as store:
                    store.init_batch()
                    store.put(h(0x01), b"v")
                    store.put(h(0x02), b"w")
                    raise RuntimeError("interrupted")
        self.assertTrue(store.closed)
        self.assertIn("dropped 2 buffered writes", "\n".join(logs.output))

        with LevelDBStore(path) as reopened:
            self.assertIsNone(reopened.get(h(0x01)))
            self.assertIsNone(reopened.get(h(0x02)))

    def test_failed_commit_resets_both_keyspaces(self):
        key = BranchKey(5, h(0x05))
        self.store.init_batch()
        self.store.put(h(0x05), b"leaf")
        self.store.insert_branch(key, sample_nodes()[1])
        with mock.patch.object(self.store.leaves, "commit_batch", side_effect=BackendError("disk full")):
            with self.assertLogs("smt_storage", level="WARNING") as logs:
                with self.assertRaises(BackendError):
                    self.store.finish_batch()
        self.assertIn("dropped 2 buffered writes", "\n".join(logs.output))

        self.store.insert_branch(key, sample_nodes()[2])
        self.store.put(h(0x05), b"leaf")
        self.assertIsNotNone(self.store.branches.db.get(key.to_bytes()))
        self.assertEqual(self.store.leaves.db.get(h(0x05)), b"leaf")

    def test_items_merge_pending_writes(self):
        self.store.put(h(0x01), b"one")
        self.store.put(h(0x02), b"two")
        self.store.init_batch()
        self.store.delete(h(0x01))
        self.store.put(h(0x03), b"three")
        self.assertEqual(
            list(self.store.leaves.items()),
            [(h(0x02), b"two"), (h(0x03), b"three")],
        )
        self.store.finish_batch()

    def test_unique_path_from_config(self):
        config = StoreConfig(base_path=self.tmpdir / "base", backend="leveldb")
        with LevelDBStore(config=config) as first, LevelDBStore(config=config) as second:
            self.assertNotEqual(first.path, second.path)
            self.assertEqual(first.path.parent, self.tmpdir / "base")
            first.put(h(0x01), b"first")
            self.assertIsNone(second.get(h(0x01)))

    def test_open_missing_without_create_fails(self):
        config = StoreConfig(backend="leveldb", create_if_missing=False)
        with self.assertRaises(BackendError):
            LevelDBStore(self.tmpdir / "missing", config=config)

    def test_second_handle_on_same_path_fails(self):
        with self.assertRaises(BackendError):
            LevelDBStore(self.tmpdir / "store")


class TestLevelDBKeyspace(TempDirTestCase):

    def test_close_is_idempotent(self):
        keyspace = LevelDBKeyspace(self.tmpdir / "ks")
        keyspace.put(b"k", b"v")
        keyspace.close()
        keyspace.close()
        self.assertTrue(keyspace.db.closed)

    def test_close_with_uncommitted_writes_warns(self):
        keyspace = LevelDBKeyspace(self.tmpdir / "ks")
        keyspace.begin_batch()
        keyspace.put(b"k", b"v")
        with self.assertLogs("smt_storage", level="WARNING") as logs:
            keyspace.close()
        self.assertIn("1 uncommitted writes", logs.output[0])

    def test_without_bloom_filter(self):
        config = StoreConfig(backend="leveldb", bloom_filter_bits=0, lru_cache_size=None)
        keyspace = LevelDBKeyspace(self.tmpdir / "plain", config)
        try:
            keyspace.put(b"k", b"v")
            self.assertTrue(keyspace.contains(b"k"))
            self.assertFalse(keyspace.contains(b"other"))
        finally:
            keyspace.close()


if __name__ == "__main__":
    unittest.main()
