"""
ASV benchmarks for the storage backends.

Each store is pre-filled with ``tree_size`` random leaves and branch nodes,
then a single key is repeatedly inserted and removed again, as a tree
algorithm does when benchmarked with an update followed by a removal.
"""

import gc

from smt_storage.base import BranchKey, BranchNode, MergeValueHash, MergeWithZero
from smt_storage.hashing import get_hasher_class
from benchmarks.benchmark_utils import DEFAULT_BENCHMARK_SEED, BaseBenchmark, BenchmarkUtils

BACKENDS = ['memory', 'leveldb']
HASH_ALGORITHMS = ['blake3', 'sha256']


class StoreInsertRemoveBenchmarks(BaseBenchmark):
    """Leaf and branch write/remove cycles on a populated store."""

    params = [
        BACKENDS,
        HASH_ALGORITHMS,
        [1000, 10000],  # leaves already in the store
    ]
    param_names = ['backend', 'hash_algorithm', 'tree_size']

    min_run_count = 5

    def setup(self, backend, hash_algorithm, tree_size):
        store = self.open_store(backend, hash_algorithm)
        digest = store.hasher_class.digest

        keys = BenchmarkUtils.random_hashes(tree_size + 1, seed=DEFAULT_BENCHMARK_SEED + tree_size)
        self.key = keys.pop()
        self.leaf = digest(self.key)

        store.init_batch()
        for height, key in enumerate(keys):
            leaf = digest(key)
            store.insert_leaf(key, leaf)
            store.insert_branch(
                BranchKey(height % 256, key),
                BranchNode(MergeValueHash(leaf), MergeWithZero(key, leaf, height % 256)),
            )
        store.finish_batch()

        self.branch_key = BranchKey(0, self.key)
        self.branch = BranchNode(MergeValueHash(self.leaf), MergeValueHash.zero())

        gc.collect()
        gc.disable()  # Enabled in teardown

    def time_leaf_insert_remove(self, backend, hash_algorithm, tree_size):
        """Insert a leaf, read it back, then remove it."""
        store = self.store
        store.insert_leaf(self.key, self.leaf)
        store.get_leaf(self.key)
        store.remove_leaf(self.key)

    def time_leaf_set_take(self, backend, hash_algorithm, tree_size):
        """Key-value shape: set a value and take it back out."""
        self.store.set(self.key, self.leaf)
        self.store.remove(self.key)

    def time_branch_insert_get_remove(self, backend, hash_algorithm, tree_size):
        """Round-trip a branch node through the codec and the branch keyspace."""
        store = self.store
        store.insert_branch(self.branch_key, self.branch)
        store.get_branch(self.branch_key)
        store.remove_branch(self.branch_key)


class HasherBenchmarks(BaseBenchmark):
    """Throughput of the hash adapters in their two shapes."""

    params = [HASH_ALGORITHMS]
    param_names = ['hash_algorithm']

    def setup(self, hash_algorithm):
        self.hasher_class = get_hasher_class(hash_algorithm)
        self.hashes = BenchmarkUtils.random_hashes(256)

    def time_one_shot_digest(self, hash_algorithm):
        digest = self.hasher_class.digest
        for h in self.hashes:
            digest(h)

    def time_streaming_merge(self, hash_algorithm):
        """Hash pairs the way a sparse Merkle tree merges two children."""
        new = self.hasher_class.new
        hashes = self.hashes
        for i in range(0, len(hashes) - 1, 2):
            hasher = new()
            hasher.write_byte(1)
            hasher.write_h256(hashes[i])
            hasher.write_h256(hashes[i + 1])
            hasher.finish()
