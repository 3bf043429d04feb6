"""
smt_storage — storage adapters for sparse Merkle tree benchmarks.

Quick-start imports::

    from smt_storage import MemoryStore, LevelDBStore, open_store

Backends persist leaves and codec-encoded branch nodes in two independent
keyspaces; hash adapters give every tree algorithm the same digest.
"""

from smt_storage.base import (
    HASH_SIZE,
    ZERO_HASH,
    BranchKey,
    BranchNode,
    MergeValue,
    MergeValueHash,
    MergeWithZero,
    to_hash,
)
from smt_storage.codec import (
    decode_branch_node,
    decode_merge_value,
    encode_branch_node,
    encode_merge_value,
)
from smt_storage.config import StoreConfig
from smt_storage.errors import (
    BackendError,
    FormatError,
    HasherConsumedError,
    MissingKeyError,
    StorageError,
    UnsupportedOperationError,
)
from smt_storage.factory import open_store
from smt_storage.hashing import (
    Blake3Hasher,
    HashAlgorithm,
    Sha256Hasher,
    get_hasher_class,
)
from smt_storage.leveldb import LevelDBKeyspace, LevelDBStore
from smt_storage.memory import MemoryKeyspace, MemoryStore
from smt_storage.store_base import Keyspace, TreeStore

__all__ = [
    # Primitives
    "HASH_SIZE",
    "ZERO_HASH",
    "BranchKey",
    "BranchNode",
    "MergeValue",
    "MergeValueHash",
    "MergeWithZero",
    "to_hash",
    # Codec
    "decode_branch_node",
    "decode_merge_value",
    "encode_branch_node",
    "encode_merge_value",
    # Hashing
    "Blake3Hasher",
    "HashAlgorithm",
    "Sha256Hasher",
    "get_hasher_class",
    # Stores
    "Keyspace",
    "LevelDBKeyspace",
    "LevelDBStore",
    "MemoryKeyspace",
    "MemoryStore",
    "StoreConfig",
    "TreeStore",
    "open_store",
    # Errors
    "BackendError",
    "FormatError",
    "HasherConsumedError",
    "MissingKeyError",
    "StorageError",
    "UnsupportedOperationError",
]
