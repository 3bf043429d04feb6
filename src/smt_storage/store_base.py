"""
Key-value capability shared by all backends.

A backend is a pair of :class:`Keyspace` objects, one for leaves and one for
branch nodes, wrapped in a :class:`TreeStore`. The store exposes the three
persistence shapes expected by tree algorithms:

- ``Database`` (monotree): ``get``/``put``/``delete`` plus batch hooks.
- ``StoreReadOps``/``StoreWriteOps`` (sparse-merkle-tree): typed leaf and
  branch access, branch nodes going through :mod:`smt_storage.codec`.
- ``KVStore`` (lsmtree): ``get``/``set``/``remove``/``contains``.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Iterator, Optional, Tuple, Type

from smt_storage.base import BranchKey, BranchNode, BytesLike, short_hash, to_hash
from smt_storage.codec import decode_branch_node, encode_branch_node
from smt_storage.errors import BackendError, FormatError, MissingKeyError, StorageError
from smt_storage.hashing import Blake3Hasher, HasherBase
from smt_storage.logging_config import get_logger

logger = get_logger(__name__)


class Keyspace(ABC):
    """
    One independent namespace of raw byte keys and values.

    ``contains`` must never report a stored key as absent. Backends whose
    probe may report absent keys as present set ``EXACT_CONTAINS = False``.
    """

    EXACT_CONTAINS = True

    @abstractmethod
    def get(self, key: bytes) -> Optional[bytes]:
        """Return the stored value or None."""
        pass

    @abstractmethod
    def put(self, key: bytes, value: bytes) -> None:
        """Insert or overwrite *key*."""
        pass

    @abstractmethod
    def delete(self, key: bytes) -> None:
        """Remove *key*; removing an absent key does nothing."""
        pass

    @abstractmethod
    def contains(self, key: bytes) -> bool:
        pass

    @abstractmethod
    def items(self) -> Iterator[Tuple[bytes, bytes]]:
        """Iterate stored pairs in ascending key order."""
        pass

    def begin_batch(self) -> None:
        """Start grouping writes; a no-op without native batching."""

    def commit_batch(self) -> None:
        """Flush writes grouped since :meth:`begin_batch`."""

    def discard_batch(self) -> int:
        """Drop writes grouped since :meth:`begin_batch`; return how many."""
        return 0

    def close(self) -> None:
        """Release the keyspace's resources."""


class TreeStore:
    """
    Leaf and branch keyspaces behind the persistence shapes of tree algorithms.

    Leaf keys are 32-byte hashes; branch records are keyed by
    :meth:`BranchKey.to_bytes` and stored in codec form. Removing a leaf with
    :meth:`remove` ("take") requires the key to be present and raises
    :class:`MissingKeyError` otherwise, in every backend.

    Use as a context manager, or call :meth:`close`, to release both
    keyspaces.
    """

    def __init__(
        self,
        leaves: Keyspace,
        branches: Keyspace,
        hasher_class: Type[HasherBase] = Blake3Hasher,
        name: Optional[str] = None,
    ):
        self.leaves = leaves
        self.branches = branches
        self.hasher_class = hasher_class
        self.name = name or type(self).__name__
        self._in_batch = False
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _check_open(self) -> None:
        if self._closed:
            raise StorageError(f"{self.name} is closed")

    def _debug(self, message, *args) -> None:
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("[%s] " + message, self.name, *args)

    # Database / KVStore: leaf keyspace

    def get(self, key: BytesLike) -> Optional[bytes]:
        """Return the value stored under leaf *key*, or None."""
        self._check_open()
        return self.leaves.get(to_hash(key))

    def put(self, key: BytesLike, value: BytesLike) -> None:
        """Store *value* under leaf *key*, overwriting silently."""
        self._check_open()
        key = to_hash(key)
        self._debug("put leaf %s (%d bytes)", short_hash(key), len(value))
        self.leaves.put(key, bytes(value))

    def set(self, key: BytesLike, value: BytesLike) -> None:
        self.put(key, value)

    def delete(self, key: BytesLike) -> None:
        """Remove leaf *key* if present."""
        self._check_open()
        key = to_hash(key)
        self._debug("delete leaf %s", short_hash(key))
        self.leaves.delete(key)

    def remove(self, key: BytesLike) -> bytes:
        """
        Take leaf *key*: delete it and return the value it held.

        Raises:
            MissingKeyError: If *key* is not stored.
        """
        self._check_open()
        key = to_hash(key)
        value = self.leaves.get(key)
        if value is None:
            raise MissingKeyError(key)
        self.leaves.delete(key)
        self._debug("took leaf %s", short_hash(key))
        return value

    def contains(self, key: BytesLike) -> bool:
        """Existence probe on the leaf keyspace; never a false negative."""
        self._check_open()
        return self.leaves.contains(to_hash(key))

    def init_batch(self) -> None:
        self._check_open()
        if self._in_batch:
            raise StorageError(f"{self.name}: a batch is already open")
        self.leaves.begin_batch()
        self.branches.begin_batch()
        self._in_batch = True

    def finish_batch(self) -> None:
        """
        Apply the writes buffered since :meth:`init_batch`.

        If a keyspace fails to commit, the writes still buffered are dropped
        (and logged) before the error propagates; the store leaves batch mode
        either way.
        """
        self._check_open()
        if not self._in_batch:
            return
        try:
            self.leaves.commit_batch()
            self.branches.commit_batch()
        finally:
            self._in_batch = False
            dropped = self._discard_batch()
            if dropped:
                logger.warning("[%s] batch commit failed, dropped %d buffered writes", self.name, dropped)

    def _discard_batch(self) -> int:
        return self.leaves.discard_batch() + self.branches.discard_batch()

    # StoreReadOps / StoreWriteOps

    def get_leaf(self, leaf_key: BytesLike) -> Optional[bytes]:
        """
        Return the 32-byte leaf hash stored under *leaf_key*, or None.

        Raises:
            FormatError: If the stored value is not a 32-byte hash.
        """
        value = self.get(leaf_key)
        if value is None:
            return None
        try:
            return to_hash(value)
        except ValueError as e:
            raise FormatError(f"leaf {short_hash(bytes(leaf_key))} does not hold a hash: {e}") from e

    def insert_leaf(self, leaf_key: BytesLike, leaf: BytesLike) -> None:
        self.put(leaf_key, to_hash(leaf))

    def remove_leaf(self, leaf_key: BytesLike) -> None:
        self.delete(leaf_key)

    def get_branch(self, branch_key: BranchKey) -> Optional[BranchNode]:
        """
        Return the branch node stored at *branch_key*, or None.

        Raises:
            FormatError: If the stored record is corrupt.
        """
        self._check_open()
        data = self.branches.get(branch_key.to_bytes())
        if data is None:
            return None
        try:
            return decode_branch_node(data)
        except FormatError:
            logger.error("[%s] corrupt branch record at %r", self.name, branch_key)
            raise

    def insert_branch(self, branch_key: BranchKey, branch: BranchNode) -> None:
        self._check_open()
        self._debug("insert branch %r", branch_key)
        self.branches.put(branch_key.to_bytes(), encode_branch_node(branch))

    def remove_branch(self, branch_key: BranchKey) -> None:
        self._check_open()
        self._debug("remove branch %r", branch_key)
        self.branches.delete(branch_key.to_bytes())

    # Lifecycle

    def close(self) -> None:
        """
        Close both keyspaces; calling it again does nothing.

        A batch that is still open is committed first.
        """
        if self._closed:
            return
        try:
            if self._in_batch:
                logger.info("[%s] committing open batch before close", self.name)
                self.finish_batch()
        finally:
            self._release()

    def _release(self) -> None:
        self._closed = True
        errors = []
        for keyspace in (self.leaves, self.branches):
            try:
                keyspace.close()
            except Exception as e:
                errors.append(e)
        if errors:
            logger.error("[%s] failed to close cleanly: %s", self.name, errors[0])
            raise BackendError(f"{self.name}: failed to close: {errors[0]}") from errors[0]
        logger.info("[%s] closed", self.name)

    def __enter__(self) -> "TreeStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None and self._in_batch and not self._closed:
            self._in_batch = False
            dropped = self._discard_batch()
            logger.warning(
                "[%s] %s raised inside an open batch, dropped %d buffered writes",
                self.name, exc_type.__name__, dropped,
            )
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"{type(self).__name__}(name={self.name!r}, hasher={self.hasher_class.__name__}, {state})"
