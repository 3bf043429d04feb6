"""Durable backend on LevelDB through plyvel."""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Tuple, Type, Union

import plyvel

from smt_storage.config import StoreConfig
from smt_storage.errors import BackendError, StorageError
from smt_storage.hashing import HasherBase, get_hasher_class
from smt_storage.logging_config import get_logger
from smt_storage.store_base import Keyspace, TreeStore

logger = get_logger(__name__)

LEAF_DIR = "leaf"
BRANCH_DIR = "branch"


@contextmanager
def _engine_errors(operation: str, path: Path) -> Iterator[None]:
    try:
        yield
    except plyvel.Error as e:
        logger.error("LevelDB %s failed at %s: %s", operation, path, e)
        raise BackendError(f"LevelDB {operation} failed at {path}: {e}") from e


class LevelDBKeyspace(Keyspace):
    """
    One LevelDB database used as a keyspace.

    Writes between :meth:`begin_batch` and :meth:`commit_batch` are buffered
    and applied through a single write batch; reads during the batch see the
    buffered writes.
    """

    def __init__(self, path: Union[str, Path], config: Optional[StoreConfig] = None):
        config = config or StoreConfig(backend="leveldb")
        self.path = Path(path)
        self._pending: Optional[dict[bytes, Optional[bytes]]] = None

        options = {
            "create_if_missing": config.create_if_missing,
            "write_buffer_size": config.write_buffer_size,
        }
        if config.bloom_filter_bits:
            options["bloom_filter_bits"] = config.bloom_filter_bits
        if config.lru_cache_size:
            options["lru_cache_size"] = config.lru_cache_size

        if config.create_if_missing:
            try:
                self.path.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise BackendError(f"cannot create LevelDB directory {self.path}: {e}") from e
        with _engine_errors("open", self.path):
            self.db = plyvel.DB(str(self.path), **options)
        logger.debug("LevelDB keyspace opened at %s", self.path)

    def _check_open(self) -> None:
        if self.db.closed:
            raise StorageError(f"LevelDB keyspace at {self.path} is closed")

    def get(self, key: bytes) -> Optional[bytes]:
        self._check_open()
        pending = self._pending
        if pending is not None and key in pending:
            return pending[key]
        with _engine_errors("get", self.path):
            return self.db.get(key)

    def put(self, key: bytes, value: bytes) -> None:
        self._check_open()
        if self._pending is not None:
            self._pending[key] = value
            return
        with _engine_errors("put", self.path):
            self.db.put(key, value)

    def delete(self, key: bytes) -> None:
        self._check_open()
        if self._pending is not None:
            self._pending[key] = None
            return
        with _engine_errors("delete", self.path):
            self.db.delete(key)

    def contains(self, key: bytes) -> bool:
        # Point lookups consult the per-table bloom filters first, so absent
        # keys rarely touch disk.
        return self.get(key) is not None

    def items(self) -> Iterator[Tuple[bytes, bytes]]:
        self._check_open()
        with _engine_errors("iterate", self.path):
            committed = list(self.db.iterator())
        if not self._pending:
            yield from committed
            return
        merged = dict(committed)
        for key, value in self._pending.items():
            if value is None:
                merged.pop(key, None)
            else:
                merged[key] = value
        for key in sorted(merged):
            yield key, merged[key]

    def begin_batch(self) -> None:
        self._check_open()
        self._pending = {}

    def commit_batch(self) -> None:
        pending, self._pending = self._pending, None
        if not pending:
            return
        self._check_open()
        with _engine_errors("batch write", self.path):
            with self.db.write_batch() as wb:
                for key, value in pending.items():
                    if value is None:
                        wb.delete(key)
                    else:
                        wb.put(key, value)
        logger.debug("LevelDB keyspace %s committed %d writes", self.path, len(pending))

    def discard_batch(self) -> int:
        pending, self._pending = self._pending, None
        return len(pending) if pending else 0

    def close(self) -> None:
        dropped = self.discard_batch()
        if dropped:
            logger.warning("LevelDB keyspace %s closed with %d uncommitted writes", self.path, dropped)
        if not self.db.closed:
            with _engine_errors("close", self.path):
                self.db.close()


class LevelDBStore(TreeStore):
    """
    Durable backend: separate LevelDB databases for leaves and branches,
    under ``<path>/leaf`` and ``<path>/branch``.

    Without an explicit *path* a fresh directory is derived from
    ``config.base_path``.
    """

    def __init__(
        self,
        path: Optional[Union[str, Path]] = None,
        config: Optional[StoreConfig] = None,
        hasher_class: Optional[Type[HasherBase]] = None,
        name: Optional[str] = None,
    ):
        config = config or StoreConfig(backend="leveldb")
        self.path = Path(path) if path is not None else config.unique_path("leveldb")
        if hasher_class is None:
            hasher_class = get_hasher_class(config.hash_algorithm)

        leaves = LevelDBKeyspace(self.path / LEAF_DIR, config)
        try:
            branches = LevelDBKeyspace(self.path / BRANCH_DIR, config)
        except BaseException:
            leaves.close()
            raise

        super().__init__(leaves, branches, hasher_class=hasher_class, name=name or f"LevelDBStore({self.path})")
        logger.info("[%s] opened LevelDB store", self.name)
