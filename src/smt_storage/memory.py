"""In-memory ordered backend."""

from __future__ import annotations

from typing import Iterator, Optional, Tuple, Type

from sortedcontainers import SortedDict

from smt_storage.hashing import Blake3Hasher, HasherBase
from smt_storage.logging_config import get_logger
from smt_storage.store_base import Keyspace, TreeStore

logger = get_logger(__name__)


class MemoryKeyspace(Keyspace):
    """
    Ordered mapping of byte keys to byte values.

    ``entries`` is a :class:`SortedDict`, so reads and writes are O(log n)
    and iteration runs in key order. Membership is exact.
    """
    __slots__ = ("entries",)

    def __init__(self):
        self.entries: SortedDict = SortedDict()

    def get(self, key: bytes) -> Optional[bytes]:
        return self.entries.get(key)

    def put(self, key: bytes, value: bytes) -> None:
        self.entries[key] = value

    def delete(self, key: bytes) -> None:
        self.entries.pop(key, None)

    def contains(self, key: bytes) -> bool:
        return key in self.entries

    def items(self) -> Iterator[Tuple[bytes, bytes]]:
        # snapshot, callers may write while iterating
        yield from list(self.entries.items())

    def __len__(self) -> int:
        return len(self.entries)

    def close(self) -> None:
        self.entries.clear()


class MemoryStore(TreeStore):
    """Reference backend: two in-memory keyspaces, nothing persisted."""

    def __init__(self, hasher_class: Type[HasherBase] = Blake3Hasher, name: Optional[str] = None):
        super().__init__(MemoryKeyspace(), MemoryKeyspace(), hasher_class=hasher_class, name=name)
        logger.info("[%s] opened in-memory store", self.name)
