"""Store factory."""

from pathlib import Path
from typing import Optional, Union

from smt_storage.config import StoreConfig
from smt_storage.hashing import get_hasher_class
from smt_storage.leveldb import LevelDBStore
from smt_storage.logging_config import setup_logging
from smt_storage.memory import MemoryStore
from smt_storage.store_base import TreeStore


def open_store(
    config: Optional[StoreConfig] = None,
    path: Optional[Union[str, Path]] = None,
    name: Optional[str] = None,
) -> TreeStore:
    """
    Open the backend described by *config*.

    Args:
        config: Store configuration (default: ``StoreConfig.from_env()``)
        path: Directory of a durable store; derived from ``config.base_path``
            when omitted
        name: Label used in log messages

    Returns:
        An open TreeStore. Close it, or use it as a context manager.
    """
    if config is None:
        config = StoreConfig.from_env()
    setup_logging(level=config.level).setLevel(config.level)

    hasher_class = get_hasher_class(config.hash_algorithm)
    if config.backend == "memory":
        return MemoryStore(hasher_class=hasher_class, name=name)
    return LevelDBStore(path=path, config=config, hasher_class=hasher_class, name=name)
