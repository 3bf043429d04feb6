"""Store configuration."""

import logging
import os
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from smt_storage.hashing import HashAlgorithm

BACKENDS = ("memory", "leveldb")


def _env_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class StoreConfig:
    """
    Configuration for opening a store.

    Attributes:
        base_path: Directory under which durable stores create their files.
        backend: "memory" or "leveldb".
        hash_algorithm: Hash adapter handed to tree algorithms.
        create_if_missing: Create the LevelDB directories on open.
        bloom_filter_bits: Bits per key of LevelDB's bloom filter (0 disables it).
        write_buffer_size: LevelDB memtable size in bytes.
        lru_cache_size: LevelDB block cache size in bytes.
        log_level: Level of the ``smt_storage`` logger.
    """

    base_path: Path = field(default_factory=lambda: Path(".bench_db"))
    backend: str = "memory"
    hash_algorithm: HashAlgorithm = HashAlgorithm.BLAKE3

    # LevelDB tuning
    create_if_missing: bool = True
    bloom_filter_bits: int = 10
    write_buffer_size: int = 4 * 1024 * 1024
    lru_cache_size: Optional[int] = 8 * 1024 * 1024

    log_level: str = "INFO"

    def __post_init__(self):
        self.base_path = Path(self.base_path)
        self.hash_algorithm = HashAlgorithm(self.hash_algorithm)
        if self.backend not in BACKENDS:
            raise ValueError(f"Unknown backend: {self.backend!r} (expected one of {', '.join(BACKENDS)})")
        if self.bloom_filter_bits < 0:
            raise ValueError("bloom_filter_bits must be non-negative")
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ValueError(f"Unknown log level: {self.log_level!r}")

    @classmethod
    def from_env(cls) -> "StoreConfig":
        """Create config from environment variables."""
        env = os.environ
        kwargs = {}
        if "SMT_STORE_PATH" in env:
            kwargs["base_path"] = Path(env["SMT_STORE_PATH"])
        if "SMT_STORE_BACKEND" in env:
            kwargs["backend"] = env["SMT_STORE_BACKEND"].lower()
        if "SMT_STORE_HASH" in env:
            kwargs["hash_algorithm"] = env["SMT_STORE_HASH"].lower()
        if "SMT_STORE_CREATE_IF_MISSING" in env:
            kwargs["create_if_missing"] = _env_bool(env["SMT_STORE_CREATE_IF_MISSING"])
        if "SMT_STORE_BLOOM_BITS" in env:
            kwargs["bloom_filter_bits"] = int(env["SMT_STORE_BLOOM_BITS"])
        if "SMT_STORE_LOG_LEVEL" in env:
            kwargs["log_level"] = env["SMT_STORE_LOG_LEVEL"].upper()
        return cls(**kwargs)

    @property
    def level(self) -> int:
        return logging.getLevelName(self.log_level.upper())

    def unique_path(self, prefix: str) -> Path:
        """A fresh directory path under ``base_path`` for one store instance."""
        return self.base_path / f"{prefix}_{uuid.uuid4().hex[:16]}"
