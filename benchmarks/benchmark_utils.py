"""
Benchmarking utilities for smt-storage backends.

This module provides common utilities and base classes for ASV benchmarking
that work with ASV's built-in timing and stabilization mechanisms.

Reproducibility:
    All random data generation uses deterministic seeds by default.
    The default seed can be overridden via the BENCHMARK_SEED environment variable.

Logging:
    Benchmarks should be run with logging at INFO level or higher to avoid
    performance contamination from verbose debug output.
"""

import gc
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import List

import numpy as np

from smt_storage.config import StoreConfig
from smt_storage.factory import open_store
from smt_storage.store_base import TreeStore

# Default seed for deterministic benchmarking - can be overridden via environment variable
DEFAULT_BENCHMARK_SEED = int(os.environ.get('BENCHMARK_SEED', '42'))

_logger = logging.getLogger(__name__)


class BenchmarkUtils:
    """Utility class for ASV benchmarking operations."""

    @staticmethod
    def check_logging_level():
        """
        Raise if DEBUG logging is enabled on the ``smt_storage`` logger,
        as per-operation debug output would dominate the measurements.
        """
        effective_level = logging.getLogger("smt_storage").getEffectiveLevel()
        if effective_level <= logging.DEBUG:
            raise ValueError(
                f"Logging level is set to {logging.getLevelName(effective_level)}. "
                "Benchmarks require logging to be at INFO level or higher to avoid "
                "performance contamination from verbose debug output."
            )

    @staticmethod
    def random_hashes(count: int, seed: int = None) -> List[bytes]:
        """
        Generate *count* deterministic random 32-byte hashes.

        Args:
            count: Number of hashes to generate
            seed: Random seed for reproducibility. If None, uses DEFAULT_BENCHMARK_SEED.

        Returns:
            List of 32-byte hashes
        """
        if seed is None:
            seed = DEFAULT_BENCHMARK_SEED
        rng = np.random.default_rng(seed)
        raw = rng.integers(0, 256, size=(count, 32), dtype=np.uint8)
        return [row.tobytes() for row in raw]


class BaseBenchmark:
    """Base class for ASV benchmarks over a freshly opened store.

    ``setup`` opens the store selected by the ``backend`` and ``hash_algorithm``
    parameters in a temporary directory; ``teardown`` closes it, removes the
    directory and re-enables garbage collection.
    """

    params = []
    param_names = []

    warmup_time = 0.1
    sample_time = 0.4

    store: TreeStore = None
    _tmpdir: Path = None

    def open_store(self, backend: str, hash_algorithm: str) -> TreeStore:
        BenchmarkUtils.check_logging_level()
        self._tmpdir = Path(tempfile.mkdtemp(prefix="smt_bench_"))
        config = StoreConfig(base_path=self._tmpdir, backend=backend, hash_algorithm=hash_algorithm)
        self.store = open_store(config, name=f"{backend}+{hash_algorithm}")
        return self.store

    def teardown(self, *params):
        if self.store is not None:
            self.store.close()
            self.store = None
        if self._tmpdir is not None:
            shutil.rmtree(self._tmpdir, ignore_errors=True)
            self._tmpdir = None
        if not gc.isenabled():
            gc.enable()
