"""
Benchmarks package for smt-storage backends.

This package contains ASV benchmarks for the storage adapter layer:
- leaf insert-then-remove cycles against a pre-filled store
- branch node insert/read/remove through the codec
- hash adapter throughput (one-shot and streaming)

Every benchmark is parametrized over backend and hash algorithm, with
deterministic test data generated from a fixed seed.
"""

from .benchmark_utils import BaseBenchmark, BenchmarkUtils

__all__ = ["BaseBenchmark", "BenchmarkUtils"]
