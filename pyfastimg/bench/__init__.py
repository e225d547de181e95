"""
Benchmark harness: synthetic inputs, the timed executor and the registry of
benchmark pipelines.

Author: B.G.
"""

from . import executor, suites, synthetic
from .executor import BenchResult, Executor, benchmark
from .suites import get_benchmark, list_benchmarks, run_benchmark
from .synthetic import checkerboard, constant_image, psnr, random_image, random_vector

__all__ = [
    "executor",
    "suites",
    "synthetic",
    "BenchResult",
    "Executor",
    "benchmark",
    "get_benchmark",
    "list_benchmarks",
    "run_benchmark",
    "checkerboard",
    "constant_image",
    "psnr",
    "random_image",
    "random_vector",
]
