"""
Timed, repeated realization of a Pipeline.

Each sample runs the full round trip: inputs to the device, realize, outputs
back to the host and synchronised. Transfers are skipped on the host backend.
The first samples are warm-up (Taichi kernels are compiled on first call) and
are dropped; the best of the remaining wall-clock times is reported.

Author: B.G.
"""

import logging
import time

from .. import constants as cte

logger = logging.getLogger(__name__)


class BenchResult:
    """Outcome of a benchmark run."""

    def __init__(self, name, times_ms=None, skipped=False, reason=None):
        self.name = name
        self.times_ms = list(times_ms or [])
        self.skipped = skipped
        self.reason = reason
        self.outputs = []
        self.check_passed = None

    @property
    def best_ms(self):
        return min(self.times_ms) if self.times_ms else None

    def __repr__(self):
        if self.skipped:
            return f"BenchResult({self.name!r}, skipped: {self.reason})"
        return f"BenchResult({self.name!r}, best={self.best_ms:.3f}ms, n={len(self.times_ms)})"


def benchmark(fn, samples=cte.BENCH_SAMPLES, warmup=cte.BENCH_WARMUP):
    """
    Call fn samples times and return the kept wall-clock times in ms.

    The first `warmup` calls are timed but discarded.
    """
    if samples <= warmup:
        raise ValueError(f"samples ({samples}) must exceed warmup ({warmup})")
    times = []
    for _ in range(samples):
        t0 = time.perf_counter()
        fn()
        times.append((time.perf_counter() - t0) * 1e3)
    return times[warmup:]


class Executor:
    """
    Drives a Pipeline for benchmarking.

    Args:
        pipeline: The Pipeline to realize
        inputs: Buffers read by the pipeline (moved to the device per sample)
        outputs: Target Buffers; allocated from the pipeline when None
    """

    def __init__(self, pipeline, inputs=(), outputs=None):
        self.pipeline = pipeline
        self.inputs = list(inputs)
        self.outputs = pipeline.new_buffers() if outputs is None else list(outputs)

    @property
    def uses_device(self):
        return self.pipeline.backend.has_accelerator()

    def run_once(self):
        """One round trip; returns the output Buffers (host readable)."""
        device = self.uses_device
        if device:
            for buf in self.inputs:
                buf.to_device()
        self.pipeline.realize(self.outputs)
        if device:
            for buf in self.outputs:
                buf.to_host()
                buf.sync()
        return self.outputs

    def run(self, name="pipeline", samples=cte.BENCH_SAMPLES, warmup=cte.BENCH_WARMUP):
        """Benchmark run_once; returns a BenchResult."""
        times = benchmark(self.run_once, samples=samples, warmup=warmup)
        result = BenchResult(name, times)
        logger.info("%s: best %.3f ms over %d samples", name, result.best_ms, len(times))
        return result


__all__ = ["BenchResult", "benchmark", "Executor"]
