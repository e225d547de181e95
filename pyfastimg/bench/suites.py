"""
Registry of the benchmark pipelines.

Every case builds its synthetic inputs and its FunctionNode graph for a
given image size. run_benchmark wires a case to a backend, times it with the
Executor and, where the case defines one, checks the result against a NumPy
reference.

Usage:
    from pyfastimg.bench import suites

    print(suites.list_benchmarks())
    res = suites.run_benchmark("gaussian", backend="host", width=128, height=128)
    print(res.best_ms)

Author: B.G.
"""

import logging

import numpy as np

from .. import constants as cte
from ..backend import get_backend
from ..buffer import Buffer
from ..graph import reset_default_graph
from ..pipeline import Pipeline
from .. import filters
from ..filters import masks
from .executor import BenchResult, Executor
from .synthetic import random_image, random_vector

logger = logging.getLogger(__name__)


class BenchmarkCase:
    """
    Attributes:
        name: Registry key
        description: One-line summary
        size: Default (width, height); height is ignored by 1D cases
        build: callable(width, height, seed) -> (outputs, inputs)
        check: Optional callable(outputs, inputs) -> bool
    """

    def __init__(self, name, description, size, build, check=None):
        self.name = name
        self.description = description
        self.size = size
        self.build = build
        self.check = check

    def __repr__(self):
        return f"BenchmarkCase({self.name!r}, size={self.size})"


_REGISTRY = {}


def register(name, size, description, check=None):
    """Decorator adding a build function to the registry."""

    def deco(build):
        _REGISTRY[name] = BenchmarkCase(name, description, size, build, check)
        return build

    return deco


def get_benchmark(name):
    try:
        return _REGISTRY[name]
    except KeyError:
        raise ValueError(
            f"Unknown benchmark '{name}'; available: {', '.join(sorted(_REGISTRY))}"
        ) from None


def list_benchmarks():
    return sorted(_REGISTRY)


def _packed_input(width, height, seed):
    # same range as the reference suite: only R and the low nibble of G are set
    return Buffer(random_image(width, height, np.uint32, seed=seed), name="input")


# ----------------------------------------------------------------------
# Cases
# ----------------------------------------------------------------------


@register("gaussian", (256, 256), "3x3 Gaussian blur")
def _gaussian(width, height, seed):
    img = Buffer(random_image(width, height, seed=seed), name="input")
    return [filters.gaussian_blur(img)], [img]


@register("bilateral", (1024, 1024), "13x13 bilateral filter")
def _bilateral(width, height, seed):
    img = Buffer(random_image(width, height, seed=seed), name="input")
    return [filters.bilateral_filter(img)], [img]


@register("image_enhance", (256, 368), "3x3 average + gamma, 10 parallel outputs")
def _image_enhance(width, height, seed):
    img = Buffer(random_image(width, height, seed=seed), name="input")
    return filters.gamma_enhance(img, n_outputs=10), [img]


@register("image_mosaics", (512, 512), "Laplacian pyramid blend of two images")
def _image_mosaics(width, height, seed):
    a = Buffer(random_image(width, height, seed=seed), name="input1")
    b = Buffer(random_image(width, height, seed=seed + 1), name="input2")
    return [filters.mosaic(a, b, levels=cte.PYRAMID_LEVELS)], [a, b]


@register("image_pyramid", (512, 512), "Bilateral processing of a Laplacian pyramid")
def _image_pyramid(width, height, seed):
    img = Buffer(random_image(width, height, seed=seed), name="input")
    return [filters.bilateral_pyramid(img, levels=cte.PYRAMID_LEVELS)], [img]


@register("laplace", (1024, 1024), "5x5 Laplace on uint8")
def _laplace(width, height, seed):
    img = Buffer(random_image(width, height, np.uint8, high=256, seed=seed), name="input")
    return [filters.laplace(img)], [img]


@register("night_filter", (1024, 1024), "A-trous cascade 3/5/9/17 + scotopic tone mapping")
def _night_filter(width, height, seed):
    img = _packed_input(width, height, seed)
    return [filters.night_filter(img)], [img]


@register("night_filter_pipeline", (128, 184), "20 parallel 9x9 a-trous + tone mapping branches")
def _night_filter_pipeline(width, height, seed):
    img = _packed_input(width, height, seed)
    mask = masks.as_buffer(masks.ATROUS_MASKS[9], "atrous_9x9")
    outs = []
    for n in range(20):
        stage = filters.atrous_filter(img, mask, name=f"atrous{n}")
        outs.append(filters.scoto(stage, name=f"scoto{n}"))
    return outs, [img]


@register("prewitt", (384, 256), "Prewitt gradient magnitude")
def _prewitt(width, height, seed):
    img = Buffer(random_image(width, height, seed=seed), name="input")
    return [filters.prewitt(img)], [img]


def _check_sum(outputs, inputs):
    expected = int(inputs[0].host.astype(np.int64).sum())
    return int(outputs[0].host.reshape(-1)[0]) == expected


@register("reduce_sum", (65536, 1), "Tree sum of 65536 integers", check=_check_sum)
def _reduce_sum(width, height, seed):
    vec = Buffer(random_vector(width, seed=seed), name="input")
    return [filters.tree_sum(vec)], [vec]


@register("shi_tomasi", (1024, 1024), "Shi-Tomasi corner response")
def _shi_tomasi(width, height, seed):
    img = Buffer(random_image(width, height, np.int32, seed=seed), name="input")
    return [filters.corner_response(img)], [img]


@register("unsharp", (512, 512), "Unsharp mask")
def _unsharp(width, height, seed):
    img = Buffer(random_image(width, height, seed=seed), name="input")
    return [filters.unsharp(img)], [img]


# ----------------------------------------------------------------------
# Driver
# ----------------------------------------------------------------------


def run_benchmark(
    name,
    backend="taichi",
    width=None,
    height=None,
    samples=cte.BENCH_SAMPLES,
    warmup=cte.BENCH_WARMUP,
    seed=42,
):
    """
    Build and time one registered benchmark.

    Returns:
        BenchResult; skipped when the backend needs an accelerator that is
        not available
    """
    case = get_benchmark(name)
    backend = get_backend(backend)
    if backend.name != "host" and not backend.has_accelerator():
        reason = "no accelerator available"
        logger.warning("Skipping %s: %s", name, reason)
        return BenchResult(name, skipped=True, reason=reason)

    width = case.size[0] if width is None else width
    height = case.size[1] if height is None else height
    reset_default_graph()
    outputs, inputs = case.build(width, height, seed)

    pipeline = Pipeline(outputs, backend=backend, name=name)
    executor = Executor(pipeline, inputs)
    result = executor.run(name, samples=samples, warmup=warmup)
    result.outputs = executor.outputs
    if case.check is not None:
        result.check_passed = case.check(executor.outputs, inputs)
        if not result.check_passed:
            logger.warning("%s: result differs from the NumPy reference", name)
    return result


__all__ = [
    "BenchmarkCase",
    "register",
    "get_benchmark",
    "list_benchmarks",
    "run_benchmark",
]
