"""
PyFastImg: declarative image-processing pipelines on Taichi.

Algorithms are written as graphs of FunctionNodes (pure functions over
integer pixel coordinates, possibly with reductions over a domain), then
planned and realized by a backend into Buffers. The NumPy host backend is
the reference; the Taichi backend runs the linear stencils as kernels over
pooled device fields.

Core Modules:
- graph: expressions, reduction domains, FunctionNodes and scheduling
- buffer: host/device image buffers with explicit transfers
- backend: host and Taichi backends
- pipeline: compile-once, realize-many driver
- filters: the algorithm library (pyramids, bilateral, a-trous, ...)
- bench: synthetic inputs, timed executor and benchmark registry
- cli: pfi-bench / pfi-list commands

Usage:
    import numpy as np
    import pyfastimg as pfi

    img = pfi.Buffer(np.random.rand(256, 256).astype(np.float32))
    blurred = pfi.filters.gaussian_blur(img)
    out = pfi.Pipeline([blurred]).realize()
    print(out.host.shape)

Author: B.G.
"""

from . import backend, bench, constants, errors, filters, graph, pool, runtime
from .buffer import Buffer, Residency
from .errors import ConstructionError, PyFastImgError, RealizeError, TransferError
from .pipeline import Pipeline, realize

__version__ = "0.0.1"

__all__ = [
    "backend",
    "bench",
    "constants",
    "errors",
    "filters",
    "graph",
    "pool",
    "runtime",
    "Buffer",
    "Residency",
    "Pipeline",
    "realize",
    "PyFastImgError",
    "ConstructionError",
    "TransferError",
    "RealizeError",
]
