"""
Execution backends.

- host: NumPy interpreter, always available, results on the host
- taichi: Taichi kernels for linear stencils, results on the device

Author: B.G.
"""

from .base import Backend, ExecutablePlan
from .host import HostBackend, HostEvaluator
from .taichi_backend import StencilStep, TaichiBackend, match_linear_stencil

_BACKENDS = {
    "host": HostBackend,
    "taichi": TaichiBackend,
}


def get_backend(name="host"):
    """
    Backend instance by name. Backend instances are passed through.

    Raises:
        ValueError: For an unknown backend name
    """
    if isinstance(name, Backend):
        return name
    try:
        return _BACKENDS[name]()
    except KeyError:
        raise ValueError(
            f"Unknown backend '{name}'; available: {sorted(_BACKENDS)}"
        ) from None


def available_backends():
    return sorted(_BACKENDS)


__all__ = [
    "Backend",
    "ExecutablePlan",
    "HostBackend",
    "HostEvaluator",
    "TaichiBackend",
    "StencilStep",
    "match_linear_stencil",
    "get_backend",
    "available_backends",
]
