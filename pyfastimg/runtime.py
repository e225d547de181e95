"""
Taichi runtime management for PyFastImg.

Wraps ti.init so that the rest of the package can ask which architecture is
active, whether a device is available for Buffer transfers, and whether the
runtime has been re-initialised since a device allocation was made (Taichi
drops every field on re-initialisation).

Usage:
    import pyfastimg as pfi

    pfi.runtime.init("gpu")        # falls back to CPU when no GPU is present
    if pfi.runtime.has_accelerator():
        ...

Requesting the "cpu" arch explicitly turns the Taichi CPU backend into an
emulated device: transfers and Taichi kernels work, which is how the test
suite exercises the device path on machines without a GPU.

Author: B.G.
"""

import logging

import taichi as ti

from .errors import TransferError

logger = logging.getLogger(__name__)

_GPU_ARCH_NAMES = ("cuda", "vulkan", "metal", "opengl", "gles", "amdgpu", "dx11", "dx12")

_state = {
    "initialised": False,
    "requested": None,
    "arch": None,
    "generation": 0,
}


def _resolve_arch(name):
    arch = getattr(ti, name, None)
    if arch is None:
        raise ValueError(f"Unknown Taichi arch '{name}'")
    return arch


def init(arch: str = "gpu", offline_cache: bool = False, **kwargs):
    """
    (Re-)initialise the Taichi runtime.

    Args:
        arch: Taichi arch name ('gpu', 'cuda', 'vulkan', 'metal', 'cpu', ...)
        offline_cache: Forwarded to ti.init
        **kwargs: Extra ti.init keyword arguments

    Returns:
        The arch actually selected by Taichi

    Note:
        Every Taichi field allocated before the call becomes invalid. The
        field pool is emptied and the runtime generation is bumped so that
        Buffers can detect stale device storage.
    """
    from .pool import taipool

    ti_arch = _resolve_arch(arch)
    try:
        ti.init(arch=ti_arch, offline_cache=offline_cache, **kwargs)
    except Exception as e:
        raise TransferError(f"Taichi runtime failed to initialise with arch '{arch}': {e}") from e

    taipool.clear()
    _state["initialised"] = True
    _state["requested"] = arch
    _state["arch"] = ti.lang.impl.current_cfg().arch
    _state["generation"] += 1
    logger.info("Taichi runtime initialised (requested=%s, selected=%s)", arch, _state["arch"])
    return _state["arch"]


def ensure_initialised():
    """Initialise with the default GPU request if nothing was initialised yet."""
    if not _state["initialised"]:
        init("gpu")


def is_initialised() -> bool:
    return _state["initialised"]


def generation() -> int:
    """Counter bumped on every init(); used to detect stale device fields."""
    return _state["generation"]


def current_arch():
    return _state["arch"]


def is_gpu() -> bool:
    """True when the selected arch is a GPU arch."""
    if not _state["initialised"]:
        return False
    arch = _state["arch"]
    return any(arch == getattr(ti, name) for name in _GPU_ARCH_NAMES if hasattr(ti, name))


def has_accelerator() -> bool:
    """
    True when device transfers are possible.

    That is the case on a GPU arch, or on the CPU arch when it was requested
    explicitly (device emulation). A 'gpu' request that Taichi silently
    downgraded to CPU does not count.
    """
    if not _state["initialised"]:
        return False
    return is_gpu() or _state["requested"] == "cpu"


def sync():
    """Block until all outstanding Taichi work has completed."""
    if _state["initialised"]:
        ti.sync()


__all__ = [
    "init",
    "ensure_initialised",
    "is_initialised",
    "generation",
    "current_arch",
    "is_gpu",
    "has_accelerator",
    "sync",
]
