"""
Typed image buffers with explicit host/device residency.

A Buffer owns a NumPy array on the host and, lazily, a pooled Taichi field on
the device. Residency is an explicit three-state machine:

    HOST_ONLY  --to_device()-->  SYNCED  <--to_host()--  DEVICE_ONLY
        ^                                                     |
        +---------- set() / host realize        device realize+

Transfers are no-ops when the target side is already current. Moving data to
the device requires an accelerator (see pyfastimg.runtime.has_accelerator);
otherwise a TransferError is raised and the caller may stay on the host.
After a device write has been copied back with to_host(), sync() must be
called before the host array is read.

Host arrays have shape (height, width) for images; the device copy is a
flat row-major field of the same size. Expression coordinates are
(x, y) = (column, row), so buf(x, y) reads host[y, x].

Author: B.G.
"""

import enum

import numpy as np

from . import constants as cte
from . import runtime
from .errors import TransferError
from .graph.expr import BufferRead
from .pool import taipool


_NARROWING = {
    np.dtype(np.float64): np.dtype(np.float32),
    np.dtype(np.int64): np.dtype(np.int32),
    np.dtype(np.bool_): np.dtype(np.uint8),
}


class Residency(enum.Enum):
    HOST_ONLY = "host_only"
    DEVICE_ONLY = "device_only"
    SYNCED = "synced"


class Buffer:
    """
    Dense rectangular array with host/device residency tracking.

    Args:
        data: Initial host values (copied). Mutually exclusive with shape.
        shape: Host shape, (height, width) for images, when data is None
        dtype: Element type, one of float32, uint8, uint32, int32
        name: Optional name used in error messages

    Example:
        img = Buffer(np.random.rand(64, 64).astype(np.float32), name="input")
        img.to_device()
        ...
        out.to_host()
        out.sync()
        result = out.host
    """

    def __init__(self, data=None, shape=None, dtype=None, name=None):
        if data is not None and shape is not None:
            raise ValueError("Pass either data or shape, not both")
        if data is not None:
            arr = np.array(data, dtype=dtype, copy=True)
            if dtype is None:
                # Python scalars/lists default to 64-bit; narrow them
                arr = arr.astype(_NARROWING.get(arr.dtype, arr.dtype), copy=False)
        else:
            if shape is None:
                raise ValueError("Either data or shape must be provided")
            arr = np.zeros(shape, dtype=np.float32 if dtype is None else dtype)
        if arr.dtype not in cte.SUPPORTED_DTYPES:
            raise TypeError(
                f"Unsupported buffer dtype {arr.dtype}; expected one of "
                f"{[str(d) for d in cte.SUPPORTED_DTYPES]}"
            )
        self.name = name or "buffer"
        self._host = np.ascontiguousarray(arr)
        self._residency = Residency.HOST_ONLY
        self._device = None
        self._generation = None
        self._needs_sync = False

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------

    @property
    def shape(self):
        return self._host.shape

    @property
    def dtype(self):
        return self._host.dtype

    @property
    def ndim(self):
        return self._host.ndim

    @property
    def size(self):
        return self._host.size

    @property
    def width(self):
        return self._host.shape[-1] if self._host.ndim else 1

    @property
    def height(self):
        return self._host.shape[0] if self._host.ndim == 2 else 1

    @property
    def extent(self):
        """Shape in coordinate order (x first)."""
        return tuple(reversed(self._host.shape))

    @property
    def residency(self):
        return self._residency

    @property
    def on_device(self):
        return self._residency in (Residency.DEVICE_ONLY, Residency.SYNCED)

    def __call__(self, *args):
        return BufferRead(self, args)

    def __repr__(self):
        return (
            f"Buffer(name={self.name!r}, shape={self.shape}, dtype={self.dtype}, "
            f"residency={self._residency.value})"
        )

    # ------------------------------------------------------------------
    # Host access
    # ------------------------------------------------------------------

    @property
    def host(self):
        """
        Host array.

        Raises:
            TransferError: If the current values only live on the device, or
                if a device-to-host copy has not been synchronised yet
        """
        if self._residency == Residency.DEVICE_ONLY:
            raise TransferError(
                f"Buffer '{self.name}' holds device-only data; call to_host() and sync() first"
            )
        if self._needs_sync:
            raise TransferError(f"Buffer '{self.name}' must be synchronised before host reads")
        return self._host

    def to_numpy(self):
        """Copy of the host array (same rules as the host property)."""
        return self.host.copy()

    def set(self, values):
        """
        Overwrite the host values. The device copy, if any, becomes stale.

        Args:
            values: Array-like broadcastable to the buffer shape
        """
        self._host[...] = np.asarray(values, dtype=self.dtype)
        self._residency = Residency.HOST_ONLY
        self._needs_sync = False
        return self

    def _write_host(self, array):
        """Store a realized result on the host (backend use)."""
        self._host[...] = array
        self._residency = Residency.HOST_ONLY
        self._needs_sync = False

    # ------------------------------------------------------------------
    # Device side
    # ------------------------------------------------------------------

    def _check_generation(self):
        if self._device is not None and self._generation != runtime.generation():
            self._device = None
            if self._residency == Residency.DEVICE_ONLY:
                raise TransferError(
                    f"Device data of buffer '{self.name}' was lost when the Taichi runtime "
                    "was re-initialised"
                )
            self._residency = Residency.HOST_ONLY

    def _ensure_device(self):
        self._check_generation()
        if self._device is None and self.size > 0:
            self._device = taipool.get_tpfield(cte.NP_TO_TI[self.dtype], (self.size,))
            self._generation = runtime.generation()

    @property
    def device_field(self):
        """The Taichi field backing the device copy (allocated on demand)."""
        if not runtime.has_accelerator():
            raise TransferError("No accelerator available for device storage")
        self._ensure_device()
        return None if self._device is None else self._device.field

    def to_device(self):
        """
        Make the device copy current.

        No-op when already device-resident. Device memory is allocated on the
        first call.

        Raises:
            TransferError: If no accelerator is available or allocation fails
        """
        self._check_generation()
        if self.on_device:
            return self
        if not runtime.has_accelerator():
            raise TransferError(f"Cannot move buffer '{self.name}' to device: no accelerator")
        self._ensure_device()
        if self._device is not None:
            self._device.field.from_numpy(self._host.reshape(-1))
        self._residency = Residency.SYNCED
        return self

    def to_host(self):
        """
        Make the host copy current.

        No-op when already host-resident. After copying device data back,
        sync() must be called before reading the host array.
        """
        self._check_generation()
        if self._residency != Residency.DEVICE_ONLY:
            return self
        if self._device is not None:
            self._host[...] = self._device.field.to_numpy().reshape(self.shape)
        self._residency = Residency.SYNCED
        self._needs_sync = True
        return self

    def sync(self):
        """Block until outstanding device work on this buffer has completed."""
        if self._device is not None:
            runtime.sync()
        self._needs_sync = False
        return self

    def _write_device(self, array):
        """Store a realized result on the device (backend use)."""
        self._ensure_device()
        if self._device is not None:
            flat = np.ascontiguousarray(array, dtype=self.dtype).reshape(-1)
            self._device.field.from_numpy(flat)
        self._residency = Residency.DEVICE_ONLY
        self._needs_sync = False

    # ------------------------------------------------------------------
    # Lifetime
    # ------------------------------------------------------------------

    def release(self):
        """Return the device storage to the pool. Device-only data is lost."""
        if self._device is not None:
            if self._generation == runtime.generation():
                self._device.release()
            self._device = None
        if self._residency == Residency.SYNCED:
            self._residency = Residency.HOST_ONLY

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()

    def __del__(self):
        if getattr(self, "_device", None) is not None:
            self.release()


__all__ = ["Buffer", "Residency"]
