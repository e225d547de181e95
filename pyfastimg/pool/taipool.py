"""
Pool of reusable Taichi fields.

Allocating Taichi fields is expensive (each allocation may create a new SNode
tree on the device), so device storage for Buffers and the temporaries of the
Taichi backend are drawn from a pool keyed by (dtype, shape) and handed back
with release() instead of being freed.

Usage:
    from pyfastimg.pool import taipool

    tmp = taipool.get_tpfield(dtype=ti.f32, shape=(ny, nx))
    tmp.field.from_numpy(data)
    ...
    tmp.release()

Author: B.G.
"""

import logging

import taichi as ti

from ..errors import TransferError

logger = logging.getLogger(__name__)


class TPField:
    """
    A pooled Taichi field.

    Attributes:
        field: The underlying ti.field
        dtype: Taichi element type
        shape: Field shape
        in_use: True while checked out of the pool
    """

    def __init__(self, pool, dtype, shape):
        self._pool = pool
        self.dtype = dtype
        self.shape = tuple(shape)
        self.field = ti.field(dtype=dtype, shape=self.shape)
        self.in_use = False

    def release(self):
        """Hand the field back to its pool."""
        if self.in_use:
            self.in_use = False
            self._pool._release(self)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()


class TaiPool:
    """Free-list of TPFields indexed by (dtype, shape)."""

    def __init__(self):
        self._free = {}
        self._allocated = 0

    def get_tpfield(self, dtype, shape):
        """
        Check out a field of the given dtype and shape.

        Reuses a released field when one matches, allocates otherwise.

        Raises:
            TransferError: If Taichi fails to allocate the field
        """
        if isinstance(shape, int):
            shape = (shape,)
        key = (dtype, tuple(shape))
        bucket = self._free.get(key)
        if bucket:
            tpf = bucket.pop()
        else:
            try:
                tpf = TPField(self, dtype, shape)
            except Exception as e:
                raise TransferError(f"Failed to allocate Taichi field {key}: {e}") from e
            self._allocated += 1
            logger.debug("Allocated pooled field %s (total %d)", key, self._allocated)
        tpf.in_use = True
        return tpf

    def _release(self, tpf):
        self._free.setdefault((tpf.dtype, tpf.shape), []).append(tpf)

    @property
    def n_allocated(self):
        return self._allocated

    @property
    def n_free(self):
        return sum(len(v) for v in self._free.values())

    def stats(self):
        """
        Pool usage counters.

        Returns:
            dict with the number of allocated, free and checked-out fields and
            the free count per (dtype, shape) key
        """
        free = self.n_free
        return {
            "allocated": self._allocated,
            "free": free,
            "in_use": self._allocated - free,
            "buckets": {key: len(v) for key, v in self._free.items() if v},
        }

    def clear(self):
        """Forget every field; called when the Taichi runtime is re-initialised."""
        self._free = {}
        self._allocated = 0


taipool = TaiPool()


def get_temp_field(dtype, shape):
    """Shortcut for taipool.get_tpfield."""
    return taipool.get_tpfield(dtype, shape)


def stats():
    """Usage counters of the shared pool."""
    return taipool.stats()
