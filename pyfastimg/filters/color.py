"""
Packed 32-bit RGBA pixels: R in bits 0-7, G in 8-15, B in 16-23, A in 24-31.

Author: B.G.
"""

import numpy as np

from ..graph import cast, floor
from ..graph.expr import U32


def unpack_rgb(val):
    """(r, g, b) uint32 expressions in [0, 255] from a packed pixel expression."""
    return val & 0xFF, (val >> 8) & 0xFF, (val >> 16) & 0xFF


def pack_rgba(r, g, b):
    """Packed pixel from three uint32 channel expressions, alpha 0xff."""
    return r | (g << 8) | (b << 16) | (cast(U32, 255) << 24)


def round_to_u32(v):
    """Nearest uint32 of a float channel value (half up)."""
    return cast(U32, floor(v + 0.5))


def pack_array(rgb, alpha=255):
    """
    Host helper: pack an (..., 3) uint8-range array into uint32 pixels.
    """
    rgb = np.asarray(rgb).astype(np.uint32)
    return (
        rgb[..., 0]
        | (rgb[..., 1] << np.uint32(8))
        | (rgb[..., 2] << np.uint32(16))
        | (np.uint32(alpha) << np.uint32(24))
    )


def unpack_array(pixels):
    """Host helper: (..., 4) uint8 array (r, g, b, a) from uint32 pixels."""
    pixels = np.asarray(pixels, dtype=np.uint32)
    channels = [(pixels >> np.uint32(s)) & np.uint32(0xFF) for s in (0, 8, 16, 24)]
    return np.stack(channels, axis=-1).astype(np.uint8)


__all__ = ["unpack_rgb", "pack_rgba", "round_to_u32", "pack_array", "unpack_array"]
