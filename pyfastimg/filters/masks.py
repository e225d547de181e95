"""
Fixed kernel coefficient tables.

Arrays are in host layout: rows are y, columns are x, so MASK[dy, dx].
Wrap them in a Buffer (see as_buffer) before handing them to the filters.

Author: B.G.
"""

import numpy as np

from .. import constants as cte
from ..buffer import Buffer

# 3x3 low-pass used by the pyramids, the Gaussian blur and the a-trous stages
GAUSSIAN_3X3 = np.array(
    [
        [0.057118, 0.124758, 0.057118],
        [0.124758, 0.272496, 0.124758],
        [0.057118, 0.124758, 0.057118],
    ],
    dtype=np.float32,
)

# 3x3 average
BOX_3X3 = np.full((3, 3), 0.111111, dtype=np.float32)

# Integer 1-2-1 Gaussian (divide by 16)
INT_GAUSSIAN_3X3 = np.array([[1, 2, 1], [2, 4, 2], [1, 2, 1]], dtype=np.int32)

# Integer gradient kernels (divide by 6)
GRADIENT_X = np.array([[-1, 0, 1], [-1, 0, 1], [-1, 0, 1]], dtype=np.int32)
GRADIENT_Y = np.ascontiguousarray(GRADIENT_X.T)

# 5x5 Laplacian of the Laplace benchmark
LAPLACE_5X5 = np.ones((5, 5), dtype=np.float32)
LAPLACE_5X5[2, 2] = -24.0


def spatial_gaussian(size=cte.BILATERAL_SIGMA, sigma=3.0):
    """
    size x size spatial weights exp(-(dx^2 + dy^2) / (2 sigma^2)), 1 at the
    centre, rounded to 6 decimals like the other tables.
    """
    half = size // 2
    d = np.arange(size) - half
    r2 = d[None, :] ** 2 + d[:, None] ** 2
    return np.round(np.exp(-r2 / (2.0 * sigma * sigma)), 6).astype(np.float32)


def bilateral_mask(sigma=cte.BILATERAL_SIGMA):
    """
    Spatial mask of the bilateral filter for bandwidth sigma: the side is
    int(sigma) made odd, and the falloff scales with the side (3.0 for the
    13x13 reference mask).
    """
    size = max(int(sigma), 1) | 1
    return spatial_gaussian(size, size * 3.0 / 13.0)


# 13x13 spatial mask of the bilateral filter
BILATERAL_13X13 = bilateral_mask(13)


def dilate(mask, size):
    """
    Spread the taps of a 3x3 mask over a size x size grid, zeros in between.

    dilate(GAUSSIAN_3X3, 9) places the taps at offsets 0, 4 and 8.
    """
    if size < 3 or size % 2 == 0:
        raise ValueError(f"Dilated mask size must be odd and >= 3, got {size}")
    mask = np.asarray(mask)
    step = (size - 1) // 2
    out = np.zeros((size, size), dtype=mask.dtype)
    out[::step, ::step] = mask
    return out


ATROUS_SIZES = (3, 5, 9, 17)

# Dilated Gaussians of the a-trous cascade, keyed by size
ATROUS_MASKS = {size: dilate(GAUSSIAN_3X3, size) for size in ATROUS_SIZES}


def as_buffer(mask, name="mask"):
    """Buffer holding a copy of mask (dtype preserved)."""
    return Buffer(np.asarray(mask), dtype=np.asarray(mask).dtype, name=name)


__all__ = [
    "GAUSSIAN_3X3",
    "BOX_3X3",
    "INT_GAUSSIAN_3X3",
    "GRADIENT_X",
    "GRADIENT_Y",
    "LAPLACE_5X5",
    "BILATERAL_13X13",
    "bilateral_mask",
    "ATROUS_SIZES",
    "ATROUS_MASKS",
    "spatial_gaussian",
    "dilate",
    "as_buffer",
]
