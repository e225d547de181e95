"""
Synthetic benchmark inputs.

The reference suite fills its inputs with `rand() & 0xfff`; the generators
below draw the same range from a seeded NumPy generator so that runs are
reproducible.

Author: B.G.
"""

import numpy as np


def random_image(nx: int, ny: int, dtype=np.float32, high: int = 0x1000, seed: int = 42):
    """
    (ny, nx) array of integers uniformly drawn in [0, high), stored as dtype.

    Example:
        img = random_image(256, 256)                 # float32 in [0, 4095]
        img8 = random_image(64, 64, np.uint8, 256)   # uint8 in [0, 255]
    """
    rng = np.random.default_rng(seed)
    return rng.integers(0, high, size=(ny, nx)).astype(dtype)


def random_vector(n: int, dtype=np.int32, high: int = 0x1000, seed: int = 42):
    """1D counterpart of random_image."""
    rng = np.random.default_rng(seed)
    return rng.integers(0, high, size=(n,)).astype(dtype)


def checkerboard(nx: int, ny: int, tile: int = 8, low: float = 0.0, high: float = 255.0):
    """float32 (ny, nx) checkerboard of tile x tile squares."""
    if tile < 1:
        raise ValueError("tile must be >= 1")
    jj, ii = np.indices((ny, nx))
    board = ((ii // tile) + (jj // tile)) % 2
    return np.where(board == 1, high, low).astype(np.float32)


def constant_image(nx: int, ny: int, value, dtype=np.float32):
    return np.full((ny, nx), value, dtype=dtype)


def psnr(reference, test, peak=None):
    """
    Peak signal to noise ratio in dB (inf for identical arrays).

    Args:
        reference: Reference array
        test: Array compared to the reference
        peak: Peak value; the reference's max - min by default
    """
    reference = np.asarray(reference, dtype=np.float64)
    test = np.asarray(test, dtype=np.float64)
    if peak is None:
        peak = float(reference.max() - reference.min()) or 1.0
    mse = float(np.mean((reference - test) ** 2))
    if mse == 0.0:
        return float("inf")
    return 10.0 * np.log10(peak * peak / mse)


__all__ = ["random_image", "random_vector", "checkerboard", "constant_image", "psnr"]
