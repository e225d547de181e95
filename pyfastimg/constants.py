"""
Global constants and defaults for PyFastImg.

Holds the element-type tables shared by the Buffer, the backends and the
Taichi kernels, together with the default benchmark parameters taken from the
reference suite. Kernel coefficient tables live in pyfastimg.filters.masks.

Author: B.G.
"""

import numpy as np
import taichi as ti

# Floating point type used by the Taichi kernels
FLOAT_TYPE_TI = ti.f32
FLOAT_TYPE_NP = np.float32

# Element types a Buffer may hold
SUPPORTED_DTYPES = (
    np.dtype(np.float32),
    np.dtype(np.uint8),
    np.dtype(np.uint32),
    np.dtype(np.int32),
)

# numpy -> taichi element type
NP_TO_TI = {
    np.dtype(np.float32): ti.f32,
    np.dtype(np.uint8): ti.u8,
    np.dtype(np.uint32): ti.u32,
    np.dtype(np.int32): ti.i32,
}

# Default pyramid depth
PYRAMID_LEVELS = 8

# Detail gain applied to every level when collapsing a processed pyramid
PYRAMID_DETAIL_GAIN = 0.5

# Bilateral bandwidth (also the side of the reference spatial mask)
BILATERAL_SIGMA = 13

# Bias added to every bilateral output
BILATERAL_BIAS = 0.5

# Shi-Tomasi minimum eigenvalue threshold
CORNER_THRESHOLD = 200.0

# Divisors of the integer gradient kernels and of the integer 1-2-1 Gaussian
GRADIENT_NORM = 6
INT_GAUSSIAN_NORM = 16

# Prewitt gradient divisor
PREWITT_NORM = 3.0

# Image enhance gain and gamma
ENHANCE_GAIN = 2
ENHANCE_GAMMA = 0.6

# Scotopic saturation mix factor (0 = full desaturation)
SCOTOPIC_MIX = 0.0

# Benchmark harness defaults
BENCH_SAMPLES = 10
BENCH_WARMUP = 1
