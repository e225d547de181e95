"""
Taichi kernels used by the Taichi backend.

Fields are flat (row-major) like the device copies of Buffers. Indices
falling outside the source are clamped to the nearest edge pixel.

Author: B.G.
"""

import taichi as ti

from .. import constants as cte


@ti.func
def _clamp_index(i: ti.i32, n: ti.i32) -> ti.i32:
    return ti.min(ti.max(i, 0), n - 1)


@ti.kernel
def stencil_kernel(
    source_field: ti.template(),
    target_field: ti.template(),
    mask_field: ti.template(),
    nx_src: ti.i32,
    ny_src: ti.i32,
    nx_t: ti.i32,
    kx: ti.i32,
    ky: ti.i32,
    min_x: ti.i32,
    min_y: ti.i32,
):
    """
    target(i, j) = sum over the mask of source(i + min_x + di, j + min_y + dj) * mask(di, dj)

    The mask is walked row by row, x fastest, so the accumulation order is
    the one of the host backend.
    """
    for idx in target_field:
        j_t = idx // nx_t
        i_t = idx % nx_t

        val: cte.FLOAT_TYPE_TI = 0.0
        for dj in range(ky):
            for di in range(kx):
                ix = _clamp_index(i_t + min_x + di, nx_src)
                iy = _clamp_index(j_t + min_y + dj, ny_src)
                val += source_field[iy * nx_src + ix] * mask_field[dj * kx + di]

        target_field[idx] = val


__all__ = ["stencil_kernel"]
