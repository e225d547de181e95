"""
Shi-Tomasi corner response.

Gradients come from fixed integer 3x3 kernels divided by 6, the structure
tensor products are smoothed by the integer 1-2-1 Gaussian divided by 16,
and a pixel is a corner when the smaller eigenvalue

    lambda = 0.5 * (Sxx + Syy - sqrt((Sxx - Syy)^2 + 4 Sxy^2))

exceeds the threshold. With an int32 input every stage before the square
root is integer arithmetic (floor division); the output is int32 0/1.

Author: B.G.
"""

from .. import constants as cte
from ..graph import FunctionNode, minimum, select, sqrt, x, y
from .masks import GRADIENT_X, GRADIENT_Y, INT_GAUSSIAN_3X3, as_buffer
from .stencil import as_source, graph_of, source_extent, stencil_conv


def corner_response(
    src,
    threshold=cte.CORNER_THRESHOLD,
    gradient_norm=cte.GRADIENT_NORM,
    smooth_norm=cte.INT_GAUSSIAN_NORM,
    name="corner",
):
    """
    Build the thresholded minimum-eigenvalue map of src.

    Returns:
        FunctionNode of int32 (1 on corners, 0 elsewhere)
    """
    f = as_source(src)
    graph = graph_of(src)
    extent = source_extent(f)
    mask_dx = as_buffer(GRADIENT_X, "gradient_x")
    mask_dy = as_buffer(GRADIENT_Y, "gradient_y")
    gauss = as_buffer(INT_GAUSSIAN_3X3, "int_gaussian_3x3")

    dx = stencil_conv(f, mask_dx, name=f"{name}_dx", divisor=gradient_norm, extent=extent)
    dy = stencil_conv(f, mask_dy, name=f"{name}_dy", divisor=gradient_norm, extent=extent)

    def product(a, b, tag):
        return FunctionNode(f"{name}_{tag}", graph).define(a(x, y) * b(x, y), extent=extent)

    sxx = product(dx, dx, "sxx")
    syy = product(dy, dy, "syy")
    sxy = product(dx, dy, "sxy")

    gxx = stencil_conv(sxx, gauss, name=f"{name}_gxx", divisor=smooth_norm, extent=extent)
    gyy = stencil_conv(syy, gauss, name=f"{name}_gyy", divisor=smooth_norm, extent=extent)
    gxy = stencil_conv(sxy, gauss, name=f"{name}_gxy", divisor=smooth_norm, extent=extent)

    a, b, c = gxx(x, y), gyy(x, y), gxy(x, y)
    interm = FunctionNode(f"{name}_interm", graph).define(
        sqrt((a - b) * (a - b) + 4.0 * c * c), extent=extent
    )
    trace = a + b
    lam = FunctionNode(f"{name}_lambda", graph).define(
        minimum(0.5 * (trace + interm(x, y)), 0.5 * (trace - interm(x, y))), extent=extent
    )
    return FunctionNode(name, graph).define(select(lam(x, y) > threshold, 1, 0), extent=extent)


__all__ = ["corner_response"]
