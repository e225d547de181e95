"""
Point and small-stencil filters built on stencil_conv: Gaussian blur,
unsharp masking, Laplace, Prewitt edge magnitude and gamma enhancement.

Author: B.G.
"""

from .. import constants as cte
from ..graph import FunctionNode, cast, clamp, sqrt, x, y
from .masks import (
    BOX_3X3,
    GAUSSIAN_3X3,
    GRADIENT_X,
    GRADIENT_Y,
    INT_GAUSSIAN_3X3,
    LAPLACE_5X5,
    as_buffer,
)
from .stencil import as_float, as_source, graph_of, source_extent, stencil_conv


def gaussian_blur(src, kernel=None, name="gaussian"):
    """3x3 Gaussian blur with repeat-edge borders."""
    if kernel is None:
        kernel = as_buffer(GAUSSIAN_3X3, "gaussian_3x3")
    f = as_source(src)
    return stencil_conv(f, kernel, name=name, extent=source_extent(f))


def unsharp(src, name="unsharp"):
    """
    Unsharp mask: blur = 1-2-1 Gaussian / 16, sharp = 2f - blur, and the
    output is (sharp / f) * f, computed in float32.
    """
    f = as_float(src, f"{name}_f32")
    graph = graph_of(f)
    extent = source_extent(f)
    blur = stencil_conv(
        f,
        as_buffer(INT_GAUSSIAN_3X3, "int_gaussian_3x3"),
        name=f"{name}_blur",
        divisor=cte.INT_GAUSSIAN_NORM,
        extent=extent,
    )
    sharp = FunctionNode(f"{name}_sharp", graph).define(2 * f(x, y) - blur(x, y), extent=extent)
    ratio = FunctionNode(f"{name}_ratio", graph).define(sharp(x, y) / f(x, y), extent=extent)
    return FunctionNode(name, graph).define(ratio(x, y) * f(x, y), extent=extent)


def laplace(src, name="laplace"):
    """
    5x5 Laplacian, offset by 128, clamped to [0, 255] and cast back to the
    input element type.
    """
    f = as_source(src)
    extent = source_extent(f)
    conv = stencil_conv(f, as_buffer(LAPLACE_5X5, "laplace_5x5"), name=f"{name}_conv", extent=extent)
    value = clamp(conv(x, y) + 128.0, 0.0, 255.0)
    return FunctionNode(name, graph_of(src)).define(cast(f.dtype, value), extent=extent)


def prewitt(src, norm=cte.PREWITT_NORM, name="prewitt"):
    """Gradient magnitude sqrt(dx^2 + dy^2) clamped to [0, 255]."""
    f = as_source(src)
    graph = graph_of(src)
    extent = source_extent(f)
    dx = stencil_conv(
        f,
        as_buffer(GRADIENT_X, "gradient_x"),
        name=f"{name}_dx",
        divisor=cte.GRADIENT_NORM,
        extent=extent,
    )
    dy = stencil_conv(
        f,
        as_buffer(GRADIENT_Y, "gradient_y"),
        name=f"{name}_dy",
        divisor=cte.GRADIENT_NORM,
        extent=extent,
    )
    dxn = dx(x, y) / norm
    dyn = dy(x, y) / norm
    return FunctionNode(name, graph).define(
        clamp(sqrt(dxn * dxn + dyn * dyn), 0.0, 255.0), extent=extent
    )


def enhance(src, n_outputs=10, gain=cte.ENHANCE_GAIN, gamma=cte.ENHANCE_GAMMA, name="enhance"):
    """
    Fan-out of n_outputs independent branches, each computing
    pow(average_3x3(f) * gain, gamma).

    Returns:
        list of FunctionNodes
    """
    if n_outputs < 1:
        raise ValueError("n_outputs must be >= 1")
    f = as_source(src)
    graph = graph_of(src)
    extent = source_extent(f)
    box = as_buffer(BOX_3X3, "box_3x3")
    outs = []
    for n in range(n_outputs):
        avg = stencil_conv(f, box, name=f"{name}_avg{n}", extent=extent)
        outs.append(
            FunctionNode(f"{name}{n}", graph).define((avg(x, y) * gain) ** gamma, extent=extent)
        )
    return outs


__all__ = ["gaussian_blur", "unsharp", "laplace", "prewitt", "enhance"]
