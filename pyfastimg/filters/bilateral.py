"""
Edge-aware bilateral filter, standalone or as pyramid level processing.

For a pixel p and an offset n of the k x k domain:

    delta  = f(p + n) - f(p)
    weight = exp(-c * delta^2) * W(n),   c = 0.5 / sigma^2
    out(p) = sum(weight * f(p + n)) / sum(weight) + bias

The same sigma drives the range falloff and the spatial mask W (a sigma x
sigma Gaussian, see masks.bilateral_mask), and the bias (0.5) is always
added. Inputs of other element types are filtered in float32.

Author: B.G.
"""

import numpy as np

from .. import constants as cte
from ..graph import FunctionNode, ReductionDomain, exp, x, y
from .masks import as_buffer, bilateral_mask
from .pyramid import laplacian_pyramid, process_levels, reconstruct
from .stencil import as_float, graph_of, source_extent


def _default_mask(sigma):
    mask = bilateral_mask(sigma)
    k = mask.shape[0]
    return as_buffer(mask, f"bilateral_{k}x{k}")


def bilateral_filter(
    src,
    mask=None,
    sigma=cte.BILATERAL_SIGMA,
    bias=cte.BILATERAL_BIAS,
    rdom=None,
    name="bilateral",
):
    """
    Build a bilateral filter node.

    Args:
        src: Buffer, BoundaryAccessor or FunctionNode
        mask: Spatial weight Buffer; built from sigma by default
        sigma: Bandwidth of the range falloff and of the default spatial mask
        bias: Constant added to every output
        rdom: Reduction domain, centred on the mask by default

    Returns:
        FunctionNode (float32)
    """
    if mask is None:
        mask = _default_mask(sigma)
    f = as_float(src, f"{name}_f32")
    if rdom is None:
        rdom = ReductionDomain.centered(mask, name=f"r_{name}")
    else:
        rdom.check_kernel(mask)
    graph = graph_of(f)
    extent = source_extent(f)

    c_r = np.float32(0.5 / (sigma * sigma))
    neighbour = f(x + rdom.x, y + rdom.y)
    diff = neighbour - f(x, y)
    weight = exp(diff * diff * -c_r) * rdom.tap(mask)

    d = FunctionNode(f"{name}_d", graph).define_reduction(weight, rdom, extent=extent)
    p = FunctionNode(f"{name}_p", graph).define_reduction(weight * neighbour, rdom, extent=extent)
    return FunctionNode(name, graph).define(p(x, y) / d(x, y) + bias, extent=extent)


def bilateral_pyramid(
    src,
    levels=cte.PYRAMID_LEVELS,
    mask=None,
    kernel=None,
    sigma=cte.BILATERAL_SIGMA,
    detail_gain=cte.PYRAMID_DETAIL_GAIN,
    name="pyr",
):
    """
    Multiscale bilateral filtering (the image pyramid benchmark).

    Levels 1..L-1 of the Laplacian pyramid of src go through bilateral_filter,
    level 0 passes through, and the result is collapsed with reconstruct.
    """
    if mask is None:
        mask = _default_mask(sigma)
    lap = laplacian_pyramid(src, levels, kernel, name=f"{name}_lap")

    def _filter(level, j):
        return bilateral_filter(level, mask, sigma=sigma, name=f"{name}_bil{j}")

    processed = process_levels(lap, _filter, skip=(0,))
    return reconstruct(processed, detail_gain, name=name)


__all__ = ["bilateral_filter", "bilateral_pyramid"]
