"""
A-trous (dilated) edge-aware filtering of packed RGBA images.

One stage filters a packed uint32 image with a dilated Gaussian mask. Each
neighbour is weighted by its photometric distance to the centre pixel:

    ss     = |rgb(p + n) - rgb(p)|^2          (channels in [0, 1])
    weight = min(1, (1 + ss / 256) ^ 256)     (8 successive squarings)

and the channels are averaged with weight * mask(n). The cascade runs the
3x3, 5x5, 9x9 and 17x17 stages one after the other, each reading the packed
output of the previous one; the night filter adds the scotopic tone mapping
at the end.

Author: B.G.
"""

from ..errors import ConstructionError
from ..graph import FunctionNode, ReductionDomain, select, x, y
from ..graph.expr import U32
from .color import pack_rgba, round_to_u32, unpack_rgb
from .masks import ATROUS_MASKS, ATROUS_SIZES, as_buffer
from .stencil import as_source, graph_of, source_extent
from .tonemap import scoto


def photometric_weight(ss):
    """min(1, (1 + ss/256)^256), the power taken by 8 squarings."""
    xx = 1.0 + ss / 256.0
    for _ in range(8):
        xx = xx * xx
    return select(xx > 1.0, 1.0, xx)


def atrous_filter(src, mask, name="atrous", skip_zero_taps=True):
    """
    Build one a-trous stage.

    Args:
        src: uint32 packed image (Buffer, BoundaryAccessor or FunctionNode)
        mask: float32 Buffer, usually a dilated Gaussian
        name: Name of the returned node
        skip_zero_taps: Leave the zero taps of dilated masks out of the domain

    Returns:
        FunctionNode of packed uint32 pixels
    """
    f = as_source(src)
    if f.dtype != U32:
        raise ConstructionError(f"'{name}' expects packed uint32 pixels, got {f.dtype}")
    rdom = ReductionDomain.centered(mask, skip_zero_taps=skip_zero_taps, name=f"r_{name}")
    graph = graph_of(src)
    extent = source_extent(f)

    centre = [c / 255.0 for c in unpack_rgb(f(x, y))]
    neighbour = [c / 255.0 for c in unpack_rgb(f(x + rdom.x, y + rdom.y))]
    rd, gd, bd = [n - c for n, c in zip(neighbour, centre)]
    weight = photometric_weight(rd * rd + gd * gd + bd * bd) * rdom.tap(mask)

    sum_w = FunctionNode(f"{name}_w", graph).define_reduction(weight, rdom, extent=extent)
    sums = [
        FunctionNode(f"{name}_{ch}", graph).define_reduction(weight * n, rdom, extent=extent)
        for ch, n in zip("rgb", neighbour)
    ]
    chans = [round_to_u32(s(x, y) * 255.0 / sum_w(x, y)) for s in sums]
    return FunctionNode(name, graph).define(pack_rgba(*chans), extent=extent)


def atrous_cascade(src, sizes=ATROUS_SIZES, masks=None, name="atrous"):
    """
    Chain a-trous stages, each one reading the previous output.

    Args:
        src: uint32 packed image
        sizes: Mask sizes, in application order
        masks: Optional dict size -> mask Buffer

    Returns:
        list of stage nodes; the last one is the cascade output
    """
    if not sizes:
        raise ConstructionError("An a-trous cascade needs at least one stage")
    stages = []
    current = src
    for size in sizes:
        if masks is not None and size in masks:
            mask = masks[size]
        else:
            mask = as_buffer(ATROUS_MASKS[size], f"atrous_{size}x{size}")
        current = atrous_filter(current, mask, name=f"{name}{size}")
        stages.append(current)
    return stages


def night_filter(src, sizes=ATROUS_SIZES, name="night"):
    """A-trous cascade followed by the scotopic tone mapper."""
    stages = atrous_cascade(src, sizes, name=f"{name}_atrous")
    return scoto(stages[-1], name=name)


__all__ = ["photometric_weight", "atrous_filter", "atrous_cascade", "night_filter"]
