"""
Gaussian / Laplacian pyramids and their reconstruction.

- gaussian_pyramid: level 0 is the repeat-edge input, level j is level j-1
  low-passed by a 3x3 kernel and decimated by 2, so that
  extent(j) = ceil(extent(0) / 2^j).
- laplacian_pyramid: lap[L-1] = gauss[L-1], lap[j] = gauss[j] - up(gauss[j+1]).
- upsample: separable bilinear interpolation with fixed taps 0.75 / 0.25.
- reconstruct: coarse to fine, out[j] = up(out[j+1]) + gain * levels[j].

A pyramid with a single level (or fewer) is a passthrough of its input.

Usage:
    import pyfastimg as pfi
    from pyfastimg.filters import pyramid

    lap = pyramid.laplacian_pyramid(img, levels=8)
    out = pyramid.reconstruct(lap, detail_gain=1.0)
    res = pfi.Pipeline(out).realize()

Author: B.G.
"""

from .. import constants as cte
from ..errors import ConstructionError
from ..graph import FunctionNode, x, y
from .masks import GAUSSIAN_3X3, as_buffer
from .stencil import as_float, graph_of, stencil_conv, wrap_input


def level_extents(extent, levels=cte.PYRAMID_LEVELS):
    """Extents of every pyramid level for an input of the given extent."""
    out = [tuple(extent)]
    for _ in range(1, max(levels, 1)):
        out.append(tuple((e + 1) // 2 for e in out[-1]))
    return out


def upsample(f, extent, name="up"):
    """
    Bilinear 2x upsampling of f onto extent.

    For an output column x the taps are f(x // 2) (weight 0.75) and
    f(x // 2 - 1 + 2 * (x % 2)) (weight 0.25), i.e. the nearer and farther
    coarse neighbours; the same is then done along y on the x-upsampled
    intermediate.
    """
    if f.extent is None:
        raise ConstructionError(f"Cannot upsample '{f.name}': its extent is not declared")
    graph = graph_of(f)
    upx = FunctionNode(f"{name}_x", graph).define(
        0.25 * f((x // 2) - 1 + 2 * (x % 2), y) + 0.75 * f(x // 2, y),
        extent=(extent[0], f.extent[1]),
    )
    upy = FunctionNode(name, graph).define(
        0.25 * upx(x, (y // 2) - 1 + 2 * (y % 2)) + 0.75 * upx(x, y // 2),
        extent=tuple(extent),
    )
    return upy


def gaussian_pyramid(src, levels=cte.PYRAMID_LEVELS, kernel=None, name="gauss"):
    """
    Build the Gaussian pyramid of src.

    Args:
        src: Buffer, BoundaryAccessor or FunctionNode with a declared extent
            (non-float32 inputs are converted to float32)
        levels: Number of levels (values below 1 give a single level)
        kernel: 3x3 low-pass Buffer, GAUSSIAN_3X3 by default
        name: Prefix of the level names

    Returns:
        list of FunctionNodes, finest first
    """
    if kernel is None:
        kernel = as_buffer(GAUSSIAN_3X3, "gaussian_3x3")
    base = wrap_input(as_float(src, f"{name}0"), f"{name}0")
    if base.extent is None:
        raise ConstructionError("The pyramid input needs a declared extent")
    pyr = [base]
    for j in range(1, max(levels, 1)):
        pyr.append(stencil_conv(pyr[-1], kernel, name=f"{name}{j}", decimate=True))
    return pyr


def laplacian_pyramid(src, levels=cte.PYRAMID_LEVELS, kernel=None, name="lap"):
    """
    Build the Laplacian pyramid of src.

    Returns:
        list of FunctionNodes, finest first; the last level is the coarsest
        Gaussian level
    """
    gauss = gaussian_pyramid(src, levels, kernel, name=f"{name}_gauss")
    lap = [None] * len(gauss)
    lap[-1] = gauss[-1]
    for j in range(len(gauss) - 2, -1, -1):
        up = upsample(gauss[j + 1], gauss[j].extent, name=f"{name}_up{j}")
        lap[j] = FunctionNode(f"{name}{j}", gauss[j].graph).define(
            gauss[j](x, y) - up(x, y), extent=gauss[j].extent
        )
    return lap


def reconstruct(levels, detail_gain=cte.PYRAMID_DETAIL_GAIN, name="collapse"):
    """
    Collapse a (processed) Laplacian pyramid, coarsest to finest.

    Args:
        levels: list of FunctionNodes, finest first, with declared extents
        detail_gain: Weight of every detail level (1.0 inverts laplacian_pyramid)
        name: Prefix of the intermediate names

    Returns:
        FunctionNode with the extent of levels[0]
    """
    levels = list(levels)
    if not levels:
        raise ConstructionError("Cannot reconstruct an empty pyramid")
    out = levels[-1]
    for j in range(len(levels) - 2, -1, -1):
        up = upsample(out, levels[j].extent, name=f"{name}_up{j}")
        out = FunctionNode(f"{name}{j}", levels[j].graph).define(
            up(x, y) + levels[j](x, y) * detail_gain, extent=levels[j].extent
        )
    return out


def process_levels(levels, fn, skip=(0,)):
    """
    Apply fn(level_node, j) to every level whose index is not in skip.
    Skipped levels pass through unchanged.
    """
    return [lvl if j in skip else fn(lvl, j) for j, lvl in enumerate(levels)]


__all__ = [
    "level_extents",
    "upsample",
    "gaussian_pyramid",
    "laplacian_pyramid",
    "reconstruct",
    "process_levels",
]
