"""
Multiresolution blending of two images (image mosaics).

Both inputs are decomposed into Laplacian pyramids, merged level by level
with a per-pixel selector, and the merged pyramid is collapsed.

A selector is a callable (x, y, level) -> expression. A boolean expression
picks the first image where true (hard seam); a float expression is the
weight of the first image (feathered seam).

Author: B.G.
"""

from .. import constants as cte
from ..errors import ConstructionError
from ..graph import FunctionNode, as_expr, select, x, y
from .pyramid import laplacian_pyramid, reconstruct


def half_split(width):
    """
    Hard left/right split: left half from the first image.

    Coordinates of level j are scaled by 2^j so that every level cuts at the
    same position of the full-resolution image.
    """

    def selector(xc, yc, level):
        return xc * (2**level) < width // 2

    return selector


def linear_ramp(width, feather):
    """
    Feathered split: weight 1 on the left, 0 on the right, with a linear
    transition of `feather` full-resolution pixels centred on width / 2.
    """
    if feather <= 0:
        raise ValueError("feather must be > 0")
    start = width / 2.0 - feather / 2.0

    def selector(xc, yc, level):
        pos = xc * (2**level) * 1.0
        w = 1.0 - (pos - start) / float(feather)
        return select(w > 1.0, 1.0, select(w < 0.0, 0.0, w))

    return selector


def blend_pyramids(lap_a, lap_b, selector, name="merge"):
    """
    Merge two Laplacian pyramids level by level.

    Raises:
        ConstructionError: If the pyramids differ in depth or level extents
    """
    if len(lap_a) != len(lap_b):
        raise ConstructionError(
            f"Cannot blend pyramids of {len(lap_a)} and {len(lap_b)} levels"
        )
    merged = []
    for j, (a, b) in enumerate(zip(lap_a, lap_b)):
        if a.extent != b.extent:
            raise ConstructionError(
                f"Level {j} extents differ: {a.extent} vs {b.extent}"
            )
        sel = as_expr(selector(x, y, j))
        if sel.dtype.kind == "b":
            value = select(sel, a(x, y), b(x, y))
        else:
            value = a(x, y) * sel + b(x, y) * (1.0 - sel)
        merged.append(FunctionNode(f"{name}{j}", a.graph).define(value, extent=a.extent))
    return merged


def mosaic(
    img_a,
    img_b,
    levels=cte.PYRAMID_LEVELS,
    selector=None,
    kernel=None,
    detail_gain=cte.PYRAMID_DETAIL_GAIN,
    name="mosaic",
):
    """
    Blend two same-size images through their Laplacian pyramids.

    Args:
        img_a, img_b: Input Buffers of identical shape
        levels: Pyramid depth
        selector: (x, y, level) -> expr; half_split on the image width by default
        kernel: Low-pass kernel Buffer of the pyramids
        detail_gain: Weight of the detail levels on reconstruction

    Returns:
        FunctionNode of the blended image
    """
    if tuple(img_a.extent) != tuple(img_b.extent):
        raise ConstructionError(
            f"Mosaic inputs differ in extent: {tuple(img_a.extent)} vs {tuple(img_b.extent)}"
        )
    if selector is None:
        selector = half_split(img_a.extent[0])
    lap_a = laplacian_pyramid(img_a, levels, kernel, name=f"{name}_a")
    lap_b = laplacian_pyramid(img_b, levels, kernel, name=f"{name}_b")
    merged = blend_pyramids(lap_a, lap_b, selector, name=f"{name}_merge")
    return reconstruct(merged, detail_gain, name=name)


__all__ = ["half_split", "linear_ramp", "blend_pyramids", "mosaic"]
