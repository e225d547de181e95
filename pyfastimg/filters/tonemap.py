"""
Scotopic ("night vision") tone mapping of packed RGBA images.

RGB goes through a fixed matrix to an XYZ-like space, the scotopic luminance

    V = Y * (((Y + Z) / X + 1) * 1.33 - 1.68)

replaces Y, chromaticity is mixed toward the grey point (0.25, 0.25) by the
saturation factor s, and a fixed matrix brings the result back to RGB.

With the default s = 0 the output is fully desaturated. The green and blue
clamps both select the clamped red value, so every output pixel has
R == G == B; alpha is 0xff.

Author: B.G.
"""

from .. import constants as cte
from ..errors import ConstructionError
from ..graph import FunctionNode, cast, select, x, y
from ..graph.expr import F32, U32
from .color import pack_rgba, unpack_rgb
from .stencil import as_source, graph_of, source_extent


def _clamp_channel(value, red):
    value = select(value > 255.0, 255.0, red)
    return select(value < 0.0, 0.0, red)


def scoto(src, saturation=cte.SCOTOPIC_MIX, name="scoto"):
    """
    Build the scotopic tone mapping node.

    Args:
        src: uint32 packed image (Buffer, BoundaryAccessor or FunctionNode)
        saturation: Mix factor s in [0, 1]
        name: Node name

    Returns:
        FunctionNode of packed uint32 pixels
    """
    f = as_source(src)
    if f.dtype != U32:
        raise ConstructionError(f"'{name}' expects packed uint32 pixels, got {f.dtype}")
    rin, gin, bin_ = [cast(F32, c) for c in unpack_rgb(f(x, y))]

    X = 0.5149 * rin + 0.3244 * gin + 0.1607 * bin_
    Y = (0.2654 * rin + 0.6704 * gin + 0.0642 * bin_) / 3.0
    Z = 0.0248 * rin + 0.1248 * gin + 0.8504 * bin_
    V = Y * ((((Y + Z) / X) + 1.0) * 1.33 - 1.68)

    s = float(saturation)
    if s:
        W = X + Y + Z
        x1 = (1.0 - s) * 0.25 + s * (X / W)
        y1 = (1.0 - s) * 0.25 + s * (Y / W)
        Y = V * 0.4468 * (1.0 - s) + s * Y
    else:
        x1 = y1 = 0.25
        Y = V * 0.4468
    X = (x1 * Y) / y1
    Z = (X / y1) - X - Y

    r = 2.562263 * X + -1.166107 * Y + -0.396157 * Z
    g = -1.021558 * X + 1.977828 * Y + 0.043730 * Z
    b = 0.075196 * X + -0.256248 * Y + 1.181053 * Z

    r = select(r > 255.0, 255.0, r)
    r = select(r < 0.0, 0.0, r)
    g = _clamp_channel(g, r)
    b = _clamp_channel(b, r)

    value = pack_rgba(cast(U32, r), cast(U32, g), cast(U32, b))
    return FunctionNode(name, graph_of(src)).define(value, extent=source_extent(f))


__all__ = ["scoto"]
