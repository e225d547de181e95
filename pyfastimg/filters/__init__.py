"""
Algorithm library: builders turning Buffers and parameters into
FunctionNode graphs.

Core Modules:
- stencil: windowed convolution (optionally normalised and decimated)
- pyramid: Gaussian/Laplacian pyramids, bilinear upsampling, reconstruction
- blend: multiresolution image mosaics
- bilateral: bilateral filter and its multiscale use on pyramids
- atrous: a-trous cascade on packed RGBA pixels
- tonemap: scotopic tone mapping
- corner: Shi-Tomasi corner response
- reduction: pairwise tree sum
- enhance: Gaussian blur, unsharp, Laplace, Prewitt, gamma enhancement
- masks: fixed coefficient tables

Author: B.G.
"""

from . import (
    atrous,
    bilateral,
    blend,
    color,
    corner,
    enhance,
    masks,
    pyramid,
    reduction,
    stencil,
    tonemap,
)
from .atrous import atrous_cascade, atrous_filter, night_filter
from .bilateral import bilateral_filter, bilateral_pyramid
from .blend import blend_pyramids, half_split, linear_ramp, mosaic
from .corner import corner_response
from .enhance import enhance as gamma_enhance
from .enhance import gaussian_blur, laplace, prewitt, unsharp
from .pyramid import gaussian_pyramid, laplacian_pyramid, reconstruct, upsample
from .reduction import sequential_sum, tree_sum
from .stencil import stencil_conv
from .tonemap import scoto

__all__ = [
    "atrous",
    "bilateral",
    "blend",
    "color",
    "corner",
    "enhance",
    "masks",
    "pyramid",
    "reduction",
    "stencil",
    "tonemap",
    "stencil_conv",
    "gaussian_pyramid",
    "laplacian_pyramid",
    "upsample",
    "reconstruct",
    "blend_pyramids",
    "half_split",
    "linear_ramp",
    "mosaic",
    "bilateral_filter",
    "bilateral_pyramid",
    "atrous_filter",
    "atrous_cascade",
    "night_filter",
    "scoto",
    "corner_response",
    "tree_sum",
    "sequential_sum",
    "gaussian_blur",
    "unsharp",
    "laplace",
    "prewitt",
    "gamma_enhance",
]
