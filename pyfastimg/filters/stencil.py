"""
Windowed convolution (StencilConv) and the source helpers shared by every
filter builder.

    out(x, y) = sum_{d in domain} f(x + d.x, y + d.y) * K(d)

accumulated in the domain's row-major order, optionally divided by a fixed
norm and/or decimated by 2 (out(x, y) = blur(2x, 2y)) to serve as the
down-sampling stage of a pyramid.

Author: B.G.
"""

from ..buffer import Buffer
from ..errors import ConstructionError
from ..graph import BoundaryAccessor, FunctionNode, ReductionDomain, cast, repeat_edge, x, y
from ..graph.expr import F32
from ..graph.func import get_default_graph


def as_source(src):
    """
    Normalise a filter input: Buffers get repeat-edge addressing, FunctionNodes
    and BoundaryAccessors pass through.
    """
    if isinstance(src, Buffer):
        return repeat_edge(src)
    if isinstance(src, (FunctionNode, BoundaryAccessor)):
        return src
    raise TypeError(f"Expected a Buffer, BoundaryAccessor or FunctionNode, got {type(src).__name__}")


def graph_of(*sources):
    """Graph that nodes built from sources must join."""
    for s in sources:
        if isinstance(s, FunctionNode):
            return s.graph
    return get_default_graph()


def source_extent(src):
    """Extent of a source when known at build time, else None."""
    if isinstance(src, (Buffer, BoundaryAccessor)):
        return tuple(src.extent)
    if isinstance(src, FunctionNode):
        return src.extent
    return None


def half_extent(extent):
    """Extent after 2x decimation: ceil(e / 2) per axis."""
    return tuple((e + 1) // 2 for e in extent)


def wrap_input(src, name="input"):
    """
    FunctionNode reading src over its own extent (repeat edge outside).
    """
    src = as_source(src)
    if isinstance(src, FunctionNode):
        return src
    return FunctionNode(name, graph_of(src)).define(src(x, y), extent=src.extent)


def as_float(src, name="as_f32"):
    """
    float32 view of a filter input. float32 sources pass through as_source;
    any other element type is converted by a FunctionNode over the source's
    extent, so arithmetic on the pixels cannot wrap around.
    """
    src = as_source(src)
    if src.dtype == F32:
        return src
    return FunctionNode(name, graph_of(src)).define(
        cast(F32, src(x, y)), extent=source_extent(src)
    )


def stencil_conv(
    src,
    kernel,
    name="conv",
    rdom=None,
    decimate=False,
    divisor=None,
    extent=None,
    skip_zero_taps=False,
):
    """
    Build a 2D convolution of src by kernel.

    Args:
        src: Buffer, BoundaryAccessor or FunctionNode (2D)
        kernel: 2D Buffer of coefficients
        name: Name of the returned node
        rdom: Reduction domain; by default a domain centred on the kernel
        decimate: Keep every other sample on both axes
        divisor: Optional norm the sum is divided by (floor division when
            both the sum and the divisor are integers)
        extent: Optional extent of the returned node
        skip_zero_taps: With the default domain, skip zero coefficients

    Returns:
        FunctionNode

    Raises:
        ConstructionError: If the domain does not match the kernel shape
    """
    f = as_source(src)
    if kernel.ndim != 2 or f.arity != 2:
        raise ConstructionError(f"'{name}' needs a 2D source and a 2D kernel")
    if rdom is None:
        rdom = ReductionDomain.centered(kernel, skip_zero_taps=skip_zero_taps, name=f"r_{name}")
    else:
        rdom.check_kernel(kernel)
    graph = graph_of(src)

    if not decimate and divisor is None:
        return FunctionNode(name, graph).define_reduction(
            f(x + rdom.x, y + rdom.y) * rdom.tap(kernel), rdom, extent=extent
        )

    src_ext = source_extent(f)
    acc = FunctionNode(f"{name}_sum", graph).define_reduction(
        f(x + rdom.x, y + rdom.y) * rdom.tap(kernel), rdom, extent=src_ext
    )
    if decimate:
        if extent is None:
            if src_ext is None:
                raise ConstructionError(
                    f"Decimated '{name}' needs the extent of its source; declare it"
                )
            extent = half_extent(src_ext)
        value = acc(2 * x, 2 * y)
    else:
        value = acc(x, y)
    if divisor is not None:
        value = value / divisor
    return FunctionNode(name, graph).define(value, extent=extent)


__all__ = [
    "as_source",
    "graph_of",
    "source_extent",
    "half_extent",
    "wrap_input",
    "as_float",
    "stencil_conv",
]
