"""
Sums over 1D integer buffers.

tree_sum builds a pairwise halving tree: level k+1 has ceil(n_k / 2) entries,

    next(i) = prev(2i) + (prev(2i + 1) if 2i + 1 < n_k else 0)

so the combine order depends only on n. sequential_sum is the plain
accumulation over a reduction domain into a zero-dimensional node.

Author: B.G.
"""

from ..errors import ConstructionError
from ..graph import Const, FunctionNode, ReductionDomain, select, x
from ..graph.func import get_default_graph


def _check_1d(buf):
    if buf.ndim != 1:
        raise ConstructionError(f"Expected a 1D buffer, '{buf.name}' has {buf.ndim} dimensions")


def tree_sum(buf, name="tree_sum"):
    """
    Pairwise sum of a 1D buffer.

    Returns:
        FunctionNode of extent (1,) holding the sum (0 for an empty buffer)
    """
    _check_1d(buf)
    graph = get_default_graph()
    n = buf.extent[0]
    if n == 0:
        return FunctionNode(name, graph).define(Const(0, buf.dtype), vars=(x,), extent=(1,))
    level = FunctionNode(f"{name}0", graph).define(buf(x), vars=(x,), extent=(n,))
    k = 0
    while n > 1:
        half = (n + 1) // 2
        k += 1
        prev = level
        odd = 2 * x + 1
        level = FunctionNode(f"{name}{k}", graph).define(
            prev(2 * x) + select(odd < n, prev(odd), 0), vars=(x,), extent=(half,)
        )
        n = half
    return level


def sequential_sum(buf, name="sum"):
    """
    Row-major accumulation of a 1D buffer.

    Returns:
        Zero-dimensional FunctionNode
    """
    _check_1d(buf)
    r = ReductionDomain([(0, buf.extent[0])], name=f"r_{name}")
    return FunctionNode(name, get_default_graph()).define_reduction(
        buf(r.x), r, init=Const(0, buf.dtype), vars=(), extent=()
    )


__all__ = ["tree_sum", "sequential_sum"]
