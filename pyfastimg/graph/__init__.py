"""
Dataflow graph model for PyFastImg.

Pipelines are written as graphs of FunctionNodes: lazy, named array
expressions over pure coordinates (x, y), possibly defined by an accumulation
over a ReductionDomain. Buffers enter the graph through BufferRead
expressions, usually via a repeat-edge BoundaryAccessor.

Core Modules:
- expr: expression variants and construction helpers
- rdom: ReductionDomain
- func: FunctionNode, Graph arena, Pure/Reduce bodies
- boundary: BoundaryAccessor (repeat edge)
- schedule: topological ordering and extent inference

Usage:
    import pyfastimg as pfi
    from pyfastimg.graph import FunctionNode, ReductionDomain, repeat_edge, x, y

    img = pfi.Buffer(data)
    mask = pfi.Buffer(pfi.filters.masks.BOX_3X3)
    r = ReductionDomain.centered(mask)
    gray = repeat_edge(img)
    blur = FunctionNode("blur").define_reduction(gray(x + r.x, y + r.y) * r.tap(mask), r)

Author: B.G.
"""

from .boundary import BoundaryAccessor, repeat_edge
from .expr import (
    BinaryOp,
    BufferRead,
    Call,
    Cast,
    Const,
    Expr,
    RVar,
    Select,
    UnaryOp,
    Var,
    as_expr,
    cast,
    clamp,
    eq,
    exp,
    floor,
    log,
    maximum,
    minimum,
    ne,
    select,
    sqrt,
    x,
    y,
)
from .func import (
    FunctionNode,
    Graph,
    Pure,
    Reduce,
    func,
    get_default_graph,
    reduce_func,
    reset_default_graph,
)
from .rdom import ReductionDomain
from .schedule import infer_extents, topological_order

__all__ = [
    "BoundaryAccessor",
    "repeat_edge",
    "Expr",
    "Const",
    "Var",
    "RVar",
    "BinaryOp",
    "UnaryOp",
    "Cast",
    "Select",
    "Call",
    "BufferRead",
    "as_expr",
    "cast",
    "clamp",
    "eq",
    "ne",
    "exp",
    "log",
    "floor",
    "sqrt",
    "minimum",
    "maximum",
    "select",
    "x",
    "y",
    "FunctionNode",
    "Graph",
    "Pure",
    "Reduce",
    "func",
    "reduce_func",
    "get_default_graph",
    "reset_default_graph",
    "ReductionDomain",
    "topological_order",
    "infer_extents",
]
