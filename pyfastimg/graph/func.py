"""
FunctionNode and the graph arena.

A FunctionNode is a named, lazily evaluated array expression. Nodes live in a
Graph: an arena of integer-indexed records, each holding the node's name, its
pure coordinate variables, an optional declared extent and its body. Bodies
come in two variants:

- Pure(expr): out(vars) = expr
- Reduce(init, update, rdom, op): out(vars) = init, then for every point of
  rdom in row-major order out(vars) = op(out(vars), update)

A node is declared first and defined exactly once. Only defined nodes can be
called, so a definition can never reference itself or a node defined after it:
the graph is acyclic by construction. Calls across graphs are rejected.

Usage:
    from pyfastimg.graph import FunctionNode, x, y

    g = FunctionNode("g").define(src(x, y) * 2.0)
    h = FunctionNode("h").define(g(x + 1, y) - g(x, y))

Author: B.G.
"""

from ..errors import ConstructionError
from .expr import (
    Call,
    Var,
    as_expr,
    called_funcs,
    free_rvars,
    free_vars,
    operand_type,
    read_buffers,
    x,
    y,
)

REDUCE_OPS = ("add", "mul", "min", "max")


class Pure:
    __slots__ = ("expr",)

    def __init__(self, expr):
        self.expr = expr

    def exprs(self):
        return (self.expr,)


class Reduce:
    __slots__ = ("init", "update", "rdom", "op")

    def __init__(self, init, update, rdom, op):
        self.init = init
        self.update = update
        self.rdom = rdom
        self.op = op

    def exprs(self):
        return (self.update, self.init)


class _NodeRecord:
    __slots__ = ("name", "vars", "body", "extent", "dtype")

    def __init__(self, name):
        self.name = name
        self.vars = None
        self.body = None
        self.extent = None
        self.dtype = None


class Graph:
    """Arena holding the records of every FunctionNode built in it."""

    def __init__(self, name="graph"):
        self.name = name
        self._records = []

    def _add(self, name):
        self._records.append(_NodeRecord(name))
        return len(self._records) - 1

    def record(self, index):
        return self._records[index]

    def __len__(self):
        return len(self._records)

    def __repr__(self):
        return f"Graph({self.name!r}, {len(self)} nodes)"


_default_graph = [Graph("default")]


def get_default_graph():
    return _default_graph[0]


def reset_default_graph():
    """Start a fresh default graph. Existing nodes keep their own graph."""
    _default_graph[0] = Graph("default")
    return _default_graph[0]


class FunctionNode:
    """
    Handle on a node of a Graph.

    Args:
        name: Node name (not required to be unique)
        graph: Owning graph, the default graph when None
    """

    __slots__ = ("graph", "index")

    def __init__(self, name, graph=None):
        self.graph = get_default_graph() if graph is None else graph
        self.index = self.graph._add(name)

    @property
    def _rec(self):
        return self.graph.record(self.index)

    @property
    def name(self):
        return self._rec.name

    @property
    def defined(self):
        return self._rec.body is not None

    @property
    def body(self):
        return self._rec.body

    @property
    def vars(self):
        return self._rec.vars

    @property
    def arity(self):
        return len(self._rec.vars)

    @property
    def dtype(self):
        return self._rec.dtype

    @property
    def extent(self):
        """Declared extent in coordinate order, or None to infer it at planning."""
        return self._rec.extent

    @property
    def is_reduction(self):
        return isinstance(self._rec.body, Reduce)

    def __repr__(self):
        state = "defined" if self.defined else "declared"
        return f"FunctionNode({self.name!r}#{self.index}, {state})"

    # ------------------------------------------------------------------
    # Definition
    # ------------------------------------------------------------------

    def _check_definable(self, vars, extent):
        if self.defined:
            raise ConstructionError(f"FunctionNode '{self.name}' is already defined")
        vars = tuple(vars)
        if any(not isinstance(v, Var) for v in vars):
            raise ConstructionError(f"Pure variables of '{self.name}' must be Var objects")
        if len({id(v) for v in vars}) != len(vars):
            raise ConstructionError(f"Repeated pure variable in the definition of '{self.name}'")
        if extent is not None:
            extent = tuple(int(e) for e in extent)
            if len(extent) != len(vars):
                raise ConstructionError(
                    f"Extent {extent} of '{self.name}' does not match its arity {len(vars)}"
                )
            if any(e < 0 for e in extent):
                raise ConstructionError(f"Negative extent {extent} for '{self.name}'")
        return vars, extent

    def _check_expr(self, expr, vars, rdom=None):
        for v in free_vars(expr):
            if all(v is not pv for pv in vars):
                raise ConstructionError(
                    f"Variable '{v.name}' is not a pure variable of '{self.name}'"
                )
        for rv in free_rvars(expr):
            if rdom is None or rv.rdom is not rdom:
                raise ConstructionError(
                    f"Reduction variable {rv!r} does not belong to the domain of '{self.name}'"
                )
        for f in called_funcs(expr):
            if f.graph is not self.graph:
                raise ConstructionError(
                    f"'{self.name}' references '{f.name}' from another graph"
                )
            if f.index == self.index:
                raise ConstructionError(f"'{self.name}' references itself")

    def define(self, expr, vars=(x, y), extent=None):
        """
        Give the node a pure definition.

        Args:
            expr: Defining expression (or scalar)
            vars: Pure variables, in argument order
            extent: Optional realized extent in coordinate order

        Returns:
            self, so that definitions can be chained on construction
        """
        vars, extent = self._check_definable(vars, extent)
        expr = as_expr(expr)
        self._check_expr(expr, vars)
        rec = self._rec
        rec.vars = vars
        rec.extent = extent
        rec.dtype = expr.dtype
        rec.body = Pure(expr)
        return self

    def define_reduction(self, update, rdom, init=0, op="add", vars=(x, y), extent=None):
        """
        Define the node as an accumulation over a reduction domain.

        Args:
            update: Value combined into the accumulator at every domain point
            rdom: The ReductionDomain iterated (row-major)
            init: Initial value, may depend on the pure variables
            op: Combine operator ('add', 'mul', 'min', 'max')
            vars: Pure variables, in argument order
            extent: Optional realized extent in coordinate order

        Returns:
            self
        """
        if op not in REDUCE_OPS:
            raise ConstructionError(f"Unknown reduction operator '{op}'")
        vars, extent = self._check_definable(vars, extent)
        update = as_expr(update)
        init = as_expr(init)
        self._check_expr(update, vars, rdom)
        self._check_expr(init, vars)
        rec = self._rec
        rec.vars = vars
        rec.extent = extent
        rec.dtype = operand_type(init, update)
        rec.body = Reduce(init, update, rdom, op)
        return self

    # ------------------------------------------------------------------
    # Use
    # ------------------------------------------------------------------

    def __call__(self, *args):
        if not self.defined:
            raise ConstructionError(
                f"FunctionNode '{self.name}' is called before being defined "
                "(forward or cyclic reference)"
            )
        if len(args) != self.arity:
            raise ConstructionError(
                f"'{self.name}' takes {self.arity} coordinates, got {len(args)}"
            )
        return Call(self, args)

    def dependencies(self):
        """FunctionNodes read directly by this node's body."""
        out = []
        if self.defined:
            for e in self.body.exprs():
                for f in called_funcs(e):
                    if all(f is not g for g in out):
                        out.append(f)
        return out

    def buffers(self, clamped=None):
        """Buffers read directly by this node's body."""
        out = []
        if self.defined:
            for e in self.body.exprs():
                for b in read_buffers(e, clamped):
                    if all(b is not c for c in out):
                        out.append(b)
        return out


def func(name, expr, vars=(x, y), extent=None, graph=None):
    """Declare and define a pure FunctionNode in one call."""
    return FunctionNode(name, graph).define(expr, vars=vars, extent=extent)


def reduce_func(name, update, rdom, init=0, op="add", vars=(x, y), extent=None, graph=None):
    """Declare and define a reduction FunctionNode in one call."""
    return FunctionNode(name, graph).define_reduction(
        update, rdom, init=init, op=op, vars=vars, extent=extent
    )


__all__ = [
    "FunctionNode",
    "Graph",
    "Pure",
    "Reduce",
    "REDUCE_OPS",
    "func",
    "reduce_func",
    "get_default_graph",
    "reset_default_graph",
]
