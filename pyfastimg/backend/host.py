"""
Reference host backend: a NumPy interpreter over FunctionNode graphs.

Each node of the plan is realized over its whole extent with vectorised
NumPy operations. Pure coordinates are open index grids that broadcast to
the node's host shape; reduction coordinates are scalars, and reductions
loop over their domain points in row-major order, combining one full image
per point. Every operation is evaluated in its result dtype, so float32
pipelines stay float32 end to end.

Sub-expressions are shared: within a node every distinct Expr object is
evaluated once, and for reductions the parts that do not depend on the
reduction coordinates are evaluated once for the whole domain.

Author: B.G.
"""

import logging

import numpy as np

from ..errors import PyFastImgError, RealizeError
from ..graph.expr import (
    BinaryOp,
    BufferRead,
    Call,
    Cast,
    Const,
    RVar,
    Select,
    UnaryOp,
    Var,
    operand_type,
)
from ..graph.func import Reduce
from .base import Backend

logger = logging.getLogger(__name__)


_BINARY = {
    "add": np.add,
    "sub": np.subtract,
    "mul": np.multiply,
    "pow": np.power,
    "min": np.minimum,
    "max": np.maximum,
    "lt": np.less,
    "le": np.less_equal,
    "gt": np.greater,
    "ge": np.greater_equal,
    "eq": np.equal,
    "ne": np.not_equal,
    "and": np.bitwise_and,
    "or": np.bitwise_or,
    "xor": np.bitwise_xor,
}

_COMBINE = {
    "add": np.add,
    "mul": np.multiply,
    "min": np.minimum,
    "max": np.maximum,
}


def _cast_value(value, dtype):
    """Convert value to dtype, saturating float -> int and mapping NaN to 0."""
    value = np.asarray(value)
    if value.dtype == dtype:
        return value
    if dtype.kind in "iu" and value.dtype.kind == "f":
        info = np.iinfo(dtype)
        value = np.nan_to_num(value, nan=0.0, posinf=info.max, neginf=info.min)
        value = np.clip(value, info.min, info.max)
    return value.astype(dtype)


class HostEvaluator:
    """
    Realizes the nodes of one plan, in order, keeping every result in memory.

    Args:
        plan: ExecutablePlan to run
    """

    def __init__(self, plan):
        self.plan = plan
        self.values = {}
        self._rvar_dep = {}

    # ------------------------------------------------------------------
    # Node realization
    # ------------------------------------------------------------------

    def coordinate_grids(self, node):
        shape = self.plan.host_shape_of(node)
        grids = np.meshgrid(
            *[np.arange(n, dtype=np.int32) for n in shape], indexing="ij", sparse=True
        )
        k = node.arity
        return {id(v): grids[k - 1 - i] for i, v in enumerate(node.vars)}, shape

    def realize_node(self, node):
        """Compute node over its planned extent and store the result."""
        env, shape = self.coordinate_grids(node)
        body = node.body
        dtype = node.dtype
        if isinstance(body, Reduce):
            invariant = {}
            acc = self._eval(body.init, env, None, invariant, {})
            acc = np.array(np.broadcast_to(_cast_value(acc, dtype), shape))
            combine = _COMBINE[body.op]
            rvars = body.rdom.rvars
            for point in body.rdom.points():
                renv = {id(rv): np.int32(p) for rv, p in zip(rvars, point)}
                val = self._eval(body.update, env, renv, invariant, {})
                combine(acc, _cast_value(val, dtype), out=acc)
            result = acc
        else:
            val = self._eval(body.expr, env, None, {}, {})
            result = np.array(np.broadcast_to(_cast_value(val, dtype), shape))
        self.values[node.index] = result
        return result

    # ------------------------------------------------------------------
    # Expression evaluation
    # ------------------------------------------------------------------

    def _depends_on_rvar(self, e):
        key = id(e)
        dep = self._rvar_dep.get(key)
        if dep is None:
            if isinstance(e, RVar):
                dep = True
            else:
                dep = any(self._depends_on_rvar(c) for c in e.children())
            self._rvar_dep[key] = dep
        return dep

    def _eval(self, e, env, renv, invariant, variant):
        cache = variant if renv is not None and self._depends_on_rvar(e) else invariant
        key = id(e)
        if key in cache:
            return cache[key]
        value = self._compute(e, env, renv, invariant, variant)
        cache[key] = value
        return value

    def _compute(self, e, env, renv, invariant, variant):
        def ev(sub):
            return self._eval(sub, env, renv, invariant, variant)

        if isinstance(e, Const):
            return e.value
        if isinstance(e, Var):
            try:
                return env[id(e)]
            except KeyError:
                raise RealizeError(f"Unbound variable '{e.name}'") from None
        if isinstance(e, RVar):
            return renv[id(e)]
        if isinstance(e, BinaryOp):
            return self._binary(e, ev(e.a), ev(e.b))
        if isinstance(e, UnaryOp):
            return self._unary(e, ev(e.a))
        if isinstance(e, Cast):
            return _cast_value(ev(e.a), e.dtype)
        if isinstance(e, Select):
            cond = _cast_value(ev(e.cond), np.dtype(np.bool_))
            return np.where(cond, _cast_value(ev(e.t), e.dtype), _cast_value(ev(e.f), e.dtype))
        if isinstance(e, Call):
            return self._read_node(e, [ev(a) for a in e.args])
        if isinstance(e, BufferRead):
            return self._read_buffer(e, [ev(a) for a in e.args])
        raise RealizeError(f"Cannot evaluate expression of type {type(e).__name__}")

    def _binary(self, e, a, b):
        op = e.op
        if op in ("shl", "shr"):
            a = _cast_value(a, e.dtype)
            b = _cast_value(b, e.dtype)
            fn = np.left_shift if op == "shl" else np.right_shift
            return fn(a, b)
        dtype = operand_type(e.a, e.b) if e.dtype.kind == "b" else e.dtype
        a = _cast_value(a, dtype)
        b = _cast_value(b, dtype)
        if op == "div":
            if dtype.kind == "f":
                return np.true_divide(a, b)
            return np.floor_divide(a, b)
        if op == "mod":
            return np.mod(a, b)
        return _BINARY[op](a, b)

    def _unary(self, e, a):
        op = e.op
        a = _cast_value(a, e.dtype)
        if op == "neg":
            return np.negative(a)
        if op == "abs":
            return np.abs(a)
        if op == "exp":
            return np.exp(a)
        if op == "log":
            return np.log(a)
        if op == "sqrt":
            return np.sqrt(a)
        if op == "floor":
            return np.floor(a) if e.dtype.kind == "f" else a
        # "not": logical for booleans, bitwise for integers
        return np.logical_not(a) if e.dtype.kind == "b" else np.invert(a)

    def _read_node(self, e, args):
        node = e.func
        try:
            data = self.values[node.index]
        except KeyError:
            raise RealizeError(f"Node '{node.name}' read before being realized") from None
        extent = self.plan.extent_of(node)
        if any(n == 0 for n in extent):
            raise RealizeError(f"Read from empty node '{node.name}'")
        idx = tuple(
            np.clip(a, 0, n - 1) for a, n in zip(reversed(args), reversed(extent))
        )
        return data[idx]

    def buffer_data(self, buf):
        """Host array of an input buffer."""
        try:
            return buf.host
        except PyFastImgError as exc:
            raise RealizeError(f"Cannot read input buffer '{buf.name}' on the host: {exc}") from exc

    def _read_buffer(self, e, args):
        buf = e.buffer
        data = self.buffer_data(buf)
        extent = buf.extent
        if e.clamp:
            if any(n == 0 for n in extent):
                raise RealizeError(f"Read from empty buffer '{buf.name}'")
            idx = tuple(
                np.clip(a, 0, n - 1) for a, n in zip(reversed(args), reversed(extent))
            )
        else:
            for axis, (a, n) in enumerate(zip(args, extent)):
                a = np.asarray(a)
                if a.size and (a.min() < 0 or a.max() >= n):
                    raise RealizeError(
                        f"Out of bounds read of buffer '{buf.name}' on axis {axis}: "
                        f"[{a.min()}, {a.max()}] outside [0, {n})"
                    )
            idx = tuple(reversed(args))
        return data[idx]


class HostBackend(Backend):
    """
    NumPy interpreter backend. Results are written to the host side of the
    target buffers.
    """

    name = "host"

    def has_accelerator(self):
        return False

    def realize(self, plan, targets):
        self.check_targets(plan, targets)
        evaluator = HostEvaluator(plan)
        with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
            for node in plan.order:
                evaluator.realize_node(node)
        for node, buf in zip(plan.outputs, targets):
            buf._write_host(evaluator.values[node.index])
        logger.debug("Host realized %d nodes", len(plan.order))
        return targets


__all__ = ["HostBackend", "HostEvaluator"]
