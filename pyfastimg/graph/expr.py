"""
Expression tree for FunctionNode definitions.

Expressions are small immutable objects built with Python operators:

    blur = (f(x - 1, y) + f(x, y) + f(x + 1, y)) / 3.0

Variants:
- Const: literal value. Python literals are "weak" and adopt the type of
  the expression they are combined with (2 * int32 -> int32, 0.5 * int -> f32).
- Var: pure coordinate of the node being defined (x, y, ...).
- RVar: coordinate of a ReductionDomain.
- BinaryOp / UnaryOp / Cast / Select: arithmetic, comparison, bitwise and
  math operations.
- Call: read of another FunctionNode. Reads outside the callee's extent
  repeat the edge.
- BufferRead: read of a Buffer, raw or clamped (repeat edge).

Integer division and modulo follow the floor convention, so x / 2 on an int
coordinate is floor(x / 2) and x % 2 is never negative. Float expressions
use true division. Every node carries its NumPy dtype.

Evaluation is not done here: backends dispatch on the variant classes.

Author: B.G.
"""

import numpy as np

from ..errors import ConstructionError

F32 = np.dtype(np.float32)
I32 = np.dtype(np.int32)
U32 = np.dtype(np.uint32)
U8 = np.dtype(np.uint8)
BOOL = np.dtype(np.bool_)

ARITH_OPS = ("add", "sub", "mul", "div", "mod", "pow", "min", "max")
COMPARE_OPS = ("lt", "le", "gt", "ge", "eq", "ne")
BITWISE_OPS = ("and", "or", "xor", "shl", "shr")
UNARY_OPS = ("neg", "abs", "exp", "log", "sqrt", "floor", "not")

_FLOAT_RESULT_UNARY = ("exp", "log", "sqrt")


class Expr:
    """Base class of every expression node."""

    __slots__ = ("dtype",)

    def children(self):
        return ()

    def __bool__(self):
        raise TypeError("The truth value of an Expr is undefined; use select()")

    # arithmetic
    def __add__(self, other):
        return BinaryOp("add", self, other)

    def __radd__(self, other):
        return BinaryOp("add", other, self)

    def __sub__(self, other):
        return BinaryOp("sub", self, other)

    def __rsub__(self, other):
        return BinaryOp("sub", other, self)

    def __mul__(self, other):
        return BinaryOp("mul", self, other)

    def __rmul__(self, other):
        return BinaryOp("mul", other, self)

    def __truediv__(self, other):
        return BinaryOp("div", self, other)

    def __rtruediv__(self, other):
        return BinaryOp("div", other, self)

    def __floordiv__(self, other):
        return _floordiv(self, other)

    def __rfloordiv__(self, other):
        return _floordiv(other, self)

    def __mod__(self, other):
        return BinaryOp("mod", self, other)

    def __rmod__(self, other):
        return BinaryOp("mod", other, self)

    def __pow__(self, other):
        return BinaryOp("pow", self, other)

    def __rpow__(self, other):
        return BinaryOp("pow", other, self)

    def __neg__(self):
        return UnaryOp("neg", self)

    def __abs__(self):
        return UnaryOp("abs", self)

    # comparisons (== and != are left alone so expressions stay hashable)
    def __lt__(self, other):
        return BinaryOp("lt", self, other)

    def __le__(self, other):
        return BinaryOp("le", self, other)

    def __gt__(self, other):
        return BinaryOp("gt", self, other)

    def __ge__(self, other):
        return BinaryOp("ge", self, other)

    # bitwise
    def __and__(self, other):
        return BinaryOp("and", self, other)

    def __rand__(self, other):
        return BinaryOp("and", other, self)

    def __or__(self, other):
        return BinaryOp("or", self, other)

    def __ror__(self, other):
        return BinaryOp("or", other, self)

    def __xor__(self, other):
        return BinaryOp("xor", self, other)

    def __rxor__(self, other):
        return BinaryOp("xor", other, self)

    def __lshift__(self, other):
        return BinaryOp("shl", self, other)

    def __rshift__(self, other):
        return BinaryOp("shr", self, other)

    def __invert__(self):
        return UnaryOp("not", self)


class Const(Expr):
    __slots__ = ("value", "weak")

    def __init__(self, value, dtype=None, weak=False):
        if dtype is None:
            dtype = np.asarray(value).dtype
        self.dtype = np.dtype(dtype)
        self.value = self.dtype.type(value)
        self.weak = weak

    def __repr__(self):
        return f"{self.value!r}"


class Var(Expr):
    """Pure coordinate variable."""

    __slots__ = ("name",)

    def __init__(self, name):
        self.name = name
        self.dtype = I32

    def __repr__(self):
        return self.name


class RVar(Expr):
    """Coordinate of a reduction domain along one axis."""

    __slots__ = ("rdom", "axis")

    def __init__(self, rdom, axis):
        self.rdom = rdom
        self.axis = axis
        self.dtype = I32

    def __repr__(self):
        return f"{self.rdom.name}.{'xyzw'[self.axis] if self.axis < 4 else self.axis}"


class BinaryOp(Expr):
    __slots__ = ("op", "a", "b")

    def __init__(self, op, a, b):
        if op not in ARITH_OPS + COMPARE_OPS + BITWISE_OPS:
            raise ConstructionError(f"Unknown binary operator '{op}'")
        a = as_expr(a)
        b = as_expr(b)
        self.op = op
        self.a = a
        self.b = b
        if op in COMPARE_OPS:
            self.dtype = BOOL
        elif op in ("shl", "shr"):
            if a.dtype.kind not in "iu" or b.dtype.kind not in "iu":
                raise ConstructionError("Shift operands must be integers")
            self.dtype = a.dtype
        elif op in ("and", "or", "xor"):
            if a.dtype.kind == "f" or b.dtype.kind == "f":
                raise ConstructionError("Bitwise operands must be integers or booleans")
            self.dtype = operand_type(a, b)
        elif op == "pow":
            self.dtype = operand_type(a, b) if a.dtype.kind == "f" or b.dtype.kind == "f" else F32
        else:
            self.dtype = operand_type(a, b)

    def children(self):
        return (self.a, self.b)

    def __repr__(self):
        return f"{self.op}({self.a!r}, {self.b!r})"


class UnaryOp(Expr):
    __slots__ = ("op", "a")

    def __init__(self, op, a):
        if op not in UNARY_OPS:
            raise ConstructionError(f"Unknown unary operator '{op}'")
        a = as_expr(a)
        self.op = op
        self.a = a
        if op in _FLOAT_RESULT_UNARY and a.dtype.kind != "f":
            self.dtype = F32
        else:
            self.dtype = a.dtype

    def children(self):
        return (self.a,)

    def __repr__(self):
        return f"{self.op}({self.a!r})"


class Cast(Expr):
    __slots__ = ("a",)

    def __init__(self, dtype, a):
        self.a = as_expr(a)
        self.dtype = np.dtype(dtype)

    def children(self):
        return (self.a,)

    def __repr__(self):
        return f"cast<{self.dtype}>({self.a!r})"


class Select(Expr):
    __slots__ = ("cond", "t", "f")

    def __init__(self, cond, t, f):
        self.cond = as_expr(cond)
        t = as_expr(t)
        f = as_expr(f)
        self.dtype = operand_type(t, f)
        self.t = t
        self.f = f

    def children(self):
        return (self.cond, self.t, self.f)

    def __repr__(self):
        return f"select({self.cond!r}, {self.t!r}, {self.f!r})"


class Call(Expr):
    """Read of a FunctionNode at the given coordinates."""

    __slots__ = ("func", "args")

    def __init__(self, func, args):
        self.func = func
        self.args = tuple(as_expr(a) for a in args)
        for a in self.args:
            if a.dtype.kind not in "iu":
                raise ConstructionError(f"Call to '{func.name}' with non-integer coordinate")
        self.dtype = func.dtype

    def children(self):
        return self.args

    def __repr__(self):
        return f"{self.func.name}({', '.join(repr(a) for a in self.args)})"


class BufferRead(Expr):
    """Read of a Buffer; clamp=True repeats the edge for out-of-range coordinates."""

    __slots__ = ("buffer", "args", "clamp")

    def __init__(self, buffer, args, clamp=False):
        self.buffer = buffer
        self.args = tuple(as_expr(a) for a in args)
        self.clamp = clamp
        if len(self.args) != buffer.ndim:
            raise ConstructionError(
                f"Buffer '{buffer.name}' has {buffer.ndim} dimensions, read with {len(self.args)}"
            )
        for a in self.args:
            if a.dtype.kind not in "iu":
                raise ConstructionError(f"Read of buffer '{buffer.name}' with non-integer coordinate")
        self.dtype = buffer.dtype

    def children(self):
        return self.args

    def __repr__(self):
        return f"{self.buffer.name}({', '.join(repr(a) for a in self.args)})"


# ----------------------------------------------------------------------
# Construction helpers
# ----------------------------------------------------------------------


def as_expr(value):
    """Wrap Python/NumPy scalars into Const; Exprs pass through."""
    if isinstance(value, Expr):
        return value
    if isinstance(value, (bool, np.bool_)):
        return Const(bool(value), BOOL, weak=isinstance(value, bool))
    if isinstance(value, int):
        dtype = I32 if -(2**31) <= value < 2**31 else np.dtype(np.int64)
        return Const(value, dtype, weak=True)
    if isinstance(value, float):
        return Const(value, F32, weak=True)
    if isinstance(value, np.generic):
        return Const(value, value.dtype)
    raise TypeError(f"Cannot convert {type(value).__name__} to an expression")


def operand_type(a, b):
    """Common dtype of two operands, with weak literals adopting the other side."""
    da, db = a.dtype, b.dtype
    if da == db:
        return da
    a_weak = isinstance(a, Const) and a.weak
    b_weak = isinstance(b, Const) and b.weak
    fa, fb = da.kind == "f", db.kind == "f"
    if fa != fb:
        return da if fa else db
    if a_weak != b_weak:
        return db if a_weak else da
    if da.kind == "b":
        return db
    if db.kind == "b":
        return da
    return np.promote_types(da, db)


def _floordiv(a, b):
    # "div" is already floor division on integers
    q = BinaryOp("div", a, b)
    if q.dtype.kind == "f":
        return UnaryOp("floor", q)
    return q


def select(cond, t, f):
    return Select(cond, t, f)


def cast(dtype, e):
    return Cast(dtype, e)


def minimum(a, b):
    return BinaryOp("min", a, b)


def maximum(a, b):
    return BinaryOp("max", a, b)


def clamp(e, lo, hi):
    return minimum(maximum(e, lo), hi)


def exp(e):
    return UnaryOp("exp", e)


def log(e):
    return UnaryOp("log", e)


def sqrt(e):
    return UnaryOp("sqrt", e)


def floor(e):
    return UnaryOp("floor", e)


def eq(a, b):
    return BinaryOp("eq", a, b)


def ne(a, b):
    return BinaryOp("ne", a, b)


def walk(expr):
    """Yield every distinct sub-expression of expr (pre-order, left to right)."""
    seen = set()
    stack = [expr]
    while stack:
        e = stack.pop()
        if id(e) in seen:
            continue
        seen.add(id(e))
        yield e
        stack.extend(reversed(e.children()))


def free_vars(expr):
    return [e for e in walk(expr) if isinstance(e, Var)]


def free_rvars(expr):
    return [e for e in walk(expr) if isinstance(e, RVar)]


def called_funcs(expr):
    """FunctionNodes read by expr, in order of first appearance."""
    out = []
    for e in walk(expr):
        if isinstance(e, Call) and all(e.func is not f for f in out):
            out.append(e.func)
    return out


def read_buffers(expr, clamped=None):
    """Buffers read by expr, optionally filtered on the clamp flag."""
    out = []
    for e in walk(expr):
        if isinstance(e, BufferRead) and (clamped is None or e.clamp == clamped):
            if all(e.buffer is not b for b in out):
                out.append(e.buffer)
    return out


x = Var("x")
y = Var("y")
