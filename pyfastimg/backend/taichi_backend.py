"""
Taichi backend.

Linear float32 stencils, i.e. reductions of the form

    out(x, y) = sum_r src(x + r.x, y + r.y) * kernel(r.x - min_x, r.y - min_y)

are lowered to a Taichi kernel running over pooled fields. Every other node
is realized by the NumPy interpreter of the host backend, so both backends
accept the same graphs. Non-linear filters (bilateral, a-trous, scotopic
tone mapping, corner response, reductions) therefore run on the host even
with this backend, and their timings measure NumPy, not Taichi.

Pipeline outputs are written to the device side of the target buffers:
call to_host() and sync() before reading them.

Requires an initialised Taichi runtime with an accelerator (see
pyfastimg.runtime.has_accelerator).

Author: B.G.
"""

import logging

import numpy as np

from .. import constants as cte
from .. import pool
from .. import runtime
from ..buffer import Residency
from ..errors import RealizeError
from ..graph.expr import F32, BinaryOp, BufferRead, Call, Const, RVar
from .host import HostBackend, HostEvaluator
from .taichi_kernels import stencil_kernel

logger = logging.getLogger(__name__)


class StencilStep:
    """A node lowered to stencil_kernel."""

    __slots__ = ("source", "kernel", "mins", "extents")

    def __init__(self, source, kernel, mins, extents):
        self.source = source
        self.kernel = kernel
        self.mins = mins
        self.extents = extents

    def __repr__(self):
        return f"StencilStep(kernel={self.kernel.name!r}, mins={self.mins}, extents={self.extents})"


def _is_shifted_read(e, node, rdom):
    if not (isinstance(e, Call) or (isinstance(e, BufferRead) and e.clamp)):
        return False
    if e.dtype != F32 or len(e.args) != 2:
        return False
    for axis, arg in enumerate(e.args):
        if not (isinstance(arg, BinaryOp) and arg.op == "add"):
            return False
        if arg.a is not node.vars[axis]:
            return False
        if not (isinstance(arg.b, RVar) and arg.b.rdom is rdom and arg.b.axis == axis):
            return False
    return True


def _is_tap(e, rdom):
    if not (isinstance(e, BufferRead) and not e.clamp and e.dtype == F32):
        return False
    if tuple(e.buffer.extent) != rdom.extents:
        return False
    for axis, arg in enumerate(e.args):
        if not (isinstance(arg, BinaryOp) and arg.op == "sub"):
            return False
        if arg.a is not rdom.rvars[axis]:
            return False
        if not (isinstance(arg.b, Const) and int(arg.b.value) == rdom.mins[axis]):
            return False
    return True


def match_linear_stencil(node):
    """
    Return a StencilStep when node is a plain 2D float32 convolution, else None.
    """
    if node.arity != 2 or node.dtype != F32 or not node.is_reduction:
        return None
    body = node.body
    rdom = body.rdom
    if body.op != "add" or rdom.dims != 2:
        return None
    if not (isinstance(body.init, Const) and body.init.value == 0):
        return None
    if min(rdom.extents) == 0 or len(rdom) != int(np.prod(rdom.extents)):
        return None
    upd = body.update
    if not (isinstance(upd, BinaryOp) and upd.op == "mul"):
        return None
    for src, tap in ((upd.a, upd.b), (upd.b, upd.a)):
        if _is_shifted_read(src, node, rdom) and _is_tap(tap, rdom):
            return StencilStep(src, tap.buffer, rdom.mins, rdom.extents)
    return None


class TaichiEvaluator(HostEvaluator):
    """Host interpreter that can also read device-only input buffers."""

    def __init__(self, plan):
        super().__init__(plan)
        self._device_reads = {}

    def buffer_data(self, buf):
        if buf.residency != Residency.DEVICE_ONLY:
            return super().buffer_data(buf)
        key = id(buf)
        if key not in self._device_reads:
            field = buf.device_field
            if field is None:
                data = np.zeros(buf.shape, dtype=buf.dtype)
            else:
                data = field.to_numpy().reshape(buf.shape)
            self._device_reads[key] = data
        return self._device_reads[key]


class TaichiBackend(HostBackend):
    """Taichi backend: stencil kernels on the device, host interpretation elsewhere."""

    name = "taichi"

    def has_accelerator(self):
        return runtime.has_accelerator()

    def _lower(self, plan):
        for node in plan.order:
            step = match_linear_stencil(node)
            if step is not None:
                plan.lowered[node.index] = step
        logger.debug("Lowered %d of %d nodes to Taichi kernels", len(plan.lowered), len(plan.order))

    def realize(self, plan, targets):
        self.check_targets(plan, targets)
        if not self.has_accelerator():
            raise RealizeError(
                "The Taichi backend needs an accelerator; call pyfastimg.runtime.init() first"
            )
        evaluator = TaichiEvaluator(plan)
        with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
            for node in plan.order:
                step = plan.lowered.get(node.index)
                if step is None:
                    evaluator.realize_node(node)
                else:
                    evaluator.values[node.index] = self._run_stencil(evaluator, node, step)
        runtime.sync()
        for node, buf in zip(plan.outputs, targets):
            buf._write_device(evaluator.values[node.index])
        return targets

    # ------------------------------------------------------------------
    # Field staging
    # ------------------------------------------------------------------

    def _stage(self, data, temps):
        tmp = pool.get_temp_field(cte.FLOAT_TYPE_TI, (data.size,))
        temps.append(tmp)
        tmp.field.from_numpy(np.ascontiguousarray(data, dtype=cte.FLOAT_TYPE_NP).reshape(-1))
        return tmp.field

    def _buffer_field(self, evaluator, buf, temps):
        if buf.on_device:
            return buf.device_field
        return self._stage(evaluator.buffer_data(buf), temps)

    def _source_field(self, evaluator, src, temps):
        if isinstance(src, Call):
            nx_src, ny_src = evaluator.plan.extent_of(src.func)
        else:
            nx_src, ny_src = src.buffer.extent
        if nx_src * ny_src == 0:
            raise RealizeError("Stencil over an empty source")
        if isinstance(src, Call):
            field = self._stage(evaluator.values[src.func.index], temps)
        else:
            field = self._buffer_field(evaluator, src.buffer, temps)
        return field, nx_src, ny_src

    def _run_stencil(self, evaluator, node, step):
        nx_t, ny_t = evaluator.plan.extent_of(node)
        if nx_t * ny_t == 0:
            return np.zeros((ny_t, nx_t), dtype=cte.FLOAT_TYPE_NP)
        temps = []
        try:
            src_field, nx_src, ny_src = self._source_field(evaluator, step.source, temps)
            mask_field = self._buffer_field(evaluator, step.kernel, temps)
            target = pool.get_temp_field(cte.FLOAT_TYPE_TI, (nx_t * ny_t,))
            temps.append(target)
            kx, ky = step.extents
            stencil_kernel(
                src_field,
                target.field,
                mask_field,
                nx_src,
                ny_src,
                nx_t,
                kx,
                ky,
                step.mins[0],
                step.mins[1],
            )
            return target.field.to_numpy().reshape(ny_t, nx_t)
        finally:
            for tmp in temps:
                tmp.release()


__all__ = ["TaichiBackend", "StencilStep", "match_linear_stencil"]
