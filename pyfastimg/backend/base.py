"""
Planning/execution backend contract.

Every backend implements three calls:

    plan(outputs, bounds_hints) -> ExecutablePlan
    realize(plan, target_buffers)
    has_accelerator() -> bool

The core only talks to backends through these. Planning (topological order
and extent inference) is shared; backends add their own lowering decisions
to the plan.

Author: B.G.
"""

import logging

import numpy as np

from ..errors import RealizeError
from ..graph.schedule import infer_extents, topological_order

logger = logging.getLogger(__name__)


class ExecutablePlan:
    """
    Result of Backend.plan.

    Attributes:
        outputs: Output FunctionNodes, in realization order
        order: Every node to realize, producers first
        extents: dict node index -> extent (coordinate order)
        backend: Name of the backend that built the plan
        lowered: dict node index -> backend specific step (may be empty)
    """

    def __init__(self, outputs, order, extents, backend, lowered=None):
        self.outputs = list(outputs)
        self.order = list(order)
        self.extents = dict(extents)
        self.backend = backend
        self.lowered = {} if lowered is None else dict(lowered)

    def extent_of(self, node):
        return self.extents[node.index]

    def host_shape_of(self, node):
        """NumPy shape of the realized node (reversed extent)."""
        return tuple(reversed(self.extents[node.index]))

    def __repr__(self):
        return (
            f"ExecutablePlan(backend={self.backend!r}, nodes={len(self.order)}, "
            f"outputs={[o.name for o in self.outputs]}, lowered={len(self.lowered)})"
        )


class Backend:
    """Base class of planning/execution backends."""

    name = "base"

    def plan(self, outputs, bounds_hints=None):
        """
        Build an ExecutablePlan for outputs.

        Raises:
            ConstructionError: On a malformed graph
        """
        order = topological_order(outputs)
        extents = infer_extents(order, bounds_hints)
        plan = ExecutablePlan(outputs, order, extents, self.name)
        self._lower(plan)
        logger.debug("Planned %r", plan)
        return plan

    def _lower(self, plan):
        """Hook for backend specific lowering decisions."""

    def realize(self, plan, targets):
        raise NotImplementedError

    def has_accelerator(self):
        raise NotImplementedError

    def check_targets(self, plan, targets):
        """
        Validate output buffers against the plan.

        Raises:
            RealizeError: On a count, shape or dtype mismatch
        """
        if plan.backend != self.name:
            raise RealizeError(f"Plan built by '{plan.backend}' cannot run on '{self.name}'")
        if len(targets) != len(plan.outputs):
            raise RealizeError(
                f"Pipeline has {len(plan.outputs)} outputs but {len(targets)} buffers were given"
            )
        for node, buf in zip(plan.outputs, targets):
            shape = plan.host_shape_of(node)
            if tuple(buf.shape) != shape:
                raise RealizeError(
                    f"Output '{node.name}' has shape {shape}, target buffer '{buf.name}' "
                    f"has {tuple(buf.shape)}"
                )
            if np.dtype(buf.dtype) != node.dtype:
                raise RealizeError(
                    f"Output '{node.name}' is {node.dtype}, target buffer '{buf.name}' "
                    f"is {buf.dtype}"
                )


__all__ = ["Backend", "ExecutablePlan"]
