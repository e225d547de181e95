"""
Pipeline: a set of output FunctionNodes bound to a backend.

A Pipeline is compiled once (planning: ordering, extent inference, backend
lowering) and may then be realized any number of times into output buffers.
Inputs are read at realization time, so updating an input Buffer with set()
and realizing again recomputes the outputs.

Usage:
    import pyfastimg as pfi

    p = pfi.Pipeline(blur)                       # host backend
    out = p.realize()                            # new Buffer
    p.realize([out])                             # reuse a buffer

    p = pfi.Pipeline([fx, fy], backend="taichi")
    p.realize([bx, by])
    bx.to_host().sync()

A backend failure (RealizeError) is raised once; the pipeline then refuses
any further realization.

Author: B.G.
"""

import logging

from .backend import get_backend
from .buffer import Buffer
from .errors import ConstructionError, RealizeError
from .graph.func import FunctionNode

logger = logging.getLogger(__name__)


class Pipeline:
    """
    Args:
        outputs: A FunctionNode or a sequence of them
        bounds_hints: Optional mapping node (or node name) -> extent
        backend: Backend name ('host', 'taichi') or instance
        name: Display name
    """

    def __init__(self, outputs, bounds_hints=None, backend="host", name="pipeline"):
        if isinstance(outputs, FunctionNode):
            outputs = [outputs]
        self.outputs = list(outputs)
        if not self.outputs:
            raise ConstructionError("A pipeline needs at least one output")
        self.bounds_hints = dict(bounds_hints) if bounds_hints else {}
        self.backend = get_backend(backend)
        self.name = name
        self._plan = None
        self._failure = None

    def __repr__(self):
        state = "failed" if self._failure else ("compiled" if self._plan else "new")
        return (
            f"Pipeline({self.name!r}, outputs={[o.name for o in self.outputs]}, "
            f"backend={self.backend.name!r}, {state})"
        )

    @property
    def usable(self):
        return self._failure is None

    def _check_usable(self):
        if self._failure is not None:
            raise RealizeError(
                f"Pipeline '{self.name}' is unusable after a previous failure: {self._failure}"
            )

    def compile(self):
        """
        Plan the pipeline (idempotent).

        Raises:
            ConstructionError: On a malformed graph
            RealizeError: On a backend planning failure
        """
        self._check_usable()
        if self._plan is None:
            try:
                self._plan = self.backend.plan(self.outputs, self.bounds_hints)
            except ConstructionError:
                raise
            except Exception as e:
                self._failure = e
                raise RealizeError(f"Planning of '{self.name}' failed: {e}") from e
            logger.info("Compiled %r", self._plan)
        return self._plan

    def output_extents(self):
        """Realized extent of every output, in coordinate order."""
        plan = self.compile()
        return [plan.extent_of(o) for o in self.outputs]

    def new_buffers(self):
        """Fresh zeroed host buffers matching the outputs."""
        plan = self.compile()
        return [
            Buffer(shape=plan.host_shape_of(o), dtype=o.dtype, name=o.name) for o in self.outputs
        ]

    def realize(self, targets=None):
        """
        Compute every output.

        Args:
            targets: Buffer or list of Buffers, one per output, with matching
                shape and dtype. New buffers are allocated when None.

        Returns:
            The output Buffer when the pipeline has a single output and
            targets was not a list, else the list of output Buffers

        Raises:
            RealizeError: On a backend failure; the pipeline becomes unusable
        """
        plan = self.compile()
        single = (targets is None and len(self.outputs) == 1) or isinstance(targets, Buffer)
        if targets is None:
            targets = self.new_buffers()
        elif isinstance(targets, Buffer):
            targets = [targets]
        else:
            targets = list(targets)
        try:
            self.backend.realize(plan, targets)
        except RealizeError as e:
            self._failure = e
            raise
        except Exception as e:
            self._failure = e
            raise RealizeError(f"Realization of '{self.name}' failed: {e}") from e
        return targets[0] if single else targets


def realize(outputs, targets=None, bounds_hints=None, backend="host"):
    """One-shot Pipeline(outputs, ...).realize(targets)."""
    return Pipeline(outputs, bounds_hints=bounds_hints, backend=backend).realize(targets)


__all__ = ["Pipeline", "realize"]
