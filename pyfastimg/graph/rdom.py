"""
Reduction domains.

A ReductionDomain is a fixed, ordered set of offsets iterated to accumulate a
stencil sum. It is described by one (min, extent) pair per axis and iterated
row-major: axis 0 (x) varies fastest. The same order is used by every
backend so that single-threaded float results are reproducible.

Usage:
    mask = Buffer(masks.GAUSSIAN_3X3)
    r = ReductionDomain.centered(mask)     # offsets -1..1 on both axes
    blur.define_reduction(f(x + r.x, y + r.y) * r.tap(mask), r)

Author: B.G.
"""

import itertools

from ..errors import ConstructionError
from .expr import RVar

_AXIS_NAMES = "xyzw"


class ReductionDomain:
    """
    Fixed iteration window.

    Args:
        ranges: Sequence of (min, extent) pairs in coordinate order
        where: Optional predicate on an offset tuple; offsets for which it is
            false are skipped. Evaluated once, at construction.
        name: Display name
    """

    def __init__(self, ranges, where=None, name="r"):
        ranges = tuple((int(mn), int(ext)) for mn, ext in ranges)
        if not ranges:
            raise ConstructionError("A reduction domain needs at least one axis")
        for mn, ext in ranges:
            if ext < 0:
                raise ConstructionError(f"Negative reduction extent {ext}")
        self.ranges = ranges
        self.name = name
        self._rvars = tuple(RVar(self, axis) for axis in range(len(ranges)))
        self._predicate = where
        axes = [range(mn, mn + ext) for mn, ext in reversed(ranges)]
        points = (tuple(reversed(p)) for p in itertools.product(*axes))
        if where is not None:
            points = (p for p in points if where(p))
        self._points = tuple(points)

    @classmethod
    def centered(cls, kernel, skip_zero_taps=False, name="r"):
        """
        Domain matching kernel's shape, centred on its middle tap.

        Args:
            kernel: Buffer holding the coefficients
            skip_zero_taps: Drop offsets whose coefficient is exactly zero
                (dilated masks)
        """
        extents = kernel.extent
        mins = tuple(-(e // 2) for e in extents)
        where = None
        if skip_zero_taps:
            coefs = kernel.host

            def where(p):
                idx = tuple(reversed([o - m for o, m in zip(p, mins)]))
                return coefs[idx] != 0

        return cls(list(zip(mins, extents)), where=where, name=name)

    @classmethod
    def over(cls, kernel, name="r"):
        """Domain matching kernel's shape with offsets starting at 0."""
        return cls([(0, e) for e in kernel.extent], name=name)

    @property
    def dims(self):
        return len(self.ranges)

    @property
    def mins(self):
        return tuple(mn for mn, _ in self.ranges)

    @property
    def extents(self):
        return tuple(ext for _, ext in self.ranges)

    @property
    def x(self):
        return self._rvars[0]

    @property
    def y(self):
        if self.dims < 2:
            raise AttributeError("Reduction domain has no y axis")
        return self._rvars[1]

    def __getitem__(self, axis):
        return self._rvars[axis]

    @property
    def rvars(self):
        return self._rvars

    def points(self):
        """Offsets in iteration order."""
        return self._points

    def __len__(self):
        return len(self._points)

    def check_kernel(self, kernel):
        """
        Raise ConstructionError unless the domain covers kernel exactly.
        """
        if tuple(kernel.extent) != self.extents:
            raise ConstructionError(
                f"Reduction domain extents {self.extents} do not match kernel "
                f"'{kernel.name}' of extent {tuple(kernel.extent)}"
            )

    def tap(self, kernel):
        """Expression reading kernel at the current domain point."""
        self.check_kernel(kernel)
        return kernel(*(rv - mn for rv, mn in zip(self._rvars, self.mins)))

    def __repr__(self):
        axes = ", ".join(
            f"{_AXIS_NAMES[i] if i < 4 else i}:[{mn}, {mn + ext})"
            for i, (mn, ext) in enumerate(self.ranges)
        )
        return f"ReductionDomain({self.name}; {axes}; {len(self)} points)"


__all__ = ["ReductionDomain"]
