"""
Boundary conditions for Buffer reads.

Only the repeat-edge policy is provided: every coordinate axis is clamped
independently to [0, dim - 1], so reads outside the image return the nearest
edge pixel.

Author: B.G.
"""

from .expr import BufferRead


class BoundaryAccessor:
    """
    Callable wrapper reading a Buffer with repeat-edge addressing.

    Args:
        buffer: The wrapped Buffer

    Example:
        gray = BoundaryAccessor(img)
        left = gray(x - 1, y)      # column -1 reads column 0
    """

    __slots__ = ("buffer",)

    def __init__(self, buffer):
        self.buffer = buffer

    @property
    def name(self):
        return self.buffer.name

    @property
    def dtype(self):
        return self.buffer.dtype

    @property
    def extent(self):
        return self.buffer.extent

    @property
    def arity(self):
        return self.buffer.ndim

    def __call__(self, *args):
        return BufferRead(self.buffer, args, clamp=True)

    def __repr__(self):
        return f"BoundaryAccessor({self.buffer.name!r}, repeat_edge)"


def repeat_edge(buffer):
    """Wrap buffer with repeat-edge addressing."""
    return BoundaryAccessor(buffer)


__all__ = ["BoundaryAccessor", "repeat_edge"]
