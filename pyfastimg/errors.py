"""
Exception hierarchy for PyFastImg.

Three failure families are distinguished:

- ConstructionError: the FunctionNode graph itself is malformed (cyclic or
  dangling reference, redefinition, reduction domain not matching its kernel).
  Raised while the graph is being built or planned, never mid-realization.
- TransferError: a Buffer could not be moved between host and device, or was
  read on the host before a pending device write was synchronised.
- RealizeError: the backend failed while planning or executing a pipeline.
  The pipeline that raised it is left unusable.

Author: B.G.
"""


class PyFastImgError(Exception):
    """Base class of every error raised by pyfastimg."""


class ConstructionError(PyFastImgError, ValueError):
    """Malformed dataflow graph, detected at build or planning time."""


class TransferError(PyFastImgError, RuntimeError):
    """Host/device transfer failure or unsynchronised host read."""


class RealizeError(PyFastImgError, RuntimeError):
    """Backend planning or execution failure."""


__all__ = ["PyFastImgError", "ConstructionError", "TransferError", "RealizeError"]
