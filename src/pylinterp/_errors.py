"""Exception types raised by pylinterp.

Each error subclasses the builtin a caller would naturally catch, so
``except ValueError`` keeps working for shape and range problems and
``except IndexError`` for element access.
"""

from __future__ import annotations


class DimensionMismatchError(ValueError):
    """Shapes or lengths that must agree do not.

    Raised when coordinate array lengths do not match the value tensor
    shape, when a buffer does not hold ``prod(shape)`` elements, or when a
    query point has the wrong number of coordinates.
    """


class InvalidRangeError(ValueError):
    """A sub-view range or tensor extent is empty or malformed."""


class OutOfRangeError(IndexError):
    """A multi-index lies outside the extents of a tensor view."""
