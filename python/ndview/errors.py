"""Error kinds raised by ndview.

Every check runs before any element of Storage is touched, so a raised
error never leaves a View partially updated.
"""


class NDArrayError(Exception):
    """Base class of all ndview errors."""


class IndexOutOfRange(NDArrayError, IndexError):
    """An index is negative or not smaller than the extent of its axis."""


class DimensionMismatch(NDArrayError, ValueError):
    """The number of indices (or strides) does not fit the rank of the array."""


class ShapeMismatch(NDArrayError, ValueError):
    """Operands of an elementwise operation have different shapes."""


class NotZeroDimension(NDArrayError, ValueError):
    """Scalar access attempted on an array whose rank is not zero."""


class InvalidReshape(NDArrayError, ValueError):
    """Target shape has a different element count, or the array is not
    contiguous from the start of its storage."""


class InvalidTransposePattern(NDArrayError, ValueError):
    """A transpose pattern is malformed or does not fit the array."""


__all__ = [
    "NDArrayError",
    "IndexOutOfRange",
    "DimensionMismatch",
    "ShapeMismatch",
    "NotZeroDimension",
    "InvalidReshape",
    "InvalidTransposePattern",
]
