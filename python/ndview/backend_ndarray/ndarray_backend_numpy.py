"""Numpy storage backend.

An Array is a flat, fixed-size, zero-filled element buffer. NDArray never
touches it directly: it calls the free functions below with the handle plus
its own (shape, strides, offset), and they do the work on strided numpy
views of the buffer.
"""
import logging

import numpy as np

from ..config import DEFAULT_DTYPE

logger = logging.getLogger(__name__)

__device_name__ = "numpy"


def _check_element_type(dtype):
    dtype = np.dtype(dtype)
    if not np.issubdtype(dtype, np.number):
        raise TypeError("storage elements must be numeric, got %s" % dtype)
    return dtype


class Array:
    """A flat buffer of `size` elements, owned by every view that holds it."""

    def __init__(self, size, dtype=None):
        dtype = _check_element_type(DEFAULT_DTYPE if dtype is None else dtype)
        self.array = np.zeros(size, dtype=dtype)
        logger.debug("allocated storage of %d %s elements", size, dtype)

    @property
    def size(self):
        return self.array.size

    @property
    def dtype(self):
        return self.array.dtype

    def __getitem__(self, position):
        return self.array[position]

    def __setitem__(self, position, value):
        self.array[position] = value

    def __repr__(self):
        return "Array(size=%d, dtype=%s)" % (self.size, self.dtype)


def to_numpy(a, shape, strides, offset):
    """Strided numpy view of `a`; writes through it land in the buffer."""
    return np.lib.stride_tricks.as_strided(
        a.array[offset:], shape, tuple(s * a.array.itemsize for s in strides)
    )


def from_numpy(a, out):
    out.array[:] = a.flatten()


def fill(out, val, shape, strides, offset):
    to_numpy(out, shape, strides, offset)[...] = val


def compact(a, out, shape, strides, offset):
    out.array[:] = to_numpy(a, shape, strides, offset).flatten()


def ewise_setitem(a, out, shape, strides, offset):
    to_numpy(out, shape, strides, offset)[...] = a.array.reshape(shape)


def scalar_setitem(size, val, out, shape, strides, offset):
    to_numpy(out, shape, strides, offset)[...] = val


def permute(a, out, shape, strides, offset, axes):
    """Write the elements of `a`, axes reordered by `axes`, compactly to `out`."""
    out.array[:] = np.transpose(to_numpy(a, shape, strides, offset), axes).flatten()


def ewise_add(a, b, out):
    out.array[:] = a.array + b.array


def scalar_add(a, val, out):
    out.array[:] = a.array.astype(out.dtype) + val


def ewise_sub(a, b, out):
    out.array[:] = a.array - b.array


def scalar_sub(a, val, out):
    out.array[:] = a.array.astype(out.dtype) - val


def scalar_rsub(a, val, out):
    out.array[:] = val - a.array.astype(out.dtype)


def ewise_neg(a, out):
    out.array[:] = -a.array


def ewise_close(a, b, tol):
    """True when every pair of elements differs by less than `tol`."""
    # unsigned differences wrap; widen to a signed type
    dtype = np.result_type(a.dtype, b.dtype, np.int8)
    return bool(np.all(np.abs(a.array.astype(dtype) - b.array) < tol))
