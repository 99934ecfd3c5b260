import logging
import operator
from functools import reduce
from numbers import Number

import numpy as np

from . import ndarray_backend_numpy
from .pattern import parse_transpose_pattern
from ..config import EQUALITY_TOLERANCE
from ..errors import (
    DimensionMismatch,
    IndexOutOfRange,
    InvalidReshape,
    NotZeroDimension,
    ShapeMismatch,
)

logger = logging.getLogger(__name__)


# math.prod not in Python 3.7
def prod(x):
    return reduce(operator.mul, x, 1)


def size_for(shape):
    """ Number of elements of an array of the given shape (1 for a scalar). """
    return prod(shape)


def strides_for(shape):
    """ Row-major strides: the last is 1, each other is the next one times the next extent. """
    stride = 1
    res = []
    for i in range(1, len(shape) + 1):
        res.append(stride)
        stride *= shape[-i]
    return tuple(res[::-1])


def _as_index(i):
    try:
        return operator.index(i)
    except TypeError:
        raise TypeError("array indices must be integers, got %r" % (i,)) from None


def _check_shape(shape):
    shape = tuple(_as_index(d) for d in shape)
    if any(d < 0 for d in shape):
        raise ValueError("array extents must be non-negative, got %s" % (shape,))
    return shape


class BackendDevice:
    """A backend device, wraps the storage implementation module."""

    def __init__(self, name, mod):
        self.name = name
        self.mod = mod

    def __eq__(self, other):
        return isinstance(other, BackendDevice) and self.name == other.name

    def __repr__(self):
        return self.name + "()"

    def __getattr__(self, name):
        return getattr(self.mod, name)

    def empty(self, shape, dtype=None):
        return NDArray.make(_check_shape(shape), device=self, dtype=dtype)

    def full(self, shape, fill_value, dtype=None):
        arr = self.empty(shape, dtype)
        arr.fill(fill_value)
        return arr


def cpu_numpy():
    """Return numpy device"""
    return BackendDevice("cpu_numpy", ndarray_backend_numpy)


def default_device():
    return cpu_numpy()


class ElementRef:
    """A reference to one element of a storage buffer, by linear position.

    Reading or assigning `value` goes straight to the buffer, so the element
    is shared with every array over the same storage.
    """

    def __init__(self, handle, position):
        self._handle = handle
        self.position = position

    @property
    def value(self):
        return self._handle[self.position]

    @value.setter
    def value(self, value):
        self._handle[self.position] = value

    def __repr__(self):
        return "ElementRef(position=%d, value=%r)" % (self.position, self.value)


class NDArray:
    """A strided view over a shared, flat storage buffer.

    An NDArray is (shape, strides, offset, handle). The handle is a storage
    Array of the device backend; any number of NDArrays may hold the same
    handle, and a write through one of them is visible through all others
    addressing that element. Nothing guards concurrent writers: call copy()
    before handing an array to another thread.

    Integer indexing yields sub-arrays over the same storage. Indexing every
    axis yields a zero-dimensional array which reads and writes the single
    element it addresses (see as_scalar() and set_scalar()).
    """

    # keep numpy from broadcasting its scalars over us in reflected operators
    __array_ufunc__ = None

    def __init__(self, *args, dtype=None, device=None):
        """Create from extents, a shape sequence, a numpy array or another NDArray.

        NDArray(2, 3) and NDArray((2, 3)) allocate zero-filled storage;
        NDArray(()) is a scalar. A numpy array or an NDArray is copied.
        """
        other = args[0] if len(args) == 1 else None
        if isinstance(other, NDArray):
            if dtype is None:
                self._init(other.copy())
            else:
                self._init(NDArray(other.numpy(), dtype=dtype, device=device))
        elif isinstance(other, np.ndarray):
            dtype = other.dtype if dtype is None else dtype
            array = self.make(other.shape, device=device, dtype=dtype)
            array.device.from_numpy(np.ascontiguousarray(other), array._handle)
            self._init(array)
        else:
            shape = other if isinstance(other, (tuple, list)) else args
            self._init(self.make(_check_shape(shape), device=device, dtype=dtype))

    def _init(self, other):
        self._shape = other._shape
        self._strides = other._strides
        self._offset = other._offset
        self._device = other._device
        self._handle = other._handle

    @staticmethod
    def make(shape, strides=None, device=None, handle=None, offset=0, dtype=None):
        """Create a new NDArray with the given properties.  This will allocate the
        memory if handle=None, otherwise it will use the handle of an existing
        array."""
        array = NDArray.__new__(NDArray)
        array._shape = tuple(shape)
        array._strides = strides_for(shape) if strides is None else tuple(strides)
        array._offset = offset
        array._device = device if device is not None else default_device()
        if handle is None:
            array._handle = array.device.Array(prod(shape), dtype=dtype)
        else:
            array._handle = handle
        return array

    ### Properties and string representations
    @property
    def shape(self):
        return self._shape

    @property
    def strides(self):
        return self._strides

    @property
    def offset(self):
        return self._offset

    @property
    def device(self):
        return self._device

    @property
    def data(self):
        """ The storage handle, shared with every array derived from this one. """
        return self._handle

    @property
    def dtype(self):
        return self._handle.dtype

    @property
    def ndim(self):
        """ Return number of dimensions. """
        return len(self._shape)

    dim = ndim

    @property
    def size(self):
        return prod(self._shape)

    @property
    def begin(self):
        return self._offset

    @property
    def end(self):
        """ Storage position one past the last element of a contiguous array. """
        return self._offset + self.size

    def __repr__(self):
        return "NDArray(" + self.numpy().__str__() + f", dtype={self.dtype})"

    def __str__(self):
        return self.numpy().__str__()

    def __iter__(self):
        """ Iterate over the elements in row-major order. """
        return iter(self._strided().flat)

    def _strided(self):
        return self.device.to_numpy(self._handle, self._shape, self._strides, self._offset)

    ### Basic array manipulation
    def fill(self, value):
        """ Fill (in place) with a constant value. """
        self._device.fill(self._handle, value, self._shape, self._strides, self._offset)

    def set_value(self, value):
        self.fill(value)

    def set_zero(self):
        self.fill(0)

    def numpy(self):
        """ convert to a numpy array """
        return self._strided().copy()

    def is_contiguous(self):
        """Return true if the elements occupy storage [offset, offset + size)
        in row-major order"""
        return self._strides == strides_for(self._shape)

    def is_compact(self):
        """Return true if array is compact in memory and internal size equals product
        of the shape dimensions"""
        return (
            self.is_contiguous()
            and self._offset == 0
            and self.size == self._handle.size
        )

    def copy(self):
        """ Deep copy into fresh storage; the result has offset 0 and row-major strides. """
        out = NDArray.make(self.shape, device=self.device, dtype=self.dtype)
        self.device.compact(
            self._handle, out._handle, self.shape, self.strides, self._offset
        )
        logger.debug("copied %s array of shape %s", self.dtype, self.shape)
        return out

    def compact(self):
        """ Convert a matrix to be compact """
        if self.is_compact():
            return self
        return self.copy()

    def as_strided(self, shape, strides, offset=None):
        """Restride the matrix without copying memory.

        Every element the new (shape, strides, offset) addresses must lie
        inside the storage. The result need not be contiguous.
        """
        shape = _check_shape(shape)
        strides = tuple(_as_index(s) for s in strides)
        offset = self._offset if offset is None else _as_index(offset)
        if len(shape) != len(strides):
            raise DimensionMismatch(
                "shape %s and strides %s differ in length" % (shape, strides)
            )
        if any(s < 0 for s in strides):
            raise ValueError("strides must be non-negative, got %s" % (strides,))
        if prod(shape) == 0:
            last = offset - 1
        else:
            last = offset + sum((d - 1) * s for d, s in zip(shape, strides))
        if offset < 0 or last >= self._handle.size:
            raise IndexOutOfRange(
                "shape %s, strides %s and offset %d exceed storage of %d elements"
                % (shape, strides, offset, self._handle.size)
            )
        return NDArray.make(
            shape, strides=strides, device=self.device, handle=self._handle, offset=offset
        )

    @property
    def flat(self):
        return self.reshape((self.size,))

    def _check_reshape(self, new_shape):
        new_shape = _check_shape(new_shape)
        if prod(new_shape) != self.size:
            raise InvalidReshape(
                "cannot reshape %d elements of shape %s into shape %s"
                % (self.size, self.shape, new_shape)
            )
        if self._offset != 0:
            raise InvalidReshape(
                "cannot reshape an array at storage offset %d" % self._offset
            )
        if not self.is_contiguous():
            raise InvalidReshape(
                "cannot reshape a non-contiguous array (strides %s for shape %s)"
                % (self.strides, self.shape)
            )
        return new_shape

    def reshape(self, new_shape):
        """
        Reshape the matrix without copying memory.  This will return a matrix
        that corresponds to a reshaped array but points to the same memory as
        the original array.

        Raises:
            InvalidReshape if product of current shape is not equal to the product
            of the new shape, or if the matrix does not start at offset 0 or is
            not contiguous.

        Args:
            new_shape (tuple): new shape of the array

        Returns:
            NDArray : reshaped array; this will point to the same memory as
            the original one
        """
        new_shape = self._check_reshape(new_shape)
        return NDArray.make(new_shape, handle=self._handle, device=self.device)

    def inplace_reshape(self, new_shape):
        """ Like reshape(), but changes this array's own shape and strides. """
        self._shape = self._check_reshape(new_shape)
        self._strides = strides_for(self._shape)
        return self

    def transpose(self, pattern):
        """
        Permute the axes following an einsum-like pattern, e.g. for a
        "BHWC" array .transpose("bhwc->bchw") gives "BCHW" order and
        .transpose("ij->ji") transposes a 2D array.

        Unlike reshape(), this copies: the permuted elements are written to
        fresh storage in row-major order, so the result has canonical
        strides and can be reshaped or indexed like any new array.

        Raises:
            InvalidTransposePattern if the pattern is malformed or does not
            name exactly the axes of this array.

        Args:
            pattern (str): "<from>-><to>", both sides permutations of the
            same latin letters, one per axis

        Returns:
            NDArray : new array with its own storage
        """
        targets = parse_transpose_pattern(pattern, self.ndim)
        new_shape = [0] * self.ndim
        axes = [0] * self.ndim
        for axis, target in enumerate(targets):
            new_shape[target] = self._shape[axis]
            axes[target] = axis
        out = NDArray.make(tuple(new_shape), device=self.device, dtype=self.dtype)
        self.device.permute(
            self._handle, out._handle, self.shape, self.strides, self._offset, tuple(axes)
        )
        logger.debug("transposed %s from %s to %s", pattern, self.shape, out.shape)
        return out

    ### Get and set elements

    def _position(self, idxs, check=True):
        """ Storage position of the (partial) index `idxs`. """
        idxs = tuple(_as_index(i) for i in idxs)
        if check:
            if len(idxs) > self.ndim:
                raise DimensionMismatch(
                    "Number of indices (%d) is larger than array's dimension (%d)"
                    % (len(idxs), self.ndim)
                )
            for axis, (i, extent) in enumerate(zip(idxs, self._shape)):
                if i < 0 or i >= extent:
                    raise IndexOutOfRange(
                        "index %d is out of range for axis %d with size %d"
                        % (i, axis, extent)
                    )
        return self._offset + sum(i * s for i, s in zip(idxs, self._strides)), len(idxs)

    def _subarray(self, position, n):
        return NDArray.make(
            self._shape[n:],
            strides=self._strides[n:],
            device=self.device,
            handle=self._handle,
            offset=position,
        )

    def slice(self, *idxs):
        """
        Index the leading len(idxs) axes. The result shares this array's
        storage, starting at the addressed position, with the remaining
        axes: for shape (1, 2, 3, 4, 5), .slice(0, 1) has shape (3, 4, 5).
        Indexing every axis gives a zero-dimensional array.

        Raises:
            DimensionMismatch if more indices than axes are given,
            IndexOutOfRange if an index is negative or not below its extent.
        """
        return self._subarray(*self._position(idxs))

    def slice_unchecked(self, *idxs):
        """ slice() without rank and bounds validation. """
        return self._subarray(*self._position(idxs, check=False))

    __call__ = slice

    def __getitem__(self, idxs):
        if not isinstance(idxs, tuple):
            idxs = (idxs,)
        return self.slice(*idxs)

    def __setitem__(self, idxs, other):
        """Set the values of a view into an array, using the same semantics
        as __getitem__(). `other` is a scalar, or an NDArray of the view's shape."""
        view = self.__getitem__(idxs)
        if isinstance(other, NDArray):
            if view.shape != other.shape:
                raise ShapeMismatch(
                    "cannot assign shape %s to shape %s" % (other.shape, view.shape)
                )
            self.device.ewise_setitem(
                other.compact()._handle,
                view._handle,
                view.shape,
                view.strides,
                view._offset,
            )
        else:
            self.device.scalar_setitem(
                view.size,
                other,
                view._handle,
                view.shape,
                view.strides,
                view._offset,
            )

    def _check_full_index(self, idxs):
        if len(idxs) != self.ndim:
            raise DimensionMismatch(
                "Number of indices (%d) is not equal to array's dimension (%d)"
                % (len(idxs), self.ndim)
            )

    def at(self, *idxs):
        """The value of the element at a full index.

        This is a read; to write one element use ref() or set_scalar() on
        the zero-dimensional view a(*idxs)."""
        self._check_full_index(idxs)
        position, _ = self._position(idxs)
        return self._handle[position]

    def at_unchecked(self, *idxs):
        position, _ = self._position(idxs, check=False)
        return self._handle[position]

    def ref(self, *idxs):
        """ Reference to the storage element at a full or partial index. """
        position, _ = self._position(idxs)
        return ElementRef(self._handle, position)

    ### Zero-dimensional arrays as scalars

    def _check_zero_dimension(self):
        if self._shape:
            raise NotZeroDimension(
                "Array is not directly castable to a scalar. Array's dimension is %d"
                % self.ndim
            )

    def as_scalar(self, dtype=None):
        """Read the element of a zero-dimensional array, optionally converted
        with `dtype` (a Python type such as int, or a numpy dtype)."""
        self._check_zero_dimension()
        value = self._handle[self._offset]
        if dtype is None:
            return value
        if isinstance(dtype, (str, np.dtype)):
            dtype = np.dtype(dtype).type
        return dtype(value)

    def set_scalar(self, value):
        """ Write the element of a zero-dimensional array. """
        self._check_zero_dimension()
        self._handle[self._offset] = value

    def __float__(self):
        return self.as_scalar(float)

    def __int__(self):
        return self.as_scalar(int)

    def __complex__(self):
        return self.as_scalar(complex)

    ### Elementwise arithmetic and comparison

    def _check_same_shape(self, other):
        if self.shape != other.shape:
            raise ShapeMismatch(
                "Arrays shape mismatch: %s and %s" % (self.shape, other.shape)
            )

    def ewise_or_scalar(self, other, ewise_func, scalar_func):
        """Run either an elementwise or scalar version of a function,
        depending on whether "other" is an NDArray or scalar; the result
        has the promoted element type of both operands
        """
        if isinstance(other, NDArray):
            self._check_same_shape(other)
            dtype = np.result_type(self.dtype, other.dtype)
            out = NDArray.make(self.shape, device=self.device, dtype=dtype)
            ewise_func(self.compact()._handle, other.compact()._handle, out._handle)
        elif isinstance(other, Number):
            # a Python scalar promotes as its full-width numpy type
            dtype = np.result_type(self.dtype, type(other))
            out = NDArray.make(self.shape, device=self.device, dtype=dtype)
            scalar_func(self.compact()._handle, other, out._handle)
        else:
            return NotImplemented
        return out

    def __add__(self, other):
        return self.ewise_or_scalar(
            other, self.device.ewise_add, self.device.scalar_add
        )

    __radd__ = __add__

    def __sub__(self, other):
        return self.ewise_or_scalar(
            other, self.device.ewise_sub, self.device.scalar_sub
        )

    def __rsub__(self, other):
        if not isinstance(other, Number):
            return NotImplemented
        return self.ewise_or_scalar(other, None, self.device.scalar_rsub)

    def __neg__(self):
        out = NDArray.make(self.shape, device=self.device, dtype=self.dtype)
        self.device.ewise_neg(self.compact()._handle, out._handle)
        return out

    def _inplace(self, result):
        """ Write `result` back through this array's own shape, strides and offset. """
        if np.issubdtype(result.dtype, np.complexfloating) and not np.issubdtype(
            self.dtype, np.complexfloating
        ):
            raise TypeError(
                "cannot store %s results in a %s array" % (result.dtype, self.dtype)
            )
        self.device.ewise_setitem(
            result._handle, self._handle, self.shape, self.strides, self._offset
        )
        return self

    def __iadd__(self, other):
        return self._inplace(self + other)

    def __isub__(self, other):
        return self._inplace(self - other)

    def __eq__(self, other):
        """True when every pair of elements differs by less than the configured
        tolerance (1e-12 by default). This is a single bool, not an array."""
        if not isinstance(other, NDArray):
            return NotImplemented
        self._check_same_shape(other)
        return self.device.ewise_close(
            self.compact()._handle, other.compact()._handle, EQUALITY_TOLERANCE
        )

    def __ne__(self, other):
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    __hash__ = None


def array(a, dtype=None, device=None):
    """ Convenience methods to match numpy a bit more closely."""
    if isinstance(a, NDArray):
        return NDArray(a, dtype=dtype, device=device)
    return NDArray(np.asarray(a, dtype=dtype), device=device)


def zeros(shape, dtype=None, device=None):
    device = device if device is not None else default_device()
    return device.empty(shape, dtype)


def full(shape, fill_value, dtype=None, device=None):
    device = device if device is not None else default_device()
    return device.full(shape, fill_value, dtype)


def reshape(array, new_shape):
    return array.reshape(new_shape)


def transpose(array, pattern):
    return array.transpose(pattern)


__all__ = [
    "BackendDevice",
    "ElementRef",
    "NDArray",
    "array",
    "cpu_numpy",
    "default_device",
    "full",
    "prod",
    "reshape",
    "size_for",
    "strides_for",
    "transpose",
    "zeros",
]
