"""Runtime configuration, read once from the environment at import.

NDVIEW_DEFAULT_DTYPE  element type of new storage when none is given
NDVIEW_EQ_TOL         absolute tolerance used by NDArray.__eq__
"""
import os

import numpy as np


def _storage_dtype(name):
    dtype = np.dtype(name)
    if not np.issubdtype(dtype, np.number):
        raise ValueError("NDVIEW_DEFAULT_DTYPE must be a numeric type, got %s" % name)
    return dtype


DEFAULT_DTYPE = _storage_dtype(os.environ.get("NDVIEW_DEFAULT_DTYPE", "float64"))

EQUALITY_TOLERANCE = float(os.environ.get("NDVIEW_EQ_TOL", "1e-12"))
if EQUALITY_TOLERANCE <= 0:
    raise ValueError("NDVIEW_EQ_TOL must be positive, got %r" % EQUALITY_TOLERANCE)
