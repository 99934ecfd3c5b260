from .ndarray import *
from .pattern import parse_transpose_pattern, split_pattern
