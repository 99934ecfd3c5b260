import logging

from . import config
from .errors import *
from .backend_ndarray import *

logging.getLogger(__name__).addHandler(logging.NullHandler())
