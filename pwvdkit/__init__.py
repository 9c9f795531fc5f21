import os
os.environ.setdefault("NUMBA_THREADING_LAYER", "workqueue")
os.environ.setdefault("NUMBA_NUM_THREADS", str(max(1, (os.cpu_count() or 1))))
os.environ.setdefault("OMP_NUM_THREADS", "1")
os.environ.setdefault("MKL_NUM_THREADS", "1")

from . import _config
from .analysis import (
    compute_tfd,
    pwvd,
    PWVDAnalyzer,
    PWVDResult,
)
from .core import compute_pwvd
from .errors import PWVDError, PWVDAllocationError, PWVDComputationError
from .utils import radix2

__version__ = "0.1.0"
