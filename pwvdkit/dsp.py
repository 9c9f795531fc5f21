# BSD 3-Clause License

# Copyright (c) 2025, Miguel Dovale

# Redistribution and use in source and binary forms, with or without
# modification, are permitted provided that the following conditions are met:

# 1. Redistributions of source code must retain the above copyright notice, this
#    list of conditions and the following disclaimer.

# 2. Redistributions in binary form must reproduce the above copyright notice,
#    this list of conditions and the following disclaimer in the documentation
#    and/or other materials provided with the distribution.

# 3. Neither the name of the copyright holder nor the names of its
#    contributors may be used to endorse or promote products derived from
#    this software without specific prior written permission.

# THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS"
# AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE
# IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE ARE
# DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR CONTRIBUTORS BE LIABLE
# FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL
# DAMAGES (INCLUDING, BUT NOT LIMITED TO, PROCUREMENT OF SUBSTITUTE GOODS OR
# SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER
# CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER IN CONTRACT, STRICT LIABILITY,
# OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT OF THE USE
# OF THIS SOFTWARE, EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE.

# This software may be subject to U.S. export control laws. By accepting this
# software, the user agrees to comply with all applicable U.S. export laws and
# regulations. User has the responsibility to obtain export licenses, or other
# export authority as may be required before exporting such information to
# foreign countries or providing access to foreign persons.
#
"""
dsp.py — signal conditioning ahead of the lag-product stage
-----------------------------------------------------------------------------
- `interpolate_signal` raises the lag resolution of the PWVD by up-sampling the
  signal with a Kaiser-windowed sinc. The filter is left unscaled so that it is
  a Nyquist filter: fine sample n*degree reproduces original sample n.
- Outside the signal the filter sees zeros (no wrap-around), matching the
  zero-padded boundary policy of the lag-product builder.
- `analytic_signal` is a thin wrapper over scipy.signal.hilbert.
-----------------------------------------------------------------------------
"""
import logging
from typing import Optional

import numpy as np
from scipy.signal import firwin, hilbert, upfirdn

from ._config import INTERP_HALF_WIDTH, INTERP_PSLL
from .utils import is_power_of_two, kaiser_alpha

logger = logging.getLogger(__name__)


def interpolation_filter(
    degree: int,
    half_width: int = INTERP_HALF_WIDTH,
    psll: float = INTERP_PSLL,
) -> np.ndarray:
    """
    Design the up-sampling FIR for a given interpolation degree.

    Parameters
    ----------
    degree : int
        Up-sampling factor, a power of two >= 2.
    half_width : int, optional
        Number of original-rate samples on each side of the centre tap.
    psll : float, optional
        Peak side-lobe level (dB) of the Kaiser taper.

    Returns
    -------
    h : (2 * half_width * degree + 1,) ndarray
        Symmetric taps with h[centre] == 1 and zeros at every other multiple
        of `degree` from the centre.
    """
    if degree < 2 or not is_power_of_two(degree):
        raise ValueError(f"degree must be a power of two >= 2, got {degree!r}")
    if half_width < 1:
        raise ValueError(f"half_width must be positive, got {half_width!r}")
    numtaps = 2 * half_width * degree + 1
    beta = kaiser_alpha(psll) * np.pi
    h = firwin(numtaps, 1.0 / degree, window=("kaiser", beta), scale=False)
    return np.ascontiguousarray(degree * h, dtype=np.float64)


def interpolate_signal(
    z: np.ndarray,
    degree: int,
    half_width: int = INTERP_HALF_WIDTH,
    psll: float = INTERP_PSLL,
) -> np.ndarray:
    """
    Up-sample `z` by `degree`, aligned so that out[n * degree] ~ z[n].

    Degree 1 returns the input unchanged. The result has
    (len(z) - 1) * degree + 1 samples: the fine grid spans exactly the
    original support, so positions past either end stay out of bounds for the
    lag-product builder.
    """
    z = np.asarray(z)
    if degree == 1:
        return z
    h = interpolation_filter(degree, half_width, psll)
    y = upfirdn(h, z, up=degree)
    delay = half_width * degree
    n_fine = (z.shape[0] - 1) * degree + 1
    return np.ascontiguousarray(y[delay:delay + n_fine])


def analytic_signal(x: np.ndarray, N: Optional[int] = None) -> np.ndarray:
    """
    Analytic signal of a real sequence (complex input is returned untouched).
    """
    x = np.asarray(x)
    if np.iscomplexobj(x):
        logger.debug("analytic_signal: input already complex, left unchanged")
        return np.ascontiguousarray(x, dtype=np.complex128)
    return np.ascontiguousarray(hilbert(x, N=N), dtype=np.complex128)
