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
core.py — Pseudo Wigner-Ville Distribution engine
-----------------------------------------------------------------------------
Design notes
- Lag product for centre t and lag tau:  K(t, tau) = z[t + tau] * conj(z[t - tau]).
  Lags falling outside the signal contribute zero (no wrap-around).
- Lag grid: with interpolation degree D the signal lives on a fine grid of
  step 1/D and fine lag p stands for tau = p / D, |p| <= floor(D * (L - 1) / 2).
- Bin calibration: fine lag p is accumulated at buffer slot (2 * p) mod nfft,
  nfft = window_r2 * D, so bin k of the transform sits at k * fs / window_r2 for
  every D. Slots that collide are summed, which samples the lag-product DTFT
  exactly on that grid.
- Projection: real part of bins 0 .. window_r2/2 - 1 of an unnormalized
  forward FFT, times (2M + 1) / (2P + 1) where M, P are the integer and fine
  half-lags. A unit tone therefore peaks at 2M + 1 for every degree, and a
  one-sample window returns |z[t]|**2 in every bin.
- Scratch: one (block, nfft) complex buffer per call; the kernel re-zeroes
  each row before filling it, so rows never carry lags from another instant.
-----------------------------------------------------------------------------
"""
__all__ = [
    "LagGrid",
    "lag_grid",
    "compute_pwvd",
    # kernels
    "_lag_products",
    "_lag_products_np",
    "_project",
    "_allocate_output",
]

import logging
from typing import NamedTuple, Optional

import numpy as np
import scipy.fft as sp_fft
from numba import njit, prange

from ._config import SCRATCH_BUDGET
from .dsp import interpolate_signal
from .errors import PWVDAllocationError, PWVDComputationError
from .utils import ceil_div, chunker, radix2

logger = logging.getLogger(__name__)


class LagGrid(NamedTuple):
    """
    Lag extent of the PWVD kernel for a (window length, degree) pair.

    half_lag : int
        Largest fine lag P (in units of 1/degree samples).
    n_lags : int
        Number of fine lags, 2P + 1.
    scale : float
        (2M + 1) / (2P + 1), M being the half-lag at degree 1.
    """
    half_lag: int
    n_lags: int
    scale: float


def lag_grid(window_length: int, degree: int) -> LagGrid:
    """Build the `LagGrid` for a window length and a normalized degree."""
    base = (window_length - 1) // 2
    half_lag = (degree * (window_length - 1)) // 2
    n_lags = 2 * half_lag + 1
    return LagGrid(half_lag, n_lags, (2 * base + 1) / n_lags)


# Lag-product builder -----------------------------------------------------------

@njit(parallel=True, cache=True)
def _lag_products(z, centres, half_lag, nfft, out):
    """
    Fill out[j] with the lag products centred on fine index centres[j].

    Parameters
    ----------
    z : (n,) complex128 ndarray
        Signal on the fine grid.
    centres : (B,) int64 ndarray
        Fine-grid centre index of each instant.
    half_lag : int
        Largest fine lag.
    nfft : int
        Transform length; out.shape[1] == nfft.
    out : (B, nfft) complex128 ndarray
        Scratch rows, overwritten.
    """
    n = z.shape[0]
    for j in prange(centres.shape[0]):
        c = centres[j]
        for q in range(nfft):
            out[j, q] = 0j
        pmax = min(half_lag, c, n - 1 - c)
        for p in range(-pmax, pmax + 1):
            out[j, (2 * p) % nfft] += z[c + p] * np.conj(z[c - p])


def _lag_products_np(z, centres, half_lag, nfft):
    """
    NumPy reference for `_lag_products` (returns a fresh buffer).
    """
    z = np.asarray(z, dtype=np.complex128)
    n = z.shape[0]
    out = np.zeros((centres.shape[0], nfft), dtype=np.complex128)
    for j, c in enumerate(centres):
        c = int(c)
        pmax = min(half_lag, c, n - 1 - c)
        p = np.arange(-pmax, pmax + 1)
        np.add.at(out[j], (2 * p) % nfft, z[c + p] * np.conj(z[c - p]))
    return out


# Spectral projector ------------------------------------------------------------

def _project(buf: np.ndarray, nf: int, scale: float, workers: Optional[int] = None) -> np.ndarray:
    """
    FFT each row of `buf` and keep the scaled real part of the first `nf` bins.

    Returns an (B, nf) float64 array.
    """
    spec = sp_fft.fft(buf, axis=-1, workers=workers)
    return scale * spec[:, :nf].real


def _allocate_output(nf: int, nplts: int) -> np.ndarray:
    try:
        return np.empty((nf, nplts), dtype=np.float64)
    except (MemoryError, ValueError) as exc:
        raise PWVDAllocationError(
            f"Memory allocation failed for a {nf} x {nplts} distribution."
        ) from exc


# Distribution assembler --------------------------------------------------------

def compute_pwvd(
    signal,
    window_length: int,
    time_res: int,
    degree: int = 1,
    fft_length: int = 0,
    *,
    block_size: Optional[int] = None,
    workers: Optional[int] = None,
) -> np.ndarray:
    """
    Pseudo Wigner-Ville Distribution of a validated signal.

    Parameters
    ----------
    signal : (N,) array_like, real or complex
        Input samples, N >= 2. Real input is treated as having zero
        imaginary part.
    window_length : int
        Lag window length, 1 <= window_length <= N.
    time_res : int
        Stride between evaluated instants, 1 <= time_res <= N.
    degree : int, optional
        Interpolation degree (>= 0), rounded up to a power of two.
    fft_length : int, optional
        Requested FFT length; 0 means `window_length`. Raised to
        `window_length` if smaller, then rounded up to a power of two.
    block_size : int, optional
        Instants processed per kernel call. Defaults to what fits in
        `SCRATCH_BUDGET` complex elements.
    workers : int, optional
        Passed to scipy.fft.

    Returns
    -------
    tfd : (window_r2 // 2, ceil(N / time_res)) float64 ndarray
        Row k is frequency k / window_r2 (cycles per sample), column j is
        instant j * time_res.

    Raises
    ------
    PWVDAllocationError
        The output could not be allocated.
    PWVDComputationError
        Parameters outside the engine's contract.
    """
    z = np.asarray(signal)
    if z.ndim != 1:
        raise PWVDComputationError(f"signal must be 1-D, got shape {z.shape}.")
    N = int(z.shape[0])
    if N < 2:
        raise PWVDComputationError(f"signal must hold at least 2 samples, got {N}.")
    if not 1 <= window_length <= N:
        raise PWVDComputationError(f"window_length={window_length} outside [1, {N}].")
    if not 1 <= time_res <= N:
        raise PWVDComputationError(f"time_res={time_res} outside [1, {N}].")
    if degree < 0:
        raise PWVDComputationError(f"degree={degree} is negative.")
    if fft_length < 0:
        raise PWVDComputationError(f"fft_length={fft_length} is negative.")
    if block_size is not None and block_size < 1:
        raise PWVDComputationError(f"block_size={block_size} must be positive.")

    window_length = int(window_length)
    time_res = int(time_res)
    if fft_length == 0:
        fft_length = window_length
    fft_length = max(int(fft_length), window_length)

    degree_r2, _ = radix2(degree)
    window_r2, window_order = radix2(fft_length)
    nf = window_r2 // 2
    nplts = ceil_div(N, time_res)
    nfft = window_r2 * degree_r2
    grid = lag_grid(window_length, degree_r2)

    tfd = _allocate_output(nf, nplts)
    if nf == 0:
        return tfd

    z = np.ascontiguousarray(z, dtype=np.complex128)
    z_fine = np.ascontiguousarray(interpolate_signal(z, degree_r2), dtype=np.complex128)

    if block_size is None:
        block_size = max(1, SCRATCH_BUDGET // nfft)
    block_size = min(int(block_size), nplts)

    logger.debug(
        "compute_pwvd: N=%d L=%d time_res=%d degree=%d nfft=%d (order %d) "
        "nf=%d nplts=%d half_lag=%d block=%d",
        N, window_length, time_res, degree_r2, nfft, window_order,
        nf, nplts, grid.half_lag, block_size,
    )

    columns = np.arange(nplts, dtype=np.int64)
    scratch = np.empty((block_size, nfft), dtype=np.complex128)
    for cols in chunker(columns, block_size):
        B = cols.shape[0]
        centres = cols * (time_res * degree_r2)
        _lag_products(z_fine, centres, grid.half_lag, nfft, scratch[:B])
        tfd[:, cols[0]:cols[-1] + 1] = _project(scratch[:B], nf, grid.scale, workers).T

    if not np.all(np.isfinite(tfd)):
        logger.warning("compute_pwvd: non-finite values in output (non-finite input?).")
    return tfd
