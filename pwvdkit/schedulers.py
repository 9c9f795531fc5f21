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
import logging

import numpy as np

from .core import lag_grid
from .utils import as_scalar_int, ceil_div, radix2

logger = logging.getLogger(__name__)


def _require_args(args_dict, required):
    missing = [k for k in required if k not in args_dict]
    if missing:
        raise TypeError(f"Missing required argument(s): {', '.join(missing)}")
    return [args_dict[k] for k in required]


def pwvd_plan(**args):
    """
    PWVD scheduler: validate and normalize the analysis parameters.

    Applies the input rules of `pwvdkit.pwvd`, then lays out the time
    instants and the lag grid the engine will use:

    [---------------------------------------------------------------------------------] total length N
    ^ n[0] = 0         ^ n[1] = time_res        ^ n[2]          ...              ^ n[nplts-1] < N
    [----+----] lags |tau| <= (L - 1) / 2 around each instant, zero outside the signal

    Inputs:
        N (int): Total length of the input data (>= 2).
        window_length (int): Lag window length. Must be >= 1; truncated to N
            (with a warning) if larger.
        time_res (int): Stride between evaluated instants, 1 <= time_res <= N.
        degree (int): Interpolation degree, >= 0. Rounded up to a power of two.
        fft_length (int or None): FFT length, >= 0. None or 0 selects
            window_length; values below window_length are raised silently.

    Computes:
        window_length (int): Window length after truncation.
        degree_r2 (int): Normalized interpolation degree (power of two).
        fft_length (int): FFT length after defaulting and raising.
        window_r2 (int): fft_length rounded up to a power of two.
        window_order (int): log2(window_r2).
        nfft (int): Transform length actually used, window_r2 * degree_r2.
        nf (int): Number of frequency rows, window_r2 // 2.
        nplts (int): Number of instants, ceil(N / time_res).
        n (array of int): Sample index of every instant.
        half_lag (int): Largest fine lag.
        n_lags (int): Number of fine lags.
        scale (float): Degree normalization applied to every bin.

    Raises:
        TypeError: A parameter is not a real finite scalar, or is missing.
        ValueError: A parameter is out of range.
    """
    _require_args(args, ["N", "window_length", "time_res", "degree"])

    N = as_scalar_int(args["N"], "Signal length")
    if N < 2:
        raise ValueError("Input must be a vector")

    window_length = as_scalar_int(args["window_length"], "Smoothing window length")
    if window_length < 1:
        raise ValueError("Window length must be greater than zero")
    if window_length > N:
        logger.warning("Window length has been truncated to signal length")
        window_length = N

    time_res = as_scalar_int(args["time_res"], "Time resolution")
    if time_res < 1:
        raise ValueError("Time resolution must be greater than zero")
    if time_res > N:
        raise ValueError("Time resolution must be no greater than signal length")

    degree = as_scalar_int(args["degree"], "Interpolation degree")
    if degree < 0:
        raise ValueError("Interpolation degree must not be negative")
    degree_r2, _ = radix2(degree)

    fft_length = args.get("fft_length")
    if fft_length is None:
        fft_length = window_length
    else:
        fft_length = as_scalar_int(fft_length, "FFT length")
        if fft_length < 0:
            raise ValueError("FFT length must be greater than zero")
        if fft_length == 0:
            fft_length = window_length
    if fft_length < window_length:
        fft_length = window_length

    window_r2, window_order = radix2(fft_length)
    nplts = ceil_div(N, time_res)
    grid = lag_grid(window_length, degree_r2)

    if window_r2 < 2:
        logger.warning(
            "FFT length %d yields no frequency rows; use fft_length >= 2.", window_r2
        )

    return {
        "N": N,
        "window_length": window_length,
        "time_res": time_res,
        "degree": degree,
        "degree_r2": degree_r2,
        "fft_length": fft_length,
        "window_r2": window_r2,
        "window_order": window_order,
        "nfft": window_r2 * degree_r2,
        "nf": window_r2 // 2,
        "nplts": nplts,
        "n": np.arange(0, N, time_res, dtype=np.int64),
        "half_lag": grid.half_lag,
        "n_lags": grid.n_lags,
        "scale": grid.scale,
    }
