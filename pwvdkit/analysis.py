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
import time
import logging
from typing import List, Dict, Any, Optional, Tuple

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
from matplotlib.figure import Figure
from matplotlib.axes import Axes

from .core import compute_pwvd
from .dsp import analytic_signal
from .schedulers import pwvd_plan


def _as_signal_vector(data) -> np.ndarray:
    """Accept a 1D array or a 1xN / Nx1 array; reject anything else."""
    x = np.asarray(data)
    if x.dtype == np.bool_ or not np.issubdtype(x.dtype, np.number):
        raise ValueError("Input must be a vector")
    if x.ndim == 2 and 1 in x.shape:
        x = x.reshape(-1)
    if x.ndim != 1 or x.shape[0] < 2:
        raise ValueError("Input must be a vector")
    return x


class PWVDAnalyzer:
    """
    Configures and executes a Pseudo Wigner-Ville analysis task.

    This class is the main configuration object of the pwvdkit library. It
    takes a time series and the PWVD parameters, validates them, and defers
    the heavy computation until `.compute()` is called.
    """

    def __init__(
        self,
        data: np.ndarray,
        fs: float = 1.0,
        *,
        window_length: int,
        time_res: int = 1,
        degree: int = 1,
        fft_length: Optional[int] = None,
        analytic: bool = True,
        block_size: Optional[int] = None,
        workers: Optional[int] = None,
        verbose: bool = False,
    ):
        """
        Initializes the analyzer.

        Parameters
        ----------
        data : np.ndarray
            Input time series, real or complex. A 1D array, or a 2D array with
            one singleton dimension.
        fs : float, optional
            Sampling frequency in Hz (must be > 0). Only affects the axes of
            the result. Defaults to 1.0.
        window_length : int
            Lag window length in samples. Truncated to the signal length, with
            a warning, if larger.
        time_res : int, optional
            Stride between evaluated instants, in samples. Defaults to 1.
        degree : int, optional
            Interpolation degree; rounded up to a power of two. 0 and 1 both
            disable interpolation. Defaults to 1.
        fft_length : int, optional
            FFT length. Defaults to `window_length`; raised to it if smaller
            and rounded up to a power of two.
        analytic : bool, optional
            If True, a real input is replaced by its analytic signal before
            the computation, which removes the interference term between
            positive and negative frequencies (it sits at DC for a real
            tone). Complex input is never altered. Defaults to True; pass
            False to analyse the real samples as they are.
        block_size : int, optional
            Number of instants per kernel call. Defaults to an automatic value.
        workers : int, optional
            Worker count handed to scipy.fft. Defaults to None.
        verbose : bool, optional
            If True, logs progress and diagnostic information.
        """
        if not np.isfinite(fs) or fs <= 0:
            raise ValueError(f"`fs` must be a positive finite float, got {fs!r}.")
        if block_size is not None and int(block_size) < 1:
            raise ValueError(f"`block_size` must be a positive integer, got {block_size!r}.")

        self.fs = float(fs)
        self.verbose = bool(verbose)

        x = _as_signal_vector(data)
        self.iscomplex = bool(np.iscomplexobj(x))
        if not np.all(np.isfinite(x)):
            logging.warning("Input data contains NaN/Inf; results may be undefined.")

        if analytic and not self.iscomplex:
            self.data = analytic_signal(x)
        elif self.iscomplex:
            self.data = np.ascontiguousarray(x, dtype=np.complex128)
        else:
            self.data = np.ascontiguousarray(x, dtype=np.float64)
        self.nx = int(self.data.shape[0])

        self.config = {
            "N": self.nx,
            "window_length": window_length,
            "time_res": time_res,
            "degree": degree,
            "fft_length": fft_length,
            "analytic": bool(analytic),
            "block_size": None if block_size is None else int(block_size),
            "workers": workers,
        }

        self._plan_cache: Optional[Dict[str, Any]] = None

        if self.verbose:
            logging.info(
                f"PWVDAnalyzer: fs={self.fs:g} Hz | N={self.nx} | "
                f"{'complex' if self.iscomplex else ('analytic' if analytic else 'real')} input | "
                f"L={window_length} | time_res={time_res} | degree={degree} | "
                f"fft_length={fft_length if fft_length is not None else 'auto'}"
            )

        # Validate eagerly so bad parameters fail at construction
        self.plan()

    def plan(self) -> Dict[str, Any]:
        """
        Generates, caches, and returns the computation plan.

        Returns
        -------
        dict
            Normalized parameters and layout, see `pwvdkit.schedulers.pwvd_plan`.
        """
        if self._plan_cache is not None:
            return self._plan_cache

        plan_output = pwvd_plan(
            N=self.nx,
            window_length=self.config["window_length"],
            time_res=self.config["time_res"],
            degree=self.config["degree"],
            fft_length=self.config["fft_length"],
        )

        if plan_output["n"].shape[0] != plan_output["nplts"]:
            raise RuntimeError("Internal plan error: instant count mismatch.")

        if self.verbose:
            logging.info(
                f"[plan] L={plan_output['window_length']}, "
                f"window_r2={plan_output['window_r2']} (order {plan_output['window_order']}), "
                f"degree={plan_output['degree_r2']}, nfft={plan_output['nfft']}, "
                f"nf={plan_output['nf']}, nplts={plan_output['nplts']}, "
                f"lags={plan_output['n_lags']}"
            )

        self._plan_cache = plan_output
        return self._plan_cache

    def compute(self) -> "PWVDResult":
        """
        Executes the analysis and returns a PWVDResult object.
        """
        plan = self.plan()

        if self.verbose:
            logging.info(f"Computing {plan['nplts']} instants x {plan['nf']} frequencies...")

        t0 = time.perf_counter()
        tfd = compute_pwvd(
            self.data,
            plan["window_length"],
            plan["time_res"],
            plan["degree_r2"],
            plan["fft_length"],
            block_size=self.config["block_size"],
            workers=self.config["workers"],
        )
        t_total = time.perf_counter() - t0

        if self.verbose:
            logging.info(f"Computation completed in {t_total:.2f} seconds.")

        results = {**plan, "tfd": tfd, "compute_t": float(t_total)}
        return PWVDResult(results, self.config, self.fs)


class PWVDResult:
    """
    Container for a computed Pseudo Wigner-Ville Distribution.

    Attributes
    ----------
    tfd : np.ndarray
        Distribution, shape (nf, nplts): rows are frequencies, columns instants.
    f : np.ndarray
        Frequency of each row in Hz.
    t : np.ndarray
        Time of each column in seconds.
    energy : np.ndarray
        Sum over frequency of each column (time marginal).
    spectrum : np.ndarray
        Sum over time of each row (frequency marginal).
    peak_frequency : np.ndarray
        Frequency of the largest value in each column (ridge estimate).
    tfd_db : np.ndarray
        10*log10 of the distribution magnitude, floored at -300 dB.
    """

    def __init__(self, results_dict: Dict[str, Any], config_dict: Dict[str, Any], fs: float):
        self._data = results_dict
        self._config = config_dict
        self.fs = fs
        self._cache: Dict[str, Any] = {}

    def __getattr__(self, name: str) -> Any:
        """Lazy computation and caching of derived quantities."""
        if name.startswith("_"):
            raise AttributeError(name)
        if name in self._cache:
            return self._cache[name]

        if name == "f":
            val = np.arange(self._data["nf"], dtype=np.float64) * self.fs / self._data["window_r2"]
        elif name == "t":
            val = self._data["n"].astype(np.float64) / self.fs
        elif name == "energy":
            val = np.sum(self.tfd, axis=0)
        elif name == "spectrum":
            val = np.sum(self.tfd, axis=1)
        elif name == "peak_frequency":
            if self._data["nf"] == 0:
                val = np.full(self._data["nplts"], np.nan)
            else:
                val = self.f[np.argmax(self.tfd, axis=0)]
        elif name == "tfd_db":
            val = 10.0 * np.log10(np.maximum(np.abs(self.tfd), 1e-30))
        elif name in self._data:
            val = self._data[name]
        else:
            raise AttributeError(
                f"'{type(self).__name__}' object has no attribute '{name}'"
            )

        self._cache[name] = val
        return val

    def __dir__(self) -> List[str]:
        default_attrs = super().__dir__()
        dynamic_attrs = ["f", "t", "energy", "spectrum", "peak_frequency", "tfd_db"]
        return sorted(set(default_attrs + list(self._data.keys()) + dynamic_attrs))

    @property
    def shape(self) -> Tuple[int, int]:
        return self.tfd.shape

    def get_measurement(self, freq: float, time_s: float) -> float:
        """
        Value of the distribution at the row/column nearest to (freq, time_s).
        """
        if self._data["nf"] == 0:
            raise ValueError("Distribution has no frequency rows.")
        i = int(np.argmin(np.abs(self.f - freq)))
        j = int(np.argmin(np.abs(self.t - time_s)))
        return float(self.tfd[i, j])

    def to_dataframe(self) -> pd.DataFrame:
        """
        Exports the distribution to a pandas DataFrame indexed by frequency,
        with one column per instant (labelled by its time in seconds).
        """
        df = pd.DataFrame(self.tfd, index=pd.Index(self.f, name="f"), columns=self.t)
        df.columns.name = "t"
        return df

    def plot(
        self,
        *,
        ax: Optional[Axes] = None,
        dB: bool = False,
        cmap: str = "viridis",
        colorbar: bool = True,
        **kwargs,
    ) -> Tuple[Figure, Axes]:
        """
        Image of the distribution over time (x) and frequency (y).

        Parameters
        ----------
        ax : matplotlib.axes.Axes, optional
            Existing Axes to draw into. A new Figure is created if None.
        dB : bool, optional
            Plot `tfd_db` instead of the linear distribution.
        cmap : str, optional
            Colormap name. Defaults to "viridis".
        colorbar : bool, optional
            Attach a colorbar. Defaults to True.
        **kwargs
            Passed to `matplotlib.axes.Axes.pcolormesh`.

        Returns
        -------
        tuple
            (Figure, Axes)
        """
        if self._data["nf"] == 0:
            raise ValueError("Distribution has no frequency rows to plot.")
        fig, ax1 = (ax.get_figure(), ax) if ax is not None else plt.subplots()
        data = self.tfd_db if dB else self.tfd
        mesh = ax1.pcolormesh(self.t, self.f, data, cmap=cmap, shading="nearest", **kwargs)
        ax1.set_xlabel("Time (s)")
        ax1.set_ylabel("Frequency (Hz)")
        if colorbar:
            fig.colorbar(mesh, ax=ax1, label="PWVD (dB)" if dB else "PWVD")
        fig.tight_layout()
        return fig, ax1


def pwvd(
    data: np.ndarray,
    window_length: int,
    time_res: int,
    degree: int,
    fft_length: Optional[int] = None,
    **kwargs,
) -> np.ndarray:
    """
    Pseudo Wigner-Ville Distribution in one call, returning the bare matrix.

    Parameters are validated and normalized like `PWVDAnalyzer`; extra
    keyword arguments (`analytic`, `block_size`, `workers`, `verbose`) are
    passed through to it. Real input is analysed through its analytic
    signal unless `analytic=False` is given.

    Returns
    -------
    np.ndarray
        Real matrix of shape (window_r2 // 2, ceil(N / time_res)).
    """
    analyzer = PWVDAnalyzer(
        data,
        window_length=window_length,
        time_res=time_res,
        degree=degree,
        fft_length=fft_length,
        **kwargs,
    )
    return analyzer.compute().tfd


def compute_tfd(data: np.ndarray, fs: float, **kwargs) -> PWVDResult:
    """
    Computes the Pseudo Wigner-Ville Distribution of a time series in one call.

    Parameters
    ----------
    data : np.ndarray
        Input time series (real or complex).
    fs : float
        Sampling frequency in Hz.
    **kwargs :
        Keyword arguments of `PWVDAnalyzer` (`window_length` is required).

    Returns
    -------
    PWVDResult
    """
    # 1. Instantiate the analyzer with all provided parameters
    analyzer = PWVDAnalyzer(data, fs, **kwargs)

    # 2. Immediately call the compute method
    return analyzer.compute()
