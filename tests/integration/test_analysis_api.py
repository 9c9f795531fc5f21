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

import pytest
import numpy as np
import pandas as pd
from matplotlib.figure import Figure
from matplotlib.axes import Axes

from pwvdkit import compute_tfd, compute_pwvd, pwvd, PWVDAnalyzer, PWVDResult


def test_compute_tfd_tracks_linear_chirp(chirp_data):
    """The ridge follows the instantaneous frequency of a complex chirp."""
    params = chirp_data
    result = compute_tfd(
        params["data"],
        fs=params["fs"],
        window_length=127,
        time_res=32,
        fft_length=256,
    )

    assert isinstance(result, PWVDResult)
    assert result.tfd.shape == (128, 32)
    interior = (result.t >= 0.064) & (result.t <= (params["N"] - 64) / params["fs"])
    f_inst = params["f0"] + params["rate"] * result.t[interior]
    bin_width = params["fs"] / 256
    assert np.all(np.abs(result.peak_frequency[interior] - f_inst) <= 2 * bin_width)
    assert np.all(np.diff(result.peak_frequency[interior]) >= 0)


def test_result_axes_and_marginals(complex_tone):
    fs = 128.0
    result = compute_tfd(complex_tone["data"], fs, window_length=63, time_res=16, fft_length=64)
    assert result.f.shape == (32,)
    assert result.f[1] == pytest.approx(fs / 64)
    assert result.t.shape == (32,)
    assert result.t[1] == pytest.approx(16 / fs)
    assert result.energy.shape == (32,)
    assert result.spectrum.shape == (32,)
    assert result.shape == (32, 32)
    assert result.peak_frequency[16] == pytest.approx(complex_tone["k0"] * fs / 64)
    assert result.get_measurement(result.f[5], result.t[16]) == pytest.approx(63.0, rel=1e-9)
    assert "peak_frequency" in dir(result)
    with pytest.raises(AttributeError):
        result.not_a_quantity


def test_real_sinusoid_with_analytic_option():
    """A real tone, made analytic, peaks at its own frequency mid-signal."""
    fs = 1000.0
    n = np.arange(512)
    x = np.cos(2 * np.pi * (8 / 128) * n)
    result = compute_tfd(x, fs, window_length=63, time_res=32, fft_length=128, analytic=True)
    interior = slice(3, 13)
    assert np.allclose(result.peak_frequency[interior], 62.5)


def test_period_four_example_with_analytic_option(period4_signal):
    tfd = pwvd(period4_signal, 8, 4, 1, 8, analytic=True)
    assert tfd.shape == (4, 2)
    assert np.argmax(tfd[:, 1]) == 2


def test_pwvd_matches_analyzer(rng):
    x = rng.normal(size=200)
    direct = pwvd(x, 41, 5, 2, 64)
    result = PWVDAnalyzer(x, window_length=41, time_res=5, degree=2, fft_length=64).compute()
    assert np.array_equal(direct, result.tfd)
    assert direct.shape == (32, 40)


def test_pwvd_truncates_window_with_warning(rng, caplog):
    x = rng.normal(size=20)
    with caplog.at_level(logging.WARNING):
        tfd = pwvd(x, 50, 1, 1)
    assert "truncated to signal length" in caplog.text
    assert tfd.shape == (16, 20)


def test_column_and_row_vectors_are_accepted(rng):
    x = rng.normal(size=64)
    flat = pwvd(x, 15, 2, 1, 32)
    assert np.array_equal(pwvd(x[:, None], 15, 2, 1, 32), flat)
    assert np.array_equal(pwvd(x[None, :], 15, 2, 1, 32), flat)


@pytest.mark.parametrize("data", [np.zeros((3, 4)), np.zeros(1), np.array(["a", "b"]), np.zeros(5, dtype=bool)])
def test_non_vectors_are_rejected(data):
    with pytest.raises(ValueError, match="Input must be a vector"):
        PWVDAnalyzer(data, window_length=2)


def test_invalid_parameters_fail_at_construction(rng):
    x = rng.normal(size=32)
    with pytest.raises(ValueError):
        PWVDAnalyzer(x, fs=0.0, window_length=8)
    with pytest.raises(ValueError):
        PWVDAnalyzer(x, window_length=8, time_res=33)
    with pytest.raises(TypeError):
        PWVDAnalyzer(x, window_length="8")


def test_nonfinite_input_warns(caplog):
    x = np.ones(16)
    x[3] = np.nan
    with caplog.at_level(logging.WARNING):
        PWVDAnalyzer(x, window_length=4)
    assert "NaN/Inf" in caplog.text


def test_plan_is_cached(rng):
    analyzer = PWVDAnalyzer(rng.normal(size=64), window_length=9, time_res=3, degree=2, verbose=True)
    assert analyzer.plan() is analyzer.plan()
    assert analyzer.plan()["nplts"] == 22


def test_to_dataframe(complex_tone):
    result = compute_tfd(complex_tone["data"], 1.0, window_length=31, time_res=64, fft_length=32)
    df = result.to_dataframe()
    assert isinstance(df, pd.DataFrame)
    assert df.shape == result.tfd.shape
    assert df.index.name == "f"
    assert np.allclose(df.columns.to_numpy(dtype=float), result.t)


def test_plotting(chirp_data):
    result = compute_tfd(chirp_data["data"], chirp_data["fs"], window_length=63, time_res=64, fft_length=64)
    fig, ax = result.plot()
    assert isinstance(fig, Figure)
    assert isinstance(ax, Axes)

    fig_db, ax_db = result.plot(dB=True, colorbar=False)
    assert isinstance(fig_db, Figure)
    assert ax_db.get_ylabel() == "Frequency (Hz)"


def test_real_sinusoid_peaks_at_its_frequency_by_default():
    """Real input is analysed through its analytic signal unless told otherwise."""
    n = np.arange(512)
    x = np.cos(2 * np.pi * (5 / 64) * n)
    tfd = pwvd(x, 63, 16, 1, 64)
    assert tfd.shape == (32, 32)
    assert np.all(np.argmax(tfd[:, 4:28], axis=0) == 5)


def test_analytic_false_keeps_real_samples():
    n = np.arange(512)
    x = np.cos(2 * np.pi * (5 / 64) * n)
    raw = pwvd(x, 63, 16, 1, 64, analytic=False)
    assert np.array_equal(raw, compute_pwvd(x, 63, 16, 1, 64))
    # the DC interference term of a real tone dominates every other column
    assert np.argmax(raw[:, 4]) == 0
