#!/usr/bin/env python3
"""
benchmark_pwvd_degree

Benchmarks pwvdkit on 100 thousand points of Gaussian noise for several
interpolation degrees, and compares the Numba lag-product kernel against
the NumPy reference builder on one block of instants.

PWVD parameters:
    window_length = 511
    time_res      = 50
    fft_length    = 512
    degree        = 1, 2, 4

Output:
    - Prints timing statistics for every degree.
    - Prints the kernel speedup over the NumPy reference and checks that
      both builders agree.

Notes:
    - This script avoids file I/O to benchmark the distribution itself.
    - Uses numpy for reproducible random number generation.
"""

import numpy as np
import time
from pwvdkit import PWVDAnalyzer
from pwvdkit.core import _lag_products, _lag_products_np, lag_grid
from pwvdkit.dsp import interpolate_signal


def report_stats(name, t):
    """Print timing statistics for a set of runs."""
    print(
        f"{name}: mean={np.mean(t):.3f}, median={np.median(t):.3f}, "
        f"std={np.std(t):.3f}, min={np.min(t):.3f}, max={np.max(t):.3f}"
    )


def bench_degree(data, degree, n_runs):
    """
    Benchmark a full PWVD computation for one interpolation degree.

    Parameters
    ----------
    data : np.ndarray
        Input time-series data
    degree : int
        Interpolation degree
    n_runs : int
        Number of benchmark runs

    Returns
    -------
    np.ndarray
        Array of timing results in seconds
    """
    tvec = np.zeros(n_runs)
    print(f"Benchmark: degree={degree} (nRuns={n_runs})")

    for i in range(n_runs):
        analyzer = PWVDAnalyzer(
            data,
            window_length=511,
            time_res=50,
            degree=degree,
            fft_length=512,
        )

        t0 = time.perf_counter()
        result = analyzer.compute()
        tvec[i] = time.perf_counter() - t0

        del result
        del analyzer

        print(f"  run {i+1}/{n_runs}: {tvec[i]:.3f} s")

    print()
    return tvec


def bench_kernel(z, degree, n_runs):
    """Time the Numba kernel and the NumPy reference on the same block."""
    grid = lag_grid(511, degree)
    nfft = 512 * degree
    centres = np.arange(0, z.shape[0], 50, dtype=np.int64)[:256] * degree
    zi = interpolate_signal(z, degree)
    out = np.empty((centres.shape[0], nfft), dtype=np.complex128)

    _lag_products(zi, centres, grid.half_lag, nfft, out)

    t_nb = np.zeros(n_runs)
    t_np = np.zeros(n_runs)
    for i in range(n_runs):
        t0 = time.perf_counter()
        _lag_products(zi, centres, grid.half_lag, nfft, out)
        t_nb[i] = time.perf_counter() - t0

        t0 = time.perf_counter()
        ref = _lag_products_np(zi, centres, grid.half_lag, nfft)
        t_np[i] = time.perf_counter() - t0

    report_stats(f"numba kernel, degree={degree}", t_nb)
    report_stats(f"numpy reference, degree={degree}", t_np)
    print(f"speedup: {np.median(t_np) / np.median(t_nb):.1f}x, "
          f"max abs diff: {np.max(np.abs(out - ref)):.3e}")
    print()


def main():
    """Main benchmark function."""
    N = 100_000
    rng = np.random.default_rng(0)
    x = rng.standard_normal(N) + 1j * rng.standard_normal(N)

    n_runs = 5
    degrees = [1, 2, 4]

    print("--- pwvdkit benchmark ---")
    print(f"N = {N} samples, window_length=511, time_res=50, fft_length=512")
    print()

    # Warm-up (JIT compilation) on a small dataset
    print("Warm-up on 4096 samples")
    for degree in degrees:
        PWVDAnalyzer(x[:4096], window_length=511, time_res=50, degree=degree).compute()
    print()

    timings = {}
    for degree in degrees:
        timings[degree] = bench_degree(x, degree, n_runs)

    print("--- Summary ---")
    for degree in degrees:
        report_stats(f"degree={degree}", timings[degree])
    print()

    print("--- Lag-product kernel vs NumPy reference ---")
    for degree in degrees:
        bench_kernel(x, degree, n_runs)


if __name__ == "__main__":
    main()
