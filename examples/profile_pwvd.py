# profile_pwvd.py

import numpy as np
import cProfile
import pstats

from pwvdkit.analysis import compute_tfd


def main():
    """Sets up and runs the profiling task."""
    print("Setting up profiling workload...")

    # --- 1. Define a realistic workload ---
    # A long noisy chirp, analysed with interpolation so every stage shows up.
    N = 200_000
    fs = 10_000.0
    t = np.arange(N) / fs
    rng = np.random.default_rng(0)
    data = np.cos(2 * np.pi * (100.0 * t + 150.0 * t**2)) + 0.1 * rng.standard_normal(N)

    print(f"Profiling compute_tfd on a time series of length {N}...")

    # Warm-up so Numba compilation does not dominate the profile
    compute_tfd(data[:4096], fs, window_length=255, time_res=64, degree=2, analytic=True)

    # --- 2. Run the function under cProfile ---
    command = (
        "compute_tfd(data, fs, window_length=1023, time_res=100, degree=2, "
        "fft_length=1024, analytic=True)"
    )
    profiler_context = {"compute_tfd": compute_tfd, "data": data, "fs": fs}

    cProfile.runctx(
        command, globals=profiler_context, locals={}, filename="pwvd_profile.prof"
    )

    print("Profiling complete. Stats saved to 'pwvd_profile.prof'")

    # --- 3. Print a simple summary to the console ---
    print("\n--- Top 10 Functions by Cumulative Time ---")
    stats = pstats.Stats("pwvd_profile.prof")
    stats.sort_stats("cumulative").print_stats(10)


if __name__ == "__main__":
    main()
