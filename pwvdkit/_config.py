import os

# Keep BLAS from oversubscribing cores next to Numba's thread pool
if "OPENBLAS_NUM_THREADS" not in os.environ:
    os.environ["OPENBLAS_NUM_THREADS"] = "1"

# Interpolation filter: taps per side per unit of degree, and stop-band level (dB)
INTERP_HALF_WIDTH = 16
INTERP_PSLL = 80.0

# Upper bound on complex elements held by the per-call lag-product scratch
SCRATCH_BUDGET = 1 << 21
