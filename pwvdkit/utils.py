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
import math
import numbers
from typing import Tuple

import numpy as np


def kaiser_alpha(psll):
    """Kaiser shape parameter alpha (beta / pi) for a given peak side-lobe level in dB."""
    a0 = -0.0821377
    a1 = 4.71469
    a2 = -0.493285
    a3 = 0.0889732

    x = psll / 100
    return (((((a3 * x) + a2) * x) + a1) * x + a0)


def radix2(length: int) -> Tuple[int, int]:
    """
    Smallest power of two not below `length`, and its base-2 exponent.

    Parameters
    ----------
    length : int
        Requested length (>= 0).

    Returns
    -------
    r2, order : int
        `r2 = 2**order >= length`. A request of 0 (or 1) yields (1, 0).
    """
    length = int(length)
    if length < 0:
        raise ValueError(f"Requested length must be non-negative, got {length}.")
    order = 0
    r2 = 1
    while r2 < length:
        order += 1
        r2 <<= 1
    return r2, order


def ceil_div(a: int, b: int) -> int:
    """Integer ceil(a / b) for positive b."""
    return -(-int(a) // int(b))


def chunker(iter, chunk_size):
    chunks = []
    if chunk_size < 1:
        raise ValueError('Chunk size must be greater than 0.')
    for i in range(0, len(iter), chunk_size):
        chunks.append(iter[i:(i+chunk_size)])
    return chunks


def is_power_of_two(n) -> bool:
    n = int(n)
    return n > 0 and (n & (n - 1)) == 0


def as_scalar_int(value, name: str) -> int:
    """
    Coerce a real, finite scalar to int (truncating toward zero).

    Raises
    ------
    TypeError
        If `value` is not a real finite scalar.
    """
    if isinstance(value, np.ndarray) and value.ndim == 0:
        value = value.item()
    if isinstance(value, (bool, np.bool_)) or not isinstance(value, numbers.Real):
        raise TypeError(f"{name} must be a real scalar, got {value!r}.")
    v = float(value)
    if not math.isfinite(v):
        raise TypeError(f"{name} must be a finite scalar, got {value!r}.")
    return int(v)
