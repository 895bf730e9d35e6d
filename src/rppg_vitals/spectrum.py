"""Spectral engine shared by every frequency-domain estimator.

The transform is a radix-2 Cooley-Tukey FFT over a zero-padded,
Hann-windowed copy of the input. Only the original samples are windowed;
the padding stays zero.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

MIN_TRANSFORM_SAMPLES = 3
FLAT_EPS = 1e-9  # peak-to-peak below this is treated as a constant signal

WindowFn = Callable[[int], np.ndarray]


def next_pow2(n: int) -> int:
    """Smallest power of two >= n (1 for n <= 1)."""
    p = 1
    while p < n:
        p <<= 1
    return p


def hann_window(length: int) -> np.ndarray:
    """Symmetric Hann window, 0.5 * (1 - cos(2*pi*i / (length - 1)))."""
    return np.hanning(length).astype(np.float64)


def as_signal(x: np.ndarray) -> np.ndarray:
    """Return x as a 1D float64 array, raising ValueError otherwise."""
    arr = np.asarray(x, dtype=np.float64)
    if arr.ndim != 1:
        raise ValueError(f"expected a 1D signal, got shape {arr.shape}")
    return arr


def is_flat(x: np.ndarray) -> bool:
    """True for an empty or (numerically) constant signal."""
    return x.size == 0 or float(np.ptp(x)) <= FLAT_EPS


def _bit_reverse_indices(n: int) -> np.ndarray:
    bits = n.bit_length() - 1
    idx = np.arange(n)
    rev = np.zeros(n, dtype=np.int64)
    for _ in range(bits):
        rev = (rev << 1) | (idx & 1)
        idx = idx >> 1
    return rev


def fft_inplace(re: np.ndarray, im: np.ndarray) -> None:
    """Iterative radix-2 FFT operating in place on (re, im).

    Args:
        re, im: contiguous float64 arrays of identical power-of-two length.
    """
    n = re.size
    if n == 0 or n & (n - 1):
        raise ValueError(f"FFT length must be a power of two, got {n}")
    if im.size != n:
        raise ValueError("re and im must have the same length")
    if not (re.flags.c_contiguous and im.flags.c_contiguous):
        raise ValueError("re and im must be contiguous")
    rev = _bit_reverse_indices(n)
    re[:] = re[rev]
    im[:] = im[rev]
    size = 2
    while size <= n:
        half = size // 2
        ang = -2.0 * np.pi * np.arange(half) / size
        w_re = np.cos(ang)
        w_im = np.sin(ang)
        # Blocks of `size` samples; views write straight back into re/im
        blk_re = re.reshape(-1, size)
        blk_im = im.reshape(-1, size)
        top_re = blk_re[:, :half].copy()
        top_im = blk_im[:, :half].copy()
        bot_re = blk_re[:, half:]
        bot_im = blk_im[:, half:]
        t_re = w_re * bot_re - w_im * bot_im
        t_im = w_re * bot_im + w_im * bot_re
        blk_re[:, half:] = top_re - t_re
        blk_im[:, half:] = top_im - t_im
        blk_re[:, :half] = top_re + t_re
        blk_im[:, :half] = top_im + t_im
        size <<= 1


@dataclass(frozen=True)
class Spectrum:
    """Full complex FFT output plus what is needed to map bins to Hz."""

    re: np.ndarray
    im: np.ndarray
    n: int  # padded transform length
    fs: float  # sample rate of the source signal [Hz]

    @property
    def nyquist_bin(self) -> int:
        return self.n // 2

    @property
    def power(self) -> np.ndarray:
        """Squared magnitude for bins 0..n/2."""
        k = self.nyquist_bin + 1
        return self.re[:k] ** 2 + self.im[:k] ** 2

    @property
    def magnitude(self) -> np.ndarray:
        return np.sqrt(self.power)

    def bin_to_hz(self, k: float) -> float:
        return float(k) * self.fs / self.n

    def floor_bin(self, hz: float) -> int:
        return int(np.floor(hz * self.n / self.fs))

    def ceil_bin(self, hz: float) -> int:
        return int(np.ceil(hz * self.n / self.fs))


def transform(
    signal: np.ndarray,
    fs: float,
    window: Optional[WindowFn] = hann_window,
) -> Spectrum | None:
    """Window, zero-pad to the next power of two and FFT a signal.

    Args:
        signal: 1D array of samples.
        fs: sampling rate [Hz].
        window: window function applied to the original samples before
            padding. ``None`` disables windowing.

    Returns:
        Spectrum, or None if the signal has fewer than 3 samples.
    """
    x = as_signal(signal)
    if fs <= 0:
        raise ValueError(f"sample rate must be positive, got {fs}")
    if x.size < MIN_TRANSFORM_SAMPLES:
        return None
    n = next_pow2(x.size)
    re = np.zeros(n, dtype=np.float64)
    im = np.zeros(n, dtype=np.float64)
    re[: x.size] = x * window(x.size) if window is not None else x
    fft_inplace(re, im)
    return Spectrum(re=re, im=im, n=n, fs=float(fs))


def first_peak(values: np.ndarray, lo: int, hi: int) -> tuple[int, float]:
    """Index and value of the maximum of values[lo..hi] (inclusive).

    Scans with a strict greater-than, so ties keep the earliest bin; when
    nothing exceeds zero the result is (lo, 0.0).
    """
    best_i, best_v = lo, 0.0
    if hi < lo:
        return best_i, best_v
    seg = values[lo : hi + 1]
    if seg.size == 0:
        return best_i, best_v
    k = int(np.argmax(seg))  # argmax returns the first maximum
    if seg[k] > 0.0:
        best_i, best_v = lo + k, float(seg[k])
    return best_i, best_v
