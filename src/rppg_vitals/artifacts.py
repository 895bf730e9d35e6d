"""Artifact conditioning applied to raw RGB traces before extraction."""

from __future__ import annotations

import numpy as np

from .preprocess import centered_mean
from .spectrum import as_signal

AMBIENT_MIN_SAMPLES = 10
AMBIENT_SMOOTH_WIN = 60  # ~2 s at 30 fps
MOTION_THRESHOLD = 0.08


def as_channels(
    r: np.ndarray, g: np.ndarray, b: np.ndarray
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Validate three equal-length 1D channels and return float64 copies."""
    r, g, b = as_signal(r), as_signal(g), as_signal(b)
    if not (r.size == g.size == b.size):
        raise ValueError(
            f"channel lengths differ: r={r.size}, g={g.size}, b={b.size}"
        )
    return r, g, b


def compensate_ambient_light(
    r: np.ndarray, g: np.ndarray, b: np.ndarray
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Remove slow brightness drift by anchoring to the first frame.

    Luminance (Rec. 601 weights) is smoothed with a 60-sample centered moving
    average; every channel at sample i is scaled by lum[0] / smooth[i].
    Fewer than 10 samples pass through unchanged (as copies).
    """
    r, g, b = as_channels(r, g, b)
    if r.size < AMBIENT_MIN_SAMPLES:
        return r.copy(), g.copy(), b.copy()
    lum = 0.299 * r + 0.587 * g + 0.114 * b
    smooth = centered_mean(lum, AMBIENT_SMOOTH_WIN // 2)
    ratio = np.ones_like(smooth)
    ok = smooth > 0
    ratio[ok] = lum[0] / smooth[ok]
    return r * ratio, g * ratio, b * ratio


def detect_motion(
    r: np.ndarray, g: np.ndarray, b: np.ndarray, window_size: int
) -> bool:
    """Return True when the last window_size samples contain a jump.

    A jump is a frame-to-frame L1 change (summed over channels) larger than
    8% of the mean channel level. Returns False when fewer than
    window_size + 1 samples are available, so a False on a short buffer
    says nothing about quality.
    """
    r, g, b = as_channels(r, g, b)
    window_size = int(window_size)
    if window_size < 1 or r.size < window_size + 1:
        return False
    start = r.size - window_size
    delta = (
        np.abs(np.diff(r[start:]))
        + np.abs(np.diff(g[start:]))
        + np.abs(np.diff(b[start:]))
    )
    max_delta = float(delta.max()) if delta.size else 0.0
    mean_level = float((r[start:] + g[start:] + b[start:]).sum()) / (window_size * 3)
    return mean_level > 0 and max_delta / mean_level > MOTION_THRESHOLD
