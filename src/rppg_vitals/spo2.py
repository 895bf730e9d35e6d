"""SpO2 proxy from the red/blue AC-DC ratio.

Rough wellness-grade approximation: the linear calibration (110 - 25 * R)
is an empirical placeholder and has not been validated against a reference
oximeter.
"""

from __future__ import annotations

import numpy as np

from .spectrum import as_signal

RECENT_SAMPLES = 60
CAL_A = 110.0
CAL_B = 25.0
SPO2_MIN = 85.0
SPO2_MAX = 100.0


def estimate_spo2(red: np.ndarray, blue: np.ndarray) -> float | None:
    """Estimate SpO2 [%] from the most recent 60 red and blue samples.

    Returns None when fewer than 60 samples are available.
    """
    red, blue = as_signal(red), as_signal(blue)
    if red.size != blue.size:
        raise ValueError(f"channel lengths differ: red={red.size}, blue={blue.size}")
    if red.size < RECENT_SAMPLES:
        return None
    r = red[-RECENT_SAMPLES:]
    b = blue[-RECENT_SAMPLES:]
    r_dc = float(r.mean()) or 1.0
    b_dc = float(b.mean()) or 1.0
    r_ac = float(r.std())
    b_ac = float(b.std())
    ratio = (r_ac / r_dc) / ((b_ac / b_dc) or 1.0)
    return float(np.clip(CAL_A - CAL_B * ratio, SPO2_MIN, SPO2_MAX))
