"""IQR-based outlier rejection for heart-rate series collected across ticks."""

from __future__ import annotations

from typing import Sequence

IQR_K = 1.5
MIN_VALUES = 4


def _iqr_pass(values: list[float]) -> list[float]:
    if len(values) < MIN_VALUES:
        return list(values)
    s = sorted(values)
    q1 = s[int(len(s) * 0.25)]
    q3 = s[int(len(s) * 0.75)]
    iqr = q3 - q1
    lower = q1 - IQR_K * iqr
    upper = q3 + IQR_K * iqr
    return [v for v in values if lower <= v <= upper]


def reject_outliers_iqr(
    values: Sequence[float], until_stable: bool = True
) -> list[float]:
    """Keep values inside [Q1 - 1.5 IQR, Q3 + 1.5 IQR], preserving order.

    Quartiles use sorted-array indexing at floor(len * 0.25) and
    floor(len * 0.75). A single pass can expose new outliers once the extreme
    ones are gone, so by default passes repeat until nothing more is removed;
    this makes the filter idempotent. until_stable=False is the classic
    single-pass IQR filter. Fewer than 4 values are returned as-is.
    """
    kept = [float(v) for v in values]
    while True:
        nxt = _iqr_pass(kept)
        if not until_stable or len(nxt) == len(kept):
            return nxt
        kept = nxt
