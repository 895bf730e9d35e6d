"""rPPG vital-sign extraction.

Turns per-frame RGB skin averages into heart rate, HRV, an SpO2 proxy,
breathing rate and a pulse harmonic profile. Estimates are best-effort
wellness figures, not medical measurements.
"""

__all__ = [
    "spectrum",
    "preprocess",
    "artifacts",
    "chrom",
    "pos",
    "quality",
    "bpm",
    "fusion",
    "peaks",
    "hrv",
    "spo2",
    "respiration",
    "harmonics",
    "emotion",
    "outliers",
    "pipeline",
    "service",
]

__version__ = "0.1.0"
