"""Loudness unit conversions.

dBFS is the canonical unit everywhere in the engine. The linear and
percentage forms below exist for display only and must never be fed back
into classification.
"""

import numpy as np

# Metering floor reported for digital silence
SILENCE_DBFS = -160.0

# Full scale of 16-bit PCM, used for the legacy linear RMS display
INT16_FULL_SCALE = 32767

# Range mapped onto 0-100% for the level meter
DISPLAY_FLOOR_DBFS = -60.0


def rms_dbfs(samples: np.ndarray) -> float:
    """RMS level of normalized float samples ([-1.0, 1.0]) in dBFS."""
    if samples.size == 0:
        return SILENCE_DBFS
    rms = float(np.sqrt(np.mean(np.square(samples, dtype=np.float64))))
    if rms <= 0.0:
        return SILENCE_DBFS
    return float(max(SILENCE_DBFS, 20.0 * np.log10(rms)))


def dbfs_to_rms(dbfs: float) -> int:
    """Approximate 16-bit RMS magnitude for a dBFS reading."""
    return int(round(INT16_FULL_SCALE * 10 ** (dbfs / 20.0)))


def dbfs_to_percent(dbfs: float) -> int:
    """Map dBFS onto a 0-100 meter, clamping outside the display range."""
    if dbfs <= DISPLAY_FLOOR_DBFS:
        return 0
    if dbfs >= 0.0:
        return 100
    return int(round((dbfs - DISPLAY_FLOOR_DBFS) / -DISPLAY_FLOOR_DBFS * 100))
