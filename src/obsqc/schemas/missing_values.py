"""Missing-value sentinels.

Observation stores mark absent data with out-of-band values. Float inputs use
MISSING_FLOAT (NaN is accepted too, since pandas loads absent cells as NaN).
Integer flag arrays delivered by external producers use MISSING_INT.
"""

from __future__ import annotations

import numpy as np

# float32 representation, so the sentinel compares equal in float32 and float64 arrays
MISSING_FLOAT = float(np.float32(-3.3687953e38))
MISSING_INT = -2147483647


def is_missing(values: np.ndarray, missing_value: float = MISSING_FLOAT) -> np.ndarray:
    """Return a boolean mask of missing entries in a float array."""
    values = np.asarray(values, dtype=float)
    return np.isnan(values) | (values == missing_value)


def is_missing_code(codes: np.ndarray, missing_value: int = MISSING_INT) -> np.ndarray:
    """Return a boolean mask of missing entries in an integer flag array."""
    return np.asarray(codes) == missing_value
