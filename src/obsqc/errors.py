"""Error types raised by the QC core.

Two kinds only:
- ConfigurationError: shapes or lengths that disagree at construction time.
  Signals a caller bug, never recovered.
- ConsistencyError: the completeness check failed or an unknown raw flag code
  was found. Aborts the report for the cycle.

Missing data is not an error. It is classified as Disposition.MISSING.
"""

from __future__ import annotations


class ConfigurationError(ValueError):
    """Dimension or configuration mismatch detected at construction."""


class ConsistencyError(RuntimeError):
    """Flag counts do not account for every observation exactly once."""
