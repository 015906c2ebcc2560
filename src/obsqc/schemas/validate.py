"""Validation helpers for shape and schema enforcement.

These helpers guard the QC core against inputs that disagree with each other.
All helpers raise ConfigurationError (a ValueError) with actionable messages
including:
- Dataset name (if provided)
- Offending shapes, lengths or columns
"""

from __future__ import annotations

from typing import Any, Iterable, Sequence

import numpy as np

from obsqc.errors import ConfigurationError


def _format_error(
    dataset: str | None,
    rule: str,
    detail: str,
    failing_indices: list[Any] | None = None,
) -> str:
    """Format a validation error message consistently."""
    parts = []
    if dataset:
        parts.append(f"[{dataset}]")
    parts.append(rule)
    parts.append(f": {detail}")
    if failing_indices:
        sample = failing_indices[:5]
        parts.append(f" | sample indices: {sample}")
    return "".join(parts)


def require_columns(
    df_columns: Iterable[str],
    required: Iterable[str],
    dataset: str | None = None,
) -> None:
    """Raise ConfigurationError if required columns are missing.

    Args:
        df_columns: Column names from a DataFrame (e.g., df.columns)
        required: Required column names
        dataset: Optional dataset name for error messages

    Raises:
        ConfigurationError: If any required columns are missing
    """
    missing = set(required) - set(df_columns)
    if missing:
        raise ConfigurationError(
            _format_error(dataset, "Missing columns", f"{sorted(missing)}")
        )


def require_shape(
    array: np.ndarray,
    expected: tuple[int, ...],
    name: str,
    dataset: str | None = None,
) -> None:
    """Raise ConfigurationError if an array does not have the expected shape.

    Args:
        array: Array to check
        expected: Expected shape, e.g. (nvars, nlocs)
        name: Name of the array for error messages
        dataset: Optional dataset name for error messages

    Raises:
        ConfigurationError: If shapes differ
    """
    actual = tuple(np.shape(array))
    if actual != tuple(expected):
        raise ConfigurationError(
            _format_error(
                dataset,
                "Shape mismatch",
                f"{name} has shape {actual}, expected {tuple(expected)}",
            )
        )


def require_length(
    values: Sequence[Any] | np.ndarray,
    expected: int,
    name: str,
    dataset: str | None = None,
) -> None:
    """Raise ConfigurationError if a sequence does not have the expected length."""
    if len(values) != expected:
        raise ConfigurationError(
            _format_error(
                dataset,
                "Length mismatch",
                f"{name} has length {len(values)}, expected {expected}",
            )
        )


def require_unique_names(
    names: Sequence[str],
    dataset: str | None = None,
) -> None:
    """Raise ConfigurationError if a name list contains duplicates."""
    seen: set[str] = set()
    dups = []
    for i, name in enumerate(names):
        if name in seen:
            dups.append(i)
        seen.add(name)
    if dups:
        raise ConfigurationError(
            _format_error(
                dataset,
                "Duplicate names",
                f"{[names[i] for i in dups]}",
                dups,
            )
        )


def require_flag_codes(
    codes: np.ndarray,
    dtype: type = np.int32,
    name: str = "QC flags",
    dataset: str | None = None,
) -> None:
    """Raise ConfigurationError if raw flag codes cannot be stored losslessly.

    Integer arrays must fit in dtype. Float arrays (e.g. a column read from
    CSV) are accepted only if every value is finite and integral.

    Args:
        codes: Raw flag codes from an external producer
        dtype: Integer dtype the codes will be stored in
        name: Name of the array for error messages
        dataset: Optional dataset name for error messages

    Raises:
        ConfigurationError: If a code is non-integral or out of range
    """
    codes = np.asarray(codes)
    kind = codes.dtype.kind

    if kind == "f":
        bad = ~np.isfinite(codes)
        bad[~bad] = codes[~bad] != np.round(codes[~bad])
        if bad.any():
            raise ConfigurationError(
                _format_error(
                    dataset,
                    "Non-integral codes",
                    f"{name} must hold whole numbers, got {codes[bad][:5].tolist()}",
                    np.argwhere(bad).tolist(),
                )
            )
    elif kind not in ("i", "u"):
        raise ConfigurationError(
            _format_error(dataset, "Dtype mismatch", f"{name} must be integer, got {codes.dtype}")
        )

    info = np.iinfo(dtype)
    out_of_range = (codes < info.min) | (codes > info.max)
    if out_of_range.any():
        raise ConfigurationError(
            _format_error(
                dataset,
                "Out of range",
                f"{name} must be in [{info.min}, {info.max}], "
                f"got {codes[out_of_range][:5].tolist()}",
                np.argwhere(out_of_range).tolist(),
            )
        )
