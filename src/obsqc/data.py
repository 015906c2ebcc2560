"""Load one worker's observation shard from a wide table.

Column convention (one row per record, one column group per variable):

    <var>@ObsValue   observed value (required)
    <var>@ObsError   observation error estimate (required)
    <var>@PreQC      raw QC code from an upstream filter (optional)
    <var>@HofX       simulated observation (optional, all-or-none)

Null cells are read as missing. The QC core only sees the numpy arrays this
module builds; storage stays outside of it.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

import numpy as np
import pandas as pd

from obsqc.flags.matrix import FLAG_DTYPE
from obsqc.schemas.missing_values import MISSING_FLOAT, MISSING_INT
from obsqc.schemas.qc_flags import Disposition
from obsqc.schemas.validate import require_columns, require_flag_codes, require_unique_names

OBS_VALUE = "ObsValue"
OBS_ERROR = "ObsError"
PRE_QC = "PreQC"
HOFX = "HofX"

_DATASET_NAME = "obs_shard"


def column_name(variable: str, group: str) -> str:
    """Return the table column for a variable, e.g. 'air_temperature@ObsValue'."""
    return f"{variable}@{group}"


@dataclass
class ObsShard:
    """Numpy view of one worker's observations.

    Attributes:
        variables: Observed variable names, defines V
        obs_values: V x N observed values
        obs_errors: V x N observation error estimates
        flags: V x N raw QC codes (PASS unless pre-seeded)
        hofx: Flat H(x) vector of length V * N, or None if not in the table
    """
    variables: list[str]
    obs_values: np.ndarray
    obs_errors: np.ndarray
    flags: np.ndarray
    hofx: np.ndarray | None = None

    @property
    def nlocs(self) -> int:
        return self.obs_values.shape[1]


def _float_grid(df: pd.DataFrame, variables: Sequence[str], group: str, missing_float: float) -> np.ndarray:
    cols = [column_name(v, group) for v in variables]
    values = df[cols].astype(float).to_numpy().T
    return np.where(np.isnan(values), missing_float, values)


def _code_column(series: pd.Series, missing_int: int) -> np.ndarray:
    filled = series.fillna(missing_int)
    if pd.api.types.is_integer_dtype(filled):
        return filled.to_numpy(dtype="int64")
    if pd.api.types.is_float_dtype(filled):
        return filled.to_numpy(dtype="float64")
    # Left as-is so the dtype check reports it
    return filled.to_numpy()


def shard_from_frame(
    df: pd.DataFrame,
    variables: Sequence[str],
    missing_float: float = MISSING_FLOAT,
    missing_int: int = MISSING_INT,
) -> ObsShard:
    """Build an ObsShard from a wide DataFrame.

    Args:
        df: One row per record, columns per the module convention
        variables: Observed variable names, defines row order of the arrays
        missing_float: Sentinel written for null float cells
        missing_int: Sentinel written for null PreQC cells

    Returns:
        ObsShard with V x N arrays and the flat H(x) vector (if present)

    Raises:
        ConfigurationError: If required columns are missing, variables repeat,
            or H(x) columns are only present for some variables
    """
    variables = list(variables)
    require_unique_names(variables, dataset=_DATASET_NAME)
    required = [column_name(v, g) for v in variables for g in (OBS_VALUE, OBS_ERROR)]
    require_columns(df.columns, required, dataset=_DATASET_NAME)

    obs_values = _float_grid(df, variables, OBS_VALUE, missing_float)
    obs_errors = _float_grid(df, variables, OBS_ERROR, missing_float)

    flags = np.full(obs_values.shape, int(Disposition.PASS), dtype=FLAG_DTYPE)
    for jv, variable in enumerate(variables):
        col = column_name(variable, PRE_QC)
        if col in df.columns:
            codes = _code_column(df[col], missing_int)
            require_flag_codes(codes, FLAG_DTYPE, name=col, dataset=_DATASET_NAME)
            flags[jv] = codes

    hofx_cols = [column_name(v, HOFX) for v in variables]
    present = [c for c in hofx_cols if c in df.columns]
    hofx = None
    if present:
        require_columns(df.columns, hofx_cols, dataset=_DATASET_NAME)
        # Record-major, variable-minor: index nvars * jobs + jv
        hofx = _float_grid(df, variables, HOFX, missing_float).T.ravel()

    return ObsShard(
        variables=variables,
        obs_values=obs_values,
        obs_errors=obs_errors,
        flags=flags,
        hofx=hofx,
    )


def read_obs_frame(path: Path | str) -> pd.DataFrame:
    """Read a shard table from CSV (by suffix) or parquet."""
    path = Path(path)
    if path.suffix == ".csv":
        return pd.read_csv(path)
    return pd.read_parquet(path)


def load_obs_shard(
    path: Path | str,
    variables: Sequence[str],
    missing_float: float = MISSING_FLOAT,
    missing_int: int = MISSING_INT,
) -> ObsShard:
    """Read a parquet (or CSV) shard file and build an ObsShard."""
    return shard_from_frame(read_obs_frame(path), variables, missing_float, missing_int)


def infer_variables(columns: Sequence[str]) -> list[str]:
    """List variables that have an ObsValue column, in table order."""
    suffix = f"@{OBS_VALUE}"
    return [c[: -len(suffix)] for c in columns if c.endswith(suffix)]
