"""Missing-data initializer.

This stage runs once, when the QC flags for a cycle are set up:
- Validates that flags, observed values and error estimates agree in shape
- Flags every cell whose value, error or incoming flag is missing

Precedence:
MISSING overrides whatever an upstream filter already wrote into a cell
(e.g. PRE_QC). This is the one place a non-PASS cell is rewritten. It is
not a downgrade to PASS, it upgrades to the strongest unusable signal.

Idempotent: running twice yields the same matrix.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from obsqc.flags.matrix import FlagMatrix
from obsqc.schemas.missing_values import (
    MISSING_FLOAT,
    MISSING_INT,
    is_missing,
    is_missing_code,
)
from obsqc.schemas.qc_flags import Disposition
from obsqc.schemas.validate import require_length, require_shape

_DATASET_NAME = "qc_init"


def validate_init_inputs(
    flags: FlagMatrix,
    obs_values: np.ndarray,
    obs_errors: np.ndarray,
    variables: Sequence[str],
) -> None:
    """Check that all initializer inputs describe the same V x N grid.

    Raises:
        ConfigurationError: If any dimension disagrees
    """
    require_length(variables, flags.nvars, "observed variable list", dataset=_DATASET_NAME)
    require_shape(obs_values, flags.shape, "ObsValue", dataset=_DATASET_NAME)
    require_shape(obs_errors, flags.shape, "ObsError", dataset=_DATASET_NAME)


def missing_mask(
    flags: FlagMatrix,
    obs_values: np.ndarray,
    obs_errors: np.ndarray,
    missing_float: float = MISSING_FLOAT,
    missing_int: int = MISSING_INT,
) -> np.ndarray:
    """Return the V x N mask of cells that must be flagged MISSING."""
    return (
        is_missing_code(flags.codes, missing_int)
        | is_missing(obs_values, missing_float)
        | is_missing(obs_errors, missing_float)
    )


def flag_missing_values(
    flags: FlagMatrix,
    obs_values: np.ndarray,
    obs_errors: np.ndarray,
    variables: Sequence[str],
    missing_float: float = MISSING_FLOAT,
    missing_int: int = MISSING_INT,
) -> int:
    """Flag cells with a missing value, error or incoming flag as MISSING.

    Args:
        flags: Flag matrix, fresh or pre-seeded by upstream filters
        obs_values: V x N observed values
        obs_errors: V x N observation error estimates
        variables: Observed variable names, defines V
        missing_float: Sentinel for missing float values (NaN also counts)
        missing_int: Sentinel for missing integer flags

    Returns:
        Number of cells flagged MISSING by this pass

    Raises:
        ConfigurationError: If the inputs disagree in shape
    """
    validate_init_inputs(flags, obs_values, obs_errors, variables)

    mask = missing_mask(flags, obs_values, obs_errors, missing_float, missing_int)
    return flags._assign(mask, Disposition.MISSING)
