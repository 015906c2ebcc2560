"""Post-evaluation updater.

Runs after the forward operator has produced simulated observations, H(x).
An observation that survived every prior screen (still PASS) but has no
simulated value is flagged FORWARD_OPERATOR_FAILED.

Rules:
- Only PASS cells are touched
- A cell rejected for another reason is never reclassified
- Meant to run once per cycle; a second run changes nothing
"""

from __future__ import annotations

import numpy as np

from obsqc.flags.matrix import FlagMatrix
from obsqc.schemas.missing_values import MISSING_FLOAT, is_missing
from obsqc.schemas.qc_flags import Disposition
from obsqc.schemas.validate import require_length

_DATASET_NAME = "qc_post_filter"


def hofx_to_grid(hofx: np.ndarray, nvars: int, nlocs: int) -> np.ndarray:
    """Reshape the flat H(x) vector into a V x N grid.

    The vector is variable-major within each record block: the value for
    variable jv at record jobs sits at index nvars * jobs + jv.

    Raises:
        ConfigurationError: If the vector length is not nvars * nlocs
    """
    hofx = np.asarray(hofx, dtype=float).ravel()
    require_length(hofx, nvars * nlocs, "H(x) vector", dataset=_DATASET_NAME)
    return hofx.reshape(nlocs, nvars).T


def flag_forward_operator_failures(
    flags: FlagMatrix,
    hofx: np.ndarray,
    missing_float: float = MISSING_FLOAT,
) -> int:
    """Flag PASS cells whose simulated value is missing.

    Args:
        flags: Initialized flag matrix, updated in place
        hofx: Flat simulated-observation vector of length V * N
        missing_float: Sentinel for missing values (NaN also counts)

    Returns:
        Number of cells changed to FORWARD_OPERATOR_FAILED

    Raises:
        ConfigurationError: If hofx has the wrong length
    """
    grid = hofx_to_grid(hofx, flags.nvars, flags.nlocs)
    failed = (flags.codes == Disposition.PASS) & is_missing(grid, missing_float)
    return flags._assign(failed, Disposition.FORWARD_OPERATOR_FAILED)
