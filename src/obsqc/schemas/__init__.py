"""Schema definitions for the QC core.

This package defines the contract layer - what valid flags and inputs look
like. Nothing here should do work, only define structure.

Schemas:
- qc_flags: Disposition codes and report groups
- missing_values: Missing-value sentinels
- validate: Shape and column validators
"""

from obsqc.schemas.missing_values import (
    MISSING_FLOAT,
    MISSING_INT,
    is_missing,
    is_missing_code,
)
from obsqc.schemas.qc_flags import (
    LEGACY_CODES,
    REPORT_ORDER,
    Disposition,
    ReportGroup,
    codes_for_group,
    describe,
    report_group,
)
from obsqc.schemas.validate import (
    require_columns,
    require_flag_codes,
    require_length,
    require_shape,
    require_unique_names,
)

__all__ = [
    # QC Flags
    "Disposition",
    "ReportGroup",
    "LEGACY_CODES",
    "REPORT_ORDER",
    "codes_for_group",
    "describe",
    "report_group",
    # Missing values
    "MISSING_FLOAT",
    "MISSING_INT",
    "is_missing",
    "is_missing_code",
    # Validation helpers
    "require_columns",
    "require_flag_codes",
    "require_length",
    "require_shape",
    "require_unique_names",
]
