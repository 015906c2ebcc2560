"""Flag mutation passes: missing-data initializer and post-evaluation updater."""

from obsqc.clean.missing import flag_missing_values, missing_mask, validate_init_inputs
from obsqc.clean.post_filter import flag_forward_operator_failures, hofx_to_grid

__all__ = [
    "flag_missing_values",
    "missing_mask",
    "validate_init_inputs",
    "flag_forward_operator_failures",
    "hofx_to_grid",
]
