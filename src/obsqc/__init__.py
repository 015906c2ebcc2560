"""QC disposition tracking and distributed summary for sharded observations.

Key components:
    - Disposition: closed set of QC codes
    - FlagMatrix: per-(variable, record) disposition store
    - flag_missing_values / flag_forward_operator_failures: the two flag passes
    - generate_report: cluster-wide counts with a completeness check
    - QCManager: one worker's flag lifecycle for a cycle

Example usage:
    from obsqc import QCConfig, QCManager, SerialComm

    manager = QCManager(variables, nlocs, flags, obs_values, obs_errors,
                        config=QCConfig(obstype="radiosonde"))
    manager.post_filter(hofx)
    manager.report(SerialComm()).emit()
"""

from obsqc.clean import flag_forward_operator_failures, flag_missing_values
from obsqc.comm import Communicator, LocalCommGroup, SerialComm
from obsqc.config import QCConfig
from obsqc.data import ObsShard, load_obs_shard, shard_from_frame
from obsqc.errors import ConfigurationError, ConsistencyError
from obsqc.flags import FlagMatrix
from obsqc.manager import QCManager
from obsqc.report import (
    CategoryCounts,
    QCReport,
    check_complete,
    count_dispositions,
    counts_to_frame,
    format_counts,
    generate_report,
    reduce_counts,
)
from obsqc.schemas import MISSING_FLOAT, MISSING_INT, Disposition, ReportGroup

__all__ = [
    # Taxonomy
    "Disposition",
    "ReportGroup",
    "MISSING_FLOAT",
    "MISSING_INT",
    # Errors
    "ConfigurationError",
    "ConsistencyError",
    # Flags
    "FlagMatrix",
    "flag_missing_values",
    "flag_forward_operator_failures",
    # Communication
    "Communicator",
    "SerialComm",
    "LocalCommGroup",
    # Report
    "CategoryCounts",
    "QCReport",
    "count_dispositions",
    "reduce_counts",
    "check_complete",
    "format_counts",
    "generate_report",
    "counts_to_frame",
    # Manager
    "QCConfig",
    "QCManager",
    # Data
    "ObsShard",
    "shard_from_frame",
    "load_obs_shard",
]
