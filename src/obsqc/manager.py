"""Per-cycle QC manager.

Wires the flag lifecycle for one observation type on one worker:

    QCManager(...)          validate inputs, flag missing data
    manager.post_filter()   flag forward-operator failures
    manager.report(comm)    reduce counts over all workers, check, format

The report is never produced implicitly (e.g. on teardown): the cycle
controller calls report() at a well-defined point, on every worker.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from obsqc.clean.missing import flag_missing_values
from obsqc.clean.post_filter import flag_forward_operator_failures
from obsqc.comm import Communicator, SerialComm
from obsqc.config import QCConfig
from obsqc.flags.matrix import FlagMatrix
from obsqc.report import QCReport, generate_report
from obsqc.schemas.validate import require_shape, require_unique_names

_DATASET_NAME = "qc_manager"


class QCManager:
    """Owns the flag matrix of one worker for one assimilation cycle.

    Args:
        variables: Observed variable names, defines V and row order
        nlocs: Number of records held by this worker, defines N
        flags: Pre-allocated V x N flags. A FlagMatrix is updated in place;
            a raw code array (possibly pre-seeded by upstream filters) is copied.
        obs_values: V x N observed values
        obs_errors: V x N observation error estimates
        config: QC configuration (defaults to QCConfig())

    Raises:
        ConfigurationError: If any dimension disagrees. No flags are changed.
    """

    def __init__(
        self,
        variables: Sequence[str],
        nlocs: int,
        flags: FlagMatrix | np.ndarray,
        obs_values: np.ndarray,
        obs_errors: np.ndarray,
        config: QCConfig | None = None,
    ) -> None:
        self.config = config if config is not None else QCConfig()
        self.variables = list(variables)

        if not isinstance(flags, FlagMatrix):
            flags = FlagMatrix.from_codes(flags)

        require_unique_names(self.variables, dataset=_DATASET_NAME)
        require_shape(flags.codes, (len(self.variables), nlocs), "QC flags", dataset=_DATASET_NAME)

        n_missing = flag_missing_values(
            flags,
            obs_values,
            obs_errors,
            self.variables,
            missing_float=self.config.missing_float,
            missing_int=self.config.missing_int,
        )
        self.flags = flags
        self._post_filtered = False

        if self.config.verbose:
            print(
                f"[qc] {self._label()}: {len(self.variables)} variables x {nlocs} records, "
                f"{n_missing} missing"
            )

    @property
    def nvars(self) -> int:
        return self.flags.nvars

    @property
    def nlocs(self) -> int:
        return self.flags.nlocs

    def post_filter(self, hofx: np.ndarray) -> int:
        """Flag surviving observations whose simulated value is missing.

        Should run once per cycle. A second call is harmless but changes
        nothing for the same H(x).

        Returns:
            Number of cells flagged FORWARD_OPERATOR_FAILED by this call
        """
        n_failed = flag_forward_operator_failures(
            self.flags, hofx, missing_float=self.config.missing_float
        )
        if self.config.verbose:
            again = " (repeat call)" if self._post_filtered else ""
            print(f"[qc] {self._label()}: {n_failed} H(x) failures{again}")
        self._post_filtered = True
        return n_failed

    def report(self, comm: Communicator | None = None) -> QCReport:
        """Produce the cluster-wide QC summary.

        Must be called on every worker of the shard. Lines are only filled in
        on rank 0.

        Raises:
            ConsistencyError: If the counts do not account for every record
        """
        if comm is None:
            comm = SerialComm()
        return generate_report(self.flags, self.variables, comm, obstype=self.config.obstype)

    def _label(self) -> str:
        return self.config.obstype or "obs"

    def __repr__(self) -> str:
        return (
            f"QCManager(obstype={self.config.obstype!r}, "
            f"variables={self.variables!r}, nlocs={self.nlocs})"
        )
