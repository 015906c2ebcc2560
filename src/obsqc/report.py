"""Distributed QC summary.

For every observed variable, in the fixed order of the variable list:
1. Count this worker's dispositions per report group
2. Sum the counts over all workers with one collective reduction
3. Check that the global group counts add up to the global record count
4. On rank 0 only, format the report lines

Report generation is an explicit call. Nothing is emitted until every
variable has passed the completeness check, so a ConsistencyError aborts the
whole report for the cycle. The check runs on the reduced counts, which are
identical on all ranks, so every rank raises together and no worker is left
waiting in a collective.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

import numpy as np
import pandas as pd

from obsqc.comm import COUNT_DTYPE, Communicator
from obsqc.errors import ConsistencyError
from obsqc.flags.matrix import FlagMatrix
from obsqc.schemas.qc_flags import (
    LEGACY_CODES,
    REPORT_ORDER,
    ReportGroup,
    describe,
    report_group,
)
from obsqc.schemas.validate import require_length


@dataclass
class CategoryCounts:
    """Disposition counts for one variable.

    Attributes:
        variable: Observed variable name
        counts: Count per report group (every group present, zero if unused)
        total: Number of records counted
        unrecognized: Number of cells holding a code outside the taxonomy
        unrecognized_codes: The offending raw codes seen on this worker
    """
    variable: str
    counts: dict[ReportGroup, int]
    total: int
    unrecognized: int = 0
    unrecognized_codes: list[int] = field(default_factory=list)

    @property
    def accounted(self) -> int:
        """Sum of all group counts."""
        return sum(self.counts.values())

    @property
    def passed(self) -> int:
        return self.counts[ReportGroup.PASS]

    def to_vector(self) -> np.ndarray:
        """Pack counts for a collective sum: groups in report order, total, unrecognized."""
        values = [self.counts[group] for group in REPORT_ORDER]
        values.extend([self.total, self.unrecognized])
        return np.array(values, dtype=COUNT_DTYPE)

    @classmethod
    def from_vector(cls, variable: str, values: np.ndarray) -> CategoryCounts:
        """Unpack a vector produced by to_vector (or a sum of them)."""
        values = [int(v) for v in values]
        require_length(values, len(REPORT_ORDER) + 2, "count vector", dataset="qc_report")
        counts = dict(zip(REPORT_ORDER, values[: len(REPORT_ORDER)]))
        return cls(
            variable=variable,
            counts=counts,
            total=values[-2],
            unrecognized=values[-1],
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary keyed by report group name."""
        d: dict[str, Any] = {"variable": self.variable}
        d.update({group.value: self.counts[group] for group in REPORT_ORDER})
        d["total"] = self.total
        return d


def count_dispositions(flags: FlagMatrix, jv: int, variable: str) -> CategoryCounts:
    """Count this worker's dispositions for one variable.

    Both GNSSRO reality-check codes fold into one group. Codes outside the
    taxonomy are tallied separately instead of raising, so that the worker
    still takes part in the reduction.
    """
    column = flags.column(jv)
    counts = {group: 0 for group in REPORT_ORDER}
    unrecognized = 0
    unrecognized_codes: list[int] = []

    codes, freq = np.unique(column, return_counts=True)
    for code, n in zip(codes.tolist(), freq.tolist()):
        disposition = LEGACY_CODES.get(code)
        if disposition is None:
            unrecognized += n
            unrecognized_codes.append(code)
        else:
            counts[report_group(disposition)] += n

    return CategoryCounts(
        variable=variable,
        counts=counts,
        total=int(column.size),
        unrecognized=unrecognized,
        unrecognized_codes=unrecognized_codes,
    )


def reduce_counts(local: CategoryCounts, comm: Communicator) -> CategoryCounts:
    """Sum one variable's counts over all workers (one collective call)."""
    reduced = comm.allreduce_sum(local.to_vector())
    return CategoryCounts.from_vector(local.variable, reduced)


def check_complete(counts: CategoryCounts, obstype: str = "") -> None:
    """Raise ConsistencyError unless every record is counted exactly once.

    Raises:
        ConsistencyError: If group counts do not sum to the record total
    """
    if counts.unrecognized == 0 and counts.accounted == counts.total:
        return

    label = _prefix(obstype, counts.variable).rstrip(": ")
    detail = f"{counts.accounted} of {counts.total} observations accounted for"
    if counts.unrecognized:
        detail += f", {counts.unrecognized} with unrecognized QC flag codes"
    if counts.unrecognized_codes:
        detail += f" (codes seen on this worker: {sorted(counts.unrecognized_codes)})"
    raise ConsistencyError(f"[{label}] Incomplete QC accounting: {detail}")


def _prefix(obstype: str, variable: str) -> str:
    return " ".join(part for part in ("QC", obstype, variable) if part) + ": "


def format_counts(counts: CategoryCounts, obstype: str = "") -> list[str]:
    """Format report lines for one variable.

    Rejection lines appear only for nonzero groups. The pass line is always
    last, e.g. "QC radiosonde air_temperature: 8 passed out of 10 observations."
    """
    info = _prefix(obstype, counts.variable)
    lines = []
    for group in REPORT_ORDER:
        if group is ReportGroup.PASS:
            continue
        n = counts.counts[group]
        if n > 0:
            lines.append(f"{info}{n} {describe(group)}")
    lines.append(f"{info}{counts.passed} passed out of {counts.total} observations.")
    return lines


@dataclass
class QCReport:
    """Globally reduced QC summary for one cycle.

    Attributes:
        counts: Global counts, one entry per variable in variable order
        lines: Report lines (empty on every rank except 0)
        rank: Rank of the worker holding this report
    """
    counts: list[CategoryCounts]
    lines: list[str]
    rank: int = 0

    def emit(self, sink: Callable[[str], Any] = print) -> None:
        """Write the report lines to a sink (print by default)."""
        for line in self.lines:
            sink(line)

    def to_frame(self) -> pd.DataFrame:
        return counts_to_frame(self.counts)

    def __str__(self) -> str:
        return "\n".join(self.lines)


def generate_report(
    flags: FlagMatrix,
    variables: Sequence[str],
    comm: Communicator,
    obstype: str = "",
) -> QCReport:
    """Build the cluster-wide QC summary.

    Every worker must call this with the same variable list. Rank 0 gets the
    formatted lines; all ranks get the global counts.

    Args:
        flags: This worker's flag matrix
        variables: Observed variable names, in flag-matrix row order
        comm: Collective communication handle
        obstype: Observation type label used in report lines

    Returns:
        QCReport with global counts and (on rank 0) report lines

    Raises:
        ConfigurationError: If the variable list does not match the matrix
        ConsistencyError: If any variable fails the completeness check
    """
    require_length(variables, flags.nvars, "observed variable list", dataset="qc_report")

    global_counts = []
    for jv, variable in enumerate(variables):
        local = count_dispositions(flags, jv, variable)
        reduced = reduce_counts(local, comm)
        reduced.unrecognized_codes = local.unrecognized_codes
        check_complete(reduced, obstype)
        global_counts.append(reduced)

    lines: list[str] = []
    if comm.rank == 0:
        for counts in global_counts:
            lines.extend(format_counts(counts, obstype))

    return QCReport(counts=global_counts, lines=lines, rank=comm.rank)


def counts_to_frame(counts: Sequence[CategoryCounts]) -> pd.DataFrame:
    """Render counts as a DataFrame with one row per variable."""
    columns = ["variable"] + [group.value for group in REPORT_ORDER] + ["total"]
    if not counts:
        return pd.DataFrame(columns=columns)
    return pd.DataFrame([c.to_dict() for c in counts], columns=columns)
