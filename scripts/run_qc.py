"""CLI wrapper for QC of one observation shard.

Usage:
    python scripts/run_qc.py --input data/obs/radiosonde.parquet --obstype radiosonde

The input table has one row per record and, per variable, the columns
<var>@ObsValue, <var>@ObsError and optionally <var>@PreQC and <var>@HofX.
Runs the missing-data pass, the H(x) pass (if H(x) columns are present) and
prints the QC summary. This runs as a single worker.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from obsqc.comm import SerialComm
from obsqc.config import QCConfig
from obsqc.data import infer_variables, read_obs_frame, shard_from_frame
from obsqc.errors import ConfigurationError, ConsistencyError
from obsqc.manager import QCManager


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Flag missing data and H(x) failures, then print a QC summary."
    )
    parser.add_argument(
        "--input",
        type=Path,
        required=True,
        help="Shard table (.parquet or .csv)",
    )
    parser.add_argument(
        "--variables",
        nargs="+",
        default=None,
        help="Observed variables (default: every <var>@ObsValue column)",
    )
    parser.add_argument(
        "--obstype",
        default=None,
        help="Observation type label for report lines (overrides --config)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="QCConfig JSON file",
    )
    parser.add_argument(
        "--summary-out",
        type=Path,
        default=None,
        help="Optional CSV path for the per-variable counts table",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Print progress while flagging",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    config = QCConfig.load(args.config) if args.config else QCConfig()
    if args.obstype is not None:
        config.obstype = args.obstype
    if args.verbose:
        config.verbose = True

    df = read_obs_frame(args.input)
    variables = args.variables or infer_variables(df.columns)
    if not variables:
        print(f"[run_qc] No <var>@ObsValue columns in {args.input}", file=sys.stderr)
        return 1

    try:
        shard = shard_from_frame(df, variables, config.missing_float, config.missing_int)
        manager = QCManager(
            shard.variables,
            shard.nlocs,
            shard.flags,
            shard.obs_values,
            shard.obs_errors,
            config=config,
        )
        if shard.hofx is not None:
            manager.post_filter(shard.hofx)
        report = manager.report(SerialComm())
    except (ConfigurationError, ConsistencyError) as e:
        print(f"[run_qc] {type(e).__name__}: {e}", file=sys.stderr)
        return 1

    report.emit()

    if args.summary_out:
        args.summary_out.parent.mkdir(parents=True, exist_ok=True)
        report.to_frame().to_csv(args.summary_out, index=False)
        print(f"[run_qc] Wrote counts for {len(report.counts)} variables to {args.summary_out}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
