"""End-to-end tests for the per-cycle QC manager."""

from __future__ import annotations

import numpy as np
import pytest

from obsqc.comm import SerialComm
from obsqc.config import QCConfig
from obsqc.errors import ConfigurationError, ConsistencyError
from obsqc.flags.matrix import FlagMatrix
from obsqc.manager import QCManager
from obsqc.schemas.missing_values import MISSING_FLOAT, MISSING_INT
from obsqc.schemas.qc_flags import Disposition, ReportGroup

MISSING = MISSING_FLOAT


class TestScenarios:
    """Lifecycle scenarios: construct, post-filter, report."""

    def test_scenario_a_initializer(self) -> None:
        manager = QCManager(
            ["air_temperature"],
            3,
            FlagMatrix(1, 3),
            np.array([[1.0, MISSING, 2.0]]),
            np.array([[0.1, 0.1, MISSING]]),
        )
        assert [manager.flags.get(0, j) for j in range(3)] == [
            Disposition.PASS,
            Disposition.MISSING,
            Disposition.MISSING,
        ]

    def test_scenario_b_updater_changes_nothing(self) -> None:
        manager = QCManager(
            ["air_temperature"],
            3,
            FlagMatrix(1, 3),
            np.array([[1.0, MISSING, 2.0]]),
            np.array([[0.1, 0.1, MISSING]]),
        )
        assert manager.post_filter(np.array([5.0, 5.0, MISSING])) == 0
        assert [manager.flags.get(0, j) for j in range(3)] == [
            Disposition.PASS,
            Disposition.MISSING,
            Disposition.MISSING,
        ]

    def test_scenario_c_report(self) -> None:
        manager = QCManager(
            ["air_temperature"],
            2,
            FlagMatrix(1, 2),
            np.array([[1.0, 2.0]]),
            np.array([[0.5, 0.5]]),
            config=QCConfig(obstype="radiosonde"),
        )
        manager.post_filter(np.array([MISSING, 1.0]))

        assert manager.flags.get(0, 0) is Disposition.FORWARD_OPERATOR_FAILED
        assert manager.flags.get(0, 1) is Disposition.PASS

        report = manager.report(SerialComm())
        counts = report.counts[0]
        assert counts.counts[ReportGroup.FORWARD_OPERATOR_FAILED] == 1
        assert counts.passed == 1
        assert counts.total == 2
        assert report.lines == [
            "QC radiosonde air_temperature: 1 H(x) failed.",
            "QC radiosonde air_temperature: 1 passed out of 2 observations.",
        ]

    def test_scenario_d_dimension_mismatch(self) -> None:
        flags = FlagMatrix(2, 4)
        with pytest.raises(ConfigurationError):
            QCManager(["u", "v"], 4, flags, np.ones((3, 4)), np.ones((2, 4)))
        assert (flags.codes == Disposition.PASS).all()

    def test_scenario_d_flags_shaped_for_other_v(self) -> None:
        with pytest.raises(ConfigurationError, match="QC flags"):
            QCManager(["u", "v"], 4, FlagMatrix(3, 4), np.ones((3, 4)), np.ones((3, 4)))

    def test_scenario_e_unknown_code(self) -> None:
        codes = np.zeros((1, 3), dtype=int)
        codes[0, 2] = 55
        manager = QCManager(["t"], 3, codes, np.ones((1, 3)), np.ones((1, 3)))
        with pytest.raises(ConsistencyError, match="unrecognized"):
            manager.report()


class TestConstruction:
    """Inputs accepted by the manager."""

    def test_nlocs_mismatch(self, make_obs) -> None:
        variables, flags, values, errors = make_obs(nvars=2, nlocs=5)
        with pytest.raises(ConfigurationError):
            QCManager(variables, 6, flags, values, errors)

    def test_duplicate_variables(self) -> None:
        with pytest.raises(ConfigurationError, match="Duplicate names"):
            QCManager(["t", "t"], 1, FlagMatrix(2, 1), np.ones((2, 1)), np.ones((2, 1)))

    def test_flag_matrix_updated_in_place(self, make_obs) -> None:
        variables, flags, values, errors = make_obs(nvars=1, nlocs=2)
        values[0, 0] = MISSING
        manager = QCManager(variables, 2, flags, values, errors)
        assert manager.flags is flags
        assert flags.get(0, 0) is Disposition.MISSING

    def test_raw_code_array_with_pre_qc(self) -> None:
        codes = np.array([[2, 0, MISSING_INT]])
        manager = QCManager(["t"], 3, codes, np.ones((1, 3)), np.ones((1, 3)))
        assert [manager.flags.get(0, j) for j in range(3)] == [
            Disposition.PRE_QC,
            Disposition.PASS,
            Disposition.MISSING,
        ]
        # Caller's array is not modified
        assert codes[0, 2] == MISSING_INT

    def test_config_sentinels_used(self) -> None:
        config = QCConfig(missing_float=-999.0, missing_int=-1)
        manager = QCManager(
            ["t"], 2, np.array([[-1, 0]]), np.array([[1.0, 1.0]]), np.array([[1.0, 1.0]]), config=config
        )
        assert manager.flags.get(0, 0) is Disposition.MISSING
        manager.post_filter(np.array([1.0, -999.0]))
        assert manager.flags.get(0, 1) is Disposition.FORWARD_OPERATOR_FAILED

    def test_verbose_output(self, capsys, make_obs) -> None:
        variables, flags, values, errors = make_obs(nvars=1, nlocs=3)
        values[0, 1] = MISSING
        manager = QCManager(variables, 3, flags, values, errors, config=QCConfig(obstype="sonde", verbose=True))
        manager.post_filter(np.array([MISSING, 1.0, 1.0]))
        out = capsys.readouterr().out
        assert "[qc] sonde: 1 variables x 3 records, 1 missing" in out
        assert "[qc] sonde: 1 H(x) failures" in out

    def test_quiet_by_default(self, capsys, make_obs) -> None:
        variables, flags, values, errors = make_obs()
        QCManager(variables, 5, flags, values, errors)
        assert capsys.readouterr().out == ""


class TestInvariants:
    """Accounting holds after any combination of passes."""

    def test_completeness_after_init_and_update(self) -> None:
        rng = np.random.default_rng(7)
        nvars, nlocs = 3, 60
        codes = rng.choice([0, 0, 0, 0, 2, 3, 4, 5, 7, 10, 76, 77], size=(nvars, nlocs))
        values = rng.normal(size=(nvars, nlocs))
        errors = np.abs(rng.normal(size=(nvars, nlocs)))
        values[rng.random((nvars, nlocs)) < 0.1] = MISSING
        hofx = rng.normal(size=nvars * nlocs)
        hofx[rng.random(nvars * nlocs) < 0.2] = MISSING

        manager = QCManager(["a", "b", "c"], nlocs, codes, values, errors)
        manager.post_filter(hofx)
        report = manager.report()

        for counts in report.counts:
            assert counts.accounted == counts.total == nlocs

    def test_report_is_repeatable(self, make_obs) -> None:
        variables, flags, values, errors = make_obs()
        manager = QCManager(variables, 5, flags, values, errors)
        assert manager.report().lines == manager.report().lines

    def test_multi_worker_cycle(self, run_workers) -> None:
        shards = [
            (np.array([[1.0, MISSING]]), np.array([MISSING, 1.0])),
            (np.array([[1.0, 1.0, 1.0]]), np.array([1.0, MISSING, 1.0])),
        ]

        def work(comm, rank):
            values, hofx = shards[rank]
            nlocs = values.shape[1]
            manager = QCManager(
                ["t"], nlocs, FlagMatrix(1, nlocs), values, np.ones_like(values),
                config=QCConfig(obstype="sonde"),
            )
            manager.post_filter(hofx)
            return manager.report(comm)

        reports = run_workers(2, work)
        assert reports[0].lines == [
            "QC sonde t: 1 missing values.",
            "QC sonde t: 2 H(x) failed.",
            "QC sonde t: 2 passed out of 5 observations.",
        ]
        assert reports[1].lines == []
