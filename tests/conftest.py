"""Pytest configuration and fixtures."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable

import numpy as np
import pytest

from obsqc.comm import LocalCommGroup
from obsqc.flags.matrix import FlagMatrix
from obsqc.schemas.missing_values import MISSING_FLOAT

MISSING = MISSING_FLOAT


@pytest.fixture
def make_obs():
    """Factory fixture for V x N observed values, errors and fresh flags."""

    def _make(
        nvars: int = 2,
        nlocs: int = 5,
        value_base: float = 280.0,
        error: float = 1.5,
    ) -> tuple[list[str], FlagMatrix, np.ndarray, np.ndarray]:
        variables = [f"var_{jv}" for jv in range(nvars)]
        obs_values = np.array(
            [[value_base + jv + 0.1 * jobs for jobs in range(nlocs)] for jv in range(nvars)],
            dtype=np.float32,
        ).reshape(nvars, nlocs)
        obs_errors = np.full((nvars, nlocs), error, dtype=np.float32)
        return variables, FlagMatrix(nvars, nlocs), obs_values, obs_errors

    return _make


@pytest.fixture
def run_workers():
    """Run one callable per rank of a LocalCommGroup and collect results.

    The callable receives (comm, rank). Results are returned in rank order;
    the first exception raised by any worker is re-raised.
    """

    def _run(size: int, fn: Callable[[Any, int], Any], timeout: float = 10.0) -> list[Any]:
        group = LocalCommGroup(size, timeout=timeout)
        with ThreadPoolExecutor(max_workers=size) as pool:
            futures = [pool.submit(fn, group.comm(rank), rank) for rank in range(size)]
            return [f.result() for f in futures]

    return _run
