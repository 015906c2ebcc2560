"""Collective communication handles for the QC reporter.

The reporter never talks to a transport directly. It is given a handle that
supplies a rank and an associative, commutative sum across the workers of a
dataset shard:

    comm.rank                    -> int, 0 is the designated reporting worker
    comm.size                    -> int, number of participating workers
    comm.allreduce_sum(values)   -> element-wise sum over all workers

Every worker must call allreduce_sum the same number of times, in the same
order, or the collective hangs.

Implementations:
- SerialComm: one worker, the sum is the input
- LocalCommGroup: several in-process workers (threads) sharing a barrier
"""

from __future__ import annotations

import threading
from typing import Protocol, runtime_checkable

import numpy as np

COUNT_DTYPE = np.int64


@runtime_checkable
class Communicator(Protocol):
    """Capability passed to the reporter for collective reductions."""

    @property
    def rank(self) -> int: ...

    @property
    def size(self) -> int: ...

    def allreduce_sum(self, values: np.ndarray) -> np.ndarray: ...


class SerialComm:
    """Single-worker communicator."""

    rank = 0
    size = 1

    def allreduce_sum(self, values: np.ndarray) -> np.ndarray:
        return np.array(values, dtype=COUNT_DTYPE, copy=True)


class LocalCommGroup:
    """A group of in-process workers that reduce through a shared barrier.

    Each worker thread gets its own handle from comm(rank). All handles must
    call allreduce_sum in lockstep.

    Args:
        size: Number of workers in the group
        timeout: Optional barrier timeout in seconds. None waits forever.
    """

    def __init__(self, size: int, timeout: float | None = None) -> None:
        if size < 1:
            raise ValueError(f"LocalCommGroup size must be >= 1, got {size}")
        self.size = size
        self._barrier = threading.Barrier(size, timeout=timeout)
        self._lock = threading.Lock()
        self._contributions: dict[int, np.ndarray] = {}
        self._result: np.ndarray | None = None

    def comm(self, rank: int) -> LocalComm:
        if not 0 <= rank < self.size:
            raise IndexError(f"Rank {rank} out of range [0, {self.size})")
        return LocalComm(self, rank)

    def comms(self) -> list[LocalComm]:
        return [self.comm(rank) for rank in range(self.size)]

    def _allreduce_sum(self, rank: int, values: np.ndarray) -> np.ndarray:
        with self._lock:
            self._contributions[rank] = np.array(values, dtype=COUNT_DTYPE, copy=True)

        # Phase 1: all contributions in. One thread computes the sum.
        if self._barrier.wait() == 0:
            parts = [self._contributions[r] for r in sorted(self._contributions)]
            self._result = np.sum(np.stack(parts), axis=0, dtype=COUNT_DTYPE)
            self._contributions.clear()

        # Phase 2: result published. Phase 3: everyone has copied it.
        self._barrier.wait()
        result = self._result.copy()
        self._barrier.wait()
        return result


class LocalComm:
    """Handle for one worker of a LocalCommGroup."""

    def __init__(self, group: LocalCommGroup, rank: int) -> None:
        self._group = group
        self.rank = rank

    @property
    def size(self) -> int:
        return self._group.size

    def allreduce_sum(self, values: np.ndarray) -> np.ndarray:
        return self._group._allreduce_sum(self.rank, values)
