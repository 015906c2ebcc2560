"""Per-(variable, record) disposition store.

A FlagMatrix holds one raw disposition code for every cell of a V x N grid,
where V is the number of observed variables and N the number of records held
by this worker. Codes are stored as int32 so that arrays handed over by
external QC filters can be wrapped without conversion.

Invariants:
- Every cell holds exactly one code (default PASS)
- A cell that is not PASS never goes back to PASS
- Bulk changes only happen through obsqc.clean (missing-data initializer
  and post-evaluation updater)
"""

from __future__ import annotations

import numpy as np

from obsqc.schemas.qc_flags import Disposition
from obsqc.schemas.validate import require_flag_codes

FLAG_DTYPE = np.int32


class FlagMatrix:
    """Dense V x N matrix of QC dispositions owned by a single worker."""

    def __init__(
        self,
        nvars: int,
        nlocs: int,
        initial: Disposition = Disposition.PASS,
    ) -> None:
        if nvars < 0 or nlocs < 0:
            raise ValueError(f"FlagMatrix dimensions must be >= 0, got ({nvars}, {nlocs})")
        self._codes = np.full((nvars, nlocs), int(initial), dtype=FLAG_DTYPE)

    @classmethod
    def from_codes(cls, codes: np.ndarray) -> FlagMatrix:
        """Wrap a pre-seeded V x N array of raw codes.

        The array is copied. Codes must be whole numbers that fit in int32;
        anything else raises ConfigurationError rather than being truncated
        or wrapped into a different code. Unknown codes (and the integer
        missing sentinel) are accepted and detected when the matrix is counted.
        """
        codes = np.asarray(codes)
        if codes.ndim != 2:
            raise ValueError(f"Flag codes must be 2-D (nvars, nlocs), got shape {codes.shape}")
        require_flag_codes(codes, FLAG_DTYPE)
        matrix = cls.__new__(cls)
        matrix._codes = codes.astype(FLAG_DTYPE, copy=True)
        return matrix

    @property
    def nvars(self) -> int:
        return self._codes.shape[0]

    @property
    def nlocs(self) -> int:
        return self._codes.shape[1]

    @property
    def shape(self) -> tuple[int, int]:
        return self._codes.shape

    @property
    def codes(self) -> np.ndarray:
        """Read-only view of the raw codes."""
        view = self._codes.view()
        view.flags.writeable = False
        return view

    def column(self, jv: int) -> np.ndarray:
        """Read-only view of the raw codes for one variable."""
        if not 0 <= jv < self.nvars:
            raise IndexError(f"Variable index {jv} out of range [0, {self.nvars})")
        return self.codes[jv]

    def get(self, jv: int, jobs: int) -> Disposition:
        """Return the disposition of one cell.

        Raises:
            IndexError: If jv or jobs is outside [0, nvars) / [0, nlocs)
            ConsistencyError: If the cell holds an unknown raw code
        """
        self._check_index(jv, jobs)
        return Disposition.from_code(self._codes[jv, jobs])

    def set(self, jv: int, jobs: int, disposition: Disposition) -> None:
        """Set the disposition of one cell.

        Raises:
            IndexError: If jv or jobs is outside [0, nvars) / [0, nlocs)
            ValueError: If a rejected cell would be reset to PASS
        """
        self._check_index(jv, jobs)
        disposition = Disposition(disposition)
        if disposition is Disposition.PASS and self._codes[jv, jobs] != Disposition.PASS:
            raise ValueError(
                f"Cell ({jv}, {jobs}) holds code {int(self._codes[jv, jobs])}; "
                "a rejected observation cannot be reset to PASS"
            )
        self._codes[jv, jobs] = int(disposition)

    def _assign(self, mask: np.ndarray, disposition: Disposition) -> int:
        """Set every cell selected by a V x N boolean mask. Returns the count."""
        self._codes[mask] = int(disposition)
        return int(np.count_nonzero(mask))

    def _check_index(self, jv: int, jobs: int) -> None:
        if not 0 <= jv < self.nvars:
            raise IndexError(f"Variable index {jv} out of range [0, {self.nvars})")
        if not 0 <= jobs < self.nlocs:
            raise IndexError(f"Record index {jobs} out of range [0, {self.nlocs})")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FlagMatrix):
            return NotImplemented
        return np.array_equal(self._codes, other._codes)

    __hash__ = None

    def __repr__(self) -> str:
        return f"FlagMatrix(nvars={self.nvars}, nlocs={self.nlocs})"
