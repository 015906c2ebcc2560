"""Quality control disposition codes.

This module defines the vocabulary for observation dispositions. Unlike a
bitmask, each observation/variable cell carries exactly one terminal code.

Rules:
- Raw integer codes are a wire format shared with external QC filters
  (bounds, blacklist, thinning, ...). They must not change.
- This package only assigns PASS, MISSING and FORWARD_OPERATOR_FAILED.
- Unknown raw codes are an error, never a silent default.
"""

from __future__ import annotations

from enum import Enum, IntEnum

from obsqc.errors import ConsistencyError


class Disposition(IntEnum):
    """Terminal QC classification of one observation for one variable."""

    PASS = 0
    MISSING = 1  # Missing value prevents use of observation
    PRE_QC = 2  # Rejected by pre-processing
    BOUNDS = 3  # Observation value out of bounds
    DOMAIN = 4  # Not within domain of use
    BLACK = 5  # Black-listed
    FORWARD_OPERATOR_FAILED = 6  # H(x) computation failed
    THINNED = 7  # Removed by thinning
    FIRST_GUESS_FAILED = 10  # First-guess check
    GNSSRO_REALITY_CHECK_1 = 76
    GNSSRO_REALITY_CHECK_2 = 77

    @classmethod
    def from_code(cls, code: int) -> Disposition:
        """Convert a raw integer code to a Disposition.

        Raises:
            ConsistencyError: If the code is not part of the taxonomy
        """
        try:
            return LEGACY_CODES[int(code)]
        except KeyError:
            raise ConsistencyError(f"Unrecognized QC flag code: {code}") from None


class ReportGroup(str, Enum):
    """Buckets used when counting dispositions for the QC summary."""

    MISSING = "missing"
    PRE_QC = "preQC"
    BOUNDS = "bounds"
    DOMAIN = "domain"
    BLACK = "black"
    FORWARD_OPERATOR_FAILED = "forwardOperatorFailed"
    THINNED = "thinned"
    FIRST_GUESS_FAILED = "firstGuessFailed"
    GNSSRO_REALITY_CHECK = "gnssroRealityCheck"
    PASS = "pass"


# Raw code -> Disposition. Explicit so that a new code has to be added here.
LEGACY_CODES: dict[int, Disposition] = {
    0: Disposition.PASS,
    1: Disposition.MISSING,
    2: Disposition.PRE_QC,
    3: Disposition.BOUNDS,
    4: Disposition.DOMAIN,
    5: Disposition.BLACK,
    6: Disposition.FORWARD_OPERATOR_FAILED,
    7: Disposition.THINNED,
    10: Disposition.FIRST_GUESS_FAILED,
    76: Disposition.GNSSRO_REALITY_CHECK_1,
    77: Disposition.GNSSRO_REALITY_CHECK_2,
}

_GROUP_BY_DISPOSITION: dict[Disposition, ReportGroup] = {
    Disposition.PASS: ReportGroup.PASS,
    Disposition.MISSING: ReportGroup.MISSING,
    Disposition.PRE_QC: ReportGroup.PRE_QC,
    Disposition.BOUNDS: ReportGroup.BOUNDS,
    Disposition.DOMAIN: ReportGroup.DOMAIN,
    Disposition.BLACK: ReportGroup.BLACK,
    Disposition.FORWARD_OPERATOR_FAILED: ReportGroup.FORWARD_OPERATOR_FAILED,
    Disposition.THINNED: ReportGroup.THINNED,
    Disposition.FIRST_GUESS_FAILED: ReportGroup.FIRST_GUESS_FAILED,
    Disposition.GNSSRO_REALITY_CHECK_1: ReportGroup.GNSSRO_REALITY_CHECK,
    Disposition.GNSSRO_REALITY_CHECK_2: ReportGroup.GNSSRO_REALITY_CHECK,
}

# Order of the rejection lines in the report. PASS is always last.
REPORT_ORDER: list[ReportGroup] = [
    ReportGroup.MISSING,
    ReportGroup.PRE_QC,
    ReportGroup.BOUNDS,
    ReportGroup.DOMAIN,
    ReportGroup.BLACK,
    ReportGroup.FORWARD_OPERATOR_FAILED,
    ReportGroup.THINNED,
    ReportGroup.FIRST_GUESS_FAILED,
    ReportGroup.GNSSRO_REALITY_CHECK,
    ReportGroup.PASS,
]

_DESCRIPTIONS: dict[ReportGroup, str] = {
    ReportGroup.MISSING: "missing values.",
    ReportGroup.PRE_QC: "rejected by pre QC.",
    ReportGroup.BOUNDS: "out of bounds.",
    ReportGroup.DOMAIN: "out of domain of use.",
    ReportGroup.BLACK: "black-listed.",
    ReportGroup.FORWARD_OPERATOR_FAILED: "H(x) failed.",
    ReportGroup.THINNED: "removed by thinning.",
    ReportGroup.FIRST_GUESS_FAILED: "rejected by first-guess check.",
    ReportGroup.GNSSRO_REALITY_CHECK: "rejected by GNSSRO reality check.",
    ReportGroup.PASS: "passed.",
}


def report_group(disposition: Disposition) -> ReportGroup:
    """Return the report bucket a disposition is counted in."""
    return _GROUP_BY_DISPOSITION[disposition]


def describe(group: ReportGroup) -> str:
    """Return the reason text used in report lines."""
    return _DESCRIPTIONS[group]


def codes_for_group(group: ReportGroup) -> list[int]:
    """Return the raw codes folded into a report group."""
    return [int(d) for d, g in _GROUP_BY_DISPOSITION.items() if g is group]
