"""QC configuration management.

This module defines the QCConfig dataclass for one observation type. The
configuration is frozen at cycle start and can be dumped to / loaded from
JSON so that a run can be reproduced.
"""

from __future__ import annotations

import json
import math
import numbers
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

from obsqc.errors import ConfigurationError
from obsqc.schemas.missing_values import MISSING_FLOAT, MISSING_INT


@dataclass
class QCConfig:
    """Configuration for QC of one observation type.

    Attributes:
        obstype: Observation type label used in report lines (e.g. "radiosonde")
        missing_float: Sentinel marking missing float values
        missing_int: Sentinel marking missing integer flags
        verbose: If True, print progress while flagging
    """

    obstype: str = ""
    missing_float: float = MISSING_FLOAT
    missing_int: int = MISSING_INT
    verbose: bool = False

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        self._validate()

    def _validate(self) -> None:
        """Validate all configuration parameters."""
        errors = []

        if not isinstance(self.obstype, str):
            errors.append(f"obstype must be a string, got {type(self.obstype).__name__}")

        if isinstance(self.missing_float, bool) or not isinstance(self.missing_float, numbers.Real):
            errors.append(
                f"missing_float must be a number, got {type(self.missing_float).__name__}"
            )
        elif math.isnan(self.missing_float):
            errors.append("missing_float must not be NaN (NaN is always treated as missing)")

        if isinstance(self.missing_int, bool) or not isinstance(self.missing_int, numbers.Integral):
            errors.append(
                f"missing_int must be an integer, got {type(self.missing_int).__name__}"
            )
        elif self.missing_int >= 0:
            errors.append(
                f"missing_int must be negative so it cannot clash with a QC code, "
                f"got {self.missing_int}"
            )

        if errors:
            raise ConfigurationError("QCConfig validation failed:\n  - " + "\n  - ".join(errors))

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary for JSON serialization."""
        return asdict(self)

    def to_json(self, indent: int = 2) -> str:
        """Serialize config to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    def save(self, path: Path | str) -> Path:
        """Save config to JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.to_json())
        return path

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> QCConfig:
        """Create config from dictionary."""
        unknown = set(d) - {"obstype", "missing_float", "missing_int", "verbose"}
        if unknown:
            raise ConfigurationError(f"Unknown QCConfig keys: {sorted(unknown)}")
        return cls(**d)

    @classmethod
    def from_json(cls, json_str: str) -> QCConfig:
        """Create config from JSON string."""
        return cls.from_dict(json.loads(json_str))

    @classmethod
    def load(cls, path: Path | str) -> QCConfig:
        """Load config from JSON file."""
        path = Path(path)
        return cls.from_json(path.read_text())
