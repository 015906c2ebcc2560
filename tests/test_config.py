"""Tests for QC configuration."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

from obsqc.config import QCConfig
from obsqc.errors import ConfigurationError
from obsqc.schemas.missing_values import MISSING_FLOAT, MISSING_INT


class TestQCConfig:
    """Defaults, validation and serialization."""

    def test_defaults(self) -> None:
        config = QCConfig()
        assert config.obstype == ""
        assert config.missing_float == MISSING_FLOAT
        assert config.missing_int == MISSING_INT
        assert config.verbose is False

    def test_nan_missing_float_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match="missing_float"):
            QCConfig(missing_float=float("nan"))

    @pytest.mark.parametrize("value", [0, 1, 76])
    def test_nonnegative_missing_int_rejected(self, value: int) -> None:
        with pytest.raises(ConfigurationError, match="missing_int"):
            QCConfig(missing_int=value)

    def test_errors_collected(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            QCConfig(missing_float=float("nan"), missing_int=3)
        message = str(exc_info.value)
        assert "missing_float" in message
        assert "missing_int" in message

    def test_json_round_trip(self) -> None:
        config = QCConfig(obstype="aircraft", missing_float=-999.0, missing_int=-9)
        assert QCConfig.from_json(config.to_json()) == config

    def test_save_and_load(self, tmp_path: Path) -> None:
        config = QCConfig(obstype="satwind", verbose=True)
        path = config.save(tmp_path / "configs" / "qc.json")
        assert path.exists()
        assert QCConfig.load(path) == config

    def test_unknown_key_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match="Unknown QCConfig keys"):
            QCConfig.from_dict({"obstype": "x", "threshold": 3})

    @pytest.mark.parametrize(
        "payload, field",
        [
            ('{"missing_float": "-999"}', "missing_float must be a number"),
            ('{"missing_float": true}', "missing_float must be a number"),
            ('{"missing_int": "-9"}', "missing_int must be an integer"),
            ('{"missing_int": -9.5}', "missing_int must be an integer"),
        ],
    )
    def test_wrong_type_from_json_rejected(self, payload: str, field: str) -> None:
        with pytest.raises(ConfigurationError, match=field):
            QCConfig.from_json(payload)

    def test_numpy_scalars_accepted(self) -> None:
        config = QCConfig(missing_float=np.float32(-999.0), missing_int=np.int32(-9))
        assert config.missing_int == -9
