from pathlib import Path

import pytest
from pydantic import ValidationError

from dna_intake.constants import DATA_DIR_ENV
from dna_intake.core.settings import IntakeSettings, load_settings, resolve_data_dir, save_settings


def test_first_run_defaults(tmp_path: Path) -> None:
    settings, first_run = load_settings(tmp_path / "missing.json")

    assert first_run is True
    assert settings.chunk_size == 78_000
    assert settings.batch_size == 10_000
    assert settings.max_retries == 2
    assert settings.backoff_seconds == 2.0
    assert settings.max_file_bytes == 100 * 1024 * 1024
    assert settings.min_data_lines == 10
    assert settings.accepted_extensions == [".txt", ".tsv", ".raw"]
    assert settings.data_source == "23andme"


def test_save_and_reload(tmp_path: Path) -> None:
    config_path = tmp_path / "nested" / "config.json"
    save_settings(IntakeSettings(data_dir=str(tmp_path), chunk_size=500, endpoint_url="https://example.test"), config_path)

    settings, first_run = load_settings(config_path)

    assert first_run is False
    assert settings.chunk_size == 500
    assert settings.endpoint_url == "https://example.test"


def test_rejects_invalid_sizes(tmp_path: Path) -> None:
    with pytest.raises(ValidationError):
        IntakeSettings(data_dir=str(tmp_path), batch_size=0)
    with pytest.raises(ValidationError):
        IntakeSettings(data_dir=str(tmp_path), max_retries=-1)


def test_data_dir_env_override(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    settings = IntakeSettings(data_dir=str(tmp_path / "configured"))
    assert resolve_data_dir(settings) == (tmp_path / "configured").resolve()

    monkeypatch.setenv(DATA_DIR_ENV, str(tmp_path / "override"))
    assert resolve_data_dir(settings) == (tmp_path / "override").resolve()
