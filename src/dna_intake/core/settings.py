from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Tuple

from pydantic import BaseModel, Field

from dna_intake.constants import APP_SLUG, CONFIG_FILENAME, DATA_DIR_ENV, DEFAULT_DATA_SOURCE


class IntakeSettings(BaseModel):
    data_dir: str
    data_source: str = DEFAULT_DATA_SOURCE

    chunk_size: int = Field(default=78_000, ge=1)
    batch_size: int = Field(default=10_000, ge=1)
    max_retries: int = Field(default=2, ge=0, le=10)
    backoff_seconds: float = Field(default=2.0, ge=0.0)

    max_file_bytes: int = Field(default=100 * 1024 * 1024, ge=1)
    min_data_lines: int = Field(default=10, ge=1)
    accepted_extensions: list[str] = Field(default_factory=lambda: [".txt", ".tsv", ".raw"])

    endpoint_url: str | None = None
    request_timeout_seconds: float = Field(default=60.0, gt=0.0)


def get_config_dir() -> Path:
    return Path.home() / f".{APP_SLUG}"


def get_config_path() -> Path:
    return get_config_dir() / CONFIG_FILENAME


def default_data_dir() -> Path:
    return get_config_dir() / "data"


def resolve_data_dir(settings: IntakeSettings) -> Path:
    env_value = os.environ.get(DATA_DIR_ENV)
    if env_value:
        return Path(env_value).expanduser().resolve()
    return Path(settings.data_dir).expanduser().resolve()


def load_settings(config_path: Path | None = None) -> Tuple[IntakeSettings, bool]:
    config_path = config_path or get_config_path()
    if config_path.exists():
        data = json.loads(config_path.read_text())
        return IntakeSettings(**data), False

    settings = IntakeSettings(data_dir=str(default_data_dir()))
    return settings, True


def save_settings(settings: IntakeSettings, config_path: Path | None = None) -> None:
    config_path = config_path or get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(settings.model_dump_json(indent=2))
