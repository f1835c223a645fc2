from __future__ import annotations

from pathlib import Path

from dna_intake.core.exceptions import FileValidationError
from dna_intake.core.parser import MIN_FIELDS
from dna_intake.core.settings import IntakeSettings


def _format_size(num_bytes: int) -> str:
    if num_bytes < 1024 * 1024:
        return f"{num_bytes} bytes"
    return f"{num_bytes / (1024 * 1024):.0f}MB"


def check_extension(name: str, settings: IntakeSettings) -> None:
    lowered = name.lower()
    if not any(lowered.endswith(ext.lower()) for ext in settings.accepted_extensions):
        allowed = ", ".join(settings.accepted_extensions)
        raise FileValidationError(f"File must be one of: {allowed}")


def check_size(size: int, settings: IntakeSettings) -> None:
    if size > settings.max_file_bytes:
        raise FileValidationError(f"File size must be less than {_format_size(settings.max_file_bytes)}")


def validate_genetic_content(name: str, size: int, content: str, settings: IntakeSettings) -> str:
    """Reject obviously malformed exports before the full parse.

    Checks run cheapest first and the first failure wins, so the error message
    always names one specific problem.
    """
    check_extension(name, settings)
    check_size(size, settings)
    if not content or not content.strip():
        raise FileValidationError("File is empty")

    data_lines: list[str] = []
    for line in content.splitlines():
        if line.startswith("#") or not line.strip():
            continue
        data_lines.append(line)
        if len(data_lines) >= settings.min_data_lines:
            break

    if len(data_lines) < settings.min_data_lines:
        raise FileValidationError(f"File must contain at least {settings.min_data_lines} genetic variants")

    parts = data_lines[0].split("\t")
    if len(parts) < MIN_FIELDS:
        raise FileValidationError(
            f"Invalid format - expected tab-separated values with at least {MIN_FIELDS} columns"
        )
    if not parts[0].strip().startswith("rs"):
        raise FileValidationError('Invalid format - first column should contain rsIDs starting with "rs"')

    return content


def validate_genetic_file(path: Path, settings: IntakeSettings) -> str:
    check_extension(path.name, settings)
    try:
        size = int(path.stat().st_size)
    except FileNotFoundError as exc:
        raise FileValidationError(f"File not found: {path.name}") from exc
    check_size(size, settings)
    content = path.read_text(encoding="utf-8", errors="replace")
    return validate_genetic_content(path.name, size, content, settings)
