from __future__ import annotations

from datetime import datetime, timezone
from typing import Sequence, TypeVar
import uuid

T = TypeVar("T")


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def safe_uuid() -> str:
    return str(uuid.uuid4())


def slices(items: Sequence[T], size: int) -> list[Sequence[T]]:
    if size < 1:
        raise ValueError("size must be >= 1")
    return [items[start:start + size] for start in range(0, len(items), size)]
