from __future__ import annotations

import math


class ProgressEstimator:
    """Smoothed percentage for display while chunks are in flight.

    Real milestones come from :meth:`chunk_completed`, which matches the
    uploader's ``on_chunk_complete`` callback signature. Between milestones
    the estimate eases toward the next one without reaching it, and it never
    reports 100 until :meth:`finish` is called. Use it for display only.
    """

    def __init__(self, total_chunks: int, ceiling: float = 99.0) -> None:
        if total_chunks < 1:
            raise ValueError("total_chunks must be >= 1")
        self.total_chunks = total_chunks
        self.ceiling = ceiling
        self.completed_chunks = 0
        self.finished = False
        self._last = 0.0

    def chunk_completed(self, chunk_index: int, total_chunks: int) -> None:
        self.total_chunks = total_chunks
        self.completed_chunks = max(self.completed_chunks, chunk_index)

    def estimate(self, elapsed_seconds: float, expected_chunk_seconds: float) -> float:
        if self.finished:
            return 100.0
        per_chunk = 100.0 / self.total_chunks
        base = self.completed_chunks * per_chunk
        eased = 1.0 - math.exp(-max(elapsed_seconds, 0.0) / max(expected_chunk_seconds, 0.001))
        value = min(base + per_chunk * eased, self.ceiling)
        self._last = max(self._last, value)
        return self._last

    def finish(self) -> float:
        self.finished = True
        self._last = 100.0
        return self._last
