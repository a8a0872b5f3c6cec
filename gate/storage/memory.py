"""In-memory analysis cache."""

from __future__ import annotations

import hashlib
from typing import Any


def hash_text(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()[:16]


class AnalysisCache:
    """Insertion-ordered; the oldest entry goes first once capacity is reached."""

    def __init__(self, capacity: int = 100):
        self.capacity = max(1, int(capacity))
        self._results: dict[str, dict[str, Any]] = {}

    def __len__(self) -> int:
        return len(self._results)

    def __contains__(self, key: str) -> bool:
        return key in self._results

    def get(self, key: str) -> dict[str, Any] | None:
        return self._results.get(key)

    def put(self, key: str, result: dict[str, Any]) -> None:
        if key not in self._results and len(self._results) >= self.capacity:
            oldest = next(iter(self._results))
            self._results.pop(oldest, None)
        self._results[key] = result

    def clear(self) -> None:
        self._results.clear()
