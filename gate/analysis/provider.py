"""Analysis provider interface."""

from __future__ import annotations

from typing import Any


class ProviderError(Exception):
    pass


class Provider:
    name = "base"

    async def analyze_text(self, text: str) -> dict[str, Any]:
        raise NotImplementedError

    async def close(self) -> None:
        pass
