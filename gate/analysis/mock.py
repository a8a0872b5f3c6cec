"""Offline rule-based provider."""

from __future__ import annotations

import asyncio
import re
import time
from typing import Any

from gate.analysis.provider import Provider

MISSPELLINGS = (
    ("recieve", "receive"),
    ("occured", "occurred"),
    ("seperate", "separate"),
    ("definately", "definitely"),
)

_PASSIVE = re.compile(r"\b(is|are|was|were) \w+ed\b", re.IGNORECASE)
_END_PUNCT = re.compile(r"[.!?]$")


class MockProvider(Provider):
    name = "mock"

    def __init__(self, delay_sec: float = 0.0):
        self.delay_sec = float(delay_sec)

    async def analyze_text(self, text: str) -> dict[str, Any]:
        if self.delay_sec > 0:
            await asyncio.sleep(self.delay_sec)
        return {"suggestions": self.suggest(text)}

    def suggest(self, text: str) -> list[dict[str, Any]]:
        stamp = int(time.time() * 1000)
        lower = text.lower()
        out: list[dict[str, Any]] = []

        idx = lower.find("has went")
        if idx >= 0:
            out.append(_suggestion(f"mock-{stamp}-1", "grammar", idx, "has went", ["has gone"], 0.95))

        for i, (wrong, right) in enumerate(MISSPELLINGS):
            idx = lower.find(wrong)
            if idx >= 0:
                out.append(_suggestion(f"mock-{stamp}-spell-{i}", "spelling", idx, wrong, [right], 0.98))

        if len(text) > 10 and not _END_PUNCT.search(text.strip()):
            out.append(_suggestion(f"mock-{stamp}-punct", "punctuation", len(text), "", ["."], 0.7))

        m = _PASSIVE.search(text)
        if m:
            out.append(
                _suggestion(
                    f"mock-{stamp}-style",
                    "style",
                    m.start(),
                    m.group(0),
                    ["Consider using active voice"],
                    0.6,
                )
            )
        return out


def _suggestion(
    sid: str, category: str, start: int, original: str, replacements: list[str], confidence: float
) -> dict[str, Any]:
    return {
        "id": sid,
        "category": category,
        "start": start,
        "end": start + len(original),
        "original": original,
        "replacements": replacements,
        "confidence": confidence,
    }
