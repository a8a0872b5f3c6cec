"""Request parsing + analysis response schema.

Suggestion shape:
  {"id": str, "category": "grammar", "start": 0, "end": 8,
   "original": "has went", "replacements": ["has gone"], "confidence": 0.95}
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

CATEGORIES = ("grammar", "spelling", "punctuation", "style")

SUGGESTION_FIELDS = ("id", "category", "start", "end", "original", "replacements", "confidence")


class ProtocolError(Exception):
    pass


def is_valid_suggestion(obj: Any) -> bool:
    if not isinstance(obj, dict):
        return False
    for f in SUGGESTION_FIELDS:
        if f not in obj:
            return False
    if obj["category"] not in CATEGORIES:
        return False
    if not isinstance(obj["replacements"], list):
        return False
    c = obj["confidence"]
    if isinstance(c, bool) or not isinstance(c, (int, float)):
        return False
    return 0 <= c <= 1


def is_valid_analysis_response(obj: Any) -> bool:
    if not isinstance(obj, dict):
        return False
    suggestions = obj.get("suggestions")
    if not isinstance(suggestions, list):
        return False
    return all(is_valid_suggestion(s) for s in suggestions)


def ok(result: dict[str, Any], **extra: Any) -> dict[str, Any]:
    return {"success": True, "result": result, **extra}


def fail(message: str) -> dict[str, Any]:
    return {"success": False, "error": message}


@dataclass
class AnalyzeRequest:
    text: str
    client_id: str

    @classmethod
    def parse(cls, data: Any, *, max_length: int, header_client_id: str | None = None) -> "AnalyzeRequest":
        if not isinstance(data, dict):
            raise ProtocolError("body must be object")
        text = data.get("text")
        if not isinstance(text, str) or not text.strip():
            raise ProtocolError("text required")
        if len(text) > max_length:
            raise ProtocolError(f"text exceeds {max_length} characters")
        try:
            text.encode("utf-8")
        except UnicodeEncodeError:
            raise ProtocolError("text is not valid unicode")

        client_id = data.get("clientId", data.get("tabId"))
        if client_id is None:
            client_id = header_client_id
        if isinstance(client_id, bool) or not isinstance(client_id, (str, int)):
            raise ProtocolError("clientId required")
        # Body ints and header strings name the same client.
        client_id = str(client_id).strip()
        if not client_id:
            raise ProtocolError("clientId required")
        return cls(text=text, client_id=client_id)
