"""
Response helpers — unwrap JSON from LLM completion text.
"""

from __future__ import annotations

import json
import re
from typing import Any

_JSON_FENCE_RE = re.compile(r"```(?:json)?\s*\n?(.*?)```", re.DOTALL)


def extract_json(text: str) -> str:
    """Strip markdown code fences around a JSON payload."""
    clean = text.strip()

    match = _JSON_FENCE_RE.search(clean)
    if match:
        return match.group(1).strip()

    # Unterminated fences
    if clean.startswith("```json"):
        clean = clean[7:]
    elif clean.startswith("```"):
        clean = clean[3:]
    if clean.endswith("```"):
        clean = clean[:-3]
    return clean.strip()


def parse_json_response(text: str) -> Any:
    """Extract and decode JSON. Raises json.JSONDecodeError."""
    return json.loads(extract_json(text))
