"""Parse structured results out of free-text model output.

Models are asked to "return ONLY valid JSON" but routinely wrap it in prose or
markdown fences. All extraction lives here so callers only ever see a dict or
``MalformedModelOutput``.
"""

import json
import re

from arthastra.services.ai.errors import MalformedModelOutput

# Greedy: first "{" to last "}" so nested objects survive
_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


def _strip_fences(raw: str) -> str:
    raw = raw.strip()
    if raw.startswith("```"):
        raw = raw.split("\n", 1)[1] if "\n" in raw else raw[3:]
    if raw.endswith("```"):
        raw = raw[:-3]
    return raw.strip()


def parse_model_json(text: str) -> dict:
    """Extract and decode the JSON object embedded in ``text``."""
    if not text:
        raise MalformedModelOutput("Failed to parse JSON from response: empty output", text or "")

    match = _JSON_OBJECT.search(_strip_fences(text))
    if not match:
        raise MalformedModelOutput("Failed to parse JSON from response", text)
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        raise MalformedModelOutput(f"Failed to parse JSON from response: {exc}", text) from exc
    if not isinstance(data, dict):
        raise MalformedModelOutput("Failed to parse JSON from response: not an object", text)
    return data
