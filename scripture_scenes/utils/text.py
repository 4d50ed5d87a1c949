"""Helpers for pulling structured data out of model responses."""

import json
import re


def parse_json_object(text: str) -> dict:
    """Extract a JSON object from an LLM response.

    The model sometimes wraps the object in markdown fences or adds prose
    around it. Raises ValueError when no object can be decoded.
    """
    if not text:
        raise ValueError("Empty response")

    # Markdown code fence
    m = re.search(r'```(?:json)?\s*\n(.*?)\n```', text, re.DOTALL)
    if m:
        try:
            data = json.loads(m.group(1))
            if isinstance(data, dict):
                return data
        except json.JSONDecodeError:
            pass

    cleaned = text.strip()
    if cleaned.startswith('{'):
        try:
            data = json.loads(cleaned)
            if isinstance(data, dict):
                return data
        except json.JSONDecodeError:
            pass

    # Outermost braces
    start = cleaned.find('{')
    end = cleaned.rfind('}')
    if start != -1 and end > start:
        try:
            data = json.loads(cleaned[start:end + 1])
            if isinstance(data, dict):
                return data
        except json.JSONDecodeError:
            pass

    raise ValueError(f"Could not parse JSON object from response: {text[:200]}...")


def image_slug(text: str) -> str:
    """Lowercase ``text`` and replace colons and spaces with underscores."""
    return re.sub(r"[: ]", "_", text).lower()
