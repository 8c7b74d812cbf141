"""
Robust JSON extraction from model replies.

Handles the usual chat-model output shapes:
- Clean JSON
- JSON in ```json blocks (or bare ``` blocks)
- JSON surrounded by prose
"""

import json
import re
from typing import Any

from jobmatch.models import JOB_TYPES, Profile

_FENCED = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)

_JOB_TYPE_ALIASES = {
    "fulltime": "full-time",
    "full time": "full-time",
    "parttime": "part-time",
    "part time": "part-time",
    "contractor": "contract",
    "freelance": "contract",
    "remote-first": "remote",
}


def extract_json(text: str) -> dict | list | None:
    """
    Extract the first JSON value from a model reply.

    Returns:
        Parsed JSON (dict or list) or None if nothing parses
    """
    if not text or not text.strip():
        return None

    candidates = [text.strip()]
    candidates.extend(m.strip() for m in _FENCED.findall(text))
    for opener, closer in (("{", "}"), ("[", "]")):
        start = text.find(opener)
        if start != -1:
            block = _extract_balanced(text, start, opener, closer)
            if block:
                candidates.append(block)

    for candidate in candidates:
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            continue
    return None


def _extract_balanced(text: str, start: int, open_char: str, close_char: str) -> str | None:
    """Return the balanced bracket block starting at `start`, ignoring brackets in strings."""
    depth = 0
    in_string = False
    escaped = False

    for i in range(start, len(text)):
        char = text[i]
        if escaped:
            escaped = False
            continue
        if char == "\\" and in_string:
            escaped = True
            continue
        if char == '"':
            in_string = not in_string
            continue
        if in_string:
            continue
        if char == open_char:
            depth += 1
        elif char == close_char:
            depth -= 1
            if depth == 0:
                return text[start : i + 1]
    return None


def _string_list(value: Any) -> list[str]:
    if isinstance(value, str):
        value = re.split(r"[,;]", value)
    if not isinstance(value, list):
        return []
    out: list[str] = []
    for item in value:
        if isinstance(item, str) and item.strip():
            out.append(item.strip())
    return out


def _job_types(value: Any) -> list[str]:
    out: list[str] = []
    for raw in _string_list(value):
        key = raw.lower()
        key = _JOB_TYPE_ALIASES.get(key, key)
        if key in JOB_TYPES and key not in out:
            out.append(key)
    return out


def _years(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if value >= 0 else None
    if isinstance(value, str):
        match = re.search(r"\d+(?:\.\d+)?", value)
        if match:
            return float(match.group())
    return None


def _optional_text(value: Any) -> str | None:
    if isinstance(value, str) and value.strip() and value.strip().lower() != "null":
        return value.strip()
    return None


def normalize_profile(data: dict) -> Profile:
    """
    Coerce a loosely-shaped extraction into a Profile.

    Accepts camelCase or snake_case keys. Missing or malformed fields become
    empty values; a resume without titles is valid.
    """
    return Profile(
        job_titles=_string_list(data.get("jobTitles") or data.get("job_titles") or data.get("titles")),
        skills=_string_list(data.get("skills")),
        industries=_string_list(data.get("industries")),
        years_experience=_years(
            data.get("yearsExperience") if "yearsExperience" in data else data.get("years_experience")
        ),
        location=_optional_text(data.get("location")),
        education=_optional_text(data.get("education")),
        job_types=_job_types(data.get("jobTypes") or data.get("job_types")),
    )


def parse_profile_response(text: str) -> Profile | None:
    """Parse a profile from a model reply. None if the reply holds no JSON object."""
    result = extract_json(text)
    if isinstance(result, dict):
        return normalize_profile(result)
    return None
