"""Helpers for reading JSON out of LLM replies"""
import json
import re
from typing import Any


def strip_code_fence(response: str) -> str:
    """Return the body of a ```json ... ``` block, or the text unchanged"""
    cleaned = response.strip()
    if not cleaned.startswith("```"):
        return cleaned

    json_lines = []
    in_block = False
    for line in cleaned.split("\n"):
        if line.startswith("```") and not in_block:
            in_block = True
            continue
        elif line.startswith("```") and in_block:
            break
        elif in_block:
            json_lines.append(line)
    return "\n".join(json_lines)


def parse_llm_json(response: str) -> Any:
    """
    Parse JSON from an LLM reply, handling markdown code blocks and
    prose around the payload.

    Raises:
        json.JSONDecodeError: If no JSON object or array can be parsed
    """
    cleaned = strip_code_fence(response or "")
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        pass

    # Fall back to the outermost {...} or [...] span
    match = re.search(r'\{[\s\S]*\}|\[[\s\S]*\]', cleaned)
    if match:
        return json.loads(match.group(0))
    return json.loads(cleaned)
