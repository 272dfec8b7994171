"""
JSON extraction for completion responses.

Handles raw JSON, JSON inside markdown code blocks and JSON surrounded by
stray prose. Anything that does not decode to a JSON object is an
UpstreamError.
"""

import json
import re
from typing import Any, Dict

from nomad.shared.errors import UpstreamError


_CODE_BLOCK_PATTERN = re.compile(r"```(?:json)?\s*([\s\S]*?)```")


def extract_json_from_response(raw_response: str) -> str:
    """
    Extract JSON content from a completion response.

    Handles multiple formats:
    - Raw JSON
    - JSON in markdown code blocks (```json ... ```)
    - JSON with leading/trailing whitespace or prose

    Args:
        raw_response: Raw response string

    Returns:
        Cleaned JSON string ready for parsing
    """
    content = raw_response.strip()

    match = _CODE_BLOCK_PATTERN.search(content)
    if match:
        content = match.group(1).strip()

    start = content.find("{")
    if start == -1:
        return content

    # Brace matching that ignores braces inside string literals
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(content)):
        char = content[i]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return content[start : i + 1]

    return content[start:]


def parse_json_object(raw_response: str) -> Dict[str, Any]:
    """
    Parse a completion response into a JSON object.

    Raises:
        UpstreamError: If the content is not valid JSON or not an object
    """
    if not raw_response or not raw_response.strip():
        raise UpstreamError("Completion returned an empty response")

    json_str = extract_json_from_response(raw_response)

    try:
        data = json.loads(json_str)
    except json.JSONDecodeError as e:
        raise UpstreamError(f"Completion response is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise UpstreamError(
            f"Completion response must be a JSON object, got {type(data).__name__}"
        )

    return data
