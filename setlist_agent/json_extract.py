"""Parse model output text into JSON, tolerating surrounding prose or code fences."""

import json
from typing import Any

from .errors import MalformedModelOutput


def extract_json(text: str) -> Any:
    """
    Parse ``text`` as JSON.

    Falls back to the slice between the first ``{`` and the last ``}``
    (inclusive) when the whole text does not parse. No further repair is
    attempted.

    Raises:
        MalformedModelOutput: neither the full text nor the slice parses.
    """
    text = text or ""
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        raise MalformedModelOutput("Model did not return valid JSON.")

    try:
        return json.loads(text[start:end + 1])
    except json.JSONDecodeError as e:
        raise MalformedModelOutput(f"Model did not return valid JSON: {e}") from e
