"""Best-effort parsing of structured data out of model text."""

import json
import logging
import re
from typing import Any, Literal

logger = logging.getLogger(__name__)

_FENCE = re.compile(r"```(?:json)?\s*\n?([\s\S]*?)\n?\s*```")
_SPANS = {
    "array": re.compile(r"\[[\s\S]*\]"),
    "object": re.compile(r"\{[\s\S]*\}"),
}
_TYPES = {"array": list, "object": dict}


def parse_structured_output(text: str, shape: Literal["array", "object"]) -> Any | None:
    """Parse the JSON array or object embedded in model output.

    A fenced code block wins when present; otherwise the widest
    bracket/brace span is tried. Returns None when nothing of the
    expected shape parses.
    """
    candidates: list[str] = []
    fence = _FENCE.search(text)
    if fence:
        candidates.append(fence.group(1).strip())
    span = _SPANS[shape].search(text)
    if span:
        candidates.append(span.group(0))

    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, _TYPES[shape]):
            return parsed

    logger.debug("No parseable JSON %s in model output", shape)
    return None
