"""Best-effort JSON extraction from free-form model output."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from constellation.exceptions import JSONParseError

log = logging.getLogger(__name__)

# Greedy: first "{" through last "}"; tolerates code fences and commentary.
_BRACE_SPAN = re.compile(r"\{[\s\S]*\}")


def _reject_constant(name: str) -> Any:
    # NaN, Infinity and -Infinity are not JSON.
    raise ValueError(f"Non-standard JSON constant: {name}")


def load_json_payload(text: str) -> Any:
    """Parse the brace-delimited span of ``text``, or the whole text if none.

    Raises:
        JSONParseError: when neither candidate decodes as strict JSON,
            including input nested too deeply to decode.
    """
    match = _BRACE_SPAN.search(text)
    candidate = match.group(0) if match else text
    try:
        return json.loads(candidate, parse_constant=_reject_constant)
    except (ValueError, RecursionError) as e:
        log.warning("Model response was not valid JSON", extra={"response_length": len(text)})
        log.debug("Rejected model response preview", extra={"response_preview": text[:200]})
        raise JSONParseError(f"Invalid JSON in model response: {e}", raw_response=text) from e
