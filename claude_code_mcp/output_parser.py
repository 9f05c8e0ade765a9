"""Parse `claude -p --output-format json` output.

The CLI prints a single JSON record such as:

    {"type": "result", "session_id": "...", "result": "...",
     "is_error": false, "duration_ms": 1234, "total_cost_usd": 0.01}

The format belongs to an independently versioned executable, so
anything unexpected degrades to the raw stdout as result text with a
logged warning. Session continuity is lost for that response only.
"""
from __future__ import annotations

import json
import logging

from .models import NormalizedResult

logger = logging.getLogger(__name__)

RAW_PREVIEW_CHARS = 200

_KNOWN_KEYS = ("result", "session_id", "is_error")


def parse_claude_output(stdout: str) -> NormalizedResult:
    """Extract result text, session id and error flag. Never raises."""
    try:
        parsed = json.loads(stdout)
    except (json.JSONDecodeError, TypeError) as exc:
        logger.warning(
            "Failed to parse Claude CLI JSON output. Session continuity "
            "will not work for this response. This may indicate the CLI "
            "does not support --output-format json. Parse error: %s. "
            "Raw output (first %d chars): %s",
            exc, RAW_PREVIEW_CHARS, stdout[:RAW_PREVIEW_CHARS],
        )
        return NormalizedResult(result_text=stdout)

    if not isinstance(parsed, dict):
        logger.warning(
            "Claude CLI JSON output is a %s, not an object. "
            "Falling back to raw output.",
            type(parsed).__name__,
        )
        return NormalizedResult(result_text=stdout)

    result = parsed.get("result")
    if not isinstance(result, str):
        logger.warning(
            "Claude CLI JSON output missing 'result' field. Keys found: %s. "
            "Falling back to raw output.",
            ", ".join(parsed.keys()),
        )
        return NormalizedResult(result_text=stdout)

    session_id = parsed.get("session_id")
    is_error = parsed.get("is_error")
    return NormalizedResult(
        result_text=result,
        session_id=session_id if isinstance(session_id, str) else None,
        is_error=is_error if isinstance(is_error, bool) else None,
        metadata={k: v for k, v in parsed.items() if k not in _KNOWN_KEYS},
    )
