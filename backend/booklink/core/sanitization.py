"""Sanitization of free-text request input.

Booking names, booking details and tracked event fields are echoed back
to frontends, so markup is neutralized before storage:

- <script>...</script> blocks are removed outright
- remaining < and > are HTML-escaped
- null bytes are dropped (PostgreSQL rejects them in text columns)
- surrounding whitespace is stripped
"""

import re
from typing import Any

_SCRIPT_BLOCK_PATTERN = re.compile(
    r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>",
    re.IGNORECASE,
)

_ANGLE_ESCAPES = str.maketrans({"<": "&lt;", ">": "&gt;", "\x00": None})

_MAX_NESTING_DEPTH = 32
"""Documents nested deeper than this are rejected rather than sanitized."""


def sanitize_text(value: str) -> str:
    """Neutralize markup in a single string."""
    without_scripts = _SCRIPT_BLOCK_PATTERN.sub("", value)
    return without_scripts.translate(_ANGLE_ESCAPES).strip()


def sanitize_value(value: Any, _depth: int = 0) -> Any:
    """Recursively sanitize every string in a JSON-like structure.

    Dict keys are sanitized as well as values. Non-string scalars are
    returned unchanged.

    Raises:
        ValueError: If containers nest deeper than _MAX_NESTING_DEPTH, or
            two distinct keys of one object sanitize to the same key.
    """
    if _depth > _MAX_NESTING_DEPTH:
        msg = f"nesting deeper than {_MAX_NESTING_DEPTH} levels is not allowed"
        raise ValueError(msg)
    if isinstance(value, str):
        return sanitize_text(value)
    if isinstance(value, dict):
        sanitized: dict[Any, Any] = {}
        for k, v in value.items():
            key = sanitize_text(k) if isinstance(k, str) else k
            if key in sanitized:
                msg = f"duplicate key after sanitization: {key!r}"
                raise ValueError(msg)
            sanitized[key] = sanitize_value(v, _depth + 1)
        return sanitized
    if isinstance(value, list):
        return [sanitize_value(item, _depth + 1) for item in value]
    return value
