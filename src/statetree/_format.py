"""Helpers for compact, safe debug logging of payloads and state.

State trees can be large and may carry secrets (tokens, passwords). This
module renders a bounded, redacted copy of a value before it is handed to
a logger.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

_SENSITIVE_VALUE_KEYS: frozenset[str] = frozenset(
    {
        "password",
        "passwd",
        "secret",
        "token",
        "accesstoken",
        "refreshtoken",
        "apikey",
        "authorization",
        "cookie",
    }
)


def summarize_for_log(
    value: Any,
    *,
    max_string: int = 120,
    max_items: int = 20,
    max_depth: int = 6,
    redact: bool = True,
    _depth: int = 0,
) -> Any:
    """Return a truncated, redacted copy of *value* suitable for log lines."""
    if _depth > max_depth:
        return "<max-depth>"

    if value is None:
        return None

    if isinstance(value, str):
        if len(value) > max_string:
            return f"{value[:max_string]}…<truncated>"
        return value

    if isinstance(value, (int, float, bool)):
        return value

    if isinstance(value, bytes):
        return f"<bytes:{len(value)}b>"

    kwargs: dict[str, Any] = {
        "max_string": max_string,
        "max_items": max_items,
        "max_depth": max_depth,
        "redact": redact,
        "_depth": _depth + 1,
    }

    if isinstance(value, Mapping):
        summarized: dict[str, Any] = {}
        for index, (k, v) in enumerate(dict.items(value) if isinstance(value, dict) else value.items()):
            if index >= max_items:
                summarized["…"] = f"<{len(value) - max_items} more>"
                break
            key = str(k)
            if redact and key.replace("_", "").lower() in _SENSITIVE_VALUE_KEYS:
                summarized[key] = "<redacted>"
            else:
                summarized[key] = summarize_for_log(v, **kwargs)
        return summarized

    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        items = list(list.__iter__(value)) if isinstance(value, list) else list(value)
        rendered = [summarize_for_log(v, **kwargs) for v in items[:max_items]]
        if len(items) > max_items:
            rendered.append(f"<{len(items) - max_items} more>")
        return rendered

    # Fallback: represent unknown objects without dumping internals.
    return repr(value)
