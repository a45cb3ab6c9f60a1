"""Marker stripping.

A pattern marks the text to remove with its single capturing group, e.g.
`.*(\\|)$` matches a whole message ending in `|` and strips only that final
pipe. Everything outside the group is copied through verbatim, so earlier
pipes in the message survive:

    strip(r".*(\\|)$", "a|b|")  ->  ("a|b", True)
    strip(r".*(\\|)$", "a|b")   ->  ("a|b", False)

The default escape pattern `.*(\\\\\\|)$` puts both the backslash and the
pipe in its group, so an escaped `say hi\\|` comes out as `say hi`.
"""

from __future__ import annotations

import logging
import re

logger = logging.getLogger(__name__)


def compile_marker_pattern(pattern: str | re.Pattern) -> re.Pattern:
    """Compile `pattern` and check it has exactly one (marker) group."""
    compiled = re.compile(pattern)
    if compiled.groups != 1:
        raise ValueError(
            f"pattern {compiled.pattern!r} must have exactly one capturing group, "
            f"found {compiled.groups}"
        )
    return compiled


def strip(pattern: str | re.Pattern, text: str) -> tuple[str, bool]:
    """Remove the marker group of every match of `pattern` from `text`.

    Returns the remaining text and whether the pattern matched at all.
    """
    compiled = compile_marker_pattern(pattern)
    parts: list[str] = []
    cursor = 0
    matched = False

    for match in compiled.finditer(text):
        matched = True
        start, end = match.span(1)
        if start < 0:  # optional group did not take part in this match
            continue
        if start > cursor:
            parts.append(text[cursor:start])
        cursor = max(cursor, end)

    if cursor < len(text):
        parts.append(text[cursor:])

    result = "".join(parts)
    logger.debug("strip pattern=%r matched=%s in_len=%d out_len=%d",
                 compiled.pattern, matched, len(text), len(result))
    return result, matched
