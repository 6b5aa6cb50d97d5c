"""Blank line and trailing whitespace normalization."""

from __future__ import annotations

import logging

from .constants import BLOCK_COMMENT_CLOSE, CLOSING_BRACKETS, COMMENT_PREFIXES, NAME_SPLIT_PATTERN
from .lexer import literal_line_mask

logger = logging.getLogger(__name__)


def _leading_name(trimmed: str) -> str:
    return NAME_SPLIT_PATTERN.split(trimmed, maxsplit=1)[0]


def _is_comment(trimmed: str) -> bool:
    # the closing line of a multi-line {- -} comment counts as a comment too
    return trimmed.startswith(COMMENT_PREFIXES) or trimmed.endswith(BLOCK_COMMENT_CLOSE)


def _needs_separator(line: str, previous: str | None) -> bool:
    """Decide whether a blank line goes between `previous` and `line`."""
    if previous is None or line[0].isspace():
        return False

    previous_trimmed = previous.strip()
    if not previous_trimmed or _is_comment(previous_trimmed):
        return False

    trimmed = line.strip()
    if trimmed[0] in CLOSING_BRACKETS:
        return False

    # a signature and its definition, or clauses of one function, stay together
    return _leading_name(previous_trimmed) != _leading_name(trimmed)


def normalize_blank_lines(text: str) -> str:
    """Collapse runs of blank lines and separate top-level definitions.

    Consecutive blank lines become one. A blank line is inserted before a
    line at column 0 when the previous line is code that belongs to a
    different definition, judged by the leading name of both lines. Lines
    after a comment, lines starting with a closing bracket and lines inside
    multi-line literals never get one.

    Args:
        text: Source text.

    Returns:
        str: Text with blank lines normalized.

    Examples:
        normalize_blank_lines("foo = 1\\n\\n\\n\\nbar = 2")  # "foo = 1\\n\\nbar = 2"
        normalize_blank_lines("foo : Nat\\nfoo = 1")  # unchanged
    """
    lines = text.split("\n")
    literal_mask = literal_line_mask(lines)
    result: list[str] = []
    previous_blank = False

    for index, (line, is_literal) in enumerate(zip(lines, literal_mask)):
        if is_literal:
            result.append(line)
            previous_blank = False
            continue

        is_blank = not line.strip()
        if is_blank and previous_blank:
            continue

        if not is_blank and _needs_separator(line, result[-1] if result else None):
            logger.debug("Inserting blank line before line %d", index + 1)
            result.append("")

        result.append(line)
        previous_blank = is_blank

    return "\n".join(result)


def normalize_line_endings(text: str) -> str:
    """Strip trailing whitespace and end the text with exactly one newline.

    Examples:
        normalize_line_endings("foo = bar   \\n\\n\\n")  # "foo = bar\\n"
    """
    stripped = "\n".join(line.rstrip() for line in text.split("\n"))
    return stripped.rstrip() + "\n"
