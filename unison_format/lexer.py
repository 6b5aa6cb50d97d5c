"""String and comment aware scanning of Unison source lines."""

from __future__ import annotations

import re
import sys

from .constants import (
    BLOCK_COMMENT_CLOSE,
    BLOCK_COMMENT_OPEN,
    LINE_COMMENT,
    TRIPLE_QUOTE,
)
from .models import LiteralTable, ScanState, Segment

# Placeholder markers are taken from the private use area onwards.
_MARKER_START = 0xE000

_CLOSERS = {
    ScanState.IN_SINGLE_QUOTE: "'",
    ScanState.IN_DOUBLE_QUOTE: '"',
    ScanState.IN_MULTILINE_STRING: TRIPLE_QUOTE,
    ScanState.IN_BLOCK_COMMENT: BLOCK_COMMENT_CLOSE,
}

# States that survive the end of a physical line.
_CARRIED_STATES = (ScanState.IN_MULTILINE_STRING, ScanState.IN_BLOCK_COMMENT)


def is_escaped(text: str, pos: int) -> bool:
    """Determine whether a character is escaped by preceding backslashes.

    Counts consecutive backslashes immediately before `pos`; an odd count marks
    the character as escaped.

    Args:
        text: Text containing the character.
        pos: Zero-based index of the character to inspect.

    Returns:
        bool: True when the character is escaped, otherwise False.

    Examples:
        is_escaped('"a\\\\"', 4)  # False, two backslashes
        is_escaped('"a\\"', 3)  # True, one backslash
    """
    if pos == 0:
        return False

    backslash_count = 0
    i = pos - 1
    while i >= 0 and text[i] == "\\":
        backslash_count += 1
        i -= 1

    return backslash_count % 2 == 1


def _match_opener(line: str, pos: int) -> tuple[ScanState, int] | None:
    """Return the literal state opened at `pos` and the opener width, if any."""
    if line.startswith(TRIPLE_QUOTE, pos):
        return ScanState.IN_MULTILINE_STRING, len(TRIPLE_QUOTE)

    char = line[pos]
    previous = line[pos - 1] if pos > 0 else ""

    if char in "\"'":
        # ?" and ?' are character literals, not string openers
        if previous == "?":
            return None
        # x' is a primed identifier
        if char == "'" and (previous.isalnum() or previous == "_"):
            return None
        state = ScanState.IN_DOUBLE_QUOTE if char == '"' else ScanState.IN_SINGLE_QUOTE
        return state, 1

    if line.startswith(BLOCK_COMMENT_OPEN, pos):
        return ScanState.IN_BLOCK_COMMENT, len(BLOCK_COMMENT_OPEN)

    if line.startswith(LINE_COMMENT, pos) and (pos == 0 or previous.isspace()):
        return ScanState.IN_LINE_COMMENT, len(LINE_COMMENT)

    return None


def _append(segments: list[Segment], text: str, is_literal: bool) -> None:
    if text:
        segments.append(Segment(text, is_literal))


def scan_line(line: str, state: ScanState = ScanState.CODE) -> tuple[list[Segment], ScanState]:
    """Split a line into alternating code and literal segments.

    The scanner is a small state machine. Quoted literals honor backslash
    escapes; an unterminated ``'`` or ``"`` literal swallows the rest of the
    line so that nothing after the opening quote is reformatted. Triple-quoted
    strings and ``{- -}`` comments may continue on the following lines, which
    is reported through the returned state.

    Args:
        line: Physical line without its newline.
        state: State carried over from the previous line.

    Returns:
        tuple[list[Segment], ScanState]: Segments covering the whole line, in
            order, and the state the next line starts in.

    Examples:
        scan_line('x = "a+b" ++ y')
        scan_line('end of doc\"\"\"', ScanState.IN_MULTILINE_STRING)
    """
    segments: list[Segment] = []
    start = 0
    i = 0
    length = len(line)

    while i < length:
        if state is ScanState.CODE:
            opener = _match_opener(line, i)
            if opener is None:
                i += 1
                continue
            _append(segments, line[start:i], False)
            start = i
            state, width = opener
            i = length if state is ScanState.IN_LINE_COMMENT else i + width
            continue

        closer = _CLOSERS.get(state)
        if closer is not None and line.startswith(closer, i):
            quoted = state in (ScanState.IN_SINGLE_QUOTE, ScanState.IN_DOUBLE_QUOTE)
            if not (quoted and is_escaped(line, i)):
                i += len(closer)
                _append(segments, line[start:i], True)
                start = i
                state = ScanState.CODE
                continue
        i += 1

    _append(segments, line[start:], state is not ScanState.CODE)

    if state not in _CARRIED_STATES:
        state = ScanState.CODE
    return segments, state


def _pick_marker(text: str) -> str:
    """Return the first private-use character that does not occur in `text`."""
    for code_point in range(_MARKER_START, sys.maxunicode + 1):
        marker = chr(code_point)
        if marker not in text:
            return marker
    raise ValueError("No placeholder marker is free for this line")


def mask_literals(segments: list[Segment]) -> tuple[str, LiteralTable]:
    """Join segments, replacing every literal with a placeholder token.

    Spacing rules run on the masked text, so they see a literal as a single
    opaque word and can never touch its contents. A placeholder is the
    literal's index between two marker characters; the marker is picked per
    line among characters the line does not contain, so source text can never
    be mistaken for a placeholder.

    Args:
        segments: Segments produced by `scan_line`.

    Returns:
        tuple[str, LiteralTable]: Masked text and the table needed to restore it.
    """
    marker = _pick_marker("".join(segment.text for segment in segments))
    table = LiteralTable(marker)
    parts: list[str] = []
    for segment in segments:
        if segment.is_literal:
            parts.append(f"{marker}{len(table.texts)}{marker}")
            table.texts.append(segment.text)
        else:
            parts.append(segment.text)
    return "".join(parts), table


def restore_literals(masked: str, literals: LiteralTable) -> str:
    """Reverse `mask_literals`."""
    marker = re.escape(literals.marker)
    pattern = re.compile(f"{marker}([0-9]+){marker}")
    return pattern.sub(lambda match: literals.texts[int(match.group(1))], masked)


def code_text(line: str, state: ScanState = ScanState.CODE) -> str:
    """Return the line with literals masked, for pattern checks on code only."""
    segments, _ = scan_line(line, state)
    masked, _ = mask_literals(segments)
    return masked


def literal_line_mask(lines: list[str]) -> list[bool]:
    """Flag lines that begin inside a multi-line string or block comment.

    Such lines are literal content from their first character, including
    their indentation, and every stage copies them verbatim.

    Args:
        lines: Physical lines of a source text.

    Returns:
        list[bool]: One flag per line.
    """
    state = ScanState.CODE
    mask: list[bool] = []
    for line in lines:
        mask.append(state in _CARRIED_STATES)
        _, state = scan_line(line, state)
    return mask


def leading_whitespace(line: str) -> str:
    return line[: len(line) - len(line.lstrip())]


def leading_whitespace_columns(line: str, tab_size: int) -> int:
    """Compute the column width of leading whitespace.

    Tabs advance to the next multiple of `tab_size` columns.

    Args:
        line: Line whose leading whitespace should be measured.
        tab_size: Width of a tab stop.

    Returns:
        int: Number of columns occupied by the leading whitespace.

    Examples:
        leading_whitespace_columns("    foo", 2)  # 4
        leading_whitespace_columns("\\tfoo", 2)  # 2
    """
    columns = 0
    for character in line:
        if character == " ":
            columns += 1
            continue
        if character == "\t":
            columns += tab_size - (columns % tab_size)
            continue
        break
    return columns


def render_indent(columns: int, indent_size: int, use_spaces: bool) -> str:
    """Build the whitespace prefix for `columns` columns of indentation."""
    if use_spaces:
        return " " * columns
    tabs, remainder = divmod(columns, indent_size)
    return "\t" * tabs + " " * remainder
