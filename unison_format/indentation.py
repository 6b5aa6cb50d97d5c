"""Dedenting, indentation levels and sibling binding alignment."""

from __future__ import annotations

import logging

from .constants import (
    BINDING_PATTERN,
    BLOCK_KEYWORD_PATTERN,
    BLOCK_OPENER_SUFFIXES,
    COMMENT_PREFIXES,
    ENDS_WITH_DO_PATTERN,
    LINE_COMMENT,
    PIPE_START_PATTERN,
    TOP_LEVEL_HEAD_PATTERNS,
)
from .lexer import leading_whitespace, leading_whitespace_columns, literal_line_mask, render_indent
from .models import BlockState, LineInfo

logger = logging.getLogger(__name__)


def _first_content_line(lines: list[str]) -> str:
    for line in lines:
        trimmed = line.strip()
        if trimmed and not trimmed.startswith(COMMENT_PREFIXES):
            return trimmed
    return ""


def dedent(text: str) -> str:
    """Remove indentation shared by every line of pasted code.

    Only applies when the first line of code (ignoring blank and comment
    lines) looks like a top-level declaration: a type signature, a definition,
    a type or ability declaration, or a use statement. Anything else may be a
    fragment copied from inside a block and is returned unchanged. Lines that
    start with a pipe operator do not count toward the shared width, and lose
    at most their own indentation. Lines inside multi-line strings and block
    comments are left as they are.

    Args:
        text: Source text.

    Returns:
        str: Text with the common leading whitespace removed from non-blank
            lines, or the input when there is nothing to remove.

    Examples:
        dedent("    foo = 1\\n    bar = 2\\n")  # "foo = 1\\nbar = 2\\n"
        dedent("    x + 1\\n")  # unchanged
    """
    lines = text.split("\n")

    first = _first_content_line(lines)
    if not any(pattern.match(first) for pattern in TOP_LEVEL_HEAD_PATTERNS):
        return text

    literal_mask = literal_line_mask(lines)
    # continuation lines starting with a pipe are placed by the pipe breaker
    common = min(
        (
            len(leading_whitespace(line))
            for line, is_literal in zip(lines, literal_mask)
            if line.strip() and not is_literal and PIPE_START_PATTERN.match(line.strip()) is None
        ),
        default=0,
    )
    if common == 0:
        return text

    logger.debug("Removing %d columns of common indentation", common)
    return "\n".join(
        line if is_literal else _remove_indent(line, common)
        for line, is_literal in zip(lines, literal_mask)
    )


def _remove_indent(line: str, width: int) -> str:
    if not line.strip():
        return line
    return line[min(width, len(leading_whitespace(line))) :]


def assign_indentation(info: LineInfo, original_level: int, state: BlockState) -> int:
    """Compute the indentation level of a line.

    Signatures, watch and test expressions, and type or ability declarations
    move to level 0 unless an earlier line opened a multi-line block. Every
    other line keeps its original level.

    Args:
        info: Classification of the line.
        original_level: Existing indentation in whole indent units.
        state: Block state before the line.

    Returns:
        int: Target indentation level.
    """
    if info.forces_top_level and not state.in_multiline_block:
        return 0
    if (info.is_definition or info.is_use) and original_level == 0:
        return 0
    return original_level


def update_block_state(state: BlockState, trimmed: str, info: LineInfo, original_level: int) -> None:
    """Advance the block state past a line of code."""
    if trimmed.endswith(BLOCK_OPENER_SUFFIXES) or info.opens_block_keyword:
        state.in_multiline_block = True

    if info.is_cases:
        state.in_cases_block = True
    elif state.in_cases_block and info.is_definition and original_level == 0:
        state.in_cases_block = False


def _opens_block(trimmed: str) -> bool:
    return (
        trimmed.endswith("=")
        or ENDS_WITH_DO_PATTERN.search(trimmed) is not None
        or " where" in trimmed
        or BLOCK_KEYWORD_PATTERN.match(trimmed) is not None
    )


def _previous_binding_column(
    lines: list[str], literal_mask: list[bool], index: int, indent_size: int
) -> int | None:
    """Find the column of the nearest binding above `index` in the same block."""
    for position in range(index - 1, -1, -1):
        line = lines[position]
        trimmed = line.strip()
        if literal_mask[position] or not trimmed or trimmed.startswith(LINE_COMMENT):
            continue
        # `foo = bar do` is both a binding and a block opener; the opener wins
        if _opens_block(trimmed):
            return None
        if BINDING_PATTERN.match(line):
            return leading_whitespace_columns(line, indent_size)
    return None


def normalize_siblings(text: str, indent_size: int, use_spaces: bool = True) -> str:
    """Align bindings that drifted deeper than their siblings.

    Walks the lines keeping a map from scope (a column rounded down to the
    indent size) to the column established for bindings in that scope. The
    map is cleared by every line that opens a block. A binding at column 0 is
    never moved. Any other binding moves left to the established column of
    its scope, or, when none is recorded, to the column of the nearest
    preceding binding in the same block if that one is shallower.

    Args:
        text: Source text after indentation has been assigned.
        indent_size: Width of one indentation level.
        use_spaces: Whether rewritten indentation uses spaces or tabs.

    Returns:
        str: Text with sibling bindings aligned.

    Examples:
        normalize_siblings("foo =\\n  a = 1\\n      b = 2\\n", 2)
        # "foo =\\n  a = 1\\n  b = 2\\n"
    """
    lines = text.split("\n")
    literal_mask = literal_line_mask(lines)
    result: list[str] = []
    scope_indents: dict[int, int] = {}

    for index, line in enumerate(lines):
        trimmed = line.strip()

        if literal_mask[index] or not trimmed or trimmed.startswith(LINE_COMMENT):
            result.append(line)
            continue

        opens_block = _opens_block(trimmed)
        if opens_block:
            scope_indents.clear()

        if BINDING_PATTERN.match(line) is None:
            result.append(line)
            continue

        current = leading_whitespace_columns(line, indent_size)
        if current == 0:
            result.append(line)
            scope_indents.clear()
            continue

        scope = current // indent_size * indent_size
        expected = scope_indents.get(scope)
        if expected is None:
            previous = _previous_binding_column(result, literal_mask, index, indent_size)
            expected = previous if previous is not None and previous < current else current

        if expected < current:
            logger.debug(
                "Moving binding on line %d from column %d to %d", index + 1, current, expected
            )
            line = render_indent(expected, indent_size, use_spaces) + trimmed
        else:
            expected = current

        result.append(line)
        # a binding that opens a block starts a new sibling set instead of joining this one
        if not opens_block:
            scope_indents[expected // indent_size * indent_size] = expected

    return "\n".join(result)
