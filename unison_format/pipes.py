"""Breaking long pipe chains onto separate lines."""

from __future__ import annotations

import logging
import re

from .constants import LINE_COMMENT, PIPE_PATTERN, PIPE_START_PATTERN
from .lexer import leading_whitespace, literal_line_mask, mask_literals, restore_literals, scan_line
from .models import LiteralTable, PipeSegment

logger = logging.getLogger(__name__)

# Capturing version of PIPE_PATTERN so that re.split keeps the operators.
_PIPE_SPLIT_PATTERN = re.compile(f"({PIPE_PATTERN.pattern})")
_DEFINITION_EQUALS = " = "


def count_pipes(line: str) -> int:
    """Count ``|>`` and ``<|>`` operators in the code portions of a line.

    Examples:
        count_pipes("xs |> map f |> sum")  # 2
        count_pipes('log "a |> b"')  # 0
    """
    segments, _ = scan_line(line)
    masked, _ = mask_literals(segments)
    return len(PIPE_PATTERN.findall(masked))


def _split_masked(masked: str, literals: LiteralTable) -> list[PipeSegment]:
    parts = _PIPE_SPLIT_PATTERN.split(masked)
    stages: list[PipeSegment] = []
    operator: str | None = None

    # parts alternates expression, operator, expression, ...
    for index, part in enumerate(parts):
        if index % 2:
            operator = part
            continue
        text = restore_literals(part, literals).strip()
        if text:
            stages.append(PipeSegment(text, operator))

    return stages


def split_pipes(expression: str) -> list[PipeSegment]:
    """Split an expression at its top-level pipe operators.

    Operators inside strings and comments are not split points. Empty stages
    are dropped, and each kept stage remembers the operator that preceded it.

    Args:
        expression: Expression text, usually one line of code.

    Returns:
        list[PipeSegment]: The stages in order.

    Examples:
        split_pipes("xs |> map f <|> ys")
        # [PipeSegment("xs"), PipeSegment("map f", "|>"), PipeSegment("ys", "<|>")]
    """
    segments, _ = scan_line(expression)
    masked, literals = mask_literals(segments)
    return _split_masked(masked, literals)


def _break_line(trimmed: str, indent: str, indent_unit: str) -> tuple[list[str], str] | None:
    """Break a line holding several pipes into one line per stage.

    Returns the new lines and the indentation that continuation lines of the
    chain are based on, or None when the line has fewer than two stages.
    """
    segments, _ = scan_line(trimmed)
    masked, literals = mask_literals(segments)

    first_pipe = PIPE_PATTERN.search(masked)
    if first_pipe is None:
        return None
    equals = masked.find(_DEFINITION_EQUALS, 0, first_pipe.start())

    if equals == -1:
        stages = _split_masked(masked, literals)
        if len(stages) < 2:
            return None
        broken = [indent + stages[0].render()]
        broken.extend(indent + indent_unit + stage.render() for stage in stages[1:])
        return broken, indent

    head = restore_literals(masked[: equals + 2], literals).strip()
    stages = _split_masked(masked[equals + len(_DEFINITION_EQUALS) :], literals)
    if len(stages) < 2:
        return None

    body = indent + indent_unit
    broken = [indent + head, body + stages[0].render()]
    broken.extend(body + indent_unit + stage.render() for stage in stages[1:])
    return broken, body


def break_pipes(text: str, indent_unit: str) -> str:
    """Put each stage of a multi-pipe expression on its own line.

    A line with two or more pipes is broken up. For a definition, the head
    (everything up to and including ``=``) stays on the first line, the first
    stage goes one level deeper, and every further stage one level deeper
    still. Lines that already start with ``|>``, ``<|>`` or ``<|`` continue the
    current chain one level past its base, which is taken from the previous
    non-blank line when no chain is active. Blank lines, comments and lines
    inside multi-line literals end a chain.

    Args:
        text: Source text.
        indent_unit: Whitespace for one indentation level.

    Returns:
        str: Text with pipe chains broken and continuation lines realigned.

    Examples:
        break_pipes("result = foo |> bar |> baz", "  ")
        # "result =\\n  foo\\n    |> bar\\n    |> baz"
    """
    lines = text.split("\n")
    literal_mask = literal_line_mask(lines)
    result: list[str] = []
    in_chain = False
    base = ""

    for line, is_literal in zip(lines, literal_mask):
        trimmed = line.strip()

        if is_literal or not trimmed or trimmed.startswith(LINE_COMMENT):
            result.append(line)
            in_chain = False
            continue

        continuation = PIPE_START_PATTERN.match(trimmed)
        if continuation is not None:
            if not in_chain:
                previous = next((emitted for emitted in reversed(result) if emitted.strip()), None)
                if previous is not None:
                    base = leading_whitespace(previous)
                    in_chain = True
            operator, rest = continuation.groups()
            result.append(f"{base}{indent_unit}{operator} {rest.strip()}".rstrip())
            continue

        indent = leading_whitespace(line)
        pipe_count = count_pipes(trimmed)

        if pipe_count >= 2:
            broken = _break_line(trimmed, indent, indent_unit)
            if broken is not None:
                broken_lines, base = broken
                logger.debug("Breaking pipe chain into %d lines", len(broken_lines))
                result.extend(broken_lines)
                in_chain = True
                continue

        in_chain = pipe_count >= 1
        if in_chain:
            base = indent
        result.append(line)

    return "\n".join(result)
