"""The formatting pipeline and the file-level API built on it."""

from __future__ import annotations

import difflib
import logging
from collections.abc import Callable
from pathlib import Path

from .config import FormatConfig, validate_config
from .exceptions import UnstableFormattingError
from .filesystem import (
    collect_file_stat,
    enforce_file_size,
    get_max_file_size,
    safe_read,
    write_formatted,
)
from .indentation import assign_indentation, dedent, normalize_siblings, update_block_state
from .lexer import leading_whitespace_columns, scan_line
from .lines import classify_line, space_line
from .models import BlockState, FormatResult, ScanState
from .pipes import break_pipes
from .whitespace import normalize_blank_lines, normalize_line_endings

logger = logging.getLogger(__name__)


def format_lines(lines: list[str], config: FormatConfig) -> list[str]:
    """Classify, space and indent each line.

    Lines that start inside a multi-line string or block comment are copied
    verbatim. Comment lines keep their text and only get reindented. Every
    other line has its spacing normalized and its indentation assigned.

    Args:
        lines: Physical lines of the (dedented) source.
        config: Formatting configuration.

    Returns:
        list[str]: One output line per input line; blank lines become empty.
    """
    state = BlockState()
    indent_unit = config.indent_unit
    formatted: list[str] = []

    for line in lines:
        trimmed = line.strip()
        if not trimmed:
            formatted.append("")
            continue

        starts_in_literal = state.in_literal
        segments, end_state = scan_line(trimmed, state.scan_state)
        state.in_multiline_string = end_state is ScanState.IN_MULTILINE_STRING
        state.in_block_comment = end_state is ScanState.IN_BLOCK_COMMENT

        if starts_in_literal:
            formatted.append(line)
            continue

        info = classify_line(trimmed)
        original_level = leading_whitespace_columns(line, config.indent_size) // config.indent_size
        level = assign_indentation(info, original_level, state)

        content = trimmed if info.is_comment else space_line(segments, info)
        formatted.append(indent_unit * level + content)

        if not info.is_comment:
            update_block_state(state, trimmed, info, original_level)

    return formatted


def format_source(source: str, config: FormatConfig | None = None) -> str:
    """Format Unison source text.

    Args:
        source: Raw source text.
        config: Formatting configuration; defaults are used when None.

    Returns:
        str: Canonically formatted source ending with a single newline.
            Formatting the result again returns it unchanged.

    Raises:
        ConfigError: If `config` holds invalid values.

    Examples:
        format_source("add x y=x+y")  # "add x y = x + y\\n"
        format_source("result = foo|>bar|>baz")
        # "result =\\n  foo\\n    |> bar\\n    |> baz\\n"
    """
    config = config or FormatConfig()
    validate_config(config)

    text = dedent(source)
    text = "\n".join(format_lines(text.split("\n"), config))
    text = normalize_siblings(text, config.indent_size, config.use_spaces)
    text = break_pipes(text, config.indent_unit)
    text = normalize_blank_lines(text)
    return normalize_line_endings(text)


def verify_stable(source: str, config: FormatConfig | None = None) -> str:
    """Format `source` and check that a second pass is a no-op.

    Args:
        source: Raw source text.
        config: Formatting configuration.

    Returns:
        str: The formatted source.

    Raises:
        UnstableFormattingError: If formatting the result again changes it.
        ConfigError: If `config` holds invalid values.
    """
    formatted = format_source(source, config)
    reformatted = format_source(formatted, config)
    if reformatted == formatted:
        return formatted

    first_lines = formatted.split("\n")
    second_lines = reformatted.split("\n")
    for index, (first, second) in enumerate(zip(first_lines, second_lines)):
        if first != second:
            raise UnstableFormattingError(index + 1)
    raise UnstableFormattingError(min(len(first_lines), len(second_lines)) + 1)


def render_diff(original: str, formatted: str, filename: str = "<stdin>") -> str:
    """Render a unified diff between the original and formatted source.

    Examples:
        print(render_diff("a+b\\n", "a + b\\n", "main.u"), end="")
    """
    diff = difflib.unified_diff(
        original.splitlines(keepends=True),
        formatted.splitlines(keepends=True),
        fromfile=f"{filename} (original)",
        tofile=f"{filename} (formatted)",
    )
    return "".join(diff)


class FormatFileError(Exception):
    """Raised when formatting a source file fails."""


def format_file(
    filepath: Path,
    config: FormatConfig | None = None,
    check: bool = False,
    safe: bool = False,
    warn: Callable[[str], None] | None = None,
) -> FormatResult:
    """Format a Unison source file in place.

    Args:
        filepath: Path to the `.u` file.
        config: Formatting configuration; defaults are used when None.
        check: Only compute the result; never write the file.
        safe: Verify that formatting is stable before writing.
        warn: Optional callback for non-fatal warnings while writing.

    Returns:
        FormatResult: Original and formatted text, and whether the file was
            rewritten.

    Raises:
        FormatFileError: If the configuration is invalid, the file is too large
            or cannot be read, decoded or written, or formatting is unstable
            in safe mode.

    Examples:
        result = format_file(Path("main.u"), check=True)
        if result.changed:
            print("main.u would be reformatted")
    """
    config = config or FormatConfig()
    try:
        validate_config(config)
        max_file_size = get_max_file_size(default=config.max_file_size)
    except ValueError as error:
        raise FormatFileError(str(error)) from error

    try:
        initial_stat = collect_file_stat(filepath)
        enforce_file_size(initial_stat, max_file_size, filepath)
        with safe_read(filepath) as file:
            original = file.read()
    except UnicodeDecodeError as error:
        error_message = f"Invalid UTF-8 sequence in {filepath}: {error}"
        raise FormatFileError(error_message) from error
    except IOError as error:
        raise FormatFileError(str(error)) from error

    try:
        formatted = verify_stable(original, config) if safe else format_source(original, config)
    except UnstableFormattingError as error:
        raise FormatFileError(f"{filepath}: {error}") from error

    result = FormatResult(original, formatted)
    if check or not result.changed:
        return result

    try:
        write_formatted(filepath, formatted, initial_stat, warn=warn)
    except IOError as error:
        raise FormatFileError(str(error)) from error

    logger.info("Reformatted %s", filepath)
    result.written = True
    return result
