"""Per-line classification and spacing."""

from __future__ import annotations

import re

from .constants import (
    COMMENT_PREFIXES,
    DECLARATION_PATTERN,
    DEFINITION_PATTERN,
    LET_PATTERN,
    LIST_PATTERN_COLON_PATTERN,
    OPERATOR_CHARS,
    TYPE_SIGNATURE_PATTERN,
)
from .lexer import mask_literals, restore_literals
from .models import LineInfo, Segment
from .operators import normalize_operator_spacing

_COMMA_PATTERN = re.compile(r"\s*,\s*")
_COLON_PATTERN = re.compile(r"\s*:\s*")
_EQUALS_CONTINUATIONS = ("=", ">")


def _is_keyword_line(trimmed: str, keyword: str) -> bool:
    return trimmed == keyword or trimmed.startswith(f"{keyword} ")


def classify_line(trimmed: str) -> LineInfo:
    """Classify the syntactic role of a line.

    Args:
        trimmed: The line with surrounding whitespace removed.

    Returns:
        LineInfo: Flags describing the line. A line can carry several roles;
            a type signature is also a definition head, for instance.

    Examples:
        classify_line("foo : Nat -> Nat").is_type_signature  # True
        classify_line("x +: xs -> x").is_type_signature  # False
        classify_line("unique type Color = Red | Green").is_declaration  # True
    """
    is_comment = trimmed.startswith(COMMENT_PREFIXES)
    if is_comment:
        return LineInfo(is_comment=True)

    is_type_signature = (
        TYPE_SIGNATURE_PATTERN.match(trimmed) is not None
        and "=" not in trimmed
        and LIST_PATTERN_COLON_PATTERN.search(trimmed) is None
    )

    return LineInfo(
        is_type_signature=is_type_signature,
        is_definition=DEFINITION_PATTERN.match(trimmed) is not None,
        is_watch=trimmed.startswith(">"),
        is_test=trimmed.startswith("test>"),
        is_cases=_is_keyword_line(trimmed, "cases"),
        is_match=_is_keyword_line(trimmed, "match"),
        is_let=LET_PATTERN.match(trimmed) is not None,
        is_use=trimmed.startswith("use "),
        is_declaration=DECLARATION_PATTERN.match(trimmed) is not None,
    )


def _normalize_commas(code: str) -> str:
    return _COMMA_PATTERN.sub(", ", code)


def _normalize_signature_colon(code: str) -> str:
    return _COLON_PATTERN.sub(" : ", code, count=1)


def _normalize_definition_equals(code: str) -> str:
    """Space a standalone ``=`` with exactly one space on each side.

    An ``=`` preceded by an operator character, or followed by ``=`` or
    ``>``, belongs to a longer operator (``==``, ``<=``, ``=>``) and is left
    alone. A trailing ``=`` opens a multi-line definition and gets a single
    space before it.
    """
    start = code.find("=")

    while start != -1:
        before = code[start - 1] if start > 0 else ""
        after = code[start + 1] if start + 1 < len(code) else ""
        left = code[:start].rstrip()

        if before not in OPERATOR_CHARS and after not in _EQUALS_CONTINUATIONS and left:
            right = code[start + 1 :].lstrip()
            if right:
                code = f"{left} = {right}"
                start = len(left) + 2
            else:
                code = f"{left} ="
                start = len(code)
        else:
            start += 1

        start = code.find("=", start)

    return code


def space_line(segments: list[Segment], info: LineInfo) -> str:
    """Normalize spacing inside one line of code.

    Literal segments (strings and comments) are masked before any rule runs,
    so only code is touched. Rules run in a fixed order: operators, commas,
    the signature colon, then definition equals.

    Args:
        segments: The trimmed line as produced by `scan_line`.
        info: Classification of the line.

    Returns:
        str: The spaced line.

    Examples:
        space_line(scan_line("add x y=x+y")[0], classify_line("add x y=x+y"))
        # "add x y = x + y"
    """
    code, literals = mask_literals(segments)

    code = normalize_operator_spacing(code)
    code = _normalize_commas(code)
    if info.is_type_signature:
        code = _normalize_signature_colon(code)
    code = _normalize_definition_equals(code)

    return restore_literals(code, literals)
