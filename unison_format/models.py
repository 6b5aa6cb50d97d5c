"""Data models for unison-format."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto


class ScanState(Enum):
    """Scanner states used while walking a line of Unison source.

    Attributes:
        CODE: Ordinary code, subject to spacing rules.
        IN_SINGLE_QUOTE: Inside a ``'...'`` literal.
        IN_DOUBLE_QUOTE: Inside a ``"..."`` literal.
        IN_MULTILINE_STRING: Inside a ``\"\"\"...\"\"\"`` literal; carries across lines.
        IN_LINE_COMMENT: Inside a ``--`` comment; ends with the line.
        IN_BLOCK_COMMENT: Inside a ``{- ... -}`` comment; carries across lines.
    """

    CODE = auto()
    IN_SINGLE_QUOTE = auto()
    IN_DOUBLE_QUOTE = auto()
    IN_MULTILINE_STRING = auto()
    IN_LINE_COMMENT = auto()
    IN_BLOCK_COMMENT = auto()


@dataclass(frozen=True)
class Segment:
    """A span of a line that is either code or a verbatim literal.

    Attributes:
        text: Characters covered by the span.
        is_literal: True for strings and comments, which are never reformatted.
    """

    text: str
    is_literal: bool = False


@dataclass(frozen=True)
class LiteralTable:
    """Literals lifted out of a line by `mask_literals`.

    Attributes:
        marker: Character that brackets each placeholder index. It is chosen
            so that it never occurs in the line being masked.
        texts: Literal texts, in placeholder order.
    """

    marker: str
    texts: list[str] = field(default_factory=list)


@dataclass
class BlockState:
    """Line-to-line state carried through the indentation pass.

    Attributes:
        in_multiline_string: The next line starts inside a triple-quoted string.
        in_block_comment: The next line starts inside a ``{- -}`` comment.
        in_cases_block: A ``cases`` line was seen and no level-0 definition
            has followed it yet.
        in_multiline_block: A block-opening line was seen; top-level-looking
            lines are no longer forced to column 0.
    """

    in_multiline_string: bool = False
    in_block_comment: bool = False
    in_cases_block: bool = False
    in_multiline_block: bool = False

    @property
    def scan_state(self) -> ScanState:
        if self.in_multiline_string:
            return ScanState.IN_MULTILINE_STRING
        if self.in_block_comment:
            return ScanState.IN_BLOCK_COMMENT
        return ScanState.CODE

    @property
    def in_literal(self) -> bool:
        return self.in_multiline_string or self.in_block_comment


@dataclass(frozen=True)
class LineInfo:
    """Syntactic role of a single trimmed line."""

    is_type_signature: bool = False
    is_definition: bool = False
    is_watch: bool = False
    is_test: bool = False
    is_cases: bool = False
    is_match: bool = False
    is_let: bool = False
    is_use: bool = False
    is_declaration: bool = False
    is_comment: bool = False

    @property
    def forces_top_level(self) -> bool:
        """Whether the line belongs at column 0 outside an open block."""
        return self.is_type_signature or self.is_watch or self.is_test or self.is_declaration

    @property
    def opens_block_keyword(self) -> bool:
        return self.is_cases or self.is_match or self.is_let


@dataclass(frozen=True)
class PipeSegment:
    """One stage of a pipe chain.

    Attributes:
        text: Stripped expression text of the stage.
        operator: Pipe operator that preceded the stage, or None for the first one.
    """

    text: str
    operator: str | None = None

    def render(self) -> str:
        if self.operator is None:
            return self.text
        return f"{self.operator} {self.text}".rstrip()


@dataclass
class FormatResult:
    """Outcome of formatting one file.

    Attributes:
        original: Source text as read from disk.
        formatted: Source text after formatting.
        written: Whether the file was rewritten.
    """

    original: str
    formatted: str
    written: bool = False

    @property
    def changed(self) -> bool:
        return self.original != self.formatted
