"""Constants used across the unison-format package."""

from __future__ import annotations

import re

from .config import FormatConfig

DEFAULT_CONFIG = FormatConfig()

# Lexical delimiters
TRIPLE_QUOTE = '"""'
LINE_COMMENT = "--"
BLOCK_COMMENT_OPEN = "{-"
BLOCK_COMMENT_CLOSE = "-}"
COMMENT_PREFIXES = (LINE_COMMENT, BLOCK_COMMENT_OPEN)

# Characters that can form symbolic operators; a `=` touching one of them is
# part of a longer operator such as `==`, `<=` or `=>`.
OPERATOR_CHARS = frozenset("!$%&*+-/:<=>?@^|~")

# Line classification
TYPE_SIGNATURE_PATTERN = re.compile(r"^[\w.]+\s*:\s*[A-Za-z\[({']")
LIST_PATTERN_COLON_PATTERN = re.compile(r":\s*[+\-*]")
DEFINITION_PATTERN = re.compile(r"^[\w.]+\s*[:=]")
DECLARATION_PATTERN = re.compile(r"^(?:structural |unique )?(?:ability|type) ")
LET_PATTERN = re.compile(r"^let\b")

# Top-level heads recognized by the dedenter
TOP_LEVEL_HEAD_PATTERNS = (
    re.compile(r"^[\w.]+\s*:"),
    re.compile(r"^[\w.]+(\s+[\w.]+)*\s*="),
    re.compile(r"^(unique\s+|structural\s+)?type\s+"),
    re.compile(r"^(unique\s+|structural\s+)?ability\s+"),
    re.compile(r"^use\s+"),
)

# Sibling bindings
BINDING_PATTERN = re.compile(r"^(\s*)([\w.]+|\([^)]+\))\s*=(?![=>])")
ENDS_WITH_DO_PATTERN = re.compile(r"\bdo$")
BLOCK_KEYWORD_PATTERN = re.compile(r"^(?:let|cases|match)\b")

# Line endings that open an indented block in the indentation pass
BLOCK_OPENER_SUFFIXES = ("=", "->", "where", "do", "{", "(", "[")

# Pipe chains
PIPE_OPERATORS = ("<|>", "|>")
PIPE_PATTERN = re.compile(r"<\|>|\|>")
PIPE_START_PATTERN = re.compile(r"^(<\|>|\|>|<\|)\s*(.*)$")

# Blank lines
NAME_SPLIT_PATTERN = re.compile(r"[\s:=]")
CLOSING_BRACKETS = ")]}"

# Files
UNISON_EXTENSIONS = (".u",)
DEFAULT_MAX_FILE_SIZE = DEFAULT_CONFIG.max_file_size
