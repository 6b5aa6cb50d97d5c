"""Operator table and operator spacing."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from .constants import OPERATOR_CHARS


@dataclass(frozen=True)
class OperatorMatch:
    """An occurrence of a table operator inside a line of code.

    Attributes:
        text: The code being rewritten (literals already masked).
        start: Index of the first operator character.
        end: Index just past the last operator character.
        symbol: The operator that matched.
    """

    text: str
    start: int
    end: int
    symbol: str

    @property
    def char_before(self) -> str:
        return self.text[self.start - 1] if self.start > 0 else ""

    @property
    def char_after(self) -> str:
        return self.text[self.end] if self.end < len(self.text) else ""


Exclusion = Callable[[OperatorMatch], bool]


@dataclass(frozen=True)
class OperatorRule:
    """A binary operator and the conditions under which it is left alone.

    Attributes:
        symbol: Operator text.
        exclusions: Predicates; the occurrence is not respaced when any of
            them returns True.
    """

    symbol: str
    exclusions: tuple[Exclusion, ...] = ()

    def is_excluded(self, match: OperatorMatch) -> bool:
        return any(exclusion(match) for exclusion in self.exclusions)


def _is_part_of_longer_operator(match: OperatorMatch) -> bool:
    """True when the occurrence sits inside an occurrence of a longer table operator."""
    for longer, offset in _CONTAINING_OPERATORS.get(match.symbol, ()):
        position = match.start - offset
        if position >= 0 and match.text.startswith(longer, position):
            return True
    return False


def _is_qualified_name(match: OperatorMatch) -> bool:
    # Nat.+ or List.++ names the operator rather than applying it
    return match.char_before == "."


def _is_operator_section(match: OperatorMatch) -> bool:
    # (+) or (|>) refers to the operator as a function
    return match.char_before == "(" and match.char_after == ")"


def _is_unary_sign(match: OperatorMatch) -> bool:
    """True for a sign glued to a number, such as ``f +0``, ``(-1)`` or ``x=-2``."""
    if not match.char_after.isdigit():
        return False
    before = match.char_before
    return before == "" or before.isspace() or before in "([{," or before in OPERATOR_CHARS


def _is_ability_arrow(match: OperatorMatch) -> bool:
    # a ->{IO} b keeps the ability list attached to the arrow
    return match.char_after == "{"


_COMMON: tuple[Exclusion, ...] = (
    _is_part_of_longer_operator,
    _is_qualified_name,
    _is_operator_section,
)


def _rule(symbol: str, *extra: Exclusion) -> OperatorRule:
    return OperatorRule(symbol, _COMMON + extra)


# Longest operators first. A shorter operator contained in a longer one is
# protected by `_is_part_of_longer_operator`, which is derived from this
# table, so new compound operators only need to be added here.
OPERATOR_TABLE: tuple[OperatorRule, ...] = (
    _rule("<|>"),
    _rule("==="),
    _rule("++:"),
    _rule(":++"),
    _rule("++"),
    _rule("&&"),
    _rule("||"),
    _rule("=="),
    _rule("!="),
    _rule("<="),
    _rule(">="),
    _rule("<>"),
    _rule("+:"),
    _rule(":+"),
    _rule("|>"),
    _rule("<|"),
    _rule(">>"),
    _rule("<<"),
    _rule("->", _is_ability_arrow),
    _rule("+", _is_unary_sign),
    _rule("-", _is_unary_sign),
    _rule("*"),
    _rule("/"),
    _rule("%"),
)

OPERATOR_SYMBOLS: tuple[str, ...] = tuple(rule.symbol for rule in OPERATOR_TABLE)


def _build_containing_operators(symbols: tuple[str, ...]) -> dict[str, tuple[tuple[str, int], ...]]:
    containing: dict[str, list[tuple[str, int]]] = {}
    for symbol in symbols:
        for longer in symbols:
            if len(longer) <= len(symbol):
                continue
            offset = longer.find(symbol)
            while offset != -1:
                containing.setdefault(symbol, []).append((longer, offset))
                offset = longer.find(symbol, offset + 1)
    return {symbol: tuple(entries) for symbol, entries in containing.items()}


_CONTAINING_OPERATORS = _build_containing_operators(OPERATOR_SYMBOLS)


def _space_operator(code: str, rule: OperatorRule) -> str:
    symbol = rule.symbol
    start = code.find(symbol)

    while start != -1:
        end = start + len(symbol)
        left = code[:start].rstrip()
        right = code[end:].lstrip()

        if left and right and not rule.is_excluded(OperatorMatch(code, start, end, symbol)):
            code = f"{left} {symbol} {right}"
            end = len(left) + len(symbol) + 2

        start = code.find(symbol, end)

    return code


def normalize_operator_spacing(code: str) -> str:
    """Put exactly one space on each side of every binary operator.

    Operators are processed in table order, longest first. An occurrence is
    only rewritten when there is code on both sides of it and none of its
    rule's exclusions apply, so ``a<|>b`` becomes ``a <|> b`` and never
    ``a < |> b``, and ``f +0`` keeps its signed literal.

    Args:
        code: A line of code with string and comment literals masked.

    Returns:
        str: The line with operator spacing normalized.

    Examples:
        normalize_operator_spacing("a+b")  # "a + b"
        normalize_operator_spacing("x+:xs")  # "x +: xs"
        normalize_operator_spacing("(fromHours +0)")  # unchanged
    """
    for rule in OPERATOR_TABLE:
        if rule.symbol in code:
            code = _space_operator(code, rule)
    return code
