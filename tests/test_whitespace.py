from __future__ import annotations

import pytest

from unison_format.whitespace import normalize_blank_lines, normalize_line_endings


def _join(*lines: str) -> str:
    return "\n".join(lines)


def test_collapses_runs_of_blank_lines():
    text = _join("foo = 1", "", "", "", "bar = 2")
    assert normalize_blank_lines(text) == _join("foo = 1", "", "bar = 2")


def test_inserts_blank_line_between_definitions():
    text = _join("foo = 1", "bar = 2")
    assert normalize_blank_lines(text) == _join("foo = 1", "", "bar = 2")


def test_keeps_signature_with_definition():
    text = _join("foo : Nat", "foo = 1")
    assert normalize_blank_lines(text) == text


def test_keeps_clauses_of_one_name_together():
    uses = _join("use base", "use lib.http")
    watches = _join("> 1 + 2", "> 3")
    assert normalize_blank_lines(uses) == uses
    assert normalize_blank_lines(watches) == watches
    assert normalize_blank_lines(_join(uses, watches)) == _join(uses, "", watches)


def test_comments_stay_attached():
    text = _join("-- first", "-- second", "foo = 1")
    assert normalize_blank_lines(text) == text


def test_block_comment_closing_line_stays_attached():
    text = _join("{- This is a", "   doc comment -}", "foo = 1")
    assert normalize_blank_lines(text) == text


def test_closing_bracket_is_not_separated():
    text = _join("foo = [", "  1", "]")
    assert normalize_blank_lines(text) == text


def test_indented_lines_are_not_separated():
    text = _join("foo =", "  bar = 1", "  baz = 2")
    assert normalize_blank_lines(text) == text


def test_blank_lines_inside_strings_are_kept():
    text = _join('doc = """', "", "", "top = 1", '"""')
    assert normalize_blank_lines(text) == text


def test_is_idempotent():
    once = normalize_blank_lines(_join("a = 1", "b = 2", "", "", "c = 3"))
    assert normalize_blank_lines(once) == once


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("foo = bar   ", "foo = bar\n"),
        ("foo = bar", "foo = bar\n"),
        ("foo = bar\n\n\n", "foo = bar\n"),
        ("a  \n\tb\t\n", "a\n\tb\n"),
        ("", "\n"),
    ],
)
def test_normalize_line_endings(text, expected):
    assert normalize_line_endings(text) == expected
