from __future__ import annotations

import pytest

from unison_format.models import PipeSegment
from unison_format.pipes import break_pipes, count_pipes, split_pipes


def _join(*lines: str) -> str:
    return "\n".join(lines)


@pytest.mark.parametrize(
    ("line", "expected"),
    [
        ("xs |> map f |> sum", 2),
        ("a <|> b <|> c", 2),
        ("x = a |> b", 1),
        ('log "a |> b |> c"', 0),
        ("foo -- |> bar |> baz", 0),
        ("x <| y", 0),
    ],
)
def test_count_pipes(line, expected):
    assert count_pipes(line) == expected


def test_split_pipes_remembers_operators():
    assert split_pipes("xs |> map f <|> ys") == [
        PipeSegment("xs"),
        PipeSegment("map f", "|>"),
        PipeSegment("ys", "<|>"),
    ]


def test_split_pipes_drops_empty_stages():
    assert split_pipes("a |>  |> b") == [PipeSegment("a"), PipeSegment("b", "|>")]


def test_split_pipes_keeps_literals_whole():
    assert split_pipes('a |> log "x |> y"') == [
        PipeSegment("a"),
        PipeSegment('log "x |> y"', "|>"),
    ]


def test_breaks_definition_chain():
    result = break_pipes("result = foo |> bar |> baz", "  ")

    assert result == _join("result =", "  foo", "    |> bar", "    |> baz")


def test_breaks_expression_chain():
    result = break_pipes(_join("main = do", "  xs |> map f |> sum"), "  ")

    assert result == _join("main = do", "  xs", "    |> map f", "    |> sum")


def test_single_pipe_stays_on_one_line():
    assert break_pipes("result = foo |> bar", "  ") == "result = foo |> bar"


def test_continuation_lines_follow_chain_base():
    text = _join(
        "routes = Route.run (",
        "  api",
        "         <|>    docs",
        "<|> health)",
    )

    assert break_pipes(text, "  ") == _join(
        "routes = Route.run (",
        "  api",
        "    <|> docs",
        "    <|> health)",
    )


def test_continuation_after_single_pipe_line():
    text = _join("x = a |> b", "|> c", "      |> d")

    assert break_pipes(text, "  ") == _join("x = a |> b", "  |> c", "  |> d")


def test_blank_line_ends_chain():
    text = _join("x = a |> b", "", "  foo", "|> c")

    assert break_pipes(text, "  ") == _join("x = a |> b", "", "  foo", "    |> c")


def test_comment_line_ends_chain():
    text = _join("x = a |> b", "  -- next stage", "|> c")

    assert break_pipes(text, "  ") == _join("x = a |> b", "  -- next stage", "    |> c")


def test_literal_lines_are_untouched():
    text = _join('doc = """', "  a |> b |> c", '"""')

    assert break_pipes(text, "  ") == text


def test_trailing_comment_stays_with_last_stage():
    result = break_pipes("r = a |> b |> c -- done", "  ")

    assert result == _join("r =", "  a", "    |> b", "    |> c -- done")


def test_uses_tabs_when_configured():
    result = break_pipes("r = a |> b |> c", "\t")

    assert result == _join("r =", "\ta", "\t\t|> b", "\t\t|> c")


@pytest.mark.parametrize(
    "text",
    [
        "result = foo |> bar |> baz",
        _join("main = do", "  xs |> map f |> sum"),
        _join("x = a |> b", "|> c"),
        "result = a <|> b <|> c <|> d",
    ],
)
def test_break_pipes_is_idempotent(text):
    once = break_pipes(text, "  ")
    assert break_pipes(once, "  ") == once
