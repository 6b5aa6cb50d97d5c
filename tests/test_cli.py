from __future__ import annotations

import textwrap
from pathlib import Path

import unison_format.cli as cli_module
from unison_format.cli import cli


def _write(tmp_path: Path, filename: str, content: str) -> Path:
    path = tmp_path / filename
    path.write_text(textwrap.dedent(content).lstrip(), encoding="utf-8")
    return path


def _write_pyproject(base: Path, body: str) -> Path:
    path = base / "pyproject.toml"
    path.write_text(textwrap.dedent(body).lstrip(), encoding="utf-8")
    return path


def test_cli_formats_file_in_place(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    target = _write(
        tmp_path,
        "main.u",
        """
        add:Nat->Nat->Nat
        add x y=x+y
        """,
    )

    result = cli_runner.invoke(cli, [str(target)])

    assert result.exit_code == 0
    assert result.output == ""
    assert target.read_text(encoding="utf-8") == (
        "add : Nat -> Nat -> Nat\nadd x y = x + y\n"
    )


def test_cli_check_reports_files_that_would_change(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    messy = _write(tmp_path, "messy.u", "foo=1\n")
    clean = _write(tmp_path, "clean.u", "foo = 1\n")

    result = cli_runner.invoke(cli, ["--check", str(messy), str(clean)])

    assert result.exit_code == 1
    assert f"would reformat {messy}" in result.output
    assert f"would reformat {clean}" not in result.output
    assert messy.read_text(encoding="utf-8") == "foo=1\n"


def test_cli_check_passes_on_formatted_files(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    target = _write(tmp_path, "clean.u", "foo = 1\n")

    result = cli_runner.invoke(cli, ["--check", str(target)])

    assert result.exit_code == 0
    assert "would reformat" not in result.output


def test_cli_diff_prints_changes_without_writing(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    target = _write(tmp_path, "main.u", "total = a+b\n")

    result = cli_runner.invoke(cli, ["--diff", str(target)])

    assert result.exit_code == 0
    assert f"--- {target} (original)" in result.output
    assert "-total = a+b" in result.output
    assert "+total = a + b" in result.output
    assert target.read_text(encoding="utf-8") == "total = a+b\n"


def test_cli_reads_stdin(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    result = cli_runner.invoke(cli, ["-"], input="result = foo|>bar|>baz\n")

    assert result.exit_code == 0
    assert result.output == "result =\n  foo\n    |> bar\n    |> baz\n"


def test_cli_check_on_stdin(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    result = cli_runner.invoke(cli, ["--check", "-"], input="a+b\n")

    assert result.exit_code == 1
    assert "would reformat <stdin>" in result.output


def test_cli_indent_size_flag(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    target = _write(tmp_path, "main.u", "result = foo|>bar|>baz\n")

    result = cli_runner.invoke(cli, ["--indent-size", "4", str(target)])

    assert result.exit_code == 0
    assert target.read_text(encoding="utf-8") == (
        "result =\n    foo\n        |> bar\n        |> baz\n"
    )


def test_cli_use_tabs_flag(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    target = tmp_path / "main.u"
    target.write_text("foo =\n    bar\n", encoding="utf-8")

    result = cli_runner.invoke(cli, ["--indent-size", "4", "--use-tabs", str(target)])

    assert result.exit_code == 0
    assert target.read_text(encoding="utf-8") == "foo =\n\tbar\n"


def test_cli_reads_config_from_pyproject(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    _write_pyproject(
        tmp_path,
        """
        [tool.unison-format]
        indent_size = 4
        """,
    )
    target = _write(tmp_path, "main.u", "result = a <|> b <|> c\n")

    result = cli_runner.invoke(cli, [str(target)])

    assert result.exit_code == 0
    assert target.read_text(encoding="utf-8") == (
        "result =\n    a\n        <|> b\n        <|> c\n"
    )


def test_cli_flags_override_config(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    _write_pyproject(
        tmp_path,
        """
        [tool.unison-format]
        indent_size = 4
        """,
    )
    target = _write(tmp_path, "main.u", "result = a <|> b <|> c\n")

    result = cli_runner.invoke(cli, ["--indent-size", "2", str(target)])

    assert result.exit_code == 0
    assert target.read_text(encoding="utf-8") == "result =\n  a\n    <|> b\n    <|> c\n"


def test_cli_rejects_invalid_config(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    _write_pyproject(
        tmp_path,
        """
        [tool.unison-format]
        indent_size = 0
        """,
    )
    target = _write(tmp_path, "main.u", "foo = 1\n")

    result = cli_runner.invoke(cli, [str(target)])

    assert result.exit_code != 0
    assert "`indent_size` must be a positive integer" in result.output


def test_cli_rejects_unknown_config_key(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    _write_pyproject(
        tmp_path,
        """
        [tool.unison-format]
        line_length = 80
        """,
    )
    target = _write(tmp_path, "main.u", "foo = 1\n")

    result = cli_runner.invoke(cli, [str(target)])

    assert result.exit_code != 0
    assert "Invalid `[tool.unison-format]` settings" in result.output


def test_cli_rejects_non_unison_files(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    target = _write(tmp_path, "notes.txt", "foo = 1\n")

    result = cli_runner.invoke(cli, [str(target)])

    assert result.exit_code != 0
    assert "not a Unison source file" in result.output


def test_cli_rejects_missing_file(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    result = cli_runner.invoke(cli, [str(tmp_path / "missing.u")])

    assert result.exit_code != 0
    assert "does not exist" in result.output


def test_cli_requires_a_file(cli_runner):
    result = cli_runner.invoke(cli, [])

    assert result.exit_code != 0
    assert "Missing argument" in result.output


def test_cli_safe_mode_writes_stable_output(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    target = _write(tmp_path, "main.u", "foo=1\nbar=2\n")

    result = cli_runner.invoke(cli, ["--safe", str(target)])

    assert result.exit_code == 0
    assert target.read_text(encoding="utf-8") == "foo = 1\n\nbar = 2\n"


def test_cli_safe_mode_reports_unstable_output(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    target = _write(tmp_path, "main.u", "foo = 1\n")
    monkeypatch.setattr(
        "unison_format.formatter.format_source", lambda source, config=None: source + "x\n"
    )

    result = cli_runner.invoke(cli, ["--safe", str(target)])

    assert result.exit_code != 0
    assert "Formatting is not stable" in result.output
    assert target.read_text(encoding="utf-8") == "foo = 1\n"


def test_cli_public_api():
    assert cli_module.__all__ == ["cli"]
