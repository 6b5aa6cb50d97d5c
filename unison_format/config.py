"""Configuration loading and management."""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
import tomllib

MAX_INDENT_SIZE = 16


@dataclass
class FormatConfig:
    """Configuration for formatting Unison source.

    Attributes:
        indent_size: Width of one indentation level in columns. Also used as
            the tab stop when measuring existing indentation.
        use_spaces: Indent with spaces when True, with one tab per level
            otherwise.
        max_file_size: Maximum file size in bytes that will be processed.

    Examples:
        FormatConfig(indent_size=4, use_spaces=False)
    """

    # Layout
    indent_size: int = 2
    use_spaces: bool = True

    # Limits
    max_file_size: int = 10 * 1024 * 1024

    @property
    def indent_unit(self) -> str:
        """Whitespace emitted for one indentation level."""
        return " " * self.indent_size if self.use_spaces else "\t"


class ConfigError(ValueError):
    """Exception raised when configuration values are invalid.

    Attributes:
        args: Arguments provided to the underlying `ValueError`.

    Examples:
        raise ConfigError("`indent_size` must be a positive integer")
    """


def load_config(search_path: Path) -> FormatConfig:
    """Load configuration from the nearest config file.

    Walks parent directories from `search_path` to the filesystem root, reading
    the ``[tool.unison-format]`` table from `pyproject.toml` and the
    ``[unison-format]`` or ``[tool.unison-format]`` table from
    `.unison-format.toml` when present. Returns default values when no
    configuration is found. TOML files that cannot be read or decoded are
    skipped.

    Args:
        search_path: Directory used as the starting point for configuration lookup.

    Returns:
        FormatConfig: Loaded configuration with defaults applied when necessary.

    Raises:
        ConfigError: If a matching table is present but is not a mapping or
            contains unsupported keys.

    Examples:
        load_config(Path("src"))
    """
    current = search_path.resolve()

    while True:
        pyproject_config = _load_from_file(
            current / "pyproject.toml", table_paths=[("tool", "unison-format")]
        )
        if pyproject_config is not None:
            return pyproject_config

        dotfile_config = _load_from_file(
            current / ".unison-format.toml",
            table_paths=[("unison-format",), ("tool", "unison-format")],
        )
        if dotfile_config is not None:
            return dotfile_config

        parent = current.parent
        if parent == current:
            break
        current = parent

    return FormatConfig()


_MISSING = object()


def _load_from_file(config_file: Path, table_paths: list[tuple[str, ...]]) -> FormatConfig | None:
    if not config_file.exists():
        return None

    try:
        with open(config_file, "rb") as stream:
            data = tomllib.load(stream)
    except (OSError, tomllib.TOMLDecodeError):
        return None

    for table_path in table_paths:
        raw_config = _extract_table(data, table_path)
        if raw_config is _MISSING:
            continue
        return _build_config_from_raw(raw_config, config_file, table_path)

    return None


def _extract_table(data: object, table_path: tuple[str, ...]) -> object:
    current = data
    for key in table_path:
        if not isinstance(current, dict) or key not in current:
            return _MISSING
        current = current[key]
    return current


def _build_config_from_raw(
    raw_config: object, config_file: Path, table_path: tuple[str, ...]
) -> FormatConfig:
    table_display = ".".join(table_path)

    if raw_config is None:
        return FormatConfig()

    if not isinstance(raw_config, dict):
        raise ConfigError(f"Invalid `[{table_display}]` settings in {config_file}")

    if not raw_config:
        return FormatConfig()

    # Accept the kebab-case spelling that is usual in TOML files.
    normalized = {key.replace("-", "_"): value for key, value in raw_config.items()}

    try:
        return FormatConfig(**normalized)
    except TypeError as error:
        raise ConfigError(f"Invalid `[{table_display}]` settings in {config_file}") from error


def validate_config(config: FormatConfig) -> None:
    """Validate a `FormatConfig` instance.

    Args:
        config: Configuration to validate.

    Returns:
        None.

    Raises:
        ConfigError: If the indent size is not an integer between 1 and 16,
            `use_spaces` is not a boolean, or the file size limit is not a
            positive integer.

    Examples:
        validate_config(FormatConfig(indent_size=4))
    """
    _ensure_integers(
        {
            "indent_size": config.indent_size,
            "max_file_size": config.max_file_size,
        }
    )

    if not isinstance(config.use_spaces, bool):
        raise ConfigError("`use_spaces` must be a boolean")

    _ensure_positive(
        {
            "indent_size": config.indent_size,
            "max_file_size": config.max_file_size,
        }
    )

    if config.indent_size > MAX_INDENT_SIZE:
        raise ConfigError(f"`indent_size` must be <= {MAX_INDENT_SIZE}")


def apply_overrides(config: FormatConfig, **overrides: object) -> FormatConfig:
    """Apply override values to a `FormatConfig`.

    Args:
        config: Base configuration to update.
        overrides: Override values keyed by configuration field name; values set to
            None are ignored.

    Returns:
        FormatConfig: New configuration with the provided overrides applied. The
        original configuration is returned when no changes are supplied.

    Raises:
        TypeError: If an override name is not defined on `FormatConfig`.

    Examples:
        updated = apply_overrides(config, indent_size=4, use_spaces=None)
    """
    changes = {key: value for key, value in overrides.items() if value is not None}
    if not changes:
        return config
    return replace(config, **changes)


def build_config(search_path: Path, **overrides: object) -> FormatConfig:
    """Load, override, and validate configuration.

    Args:
        search_path: Directory where configuration files are resolved.
        overrides: Override values keyed by configuration attributes; None values
            are ignored.

    Returns:
        FormatConfig: Validated configuration ready for formatting.

    Raises:
        ConfigError: If configuration loading or validation fails.

    Examples:
        config = build_config(Path.cwd(), indent_size=4)
    """
    config = load_config(search_path)
    config = apply_overrides(config, **overrides)
    validate_config(config)
    return config


def _ensure_positive(values: dict[str, int]) -> None:
    for key, value in values.items():
        if value <= 0:
            raise ConfigError(f"`{key}` must be a positive integer")


def _ensure_integers(values: dict[str, object]) -> None:
    for key, value in values.items():
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigError(f"`{key}` must be an integer")
