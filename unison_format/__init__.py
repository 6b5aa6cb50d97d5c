"""
unison-format: a source formatter for the Unison programming language.

This package can be used both as a CLI tool and as a library.

CLI Usage:
    unison-format src/main.u

Library Usage:
    from unison_format import FormatConfig, format_source

    formatted = format_source(source, FormatConfig(indent_size=4))
"""

from .config import ConfigError, FormatConfig
from .exceptions import FormatError, UnstableFormattingError
from .formatter import FormatFileError, format_file, format_source, render_diff, verify_stable
from .models import FormatResult
from .operators import OPERATOR_TABLE, normalize_operator_spacing

__version__ = "0.1.0"

__all__ = [
    # Core functionality
    "format_source",
    "verify_stable",
    "format_file",
    "render_diff",
    "normalize_operator_spacing",
    # Configuration
    "FormatConfig",
    "OPERATOR_TABLE",
    # Data models
    "FormatResult",
    # Exceptions
    "ConfigError",
    "FormatError",
    "FormatFileError",
    "UnstableFormattingError",
    # Version
    "__version__",
]
