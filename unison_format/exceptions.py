"""Package-specific exception types."""

from __future__ import annotations


class FormatError(ValueError):
    """Base class for formatting-related errors.

    The formatter never rejects source text; these errors come from the
    checks wrapped around it.
    """


class UnstableFormattingError(FormatError):
    """Raised when formatting already formatted text changes it again.

    Args:
        line_number: One-based index of the first line that differs between
            the first and second pass.
    """

    def __init__(self, line_number: int):
        self.line_number = line_number
        super().__init__(self._build_message())

    def _build_message(self) -> str:
        return (
            f"Formatting is not stable: a second pass changes line {self.line_number}"
        )
