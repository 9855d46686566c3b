"""
GCAD Errors Module - Source spans and the compiler error hierarchy.

Every failure raised while parsing or executing a script derives from
GcadError. Errors carry an optional SourceSpan so the caller can point at
the offending text; builtins raise span-less errors and the interpreter
attaches the span of the call that failed.
"""

from typing import Optional


class SourceSpan:
    """
    Location of a parse node in the script text.

    Offsets are 0-based character positions, lines and columns are 1-based.
    """

    def __init__(
        self,
        start: int,
        end: int,
        line: int,
        column: int,
        end_line: Optional[int] = None,
        end_column: Optional[int] = None,
    ):
        self.start = start
        self.end = end
        self.line = line
        self.column = column
        self.end_line = line if end_line is None else end_line
        self.end_column = column if end_column is None else end_column

    def text(self, source: str) -> str:
        """Return the slice of source covered by this span."""
        return source[self.start:self.end]

    def __eq__(self, other) -> bool:
        if not isinstance(other, SourceSpan):
            return NotImplemented
        return (self.start, self.end, self.line, self.column) == (
            other.start,
            other.end,
            other.line,
            other.column,
        )

    def __repr__(self) -> str:
        return f"SourceSpan({self.start}, {self.end}, line={self.line}, column={self.column})"

    def __str__(self) -> str:
        return f"line {self.line}, column {self.column}"


class GcadError(Exception):
    """Base exception class for script compilation errors."""

    def __init__(self, message: str, span: Optional[SourceSpan] = None):
        super().__init__(message)
        self.message = message
        self.span = span

    def __str__(self) -> str:
        if self.span is None:
            return self.message
        return f"{self.span}: {self.message}"

    def describe(self, source: Optional[str] = None) -> str:
        """
        Render the error with the offending source line underneath.

        Args:
            source: Script text the span refers to

        Returns:
            Human readable, possibly multi-line, error description
        """
        text = f"{type(self).__name__}: {self}"
        if self.span is None or source is None:
            return text

        lines = source.splitlines()
        if not 0 < self.span.line <= len(lines):
            return text

        source_line = lines[self.span.line - 1]
        if self.span.end_line == self.span.line:
            width = max(1, self.span.end_column - self.span.column)
        else:
            width = max(1, len(source_line) - self.span.column + 1)
        marker = " " * (self.span.column - 1) + "^" * width
        return f"{text}\n    {source_line}\n    {marker}"


class ScriptSyntaxError(GcadError):
    """Exception raised when script text does not match the grammar."""

    pass


class ScriptNameError(GcadError):
    """Exception raised for an unknown variable, builtin or material."""

    pass


class ScriptTypeError(GcadError):
    """Exception raised when a value has the wrong type for its use."""

    pass


class TypeMismatchError(ScriptTypeError):
    """Exception raised when an operator is applied to non-numbers."""

    pass


class UnitError(GcadError):
    """Exception raised for a missing or forbidden unit."""

    pass


class ArgumentError(GcadError):
    """Exception raised when a builtin call lacks a required argument."""

    pass


class ArityError(ArgumentError):
    """Exception raised when a builtin receives too many positional arguments."""

    def __init__(self, message: str, expected: int, actual: int, span: Optional[SourceSpan] = None):
        super().__init__(message, span)
        self.expected = expected
        self.actual = actual


class UnknownArgumentError(ArgumentError):
    """Exception raised for a named argument the builtin does not declare."""

    def __init__(self, message: str, argument: str, span: Optional[SourceSpan] = None):
        super().__init__(message, span)
        self.argument = argument


class DomainError(GcadError):
    """Exception raised for geometrically or numerically invalid parameters."""

    pass


class ScriptIOError(GcadError):
    """Exception raised when a script or program file cannot be read or written."""

    pass


class ConfigError(GcadError):
    """Exception raised for an invalid compiler configuration."""

    pass
