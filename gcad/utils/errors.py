"""
Error definitions for the GCAD compiler.

Every failure during compilation is fatal: the first error raised aborts the
run and is reported once, with the best source location available.
"""
from enum import Enum
from typing import Optional


class ErrorType(Enum):
    SYNTAX = "SyntaxError"
    NAME = "NameError"
    TYPE = "TypeError"
    BINDING = "BindingError"
    CONFIG = "ConfigError"
    RUNTIME = "RuntimeError"


class GCadError(Exception):
    """Base class for all compilation errors, carrying source position."""

    error_type = ErrorType.RUNTIME

    def __init__(self, message: str, line: Optional[int] = None,
                 column: Optional[int] = None, source_name: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.line = line
        self.column = column
        self.source_name = source_name

    @property
    def kind(self) -> str:
        return self.error_type.value

    def attach_location(self, line: int, column: int,
                        source_name: Optional[str] = None) -> 'GCadError':
        """Fill in the position unless an inner node already set one."""
        if self.line is None:
            self.line = line
            self.column = column
        if self.source_name is None and source_name is not None:
            self.source_name = source_name
        return self

    def location(self) -> str:
        if self.line is None:
            return self.source_name or "<unknown>"
        if self.column is None:
            return f"{self.source_name or '<script>'}:{self.line}"
        return f"{self.source_name or '<script>'}:{self.line}:{self.column}"

    def __str__(self):
        return f"{self.kind} at {self.location()}: {self.message}"


class ScriptSyntaxError(GCadError):
    """Malformed script text."""
    error_type = ErrorType.SYNTAX

    def __init__(self, message: str, line: Optional[int] = None,
                 column: Optional[int] = None, expected: Optional[str] = None,
                 source_name: Optional[str] = None):
        super().__init__(message, line, column, source_name)
        self.expected = expected


class ScriptNameError(GCadError):
    """Unresolved identifier or function name."""
    error_type = ErrorType.NAME


class ScriptTypeError(GCadError):
    """Unit or kind mismatch in an operator or parameter."""
    error_type = ErrorType.TYPE


class BindingError(GCadError):
    """Parameter supplied twice, unknown, or required but missing."""
    error_type = ErrorType.BINDING


class ConfigError(GCadError):
    """Unrecognized material, unit or malformed machine configuration."""
    error_type = ErrorType.CONFIG


class ScriptRuntimeError(GCadError):
    """Invalid numeric or geometric request."""
    error_type = ErrorType.RUNTIME
