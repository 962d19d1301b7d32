"""Domain-specific errors for gopybind."""

from __future__ import annotations


class GoPyBindError(Exception):
    """Base error for gopybind."""


class ConfigError(GoPyBindError):
    """Raised when a generation option is invalid."""


class SymbolTableError(GoPyBindError):
    """Raised when a symbol table manifest cannot be parsed."""


class OutputDirError(GoPyBindError):
    """Raised when the output directory cannot be created."""


class WriteError(GoPyBindError):
    """Raised when a generated artifact cannot be written."""


class DeclarationError(GoPyBindError):
    """Raised when a declaration cannot be expressed across the C boundary."""


class GenerationError(GoPyBindError):
    """Raised at the end of a generation pass that recorded any errors.

    The message is every recorded message joined with newlines, in the order
    they were encountered.
    """

    def __init__(self, errors: list[Exception]):
        self.errors = list(errors)
        super().__init__("\n".join(str(e) for e in self.errors))
