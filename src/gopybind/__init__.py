"""gopybind: generate CPython bindings for Go packages via cgo and pybindgen."""

from __future__ import annotations

from . import errors
from .config import INT64_HANDLE, STRING_HANDLE, GenOptions, HandleConfig
from .gen import SECTION_ORDER, generate
from .symbols import SymbolTable
from .symtab import load_symbol_table

__all__ = [
    "INT64_HANDLE",
    "SECTION_ORDER",
    "STRING_HANDLE",
    "GenOptions",
    "HandleConfig",
    "SymbolTable",
    "errors",
    "generate",
    "load_symbol_table",
]
