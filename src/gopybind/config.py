"""Generation options and environment defaults."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass

from .errors import ConfigError


@dataclass(frozen=True)
class HandleConfig:
    """Spellings of the opaque handle used to reference Go objects from Python.

    go:  Go-side storage type of the handle registry key.
    cgo: type of the handle at the cgo boundary.
    py:  pybindgen (C) type of the handle on the Python side.
    """

    go: str
    cgo: str
    py: str

    @property
    def c_zero(self) -> str:
        # Pointer-typed handles (string handles) are nil, numeric ones 0.
        return "nil" if self.cgo.startswith("*") else "0"


INT64_HANDLE = HandleConfig(go="int64", cgo="C.longlong", py="int64_t")
STRING_HANDLE = HandleConfig(go="string", cgo="*C.char", py="char*")

HANDLES: dict[str, HandleConfig] = {
    "int64": INT64_HANDLE,
    "string": STRING_HANDLE,
}

SUPPORTED_API_VERSIONS = (3,)


def handle_config(name: str) -> HandleConfig:
    try:
        return HANDLES[name]
    except KeyError:
        raise ConfigError(
            f"unknown handle representation {name!r} (expected one of: {', '.join(HANDLES)})"
        ) from None


@dataclass(frozen=True)
class GenOptions:
    outname: str
    cmdstr: str = ""
    vm: str = "python3"
    libext: str = ".so"
    api_version: int = 3
    handle: HandleConfig = INT64_HANDLE

    @property
    def ext_module(self) -> str:
        """Name of the compiled CPython extension module."""
        return f"_{self.outname}"


def default_handle() -> HandleConfig:
    """Return the handle representation to use.

    Override with `GOPYBIND_HANDLE` (`int64` or `string`).
    """
    return handle_config(os.environ.get("GOPYBIND_HANDLE") or "int64")


def default_python() -> str:
    """Return the interpreter the build recipe should target.

    Override with `GOPYBIND_PYTHON`.
    """
    return os.environ.get("GOPYBIND_PYTHON") or "python3"


def default_libext() -> str:
    """Return the shared library extension for the host platform.

    Override with `GOPYBIND_LIBEXT`.
    """
    override = os.environ.get("GOPYBIND_LIBEXT")
    if override:
        return override

    if sys.platform.startswith("win"):
        return ".dll"
    if sys.platform == "darwin":
        return ".dylib"
    return ".so"
