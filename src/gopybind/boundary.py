"""Conversions across the C boundary between Go and CPython."""

from __future__ import annotations

from dataclasses import dataclass

from .config import HandleConfig
from .errors import DeclarationError
from .symbols import Symbol, SymbolTable

BOOL_TRUE = 1
BOOL_FALSE = 0


def encode_bool(b: bool) -> int:
    """Encode a bool as the C char passed across the boundary."""
    return BOOL_TRUE if b else BOOL_FALSE


def decode_bool(c: int) -> bool:
    """Decode a C char received from the boundary.

    Decoding is permissive: any nonzero byte is True, not only BOOL_TRUE.
    The generated `boolPyToGo` helper follows the same rule.
    TODO: confirm with the maintainers whether out-of-range bytes should be
    rejected instead; the permissive rule is kept until then.
    """
    return c != 0


# go type -> (cgo type, pybindgen type)
_BASIC: dict[str, tuple[str, str]] = {
    "bool": ("C.char", "bool"),
    "int": ("C.longlong", "int64_t"),
    "int8": ("C.schar", "int8_t"),
    "int16": ("C.short", "int16_t"),
    "int32": ("C.int", "int32_t"),
    "int64": ("C.longlong", "int64_t"),
    "uint": ("C.ulonglong", "uint64_t"),
    "uint8": ("C.uchar", "uint8_t"),
    "byte": ("C.uchar", "uint8_t"),
    "uint16": ("C.ushort", "uint16_t"),
    "uint32": ("C.uint", "uint32_t"),
    "uint64": ("C.ulonglong", "uint64_t"),
    "float32": ("C.float", "float"),
    "float64": ("C.double", "double"),
    "string": ("*C.char", "char*"),
}


@dataclass(frozen=True)
class GoType:
    go: str  # spelling in the glue file
    cgo: str
    py: str  # pybindgen spelling
    sym: Symbol | None = None  # set for types crossing as a handle
    pointer: bool = False
    handle_zero: str = "0"

    @property
    def is_handle(self) -> bool:
        return self.sym is not None

    def to_c(self, expr: str) -> str:
        """Convert a Go expression to its C boundary value.

        For handles passed by value `expr` must be addressable.
        """
        if self.sym is not None:
            ref = expr if self.pointer else f"&{expr}"
            return f"handleFromPtr_{self.sym.cname}({ref})"
        if self.go == "bool":
            return f"boolGoToPy({expr})"
        if self.go == "string":
            return f"C.CString({expr})"
        return f"{self.cgo}({expr})"

    def from_c(self, expr: str) -> str:
        if self.sym is not None:
            ptr = f"ptrFromHandle_{self.sym.cname}({expr})"
            return ptr if self.pointer else f"*{ptr}"
        if self.go == "bool":
            return f"boolPyToGo({expr})"
        if self.go == "string":
            return f"C.GoString({expr})"
        return f"{self.go}({expr})"

    def c_zero(self) -> str:
        if self.sym is not None:
            return f"CGoHandle({self.handle_zero})"
        if self.go == "string":
            return 'C.CString("")'
        return f"{self.cgo}(0)"


class TypeMap:
    """Resolve Go type strings from the symbol table to boundary types."""

    def __init__(self, table: SymbolTable, handle: HandleConfig):
        self._table = table
        self._handle = handle

    def resolve(self, t: str) -> GoType:
        t = t.strip()
        basic = _BASIC.get(t)
        if basic is not None:
            cgo, py = basic
            return GoType(go=t, cgo=cgo, py=py)

        pointer = t.startswith("*")
        name = t[1:].strip() if pointer else t
        sym = self._table.sym(name)
        if sym is None or not sym.is_type:
            raise DeclarationError(f"unsupported type {t!r}")
        go = f"*{sym.goname}" if pointer else sym.goname
        return GoType(
            go=go,
            cgo="CGoHandle",
            py=self._handle.py,
            sym=sym,
            pointer=pointer,
            handle_zero=self._handle.c_zero,
        )
