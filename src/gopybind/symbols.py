from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any

TYPE_KINDS = frozenset({"struct", "interface", "slice", "map", "named"})
DECL_KINDS = frozenset({"func", "const", "var"})


@dataclass(frozen=True)
class PackageRef:
    path: str
    name: str


@dataclass(frozen=True)
class Symbol:
    name: str
    pkg: PackageRef
    kind: str
    elem: str = ""  # element type of slice/map kinds
    doc: str = ""

    @property
    def is_type(self) -> bool:
        return self.kind in TYPE_KINDS

    @property
    def id(self) -> str:
        return f"{self.pkg.path}.{self.name}"

    @property
    def goname(self) -> str:
        """Spelling in the generated Go glue (package name qualified)."""
        return f"{self.pkg.name}.{self.name}"

    @property
    def cname(self) -> str:
        """Spelling in C and Python identifiers."""
        return f"{self.pkg.name}_{self.name}"


@dataclass(frozen=True)
class Param:
    name: str
    type: str


@dataclass(frozen=True)
class Field:
    name: str
    type: str
    doc: str = ""


@dataclass(frozen=True)
class Func:
    name: str
    params: list[Param] = field(default_factory=list)
    results: list[str] = field(default_factory=list)
    doc: str = ""


@dataclass(frozen=True)
class Const:
    name: str
    type: str
    value: str
    doc: str = ""


@dataclass(frozen=True)
class Var:
    name: str
    type: str
    doc: str = ""


@dataclass(frozen=True)
class Interface:
    name: str
    methods: list[Func] = field(default_factory=list)
    doc: str = ""


@dataclass(frozen=True)
class Struct:
    name: str
    fields: list[Field] = field(default_factory=list)
    methods: list[Func] = field(default_factory=list)
    ctors: list[Func] = field(default_factory=list)
    doc: str = ""


@dataclass(frozen=True)
class Package:
    path: str
    name: str
    doc: str = ""
    imports: list[str] = field(default_factory=list)
    consts: list[Const] = field(default_factory=list)
    vars: list[Var] = field(default_factory=list)
    interfaces: list[Interface] = field(default_factory=list)
    structs: list[Struct] = field(default_factory=list)
    funcs: list[Func] = field(default_factory=list)

    @property
    def ref(self) -> PackageRef:
        return PackageRef(path=self.path, name=self.name)

    def type_id(self, name: str) -> str:
        return f"{self.path}.{name}"


@dataclass(frozen=True)
class SymbolTable:
    """Ordered target packages plus the global, stably ordered symbol list."""

    packages: list[Package]
    symbols: list[Symbol]
    _by_id: dict[str, Symbol] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        by_id: dict[str, Symbol] = {}
        for s in self.symbols:
            by_id.setdefault(s.id, s)
        object.__setattr__(self, "_by_id", by_id)

    def sym(self, sym_id: str) -> Symbol | None:
        return self._by_id.get(sym_id)

    def names(self) -> list[str]:
        return [s.id for s in self.symbols]

    @property
    def target_paths(self) -> frozenset[str]:
        return frozenset(p.path for p in self.packages)

    @classmethod
    def from_manifest(cls, manifest: dict[str, Any]) -> "SymbolTable":
        from .symtab import parse_manifest  # local import to avoid cycles

        return parse_manifest(manifest)

    def to_manifest(self) -> dict[str, Any]:
        from .symtab import dump_manifest

        return dump_manifest(self)


def _returns_by_value(fn: Func, type_id: str) -> bool:
    if not fn.results or fn.results[0] != type_id:
        return False
    if len(fn.results) == 1:
        return True
    return len(fn.results) == 2 and fn.results[1] == "error"


def associate_constructors(pkg: Package) -> Package:
    """Move factory functions that return a struct by value into `Struct.ctors`.

    Only `T` and `(T, error)` results are recognized. Factories returning `*T`
    are NOT treated as constructors and stay in `Package.funcs`; this is a
    known gap of the binding model, not an oversight.
    """
    by_type = {pkg.type_id(s.name): s for s in pkg.structs}
    ctors: dict[str, list[Func]] = {}
    funcs: list[Func] = []
    for fn in pkg.funcs:
        owner = next((tid for tid in by_type if _returns_by_value(fn, tid)), None)
        if owner is None:
            funcs.append(fn)
        else:
            ctors.setdefault(owner, []).append(fn)

    if not ctors:
        return pkg

    structs = [
        replace(s, ctors=[*s.ctors, *ctors.get(pkg.type_id(s.name), [])]) for s in pkg.structs
    ]
    return replace(pkg, structs=structs, funcs=funcs)
