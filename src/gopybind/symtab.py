"""Symbol table manifests produced by the upstream Go analyzer.

A manifest is a mapping with two lists:

    {
      "packages": [
        {
          "path": "example.com/geo", "name": "geo", "doc": "...",
          "imports": ["example.com/units"],
          "consts": [{"name": "Pi", "type": "float64", "value": "3.14159"}],
          "vars": [{"name": "Origin", "type": "example.com/geo.Point"}],
          "interfaces": [{"name": "Shape", "methods": [<func>]}],
          "structs": [{"name": "Point", "fields": [{"name": "X", "type": "float64"}],
                       "methods": [<func>]}],
          "funcs": [<func>]
        }
      ],
      "symbols": [
        {"pkg": "example.com/geo", "pkg_name": "geo", "name": "Point", "kind": "struct"}
      ]
    }

where <func> is `{"name": ..., "params": [{"name": "a", "type": "int"}], "results": ["int"]}`.
Params may also be bare type strings, in which case they are named `arg0`, `arg1`, ...

The same mapping can be exchanged as MessagePack (`encode_symbol_table` /
`decode_symbol_table`).
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import msgpack

from .errors import SymbolTableError
from .symbols import (
    DECL_KINDS,
    TYPE_KINDS,
    Const,
    Field,
    Func,
    Interface,
    Package,
    PackageRef,
    Param,
    Struct,
    Symbol,
    SymbolTable,
    Var,
    associate_constructors,
)


def _str(obj: dict[str, Any], key: str, where: str, *, required: bool = True) -> str:
    v = obj.get(key)
    if v is None and not required:
        return ""
    if not isinstance(v, str) or (required and not v):
        raise SymbolTableError(f"{where}: expected non-empty string field {key!r}")
    return v


def _list(obj: dict[str, Any], key: str, where: str) -> list[Any]:
    v = obj.get(key)
    if v is None:
        return []
    if not isinstance(v, list):
        raise SymbolTableError(f"{where}: expected list field {key!r}")
    return v


def _dict(v: Any, where: str) -> dict[str, Any]:
    if not isinstance(v, dict):
        raise SymbolTableError(f"{where}: expected object")
    return v


def _parse_func(raw: Any, where: str) -> Func:
    obj = _dict(raw, where)
    name = _str(obj, "name", where)
    where = f"{where} {name}"
    params: list[Param] = []
    for i, p in enumerate(_list(obj, "params", where)):
        if isinstance(p, str):
            params.append(Param(name=f"arg{i}", type=p))
            continue
        p = _dict(p, f"{where} param {i}")
        pname = _str(p, "name", where, required=False) or f"arg{i}"
        params.append(Param(name=pname, type=_str(p, "type", f"{where} param {i}")))
    results = _list(obj, "results", where)
    if not all(isinstance(t, str) and t for t in results):
        raise SymbolTableError(f"{where}: results must be type strings")
    return Func(
        name=name,
        params=params,
        results=list(results),
        doc=_str(obj, "doc", where, required=False),
    )


def _parse_package(raw: Any, index: int) -> Package:
    obj = _dict(raw, f"package {index}")
    path = _str(obj, "path", f"package {index}")
    where = f"package {path}"

    imports = _list(obj, "imports", where)
    if not all(isinstance(x, str) for x in imports):
        raise SymbolTableError(f"{where}: imports must be strings")

    consts = []
    for c in _list(obj, "consts", where):
        c = _dict(c, f"{where} const")
        cw = f"{where} const"
        value = c.get("value")
        if isinstance(value, (bool, int, float)):
            # Keep the analyzer's literal; JSON producers may not quote it.
            value = json.dumps(value)
        if not isinstance(value, str):
            raise SymbolTableError(f"{cw}: expected string field 'value'")
        consts.append(
            Const(
                name=_str(c, "name", cw),
                type=_str(c, "type", cw),
                value=value,
                doc=_str(c, "doc", cw, required=False),
            )
        )

    vars_ = []
    for v in _list(obj, "vars", where):
        v = _dict(v, f"{where} var")
        vw = f"{where} var"
        vars_.append(
            Var(name=_str(v, "name", vw), type=_str(v, "type", vw), doc=_str(v, "doc", vw, required=False))
        )

    interfaces = []
    for i in _list(obj, "interfaces", where):
        i = _dict(i, f"{where} interface")
        name = _str(i, "name", f"{where} interface")
        iw = f"{where} interface {name}"
        interfaces.append(
            Interface(
                name=name,
                methods=[_parse_func(m, f"{iw} method") for m in _list(i, "methods", iw)],
                doc=_str(i, "doc", iw, required=False),
            )
        )

    structs = []
    for s in _list(obj, "structs", where):
        s = _dict(s, f"{where} struct")
        name = _str(s, "name", f"{where} struct")
        sw = f"{where} struct {name}"
        fields = []
        for f in _list(s, "fields", sw):
            f = _dict(f, f"{sw} field")
            fields.append(
                Field(
                    name=_str(f, "name", f"{sw} field"),
                    type=_str(f, "type", f"{sw} field"),
                    doc=_str(f, "doc", f"{sw} field", required=False),
                )
            )
        structs.append(
            Struct(
                name=name,
                fields=fields,
                methods=[_parse_func(m, f"{sw} method") for m in _list(s, "methods", sw)],
                ctors=[_parse_func(m, f"{sw} ctor") for m in _list(s, "ctors", sw)],
                doc=_str(s, "doc", sw, required=False),
            )
        )

    pkg = Package(
        path=path,
        name=_str(obj, "name", where),
        doc=_str(obj, "doc", where, required=False),
        imports=list(imports),
        consts=consts,
        vars=vars_,
        interfaces=interfaces,
        structs=structs,
        funcs=[_parse_func(f, f"{where} func") for f in _list(obj, "funcs", where)],
    )
    return associate_constructors(pkg)


def _parse_symbol(raw: Any, index: int) -> Symbol:
    where = f"symbol {index}"
    obj = _dict(raw, where)
    kind = _str(obj, "kind", where)
    if kind not in TYPE_KINDS and kind not in DECL_KINDS:
        raise SymbolTableError(f"{where}: unknown kind {kind!r}")
    return Symbol(
        name=_str(obj, "name", where),
        pkg=PackageRef(path=_str(obj, "pkg", where), name=_str(obj, "pkg_name", where)),
        kind=kind,
        elem=_str(obj, "elem", where, required=False),
        doc=_str(obj, "doc", where, required=False),
    )


def parse_manifest(manifest: dict[str, Any]) -> SymbolTable:
    manifest = _dict(manifest, "manifest")
    packages = [_parse_package(p, i) for i, p in enumerate(_list(manifest, "packages", "manifest"))]
    symbols = [_parse_symbol(s, i) for i, s in enumerate(_list(manifest, "symbols", "manifest"))]
    return SymbolTable(packages=packages, symbols=symbols)


def _dump_func(fn: Func) -> dict[str, Any]:
    return {
        "name": fn.name,
        "params": [{"name": p.name, "type": p.type} for p in fn.params],
        "results": list(fn.results),
        "doc": fn.doc,
    }


def dump_manifest(table: SymbolTable) -> dict[str, Any]:
    packages = []
    for p in table.packages:
        packages.append(
            {
                "path": p.path,
                "name": p.name,
                "doc": p.doc,
                "imports": list(p.imports),
                "consts": [{"name": c.name, "type": c.type, "value": c.value, "doc": c.doc} for c in p.consts],
                "vars": [{"name": v.name, "type": v.type, "doc": v.doc} for v in p.vars],
                "interfaces": [
                    {"name": i.name, "doc": i.doc, "methods": [_dump_func(m) for m in i.methods]}
                    for i in p.interfaces
                ],
                "structs": [
                    {
                        "name": s.name,
                        "doc": s.doc,
                        "fields": [{"name": f.name, "type": f.type, "doc": f.doc} for f in s.fields],
                        "methods": [_dump_func(m) for m in s.methods],
                        "ctors": [_dump_func(c) for c in s.ctors],
                    }
                    for s in p.structs
                ],
                "funcs": [_dump_func(f) for f in p.funcs],
            }
        )
    symbols = [
        {
            "pkg": s.pkg.path,
            "pkg_name": s.pkg.name,
            "name": s.name,
            "kind": s.kind,
            "elem": s.elem,
            "doc": s.doc,
        }
        for s in table.symbols
    ]
    return {"packages": packages, "symbols": symbols}


def encode_symbol_table(table: SymbolTable) -> bytes:
    return msgpack.packb(dump_manifest(table), use_bin_type=True)


def decode_symbol_table(payload: bytes) -> SymbolTable:
    try:
        obj = msgpack.unpackb(payload, raw=False)
    except Exception as e:  # noqa: BLE001 - boundary decoding error
        raise SymbolTableError(f"failed to decode symbol table: {e}") from e
    return parse_manifest(obj)


def load_symbol_table(path: str | Path) -> SymbolTable:
    """Load a symbol table manifest; `.json` files are JSON, anything else MessagePack."""
    path = Path(path)
    if not path.exists():
        raise SymbolTableError(f"symbol table not found at {path}")

    if path.suffix == ".json":
        try:
            obj = json.loads(path.read_text(encoding="utf-8"))
        except Exception as e:  # noqa: BLE001 - boundary parse
            raise SymbolTableError(f"failed to parse {path.name}: {e}") from e
        return parse_manifest(obj)
    return decode_symbol_table(path.read_bytes())
