"""Per-declaration emitters.

Each emission renders its glue (cgo), build-script (pybindgen) and wrapper
(Python) text completely before writing any of it, so a declaration that
cannot be bound raises DeclarationError without leaving partial output.
"""

from __future__ import annotations

import keyword
from dataclasses import dataclass, field

from .boundary import GoType, TypeMap
from .config import GenOptions
from .errors import DeclarationError
from .partition import Partitioner
from .printer import Printer
from .symbols import Const, Func, Interface, Package, Param, Struct, Symbol, SymbolTable, Var

IND = "    "


@dataclass
class _Out:
    glue: list[str] = field(default_factory=list)
    build: list[str] = field(default_factory=list)
    wrap: list[str] = field(default_factory=list)
    imports: set[str] = field(default_factory=set)  # package paths the glue names


def _pyname(name: str) -> str:
    return f"{name}_" if keyword.iskeyword(name) else name


def _docstring(doc: str, indent: str) -> list[str]:
    doc = doc.strip()
    if not doc:
        return []
    doc = doc.replace("\\", "\\\\").replace('"""', '\\"\\"\\"')
    lines = doc.splitlines()
    if len(lines) == 1:
        return [f'{indent}"""{lines[0]}"""']
    return [f'{indent}"""{lines[0]}', *[f"{indent}{ln}" if ln else "" for ln in lines[1:]], f'{indent}"""']


def _py_const_value(c: Const) -> str:
    if c.value == "true":
        return "True"
    if c.value == "false":
        return "False"
    return c.value


class Emitter:
    def __init__(
        self,
        *,
        table: SymbolTable,
        opts: GenOptions,
        partition: Partitioner,
        glue: Printer,
        build: Printer,
    ):
        self.table = table
        self.opts = opts
        self.partition = partition
        self.types = TypeMap(table, opts.handle)
        self.glue = glue
        self.build = build
        self.wrap: Printer | None = None
        self.pkg: Package | None = None
        self._ext = opts.ext_module
        self.glue_imports: set[str] = set()

    # -- package scope

    def begin_package(self, pkg: Package, wrap: Printer) -> None:
        self.pkg = pkg
        self.wrap = wrap

    def end_package(self) -> None:
        self.pkg = None
        self.wrap = None

    # -- helpers

    def _resolve(self, t: str, where: str) -> GoType:
        try:
            return self.types.resolve(t)
        except DeclarationError as e:
            raise DeclarationError(f"{where}: {e}") from None

    def _py_class(self, sym: Symbol) -> str | None:
        """Python class wrapping handles of `sym` in the current wrapper, if reachable."""
        if self.pkg is not None and sym.pkg.path == self.pkg.path:
            return _pyname(sym.name)
        if sym.pkg.path in self.partition.targets:
            if self.pkg is not None and sym.pkg.path in self.pkg.imports:
                return f"{sym.pkg.name}.{_pyname(sym.name)}"
            return None
        return sym.cname

    def _wrap_result(self, gt: GoType | None, expr: str) -> str:
        if gt is None or gt.sym is None:
            return expr
        cls = self._py_class(gt.sym)
        if cls is None:
            return expr
        return f"{cls}(handle={expr})"

    def _claim(self, artifacts: list[str], sym: Symbol) -> None:
        for a in artifacts:
            if sym.id in self.partition.emitted(a):
                raise DeclarationError(f"{sym.goname}: already emitted into {a}")
        for a in artifacts:
            self.partition.claim(a, sym)

    def _commit(self, out: _Out) -> None:
        if out.glue:
            self.glue.lines(out.glue)
            self.glue_imports |= out.imports
        if out.build:
            self.build.lines(out.build)
        if out.wrap:
            if self.wrap is None:
                raise DeclarationError("wrapper output requested outside of a package")
            self.wrap.lines(out.wrap)

    def _add_function(self, cname: str, ret: str | None, params: list[tuple[str, str]]) -> str:
        rv = f"retval('{ret}')" if ret else "None"
        ps = ", ".join(f"param('{t}', '{n}')" for t, n in params)
        return f"mod.add_function('{cname}', {rv}, [{ps}])"

    def _set_value(self, target: str, indent: str) -> list[str]:
        return [
            f"{indent}if isinstance(value, GoClass):",
            f"{indent}{IND}{target}(value.handle)",
            f"{indent}else:",
            f"{indent}{IND}{target}(value)",
        ]

    def _init_method(self, cname: str, *, ctor: bool, fields: list[str] | None = None) -> list[str]:
        lines = [
            f"{IND}def __init__(self, *args, **kwargs):",
            f'{IND}{IND}"""',
            f"{IND}{IND}handle=A Go-side object is always initialized with an explicit handle=arg",
            f"{IND}{IND}otherwise a new Go object is constructed, with fields set from args in",
            f"{IND}{IND}field order or from named kwargs",
            f'{IND}{IND}"""',
            f"{IND}{IND}if len(kwargs) == 1 and 'handle' in kwargs:",
            f"{IND}{IND}{IND}self.handle = kwargs['handle']",
            f"{IND}{IND}elif len(args) == 1 and isinstance(args[0], GoClass):",
            f"{IND}{IND}{IND}self.handle = args[0].handle",
            f"{IND}{IND}else:",
        ]
        if not ctor:
            lines.append(f"{IND}{IND}{IND}raise TypeError('{cname}: a handle= argument is required')")
            return lines
        lines.append(f"{IND}{IND}{IND}self.handle = {self._ext}.{cname}_CTor()")
        for i, name in enumerate(fields or []):
            lines.append(f"{IND}{IND}{IND}if {i} < len(args):")
            lines.append(f"{IND}{IND}{IND}{IND}self.{name} = args[{i}]")
            lines.append(f"{IND}{IND}{IND}if {name!r} in kwargs:")
            lines.append(f"{IND}{IND}{IND}{IND}self.{name} = kwargs[{name!r}]")
        return lines

    def _callable(
        self,
        out: _Out,
        *,
        cname: str,
        call: str,
        fn: Func,
        where: str,
        recv: Symbol | None = None,
        indent: str = "",
    ) -> None:
        """Render one exported function plus its pybindgen entry and Python def."""
        results = list(fn.results)
        has_err = bool(results) and results[-1] == "error"
        if has_err:
            results = results[:-1]
        if len(results) > 1:
            raise DeclarationError(f"{where}: multiple return values are not supported")
        ret = self._resolve(results[0], f"{where} result") if results else None
        params: list[tuple[Param, GoType]] = [
            (p, self._resolve(p.type, f"{where} param {p.name}")) for p in fn.params
        ]

        cparams = [f"{p.name} {gt.cgo}" for p, gt in params]
        bparams = [(gt.py, p.name) for p, gt in params]
        if recv is not None:
            cparams.insert(0, "_handle CGoHandle")
            bparams.insert(0, (self.opts.handle.py, "_handle"))
            call = f"(*ptrFromHandle_{recv.cname}(_handle)).{call}"
        args = ", ".join(gt.from_c(p.name) for p, gt in params)
        invoke = f"{call}({args})"
        seterr = "\t\tC.PyErr_SetString(C.PyExc_RuntimeError, C.CString(__err.Error()))"

        g = out.glue
        g.append(f"//export {cname}")
        g.append(f"func {cname}({', '.join(cparams)}){' ' + ret.cgo if ret else ''} {{")
        if ret is None and not has_err:
            g.append(f"\t{invoke}")
        elif ret is None:
            g += [f"\t__err := {invoke}", "\tif __err != nil {", seterr, "\t}"]
        elif not has_err:
            g += [f"\t_cret := {invoke}", f"\treturn {ret.to_c('_cret')}"]
        else:
            g += [
                f"\t_cret, __err := {invoke}",
                "\tif __err != nil {",
                seterr,
                f"\t\treturn {ret.c_zero()}",
                "\t}",
                f"\treturn {ret.to_c('_cret')}",
            ]
        g += ["}", ""]

        out.build.append(self._add_function(cname, ret.py if ret else None, bparams))

        pyargs = [_pyname(p.name) for p, _ in params]
        callargs = [f"{_pyname(p.name)}.handle" if gt.is_handle else _pyname(p.name) for p, gt in params]
        if recv is not None:
            pyargs.insert(0, "self")
            callargs.insert(0, "self.handle")
        w = out.wrap
        w.append(f"{indent}def {_pyname(fn.name)}({', '.join(pyargs)}):")
        w += _docstring(fn.doc, indent + IND)
        ccall = f"{self._ext}.{cname}({', '.join(callargs)})"
        if ret is None:
            w.append(f"{indent}{IND}{ccall}")
        else:
            w.append(f"{indent}{IND}return {self._wrap_result(ret, ccall)}")
        w.append("")

    # -- declarations

    def type_(self, sym: Symbol, *, external: bool, wrap_only: bool) -> None:
        """Emit a type symbol.

        wrap_only emits only the Python shadow class (external wrapper pass).
        Otherwise glue and build-script constructs are emitted, plus the shadow
        class for target types that are not structs or interfaces; those get
        their classes in their own sections.
        """
        out = _Out()
        c = sym.cname
        where = f"type {sym.goname}"
        h = self.opts.handle
        elem = None
        if sym.kind == "slice":
            if not sym.elem:
                raise DeclarationError(f"{where}: slice type without element type")
            elem = self._resolve(sym.elem, f"{where} element")

        artifacts: list[str] = []
        if not wrap_only:
            artifacts.append(self.glue.name)
            out.imports.add(sym.pkg.path)
            out.glue += [
                f"// --- wrapping {sym.kind} type: {sym.goname} ---",
                "",
                f"// ptrFromHandle_{c} returns the *{sym.goname} registered under handle h",
                f"func ptrFromHandle_{c}(h CGoHandle) *{sym.goname} {{",
                f'\tp := gopyh.VarFromHandle((gopyh.CGoHandle)(h), "{sym.goname}")',
                "\tif p == nil {",
                "\t\treturn nil",
                "\t}",
                f"\treturn p.(*{sym.goname})",
                "}",
                "",
                f"// handleFromPtr_{c} registers p, a *{sym.goname}, and returns its handle",
                f"func handleFromPtr_{c}(p interface{{}}) CGoHandle {{",
                f'\treturn CGoHandle(gopyh.Register("{sym.goname}", p))',
                "}",
                "",
            ]
            if sym.kind != "interface":
                out.glue += [
                    f"//export {c}_CTor",
                    f"func {c}_CTor() CGoHandle {{",
                    f"\treturn handleFromPtr_{c}(new({sym.goname}))",
                    "}",
                    "",
                ]
                out.build.append(self._add_function(f"{c}_CTor", h.py, []))
            if sym.kind in {"slice", "map"}:
                out.glue += [
                    f"//export {c}_len",
                    f"func {c}_len(handle CGoHandle) C.longlong {{",
                    f"\treturn C.longlong(len(*ptrFromHandle_{c}(handle)))",
                    "}",
                    "",
                ]
                out.build.append(self._add_function(f"{c}_len", "int64_t", [(h.py, "handle")]))
            if elem is not None:
                out.glue += [
                    f"//export {c}_elem",
                    f"func {c}_elem(handle CGoHandle, _idx C.longlong) {elem.cgo} {{",
                    f"\ts := *ptrFromHandle_{c}(handle)",
                    "\t_cret := s[int(_idx)]",
                    f"\treturn {elem.to_c('_cret')}",
                    "}",
                    "",
                ]
                out.build.append(
                    self._add_function(f"{c}_elem", elem.py, [(h.py, "handle"), ("int64_t", "_idx")])
                )

        with_class = wrap_only or (not external and sym.kind not in {"struct", "interface"})
        if with_class:
            if self.wrap is None:
                raise DeclarationError(f"{where}: wrapper class requested outside of a package")
            artifacts.append(self.wrap.name)
            pyname = c if external else _pyname(sym.name)
            w = out.wrap
            w.append(f"# Python type for {sym.kind} {sym.goname}")
            w.append(f"class {pyname}(GoClass):")
            w += _docstring(sym.doc, IND)
            w += self._init_method(c, ctor=sym.kind != "interface")
            if sym.kind in {"slice", "map"}:
                w += ["", f"{IND}def __len__(self):", f"{IND}{IND}return {self._ext}.{c}_len(self.handle)"]
            if elem is not None:
                item = self._wrap_result(elem, f"{self._ext}.{c}_elem(self.handle, idx)")
                w += [
                    "",
                    f"{IND}def __getitem__(self, idx):",
                    f"{IND}{IND}if idx < 0 or idx >= len(self):",
                    f"{IND}{IND}{IND}raise IndexError('slice index out of range')",
                    f"{IND}{IND}return {item}",
                ]
            w += ["", ""]

        self._claim(artifacts, sym)
        self._commit(out)

    def const(self, c: Const) -> None:
        """Constants are copied into the wrapper once; there is no setter."""
        out = _Out()
        for ln in c.doc.strip().splitlines():
            out.wrap.append(f"# {ln}".rstrip())
        out.wrap.append(f"{_pyname(c.name)} = {_py_const_value(c)}")
        self._commit(out)

    def var(self, v: Var) -> None:
        """A package variable becomes a getter and a setter function."""
        assert self.pkg is not None
        pkg = self.pkg
        where = f"var {pkg.name}.{v.name}"
        vt = self._resolve(v.type, where)
        get_name = f"{pkg.name}_{v.name}"
        set_name = f"{pkg.name}_Set_{v.name}"
        out = _Out(imports={pkg.path})
        out.glue += [
            f"//export {get_name}",
            f"func {get_name}() {vt.cgo} {{",
            f"\ty := {pkg.name}.{v.name}",
            f"\treturn {vt.to_c('y')}",
            "}",
            "",
            f"//export {set_name}",
            f"func {set_name}(val {vt.cgo}) {{",
            f"\t{pkg.name}.{v.name} = {vt.from_c('val')}",
            "}",
            "",
        ]
        out.build.append(self._add_function(get_name, vt.py, []))
        out.build.append(self._add_function(set_name, None, [(vt.py, "val")]))

        doc = f"\n{v.doc.strip()}" if v.doc.strip() else ""
        out.wrap.append(f"def {_pyname(v.name)}():")
        out.wrap += _docstring(f"{v.name} gets the Go package variable {pkg.name}.{v.name}{doc}", IND)
        out.wrap.append(f"{IND}return {self._wrap_result(vt, f'{self._ext}.{get_name}()')}")
        out.wrap.append("")
        out.wrap.append(f"def Set_{v.name}(value):")
        out.wrap += _docstring(f"Set_{v.name} sets the Go package variable {pkg.name}.{v.name}{doc}", IND)
        out.wrap += self._set_value(f"{self._ext}.{set_name}", IND)
        out.wrap.append("")
        self._commit(out)

    def _type_symbol(self, name: str, where: str) -> Symbol:
        assert self.pkg is not None
        sym = self.table.sym(self.pkg.type_id(name))
        if sym is None:
            raise DeclarationError(f"{where}: no type symbol for {self.pkg.path}.{name}")
        return sym

    def interface(self, ifc: Interface) -> None:
        assert self.pkg is not None and self.wrap is not None
        where = f"interface {self.pkg.name}.{ifc.name}"
        sym = self._type_symbol(ifc.name, where)
        out = _Out()
        out.wrap.append(f"# Python type for interface {sym.goname}")
        out.wrap.append(f"class {_pyname(ifc.name)}(GoClass):")
        out.wrap += _docstring(ifc.doc, IND)
        out.wrap += self._init_method(sym.cname, ctor=False)
        out.wrap.append("")
        for m in ifc.methods:
            self._callable(
                out,
                cname=f"{sym.cname}_{m.name}",
                call=m.name,
                fn=m,
                where=f"{where} method {m.name}",
                recv=sym,
                indent=IND,
            )
        out.wrap.append("")
        self._claim([self.wrap.name], sym)
        self._commit(out)

    def struct(self, s: Struct) -> None:
        assert self.pkg is not None and self.wrap is not None
        where = f"struct {self.pkg.name}.{s.name}"
        sym = self._type_symbol(s.name, where)
        c = sym.cname
        h = self.opts.handle
        fields = s.fields
        out = _Out()
        out.wrap.append(f"# Python type for struct {sym.goname}")
        out.wrap.append(f"class {_pyname(s.name)}(GoClass):")
        out.wrap += _docstring(s.doc, IND)
        out.wrap += self._init_method(c, ctor=True, fields=[_pyname(f.name) for f in fields])
        out.wrap.append("")

        for f in fields:
            ft = self._resolve(f.type, f"{where} field {f.name}")
            get_name = f"{c}_{f.name}_Get"
            set_name = f"{c}_{f.name}_Set"
            out.glue += [
                f"//export {get_name}",
                f"func {get_name}(handle CGoHandle) {ft.cgo} {{",
                f"\top := ptrFromHandle_{c}(handle)",
                f"\treturn {ft.to_c(f'op.{f.name}')}",
                "}",
                "",
                f"//export {set_name}",
                f"func {set_name}(handle CGoHandle, val {ft.cgo}) {{",
                f"\top := ptrFromHandle_{c}(handle)",
                f"\top.{f.name} = {ft.from_c('val')}",
                "}",
                "",
            ]
            out.build.append(self._add_function(get_name, ft.py, [(h.py, "handle")]))
            out.build.append(self._add_function(set_name, None, [(h.py, "handle"), (ft.py, "val")]))

            pyf = _pyname(f.name)
            out.wrap.append(f"{IND}@property")
            out.wrap.append(f"{IND}def {pyf}(self):")
            out.wrap += _docstring(f.doc, IND + IND)
            out.wrap.append(
                f"{IND}{IND}return {self._wrap_result(ft, f'{self._ext}.{get_name}(self.handle)')}"
            )
            out.wrap.append("")
            out.wrap.append(f"{IND}@{pyf}.setter")
            out.wrap.append(f"{IND}def {pyf}(self, value):")
            out.wrap += [
                f"{IND}{IND}if isinstance(value, GoClass):",
                f"{IND}{IND}{IND}{self._ext}.{set_name}(self.handle, value.handle)",
                f"{IND}{IND}else:",
                f"{IND}{IND}{IND}{self._ext}.{set_name}(self.handle, value)",
                "",
            ]

        for m in s.methods:
            self._callable(
                out,
                cname=f"{c}_{m.name}",
                call=m.name,
                fn=m,
                where=f"{where} method {m.name}",
                recv=sym,
                indent=IND,
            )
        out.wrap.append("")
        self._claim([self.wrap.name], sym)
        self._commit(out)

    def func(self, fn: Func) -> None:
        """Free functions and struct constructors."""
        assert self.pkg is not None
        pkg = self.pkg
        out = _Out(imports={pkg.path})
        self._callable(
            out,
            cname=f"{pkg.name}_{fn.name}",
            call=f"{pkg.name}.{fn.name}",
            fn=fn,
            where=f"func {pkg.name}.{fn.name}",
        )
        self._commit(out)
