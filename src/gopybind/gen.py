"""Binding generation pass.

One call to `generate` walks the symbol table once and writes:

- `<outname>.go`: cgo glue shared by every target package and external type
- `build.py`: pybindgen script producing the `_<outname>` extension module
- `<pkgname>.py`: one Python wrapper per target package
- `Makefile`: recipe that compiles the glue, runs pybindgen and links
- `__init__.py`: empty marker making the output directory a Python package

Errors never abort the pass. They are collected and raised together as a
single GenerationError once every artifact had its chance to be written.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import Callable, Iterator

from . import preamble
from .config import INT64_HANDLE, SUPPORTED_API_VERSIONS, GenOptions, HandleConfig
from .emit import Emitter
from .errors import ConfigError, DeclarationError, GenerationError, GoPyBindError, OutputDirError
from .partition import Partitioner
from .printer import Printer, write_out
from .symbols import Package, SymbolTable

logger = logging.getLogger(__name__)


class Section(str, Enum):
    TYPES = "Types"
    CONSTANTS = "Constants"
    VARIABLES = "Global Variables"
    INTERFACES = "Interfaces"
    STRUCTS = "Structs"
    CONSTRUCTORS = "Constructors"
    FUNCTIONS = "Functions"


# Order of the per-package sections in both the glue and the wrapper.
SECTION_ORDER: tuple[Section, ...] = (
    Section.TYPES,
    Section.CONSTANTS,
    Section.VARIABLES,
    Section.INTERFACES,
    Section.STRUCTS,
    Section.CONSTRUCTORS,
    Section.FUNCTIONS,
)

EXTERNAL_HEADER = "External Types Outside of Targeted Packages"


class ErrorList:
    """Accumulates every error of a generation pass, in order."""

    def __init__(self) -> None:
        self.errors: list[GoPyBindError] = []

    def __len__(self) -> int:
        return len(self.errors)

    def add(self, err: GoPyBindError | None) -> None:
        if err is None:
            return
        logger.warning("%s", err)
        self.errors.append(err)

    @contextmanager
    def collect(self, where: str | None = None) -> Iterator[None]:
        """Record a GoPyBindError raised inside the block and carry on.

        With `where` set, any other exception is recorded as a DeclarationError
        naming the declaration being emitted; without it, it propagates.
        """
        try:
            yield
        except GoPyBindError as e:
            self.add(e)
        except Exception as e:
            if where is None:
                raise
            logger.debug("unexpected error while emitting %s", where, exc_info=True)
            self.add(DeclarationError(f"{where}: unexpected error: {e!r}"))

    def error(self) -> GenerationError | None:
        if not self.errors:
            return None
        return GenerationError(self.errors)


class Generator:
    def __init__(self, *, table: SymbolTable, out_dir: Path, opts: GenOptions):
        self.table = table
        self.out_dir = Path(out_dir)
        self.opts = opts
        self.errs = ErrorList()
        self.partition = Partitioner(table)
        self.glue = Printer(f"{opts.outname}.go")
        self.build = Printer("build.py")
        self.makefile = Printer("Makefile")
        self.emitter = Emitter(
            table=table,
            opts=opts,
            partition=self.partition,
            glue=self.glue,
            build=self.build,
        )
        self.written: list[Path] = []

    def run(self) -> ErrorList:
        with self.errs.collect():
            self._make_out_dir()
        if self.opts.api_version not in SUPPORTED_API_VERSIONS:
            self.errs.add(
                ConfigError(f"unsupported c-python api version: {self.opts.api_version}")
            )

        self._gen_pre()
        self._gen_ext_types_glue()
        targets = {p.path: p.name for p in self.table.packages}
        for pkg in self.table.packages:
            self._gen_pkg(pkg, targets)
        self._gen_out()
        return self.errs

    def _make_out_dir(self) -> None:
        try:
            self.out_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OutputDirError(f"could not create output directory {self.out_dir}: {e}") from e

    def _write(self, printer: Printer) -> None:
        with self.errs.collect():
            self.written.append(write_out(self.out_dir, printer))

    def _gen_pre(self) -> None:
        # The glue preamble is rendered in _gen_out, after every declaration.
        self.build.write(preamble.build_preamble(self.opts))
        with self.errs.collect():
            self.makefile.write(preamble.makefile(self.opts))
        self._write(Printer("__init__.py"))

    def _gen_ext_types_glue(self) -> None:
        self.glue.printf("\n// ---- %s ---\n\n", EXTERNAL_HEADER)
        for sym in self.partition.external_types():
            with self.errs.collect(f"type {sym.goname}"):
                self.emitter.type_(sym, external=True, wrap_only=False)

    def _gen_ext_types_wrap(self, wrap: Printer) -> None:
        wrap.printf("\n# ---- %s ---\n\n", EXTERNAL_HEADER)
        for sym in self.partition.external_types():
            with self.errs.collect(f"type {sym.goname}"):
                self.emitter.type_(sym, external=True, wrap_only=True)

    def _gen_pkg(self, pkg: Package, targets: dict[str, str]) -> None:
        logger.debug("generating package %s (%s)", pkg.name, pkg.path)
        wrap = Printer(f"{pkg.name}.py")
        wrap.write(preamble.wrap_preamble(self.opts, pkg, targets))
        self.emitter.begin_package(pkg, wrap)
        try:
            self._gen_ext_types_wrap(wrap)
            self.glue.printf("\n// ---- Package: %s ---\n", pkg.name)
            for section in SECTION_ORDER:
                self.glue.printf("\n// ---- %s ---\n\n", section.value)
                wrap.printf("\n# ---- %s ---\n\n", section.value)
                for where, emit in self._section_items(pkg, section):
                    with self.errs.collect(where):
                        emit()
        finally:
            self.emitter.end_package()
        wrap.write("\n\n")
        self._write(wrap)

    def _section_items(
        self, pkg: Package, section: Section
    ) -> list[tuple[str, Callable[[], None]]]:
        em = self.emitter
        if section is Section.TYPES:
            return [
                (f"type {s.goname}", lambda s=s: em.type_(s, external=False, wrap_only=False))
                for s in self.partition.package_types(pkg.path)
            ]
        if section is Section.CONSTANTS:
            return [(f"const {pkg.name}.{c.name}", lambda c=c: em.const(c)) for c in pkg.consts]
        if section is Section.VARIABLES:
            return [(f"var {pkg.name}.{v.name}", lambda v=v: em.var(v)) for v in pkg.vars]
        if section is Section.INTERFACES:
            return [
                (f"interface {pkg.name}.{i.name}", lambda i=i: em.interface(i)) for i in pkg.interfaces
            ]
        if section is Section.STRUCTS:
            return [(f"struct {pkg.name}.{s.name}", lambda s=s: em.struct(s)) for s in pkg.structs]
        if section is Section.CONSTRUCTORS:
            return [
                (f"func {pkg.name}.{f.name}", lambda f=f: em.func(f)) for s in pkg.structs for f in s.ctors
            ]
        if section is Section.FUNCTIONS:
            return [(f"func {pkg.name}.{f.name}", lambda f=f: em.func(f)) for f in pkg.funcs]
        raise ValueError(f"unknown section {section!r}")

    def _gen_out(self) -> None:
        glue = Printer(self.glue.name)
        glue.write(preamble.go_preamble(self.opts, sorted(self.emitter.glue_imports)))
        glue.write(self.glue.getvalue())
        glue.write("\n\n")
        self.build.printf("\nmod.generate(open('%s.c', 'w'))\n\n", self.opts.outname)
        self.makefile.write("\n\n")
        self._write(glue)
        self._write(self.build)
        self._write(self.makefile)


def generate(
    *,
    table: SymbolTable,
    out_dir: str | Path,
    outname: str,
    cmdstr: str = "",
    vm: str = "python3",
    libext: str = ".so",
    api_version: int = 3,
    handle: HandleConfig = INT64_HANDLE,
) -> None:
    """Generate the glue, build script, wrappers and build recipe for `table`.

    Raises GenerationError, after writing everything that could be written,
    if any step failed.
    """
    opts = GenOptions(
        outname=outname,
        cmdstr=cmdstr,
        vm=vm,
        libext=libext,
        api_version=api_version,
        handle=handle,
    )
    gen = Generator(table=table, out_dir=Path(out_dir), opts=opts)
    errs = gen.run()
    logger.info(
        "generated %d file(s) for %d package(s) into %s",
        len(gen.written),
        len(table.packages),
        gen.out_dir,
    )
    err = errs.error()
    if err is not None:
        raise err
