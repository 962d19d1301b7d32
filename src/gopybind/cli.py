from __future__ import annotations

import argparse
import importlib.metadata
import logging
import shlex
import sys
from pathlib import Path

from .config import HANDLES, default_handle, default_libext, default_python, handle_config
from .errors import GoPyBindError


def main() -> None:
    parser = argparse.ArgumentParser(prog="gopybind")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    sub = parser.add_subparsers(dest="cmd", required=True)

    sub.add_parser("version", help="Print gopybind version.")

    p_gen = sub.add_parser(
        "gen",
        help="Generate cgo glue, pybindgen build script, wrappers and Makefile from a symbol table.",
    )
    p_gen.add_argument(
        "--symbols",
        required=True,
        help="Symbol table manifest produced by the Go analyzer (.json, or MessagePack otherwise).",
    )
    p_gen.add_argument("--output", default=".", help="Output directory (default: current directory).")
    p_gen.add_argument("--name", required=True, help="Name of the generated Python package.")
    p_gen.add_argument(
        "--vm",
        default=None,
        help="Python interpreter the Makefile builds against (default: GOPYBIND_PYTHON or python3).",
    )
    p_gen.add_argument(
        "--libext",
        default=None,
        help="Shared library extension (default: GOPYBIND_LIBEXT or the host platform's).",
    )
    p_gen.add_argument("--api-version", type=int, default=3, help="C-Python API version (only 3).")
    p_gen.add_argument(
        "--handle",
        choices=sorted(HANDLES),
        default=None,
        help="Handle representation (default: GOPYBIND_HANDLE or int64).",
    )

    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.cmd == "version":
        try:
            print(importlib.metadata.version("gopybind"))
        except importlib.metadata.PackageNotFoundError:
            print("0.0.0")
        return

    if args.cmd == "gen":
        from .gen import generate
        from .symtab import load_symbol_table

        cmdstr = shlex.join(["gopybind", *sys.argv[1:]])
        try:
            table = load_symbol_table(Path(args.symbols))
            generate(
                table=table,
                out_dir=Path(args.output),
                outname=args.name,
                cmdstr=cmdstr,
                vm=args.vm or default_python(),
                libext=args.libext or default_libext(),
                api_version=args.api_version,
                handle=handle_config(args.handle) if args.handle else default_handle(),
            )
        except GoPyBindError as e:
            raise SystemExit(f"gopybind: {e}") from None
        return
