"""Fixed headers of the generated artifacts.

Every function here is a pure function of the generation options; nothing is
written to disk.
"""

from __future__ import annotations

import os
import shlex

from .config import GenOptions
from .errors import ConfigError
from .symbols import Package

GO_PREAMBLE = """/*
cgo stubs for package %(outname)s.
File is generated by gopybind. Do not edit.
%(cmdstr)s
*/

package main

/*
#cgo pkg-config: %(libcfg)s
#define Py_LIMITED_API
#include <Python.h>
*/
import "C"
import (
	"github.com/go-python/gopy/gopyh" // handle registry
%(imports)s
)

func main() {}

// handle type used as the registry key, and its spelling at the C boundary
// (pybindgen spelling: %(py_handle)s)
type GoHandle %(go_handle)s
type CGoHandle %(cgo_handle)s

// boolGoToPy encodes a Go bool as a C char: true is 1, false is 0.
func boolGoToPy(b bool) C.char {
	if b {
		return 1
	}
	return 0
}

// boolPyToGo decodes a C char as a Go bool. Any nonzero value is true.
func boolPyToGo(b C.char) bool {
	return b != 0
}

"""

BUILD_PREAMBLE = """# python build stubs for package %(outname)s
# File is generated by gopybind. Do not edit.
# %(cmdstr)s

from pybindgen import retval, param, Module
import sys

mod = Module('%(ext_module)s')
mod.add_include('"%(outname)s_go.h"')
"""

WRAP_PREAMBLE = '''%(doc)s
# python wrapper for package %(pkgpath)s within overall package %(outname)s
# This is what you import to use the package.
# File is generated by gopybind. Do not edit.
# %(cmdstr)s

# the extension module must be imported from this directory so that
# dlopen can find %(outname)s_go%(libext)s next to it
import os, sys, inspect
cwd = os.getcwd()
currentdir = os.path.dirname(os.path.abspath(inspect.getfile(inspect.currentframe())))
os.chdir(currentdir)
import %(ext_module)s
os.chdir(cwd)

# to use this code in your end-user python file, import it as follows:
# from %(outname)s import %(pkgname)s
# and then refer to everything using the %(pkgname)s. prefix
# packages imported by this package listed below:

%(imports)s

class GoClass:
    """GoClass is the base class for all generated wrapper classes"""
    pass

'''

MAKEFILE = """# Makefile for python interface for package %(outname)s.
# File is generated by gopybind. Do not edit.
# %(cmdstr)s

GOCMD=go
GOBUILD=$(GOCMD) build
PYTHON=%(vm)s
PYTHON_CFG=$(PYTHON)-config
GCC=gcc
LIBEXT=%(libext)s

# get the flags used to build python:
CFLAGS = $(shell $(PYTHON_CFG) --cflags)
LDFLAGS = $(shell $(PYTHON_CFG) --ldflags)

all: gen build

gen:
	%(gencmd)s

build:
	- rm %(outname)s.c
	# compile the cgo glue into %(outname)s_go$(LIBEXT)
	$(GOBUILD) -buildmode=c-shared -ldflags="-s -w" -o %(outname)s_go$(LIBEXT) %(outname)s.go
	# run pybindgen on build.py to produce the CPython wrappers in %(outname)s.c
	# note: pip install pybindgen if this fails
	$(PYTHON) build.py
	# link %(ext_module)s$(LIBEXT) from the CPython wrappers and the cgo glue library
	$(GCC) %(outname)s.c %(link_flags)s %(outname)s_go$(LIBEXT) -o %(ext_module)s$(LIBEXT) $(CFLAGS) $(LDFLAGS)
"""

_OUTPUT_FLAGS = ("--output", "-output")


def libcfg_path(vm: str) -> str:
    """Return the pkg-config file of the interpreter at `vm`.

    `/usr/local/bin/python3` maps to `/usr/local/lib/pkgconfig/python3.pc`.
    """
    pypath, pyonly = os.path.split(vm)
    pyroot = os.path.split(os.path.normpath(pypath or "."))[0]
    return os.path.join(pyroot, "lib", "pkgconfig", pyonly + ".pc")


def generate_only_command(cmdstr: str) -> str:
    """Turn an invocation into one the build recipe can re-run in place.

    A `gopybind build` invocation becomes `gopybind gen`, and any output
    directory override is removed so the recipe regenerates next to itself.
    """
    try:
        args = shlex.split(cmdstr)
    except ValueError as e:
        raise ConfigError(f"cannot parse command line {cmdstr!r}: {e}") from e

    if args[:2] == ["gopybind", "build"]:
        args[1] = "gen"
    out: list[str] = []
    skip = False
    for a in args:
        if skip:
            skip = False
            continue
        if a in _OUTPUT_FLAGS:
            skip = True
            continue
        if a.startswith(tuple(f + "=" for f in _OUTPUT_FLAGS)):
            continue
        out.append(a)
    return shlex.join(out)


def go_preamble(opts: GenOptions, imports: list[str]) -> str:
    text = GO_PREAMBLE % {
        "outname": opts.outname,
        "cmdstr": opts.cmdstr,
        "libcfg": libcfg_path(opts.vm),
        "imports": "\n".join(f'\t"{p}"' for p in imports),
        "go_handle": opts.handle.go,
        "cgo_handle": opts.handle.cgo,
        "py_handle": opts.handle.py,
    }
    return text + f"// --- generated code for package: {opts.outname} below: ---\n\n"


def build_preamble(opts: GenOptions) -> str:
    return BUILD_PREAMBLE % {
        "outname": opts.outname,
        "cmdstr": opts.cmdstr,
        "ext_module": opts.ext_module,
    }


def wrap_preamble(opts: GenOptions, pkg: Package, targets: dict[str, str]) -> str:
    """Header of a package wrapper.

    `targets` maps target import paths to package names; only imports that are
    themselves targets get a `from <outname> import <name>` line.
    """
    doc = f'"""\n{pkg.doc}\n"""' if pkg.doc else ""
    imports = "".join(
        f"from {opts.outname} import {targets[ipath]}\n" for ipath in pkg.imports if ipath in targets
    )
    return WRAP_PREAMBLE % {
        "doc": doc,
        "outname": opts.outname,
        "cmdstr": opts.cmdstr,
        "pkgname": pkg.name,
        "pkgpath": pkg.path,
        "libext": opts.libext,
        "ext_module": opts.ext_module,
        "imports": imports,
    }


def makefile(opts: GenOptions) -> str:
    link_flags = "-dynamiclib" if opts.libext == ".dylib" else "-shared -fPIC"
    return MAKEFILE % {
        "outname": opts.outname,
        "cmdstr": opts.cmdstr,
        "gencmd": generate_only_command(opts.cmdstr),
        "vm": opts.vm,
        "libext": opts.libext,
        "ext_module": opts.ext_module,
        "link_flags": link_flags,
    }
