from __future__ import annotations

import copy
from typing import Any

import pytest

GEO = "example.com/geo"
UNITS = "example.com/units"
COLOR = "example.com/color"

_MANIFEST: dict[str, Any] = {
    "packages": [
        {
            "path": GEO,
            "name": "geo",
            "doc": "Package geo does plane geometry.",
            "imports": [UNITS, COLOR],
            "consts": [
                {"name": "Pi", "type": "float64", "value": "3.14159", "doc": "Pi is close enough."},
                {"name": "Debug", "type": "bool", "value": "false"},
            ],
            "vars": [
                {"name": "Origin", "type": f"{GEO}.Point", "doc": "Origin is (0, 0)."},
                {"name": "Count", "type": "int"},
            ],
            "interfaces": [
                {
                    "name": "Shape",
                    "doc": "Shape has an area.",
                    "methods": [{"name": "Area", "params": [], "results": ["float64"]}],
                }
            ],
            "structs": [
                {
                    "name": "Point",
                    "doc": "Point is a 2D point.",
                    "fields": [
                        {"name": "X", "type": "float64"},
                        {"name": "Y", "type": "float64"},
                        {"name": "Len", "type": f"{UNITS}.Meter"},
                        {"name": "Tint", "type": f"{COLOR}.RGB"},
                    ],
                    "methods": [
                        {
                            "name": "Dist",
                            "params": [{"name": "o", "type": f"{GEO}.Point"}],
                            "results": ["float64"],
                        }
                    ],
                }
            ],
            "funcs": [
                {
                    "name": "NewPoint",
                    "params": [{"name": "x", "type": "float64"}, {"name": "y", "type": "float64"}],
                    "results": [f"{GEO}.Point"],
                    "doc": "NewPoint returns a point.",
                },
                {"name": "NewPointPtr", "params": ["float64", "float64"], "results": [f"*{GEO}.Point"]},
                {"name": "Parse", "params": [{"name": "s", "type": "string"}], "results": [f"{GEO}.Point", "error"]},
                {
                    "name": "Add",
                    "params": [{"name": "a", "type": "int"}, {"name": "b", "type": "int"}],
                    "results": ["int"],
                },
                {"name": "IsZero", "params": [{"name": "p", "type": f"{GEO}.Point"}], "results": ["bool"]},
                {"name": "Reset", "params": [], "results": []},
                {"name": "Names", "params": [], "results": [f"{GEO}.Names"]},
            ],
        },
        {
            "path": UNITS,
            "name": "units",
            "doc": "",
            "imports": [],
            "structs": [{"name": "Meter", "fields": [{"name": "V", "type": "float64"}]}],
            "funcs": [
                {"name": "ToFeet", "params": [{"name": "m", "type": f"{UNITS}.Meter"}], "results": ["float64"]}
            ],
        },
    ],
    # Global order deliberately interleaves packages.
    "symbols": [
        {"pkg": GEO, "pkg_name": "geo", "name": "Point", "kind": "struct"},
        {"pkg": COLOR, "pkg_name": "color", "name": "RGB", "kind": "struct"},
        {"pkg": GEO, "pkg_name": "geo", "name": "Shape", "kind": "interface"},
        {"pkg": UNITS, "pkg_name": "units", "name": "Meter", "kind": "struct"},
        {"pkg": COLOR, "pkg_name": "color", "name": "Blend", "kind": "func"},
        {"pkg": COLOR, "pkg_name": "color", "name": "Palette", "kind": "slice", "elem": f"{COLOR}.RGB"},
        {"pkg": GEO, "pkg_name": "geo", "name": "Names", "kind": "slice", "elem": "string"},
        {"pkg": GEO, "pkg_name": "geo", "name": "Add", "kind": "func"},
    ],
}


def sample_manifest() -> dict[str, Any]:
    return copy.deepcopy(_MANIFEST)


@pytest.fixture
def manifest() -> dict[str, Any]:
    return sample_manifest()


@pytest.fixture
def table():
    from gopybind.symbols import SymbolTable

    return SymbolTable.from_manifest(sample_manifest())
