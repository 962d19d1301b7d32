from __future__ import annotations

import ast

import pytest

from conftest import COLOR, GEO


def _emitter(table, **kw):
    from gopybind.config import GenOptions
    from gopybind.emit import Emitter
    from gopybind.partition import Partitioner
    from gopybind.printer import Printer

    opts = GenOptions(outname="geo_py", **kw)
    glue = Printer("geo_py.go")
    build = Printer("build.py")
    em = Emitter(table=table, opts=opts, partition=Partitioner(table), glue=glue, build=build)
    wrap = Printer("geo.py")
    em.begin_package(table.packages[0], wrap)
    return em, glue, build, wrap


def _wrapper_parses(wrap) -> None:
    # The wrapper body only references names defined by the preamble.
    ast.parse("class GoClass:\n    pass\n" + wrap.getvalue())


def test_var_emits_getter_and_setter(table):
    em, glue, build, wrap = _emitter(table)
    count = next(v for v in table.packages[0].vars if v.name == "Count")
    em.var(count)

    g = glue.getvalue()
    assert "//export geo_Count\nfunc geo_Count() C.longlong {\n\ty := geo.Count\n\treturn C.longlong(y)\n}" in g
    assert "//export geo_Set_Count\nfunc geo_Set_Count(val C.longlong) {\n\tgeo.Count = int(val)\n}" in g
    b = build.getvalue()
    assert "mod.add_function('geo_Count', retval('int64_t'), [])" in b
    assert "mod.add_function('geo_Set_Count', None, [param('int64_t', 'val')])" in b
    w = wrap.getvalue()
    assert "def Count():" in w
    assert "def Set_Count(value):" in w
    _wrapper_parses(wrap)


def test_handle_var_wraps_result_in_class(table):
    em, glue, _build, wrap = _emitter(table)
    origin = next(v for v in table.packages[0].vars if v.name == "Origin")
    em.var(origin)

    assert "\ty := geo.Origin\n\treturn handleFromPtr_geo_Point(&y)" in glue.getvalue()
    assert "\tgeo.Origin = *ptrFromHandle_geo_Point(val)" in glue.getvalue()
    w = wrap.getvalue()
    assert "return Point(handle=_geo_py.geo_Origin())" in w
    assert "Origin is (0, 0)." in w
    _wrapper_parses(wrap)


def test_const_is_wrapper_only_without_setter(table):
    em, glue, build, wrap = _emitter(table)
    for c in table.packages[0].consts:
        em.const(c)

    assert glue.getvalue() == ""
    assert build.getvalue() == ""
    w = wrap.getvalue()
    assert "# Pi is close enough.\nPi = 3.14159\n" in w
    assert "Debug = False\n" in w
    assert "Set_Pi" not in w
    _wrapper_parses(wrap)


def test_func_with_error_result_sets_python_exception(table):
    em, glue, build, wrap = _emitter(table)
    parse = next(c for c in table.packages[0].structs[0].ctors if c.name == "Parse")
    em.func(parse)

    g = glue.getvalue()
    assert "func geo_Parse(s *C.char) CGoHandle {" in g
    assert "\t_cret, __err := geo.Parse(C.GoString(s))" in g
    assert "C.PyErr_SetString(C.PyExc_RuntimeError, C.CString(__err.Error()))" in g
    assert "\t\treturn CGoHandle(0)" in g
    assert "\treturn handleFromPtr_geo_Point(&_cret)" in g
    assert "mod.add_function('geo_Parse', retval('int64_t'), [param('char*', 's')])" in build.getvalue()
    assert "def Parse(s):\n    return Point(handle=_geo_py.geo_Parse(s))" in wrap.getvalue()


def test_void_func_and_bool_result(table):
    em, glue, build, wrap = _emitter(table)
    funcs = {f.name: f for f in table.packages[0].funcs}
    em.func(funcs["Reset"])
    em.func(funcs["IsZero"])

    g = glue.getvalue()
    assert "func geo_Reset() {\n\tgeo.Reset()\n}" in g
    assert "func geo_IsZero(p CGoHandle) C.char {" in g
    assert "\t_cret := geo.IsZero(*ptrFromHandle_geo_Point(p))\n\treturn boolGoToPy(_cret)" in g
    assert "mod.add_function('geo_Reset', None, [])" in build.getvalue()
    w = wrap.getvalue()
    assert "def Reset():\n    _geo_py.geo_Reset()" in w
    assert "def IsZero(p):\n    return _geo_py.geo_IsZero(p.handle)" in w


def test_struct_emits_fields_and_methods(table):
    em, glue, _build, wrap = _emitter(table)
    em.struct(table.packages[0].structs[0])

    g = glue.getvalue()
    assert "func geo_Point_X_Get(handle CGoHandle) C.double {" in g
    assert "\top.X = float64(val)" in g
    assert "\treturn handleFromPtr_units_Meter(&op.Len)" in g
    assert "func geo_Point_Dist(_handle CGoHandle, o CGoHandle) C.double {" in g
    assert "\t_cret := (*ptrFromHandle_geo_Point(_handle)).Dist(*ptrFromHandle_geo_Point(o))" in g

    w = wrap.getvalue()
    assert "class Point(GoClass):" in w
    assert "self.handle = _geo_py.geo_Point_CTor()" in w
    assert "return units.Meter(handle=_geo_py.geo_Point_Len_Get(self.handle))" in w
    assert "return color_RGB(handle=_geo_py.geo_Point_Tint_Get(self.handle))" in w
    assert "    def Dist(self, o):\n        return _geo_py.geo_Point_Dist(self.handle, o.handle)" in w
    _wrapper_parses(wrap)


def test_interface_class_requires_handle(table):
    em, glue, _build, wrap = _emitter(table)
    em.interface(table.packages[0].interfaces[0])

    assert "_cret := (*ptrFromHandle_geo_Shape(_handle)).Area()" in glue.getvalue()
    w = wrap.getvalue()
    assert "class Shape(GoClass):" in w
    assert "raise TypeError('geo_Shape: a handle= argument is required')" in w
    _wrapper_parses(wrap)


def test_slice_type_gets_len_and_elem(table):
    em, glue, build, wrap = _emitter(table)
    em.type_(table.sym(f"{GEO}.Names"), external=False, wrap_only=False)

    g = glue.getvalue()
    assert "func ptrFromHandle_geo_Names(h CGoHandle) *geo.Names {" in g
    assert "func geo_Names_len(handle CGoHandle) C.longlong {" in g
    assert "func geo_Names_elem(handle CGoHandle, _idx C.longlong) *C.char {" in g
    assert "mod.add_function('geo_Names_elem', retval('char*'), [param('int64_t', 'handle'), param('int64_t', '_idx')])" in build.getvalue()
    w = wrap.getvalue()
    assert "class Names(GoClass):" in w
    assert "def __len__(self):" in w
    _wrapper_parses(wrap)


def test_target_struct_type_has_no_class_in_types_section(table):
    em, glue, _build, wrap = _emitter(table)
    em.type_(table.sym(f"{GEO}.Point"), external=False, wrap_only=False)

    assert "func geo_Point_CTor() CGoHandle {" in glue.getvalue()
    assert wrap.getvalue() == ""


def test_external_type_glue_and_wrapper_are_separate(table):
    em, glue, _build, wrap = _emitter(table)
    palette = table.sym(f"{COLOR}.Palette")
    em.end_package()
    em.type_(palette, external=True, wrap_only=False)
    assert "func color_Palette_elem(handle CGoHandle, _idx C.longlong) CGoHandle {" in glue.getvalue()
    assert "\treturn handleFromPtr_color_RGB(&_cret)" in glue.getvalue()
    assert wrap.getvalue() == ""

    em.begin_package(table.packages[0], wrap)
    before = glue.getvalue()
    em.type_(palette, external=True, wrap_only=True)
    assert glue.getvalue() == before
    w = wrap.getvalue()
    assert "class color_Palette(GoClass):" in w
    assert "return color_RGB(handle=_geo_py.color_Palette_elem(self.handle, idx))" in w
    _wrapper_parses(wrap)


def test_emitting_a_type_twice_is_rejected(table):
    from gopybind.errors import DeclarationError

    em, glue, _build, wrap = _emitter(table)
    names = table.sym(f"{GEO}.Names")
    em.type_(names, external=False, wrap_only=False)
    with pytest.raises(DeclarationError, match=r"geo\.Names: already emitted into geo_py\.go"):
        em.type_(names, external=False, wrap_only=False)
    assert glue.getvalue().count("func ptrFromHandle_geo_Names(") == 1
    assert wrap.getvalue().count("class Names(GoClass):") == 1


def test_unsupported_declaration_leaves_no_partial_output(table):
    from gopybind.errors import DeclarationError
    from gopybind.symbols import Func, Param

    em, glue, build, wrap = _emitter(table)
    bad = Func(name="Bad", params=[Param("a", "int"), Param("c", "chan int")], results=["int"])
    with pytest.raises(DeclarationError, match=r"func geo\.Bad param c: unsupported type 'chan int'"):
        em.func(bad)
    assert glue.getvalue() == ""
    assert build.getvalue() == ""
    assert wrap.getvalue() == ""


def test_multiple_results_are_rejected(table):
    from gopybind.errors import DeclarationError
    from gopybind.symbols import Func

    em, *_ = _emitter(table)
    with pytest.raises(DeclarationError, match=r"multiple return values"):
        em.func(Func(name="Pair", results=["int", "string"]))


def test_string_handle_config_flows_into_emission(table):
    from gopybind.config import STRING_HANDLE

    em, _glue, build, _wrap = _emitter(table, handle=STRING_HANDLE)
    em.struct(table.packages[0].structs[0])
    assert "mod.add_function('geo_Point_Dist', retval('double'), [param('char*', '_handle'), param('char*', 'o')])" in build.getvalue()


def test_keyword_field_names_are_renamed(table):
    from gopybind.symbols import Field, Struct

    em, glue, _build, wrap = _emitter(table)
    em.struct(Struct(name="Point", fields=[Field("None", "int"), Field("True", "bool")]))

    w = wrap.getvalue()
    assert "    def None_(self):" in w
    assert "    @None_.setter" in w
    assert "    def True_(self, value):" in w
    assert "self.True_ = args[1]" in w
    assert "func geo_Point_None_Get(handle CGoHandle) C.longlong {" in glue.getvalue()
    assert "\top.True = boolPyToGo(val)" in glue.getvalue()
    _wrapper_parses(wrap)


def test_glue_imports_track_referenced_packages(table):
    from conftest import UNITS

    em, glue, _build, _wrap = _emitter(table)
    for c in table.packages[0].consts:
        em.const(c)
    assert em.glue_imports == set()

    em.type_(table.sym(f"{UNITS}.Meter"), external=False, wrap_only=False)
    assert em.glue_imports == {UNITS}
    em.var(table.packages[0].vars[1])
    assert em.glue_imports == {UNITS, GEO}
