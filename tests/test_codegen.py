"""
Unit tests for mdx_bundler/codegen.py - PSX to vdom Python.
"""
import ast

import pytest

from mdx_bundler.codegen import CodeGenerator, bound_names
from mdx_bundler.errors import TransformError


class TestCodeGenerator:
    """Tests for CodeGenerator.transform()."""

    @pytest.fixture
    def generator(self):
        return CodeGenerator()

    def test_unbound_component_is_resolved_at_runtime(self, generator):
        """A tag nothing binds is looked up with resolveComponent."""
        result = generator.transform("def App(props):\n    return <Foo/>\n")
        assert result.startswith(
            "from vdom import resolveComponent as _resolveComponent, createVNode as _createVNode\n")
        assert "_createVNode(_resolveComponent('Foo'), None)" in result

    def test_bound_component_is_referenced(self, generator):
        """A tag bound by an import is referenced directly."""
        source = "from widgets import Foo\n\ndef App(props):\n    return <Foo/>\n"
        result = generator.transform(source)
        assert "_createVNode(Foo, None)" in result
        assert "_resolveComponent" not in result

    def test_names_bound_in_other_scopes_count(self, generator):
        """Bindings inside functions also count as bound."""
        source = "def App(props):\n    Local = props['as']\n    return <Local/>\n"
        assert "_createVNode(Local, None)" in generator.transform(source)

    def test_text_children_use_text_factory(self, generator):
        """String children go through createTextVNode."""
        result = generator.transform("x = <p>hi</p>\n")
        assert "_createVNode('p', None, [_createTextVNode('hi')])" in result
        assert "createTextVNode as _createTextVNode" in result

    def test_fragment_helper_is_imported(self, generator):
        """Fragments import the Fragment helper."""
        result = generator.transform("x = <></>\n")
        assert result.splitlines()[0] == "from vdom import createVNode as _createVNode, Fragment as _Fragment"
        assert "_createVNode(_Fragment, None)" in result

    def test_plain_python_gets_no_import(self, generator):
        """Source without elements is left without a runtime import."""
        assert generator.transform("x = 1\n") == "x = 1\n"

    def test_future_imports_stay_first(self, generator):
        """The runtime import goes after __future__ imports."""
        result = generator.transform("from __future__ import annotations\nx = <br/>\n")
        assert result.splitlines()[0] == "from __future__ import annotations"
        assert result.splitlines()[1].startswith("from vdom import")

    def test_output_is_valid_python(self, generator):
        """Generated code compiles."""
        result = generator.transform("def App(props):\n    return <div class='a'>{props['x']}<Foo/></div>\n")
        ast.parse(result)

    def test_unknown_plugin(self, generator):
        """Unknown plugin names are rejected."""
        with pytest.raises(TransformError) as exc:
            generator.transform("x = 1\n", plugins=['react-jsx'])
        assert "react-jsx" in str(exc.value)

    def test_malformed_element(self, generator):
        """Broken element syntax raises TransformError with a location."""
        with pytest.raises(TransformError) as exc:
            generator.transform("x = 1\ny = <div>\n", path='/app.psx')
        assert exc.value.line_number == 2
        assert exc.value.path == '/app.psx'

    def test_invalid_python(self, generator):
        """Python syntax errors raise TransformError."""
        with pytest.raises(TransformError):
            generator.transform("def (:\n")


class TestBoundNames:
    """Tests for bound_names()."""

    def test_collects_every_binding_form(self):
        """Imports, assignments, defs, classes and loop targets are all collected."""
        tree = ast.parse(
            "import a.b\n"
            "from c import d as e\n"
            "def f(g, *h, i=1, **j):\n"
            "    k = 1\n"
            "class L: pass\n"
            "try:\n"
            "    pass\n"
            "except Exception as m:\n"
            "    pass\n"
        )
        assert {'a', 'e', 'f', 'g', 'h', 'i', 'j', 'k', 'L', 'm'} <= bound_names(tree)
