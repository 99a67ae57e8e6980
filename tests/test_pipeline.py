"""
Unit tests for mdx_bundler/pipeline.py and mdx_bundler/matter.py.
"""
import asyncio
import os

import pytest

from mdx_bundler.codegen import CodeGenerator
from mdx_bundler.errors import CompileError
from mdx_bundler.markup import MarkupCompiler
from mdx_bundler.matter import extract_frontmatter
from mdx_bundler.pipeline import ContentTransformPipeline, mock_resolve_component
from mdx_bundler.registry import VirtualFileRegistry

CWD = os.path.abspath('/site')


def make_pipeline(files, **kwargs):
    registry = VirtualFileRegistry.build(CWD, '# Title\n\n<Foo/>', files)
    generator = CodeGenerator()
    return registry, ContentTransformPipeline(registry, MarkupCompiler(generator), generator, **kwargs)


def load(pipeline, path):
    return asyncio.run(pipeline.load(path))


class TestContentTransformPipeline:
    """Tests for ContentTransformPipeline.load()."""

    def test_loader_from_extension(self):
        """The loader defaults to the extension."""
        _, pipeline = make_pipeline({'./a.py': 'x = 1', './b.json': '{}', './c.psx': 'y = 2'})
        assert load(pipeline, os.path.join(CWD, 'a.py')).loader == 'py'
        assert load(pipeline, os.path.join(CWD, 'b.json')).loader == 'json'
        result = load(pipeline, os.path.join(CWD, 'c.psx'))
        assert (result.contents, result.loader) == ('y = 2', 'psx')

    def test_extensionless_file_uses_psx(self):
        """Files without an extension use the psx loader."""
        _, pipeline = make_pipeline({'./widget': 'z = 3'})
        assert load(pipeline, os.path.join(CWD, 'widget')).loader == 'psx'

    def test_loader_override(self):
        """Loader overrides win over the extension."""
        _, pipeline = make_pipeline({'./notes.txt': 'hello'}, loader_overrides={'.txt': 'text'})
        assert load(pipeline, os.path.join(CWD, 'notes.txt')).loader == 'text'

    def test_markup_is_compiled(self):
        """Documents are compiled to Python."""
        registry, pipeline = make_pipeline({})
        result = load(pipeline, registry.entry_path)
        assert result.loader == 'psx'
        assert "from vdom import resolveComponent as _resolveComponent, createVNode as _createVNode" in result.contents
        assert "_resolveComponent('Foo')" in result.contents

    def test_mock_mode_rewrites_resolution(self):
        """Mock mode replaces the runtime resolveComponent."""
        registry, pipeline = make_pipeline({}, mock_resolve_component=True)
        contents = load(pipeline, registry.entry_path).contents
        assert "resolveComponent as _resolveComponent" not in contents
        assert "def _resolveComponent(name):\n    return name\n\ndefault = MDXContent" in contents

    def test_compile_options_hook_extends_baseline(self):
        """The compile options hook receives the baseline."""
        seen = []

        def hook(vfile, options):
            seen.append((vfile.path, len(options.remark_plugins)))
            return options

        registry, pipeline = make_pipeline({}, compile_options=hook)
        load(pipeline, registry.entry_path)
        assert seen == [(registry.entry_path, 2)]

    def test_concurrent_loads_are_independent(self):
        """Concurrent loads do not interfere."""
        files = {f'./doc{i}.mdx': f'# Doc {i}' for i in range(5)}
        _, pipeline = make_pipeline(files)

        async def load_all():
            return await asyncio.gather(*(pipeline.load(os.path.join(CWD, f'doc{i}.mdx')) for i in range(5)))

        results = asyncio.run(load_all())
        for i, result in enumerate(results):
            assert f"'Doc {i}'" in result.contents

    def test_compile_error_propagates(self):
        """Compile errors are raised unchanged."""
        _, pipeline = make_pipeline({'./bad.mdx': '<Foo>'})
        with pytest.raises(CompileError):
            load(pipeline, os.path.join(CWD, 'bad.mdx'))


class TestMockResolveComponent:
    """Tests for the text-level rewrite of component resolution."""

    def test_rewrite(self):
        """The import is removed and a local function defined."""
        code = (
            "from vdom import resolveComponent as _resolveComponent, createVNode as _createVNode\n"
            "x = _resolveComponent('Foo')\n"
            "default = MDXContent\n"
        )
        assert mock_resolve_component(code) == (
            "from vdom import createVNode as _createVNode\n"
            "x = _resolveComponent('Foo')\n"
            "def _resolveComponent(name):\n    return name\n\n"
            "default = MDXContent\n"
        )

    def test_code_without_resolution_is_unchanged_apart_from_helper(self):
        """Only the helper is added when nothing is resolved."""
        code = "x = 1\ndefault = MDXContent\n"
        assert mock_resolve_component(code).count("def _resolveComponent") == 1


class TestExtractFrontmatter:
    """Tests for extract_frontmatter()."""

    def test_no_frontmatter(self):
        """A document without a header gives an empty dict."""
        assert extract_frontmatter("# Title") == {}

    def test_values(self):
        """Header values are parsed as YAML."""
        text = "---\ntitle: Hello\ncount: 3\ntags:\n  - a\n  - b\n---\n# Body"
        assert extract_frontmatter(text) == {'title': 'Hello', 'count': 3, 'tags': ['a', 'b']}

    def test_invalid_yaml(self):
        """Malformed YAML raises CompileError."""
        with pytest.raises(CompileError):
            extract_frontmatter("---\ntitle: [\n---\n", path='/doc.mdx')
