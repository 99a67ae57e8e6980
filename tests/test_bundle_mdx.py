"""
End-to-end tests for bundle_mdx() and get_mdx_component().
"""
import asyncio
import datetime
import os
import tempfile

import pytest

from mdx_bundler import (
    BuildError,
    BundleMDXOptions,
    CleanupError,
    CompileError,
    ConfigurationError,
    ModuleInfo,
    WrittenOutput,
    bundle_mdx,
    bundle_mdx_sync,
    get_mdx_component,
    render_to_string,
)
from mdx_bundler.host import BuildResult
from mdx_bundler.markup.nodes import walk
from mdx_bundler.packager import OUTPUT_FILENAME, TRAILER, OutputPackager
from mdx_bundler.registry import ENTRY_FILENAME
from mdx_bundler.runtime.vdom import createVNode

DEMO = "from vdom import h\n\ndef Foo(props):\n    return <span>Foo!</span>\n"


def run(source, **kwargs):
    return asyncio.run(bundle_mdx(source, **kwargs))


def render(result, globals=None, props=None):
    return render_to_string(get_mdx_component(result.code, globals), props)


def walk_vnodes(node):
    yield node
    if isinstance(node.children, list):
        for child in node.children:
            yield from walk_vnodes(child)


@pytest.fixture
def tmpdir_path():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


class TestBundleMdx:
    """Tests for the full bundling flow."""

    def test_smoke(self):
        """A document bundles to code ending with the trailer."""
        result = run("# Hello\n\n<Foo/>", files={'./demo.psx': DEMO}, cwd=None)
        assert result.code.endswith(';return Component.default;')
        assert result.code.endswith(TRAILER)
        assert result.frontmatter == {}

    def test_round_trip(self):
        """Frontmatter, markdown and an imported component render together."""
        source = (
            "---\ntitle: Example Post\npublished: 2021-02-13\ndescription: This is some meta-data\n---\n\n"
            "from .demo import Foo as Demo\n\n"
            "# This is the title\n\n"
            "Here's a **neat** demo:\n\n"
            "<Demo />\n"
        )
        result = run(source, files={'./demo.psx': DEMO})
        assert result.frontmatter == {
            'title': 'Example Post',
            'published': datetime.date(2021, 2, 13),
            'description': 'This is some meta-data',
        }
        html = render(result)
        assert "<h1>This is the title</h1>" in html
        assert "<p>Here's a <strong>neat</strong> demo:</p>" in html
        assert "<span>Foo!</span>" in html

    def test_imported_component(self):
        """An imported component renders in place."""
        result = run("from .demo import Foo\n\n# Hello\n\n<Foo/>", files={'./demo.psx': DEMO})
        assert render(result) == "<h1>Hello</h1>\n<span>Foo!</span>"

    def test_frontmatter_binding(self):
        """The frontmatter is available to expressions."""
        result = run("---\ntitle: Hi\n---\n\n# {frontmatter['title']}")
        assert result.frontmatter == {'title': 'Hi'}
        assert render(result) == "<h1>Hi</h1>"

    def test_output_is_idempotent(self):
        """Bundling twice gives the same code."""
        source = "from .demo import Foo\n\n<Foo/>"
        files = {'./demo.psx': DEMO}
        assert run(source, files=files).code == run(source, files=files).code

    def test_sync_wrapper(self):
        """bundle_mdx_sync bundles without an event loop."""
        result = bundle_mdx_sync("# Sync")
        assert render(result) == "<h1>Sync</h1>"

    def test_options_object_and_keywords(self):
        """Keyword arguments update an options object."""
        options = BundleMDXOptions(files={'./demo.psx': DEMO})
        result = asyncio.run(bundle_mdx("from .demo import Foo\n\n<Foo/>", options, env='test'))
        assert render(result) == "<span>Foo!</span>"


class TestResolution:
    """Tests for how imports inside documents are satisfied."""

    def test_document_wins_over_file_on_disk(self, tmpdir_path):
        """The in-memory document shadows a file with the same path."""
        with open(os.path.join(tmpdir_path, ENTRY_FILENAME), 'w') as f:
            f.write("# From disk")
        result = run("# In memory", cwd=tmpdir_path)
        assert render(result) == "<h1>In memory</h1>"

    def test_probe_order_prefers_py(self):
        """A .py file wins over a .psx file."""
        files = {'./demo.py': "value = 'py'\n", './demo.psx': "value = 'psx'\n"}
        result = run("from .demo import value\n\n{value}", files=files)
        assert render(result) == "py"

    def test_json_import(self):
        """JSON files can be imported by key."""
        result = run("from .data import name\n\nHello {name}", files={'./data.json': '{"name": "Kent"}'})
        assert render(result) == "<p>Hello Kent</p>"

    def test_nested_document(self):
        """Documents can import other documents."""
        files = {'./intro.mdx': "## Intro"}
        result = run("from .intro import default as Intro\n\n# Main\n\n<Intro/>", files=files)
        assert render(result) == "<h1>Main</h1>\n<h2>Intro</h2>"

    def test_nested_directories(self):
        """Files in subdirectories import their neighbours."""
        files = {
            './components/card.psx': "from vdom import h\nfrom .label import text\n\n"
                                     "def Card(props):\n    return <div>{text}</div>\n",
            './components/label.py': "text = 'card'\n",
        }
        result = run("from .components.card import Card\n\n<Card/>", files=files)
        assert render(result) == "<div>card</div>"

    def test_global_cjs_module(self):
        """A cjs global replaces the module."""
        source = "import left_pad as pad\n\n{pad('x', 3)}"
        result = run(source, globals={'left_pad': 'myLeftPad'})
        assert 'left_pad' not in result.code
        assert 'myLeftPad' in result.code
        assert render(result, {'myLeftPad': lambda s, n: s.rjust(n, '.')}) == "..x"

    def test_global_esm_module(self):
        """An esm global is the module's default export."""
        source = "from left_pad import default as pad\n\n{pad('x', 2)}"
        result = run(source, globals={'left_pad': ModuleInfo(var_name='myLeftPad', type='esm')})
        assert render(result, {'myLeftPad': lambda s, n: s.rjust(n, '.')}) == ".x"

    def test_missing_import(self):
        """Unresolvable imports raise BuildError."""
        with pytest.raises(BuildError) as exc:
            run("from .missing import x\n\n{x}")
        assert 'Could not resolve' in exc.value.message


class TestMarkupOnDisk:
    """Tests for documents that live on disk or inside packages."""

    def test_relative_document_on_disk(self, tmpdir_path):
        """A relative import finds a .mdx file next to the document."""
        with open(os.path.join(tmpdir_path, 'other.mdx'), 'w') as f:
            f.write("## From disk")
        result = run("from .other import default as Other\n\n<Other/>", cwd=tmpdir_path)
        assert render(result) == "<h2>From disk</h2>"

    def test_script_wins_over_document_on_disk(self, tmpdir_path):
        """On disk, .mdx is only tried after the script extensions."""
        with open(os.path.join(tmpdir_path, 'other.mdx'), 'w') as f:
            f.write("## Document")
        with open(os.path.join(tmpdir_path, 'other.py'), 'w') as f:
            f.write("default = 'script'\n")
        result = run("from .other import default as value\n\n{value}", cwd=tmpdir_path)
        assert render(result) == "script"

    def test_document_inside_package(self, tmpdir_path, monkeypatch):
        """A dotted import finds a .mdx file inside an installed package."""
        package = os.path.join(tmpdir_path, 'handbook_pages')
        os.makedirs(package)
        with open(os.path.join(package, '__init__.py'), 'w') as f:
            f.write('')
        with open(os.path.join(package, 'welcome.mdx'), 'w') as f:
            f.write("## Welcome *aboard*")
        monkeypatch.syspath_prepend(tmpdir_path)

        result = run("from handbook_pages.welcome import default as Welcome\n\n<Welcome/>")
        assert render(result) == "<h2>Welcome <em>aboard</em></h2>"

    def test_document_on_disk_uses_mock_mode(self, tmpdir_path):
        """Documents compiled from disk get the same mock rewrite."""
        with open(os.path.join(tmpdir_path, 'other.mdx'), 'w') as f:
            f.write("<Unknown/>")
        result = run("from .other import default as Other\n\n<Other/>", cwd=tmpdir_path,
                     mock_resolve_component=True)
        assert 'resolveComponent as' not in result.code
        assert result.code.count('def _resolveComponent(name):') == 2


class TestComponents:
    """Tests for component resolution in generated code."""

    def test_mock_resolve_component(self):
        """Mock mode leaves unknown components as names."""
        result = run("<Sentinel/>", mock_resolve_component=True)
        assert 'resolveComponent as' not in result.code
        assert 'def _resolveComponent(name):' in result.code
        node = get_mdx_component(result.code)({})
        assert 'Sentinel' in [child.type for child in walk_vnodes(node)]

    def test_components_prop_overrides_tags(self):
        """The components prop replaces HTML tags."""
        def Heading(props):
            return 'H:' + ''.join(child.children for child in props['children'])

        result = run("# Title")
        html = render(result, props={'components': {'h1': Heading}})
        assert html == "H:Title"

    def test_wrapper_component(self):
        """The wrapper component receives the content."""
        def Layout(props):
            return createVNode('main', None, props['children'])

        result = run("# Title")
        assert render(result, props={'components': {'wrapper': Layout}}) == "<main><h1>Title</h1></main>"


class TestBuildConfiguration:
    """Tests for env, hooks and output modes."""

    def test_env_define(self):
        """The env option replaces MDX_ENV lookups."""
        result = run("import os\n\n{os.environ['MDX_ENV']}", env='staging')
        assert render(result) == "staging"

    def test_compile_options_hook(self):
        """The compile options hook can add plugins."""
        def shout(processor):
            def transformer(tree, vfile):
                for node in walk(tree):
                    if node.type == 'text':
                        node.value = node.value.upper()
            return transformer

        def hook(vfile, options):
            options.remark_plugins.append(shout)
            return options

        result = run("# hello", compile_options=hook)
        assert render(result) == "<h1>HELLO</h1>"

    def test_build_options_hook_sees_defaults(self):
        """The build options hook sees the default options."""
        seen = {}

        def hook(options):
            seen.update(bundle=options.bundle, format=options.format, global_name=options.global_name,
                        minify=options.minify, write=options.write)
            return options

        run("# x", build_options=hook)
        assert seen == {'bundle': True, 'format': 'iife', 'global_name': 'Component', 'minify': True, 'write': False}

    def test_invalid_output_mode_from_hook(self):
        """A hook that breaks the output mode is rejected."""
        with pytest.raises(ConfigurationError):
            run("# x", build_options=lambda options: options.model_copy(update={'write': None}))
        with pytest.raises(ConfigurationError):
            run("# x", build_options=lambda options: options.model_copy(update={'write': True, 'outdir': None}))

    def test_written_output_is_removed(self, tmpdir_path):
        """Written output is read back and deleted."""
        result = run("# Written", output=WrittenOutput(outdir=tmpdir_path))
        assert result.code.endswith(TRAILER)
        assert render(result) == "<h1>Written</h1>"
        with pytest.raises(FileNotFoundError):
            open(os.path.join(tmpdir_path, OUTPUT_FILENAME))

    def test_cleanup_error_when_bundle_is_missing(self, tmpdir_path):
        """A missing written bundle raises CleanupError."""
        with pytest.raises(CleanupError):
            OutputPackager().package(WrittenOutput(outdir=tmpdir_path), BuildResult(), {})

    def test_missing_cwd_warns(self, capsys):
        """A missing cwd produces a warning."""
        run("# x", cwd=os.path.join(tempfile.gettempdir(), 'mdx-bundler-missing-dir', 'nested'))
        assert "does not exist" in capsys.readouterr().err

    def test_diagnostics_can_be_disabled(self, capsys):
        """diagnostics=False silences the warning."""
        run("# x", cwd=os.path.join(tempfile.gettempdir(), 'mdx-bundler-missing-dir'), diagnostics=False)
        assert "does not exist" not in capsys.readouterr().err


class TestErrors:
    """Tests for failures surfacing to the caller."""

    def test_colliding_files(self):
        """Colliding file names are rejected."""
        with pytest.raises(ConfigurationError):
            run("# x", files={'./a.py': 'x = 1', 'a.py': 'x = 2'})

    def test_unclosed_element(self):
        """An element without a closing tag is rejected."""
        with pytest.raises(CompileError) as exc:
            run("# Title\n\n<Foo>")
        assert exc.value.line_number == 3

    def test_invalid_frontmatter(self):
        """Invalid YAML frontmatter raises CompileError."""
        with pytest.raises(CompileError):
            run("---\ntitle: [\n---\n# x")

    def test_invalid_global_name(self):
        """Global names must be identifiers."""
        result = run("# x")
        with pytest.raises(ValueError):
            get_mdx_component(result.code, {'not-valid': 1})
