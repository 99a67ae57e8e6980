"""
Unit tests for the virtual file registry and the registry resolver.
"""
import os

import pytest

from mdx_bundler.errors import ConfigurationError
from mdx_bundler.registry import ENTRY_FILENAME, VirtualFileRegistry
from mdx_bundler.resolver import PROBE_EXTENSIONS, ModuleResolver

CWD = os.path.abspath('/site')


class TestVirtualFileRegistry:
    """Tests for VirtualFileRegistry.build()."""

    def test_entry_is_always_present(self):
        """The document is registered at the entry path."""
        registry = VirtualFileRegistry.build(CWD, '# Doc')
        assert registry.entry_path == os.path.join(CWD, ENTRY_FILENAME)
        assert registry[registry.entry_path] == '# Doc'
        assert len(registry) == 1

    def test_relative_paths_are_made_absolute(self):
        """Relative file names are resolved against cwd."""
        registry = VirtualFileRegistry.build(CWD, '', {'./components/card.psx': 'x', 'data.json': '{}'})
        assert os.path.join(CWD, 'components', 'card.psx') in registry
        assert os.path.join(CWD, 'data.json') in registry

    def test_colliding_paths_fail(self):
        """Two names for one path are rejected."""
        with pytest.raises(ConfigurationError):
            VirtualFileRegistry.build(CWD, '', {'./a.py': 'x', 'a.py': 'y'})

    def test_file_colliding_with_entry_fails(self):
        """A file cannot replace the entry document."""
        with pytest.raises(ConfigurationError):
            VirtualFileRegistry.build(CWD, '', {ENTRY_FILENAME: 'x'})

    def test_registry_is_read_only(self):
        """The registry cannot be modified."""
        registry = VirtualFileRegistry.build(CWD, '')
        with pytest.raises(TypeError):
            registry.files['/other'] = 'x'


class TestModuleResolver:
    """Tests for ModuleResolver.resolve()."""

    @pytest.fixture
    def registry(self):
        return VirtualFileRegistry.build(CWD, '# Doc', {
            './demo.py': 'a',
            './demo.pyi': 'b',
            './demo.psx': 'c',
            './demo.psxi': 'd',
            './demo.json': '{}',
            './demo.mdx': 'e',
            './lib/util.py': 'f',
            './lib/helpers.psx': 'g',
            './notes.txt': 'h',
        })

    @pytest.fixture
    def resolver(self, registry):
        return ModuleResolver(registry)

    def test_entry_resolves_as_virtual(self, resolver, registry):
        """The entry path resolves to the document."""
        result = resolver.resolve(registry.entry_path, None)
        assert result.path == registry.entry_path
        assert result.is_virtual

    def test_exact_path(self, resolver, registry):
        """An exact path match wins."""
        result = resolver.resolve('./notes.txt', registry.entry_path)
        assert result.path == os.path.join(CWD, 'notes.txt')

    def test_probe_order(self, resolver, registry):
        """Extensions are probed in a fixed order."""
        result = resolver.resolve('./demo', registry.entry_path)
        assert result.path == os.path.join(CWD, 'demo.py')
        assert result.candidates == [os.path.join(CWD, 'demo' + ext) for ext in PROBE_EXTENSIONS[1:]]

    def test_probe_order_is_stable(self, resolver, registry):
        """Repeated resolution gives the same answer."""
        paths = {resolver.resolve('./demo', registry.entry_path).path for _ in range(10)}
        assert paths == {os.path.join(CWD, 'demo.py')}

    def test_relative_to_importer(self, resolver):
        """Specifiers are resolved against the importing file."""
        importer = os.path.join(CWD, 'lib', 'util.py')
        assert resolver.resolve('./helpers', importer).path == os.path.join(CWD, 'lib', 'helpers.psx')
        assert resolver.resolve('../demo.json', importer).path == os.path.join(CWD, 'demo.json')

    def test_dotted_module_name(self, resolver, registry):
        """Dotted module names map to paths."""
        assert resolver.resolve('lib.util', registry.entry_path).path == os.path.join(CWD, 'lib', 'util.py')

    def test_unknown_specifier_defers(self, resolver, registry):
        """Unknown specifiers are left to the host."""
        result = resolver.resolve('requests', registry.entry_path)
        assert result.deferred
        assert not result.is_virtual
