"""
The host's own module resolution, used when no plugin claims a specifier.

Relative specifiers ('./x', '../x/y', absolute paths) are probed on disk with
the configured extensions, then '.mdx', then as packages ('x/__init__.py'). Bare
specifiers ('pkg.mod') are left alone when they name a standard-library or
external module, and otherwise located among the installed packages; a
'pkg.doc' with no module behind it may name 'doc.mdx' inside package 'pkg'.
"""
import importlib.util
import os
import sys

from ..errors import BuildError
from ..log import debug_log

MARKUP_EXTENSION = '.mdx'


class ResolvedModule:
    """Where a specifier ended up: a (namespace, path) pair, or an external import."""
    __slots__ = ('path', 'namespace', 'external', 'plugin_data')

    def __init__(self, path, namespace='file', external=False, plugin_data=None):
        self.path = path
        self.namespace = namespace
        self.external = external
        self.plugin_data = plugin_data

    @property
    def key(self):
        return (self.namespace, self.path)

    def __repr__(self):
        kind = 'external' if self.external else self.namespace
        return f"ResolvedModule({kind}:{self.path})"


def is_relative(specifier):
    return specifier in ('.', '..') or specifier.startswith(('./', '../')) or os.path.isabs(specifier)


def probe_file(base, extensions):
    """Find ``base`` itself, ``base`` plus an extension, or a package __init__."""
    if os.path.isfile(base):
        return base
    for ext in extensions:
        if os.path.isfile(base + ext):
            return base + ext
    if os.path.isdir(base):
        for ext in extensions:
            candidate = os.path.join(base, '__init__' + ext)
            if os.path.isfile(candidate):
                return candidate
    return None


def is_builtin_module(specifier):
    top = specifier.split('.')[0]
    return top == '__future__' or top in sys.stdlib_module_names


def find_installed_source(specifier):
    """Locate the source file of an installed module, or None."""
    try:
        spec = importlib.util.find_spec(specifier)
    except (ImportError, ValueError):
        return None
    if spec is None:
        return None
    return spec.origin or ''


def find_installed_markup(specifier):
    """Locate ``pkg/doc.mdx`` for a dotted ``pkg.doc``, or None."""
    parent, _, name = specifier.rpartition('.')
    if not parent:
        return None
    try:
        spec = importlib.util.find_spec(parent)
    except (ImportError, ValueError):
        return None
    if spec is None or not spec.submodule_search_locations:
        return None
    for directory in spec.submodule_search_locations:
        candidate = os.path.join(directory, name + MARKUP_EXTENSION)
        if os.path.isfile(candidate):
            return candidate
    return None


def native_resolve(specifier, importer, resolve_dir, options):
    """Resolve ``specifier`` the way the host does without plugins."""
    if is_relative(specifier):
        base = os.path.normpath(os.path.join(resolve_dir, specifier))
        extensions = list(options.resolve_extensions)
        if MARKUP_EXTENSION not in extensions:
            extensions.append(MARKUP_EXTENSION)
        found = probe_file(base, extensions)
        if found:
            return ResolvedModule(found)
        raise BuildError(
            f'Could not resolve "{specifier}"',
            path=importer or None,
            suggestion=f"No file matches {base} with extensions {', '.join(extensions)}",
        )

    top = specifier.split('.')[0]
    if specifier in options.external or top in options.external or is_builtin_module(specifier):
        return ResolvedModule(specifier, external=True)

    origin = find_installed_source(specifier)
    if origin is None:
        markup = find_installed_markup(specifier)
        if markup is not None:
            return ResolvedModule(os.path.normpath(markup))
        raise BuildError(
            f'Could not resolve "{specifier}"',
            path=importer or None,
            suggestion="Install the package, list it in 'external', or map it to a global with the globals option",
        )
    if not origin.endswith(tuple(options.resolve_extensions)):
        # Compiled extensions and namespace packages cannot be inlined.
        debug_log(f"Keeping '{specifier}' as a runtime import ({origin or 'namespace package'})")
        return ResolvedModule(specifier, external=True)
    return ResolvedModule(os.path.normpath(origin))
