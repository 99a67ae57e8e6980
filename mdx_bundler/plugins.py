"""
Host plugins installed by the orchestrator, in this order:

1. GlobalExternalsPlugin: configured module names become pre-existing globals.
2. NativeResolvePlugin: widens the extensions the host probes on disk.
3. InMemoryPlugin: serves the virtual file registry.
4. MarkupPlugin: compiles .mdx files that live on disk or in packages.
"""
import asyncio
import os
import re

from .host import OnLoadResult, OnResolveResult, Plugin
from .log import debug_log

GLOBAL_EXTERNALS_NAMESPACE = 'global-externals'


class GlobalExternalsPlugin(Plugin):
    """
    Replaces imports of the given modules with a global binding.

    ``globals`` maps module names to ModuleInfo. A 'cjs' module is the global
    itself (``import vdom`` gives the object); an 'esm' module exposes the
    global as its ``default``.
    """
    name = 'global-externals'

    def __init__(self, globals):
        self.globals = dict(globals)

    def setup(self, build):
        if not self.globals:
            return
        pattern = '^(?:' + '|'.join(re.escape(name) for name in self.globals) + ')$'
        build.on_resolve(pattern, self.resolve)
        build.on_load(r'.*', self.load, namespace=GLOBAL_EXTERNALS_NAMESPACE)

    def resolve(self, args):
        return OnResolveResult(path=args.path, namespace=GLOBAL_EXTERNALS_NAMESPACE)

    def load(self, args):
        info = self.globals[args.path]
        if info.type == 'esm':
            contents = f"default = {info.var_name}"
        else:
            contents = f"__exports__ = {info.var_name}"
        return OnLoadResult(contents=contents, loader='py')


class NativeResolvePlugin(Plugin):
    """Lets the host find .py/.pyi/.psx/.psxi files on disk without extensions."""
    name = 'native-resolve-extensions'
    extensions = ('.py', '.pyi', '.psx', '.psxi')

    def setup(self, build):
        options = build.initial_options
        for ext in self.extensions:
            if ext not in options.resolve_extensions:
                options.resolve_extensions.append(ext)


class InMemoryPlugin(Plugin):
    """Adapts the registry resolver and the transform pipeline to the host's callbacks."""
    name = 'in-memory'

    def __init__(self, resolver, pipeline):
        self.resolver = resolver
        self.pipeline = pipeline

    def setup(self, build):
        self.pipeline.loader_overrides = dict(build.initial_options.loader)
        build.on_resolve(r'.*', self.resolve)
        build.on_load(r'.*', self.load)

    def resolve(self, args):
        result = self.resolver.resolve(args.path, args.importer)
        if result.deferred:
            return None
        if result.candidates:
            debug_log(f"'{args.path}' also matches {', '.join(result.candidates)}; using {result.path}")
        return OnResolveResult(path=result.path, plugin_data={'in_memory': True})

    async def load(self, args):
        if not (args.plugin_data or {}).get('in_memory'):
            return None
        loaded = await self.pipeline.load(args.path)
        return OnLoadResult(contents=loaded.contents, loader=loaded.loader,
                            resolve_dir=os.path.dirname(args.path))


class MarkupPlugin(Plugin):
    """Compiles .mdx modules the in-memory plugin did not claim."""
    name = 'mdx'

    def __init__(self, pipeline):
        self.pipeline = pipeline

    def setup(self, build):
        build.on_load(r'\.mdx$', self.load, namespace='file')

    async def load(self, args):
        contents = await asyncio.to_thread(_read_text, args.path)
        debug_log(f"Compiling {args.path} from disk")
        code = await self.pipeline.compile_markup(args.path, contents)
        return OnLoadResult(contents=code, loader='psx', resolve_dir=os.path.dirname(args.path))


def _read_text(path):
    with open(path, 'r', encoding='utf-8') as f:
        return f.read()
