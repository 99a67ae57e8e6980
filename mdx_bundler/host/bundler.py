"""
The host bundler: builds one Python bundle from an entry point.

    result = await build(BuildOptions(entry_points=['/site/page.py'], write=False,
                                      global_name='Component'))
    result.output_files[0].text

Resolution and loading go through plugin callbacks first and the host's own
algorithm (``resolve.py``) last. Modules are discovered concurrently, but the
bundle is laid out by a depth-first walk of the import graph from the entry,
so its shape never depends on which callback finished first.
"""
import ast
import asyncio
import inspect
import os

from ..errors import BuildError, MDXBundlerError
from ..log import debug_log
from ..runtime import get_prelude
from .modules import link_module, prepare_module
from .options import DEFAULT_LOADERS, BuildResult, OutputFile
from .plugin import OnLoadArgs, OnResolveArgs, PluginBuild
from .resolve import ResolvedModule, native_resolve


async def _call(callback, args):
    """Run a plugin callback, wrapping unexpected failures with the plugin name."""
    try:
        result = callback.fn(args)
        if inspect.isawaitable(result):
            result = await result
        return result
    except MDXBundlerError:
        raise
    except Exception as e:
        raise BuildError(f"{type(e).__name__}: {e}", plugin=callback.plugin_name, path=args.path) from e


class ModuleRecord:
    def __init__(self, resolved):
        self.resolved = resolved
        self.prepared = None
        self.dependencies = {}  # specifier -> ResolvedModule


class Bundler:
    """State of one build. Never reused across builds."""

    def __init__(self, options):
        self.options = options
        self.plugin_build = PluginBuild(options)
        for plugin in options.plugins:
            self.plugin_build.install(plugin)
        self.records = {}

    # --- resolution ---

    async def resolve(self, specifier, importer, namespace, resolve_dir, kind):
        args = OnResolveArgs(path=specifier, importer=importer, namespace=namespace,
                             resolve_dir=resolve_dir, kind=kind)
        for callback in self.plugin_build.resolvers:
            if not callback.matches(specifier, namespace):
                continue
            result = await _call(callback, args)
            if result is None:
                continue
            if result.external:
                return ResolvedModule(result.path or specifier, external=True)
            if result.path:
                return ResolvedModule(result.path, result.namespace or 'file', plugin_data=result.plugin_data)
        return native_resolve(specifier, importer, resolve_dir, self.options)

    # --- loading ---

    def _default_loader(self, path):
        ext = os.path.splitext(path)[1]
        return self.options.loader.get(ext) or DEFAULT_LOADERS.get(ext)

    async def load(self, resolved):
        args = OnLoadArgs(path=resolved.path, namespace=resolved.namespace, plugin_data=resolved.plugin_data)
        for callback in self.plugin_build.loaders:
            if not callback.matches(resolved.path, resolved.namespace):
                continue
            result = await _call(callback, args)
            if result is None or result.contents is None:
                continue
            loader = result.loader or 'py'
            resolve_dir = result.resolve_dir or os.path.dirname(resolved.path)
            return result.contents, loader, resolve_dir

        if resolved.namespace != 'file':
            raise BuildError(f'No plugin loaded "{resolved.path}" in namespace "{resolved.namespace}"')
        loader = self._default_loader(resolved.path)
        if loader is None:
            ext = os.path.splitext(resolved.path)[1] or '(none)'
            raise BuildError(f'No loader is configured for "{ext}" files', path=resolved.path,
                             suggestion="Map the extension in the 'loader' option or add a plugin for it")
        try:
            with open(resolved.path, 'r', encoding='utf-8') as f:
                contents = f.read()
        except OSError as e:
            raise BuildError(f"Could not read file: {e.strerror}", path=resolved.path)
        return contents, loader, os.path.dirname(resolved.path)

    # --- graph ---

    async def visit(self, resolved):
        if resolved.key in self.records:
            return
        record = self.records[resolved.key] = ModuleRecord(resolved)
        contents, loader, resolve_dir = await self.load(resolved)
        debug_log(f"Loaded {resolved.namespace}:{resolved.path} with loader '{loader}'")
        record.prepared = prepare_module(contents, loader, resolved.path, self.options)
        specifiers = record.prepared.specifiers
        dependencies = await asyncio.gather(*(
            self.resolve(specifier, resolved.path, resolved.namespace, resolve_dir, 'import')
            for specifier in specifiers
        ))
        record.dependencies = dict(zip(specifiers, dependencies))
        await asyncio.gather(*(self.visit(dep) for dep in dependencies if not dep.external))

    def order(self, entry):
        """Depth-first order of module keys from the entry, in import order."""
        keys = {}

        def walk(resolved):
            if resolved.key in keys:
                return
            keys[resolved.key] = len(keys)
            record = self.records[resolved.key]
            for specifier in record.prepared.specifiers:
                dep = record.dependencies.get(specifier)
                if dep is not None and not dep.external:
                    walk(dep)

        walk(entry)
        return keys

    # --- output ---

    def emit(self, entry, keys):
        module = ast.parse(get_prelude())
        bundle_fn = next(node for node in module.body
                         if isinstance(node, ast.FunctionDef) and node.name == '__bundle__')
        factories = []
        for key_tuple, key in keys.items():
            record = self.records[key_tuple]
            links = {
                specifier: (None if dep.external else keys[dep.key])
                for specifier, dep in record.dependencies.items()
            }
            template = ast.parse(f"def __m{key}():\n    return locals()\n__modules__[{key}] = __m{key}")
            factory = template.body[0]
            factory.body = link_module(record.prepared, links) + factory.body
            factories.extend(template.body)

        body = []
        for node in bundle_fn.body:
            if isinstance(node, ast.Expr) and isinstance(node.value, ast.Name) and node.value.id == '__MODULES__':
                body.extend(factories)
            else:
                body.append(node)
        bundle_fn.body = body
        for node in ast.walk(bundle_fn):
            if isinstance(node, ast.Call) and node.args and isinstance(node.args[0], ast.Name) \
                    and node.args[0].id == '__ENTRY__':
                node.args[0] = ast.Constant(value=keys[entry.key])

        if self.options.global_name:
            module.body.append(ast.parse(f"{self.options.global_name} = __bundle__()").body[0])
        else:
            module.body.append(ast.parse("__bundle__()").body[0])
        module = ast.fix_missing_locations(module)
        return ast.unparse(module)

    async def run(self):
        options = self.options
        if len(options.entry_points) != 1:
            raise BuildError(f"Expected exactly one entry point, got {len(options.entry_points)}")
        if options.format != 'iife':
            raise BuildError(f'Unsupported output format "{options.format}"', suggestion="Use format='iife'")

        working_dir = options.abs_working_dir or os.getcwd()
        entry = await self.resolve(options.entry_points[0], '', 'file', working_dir, 'entry-point')
        if entry.external:
            raise BuildError(f'The entry point "{options.entry_points[0]}" cannot be external')
        await self.visit(entry)
        code = self.emit(entry, self.order(entry))

        stem = os.path.splitext(os.path.basename(entry.path))[0]
        if options.write is False:
            out_path = os.path.join(options.outdir or working_dir, stem + '.py')
            return BuildResult(output_files=[OutputFile(path=out_path, contents=code.encode('utf-8'))])
        if not options.outdir:
            raise BuildError("Writing output requires 'outdir'", suggestion="Set outdir or write=False")
        out_path = os.path.join(options.outdir, stem + '.py')
        os.makedirs(options.outdir, exist_ok=True)
        with open(out_path, 'w', encoding='utf-8') as f:
            f.write(code)
        debug_log(f"Wrote {out_path}")
        return BuildResult()


async def build(options):
    """Run one build with the given BuildOptions."""
    return await Bundler(options).run()
