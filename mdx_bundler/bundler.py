"""
The caller-facing entry point.

    result = await bundle_mdx(source, files={'./demo.psx': demo}, globals={'left_pad': 'leftPad'})
    result.code         # self-contained function body ending in ';return Component.default;'
    result.frontmatter  # the document's frontmatter dict
"""
import asyncio
import os

from .codegen import CodeGenerator
from .config import BundleMDXOptions
from .log import warn
from .markup import MarkupCompiler
from .matter import extract_frontmatter
from .orchestrator import BundleOrchestrator
from .packager import OutputPackager
from .pipeline import ContentTransformPipeline
from .registry import VirtualFileRegistry
from .resolver import ModuleResolver

FAKE_DIR = '__mdx_bundler_fake_dir__'


class MDXBundler:
    """Holds the markup compiler and code generator shared by every call."""

    def __init__(self, compiler=None, code_generator=None):
        self.code_generator = code_generator or CodeGenerator()
        self.compiler = compiler or MarkupCompiler(self.code_generator)

    async def bundle(self, source, options=None):
        options = options or BundleMDXOptions()
        if options.diagnostics and options.cwd and not os.path.isdir(options.cwd):
            warn(f"cwd '{options.cwd}' does not exist: only in-memory files and installed packages will resolve")
        cwd = os.path.abspath(options.cwd or os.path.join(os.getcwd(), FAKE_DIR))

        registry = VirtualFileRegistry.build(cwd, source, options.files)
        frontmatter = extract_frontmatter(source, registry.entry_path)

        resolver = ModuleResolver(registry)
        pipeline = ContentTransformPipeline(
            registry,
            self.compiler,
            self.code_generator,
            compile_options=options.compile_options,
            mock_resolve_component=options.mock_resolve_component,
        )
        orchestrator = BundleOrchestrator(options, registry, resolver, pipeline, cwd)
        mode, result = await orchestrator.run()
        return OutputPackager().package(mode, result, frontmatter)


_default_bundler = MDXBundler()


async def bundle_mdx(source, options=None, **kwargs):
    """Bundle an MDX document. Options may be a BundleMDXOptions or keyword arguments."""
    if options is None:
        options = BundleMDXOptions(**kwargs)
    elif kwargs:
        options = options.model_copy(update=kwargs)
    return await _default_bundler.bundle(source, options)


def bundle_mdx_sync(source, options=None, **kwargs):
    """Blocking wrapper around bundle_mdx for scripts and the CLI."""
    return asyncio.run(bundle_mdx(source, options, **kwargs))
