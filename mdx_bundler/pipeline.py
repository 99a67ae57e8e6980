"""
Loading virtual files.

MDX documents go through the markup compiler and the code generator (and the
optional mock rewrite of component resolution). Every other file is passed
through with a loader picked from the caller's overrides or its extension.
"""
import asyncio
import os
import re

from pydantic import BaseModel

from .log import debug_log
from .markup import VFile, baseline_options

# Markup is handed to the host as PSX, which is also what extensionless files default to.
MARKUP_LOADER = 'psx'
DEFAULT_LOADER = 'psx'

# The code generator's output shape these rewrites depend on.
RESOLVE_COMPONENT_IMPORT = 'resolveComponent as _resolveComponent, '
DEFAULT_EXPORT_RE = re.compile(r'^default = MDXContent$', re.M)
LOCAL_RESOLVE_COMPONENT = 'def _resolveComponent(name):\n    return name\n\n'


def mock_resolve_component(code):
    """Swap the runtime resolveComponent import for a local identity function."""
    code = code.replace(RESOLVE_COMPONENT_IMPORT, '')
    return DEFAULT_EXPORT_RE.sub(lambda match: LOCAL_RESOLVE_COMPONENT + match.group(0), code, count=1)


class LoadResult(BaseModel):
    contents: str
    loader: str


class ContentTransformPipeline:
    """
    Stateless per call: ``load`` may run concurrently for different paths.

    ``compile_options`` is the caller's hook ``(vfile, options) -> options``;
    it receives the baseline and may extend it.
    """

    def __init__(self, registry, compiler, code_generator, compile_options=None,
                 mock_resolve_component=False, loader_overrides=None):
        self.registry = registry
        self.compiler = compiler
        self.code_generator = code_generator
        self.compile_options = compile_options
        self.mock_resolve_component = mock_resolve_component
        self.loader_overrides = loader_overrides or {}

    async def compile_markup(self, path, contents):
        """MDX source to the Python the host bundles."""
        vfile = VFile(path=path, value=contents)
        options = baseline_options()
        if self.compile_options is not None:
            options = self.compile_options(vfile, options)
        psx = await asyncio.to_thread(self.compiler.compile, vfile, options)
        code = await asyncio.to_thread(self.code_generator.transform, psx, ['vdom-jsx'], path)
        if self.mock_resolve_component:
            code = mock_resolve_component(code)
        return code

    async def load(self, path):
        contents = self.registry[path]
        ext = os.path.splitext(path)[1]
        if ext == '.mdx':
            debug_log(f"Compiling virtual document {path}")
            return LoadResult(contents=await self.compile_markup(path, contents), loader=MARKUP_LOADER)
        loader = self.loader_overrides.get(ext) or (ext[1:] if ext else DEFAULT_LOADER)
        return LoadResult(contents=contents, loader=loader)
