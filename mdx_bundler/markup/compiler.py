"""
The markup compiler: MDX documents to PSX (or plain Python) source.

    compiler = MarkupCompiler()
    psx = compiler.compile(VFile(path='/site/page.mdx', value=text), baseline_options())

Stages run in order: parse (mdast), remark plugins, mdast to hast, rehype
plugins, PSX emission. With ``jsx=False`` the PSX is lowered by the code
generator as well.
"""
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..codegen import CodeGenerator
from ..log import debug_log
from .emit import to_psx
from .hast import to_hast
from .parser import parse
from .plugins import remark_frontmatter, remark_mdx_frontmatter


class VFile(BaseModel):
    """A document being compiled: its path and contents."""
    path: Optional[str] = None
    value: str = ''
    data: dict = Field(default_factory=dict)


class CompileOptions(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    jsx: bool = True
    remark_plugins: List[Any] = Field(default_factory=list)
    rehype_plugins: List[Any] = Field(default_factory=list)


def baseline_options():
    """Frontmatter recognition plus its promotion to a ``frontmatter`` binding."""
    return CompileOptions(remark_plugins=[remark_frontmatter, (remark_mdx_frontmatter, {'name': 'frontmatter'})])


class Processor:
    """One compilation's plugin state. ``data`` carries parser switches."""

    def __init__(self):
        self.data = {}
        self.remark_transformers = []
        self.rehype_transformers = []

    def use(self, entry, transformers):
        plugin, options = entry if isinstance(entry, (tuple, list)) else (entry, None)
        transformer = plugin(self, **(options or {}))
        if transformer is not None:
            transformers.append(transformer)

    @staticmethod
    def run(transformers, tree, vfile):
        for transformer in transformers:
            result = transformer(tree, vfile)
            if result is not None:
                tree = result
        return tree


class MarkupCompiler:
    def __init__(self, code_generator=None):
        self.code_generator = code_generator or CodeGenerator()

    def compile(self, vfile, options=None):
        """Compile ``vfile`` and return the generated source."""
        options = options or CompileOptions()
        processor = Processor()
        for entry in options.remark_plugins:
            processor.use(entry, processor.remark_transformers)
        for entry in options.rehype_plugins:
            processor.use(entry, processor.rehype_transformers)

        mdast = parse(vfile.value, vfile.path, frontmatter=processor.data.get('frontmatter', False))
        mdast = processor.run(processor.remark_transformers, mdast, vfile)
        hast = processor.run(processor.rehype_transformers, to_hast(mdast), vfile)
        source = to_psx(hast)
        debug_log(f"Compiled {vfile.path or '<document>'} to PSX")
        if options.jsx:
            return source
        return self.code_generator.transform(source)


