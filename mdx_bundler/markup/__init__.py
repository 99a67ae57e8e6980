# MDX Bundler - Markup Compiler
"""
MDX to PSX in stages:
- parser: document text to mdast
- plugins: frontmatter recognition and export
- hast: mdast to hast
- emit: hast to PSX
- compiler: the pipeline and its plugin protocol
"""

from .compiler import CompileOptions, MarkupCompiler, Processor, VFile, baseline_options
from .plugins import remark_frontmatter, remark_mdx_frontmatter

__all__ = [
    'CompileOptions',
    'MarkupCompiler',
    'Processor',
    'VFile',
    'baseline_options',
    'remark_frontmatter',
    'remark_mdx_frontmatter',
]
