# MDX Bundler
"""
Bundles an MDX document and the files it imports into one executable string:
- bundler: bundle_mdx(), the entry point
- registry / resolver / pipeline: in-memory files as host bundler plugins
- orchestrator / packager: the single host build and its output
- markup: MDX to PSX compiler
- codegen: PSX to Python against the vdom runtime
- client: evaluating bundled code
- host: the plugin-driven Python bundler
"""

from .bundler import MDXBundler, bundle_mdx, bundle_mdx_sync
from .client import get_mdx_component
from .config import BundleMDXOptions, InMemoryOutput, ModuleInfo, WrittenOutput
from .errors import (
    BuildError,
    CleanupError,
    CompileError,
    ConfigurationError,
    MDXBundlerError,
    TransformError,
)
from .packager import ComponentBundleResult
from .runtime.vdom import render_to_string

__all__ = [
    'MDXBundler',
    'bundle_mdx',
    'bundle_mdx_sync',
    'get_mdx_component',
    'render_to_string',
    'BundleMDXOptions',
    'InMemoryOutput',
    'WrittenOutput',
    'ModuleInfo',
    'ComponentBundleResult',
    'MDXBundlerError',
    'ConfigurationError',
    'CompileError',
    'TransformError',
    'BuildError',
    'CleanupError',
]
