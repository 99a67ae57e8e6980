# MDX Bundler - Host Bundler
"""
A plugin-driven bundler for Python modules:
- options: BuildOptions, BuildResult, loader vocabulary
- plugin: Plugin protocol (on_resolve / on_load callbacks)
- resolve: the host's own disk and installed-package resolution
- modules: loaders and import rewriting
- bundler: the build itself
"""

from .bundler import build
from .options import BuildOptions, BuildResult, OutputFile, LOADERS, DEFAULT_LOADERS
from .plugin import Plugin, OnResolveArgs, OnResolveResult, OnLoadArgs, OnLoadResult

__all__ = [
    'build',
    'BuildOptions',
    'BuildResult',
    'OutputFile',
    'LOADERS',
    'DEFAULT_LOADERS',
    'Plugin',
    'OnResolveArgs',
    'OnResolveResult',
    'OnLoadArgs',
    'OnLoadResult',
]
