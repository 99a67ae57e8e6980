"""
The virtual file registry: in-memory sources addressed by absolute path.
"""
import os
from types import MappingProxyType

from .errors import ConfigurationError

ENTRY_FILENAME = '_mdx_bundler_entry_point.mdx'


class VirtualFileRegistry:
    """
    An immutable snapshot of path -> source for one bundling call.

    Built once from the document and the caller's files. The entry document
    always lives at ``<cwd>/_mdx_bundler_entry_point.mdx``.
    """

    def __init__(self, files, entry_path):
        self._files = MappingProxyType(dict(files))
        self.entry_path = entry_path

    @classmethod
    def build(cls, cwd, source, files=None):
        cwd = os.path.abspath(cwd)
        entry_path = os.path.join(cwd, ENTRY_FILENAME)
        result = {entry_path: source}
        origins = {entry_path: '<document>'}
        for relative, contents in (files or {}).items():
            path = os.path.normpath(os.path.join(cwd, relative))
            if path in result:
                raise ConfigurationError(
                    f"File '{relative}' collides with '{origins[path]}' at {path}",
                    suggestion="Give every entry in 'files' a distinct path",
                )
            result[path] = contents
            origins[path] = relative
        return cls(result, entry_path)

    def __contains__(self, path):
        return path in self._files

    def __getitem__(self, path):
        return self._files[path]

    def __iter__(self):
        return iter(self._files)

    def __len__(self):
        return len(self._files)

    def get(self, path, default=None):
        return self._files.get(path, default)

    @property
    def files(self):
        return self._files
