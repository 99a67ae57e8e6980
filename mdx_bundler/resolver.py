"""
Resolution against the virtual file registry.

A specifier is looked up relative to the importing file: first as is, then
with each probe extension in turn. Anything else is left to the host bundler,
so in-memory files, files on disk and installed packages share one graph.
"""
import os
from typing import List, Optional

from pydantic import BaseModel, Field

# Probe order: script, typed script, PSX, typed PSX, JSON, markup.
PROBE_EXTENSIONS = ('.py', '.pyi', '.psx', '.psxi', '.json', '.mdx')


class ResolutionResult(BaseModel):
    """A virtual hit, or an empty result that defers to the host."""
    path: Optional[str] = None
    is_virtual: bool = False
    candidates: List[str] = Field(default_factory=list)  # probe hits that lost to ``path``

    @property
    def deferred(self):
        return self.path is None


def specifier_path(specifier):
    """Relative specifiers are paths already; dotted module names become paths."""
    if specifier.startswith(('./', '../')) or specifier in ('.', '..') or os.path.isabs(specifier):
        return specifier
    return specifier.replace('.', '/')


class ModuleResolver:
    """Pure lookups over one registry snapshot. Safe to call concurrently."""

    def __init__(self, registry):
        self.registry = registry
        self.base_dir = os.path.dirname(registry.entry_path)

    def resolve(self, requested, importer=None):
        if requested == self.registry.entry_path:
            return ResolutionResult(path=requested, is_virtual=True)

        importer_dir = os.path.dirname(importer) if importer else self.base_dir
        path = os.path.normpath(os.path.join(importer_dir, specifier_path(requested)))
        if path in self.registry:
            return ResolutionResult(path=path, is_virtual=True)

        hits = [path + ext for ext in PROBE_EXTENSIONS if path + ext in self.registry]
        if hits:
            return ResolutionResult(path=hits[0], is_virtual=True, candidates=hits[1:])
        return ResolutionResult()
