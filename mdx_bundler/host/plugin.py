"""
Plugin protocol of the host bundler.

A plugin registers resolve and load callbacks from ``setup(build)``:

    class Banner(Plugin):
        name = 'banner'

        def setup(self, build):
            build.on_resolve(r'^banner$', lambda args: OnResolveResult(path='banner', namespace='banner'))
            build.on_load(r'.*', lambda args: OnLoadResult(contents='default = "hi"'), namespace='banner')

Callbacks may be plain functions or coroutines. Returning None (or a result
without a path / contents) hands the module to the next plugin, and finally to
the host's own resolution and loading.
"""
import re
from typing import Any, Optional

from pydantic import BaseModel


class OnResolveArgs(BaseModel):
    path: str
    importer: str
    namespace: str
    resolve_dir: str
    kind: str  # 'entry-point' | 'import'


class OnResolveResult(BaseModel):
    path: Optional[str] = None
    namespace: Optional[str] = None
    external: bool = False
    plugin_data: Any = None


class OnLoadArgs(BaseModel):
    path: str
    namespace: str
    plugin_data: Any = None


class OnLoadResult(BaseModel):
    contents: Optional[str] = None
    loader: Optional[str] = None
    resolve_dir: Optional[str] = None


class Callback:
    """A registered callback and the filter that selects it."""

    def __init__(self, plugin_name, filter, namespace, fn):
        self.plugin_name = plugin_name
        self.filter = re.compile(filter)
        self.namespace = namespace
        self.fn = fn

    def matches(self, path, namespace):
        if self.namespace is not None and self.namespace != namespace:
            return False
        return bool(self.filter.search(path))


class PluginBuild:
    """The object handed to ``Plugin.setup``."""

    def __init__(self, initial_options):
        self.initial_options = initial_options
        self.resolvers = []
        self.loaders = []
        self._plugin_name = None

    def on_resolve(self, filter, callback, namespace=None):
        self.resolvers.append(Callback(self._plugin_name, filter, namespace, callback))

    def on_load(self, filter, callback, namespace=None):
        self.loaders.append(Callback(self._plugin_name, filter, namespace, callback))

    def install(self, plugin):
        self._plugin_name = getattr(plugin, 'name', type(plugin).__name__)
        try:
            plugin.setup(self)
        finally:
            self._plugin_name = None


class Plugin:
    """Base class for host plugins."""
    name = 'plugin'

    def setup(self, build):
        raise NotImplementedError
