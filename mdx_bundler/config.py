"""
Options accepted by ``bundle_mdx``.
"""
import os
from typing import Any, Callable, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ModuleInfo(BaseModel):
    """How a globally provided module is exposed: the global's name and module kind."""
    var_name: str
    type: Literal['cjs', 'esm'] = 'cjs'


class InMemoryOutput(BaseModel):
    """Keep the bundle in memory (the default)."""
    kind: Literal['memory'] = 'memory'


class WrittenOutput(BaseModel):
    """Write the bundle into ``outdir``, read it back and delete it."""
    kind: Literal['written'] = 'written'
    outdir: str


OutputMode = Union[InMemoryOutput, WrittenOutput]


class BundleMDXOptions(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    files: Dict[str, str] = Field(default_factory=dict)
    compile_options: Optional[Callable[[Any, Any], Any]] = None
    build_options: Optional[Callable[[Any], Any]] = None
    globals: Dict[str, Union[str, ModuleInfo]] = Field(default_factory=dict)
    mock_resolve_component: bool = False
    cwd: Optional[str] = None
    output: OutputMode = Field(default_factory=InMemoryOutput, discriminator='kind')
    env: Optional[str] = Field(default_factory=lambda: os.environ.get('MDX_ENV', 'production'))
    diagnostics: bool = True

    def module_infos(self):
        """The globals map with bare variable names expanded to 'cjs' ModuleInfo."""
        return {
            name: ModuleInfo(var_name=info) if isinstance(info, str) else info
            for name, info in self.globals.items()
        }
