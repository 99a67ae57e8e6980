"""
Build options and results for the host bundler.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

# Loader vocabulary. The 'i' variants strip annotations; psx variants lower
# element literals.
LOADERS = ('py', 'pyi', 'psx', 'psxi', 'json', 'text')

DEFAULT_LOADERS = {
    '.py': 'py',
    '.pyi': 'pyi',
    '.psx': 'psx',
    '.psxi': 'psxi',
    '.json': 'json',
    '.txt': 'text',
}


class BuildOptions(BaseModel):
    """Everything one host build needs. Plugins read it through ``build.initial_options``."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    entry_points: List[str]
    bundle: bool = True
    write: Optional[bool] = None  # None behaves like True
    outdir: Optional[str] = None
    format: str = 'iife'
    global_name: Optional[str] = None
    minify: bool = False
    define: Dict[str, str] = Field(default_factory=dict)
    plugins: List[Any] = Field(default_factory=list)
    loader: Dict[str, str] = Field(default_factory=dict)
    resolve_extensions: List[str] = Field(default_factory=lambda: ['.py', '.psx', '.json'])
    external: List[str] = Field(default_factory=list)
    jsx_factory: str = 'h'
    jsx_fragment: str = 'Fragment'
    abs_working_dir: Optional[str] = None
    target: Optional[str] = None


class OutputFile(BaseModel):
    path: str
    contents: bytes

    @property
    def text(self):
        return self.contents.decode('utf-8')


class BuildResult(BaseModel):
    output_files: Optional[List[OutputFile]] = None
    warnings: List[str] = Field(default_factory=list)
