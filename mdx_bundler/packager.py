"""
Turning the host's output into the returned ``{code, frontmatter}``.
"""
import os
from typing import Any, Dict

from pydantic import BaseModel, Field

from .config import InMemoryOutput, WrittenOutput
from .errors import BuildError, CleanupError, ConfigurationError
from .log import debug_log

GLOBAL_NAME = 'Component'
TRAILER = f';return {GLOBAL_NAME}.default;'
OUTPUT_FILENAME = '_mdx_bundler_entry_point.py'


class ComponentBundleResult(BaseModel):
    code: str
    frontmatter: Dict[str, Any] = Field(default_factory=dict)


class OutputPackager:
    @staticmethod
    def output_mode(build_options):
        """Decide the output mode from final build options, before anything runs."""
        if build_options.write is False:
            return InMemoryOutput()
        if build_options.write is True and build_options.outdir:
            return WrittenOutput(outdir=build_options.outdir)
        raise ConfigurationError(
            "No output mode: expected write=False, or write=True with an outdir "
            f"(got write={build_options.write!r}, outdir={build_options.outdir!r})",
            suggestion="Use output=InMemoryOutput() or output=WrittenOutput(outdir=...), "
                       "and keep 'write'/'outdir' consistent in a build_options hook",
        )

    def package(self, mode, result, frontmatter):
        if isinstance(mode, InMemoryOutput):
            if not result.output_files:
                raise BuildError("The build produced no output files")
            code = result.output_files[0].text
        else:
            code = self._take_written(mode.outdir)
        return ComponentBundleResult(code=code.rstrip() + TRAILER, frontmatter=frontmatter)

    @staticmethod
    def _take_written(outdir):
        path = os.path.join(outdir, OUTPUT_FILENAME)
        try:
            with open(path, 'r', encoding='utf-8') as f:
                code = f.read()
        except OSError as e:
            raise CleanupError(f"Could not read the written bundle: {e.strerror}", path=path)
        try:
            os.remove(path)
        except OSError as e:
            raise CleanupError(f"Could not remove the written bundle: {e.strerror}", path=path,
                               suggestion="The output directory must be writable by the bundler")
        debug_log(f"Read and removed {path}")
        return code
