"""
Assembling the one host build a ``bundle_mdx`` call makes.
"""
from .config import InMemoryOutput, ModuleInfo
from .host import BuildOptions, build
from .log import debug_log
from .packager import GLOBAL_NAME, OutputPackager
from .plugins import GlobalExternalsPlugin, InMemoryPlugin, MarkupPlugin, NativeResolvePlugin

RUNTIME_GLOBALS = {'vdom': ModuleInfo(var_name='vdom', type='cjs')}
ENV_EXPRESSION = "os.environ['MDX_ENV']"


class BundleOrchestrator:
    def __init__(self, options, registry, resolver, pipeline, cwd):
        self.options = options
        self.registry = registry
        self.resolver = resolver
        self.pipeline = pipeline
        self.cwd = cwd

    def build_options(self):
        """The build configuration, after the caller's build_options hook."""
        options = self.options
        globals = {**options.module_infos(), **RUNTIME_GLOBALS}
        written = not isinstance(options.output, InMemoryOutput)
        build_options = BuildOptions(
            entry_points=[self.registry.entry_path],
            bundle=True,
            write=written,
            outdir=options.output.outdir if written else None,
            format='iife',
            global_name=GLOBAL_NAME,
            minify=True,
            define={ENV_EXPRESSION: repr(options.env)},
            plugins=[
                GlobalExternalsPlugin(globals),
                NativeResolvePlugin(),
                InMemoryPlugin(self.resolver, self.pipeline),
                MarkupPlugin(self.pipeline),
            ],
            abs_working_dir=self.cwd,
        )
        if options.build_options is not None:
            build_options = options.build_options(build_options)
        return build_options

    async def run(self):
        """Validate the output mode, then invoke the host exactly once."""
        build_options = self.build_options()
        mode = OutputPackager.output_mode(build_options)
        debug_log(f"Building {self.registry.entry_path} ({mode.kind} output, {len(self.registry)} virtual files)")
        result = await build(build_options)
        return mode, result
