"""
The code generator: PSX to plain Python against the vdom runtime.

    code = CodeGenerator().transform(psx_source)

Element literals are lowered with tag sentinels, then every sentinel is
resolved against the names the module binds: a bound name is used directly,
anything else is looked up at render time with ``resolveComponent``.
"""
import ast

from .errors import TransformError, get_line_context, line_and_column
from .log import debug_log
from .psx import TAG_SENTINEL, ElementRenderer, PsxSyntaxError

# (runtime export, local alias) in import order.
HELPERS = [
    ('resolveComponent', '_resolveComponent'),
    ('createVNode', '_createVNode'),
    ('createTextVNode', '_createTextVNode'),
    ('Fragment', '_Fragment'),
]

PLUGINS = ('vdom-jsx',)


def bound_names(tree):
    """Every name the module binds anywhere, in any scope."""
    names = set()
    for node in ast.walk(tree):
        if isinstance(node, ast.Name) and isinstance(node.ctx, ast.Store):
            names.add(node.id)
        elif isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)):
            names.add(node.name)
        elif isinstance(node, ast.arg):
            names.add(node.arg)
        elif isinstance(node, ast.alias):
            names.add((node.asname or node.name).split('.')[0])
        elif isinstance(node, ast.ExceptHandler) and node.name:
            names.add(node.name)
    return names


class TagResolver(ast.NodeTransformer):
    """Replaces ``__psx_tag__('Name')`` with ``Name`` or ``_resolveComponent('Name')``."""

    def __init__(self, bound):
        self.bound = bound

    def visit_Call(self, node):
        self.generic_visit(node)
        if not (isinstance(node.func, ast.Name) and node.func.id == TAG_SENTINEL):
            return node
        name = node.args[0].value
        if name in self.bound:
            replacement = ast.Name(id=name, ctx=ast.Load())
        else:
            replacement = ast.Call(func=ast.Name(id='_resolveComponent', ctx=ast.Load()),
                                   args=[ast.Constant(value=name)], keywords=[])
        return ast.copy_location(replacement, node)


class CodeGenerator:
    def __init__(self, runtime_module='vdom'):
        self.runtime_module = runtime_module

    def transform(self, source, plugins=PLUGINS, path=None):
        """Lower PSX ``source`` to Python that imports its helpers from the runtime."""
        for plugin in plugins:
            if plugin not in PLUGINS:
                raise TransformError(f"Unknown code generator plugin '{plugin}'", path=path,
                                     suggestion=f"Available plugins: {', '.join(PLUGINS)}")

        renderer = ElementRenderer(factory='_createVNode', fragment='_Fragment',
                                   text_factory='_createTextVNode', tag_sentinel=True)
        try:
            lowered = renderer.lower(source)
        except PsxSyntaxError as e:
            line, column = line_and_column(source, e.offset)
            raise TransformError(e.message, path=path, line_number=line, column=column,
                                 context=get_line_context(source, line))
        try:
            tree = ast.parse(lowered)
        except SyntaxError as e:
            raise TransformError(f"Generated code is not valid Python: {e.msg}", path=path,
                                 line_number=e.lineno, column=e.offset,
                                 context=get_line_context(lowered, e.lineno))

        tree = TagResolver(bound_names(tree)).visit(tree)
        used = {node.id for node in ast.walk(tree) if isinstance(node, ast.Name) and isinstance(node.ctx, ast.Load)}
        helpers = [ast.alias(name=name, asname=alias) for name, alias in HELPERS if alias in used]
        if helpers:
            position = 0
            while position < len(tree.body) and isinstance(tree.body[position], ast.ImportFrom) \
                    and tree.body[position].module == '__future__':
                position += 1
            tree.body.insert(position, ast.ImportFrom(module=self.runtime_module, names=helpers, level=0))
        debug_log(f"Generated {self.runtime_module} code for {path or '<source>'}")
        return ast.unparse(ast.fix_missing_locations(tree)) + '\n'
