"""
Turning loaded module contents into bundle-ready Python statements.

Every module ends up as the body of a factory function inside the bundle:

    def __m3():
        <module body, imports rewritten to __require__(key) lookups>
        return locals()

Loaders decide how contents become Python first: 'py' is taken as is, 'pyi'
strips annotations, 'psx' lowers element literals, 'psxi' does both, 'json'
and 'text' become a module with a ``default`` binding.
"""
import ast
import json
import keyword

from ..errors import BuildError, get_line_context, line_and_column
from ..psx import ElementRenderer, PsxSyntaxError
from .options import LOADERS


class PreparedModule:
    """A parsed module body plus the specifiers it imports, in source order."""

    def __init__(self, path, body, specifiers):
        self.path = path
        self.body = body
        self.specifiers = specifiers


# ==========================================
# LOADERS
# ==========================================

def _data_module(value):
    lines = [f"default = {value!r}"]
    if isinstance(value, dict):
        for name in value:
            if isinstance(name, str) and name.isidentifier() and not keyword.iskeyword(name) and name != 'default':
                lines.append(f"{name} = default[{name!r}]")
    return "\n".join(lines)


def to_python(contents, loader, path, options):
    """Convert module contents to Python source according to the loader."""
    if loader not in LOADERS:
        raise BuildError(
            f'Invalid loader value: "{loader}"',
            path=path,
            suggestion=f"Use one of: {', '.join(LOADERS)} (or map the extension with the 'loader' option)",
        )
    if loader == 'json':
        try:
            return _data_module(json.loads(contents))
        except json.JSONDecodeError as e:
            raise BuildError(f"Invalid JSON: {e.msg}", path=path, line_number=e.lineno, column=e.colno)
    if loader == 'text':
        return _data_module(contents)
    if loader in ('psx', 'psxi'):
        renderer = ElementRenderer(factory=options.jsx_factory, fragment=options.jsx_fragment)
        try:
            return renderer.lower(contents)
        except PsxSyntaxError as e:
            line, column = line_and_column(contents, e.offset)
            raise BuildError(e.message, path=path, line_number=line, column=column,
                             context=get_line_context(contents, line))
    return contents


class AnnotationStripper(ast.NodeTransformer):
    """Drops type annotations, leaving runtime behaviour intact."""

    def visit_arg(self, node):
        node.annotation = None
        return node

    def _function(self, node):
        node.returns = None
        self.generic_visit(node)
        return node

    visit_FunctionDef = _function
    visit_AsyncFunctionDef = _function

    def visit_AnnAssign(self, node):
        if node.value is None:
            return None
        return ast.copy_location(ast.Assign(targets=[node.target], value=node.value), node)

    def generic_visit(self, node):
        super().generic_visit(node)
        if isinstance(getattr(node, 'body', None), list) and not node.body:
            node.body.append(ast.Pass())
        return node


class DefineReplacer(ast.NodeTransformer):
    """Substitutes configured expressions with constant values."""

    def __init__(self, define):
        self.replacements = {}
        for expression, value in define.items():
            key = ast.dump(ast.parse(expression, mode='eval').body)
            self.replacements[key] = value

    def _maybe_replace(self, node):
        value = self.replacements.get(ast.dump(node))
        if value is not None:
            return ast.copy_location(ast.parse(value, mode='eval').body, node)
        return self.generic_visit(node)

    visit_Name = _maybe_replace
    visit_Attribute = _maybe_replace
    visit_Subscript = _maybe_replace
    visit_Call = _maybe_replace


def _strip_docstrings(body):
    blocks = [body]
    for node in ast.walk(ast.Module(body=body, type_ignores=[])):
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)):
            blocks.append(node.body)
    for block in blocks:
        if block and isinstance(block[0], ast.Expr) and isinstance(block[0].value, ast.Constant) \
                and isinstance(block[0].value.value, str):
            del block[0]
            if not block:
                block.append(ast.Pass())


# ==========================================
# IMPORTS
# ==========================================

def relative_specifier(level, module):
    prefix = './' if level == 1 else '../' * (level - 1)
    return prefix + module.replace('.', '/') if module else prefix.rstrip('/')


def import_specifiers(node):
    """Specifiers an Import/ImportFrom node needs, one per alias where it matters."""
    if isinstance(node, ast.Import):
        return [alias.name for alias in node.names]
    if node.module == '__future__':
        return []
    if node.level == 0:
        return [node.module]
    if node.module:
        return [relative_specifier(node.level, node.module)]
    base = relative_specifier(node.level, None)
    return [f"{base}/{alias.name}" for alias in node.names]


def collect_specifiers(body):
    seen = []
    for node in ast.walk(ast.Module(body=body, type_ignores=[])):
        if isinstance(node, (ast.Import, ast.ImportFrom)):
            for specifier in import_specifiers(node):
                if specifier not in seen:
                    seen.append(specifier)
    return seen


def prepare_module(contents, loader, path, options):
    """Load, parse and pre-process one module. Imports are collected, not yet rewritten."""
    source = to_python(contents, loader, path, options)
    try:
        tree = ast.parse(source, filename=path)
    except SyntaxError as e:
        raise BuildError(e.msg, path=path, line_number=e.lineno, column=e.offset,
                         context=get_line_context(source, e.lineno))
    if loader in ('pyi', 'psxi'):
        tree = AnnotationStripper().visit(tree)
    if options.define:
        tree = DefineReplacer(options.define).visit(tree)
    body = [node for node in tree.body
            if not (isinstance(node, ast.ImportFrom) and node.module == '__future__')]
    if options.minify:
        _strip_docstrings(body)
    return PreparedModule(path, body, collect_specifiers(body) if options.bundle else [])


def _require(key):
    return ast.Call(func=ast.Name(id='__require__', ctx=ast.Load()), args=[ast.Constant(value=key)], keywords=[])


def _assign(name, value):
    return ast.Assign(targets=[ast.Name(id=name, ctx=ast.Store())], value=value)


class ImportRewriter(ast.NodeTransformer):
    """Rewrites imports of bundled and global modules into __require__ lookups."""

    def __init__(self, path, links):
        self.path = path
        self.links = links  # specifier -> module key, or None for runtime imports

    def _error(self, node, message, suggestion=None):
        return BuildError(message, path=self.path, line_number=getattr(node, 'lineno', None), suggestion=suggestion)

    def visit_Import(self, node):
        kept = []
        statements = []
        for alias in node.names:
            key = self.links.get(alias.name)
            if key is None:
                kept.append(alias)
            elif alias.asname:
                statements.append(_assign(alias.asname, _require(key)))
            elif '.' not in alias.name:
                statements.append(_assign(alias.name, _require(key)))
            else:
                raise self._error(node, f"Dotted import of bundled module '{alias.name}' needs an alias",
                                  suggestion=f"Write 'import {alias.name} as name'")
        if kept:
            statements.insert(0, ast.Import(names=kept))
        return [ast.copy_location(s, node) for s in statements or [ast.Pass()]]

    def visit_ImportFrom(self, node):
        if node.module == '__future__':
            return None
        specifiers = import_specifiers(node)
        if node.level and not node.module:
            statements = []
            kept = []
            for alias, specifier in zip(node.names, specifiers):
                key = self.links.get(specifier)
                if key is None:
                    kept.append(alias)
                else:
                    statements.append(_assign(alias.asname or alias.name, _require(key)))
            if kept:
                statements.insert(0, ast.ImportFrom(module=None, names=kept, level=node.level))
            return [ast.copy_location(s, node) for s in statements or [ast.Pass()]]

        key = self.links.get(specifiers[0])
        if key is None:
            return node
        if any(alias.name == '*' for alias in node.names):
            raise self._error(node, f"Star import from bundled module '{specifiers[0]}' is not supported",
                              suggestion="Import the names you use explicitly")
        statements = [
            _assign(alias.asname or alias.name,
                    ast.Attribute(value=_require(key), attr=alias.name, ctx=ast.Load()))
            for alias in node.names
        ]
        return [ast.copy_location(s, node) for s in statements]


def _top_level_bindings(body):
    names = set()
    for node in body:
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)):
            names.add(node.name)
        elif isinstance(node, (ast.Import, ast.ImportFrom)):
            for alias in node.names:
                names.add((alias.asname or alias.name).split('.')[0])
        else:
            for child in ast.walk(node):
                if isinstance(child, ast.Name) and isinstance(child.ctx, ast.Store):
                    names.add(child.id)
    return names


class GlobalRewriter(ast.NodeTransformer):
    """Module globals become locals of the factory; 'global' turns into 'nonlocal'."""

    def __init__(self, bindings):
        self.bindings = bindings
        self.depth = 0

    def _scope(self, node):
        self.depth += 1
        self.generic_visit(node)
        self.depth -= 1
        return node

    visit_FunctionDef = _scope
    visit_AsyncFunctionDef = _scope
    visit_Lambda = _scope

    def visit_Global(self, node):
        if self.depth == 0:
            return None
        if all(name in self.bindings for name in node.names):
            return ast.copy_location(ast.Nonlocal(names=node.names), node)
        return node


def link_module(prepared, links):
    """Rewrite a prepared module's imports now that every specifier is resolved."""
    module = ast.Module(body=prepared.body, type_ignores=[])
    module = ImportRewriter(prepared.path, links).visit(module)
    module = GlobalRewriter(_top_level_bindings(module.body)).visit(module)
    return module.body
