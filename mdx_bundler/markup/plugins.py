"""
Remark plugins shipped with the markup compiler.

    remark_frontmatter       recognise a leading '---' YAML block
    remark_mdx_frontmatter   turn that block into 'frontmatter = {...}'

A plugin is called as ``plugin(processor, **options)`` and may return a
transformer ``(tree, vfile)``.
"""
import datetime
import math

import yaml

from ..errors import CompileError
from .nodes import Node


def remark_frontmatter(processor):
    """Enable the YAML frontmatter block in the parser."""
    processor.data['frontmatter'] = True


def to_literal(value):
    """Render parsed YAML as a Python literal expression."""
    if isinstance(value, dict):
        return '{' + ', '.join(f"{to_literal(k)}: {to_literal(v)}" for k, v in value.items()) + '}'
    if isinstance(value, (list, tuple)):
        return '[' + ', '.join(to_literal(v) for v in value) + ']'
    if isinstance(value, (datetime.date, datetime.datetime)):
        return repr(value.isoformat())
    if isinstance(value, float) and not math.isfinite(value):
        return f"float({str(value)!r})"
    if value is None or isinstance(value, (bool, int, float, str)):
        return repr(value)
    return repr(str(value))


def remark_mdx_frontmatter(processor, name='frontmatter'):
    """Export the frontmatter block as a module-level ``name`` binding."""
    if not name.isidentifier():
        raise ValueError(f"Frontmatter export name must be an identifier, got {name!r}")

    def transformer(tree, vfile):
        for index, node in enumerate(tree.children):
            if node.type != 'yaml':
                continue
            try:
                data = yaml.safe_load(node.value) if node.value.strip() else None
            except yaml.YAMLError as e:
                mark = getattr(e, 'problem_mark', None)
                raise CompileError(
                    f"Invalid frontmatter: {getattr(e, 'problem', None) or e}",
                    path=vfile.path,
                    line_number=mark.line + 2 if mark else None,
                    column=mark.column + 1 if mark else None,
                    suggestion="The block between the '---' lines must be valid YAML",
                )
            tree.children[index] = Node(type='mdxjsEsm', value=f"{name} = {to_literal(data)}", exports=[name])
        return tree

    return transformer
