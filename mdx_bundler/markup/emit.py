"""
hast to PSX: the last stage of the markup compiler.

The emitted module has a fixed shape the code generator and the mock
component rewrite rely on:

    <ESM blocks, frontmatter binding>
    def _createMdxContent(props): ...
    def MDXContent(props=None): ...
    default = MDXContent
"""

def _expression(value):
    # A '#' comment would swallow the closing brace.
    return '{' + value + ('\n}' if '#' in value else '}')


def _trim_newlines(nodes):
    result = []
    for node in nodes:
        if node.type == 'text' and node.value == '\n' and (not result or _is_newline(result[-1])):
            continue
        result.append(node)
    while result and _is_newline(result[-1]):
        result.pop()
    return result


def _is_newline(node):
    return node.type == 'text' and node.value == '\n'


class PsxEmitter:
    def __init__(self):
        self.tags = []

    def emit(self, tree):
        esm = [child.value for child in tree.children if child.type == 'mdxjsEsm']
        content = _trim_newlines([child for child in tree.children if child.type != 'mdxjsEsm'])
        body = ''.join(self.node(child) for child in content)

        lines = list(esm)
        if esm:
            lines.append('')
        lines.append('def _createMdxContent(props):')
        if self.tags:
            defaults = ', '.join(f"{tag!r}: {tag!r}" for tag in self.tags)
            lines.append(f"    _components = {{{defaults}, **(props.get('components') or {{}})}}")
            for tag in self.tags:
                lines.append(f"    _{tag} = _components[{tag!r}]")
        lines.append(f"    return <>{body}</>")
        lines.append('')
        lines.append('')
        lines.append('def MDXContent(props=None):')
        lines.append('    props = props or {}')
        lines.append("    _wrapper = (props.get('components') or {}).get('wrapper')")
        lines.append('    if _wrapper:')
        lines.append('        return <_wrapper {**props}><_createMdxContent {**props}/></_wrapper>')
        lines.append('    return _createMdxContent(props)')
        lines.append('')
        lines.append('')
        lines.append('default = MDXContent')
        return '\n'.join(lines) + '\n'

    def node(self, node):
        if node.type == 'text':
            return _expression(repr(node.value))
        if node.type in ('mdxFlowExpression', 'mdxTextExpression'):
            return _expression(node.value)
        if node.type == 'element':
            if node.tag_name not in self.tags:
                self.tags.append(node.tag_name)
            return self._tag('_' + node.tag_name, self._properties(node.properties), node.children)
        if node.type in ('mdxJsxFlowElement', 'mdxJsxTextElement'):
            if node.name is None:
                return '<>' + ''.join(self.node(child) for child in node.children) + '</>'
            return self._tag(node.name, self._attributes(node.attributes), node.children)
        return ''

    def _tag(self, name, attributes, children):
        if not children:
            return f"<{name}{attributes}/>"
        inner = ''.join(self.node(child) for child in children)
        return f"<{name}{attributes}>{inner}</{name}>"

    @staticmethod
    def _properties(properties):
        parts = []
        for key, value in properties.items():
            if value is None or value is False:
                continue
            if value is True:
                parts.append(f" {key}")
                continue
            if isinstance(value, list):
                value = ' '.join(str(v) for v in value)
            parts.append(f" {key}={_expression(repr(value))}")
        return ''.join(parts)

    @staticmethod
    def _attributes(attributes):
        parts = []
        for attribute in attributes:
            if attribute.kind == 'spread':
                parts.append(' ' + _expression('**' + attribute.value))
            elif attribute.kind == 'expression':
                parts.append(f" {attribute.name}={_expression(attribute.value)}")
            elif attribute.kind == 'boolean':
                parts.append(f" {attribute.name}")
            else:
                parts.append(f" {attribute.name}={_expression(repr(attribute.value))}")
        return ''.join(parts)


def to_psx(tree):
    """Emit PSX source for a hast root."""
    return PsxEmitter().emit(tree)
