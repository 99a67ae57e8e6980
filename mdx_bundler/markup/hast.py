"""
mdast to hast: markdown nodes become HTML element nodes.

MDX nodes (ESM, expressions, element literals) pass through unchanged apart
from their children. Flow content is separated by '\\n' text nodes, so the
rendered HTML keeps one block per line.
"""
from .nodes import Node

_PASS_THROUGH = {'mdxjsEsm', 'mdxFlowExpression', 'mdxTextExpression'}
_ELEMENTS = {'paragraph': 'p', 'emphasis': 'em', 'strong': 'strong', 'blockquote': 'blockquote'}
_FLOW_PARENTS = {'root', 'blockquote', 'mdxJsxFlowElement'}


def element(tag_name, properties=None, children=None):
    return Node(type='element', tag_name=tag_name, properties=properties or {}, children=children or [])


def text(value):
    return Node(type='text', value=value)


def wrap(nodes, loose=True):
    """Join flow nodes with newline text nodes."""
    result = []
    for index, node in enumerate(nodes):
        if index:
            result.append(text('\n'))
        result.append(node)
    if loose and nodes:
        result.append(text('\n'))
        result.insert(0, text('\n'))
    return result


class HastBuilder:
    def all(self, node):
        children = []
        for child in node.children:
            converted = self.one(child, node)
            if converted is None:
                continue
            if isinstance(converted, list):
                children.extend(converted)
            else:
                children.append(converted)
        return children

    def one(self, node, parent):
        handler = getattr(self, 'visit_' + node.type, None)
        if handler is not None:
            return handler(node, parent)
        if node.type in _PASS_THROUGH:
            return node.model_copy()
        if node.type in _ELEMENTS:
            children = self.all(node)
            if node.type == 'blockquote':
                children = wrap(children)
            return element(_ELEMENTS[node.type], children=children)
        return None

    def visit_root(self, node, parent):
        return Node(type='root', children=wrap(self.all(node), loose=False))

    def visit_text(self, node, parent):
        return text(node.value)

    def visit_yaml(self, node, parent):
        return None

    def visit_heading(self, node, parent):
        return element(f"h{node.depth}", children=self.all(node))

    def visit_thematicBreak(self, node, parent):
        return element('hr')

    def visit_break(self, node, parent):
        return [element('br'), text('\n')]

    def visit_inlineCode(self, node, parent):
        return element('code', children=[text(node.value)])

    def visit_code(self, node, parent):
        properties = {}
        if node.get('lang'):
            properties['className'] = ['language-' + node.lang]
        value = node.value + '\n' if node.value else ''
        return element('pre', children=[element('code', properties, [text(value)])])

    def visit_link(self, node, parent):
        properties = {'href': node.url}
        if node.get('title') is not None:
            properties['title'] = node.title
        return element('a', properties, self.all(node))

    def visit_image(self, node, parent):
        properties = {'src': node.url, 'alt': node.alt}
        if node.get('title') is not None:
            properties['title'] = node.title
        return element('img', properties)

    def visit_list(self, node, parent):
        properties = {}
        if node.ordered and node.get('start') not in (None, 1):
            properties['start'] = node.start
        items = [self.visit_listItem(item, node) for item in node.children]
        return element('ol' if node.ordered else 'ul', properties, wrap(items))

    def visit_listItem(self, node, parent):
        spread = parent.get('spread')
        children = []
        for child in node.children:
            converted = self.one(child, node)
            if converted is None:
                continue
            if not spread and child.type == 'paragraph':
                children.extend(converted.children)
            elif isinstance(converted, list):
                children.extend(converted)
            else:
                children.append(converted)
        if spread:
            children = wrap(children)
        return element('li', children=children)

    def _jsx(self, node, parent):
        copy = node.model_copy()
        children = self.all(node)
        if node.type in _FLOW_PARENTS and any(child.type != 'text' for child in node.children):
            children = wrap(children, loose=False)
        copy.children = children
        return copy

    visit_mdxJsxFlowElement = _jsx
    visit_mdxJsxTextElement = _jsx


def to_hast(tree):
    """Convert an mdast root to a hast root."""
    return HastBuilder().one(tree, None)
