"""
vdom - the component runtime bundled documents render against.

Generated code reaches it through the ``vdom`` global binding:

    from vdom import createVNode as _createVNode, Fragment as _Fragment

Components are plain callables taking a props dict (children arrive under
``props['children']``) and returning a vnode, a string, a list of those, or None.
"""
import contextvars
import html

from ..log import warn


class _Marker:
    def __init__(self, name):
        self.name = name

    def __repr__(self):
        return self.name


Fragment = _Marker('Fragment')
Text = _Marker('Text')

VOID_ELEMENTS = {
    'area', 'base', 'br', 'col', 'embed', 'hr', 'img', 'input',
    'link', 'meta', 'source', 'track', 'wbr',
}

_registry = {}
_app_components = contextvars.ContextVar('vdom_components', default=None)


class VNode:
    """A virtual node: a tag, a component or a Fragment, with props and children."""
    __slots__ = ('type', 'props', 'children')

    def __init__(self, type, props=None, children=None):
        self.type = type
        self.props = props or {}
        self.children = children if children is not None else []

    def __repr__(self):
        return f"VNode({self.type!r}, {self.props!r}, {self.children!r})"


def normalize_children(children):
    """Flatten nested lists and turn strings and numbers into text vnodes."""
    if children is None:
        return []
    if not isinstance(children, (list, tuple)):
        children = [children]
    result = []
    for child in children:
        if child is None or isinstance(child, bool):
            continue
        if isinstance(child, (list, tuple)):
            result.extend(normalize_children(child))
        elif isinstance(child, VNode):
            result.append(child)
        else:
            result.append(createTextVNode(child))
    return result


def createVNode(type, props=None, children=None):
    return VNode(type, dict(props) if props else {}, normalize_children(children))


h = createVNode


def createTextVNode(text):
    return VNode(Text, None, str(text))


def register_component(name, component):
    """Register a component globally for resolveComponent()."""
    _registry[name] = component


def resolveComponent(name):
    """Look a component up by name; fall back to the name itself, as a tag."""
    components = _app_components.get()
    if components and name in components:
        return components[name]
    if name in _registry:
        return _registry[name]
    warn(f"Failed to resolve component: {name}")
    return name


# ==========================================
# SERVER RENDERING
# ==========================================

def _render_attributes(props):
    parts = []
    for key, value in props.items():
        if key == 'children' or value is None or value is False or callable(value):
            continue
        if key == 'className':
            key = 'class'
        if value is True:
            parts.append(f" {key}")
            continue
        if key == 'style' and isinstance(value, dict):
            value = ';'.join(f"{k}:{v}" for k, v in value.items())
        parts.append(f' {key}="{html.escape(str(value), quote=True)}"')
    return ''.join(parts)


def _render(node):
    if node is None or isinstance(node, bool):
        return ''
    if isinstance(node, (list, tuple)):
        return ''.join(_render(child) for child in node)
    if not isinstance(node, VNode):
        return html.escape(str(node), quote=False)
    if node.type is Text:
        return html.escape(node.children, quote=False)
    if node.type is Fragment:
        return _render(node.children)
    if isinstance(node.type, str):
        tag = node.type
        attributes = _render_attributes(node.props)
        if tag in VOID_ELEMENTS:
            return f"<{tag}{attributes}>"
        return f"<{tag}{attributes}>{_render(node.children)}</{tag}>"
    if callable(node.type):
        props = dict(node.props)
        if node.children:
            props['children'] = node.children
        return _render(node.type(props))
    raise TypeError(f"Cannot render vnode of type {node.type!r}")


def render_to_string(node, props=None, components=None):
    """
    Render a vnode tree, or a component called with ``props``, to an HTML string.

    ``components`` maps names to components for resolveComponent() while rendering.
    """
    if not isinstance(node, VNode) and callable(node):
        node = createVNode(node, props)
    token = _app_components.set(dict(components) if components else None)
    try:
        return _render(node)
    finally:
        _app_components.reset(token)
