"""
Unit tests for mdx_bundler/runtime/vdom.py - vnodes and server rendering.
"""
from mdx_bundler.runtime import vdom
from mdx_bundler.runtime.vdom import Fragment, createVNode, register_component, render_to_string, resolveComponent


class TestVNodes:
    """Tests for vnode construction."""

    def test_children_are_flattened(self):
        """Nested children are flattened and text is wrapped."""
        node = createVNode('ul', None, [[createVNode('li'), None, False], 'text', 3])
        assert [child.type for child in node.children] == ['li', vdom.Text, vdom.Text]
        assert node.children[2].children == '3'

    def test_props_are_copied(self):
        """createVNode copies its props."""
        props = {'id': 'a'}
        node = createVNode('div', props)
        node.props['id'] = 'b'
        assert props == {'id': 'a'}


class TestRendering:
    """Tests for render_to_string()."""

    def test_attributes_and_escaping(self):
        """Attributes are rendered and values escaped."""
        node = createVNode('p', {'className': 'x', 'title': 'a "b"'}, ['a < b'])
        assert render_to_string(node) == '<p class="x" title="a &quot;b&quot;">a &lt; b</p>'

    def test_void_and_boolean_attributes(self):
        """Void elements have no closing tag; False attributes are dropped."""
        node = createVNode('input', {'disabled': True, 'hidden': False})
        assert render_to_string(node) == '<input disabled>'

    def test_fragment(self):
        """Fragments use the fragment name."""
        node = createVNode(Fragment, None, [createVNode('b', None, ['1']), '\n', createVNode('i')])
        assert render_to_string(node) == '<b>1</b>\n<i></i>'

    def test_component_receives_children(self):
        """Components receive children in props."""
        def Box(props):
            return createVNode('div', {'class': props['kind']}, props.get('children'))

        node = createVNode(Box, {'kind': 'note'}, ['hi'])
        assert render_to_string(node) == '<div class="note">hi</div>'

    def test_render_component_with_props(self):
        """A component can be rendered with props directly."""
        def Greeting(props):
            return f"Hello {props['name']}"

        assert render_to_string(Greeting, {'name': 'World'}) == 'Hello World'


class TestResolveComponent:
    """Tests for resolveComponent()."""

    def test_uses_render_components(self):
        """resolveComponent finds components passed to render_to_string."""
        def Badge(props):
            return createVNode('span', None, ['new'])

        def Page(props):
            return createVNode(resolveComponent('Badge'))

        assert render_to_string(Page, components={'Badge': Badge}) == '<span>new</span>'

    def test_unknown_name_warns_and_falls_back(self, capsys):
        """Unknown components warn and resolve to their name."""
        assert resolveComponent('Missing') == 'Missing'
        assert "Failed to resolve component: Missing" in capsys.readouterr().err

    def test_registered_component(self):
        """Globally registered components are found when rendering without components."""
        def Registered(props):
            return createVNode('em', None, ['registered'])

        register_component('Registered', Registered)

        def Page(props):
            return createVNode(resolveComponent('Registered'))

        assert render_to_string(Page) == '<em>registered</em>'
