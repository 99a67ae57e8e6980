"""
Instantiating bundled code.

    component = get_mdx_component(result.code)
    html = render_to_string(component, {'name': 'World'})
"""
import ast

from .runtime import vdom

_TEMPLATE = "def __mdx_component__({params}):\n    pass\n"


def get_mdx_component(code, globals=None):
    """
    Evaluate bundled ``code`` and return its default export.

    The code is the body of a function whose parameters are the names in
    ``globals``; ``vdom`` is bound to the shipped runtime unless overridden.
    """
    scope = {'vdom': vdom, **(globals or {})}
    for name in scope:
        if not name.isidentifier():
            raise ValueError(f"Global name {name!r} is not a valid identifier")

    body = ast.parse(code, filename='<mdx-bundle>').body
    module = ast.parse(_TEMPLATE.format(params=', '.join(scope)))
    module.body[0].body = body or [ast.Pass()]
    namespace = {}
    exec(compile(module, '<mdx-bundle>', 'exec'), namespace)
    return namespace['__mdx_component__'](*scope.values())
