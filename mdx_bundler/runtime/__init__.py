# MDX Bundler Runtime Components
"""
Runtime pieces that end up inside, or next to, a bundle.

- bundle_prelude.py: the module-registry scaffolding every bundle is built from.
  It is a real Python file for IDE support, read as text at build time.
- vdom: the component runtime bundled documents render against.
"""

import os


def get_prelude():
    """Read the bundle scaffolding source."""
    path = os.path.join(os.path.dirname(__file__), 'bundle_prelude.py')
    with open(path, 'r') as f:
        return f.read()
