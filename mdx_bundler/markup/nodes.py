"""
Syntax tree nodes shared by the markdown (mdast) and HTML (hast) stages.

Nodes are unist-style: a ``type``, an optional ``value`` for leaves, ``children``
for parents, and whatever extra fields the node type needs (``depth`` on
headings, ``tag_name`` and ``properties`` on hast elements, ...).
"""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Node(BaseModel):
    model_config = ConfigDict(extra='allow')

    type: str
    value: Optional[str] = None
    children: List['Node'] = Field(default_factory=list)

    def get(self, name, default=None):
        return getattr(self, name, default)


Node.model_rebuild()


def walk(node):
    """Yield ``node`` and all its descendants, depth first."""
    yield node
    for child in node.children:
        yield from walk(child)
