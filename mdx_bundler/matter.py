"""
Frontmatter extraction from the raw document, before compilation.
"""
import frontmatter
import yaml

from .errors import CompileError


def extract_frontmatter(text, path=None):
    """Return the document's frontmatter as a dict (empty when there is none)."""
    try:
        metadata, _ = frontmatter.parse(text)
    except yaml.YAMLError as e:
        mark = getattr(e, 'problem_mark', None)
        raise CompileError(
            f"Invalid frontmatter: {getattr(e, 'problem', None) or e}",
            path=path,
            line_number=mark.line + 2 if mark else None,
            suggestion="The block between the '---' lines must be valid YAML",
        )
    return dict(metadata)
