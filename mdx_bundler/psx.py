"""
Element literals: scanning, parsing and lowering.

PSX is Python with element literals in expression position:

    def Card(props):
        return <div class="card">{props['title']}</div>

The same element syntax appears inside MDX documents. This module finds where
an element starts and ends in a larger source, parses it with the Lark grammar
from ``grammar.py`` and lowers it back to plain Python calls.
"""
import re
from typing import List, Optional, Union

from lark import Lark, Transformer
from lark.exceptions import LarkError
from pydantic import BaseModel

from .grammar import psx_grammar

_TAG_NAME_RE = re.compile(r'[A-Za-z_$][\w.\-:$]*')
_PLACEHOLDER_RE = re.compile(r'\{#(\d+)\}')

# Words after which a '<' starts an element instead of a comparison.
_EXPRESSION_KEYWORDS = {
    'return', 'yield', 'else', 'and', 'or', 'not', 'in', 'is',
    'await', 'lambda', 'if', 'assert',
}


class PsxSyntaxError(ValueError):
    """Malformed element literal. ``offset`` points into the scanned source."""

    def __init__(self, message, offset=0):
        self.message = message
        self.offset = offset
        super().__init__(message)


class Attribute(BaseModel):
    name: Optional[str] = None
    kind: str  # 'string' | 'expression' | 'boolean' | 'spread'
    value: Optional[str] = None


class Text(BaseModel):
    value: str


class Expression(BaseModel):
    source: str


class Element(BaseModel):
    name: Optional[str] = None  # None for fragments
    attributes: List[Attribute] = []
    children: List[Union['Element', Text, Expression]] = []

    @property
    def is_fragment(self):
        return self.name is None


Element.model_rebuild()


class ScannedElement(BaseModel):
    """An element located inside a larger source."""
    start: int
    end: int
    text: str  # element text with {#N} placeholders
    expressions: List[str]
    inner_start: Optional[int] = None  # raw children span in the original source
    inner_end: Optional[int] = None


# ==========================================
# SCANNING
# ==========================================

def skip_string(src, i):
    """Return the index just past the Python string literal starting at ``src[i]``."""
    quote = src[i]
    n = len(src)
    if src.startswith(quote * 3, i):
        j = i + 3
        while j < n:
            if src[j] == '\\':
                j += 2
                continue
            if src.startswith(quote * 3, j):
                return j + 3
            j += 1
        raise PsxSyntaxError("Unterminated triple-quoted string", i)
    j = i + 1
    while j < n:
        c = src[j]
        if c == '\\':
            j += 2
            continue
        if c == quote:
            return j + 1
        if c == '\n':
            break
        j += 1
    raise PsxSyntaxError("Unterminated string", i)


def is_element_start(src, i):
    """Decide whether the '<' at ``src[i]`` opens an element literal."""
    if src[i] != '<' or i + 1 >= len(src):
        return False
    nxt = src[i + 1]
    if not (nxt.isalpha() or nxt in '_$>'):
        return False
    j = i - 1
    while j >= 0 and src[j] in ' \t\r\n':
        j -= 1
    if j < 0:
        return True
    prev = src[j]
    if prev in '([{,=:;':
        return True
    if prev.isalnum() or prev == '_':
        k = j
        while k >= 0 and (src[k].isalnum() or src[k] == '_'):
            k -= 1
        return src[k + 1:j + 1] in _EXPRESSION_KEYWORDS
    return False


def find_expression_end(src, i):
    """Return the index just past the '}' matching the '{' at ``src[i]``."""
    start = i
    depth = 0
    n = len(src)
    while i < n:
        c = src[i]
        if c in '"\'':
            i = skip_string(src, i)
            continue
        if c == '#':
            newline = src.find('\n', i)
            i = n if newline < 0 else newline
            continue
        if c == '<' and is_element_start(src, i):
            i = _scan(src, i, [], [])[0]
            continue
        if c == '{':
            depth += 1
        elif c == '}':
            depth -= 1
            if depth == 0:
                return i + 1
        i += 1
    raise PsxSyntaxError("Unterminated expression: missing '}'", start)


def _placeholder(src, i, out, expressions):
    end = find_expression_end(src, i)
    out.append('{#%d}' % len(expressions))
    expressions.append(src[i + 1:end - 1])
    return end


def _scan(src, start, out, expressions):
    """Scan one element. Returns ``(end, inner_start, inner_end)``."""
    n = len(src)
    i = start + 1
    out.append('<')
    if src.startswith('>', i):
        name = ''
        out.append('>')
        i += 1
    else:
        match = _TAG_NAME_RE.match(src, i)
        if not match:
            raise PsxSyntaxError("Expected a tag name after '<'", i)
        name = match.group()
        out.append(name)
        i = match.end()
        while True:
            if i >= n:
                raise PsxSyntaxError(f"Unterminated tag <{name}>", start)
            c = src[i]
            if src.startswith('/>', i):
                out.append('/>')
                return i + 2, None, None
            if c == '>':
                out.append('>')
                i += 1
                break
            if c in '"\'':
                close = src.find(c, i + 1)
                if close < 0:
                    raise PsxSyntaxError("Unterminated attribute value", i)
                out.append(src[i:close + 1])
                i = close + 1
                continue
            if c == '{':
                i = _placeholder(src, i, out, expressions)
                continue
            out.append(c)
            i += 1

    inner_start = i
    while True:
        if i >= n:
            label = f"<{name}>" if name else "<>"
            raise PsxSyntaxError(f"Unclosed element {label}", start)
        c = src[i]
        if src.startswith('</', i):
            close = src.find('>', i)
            if close < 0:
                raise PsxSyntaxError("Unterminated closing tag", i)
            out.append(src[i:close + 1])
            return close + 1, inner_start, i
        if c == '<':
            i = _scan(src, i, out, expressions)[0]
            continue
        if c == '{':
            i = _placeholder(src, i, out, expressions)
            continue
        out.append(c)
        i += 1


def scan_element(src, start):
    """Locate the element starting at ``src[start]`` and cut out its expressions."""
    out = []
    expressions = []
    end, inner_start, inner_end = _scan(src, start, out, expressions)
    return ScannedElement(
        start=start,
        end=end,
        text=''.join(out),
        expressions=expressions,
        inner_start=inner_start,
        inner_end=inner_end,
    )


# ==========================================
# PARSING
# ==========================================

_parser = Lark(psx_grammar, parser='lalr')


class ElementBuilder(Transformer):
    """Turns the Lark tree into Element / Text / Expression models."""

    def __init__(self, expressions):
        super().__init__()
        self.expressions = expressions

    def _source(self, token):
        return self.expressions[int(_PLACEHOLDER_RE.search(token).group(1))]

    def _split(self, items):
        attributes = [i for i in items if isinstance(i, Attribute)]
        children = [i for i in items if isinstance(i, (Element, Text, Expression))]
        return attributes, children

    def self_closing(self, items):
        attributes, _ = self._split(items[1:])
        return Element(name=str(items[0]), attributes=attributes)

    def paired(self, items):
        opening, closing = str(items[0]), str(items[-1])
        if opening != closing:
            raise PsxSyntaxError(f"Expected closing tag </{opening}> but found </{closing}>")
        attributes, children = self._split(items[1:-1])
        return Element(name=opening, attributes=attributes, children=children)

    def fragment(self, items):
        _, children = self._split(items)
        return Element(name=None, children=children)

    def named_attribute(self, items):
        name = str(items[0]).strip()
        if len(items) == 1:
            return Attribute(name=name, kind='boolean')
        value = str(items[1])
        if value.startswith('{#'):
            return Attribute(name=name, kind='expression', value=self._source(value))
        return Attribute(name=name, kind='string', value=value[1:-1])

    def spread_attribute(self, items):
        source = self._source(str(items[0])).strip()
        if not source.startswith('**'):
            raise PsxSyntaxError(f"Attribute expressions must be spreads like {{**props}}, got {{{source}}}")
        return Attribute(kind='spread', value=source[2:])

    def expression_child(self, items):
        return Expression(source=self._source(str(items[0])))

    def text_child(self, items):
        return Text(value=str(items[0]))


def parse_scanned(scanned):
    """Parse a ScannedElement into an Element tree."""
    try:
        tree = _parser.parse(scanned.text)
        return ElementBuilder(scanned.expressions).transform(tree)
    except PsxSyntaxError as e:
        raise PsxSyntaxError(e.message, scanned.start) from None
    except LarkError as e:
        inner = getattr(e, 'orig_exc', None)
        if isinstance(inner, PsxSyntaxError):
            raise PsxSyntaxError(inner.message, scanned.start) from None
        raise PsxSyntaxError(f"Invalid element syntax: {str(e).splitlines()[0]}", scanned.start) from None


def parse_element(src, start=0):
    """Scan and parse the element at ``src[start]``. Returns ``(element, end)``."""
    scanned = scan_element(src, start)
    return parse_scanned(scanned), scanned.end


def clean_text(text):
    """Collapse element text the way JSX does: drop indentation and blank lines."""
    lines = text.replace('\r\n', '\n').split('\n')
    last_non_empty = -1
    for index, line in enumerate(lines):
        if line.strip(' \t'):
            last_non_empty = index
    result = []
    for index, line in enumerate(lines):
        trimmed = line.replace('\t', ' ')
        if index != 0:
            trimmed = trimmed.lstrip(' ')
        if index != len(lines) - 1:
            trimmed = trimmed.rstrip(' ')
        if trimmed:
            if index != last_non_empty:
                trimmed += ' '
            result.append(trimmed)
    return ''.join(result)


# ==========================================
# LOWERING
# ==========================================

HTML_TAGS = set("""
a abbr address area article aside audio b base bdi bdo blockquote body br button canvas
caption cite code col colgroup data datalist dd del details dfn dialog div dl dt em embed
fieldset figcaption figure footer form h1 h2 h3 h4 h5 h6 head header hgroup hr html i iframe
img input ins kbd label legend li link main map mark menu meta meter nav noscript object ol
optgroup option output p param picture pre progress q rp rt ruby s samp script section select
slot small source span strong style sub summary sup table tbody td template textarea tfoot th
thead time title tr track u ul var video wbr
svg circle ellipse g line path polygon polyline rect text tspan defs use
""".split())

TAG_SENTINEL = '__psx_tag__'


class ElementRenderer:
    """
    Lowers element literals inside Python source to factory calls.

    ``factory(tag, props, [children])`` is emitted for every element. Native tags
    become strings. Other tags become references, or ``__psx_tag__('Name')``
    sentinels when ``tag_sentinel`` is set so a later pass can decide between a
    binding and a runtime lookup.
    """

    def __init__(self, factory='h', fragment='Fragment', text_factory=None, tag_sentinel=False):
        self.factory = factory
        self.fragment = fragment
        self.text_factory = text_factory
        self.tag_sentinel = tag_sentinel

    def lower(self, source):
        """Return ``source`` with every element literal replaced by a call."""
        out = []
        i = 0
        last = 0
        n = len(source)
        while i < n:
            c = source[i]
            if c in '"\'':
                i = skip_string(source, i)
                continue
            if c == '#':
                newline = source.find('\n', i)
                i = n if newline < 0 else newline
                continue
            if c == '<' and is_element_start(source, i):
                element, end = parse_element(source, i)
                out.append(source[last:i])
                out.append(self.render(element))
                i = last = end
                continue
            i += 1
        out.append(source[last:])
        return ''.join(out)

    def render(self, element):
        args = [self.tag(element), self.props(element)]
        children = [c for c in (self.child(child) for child in element.children) if c]
        if children:
            args.append('[' + ', '.join(children) + ']')
        return f"{self.factory}({', '.join(args)})"

    def tag(self, element):
        if element.is_fragment:
            return self.fragment
        name = element.name
        if name in HTML_TAGS or '-' in name or ':' in name:
            return repr(name)
        if self.tag_sentinel and '.' not in name:
            return f"{TAG_SENTINEL}({name!r})"
        return name

    def props(self, element):
        if not element.attributes:
            return 'None'
        entries = []
        for attribute in element.attributes:
            if attribute.kind == 'spread':
                entries.append(f"**({self.lower(attribute.value)}\n)")
            elif attribute.kind == 'expression':
                entries.append(f"{attribute.name!r}: ({self.lower(attribute.value)}\n)")
            elif attribute.kind == 'boolean':
                entries.append(f"{attribute.name!r}: True")
            else:
                entries.append(f"{attribute.name!r}: {attribute.value!r}")
        return '{' + ', '.join(entries) + '}'

    def child(self, child):
        if isinstance(child, Element):
            return self.render(child)
        if isinstance(child, Expression):
            source = child.source.strip()
            if not source or source.startswith('#'):
                return None
            return f"({self.lower(child.source)}\n)"
        text = clean_text(child.value)
        if not text:
            return None
        if self.text_factory:
            return f"{self.text_factory}({text!r})"
        return repr(text)
