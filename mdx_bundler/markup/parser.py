"""
MDX parser: document text to an mdast tree.

Blocks are recognised line by line (headings, fences, quotes, lists, breaks,
ESM, flow elements and flow expressions; everything else is a paragraph).
Inline content is scanned character by character. Element literals and
``{expressions}`` are delegated to ``psx.py`` so the document and PSX sources
share one element syntax.
"""
import ast
import re
import textwrap

from ..errors import CompileError, get_line_context
from ..psx import Element, Expression, PsxSyntaxError, Text, find_expression_end, parse_scanned, scan_element
from .nodes import Node

FRONTMATTER_RE = re.compile(r'\A---[ \t]*\n(?:(.*?)\n)?---[ \t]*(?:\n|\Z)', re.S)
FENCE_RE = re.compile(r'^( {0,3})(`{3,}|~{3,})[ \t]*([^`\s]*)[^`]*$')
HEADING_RE = re.compile(r'^ {0,3}(#{1,6})(?:[ \t]+(.*?))?(?:[ \t]+#+)?[ \t]*$')
THEMATIC_RE = re.compile(r'^ {0,3}([-*_])(?:[ \t]*\1){2,}[ \t]*$')
BLOCKQUOTE_RE = re.compile(r'^ {0,3}> ?')
LIST_ITEM_RE = re.compile(r'^( {0,3})([-*+]|\d{1,9}[.)])([ \t]+|$)')
ESM_RE = re.compile(r'^(?:import[ \t]+[\w.]|from[ \t]+[\w.]+[ \t]+import[ \t]|export[ \t]+\S)')
LINK_DEST_RE = re.compile(r'\s*<?([^\s>]*)>?(?:\s+(["\'])(.*?)\2)?\s*$', re.S)

ESCAPABLE = set('!"#$%&\'()*+,-./:;<=>?@[\\]^_`{|}~')


def _indent(line):
    return len(line) - len(line.lstrip(' '))


def _is_element_start(text, i):
    return text[i] == '<' and i + 1 < len(text) and (text[i + 1].isalpha() or text[i + 1] in '_$>')


def _exported_names(stmt):
    if isinstance(stmt, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)):
        return [stmt.name]
    if isinstance(stmt, ast.Assign):
        return [node.id for target in stmt.targets for node in ast.walk(target)
                if isinstance(node, ast.Name)]
    if isinstance(stmt, ast.AnnAssign) and isinstance(stmt.target, ast.Name):
        return [stmt.target.id]
    return None


class BlockParser:
    """Parses one run of markdown blocks. Containers recurse with a new parser."""

    def __init__(self, text, path, line_offset=0, allow_esm=True, frontmatter=False):
        self.path = path
        self.line_offset = line_offset
        self.allow_esm = allow_esm
        self.leading = []
        text = text.expandtabs(4)
        if frontmatter:
            match = FRONTMATTER_RE.match(text)
            if match:
                self.leading.append(Node(type='yaml', value=match.group(1) or ''))
                # Keep line numbers stable for error messages.
                text = '\n' * match.group(0).count('\n') + text[match.end():]
        self.text = text
        self.lines = text.split('\n')
        self.offsets = []
        offset = 0
        for line in self.lines:
            self.offsets.append(offset)
            offset += len(line) + 1

    # --- errors ---

    def error(self, message, line, column=None, suggestion=None):
        return CompileError(
            message,
            path=self.path,
            line_number=self.line_offset + line + 1,
            column=column,
            context=get_line_context(self.text, line + 1),
            suggestion=suggestion,
        )

    def _line_of(self, offset):
        return self.text.count('\n', 0, offset)

    # --- blocks ---

    def parse(self):
        nodes = list(self.leading)
        i = 0
        n = len(self.lines)
        while i < n:
            line = self.lines[i]
            if not line.strip():
                i += 1
                continue
            stripped = line.lstrip()
            fence = FENCE_RE.match(line)
            heading = HEADING_RE.match(line)
            if self.allow_esm and ESM_RE.match(line):
                i = self._esm(i, nodes)
            elif fence:
                i = self._fence(i, fence, nodes)
            elif heading:
                nodes.append(Node(type='heading', depth=len(heading.group(1)),
                                  children=self.inline(heading.group(2) or '', i)))
                i += 1
            elif THEMATIC_RE.match(line):
                nodes.append(Node(type='thematicBreak'))
                i += 1
            elif BLOCKQUOTE_RE.match(line):
                i = self._blockquote(i, nodes)
            elif LIST_ITEM_RE.match(line):
                i = self._list(i, nodes)
            elif _is_element_start(stripped, 0):
                i = self._flow_element(i, nodes)
            elif stripped.startswith('{'):
                i = self._flow_expression(i, nodes)
            else:
                i = self._paragraph(i, nodes)
        return nodes

    def _interrupts_paragraph(self, line):
        if HEADING_RE.match(line) or FENCE_RE.match(line) or THEMATIC_RE.match(line) or BLOCKQUOTE_RE.match(line):
            return True
        item = LIST_ITEM_RE.match(line)
        return bool(item and not item.group(2)[0].isdigit() and line[item.end():].strip())

    def _esm(self, i, nodes):
        block = []
        j = i
        while j < len(self.lines) and self.lines[j].strip():
            block.append(self.lines[j])
            j += 1

        exported_lines = set()
        source_lines = []
        for number, line in enumerate(block, 1):
            if line.startswith('export '):
                exported_lines.add(number)
                source_lines.append(line[len('export '):])
            else:
                source_lines.append(line)
        source = '\n'.join(source_lines)
        try:
            tree = ast.parse(source)
        except SyntaxError as e:
            raise self.error(f"Could not parse import/exports: {e.msg}", i + (e.lineno or 1) - 1, e.offset)

        exports = []
        for stmt in tree.body:
            if isinstance(stmt, (ast.Import, ast.ImportFrom)):
                continue
            names = _exported_names(stmt) if stmt.lineno in exported_lines else None
            if names is None:
                raise self.error(
                    "Unexpected statement in import/export block",
                    i + stmt.lineno - 1,
                    suggestion="Only import and 'export NAME = ...' / 'export def' lines may start a block; "
                               "separate prose from them with a blank line",
                )
            exports.extend(names)
        nodes.append(Node(type='mdxjsEsm', value=source, exports=exports))
        return j

    def _fence(self, i, match, nodes):
        indent, fence, lang = len(match.group(1)), match.group(2), match.group(3)
        closing = re.compile(r'^ {0,3}%s{%d,}[ \t]*$' % (re.escape(fence[0]), len(fence)))
        body = []
        j = i + 1
        while j < len(self.lines):
            line = self.lines[j]
            j += 1
            if closing.match(line):
                break
            body.append(line[min(indent, _indent(line)):])
        nodes.append(Node(type='code', lang=lang or None, value='\n'.join(body)))
        return j

    def _blockquote(self, i, nodes):
        content = []
        j = i
        while j < len(self.lines):
            match = BLOCKQUOTE_RE.match(self.lines[j])
            if not match:
                break
            content.append(self.lines[j][match.end():])
            j += 1
        children = BlockParser('\n'.join(content), self.path, self.line_offset + i, allow_esm=False).parse()
        nodes.append(Node(type='blockquote', children=children))
        return j

    def _list(self, i, nodes):
        first = LIST_ITEM_RE.match(self.lines[i])
        ordered = first.group(2)[0].isdigit()
        delimiter = first.group(2)[-1]
        start = int(first.group(2)[:-1]) if ordered else None
        items = []
        spread = False
        n = len(self.lines)
        j = i
        while j < n:
            line = self.lines[j]
            match = LIST_ITEM_RE.match(line)
            if not match or THEMATIC_RE.match(line):
                break
            marker = match.group(2)
            if marker[0].isdigit() != ordered or marker[-1] != delimiter:
                break
            content_indent = len(match.group(0)) if match.group(3) else len(match.group(1)) + len(marker) + 1
            item_start = j
            item_lines = [line[len(match.group(0)):]]
            j += 1
            while j < n:
                line = self.lines[j]
                if not line.strip():
                    k = j
                    while k < n and not self.lines[k].strip():
                        k += 1
                    if k < n and _indent(self.lines[k]) >= content_indent:
                        item_lines.extend([''] * (k - j))
                        spread = True
                        j = k
                        continue
                    break
                if _indent(line) >= content_indent:
                    item_lines.append(line[content_indent:])
                elif LIST_ITEM_RE.match(line) or self._interrupts_paragraph(line):
                    break
                else:
                    item_lines.append(line.strip())
                j += 1
            children = BlockParser('\n'.join(item_lines), self.path, self.line_offset + item_start,
                                   allow_esm=False).parse()
            items.append(Node(type='listItem', children=children))

            k = j
            while k < n and not self.lines[k].strip():
                k += 1
            if k > j and k < n:
                following = LIST_ITEM_RE.match(self.lines[k])
                if following and not THEMATIC_RE.match(self.lines[k]) \
                        and following.group(2)[0].isdigit() == ordered and following.group(2)[-1] == delimiter:
                    spread = True
                    j = k
                    continue
            if k > j:
                break

        nodes.append(Node(type='list', ordered=ordered, start=start, spread=spread, children=items))
        return j

    def _rest_of_line_blank(self, end):
        newline = self.text.find('\n', end)
        rest = self.text[end:] if newline < 0 else self.text[end:newline]
        return not rest.strip()

    def _flow_element(self, i, nodes):
        line = self.lines[i]
        offset = self.offsets[i] + _indent(line)
        try:
            scanned = scan_element(self.text, offset)
        except PsxSyntaxError as e:
            raise self.error(e.message, self._line_of(e.offset), suggestion="Check that every element is closed")
        if not self._rest_of_line_blank(scanned.end):
            return self._paragraph(i, nodes)
        element = self._parse_element(scanned)
        nodes.append(self._jsx_node(element, scanned, i, flow=True))
        return self._line_of(scanned.end) + 1

    def _flow_expression(self, i, nodes):
        line = self.lines[i]
        offset = self.offsets[i] + _indent(line)
        try:
            end = find_expression_end(self.text, offset)
        except PsxSyntaxError as e:
            raise self.error(e.message, self._line_of(e.offset))
        if not self._rest_of_line_blank(end):
            return self._paragraph(i, nodes)
        value = self.text[offset + 1:end - 1]
        self._check_expression(value, i)
        nodes.append(Node(type='mdxFlowExpression', value=value))
        return self._line_of(end) + 1

    def _paragraph(self, i, nodes):
        buf = []
        j = i
        while j < len(self.lines) and self.lines[j].strip():
            if j > i and self._interrupts_paragraph(self.lines[j]):
                break
            buf.append(self.lines[j].lstrip())
            j += 1
        buf[-1] = buf[-1].rstrip()
        nodes.append(Node(type='paragraph', children=self.inline('\n'.join(buf), i)))
        return j

    # --- elements and expressions ---

    def _parse_element(self, scanned):
        try:
            return parse_scanned(scanned)
        except PsxSyntaxError as e:
            raise self.error(e.message, self._line_of(e.offset))

    def _check_expression(self, value, line):
        stripped = value.strip()
        if not stripped or stripped.startswith('#'):
            return
        try:
            ast.parse('(' + value + '\n)', mode='eval')
        except SyntaxError as e:
            raise self.error(f"Could not parse expression: {e.msg}", line,
                             suggestion="Expressions in braces must be Python expressions")

    def _jsx_node(self, element, scanned, line, flow):
        attributes = [Node(type='mdxJsxAttribute', name=a.name, kind=a.kind, value=a.value)
                      for a in element.attributes]
        node_type = 'mdxJsxFlowElement' if flow else 'mdxJsxTextElement'
        inner = None
        if scanned is not None and scanned.inner_start is not None:
            inner = self.text[scanned.inner_start:scanned.inner_end]
        if flow and inner is not None and '\n' in inner:
            children = BlockParser(textwrap.dedent(inner), self.path, self.line_offset + line,
                                   allow_esm=False).parse()
        else:
            children = self._inline_children(element.children, line)
        return Node(type=node_type, name=element.name, attributes=attributes, children=children)

    def _inline_children(self, children, line):
        nodes = []
        for child in children:
            if isinstance(child, Text):
                nodes.extend(self.inline(child.value, line))
            elif isinstance(child, Expression):
                self._check_expression(child.source, line)
                nodes.append(Node(type='mdxTextExpression', value=child.source))
            elif isinstance(child, Element):
                nodes.append(self._jsx_node(child, None, line, flow=False))
        return nodes

    # --- inline ---

    def inline(self, text, line):
        """Parse inline markdown. ``line`` is the block's first line, for errors."""
        nodes = []
        buf = []
        i = 0
        n = len(text)

        def flush():
            if buf:
                nodes.append(Node(type='text', value=''.join(buf)))
                buf.clear()

        while i < n:
            c = text[i]
            if c == '\\' and i + 1 < n:
                if text[i + 1] == '\n':
                    flush()
                    nodes.append(Node(type='break'))
                    i += 2
                    continue
                if text[i + 1] in ESCAPABLE:
                    buf.append(text[i + 1])
                    i += 2
                    continue
            if c == '`':
                run = len(text[i:]) - len(text[i:].lstrip('`'))
                close = self._find_code_close(text, i + run, run)
                if close < 0:
                    buf.append('`' * run)
                    i += run
                    continue
                flush()
                code = text[i + run:close].replace('\n', ' ')
                if len(code) > 2 and code.startswith(' ') and code.endswith(' ') and code.strip():
                    code = code[1:-1]
                nodes.append(Node(type='inlineCode', value=code))
                i = close + run
                continue
            if _is_element_start(text, i):
                flush()
                node, i = self._text_element(text, i, line)
                nodes.append(node)
                continue
            if c == '{':
                flush()
                try:
                    end = find_expression_end(text, i)
                except PsxSyntaxError as e:
                    raise self.error(e.message, line + text.count('\n', 0, i))
                value = text[i + 1:end - 1]
                self._check_expression(value, line + text.count('\n', 0, i))
                nodes.append(Node(type='mdxTextExpression', value=value))
                i = end
                continue
            if c == '!' and text.startswith('[', i + 1):
                link = self._link(text, i + 1)
                if link:
                    label, url, title, end = link
                    flush()
                    nodes.append(Node(type='image', url=url, title=title, alt=label))
                    i = end
                    continue
            if c == '[':
                link = self._link(text, i)
                if link:
                    label, url, title, end = link
                    flush()
                    nodes.append(Node(type='link', url=url, title=title, children=self.inline(label, line)))
                    i = end
                    continue
            if c in '*_':
                span = self._emphasis(text, i)
                if span:
                    kind, inner, end = span
                    flush()
                    nodes.append(Node(type=kind, children=self.inline(inner, line)))
                    i = end
                    continue
                run = len(text[i:]) - len(text[i:].lstrip(c))
                buf.append(c * run)
                i += run
                continue
            if c == '\n':
                pending = ''.join(buf)
                if pending.endswith('  '):
                    buf[:] = [pending.rstrip(' ')]
                    flush()
                    nodes.append(Node(type='break'))
                    i += 1
                    continue
            buf.append(c)
            i += 1
        flush()
        return nodes

    def _text_element(self, text, i, line):
        try:
            scanned = scan_element(text, i)
            element = parse_scanned(scanned)
        except PsxSyntaxError as e:
            raise self.error(e.message, line + text.count('\n', 0, e.offset),
                             suggestion="Escape a literal '<' as '\\<' or close the element")
        return self._jsx_node(element, None, line, flow=False), scanned.end

    @staticmethod
    def _find_code_close(text, start, run):
        i = start
        while True:
            close = text.find('`' * run, i)
            if close < 0:
                return -1
            end = close + run
            while end < len(text) and text[end] == '`':
                end += 1
            if end - close == run:
                return close
            i = end

    @staticmethod
    def _link(text, i):
        depth = 0
        j = i
        while j < len(text):
            c = text[j]
            if c == '\\':
                j += 2
                continue
            if c == '[':
                depth += 1
            elif c == ']':
                depth -= 1
                if depth == 0:
                    break
            j += 1
        else:
            return None
        if not text.startswith('(', j + 1):
            return None
        depth = 0
        k = j + 1
        while k < len(text):
            if text[k] == '(':
                depth += 1
            elif text[k] == ')':
                depth -= 1
                if depth == 0:
                    break
            k += 1
        else:
            return None
        match = LINK_DEST_RE.match(text[j + 2:k])
        if not match:
            return None
        return text[i + 1:j], match.group(1), match.group(3), k + 1

    @staticmethod
    def _emphasis(text, i):
        c = text[i]
        n = len(text)
        run = len(text[i:]) - len(text[i:].lstrip(c))
        if c == '_' and i > 0 and text[i - 1].isalnum():
            return None
        if run >= 2:
            start = i + 2
            if start >= n or text[start].isspace():
                return None
            close = text.find(c * 2, start)
            while close != -1 and (close == start or text[close - 1].isspace()):
                close = text.find(c * 2, close + 1)
            if close == -1:
                return None
            if c == '_' and close + 2 < n and text[close + 2].isalnum():
                return None
            return 'strong', text[start:close], close + 2
        start = i + 1
        if start >= n or text[start].isspace():
            return None
        j = start
        while True:
            close = text.find(c, j)
            if close == -1:
                return None
            if text[close + 1:close + 2] == c:
                j = close + 2
                continue
            if text[close - 1].isspace() or (c == '_' and close + 1 < n and text[close + 1].isalnum()):
                j = close + 1
                continue
            return 'emphasis', text[start:close], close + 1


def parse(text, path, frontmatter=False):
    """Parse an MDX document into an mdast root."""
    text = text.replace('\r\n', '\n')
    return Node(type='root', children=BlockParser(text, path, frontmatter=frontmatter).parse())
