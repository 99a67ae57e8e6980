"""
PSX Element Grammar.

This module contains the Lark grammar for element literals (``<Tag a="1" b={x}>text</Tag>``)
as they appear in MDX documents and in PSX (Python with element syntax) sources.

Expressions are not parsed by the grammar. The scanner in ``psx.py`` cuts every
``{...}`` out of the element text first and leaves ``{#N}`` placeholders behind,
so arbitrary Python (strings with braces, nested elements) never reaches Lark.
"""

psx_grammar = r"""
    ?start: element

    element: "<" TAG_NAME attribute* _SELF_CLOSE                                    -> self_closing
           | "<" TAG_NAME attribute* _TAG_END child* "</" TAG_NAME _TAG_END         -> paired
           | "<" _TAG_END child* "</" _TAG_END                                      -> fragment

    attribute: ATTR_NAME (_ATTR_EQ (ATTR_STRING | EXPRESSION))?                     -> named_attribute
             | SPREAD                                                               -> spread_attribute

    ?child: element
          | EXPRESSION                                                              -> expression_child
          | TEXT                                                                    -> text_child

    // --- Terminals ---
    // Whitespace inside tags is folded into the terminals that follow it, so the
    // children state never has to ignore whitespace.
    TAG_NAME: /[A-Za-z_$][\w.\-:$]*/
    ATTR_NAME: /\s+[A-Za-z_$][\w\-:$]*/
    _ATTR_EQ: /\s*=\s*/
    ATTR_STRING: /"[^"]*"|'[^']*'/
    SPREAD: /\s+\{#\d+\}/
    EXPRESSION: /\{#\d+\}/
    _SELF_CLOSE: /\s*\/>/
    _TAG_END: /\s*>/
    TEXT: /[^<{]+/
"""
