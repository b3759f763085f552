import re
from typing import List, Optional

# tree-sitter node helpers shared by the visitors, renderers and analyzers

TRIVIA = {"comment", "html_comment"}

_WS_RE = re.compile(r"\s+")


def get_text(node) -> str:
    if node is None:
        return ""
    return node.text.decode("utf-8", errors="replace")


def squash(text: str) -> str:
    return _WS_RE.sub(" ", text).strip()


def strip_quotes(text: str) -> str:
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "'\"`":
        return text[1:-1]
    return text


def named(node) -> List:
    if node is None:
        return []
    return [c for c in node.named_children if c.type not in TRIVIA]


def first_named(node, *types) -> Optional[object]:
    for c in named(node):
        if not types or c.type in types:
            return c
    return None


def field(node, name: str):
    if node is None:
        return None
    return node.child_by_field_name(name)


def keywords(node) -> set:
    """Anonymous keyword children plus the text of access and override modifiers."""
    found = set()
    if node is None:
        return found
    for c in node.children:
        if c.type in ("accessibility_modifier", "override_modifier"):
            found.add(get_text(c).strip())
        elif not c.is_named:
            found.add(c.type)
    return found


def unwrap_parens(node):
    while node is not None and node.type in ("parenthesized_expression", "parenthesized_type"):
        inner = first_named(node)
        if inner is None:
            break
        node = inner
    return node


def type_annotation_value(node):
    """The type node inside a ``type_annotation`` (``: T``)."""
    if node is None:
        return None
    if node.type in ("type_annotation", "opting_type_annotation", "omitting_type_annotation"):
        return first_named(node)
    return node


def string_value(node) -> str:
    """Contents of a ``string`` literal node without its quotes."""
    return strip_quotes(get_text(node))


def is_uppercase_name(name: Optional[str]) -> bool:
    return bool(name) and name[0].isupper()


def walk(node):
    """Pre-order walk over every descendant, node included."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))
