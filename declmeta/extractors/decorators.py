from typing import Dict, List, Optional

from declmeta.utils.stringifier import stringify_arguments
from declmeta.utils.syntax import TRIVIA, field, first_named, get_text, named, squash, unwrap_parens


def decorator_record(decorator) -> Dict[str, object]:
    expression = unwrap_parens(first_named(decorator))
    if expression is not None and expression.type == "call_expression":
        callee = field(expression, "function")
        return {
            "name": squash(get_text(callee)),
            "args": stringify_arguments(field(expression, "arguments")),
        }
    return {"name": squash(get_text(expression)), "args": []}


def preceding_decorators(node) -> List:
    """Decorator nodes written as siblings right before ``node``, in source order."""
    found = []
    sibling = node.prev_sibling
    while sibling is not None and (sibling.type == "decorator" or sibling.type in TRIVIA):
        if sibling.type == "decorator":
            found.append(sibling)
        sibling = sibling.prev_sibling
    found.reverse()
    return found


def parse_decorators(node, extra: Optional[List] = None) -> List[Dict[str, object]]:
    """
    Ordered ``{name, args}`` records for every decorator applied to ``node``.

    ``extra`` holds decorator nodes that the grammar attaches elsewhere, such
    as the ones before an ``export`` keyword or before a class method.
    """
    nodes = list(extra or [])
    if node is not None:
        nodes.extend(c for c in node.children if c.type == "decorator")
    return [decorator_record(d) for d in nodes]


def parse_parameter_decorators(params_node) -> List[Dict[str, object]]:
    result = []
    for index, param in enumerate(named(params_node)):
        decorators = parse_decorators(param)
        if not decorators:
            continue
        pattern = field(param, "pattern")
        name = squash(get_text(pattern)) if pattern is not None else f"param{index}"
        result.append({
            "index": index,
            "parameterIndex": index,
            "name": name,
            "decorators": decorators,
        })
    return result
