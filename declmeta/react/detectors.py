from typing import Optional, Tuple

from declmeta.extractors.declaration_visitor import FUNCTION_VALUE_NODES, JSX_NODES
from declmeta.utils.syntax import (
    field,
    first_named,
    get_text,
    is_uppercase_name,
    named,
    squash,
    type_annotation_value,
    unwrap_parens,
)

# component classification rules; each one is usable on its own

COMPONENT_TYPE_NAMES = {"FC", "FunctionComponent", "React.FC", "React.FunctionComponent"}
ELEMENT_RETURN_TYPES = {"JSX.Element", "ReactElement", "React.ReactElement", "ReactNode", "React.ReactNode"}
COMPONENT_BASE_CLASSES = {"Component", "React.Component", "PureComponent", "React.PureComponent"}


def type_reference_name(type_node) -> Optional[str]:
    """``React.FC`` for ``React.FC<Props>``; ``None`` for anything but a type reference."""
    node = unwrap_parens(type_annotation_value(type_node))
    if node is None:
        return None
    if node.type == "generic_type":
        node = field(node, "name")
    if node is not None and node.type in ("type_identifier", "nested_type_identifier", "identifier"):
        return squash(get_text(node))
    return None


def type_arguments(type_node) -> list:
    node = unwrap_parens(type_annotation_value(type_node))
    if node is None or node.type != "generic_type":
        return []
    return named(field(node, "type_arguments"))


def has_component_annotation(declarator) -> bool:
    return type_reference_name(field(declarator, "type")) in COMPONENT_TYPE_NAMES


def is_jsx(node) -> bool:
    node = unwrap_parens(node)
    return node is not None and node.type in JSX_NODES


def returned_expression(func):
    """Expression body of an arrow, or the argument of the last top-level ``return``."""
    body = field(func, "body")
    if body is None:
        return None
    if body.type != "statement_block":
        return unwrap_parens(body)
    returned = None
    for statement in named(body):
        if statement.type == "return_statement":
            returned = first_named(statement)
    return unwrap_parens(returned)


def has_jsx_return(func) -> bool:
    """Any ``return`` of ``func`` itself (not of nested functions) hands back JSX."""
    body = field(func, "body")
    if body is None:
        return False
    if body.type != "statement_block":
        return is_jsx(body)
    stack = list(named(body))
    while stack:
        node = stack.pop()
        if node.type in FUNCTION_VALUE_NODES or node.type == "function_declaration":
            continue
        if node.type == "return_statement" and is_jsx(first_named(node)):
            return True
        stack.extend(named(node))
    return False


def is_variable_component(declarator) -> bool:
    value = unwrap_parens(field(declarator, "value"))
    if value is None or value.type not in FUNCTION_VALUE_NODES:
        return False
    if has_component_annotation(declarator):
        return True
    name = get_text(field(declarator, "name"))
    return is_uppercase_name(name) and is_jsx(returned_expression(value))


def is_function_declaration_component(node) -> bool:
    if type_reference_name(field(node, "return_type")) in ELEMENT_RETURN_TYPES:
        return True
    name = get_text(field(node, "name"))
    return is_uppercase_name(name) and has_jsx_return(node)


def class_component_base(node) -> Optional[Tuple[str, list]]:
    """``(superclass text, generic argument nodes)`` when ``node`` extends a React base class."""
    heritage = first_named(node, "class_heritage")
    if heritage is None:
        return None
    clause = first_named(heritage, "extends_clause")
    if clause is None:
        # javascript grammar puts the expression straight under the heritage
        value = first_named(heritage)
        args = []
    else:
        value = field(clause, "value") or first_named(clause)
        args = named(first_named(clause, "type_arguments"))
    base = squash(get_text(value))
    if base not in COMPONENT_BASE_CLASSES:
        return None
    return base, args
