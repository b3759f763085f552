from typing import Any, Dict, List, Union

from declmeta.utils.syntax import (
    field,
    first_named,
    get_text,
    named,
    squash,
    strip_quotes,
    type_annotation_value,
)

RenderedType = Union[str, Dict[str, Any]]

FALLBACK_TYPE = "any"

# node types whose rendering needs parentheses when used as an array element
_COMPOSITE_TYPES = {"union_type", "intersection_type", "function_type", "constructor_type", "conditional_type"}

_TEXTUAL_TYPES = {"template_literal_type", "infer_type", "asserts_annotation", "asserts", "existential_type"}


def render_type(node) -> RenderedType:
    """
    Canonical rendering of a type node.

    Inline object literal types come back as ``{property: type}`` maps, every
    other shape as a string. Unsupported nodes render as ``"any"``.
    """
    if node is None:
        return FALLBACK_TYPE
    try:
        return _render(type_annotation_value(node))
    except (RecursionError, AttributeError, UnicodeDecodeError):
        return FALLBACK_TYPE


def render_type_string(node) -> str:
    return type_to_string(render_type(node))


def type_to_string(value: RenderedType) -> str:
    if isinstance(value, dict):
        if not value:
            return "{}"
        members = " ".join(f"{key}: {type_to_string(val)};" for key, val in value.items())
        return "{ " + members + " }"
    if value is None:
        return FALLBACK_TYPE
    return str(value)


def flatten_members(node, node_type: str) -> List:
    """Members of a left-nested union or intersection, in source order."""
    members = []
    for child in named(node):
        if child.type == node_type:
            members.extend(flatten_members(child, node_type))
        else:
            members.append(child)
    return members


def _render(node) -> RenderedType:
    if node is None:
        return FALLBACK_TYPE
    handler = _HANDLERS.get(node.type)
    if handler is not None:
        return handler(node)
    if node.type in _TEXTUAL_TYPES:
        return squash(get_text(node))
    return FALLBACK_TYPE


def _render_str(node) -> str:
    return type_to_string(_render(node))


def _predefined(node):
    return squash(get_text(node))


def _identifier(node):
    return get_text(node)


def _nested_identifier(node):
    return squash(get_text(node)).replace(" ", "")


def _generic(node):
    name = field(node, "name") or first_named(node)
    arguments = field(node, "type_arguments") or first_named(node, "type_arguments")
    rendered_name = _nested_identifier(name) if name is not None else FALLBACK_TYPE
    if arguments is None:
        return rendered_name
    args = [_render_str(a) for a in named(arguments)]
    return f"{rendered_name}<{', '.join(args)}>"


def _literal(node):
    inner = first_named(node)
    if inner is None:
        return squash(get_text(node))
    if inner.type == "string":
        return f'"{strip_quotes(get_text(inner))}"'
    return squash(get_text(inner))


def _union(node):
    members = flatten_members(node, "union_type")
    if len(members) == 1:
        return _render(members[0])
    return " | ".join(_render_str(m) for m in members)


def _intersection(node):
    members = flatten_members(node, "intersection_type")
    if len(members) == 1:
        return _render(members[0])
    return " & ".join(_render_str(m) for m in members)


def render_parameter(param) -> str:
    if param.type in ("required_parameter", "optional_parameter"):
        pattern = field(param, "pattern") or first_named(param)
        name = squash(get_text(pattern)) if pattern is not None else ""
        mark = "?" if param.type == "optional_parameter" else ""
        type_node = field(param, "type")
        rendered = _render_str(type_annotation_value(type_node)) if type_node is not None else FALLBACK_TYPE
        return f"{name}{mark}: {rendered}"
    return squash(get_text(param))


def _parameters(params_node) -> str:
    return ", ".join(render_parameter(p) for p in named(params_node))


def _return_of(node):
    ret = field(node, "return_type") or field(node, "type")
    if ret is None:
        return FALLBACK_TYPE
    if ret.type == "type_predicate_annotation":
        ret = first_named(ret)
    return _render_str(type_annotation_value(ret))


def _function(node):
    params = field(node, "parameters") or first_named(node, "formal_parameters")
    return f"({_parameters(params)}) => {_return_of(node)}"


def _constructor(node):
    params = field(node, "parameters") or first_named(node, "formal_parameters")
    prefix = "abstract new" if "abstract" in {c.type for c in node.children} else "new"
    return f"{prefix} ({_parameters(params)}) => {_return_of(node)}"


def _array(node):
    element = first_named(node)
    if element is not None and element.type == "parenthesized_type":
        inner = first_named(element)
        if inner is not None and inner.type in _COMPOSITE_TYPES:
            return f"({_render_str(inner)})[]"
    return f"{_render_str(element)}[]"


def _tuple_member(member) -> str:
    if member.type == "optional_type":
        return f"{_render_str(first_named(member))}?"
    if member.type == "rest_type":
        return f"...{_render_str(first_named(member))}"
    if member.type in ("tuple_parameter", "optional_tuple_parameter"):
        name = field(member, "name") or first_named(member)
        label = squash(get_text(name))
        mark = "?" if member.type == "optional_tuple_parameter" else ""
        type_node = field(member, "type")
        return f"{label}{mark}: {_render_str(type_annotation_value(type_node))}"
    return _render_str(member)


def _tuple(node):
    return "[" + ", ".join(_tuple_member(m) for m in named(node)) + "]"


def is_mapped_object(node) -> bool:
    members = named(node)
    return bool(members) and all(
        m.type == "index_signature" and first_named(m, "mapped_type_clause") is not None
        for m in members
    )


def member_name(member) -> str:
    name = field(member, "name")
    if name is None:
        return ""
    if name.type == "string":
        return strip_quotes(get_text(name))
    return squash(get_text(name))


def _object(node):
    if is_mapped_object(node):
        return squash(get_text(node))
    members: Dict[str, Any] = {}
    for member in named(node):
        if member.type == "property_signature":
            key = member_name(member)
            if key:
                type_node = field(member, "type")
                members[key] = _render(type_annotation_value(type_node)) if type_node is not None else FALLBACK_TYPE
        elif member.type == "method_signature":
            key = member_name(member)
            if key:
                members[key] = _function(member)
        elif member.type == "index_signature":
            type_node = field(member, "type") or first_named(member, "type_annotation")
            value = _render(type_annotation_value(type_node)) if type_node is not None else FALLBACK_TYPE
            key_name = field(member, "name")
            index_type = field(member, "index_type")
            if key_name is not None and index_type is not None:
                members[f"[{get_text(key_name)}: {_render_str(index_type)}]"] = value
            else:
                members[squash(get_text(member)).split("]")[0] + "]"] = value
    return members


def _conditional(node):
    left = _render_str(field(node, "left"))
    right = _render_str(field(node, "right"))
    consequence = _render_str(field(node, "consequence"))
    alternative = _render_str(field(node, "alternative"))
    return f"{left} extends {right} ? {consequence} : {alternative}"


def _keyof(node):
    return f"keyof {_render_str(first_named(node))}"


def _typeof(node):
    target = first_named(node)
    return f"typeof {squash(get_text(target))}"


def _lookup(node):
    parts = named(node)
    if len(parts) < 2:
        return FALLBACK_TYPE
    return f"{_render_str(parts[0])}[{_render_str(parts[1])}]"


def _readonly(node):
    return f"readonly {_render_str(first_named(node))}"


def _predicate(node):
    name = field(node, "name") or first_named(node)
    type_node = field(node, "type")
    return f"{squash(get_text(name))} is {_render_str(type_node)}"


def _parenthesized(node):
    return _render(first_named(node))


_HANDLERS = {
    "predefined_type": _predefined,
    "type_identifier": _identifier,
    "identifier": _identifier,
    "nested_type_identifier": _nested_identifier,
    "generic_type": _generic,
    "literal_type": _literal,
    "union_type": _union,
    "intersection_type": _intersection,
    "function_type": _function,
    "constructor_type": _constructor,
    "array_type": _array,
    "tuple_type": _tuple,
    "object_type": _object,
    "conditional_type": _conditional,
    "index_type_query": _keyof,
    "type_query": _typeof,
    "lookup_type": _lookup,
    "readonly_type": _readonly,
    "type_predicate": _predicate,
    "type_predicate_annotation": _parenthesized,
    "parenthesized_type": _parenthesized,
    "this_type": lambda node: "this",
    "this": lambda node: "this",
}
