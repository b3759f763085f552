from declmeta.utils.syntax import field, first_named, get_text, named, squash, strip_quotes
from declmeta.utils.type_renderer import render_type_string

PLACEHOLDER = "..."

_BARE = {
    "number", "true", "false", "null", "undefined", "identifier", "this", "super",
    "property_identifier", "shorthand_property_identifier", "private_property_identifier",
    "regex", "statement_identifier",
}

_FUNCTION_EXPRESSIONS = {"arrow_function", "function_expression", "function", "generator_function"}


def stringify(node) -> str:
    """Best-effort source-like text for an expression node."""
    if node is None:
        return PLACEHOLDER
    if node.type in _BARE:
        return get_text(node)
    handler = _HANDLERS.get(node.type)
    if handler is None:
        return PLACEHOLDER
    return handler(node)


def stringify_arguments(arguments_node):
    if arguments_node is None:
        return []
    return [stringify(a) for a in named(arguments_node)]


def parameter_names(node) -> str:
    single = field(node, "parameter")
    if single is not None:
        return get_text(single)
    params = field(node, "parameters")
    names = []
    for param in named(params):
        pattern = field(param, "pattern") or first_named(param)
        names.append(squash(get_text(pattern)))
    return ", ".join(names)


def _string(node):
    return f'"{strip_quotes(get_text(node))}"'


def _template(node):
    parts = []
    for child in node.children:
        if child.type == "`":
            continue
        if child.type == "template_substitution":
            parts.append("${" + stringify(first_named(child)) + "}")
        else:
            parts.append(get_text(child))
    return "`" + "".join(parts) + "`"


def _member(node):
    obj = stringify(field(node, "object"))
    prop = get_text(field(node, "property"))
    dot = "?." if any(c.type == "optional_chain" for c in node.children) else "."
    return f"{obj}{dot}{prop}"


def _subscript(node):
    return f"{stringify(field(node, 'object'))}[{stringify(field(node, 'index'))}]"


def _call(node):
    callee = stringify(field(node, "function"))
    arguments = field(node, "arguments")
    if arguments is not None and arguments.type == "template_string":
        return f"{callee}{_template(arguments)}"
    return f"{callee}({', '.join(stringify_arguments(arguments))})"


def _new(node):
    constructor = stringify(field(node, "constructor"))
    arguments = field(node, "arguments")
    if arguments is None:
        return f"new {constructor}()"
    return f"new {constructor}({', '.join(stringify_arguments(arguments))})"


def _array(node):
    return "[" + ", ".join(stringify(e) for e in named(node)) + "]"


def _object_entry(entry) -> str:
    if entry.type == "pair":
        key = field(entry, "key")
        key_text = _string(key) if key is not None and key.type == "string" else get_text(key)
        return f"{key_text}: {stringify(field(entry, 'value'))}"
    if entry.type == "method_definition":
        return f"{get_text(field(entry, 'name'))}: ({parameter_names(entry)}) => {{...}}"
    return stringify(entry)


def _object(node):
    entries = [_object_entry(e) for e in named(node)]
    if not entries:
        return "{}"
    return "{ " + ", ".join(entries) + " }"


def _spread(node):
    return f"...{stringify(first_named(node))}"


def _unary(node):
    operator = get_text(field(node, "operator"))
    argument = stringify(field(node, "argument"))
    if operator.isalpha():
        return f"{operator} {argument}"
    return f"{operator}{argument}"


def _update(node):
    return squash(get_text(node))


def _binary(node):
    left = stringify(field(node, "left"))
    right = stringify(field(node, "right"))
    return f"{left} {get_text(field(node, 'operator'))} {right}"


def _ternary(node):
    condition = stringify(field(node, "condition"))
    consequence = stringify(field(node, "consequence"))
    alternative = stringify(field(node, "alternative"))
    return f"{condition} ? {consequence} : {alternative}"


def _as(node):
    parts = named(node)
    expression = stringify(parts[0]) if parts else PLACEHOLDER
    type_node = parts[1] if len(parts) > 1 else None
    type_text = render_type_string(type_node) if type_node is not None else "const"
    keyword = "satisfies" if node.type == "satisfies_expression" else "as"
    return f"{expression} {keyword} {type_text}"


def _type_assertion(node):
    parts = named(node)
    if len(parts) < 2:
        return PLACEHOLDER
    return f"<{render_type_string(first_named(parts[0]))}>{stringify(parts[1])}"


def _non_null(node):
    return f"{stringify(first_named(node))}!"


def _await(node):
    return f"await {stringify(first_named(node))}"


def _parenthesized(node):
    return f"({stringify(first_named(node))})"


def _function(node):
    prefix = "async " if any(c.type == "async" for c in node.children) else ""
    return f"{prefix}({parameter_names(node)}) => {{...}}"


_HANDLERS = {
    "string": _string,
    "template_string": _template,
    "member_expression": _member,
    "subscript_expression": _subscript,
    "call_expression": _call,
    "new_expression": _new,
    "array": _array,
    "object": _object,
    "spread_element": _spread,
    "unary_expression": _unary,
    "update_expression": _update,
    "binary_expression": _binary,
    "ternary_expression": _ternary,
    "as_expression": _as,
    "satisfies_expression": _as,
    "type_assertion": _type_assertion,
    "non_null_expression": _non_null,
    "await_expression": _await,
    "parenthesized_expression": _parenthesized,
}
_HANDLERS.update({kind: _function for kind in _FUNCTION_EXPRESSIONS})
