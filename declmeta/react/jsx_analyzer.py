from typing import Any, Dict, Optional

from declmeta.extractors.declaration_visitor import FUNCTION_VALUE_NODES, JSX_NODES
from declmeta.utils.syntax import field, first_named, get_text, named, squash, string_value, walk


def analyze_jsx(body) -> Optional[Dict[str, Any]]:
    """
    Summary of the JSX a component body renders: every element with its
    attributes, event handlers and spreads, plus every call expression.

    Returns ``None`` when the body cannot be analyzed.
    """
    if body is None:
        return None
    info = {
        "elements": [],
        "attributes": {},
        "eventHandlers": {},
        "functionCalls": [],
        "spreadOperators": [],
    }
    try:
        for node in walk(body):
            if node.type == "jsx_element":
                _analyze_element(first_named(node, "jsx_opening_element"), info)
            elif node.type == "jsx_self_closing_element":
                _analyze_element(node, info)
            elif node.type == "call_expression":
                info["functionCalls"].append(analyze_call(node))
    except (AttributeError, ValueError, RecursionError, UnicodeDecodeError):
        return None
    return info


def element_name(opening) -> Optional[str]:
    name = field(opening, "name")
    if name is None:
        # fragments have no tag
        return None
    if name.type in ("identifier", "member_expression", "nested_identifier", "jsx_namespace_name"):
        return squash(get_text(name))
    return "unknown"


def _analyze_element(opening, info):
    if opening is None:
        return
    tag = element_name(opening)
    if tag is None:
        return
    element = {
        "type": tag,
        "attributes": {},
        "eventHandlers": {},
        "spreadAttributes": [],
    }
    for attr in named(opening):
        if attr.type == "jsx_attribute":
            parts = named(attr)
            if not parts:
                continue
            attr_name = get_text(parts[0])
            value = analyze_attribute_value(parts[1] if len(parts) > 1 else None)
            if attr_name.startswith("on") and len(attr_name) > 2:
                element["eventHandlers"][attr_name] = value
                info["eventHandlers"].setdefault(attr_name, []).append({"element": tag, "handler": value})
            else:
                element["attributes"][attr_name] = value
        elif attr.type == "jsx_expression":
            spread = first_named(attr, "spread_element")
            if spread is None:
                continue
            spread_info = analyze_spread(first_named(spread))
            element["spreadAttributes"].append(spread_info)
            info["spreadOperators"].append(dict({"element": tag}, **spread_info))

    info["attributes"].setdefault(tag, []).append(element["attributes"])
    info["elements"].append(element)


def analyze_attribute_value(value) -> Dict[str, Any]:
    if value is None:
        return {"type": "boolean", "value": True}
    if value.type == "string":
        return {"type": "string", "value": string_value(value)}
    if value.type == "jsx_expression":
        return analyze_expression(first_named(value))
    if value.type in ("jsx_element", "jsx_self_closing_element"):
        opening = first_named(value, "jsx_opening_element") if value.type == "jsx_element" else value
        return {"type": "jsx", "value": element_name(opening) or "unknown"}
    return {"type": "unknown", "value": None}


def _number(node):
    text = get_text(node)
    try:
        value = float(text.replace("_", ""))
    except ValueError:
        return text
    return int(value) if value.is_integer() else value


def analyze_expression(expression) -> Dict[str, Any]:
    if expression is None:
        return {"type": "expression", "value": "complex"}
    kind = expression.type
    if kind == "string":
        return {"type": "string", "value": string_value(expression)}
    if kind == "number":
        return {"type": "number", "value": _number(expression)}
    if kind in ("true", "false"):
        return {"type": "boolean", "value": kind == "true"}
    if kind == "identifier":
        return {"type": "identifier", "value": get_text(expression)}
    if kind in FUNCTION_VALUE_NODES:
        return {"type": "function", "value": "anonymous"}
    if kind == "call_expression":
        return analyze_call(expression)
    if kind == "member_expression":
        return analyze_member(expression)
    if kind == "template_string":
        return analyze_template(expression)
    if kind in JSX_NODES:
        return analyze_attribute_value(expression)
    return {"type": "expression", "value": "complex"}


def analyze_spread(argument) -> Dict[str, Any]:
    if argument is not None and argument.type == "call_expression":
        return {"type": "functionCall", "function": analyze_call(argument)}
    if argument is not None and argument.type == "identifier":
        return {"type": "identifier", "name": get_text(argument)}
    if argument is not None and argument.type == "member_expression":
        return {"type": "memberExpression", "object": analyze_member(argument)}
    return {"type": "unknown"}


def analyze_call(call) -> Dict[str, Any]:
    callee = field(call, "function")
    name = "unknown"
    if callee is not None and callee.type == "identifier":
        name = get_text(callee)
    elif callee is not None and callee.type == "member_expression":
        name = analyze_member(callee)["fullPath"]
    args = [analyze_argument(a) for a in named(field(call, "arguments"))]
    return {
        "type": "functionCall",
        "name": name,
        "arguments": args,
        "argumentCount": len(args),
    }


def analyze_member(member) -> Dict[str, Any]:
    target = field(member, "object")
    prop = field(member, "property")
    obj = "unknown"
    if target is not None and target.type == "identifier":
        obj = get_text(target)
    elif target is not None and target.type == "member_expression":
        obj = analyze_member(target)["fullPath"]
    prop_name = get_text(prop) if prop is not None and prop.type == "property_identifier" else "unknown"
    return {
        "type": "memberExpression",
        "object": obj,
        "property": prop_name,
        "fullPath": f"{obj}.{prop_name}",
    }


def analyze_argument(arg) -> Dict[str, Any]:
    kind = arg.type
    if kind == "string":
        return {"type": "string", "value": string_value(arg)}
    if kind == "number":
        return {"type": "number", "value": _number(arg)}
    if kind in ("true", "false"):
        return {"type": "boolean", "value": kind == "true"}
    if kind == "object":
        properties = {}
        for entry in named(arg):
            key = field(entry, "key")
            if entry.type == "pair" and key is not None and key.type == "property_identifier":
                properties[get_text(key)] = analyze_argument(field(entry, "value"))
        return {"type": "object", "properties": properties}
    if kind == "identifier":
        return {"type": "identifier", "value": get_text(arg)}
    if kind == "template_string":
        return analyze_template(arg)
    if kind in FUNCTION_VALUE_NODES:
        return {"type": "function", "value": "anonymous"}
    return {"type": "unknown", "value": None}


def analyze_template(template) -> Dict[str, Any]:
    """Static text and ``${}`` placeholders of a template literal, in order."""
    parts = []
    static = ""
    for child in template.children:
        if child.type == "template_substitution":
            if static:
                parts.append({"type": "string", "value": static})
                static = ""
            parts.append(analyze_expression(first_named(child)))
        elif child.type not in ("`",):
            static += get_text(child)
    if static:
        parts.append({"type": "string", "value": static})
    value = "".join(p["value"] if p["type"] == "string" else "${%s}" % p.get("value", p.get("name", "")) for p in parts)
    return {"type": "templateLiteral", "value": value, "parts": parts}
