import traceback
from typing import Any, Dict, List, Tuple

from declmeta.utils.syntax import field, get_text, named, walk

HOOK_TYPES = {
    "useState": "state",
    "useEffect": "effect",
    "useCallback": "callback",
    "useMemo": "memo",
    "useRef": "ref",
}

LITERAL_KINDS = {
    "number": "number",
    "string": "string",
    "true": "boolean",
    "false": "boolean",
    "array": "array",
    "object": "object",
    "null": "null",
}


def is_hook_call(node) -> bool:
    """``useXxx(...)`` called through a bare identifier."""
    if node is None or node.type != "call_expression":
        return False
    callee = field(node, "function")
    if callee is None or callee.type != "identifier":
        return False
    name = get_text(callee)
    return name.startswith("use") and len(name) > 3 and name[3].isupper()


def hook_name(node) -> str:
    return get_text(field(node, "function"))


def hook_arguments(node) -> list:
    return named(field(node, "arguments"))


def value_kind(arg) -> str:
    if arg is None:
        return "unknown"
    return LITERAL_KINDS.get(arg.type, "unknown")


def dependency_kind(args) -> str:
    if len(args) < 2:
        return "none"
    deps = args[1]
    if deps.type != "array":
        return "unknown"
    return "empty" if not named(deps) else "array"


def summarize_hook(node) -> Tuple[str, Dict[str, Any]]:
    """Call-site summary of one hook call, keyed by the hook's name."""
    name = hook_name(node)
    args = hook_arguments(node)
    first = args[0] if args else None

    if name == "useState":
        summary = {"type": value_kind(first)}
        if first is not None:
            summary["initialValue"] = get_text(first)
    elif name in ("useEffect", "useLayoutEffect"):
        summary = {"dependencies": dependency_kind(args)}
        if first is not None:
            summary["effectBody"] = get_text(first)
    elif name == "useCallback":
        summary = {"dependencies": dependency_kind(args)}
        if first is not None:
            summary["callbackBody"] = get_text(first)
    elif name == "useMemo":
        summary = {"dependencies": dependency_kind(args)}
        if first is not None:
            summary["factoryBody"] = get_text(first)
    elif name == "useRef":
        summary = {"type": value_kind(first) if first is not None else "null"}
        if first is not None:
            summary["initialValue"] = get_text(first)
    else:
        summary = {"arguments": [get_text(a) for a in args]}
    return name, summary


def get_hook_dependencies(node) -> List[str]:
    args = hook_arguments(node)
    if len(args) < 2 or args[1].type != "array":
        return []
    return [get_text(e) for e in named(args[1]) if e.type == "identifier"]


def get_hook_type(node) -> str:
    return HOOK_TYPES.get(hook_name(node), "custom")


def get_component_hooks(body) -> List[Dict[str, Any]]:
    hooks = []
    if body is None:
        return hooks
    try:
        for node in walk(body):
            if is_hook_call(node):
                hooks.append({
                    "name": hook_name(node),
                    "type": get_hook_type(node),
                    "dependencies": get_hook_dependencies(node),
                })
    except (AttributeError, RecursionError):
        print(traceback.format_exc())
        print("Error analyzing hooks. Returning what was collected.")
    return hooks
