from typing import Any, Dict

from declmeta.utils.syntax import keywords

ACCESS_KEYWORDS = ("private", "protected", "public")

LEGACY_MODIFICATORS = {"public": "opened", "private": "private", "protected": "protected"}

GENERATOR_NODES = {"generator_function_declaration", "generator_function"}


def new_context(**overrides) -> Dict[str, Any]:
    ctx = {
        "exported": False,
        "default": False,
        "declared": False,
        "module_member": False,
        "decorators": [],
    }
    ctx.update(overrides)
    return ctx


def access_modifier(node) -> str:
    found = keywords(node)
    for access in ("private", "protected"):
        if access in found:
            return access
    return "public"


def legacy_modificator(access: str, readonly: bool = False) -> str:
    if access == "public" and readonly:
        return "readonly"
    return LEGACY_MODIFICATORS.get(access, "opened")


def is_async(node) -> bool:
    return "async" in keywords(node)


def is_generator(node) -> bool:
    return node.type in GENERATOR_NODES or "*" in keywords(node)


def declaration_modifiers(node, ctx: Dict[str, Any]) -> Dict[str, Any]:
    found = keywords(node)
    return {
        "isExported": bool(ctx.get("exported") or ctx.get("module_member")),
        "isDeclared": bool(ctx.get("declared") or "declare" in found),
        "isDefault": bool(ctx.get("default")),
        "isAbstract": node.type == "abstract_class_declaration" or "abstract" in found,
        "isAsync": "async" in found,
        "isGenerator": is_generator(node),
        "isConst": "const" in found,
    }


def member_modifiers(node) -> Dict[str, Any]:
    found = keywords(node)
    access = access_modifier(node)
    return {
        "accessModifier": access,
        "isStatic": "static" in found,
        "isReadonly": "readonly" in found,
        "isAbstract": "abstract" in found or node.type == "abstract_method_signature",
        "isOverride": "override" in found,
        "isAsync": "async" in found,
        "isGenerator": "*" in found,
        "isOptional": "?" in found,
    }
