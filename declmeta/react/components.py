from typing import Any, Dict, List

from declmeta.extractors.declaration_visitor import DeclarationVisitor
from declmeta.react.detectors import (
    class_component_base,
    is_function_declaration_component,
    is_variable_component,
    type_arguments,
)
from declmeta.react.hooks import get_component_hooks, is_hook_call, summarize_hook
from declmeta.react.jsx_analyzer import analyze_jsx
from declmeta.utils.syntax import field, get_text, named, strip_quotes, type_annotation_value, unwrap_parens
from declmeta.utils.type_renderer import FALLBACK_TYPE, type_to_string


class ReactDeclarationVisitor(DeclarationVisitor):
    """
    Declaration visitor for TSX that also classifies components and
    collects hook call sites.

    Components keep their regular ``functions`` / ``classes`` record, get
    the component fields merged in and are mirrored into ``components``.
    """

    def __init__(self, oracle=None):
        super().__init__(oracle)
        self.dispatch["call_expression"] = self.visit_call

    def visit_call(self, node, builder, ctx):
        if is_hook_call(node):
            name, summary = summarize_hook(node)
            builder.add_hook(name, summary)
        return None

    # ------------------------------------------------------------------
    # Props
    # ------------------------------------------------------------------

    def _props_members(self, type_node, builder) -> Dict[str, str]:
        node = unwrap_parens(type_annotation_value(type_node))
        if node is None:
            return {}
        if node.type in ("type_identifier", "generic_type"):
            name = get_text(field(node, "name") if node.type == "generic_type" else node)
            interface = builder.get("interfaces", name)
            if interface is not None:
                return dict(interface["properties"])
            node = unwrap_parens(self.oracle.aliases.get(name))
        if node is None or node.type != "object_type":
            return {}
        rendered = self.oracle.annotation(node)
        if not isinstance(rendered, dict):
            return {}
        return {k: type_to_string(v) for k, v in rendered.items()}

    def component_props(self, func, builder, component_annotation=None) -> List[Dict[str, Any]]:
        """Props of a function component read from its first parameter."""
        single = field(func, "parameter")
        if single is not None:
            return [{"name": get_text(single), "type": FALLBACK_TYPE}]
        first = next((p for p in named(field(func, "parameters"))
                      if p.type in ("required_parameter", "optional_parameter")), None)
        if first is None:
            return []
        pattern = field(first, "pattern")
        props_type = field(first, "type")
        if props_type is None and component_annotation is not None:
            args = type_arguments(component_annotation)
            props_type = args[0] if args else None

        if pattern is not None and pattern.type == "identifier":
            param_type = self.oracle.annotation_string(props_type) if props_type is not None else FALLBACK_TYPE
            return [{"name": get_text(pattern), "type": param_type}]
        if pattern is None or pattern.type != "object_pattern":
            return []

        members = self._props_members(props_type, builder)
        props = []
        for child in named(pattern):
            if child.type == "shorthand_property_identifier_pattern":
                name = get_text(child)
            elif child.type == "pair_pattern":
                name = strip_quotes(get_text(field(child, "key")))
            elif child.type == "object_assignment_pattern":
                name = get_text(field(child, "left"))
            elif child.type == "rest_pattern":
                name = get_text(named(child)[0]) if named(child) else "unknown"
            else:
                continue
            props.append({"name": name, "type": members.get(name, FALLBACK_TYPE)})
        return props

    def _component_fields(self, func, builder, record, component_annotation=None) -> Dict[str, Any]:
        return_node = field(func, "return_type")
        return_type = self.oracle.annotation_string(return_node) if return_node is not None else "JSX.Element"
        body = field(func, "body")
        props = self.component_props(func, builder, component_annotation)
        return {
            "name": record["name"],
            "type": "functional",
            "props": props,
            "params": props,
            "returnType": return_type,
            "returnResult": [return_type],
            "jsx": True,
            "body": get_text(body) if body is not None else "",
            "isExported": record["isExported"],
            "isDeclared": record["isDeclared"],
            "hooks": get_component_hooks(body),
            "template": analyze_jsx(body),
        }

    # ------------------------------------------------------------------
    # Hooks into the declaration visitor
    # ------------------------------------------------------------------

    def after_variable(self, declarator, record, builder, ctx):
        if not is_variable_component(declarator):
            return
        func = unwrap_parens(field(declarator, "value"))
        component = self._component_fields(func, builder, record, field(declarator, "type"))
        function_record = builder.get("functions", record["name"])
        if function_record is None:
            function_record = builder.put("functions", record["name"], {})
        function_record.update(component)
        builder["components"][record["name"]] = dict(component)

    def after_function(self, node, record, builder, ctx):
        if not is_function_declaration_component(node):
            return
        component = self._component_fields(node, builder, record)
        record.update(component)
        builder["components"][record["name"]] = dict(component)

    def after_class(self, node, record, builder, ctx):
        base = class_component_base(node)
        if base is None:
            return
        base_text, args = base
        props_type = self.oracle.annotation_string(args[0]) if len(args) > 0 else FALLBACK_TYPE
        state_type = self.oracle.annotation_string(args[1]) if len(args) > 1 else FALLBACK_TYPE
        component = {
            "name": record["name"],
            "type": "class",
            "methods": record["methods"],
            "extendsClass": base_text,
            "generics": [props_type, state_type],
            "propsType": props_type,
            "stateType": state_type,
            "jsx": True,
            "isExported": record["isExported"],
            "isDeclared": record["isDeclared"],
        }
        record.update(component)
        builder["components"][record["name"]] = dict(component)
