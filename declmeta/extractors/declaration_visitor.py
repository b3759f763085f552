import re
from typing import Any, Dict, List, Optional

from declmeta.extractors.decorators import parse_decorators, parse_parameter_decorators, preceding_decorators
from declmeta.extractors.modifiers import (
    access_modifier,
    declaration_modifiers,
    legacy_modificator,
    member_modifiers,
    new_context,
)
from declmeta.extractors.module_composer import compose_global, compose_module
from declmeta.extractors.overloads import OverloadReconciler
from declmeta.utils.stringifier import stringify
from declmeta.utils.syntax import (
    field,
    first_named,
    get_text,
    keywords,
    named,
    squash,
    string_value,
    strip_quotes,
    type_annotation_value,
    unwrap_parens,
)
from declmeta.utils.type_renderer import (
    FALLBACK_TYPE,
    flatten_members,
    is_mapped_object,
    member_name,
    render_type,
    render_type_string,
    type_to_string,
)

_QUOTES_RE = re.compile(r"['\"]")

FUNCTION_VALUE_NODES = {"arrow_function", "function_expression", "function", "generator_function"}
JSX_NODES = {"jsx_element", "jsx_self_closing_element", "jsx_fragment"}
TYPE_REFERENCE_NODES = {"type_identifier", "generic_type", "nested_type_identifier"}
SIMPLE_ALIAS_NODES = TYPE_REFERENCE_NODES | {
    "predefined_type", "lookup_type", "type_query", "index_type_query", "literal_type",
    "array_type", "tuple_type", "readonly_type", "template_literal_type",
}


def legacy_member(record: Dict[str, Any], name: str, value: Dict[str, Any]):
    """Copy a class member onto the class record itself, replacing a same-named record field."""
    if not name.startswith("constructorSignature"):
        record[name] = value


def strip_value_quotes(text: str) -> str:
    return _QUOTES_RE.sub("", text)


def number_value(text: str):
    """Numeric value of a JavaScript number literal, ``None`` when it is not one."""
    clean = text.replace("_", "").rstrip("n")
    try:
        if clean[:2].lower() in ("0x", "0o", "0b"):
            return int(clean, 0)
        value = float(clean)
    except (ValueError, IndexError):
        return None
    return int(value) if value.is_integer() else value


def enhance_generic_relations(params: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Append ``T[]`` to the legacy types of a function-typed parameter that
    mentions ``T`` when another parameter is a ``T[]`` array.
    """
    enhanced = [dict(p, type=list(p["type"])) for p in params]
    for i, array_param in enumerate(enhanced):
        for j, fn_param in enumerate(enhanced):
            if i == j:
                continue
            array_type = array_param["type"][0]
            fn_type = fn_param["type"][0]
            if array_type.endswith("[]") and "=>" in fn_type and "(" in fn_type:
                element = array_type[:-2]
                if element in fn_type and array_type not in fn_param["type"]:
                    fn_param["type"].append(array_type)
    return enhanced


class SyntaxTypeOracle:
    """Type strings derived from the shape of the syntax alone."""

    HOOK_LABELS = {
        "useState": "State Hook",
        "useEffect": "Effect Hook",
        "useRef": "Ref Hook",
        "useCallback": "Callback Hook",
        "useMemo": "Memo Hook",
    }

    def __init__(self):
        self.aliases: Dict[str, Any] = {}

    def annotation(self, type_node):
        return render_type(type_node)

    def annotation_string(self, type_node) -> str:
        return render_type_string(type_node)

    def register_alias(self, name: str, value_node):
        self.aliases[name] = value_node

    def is_function_alias(self, type_node) -> bool:
        if type_node is None:
            return False
        name_node = field(type_node, "name") if type_node.type == "generic_type" else type_node
        target = self.aliases.get(get_text(name_node))
        target = unwrap_parens(target)
        return target is not None and target.type in ("function_type", "intersection_type")

    def infer(self, value, kind: str = "let") -> str:
        node = unwrap_parens(value)
        if node is None:
            return "undefined"
        kind_of = node.type
        if kind_of in ("string", "template_string"):
            return "string"
        if kind_of == "number":
            return "number"
        if kind_of in ("true", "false"):
            return "boolean"
        if kind_of == "null":
            return "null"
        if kind_of == "regex":
            return "RegExp"
        if kind_of in ("identifier", "undefined"):
            return get_text(node)
        if kind_of == "object":
            return "object"
        if kind_of == "array":
            return "Array"
        if kind_of in FUNCTION_VALUE_NODES:
            return "Function"
        if kind_of in JSX_NODES:
            return "JSX.Element"
        if kind_of in ("as_expression", "satisfies_expression"):
            parts = named(node)
            if len(parts) > 1:
                return self.annotation_string(parts[1])
            return self.infer(parts[0], "const") if parts else "unknown"
        if kind_of == "call_expression":
            callee = field(node, "function")
            if callee is not None and callee.type == "identifier":
                callee_name = get_text(callee)
                return self.HOOK_LABELS.get(callee_name, f"{callee_name} Call")
            return "Expression"
        return "unknown"

    def infer_member(self, value, key, kind: str = "let") -> str:
        return FALLBACK_TYPE

    def infer_return(self, func_node) -> str:
        return "unknown"

    def enum_value(self, value_node, known: Dict[str, Any]):
        node = unwrap_parens(value_node)
        if node is None:
            return None
        if node.type == "number":
            return number_value(get_text(node))
        if node.type == "string":
            return f'"{string_value(node)}"'
        if node.type == "unary_expression" and get_text(field(node, "operator")) == "-":
            argument = unwrap_parens(field(node, "argument"))
            if argument is not None and argument.type == "number":
                number = number_value(get_text(argument))
                return -number if number is not None else None
        if node.type == "identifier" and get_text(node) in known:
            return known[get_text(node)]
        return None


class DeclarationVisitor:
    """
    Walks one syntax tree in source order and writes declaration records
    into a ``MetadataBuilder``.

    Declaration nodes are routed through ``self.dispatch``; everything else
    is descended into so declarations nested in bodies are recorded too.
    """

    def __init__(self, oracle=None):
        self.oracle = oracle or SyntaxTypeOracle()
        self.dispatch = {
            "lexical_declaration": self.visit_variable_declaration,
            "variable_declaration": self.visit_variable_declaration,
            "function_declaration": self.visit_function,
            "generator_function_declaration": self.visit_function,
            "function_signature": self.visit_function,
            "class_declaration": self.visit_class,
            "abstract_class_declaration": self.visit_class,
            "interface_declaration": self.visit_interface,
            "type_alias_declaration": self.visit_type_alias,
            "enum_declaration": self.visit_enum,
            "import_statement": self.visit_import,
            "export_statement": self.visit_export,
            "ambient_declaration": self.visit_ambient,
            "module": self.visit_module,
            "internal_module": self.visit_module,
            "expression_statement": self.visit_expression_statement,
        }

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    def visit_file(self, root, builder):
        self.visit(root, builder, new_context())

    def visit(self, node, builder, ctx):
        handler = self.dispatch.get(node.type)
        if handler is not None and handler(node, builder, ctx) is False:
            return
        for child in named(node):
            self.visit(child, builder, new_context())

    # overridable hooks for dialect specific classification
    def after_variable(self, declarator, record, builder, ctx):
        pass

    def after_function(self, node, record, builder, ctx):
        pass

    def after_class(self, node, record, builder, ctx):
        pass

    def _mark_export(self, builder, name: str, ctx):
        if ctx.get("exported"):
            builder.mark_exported(name)
        if ctx.get("default"):
            builder["exports"]["default"] = name

    def _reconciler(self, builder, bucket: str) -> OverloadReconciler:
        state = builder.scope_state
        if bucket not in state:
            state[bucket] = OverloadReconciler(builder[bucket])
        return state[bucket]

    # ------------------------------------------------------------------
    # Shared pieces
    # ------------------------------------------------------------------

    def _generics(self, node) -> List[str]:
        params = field(node, "type_parameters")
        names = []
        for param in named(params):
            if param.type == "type_parameter":
                names.append(get_text(field(param, "name") or first_named(param)))
        return names

    def _type_parameters(self, node) -> List[Dict[str, Any]]:
        result = []
        for param in named(field(node, "type_parameters")):
            if param.type != "type_parameter":
                continue
            constraint = field(param, "constraint")
            default = field(param, "value")
            result.append({
                "name": get_text(field(param, "name") or first_named(param)),
                "constraint": self.oracle.annotation_string(first_named(constraint)) if constraint is not None else None,
                "default": self.oracle.annotation_string(first_named(default)) if default is not None else None,
            })
        return result

    def _parameter_nodes(self, params_node):
        for param in named(params_node):
            if param.type not in ("required_parameter", "optional_parameter"):
                continue
            pattern = field(param, "pattern")
            if pattern is None or pattern.type == "this":
                continue
            yield param, pattern

    def _parameter_record(self, param, pattern) -> Dict[str, Any]:
        type_node = field(param, "type")
        value = field(param, "value")
        if type_node is not None:
            param_type = self.oracle.annotation_string(type_node)
        elif value is not None:
            param_type = self.oracle.infer(value, "let")
        else:
            param_type = FALLBACK_TYPE
        return {
            "name": squash(get_text(pattern)),
            "type": param_type,
            "optional": param.type == "optional_parameter",
            "defaultValuePresent": value is not None,
            "initializer": get_text(value) if value is not None else None,
        }

    def _parameters(self, params_node) -> List[Dict[str, Any]]:
        return [self._parameter_record(p, pattern) for p, pattern in self._parameter_nodes(params_node)]

    def _callable_parameters(self, func) -> List[Dict[str, Any]]:
        single = field(func, "parameter")
        if single is not None:
            return [{
                "name": get_text(single),
                "type": FALLBACK_TYPE,
                "optional": False,
                "defaultValuePresent": False,
                "initializer": None,
            }]
        return self._parameters(field(func, "parameters"))

    def _return_type(self, node) -> str:
        return_node = field(node, "return_type")
        if return_node is not None:
            return self.oracle.annotation_string(return_node)
        return self.oracle.infer_return(node)

    @staticmethod
    def _legacy_params(parameters):
        return [{"name": p["name"], "type": [p["type"]], "optional": p["optional"]} for p in parameters]

    def _signature_record(self, node, name: str) -> Dict[str, Any]:
        parameters = self._parameters(field(node, "parameters"))
        return_type = self._return_type(node)
        return {
            "name": name,
            "parameters": parameters,
            "params": self._legacy_params(parameters),
            "returnType": return_type,
            "returnResult": [return_type],
            "genericsTypes": self._generics(node),
        }

    # ------------------------------------------------------------------
    # Variables
    # ------------------------------------------------------------------

    def visit_variable_declaration(self, node, builder, ctx):
        if node.type == "variable_declaration":
            kind = "var"
        else:
            kind_node = field(node, "kind")
            kind = get_text(kind_node) if kind_node is not None else "let"
        mods = declaration_modifiers(node, ctx)
        for declarator in named(node):
            if declarator.type != "variable_declarator":
                continue
            name_node = field(declarator, "name")
            if name_node is None:
                continue
            if name_node.type == "identifier":
                self._visit_declarator(declarator, get_text(name_node), kind, mods, builder, ctx)
            elif name_node.type in ("array_pattern", "object_pattern"):
                self._visit_destructuring(declarator, name_node, kind, mods, builder, ctx)

    def _variable_record(self, name, var_type, kind, value, mods) -> Dict[str, Any]:
        return {
            "name": name,
            "type": var_type,
            "isConst": kind == "const",
            "declarationType": kind,
            "hasInitializer": value is not None,
            "initializerValue": get_text(value) if value is not None else None,
            "typeAssertion": self._type_assertion(value),
            "isExported": mods["isExported"],
            "isDeclared": mods["isDeclared"],
            "types": [var_type],
            "value": self._variable_value(value),
        }

    def _visit_declarator(self, declarator, name, kind, mods, builder, ctx):
        type_node = field(declarator, "type")
        value = field(declarator, "value")
        if type_node is not None:
            var_type = self.oracle.annotation_string(type_node)
        elif value is not None:
            var_type = self.oracle.infer(value, kind)
        else:
            var_type = FALLBACK_TYPE

        record = builder.put("variables", name, self._variable_record(name, var_type, kind, value, mods))
        self._mark_export(builder, name, ctx)

        if self._is_function_variable(type_node, value):
            builder.put("functions", name, self._function_from_variable(name, var_type, type_node, value, mods))
        self.after_variable(declarator, record, builder, ctx)

    def _visit_destructuring(self, declarator, pattern, kind, mods, builder, ctx):
        annotation = unwrap_parens(type_annotation_value(field(declarator, "type")))
        value = field(declarator, "value")
        for name, key in self._pattern_bindings(pattern):
            var_type = self._binding_type(annotation, value, key, kind)
            record = self._variable_record(name, var_type, kind, None, mods)
            record["hasInitializer"] = value is not None
            builder.put("variables", name, record)
            self._mark_export(builder, name, ctx)

    def _pattern_bindings(self, pattern):
        """``(bound name, key)`` pairs; the key is a tuple index or a property name."""
        if pattern.type == "array_pattern":
            index = 0
            for child in pattern.children:
                if child.type == ",":
                    index += 1
                elif child.is_named:
                    target = field(child, "left") if child.type == "assignment_pattern" else child
                    if target is not None and target.type == "rest_pattern":
                        target = first_named(target)
                    if target is not None and target.type == "identifier":
                        yield get_text(target), index
            return
        for child in named(pattern):
            if child.type == "shorthand_property_identifier_pattern":
                yield get_text(child), get_text(child)
            elif child.type == "object_assignment_pattern":
                left = field(child, "left")
                if left is not None:
                    yield get_text(left), get_text(left)
            elif child.type == "pair_pattern":
                key = strip_quotes(get_text(field(child, "key")))
                target = field(child, "value")
                if target is not None and target.type == "assignment_pattern":
                    target = field(target, "left")
                if target is not None and target.type == "identifier":
                    yield get_text(target), key
            elif child.type == "rest_pattern":
                target = first_named(child)
                if target is not None:
                    yield get_text(target), None

    def _binding_type(self, annotation, value, key, kind) -> str:
        if annotation is not None and key is not None:
            if annotation.type == "tuple_type" and isinstance(key, int):
                members = named(annotation)
                if key < len(members):
                    member = members[key]
                    if member.type in ("tuple_parameter", "optional_tuple_parameter"):
                        return self.oracle.annotation_string(field(member, "type"))
                    if member.type in ("optional_type", "rest_type"):
                        return self.oracle.annotation_string(first_named(member))
                    return self.oracle.annotation_string(member)
            if annotation.type == "array_type" and isinstance(key, int):
                return self.oracle.annotation_string(first_named(annotation))
            if annotation.type == "object_type" and isinstance(key, str):
                rendered = render_type(annotation)
                if isinstance(rendered, dict) and key in rendered:
                    return type_to_string(rendered[key])
        if value is not None and key is not None:
            return self.oracle.infer_member(value, key, kind)
        return FALLBACK_TYPE

    def _variable_value(self, value):
        if value is None:
            return ""
        if value.type == "object":
            return self._object_value(value)
        return strip_value_quotes(get_text(value))

    def _object_value(self, node) -> Dict[str, Any]:
        result = {}
        for entry in named(node):
            if entry.type != "pair":
                continue
            key = strip_quotes(get_text(field(entry, "key")))
            value = field(entry, "value")
            if value is None:
                continue
            if value.type == "object":
                result[key] = {"type": "object", "value": self._object_value(value)}
            elif value.type == "string":
                result[key] = {"type": "string", "value": string_value(value)}
            elif value.type == "number":
                result[key] = {"type": "number", "value": get_text(value)}
            elif value.type in ("true", "false"):
                result[key] = {"type": "boolean", "value": get_text(value)}
            else:
                result[key] = {"type": "unknown", "value": get_text(value)}
        return result

    def _type_assertion(self, value) -> Optional[Dict[str, Any]]:
        node = unwrap_parens(value)
        if node is None or node.type not in ("as_expression", "satisfies_expression", "type_assertion"):
            return None
        parts = named(node)
        if node.type == "type_assertion":
            if len(parts) < 2:
                return None
            type_text = self.oracle.annotation_string(first_named(parts[0]))
            expression = parts[1]
        else:
            if not parts:
                return None
            expression = parts[0]
            type_text = self.oracle.annotation_string(parts[1]) if len(parts) > 1 else "const"
        return {
            "operator": "satisfies" if node.type == "satisfies_expression" else "as",
            "type": type_text,
            "originalExpression": get_text(expression),
            "fullExpression": get_text(node),
        }

    def _is_function_variable(self, type_node, value) -> bool:
        func = unwrap_parens(value)
        if func is not None:
            return func.type in FUNCTION_VALUE_NODES
        annotation = unwrap_parens(type_annotation_value(type_node))
        if annotation is None:
            return False
        if annotation.type == "function_type":
            return True
        if annotation.type in TYPE_REFERENCE_NODES:
            return self.oracle.is_function_alias(annotation)
        return False

    def _function_from_variable(self, name, var_type, type_node, value, mods) -> Dict[str, Any]:
        func = unwrap_parens(value)
        is_async = is_generator = False
        body = None
        if func is not None and func.type in FUNCTION_VALUE_NODES:
            parameters = self._callable_parameters(func)
            return_type = self._return_type(func)
            found = keywords(func)
            is_async = "async" in found
            is_generator = func.type == "generator_function" or "*" in found
            body = field(func, "body")
        else:
            annotation = unwrap_parens(type_annotation_value(type_node))
            if annotation is not None and annotation.type == "function_type":
                parameters = self._parameters(field(annotation, "parameters"))
                return_node = field(annotation, "return_type")
                return_type = self.oracle.annotation_string(return_node) if return_node is not None else FALLBACK_TYPE
            else:
                parameters, return_type = [], "unknown"

        record = {
            "name": name,
            "parameters": parameters,
            "returnType": return_type,
            "isAsync": is_async,
            "isGenerator": is_generator,
            "isExported": mods["isExported"],
            "isDeclared": mods["isDeclared"],
            "types": [var_type] + [p["type"] for p in parameters] + [return_type],
            "params": [{"name": p["name"], "type": [p["type"]]} for p in parameters],
            "returnResult": [return_type],
        }
        if body is not None:
            record["body"] = get_text(body)
        return record

    # ------------------------------------------------------------------
    # Functions
    # ------------------------------------------------------------------

    def _function_record(self, node, name, mods, decorators) -> Dict[str, Any]:
        params_node = field(node, "parameters")
        parameters = self._parameters(params_node)
        generics = self._generics(node)
        legacy = self._legacy_params(parameters)
        if generics:
            legacy = enhance_generic_relations(legacy)
        return_type = self._return_type(node)
        record = {
            "name": name,
            "parameters": parameters,
            "params": legacy,
            "returnType": return_type,
            "returnResult": [return_type],
            "types": [p["type"] for p in parameters] + [return_type],
            "isAsync": mods["isAsync"],
            "isGenerator": mods["isGenerator"],
            "isDefault": mods["isDefault"],
            "isExported": mods["isExported"],
            "isDeclared": mods["isDeclared"],
            "decorators": decorators,
            "paramDecorators": parse_parameter_decorators(params_node),
            "genericsTypes": generics,
        }
        body = field(node, "body")
        if body is not None:
            record["body"] = get_text(body)
        return record

    def visit_function(self, node, builder, ctx):
        name_node = field(node, "name")
        if name_node is None:
            return None
        name = get_text(name_node)
        mods = declaration_modifiers(node, ctx)
        record = self._function_record(node, name, mods, parse_decorators(node, ctx["decorators"]))
        has_body = field(node, "body") is not None
        record = self._reconciler(builder, "functions").add(name, record, has_body)
        self._mark_export(builder, name, ctx)
        self.after_function(node, record, builder, ctx)
        return None

    # ------------------------------------------------------------------
    # Classes
    # ------------------------------------------------------------------

    def _class_heritage(self, node):
        extends, extended_classes, implements = [], [], []
        heritage = first_named(node, "class_heritage")
        for clause in named(heritage):
            if clause.type == "extends_clause":
                for child in named(clause):
                    if child.type == "type_arguments":
                        if extends:
                            args = ", ".join(self.oracle.annotation_string(a) for a in named(child))
                            extends[-1] = f"{extends[-1]}<{args}>"
                            extended_classes[-1] = extended_classes[-1] + squash(get_text(child))
                    else:
                        extends.append(squash(get_text(child)))
                        extended_classes.append(squash(get_text(child)))
            elif clause.type == "implements_clause":
                implements.extend(self.oracle.annotation_string(t) for t in named(clause))
            else:
                # plain javascript: `class A extends B`
                extends.append(squash(get_text(clause)))
                extended_classes.append(squash(get_text(clause)))
        return extends, extended_classes, implements

    def visit_class(self, node, builder, ctx):
        name_node = field(node, "name")
        if name_node is None:
            return None
        name = get_text(name_node)
        mods = declaration_modifiers(node, ctx)
        extends, extended_classes, implements = self._class_heritage(node)
        record = {
            "name": name,
            "properties": {},
            "methods": {},
            "accessors": {},
            "constructors": [],
            "extends": extends,
            "extendedClasses": extended_classes,
            "superClass": extended_classes[0] if extended_classes else None,
            "implements": implements,
            "typeParameters": self._type_parameters(node),
            "genericsTypes": self._generics(node),
            "decorators": parse_decorators(node, ctx["decorators"]),
            "isExported": mods["isExported"],
            "isDeclared": mods["isDeclared"],
            "isAbstract": mods["isAbstract"],
            "isDefault": mods["isDefault"],
            "types": [name],
        }

        methods = OverloadReconciler(record["methods"])
        legacy = {}
        for member in named(field(node, "body")):
            if member.type == "decorator":
                continue
            decorators = parse_decorators(member, preceding_decorators(member))
            if member.type == "public_field_definition":
                self._class_property(record, member, decorators, legacy)
            elif member.type in ("method_definition", "method_signature", "abstract_method_signature"):
                self._class_method(record, member, decorators, methods, legacy)

        builder.put("classes", name, record)
        self._mark_export(builder, name, ctx)
        self.after_class(node, record, builder, ctx)
        # member copies replace same-named record fields
        for member_key, copy in legacy.items():
            legacy_member(record, member_key, copy)
        return None

    def _class_property(self, record, member, decorators, legacy):
        name_node = field(member, "name")
        if name_node is None:
            return
        name = strip_quotes(get_text(name_node))
        mods = member_modifiers(member)
        type_node = field(member, "type")
        value = field(member, "value")
        if type_node is not None:
            prop_type = self.oracle.annotation_string(type_node)
        elif value is not None:
            prop_type = self.oracle.infer(value, "const" if mods["isReadonly"] else "let")
        else:
            prop_type = FALLBACK_TYPE
        modificator = legacy_modificator(mods["accessModifier"], mods["isReadonly"])
        record["properties"][name] = {
            "name": name,
            "type": prop_type,
            "accessModifier": mods["accessModifier"],
            "modificator": modificator,
            "isStatic": mods["isStatic"],
            "isReadonly": mods["isReadonly"],
            "isAbstract": mods["isAbstract"],
            "isOverride": mods["isOverride"],
            "isOptional": mods["isOptional"],
            "hasInitializer": value is not None,
            "initializer": get_text(value) if value is not None else None,
            "decorators": decorators,
        }
        legacy[name] = {
            "types": [prop_type],
            "modificator": modificator,
            "value": strip_value_quotes(get_text(value)) if value is not None else "",
        }

    def _class_method(self, record, member, decorators, methods: OverloadReconciler, legacy):
        name_node = field(member, "name")
        if name_node is None:
            return
        name = strip_quotes(get_text(name_node))
        mods = member_modifiers(member)
        params_node = field(member, "parameters")
        body = field(member, "body")

        if name == "constructor":
            self._class_constructor(record, member, mods, params_node, body, legacy)
            return

        found = keywords(member)
        if "get" in found or "set" in found:
            kind = "get" if "get" in found else "set"
            accessor = {
                "name": name,
                "kind": kind,
                "returnType": self._return_type(member) if kind == "get" else "void",
                "parameters": self._parameters(params_node),
                "accessModifier": mods["accessModifier"],
                "isStatic": mods["isStatic"],
                "decorators": decorators,
            }
            if body is not None:
                accessor["body"] = get_text(body)
            record["accessors"].setdefault(name, {})[kind] = accessor
            record["methods"][f"{kind}_{name}"] = accessor
            return

        method = self._signature_record(member, name)
        method.update({
            "accessModifier": mods["accessModifier"],
            "modificator": legacy_modificator(mods["accessModifier"]),
            "types": ["function"],
            "isStatic": mods["isStatic"],
            "isAsync": mods["isAsync"],
            "isGenerator": mods["isGenerator"],
            "isAbstract": mods["isAbstract"],
            "isOverride": mods["isOverride"],
            "isOptional": mods["isOptional"],
            "decorators": decorators,
            "paramDecorators": parse_parameter_decorators(params_node),
        })
        if body is not None:
            method["body"] = get_text(body)
        # abstract members never get a body but are still the canonical record
        has_body = body is not None or member.type == "abstract_method_signature"
        legacy[name] = methods.add(name, method, has_body)

    def _class_constructor(self, record, member, mods, params_node, body, legacy):
        index = len(record["constructors"])
        parameters = self._parameters(params_node)
        legacy_params = []
        for param in parameters:
            default = param["initializer"]
            legacy_params.append({param["name"]: {
                "types": [param["type"]],
                "defaultValue": strip_value_quotes(default.strip()) if default is not None else None,
            }})
        param_decorators = parse_parameter_decorators(params_node)
        entry = {
            "parameters": parameters,
            "params": legacy_params,
            "accessModifier": mods["accessModifier"],
            "paramDecorators": param_decorators,
        }
        if body is not None:
            entry["body"] = get_text(body)
            record["constructor"] = {"params": legacy_params, "body": entry["body"], "paramDecorators": param_decorators}
        else:
            record[f"constructorSignature{index}"] = {"params": legacy_params}
        record["constructors"].append(entry)

        for (param, pattern), parameter in zip(self._parameter_nodes(params_node), parameters):
            found = keywords(param)
            if not ({"public", "private", "protected", "readonly", "override"} & found):
                continue
            access = access_modifier(param)
            readonly = "readonly" in found
            modificator = legacy_modificator(access, readonly)
            name = parameter["name"]
            record["properties"][name] = {
                "name": name,
                "type": parameter["type"],
                "accessModifier": access,
                "modificator": modificator,
                "isStatic": False,
                "isReadonly": readonly,
                "isAbstract": False,
                "isOverride": "override" in found,
                "isOptional": parameter["optional"],
                "hasInitializer": parameter["defaultValuePresent"],
                "initializer": parameter["initializer"],
                "decorators": parse_decorators(param),
                "isParameterProperty": True,
            }
            legacy[name] = {
                "types": [parameter["type"]],
                "modificator": modificator,
                "value": strip_value_quotes(parameter["initializer"]) if parameter["initializer"] is not None else None,
            }

    # ------------------------------------------------------------------
    # Interfaces, type aliases and enums
    # ------------------------------------------------------------------

    def visit_interface(self, node, builder, ctx):
        name_node = field(node, "name")
        if name_node is None:
            return None
        name = get_text(name_node)
        mods = declaration_modifiers(node, ctx)
        extends = [self.oracle.annotation_string(t) for t in named(first_named(node, "extends_type_clause"))]

        properties, details, methods = {}, [], {}
        call_signatures, index_signatures = [], []
        for member in named(field(node, "body")):
            if member.type == "property_signature":
                prop_name = member_name(member)
                if not prop_name:
                    continue
                type_node = field(member, "type")
                prop_type = self.oracle.annotation_string(type_node) if type_node is not None else FALLBACK_TYPE
                found = keywords(member)
                optional = "?" in found
                properties[prop_name] = prop_type
                details.append({
                    "name": prop_name,
                    "type": prop_type,
                    "optional": optional,
                    "readonly": "readonly" in found,
                    "typeString": f"{prop_name}?: {prop_type}" if optional else f"{prop_name}: {prop_type}",
                })
            elif member.type == "method_signature":
                method_name = member_name(member)
                if not method_name:
                    continue
                method = self._signature_record(member, method_name)
                method["optional"] = "?" in keywords(member)
                methods[method_name] = method
            elif member.type in ("call_signature", "construct_signature"):
                signature = self._signature_record(member, "")
                del signature["name"]
                signature["isConstruct"] = member.type == "construct_signature"
                call_signatures.append(signature)
            elif member.type == "index_signature":
                key_node = field(member, "name")
                index_type = field(member, "index_type")
                value_node = field(member, "type")
                index_signatures.append({
                    "keyName": get_text(key_node) if key_node is not None else None,
                    "keyType": self.oracle.annotation_string(index_type) if index_type is not None else FALLBACK_TYPE,
                    "type": self.oracle.annotation_string(value_node) if value_node is not None else FALLBACK_TYPE,
                })

        record = {
            "name": name,
            "properties": properties,
            "propertyDetails": details,
            "methods": methods,
            "callSignatures": call_signatures,
            "indexSignatures": index_signatures,
            "genericsTypes": self._generics(node),
            "isExported": mods["isExported"],
            "isDeclared": mods["isDeclared"],
        }
        if extends:
            record["extends"] = extends
            record["extendedBy"] = list(extends)
        builder.put("interfaces", name, record)
        self._mark_export(builder, name, ctx)
        return None

    def visit_type_alias(self, node, builder, ctx):
        name_node = field(node, "name")
        value = field(node, "value")
        if name_node is None or value is None:
            return None
        name = get_text(name_node)
        self.oracle.register_alias(name, value)
        mods = declaration_modifiers(node, ctx)

        if value.type == "union_type" or value.type in TYPE_REFERENCE_NODES:
            definition = squash(get_text(value))
        else:
            definition = type_to_string(self.oracle.annotation(value))

        info = {
            "name": name,
            "definition": definition,
            "value": definition,
            "isExported": mods["isExported"],
            "isDeclared": mods["isDeclared"],
            "types": [definition],
            "genericsTypes": self._generics(node),
        }
        self._classify_alias(unwrap_parens(value), info)
        builder.put("types", name, info)
        self._mark_export(builder, name, ctx)
        return None

    def _object_members(self, node):
        """Property map and call signatures of an object type literal."""
        properties, calls = {}, []
        for member in named(node):
            if member.type == "property_signature":
                key = member_name(member)
                type_node = field(member, "type")
                if key:
                    properties[key] = self.oracle.annotation(type_node) if type_node is not None else FALLBACK_TYPE
            elif member.type == "method_signature":
                key = member_name(member)
                if key:
                    params = self._parameters(field(member, "parameters"))
                    rendered = ", ".join(f"{p['name']}: {p['type']}" for p in params)
                    return_node = field(member, "return_type")
                    returns = self.oracle.annotation_string(return_node) if return_node is not None else "void"
                    properties[key] = f"({rendered}) => {returns}"
            elif member.type == "call_signature":
                return_node = field(member, "return_type")
                calls.append({
                    "params": self._alias_params(field(member, "parameters")),
                    "returnType": self.oracle.annotation_string(return_node) if return_node is not None else FALLBACK_TYPE,
                })
        return properties, calls

    def _alias_params(self, params_node):
        return [
            {"name": p["name"], "type": p["type"], "optional": p["optional"]}
            for p in self._parameters(params_node)
        ]

    def _function_signature(self, node):
        return_node = field(node, "return_type")
        return {
            "params": self._alias_params(field(node, "parameters")),
            "returnType": self.oracle.annotation_string(return_node) if return_node is not None else FALLBACK_TYPE,
        }

    def _alias_signature(self, reference):
        name_node = field(reference, "name") if reference.type == "generic_type" else reference
        target = unwrap_parens(self.oracle.aliases.get(get_text(name_node)))
        if target is not None and target.type == "function_type":
            return self._function_signature(target)
        return {"params": [], "returnType": FALLBACK_TYPE}

    def _possible_type(self, member) -> Dict[str, Any]:
        if member.type == "literal_type":
            literal = first_named(member)
            text = string_value(literal) if literal is not None and literal.type == "string" else squash(get_text(member))
            return {"type": "literal", "value": text}
        if member.type == "object_type":
            properties, _ = self._object_members(member)
            return {"type": "object", "properties": {k: type_to_string(v) for k, v in properties.items()}}
        if member.type == "predefined_type":
            return {"type": "simple", "value": get_text(member)}
        if member.type in TYPE_REFERENCE_NODES:
            name = field(member, "name") if member.type == "generic_type" else member
            return {"type": "simple", "value": squash(get_text(name))}
        return {"type": "simple", "value": self.oracle.annotation_string(member)}

    def _classify_alias(self, value, info):
        kind = value.type
        if kind == "union_type":
            info["type"] = "combined"
            info["possibleTypes"] = [self._possible_type(m) for m in flatten_members(value, "union_type")]
        elif kind == "object_type":
            if is_mapped_object(value):
                info["type"] = "mapped"
                return
            properties, calls = self._object_members(value)
            info["properties"] = properties
            if calls:
                info["type"] = "function"
                if calls[0]["params"]:
                    info["params"] = calls[0]["params"]
                info["returnType"] = calls[0]["returnType"]
            else:
                info["type"] = "object"
        elif kind == "function_type":
            info["type"] = "function"
            info.update(self._function_signature(value))
        elif kind == "intersection_type":
            properties, signature = {}, None
            for member in flatten_members(value, "intersection_type"):
                member = unwrap_parens(member)
                if member.type == "object_type":
                    member_props, calls = self._object_members(member)
                    properties.update(member_props)
                    if calls and signature is None:
                        signature = calls[0]
                elif member.type == "function_type":
                    signature = self._function_signature(member)
                elif member.type in TYPE_REFERENCE_NODES and signature is None and self.oracle.is_function_alias(member):
                    signature = self._alias_signature(member)
            info["properties"] = properties
            if signature is not None:
                info["type"] = "function"
                info["params"] = signature["params"]
                info["returnType"] = signature["returnType"]
            else:
                info["type"] = "other"
        elif kind == "conditional_type":
            info["type"] = "conditional"
        elif kind in SIMPLE_ALIAS_NODES:
            info["type"] = "simple"
        else:
            info["type"] = "other"

    def visit_enum(self, node, builder, ctx):
        name_node = field(node, "name")
        if name_node is None:
            return None
        name = get_text(name_node)
        mods = declaration_modifiers(node, ctx)

        members, known = [], {}
        next_value = 0
        for member in named(field(node, "body")):
            if member.type == "enum_assignment":
                member_key = strip_quotes(get_text(field(member, "name")))
                value_node = field(member, "value")
            elif member.type in ("property_identifier", "identifier", "string"):
                member_key = strip_quotes(get_text(member))
                value_node = None
            else:
                continue

            if value_node is None:
                value = next_value
            else:
                value = self.oracle.enum_value(value_node, known)
                if value is None:
                    value = stringify(value_node)
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                next_value = value + 1
            known[member_key] = value
            members.append({"name": member_key, "value": value})

        builder.put("enums", name, {
            "name": name,
            "isConst": mods["isConst"],
            "members": members,
            "isExported": mods["isExported"],
            "isDeclared": mods["isDeclared"],
            "types": ["string" if isinstance(m["value"], str) else "number" for m in members],
        })
        self._mark_export(builder, name, ctx)
        return None

    # ------------------------------------------------------------------
    # Imports and exports
    # ------------------------------------------------------------------

    def visit_import(self, node, builder, ctx):
        require = first_named(node, "import_require_clause")
        source = field(require, "source") if require is not None else field(node, "source")
        if source is None:
            return False
        module = string_value(source)
        entry = builder["imports"].setdefault(module, {
            "module": module,
            "modulePath": module,
            "defaultImport": None,
            "namespaceImport": None,
            "namedImports": [],
            "imports": [],
            "isTypeOnly": False,
        })
        entry["isTypeOnly"] = "type" in keywords(node)

        if require is not None:
            local = get_text(first_named(require, "identifier"))
            entry["namespaceImport"] = local
            entry["imports"].append({"name": local, "importedName": "*", "isDefault": False, "isNamespace": True})
            return False

        clause = first_named(node, "import_clause")
        if clause is None:
            entry["imports"].append({
                "name": None,
                "importedName": None,
                "isDefault": False,
                "isNamespace": False,
                "isSideEffect": True,
            })
            return False

        for part in named(clause):
            if part.type == "identifier":
                local = get_text(part)
                entry["defaultImport"] = local
                entry["imports"].append({"name": local, "importedName": "default", "isDefault": True, "isNamespace": False})
            elif part.type == "namespace_import":
                local = get_text(first_named(part))
                entry["namespaceImport"] = local
                entry["imports"].append({"name": local, "importedName": "*", "isDefault": False, "isNamespace": True})
            elif part.type == "named_imports":
                for specifier in named(part):
                    if specifier.type != "import_specifier":
                        continue
                    imported = strip_quotes(get_text(field(specifier, "name")))
                    alias_node = field(specifier, "alias")
                    local = get_text(alias_node) if alias_node is not None else imported
                    entry["namedImports"].append({"name": local, "alias": imported if local != imported else None})
                    item = {"name": local, "importedName": imported, "isDefault": False, "isNamespace": False}
                    if local != imported:
                        item["alias"] = local
                    entry["imports"].append(item)
        return False

    def visit_export(self, node, builder, ctx):
        found = keywords(node)
        is_default = "default" in found
        declaration = field(node, "declaration")
        if declaration is not None:
            if is_default:
                builder["exports"]["default"] = "default"
            decorators = [c for c in node.children if c.type == "decorator"]
            self.visit(declaration, builder, dict(ctx, exported=True, default=is_default, decorators=decorators))
            return False

        source = field(node, "source")
        module = string_value(source) if source is not None else None
        clause = first_named(node, "export_clause")
        if clause is not None:
            for specifier in named(clause):
                if specifier.type != "export_specifier":
                    continue
                local = strip_quotes(get_text(field(specifier, "name")))
                alias_node = field(specifier, "alias")
                exported = strip_quotes(get_text(alias_node)) if alias_node is not None else local
                builder.mark_exported(exported)
                builder.append_export("namedExports", {
                    "name": exported,
                    "alias": local if alias_node is not None else None,
                    "from": module,
                })
            return False

        namespace = first_named(node, "namespace_export")
        if namespace is not None:
            alias = strip_quotes(get_text(first_named(namespace)))
            builder.mark_exported(alias)
            builder.append_export("reExports", {"module": module, "namespace": alias})
            return False

        if module is not None:
            builder.append_export("reExports", {"module": module})
            builder.append_export(module, {
                "name": "*",
                "localName": "*",
                "isDefault": False,
                "isNamespaceExport": True,
            })
            return False

        value = field(node, "value")
        if value is None:
            value = next((c for c in named(node) if c.type != "decorator"), None)
        if value is None:
            return False
        if "=" in found:
            builder["exports"]["exportEquals"] = squash(get_text(value))
        elif is_default:
            exported = "default"
            if value.type == "identifier":
                exported = get_text(value)
                builder.mark_exported(exported)
            elif field(value, "name") is not None:
                exported = get_text(field(value, "name"))
                builder.mark_exported(exported)
            builder["exports"]["default"] = exported
        self.visit(value, builder, new_context())
        return False

    # ------------------------------------------------------------------
    # Ambient declarations, modules and namespaces
    # ------------------------------------------------------------------

    def visit_ambient(self, node, builder, ctx):
        if "global" in keywords(node):
            compose_global(self, first_named(node, "statement_block"), builder)
            return False
        declared = dict(ctx, declared=True)
        for child in named(node):
            if child.type in self.dispatch:
                self.visit(child, builder, declared)
        return False

    def visit_module(self, node, builder, ctx):
        compose_module(self, node, builder, ctx)
        return False

    def visit_expression_statement(self, node, builder, ctx):
        inner = first_named(node)
        if inner is not None and inner.type == "internal_module":
            self.visit(inner, builder, ctx)
            return False
        return None
