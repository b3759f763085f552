import re
import math
from typing import Any, Dict, List, Optional

from declmeta.extractors.declaration_visitor import FUNCTION_VALUE_NODES, JSX_NODES, SyntaxTypeOracle, number_value
from declmeta.semantic.program import Program
from declmeta.utils.syntax import (
    field,
    first_named,
    get_text,
    keywords,
    named,
    string_value,
    strip_quotes,
    type_annotation_value,
    unwrap_parens,
)
from declmeta.utils.type_renderer import FALLBACK_TYPE, member_name, render_type, render_type_string, type_to_string

_NUMBER_LITERAL_RE = re.compile(r"^-?\d+(\.\d+)?(e[+-]?\d+)?$")

FUNCTION_NODES = FUNCTION_VALUE_NODES | {
    "function_declaration", "generator_function_declaration", "function_signature",
    "method_definition", "method_signature", "abstract_method_signature",
}

BUILTIN_CALLS = {
    "String": "string",
    "Number": "number",
    "Boolean": "boolean",
    "Symbol": "symbol",
    "BigInt": "bigint",
    "parseInt": "number",
    "parseFloat": "number",
    "isNaN": "boolean",
    "isFinite": "boolean",
    "JSON.stringify": "string",
    "JSON.parse": "any",
    "Object.keys": "string[]",
    "Date.now": "number",
    "Array.isArray": "boolean",
    "Number.isInteger": "boolean",
    "Number.parseFloat": "number",
    "Number.parseInt": "number",
}

STRING_METHODS = {
    "toString", "toUpperCase", "toLowerCase", "trim", "trimStart", "trimEnd", "slice",
    "substring", "padStart", "padEnd", "repeat", "replace", "replaceAll", "charAt",
    "concat", "toFixed", "toPrecision", "toISOString", "toLocaleString", "join",
}
NUMBER_METHODS = {"indexOf", "lastIndexOf", "charCodeAt", "findIndex", "getTime", "push"}
BOOLEAN_METHODS = {"includes", "startsWith", "endsWith", "some", "every", "has", "test"}

ARITHMETIC_OPERATORS = {"-", "*", "/", "%", "**", "&", "|", "^", "<<", ">>", ">>>"}
COMPARISON_OPERATORS = {"==", "!=", "===", "!==", "<", ">", "<=", ">=", "instanceof", "in"}


def _to_int32(value) -> int:
    """JavaScript ToInt32: NaN and the infinities become 0."""
    if isinstance(value, float) and not math.isfinite(value):
        return 0
    value = int(value) & 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def _to_uint32(value) -> int:
    return _to_int32(value) & 0xFFFFFFFF


def _to_double(value) -> float:
    try:
        return float(value)
    except OverflowError:
        return math.copysign(math.inf, value)


def _is_odd_integer(value: float) -> bool:
    return math.isfinite(value) and value.is_integer() and int(value) % 2 == 1


def _divide(left: float, right: float) -> float:
    if right == 0:
        if left == 0 or math.isnan(left):
            return math.nan
        return math.copysign(math.inf, left) * math.copysign(1.0, right)
    return left / right


def _remainder(left: float, right: float) -> float:
    if right == 0 or math.isinf(left) or math.isnan(left) or math.isnan(right):
        return math.nan
    if math.isinf(right):
        return left
    return math.fmod(left, right)


def _power(base: float, exponent: float) -> float:
    if math.isnan(exponent):
        return math.nan
    if exponent == 0:
        return 1.0
    if math.isnan(base) or (abs(base) == 1 and math.isinf(exponent)):
        return math.nan
    if base == 0 and exponent < 0:
        if _is_odd_integer(exponent):
            return math.copysign(math.inf, base)
        return math.inf
    if base < 0 and math.isfinite(exponent) and not exponent.is_integer():
        return math.nan
    try:
        return math.pow(base, exponent)
    except OverflowError:
        return -math.inf if base < 0 and _is_odd_integer(exponent) else math.inf


def fold_numeric(operator: str, left, right):
    """JavaScript semantics for a constant binary expression on numbers."""
    if operator == "<<":
        return _to_int32(_to_int32(left) << (_to_uint32(right) & 31))
    if operator == ">>":
        return _to_int32(left) >> (_to_uint32(right) & 31)
    if operator == ">>>":
        return _to_uint32(left) >> (_to_uint32(right) & 31)
    if operator == "&":
        return _to_int32(_to_int32(left) & _to_int32(right))
    if operator == "|":
        return _to_int32(_to_int32(left) | _to_int32(right))
    if operator == "^":
        return _to_int32(_to_int32(left) ^ _to_int32(right))

    left, right = _to_double(left), _to_double(right)
    if operator == "+":
        return left + right
    if operator == "-":
        return left - right
    if operator == "*":
        return left * right
    if operator == "/":
        return _divide(left, right)
    if operator == "%":
        return _remainder(left, right)
    if operator == "**":
        return _power(left, right)
    return None


def _normalize_number(value):
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def widen(type_text: str) -> str:
    """Widen literal types the way a mutable binding would."""
    if " | " in type_text and not type_text.startswith("("):
        return union([widen(t) for t in type_text.split(" | ")])
    if type_text.startswith('"') and type_text.endswith('"'):
        return "string"
    if _NUMBER_LITERAL_RE.match(type_text):
        return "number"
    if type_text in ("true", "false"):
        return "boolean"
    return type_text


def union(types: List[str]) -> str:
    result = []
    for t in types:
        for part in t.split(" | ") if not t.startswith("(") else [t]:
            if part not in result and part != "never":
                result.append(part)
    if not result:
        return "never"
    if "any" in result:
        return "any"
    if "true" in result and "false" in result:
        index = min(result.index("true"), result.index("false"))
        result = [t for t in result if t not in ("true", "false")]
        result.insert(index, "boolean")
    return " | ".join(result)


def array_of(element: str) -> str:
    if " | " in element or "=>" in element:
        return f"({element})[]"
    return f"{element}[]"


class TypeChecker:
    """
    Answers type questions about nodes of a ``Program``.

    Types are computed on demand and rendered as strings; anything the
    checker cannot follow comes back as ``any``.
    """

    def __init__(self, program: Program):
        self.program = program
        self._active = set()

    # ------------------------------------------------------------------
    # Scopes and symbols
    # ------------------------------------------------------------------

    def _declared_in(self, scope, name: str):
        if scope.type in FUNCTION_NODES:
            single = field(scope, "parameter")
            if single is not None and get_text(single) == name:
                return single
            for param in named(field(scope, "parameters")):
                pattern = field(param, "pattern")
                if pattern is not None and pattern.type == "identifier" and get_text(pattern) == name:
                    return param
            return None
        if scope.type not in ("statement_block", "program", "class_body"):
            return None
        for statement in named(scope):
            if statement.type == "export_statement":
                statement = field(statement, "declaration") or statement
            if statement.type in ("lexical_declaration", "variable_declaration"):
                for declarator in named(statement):
                    name_node = field(declarator, "name")
                    if name_node is not None and get_text(name_node) == name:
                        return declarator
            elif statement.type in ("function_declaration", "generator_function_declaration",
                                    "class_declaration", "abstract_class_declaration", "enum_declaration"):
                if get_text(field(statement, "name")) == name:
                    return statement
        return None

    def resolve_identifier(self, node, path: str):
        name = get_text(node)
        scope = node.parent
        while scope is not None:
            found = self._declared_in(scope, name)
            if found is not None:
                return self.program.files.get(path), found
            scope = scope.parent
        return self.program.lookup(path, name)

    def resolve_type_name(self, name: str, path: str):
        return self.program.lookup(path, name)

    def _guarded(self, key, compute, default=FALLBACK_TYPE):
        if key in self._active:
            return default
        self._active.add(key)
        try:
            return compute()
        finally:
            self._active.discard(key)

    def symbol_type(self, source, decl) -> str:
        if source is None or decl is None:
            return FALLBACK_TYPE
        return self._guarded(("symbol", source.path, decl.start_byte, decl.type), lambda: self._symbol_type(source, decl))

    def _symbol_type(self, source, decl) -> str:
        kind = decl.type
        if kind == "variable_declarator":
            type_node = field(decl, "type")
            if type_node is not None:
                return render_type_string(type_node)
            value = field(decl, "value")
            if value is None:
                return FALLBACK_TYPE
            parent = decl.parent
            declaration_kind = get_text(field(parent, "kind")) if parent is not None and parent.type == "lexical_declaration" else "var"
            return self.type_of_expression(value, source.path, declaration_kind or "let")
        if kind in ("required_parameter", "optional_parameter"):
            type_node = field(decl, "type")
            if type_node is not None:
                return render_type_string(type_node)
            value = field(decl, "value")
            return widen(self.type_of_expression(value, source.path)) if value is not None else FALLBACK_TYPE
        if kind in ("function_declaration", "generator_function_declaration", "function_signature"):
            return self.signature_string(decl, source.path)
        if kind in ("class_declaration", "abstract_class_declaration", "enum_declaration",
                    "internal_module", "module"):
            return f"typeof {get_text(field(decl, 'name'))}"
        if kind in ("interface_declaration", "type_alias_declaration"):
            return FALLBACK_TYPE
        # default-exported expressions
        return self.type_of_expression(decl, source.path, "const")

    # ------------------------------------------------------------------
    # Functions
    # ------------------------------------------------------------------

    def parameter_strings(self, func, path: str) -> List[str]:
        single = field(func, "parameter")
        if single is not None:
            return [f"{get_text(single)}: any"]
        rendered = []
        for param in named(field(func, "parameters")):
            pattern = field(param, "pattern")
            if pattern is None:
                continue
            type_node = field(param, "type")
            value = field(param, "value")
            if type_node is not None:
                param_type = render_type_string(type_node)
            elif value is not None:
                param_type = widen(self.type_of_expression(value, path))
            else:
                param_type = FALLBACK_TYPE
            optional = "?" if param.type == "optional_parameter" and value is None else ""
            rendered.append(f"{get_text(pattern)}{optional}: {param_type}")
        return rendered

    def signature_string(self, func, path: str) -> str:
        return f"({', '.join(self.parameter_strings(func, path))}) => {self.declared_return(func, path)}"

    def declared_return(self, func, path: str) -> str:
        return_node = field(func, "return_type")
        if return_node is not None:
            return render_type_string(return_node)
        return self.return_type(func, path)

    def _return_expressions(self, node):
        for child in named(node):
            if child.type in FUNCTION_NODES or child.type in ("class_declaration", "class"):
                continue
            if child.type == "return_statement":
                yield first_named(child)
            else:
                yield from self._return_expressions(child)

    def _yield_expressions(self, node):
        for child in named(node):
            if child.type in FUNCTION_NODES:
                continue
            if child.type == "yield_expression":
                yield first_named(child)
            yield from self._yield_expressions(child)

    def return_type(self, func, path: str) -> str:
        """Inferred return type of a function-like node without an annotation."""
        return self._guarded(("return", path, func.start_byte), lambda: self._return_type(func, path))

    def _return_type(self, func, path: str) -> str:
        body = field(func, "body")
        if body is None:
            return FALLBACK_TYPE
        found = keywords(func)
        if body.type != "statement_block":
            result = widen(self.type_of_expression(body, path))
        else:
            types = []
            for expression in self._return_expressions(body):
                types.append(widen(self.type_of_expression(expression, path)) if expression is not None else "undefined")
            result = union(types) if types else "void"
            if types and all(t == "undefined" for t in types):
                result = "void"
        if func.type in ("generator_function", "generator_function_declaration") or "*" in found:
            yields = [widen(self.type_of_expression(y, path)) for y in self._yield_expressions(body) if y is not None]
            return f"Generator<{union(yields) if yields else 'never'}, {result}, unknown>"
        if "async" in found:
            return f"Promise<{result}>"
        return result

    def callable_return(self, source, decl) -> str:
        if source is None or decl is None:
            return FALLBACK_TYPE
        if decl.type in FUNCTION_NODES:
            return self.declared_return(decl, source.path)
        if decl.type == "variable_declarator":
            annotation = unwrap_parens(type_annotation_value(field(decl, "type")))
            if annotation is not None and annotation.type == "function_type":
                return_node = field(annotation, "return_type")
                return render_type_string(return_node) if return_node is not None else FALLBACK_TYPE
            value = unwrap_parens(field(decl, "value"))
            if value is not None and value.type in FUNCTION_VALUE_NODES:
                return self.declared_return(value, source.path)
        return FALLBACK_TYPE

    # ------------------------------------------------------------------
    # Members
    # ------------------------------------------------------------------

    def members_of(self, source, decl) -> Dict[str, str]:
        """Property name -> type string for objects, interfaces, aliases and classes."""
        if source is None or decl is None:
            return {}
        kind = decl.type
        if kind == "variable_declarator":
            annotation = type_annotation_value(field(decl, "type"))
            if annotation is not None:
                return self.members_of_type(annotation, source.path)
            value = unwrap_parens(field(decl, "value"))
            if value is not None and value.type == "object":
                return self._object_members(value, source.path)
            if value is not None and value.type == "new_expression":
                constructor = field(value, "constructor")
                if constructor is not None and constructor.type == "identifier":
                    return self.members_of(*(self.resolve_type_name(get_text(constructor), source.path) or (None, None)))
            return {}
        if kind == "interface_declaration":
            members = {}
            for member in named(field(decl, "body")):
                name = member_name(member)
                if not name:
                    continue
                if member.type == "property_signature":
                    type_node = field(member, "type")
                    members[name] = render_type_string(type_node) if type_node is not None else FALLBACK_TYPE
                elif member.type == "method_signature":
                    members[name] = self.signature_string(member, source.path)
            return members
        if kind == "type_alias_declaration":
            return self.members_of_type(field(decl, "value"), source.path)
        if kind in ("class_declaration", "abstract_class_declaration"):
            members = {}
            for member in named(field(decl, "body")):
                name_node = field(member, "name")
                if name_node is None:
                    continue
                name = strip_quotes(get_text(name_node))
                if member.type == "public_field_definition":
                    type_node = field(member, "type")
                    value = field(member, "value")
                    if type_node is not None:
                        members[name] = render_type_string(type_node)
                    elif value is not None:
                        members[name] = widen(self.type_of_expression(value, source.path))
                    else:
                        members[name] = FALLBACK_TYPE
                elif member.type in ("method_definition", "method_signature", "abstract_method_signature"):
                    members[name] = self.signature_string(member, source.path)
            return members
        return {}

    def members_of_type(self, type_node, path: str) -> Dict[str, str]:
        node = unwrap_parens(type_annotation_value(type_node))
        if node is None:
            return {}
        if node.type == "object_type":
            rendered = render_type(node)
            if isinstance(rendered, dict):
                return {k: type_to_string(v) for k, v in rendered.items()}
            return {}
        if node.type in ("type_identifier", "generic_type"):
            name_node = field(node, "name") if node.type == "generic_type" else node
            resolved = self.resolve_type_name(get_text(name_node), path)
            if resolved is not None:
                return self._guarded(("members", resolved[0].path, resolved[1].start_byte), lambda: self.members_of(*resolved), {})
        return {}

    def _object_members(self, node, path: str) -> Dict[str, str]:
        members = {}
        for entry in named(node):
            if entry.type == "pair":
                key = strip_quotes(get_text(field(entry, "key")))
                members[key] = widen(self.type_of_expression(field(entry, "value"), path))
            elif entry.type == "shorthand_property_identifier":
                resolved = self.resolve_identifier(entry, path)
                members[get_text(entry)] = widen(self.symbol_type(*resolved)) if resolved else FALLBACK_TYPE
            elif entry.type == "method_definition":
                key = strip_quotes(get_text(field(entry, "name")))
                members[key] = self.signature_string(entry, path)
            elif entry.type == "spread_element":
                target = unwrap_parens(first_named(entry))
                if target is not None and target.type == "object":
                    members.update(self._object_members(target, path))
                elif target is not None and target.type == "identifier":
                    resolved = self.resolve_identifier(target, path)
                    if resolved is not None:
                        members.update(self.members_of(*resolved))
        return members

    def _member_access(self, node, path: str, literal: bool) -> str:
        target = unwrap_parens(field(node, "object"))
        prop = get_text(field(node, "property"))
        if target is None:
            return FALLBACK_TYPE
        if prop == "length":
            return "number"
        if target.type == "identifier":
            resolved = self.resolve_identifier(target, path)
            if resolved is None:
                return FALLBACK_TYPE
            source, decl = resolved
            if decl.type == "enum_declaration":
                enum_name = get_text(field(decl, "name"))
                values = self.enum_members(source, decl)
                if prop in values:
                    return f"{enum_name}.{prop}" if literal else enum_name
                return FALLBACK_TYPE
            members = self.members_of(source, decl)
            return members.get(prop, FALLBACK_TYPE)
        if target.type == "object":
            return self._object_members(target, path).get(prop, FALLBACK_TYPE)
        return FALLBACK_TYPE

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def type_of_expression(self, node, path: str, kind: str = "let") -> str:
        """
        Type of an initializer expression. ``const`` bindings keep literal
        types, ``let`` and ``var`` bindings get them widened.
        """
        literal = kind == "const"
        inferred = self._infer(unwrap_parens(node), path, literal)
        return inferred if literal else widen(inferred)

    def _infer(self, node, path: str, literal: bool) -> str:
        if node is None:
            return "undefined"
        kind = node.type
        if kind == "string":
            return f'"{string_value(node)}"'
        if kind == "template_string":
            if first_named(node, "template_substitution") is None:
                return f'"{strip_quotes(get_text(node))}"'
            return "string"
        if kind == "number":
            value = number_value(get_text(node))
            return str(value) if value is not None else "number"
        if kind in ("true", "false"):
            return kind
        if kind == "null":
            return "null"
        if kind == "undefined":
            return "undefined"
        if kind == "regex":
            return "RegExp"
        if kind in JSX_NODES:
            return "JSX.Element"
        if kind == "array":
            return self._array_type(node, path)
        if kind == "object":
            return type_to_string(self._object_members(node, path))
        if kind in FUNCTION_VALUE_NODES:
            return self.signature_string(node, path)
        if kind == "class":
            name = field(node, "name")
            return f"typeof {get_text(name)}" if name is not None else FALLBACK_TYPE
        if kind == "identifier":
            if get_text(node) == "undefined":
                return "undefined"
            resolved = self.resolve_identifier(node, path)
            return self.symbol_type(*resolved) if resolved is not None else FALLBACK_TYPE
        if kind == "as_expression":
            parts = named(node)
            if len(parts) > 1:
                return render_type_string(parts[1])
            return self._infer(unwrap_parens(parts[0]), path, True) if parts else FALLBACK_TYPE
        if kind == "satisfies_expression":
            parts = named(node)
            return self._infer(unwrap_parens(parts[0]), path, literal) if parts else FALLBACK_TYPE
        if kind == "type_assertion":
            parts = named(node)
            return render_type_string(first_named(parts[0])) if parts else FALLBACK_TYPE
        if kind == "non_null_expression":
            inner = self._infer(unwrap_parens(first_named(node)), path, literal)
            kept = [t for t in inner.split(" | ") if t not in ("null", "undefined")]
            return " | ".join(kept) if kept else "never"
        if kind == "await_expression":
            inner = self._infer(unwrap_parens(first_named(node)), path, literal)
            if inner.startswith("Promise<") and inner.endswith(">"):
                return inner[len("Promise<"):-1]
            return inner
        if kind == "call_expression":
            return self._call_type(node, path)
        if kind == "new_expression":
            constructor = field(node, "constructor")
            type_args = field(node, "type_arguments")
            name = get_text(constructor)
            if type_args is not None:
                name += "<" + ", ".join(render_type_string(a) for a in named(type_args)) + ">"
            return name or FALLBACK_TYPE
        if kind == "binary_expression":
            return self._binary_type(node, path, literal)
        if kind == "unary_expression":
            operator = get_text(field(node, "operator"))
            if operator == "!" or operator == "delete":
                return "boolean"
            if operator == "typeof":
                return "string"
            if operator == "void":
                return "undefined"
            argument = unwrap_parens(field(node, "argument"))
            if operator == "-" and argument is not None and argument.type == "number" and literal:
                return f"-{self._infer(argument, path, True)}"
            return "number"
        if kind == "update_expression":
            return "number"
        if kind == "ternary_expression":
            return union([
                self._infer(unwrap_parens(field(node, "consequence")), path, literal),
                self._infer(unwrap_parens(field(node, "alternative")), path, literal),
            ])
        if kind == "member_expression":
            return self._member_access(node, path, literal)
        if kind == "subscript_expression":
            target = self._infer(unwrap_parens(field(node, "object")), path, False)
            if target.endswith("[]"):
                element = target[:-2]
                return element[1:-1] if element.startswith("(") else element
            return FALLBACK_TYPE
        if kind == "sequence_expression":
            parts = named(node)
            return self._infer(unwrap_parens(parts[-1]), path, literal) if parts else FALLBACK_TYPE
        if kind == "assignment_expression":
            return self._infer(unwrap_parens(field(node, "right")), path, literal)
        return FALLBACK_TYPE

    def _array_type(self, node, path: str) -> str:
        elements = []
        for element in named(node):
            if element.type == "spread_element":
                spread = self._infer(unwrap_parens(first_named(element)), path, False)
                if spread.endswith("[]"):
                    spread = spread[:-2]
                    spread = spread[1:-1] if spread.startswith("(") else spread
                elements.append(widen(spread))
            else:
                elements.append(widen(self._infer(unwrap_parens(element), path, False)))
        if not elements:
            return "any[]"
        return array_of(union(elements))

    def _call_type(self, node, path: str) -> str:
        callee = unwrap_parens(field(node, "function"))
        if callee is None:
            return FALLBACK_TYPE
        callee_text = get_text(callee)
        if callee_text in BUILTIN_CALLS:
            return BUILTIN_CALLS[callee_text]
        if callee.type == "identifier":
            resolved = self.resolve_identifier(callee, path)
            return self.callable_return(*resolved) if resolved is not None else FALLBACK_TYPE
        if callee.type == "member_expression":
            target = field(callee, "object")
            method = get_text(field(callee, "property"))
            if get_text(target) == "Math":
                return "number"
            if get_text(target) == "Promise" and method == "resolve":
                args = named(field(node, "arguments"))
                inner = widen(self._infer(unwrap_parens(args[0]), path, False)) if args else "void"
                return f"Promise<{inner}>"
            if method in STRING_METHODS:
                return "string"
            if method in NUMBER_METHODS:
                return "number"
            if method in BOOLEAN_METHODS:
                return "boolean"
            member = self._member_access(callee, path, False)
            if "=>" in member:
                return member.rsplit("=> ", 1)[-1]
        return FALLBACK_TYPE

    def _binary_type(self, node, path: str, literal: bool) -> str:
        operator = get_text(field(node, "operator"))
        left = unwrap_parens(field(node, "left"))
        right = unwrap_parens(field(node, "right"))
        if operator in COMPARISON_OPERATORS:
            return "boolean"
        if operator in ARITHMETIC_OPERATORS:
            return "number"
        left_type = widen(self._infer(left, path, False))
        right_type = widen(self._infer(right, path, False))
        if operator == "+":
            if "string" in (left_type, right_type):
                return "string"
            if left_type == right_type == "number":
                return "number"
            if left_type == right_type == "bigint":
                return "bigint"
            return FALLBACK_TYPE
        if operator == "&&":
            return self._infer(right, path, literal)
        if operator in ("||", "??"):
            kept = [t for t in left_type.split(" | ") if t not in ("null", "undefined")]
            return union([" | ".join(kept) if kept else "never", self._infer(right, path, literal)])
        return FALLBACK_TYPE

    def member_type(self, value, key, path: str, kind: str = "let") -> str:
        """Type bound by destructuring ``key`` (tuple index or property name) out of ``value``."""
        node = unwrap_parens(value)
        if node is None:
            return FALLBACK_TYPE
        if node.type == "array" and isinstance(key, int):
            elements = [e for e in named(node)]
            if key < len(elements):
                return widen(self._infer(unwrap_parens(elements[key]), path, False))
            return "undefined"
        if node.type == "object" and isinstance(key, str):
            return self._object_members(node, path).get(key, FALLBACK_TYPE)
        if node.type == "identifier":
            resolved = self.resolve_identifier(node, path)
            if resolved is None:
                return FALLBACK_TYPE
            source, decl = resolved
            if isinstance(key, str):
                return widen(self.members_of(source, decl).get(key, FALLBACK_TYPE))
            if decl.type == "variable_declarator" and field(decl, "value") is not None:
                return self.member_type(field(decl, "value"), key, source.path, kind)
        return FALLBACK_TYPE

    # ------------------------------------------------------------------
    # Type aliases and enums
    # ------------------------------------------------------------------

    def is_function_alias(self, type_node, path: str, _seen=None) -> bool:
        seen = _seen if _seen is not None else set()
        node = unwrap_parens(type_node)
        if node is None:
            return False
        if node.type in ("function_type", "intersection_type"):
            return True
        if node.type not in ("type_identifier", "generic_type"):
            return False
        name = get_text(field(node, "name") if node.type == "generic_type" else node)
        if name in seen:
            return False
        seen.add(name)
        resolved = self.resolve_type_name(name, path)
        if resolved is None or resolved[1].type != "type_alias_declaration":
            return False
        source, decl = resolved
        return self.is_function_alias(field(decl, "value"), source.path, seen)

    def enum_members(self, source, decl) -> Dict[str, Any]:
        key = ("enum", source.path, decl.start_byte)
        if key in self._active:
            return {}
        self._active.add(key)
        try:
            known: Dict[str, Any] = {}
            next_value = 0
            for member in named(field(decl, "body")):
                if member.type == "enum_assignment":
                    name = strip_quotes(get_text(field(member, "name")))
                    value = self.enum_value(field(member, "value"), known, source.path)
                elif member.type in ("property_identifier", "identifier", "string"):
                    name = strip_quotes(get_text(member))
                    value = next_value
                else:
                    continue
                if isinstance(value, (int, float)) and not isinstance(value, bool):
                    next_value = value + 1
                known[name] = value
            return known
        finally:
            self._active.discard(key)

    def enum_value(self, value_node, known: Dict[str, Any], path: str):
        """Constant-folded enum member value; strings come back double-quoted."""
        node = unwrap_parens(value_node)
        if node is None:
            return None
        kind = node.type
        if kind == "number":
            return number_value(get_text(node))
        if kind == "string":
            return f'"{string_value(node)}"'
        if kind == "template_string" and first_named(node, "template_substitution") is None:
            return f'"{strip_quotes(get_text(node))}"'
        if kind == "identifier":
            return known.get(get_text(node))
        if kind == "member_expression":
            target = unwrap_parens(field(node, "object"))
            prop = get_text(field(node, "property"))
            if target is None or target.type != "identifier":
                return None
            if prop in known and self._is_enclosing_enum(node, get_text(target)):
                return known[prop]
            resolved = self.program.lookup(path, get_text(target))
            if resolved is not None and resolved[1].type == "enum_declaration":
                return self.enum_members(*resolved).get(prop)
            return None
        if kind == "unary_expression":
            operator = get_text(field(node, "operator"))
            argument = self.enum_value(field(node, "argument"), known, path)
            if not isinstance(argument, (int, float)):
                return None
            if operator == "-":
                return -argument
            if operator == "+":
                return argument
            if operator == "~":
                return ~_to_int32(argument)
            return None
        if kind == "binary_expression":
            operator = get_text(field(node, "operator"))
            left = self.enum_value(field(node, "left"), known, path)
            right = self.enum_value(field(node, "right"), known, path)
            if isinstance(left, str) and isinstance(right, str) and operator == "+":
                return f'"{left[1:-1]}{right[1:-1]}"'
            if isinstance(left, (int, float)) and isinstance(right, (int, float)):
                folded = fold_numeric(operator, left, right)
                return _normalize_number(folded) if folded is not None else None
        return None

    @staticmethod
    def _is_enclosing_enum(node, name: str) -> bool:
        scope = node.parent
        while scope is not None:
            if scope.type == "enum_declaration":
                return get_text(field(scope, "name")) == name
            scope = scope.parent
        return False


class CheckerTypeOracle(SyntaxTypeOracle):
    """Type oracle of the type-resolving backend, bound to one file of the program."""

    def __init__(self, checker: TypeChecker, file_path: str):
        super().__init__()
        self.checker = checker
        self.file_path = file_path

    def infer(self, value, kind: str = "let") -> str:
        return self.checker.type_of_expression(value, self.file_path, kind)

    def infer_member(self, value, key, kind: str = "let") -> str:
        return self.checker.member_type(value, key, self.file_path, kind)

    def infer_return(self, func_node) -> str:
        return self.checker.return_type(func_node, self.file_path)

    def is_function_alias(self, type_node) -> bool:
        return self.checker.is_function_alias(type_node, self.file_path) or super().is_function_alias(type_node)

    def enum_value(self, value_node, known: Dict[str, Any]):
        return self.checker.enum_value(value_node, known, self.file_path)
