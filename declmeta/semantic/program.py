import os
from typing import Dict, List, Optional, Tuple

import networkx as nx
import tree_sitter_typescript
from tree_sitter import Language, Parser

from declmeta.errors import ProgramBuildError
from declmeta.utils.source_loader import load_source
from declmeta.utils.syntax import field, first_named, get_text, keywords, named, string_value, strip_quotes
from declmeta.utils.tsconfig import resolve_module_alias

TS_LANGUAGE = Language(tree_sitter_typescript.language_typescript())
TSX_LANGUAGE = Language(tree_sitter_typescript.language_tsx())

TSX_EXTENSIONS = (".tsx", ".jsx")
RESOLVE_EXTENSIONS = (".ts", ".tsx", ".d.ts", ".mts", ".cts", ".js", ".jsx")

NAMED_DECLARATIONS = {
    "function_declaration", "generator_function_declaration", "function_signature",
    "class_declaration", "abstract_class_declaration", "interface_declaration",
    "type_alias_declaration", "enum_declaration", "internal_module", "module",
}
FUNCTION_DECLARATIONS = {"function_declaration", "generator_function_declaration", "function_signature"}


class SourceFile:
    """One parsed file of a ``Program`` plus its top-level symbol table."""

    def __init__(self, path: str, text: str, tree):
        self.path = path
        self.text = text
        self.tree = tree
        self.symbols: Dict[str, object] = {}
        # exported name -> local name
        self.exports: Dict[str, str] = {}
        # exported name -> (module specifier, imported name)
        self.forwarded: Dict[str, Tuple[str, str]] = {}
        self.star_exports: List[str] = []
        # local name -> (module specifier, imported name or "*")
        self.imports: Dict[str, Tuple[str, str]] = {}
        self.default_node = None
        self.global_symbols: Dict[str, object] = {}
        self.is_module = False

    @property
    def root(self):
        return self.tree.root_node


def declaration_bindings(node):
    """``(name, declaration node)`` pairs bound by a top-level statement."""
    if node.type in ("lexical_declaration", "variable_declaration"):
        for declarator in named(node):
            name_node = field(declarator, "name")
            if declarator.type == "variable_declarator" and name_node is not None and name_node.type == "identifier":
                yield get_text(name_node), declarator
    elif node.type in NAMED_DECLARATIONS:
        name_node = field(node, "name")
        if name_node is not None:
            name = string_value(name_node) if name_node.type == "string" else get_text(name_node)
            yield name, node
    elif node.type == "expression_statement":
        inner = first_named(node)
        if inner is not None and inner.type == "internal_module":
            yield from declaration_bindings(inner)


class Program:
    """
    Every file of one extraction batch, parsed up front, with a symbol table
    per file and a directed import graph between them.

    Edges carry ``reexport=True`` when the source file has an ``export *``
    from the target, so star chains can be followed on a filtered view.
    """

    def __init__(self, file_paths: List[str], compiler_options: Optional[dict] = None):
        self.options = compiler_options or {}
        self.files: Dict[str, SourceFile] = {}
        self.globals: Dict[str, Tuple[SourceFile, object]] = {}
        self.graph = nx.DiGraph()
        self._parsers: Dict[bool, Parser] = {}

        for path in file_paths:
            abs_path = os.path.abspath(path)
            self.files[abs_path] = self._parse(abs_path)
            self.graph.add_node(abs_path)

        for source in self.files.values():
            self._index(source)
        for source in self.files.values():
            self._link(source)

    def _parser(self, tsx: bool) -> Parser:
        if tsx not in self._parsers:
            self._parsers[tsx] = Parser(TSX_LANGUAGE if tsx else TS_LANGUAGE)
        return self._parsers[tsx]

    def _parse(self, path: str) -> SourceFile:
        try:
            text = load_source(path)
        except OSError as e:
            raise ProgramBuildError(path, e) from e
        tree = self._parser(path.endswith(TSX_EXTENSIONS)).parse(text.encode("utf-8"))
        return SourceFile(path, text, tree)

    def source(self, path: str) -> Optional[SourceFile]:
        return self.files.get(os.path.abspath(path))

    # ------------------------------------------------------------------
    # Indexing
    # ------------------------------------------------------------------

    def _bind(self, source: SourceFile, node, table: Dict[str, object]):
        for name, decl in declaration_bindings(node):
            current = table.get(name)
            # overloaded functions keep their first signature
            if current is not None and current.type in FUNCTION_DECLARATIONS and decl.type in FUNCTION_DECLARATIONS:
                continue
            table[name] = decl

    def _index(self, source: SourceFile):
        for statement in named(source.root):
            kind = statement.type
            if kind == "import_statement":
                source.is_module = True
                self._index_import(source, statement)
            elif kind == "export_statement":
                source.is_module = True
                self._index_export(source, statement)
            elif kind == "ambient_declaration":
                if "global" in keywords(statement):
                    for inner in named(first_named(statement, "statement_block")):
                        self._bind(source, inner, source.global_symbols)
                else:
                    for inner in named(statement):
                        self._bind(source, inner, source.symbols)
            else:
                self._bind(source, statement, source.symbols)

        globals_from = source.global_symbols if source.is_module else dict(source.symbols, **source.global_symbols)
        for name, decl in globals_from.items():
            self.globals.setdefault(name, (source, decl))

    def _index_import(self, source: SourceFile, statement):
        require = first_named(statement, "import_require_clause")
        if require is not None:
            spec = field(require, "source")
            local = first_named(require, "identifier")
            if spec is not None and local is not None:
                source.imports[get_text(local)] = (string_value(spec), "*")
            return
        spec = field(statement, "source")
        clause = first_named(statement, "import_clause")
        if spec is None or clause is None:
            return
        module = string_value(spec)
        for part in named(clause):
            if part.type == "identifier":
                source.imports[get_text(part)] = (module, "default")
            elif part.type == "namespace_import":
                source.imports[get_text(first_named(part))] = (module, "*")
            elif part.type == "named_imports":
                for specifier in named(part):
                    if specifier.type != "import_specifier":
                        continue
                    imported = strip_quotes(get_text(field(specifier, "name")))
                    alias = field(specifier, "alias")
                    source.imports[get_text(alias) if alias is not None else imported] = (module, imported)

    def _index_export(self, source: SourceFile, statement):
        is_default = "default" in keywords(statement)
        declaration = field(statement, "declaration")
        if declaration is not None:
            target = declaration
            if declaration.type == "ambient_declaration":
                target = first_named(declaration) or declaration
            self._bind(source, target, source.symbols)
            for name, _ in declaration_bindings(target):
                source.exports[name] = name
                if is_default:
                    source.exports["default"] = name
            return

        spec = field(statement, "source")
        module = string_value(spec) if spec is not None else None
        clause = first_named(statement, "export_clause")
        if clause is not None:
            for specifier in named(clause):
                if specifier.type != "export_specifier":
                    continue
                local = strip_quotes(get_text(field(specifier, "name")))
                alias = field(specifier, "alias")
                exported = strip_quotes(get_text(alias)) if alias is not None else local
                if module is not None:
                    source.forwarded[exported] = (module, local)
                else:
                    source.exports[exported] = local
            return
        namespace = first_named(statement, "namespace_export")
        if namespace is not None and module is not None:
            source.forwarded[strip_quotes(get_text(first_named(namespace)))] = (module, "*")
            return
        if module is not None:
            source.star_exports.append(module)
            return

        value = field(statement, "value") or next(
            (c for c in named(statement) if c.type != "decorator"), None
        )
        if value is None:
            return
        if value.type == "identifier":
            source.exports["default"] = get_text(value)
        else:
            source.default_node = value
            for name, decl in declaration_bindings(value):
                source.symbols.setdefault(name, decl)

    def _add_edge(self, source_path: str, target: str, reexport: bool):
        if self.graph.has_edge(source_path, target):
            self.graph.edges[source_path, target]["reexport"] |= reexport
        else:
            self.graph.add_edge(source_path, target, reexport=reexport)

    def _link(self, source: SourceFile):
        for module, _ in source.imports.values():
            target = self.resolve_module(source.path, module)
            if target is not None:
                self._add_edge(source.path, target, False)
        for module, _ in source.forwarded.values():
            target = self.resolve_module(source.path, module)
            if target is not None:
                self._add_edge(source.path, target, False)
        for module in source.star_exports:
            target = self.resolve_module(source.path, module)
            if target is not None:
                self._add_edge(source.path, target, True)

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve_module(self, from_path: str, specifier: str) -> Optional[str]:
        """Batch file a module specifier refers to, or ``None``."""
        if specifier.startswith("."):
            bases = [os.path.normpath(os.path.join(os.path.dirname(from_path), specifier))]
        else:
            bases = resolve_module_alias(specifier, self.options)

        for base in bases:
            stem, ext = os.path.splitext(base)
            candidates = [base]
            if ext in (".js", ".jsx", ".mjs", ".cjs"):
                candidates.extend(stem + e for e in RESOLVE_EXTENSIONS)
            candidates.extend(base + e for e in RESOLVE_EXTENSIONS)
            candidates.extend(os.path.join(base, "index" + e) for e in RESOLVE_EXTENSIONS)
            for candidate in candidates:
                if candidate in self.files:
                    return candidate
        return None

    def reexport_targets(self, path: str) -> List[str]:
        """Files reachable from ``path`` through re-export edges, nearest first."""
        graph = self.graph
        view = nx.subgraph_view(graph, filter_edge=lambda u, v: graph.edges[u, v]["reexport"])
        return [p for p in nx.dfs_preorder_nodes(view, path) if p != path]

    def resolve_export(self, path: str, name: str, _seen=None):
        """``(SourceFile, declaration node)`` that ``name`` exported from ``path`` refers to."""
        seen = _seen if _seen is not None else set()
        if path is None or (path, name) in seen:
            return None
        seen.add((path, name))
        source = self.files.get(path)
        if source is None:
            return None

        if name == "default" and source.default_node is not None and "default" not in source.exports:
            return source, source.default_node
        if name in source.exports:
            return self.lookup(path, source.exports[name], seen)
        if name in source.forwarded:
            module, imported = source.forwarded[name]
            return self.resolve_export(self.resolve_module(path, module), imported, seen)
        if name == "default":
            # `export *` never forwards the default export
            return None
        for target in self.reexport_targets(path):
            star_source = self.files[target]
            if name in star_source.exports or name in star_source.forwarded:
                return self.resolve_export(target, name, seen)
        return None

    def lookup(self, path: str, name: str, _seen=None):
        """Resolve a name visible at the top level of ``path``."""
        source = self.files.get(path)
        if source is None:
            return None
        if name in source.symbols:
            return source, source.symbols[name]
        if name in source.imports:
            module, imported = source.imports[name]
            target = self.resolve_module(path, module)
            if target is None or imported == "*":
                return None
            return self.resolve_export(target, imported, _seen)
        return self.globals.get(name)
