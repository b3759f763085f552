from declmeta.extractors.modifiers import new_context
from declmeta.utils.syntax import field, get_text, keywords, named, string_value


def visit_statements(visitor, body, builder, declared: bool):
    for statement in named(body):
        visitor.visit(statement, builder, new_context(declared=declared, module_member=True))


def compose_module(visitor, node, builder, ctx):
    """
    Visit a ``module`` / ``namespace`` body into a child builder and attach
    it to ``builder``.

    Quoted names (``declare module "x"``) land in ``modules``, identifiers
    and dotted names in ``namespaces``. Names the body exports explicitly are
    also marked exported on the parent.
    """
    name_node = field(node, "name")
    if name_node is None:
        return None
    quoted = name_node.type == "string"
    name = string_value(name_node) if quoted else get_text(name_node)
    declared = bool(ctx.get("declared")) or "declare" in keywords(node)

    child = builder.child()
    visit_statements(visitor, field(node, "body"), child, declared)

    is_exported = bool(ctx.get("exported"))
    scope = builder.attach_scope("modules" if quoted else "namespaces", name, child, declared, is_exported)
    if ctx.get("exported"):
        builder.mark_exported(name)
    for key, value in child["exports"].items():
        if value is True:
            builder.mark_exported(key)
    return scope


def compose_global(visitor, body, builder):
    """``declare global { }`` members go straight into the top-level ``declarations``."""
    child = builder.child()
    visit_statements(visitor, body, child, True)
    builder.root.merge_global(child)
