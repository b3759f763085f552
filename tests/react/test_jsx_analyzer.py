import pytest
from tree_sitter_language_pack import get_parser

from declmeta.react.jsx_analyzer import analyze_jsx, analyze_template
from declmeta.utils.syntax import walk


@pytest.fixture(scope="module")
def parser():
    return get_parser("tsx")


def body_of(parser, code):
    tree = parser.parse(code.encode("utf-8"))
    return next(n for n in walk(tree.root_node) if n.type == "statement_block")


def test_attribute_value_shapes(parser):
    code = """function View() {
  return <input disabled value="x" size={3} checked={true} onChange={() => save()} title={user.name} label={`Hi ${name}!`} icon={<Icon />} style={a + b} />;
}"""
    info = analyze_jsx(body_of(parser, code))
    element = info["elements"][0]
    assert element["type"] == "input"
    attrs = element["attributes"]
    assert attrs["disabled"] == {"type": "boolean", "value": True}
    assert attrs["value"] == {"type": "string", "value": "x"}
    assert attrs["size"] == {"type": "number", "value": 3}
    assert attrs["checked"] == {"type": "boolean", "value": True}
    assert attrs["title"] == {"type": "memberExpression", "object": "user", "property": "name", "fullPath": "user.name"}
    assert attrs["label"]["type"] == "templateLiteral"
    assert attrs["label"]["value"] == "Hi ${name}!"
    assert attrs["icon"] == {"type": "jsx", "value": "Icon"}
    assert attrs["style"] == {"type": "expression", "value": "complex"}
    assert element["eventHandlers"]["onChange"] == {"type": "function", "value": "anonymous"}


def test_function_calls_and_arguments(parser):
    code = """function List() {
  return <ul>{items.map((item) => render(item, 2, { dense: true }, "x"))}</ul>;
}"""
    info = analyze_jsx(body_of(parser, code))
    names = [c["name"] for c in info["functionCalls"]]
    assert names == ["items.map", "render"]
    render = info["functionCalls"][1]
    assert render["argumentCount"] == 4
    assert render["arguments"] == [
        {"type": "identifier", "value": "item"},
        {"type": "number", "value": 2},
        {"type": "object", "properties": {"dense": {"type": "boolean", "value": True}}},
        {"type": "string", "value": "x"},
    ]


def test_fragments_and_nested_tags(parser):
    code = "function F() { return <><Nav.Item key={1} /><p /></>; }"
    info = analyze_jsx(body_of(parser, code))
    assert [e["type"] for e in info["elements"]] == ["Nav.Item", "p"]
    assert info["attributes"]["Nav.Item"] == [{"key": {"type": "number", "value": 1}}]


def test_spread_of_call(parser):
    code = "function S() { return <div {...getProps(1)} />; }"
    info = analyze_jsx(body_of(parser, code))
    spread = info["elements"][0]["spreadAttributes"][0]
    assert spread["type"] == "functionCall"
    assert spread["function"]["name"] == "getProps"


def test_template_parts(parser):
    tree = parser.parse(b"const t = `a${b}c${1}`;")
    template = next(n for n in walk(tree.root_node) if n.type == "template_string")
    result = analyze_template(template)
    assert result["parts"] == [
        {"type": "string", "value": "a"},
        {"type": "identifier", "value": "b"},
        {"type": "string", "value": "c"},
        {"type": "number", "value": 1},
    ]
    assert result["value"] == "a${b}c${1}"


def test_missing_body():
    assert analyze_jsx(None) is None
