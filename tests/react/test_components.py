import os
import pytest

from declmeta.extractors.react_extractor import ReactDeclarationExtractor

HERE = os.path.dirname(__file__)

COMPONENTS = """\
import React, { useState, useEffect, useCallback, useMemo, useRef } from "react";

interface CounterProps {
  start: number;
  label?: string;
}

export const Counter: React.FC<CounterProps> = ({ start, label }) => {
  const [count, setCount] = useState(0);
  useEffect(() => {
    document.title = String(count);
  }, [count]);
  useEffect(() => {});
  const inc = useCallback(() => setCount(count + 1), [count]);
  const doubled = useMemo(() => count * 2, []);
  const ref = useRef();
  const theme = useTheme("dark");
  return (
    <div className="counter" onClick={inc} {...rest}>
      <span id={label}>{doubled}</span>
    </div>
  );
};

const lower: FC = () => <p>hi</p>;

function Title() {
  return <h1>Title</h1>;
}

const Badge = () => <span className="badge">new</span>;

const helper = () => 42;

const shout = () => <b>hey</b>;

function render(): JSX.Element {
  return <div />;
}

export class Panel extends React.Component<PanelProps, PanelState> {
  render() {
    return <section />;
  }
}

class Pure extends PureComponent {}

class Plain extends Base {}
"""


@pytest.fixture(scope="module")
def metadata(tmp_path_factory):
    root = tmp_path_factory.mktemp("react_components")
    path = root / "components.tsx"
    path.write_text(COMPONENTS, encoding="utf-8")
    return ReactDeclarationExtractor().extract([str(path)])


def test_detected_components(metadata):
    assert set(metadata["components"]) == {"Counter", "lower", "Title", "Badge", "render", "Panel", "Pure"}


def test_non_components_have_no_jsx_flag(metadata):
    assert "jsx" not in metadata["functions"]["helper"]
    # lowercase arrows need the component annotation
    assert "jsx" not in metadata["functions"]["shout"]
    assert "jsx" not in metadata["classes"]["Plain"]


def test_annotated_arrow_component(metadata):
    counter = metadata["functions"]["Counter"]
    assert counter["jsx"] is True
    assert counter["type"] == "functional"
    assert counter["isExported"] is True
    assert counter["props"] == [{"name": "start", "type": "number"}, {"name": "label", "type": "string"}]
    assert counter["params"] == counter["props"]
    assert counter["returnType"] == "JSX.Element"
    assert metadata["components"]["Counter"]["props"] == counter["props"]


def test_lowercase_annotated_component(metadata):
    assert metadata["functions"]["lower"]["jsx"] is True


def test_function_declaration_components(metadata):
    assert metadata["functions"]["Title"]["jsx"] is True
    assert metadata["functions"]["render"]["jsx"] is True
    assert metadata["functions"]["render"]["returnType"] == "JSX.Element"


def test_class_component(metadata):
    panel = metadata["classes"]["Panel"]
    assert panel["jsx"] is True
    assert panel["type"] == "class"
    assert panel["extendsClass"] == "React.Component"
    assert panel["propsType"] == "PanelProps"
    assert panel["stateType"] == "PanelState"
    assert panel["generics"] == ["PanelProps", "PanelState"]
    assert "render" in panel["methods"]

    pure = metadata["components"]["Pure"]
    assert pure["extendsClass"] == "PureComponent"
    assert pure["propsType"] == "any"


def test_component_hooks(metadata):
    hooks = metadata["functions"]["Counter"]["hooks"]
    assert [h["name"] for h in hooks] == [
        "useState", "useEffect", "useEffect", "useCallback", "useMemo", "useRef", "useTheme",
    ]
    assert [h["type"] for h in hooks] == ["state", "effect", "effect", "callback", "memo", "ref", "custom"]
    assert hooks[1]["dependencies"] == ["count"]
    assert hooks[2]["dependencies"] == []


def test_hook_bucket(metadata):
    hooks = metadata["hooks"]
    assert hooks["useState"] == [{"type": "number", "initialValue": "0"}]
    assert hooks["useEffect"][0]["dependencies"] == "array"
    assert hooks["useEffect"][1]["dependencies"] == "none"
    assert hooks["useCallback"][0]["dependencies"] == "array"
    assert "setCount(count + 1)" in hooks["useCallback"][0]["callbackBody"]
    assert hooks["useMemo"][0]["dependencies"] == "empty"
    assert hooks["useMemo"][0]["factoryBody"] == "() => count * 2"
    assert hooks["useRef"] == [{"type": "null"}]
    assert hooks["useTheme"] == [{"arguments": ['"dark"']}]


def test_component_template(metadata):
    template = metadata["functions"]["Counter"]["template"]
    assert [e["type"] for e in template["elements"]] == ["div", "span"]
    div = template["elements"][0]
    assert div["attributes"]["className"] == {"type": "string", "value": "counter"}
    assert div["eventHandlers"]["onClick"] == {"type": "identifier", "value": "inc"}
    assert div["spreadAttributes"] == [{"type": "identifier", "name": "rest"}]
    assert template["eventHandlers"]["onClick"] == [{"element": "div", "handler": {"type": "identifier", "value": "inc"}}]
    assert template["spreadOperators"] == [{"element": "div", "type": "identifier", "name": "rest"}]
    assert template["attributes"]["span"] == [{"id": {"type": "identifier", "value": "label"}}]


def test_destructured_state_is_recorded(metadata):
    assert "count" in metadata["variables"]
    assert "setCount" in metadata["variables"]
