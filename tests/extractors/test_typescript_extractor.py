import os
import math
import pytest

from declmeta.errors import ProgramBuildError
from declmeta.extractors.typescript_extractor import TypeScriptDeclarationExtractor

HERE = os.path.dirname(__file__)

MODELS = """\
export interface User {
  id: number;
  name: string;
}

export function makeUser(id: number): User {
  return { id, name: "anon" };
}

export const DEFAULT_ID = 1;
"""

INDEX = """\
import React, { useState as useS, Fragment } from "react";
import * as path from "path";
import "./side-effect";
import { makeUser, DEFAULT_ID } from "./models";

export { limit as max } from "./config";
export * from "./models";
export * as helpers from "./helpers";

const user = makeUser(DEFAULT_ID);
const answer = 42;
let counter = 42;
const greeting = "hi";
var flag = true;
const list = [1, 2, 3];
const settings = { port: 8080, host: "localhost", nested: { on: true } };
const { port, host } = settings;
const frozen = { a: 1 } as const;
const checked = { a: 1 } satisfies Record<string, number>;

export const add = (a: number, b: number) => a + b;

function sum(a: number, b: number) {
  return a + b;
}

async function load() {
  return 1;
}

function noop() {}

function* ids() {
  yield 1;
}

export abstract class Shape {
  abstract area(): number;
  static count = 0;
  protected readonly id: string;
  constructor(id: string);
  constructor(id: string, public label?: string) {
    this.id = id;
  }
  get size(): number {
    return 1;
  }
  set size(v: number) {}
  scale(f: number): void;
  scale(f: string): void;
  scale(f: any): void {}
}

export default Shape;
"""

BITS = """\
enum Bits {
  None,
  A = 1 << 0,
  B = 1 << 1,
  AB = A | B,
  Neg = -1,
  Mask = ~0,
  Label = "x",
}

const pick = Bits.A;
"""

FOLDS = """\
enum Folded {
  Rem = -7 % 3,
  Overflow = 1e400 | 0,
  Shift = 1 << 1e400,
  Unsigned = -1 >>> 28,
  Div = 1 / 0,
  NegDiv = -1 / 0,
  ZeroDiv = 5 % 0,
  Root = (-8) ** 0.5,
  Big = 2 ** 2000,
  Next,
}
"""

SCOPES = """\
declare module "lib" {
  export function helper(x: number): string;
}

export namespace Outer {
  export const value = 1;
  namespace Inner {
    const hidden = 2;
    declare global {
      interface Console {
        tag: string;
      }
    }
  }
}

declare global {
  interface Window {
    appName: string;
  }
}

type Handler = (e: string) => void;
declare const onEvent: Handler;

export = Outer;
"""


def write_sources(directory, sources):
    paths = []
    for name, text in sources.items():
        path = directory / name
        path.write_text(text, encoding="utf-8")
        paths.append(str(path))
    return paths


@pytest.fixture(scope="module")
def project(tmp_path_factory):
    root = tmp_path_factory.mktemp("ts_project")
    return write_sources(root, {"models.ts": MODELS, "index.ts": INDEX, "bits.ts": BITS})


@pytest.fixture(scope="module")
def metadata(project):
    return TypeScriptDeclarationExtractor().extract(project)


@pytest.fixture(scope="module")
def scopes(tmp_path_factory):
    root = tmp_path_factory.mktemp("ts_scopes")
    return TypeScriptDeclarationExtractor().extract(write_sources(root, {"scopes.d.ts": SCOPES}))


def test_cross_file_types_resolve(metadata):
    assert metadata["variables"]["user"]["type"] == "User"
    assert metadata["functions"]["makeUser"]["returnType"] == "User"


def test_const_keeps_literal_let_widens(metadata):
    variables = metadata["variables"]
    assert variables["answer"]["type"] == "42"
    assert variables["counter"]["type"] == "number"
    assert variables["greeting"]["type"] == '"hi"'
    assert variables["flag"]["type"] == "boolean"
    assert variables["flag"]["declarationType"] == "var"
    assert variables["list"]["type"] == "number[]"


def test_object_literal_value_and_shape(metadata):
    settings = metadata["variables"]["settings"]
    assert settings["type"] == "{ port: number; host: string; nested: { on: boolean; }; }"
    assert settings["value"] == {
        "port": {"type": "number", "value": "8080"},
        "host": {"type": "string", "value": "localhost"},
        "nested": {"type": "object", "value": {"on": {"type": "boolean", "value": "true"}}},
    }


def test_object_destructuring_resolves_members(metadata):
    assert metadata["variables"]["port"]["type"] == "number"
    assert metadata["variables"]["host"]["type"] == "string"


def test_type_assertions(metadata):
    frozen = metadata["variables"]["frozen"]["typeAssertion"]
    assert frozen["operator"] == "as"
    assert frozen["type"] == "const"
    assert frozen["originalExpression"] == "{ a: 1 }"
    checked = metadata["variables"]["checked"]["typeAssertion"]
    assert checked["operator"] == "satisfies"
    assert checked["type"] == "Record<string, number>"
    assert metadata["variables"]["answer"]["typeAssertion"] is None


def test_function_valued_variable_is_duplicated(metadata):
    assert metadata["variables"]["add"]["type"] == "(a: number, b: number) => number"
    add = metadata["functions"]["add"]
    assert add["returnType"] == "number"
    assert add["types"] == ["(a: number, b: number) => number", "number", "number", "number"]
    assert add["params"] == [{"name": "a", "type": ["number"]}, {"name": "b", "type": ["number"]}]
    assert add["isExported"] is True


def test_inferred_return_types(metadata):
    functions = metadata["functions"]
    assert functions["sum"]["returnType"] == "number"
    assert functions["sum"]["returnResult"] == ["number"]
    assert functions["load"]["returnType"] == "Promise<number>"
    assert functions["load"]["isAsync"] is True
    assert functions["noop"]["returnType"] == "void"
    assert functions["ids"]["isGenerator"] is True
    assert functions["ids"]["returnType"].startswith("Generator<number")


def test_imports(metadata):
    react = metadata["imports"]["react"]
    assert react["defaultImport"] == "React"
    assert react["namedImports"] == [
        {"name": "useS", "alias": "useState"},
        {"name": "Fragment", "alias": None},
    ]
    assert {"name": "useS", "importedName": "useState", "isDefault": False, "isNamespace": False, "alias": "useS"} in react["imports"]
    assert metadata["imports"]["path"]["namespaceImport"] == "path"
    side_effect = metadata["imports"]["./side-effect"]["imports"][0]
    assert side_effect["isSideEffect"] is True


def test_exports(metadata):
    exports = metadata["exports"]
    assert exports["max"] is True
    assert {"name": "max", "alias": "limit", "from": "./config"} in exports["namedExports"]
    assert {"module": "./models"} in exports["reExports"]
    assert {"module": "./helpers", "namespace": "helpers"} in exports["reExports"]
    assert exports["./models"][0]["name"] == "*"
    assert exports["default"] == "Shape"
    assert exports["Shape"] is True


def test_abstract_class_members(metadata):
    shape = metadata["classes"]["Shape"]
    assert shape["isAbstract"] is True
    assert shape["methods"]["area"]["isAbstract"] is True
    assert "body" not in shape["methods"]["area"]

    count = shape["properties"]["count"]
    assert count["isStatic"] is True
    assert count["type"] == "number"
    assert shape["count"] == {"types": ["number"], "modificator": "opened", "value": "0"}

    ident = shape["properties"]["id"]
    assert ident["accessModifier"] == "protected"
    assert ident["modificator"] == "protected"
    assert ident["isReadonly"] is True


def test_constructor_signatures_and_parameter_properties(metadata):
    shape = metadata["classes"]["Shape"]
    assert shape["constructorSignature0"] == {"params": [{"id": {"types": ["string"], "defaultValue": None}}]}
    assert len(shape["constructors"]) == 2
    assert "this.id = id;" in shape["constructor"]["body"]
    label = shape["properties"]["label"]
    assert label["isParameterProperty"] is True
    assert label["isOptional"] is True
    assert label["type"] == "string"


def test_accessors_and_method_overloads(metadata):
    shape = metadata["classes"]["Shape"]
    assert shape["accessors"]["size"]["get"]["returnType"] == "number"
    assert shape["accessors"]["size"]["set"]["parameters"][0]["type"] == "number"
    assert shape["methods"]["get_size"]["kind"] == "get"
    scale = shape["methods"]["scale"]
    assert [p["type"] for p in scale["overload0"]["params"]] == ["number"]
    assert [p["type"] for p in scale["overload1"]["params"]] == ["string"]
    assert scale["parameters"][0]["type"] == "any"
    assert "body" in scale


def test_enum_constant_folding(metadata):
    members = {m["name"]: m["value"] for m in metadata["enums"]["Bits"]["members"]}
    assert members == {"None": 0, "A": 1, "B": 2, "AB": 3, "Neg": -1, "Mask": -1, "Label": '"x"'}
    assert metadata["variables"]["pick"]["type"] == "Bits.A"


@pytest.fixture(scope="module")
def folded(tmp_path_factory):
    root = tmp_path_factory.mktemp("ts_folds")
    metadata = TypeScriptDeclarationExtractor().extract(write_sources(root, {"folds.ts": FOLDS}))
    return {m["name"]: m["value"] for m in metadata["enums"]["Folded"]["members"]}


def test_enum_folding_follows_javascript_numbers(folded):
    assert folded["Rem"] == -1
    assert folded["Overflow"] == 0
    assert folded["Shift"] == 1
    assert folded["Unsigned"] == 15
    assert folded["Div"] == math.inf
    assert folded["NegDiv"] == -math.inf
    assert math.isnan(folded["ZeroDiv"])
    assert math.isnan(folded["Root"])
    assert folded["Big"] == math.inf
    assert folded["Next"] == math.inf


def test_ambient_module_and_namespaces(scopes):
    lib = scopes["modules"]["lib"]
    assert lib["isDeclared"] is True
    helper = lib["functions"]["helper"]
    assert helper["isDeclared"] is True
    assert helper["isExported"] is True

    outer = scopes["namespaces"]["Outer"]
    assert outer["isExported"] is True
    assert outer["variables"]["value"]["isExported"] is True
    assert outer["exports"]["value"] is True
    assert "hidden" in outer["namespaces"]["Inner"]["variables"]
    assert outer["namespaces"]["Inner"]["isExported"] is False
    assert scopes["exports"]["Outer"] is True
    assert scopes["exports"]["exportEquals"] == "Outer"


def test_declare_global_merges_into_declarations(scopes):
    assert "Window" in scopes["declarations"]
    assert scopes["declarations"]["Window"]["properties"] == {"appName": "string"}
    assert "Window" not in scopes["interfaces"]


def test_nested_declare_global_reaches_top_level(scopes):
    assert scopes["declarations"]["Console"]["properties"] == {"tag": "string"}
    inner = scopes["namespaces"]["Outer"]["namespaces"]["Inner"]
    assert "Console" not in inner["declarations"]
    assert "Console" not in scopes["namespaces"]["Outer"]["declarations"]


def test_function_alias_annotation_is_duplicated(scopes):
    assert scopes["variables"]["onEvent"]["type"] == "Handler"
    assert "onEvent" in scopes["functions"]


def test_unreadable_file_aborts_batch(tmp_path):
    good = write_sources(tmp_path, {"good.ts": "export const a = 1;\n"})
    with pytest.raises(ProgramBuildError) as excinfo:
        TypeScriptDeclarationExtractor().extract(good + [str(tmp_path / "missing.ts")])
    assert excinfo.value.file_path.endswith("missing.ts")


def test_syntax_errors_do_not_abort_batch(tmp_path):
    paths = write_sources(tmp_path, {"broken.ts": "const = ;\n", "fine.ts": "export const ok = 1;\n"})
    result = TypeScriptDeclarationExtractor().extract(paths)
    assert "ok" in result["variables"]


def test_tsconfig_paths_alias(tmp_path):
    (tmp_path / "tsconfig.json").write_text(
        '{\n  // comment\n  "compilerOptions": { "baseUrl": ".", "paths": { "@lib/*": ["lib/*"] }, },\n}\n',
        encoding="utf-8",
    )
    (tmp_path / "lib").mkdir()
    paths = write_sources(tmp_path, {
        "lib/version.ts": "export const VERSION = \"1.0\";\n",
        "app.ts": "import { VERSION } from \"@lib/version\";\nconst current = VERSION;\n",
    })
    result = TypeScriptDeclarationExtractor(root_dir=str(tmp_path)).extract(paths)
    assert result["variables"]["current"]["type"] == '"1.0"'
