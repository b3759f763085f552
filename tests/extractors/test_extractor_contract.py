import os
import pytest

from declmeta.extractors.react_extractor import ReactDeclarationExtractor
from declmeta.extractors.typescript_extractor import TypeScriptDeclarationExtractor

HERE = os.path.dirname(__file__)

SHARED_SOURCE = """\
export function format(a: string): string;
export function format(a: number): number;
export function format(a: any): any {
  return a;
}

@Logger(LogLevel.INFO, "X")
@Metrics({ ttl: 60 })
@Observable
export class Service {
  title: string = "svc";
  private count: number = 0;
  protected readonly tag: string;
  greet(who: string): string {
    return who;
  }
}

export enum Status { Pending, Approved = 1, Rejected = 2 }
export const enum Flags { A = 1, B = 2 }
enum Color { Red = "red", Green = "green" }

export interface User {
  id: number;
  name?: string;
  readonly tags: string[];
}

export type Id = string | number;
type Point = { x: number; y: number };
type Fn = (a: string) => void;
type Mapped = { [K in keyof Point]: string };
type Cond<T> = T extends string ? "s" : "n";
type Mix = Fn & { tag: string };
type Alias = Point;

export const limit: number = 10;
const [first, second]: [string, number] = ["a", 1];

declare const version: string;
declare function ambientHelper(x: number): string;
"""

BUCKETS = ("functions", "variables", "classes", "interfaces", "types", "enums")


def write_sources(directory, sources):
    paths = []
    for name, text in sources.items():
        path = directory / name
        path.write_text(text, encoding="utf-8")
        paths.append(str(path))
    return paths


@pytest.fixture(scope="module")
def shared_paths(tmp_path_factory):
    root = tmp_path_factory.mktemp("contract")
    return write_sources(root, {"shared.ts": SHARED_SOURCE})


EXTRACTORS = {
    "typescript": TypeScriptDeclarationExtractor,
    "react": ReactDeclarationExtractor,
}


@pytest.fixture(scope="module", params=sorted(EXTRACTORS))
def metadata(request, shared_paths):
    return EXTRACTORS[request.param]().extract(shared_paths)


@pytest.fixture(scope="module")
def both(shared_paths):
    return {name: cls().extract(shared_paths) for name, cls in EXTRACTORS.items()}


def test_top_level_buckets(metadata):
    for key in BUCKETS + ("imports", "exports", "declarations", "modules", "namespaces"):
        assert key in metadata
        assert isinstance(metadata[key], dict)


@pytest.mark.parametrize("backend", sorted(EXTRACTORS))
def test_extract_is_idempotent(backend, shared_paths):
    extractor = EXTRACTORS[backend]()
    assert extractor.extract(shared_paths) == extractor.extract(shared_paths)


def test_backends_agree_on_names_and_flags(both):
    ts, react = both["typescript"], both["react"]
    for bucket in BUCKETS:
        assert set(ts[bucket]) == set(react[bucket]), bucket
        for name, record in ts[bucket].items():
            other = react[bucket][name]
            assert record["isExported"] == other["isExported"], (bucket, name)
            assert record["isDeclared"] == other["isDeclared"], (bucket, name)


def test_overloads_accumulate(metadata):
    fmt = metadata["functions"]["format"]
    assert [p["type"] for p in fmt["overload0"]["params"]] == ["string"]
    assert fmt["overload0"]["returnType"] == "string"
    assert [p["type"] for p in fmt["overload1"]["params"]] == ["number"]
    assert fmt["overload1"]["returnType"] == "number"
    assert "overload2" not in fmt

    assert fmt["params"] == [{"name": "a", "type": ["any"], "optional": False}]
    assert fmt["returnType"] == "any"
    assert "return a;" in fmt["body"]
    assert "body" not in fmt["overload0"]
    assert fmt["isExported"] is True


def test_signature_only_function_is_recorded(metadata):
    helper = metadata["functions"]["ambientHelper"]
    assert helper["isDeclared"] is True
    assert helper["returnType"] == "string"
    assert helper["overload0"]["params"] == [{"name": "x", "type": "number", "optional": False}]
    assert "body" not in helper


def test_decorator_order_and_arity(metadata):
    decorators = metadata["classes"]["Service"]["decorators"]
    assert [d["name"] for d in decorators] == ["Logger", "Metrics", "Observable"]
    assert decorators[0]["args"] == ["LogLevel.INFO", '"X"']
    assert len(decorators[1]["args"]) == 1
    assert decorators[2]["args"] == []


def test_default_access_modifier(metadata):
    service = metadata["classes"]["Service"]
    assert service["properties"]["title"]["accessModifier"] == "public"
    assert service["properties"]["title"]["modificator"] == "opened"
    assert service["methods"]["greet"]["accessModifier"] == "public"
    assert service["properties"]["count"]["accessModifier"] == "private"
    assert service["properties"]["tag"]["accessModifier"] == "protected"
    assert service["properties"]["tag"]["isReadonly"] is True
    # legacy member copies sit directly on the class record
    assert service["title"]["modificator"] == "opened"
    assert service["title"]["value"] == "svc"
    assert service["types"] == ["Service"]
    assert service["greet"]["types"] == ["function"]
    assert service["greet"]["modificator"] == "opened"
    assert service["greet"]["returnType"] == "string"


def test_enum_fidelity(metadata):
    status = metadata["enums"]["Status"]
    assert status["members"] == [
        {"name": "Pending", "value": 0},
        {"name": "Approved", "value": 1},
        {"name": "Rejected", "value": 2},
    ]
    assert status["isConst"] is False
    assert metadata["enums"]["Flags"]["isConst"] is True
    color = metadata["enums"]["Color"]
    assert [m["value"] for m in color["members"]] == ['"red"', '"green"']
    assert color["isExported"] is False


def test_interface_details_match_properties(metadata):
    user = metadata["interfaces"]["User"]
    assert user["properties"] == {"id": "number", "name": "string", "tags": "string[]"}
    assert {d["name"]: d["type"] for d in user["propertyDetails"]} == user["properties"]
    name = next(d for d in user["propertyDetails"] if d["name"] == "name")
    assert name["optional"] is True
    assert name["typeString"] == "name?: string"
    tags = next(d for d in user["propertyDetails"] if d["name"] == "tags")
    assert tags["readonly"] is True
    assert tags["typeString"] == "tags: string[]"


def test_type_alias_classification(metadata):
    types = metadata["types"]
    assert types["Id"]["type"] == "combined"
    assert types["Id"]["definition"] == "string | number"
    assert types["Id"]["possibleTypes"] == [
        {"type": "simple", "value": "string"},
        {"type": "simple", "value": "number"},
    ]
    assert types["Point"]["type"] == "object"
    assert types["Point"]["properties"] == {"x": "number", "y": "number"}
    assert types["Point"]["definition"] == "{ x: number; y: number; }"
    assert types["Fn"]["type"] == "function"
    assert types["Fn"]["params"] == [{"name": "a", "type": "string", "optional": False}]
    assert types["Fn"]["returnType"] == "void"
    assert types["Mapped"]["type"] == "mapped"
    assert types["Cond"]["type"] == "conditional"
    assert types["Cond"]["genericsTypes"] == ["T"]
    assert types["Mix"]["type"] == "function"
    assert types["Mix"]["properties"] == {"tag": "string"}
    assert types["Alias"]["type"] == "simple"
    assert types["Alias"]["definition"] == "Point"


def test_variables_and_exports(metadata):
    limit = metadata["variables"]["limit"]
    assert limit["type"] == "number"
    assert limit["isConst"] is True
    assert limit["declarationType"] == "const"
    assert limit["value"] == "10"
    assert metadata["exports"]["limit"] is True
    assert metadata["variables"]["version"]["isDeclared"] is True
    assert metadata["variables"]["first"]["type"] == "string"
    assert metadata["variables"]["second"]["type"] == "number"


def test_write_to_file(tmp_path, shared_paths):
    extractor = ReactDeclarationExtractor()
    extractor.extract(shared_paths)
    out = tmp_path / "metadata.json"
    extractor.write_to_file(str(out))
    assert out.exists()
    assert '"Service"' in out.read_text(encoding="utf-8")
