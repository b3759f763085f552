import pytest

from declmeta.extractors.react_extractor import ReactDeclarationExtractor
from declmeta.extractors.typescript_extractor import TypeScriptDeclarationExtractor
from declmeta.registry.extractor_registry import backend_for_path, get_extractor


@pytest.mark.parametrize("backend, expected", [
    ("typescript", TypeScriptDeclarationExtractor),
    ("TS", TypeScriptDeclarationExtractor),
    ("react", ReactDeclarationExtractor),
    ("tsx", ReactDeclarationExtractor),
])
def test_get_extractor(backend, expected):
    assert isinstance(get_extractor(backend), expected)


def test_root_dir_only_reaches_typescript(tmp_path):
    ts = get_extractor("typescript", root_dir=str(tmp_path))
    assert ts.root_dir == str(tmp_path)
    assert isinstance(get_extractor("react", root_dir=str(tmp_path)), ReactDeclarationExtractor)


def test_unknown_backend():
    with pytest.raises(ValueError, match="No extractor for backend: swift"):
        get_extractor("swift")


@pytest.mark.parametrize("path, expected", [
    ("a.ts", "typescript"),
    ("types/global.d.ts", "typescript"),
    ("lib/util.mts", "typescript"),
    ("legacy.js", "typescript"),
    ("App.tsx", "react"),
    ("Old.JSX", "react"),
    ("style.css", None),
    ("README", None),
])
def test_backend_for_path(path, expected):
    assert backend_for_path(path) == expected
