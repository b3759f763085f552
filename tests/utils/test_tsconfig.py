import os

from declmeta.utils.tsconfig import (
    DEFAULT_COMPILER_OPTIONS,
    find_tsconfig_dir,
    load_compiler_options,
    read_tsconfig,
    resolve_module_alias,
)

TSCONFIG_WITH_COMMENTS = """{
  // project settings
  "compilerOptions": {
    /* module resolution */
    "baseUrl": ".", // relative to this file
    "strict": true,
    "paths": { "@/*": ["src/*"], },
  },
}
"""


def make_project(root, config_text):
    (root / "src" / "deep").mkdir(parents=True)
    (root / "tsconfig.json").write_text(config_text)
    file_path = root / "src" / "deep" / "a.ts"
    file_path.write_text("export const a = 1;")
    return str(file_path)


def test_find_tsconfig_walks_up(tmp_path):
    file_path = make_project(tmp_path, "{}")
    assert find_tsconfig_dir(file_path) == str(tmp_path)


def test_find_tsconfig_stops_at_root(tmp_path):
    file_path = make_project(tmp_path, "{}")
    assert find_tsconfig_dir(file_path, root_dir=str(tmp_path / "src")) is None


def test_comments_and_trailing_commas(tmp_path):
    make_project(tmp_path, TSCONFIG_WITH_COMMENTS)
    cfg = read_tsconfig(str(tmp_path / "tsconfig.json"))
    assert cfg["compilerOptions"]["baseUrl"] == "."
    assert cfg["compilerOptions"]["paths"] == {"@/*": ["src/*"]}


def test_invalid_config_falls_back_to_defaults(tmp_path):
    file_path = make_project(tmp_path, "{ not json")
    assert read_tsconfig(str(tmp_path / "tsconfig.json")) == {}
    options = load_compiler_options([file_path])
    assert options == dict(DEFAULT_COMPILER_OPTIONS, configDir=str(tmp_path))


def test_load_compiler_options_merges(tmp_path):
    file_path = make_project(tmp_path, TSCONFIG_WITH_COMMENTS)
    options = load_compiler_options([file_path])
    assert options["strict"] is True
    assert options["jsx"] == "react"
    assert options["configDir"] == str(tmp_path)


def test_no_files_or_config(tmp_path):
    assert load_compiler_options([]) == DEFAULT_COMPILER_OPTIONS
    lonely = tmp_path / "x.ts"
    lonely.write_text("")
    assert "configDir" not in load_compiler_options([str(lonely)], root_dir=str(tmp_path))


def test_resolve_module_alias(tmp_path):
    options = {
        "configDir": str(tmp_path),
        "baseUrl": ".",
        "paths": {"@/*": ["src/*"], "lib": ["vendor/lib/index"], "bad": "x"},
    }
    assert resolve_module_alias("@/models/user", options) == [
        os.path.join(str(tmp_path), "src", "models", "user"),
        os.path.join(str(tmp_path), "@", "models", "user"),
    ]
    assert resolve_module_alias("lib", options)[0] == os.path.join(str(tmp_path), "vendor", "lib", "index")
    assert resolve_module_alias("bad", options) == [os.path.join(str(tmp_path), "bad")]


def test_resolve_without_config_dir():
    assert resolve_module_alias("@/x", {"paths": {"@/*": ["src/*"]}}) == []
