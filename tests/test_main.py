import os
import json

import pytest

from declmeta.main import collect_files, group_by_backend, main, run

SOURCES = {
    "math.ts": "export function add(a: number, b: number): number { return a + b; }\n",
    "ui/Card.tsx": "export const Card = () => <div className=\"card\" />;\n",
    "ignored/skip.ts": "export const hidden = 1;\n",
    "node_modules/pkg/index.ts": "export const dep = 1;\n",
    "notes.md": "# notes\n",
    ".gitignore": "ignored/\n",
}


def write_sources(directory, sources):
    for name, text in sources.items():
        path = os.path.join(str(directory), name)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(text)


@pytest.fixture
def project(tmp_path):
    root = tmp_path / "project"
    write_sources(root, SOURCES)
    return root


def test_collect_files_skips_ignored(project):
    files = collect_files([str(project)])
    names = sorted(os.path.relpath(f, str(project.resolve())) for f in files)
    assert names == ["math.ts", os.path.join("ui", "Card.tsx")]


def test_explicit_files_are_kept(project):
    target = project / "notes.md"
    assert collect_files([str(target)]) == [str(target.resolve())]


def test_group_by_backend(project):
    groups = group_by_backend(collect_files([str(project)]))
    assert set(groups) == {"typescript", "react"}
    assert [os.path.basename(f) for f in groups["react"]] == ["Card.tsx"]


def test_run_auto_groups_results(project):
    result = run([str(project)])
    assert set(result) == {"typescript", "react"}
    assert "add" in result["typescript"]["functions"]
    assert "hidden" not in result["typescript"]["variables"]
    assert "dep" not in result["typescript"]["variables"]
    assert "Card" in result["react"]["components"]


def test_run_single_backend(project):
    result = run([str(project / "math.ts")], backend="typescript")
    assert "add" in result["functions"]


def test_main_prints_json(project, capsys):
    main([str(project / "math.ts"), "--backend", "ts"])
    out = json.loads(capsys.readouterr().out)
    assert out["functions"]["add"]["returnType"] == "number"


def test_main_writes_output(project, tmp_path, capsys):
    output = tmp_path / "out" / "meta.json"
    main([str(project), "--output", str(output)])
    assert "Done! Metadata written to" in capsys.readouterr().err
    with open(output, encoding="utf-8") as f:
        data = json.load(f)
    assert set(data) == {"typescript", "react"}


def test_main_missing_path_exits(tmp_path, capsys):
    with pytest.raises(SystemExit) as excinfo:
        main([str(tmp_path / "nope")])
    assert excinfo.value.code == 1
    assert capsys.readouterr().err.startswith("Error: No such file or directory")
