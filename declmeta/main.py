import os
import sys
import json
import argparse
from collections import defaultdict
from pathlib import Path
from typing import Dict, List, Optional

import pathspec

from declmeta.errors import DeclmetaError
from declmeta.registry.extractor_registry import backend_for_path, get_extractor


def load_gitignore(root_dir: Path) -> pathspec.PathSpec:
    gitignore_pth = root_dir / ".gitignore"
    gitign_pattern = gitignore_pth.read_text().splitlines() if gitignore_pth.exists() else []
    return pathspec.PathSpec.from_lines("gitwildmatch", gitign_pattern)


def collect_files(paths: List[str], root_dir: Optional[str] = None) -> List[str]:
    """
    Expand directories into their TypeScript / TSX files, honouring the
    ``.gitignore`` of ``root_dir`` (or of each directory given).
    Explicit file arguments are kept as they are.
    """
    collected = []
    for raw in paths:
        path = Path(raw)
        if path.is_file():
            collected.append(str(path.resolve()))
            continue
        if not path.is_dir():
            raise FileNotFoundError(f"No such file or directory: {raw}")
        base = Path(root_dir) if root_dir else path
        spec = load_gitignore(base)
        for file_path in sorted(path.rglob("*")):
            if not file_path.is_file() or "node_modules" in file_path.parts:
                continue
            try:
                relative = str(file_path.resolve().relative_to(base.resolve()))
            except ValueError:
                relative = str(file_path)
            if spec.match_file(relative):
                continue
            if backend_for_path(file_path.name):
                collected.append(str(file_path.resolve()))
    return collected


def group_by_backend(files: List[str]) -> Dict[str, List[str]]:
    groups = defaultdict(list)
    for file_path in files:
        backend = backend_for_path(file_path)
        if backend:
            groups[backend].append(file_path)
    return dict(groups)


def run(paths: List[str], backend: str = "auto", root_dir: Optional[str] = None, progress: bool = False) -> dict:
    files = collect_files(paths, root_dir)
    if backend != "auto":
        extractor = get_extractor(backend, root_dir=root_dir, progress=progress)
        return extractor.extract(files)

    result = {}
    for name, group in group_by_backend(files).items():
        extractor = get_extractor(name, root_dir=root_dir, progress=progress)
        result[name] = extractor.extract(group)
    return result


def main(argv=None):
    parser = argparse.ArgumentParser(description="Extract declaration metadata from TypeScript / TSX sources")
    parser.add_argument("paths", nargs="+", help="Files or directories to extract")
    parser.add_argument("--backend", default="auto", choices=["auto", "typescript", "ts", "react", "tsx"],
                        help="Extraction backend (default: auto, grouped by file extension)")
    parser.add_argument("--output", default=None, help="Write the JSON result to this file instead of stdout")
    parser.add_argument("--root", default=None, help="Project root used for .gitignore and tsconfig.json lookup")
    parser.add_argument("--progress", action="store_true", help="Show a progress bar over files")

    args = parser.parse_args(argv)

    try:
        result = run(args.paths, backend=args.backend, root_dir=args.root, progress=args.progress)
    except (DeclmetaError, ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    text = json.dumps(result, indent=2, ensure_ascii=False)
    if args.output:
        out_dir = os.path.dirname(args.output)
        if out_dir:
            os.makedirs(out_dir, exist_ok=True)
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(text)
        print(f"Done! Metadata written to: {args.output}", file=sys.stderr)
    else:
        print(text)


if __name__ == "__main__":
    main()
