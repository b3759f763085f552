import os
import re
import json
from typing import Dict, List, Optional

CONFIG_FILENAME = "tsconfig.json"

DEFAULT_COMPILER_OPTIONS = {
    "target": "ESNext",
    "module": "ESNext",
    "jsx": "react",
    "allowJs": True,
    "esModuleInterop": True,
    "skipLibCheck": True,
    "experimentalDecorators": True,
    "emitDecoratorMetadata": True,
}


def find_tsconfig_dir(file_path: str, root_dir: Optional[str] = None, config_filename: str = CONFIG_FILENAME) -> Optional[str]:
    current_dir = os.path.abspath(os.path.dirname(file_path))
    root_dir = os.path.abspath(root_dir) if root_dir else None

    while True:
        candidate = os.path.join(current_dir, config_filename)
        if os.path.isfile(candidate):
            return current_dir

        parent = os.path.dirname(current_dir)
        if current_dir == root_dir or parent == current_dir:
            return None

        current_dir = parent


def _strip_json_comments(text: str) -> str:
    text = re.sub(r'/\*[\s\S]*?\*/', '', text)
    text = re.sub(r'(?m)^\s*//.*$', '', text)
    text = re.sub(r'(?<=[,{\[\s"\d])\s+//[^"\n]*$', '', text, flags=re.M)
    text = re.sub(r',(\s*[}\]])', r'\1', text)
    return text


def read_tsconfig(config_file_path: str) -> dict:
    if not os.path.isfile(config_file_path):
        return {}

    try:
        with open(config_file_path, 'r', encoding='utf-8') as f:
            raw = f.read()
    except OSError:
        return {}

    clean = _strip_json_comments(raw).strip()
    if not clean:
        return {}

    try:
        cfg = json.loads(clean)
    except json.JSONDecodeError:
        return {}
    return cfg if isinstance(cfg, dict) else {}


def load_compiler_options(file_paths: List[str], root_dir: Optional[str] = None) -> Dict[str, object]:
    """
    Defaults merged with ``compilerOptions`` of the tsconfig.json closest to
    the first file of the batch. ``configDir`` records where it was found.
    """
    options = dict(DEFAULT_COMPILER_OPTIONS)
    if not file_paths:
        return options

    config_dir = find_tsconfig_dir(file_paths[0], root_dir)
    if not config_dir:
        return options

    cfg = read_tsconfig(os.path.join(config_dir, CONFIG_FILENAME))
    compiler_options = cfg.get("compilerOptions", {})
    if isinstance(compiler_options, dict):
        options.update(compiler_options)
    options["configDir"] = config_dir
    return options


def paths_aliases_from_options(options: dict) -> Dict[str, List[str]]:
    paths = options.get("paths", {})
    if isinstance(paths, dict):
        return {k: v for k, v in paths.items() if isinstance(v, list)}
    return {}


def resolve_module_alias(specifier: str, options: dict) -> List[str]:
    """Candidate filesystem paths (without extension) for a non-relative import."""
    config_dir = options.get("configDir")
    if not config_dir:
        return []
    base_dir = os.path.normpath(os.path.join(config_dir, options.get("baseUrl") or "."))
    alias_paths = paths_aliases_from_options(options)

    def sort_key(item):
        pat = item[0]
        return (pat.count("*"), -len(pat))

    candidates = []
    for alias_pattern, targets in sorted(alias_paths.items(), key=sort_key):
        if "*" in alias_pattern:
            regex = "^" + re.escape(alias_pattern).replace(r"\*", "(.+)") + "$"
            m = re.match(regex, specifier)
            if not m:
                continue
            wildcards = m.groups()
        else:
            if specifier != alias_pattern:
                continue
            wildcards = ()

        for tpl in targets:
            rel = tpl
            for w in wildcards:
                rel = rel.replace("*", w, 1)
            candidates.append(os.path.normpath(os.path.join(base_dir, rel)))

    if options.get("baseUrl"):
        candidates.append(os.path.normpath(os.path.join(base_dir, specifier)))
    return candidates
