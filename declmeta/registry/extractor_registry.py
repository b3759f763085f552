import os
from typing import Optional

from declmeta.extractors.react_extractor import ReactDeclarationExtractor
from declmeta.extractors.typescript_extractor import TypeScriptDeclarationExtractor

EXT_MAP = {
    "typescript": [".ts", ".d.ts", ".js", ".mts", ".cts"],
    "react": [".tsx", ".jsx"],
}

INVERSE_EXTS = {ext: backend for backend, exts in EXT_MAP.items() for ext in exts}


def get_extractor(backend: str, **options):
    name = backend.lower()
    if name in ("typescript", "ts"):
        return TypeScriptDeclarationExtractor(**options)
    if name in ("react", "tsx"):
        options.pop("root_dir", None)
        return ReactDeclarationExtractor(**options)
    raise ValueError(f"No extractor for backend: {backend}")


def backend_for_path(path: str) -> Optional[str]:
    lowered = path.lower()
    if lowered.endswith(".d.ts"):
        return "typescript"
    return INVERSE_EXTS.get(os.path.splitext(lowered)[1])
