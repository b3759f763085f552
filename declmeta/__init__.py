from declmeta.extractors.react_extractor import ReactDeclarationExtractor
from declmeta.extractors.typescript_extractor import TypeScriptDeclarationExtractor


def extract_typescript(file_paths, root_dir=None) -> dict:
    return TypeScriptDeclarationExtractor(root_dir=root_dir).extract(file_paths)


def extract_react(file_paths) -> dict:
    return ReactDeclarationExtractor().extract(file_paths)
