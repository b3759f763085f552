import json
import traceback
from typing import List

from tqdm import tqdm
from tree_sitter_language_pack import get_parser

from declmeta.base.declaration_extractor import DeclarationExtractor
from declmeta.errors import SourceParseError
from declmeta.react.components import ReactDeclarationVisitor
from declmeta.utils.builder import MetadataBuilder
from declmeta.utils.source_loader import load_source
from declmeta.utils.syntax import walk


def first_syntax_error(root):
    for node in walk(root):
        if node.type == "ERROR" or node.is_missing:
            return node
    return None


class ReactDeclarationExtractor(DeclarationExtractor):
    """
    Syntax-only backend for TSX sources.

    Each file is parsed on its own; a file that cannot be read or parsed
    is reported and skipped while the rest of the batch goes on.
    """

    def __init__(self, progress: bool = False):
        self.parser = get_parser("tsx")
        self.progress = progress
        self.metadata = {}
        self.skipped: List[str] = []

    def parse_file(self, file_path: str):
        try:
            code = load_source(file_path)
        except OSError as e:
            raise SourceParseError(file_path, str(e)) from e
        tree = self.parser.parse(code.encode("utf-8"))
        if tree.root_node.has_error:
            error = first_syntax_error(tree.root_node)
            row, column = error.start_point if error is not None else (0, 0)
            raise SourceParseError(file_path, f"syntax error at line {row + 1}, column {column + 1}")
        return tree

    def extract(self, file_paths: List[str]) -> dict:
        builder = MetadataBuilder(react=True)
        self.skipped = []

        for file_path in tqdm(file_paths, desc="Extracting declarations", disable=not self.progress):
            try:
                tree = self.parse_file(file_path)
            except SourceParseError:
                print(traceback.format_exc())
                print(f"Unable to process - {file_path}. Skipping it.")
                self.skipped.append(file_path)
                continue
            builder.scope_state.clear()
            ReactDeclarationVisitor().visit_file(tree.root_node, builder)

        self.metadata = builder.to_dict()
        return self.metadata

    def extract_all_declarations(self) -> dict:
        return self.metadata

    def write_to_file(self, output_path: str):
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(self.metadata, f, indent=2, ensure_ascii=False)
