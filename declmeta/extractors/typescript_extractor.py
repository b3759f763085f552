import os
import json
from typing import List, Optional

from tqdm import tqdm

from declmeta.base.declaration_extractor import DeclarationExtractor
from declmeta.extractors.declaration_visitor import DeclarationVisitor
from declmeta.semantic.checker import CheckerTypeOracle, TypeChecker
from declmeta.semantic.program import Program
from declmeta.utils.builder import MetadataBuilder
from declmeta.utils.tsconfig import load_compiler_options


class TypeScriptDeclarationExtractor(DeclarationExtractor):
    """
    Type-resolving backend.

    The whole batch is parsed into one ``Program`` before any file is
    visited, so types that reference sibling files resolve. A file that
    cannot be read aborts the batch with ``ProgramBuildError``.
    """

    def __init__(self, root_dir: Optional[str] = None, progress: bool = False):
        self.root_dir = root_dir
        self.progress = progress
        self.program = None
        self.metadata = {}

    def build_program(self, file_paths: List[str]) -> Program:
        options = load_compiler_options(file_paths, self.root_dir)
        return Program(file_paths, options)

    def extract(self, file_paths: List[str]) -> dict:
        paths = [os.path.abspath(p) for p in file_paths]
        self.program = self.build_program(paths)
        checker = TypeChecker(self.program)
        builder = MetadataBuilder()

        for path in tqdm(paths, desc="Extracting declarations", disable=not self.progress):
            source = self.program.files[path]
            # overload bookkeeping does not carry over between files
            builder.scope_state.clear()
            visitor = DeclarationVisitor(CheckerTypeOracle(checker, path))
            visitor.visit_file(source.root, builder)

        self.metadata = builder.to_dict()
        return self.metadata

    def extract_all_declarations(self) -> dict:
        return self.metadata

    def write_to_file(self, output_path: str):
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(self.metadata, f, indent=2, ensure_ascii=False)
