from abc import ABC, abstractmethod
from typing import List


class DeclarationExtractor(ABC):
    @abstractmethod
    def extract(self, file_paths: List[str]) -> dict:
        pass

    @abstractmethod
    def write_to_file(self, output_path: str):
        pass

    @abstractmethod
    def extract_all_declarations(self) -> dict:
        pass
