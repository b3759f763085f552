class DeclmetaError(Exception):
    pass


class SourceParseError(DeclmetaError):
    def __init__(self, file_path: str, reason: str):
        self.file_path = file_path
        self.reason = reason
        super().__init__(f"{file_path}: {reason}")


class ProgramBuildError(DeclmetaError):
    """Raised when the cross-file program cannot be constructed for a batch."""

    def __init__(self, file_path: str, cause: Exception):
        self.file_path = file_path
        self.cause = cause
        super().__init__(f"Unable to build program - {file_path}: {cause}")
