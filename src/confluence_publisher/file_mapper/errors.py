"""Exceptions raised while discovering and reading local files."""

from typing import Optional

from ..confluence_client.errors import SyncError


class FileMapperError(SyncError):
    """Base exception for local document and asset failures.

    Attributes:
        file_path: File (or directory) the failure relates to
    """

    def __init__(self, file_path: str, message: str):
        super().__init__(message)
        self.file_path = file_path


class FilesystemError(FileMapperError):
    """Raised when a document or asset cannot be read, written or inspected."""

    def __init__(self, file_path: str, operation: str, reason: Optional[str] = None):
        detail = f"Cannot {operation} {file_path}"
        super().__init__(file_path, f"{detail}: {reason}" if reason else detail)
        self.operation = operation
        self.reason = reason


class FrontmatterError(FileMapperError):
    """Raised when a document's frontmatter is not valid publish metadata."""

    def __init__(self, file_path: str, message: str):
        super().__init__(file_path, f"Invalid frontmatter in {file_path}: {message}")
        self.message = message
