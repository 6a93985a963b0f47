"""Data models for discovered local files."""

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass
class MarkdownFile:
    """A markdown file discovered for publishing.

    Attributes:
        folder_name: Name of the directory containing the file
        absolute_file_path: Absolute path to the file
        file_name: File name including extension
        contents: Markdown body without frontmatter
        page_title: Title from frontmatter confluence_title, else the file stem
        frontmatter: Parsed YAML frontmatter (empty dict when absent)
    """
    folder_name: str
    absolute_file_path: str
    file_name: str
    contents: str
    page_title: str
    frontmatter: Dict[str, Any] = field(default_factory=dict)


@dataclass
class BinaryFile:
    """A binary asset read for attachment upload.

    Attributes:
        filename: Base name of the asset
        file_path: Resolved absolute path of the asset
        mime_type: Guessed MIME type
        contents: Raw bytes
    """
    filename: str
    file_path: str
    mime_type: str
    contents: bytes


FilesToUpload = List[MarkdownFile]
