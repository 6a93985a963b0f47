"""Filesystem-backed discovery of markdown files and assets.

The publisher only talks to local files through the LoaderAdaptor protocol so
other hosts (an editor plugin, a CI action) can supply their own adaptor.
"""

import logging
import mimetypes
import os
import tempfile
from typing import Any, Dict, List, Optional, Protocol

from ..settings.models import ConfluenceSettings
from .errors import FileMapperError, FilesystemError
from .frontmatter_handler import FrontmatterHandler
from .models import BinaryFile, FilesToUpload, MarkdownFile
from .page_config import PUBLISH_KEY, TITLE_KEY

logger = logging.getLogger(__name__)

# Maximum file size to read into memory (10 MB)
MAX_FILE_SIZE = 10 * 1024 * 1024

# Directory names never searched for markdown files
SKIPPED_DIRECTORIES = {"node_modules", "__pycache__"}


class LoaderAdaptor(Protocol):
    """Reads and updates markdown files and binary assets for publishing."""

    def get_markdown_files_to_upload(self) -> FilesToUpload:
        ...

    def load_markdown_file(self, absolute_file_path: str) -> MarkdownFile:
        ...

    def update_markdown_values(self, absolute_file_path: str, values: Dict[str, Any]) -> None:
        ...

    def read_binary(self, path: str, referenced_from_file_path: str) -> Optional[BinaryFile]:
        ...


class FileSystemAdaptor:
    """LoaderAdaptor reading from the local filesystem below content_root."""

    def __init__(self, settings: ConfluenceSettings):
        self.settings = settings
        self.content_root = os.path.abspath(settings.content_root)
        self.publish_root = os.path.join(self.content_root, settings.folder_to_publish)

    def _validate_path_safety(self, file_path: str, base_directory: str) -> None:
        """Validate that a file path resolves to a location within base_directory.

        Raises:
            FilesystemError: If path is outside base directory
        """
        real_base = os.path.realpath(base_directory)
        real_path = os.path.realpath(file_path)

        if not real_path.startswith(real_base + os.sep) and real_path != real_base:
            raise FilesystemError(
                file_path,
                'validate',
                f'Path traversal detected: {file_path} is outside base directory {base_directory}'
            )

    def _validate_file_size(self, file_path: str, max_size: int = MAX_FILE_SIZE) -> None:
        """Validate that a file is small enough to read into memory.

        Raises:
            FilesystemError: If file size exceeds maximum allowed size
        """
        try:
            file_size = os.path.getsize(file_path)
        except OSError as e:
            raise FilesystemError(file_path, 'stat', f'Failed to check file size: {e}')

        if file_size > max_size:
            size_mb = file_size / (1024 * 1024)
            max_mb = max_size / (1024 * 1024)
            raise FilesystemError(
                file_path,
                'read',
                f'File size ({size_mb:.2f} MB) exceeds maximum allowed size ({max_mb:.0f} MB)'
            )

    def _read_text(self, file_path: str) -> str:
        self._validate_file_size(file_path)
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                return f.read()
        except OSError as e:
            raise FilesystemError(file_path, 'read', str(e))

    def _write_text_atomic(self, file_path: str, content: str) -> None:
        """Write content via a temp file in the same directory, then replace."""
        directory = os.path.dirname(file_path)
        try:
            fd, temp_path = tempfile.mkstemp(dir=directory, prefix=".confluence-publish-", suffix=".tmp")
        except OSError as e:
            raise FilesystemError(file_path, 'write', str(e))

        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(content)
            os.replace(temp_path, file_path)
        except OSError as e:
            if os.path.exists(temp_path):
                os.remove(temp_path)
            raise FilesystemError(file_path, 'write', str(e))

    def _is_in_publish_folder(self, file_path: str) -> bool:
        real_root = os.path.realpath(self.publish_root)
        return os.path.realpath(file_path).startswith(real_root + os.sep)

    def get_markdown_files_to_upload(self) -> FilesToUpload:
        """Find every markdown file that should be published.

        A file is published when it lies in the publish folder or its
        frontmatter sets confluence_publish: true. confluence_publish: false
        always excludes it. Files with invalid frontmatter are skipped.

        Raises:
            FilesystemError: If content_root is not a readable directory
        """
        if not os.path.isdir(self.content_root):
            raise FilesystemError(self.content_root, 'read', 'Content root is not a directory')

        files: List[MarkdownFile] = []
        for root, dirs, filenames in os.walk(self.content_root):
            dirs[:] = sorted(
                d for d in dirs if not d.startswith('.') and d not in SKIPPED_DIRECTORIES
            )
            for filename in sorted(filenames):
                if not filename.lower().endswith('.md'):
                    continue
                file_path = os.path.join(root, filename)
                try:
                    markdown_file = self.load_markdown_file(file_path)
                except FileMapperError as e:
                    logger.warning(f"Failed to read {file_path}: {e} - skipping")
                    continue

                publish = markdown_file.frontmatter.get(PUBLISH_KEY)
                if publish is False:
                    logger.debug(f"Skipping {file_path}: {PUBLISH_KEY} is false")
                    continue
                if publish is True or self._is_in_publish_folder(file_path):
                    files.append(markdown_file)

        logger.info(f"Found {len(files)} markdown file(s) to publish")
        return files

    def load_markdown_file(self, absolute_file_path: str) -> MarkdownFile:
        """Read a markdown file and split off its frontmatter.

        Raises:
            FilesystemError: If the file cannot be read
            FrontmatterError: If the frontmatter is invalid
        """
        content = self._read_text(absolute_file_path)
        frontmatter, markdown_content = FrontmatterHandler.extract_frontmatter_and_content(
            content, absolute_file_path
        )

        file_name = os.path.basename(absolute_file_path)
        title = frontmatter.get(TITLE_KEY)
        page_title = str(title) if title else os.path.splitext(file_name)[0]

        return MarkdownFile(
            folder_name=os.path.basename(os.path.dirname(absolute_file_path)),
            absolute_file_path=absolute_file_path,
            file_name=file_name,
            contents=markdown_content,
            page_title=page_title,
            frontmatter=frontmatter,
        )

    def update_markdown_values(self, absolute_file_path: str, values: Dict[str, Any]) -> None:
        """Write values into a file's frontmatter; None removes a key.

        Paths that are not files (synthesised folder pages) are ignored.

        Raises:
            FilesystemError: If the file cannot be rewritten
        """
        if not os.path.isfile(absolute_file_path):
            logger.debug(f"Not updating frontmatter of {absolute_file_path}: not a file")
            return

        content = self._read_text(absolute_file_path)
        updated = FrontmatterHandler.update_values(content, values, absolute_file_path)
        if updated != content:
            self._write_text_atomic(absolute_file_path, updated)
            logger.debug(f"Updated frontmatter of {absolute_file_path}: {sorted(values)}")

    def read_binary(self, path: str, referenced_from_file_path: str) -> Optional[BinaryFile]:
        """Read an asset referenced from a markdown file.

        Relative paths resolve against the referencing file's directory,
        absolute ones against content_root.

        Returns:
            BinaryFile, or None if the asset does not exist or is unsafe to read
        """
        if os.path.isabs(path):
            full_path = os.path.join(self.content_root, path.lstrip('/\\'))
        else:
            full_path = os.path.join(os.path.dirname(referenced_from_file_path), path)
        full_path = os.path.normpath(full_path)

        if not os.path.isfile(full_path):
            logger.debug(f"Asset {path} referenced from {referenced_from_file_path} not found")
            return None

        try:
            self._validate_path_safety(full_path, self.content_root)
            self._validate_file_size(full_path)
            with open(full_path, 'rb') as f:
                contents = f.read()
        except (FilesystemError, OSError) as e:
            logger.warning(f"Cannot read asset {full_path}: {e}")
            return None

        mime_type, _ = mimetypes.guess_type(full_path)
        return BinaryFile(
            filename=os.path.basename(full_path),
            file_path=full_path,
            mime_type=mime_type or 'application/octet-stream',
            contents=contents,
        )
