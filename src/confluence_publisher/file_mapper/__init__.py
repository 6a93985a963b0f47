"""Local file discovery, frontmatter handling and per-page config."""

from .errors import FileMapperError, FilesystemError, FrontmatterError
from .filesystem_adaptor import FileSystemAdaptor, LoaderAdaptor
from .frontmatter_handler import FrontmatterHandler
from .models import BinaryFile, FilesToUpload, MarkdownFile
from .page_config import PageConfig, parse_page_config

__all__ = [
    'FileMapperError',
    'FilesystemError',
    'FrontmatterError',
    'FileSystemAdaptor',
    'LoaderAdaptor',
    'FrontmatterHandler',
    'BinaryFile',
    'FilesToUpload',
    'MarkdownFile',
    'PageConfig',
    'parse_page_config',
]
