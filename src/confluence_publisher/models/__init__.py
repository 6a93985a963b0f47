"""Data models shared by the converter and the publisher."""

from .confluence_page import ConfluencePage
from .local_adf_file import LocalAdfFile

__all__ = ['ConfluencePage', 'LocalAdfFile']
