"""Markdown to ADF conversion."""

from .markdown_converter import MarkdownTransformer, clean_up_url_if_confluence, convert_markdown_file

__all__ = ['MarkdownTransformer', 'clean_up_url_if_confluence', 'convert_markdown_file']
