"""Publish a local hierarchy of markdown documents to a Confluence page tree.

The package builds a canonical local tree from discovered markdown files,
resolves (or creates) the matching Confluence pages under a configured top
page, runs an extract/transform/load processing pipeline over each page's ADF
body and applies versioned updates only when content, metadata, attachments
or labels actually changed.
"""

__version__ = "0.1.0"
