"""Command-line interface for confluence-publish."""
