"""Exceptions shared by the publisher and the Confluence client.

SyncError is the root of every run-level failure the CLI maps to an exit
code. Errors raised while talking to Confluence derive from ConfluenceError.
"""


class SyncError(Exception):
    """Root of all confluence-publisher errors."""


class ConfluenceError(SyncError):
    """A Confluence request failed."""


class InvalidCredentialsError(ConfluenceError):
    """Confluence rejected the configured user name and API token."""

    def __init__(self, user: str, endpoint: str):
        super().__init__(f"Confluence at {endpoint} rejected the API token of {user}")
        self.user = user
        self.endpoint = endpoint


class PageNotFoundError(ConfluenceError):
    def __init__(self, page_id: str):
        super().__init__(f"Page {page_id} not found")
        self.page_id = page_id


class APIUnreachableError(ConfluenceError):
    """Confluence could not be reached at all (DNS, connection or timeout)."""

    def __init__(self, endpoint: str):
        super().__init__(f"Cannot reach Confluence at {endpoint}")
        self.endpoint = endpoint


class APIAccessError(ConfluenceError):
    """A request failed for good: retries exhausted, conflict or server error."""


class ConversionError(ConfluenceError):
    """Markdown or a diagram could not be converted for upload."""
