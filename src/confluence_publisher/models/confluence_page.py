"""Snapshot of an existing Confluence page."""

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass
class ConfluencePage:
    """Confluence page as read before publishing.

    Attributes:
        page_id: Unique identifier for the page
        space_key: Space key where the page resides (e.g., "TEAM")
        title: Page title
        content_type: "page" or "blogpost"
        adf: Current body in ADF
        ancestors: Ancestor page IDs, top-most first
        version: Current version number (required for updates)
        last_updated_by: Account ID of the last editor
    """
    page_id: str
    space_key: str
    title: str
    content_type: str
    adf: Dict[str, Any]
    ancestors: List[str] = field(default_factory=list)
    version: int = 0
    last_updated_by: str = ""
