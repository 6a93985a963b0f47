"""Settings model for publishing.

All fields are plain values so partial settings can be expressed as dicts
and merged field by field.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class ConfluenceSettings:
    """Global settings controlling discovery and publishing.

    Attributes:
        confluence_base_url: Confluence site URL (e.g. https://domain.atlassian.net)
        confluence_parent_id: Page ID of the top page; everything is published below it
        atlassian_user_name: Atlassian account email used for API authentication
        atlassian_api_token: Atlassian API token
        folder_to_publish: Folder (relative to content_root) whose files are published
        content_root: Directory searched for markdown files; always ends with a separator
        first_heading_page_title: Use the first level-1 heading as the page title
            when no explicit title is set in frontmatter
        confluence_space_key: Fallback space key for pinned pages whose space the
            API does not report
    """
    confluence_base_url: str
    confluence_parent_id: str
    atlassian_user_name: str
    atlassian_api_token: str
    folder_to_publish: str
    content_root: str
    first_heading_page_title: bool = False
    confluence_space_key: Optional[str] = None


# Defaults per field. content_root is resolved to the working directory at
# load time, not import time.
DEFAULT_SETTINGS: Dict[str, Any] = {
    'confluence_base_url': "",
    'confluence_parent_id': "",
    'confluence_space_key': "",
    'atlassian_user_name': "",
    'atlassian_api_token': "",
    'folder_to_publish': "Confluence Pages",
    'content_root': "",
    'first_heading_page_title': False,
}
