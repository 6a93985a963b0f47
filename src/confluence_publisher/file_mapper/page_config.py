"""Per-page publish settings read from markdown frontmatter."""

import datetime
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .errors import FrontmatterError

CONTENT_TYPES = ("page", "blogpost")

# Frontmatter keys
TITLE_KEY = "confluence_title"
PAGE_ID_KEY = "confluence_page_id"
PUBLISH_KEY = "confluence_publish"
CONTENT_TYPE_KEY = "confluence_content_type"
DONT_CHANGE_PARENT_KEY = "confluence_dont_change_parent_page"
BLOG_POST_DATE_KEY = "confluence_blog_post_date"
TAGS_KEY = "tags"


@dataclass
class PageConfig:
    """Publish settings for one page.

    Attributes:
        title: Explicit page title, overriding heading/file name
        page_id: Pinned Confluence page ID
        publish: True/False forces inclusion/exclusion; None defers to the folder rule
        content_type: "page" or "blogpost"
        dont_change_parent_page: Leave the page's remote parent untouched
        blog_post_date: Posting date (YYYY-MM-DD) for blog posts
        tags: Labels to apply to the page
    """
    title: Optional[str] = None
    page_id: Optional[str] = None
    publish: Optional[bool] = None
    content_type: str = "page"
    dont_change_parent_page: bool = False
    blog_post_date: Optional[str] = None
    tags: List[str] = field(default_factory=list)


def _expect_bool(frontmatter: Dict[str, Any], key: str, file_path: str) -> Optional[bool]:
    value = frontmatter.get(key)
    if value is None:
        return None
    if not isinstance(value, bool):
        raise FrontmatterError(file_path, f"'{key}' must be true or false, got {value!r}")
    return value


def _parse_tags(value: Any, file_path: str) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, list) and all(isinstance(tag, (str, int)) for tag in value):
        return [str(tag) for tag in value]
    raise FrontmatterError(file_path, f"'{TAGS_KEY}' must be a list of strings")


def parse_page_config(frontmatter: Dict[str, Any], file_path: str = "<unknown>") -> PageConfig:
    """Read PageConfig from a frontmatter mapping.

    Raises:
        FrontmatterError: If a value has the wrong type or an unknown content type
    """
    title = frontmatter.get(TITLE_KEY)
    if title is not None and not isinstance(title, str):
        title = str(title)

    page_id = frontmatter.get(PAGE_ID_KEY)
    if page_id is not None:
        page_id = str(page_id)

    content_type = frontmatter.get(CONTENT_TYPE_KEY) or "page"
    if content_type not in CONTENT_TYPES:
        raise FrontmatterError(
            file_path,
            f"'{CONTENT_TYPE_KEY}' must be one of {', '.join(CONTENT_TYPES)}, got {content_type!r}"
        )

    blog_post_date = frontmatter.get(BLOG_POST_DATE_KEY)
    if isinstance(blog_post_date, (datetime.date, datetime.datetime)):
        blog_post_date = blog_post_date.strftime("%Y-%m-%d")
    elif blog_post_date is not None:
        blog_post_date = str(blog_post_date)

    return PageConfig(
        title=title or None,
        page_id=page_id or None,
        publish=_expect_bool(frontmatter, PUBLISH_KEY, file_path),
        content_type=content_type,
        dont_change_parent_page=bool(_expect_bool(frontmatter, DONT_CHANGE_PARENT_KEY, file_path)),
        blog_post_date=blog_post_date,
        tags=_parse_tags(frontmatter.get(TAGS_KEY), file_path),
    )
