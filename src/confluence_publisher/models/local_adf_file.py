"""Local markdown file converted to ADF."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class LocalAdfFile:
    """A local document ready to publish.

    Instances are created once per run and not mutated afterwards; the
    publish pipeline works on copies of contents.

    Attributes:
        folder_name: Name of the directory containing the file
        absolute_file_path: Absolute path of the source file (or folder, for
            synthesised folder pages)
        file_name: File name including extension
        contents: ADF document body
        page_title: Display title; unique across one publish run
        frontmatter: Raw frontmatter of the source file
        tags: Labels to apply to the page
        page_id: Pinned Confluence page ID
        dont_change_parent_page_id: Leave the remote parent untouched
        content_type: "page" or "blogpost"
        blog_post_date: Posting date (YYYY-MM-DD) for blog posts
    """
    folder_name: str
    absolute_file_path: str
    file_name: str
    contents: Dict[str, Any]
    page_title: str
    frontmatter: Dict[str, Any] = field(default_factory=dict)
    tags: List[str] = field(default_factory=list)
    page_id: Optional[str] = None
    dont_change_parent_page_id: bool = False
    content_type: str = "page"
    blog_post_date: Optional[str] = None
