"""Rewrite links between published markdown files into Confluence URLs."""

import logging
import os
from dataclasses import replace
from typing import Dict, List, Optional
from urllib.parse import unquote, urlparse

from ..adf.traverse import traverse
from .models import PublishUnit

logger = logging.getLogger(__name__)


def page_url(base_url: str, space_key: str, page_id: str) -> str:
    """Canonical URL of a Confluence page."""
    return f"{base_url.rstrip('/')}/wiki/spaces/{space_key}/pages/{page_id}/"


def _resolve_link(href: str, referencing_file: str, urls_by_path: Dict[str, str]) -> Optional[str]:
    parsed = urlparse(href)
    if parsed.scheme or parsed.netloc or not parsed.path:
        return None

    path = unquote(parsed.path)
    if not path.lower().endswith(".md"):
        return None

    target = os.path.normpath(os.path.join(os.path.dirname(referencing_file), path))
    url = urls_by_path.get(target)
    if url is None:
        return None
    return f"{url}#{parsed.fragment}" if parsed.fragment else url


def prepare_adf_to_upload(units: List[PublishUnit]) -> List[PublishUnit]:
    """Point relative links to other published files at their pages.

    Links to files that are not published are left unchanged.

    Returns:
        New units whose file contents carry the rewritten links
    """
    urls_by_path = {
        os.path.normpath(unit.file.absolute_file_path): unit.page_url
        for unit in units
        if unit.page_url and unit.error is None
    }

    prepared: List[PublishUnit] = []
    for unit in units:
        referencing_file = unit.file.absolute_file_path

        def rewrite_links(node, _parent):
            for mark in node.get("marks") or []:
                if mark.get("type") != "link":
                    continue
                href = (mark.get("attrs") or {}).get("href", "")
                url = _resolve_link(href, referencing_file, urls_by_path)
                if url:
                    logger.debug(f"Rewriting link {href} in {referencing_file} to {url}")
                    mark["attrs"]["href"] = url
            return node

        contents = traverse(unit.file.contents, {"text": rewrite_links})
        prepared.append(replace(unit, file=replace(unit.file, contents=contents)))

    return prepared
