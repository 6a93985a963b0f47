"""Match the local page tree to Confluence pages.

Every local node is resolved to a remote page: by pinned page ID, else by
title within the space, else by creating a blank page below its parent.
Resolution runs level by level so a parent's page ID is always known
before its children are resolved; all nodes of one level resolve
concurrently.
"""

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional, Tuple

from ..adf.builders import blank_page_doc, empty_doc
from ..confluence_client.api_wrapper import APIWrapper
from ..confluence_client.errors import PageNotFoundError
from ..file_mapper.filesystem_adaptor import LoaderAdaptor
from ..file_mapper.page_config import PAGE_ID_KEY, PUBLISH_KEY
from ..models.confluence_page import ConfluencePage
from ..models.local_adf_file import LocalAdfFile
from ..settings.models import ConfluenceSettings
from .errors import CrossTreeCollisionError, MissingSpaceKeyError, UnresolvedParentError
from .links import page_url, prepare_adf_to_upload
from .models import ConfluenceTreeNode, LocalAdfFileTreeNode, PublishUnit

logger = logging.getLogger(__name__)

MAX_WORKERS = 10

NO_ACCOUNT_ID = "NO ACCOUNT ID"

PAGE_EXPAND = ["version", "body.atlas_doc_format", "ancestors", "space"]
SEARCH_EXPAND = ["version", "body.atlas_doc_format", "ancestors"]


def _parse_adf(content: Dict[str, Any]) -> Dict[str, Any]:
    value = ((content.get("body") or {}).get("atlas_doc_format") or {}).get("value")
    if not value:
        return {}
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        logger.warning(f"Page {content.get('id')} has an unreadable ADF body")
        return {}


def _page_from_content(content: Dict[str, Any], space_key: str) -> ConfluencePage:
    version = content.get("version") or {}
    return ConfluencePage(
        page_id=str(content["id"]),
        space_key=space_key,
        title=content.get("title", ""),
        content_type=content.get("type", "page"),
        adf=_parse_adf(content),
        ancestors=[str(a["id"]) for a in content.get("ancestors") or []],
        version=version.get("number", 1),
        last_updated_by=(version.get("by") or {}).get("accountId") or NO_ACCOUNT_ID,
    )


def _missing_space_detail(file: LocalAdfFile) -> str:
    return (
        "The Confluence API did not return space data for this page. "
        "Common causes:\n"
        f"  - Invalid or non-existent page ID ({file.page_id})\n"
        "  - Insufficient permissions to access this page\n"
        "  - Page may have been deleted or moved\n"
        "Solutions:\n"
        "  - Set confluence_space_key in your configuration\n"
        f"  - Verify the page ID in '{file.absolute_file_path}' frontmatter is correct\n"
        "  - Remove the page ID from frontmatter to create a new page instead"
    )


def ensure_page_exists(
    api: APIWrapper,
    adaptor: LoaderAdaptor,
    file: LocalAdfFile,
    space_key: str,
    parent_page_id: str,
    top_page_id: str,
    settings: ConfluenceSettings,
) -> ConfluencePage:
    """Find or create the Confluence page for a local document.

    The resolved page ID is written back to the document's frontmatter.

    Raises:
        PageNotFoundError: If the pinned page ID no longer exists (the pin is cleared)
        MissingSpaceKeyError: If the pinned page's space cannot be determined
        CrossTreeCollisionError: If the title matches a page outside the top page's tree
    """
    if file.page_id:
        try:
            content = api.get_content_by_id(file.page_id, expand=PAGE_EXPAND)
        except PageNotFoundError:
            logger.warning(f"Pinned page {file.page_id} of {file.absolute_file_path} not found")
            adaptor.update_markdown_values(file.absolute_file_path, {PUBLISH_KEY: None, PAGE_ID_KEY: None})
            raise

        page_space_key = (content.get("space") or {}).get("key")
        if not page_space_key:
            if not settings.confluence_space_key:
                raise MissingSpaceKeyError(file.page_id, _missing_space_detail(file))
            logger.warning(
                f"Page {file.page_id}: Using fallback space key '{settings.confluence_space_key}' "
                f"(API did not return space data)"
            )
            page_space_key = settings.confluence_space_key

        page = _page_from_content(content, page_space_key)
        adaptor.update_markdown_values(file.absolute_file_path, {PUBLISH_KEY: True, PAGE_ID_KEY: page.page_id})
        return page

    matches = api.find_content_by_title(file.content_type, space_key, file.page_title, expand=SEARCH_EXPAND)
    if matches:
        current = matches[0]
        ancestor_ids = [str(a["id"]) for a in current.get("ancestors") or []]
        if file.content_type == "page" and str(top_page_id) not in ancestor_ids:
            raise CrossTreeCollisionError(file.page_title)

        page = _page_from_content(current, space_key)
        logger.debug(f"Found page {page.page_id} for \"{file.page_title}\" by title")
        adaptor.update_markdown_values(file.absolute_file_path, {PUBLISH_KEY: True, PAGE_ID_KEY: page.page_id})
        return page

    payload: Dict[str, Any] = {
        "space": {"key": space_key},
        "title": file.page_title,
        "type": file.content_type,
        "body": {
            "atlas_doc_format": {
                "value": json.dumps(blank_page_doc()),
                "representation": "atlas_doc_format",
            },
        },
    }
    if file.content_type == "page":
        payload["ancestors"] = [{"id": parent_page_id}]

    created = api.create_content(payload)
    page = _page_from_content(created, space_key)
    logger.info(f"Created {file.content_type} {page.page_id} for \"{file.page_title}\"")
    adaptor.update_markdown_values(file.absolute_file_path, {PUBLISH_KEY: True, PAGE_ID_KEY: page.page_id})
    return page


def _resolve_node(
    api: APIWrapper,
    adaptor: LoaderAdaptor,
    node: LocalAdfFileTreeNode,
    parent: ConfluenceTreeNode,
    top_page_id: str,
    settings: ConfluenceSettings,
) -> ConfluenceTreeNode:
    """Resolve one node below an already resolved parent, capturing failures."""
    file = node.file
    if file is None:
        raise ValueError(f"Missing file on node {node.name}")

    if parent.error is not None:
        return ConfluenceTreeNode(file=file, error=UnresolvedParentError(file.page_title, parent.file.page_title))

    try:
        page = ensure_page_exists(api, adaptor, file, parent.space_key, parent.page_id, top_page_id, settings)
    except Exception as e:
        logger.error(f"Failed to resolve \"{file.page_title}\": {e}")
        return ConfluenceTreeNode(file=file, error=e)

    return ConfluenceTreeNode(
        file=file,
        page_id=page.page_id,
        space_key=page.space_key,
        page_url=page_url(settings.confluence_base_url, page.space_key, page.page_id),
        version=page.version,
        last_updated_by=page.last_updated_by,
        existing_page=page,
    )


def create_file_structure_in_confluence(
    api: APIWrapper,
    adaptor: LoaderAdaptor,
    root: LocalAdfFileTreeNode,
    space_key: str,
    parent_page_id: str,
    top_page_id: str,
    settings: ConfluenceSettings,
) -> ConfluenceTreeNode:
    """Resolve the whole local tree, parents before children.

    The root is seeded with the known parent page and never looked up.
    Failures are recorded on the failing node; its descendants are marked
    failed without any remote calls.
    """
    if root.file is None:
        raise ValueError("Missing file on root node")

    root_node = ConfluenceTreeNode(
        file=root.file,
        page_id=parent_page_id,
        space_key=space_key,
        page_url=page_url(settings.confluence_base_url, space_key, parent_page_id),
        version=0,
        existing_page=ConfluencePage(
            page_id=parent_page_id,
            space_key=space_key,
            title="",
            content_type="page",
            adf=empty_doc(),
        ),
    )

    wave: List[Tuple[LocalAdfFileTreeNode, ConfluenceTreeNode]] = [
        (child, root_node) for child in root.children
    ]
    with ThreadPoolExecutor(max_workers=MAX_WORKERS) as executor:
        while wave:
            logger.debug(f"Resolving {len(wave)} page(s)")
            futures = [
                executor.submit(_resolve_node, api, adaptor, local, parent, top_page_id, settings)
                for local, parent in wave
            ]
            next_wave: List[Tuple[LocalAdfFileTreeNode, ConfluenceTreeNode]] = []
            for (local, parent), future in zip(wave, futures):
                resolved = future.result()
                parent.children.append(resolved)
                next_wave.extend((child, resolved) for child in local.children)
            wave = next_wave

    return root_node


def flatten_tree(node: ConfluenceTreeNode, ancestors: Optional[List[str]] = None) -> List[PublishUnit]:
    """Pre-order list of publish units, skipping the root.

    Each unit carries the page IDs from the top page down to its parent.
    """
    ancestors = ancestors or []
    units: List[PublishUnit] = []

    if ancestors:
        units.append(PublishUnit(
            file=node.file,
            page_id=node.page_id,
            space_key=node.space_key,
            page_url=node.page_url,
            version=node.version,
            last_updated_by=node.last_updated_by,
            existing_page=node.existing_page,
            ancestors=list(ancestors),
            error=node.error,
        ))

    for child in node.children:
        units.extend(flatten_tree(child, ancestors + [node.page_id]))

    return units


def ensure_all_files_exist_in_confluence(
    api: APIWrapper,
    adaptor: LoaderAdaptor,
    root: LocalAdfFileTreeNode,
    space_key: str,
    parent_page_id: str,
    top_page_id: str,
    settings: ConfluenceSettings,
) -> List[PublishUnit]:
    """Resolve the tree and return publish units with links prepared."""
    tree = create_file_structure_in_confluence(
        api, adaptor, root, space_key, parent_page_id, top_page_id, settings
    )
    return prepare_adf_to_upload(flatten_tree(tree))
