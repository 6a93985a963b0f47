"""Build the local page tree from discovered markdown files.

The tree mirrors the folder structure below the files' common directory.
Every folder becomes a page: its document is a file named like the folder,
else an index/README file in it, else a placeholder listing its children.
Page titles must be unique across the tree since remote pages are looked up
by title.
"""

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Set

from ..adf.builders import children_macro_doc
from ..content_converter.markdown_converter import MarkdownTransformer, convert_markdown_file
from ..file_mapper.models import MarkdownFile
from ..models.local_adf_file import LocalAdfFile
from ..settings.models import ConfluenceSettings
from .errors import DuplicatePageTitleError
from .models import LocalAdfFileTreeNode

logger = logging.getLogger(__name__)

MAX_WORKERS = 10

INDEX_FILE_STEMS = ("index", "readme")


def find_common_path(paths: List[str]) -> str:
    """Longest common directory of the given absolute paths.

    Raises:
        ValueError: If no paths are given
    """
    if not paths:
        raise ValueError("No Paths Provided")
    return os.path.commonpath(paths)


def create_folder_structure(
    markdown_files: List[MarkdownFile],
    settings: ConfluenceSettings,
    transformer: MarkdownTransformer,
) -> LocalAdfFileTreeNode:
    """Convert discovered files and arrange them into a page tree.

    Args:
        markdown_files: Files to publish
        settings: Publishing settings
        transformer: Markdown to ADF converter

    Returns:
        Root node; it stands for the configured top page and is never published

    Raises:
        ValueError: If markdown_files is empty
        DuplicatePageTitleError: If two nodes resolve to the same title
    """
    common_path = find_common_path(
        [os.path.dirname(f.absolute_file_path) for f in markdown_files]
    )
    root = LocalAdfFileTreeNode(name=common_path, directory=common_path)

    with ThreadPoolExecutor(max_workers=MAX_WORKERS) as executor:
        adf_files = list(executor.map(
            lambda f: convert_markdown_file(f, settings, transformer),
            markdown_files,
        ))

    for adf_file in adf_files:
        relative_path = os.path.relpath(adf_file.absolute_file_path, common_path)
        _add_file_to_tree(root, adf_file, relative_path.split(os.sep))

    _process_node(root)
    check_unique_page_titles(root)

    logger.debug(f"Built local tree with {len(adf_files)} file(s) below {common_path}")
    return root


def _add_file_to_tree(node: LocalAdfFileTreeNode, adf_file: LocalAdfFile, segments: List[str]) -> None:
    name, remaining = segments[0], segments[1:]

    if not remaining:
        node.children.append(LocalAdfFileTreeNode(name=name, file=adf_file))
        return

    child = next(
        (c for c in node.children if c.name == name and c.file is None),
        None,
    )
    if child is None:
        child = LocalAdfFileTreeNode(name=name, directory=os.path.join(node.directory or "", name))
        node.children.append(child)

    _add_file_to_tree(child, adf_file, remaining)


def _stem(name: str) -> str:
    return os.path.splitext(name)[0]


def _find_index_child(node: LocalAdfFileTreeNode) -> Optional[LocalAdfFileTreeNode]:
    """Pick the file child that documents a folder node."""
    file_children = [c for c in node.children if c.file is not None and not c.children]
    folder_name = os.path.basename(node.name)

    for child in file_children:
        if _stem(child.name) == folder_name:
            return child
    for child in file_children:
        if _stem(child.name).lower() in INDEX_FILE_STEMS:
            return child
    return None


def _placeholder_file(node: LocalAdfFileTreeNode) -> LocalAdfFile:
    folder_name = os.path.basename(node.name)
    return LocalAdfFile(
        folder_name=folder_name,
        absolute_file_path=node.directory or node.name,
        file_name=f"{folder_name}.md",
        contents=children_macro_doc(),
        page_title=folder_name,
    )


def _process_node(node: LocalAdfFileTreeNode) -> None:
    """Give every folder node a document, top-down."""
    if node.file is None:
        index_child = _find_index_child(node)
        if index_child is not None:
            node.file = index_child.file
            node.children = [c for c in node.children if c is not index_child]
        else:
            node.file = _placeholder_file(node)

    for child in node.children:
        _process_node(child)


def check_unique_page_titles(node: LocalAdfFileTreeNode, page_titles: Optional[Set[str]] = None) -> None:
    """Fail on the first page title seen twice, root included.

    Raises:
        DuplicatePageTitleError: Naming the duplicate title
    """
    if page_titles is None:
        page_titles = set()

    title = node.file.page_title if node.file else ""
    if title in page_titles:
        raise DuplicatePageTitleError(title)
    page_titles.add(title)

    for child in node.children:
        check_unique_page_titles(child, page_titles)
