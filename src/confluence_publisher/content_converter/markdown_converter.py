"""Markdown to ADF conversion using Pandoc.

Pandoc parses GitHub-flavoured markdown into its JSON AST (-t json); the AST
is then mapped node by node onto ADF (Atlassian Document Format). Local
images become file media nodes carrying a file:// URL so the image uploader
plugin can upload them and fill in the attachment identifiers.
"""

import json
import logging
import os
import re
import shutil
import subprocess
from typing import Any, Dict, Iterable, List, Optional, Tuple
from urllib.parse import urlparse

from ..adf.builders import doc
from ..confluence_client.errors import ConversionError
from ..file_mapper.models import MarkdownFile
from ..file_mapper.page_config import parse_page_config
from ..models.local_adf_file import LocalAdfFile
from ..settings.models import ConfluenceSettings

logger = logging.getLogger(__name__)

AdfNode = Dict[str, Any]
Mark = Dict[str, Any]

PANDOC_TIMEOUT = 30

# Callout types (GitHub/Obsidian "[!type]" blockquotes) to ADF panel types
PANEL_TYPES = {
    "note": "note",
    "info": "info",
    "tip": "success",
    "success": "success",
    "important": "note",
    "warning": "warning",
    "caution": "error",
    "failure": "error",
    "danger": "error",
    "error": "error",
    "bug": "error",
}

CALLOUT_PATTERN = re.compile(r'^\[!(\w+)\][+-]?$')

CONFLUENCE_PAGE_PATH = re.compile(r'/wiki/spaces/(~?[\w-]+)/pages/(\d+)(?:/(\w*))?')


def clean_up_url_if_confluence(url: str, confluence_base_url: str) -> str:
    """Normalize a Confluence page URL to /wiki/spaces/{space}/pages/{id}.

    URLs on other hosts are returned unchanged; strings that are not absolute
    URLs return "#".
    """
    parsed = urlparse(url)
    if not parsed.scheme or not parsed.netloc:
        return "#"

    if parsed.hostname != urlparse(confluence_base_url).hostname:
        return url

    match = CONFLUENCE_PAGE_PATH.search(parsed.path)
    if not match:
        return url

    return parsed._replace(path=f"/wiki/spaces/{match.group(1)}/pages/{match.group(2)}").geturl()


def _is_remote(url: str) -> bool:
    return urlparse(url).scheme in ("http", "https")


def _merge_text_nodes(nodes: Iterable[AdfNode]) -> List[AdfNode]:
    """Merge adjacent text nodes that carry the same marks."""
    merged: List[AdfNode] = []
    for node in nodes:
        previous = merged[-1] if merged else None
        if (
            previous is not None
            and node.get("type") == "text"
            and previous.get("type") == "text"
            and previous.get("marks") == node.get("marks")
        ):
            previous["text"] += node["text"]
        else:
            merged.append(node)
    return [node for node in merged if node.get("type") != "text" or node["text"]]


class MarkdownTransformer:
    """Converts markdown to ADF via the Pandoc JSON AST."""

    def __init__(self, confluence_base_url: str = "", pandoc_path: Optional[str] = None):
        """Initialize and verify Pandoc is available.

        Args:
            confluence_base_url: Base URL used to canonicalise Confluence links
            pandoc_path: Pandoc executable; looked up on PATH when omitted

        Raises:
            ConversionError: If Pandoc is not found
        """
        self.confluence_base_url = confluence_base_url
        self.pandoc_path = pandoc_path or shutil.which("pandoc")
        if not self.pandoc_path:
            raise ConversionError(
                "Pandoc not found. Install: brew install pandoc (macOS) or "
                "apt-get install pandoc (Linux) or download from "
                "https://pandoc.org/installing.html"
            )

    def parse(self, markdown: str) -> Dict[str, Any]:
        """Run Pandoc and return its JSON AST.

        Raises:
            ConversionError: If Pandoc fails, times out or emits invalid JSON
        """
        try:
            result = subprocess.run(
                [self.pandoc_path, "-f", "gfm", "-t", "json"],
                input=markdown,
                text=True,
                capture_output=True,
                check=True,
                timeout=PANDOC_TIMEOUT
            )
        except subprocess.CalledProcessError as e:
            raise ConversionError(f"Pandoc conversion failed: {e.stderr}")
        except subprocess.TimeoutExpired:
            raise ConversionError(f"Pandoc conversion timed out (>{PANDOC_TIMEOUT}s)")

        try:
            return json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise ConversionError(f"Pandoc produced invalid JSON: {e}")

    def to_adf(self, markdown: str) -> AdfNode:
        """Convert markdown to an ADF document."""
        if not markdown.strip():
            return doc()
        ast = self.parse(markdown)
        return self.ast_to_adf(ast)

    def ast_to_adf(self, ast: Dict[str, Any]) -> AdfNode:
        """Map a Pandoc JSON AST to an ADF document."""
        return doc(*self._blocks(ast.get("blocks", [])))

    # Blocks

    def _blocks(self, blocks: List[Dict[str, Any]]) -> List[AdfNode]:
        nodes: List[AdfNode] = []
        for block in blocks:
            nodes.extend(self._block(block))
        return nodes

    def _block(self, block: Dict[str, Any]) -> List[AdfNode]:
        kind = block.get("t")
        content = block.get("c")

        if kind in ("Para", "Plain"):
            return self._paragraphs(content)
        if kind == "Header":
            level, _attr, inlines = content
            return [{
                "type": "heading",
                "attrs": {"level": min(max(level, 1), 6)},
                "content": self._inlines(inlines),
            }]
        if kind == "CodeBlock":
            return [self._code_block(*content)]
        if kind == "BulletList":
            return [{"type": "bulletList", "content": [self._list_item(item) for item in content]}]
        if kind == "OrderedList":
            (start, _style, _delim), items = content
            return [{
                "type": "orderedList",
                "attrs": {"order": start},
                "content": [self._list_item(item) for item in items],
            }]
        if kind == "BlockQuote":
            return [self._block_quote(content)]
        if kind == "HorizontalRule":
            return [{"type": "rule"}]
        if kind == "Table":
            return [self._table(content)]
        if kind == "LineBlock":
            inlines: List[Dict[str, Any]] = []
            for index, line in enumerate(content):
                if index:
                    inlines.append({"t": "LineBreak"})
                inlines.extend(line)
            return self._paragraphs(inlines)
        if kind == "Div":
            return self._div(*content)
        if kind == "Figure":
            _attr, _caption, blocks = content
            return self._blocks(blocks)
        if kind == "RawBlock":
            fmt, raw = content
            if fmt == "html" and raw.strip().startswith("<!--"):
                return []
            return [{"type": "paragraph", "content": [{"type": "text", "text": raw}]}]

        logger.debug(f"Skipping unsupported Pandoc block {kind}")
        return []

    def _paragraphs(self, inlines: List[Dict[str, Any]]) -> List[AdfNode]:
        """Build paragraphs, lifting images out into mediaSingle blocks."""
        nodes: List[AdfNode] = []
        pending: List[Dict[str, Any]] = []

        def flush() -> None:
            content = _merge_text_nodes(self._inlines(pending))
            if content and not all(
                node.get("type") == "text" and not node["text"].strip() for node in content
            ):
                nodes.append({"type": "paragraph", "content": content})
            pending.clear()

        for inline in inlines:
            if inline.get("t") == "Image":
                flush()
                nodes.append(self._image(*inline["c"]))
            else:
                pending.append(inline)
        flush()

        if not nodes:
            nodes.append({"type": "paragraph", "content": []})
        return nodes

    def _code_block(self, attr: List[Any], code: str) -> AdfNode:
        _identifier, classes, _attributes = attr
        node: AdfNode = {"type": "codeBlock", "attrs": {}}
        if classes:
            node["attrs"]["language"] = classes[0]
        if code:
            node["content"] = [{"type": "text", "text": code}]
        return node

    def _list_item(self, blocks: List[Dict[str, Any]]) -> AdfNode:
        content = [
            node for node in self._blocks(blocks)
            if node["type"] in ("paragraph", "bulletList", "orderedList", "codeBlock", "mediaSingle")
        ]
        return {"type": "listItem", "content": content or [{"type": "paragraph", "content": []}]}

    def _block_quote(self, blocks: List[Dict[str, Any]]) -> AdfNode:
        panel_type, remaining = self._callout(blocks)
        if panel_type:
            return self._panel(panel_type, remaining)
        content = [
            node for node in self._blocks(blocks)
            if node["type"] in ("paragraph", "bulletList", "orderedList", "codeBlock", "mediaSingle")
        ]
        return {"type": "blockquote", "content": content or [{"type": "paragraph", "content": []}]}

    def _callout(self, blocks: List[Dict[str, Any]]) -> Tuple[Optional[str], List[Dict[str, Any]]]:
        """Detect a "[!type] title" callout at the start of a block quote.

        Returns:
            Tuple of (panel type or None, blocks with the marker removed)
        """
        if not blocks or blocks[0].get("t") not in ("Para", "Plain"):
            return None, blocks
        inlines = blocks[0]["c"]
        if not inlines or inlines[0].get("t") != "Str":
            return None, blocks
        match = CALLOUT_PATTERN.match(inlines[0]["c"])
        if not match:
            return None, blocks

        panel_type = PANEL_TYPES.get(match.group(1).lower(), "info")
        rest = inlines[1:]
        while rest and rest[0].get("t") in ("Space", "SoftBreak", "LineBreak"):
            rest = rest[1:]
        remaining = list(blocks[1:])
        if rest:
            remaining.insert(0, {"t": "Para", "c": [{"t": "Strong", "c": rest}]})
        return panel_type, remaining

    def _panel(self, panel_type: str, blocks: List[Dict[str, Any]]) -> AdfNode:
        content = [
            node for node in self._blocks(blocks)
            if node["type"] in ("paragraph", "heading", "bulletList", "orderedList", "codeBlock", "rule", "mediaSingle")
        ]
        return {
            "type": "panel",
            "attrs": {"panelType": panel_type},
            "content": content or [{"type": "paragraph", "content": []}],
        }

    def _div(self, attr: List[Any], blocks: List[Dict[str, Any]]) -> List[AdfNode]:
        # Pandoc's gfm alerts extension wraps "> [!NOTE]" in a Div with a title Div
        _identifier, classes, _attributes = attr
        panel_classes = [c for c in classes if c in PANEL_TYPES]
        if panel_classes:
            body = [
                block for block in blocks
                if not (block.get("t") == "Div" and "title" in block["c"][0][1])
            ]
            return [self._panel(PANEL_TYPES[panel_classes[0]], body)]
        return self._blocks(blocks)

    def _table(self, content: List[Any]) -> AdfNode:
        _attr, _caption, _colspecs, head, bodies, foot = content
        rows: List[AdfNode] = []

        for row in head[1]:
            rows.append(self._table_row(row, header=True))
        for body in bodies:
            _body_attr, _row_head_columns, intermediate_head, body_rows = body
            for row in intermediate_head:
                rows.append(self._table_row(row, header=True))
            for row in body_rows:
                rows.append(self._table_row(row, header=False))
        for row in foot[1]:
            rows.append(self._table_row(row, header=False))

        return {
            "type": "table",
            "attrs": {"isNumberColumnEnabled": False, "layout": "default"},
            "content": rows,
        }

    def _table_row(self, row: List[Any], header: bool) -> AdfNode:
        _attr, cells = row
        adf_cells = []
        for cell in cells:
            _cell_attr, _alignment, rowspan, colspan, blocks = cell
            node: AdfNode = {
                "type": "tableHeader" if header else "tableCell",
                "attrs": {},
                "content": [
                    block for block in self._blocks(blocks)
                    if block["type"] in ("paragraph", "bulletList", "orderedList", "codeBlock", "mediaSingle", "heading")
                ] or [{"type": "paragraph", "content": []}],
            }
            if colspan > 1:
                node["attrs"]["colspan"] = colspan
            if rowspan > 1:
                node["attrs"]["rowspan"] = rowspan
            adf_cells.append(node)
        return {"type": "tableRow", "content": adf_cells}

    def _image(self, attr: List[Any], alt: List[Dict[str, Any]], target: List[str]) -> AdfNode:
        url = target[0]
        alt_text = "".join(node.get("text", "") for node in self._inlines(alt))
        if _is_remote(url):
            media: AdfNode = {"type": "media", "attrs": {"type": "external", "url": url}}
        else:
            media = {"type": "media", "attrs": {"type": "file", "url": f"file://{url}"}}
        if alt_text:
            media["attrs"]["alt"] = alt_text
        return {"type": "mediaSingle", "attrs": {"layout": "center"}, "content": [media]}

    # Inlines

    def _inlines(self, inlines: List[Dict[str, Any]], marks: Optional[List[Mark]] = None) -> List[AdfNode]:
        marks = marks or []
        nodes: List[AdfNode] = []
        for inline in inlines:
            nodes.extend(self._inline(inline, marks))
        return _merge_text_nodes(nodes)

    def _text(self, value: str, marks: List[Mark]) -> AdfNode:
        node: AdfNode = {"type": "text", "text": value}
        if marks:
            node["marks"] = [dict(mark) for mark in marks]
        return node

    def _inline(self, inline: Dict[str, Any], marks: List[Mark]) -> List[AdfNode]:
        kind = inline.get("t")
        content = inline.get("c")

        if kind == "Str":
            return [self._text(content, marks)]
        if kind in ("Space", "SoftBreak"):
            return [self._text(" ", marks)]
        if kind == "LineBreak":
            return [{"type": "hardBreak"}]
        if kind == "Emph":
            return self._inlines(content, marks + [{"type": "em"}])
        if kind == "Strong":
            return self._inlines(content, marks + [{"type": "strong"}])
        if kind == "Strikeout":
            return self._inlines(content, marks + [{"type": "strike"}])
        if kind == "Underline":
            return self._inlines(content, marks + [{"type": "underline"}])
        if kind == "Superscript":
            return self._inlines(content, marks + [{"type": "subsup", "attrs": {"type": "sup"}}])
        if kind == "Subscript":
            return self._inlines(content, marks + [{"type": "subsup", "attrs": {"type": "sub"}}])
        if kind in ("SmallCaps", "Span"):
            return self._inlines(content[-1], marks)
        if kind == "Quoted":
            quote_type, quoted = content
            quote = '"' if quote_type.get("t") == "DoubleQuote" else "'"
            return [self._text(quote, marks)] + self._inlines(quoted, marks) + [self._text(quote, marks)]
        if kind in ("Code", "Math"):
            value = content[1]
            # ADF only allows the link mark alongside code
            code_marks = [mark for mark in marks if mark["type"] == "link"] + [{"type": "code"}]
            return [self._text(value, code_marks)]
        if kind == "Link":
            _attr, text_inlines, (url, _title) = content
            return self._inlines(text_inlines, marks + [{"type": "link", "attrs": {"href": self._link_href(url)}}])
        if kind == "Image":
            # Images nested in links or other inlines keep their alt text only
            return self._inlines(content[1], marks)
        if kind == "RawInline":
            fmt, raw = content
            if fmt == "html" and re.fullmatch(r'<br\s*/?>', raw.strip()):
                return [{"type": "hardBreak"}]
            if fmt == "html" and raw.strip().startswith("<!--"):
                return []
            return [self._text(raw, marks)]
        if kind == "Note":
            return []

        logger.debug(f"Skipping unsupported Pandoc inline {kind}")
        return []

    def _link_href(self, url: str) -> str:
        if self.confluence_base_url and _is_remote(url):
            return clean_up_url_if_confluence(url, self.confluence_base_url)
        return url


def _first_heading(adf: AdfNode) -> Tuple[Optional[str], AdfNode]:
    """Find the first level-1 heading.

    Returns:
        Tuple of (heading text or None, document without that heading)
    """
    content = adf.get("content", [])
    for index, node in enumerate(content):
        if node.get("type") == "heading" and node.get("attrs", {}).get("level") == 1:
            title = "".join(child.get("text", "") for child in node.get("content", [])).strip()
            if not title:
                return None, adf
            remaining = dict(adf)
            remaining["content"] = content[:index] + content[index + 1:]
            return title, remaining
    return None, adf


def convert_markdown_file(
    markdown_file: MarkdownFile,
    settings: ConfluenceSettings,
    transformer: MarkdownTransformer,
) -> LocalAdfFile:
    """Convert a discovered markdown file into a publishable LocalAdfFile.

    Title precedence: frontmatter confluence_title, then the first level-1
    heading (when first_heading_page_title is set; the heading is then
    removed from the body), then the file stem.

    Raises:
        ConversionError: If Pandoc fails
        FrontmatterError: If the page config in frontmatter is invalid
    """
    config = parse_page_config(markdown_file.frontmatter, markdown_file.absolute_file_path)
    adf = transformer.to_adf(markdown_file.contents)

    title = config.title
    if not title and settings.first_heading_page_title:
        title, adf = _first_heading(adf)
    if not title:
        title = os.path.splitext(markdown_file.file_name)[0]

    return LocalAdfFile(
        folder_name=markdown_file.folder_name,
        absolute_file_path=markdown_file.absolute_file_path,
        file_name=markdown_file.file_name,
        contents=adf,
        page_title=title,
        frontmatter=markdown_file.frontmatter,
        tags=config.tags,
        page_id=config.page_id,
        dont_change_parent_page_id=config.dont_change_parent_page,
        content_type=config.content_type,
        blog_post_date=config.blog_post_date,
    )
