"""Small builders for ADF (Atlassian Document Format) JSON nodes.

ADF documents are handled as plain dicts/lists throughout the publisher, the
same shape the Confluence API accepts in body.atlas_doc_format.
"""

from typing import Any, Dict, List, Optional

AdfNode = Dict[str, Any]

MACRO_EXTENSION_TYPE = "com.atlassian.confluence.macro.core"


def doc(*content: AdfNode) -> AdfNode:
    """Create an ADF document root."""
    return {"type": "doc", "version": 1, "content": list(content)}


def text(value: str, marks: Optional[List[Dict[str, Any]]] = None) -> AdfNode:
    node: AdfNode = {"type": "text", "text": value}
    if marks:
        node["marks"] = marks
    return node


def p(*content: Any) -> AdfNode:
    """Create a paragraph; plain strings are wrapped in text nodes."""
    return {
        "type": "paragraph",
        "content": [text(item) if isinstance(item, str) else item for item in content],
    }


def macro(extension_key: str, params: Optional[Dict[str, str]] = None, title: Optional[str] = None) -> AdfNode:
    """Create a block macro extension node.

    Args:
        extension_key: Macro key (e.g. "children", "toc")
        params: Macro parameters as plain strings
        title: Optional macro title shown in the editor
    """
    parameters: Dict[str, Any] = {
        "macroParams": {key: {"value": value} for key, value in (params or {}).items()},
    }
    if title:
        parameters["macroMetadata"] = {
            "schemaVersion": {"value": "2"},
            "title": title,
        }
    return {
        "type": "extension",
        "attrs": {
            "layout": "default",
            "extensionType": MACRO_EXTENSION_TYPE,
            "extensionKey": extension_key,
            "parameters": parameters,
        },
    }


def children_macro_doc() -> AdfNode:
    """Body for synthesised folder pages: a Children Display macro."""
    return doc(macro("children", {"all": "true"}, title="Children Display"))


def blank_page_doc() -> AdfNode:
    """Body for freshly created pages that have not been published yet."""
    return doc(p("Page not published yet"))


def empty_doc() -> AdfNode:
    return doc(p())
