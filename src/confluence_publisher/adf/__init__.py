"""ADF (Atlassian Document Format) helpers: builders, traversal and equality."""

from .builders import (
    blank_page_doc,
    children_macro_doc,
    doc,
    empty_doc,
    macro,
    p,
    text,
)
from .equality import adf_equal, is_equal, order_marks, sort_deep
from .traverse import ANY, filter_nodes, traverse

__all__ = [
    'blank_page_doc',
    'children_macro_doc',
    'doc',
    'empty_doc',
    'macro',
    'p',
    'text',
    'adf_equal',
    'is_equal',
    'order_marks',
    'sort_deep',
    'ANY',
    'filter_nodes',
    'traverse',
]
