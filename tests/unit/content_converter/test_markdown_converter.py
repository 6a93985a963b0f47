"""Unit tests for content_converter.markdown_converter module.

Pandoc itself is not run: the mapping is exercised on hand-written Pandoc
JSON ASTs and subprocess calls are mocked.
"""

import json
import subprocess

import pytest
from unittest.mock import Mock, patch

from confluence_publisher.confluence_client.errors import ConversionError
from confluence_publisher.content_converter.markdown_converter import (
    MarkdownTransformer,
    clean_up_url_if_confluence,
    convert_markdown_file,
)
from confluence_publisher.file_mapper.errors import FrontmatterError
from confluence_publisher.file_mapper.models import MarkdownFile

BASE_URL = "https://example.atlassian.net"
NO_ATTR = ["", [], []]


def s(value):
    return {"t": "Str", "c": value}


SPACE = {"t": "Space"}


def para(*inlines):
    return {"t": "Para", "c": list(inlines)}


def ast(*blocks):
    return {"pandoc-api-version": [1, 23], "meta": {}, "blocks": list(blocks)}


@pytest.fixture
def converter():
    return MarkdownTransformer(BASE_URL, pandoc_path="pandoc")


class TestMarkdownTransformerSetup:
    """Test cases for Pandoc discovery and invocation."""

    @patch('confluence_publisher.content_converter.markdown_converter.shutil.which', return_value=None)
    def test_missing_pandoc_raises(self, mock_which):
        with pytest.raises(ConversionError, match="Pandoc not found"):
            MarkdownTransformer(BASE_URL)

    @patch('confluence_publisher.content_converter.markdown_converter.subprocess.run')
    def test_to_adf_runs_pandoc_gfm(self, mock_run, converter):
        mock_run.return_value = Mock(stdout=json.dumps(ast(para(s("Hello")))))

        result = converter.to_adf("Hello")

        assert result == {
            "type": "doc",
            "version": 1,
            "content": [{"type": "paragraph", "content": [{"type": "text", "text": "Hello"}]}],
        }
        args = mock_run.call_args[0][0]
        assert args == ["pandoc", "-f", "gfm", "-t", "json"]
        assert mock_run.call_args.kwargs["input"] == "Hello"

    @patch('confluence_publisher.content_converter.markdown_converter.subprocess.run')
    def test_empty_markdown_skips_pandoc(self, mock_run, converter):
        assert converter.to_adf("  \n") == {"type": "doc", "version": 1, "content": []}
        mock_run.assert_not_called()

    @patch('confluence_publisher.content_converter.markdown_converter.subprocess.run')
    def test_pandoc_failure_raises(self, mock_run, converter):
        mock_run.side_effect = subprocess.CalledProcessError(1, "pandoc", stderr="boom")

        with pytest.raises(ConversionError, match="boom"):
            converter.to_adf("text")

    @patch('confluence_publisher.content_converter.markdown_converter.subprocess.run')
    def test_pandoc_timeout_raises(self, mock_run, converter):
        mock_run.side_effect = subprocess.TimeoutExpired("pandoc", 30)

        with pytest.raises(ConversionError, match="timed out"):
            converter.to_adf("text")


class TestBlockMapping:
    """Test cases for block-level AST mapping."""

    def test_heading(self, converter):
        result = converter.ast_to_adf(ast({"t": "Header", "c": [2, NO_ATTR, [s("Setup"), SPACE, s("guide")]]}))

        assert result["content"] == [{
            "type": "heading",
            "attrs": {"level": 2},
            "content": [{"type": "text", "text": "Setup guide"}],
        }]

    def test_code_block_with_language(self, converter):
        block = {"t": "CodeBlock", "c": [["", ["python"], []], "print(1)"]}

        result = converter.ast_to_adf(ast(block))

        assert result["content"] == [{
            "type": "codeBlock",
            "attrs": {"language": "python"},
            "content": [{"type": "text", "text": "print(1)"}],
        }]

    def test_bullet_and_ordered_lists(self, converter):
        bullet = {"t": "BulletList", "c": [[{"t": "Plain", "c": [s("one")]}], [{"t": "Plain", "c": [s("two")]}]]}
        ordered = {"t": "OrderedList", "c": [[3, {"t": "Decimal"}, {"t": "Period"}], [[{"t": "Plain", "c": [s("three")]}]]]}

        result = converter.ast_to_adf(ast(bullet, ordered))

        assert result["content"][0]["type"] == "bulletList"
        assert [item["content"][0]["content"][0]["text"] for item in result["content"][0]["content"]] == ["one", "two"]
        assert result["content"][1]["type"] == "orderedList"
        assert result["content"][1]["attrs"] == {"order": 3}

    def test_horizontal_rule(self, converter):
        assert converter.ast_to_adf(ast({"t": "HorizontalRule"}))["content"] == [{"type": "rule"}]

    def test_plain_block_quote(self, converter):
        result = converter.ast_to_adf(ast({"t": "BlockQuote", "c": [para(s("quoted"))]}))

        assert result["content"][0]["type"] == "blockquote"
        assert result["content"][0]["content"][0]["content"][0]["text"] == "quoted"

    def test_callout_block_quote_becomes_panel(self, converter):
        quote = {"t": "BlockQuote", "c": [
            para(s("[!WARNING]"), SPACE, s("Careful")),
            para(s("Details")),
        ]}

        result = converter.ast_to_adf(ast(quote))
        panel = result["content"][0]

        assert panel["type"] == "panel"
        assert panel["attrs"] == {"panelType": "warning"}
        assert panel["content"][0]["content"] == [{"type": "text", "text": "Careful", "marks": [{"type": "strong"}]}]
        assert panel["content"][1]["content"][0]["text"] == "Details"

    def test_gfm_alert_div_becomes_panel(self, converter):
        div = {"t": "Div", "c": [["", ["note"], []], [
            {"t": "Div", "c": [["", ["title"], []], [para(s("Note"))]]},
            para(s("Remember")),
        ]]}

        result = converter.ast_to_adf(ast(div))

        assert result["content"] == [{
            "type": "panel",
            "attrs": {"panelType": "note"},
            "content": [{"type": "paragraph", "content": [{"type": "text", "text": "Remember"}]}],
        }]

    def test_table_with_header(self, converter):
        def cell(text, rowspan=1, colspan=1):
            return [NO_ATTR, {"t": "AlignDefault"}, rowspan, colspan, [{"t": "Plain", "c": [s(text)]}]]

        table = {"t": "Table", "c": [
            NO_ATTR,
            [None, []],
            [[{"t": "AlignDefault"}, {"t": "ColWidthDefault"}]] * 2,
            [NO_ATTR, [[NO_ATTR, [cell("Name"), cell("Value")]]]],
            [[NO_ATTR, 0, [], [[NO_ATTR, [cell("a", colspan=2)]]]]],
            [NO_ATTR, []],
        ]}

        result = converter.ast_to_adf(ast(table))
        rows = result["content"][0]["content"]

        assert result["content"][0]["type"] == "table"
        assert [c["type"] for c in rows[0]["content"]] == ["tableHeader", "tableHeader"]
        assert rows[1]["content"][0]["type"] == "tableCell"
        assert rows[1]["content"][0]["attrs"] == {"colspan": 2}

    def test_html_comment_is_dropped(self, converter):
        assert converter.ast_to_adf(ast({"t": "RawBlock", "c": ["html", "<!-- hidden -->"]}))["content"] == []


class TestInlineMapping:
    """Test cases for inline AST mapping."""

    def test_marks_nest(self, converter):
        inline = {"t": "Strong", "c": [{"t": "Emph", "c": [s("both")]}]}

        result = converter.ast_to_adf(ast(para(inline)))

        assert result["content"][0]["content"] == [
            {"type": "text", "text": "both", "marks": [{"type": "strong"}, {"type": "em"}]}
        ]

    def test_inline_code_keeps_only_link_mark(self, converter):
        inline = {"t": "Strong", "c": [{"t": "Code", "c": [NO_ATTR, "x = 1"]}]}

        result = converter.ast_to_adf(ast(para(inline)))

        assert result["content"][0]["content"] == [{"type": "text", "text": "x = 1", "marks": [{"type": "code"}]}]

    def test_line_break_becomes_hard_break(self, converter):
        result = converter.ast_to_adf(ast(para(s("a"), {"t": "LineBreak"}, s("b"))))

        assert [node["type"] for node in result["content"][0]["content"]] == ["text", "hardBreak", "text"]

    def test_relative_link_is_kept(self, converter):
        link = {"t": "Link", "c": [NO_ATTR, [s("Other")], ["other.md#intro", ""]]}

        result = converter.ast_to_adf(ast(para(link)))

        assert result["content"][0]["content"][0]["marks"] == [{"type": "link", "attrs": {"href": "other.md#intro"}}]

    def test_confluence_link_is_canonicalised(self, converter):
        url = f"{BASE_URL}/wiki/spaces/DOCS/pages/123/Some+Title"
        link = {"t": "Link", "c": [NO_ATTR, [s("Page")], [url, ""]]}

        result = converter.ast_to_adf(ast(para(link)))

        href = result["content"][0]["content"][0]["marks"][0]["attrs"]["href"]
        assert href == f"{BASE_URL}/wiki/spaces/DOCS/pages/123"

    def test_local_image_becomes_file_media(self, converter):
        image = {"t": "Image", "c": [NO_ATTR, [s("Diagram")], ["img/diagram.png", ""]]}

        result = converter.ast_to_adf(ast(para(s("Before"), image)))

        assert result["content"] == [
            {"type": "paragraph", "content": [{"type": "text", "text": "Before"}]},
            {
                "type": "mediaSingle",
                "attrs": {"layout": "center"},
                "content": [{"type": "media", "attrs": {"type": "file", "url": "file://img/diagram.png", "alt": "Diagram"}}],
            },
        ]

    def test_remote_image_becomes_external_media(self, converter):
        image = {"t": "Image", "c": [NO_ATTR, [], ["https://cdn.example.com/a.png", ""]]}

        result = converter.ast_to_adf(ast(para(image)))

        assert result["content"][0]["content"][0]["attrs"] == {"type": "external", "url": "https://cdn.example.com/a.png"}


class TestCleanUpUrlIfConfluence:
    """Test cases for clean_up_url_if_confluence()."""

    def test_strips_title_slug(self):
        url = f"{BASE_URL}/wiki/spaces/DOCS/pages/42/My+Page"
        assert clean_up_url_if_confluence(url, BASE_URL) == f"{BASE_URL}/wiki/spaces/DOCS/pages/42"

    def test_other_host_unchanged(self):
        url = "https://other.example.com/wiki/spaces/DOCS/pages/42/My+Page"
        assert clean_up_url_if_confluence(url, BASE_URL) == url

    def test_not_a_url(self):
        assert clean_up_url_if_confluence("not a url", BASE_URL) == "#"


class TestConvertMarkdownFile:
    """Test cases for convert_markdown_file()."""

    def markdown_file(self, contents, frontmatter=None):
        return MarkdownFile(
            folder_name="docs",
            absolute_file_path="/content/docs/guide.md",
            file_name="guide.md",
            contents=contents,
            page_title="guide",
            frontmatter=frontmatter or {},
        )

    def test_title_from_frontmatter(self, settings, transformer):
        result = convert_markdown_file(
            self.markdown_file("# Heading\nBody", {'confluence_title': "Explicit", 'tags': ["a"]}),
            settings,
            transformer,
        )

        assert result.page_title == "Explicit"
        assert result.tags == ["a"]
        assert result.contents["content"][0]["type"] == "heading"

    def test_title_from_first_heading_removes_heading(self, settings, transformer):
        settings.first_heading_page_title = True

        result = convert_markdown_file(self.markdown_file("# Heading\nBody"), settings, transformer)

        assert result.page_title == "Heading"
        assert [node["type"] for node in result.contents["content"]] == ["paragraph"]

    def test_title_from_file_stem(self, settings, transformer):
        result = convert_markdown_file(self.markdown_file("# Heading\nBody"), settings, transformer)

        assert result.page_title == "guide"
        assert len(result.contents["content"]) == 2

    def test_page_config_fields(self, settings, transformer):
        result = convert_markdown_file(
            self.markdown_file("Body", {
                'confluence_page_id': 77,
                'confluence_content_type': "blogpost",
                'confluence_dont_change_parent_page': True,
            }),
            settings,
            transformer,
        )

        assert result.page_id == "77"
        assert result.content_type == "blogpost"
        assert result.dont_change_parent_page_id is True

    def test_invalid_page_config_raises(self, settings, transformer):
        with pytest.raises(FrontmatterError):
            convert_markdown_file(
                self.markdown_file("Body", {'confluence_content_type': "nope"}),
                settings,
                transformer,
            )
