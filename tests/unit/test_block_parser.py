"""Unit tests for the block document parser and serializer."""

import json

import pytest

from blocktrans.core.models import Block
from blocktrans.core.block_parser import (
    parse_blocks, serialize_blocks, serialize_block, serialize_block_attributes, strip_core_namespace
)
from blocktrans.core.exceptions import InvalidBlockStructureError


def test_parse_single_block():
    """A delimited paragraph becomes one core block with its attributes."""
    doc = '<!-- wp:paragraph {"align":"center"} -->\n<p>Hi</p>\n<!-- /wp:paragraph -->'
    blocks = parse_blocks(doc)

    assert len(blocks) == 1
    block = blocks[0]
    assert block.name == "core/paragraph"
    assert block.attributes == {"align": "center"}
    assert block.inner_html == "\n<p>Hi</p>\n"
    assert block.inner_content == ["\n<p>Hi</p>\n"]
    assert block.children == []


def test_round_trip_single_block():
    doc = '<!-- wp:paragraph {"align":"center"} -->\n<p>Hi</p>\n<!-- /wp:paragraph -->'
    assert serialize_blocks(parse_blocks(doc)) == doc


def test_parse_nested_blocks():
    """Children leave a None slot in the parent's inner content."""
    doc = (
        '<!-- wp:quote -->\n<blockquote class="wp-block-quote">'
        '<!-- wp:paragraph -->\n<p>A</p>\n<!-- /wp:paragraph -->'
        '<cite>B</cite></blockquote>\n<!-- /wp:quote -->'
    )
    blocks = parse_blocks(doc)

    assert len(blocks) == 1
    quote = blocks[0]
    assert quote.name == "core/quote"
    assert quote.inner_content == ['\n<blockquote class="wp-block-quote">', None, '<cite>B</cite></blockquote>\n']
    assert quote.inner_html == '\n<blockquote class="wp-block-quote"><cite>B</cite></blockquote>\n'
    assert len(quote.children) == 1
    assert quote.children[0].name == "core/paragraph"
    assert quote.children[0].inner_html == "\n<p>A</p>\n"
    assert serialize_blocks(blocks) == doc


def test_freeform_html_and_void_blocks():
    """HTML outside any block is kept as a name-less block."""
    doc = '<p>classic</p>\n\n<!-- wp:separator /-->'
    blocks = parse_blocks(doc)

    assert [b.name for b in blocks] == [None, "core/separator"]
    assert blocks[0].inner_html == "<p>classic</p>\n\n"
    assert blocks[1].inner_content == []
    assert serialize_blocks(blocks) == doc


def test_void_block_with_attributes():
    doc = '<!-- wp:image {"id":7,"sizeSlug":"large"} /-->'
    blocks = parse_blocks(doc)

    assert blocks[0].attributes == {"id": 7, "sizeSlug": "large"}
    assert serialize_blocks(blocks) == doc


def test_namespaced_block_keeps_namespace():
    doc = '<!-- wp:my-plugin/card --><div>x</div><!-- /wp:my-plugin/card -->'
    blocks = parse_blocks(doc)

    assert blocks[0].name == "my-plugin/card"
    assert serialize_blocks(blocks) == doc


def test_empty_document():
    assert parse_blocks("") == []
    assert serialize_blocks([]) == ""


def test_whitespace_between_blocks_is_preserved():
    doc = (
        '<!-- wp:heading --><h2>T</h2><!-- /wp:heading -->\n\n'
        '<!-- wp:paragraph --><p>P</p><!-- /wp:paragraph -->'
    )
    blocks = parse_blocks(doc)

    assert [b.name for b in blocks] == ["core/heading", None, "core/paragraph"]
    assert serialize_blocks(blocks) == doc


class TestMalformedDocuments:
    """Broken delimiters are reported, never repaired."""

    def test_stray_closer(self):
        with pytest.raises(InvalidBlockStructureError):
            parse_blocks('<p>x</p><!-- /wp:paragraph -->')

    def test_mismatched_closer(self):
        with pytest.raises(InvalidBlockStructureError) as exc_info:
            parse_blocks('<!-- wp:quote --><p>x</p><!-- /wp:paragraph -->')
        assert exc_info.value.details["expected"] == "core/quote"

    def test_unclosed_block(self):
        with pytest.raises(InvalidBlockStructureError):
            parse_blocks('<!-- wp:group --><div>x</div>')

    def test_attributes_not_an_object(self):
        with pytest.raises(InvalidBlockStructureError):
            parse_blocks('<!-- wp:paragraph {"a":} --><p>x</p><!-- /wp:paragraph -->')


class TestAttributeEncoding:
    """Attribute JSON must not be able to end the surrounding comment."""

    def test_markup_and_dashes_are_escaped(self):
        encoded = serialize_block_attributes({"content": "<b>a</b> & --"})
        assert encoded == '{"content":"\\u003cb\\u003ea\\u003c/b\\u003e \\u0026 \\u002d\\u002d"}'
        assert json.loads(encoded) == {"content": "<b>a</b> & --"}

    def test_quotes_are_escaped(self):
        encoded = serialize_block_attributes({"t": 'say "hi"'})
        assert encoded == '{"t":"say \\u0022hi\\u0022"}'

    def test_non_ascii_kept_readable(self):
        assert serialize_block_attributes({"alt": "猫"}) == '{"alt":"猫"}'

    def test_escaped_attributes_parse_back(self):
        block = Block(name="core/paragraph", inner_html="<p>x</p>", attributes={"content": "a --> b"})
        doc = serialize_block(block)

        assert "-->" not in doc[len("<!-- wp:paragraph "):doc.index("<p>") - len(" -->")]
        assert parse_blocks(doc)[0].attributes == {"content": "a --> b"}


def test_strip_core_namespace():
    assert strip_core_namespace("core/paragraph") == "paragraph"
    assert strip_core_namespace("acme/widget") == "acme/widget"


def test_serialize_rejects_extra_slots():
    block = Block(name="core/group", inner_html="<div></div>", inner_content=["<div>", None, "</div>"])
    with pytest.raises(InvalidBlockStructureError):
        serialize_block(block)
