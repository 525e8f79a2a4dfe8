"""
Block document parser and serializer.

Block documents use comment delimiters around HTML::

    <!-- wp:paragraph {"align":"center"} --><p>Text</p><!-- /wp:paragraph -->
    <!-- wp:image {"id":7} /-->

Names without a namespace live in ``core/``. HTML found between top-level
blocks becomes a name-less (freeform) block so that serialization reproduces
the input. Only the delimiters are tokenised here; the HTML between them is
left to the DOM-based walker.
"""

import json
import logging
import re
from typing import List, Dict, Any

from blocktrans.core.models import Block
from blocktrans.core.exceptions import InvalidBlockStructureError

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "core/"

DELIMITER_PATTERN = re.compile(
    r"<!--\s+(?P<closer>/)?wp:(?P<namespace>[a-z][a-z0-9_-]*/)?(?P<name>[a-z][a-z0-9_-]*)"
    r"\s+(?P<attrs>\{.*?\}\s+)?(?P<void>/)?-->",
    re.DOTALL
)


def parse_blocks(document: str) -> List[Block]:
    """
    Parse a block document into a list of top-level blocks.

    Args:
        document: Flat block document string

    Returns:
        Top-level blocks in document order (freeform HTML included)

    Raises:
        InvalidBlockStructureError: on stray, mismatched or unclosed delimiters
            and on attribute JSON that is not an object
    """
    if not document:
        return []

    output: List[Block] = []
    stack: List[Block] = []
    offset = 0

    def add_html(html: str) -> None:
        if stack:
            parent = stack[-1]
            parent.inner_content.append(html)
            parent.inner_html += html
        else:
            output.append(Block(name=None, inner_html=html))

    def add_block(block: Block) -> None:
        if stack:
            parent = stack[-1]
            parent.children.append(block)
            parent.inner_content.append(None)
        else:
            output.append(block)

    for match in DELIMITER_PATTERN.finditer(document):
        start, end = match.span()
        if start > offset:
            add_html(document[offset:start])
        offset = end

        name = (match.group("namespace") or DEFAULT_NAMESPACE) + match.group("name")
        is_closer = match.group("closer") is not None
        is_void = match.group("void") is not None

        if is_closer:
            if is_void or match.group("attrs"):
                raise InvalidBlockStructureError(f"Malformed closing delimiter for {name}")
            if not stack:
                raise InvalidBlockStructureError(
                    f"Closing delimiter for {name} has no opener",
                    details={"offset": start}
                )
            block = stack.pop()
            if block.name != name:
                raise InvalidBlockStructureError(
                    f"Closing delimiter for {name} does not match open block {block.name}",
                    details={"offset": start, "expected": block.name, "found": name}
                )
            add_block(block)
            continue

        attributes = _decode_attributes(match.group("attrs"), name)
        block = Block(name=name, inner_html="", attributes=attributes, children=[], inner_content=[])
        if is_void:
            add_block(block)
        else:
            stack.append(block)

    if stack:
        raise InvalidBlockStructureError(
            f"Block {stack[-1].name} is never closed",
            details={"open_blocks": [block.name for block in stack]}
        )

    if offset < len(document):
        add_html(document[offset:])

    logger.debug(f"Parsed {len(output)} top-level blocks")
    return output


def _decode_attributes(raw: str, name: str) -> Dict[str, Any]:
    if not raw:
        return {}
    try:
        attributes = json.loads(raw)
    except json.JSONDecodeError as e:
        raise InvalidBlockStructureError(
            f"Invalid attributes for {name}: {e}",
            details={"block": name, "attributes": raw.strip()}
        ) from e
    if not isinstance(attributes, dict):
        raise InvalidBlockStructureError(
            f"Attributes for {name} must be a JSON object",
            details={"block": name}
        )
    return attributes


def serialize_block_attributes(attributes: Dict[str, Any]) -> str:
    """Encode attributes as JSON that cannot terminate or break the comment."""
    encoded = json.dumps(attributes, ensure_ascii=False, separators=(",", ":"))
    encoded = encoded.replace("--", "\\u002d\\u002d")
    encoded = encoded.replace("<", "\\u003c")
    encoded = encoded.replace(">", "\\u003e")
    encoded = encoded.replace("&", "\\u0026")
    encoded = encoded.replace('\\"', "\\u0022")
    return encoded


def strip_core_namespace(name: str) -> str:
    if name.startswith(DEFAULT_NAMESPACE):
        return name[len(DEFAULT_NAMESPACE):]
    return name


def serialize_block(block: Block) -> str:
    """Serialize one block (and its children) back to delimited form."""
    content = ""
    child_index = 0
    for chunk in block.inner_content:
        if chunk is None:
            if child_index >= len(block.children):
                raise InvalidBlockStructureError(
                    f"Block {block.name} has more child slots than children"
                )
            content += serialize_block(block.children[child_index])
            child_index += 1
        else:
            content += chunk

    if block.name is None:
        return content

    name = strip_core_namespace(block.name)
    attributes = serialize_block_attributes(block.attributes) + " " if block.attributes else ""

    if not content:
        return f"<!-- wp:{name} {attributes}/-->"
    return f"<!-- wp:{name} {attributes}-->{content}<!-- /wp:{name} -->"


def serialize_blocks(blocks: List[Block]) -> str:
    """Serialize a list of top-level blocks into a block document."""
    return "".join(serialize_block(block) for block in blocks)
