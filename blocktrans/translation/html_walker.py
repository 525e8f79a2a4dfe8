"""
HTML text-node walker.

Parses an HTML fragment into a DOM, visits the human-readable text nodes in
document order, translates them one by one and writes the translations back
in place. Tags, attributes and nesting are never touched except for ``alt``
text, which is translated like a text node.
"""

from __future__ import annotations
import html
import logging
import re
from typing import Callable, List, Optional

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.builder import ParserRejectedMarkup
from bs4.dammit import EntitySubstitution
from bs4.element import PreformattedString
from bs4.formatter import HTMLFormatter

from blocktrans.core.models import ChangeLogEntry
from blocktrans.core.exceptions import HtmlParseError

logger = logging.getLogger(__name__)

# (text, language, provider) -> translated text
TranslateFn = Callable[[str, str, Optional[str]], str]

NUMERIC_PATTERN = re.compile(r"[\s\d.,:;/+\-%()]+")
URL_PATTERN = re.compile(
    r"(?:(?:https?|ftp|file)://|www\.)[-A-Za-z0-9+&@#/%?=~_|!:,.;]*[-A-Za-z0-9+&@#/%=~_|]"
)
EMAIL_PATTERN = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")

SKIPPED_PARENTS = {"script", "style", "template", "noscript"}
TRANSLATABLE_TAG_ATTRIBUTES = ("alt",)


def is_skippable_text(text: str) -> bool:
    """
    True when a text value should not be sent to a translator.

    Skips text that is empty after entity decoding and trimming, purely
    numeric text, a bare URL or a bare e-mail address.
    """
    decoded = html.unescape(text or "").strip()
    if not decoded:
        return True
    if NUMERIC_PATTERN.fullmatch(decoded) and any(ch.isdigit() for ch in decoded):
        return True
    if URL_PATTERN.fullmatch(decoded):
        return True
    if EMAIL_PATTERN.fullmatch(decoded):
        return True
    return False


# Written bare when empty, as in ``<input disabled>``; other empty values stay ``alt=""``
BOOLEAN_ATTRIBUTES = frozenset({
    "allowfullscreen", "async", "autofocus", "autoplay", "checked", "controls",
    "default", "defer", "disabled", "formnovalidate", "hidden", "inert", "ismap",
    "itemscope", "loop", "multiple", "muted", "nomodule", "novalidate", "open",
    "playsinline", "readonly", "required", "reversed", "selected",
})


class FragmentFormatter(HTMLFormatter):
    """Keeps attribute order and boolean attributes, writes void tags as ``<br>`` and keeps ``&nbsp;``."""

    def __init__(self):
        super().__init__(
            entity_substitution=_substitute_entities,
            void_element_close_prefix=None,
            empty_attributes_are_booleans=True
        )

    def attributes(self, tag):
        if tag.attrs is None:
            return []
        return [
            (key, None if value == "" and key in BOOLEAN_ATTRIBUTES else value)
            for key, value in tag.attrs.items()
        ]


def _substitute_entities(value: str) -> str:
    return EntitySubstitution.substitute_xml(value).replace("\xa0", "&nbsp;")


FORMATTER = FragmentFormatter()


class HtmlTextWalker:
    """Translates the text nodes of HTML fragments in place."""

    def __init__(self, translate_alt: bool = True):
        self.translate_alt = translate_alt

    def translate_text_nodes(
        self,
        fragment: str,
        language: str,
        provider: Optional[str],
        change_log: List[ChangeLogEntry],
        block_type: Optional[str],
        translate_fn: TranslateFn
    ) -> str:
        """
        Translate every human-readable text node of ``fragment``.

        Args:
            fragment: HTML fragment (may be partial or empty)
            language: Language to translate into
            provider: Provider key passed through to ``translate_fn``
            change_log: Entries are appended here in document order
            block_type: Block name recorded with each entry
            translate_fn: Performs one translation call

        Returns:
            The fragment with translated text, byte-identical when nothing
            was translated

        Raises:
            HtmlParseError: the fragment cannot be parsed
            BlockTransError: the first translator failure, unchanged
        """
        if not fragment or not fragment.strip():
            return fragment

        try:
            soup = BeautifulSoup(fragment, "html.parser")
        except ParserRejectedMarkup as e:
            raise HtmlParseError(f"Failed to parse HTML: {e}", details={"block_type": block_type}) from e

        changed = False
        for node in list(soup.descendants):
            if isinstance(node, Tag):
                if self.translate_alt:
                    changed |= self._translate_tag_attributes(
                        node, language, provider, change_log, block_type, translate_fn
                    )
            elif isinstance(node, NavigableString):
                changed |= self._translate_string(
                    node, language, provider, change_log, block_type, translate_fn
                )

        if not changed:
            return fragment
        return soup.decode(formatter=FORMATTER)

    def _translate_string(self, node, language, provider, change_log, block_type, translate_fn) -> bool:
        if isinstance(node, PreformattedString):
            # Comments, CDATA, doctypes, declarations
            return False
        if node.parent is not None and node.parent.name in SKIPPED_PARENTS:
            return False

        text = str(node)
        if is_skippable_text(text):
            return False

        core = text.strip()
        leading = text[:len(text) - len(text.lstrip())]
        trailing = text[len(text.rstrip()):]

        translated = translate_fn(core, language, provider)
        node.replace_with(NavigableString(f"{leading}{translated}{trailing}"))
        change_log.append(ChangeLogEntry(original=core, translated=translated, block_type=block_type))
        return True

    def _translate_tag_attributes(self, tag, language, provider, change_log, block_type, translate_fn) -> bool:
        changed = False
        for attribute in TRANSLATABLE_TAG_ATTRIBUTES:
            value = tag.get(attribute)
            if not isinstance(value, str) or is_skippable_text(value):
                continue
            translated = translate_fn(value.strip(), language, provider)
            tag[attribute] = translated
            change_log.append(ChangeLogEntry(
                original=value.strip(),
                translated=translated,
                block_type=block_type,
                attribute=attribute
            ))
            changed = True
        return changed
