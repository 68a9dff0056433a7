"""Markup scanner for extracting icon references from HTML"""

import logging
from collections import deque
from collections.abc import Iterable, Iterator
from html.parser import HTMLParser
from typing import NamedTuple

from bs4 import UnicodeDammit

from siteicons.constants import ELEMENT_RULES
from siteicons.models import CandidateReference

logger = logging.getLogger(__name__)

# Attribute list as reported by HTMLParser; valueless attributes carry None.
RawAttributes = list[tuple[str, str | None]]


class TagEvent(NamedTuple):
    """An opening or self-closing tag seen in the markup."""

    name: str
    attrs: RawAttributes
    self_closing: bool


class TagEventParser(HTMLParser):
    """Forgiving incremental parser that queues opening tags for the scanner to pull."""

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.events: deque[TagEvent] = deque()

    def handle_starttag(self, tag: str, attrs: RawAttributes) -> None:
        self.events.append(TagEvent(tag, attrs, self_closing=False))

    def handle_startendtag(self, tag: str, attrs: RawAttributes) -> None:
        self.events.append(TagEvent(tag, attrs, self_closing=True))

    def parse_marked_section(self, i: int, report: int = 1) -> int:
        """Parse `<![...]]>`, treating sections the base parser rejects as bogus comments."""
        try:
            return super().parse_marked_section(i, report)
        except AssertionError as e:
            logger.warning(f"Skipping malformed marked section: {e}")
            return self.parse_bogus_comment(i, report=0)


def decode_markup(content: bytes, declared_encoding: str | None = None) -> str:
    """Decode a raw page body, honouring the declared charset, BOM or `<meta charset>`."""
    known = [declared_encoding] if declared_encoding else []
    dammit = UnicodeDammit(content, known_definite_encodings=known, is_html=True)
    if dammit.unicode_markup is None:
        logger.debug("Could not detect page encoding, decoding as UTF-8")
        return content.decode("utf-8", errors="replace")
    return str(dammit.unicode_markup)


def iter_tag_events(chunks: Iterable[str]) -> Iterator[TagEvent]:
    """Yield tag events as soon as each chunk of markup has been parsed."""
    parser = TagEventParser()
    for chunk in chunks:
        parser.feed(chunk)
        while parser.events:
            yield parser.events.popleft()
    parser.close()
    while parser.events:
        yield parser.events.popleft()


def build_attribute_map(attrs: RawAttributes) -> dict[str, str]:
    """Map lowercased attribute names to raw values, skipping unusable attributes."""
    attribute_map: dict[str, str] = {}
    for attr in attrs:
        try:
            name, value = attr
            if not isinstance(name, str) or not isinstance(value, str):
                continue
            attribute_map[name.lower()] = value
        except (TypeError, ValueError) as e:
            logger.debug(f"Skipping malformed attribute {attr!r}: {e}")
    return attribute_map


def normalize_keyword(value: str) -> str:
    """Lowercase and collapse whitespace so `" Shortcut  ICON "` matches `shortcut icon`."""
    return " ".join(value.split()).lower()


def inspect_element(event: TagEvent) -> list[CandidateReference]:
    """Apply the icon rules for the element's name and return what they emit."""
    element = event.name.lower()
    rules = ELEMENT_RULES.get(element)
    if not rules:
        return []

    attribute_map = build_attribute_map(event.attrs)
    candidates = []
    for rule in rules:
        keyword = attribute_map.get(rule.match_attribute)
        value = attribute_map.get(rule.value_attribute)
        if keyword is None or value is None:
            continue
        keyword = normalize_keyword(keyword)
        if keyword in rule.keywords and value.strip():
            candidates.append(CandidateReference(value=value, element=element, key=keyword))
    return candidates


def scan_markup(markup: str | bytes | Iterable[str]) -> Iterator[CandidateReference]:
    """Lazily yield icon references found in `<link>` and `<meta>` elements.

    Accepts the page as text, as raw bytes (decoded with `UnicodeDammit`), or as an
    iterable of text chunks that is consumed incrementally. An element that cannot be
    inspected is logged and skipped without ending the scan.
    """
    chunks: Iterable[str]
    if isinstance(markup, bytes):
        chunks = (decode_markup(markup),)
    elif isinstance(markup, str):
        chunks = (markup,)
    else:
        chunks = markup

    for event in iter_tag_events(chunks):
        try:
            candidates = inspect_element(event)
        except Exception as e:
            logger.warning(f"Skipping malformed <{event.name}> element: {e}")
            continue
        yield from candidates
