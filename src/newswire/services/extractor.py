"""Pattern-based extraction of items from RSS and Atom documents.

Feeds in the wild are frequently not well-formed XML, so nothing here parses the
whole document. Each ``<item>``/``<entry>`` block is located with a pattern
search and every field is pulled out of the block on its own. A block that
cannot be turned into an item is dropped without affecting its neighbours.
"""

from __future__ import annotations

import html
import logging
import re
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from functools import lru_cache
from typing import Dict, Iterator, List, Optional

from bs4 import BeautifulSoup

from newswire.config import PER_SOURCE_LIMIT, SUMMARY_LENGTH, SourceConfig
from newswire.models import FeedItem

__all__ = [
    "build_item",
    "element_text",
    "extract_image",
    "extract_items",
    "extract_link",
    "iter_entry_blocks",
    "parse_published",
    "plain_text",
    "strip_markup",
]

logger = logging.getLogger(__name__)

_ENTRY_PATTERN = re.compile(
    r"<(item|entry)(?:\s[^>]*)?(?<!/)>(.*?)</\1\s*>", re.DOTALL | re.IGNORECASE
)
_CDATA_PATTERN = re.compile(r"<!\[CDATA\[(.*?)\]\]>", re.DOTALL)
_MEDIA_PATTERN = re.compile(
    r"<(media:thumbnail|media:content|enclosure)(\s[^>]*)?/?>", re.DOTALL | re.IGNORECASE
)
_LINK_TAG_PATTERN = re.compile(r"<link(\s[^>]*)?/?>", re.DOTALL | re.IGNORECASE)
_ATTRIBUTE_PATTERN = re.compile(r"""([\w:-]+)\s*=\s*(?:"([^"]*)"|'([^']*)')""")
_WHITESPACE_PATTERN = re.compile(r"\s+")

_DESCRIPTION_TAGS = ("description", "summary", "content:encoded", "content")
_DATE_TAGS = ("pubDate", "published", "updated", "dc:date")


@lru_cache(maxsize=None)
def _element_pattern(tag: str) -> re.Pattern[str]:
    """Return a pattern matching ``<tag>`` in either its CDATA or inline form.

    The CDATA alternative comes first so that it wins whenever both could match
    at the same position.
    """

    name = re.escape(tag)
    opening = rf"<{name}(?:\s[^>]*)?(?<!/)>"
    return re.compile(
        rf"{opening}\s*<!\[CDATA\[((?:(?!\]\]>).)*)\]\]>\s*</{name}\s*>|{opening}(.*?)</{name}\s*>",
        re.DOTALL | re.IGNORECASE,
    )


def _parse_attributes(raw: str | None) -> Dict[str, str]:
    attributes: Dict[str, str] = {}
    for name, double_quoted, single_quoted in _ATTRIBUTE_PATTERN.findall(raw or ""):
        attributes[name.lower()] = html.unescape(double_quoted or single_quoted).strip()
    return attributes


def _collapse(text: str) -> str:
    return _WHITESPACE_PATTERN.sub(" ", text).strip()


def iter_entry_blocks(payload: str) -> Iterator[str]:
    """Yield the inner markup of every ``<item>`` or ``<entry>`` in document order."""

    for match in _ENTRY_PATTERN.finditer(payload):
        yield match.group(2)


def element_text(block: str, tag: str) -> Optional[str]:
    """Return the raw text of the first ``tag`` element in ``block``.

    Inline content has CDATA sections unwrapped. Entities are decoded exactly
    once in both forms. ``None`` means the element is absent.
    """

    match = _element_pattern(tag).search(block)
    if match is None:
        return None
    if match.group(1) is not None:
        return html.unescape(match.group(1))
    inline = _CDATA_PATTERN.sub(r"\1", match.group(2))
    return html.unescape(inline)


def _first_text(block: str, tags) -> Optional[str]:
    for tag in tags:
        value = element_text(block, tag)
        if value is not None and value.strip():
            return value
    return None


def extract_link(block: str) -> Optional[str]:
    """Return the entry link from an RSS ``<link>`` body or an Atom ``href``."""

    text = element_text(block, "link")
    if text is not None and text.strip():
        return _collapse(text)

    for match in _LINK_TAG_PATTERN.finditer(block):
        attributes = _parse_attributes(match.group(1))
        href = attributes.get("href")
        if href and attributes.get("rel", "alternate").lower() == "alternate":
            return href
    return None


def extract_image(block: str) -> Optional[str]:
    """Return the first image reference in ``block``, if any.

    ``media:thumbnail``, ``media:content`` and ``enclosure`` are considered in
    document order. Media declared as something other than an image is skipped.
    """

    for match in _MEDIA_PATTERN.finditer(block):
        tag = match.group(1).lower()
        attributes = _parse_attributes(match.group(2))
        url = attributes.get("url")
        if not url:
            continue
        if tag == "media:thumbnail":
            return url
        media_type = attributes.get("type", "").lower()
        medium = attributes.get("medium", "").lower()
        if media_type and not media_type.startswith("image/"):
            continue
        if medium and medium != "image":
            continue
        return url
    return None


def plain_text(text: str | None) -> str:
    """Return ``text`` with markup tags removed and whitespace collapsed.

    ``text`` is expected to be entity-decoded already, so ampersands are kept
    literal while the tags are stripped.
    """

    if not text:
        return ""
    if "<" in text:
        text = BeautifulSoup(text.replace("&", "&amp;"), "lxml").get_text()
    return _collapse(text)


def strip_markup(text: str | None, max_length: int = SUMMARY_LENGTH) -> str:
    """Remove every markup tag from ``text`` and cut it to ``max_length`` characters.

    The cut is a hard character limit applied after the tags are gone; no
    ellipsis is appended.
    """

    return plain_text(text)[:max_length]


def parse_published(value: str | None) -> Optional[datetime]:
    """Parse an RFC 822 or ISO-8601 date string into an aware UTC ``datetime``."""

    if not value:
        return None
    value = value.strip()
    if not value:
        return None

    parsed: Optional[datetime]
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        parsed = None

    if parsed is None:
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            return None

    try:
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=UTC)
        return parsed.astimezone(UTC)
    except (OverflowError, ValueError):
        # Offsets pushing year 1 or year 9999 outside the datetime range.
        return None


def build_item(
    block: str,
    source: SourceConfig,
    *,
    now: datetime,
    summary_length: int = SUMMARY_LENGTH,
) -> Optional[FeedItem]:
    """Turn one entry block into a :class:`FeedItem`, or ``None`` when it is invalid."""

    title = plain_text(element_text(block, "title"))
    link = extract_link(block)
    if not title or not link:
        return None

    published_at = parse_published(_first_text(block, _DATE_TAGS)) or now

    return FeedItem(
        title=title,
        link=link,
        summary=strip_markup(_first_text(block, _DESCRIPTION_TAGS), max_length=summary_length),
        published_at=published_at,
        source_label=source.label,
        image_url=extract_image(block),
    )


def extract_items(
    payload: str,
    source: SourceConfig,
    *,
    limit: int = PER_SOURCE_LIMIT,
    summary_length: int = SUMMARY_LENGTH,
    now: datetime | None = None,
) -> List[FeedItem]:
    """Extract up to ``limit`` valid items from ``payload`` in document order."""

    timestamp = now or datetime.now(UTC)
    items: List[FeedItem] = []
    for block in iter_entry_blocks(payload):
        try:
            item = build_item(block, source, now=timestamp, summary_length=summary_length)
        except Exception as exc:  # noqa: BLE001 - a broken entry only drops itself
            logger.debug("Skipping malformed entry from %s: %s", source.label, exc)
            continue
        if item is None:
            continue
        items.append(item)
        if len(items) >= limit:
            break
    return items
