"""
Feed Parser
===========

RSS 2.0 / Atom / RDF parsing into normalized feed metadata and entries.

feedparser does the dialect work. Field extraction goes through the
declarative candidate tables below: each logical field lists source keys in
priority order and the first non-empty value wins.
"""

import calendar
import io
import xml.sax
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import feedparser
from bs4 import BeautifulSoup
from feedparser.exceptions import UndeclaredNamespace

from ..database.models import now_ms
from ..utils.exceptions import MalformedFeedError
from ..utils.logging import get_logger_for_component
from .fingerprint import item_id_for, content_hash_for
from .sanitizer import HtmlSanitizer


# Candidate source keys per entry field. "key[]" iterates a list and
# "a.b" descends into a nested mapping.
FIELD_CANDIDATES: Dict[str, Tuple[str, ...]] = {
    "title": ("title",),
    "link": ("link", "links[].href"),
    "published": ("published_parsed", "updated_parsed", "created_parsed"),
    "body": ("content[].value", "summary", "description"),
    "author": ("author", "dc_creator", "author_detail.name"),
}

FEED_FIELD_CANDIDATES: Dict[str, Tuple[str, ...]] = {
    "title": ("title",),
    "description": ("subtitle", "description", "tagline"),
}

DEFAULT_ENTRY_TITLE = "Untitled"
DEFAULT_FEED_TITLE = "Untitled Feed"


@dataclass
class FeedMeta:
    """Feed-level metadata."""

    title: str
    description: str = ""


@dataclass
class RawEntry:
    """A parsed entry, sanitized and fingerprinted but not yet accepted."""

    item_id: str
    title: str
    link: str
    published_at: int
    content: str
    content_hash: str
    author: Optional[str] = None


def _present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def _get(node: Any, key: str) -> Any:
    if node is None:
        return None
    if hasattr(node, "get"):
        return node.get(key)
    return getattr(node, key, None)


def _lookup(node: Any, segments: Sequence[str]) -> Any:
    if not segments:
        return node

    head, rest = segments[0], segments[1:]
    if head.endswith("[]"):
        for element in _get(node, head[:-2]) or []:
            value = _lookup(element, rest)
            if _present(value):
                return value
        return None

    return _lookup(_get(node, head), rest)


def resolve_field(source: Any, candidates: Sequence[str]) -> Any:
    """Return the first non-empty value among candidate paths, else None."""
    for path in candidates:
        value = _lookup(source, path.split("."))
        if _present(value):
            return value
    return None


class FeedParser:
    """Parser for RSS and Atom documents."""

    def __init__(self, sanitizer: Optional[HtmlSanitizer] = None):
        self.sanitizer = sanitizer or HtmlSanitizer()
        self.logger = get_logger_for_component("feed_parser")

    def parse(
        self, raw: Union[bytes, str], allow_images: bool = False
    ) -> Tuple[FeedMeta, List[RawEntry]]:
        """Parse a feed document.

        Args:
            raw: Feed document as fetched
            allow_images: Whether image/media tags survive sanitization

        Returns:
            Feed metadata and entries in document order

        Raises:
            MalformedFeedError: Document is not well-formed or not a feed
        """
        if isinstance(raw, str):
            raw = raw.encode("utf-8")

        # Wrapped in a stream so feedparser never treats the document as a URL or path
        parsed = feedparser.parse(io.BytesIO(raw), sanitize_html=False)

        if parsed.get("bozo"):
            exc = parsed.get("bozo_exception")
            if isinstance(exc, (xml.sax.SAXException, UndeclaredNamespace)):
                self.logger.warning(f"Feed is not well-formed XML: {exc}")
                raise MalformedFeedError(context={"parse_error": str(exc)})
            self.logger.debug(f"Feed parsed with warnings: {exc}")

        if not parsed.get("version"):
            self.logger.warning("Document has no RSS/Atom root element")
            raise MalformedFeedError(context={"parse_error": "no channel or feed element"})

        if parsed.version.startswith("rss") and not self._has_channel(raw):
            self.logger.warning(f"{parsed.version} document has no channel element")
            raise MalformedFeedError(context={"parse_error": "no channel element"})

        meta = self._parse_meta(parsed.feed)

        fetched_at = now_ms()
        entries = [
            self._parse_entry(entry, allow_images, fetched_at) for entry in parsed.entries
        ]

        self.logger.debug(
            f"Parsed {parsed.version} feed '{meta.title}' with {len(entries)} entries"
        )
        return meta, entries

    @staticmethod
    def _has_channel(raw: bytes) -> bool:
        # feedparser accepts items with no enclosing channel
        soup = BeautifulSoup(raw, "html.parser")
        return soup.find(lambda tag: tag.name.rsplit(":", 1)[-1] == "channel") is not None

    def _parse_meta(self, feed: Any) -> FeedMeta:
        title = resolve_field(feed, FEED_FIELD_CANDIDATES["title"])
        description = resolve_field(feed, FEED_FIELD_CANDIDATES["description"])
        return FeedMeta(
            title=title.strip() if title else DEFAULT_FEED_TITLE,
            description=description.strip() if description else "",
        )

    def _parse_entry(self, entry: Any, allow_images: bool, fetched_at: int) -> RawEntry:
        title = resolve_field(entry, FIELD_CANDIDATES["title"])
        title = title.strip() if title else DEFAULT_ENTRY_TITLE

        link = resolve_field(entry, FIELD_CANDIDATES["link"])
        link = link.strip() if link else ""

        raw_body = resolve_field(entry, FIELD_CANDIDATES["body"]) or ""
        author = resolve_field(entry, FIELD_CANDIDATES["author"])

        return RawEntry(
            item_id=item_id_for(link, title),
            title=title,
            link=link,
            published_at=self._parse_date(entry, fetched_at),
            content=self.sanitizer.sanitize(raw_body, allow_images),
            content_hash=content_hash_for(raw_body, link, title),
            author=author.strip() if author else None,
        )

    def _parse_date(self, entry: Any, default: int) -> int:
        """Publication time in epoch ms; default when missing or unparsable."""
        for field in FIELD_CANDIDATES["published"]:
            date_tuple = _get(entry, field)
            if not date_tuple:
                continue
            try:
                # feedparser normalizes parsed dates to UTC
                return calendar.timegm(date_tuple) * 1000
            except (TypeError, ValueError, OverflowError):
                continue

        return default
