"""
OPML Import
===========

Bulk subscription from an OPML outline. Only ``outline`` elements with an
https ``xmlUrl`` are imported; each URL goes through the regular add-feed
path and failures are collected per URL.
"""

from dataclasses import dataclass, field
from typing import Dict, List

from bs4 import BeautifulSoup

from ..utils.exceptions import RSSVaultError, get_user_friendly_message
from ..utils.logging import get_logger_for_component
from ..utils.validators import URLValidator

logger = get_logger_for_component("opml")


@dataclass
class OpmlImportResult:
    """Outcome of an OPML import."""

    urls: List[str]
    added: list = field(default_factory=list)
    failures: Dict[str, str] = field(default_factory=dict)

    @property
    def added_count(self) -> int:
        return len(self.added)


def parse_opml(text: str) -> List[str]:
    """Extract https feed URLs from OPML text in document order."""
    if not text or not text.strip():
        return []

    # html.parser lowercases attribute names, so xmlUrl and xmlurl both land here
    soup = BeautifulSoup(text, "html.parser")

    urls = []
    for outline in soup.find_all("outline"):
        url = outline.get("xmlurl")
        if URLValidator.is_secure_url(url):
            urls.append(url)

    logger.debug(f"Found {len(urls)} https feed URLs in OPML")
    return urls


async def import_opml(pipeline, text: str) -> OpmlImportResult:
    """Add every https feed listed in an OPML document.

    Args:
        pipeline: IngestionPipeline used for each subscription
        text: OPML document text

    Returns:
        OpmlImportResult with added feeds and per-URL failure messages
    """
    result = OpmlImportResult(urls=parse_opml(text))

    for url in result.urls:
        try:
            result.added.append(await pipeline.add_feed(url))
        except RSSVaultError as e:
            logger.warning(f"OPML import skipped {url}: {e}")
            result.failures[url] = get_user_friendly_message(e)

    logger.info(
        f"OPML import finished: {result.added_count} added, {len(result.failures)} failed"
    )
    return result
