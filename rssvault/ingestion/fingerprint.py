"""
Content Fingerprints
====================

SHA-256 fingerprints used as identities across the corpus:
- feed id: the feed URL
- item id: entry link + title
- content hash: the raw, pre-sanitized entry body
"""

import hashlib
from typing import Union


# Prefix for the content hash of entries without a body. It keeps that
# composition from colliding with the item id or with a real body.
_EMPTY_BODY_PREFIX = "\x1fempty-body\x1f"


def fingerprint(data: Union[bytes, str]) -> str:
    """Return the 64-character lowercase hex SHA-256 of data.

    Strings are UTF-8 encoded first.
    """
    if isinstance(data, str):
        data = data.encode("utf-8")
    return hashlib.sha256(data).hexdigest()


def feed_id_for(url: str) -> str:
    """Feed identity, a pure function of the exact URL string."""
    return fingerprint(url)


def item_id_for(link: str, title: str) -> str:
    """Item identity from link and title."""
    return fingerprint(link + title)


def content_hash_for(raw_body: str, link: str = "", title: str = "") -> str:
    """Fingerprint of the raw entry body.

    Entries with no body text hash a separator-prefixed link/title
    composition instead, so empty-bodied entries do not all share one hash.
    """
    if raw_body and raw_body.strip():
        return fingerprint(raw_body)
    return fingerprint(f"{_EMPTY_BODY_PREFIX}{link}\x1f{title}")
