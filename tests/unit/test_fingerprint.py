"""
Unit Tests for Content Fingerprints
===================================

Determinism and distinctness of feed ids, item ids and content hashes.
"""

import hashlib
import random
import string

import pytest

from rssvault.ingestion.fingerprint import (
    fingerprint,
    feed_id_for,
    item_id_for,
    content_hash_for,
)


def _random_text(rng: random.Random, max_length: int = 200) -> str:
    alphabet = string.printable + "äöüßéñ漢字🙂"
    return "".join(rng.choice(alphabet) for _ in range(rng.randint(0, max_length)))


class TestFingerprint:
    """Test cases for the SHA-256 fingerprint."""

    def test_known_value(self):
        assert fingerprint("abc") == (
            "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
        )

    def test_format_is_lowercase_hex(self):
        digest = fingerprint("https://example.com/feed.xml")
        assert len(digest) == 64
        assert digest == digest.lower()
        assert set(digest) <= set("0123456789abcdef")

    def test_str_and_utf8_bytes_agree(self):
        text = "Ünïcødé title"
        assert fingerprint(text) == fingerprint(text.encode("utf-8"))

    @pytest.mark.parametrize("seed", range(25))
    def test_deterministic_for_random_inputs(self, seed):
        rng = random.Random(seed)
        text = _random_text(rng)
        assert fingerprint(text) == fingerprint(text)
        assert fingerprint(text) == hashlib.sha256(text.encode("utf-8")).hexdigest()

    @pytest.mark.parametrize("seed", range(25))
    def test_distinct_inputs_have_distinct_fingerprints(self, seed):
        rng = random.Random(1000 + seed)
        first = _random_text(rng)
        second = first + rng.choice(string.ascii_letters)
        assert fingerprint(first) != fingerprint(second)


class TestIdentityHelpers:
    """Test cases for the feed/item/content identity compositions."""

    def test_feed_id_is_function_of_exact_url(self):
        url = "https://example.com/feed.xml"
        assert feed_id_for(url) == fingerprint(url)
        assert feed_id_for(url) != feed_id_for(url + "/")

    def test_item_id_concatenates_link_and_title(self):
        assert item_id_for("https://e.com/a", "Title") == fingerprint("https://e.com/aTitle")

    def test_content_hash_uses_raw_body(self):
        body = "<p>raw body</p>"
        assert content_hash_for(body, "https://e.com/a", "T") == fingerprint(body)

    def test_content_hash_ignores_link_and_title_when_body_present(self):
        body = "<p>shared body</p>"
        assert content_hash_for(body, "https://a.com/1", "A") == content_hash_for(
            body, "https://b.com/2", "B"
        )

    def test_empty_bodies_do_not_share_a_hash(self):
        first = content_hash_for("", "https://e.com/1", "One")
        second = content_hash_for("   ", "https://e.com/2", "Two")
        assert first != second

    def test_empty_body_hash_differs_from_item_id(self):
        link, title = "https://e.com/1", "One"
        assert content_hash_for("", link, title) != item_id_for(link, title)
