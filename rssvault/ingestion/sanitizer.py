"""
HTML Sanitizer
==============

Allowlist-based cleaning of untrusted entry HTML before it is stored.

This module provides:
- Removal of script vectors together with their content
- Unwrapping of tags outside the allowlist (text is kept)
- Attribute and URL scheme filtering
- Presentation rewrites for images, embeds and external links

Output is stable under repeated sanitization.
"""

import re
from typing import Optional

from bs4 import BeautifulSoup, Comment
from bs4.element import CData, ProcessingInstruction, Doctype, Declaration

from ..utils.logging import get_logger_for_component


class HtmlSanitizer:
    """HTML sanitizer with an image-gated allowlist."""

    BASE_TAGS = frozenset({
        "p", "br", "strong", "em", "b", "i", "u", "a", "ul", "ol", "li",
        "blockquote", "code", "pre", "h1", "h2", "h3", "h4", "h5", "h6",
        "div", "span",
    })
    BASE_ATTRIBUTES = frozenset({"href", "target", "rel", "title", "class"})

    # Only allowed when the feed has images enabled
    IMAGE_TAGS = frozenset({"img", "figure", "figcaption", "video", "iframe"})
    IMAGE_ATTRIBUTES = frozenset({"src", "alt", "width", "height", "loading"})

    # HTML elements to completely remove (including content)
    DANGEROUS_ELEMENTS = frozenset({
        "script", "style", "noscript", "object", "embed", "applet", "form",
        "input", "button", "select", "textarea", "meta", "link", "base",
        "template", "svg", "math",
    })

    URL_ATTRIBUTES = frozenset({"href", "src"})
    SAFE_SCHEMES = frozenset({"http", "https", "mailto"})

    IMG_CLASS = "max-w-full h-auto mx-auto"
    IFRAME_CLASS = "w-full aspect-video"
    EXTERNAL_REL = "noopener noreferrer"

    # Whitespace and control characters are ignored by browsers inside schemes
    _IGNORED_URL_CHARS = re.compile(r"[\x00-\x20\x7f-\x9f]+")
    _SCHEME_PATTERN = re.compile(r"^([a-z][a-z0-9+.\-]*):")

    _NON_CONTENT_TYPES = (Comment, CData, ProcessingInstruction, Doctype, Declaration)

    def __init__(self):
        self.logger = get_logger_for_component("sanitizer")
        self.parser = "html.parser"

    def sanitize(self, raw_html: Optional[str], allow_images: bool = False) -> str:
        """Clean untrusted HTML.

        Args:
            raw_html: Raw HTML fragment from a feed entry
            allow_images: Whether image/media tags and attributes are kept

        Returns:
            Sanitized HTML fragment, "" for empty input
        """
        if not raw_html or not raw_html.strip():
            return ""

        soup = BeautifulSoup(raw_html, self.parser)

        self._remove_dangerous_elements(soup, allow_images)
        self._remove_non_content_elements(soup)

        allowed_tags = self.BASE_TAGS | self.IMAGE_TAGS if allow_images else self.BASE_TAGS
        allowed_attrs = (
            self.BASE_ATTRIBUTES | self.IMAGE_ATTRIBUTES if allow_images else self.BASE_ATTRIBUTES
        )

        for element in soup.find_all(True):
            if element.name not in allowed_tags:
                element.unwrap()
                continue

            self._clean_attributes(element, allowed_attrs)
            self._apply_rewrites(element)

        cleaned = soup.decode(formatter="minimal")
        if not cleaned.strip():
            return ""

        self.logger.debug(f"Sanitized HTML: {len(raw_html)} -> {len(cleaned)} chars")
        return cleaned

    def _remove_dangerous_elements(self, soup: BeautifulSoup, allow_images: bool) -> None:
        """Remove dangerous HTML elements completely."""
        doomed = set(self.DANGEROUS_ELEMENTS)
        if not allow_images:
            doomed.add("iframe")

        for element in soup.find_all(list(doomed)):
            if not element.decomposed:
                element.decompose()

        # Embed fallback content is dropped; some parsers read it as raw text
        for element in soup.find_all("iframe"):
            element.clear(decompose=True)

    def _remove_non_content_elements(self, soup: BeautifulSoup) -> None:
        """Remove comments, CDATA, processing instructions and doctypes."""
        for node in soup.find_all(string=lambda s: isinstance(s, self._NON_CONTENT_TYPES)):
            node.extract()

    def _clean_attributes(self, element, allowed_attrs: frozenset) -> None:
        for attr_name in list(element.attrs):
            if attr_name not in allowed_attrs or attr_name.startswith("on"):
                del element[attr_name]
            elif attr_name in self.URL_ATTRIBUTES and not self.is_safe_url(element[attr_name]):
                del element[attr_name]

    def _apply_rewrites(self, element) -> None:
        if element.name == "img":
            element["class"] = self.IMG_CLASS
            element["loading"] = "lazy"
        elif element.name == "iframe":
            element["class"] = self.IFRAME_CLASS
        elif element.name == "a" and element.get("target") == "_blank":
            element["rel"] = self.EXTERNAL_REL

    @classmethod
    def is_safe_url(cls, value) -> bool:
        """Check that a URL is relative or uses an allowed scheme."""
        if isinstance(value, list):
            value = " ".join(value)
        compact = cls._IGNORED_URL_CHARS.sub("", value or "").lower()
        match = cls._SCHEME_PATTERN.match(compact)
        if not match:
            return True
        return match.group(1) in cls.SAFE_SCHEMES


_default_sanitizer: Optional[HtmlSanitizer] = None


def sanitize_html(raw_html: Optional[str], allow_images: bool = False) -> str:
    """Sanitize with a shared HtmlSanitizer instance."""
    global _default_sanitizer

    if _default_sanitizer is None:
        _default_sanitizer = HtmlSanitizer()

    return _default_sanitizer.sanitize(raw_html, allow_images)
