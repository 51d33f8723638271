"""
RSSVault Input Validators
=========================

Validation utilities for feed URLs and feed-level settings.
"""

from urllib.parse import urlparse
from typing import Optional

from .exceptions import ValidationError, UnsupportedSchemeError, ErrorCode


class URLValidator:
    """URL validation utilities."""

    # Feeds are only ever fetched over a secure transport
    SECURE_SCHEMES = {"https"}

    @classmethod
    def validate_feed_url(cls, url: str) -> str:
        """Validate a feed URL before any I/O happens.

        The URL is returned unchanged: a feed's identity is derived from the
        exact URL string, so no normalization is applied here.

        Args:
            url: URL to validate

        Returns:
            The same URL

        Raises:
            ValidationError: If URL is empty or has no hostname
            UnsupportedSchemeError: If URL scheme is not https
        """
        if not url or not isinstance(url, str):
            raise ValidationError(
                "URL is required and must be a string",
                error_code=ErrorCode.VALIDATION_REQUIRED_FIELD,
                field_name="url",
            )

        try:
            parsed = urlparse(url)
        except ValueError as e:
            raise ValidationError(
                f"Invalid URL format: {str(e)}",
                error_code=ErrorCode.VALIDATION_INVALID_FORMAT,
                field_name="url",
            ) from e

        if parsed.scheme.lower() not in cls.SECURE_SCHEMES:
            raise UnsupportedSchemeError(url)

        if not parsed.netloc:
            raise ValidationError(
                "URL must include a hostname",
                error_code=ErrorCode.VALIDATION_INVALID_FORMAT,
                field_name="url",
            )

        return url

    @classmethod
    def is_secure_url(cls, url: Optional[str]) -> bool:
        """Check if a URL uses a secure scheme, without raising."""
        if not url:
            return False
        try:
            return urlparse(url.strip()).scheme.lower() in cls.SECURE_SCHEMES
        except ValueError:
            return False


def validate_max_size_bytes(value: int) -> int:
    """Validate a per-feed storage budget."""
    if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
        raise ValidationError(
            f"Budget must be a positive number of bytes, got {value!r}",
            error_code=ErrorCode.VALIDATION_OUT_OF_RANGE,
            field_name="max_size_bytes",
        )
    return value
