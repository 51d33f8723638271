"""
RSSVault Custom Exceptions
==========================

Custom exception hierarchy for RSSVault with error codes, context
information, and user-friendly error messages.

Feed errors also carry the fetch status they are recorded as when a
refresh fails, so the pipeline can downgrade any of them to a persisted
status/error-message pair on the Feed record.
"""

from typing import Optional, Dict, Any
from enum import Enum


class ErrorCode(str, Enum):
    """Error codes for categorizing exceptions."""

    # Configuration errors (C001-C099)
    CONFIG_INVALID = "C001"
    CONFIG_MISSING = "C002"

    # Database errors (D001-D099)
    DATABASE_CONNECTION = "D001"
    DATABASE_SCHEMA = "D002"
    DATABASE_TRANSACTION = "D004"
    DATABASE_ERROR = "D006"

    # Feed ingestion errors (F001-F099)
    FEED_INVALID_URL = "F001"
    FEED_FETCH_TIMEOUT = "F002"
    FEED_PARSE_ERROR = "F003"
    FEED_NETWORK_ERROR = "F004"
    FEED_HTTP_ERROR = "F005"
    FEED_NOT_FOUND = "F006"
    FEED_UNSUPPORTED_SCHEME = "F007"

    # Validation errors (V001-V099)
    VALIDATION_REQUIRED_FIELD = "V001"
    VALIDATION_INVALID_FORMAT = "V002"
    VALIDATION_OUT_OF_RANGE = "V003"

    # Resource management errors (R001-R099)
    DUPLICATE_RESOURCE = "R001"
    RESOURCE_NOT_FOUND = "R002"


class RSSVaultError(Exception):
    """Base exception for all RSSVault errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[ErrorCode] = None,
        context: Optional[Dict[str, Any]] = None,
        user_message: Optional[str] = None,
        recoverable: bool = False,
    ):
        """Initialize RSSVault error.

        Args:
            message: Technical error message for logging
            error_code: Categorized error code
            context: Additional context information
            user_message: User-friendly error message
            recoverable: Whether the error is recoverable
        """
        super().__init__(message)
        self.error_code = error_code
        self.context = context or {}
        self.user_message = user_message or message
        self.recoverable = recoverable

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code.value if self.error_code else None,
            "error_message": str(self),
            "user_message": self.user_message,
            "context": self.context,
            "recoverable": self.recoverable,
        }

    def __str__(self) -> str:
        """String representation with error code."""
        if self.error_code:
            return f"[{self.error_code.value}] {super().__str__()}"
        return super().__str__()


def _split_kwargs(kwargs: Dict[str, Any], *consumed: str) -> Dict[str, Any]:
    return {k: v for k, v in kwargs.items() if k not in consumed}


class ConfigurationError(RSSVaultError):
    """Configuration-related errors."""

    def __init__(self, message: str, config_key: Optional[str] = None, **kwargs):
        context = kwargs.get("context", {})
        if config_key:
            context["config_key"] = config_key

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.CONFIG_INVALID),
            context=context,
            user_message=kwargs.get("user_message", f"Configuration error: {message}"),
            **_split_kwargs(kwargs, "context", "error_code", "user_message"),
        )


class DatabaseError(RSSVaultError):
    """Database-related errors."""

    def __init__(self, message: str, query: Optional[str] = None, **kwargs):
        """Initialize database error.

        Args:
            message: Error message
            query: SQL query that caused the error
            **kwargs: Additional arguments for RSSVaultError
        """
        context = kwargs.get("context", {})
        if query:
            context["query"] = query

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.DATABASE_CONNECTION),
            context=context,
            user_message=kwargs.get("user_message", "Database operation failed"),
            recoverable=kwargs.get("recoverable", True),
            **_split_kwargs(kwargs, "context", "error_code", "user_message", "recoverable"),
        )


class ValidationError(RSSVaultError):
    """Data validation errors."""

    def __init__(self, message: str, field_name: Optional[str] = None, **kwargs):
        context = kwargs.get("context", {})
        if field_name:
            context["field_name"] = field_name

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.VALIDATION_INVALID_FORMAT),
            context=context,
            user_message=kwargs.get(
                "user_message", f"Invalid {field_name or 'input'}: {message}"
            ),
            recoverable=kwargs.get("recoverable", False),
            **_split_kwargs(kwargs, "context", "error_code", "user_message", "recoverable"),
        )


class FeedError(RSSVaultError):
    """Feed ingestion and parsing errors."""

    # Value of FetchStatus recorded on the feed when this error ends a refresh.
    fetch_status = "timeout"

    def __init__(self, message: str, feed_url: Optional[str] = None, **kwargs):
        """Initialize feed error.

        Args:
            message: Error message
            feed_url: Feed URL that caused the error
            **kwargs: Additional arguments for RSSVaultError
        """
        context = kwargs.get("context", {})
        if feed_url:
            context["feed_url"] = feed_url
        self.feed_url = feed_url

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.FEED_FETCH_TIMEOUT),
            context=context,
            user_message=kwargs.get("user_message", message),
            recoverable=kwargs.get("recoverable", True),
            **_split_kwargs(kwargs, "context", "error_code", "user_message", "recoverable"),
        )


class FeedFetchError(FeedError):
    """RSS feed fetching errors (catch-all for non-2xx responses)."""

    def __init__(self, message: str, feed_url: Optional[str] = None,
                 status_code: Optional[int] = None, **kwargs):
        self.status_code = status_code
        if status_code is not None:
            kwargs.setdefault("error_code", ErrorCode.FEED_HTTP_ERROR)
            context = kwargs.setdefault("context", {})
            context["status_code"] = status_code
        super().__init__(message, feed_url=feed_url, **kwargs)


class FeedNotFoundError(FeedFetchError):
    """Upstream answered with a 404-equivalent response."""

    fetch_status = "not_found"

    def __init__(self, feed_url: Optional[str] = None, **kwargs):
        kwargs.setdefault("error_code", ErrorCode.FEED_NOT_FOUND)
        kwargs.setdefault("user_message", "Feed not found (404)")
        super().__init__("Feed not found (404)", feed_url=feed_url, status_code=404, **kwargs)


class FeedTransportError(FeedFetchError):
    """Network-level failure with no HTTP status available."""

    fetch_status = "cors_error"

    def __init__(self, message: str, feed_url: Optional[str] = None, **kwargs):
        kwargs.setdefault("error_code", ErrorCode.FEED_NETWORK_ERROR)
        kwargs.setdefault("user_message", f"Network error: {message}")
        super().__init__(message, feed_url=feed_url, **kwargs)


class FeedTimeoutError(FeedFetchError):
    """The request did not complete in time."""

    fetch_status = "timeout"

    def __init__(self, message: str, feed_url: Optional[str] = None, **kwargs):
        kwargs.setdefault("error_code", ErrorCode.FEED_FETCH_TIMEOUT)
        super().__init__(message, feed_url=feed_url, **kwargs)


class MalformedFeedError(FeedError):
    """Document is not well-formed XML or has no channel/feed root."""

    fetch_status = "malformed_xml"

    def __init__(self, message: str = "Invalid RSS/Atom format",
                 feed_url: Optional[str] = None, **kwargs):
        kwargs.setdefault("error_code", ErrorCode.FEED_PARSE_ERROR)
        kwargs.setdefault("user_message", "Invalid RSS/Atom format")
        kwargs.setdefault("recoverable", False)
        super().__init__(message, feed_url=feed_url, **kwargs)


class FeedManagementError(RSSVaultError):
    """Feed management and lifecycle errors."""

    def __init__(self, message: str, feed_id: Optional[str] = None, **kwargs):
        """Initialize feed management error.

        Args:
            message: Error message
            feed_id: Feed ID that caused the error
            **kwargs: Additional arguments for RSSVaultError
        """
        context = kwargs.get("context", {})
        if feed_id:
            context["feed_id"] = feed_id

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.FEED_INVALID_URL),
            context=context,
            user_message=kwargs.get("user_message", "Feed management operation failed"),
            **_split_kwargs(kwargs, "context", "error_code", "user_message"),
        )


class UnsupportedSchemeError(FeedManagementError):
    """Feed URL does not use a secure transport."""

    def __init__(self, url: str, **kwargs):
        self.url = url
        context = kwargs.setdefault("context", {})
        context["feed_url"] = url
        super().__init__(
            f"Only HTTPS feeds are supported: {url}",
            error_code=ErrorCode.FEED_UNSUPPORTED_SCHEME,
            user_message="Only HTTPS feeds are supported",
            **kwargs,
        )


class FeedAlreadyExistsError(FeedManagementError):
    """A feed with the same identity is already subscribed."""

    def __init__(self, url: str, feed_id: str, **kwargs):
        self.url = url
        super().__init__(
            f"Feed already exists: {url}",
            feed_id=feed_id,
            error_code=ErrorCode.DUPLICATE_RESOURCE,
            user_message="Feed already exists",
            **kwargs,
        )


class ItemNotFoundError(RSSVaultError):
    """No stored item has the requested ID."""

    def __init__(self, item_id: str, **kwargs):
        self.item_id = item_id
        context = kwargs.setdefault("context", {})
        context["item_id"] = item_id
        super().__init__(
            f"Item not found: {item_id}",
            error_code=ErrorCode.RESOURCE_NOT_FOUND,
            user_message="Item not found",
            **kwargs,
        )


def get_user_friendly_message(exception: Exception) -> str:
    """Get user-friendly error message for any exception.

    Args:
        exception: Exception to get message for

    Returns:
        User-friendly error message
    """
    if isinstance(exception, RSSVaultError):
        return exception.user_message

    return str(exception) or "An unexpected error occurred. Please try again later."
