"""
RSSVault Data Models
====================

Pydantic data models for feeds and items. These models correspond to the
database schema and provide validation, serialization, and type hints.

Timestamps are stored as integer epoch milliseconds.
"""

import time
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ..config.settings import DEFAULT_MAX_SIZE_BYTES


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


class FetchStatus(str, Enum):
    """Last observed outcome of a feed fetch."""
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    MALFORMED_XML = "malformed_xml"
    CORS_ERROR = "cors_error"
    TIMEOUT = "timeout"


class FeedSettings(BaseModel):
    """Per-feed ingestion settings."""
    fetch_images: bool = Field(default=False, description="Allow image/media tags in item content")
    max_size_bytes: int = Field(default=DEFAULT_MAX_SIZE_BYTES, gt=0, description="Storage budget for this feed")


class Feed(BaseModel):
    """Subscribed feed source model."""
    id: str = Field(..., min_length=1, description="Fingerprint of the feed URL")
    url: str = Field(..., min_length=1, description="Feed URL")
    title: str = Field(default="Untitled Feed", description="Feed title")
    description: str = Field(default="", description="Feed description")
    last_fetched_at: int = Field(default_factory=now_ms, description="Last fetch attempt (epoch ms)")
    last_fetch_status: FetchStatus = Field(default=FetchStatus.SUCCESS, description="Outcome of the last fetch")
    last_fetch_error: Optional[str] = Field(default=None, description="Human-readable error of the last fetch")
    total_size_bytes: int = Field(default=0, ge=0, description="Sum of accepted items' sizes")
    settings: FeedSettings = Field(default_factory=FeedSettings)

    def is_healthy(self) -> bool:
        """Check whether the last fetch succeeded."""
        return self.last_fetch_status == FetchStatus.SUCCESS

    def remaining_budget(self) -> int:
        """Bytes left before the feed's storage budget is reached."""
        return max(self.settings.max_size_bytes - self.total_size_bytes, 0)

    def __str__(self) -> str:
        return f"Feed({self.title or self.url})"


class Item(BaseModel):
    """Accepted feed entry model."""
    id: str = Field(..., min_length=1, description="Fingerprint of link + title")
    feed_id: str = Field(..., min_length=1, description="Owning feed ID")
    title: str = Field(default="Untitled", description="Entry title")
    link: str = Field(default="", description="Entry link")
    published_at: int = Field(default_factory=now_ms, description="Publication time (epoch ms)")
    content: str = Field(default="", description="Sanitized HTML content")
    read: bool = Field(default=False, description="Whether the item has been read")
    content_hash: str = Field(..., min_length=1, description="Fingerprint of the raw entry body")
    author: Optional[str] = Field(default=None, description="Entry author")
    size_bytes: int = Field(default=0, ge=0, description="Serialized size at creation time")

    @field_validator("author")
    @classmethod
    def blank_author_is_absent(cls, v):
        """Normalize empty author strings to None."""
        if v is not None and not v.strip():
            return None
        return v

    def serialized_size(self) -> int:
        """UTF-8 size of this record's JSON form, excluding the size field itself."""
        return len(self.model_dump_json(exclude={"size_bytes"}).encode("utf-8"))

    def __str__(self) -> str:
        return f"Item({self.title[:50]})"


class StorageQuota(BaseModel):
    """Advisory storage usage report."""
    used_bytes: int = Field(default=0, ge=0)
    total_bytes: int = Field(default=0, ge=0)

    @property
    def percentage(self) -> float:
        """Used space as a percentage of total space."""
        if self.total_bytes <= 0:
            return 0.0
        return (self.used_bytes / self.total_bytes) * 100

    def is_near_limit(self, threshold: float = 80.0) -> bool:
        """Check if usage crossed the warning threshold."""
        return self.percentage >= threshold

