"""Domain models used across the application."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class FeedItem(BaseModel):
    """A normalised entry taken from one feed.

    The field aliases give the wire names used in API responses, e.g.
    ``summary`` is published as ``description`` and ``published_at`` as ``pubDate``.
    """

    model_config = ConfigDict(frozen=True)

    title: str = Field(..., min_length=1)
    link: str = Field(..., min_length=1)
    summary: str = Field(default="", serialization_alias="description")
    published_at: datetime = Field(..., serialization_alias="pubDate")
    source_label: str = Field(..., serialization_alias="source")
    image_url: Optional[str] = Field(default=None, serialization_alias="image")

    def to_payload(self) -> Dict[str, Any]:
        """Return the JSON-ready representation, omitting a missing image."""

        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class AggregateResult(BaseModel):
    """Outcome of one aggregation request."""

    model_config = ConfigDict(frozen=True)

    success: bool
    items: Tuple[FeedItem, ...] = ()
    error_message: Optional[str] = None

    @classmethod
    def ok(cls, items) -> "AggregateResult":
        return cls(success=True, items=tuple(items))

    @classmethod
    def failure(cls, message: str) -> "AggregateResult":
        return cls(success=False, error_message=message or "Unknown error")

    def to_payload(self) -> Dict[str, Any]:
        """Serialise into the response body shape returned to callers."""

        if not self.success:
            return {"success": False, "error": self.error_message or "Unknown error"}
        return {"success": True, "items": [item.to_payload() for item in self.items]}
