"""Service layer entry points for Newswire."""

from __future__ import annotations

from .aggregator import FeedAggregator, merge_items  # noqa: F401
from .extractor import extract_items  # noqa: F401
from .fetcher import FeedFetcher, FetchOutcome  # noqa: F401

__all__ = ["FeedAggregator", "FeedFetcher", "FetchOutcome", "extract_items", "merge_items"]
