"""Fetch, extract, merge and rank items across every configured feed."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Iterable, List, Sequence

from newswire.config import MAX_ITEMS, AppConfig
from newswire.models import AggregateResult, FeedItem
from newswire.services.extractor import extract_items
from newswire.services.fetcher import FeedFetcher, FetchOutcome

__all__ = ["FeedAggregator", "merge_items"]

logger = logging.getLogger(__name__)


def merge_items(sequences: Iterable[Sequence[FeedItem]], limit: int = MAX_ITEMS) -> List[FeedItem]:
    """Concatenate ``sequences``, order newest first and keep the first ``limit`` items.

    The sort is stable, so items with the same ``published_at`` keep the order in
    which they were concatenated (source order, then document order).
    """

    merged = [item for sequence in sequences for item in sequence]
    merged = sorted(merged, key=lambda item: item.published_at, reverse=True)
    return merged[:limit]


class FeedAggregator:
    """Run the whole pipeline for the sources of one :class:`AppConfig`."""

    def __init__(self, config: AppConfig, fetcher: FeedFetcher | None = None) -> None:
        self._config = config
        self._fetcher = fetcher

    def extract(self, outcome: FetchOutcome, *, now: datetime | None = None) -> List[FeedItem]:
        """Return the capped items of one fetch outcome; failures contribute nothing."""

        if not outcome.ok:
            return []

        try:
            return extract_items(
                outcome.payload or "",
                outcome.source,
                limit=self._config.per_source_limit,
                summary_length=self._config.summary_length,
                now=now,
            )
        except Exception:  # noqa: BLE001 - one unreadable feed must not abort the batch
            logger.exception("Error parsing feed from %s", outcome.source.label)
            return []

    async def collect(self) -> List[FeedItem]:
        """Fetch every source concurrently and return the merged, ranked items."""

        sources = list(self._config.iter_sources())
        logger.info("Fetching %d feeds", len(sources))

        if self._fetcher is not None:
            outcomes = await self._fetcher.fetch_all(sources)
        else:
            with FeedFetcher(timeout=self._config.timeout) as fetcher:
                outcomes = await fetcher.fetch_all(sources)
        now = datetime.now(UTC)
        sequences = [self.extract(outcome, now=now) for outcome in outcomes]

        failed = [outcome.source.label for outcome in outcomes if not outcome.ok]
        if failed:
            logger.info("No items from failed sources: %s", ", ".join(failed))

        items = merge_items(sequences, limit=self._config.max_items)
        logger.info("Successfully fetched %d news items", sum(len(sequence) for sequence in sequences))
        return items

    async def aggregate(self) -> AggregateResult:
        """Return an :class:`AggregateResult`, converting pipeline faults into a failure."""

        try:
            items = await self.collect()
        except Exception as exc:  # noqa: BLE001 - reported to the caller as a failed result
            logger.exception("Error in feed aggregation")
            return AggregateResult.failure(str(exc))
        return AggregateResult.ok(items)
