"""Concurrent retrieval of feed documents."""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import List, Sequence

import requests
from fastapi.concurrency import run_in_threadpool

from newswire.config import SourceConfig

__all__ = ["DEFAULT_HEADERS", "DEFAULT_TIMEOUT", "FeedFetcher", "FetchOutcome", "decode_payload"]

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/129.0.0.0 Safari/537.36"
    ),
    "Accept": (
        "application/rss+xml,application/atom+xml,application/xml;q=0.9,"
        "text/xml;q=0.9,*/*;q=0.8"
    ),
    "Accept-Language": "en-US,en;q=0.9",
    "Accept-Encoding": "gzip, deflate",
    "Connection": "keep-alive",
}

DEFAULT_TIMEOUT = (5.0, 10.0)

_XML_ENCODING_PATTERN = re.compile(rb"""<\?xml[^>]*\bencoding\s*=\s*["']([A-Za-z0-9._-]+)["']""")


@dataclass(frozen=True, slots=True)
class FetchOutcome:
    """Result of retrieving one source: either a payload or an error message."""

    source: SourceConfig
    payload: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.payload is not None


def decode_payload(response: requests.Response) -> str:
    """Return the body of ``response`` as text.

    ``requests`` falls back to ISO-8859-1 for ``text/*`` responses without a
    charset, which garbles most feeds. A charset from the headers is honoured,
    then the encoding named in the XML declaration, then UTF-8.
    """

    content_type = response.headers.get("Content-Type", "")
    if "charset=" in content_type.lower():
        return response.text

    body = response.content or b""
    encoding = "utf-8"
    match = _XML_ENCODING_PATTERN.search(body[:256])
    if match:
        encoding = match.group(1).decode("ascii")
    try:
        return body.decode(encoding, errors="replace")
    except LookupError:
        return body.decode("utf-8", errors="replace")


class FeedFetcher:
    """Retrieve feed documents, isolating the failure of each source."""

    def __init__(
        self,
        session: requests.Session | None = None,
        *,
        timeout: tuple[float, float] = DEFAULT_TIMEOUT,
    ) -> None:
        self._owns_session = session is None
        self._session = session or requests.Session()
        self._session.headers.update(DEFAULT_HEADERS)
        self._timeout = timeout

    decode_payload = staticmethod(decode_payload)

    def close(self) -> None:
        """Close the session unless it was supplied by the caller."""

        if self._owns_session:
            self._session.close()

    def __enter__(self) -> "FeedFetcher":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def fetch(self, source: SourceConfig) -> FetchOutcome:
        """Perform a single GET against ``source``; never raises."""

        try:
            response = self._session.get(source.url, timeout=self._timeout)
            response.raise_for_status()
            payload = self.decode_payload(response)
        except requests.RequestException as exc:
            logger.warning("Error fetching %s (%s): %s", source.label, source.url, exc)
            return FetchOutcome(source=source, error=str(exc))
        except Exception as exc:  # noqa: BLE001 - one bad feed must not abort the batch
            logger.warning("Error fetching %s (%s): %s", source.label, source.url, exc)
            return FetchOutcome(source=source, error=str(exc) or exc.__class__.__name__)

        return FetchOutcome(source=source, payload=payload)

    async def fetch_all(self, sources: Sequence[SourceConfig]) -> List[FetchOutcome]:
        """Fetch every source concurrently and wait for all of them to settle.

        Outcomes are returned in the order of ``sources`` regardless of which
        retrieval finished first.
        """

        results = await asyncio.gather(
            *(run_in_threadpool(self.fetch, source) for source in sources),
            return_exceptions=True,
        )

        outcomes: List[FetchOutcome] = []
        for source, result in zip(sources, results):
            if isinstance(result, BaseException):
                logger.warning("Fetch task for %s failed: %r", source.label, result)
                outcomes.append(FetchOutcome(source=source, error=str(result) or repr(result)))
            else:
                outcomes.append(result)
        return outcomes
