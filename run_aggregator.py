"""Convenience script for running one feed aggregation locally."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path

# Ensure the src directory is on the Python path so the newswire package can be imported
SRC_PATH = Path(__file__).resolve().parent / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from newswire.config import AppConfig  # noqa: E402  (import after path setup)
from newswire.services.aggregator import FeedAggregator  # noqa: E402


def main() -> None:
    """Load the feed registry, aggregate once and print the response payload."""

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    try:
        config = AppConfig.load()
    except (FileNotFoundError, ValueError) as exc:
        logging.error("Could not load feed configuration: %s", exc)
        sys.exit(1)

    for source in config.iter_sources():
        logging.info("Polling %s (%s)", source.label, source.url)

    result = asyncio.run(FeedAggregator(config).aggregate())
    print(json.dumps(result.to_payload(), indent=2, ensure_ascii=False))

    if not result.success:
        sys.exit(1)


if __name__ == "__main__":
    main()
