"""Feed registry configuration for the Newswire aggregator."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Iterable, Tuple
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, ValidationError

__all__ = [
    "AppConfig",
    "SourceConfig",
    "CONFIG_ENV_VAR",
    "DEFAULT_CONFIG_PATH",
    "DEFAULT_SOURCES",
    "PER_SOURCE_LIMIT",
    "MAX_ITEMS",
    "SUMMARY_LENGTH",
]

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[2] / "data" / "feeds.json"

#: Environment variable pointing at an alternative registry file.
CONFIG_ENV_VAR = "NEWSWIRE_CONFIG"

PER_SOURCE_LIMIT = 5
MAX_ITEMS = 20
SUMMARY_LENGTH = 150


class SourceConfig(BaseModel):
    """A single syndication feed polled on every aggregation."""

    model_config = ConfigDict(frozen=True)

    label: str = Field(..., min_length=1, description="Display name copied onto every item")
    endpoint: HttpUrl = Field(..., description="URL of the RSS or Atom document")

    @property
    def url(self) -> str:
        return str(self.endpoint)

    @property
    def host(self) -> str:
        """Return the network location of the feed endpoint."""

        return urlparse(self.url).netloc


DEFAULT_SOURCES: Tuple[SourceConfig, ...] = (
    SourceConfig(label="BBC World", endpoint="http://feeds.bbci.co.uk/news/world/rss.xml"),
    SourceConfig(label="Reuters", endpoint="https://feeds.reuters.com/reuters/topNews"),
    SourceConfig(label="CNN World", endpoint="http://rss.cnn.com/rss/edition_world.rss"),
    SourceConfig(label="The Guardian", endpoint="https://www.theguardian.com/world/rss"),
)


class AppConfig(BaseModel):
    """Immutable registry of :class:`SourceConfig` entries plus aggregation limits."""

    model_config = ConfigDict(frozen=True)

    sources: Tuple[SourceConfig, ...] = Field(default=DEFAULT_SOURCES)
    per_source_limit: int = Field(
        default=PER_SOURCE_LIMIT, ge=1, description="Items kept from a single feed before merging"
    )
    max_items: int = Field(default=MAX_ITEMS, ge=1, description="Items kept in the final response")
    summary_length: int = Field(
        default=SUMMARY_LENGTH, ge=0, description="Hard character cap applied to item summaries"
    )
    connect_timeout: float = Field(default=5.0, gt=0, description="Seconds to wait for a connection")
    read_timeout: float = Field(default=10.0, gt=0, description="Seconds to wait for the feed body")

    @property
    def timeout(self) -> tuple[float, float]:
        """Return the ``(connect, read)`` timeout tuple understood by ``requests``."""

        return (self.connect_timeout, self.read_timeout)

    @classmethod
    def from_file(cls, path: Path | str | None = None) -> "AppConfig":
        """Load configuration data from a JSON file."""

        config_path = Path(path) if path else DEFAULT_CONFIG_PATH
        try:
            data = json.loads(config_path.read_text(encoding="utf-8"))
        except FileNotFoundError as exc:
            raise FileNotFoundError(f"Configuration file not found: {config_path}") from exc
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON in configuration file: {config_path}") from exc

        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ValueError(f"Configuration file is invalid: {config_path}\n{exc}") from exc

    @classmethod
    def load(cls) -> "AppConfig":
        """Return the registry used by the running service.

        ``$NEWSWIRE_CONFIG`` wins when set and must point at a readable file. Otherwise
        the bundled ``data/feeds.json`` is used when present, and the built-in
        :data:`DEFAULT_SOURCES` when it is not.
        """

        override = os.environ.get(CONFIG_ENV_VAR)
        if override:
            return cls.from_file(override)
        if DEFAULT_CONFIG_PATH.exists():
            return cls.from_file(DEFAULT_CONFIG_PATH)
        return cls()

    def dump(self, path: Path | str | None = None) -> None:
        """Persist the configuration back to disk as JSON."""

        config_path = Path(path) if path else DEFAULT_CONFIG_PATH
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(self.model_dump_json(indent=2), encoding="utf-8")

    def iter_sources(self) -> Iterable[SourceConfig]:
        """Iterate over configured sources in registry order."""

        return iter(self.sources)
