"""Newswire package exposing the feed registry, aggregation services and API."""

from __future__ import annotations

from .config import AppConfig, SourceConfig  # noqa: F401

__all__ = ["AppConfig", "SourceConfig"]
