"""Fetch tiers: a plain HTTP tier and a headless browser tier."""

from __future__ import annotations

from .headers import DEFAULT_USER_AGENT, browser_headers
from .rendered_fetch import RenderedFetchTier
from .static_fetch import StaticFetchTier

__all__ = ["DEFAULT_USER_AGENT", "browser_headers", "RenderedFetchTier", "StaticFetchTier"]
