"""
Browser-like request headers.

Job boards routinely serve interstitials or empty shells to clients that do
not look like a desktop browser, so both tiers present the same realistic
fingerprint.
"""

from __future__ import annotations

from typing import Dict

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)


def browser_headers(user_agent: str = DEFAULT_USER_AGENT) -> Dict[str, str]:
    """Header set for the static tier's GET request."""
    return {
        "User-Agent": user_agent,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.5",
        "Accept-Encoding": "gzip, deflate",
        "Connection": "keep-alive",
        "Upgrade-Insecure-Requests": "1",
    }
