"""
Domain profile registry.

Per-site extraction rules for the job boards we see most often, plus a
heuristic fallback profile for everything else. The table is an ordered list
of match records; the first record whose ``match_suffix`` occurs in the URL's
host wins.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple
from urllib.parse import urlparse

import structlog

logger = structlog.get_logger(__name__)


@dataclass(slots=True, frozen=True)
class DomainProfile:
    """Selectors used to locate and clean up a job description on one site family."""

    match_suffix: str
    selectors: Tuple[str, ...]
    wait_selector: Optional[str] = None
    remove_selectors: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.selectors:
            raise ValueError(f"Profile '{self.match_suffix}' must define at least one selector")

    @property
    def is_fallback(self) -> bool:
        return self.match_suffix == FALLBACK_MATCH


FALLBACK_MATCH = "*"

# Noise removed from every page before the profile's own removal list.
GLOBAL_REMOVE_SELECTORS: Tuple[str, ...] = (
    "script",
    "style",
    "noscript",
    "iframe",
    "svg",
    ".nav",
    ".navigation",
    ".navbar",
    ".menu",
    ".footer",
    ".header",
    ".sidebar",
    '[class*="breadcrumb"]',
    '[class*="similar"]',
    '[class*="related"]',
    '[class*="recommended"]',
)

FALLBACK_SELECTORS: Tuple[str, ...] = (
    # Class name patterns
    '[class*="job-description"]',
    '[class*="jobDescription"]',
    '[class*="description"]',
    '[class*="job-details"]',
    '[class*="jobDetails"]',
    '[class*="posting"]',
    '[class*="job-content"]',
    '[class*="jobContent"]',
    # Ids
    "#job-description",
    "#jobDescription",
    "#description",
    "#job-details",
    "#jobDetails",
    # Data attributes
    '[data-test*="description"]',
    '[data-testid*="description"]',
    '[data-automation-id*="description"]',
    # Semantic containers
    "article",
    "main",
    '[role="main"]',
    # Last resort
    ".content",
    "#content",
    "main > div",
)

FALLBACK_REMOVE_SELECTORS: Tuple[str, ...] = (".nav", ".navigation", ".header", ".footer")

FALLBACK_PROFILE = DomainProfile(
    match_suffix=FALLBACK_MATCH,
    selectors=FALLBACK_SELECTORS,
    wait_selector=None,
    remove_selectors=FALLBACK_REMOVE_SELECTORS,
)

KNOWN_PROFILES: Tuple[DomainProfile, ...] = (
    DomainProfile(
        match_suffix="adzuna.com",
        selectors=('[class*="description"]', ".job-description", "main", "article"),
        remove_selectors=(
            ".nav",
            ".footer",
            ".header",
            ".similar-jobs",
            ".salary-comparison",
            '[class*="similar"]',
            '[class*="stats"]',
            '[class*="breadcrumb"]',
        ),
    ),
    DomainProfile(
        match_suffix="linkedin.com",
        selectors=(
            ".description__text",
            ".show-more-less-html__markup",
            ".jobs-description__content",
            ".jobs-box__html-content",
        ),
        wait_selector=".description__text",
        remove_selectors=(".nav", ".footer", ".jobs-apply-button"),
    ),
    DomainProfile(
        match_suffix="indeed.com",
        selectors=(
            "#jobDescriptionText",
            ".jobsearch-jobDescriptionText",
            ".jobsearch-JobComponent-description",
            ".job-description",
        ),
        wait_selector="#jobDescriptionText",
        remove_selectors=(".nav", ".footer"),
    ),
    DomainProfile(
        match_suffix="glassdoor.com",
        selectors=(
            ".jobDescriptionContent",
            ".desc",
            '[class*="JobDetails_jobDescription"]',
            '[data-test="job-description"]',
        ),
        wait_selector=".jobDescriptionContent",
        remove_selectors=(".header", ".footer"),
    ),
    DomainProfile(
        match_suffix="lever.co",
        selectors=(".posting-description", ".content-wrapper", '[class*="posting-content"]'),
        wait_selector=".posting-description",
        remove_selectors=(".header", ".footer"),
    ),
    DomainProfile(
        match_suffix="greenhouse.io",
        selectors=("#content", ".content", '[class*="job-post"]'),
        wait_selector="#content",
        remove_selectors=(".header", ".footer"),
    ),
    DomainProfile(
        match_suffix="myworkdayjobs.com",
        selectors=(
            '[data-automation-id="jobPostingDescription"]',
            ".job-description",
            '[class*="Job_Description"]',
        ),
        wait_selector='[data-automation-id="jobPostingDescription"]',
        remove_selectors=(".header", ".footer"),
    ),
    DomainProfile(
        match_suffix="ziprecruiter.com",
        selectors=(".jobDescriptionSection", ".job_description", '[class*="JobDescription"]'),
        wait_selector=".jobDescriptionSection",
        remove_selectors=(".header", ".footer"),
    ),
)


class ProfileRegistry:
    """Ordered, read-only lookup table of domain profiles."""

    def __init__(
        self,
        profiles: Sequence[DomainProfile] = KNOWN_PROFILES,
        fallback: DomainProfile = FALLBACK_PROFILE,
    ) -> None:
        self._profiles: Tuple[DomainProfile, ...] = tuple(profiles)
        self._fallback = fallback

    @property
    def profiles(self) -> Tuple[DomainProfile, ...]:
        return self._profiles

    @property
    def fallback(self) -> DomainProfile:
        return self._fallback

    def with_profiles(self, extra: Iterable[DomainProfile]) -> ProfileRegistry:
        """Return a new registry with ``extra`` taking priority over the current table."""
        return ProfileRegistry(profiles=(*extra, *self._profiles), fallback=self._fallback)

    def lookup(self, url: str) -> DomainProfile:
        """
        Resolve the profile for ``url``.

        Args:
            url: Job-posting URL

        Returns:
            First profile whose ``match_suffix`` occurs in the host, else the fallback
        """
        try:
            hostname = (urlparse(url).hostname or "").lower()
        except ValueError:
            logger.debug("Unparseable URL, using fallback profile", url=url)
            return self._fallback

        if not hostname:
            return self._fallback

        for profile in self._profiles:
            if profile.match_suffix in hostname:
                return profile

        return self._fallback


DEFAULT_REGISTRY = ProfileRegistry()


def lookup(url: str) -> DomainProfile:
    """Resolve ``url`` against the built-in profile table."""
    return DEFAULT_REGISTRY.lookup(url)
