"""
Static fetch tier: plain HTTP GET plus HTML parsing, no script execution.

Cheap and fast, so it always runs first. Any failure here is recoverable; the
pipeline simply escalates to the rendered tier.
"""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING, Iterable, List, Optional, Sequence, Tuple
from urllib.parse import urljoin

import aiohttp
import structlog
from bs4 import BeautifulSoup, Tag
from soupsieve import SelectorSyntaxError

from ..exceptions import ExtractionError, FetchFailedError
from ..extractor.normalizer import ContentNormalizer
from ..extractor.profiles import GLOBAL_REMOVE_SELECTORS, DomainProfile
from ..extractor.selection import CandidateEvaluator
from ..extractor.validator import QualityValidator
from ..observability.metrics import record_tier
from ..protocols import ErrorKind, ExtractionMethod, ExtractionResult
from .headers import DEFAULT_USER_AGENT, browser_headers

if TYPE_CHECKING:
    from ..config.config import FetchConfig

logger = structlog.get_logger(__name__)

STATIC_TIMEOUT_SECONDS = 30.0
MAX_REDIRECTS = 5


def _remove_elements(soup: BeautifulSoup, selectors: Iterable[str]) -> int:
    """Decompose every element matching ``selectors``; returns how many were removed."""
    removed = 0
    for selector in selectors:
        try:
            elements = soup.select(selector)
        except SelectorSyntaxError as e:
            logger.warning("Invalid removal selector", selector=selector, error=str(e))
            continue
        for element in elements:
            # Already gone with a removed ancestor
            if element.decomposed:
                continue
            element.decompose()
            removed += 1
    return removed


def _redirect_target(history: Sequence[aiohttp.ClientResponse]) -> str:
    """URL the last redirect in ``history`` pointed at."""
    last = history[-1]
    location = last.headers.get("Location")
    return urljoin(str(last.url), location) if location else str(last.url)


def _outermost(elements: List[Tag]) -> List[Tag]:
    """Drop matches nested inside another match so their text is not read twice."""
    matched = {id(element) for element in elements}
    return [element for element in elements if not any(id(parent) in matched for parent in element.parents)]


class StaticFetchTier:
    """Fetch with aiohttp, parse with BeautifulSoup, pick the first accepted selector."""

    name = "static"

    def __init__(
        self,
        *,
        timeout: float = STATIC_TIMEOUT_SECONDS,
        max_redirects: int = MAX_REDIRECTS,
        user_agent: str = DEFAULT_USER_AGENT,
        normalizer: Optional[ContentNormalizer] = None,
        validator: Optional[QualityValidator] = None,
        parser: str = "html.parser",
    ) -> None:
        self.timeout = timeout
        self.max_redirects = max_redirects
        self.user_agent = user_agent
        self.normalizer = normalizer or ContentNormalizer()
        self.validator = validator or QualityValidator()
        self.parser = parser

    @classmethod
    def from_config(
        cls,
        config: FetchConfig,
        *,
        normalizer: Optional[ContentNormalizer] = None,
        validator: Optional[QualityValidator] = None,
    ) -> StaticFetchTier:
        return cls(
            timeout=config.static_timeout,
            max_redirects=config.max_redirects,
            user_agent=config.user_agent,
            normalizer=normalizer,
            validator=validator,
        )

    async def fetch(self, url: str, snippet: str, profile: DomainProfile) -> ExtractionResult:
        """
        Download ``url`` and extract the job description.

        Args:
            url: Job-posting URL
            snippet: Baseline snippet for the improvement criterion
            profile: Domain profile resolved for ``url``

        Returns:
            Success with method ``static``, or a failure result; never raises
        """
        start_time = time.monotonic()
        log = logger.bind(tier=self.name, url=url, profile=profile.match_suffix)
        log.info("Static fetch started")

        final_url: Optional[str] = None
        try:
            final_url, html = await self._download(url)
            # Parsing and selector matching is CPU bound
            description = await asyncio.to_thread(self._extract_sync, html, snippet, profile, final_url)
        except ExtractionError as e:
            record_tier(self.name, e.kind.value, time.monotonic() - start_time)
            log.warning("Static fetch failed", error=e.message, error_kind=e.kind.value, final_url=e.final_url)
            return ExtractionResult.failed(
                e.kind,
                e.message,
                final_url=e.final_url or final_url,
                rejections=getattr(e, "rejections", ()),
            )
        except Exception as e:
            record_tier(self.name, ErrorKind.FETCH_FAILED.value, time.monotonic() - start_time)
            log.warning(
                "Static fetch failed unexpectedly",
                event_type="static_fetch_failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            return ExtractionResult.failed(ErrorKind.FETCH_FAILED, f"{type(e).__name__}: {e}", final_url=final_url)

        elapsed = time.monotonic() - start_time
        record_tier(self.name, "success", elapsed)
        log.info("Static fetch succeeded", final_url=final_url, length=len(description), elapsed=round(elapsed, 3))
        return ExtractionResult.succeeded(description, ExtractionMethod.STATIC, final_url)

    async def _download(self, url: str) -> Tuple[str, str]:
        """GET ``url`` following redirects; returns (final_url, html)."""
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        too_many_redirects = f"more than {self.max_redirects} redirects"
        try:
            async with aiohttp.ClientSession(headers=browser_headers(self.user_agent), timeout=timeout) as session:
                # aiohttp gives up once len(history) reaches its limit, so allow one more
                # hop and enforce max_redirects against the history below.
                async with session.get(url, allow_redirects=True, max_redirects=self.max_redirects + 1) as response:
                    final_url = str(response.url)
                    if len(response.history) > self.max_redirects:
                        raise FetchFailedError(too_many_redirects, final_url=final_url)
                    if not 200 <= response.status < 400:
                        raise FetchFailedError(f"HTTP {response.status} from {final_url}", final_url=final_url)
                    html = await response.text(errors="replace")
        except aiohttp.TooManyRedirects as e:
            raise FetchFailedError(too_many_redirects, final_url=_redirect_target(e.history)) from e
        except asyncio.TimeoutError as e:
            raise FetchFailedError(f"request timed out after {self.timeout:g}s") from e
        except aiohttp.ClientError as e:
            raise FetchFailedError(f"{type(e).__name__}: {e}") from e

        return final_url, html

    def _extract_sync(self, html: str, snippet: str, profile: DomainProfile, final_url: str) -> str:
        """Clean the document and return the first accepted selector's text."""
        soup = BeautifulSoup(html, self.parser)

        removed = _remove_elements(soup, GLOBAL_REMOVE_SELECTORS)
        removed += _remove_elements(soup, profile.remove_selectors)
        logger.debug("Noise removed", tier=self.name, elements=removed)

        evaluator = CandidateEvaluator(snippet, normalizer=self.normalizer, validator=self.validator, tier=self.name)

        for selector in profile.selectors:
            try:
                elements = soup.select(selector)
            except SelectorSyntaxError as e:
                logger.warning("Invalid content selector", tier=self.name, selector=selector, error=str(e))
                continue
            if not elements:
                continue

            raw_text = "".join(element.get_text() for element in _outermost(elements))
            description = evaluator.evaluate(selector, raw_text)
            if description is not None:
                return description

        raise evaluator.failure(final_url)
