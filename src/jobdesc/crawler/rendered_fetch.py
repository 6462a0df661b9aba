"""
Rendered fetch tier: headless Chromium via Playwright for script-heavy sites.

Each call launches its own browser and closes it before returning, on every
path: accepted content, exhausted selectors, or an exception mid-navigation.
The pipeline may run many of these concurrently inside a worker pool, so a
leaked browser is a leaked process.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional, Sequence

import structlog
from playwright.async_api import Browser, Page, async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from ..exceptions import ExtractionError, FetchFailedError, ResourceError
from ..extractor.normalizer import ContentNormalizer
from ..extractor.profiles import GLOBAL_REMOVE_SELECTORS, DomainProfile
from ..extractor.selection import CandidateEvaluator
from ..extractor.validator import QualityValidator
from ..observability.metrics import record_tier
from ..protocols import ErrorKind, ExtractionMethod, ExtractionResult
from .headers import DEFAULT_USER_AGENT

if TYPE_CHECKING:
    from ..config.config import FetchConfig

logger = structlog.get_logger(__name__)

NAVIGATION_TIMEOUT_SECONDS = 45.0
WAIT_SELECTOR_TIMEOUT_SECONDS = 5.0
DEFAULT_BROWSER_ARGS = ("--no-sandbox", "--disable-setuid-sandbox")

REMOVE_ELEMENTS_JS = """
(selectors) => {
    for (const selector of selectors) {
        document.querySelectorAll(selector).forEach(el => el.remove());
    }
}
"""

REMOVE_MATCHES_JS = "elements => elements.forEach(el => el.remove())"


@dataclass(slots=True)
class _RenderState:
    """Filled in by the render as soon as navigation resolves."""

    final_url: Optional[str] = None


class RenderedFetchTier:
    """Render the page in a private browser instance, then apply the profile selectors."""

    name = "rendered"

    def __init__(
        self,
        *,
        navigation_timeout: float = NAVIGATION_TIMEOUT_SECONDS,
        wait_selector_timeout: float = WAIT_SELECTOR_TIMEOUT_SECONDS,
        user_agent: str = DEFAULT_USER_AGENT,
        headless: bool = True,
        browser_args: Sequence[str] = DEFAULT_BROWSER_ARGS,
        normalizer: Optional[ContentNormalizer] = None,
        validator: Optional[QualityValidator] = None,
    ) -> None:
        self.navigation_timeout = navigation_timeout
        self.wait_selector_timeout = wait_selector_timeout
        self.user_agent = user_agent
        self.headless = headless
        self.browser_args: List[str] = list(browser_args)
        self.normalizer = normalizer or ContentNormalizer()
        self.validator = validator or QualityValidator()

    @classmethod
    def from_config(
        cls,
        config: FetchConfig,
        *,
        normalizer: Optional[ContentNormalizer] = None,
        validator: Optional[QualityValidator] = None,
    ) -> RenderedFetchTier:
        return cls(
            navigation_timeout=config.navigation_timeout,
            wait_selector_timeout=config.wait_selector_timeout,
            user_agent=config.user_agent,
            headless=config.headless,
            browser_args=config.browser_args,
            normalizer=normalizer,
            validator=validator,
        )

    async def fetch(self, url: str, snippet: str, profile: DomainProfile) -> ExtractionResult:
        """
        Render ``url`` and extract the job description.

        Args:
            url: Job-posting URL
            snippet: Baseline snippet for the improvement criterion
            profile: Domain profile resolved for ``url``

        Returns:
            Success with method ``rendered``, or a failure result; never raises
        """
        start_time = time.monotonic()
        log = logger.bind(tier=self.name, url=url, profile=profile.match_suffix)
        log.info("Rendered fetch started")

        state = _RenderState()
        try:
            description = await self._render(url, snippet, profile, state)
        except ExtractionError as e:
            final_url = e.final_url or state.final_url
            record_tier(self.name, e.kind.value, time.monotonic() - start_time)
            log.warning("Rendered fetch failed", error=e.message, error_kind=e.kind.value, final_url=final_url)
            return ExtractionResult.failed(
                e.kind,
                e.message,
                final_url=final_url,
                rejections=getattr(e, "rejections", ()),
            )
        except Exception as e:
            record_tier(self.name, ErrorKind.RESOURCE_ERROR.value, time.monotonic() - start_time)
            log.warning(
                "Rendered fetch failed unexpectedly",
                event_type="rendered_fetch_failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            return ExtractionResult.failed(
                ErrorKind.RESOURCE_ERROR,
                f"{type(e).__name__}: {e}",
                final_url=state.final_url,
            )

        elapsed = time.monotonic() - start_time
        record_tier(self.name, "success", elapsed)
        log.info(
            "Rendered fetch succeeded",
            final_url=state.final_url,
            length=len(description),
            elapsed=round(elapsed, 3),
        )
        return ExtractionResult.succeeded(description, ExtractionMethod.RENDERED, state.final_url)

    async def _render(self, url: str, snippet: str, profile: DomainProfile, state: _RenderState) -> str:
        async with async_playwright() as playwright:
            try:
                browser = await playwright.chromium.launch(headless=self.headless, args=self.browser_args)
            except PlaywrightError as e:
                raise ResourceError(f"browser launch failed: {e}") from e

            try:
                return await self._extract_from_browser(browser, url, snippet, profile, state)
            finally:
                await self._close(browser)

    async def _close(self, browser: Browser) -> None:
        try:
            await browser.close()
        except PlaywrightError as e:
            logger.warning("Browser close failed", tier=self.name, error=str(e))

    async def _extract_from_browser(
        self,
        browser: Browser,
        url: str,
        snippet: str,
        profile: DomainProfile,
        state: _RenderState,
    ) -> str:
        context = await browser.new_context(user_agent=self.user_agent)
        page = await context.new_page()
        page.set_default_timeout(self.navigation_timeout * 1000)

        try:
            await page.goto(url, wait_until="networkidle", timeout=self.navigation_timeout * 1000)
        except PlaywrightTimeoutError as e:
            state.final_url = page.url or None
            raise FetchFailedError(
                f"navigation timed out after {self.navigation_timeout:g}s",
                final_url=state.final_url,
            ) from e
        except PlaywrightError as e:
            raise ResourceError(f"navigation failed: {e}") from e

        if profile.wait_selector:
            try:
                await page.wait_for_selector(profile.wait_selector, timeout=self.wait_selector_timeout * 1000)
            except PlaywrightError as e:
                logger.debug(
                    "Wait selector not found, continuing",
                    tier=self.name,
                    selector=profile.wait_selector,
                    error=str(e),
                )

        state.final_url = page.url
        await self._remove_noise(page, profile)

        evaluator = CandidateEvaluator(snippet, normalizer=self.normalizer, validator=self.validator, tier=self.name)

        for selector in profile.selectors:
            try:
                element = await page.query_selector(selector)
                if element is None:
                    continue
                text = await element.text_content()
            except PlaywrightError as e:
                logger.debug("Selector lookup failed", tier=self.name, selector=selector, error=str(e))
                continue

            if not text:
                continue

            description = evaluator.evaluate(selector, text)
            if description is not None:
                return description

        raise evaluator.failure(state.final_url)

    async def _remove_noise(self, page: Page, profile: DomainProfile) -> None:
        await page.evaluate(REMOVE_ELEMENTS_JS, list(GLOBAL_REMOVE_SELECTORS))
        for selector in profile.remove_selectors:
            try:
                await page.eval_on_selector_all(selector, REMOVE_MATCHES_JS)
            except PlaywrightError as e:
                logger.warning("Removal selector failed", tier=self.name, selector=selector, error=str(e))
