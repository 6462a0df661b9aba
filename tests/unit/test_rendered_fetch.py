"""
Unit tests for the rendered fetch tier.

Playwright is replaced with a fake object graph (see conftest.py); the
important property under test is that the browser is closed exactly once on
every exit path.
"""

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from jobdesc.config import FetchConfig
from jobdesc.crawler.rendered_fetch import REMOVE_ELEMENTS_JS, REMOVE_MATCHES_JS, RenderedFetchTier
from jobdesc.extractor.profiles import GLOBAL_REMOVE_SELECTORS, DomainProfile
from jobdesc.protocols import ErrorKind, ExtractionMethod, FetchTier

URL = "https://jobs.example.com/123"

PROFILE = DomainProfile(
    match_suffix="example.com",
    selectors=(".first", ".second"),
    wait_selector=".second",
    remove_selectors=(".apply-widget", ".share-bar"),
)


@pytest.fixture
def tier():
    return RenderedFetchTier()


class TestConfiguration:
    """Construction and launch options."""

    def test_satisfies_protocol(self, tier):
        assert isinstance(tier, FetchTier)
        assert tier.name == "rendered"

    def test_from_config(self):
        config = FetchConfig(navigation_timeout=20, wait_selector_timeout=2, headless=False, browser_args=["--foo"])
        tier = RenderedFetchTier.from_config(config)

        assert tier.navigation_timeout == 20
        assert tier.wait_selector_timeout == 2
        assert tier.headless is False
        assert tier.browser_args == ["--foo"]

    @pytest.mark.asyncio
    async def test_launch_and_navigation_options(self, tier, fake_playwright, sample_description, snippet):
        fake = fake_playwright({".first": sample_description})

        await tier.fetch(URL, snippet, PROFILE)

        fake.playwright.chromium.launch.assert_awaited_once_with(
            headless=True, args=["--no-sandbox", "--disable-setuid-sandbox"]
        )
        fake.browser.new_context.assert_awaited_once_with(user_agent=tier.user_agent)
        fake.page.goto.assert_awaited_once_with(URL, wait_until="networkidle", timeout=45000.0)
        fake.page.wait_for_selector.assert_awaited_once_with(".second", timeout=5000.0)


class TestRenderedFetchTier:
    """Extraction outcomes."""

    @pytest.mark.asyncio
    async def test_success_on_later_selector(self, tier, fake_playwright, sample_description, snippet):
        fake = fake_playwright({".first": "Overview\n\nShort teaser", ".second": sample_description})

        result = await tier.fetch(URL, snippet, PROFILE)

        assert result.success
        assert result.method == ExtractionMethod.RENDERED
        assert result.description == sample_description
        assert result.final_url == URL
        fake.browser.close.assert_awaited_once()
        assert fake.manager.exited == 1

    @pytest.mark.asyncio
    async def test_captures_resolved_url(self, tier, fake_playwright, sample_description, snippet):
        fake_playwright({".first": sample_description}, final_url="https://careers.example.com/postings/123")

        result = await tier.fetch(URL, snippet, PROFILE)

        assert result.final_url == "https://careers.example.com/postings/123"

    @pytest.mark.asyncio
    async def test_removes_noise_before_selecting(self, tier, fake_playwright, sample_description, snippet):
        fake = fake_playwright({".first": sample_description})

        await tier.fetch(URL, snippet, PROFILE)

        fake.page.evaluate.assert_awaited_once_with(REMOVE_ELEMENTS_JS, list(GLOBAL_REMOVE_SELECTORS))
        assert [call.args for call in fake.page.eval_on_selector_all.await_args_list] == [
            (".apply-widget", REMOVE_MATCHES_JS),
            (".share-bar", REMOVE_MATCHES_JS),
        ]

    @pytest.mark.asyncio
    async def test_selectors_exhausted(self, tier, fake_playwright, snippet):
        fake = fake_playwright({".first": "Overview\n\nShort teaser"})

        result = await tier.fetch(URL, snippet, PROFILE)

        assert not result.success
        assert result.error_kind == ErrorKind.VALIDATION_REJECTED
        assert "no valid content found" in result.error
        assert result.final_url == URL
        fake.browser.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_nothing_matched(self, tier, fake_playwright, snippet):
        fake = fake_playwright({})

        result = await tier.fetch(URL, snippet, PROFILE)

        assert result.error_kind == ErrorKind.NO_SELECTOR_MATCHED
        fake.browser.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_empty_text_skipped(self, tier, fake_playwright, sample_description, snippet):
        fake_playwright({".first": "", ".second": sample_description})

        result = await tier.fetch(URL, snippet, PROFILE)

        assert result.success
        assert result.rejections == ()

    @pytest.mark.asyncio
    async def test_navigation_timeout(self, tier, fake_playwright, snippet):
        fake = fake_playwright(
            goto_error=PlaywrightTimeoutError("Timeout 45000ms exceeded."),
            final_url="https://jobs.example.com/123?step=2",
        )

        result = await tier.fetch(URL, snippet, PROFILE)

        assert result.error_kind == ErrorKind.FETCH_FAILED
        assert result.error == "FetchFailed: navigation timed out after 45s"
        assert result.final_url == "https://jobs.example.com/123?step=2"
        fake.browser.close.assert_awaited_once()
        fake.page.query_selector.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_navigation_error(self, tier, fake_playwright, snippet):
        fake = fake_playwright(goto_error=PlaywrightError("net::ERR_NAME_NOT_RESOLVED"))

        result = await tier.fetch(URL, snippet, PROFILE)

        assert result.error_kind == ErrorKind.RESOURCE_ERROR
        assert "ERR_NAME_NOT_RESOLVED" in result.error
        fake.browser.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_launch_failure(self, tier, fake_playwright, snippet):
        fake = fake_playwright(launch_error=PlaywrightError("Executable doesn't exist"))

        result = await tier.fetch(URL, snippet, PROFILE)

        assert result.error_kind == ErrorKind.RESOURCE_ERROR
        assert result.error.startswith("ResourceError: browser launch failed")
        fake.browser.close.assert_not_awaited()
        assert fake.manager.exited == 1

    @pytest.mark.asyncio
    async def test_unexpected_exception_still_closes(self, tier, fake_playwright, snippet):
        fake = fake_playwright({".first": "text"})
        fake.page.evaluate.side_effect = RuntimeError("page crashed")

        result = await tier.fetch(URL, snippet, PROFILE)

        assert result.error_kind == ErrorKind.RESOURCE_ERROR
        assert "page crashed" in result.error
        fake.browser.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_wait_selector_timeout_is_not_fatal(self, tier, fake_playwright, sample_description, snippet):
        fake_playwright(
            {".first": sample_description},
            wait_error=PlaywrightTimeoutError("Timeout 5000ms exceeded."),
        )

        result = await tier.fetch(URL, snippet, PROFILE)

        assert result.success

    @pytest.mark.asyncio
    async def test_no_wait_without_wait_selector(self, tier, fake_playwright, sample_description, snippet):
        fake = fake_playwright({".first": sample_description})
        profile = DomainProfile(match_suffix="example.com", selectors=(".first",))

        await tier.fetch(URL, snippet, profile)

        fake.page.wait_for_selector.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_selector_error_skips_to_next(self, tier, fake_playwright, sample_description, snippet):
        fake = fake_playwright(
            {".second": sample_description},
            selector_errors={".first": PlaywrightError("Element is not attached to the DOM")},
        )

        result = await tier.fetch(URL, snippet, PROFILE)

        assert result.success
        fake.browser.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_removal_selector_error_is_not_fatal(self, tier, fake_playwright, sample_description, snippet):
        fake = fake_playwright({".first": sample_description})
        fake.page.eval_on_selector_all.side_effect = PlaywrightError("Unexpected token")

        result = await tier.fetch(URL, snippet, PROFILE)

        assert result.success

    @pytest.mark.asyncio
    async def test_close_failure_does_not_mask_result(self, tier, fake_playwright, sample_description, snippet):
        fake = fake_playwright({".first": sample_description}, close_error=PlaywrightError("Target closed"))

        result = await tier.fetch(URL, snippet, PROFILE)

        assert result.success
        fake.browser.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unexpected_exception_keeps_resolved_url(self, tier, fake_playwright, snippet):
        fake = fake_playwright({".first": "text"}, final_url="https://careers.example.com/postings/123")
        fake.page.query_selector.side_effect = RuntimeError("renderer crashed")

        result = await tier.fetch(URL, snippet, PROFILE)

        assert result.error_kind == ErrorKind.RESOURCE_ERROR
        assert result.final_url == "https://careers.example.com/postings/123"
        fake.browser.close.assert_awaited_once()
