"""
Shared fixtures for the jobdesc test suite.

Provides realistic job-posting text and HTML, plus a fake Playwright object
graph so the rendered tier can be exercised without launching a browser.
No test in this suite touches the network.
"""

import os
from types import SimpleNamespace
from typing import Dict, Optional
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from jobdesc.config import Config

# ============================================================================
# Pytest Configuration
# ============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line("markers", "integration: Integration tests across modules")


# ============================================================================
# Sample content
# ============================================================================

# Already normalized: normalize() maps it to itself.
SAMPLE_DESCRIPTION = """About the Role

We are looking for a senior data engineer to join our platform team. You will design and operate the pipelines that move billions of events per day into our warehouse.

Responsibilities

- Design, build and maintain streaming and batch data pipelines
- Partner with analysts and product managers to model new datasets
- Improve the reliability and cost of our warehouse workloads

Requirements

- 5+ years of experience building data platforms in Python or Scala
- Strong SQL skills and familiarity with dbt and Airflow
- Comfort owning services in production on AWS

Benefits

- Fully remote team with flexible hours
- Learning budget and annual company offsite"""

# Leaked listing metadata in front of the real body.
RAW_DESCRIPTION = "Posted 3 days ago\nSenior data engineer at Acme Analytics\nRemote in the US\n\n" + SAMPLE_DESCRIPTION

# Exactly 200 characters.
SNIPPET = ("We are hiring a senior data engineer to build streaming pipelines for our analytics platform. " * 3)[:200]

JOB_PAGE_HTML = """<!DOCTYPE html>
<html>
<head>
<title>Senior Data Engineer - Acme Analytics</title>
<script>var tracking = "abc123";</script>
<style>.job-description { color: #333; }</style>
</head>
<body>
<nav class="nav">Find jobs Companies Salaries</nav>
<div class="header">Sign in to save this posting</div>
<div class="job-description">
<p>Posted 3 days ago</p>
<h2>About the Role</h2>
<p>We are looking for a senior data engineer to join our platform team. You will design and operate the pipelines that move billions of events per day into our warehouse.</p>
<h2>Responsibilities</h2>
<ul>
<li>Design, build and maintain streaming and batch data pipelines</li>
<li>Partner with analysts and product managers to model new datasets</li>
<li>Improve the reliability and cost of our warehouse workloads</li>
</ul>
<h2>Requirements</h2>
<ul>
<li>5+ years of experience building data platforms in Python or Scala</li>
<li>Strong SQL skills and familiarity with dbt and Airflow</li>
<li>Comfort owning services in production on AWS</li>
</ul>
<div class="related-jobs">Similar roles: Analytics Engineer, Platform Engineer</div>
<h2>Benefits</h2>
<ul>
<li>Fully remote team with flexible hours</li>
<li>Learning budget and annual company offsite</li>
</ul>
</div>
<footer class="footer">Copyright Acme Analytics</footer>
</body>
</html>
"""

EMPTY_PAGE_HTML = "<!DOCTYPE html><html><head><title>Loading</title></head><body></body></html>"


@pytest.fixture
def sample_description() -> str:
    return SAMPLE_DESCRIPTION


@pytest.fixture
def raw_description() -> str:
    return RAW_DESCRIPTION


@pytest.fixture
def snippet() -> str:
    return SNIPPET


@pytest.fixture
def job_page_html() -> str:
    return JOB_PAGE_HTML


@pytest.fixture
def empty_page_html() -> str:
    return EMPTY_PAGE_HTML


@pytest.fixture
def config(monkeypatch) -> Config:
    """Default configuration, isolated from JOBDESC_* variables in the environment."""
    for key in list(os.environ):
        if key.upper().startswith("JOBDESC_"):
            monkeypatch.delenv(key, raising=False)
    return Config()


# ============================================================================
# Fake Playwright
# ============================================================================


class FakePlaywrightManager:
    """Stands in for the object returned by ``async_playwright()``."""

    def __init__(self, playwright):
        self.playwright = playwright
        self.entered = 0
        self.exited = 0

    async def __aenter__(self):
        self.entered += 1
        return self.playwright

    async def __aexit__(self, exc_type, exc, tb):
        self.exited += 1
        return False


def build_fake_playwright(
    texts: Optional[Dict[str, str]] = None,
    *,
    final_url: str = "https://jobs.example.com/123",
    selector_errors: Optional[Dict[str, Exception]] = None,
    goto_error: Optional[Exception] = None,
    wait_error: Optional[Exception] = None,
    launch_error: Optional[Exception] = None,
    close_error: Optional[Exception] = None,
) -> SimpleNamespace:
    """
    Build a browser -> context -> page graph.

    ``texts`` maps a selector to the text content of its first match; any
    other selector matches nothing. ``selector_errors`` makes
    ``query_selector`` raise for the given selectors.
    """
    texts = texts or {}
    selector_errors = selector_errors or {}

    async def query_selector(selector):
        if selector in selector_errors:
            raise selector_errors[selector]
        if selector not in texts:
            return None
        element = MagicMock()
        element.text_content = AsyncMock(return_value=texts[selector])
        return element

    page = MagicMock()
    page.url = final_url
    page.goto = AsyncMock(side_effect=goto_error)
    page.wait_for_selector = AsyncMock(side_effect=wait_error)
    page.evaluate = AsyncMock(return_value=None)
    page.eval_on_selector_all = AsyncMock(return_value=None)
    page.query_selector = AsyncMock(side_effect=query_selector)

    context = MagicMock()
    context.new_page = AsyncMock(return_value=page)

    browser = MagicMock()
    browser.new_context = AsyncMock(return_value=context)
    browser.close = AsyncMock(side_effect=close_error)

    playwright = MagicMock()
    playwright.chromium.launch = AsyncMock(return_value=browser, side_effect=launch_error)

    return SimpleNamespace(
        manager=FakePlaywrightManager(playwright),
        playwright=playwright,
        browser=browser,
        context=context,
        page=page,
    )


@pytest.fixture
def fake_playwright():
    """Factory fixture: build a fake browser graph and patch it into the rendered tier."""
    patchers = []

    def _install(*args, **kwargs) -> SimpleNamespace:
        fake = build_fake_playwright(*args, **kwargs)
        patcher = patch("jobdesc.crawler.rendered_fetch.async_playwright", return_value=fake.manager)
        patcher.start()
        patchers.append(patcher)
        return fake

    yield _install

    for patcher in patchers:
        patcher.stop()
