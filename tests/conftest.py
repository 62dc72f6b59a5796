"""Pytest configuration and shared fixtures."""

from pathlib import Path
from typing import Any, Callable
from unittest.mock import AsyncMock, Mock
from urllib.parse import urljoin

import pytest
from playwright.async_api import Browser, BrowserContext, Page

from sitecrawl.analyzer.page_analyzer import PageAnalysis
from sitecrawl.jobs.store import CrawlRequest, JobStore
from sitecrawl.models.config import (
    BrowserConfig,
    CrawlerConfig,
    CrawlSettings,
    ViewportConfig,
)
from sitecrawl.models.job import CrawlJob

START_URL = "https://example.test/"


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def crawl_settings() -> CrawlSettings:
    """Create crawl settings with the stock limits."""
    return CrawlSettings()


@pytest.fixture
def crawler_config(crawl_settings: CrawlSettings) -> CrawlerConfig:
    """Create a crawler configuration."""
    return CrawlerConfig(
        browser=BrowserConfig(viewport=ViewportConfig(width=1920, height=1080)),
        crawl=crawl_settings,
    )


@pytest.fixture
def temp_config_file(crawler_config: CrawlerConfig, tmp_path: Path) -> Path:
    """Create a temporary config file."""
    config_file = tmp_path / "crawler-config.json"
    crawler_config.save(config_file)
    return config_file


# ============================================================================
# Job Fixtures
# ============================================================================


@pytest.fixture
def job_store(crawl_settings: CrawlSettings) -> JobStore:
    return JobStore(crawl_settings)


@pytest.fixture
def make_job() -> Callable[..., CrawlJob]:
    """Factory for running jobs with sensible defaults."""

    def _make(
        start_url: str = START_URL,
        max_pages: int = 50,
        max_depth: int = 3,
        job_id: str = "job-1",
    ) -> CrawlJob:
        return CrawlJob(id=job_id, start_url=start_url, max_pages=max_pages, max_depth=max_depth)

    return _make


@pytest.fixture
def crawl_request() -> CrawlRequest:
    return CrawlRequest(url=START_URL, max_pages=10, max_depth=2)


# ============================================================================
# DOM Snapshot Fixtures
# ============================================================================


def make_snapshot(
    page_url: str = START_URL,
    anchors: list[dict] | None = None,
    images: list[dict] | None = None,
    buttons: list[dict] | None = None,
    forms: list[dict] | None = None,
) -> dict[str, Any]:
    """Build the raw dict the in-page snapshot script returns."""
    return {
        "page_url": page_url,
        "anchors": anchors or [],
        "images": images or [],
        "buttons": buttons or [],
        "forms": forms or [],
    }


def anchor(href: str | None, text: str = "link", base: str = START_URL) -> dict:
    """An anchor as the browser reports it: raw attribute plus resolved href."""
    return {"href_attr": href, "href": urljoin(base, href) if href else "", "text": text}


# ============================================================================
# Playwright Mock Fixtures
# ============================================================================


@pytest.fixture
def mock_page() -> AsyncMock:
    """Create a mock Playwright page that records event handlers.

    Handlers registered through ``page.on`` are kept in ``page.handlers`` so
    tests can fire console and pageerror events.
    """
    page = AsyncMock(spec=Page)
    page.handlers = {}
    page.on = Mock(side_effect=lambda event, cb: page.handlers.setdefault(event, []).append(cb))
    page.url = START_URL
    response = Mock()
    response.status = 200
    page.goto = AsyncMock(return_value=response)
    page.title = AsyncMock(return_value="Example Page")
    page.evaluate = AsyncMock(return_value=make_snapshot())
    page.set_viewport_size = AsyncMock()
    page.close = AsyncMock()
    return page


@pytest.fixture
def mock_context(mock_page: AsyncMock) -> AsyncMock:
    """Create a mock Playwright browser context."""
    context = AsyncMock(spec=BrowserContext)
    context.new_page = AsyncMock(return_value=mock_page)
    return context


@pytest.fixture
def mock_browser(mock_context: AsyncMock) -> AsyncMock:
    """Create a mock Playwright browser."""
    browser = AsyncMock(spec=Browser)
    browser.new_context = AsyncMock(return_value=mock_context)
    browser.close = AsyncMock()
    return browser


# ============================================================================
# Fake Site
# ============================================================================


class FakeSite:
    """Maps URLs to canned analyses for driving the orchestrator without a browser.

    Unknown URLs load as empty pages. A URL mapped to an exception makes the
    analyzer call raise it.
    """

    def __init__(self, pages: dict[str, Any] | None = None):
        self.pages: dict[str, Any] = pages or {}
        self.visits: list[str] = []
        self.on_visit: Callable[[str], None] | None = None

    def add(self, url: str, links: list[str] | None = None, **fields) -> None:
        self.pages[url] = PageAnalysis(
            title=fields.pop("title", url),
            status_code=fields.pop("status_code", 200),
            load_time=fields.pop("load_time", 100),
            links=links or [],
            **fields,
        )

    async def analyze(self, page, url, *args, **kwargs) -> PageAnalysis:
        self.visits.append(url)
        if self.on_visit is not None:
            self.on_visit(url)
        outcome = self.pages.get(url, PageAnalysis(title="", status_code=200, load_time=50))
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


@pytest.fixture
def fake_site() -> FakeSite:
    return FakeSite()
