"""Page analysis — loads one URL in a browser page and turns it into findings."""

from __future__ import annotations

import logging
import time
from typing import Optional

from playwright.async_api import Page
from pydantic import BaseModel, Field

from sitecrawl.models.config import CrawlSettings, ViewportConfig
from sitecrawl.models.job import (
    ANALYZER_CATEGORIES,
    BrokenLink,
    ConsoleLog,
    DeadButton,
    Finding,
    FormIssue,
    JsError,
    MissingAlt,
    MissingImage,
)

from .dom_snapshot import capture_snapshot
from .link_checker import LinkChecker
from .rules import (
    extract_links,
    find_dead_elements,
    find_form_issues,
    find_missing_alt,
    find_missing_images,
)

logger = logging.getLogger(__name__)

CAPTURED_CONSOLE_TYPES = ("error", "warning")


class PageAnalysis(BaseModel):
    """Everything found on a single page. Findings carry no ``found_on`` yet."""
    title: str = ""
    load_time: int = 0  # ms
    status_code: int = 0
    links: list[str] = Field(default_factory=list)
    broken_links: list[BrokenLink] = Field(default_factory=list)
    js_errors: list[JsError] = Field(default_factory=list)
    missing_images: list[MissingImage] = Field(default_factory=list)
    console_logs: list[ConsoleLog] = Field(default_factory=list)
    dead_buttons: list[DeadButton] = Field(default_factory=list)
    missing_alt: list[MissingAlt] = Field(default_factory=list)
    form_issues: list[FormIssue] = Field(default_factory=list)
    error: Optional[str] = None

    def findings(self) -> dict[str, list[Finding]]:
        return {category: getattr(self, category) for category in ANALYZER_CATEGORIES}


def attach_listeners(page: Page, result: PageAnalysis) -> None:
    """Record console errors/warnings and uncaught page errors into ``result``."""

    def on_console(msg) -> None:
        if msg.type in CAPTURED_CONSOLE_TYPES:
            result.console_logs.append(ConsoleLog(type=msg.type, text=msg.text))

    def on_page_error(error) -> None:
        result.js_errors.append(JsError(message=getattr(error, "message", str(error))))

    page.on("console", on_console)
    page.on("pageerror", on_page_error)


async def analyze_page(
    page: Page,
    url: str,
    settings: CrawlSettings | None = None,
    viewport: ViewportConfig | None = None,
    link_checker: LinkChecker | None = None,
) -> PageAnalysis:
    """Load ``url`` in ``page`` and collect its findings.

    Navigation and extraction failures never propagate: they become a single
    ``JsError`` plus ``error`` on the result. The page is always closed.
    """
    settings = settings or CrawlSettings()
    viewport = viewport or ViewportConfig()
    result = PageAnalysis()
    attach_listeners(page, result)

    try:
        await page.set_viewport_size({"width": viewport.width, "height": viewport.height})

        start = time.monotonic()
        response = await page.goto(
            url, wait_until="networkidle", timeout=settings.navigation_timeout_ms,
        )
        result.load_time = int((time.monotonic() - start) * 1000)
        result.status_code = response.status if response is not None else 0

        result.title = await page.title() or ""

        snapshot = await capture_snapshot(page)
        result.links = extract_links(snapshot)
        result.missing_images = find_missing_images(snapshot)
        result.missing_alt = find_missing_alt(snapshot)
        result.dead_buttons = find_dead_elements(snapshot, settings.dead_text_limit)
        result.form_issues = find_form_issues(snapshot)

        if link_checker is not None:
            result.broken_links = await link_checker.find_broken(result.links)

        logger.debug(
            "Analyzed %s: status=%d load=%dms links=%d",
            url, result.status_code, result.load_time, len(result.links),
        )
    except Exception as e:
        logger.warning("Page analysis failed for %s: %s", url, e)
        result.error = str(e)
        result.js_errors.append(JsError(message=f"Page load error: {e}"))
    finally:
        try:
            await page.close()
        except Exception as e:
            logger.debug("Closing page for %s failed: %s", url, e)

    return result
