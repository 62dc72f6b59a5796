"""Browser launch helpers. Each crawl job gets its own Chromium instance."""

from __future__ import annotations

from playwright.async_api import Browser, BrowserContext, Playwright

from sitecrawl.models.config import BrowserConfig


async def launch_browser(playwright: Playwright, config: BrowserConfig) -> Browser:
    """Launch Chromium with the configured sandboxing flags."""
    return await playwright.chromium.launch(
        headless=config.headless,
        args=list(config.launch_args),
    )


async def create_context(browser: Browser, config: BrowserConfig) -> BrowserContext:
    """Create the context all pages of one job are opened in."""
    context_kwargs: dict = {
        "viewport": {"width": config.viewport.width, "height": config.viewport.height},
    }
    if config.user_agent:
        context_kwargs["user_agent"] = config.user_agent
    return await browser.new_context(**context_kwargs)
