"""Crawl orchestrator — breadth-first traversal of one host, one page at a time."""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from contextlib import AsyncExitStack

from playwright.async_api import BrowserContext, async_playwright

from sitecrawl.analyzer.link_checker import LinkChecker
from sitecrawl.analyzer.page_analyzer import analyze_page
from sitecrawl.models.config import CrawlerConfig
from sitecrawl.models.job import CrawlJob, JobStatus, PageRecord
from sitecrawl.url_utils import host_of, resolve_link
from sitecrawl.utils.browser import create_context, launch_browser

logger = logging.getLogger(__name__)


class CrawlOrchestrator:
    """Drives the page analyzer over a job's start host.

    The crawl loop:

    1. Pops the oldest ``(url, depth)`` entry from a FIFO queue
    2. Skips it if already visited or deeper than ``max_depth``
    3. Analyzes the page and merges its findings into the job
    4. Queues every same-host link not yet visited at ``depth + 1``
    5. Repeats until the queue is empty, the page budget is spent, or the job
       is no longer running (stopped from outside)

    Links are only checked against the visited set when queued, so the queue
    can hold duplicates; step 2 drops them.
    """

    def __init__(self, config: CrawlerConfig | None = None):
        self.config = config or CrawlerConfig()
        self.settings = self.config.crawl

    async def run(self, job: CrawlJob) -> None:
        """Run the crawl for ``job`` to a terminal state. Never raises for crawl errors."""
        logger.info(
            "Starting crawl %s of %s (max_pages=%d, max_depth=%d)",
            job.id, job.start_url, job.max_pages, job.max_depth,
        )
        try:
            async with AsyncExitStack() as stack:
                p = await stack.enter_async_context(async_playwright())
                browser = await launch_browser(p, self.config.browser)
                stack.push_async_callback(browser.close)
                context = await create_context(browser, self.config.browser)

                link_checker = None
                if self.settings.check_links:
                    request = await p.request.new_context(user_agent=self.config.browser.user_agent)
                    stack.push_async_callback(request.dispose)
                    link_checker = LinkChecker(
                        request,
                        host_of(job.start_url),
                        timeout_ms=self.settings.link_check_timeout_ms,
                        check_external=self.settings.check_external_links,
                    )

                await self.crawl(context, job, link_checker)
        except asyncio.CancelledError:
            job.transition(JobStatus.STOPPED)
            logger.info("Crawl %s cancelled", job.id)
            raise
        except Exception as e:
            logger.exception("Crawl %s failed: %s", job.id, e)
            job.transition(JobStatus.ERROR, str(e))
            return

        if job.transition(JobStatus.COMPLETE):
            logger.info(
                "Crawl %s complete: %d pages in %ds",
                job.id, job.pages_scanned, job.elapsed_seconds(),
            )
        else:
            logger.info("Crawl %s ended with status %s", job.id, job.status.value)

    async def crawl(
        self,
        context: BrowserContext,
        job: CrawlJob,
        link_checker: LinkChecker | None = None,
    ) -> None:
        """The breadth-first loop. Opens one page per URL in ``context``."""
        start_host = host_of(job.start_url)
        visited: set[str] = set()
        queue: deque[tuple[str, int]] = deque([(job.start_url, 0)])

        while queue and job.is_running and len(visited) < job.max_pages:
            url, depth = queue.popleft()
            if url in visited or depth > job.max_depth:
                continue

            visited.add(url)
            job.mark_progress(url, len(visited))
            logger.info(
                "Crawling [%d/%d] depth=%d: %s",
                len(visited), job.max_pages, depth, url,
            )

            try:
                page = await context.new_page()
                analysis = await analyze_page(
                    page, url, self.settings, self.config.browser.viewport, link_checker,
                )
            except Exception as e:
                logger.warning("Error crawling %s: %s", url, e)
                job.add_page(PageRecord(url=url, depth=depth, error=str(e)))
                continue

            # The page record goes in before its findings so every foundOn in a
            # snapshot names a page already listed
            if analysis.error is not None:
                job.add_page(PageRecord(url=url, depth=depth, error=analysis.error))
                job.merge_findings(url, analysis.findings())
                continue

            job.add_page(PageRecord(
                url=url,
                depth=depth,
                title=analysis.title,
                load_time=analysis.load_time,
                status_code=analysis.status_code,
            ))
            job.merge_findings(url, analysis.findings())
            if analysis.load_time > self.settings.slow_page_threshold_ms:
                job.add_slow_page(url, analysis.load_time)

            queued = self._enqueue_links(queue, analysis.links, url, depth + 1, start_host, visited)
            logger.debug(
                "Page '%s': %d links found, %d queued",
                analysis.title or url, len(analysis.links), queued,
            )

        logger.info(
            "Crawl loop for %s finished: %d pages visited, %d entries left in queue",
            job.id, len(visited), len(queue),
        )

    @staticmethod
    def _enqueue_links(
        queue: deque[tuple[str, int]],
        links: list[str],
        page_url: str,
        depth: int,
        start_host: str,
        visited: set[str],
    ) -> int:
        """Queue same-host, unvisited links. Returns the number queued."""
        count = 0
        for link in links:
            resolved = resolve_link(link, page_url)
            if resolved is None:
                logger.debug("Dropping unresolvable link %r on %s", link, page_url)
                continue
            if host_of(resolved) != start_host or resolved in visited:
                continue
            queue.append((resolved, depth))
            count += 1
        return count
