"""Job runner — executes crawls as background tasks on a dedicated event loop."""

from __future__ import annotations

import asyncio
import logging
import threading
from concurrent.futures import CancelledError, Future
from concurrent.futures import TimeoutError as FutureTimeoutError

from sitecrawl.crawler.orchestrator import CrawlOrchestrator
from sitecrawl.models.job import CrawlJob

from .store import CrawlRequest, JobStore

logger = logging.getLogger(__name__)


class JobRunner:
    """Owns an asyncio loop on a background thread and one task per job.

    Callers on any thread submit jobs and get control back immediately. Stopping
    a job is cooperative (its status flips and the crawl loop notices between
    pages); :meth:`shutdown` cancels whatever is still running.
    """

    def __init__(self, store: JobStore, orchestrator: CrawlOrchestrator):
        self.store = store
        self.orchestrator = orchestrator
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None
        self._futures: dict[str, Future] = {}
        # Only touched on the loop thread
        self._tasks: dict[str, asyncio.Task] = {}
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(
            target=self._run_loop, name="crawl-runner", daemon=True,
        )
        self._thread.start()
        logger.debug("Job runner started")

    def _run_loop(self) -> None:
        asyncio.set_event_loop(self._loop)
        self._loop.run_forever()

    def create_job(self, request: CrawlRequest) -> CrawlJob:
        """Register a job and start crawling it. Returns without waiting for the crawl."""
        job = self.store.create(request)
        self.submit(job)
        return job

    def submit(self, job: CrawlJob) -> Future:
        if not self.running:
            raise RuntimeError("Job runner is not started")
        future = asyncio.run_coroutine_threadsafe(self._run_job(job), self._loop)
        with self._lock:
            self._futures[job.id] = future
        future.add_done_callback(lambda f, job_id=job.id: self._forget(job_id))
        return future

    def _forget(self, job_id: str) -> None:
        with self._lock:
            self._futures.pop(job_id, None)

    def stop_job(self, job_id: str) -> CrawlJob:
        return self.store.request_stop(job_id)

    def active_jobs(self) -> list[str]:
        with self._lock:
            return list(self._futures)

    async def _run_job(self, job: CrawlJob) -> None:
        self._tasks[job.id] = asyncio.current_task()
        try:
            await self.orchestrator.run(job)
        finally:
            self._tasks.pop(job.id, None)

    async def _cancel_all(self) -> None:
        # Crawl tasks only; Playwright's driver connection keeps running for their cleanup
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        results = await asyncio.gather(*tasks, return_exceptions=True)
        logger.debug("Cancelled %d crawl task(s)", len(results))

    def shutdown(self, timeout: float = 10.0) -> None:
        """Cancel outstanding crawls and stop the loop thread."""
        if not self.running:
            return
        cancel = asyncio.run_coroutine_threadsafe(self._cancel_all(), self._loop)
        try:
            cancel.result(timeout=timeout)
        except (CancelledError, FutureTimeoutError) as e:
            logger.warning("Crawl tasks did not finish cancelling: %r", e)
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout=timeout)
        self._loop.close()
        self._thread = None
        self._loop = None
        logger.debug("Job runner stopped")
