"""Job store — the registry of in-flight and finished crawl jobs."""

from __future__ import annotations

import logging
import threading
import uuid

from pydantic import Field

from sitecrawl.models.config import CrawlSettings
from sitecrawl.models.job import CrawlJob, JobStatus, WireModel
from sitecrawl.url_utils import normalize_start_url

logger = logging.getLogger(__name__)


class JobNotFoundError(KeyError):
    """Raised when a job id is not in the store."""

    def __init__(self, job_id: str):
        super().__init__(job_id)
        self.job_id = job_id

    def __str__(self) -> str:
        return f"Job not found: {self.job_id}"


class CrawlRequest(WireModel):
    """Parameters accepted when creating a job (``maxPages``/``maxDepth`` on the wire)."""
    url: str | None = None
    max_pages: int = Field(default=50, ge=1)
    max_depth: int = Field(default=3, ge=0)

    @classmethod
    def from_payload(cls, payload: dict, settings: CrawlSettings) -> "CrawlRequest":
        data = {
            "maxPages": settings.default_max_pages,
            "maxDepth": settings.default_max_depth,
        }
        data.update({k: v for k, v in payload.items() if v is not None})
        return cls.model_validate(data)


class JobStore:
    """Thread-safe map of job id to :class:`CrawlJob`.

    Created once at startup and handed to whoever needs it; there is no
    module-level registry.
    """

    def __init__(self, settings: CrawlSettings | None = None):
        self.settings = settings or CrawlSettings()
        self._jobs: dict[str, CrawlJob] = {}
        self._lock = threading.Lock()

    def create(self, request: CrawlRequest) -> CrawlJob:
        """Validate ``request`` and register a new running job.

        Raises InvalidURLError (a ValueError) for a missing or malformed URL;
        nothing is registered in that case.
        """
        start_url = normalize_start_url(request.url)
        job = CrawlJob(
            id=uuid.uuid4().hex,
            start_url=start_url,
            max_pages=request.max_pages,
            max_depth=request.max_depth,
        )
        with self._lock:
            self._jobs[job.id] = job
        logger.info("Created job %s for %s", job.id, start_url)
        return job

    def get(self, job_id: str) -> CrawlJob:
        with self._lock:
            job = self._jobs.get(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    def list_jobs(self) -> list[CrawlJob]:
        with self._lock:
            return list(self._jobs.values())

    def request_stop(self, job_id: str) -> CrawlJob:
        """Stop a running job. A job already in a terminal state is left as is."""
        job = self.get(job_id)
        if job.transition(JobStatus.STOPPED):
            logger.info("Stop requested for job %s", job_id)
        else:
            logger.debug("Stop ignored for job %s (status=%s)", job_id, job.status.value)
        return job

    def status(self, job_id: str) -> dict:
        return self.get(job_id).status_snapshot()

    def results(self, job_id: str) -> dict:
        return self.get(job_id).results_snapshot()

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)

    def __contains__(self, job_id: str) -> bool:
        with self._lock:
            return job_id in self._jobs
