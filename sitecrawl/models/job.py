"""Crawl job data structures: lifecycle state, page records, and findings."""

from __future__ import annotations

import threading
import time
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class JobStatus(str, Enum):
    RUNNING = "running"
    STOPPED = "stopped"
    COMPLETE = "complete"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self is not JobStatus.RUNNING


class PageRecord(WireModel):
    """One analyzed page. Success fields and ``error`` are mutually exclusive."""
    url: str
    depth: int
    title: Optional[str] = None
    load_time: Optional[int] = None  # ms
    status_code: Optional[int] = None
    error: Optional[str] = None


class Finding(WireModel):
    found_on: str = ""


class BrokenLink(Finding):
    url: str
    status_code: Optional[int] = None
    reason: str = ""


class JsError(Finding):
    message: str


class MissingImage(Finding):
    src: str
    alt: str = "(no alt)"


class ConsoleLog(Finding):
    type: str  # error, warning
    text: str


class DeadButton(Finding):
    type: str  # link, button
    text: str = "(empty)"
    href: Optional[str] = None


class SlowPage(Finding):
    url: str
    load_time: int


class MissingAlt(Finding):
    src: str


class FormIssue(Finding):
    form: str
    issue: str


# Categories the page analyzer produces; slow pages are derived by the orchestrator.
ANALYZER_CATEGORIES = (
    "broken_links",
    "js_errors",
    "missing_images",
    "console_logs",
    "dead_buttons",
    "missing_alt",
    "form_issues",
)


class CrawlResults(WireModel):
    pages: list[PageRecord] = Field(default_factory=list)
    broken_links: list[BrokenLink] = Field(default_factory=list)
    js_errors: list[JsError] = Field(default_factory=list)
    missing_images: list[MissingImage] = Field(default_factory=list)
    console_logs: list[ConsoleLog] = Field(default_factory=list)
    dead_buttons: list[DeadButton] = Field(default_factory=list)
    slow_pages: list[SlowPage] = Field(default_factory=list)
    missing_alt: list[MissingAlt] = Field(default_factory=list)
    form_issues: list[FormIssue] = Field(default_factory=list)

    def summary(self) -> dict[str, int]:
        return {
            "totalPages": len(self.pages),
            "brokenLinks": len(self.broken_links),
            "jsErrors": len(self.js_errors),
            "missingImages": len(self.missing_images),
            "consoleLogs": len(self.console_logs),
            "deadButtons": len(self.dead_buttons),
            "slowPages": len(self.slow_pages),
            "missingAlt": len(self.missing_alt),
            "formIssues": len(self.form_issues),
        }


class CrawlJob(WireModel):
    """A single crawl run.

    The orchestrator is the only writer while the job is running; readers on
    other threads go through :meth:`status_snapshot` / :meth:`results_snapshot`,
    which copy state under the job lock. Result lists are only ever appended to.
    """

    id: str
    start_url: str
    max_pages: int
    max_depth: int
    started_at: float = Field(default_factory=time.time)
    status: JobStatus = JobStatus.RUNNING
    pages_scanned: int = 0
    current_url: Optional[str] = None
    finished_at: Optional[float] = None
    error: Optional[str] = None
    results: CrawlResults = Field(default_factory=CrawlResults)

    _lock: threading.Lock = PrivateAttr(default_factory=threading.Lock)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def transition(self, new_status: JobStatus, error: str | None = None) -> bool:
        """Move a running job to a terminal state. Returns False if already terminal."""
        if not new_status.is_terminal:
            raise ValueError(f"Cannot transition to {new_status.value}")
        with self._lock:
            if self.status.is_terminal:
                return False
            self.status = new_status
            self.finished_at = time.time()
            if new_status is JobStatus.ERROR:
                self.error = error or "Unknown error"
            return True

    @property
    def is_running(self) -> bool:
        return self.status is JobStatus.RUNNING

    def elapsed_seconds(self) -> int:
        end = self.finished_at if self.finished_at is not None else time.time()
        return round(end - self.started_at)

    # ------------------------------------------------------------------
    # Mutation (orchestrator only)
    # ------------------------------------------------------------------

    def mark_progress(self, url: str, pages_scanned: int) -> None:
        with self._lock:
            self.current_url = url
            self.pages_scanned = pages_scanned

    def add_page(self, record: PageRecord) -> None:
        with self._lock:
            self.results.pages.append(record)

    def merge_findings(self, found_on: str, findings: dict[str, list[Finding]]) -> None:
        """Append findings per category, stamping each with the page they came from."""
        with self._lock:
            for category, items in findings.items():
                if not items:
                    continue
                target = getattr(self.results, category)
                target.extend(item.model_copy(update={"found_on": found_on}) for item in items)

    def add_slow_page(self, url: str, load_time: int) -> None:
        with self._lock:
            self.results.slow_pages.append(SlowPage(url=url, load_time=load_time, found_on=url))

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def status_snapshot(self) -> dict[str, Any]:
        with self._lock:
            snapshot = {
                "jobId": self.id,
                "status": self.status.value,
                "pagesScanned": self.pages_scanned,
                "maxPages": self.max_pages,
                "elapsedTime": self.elapsed_seconds(),
                "currentUrl": self.current_url,
            }
            if self.error:
                snapshot["error"] = self.error
            return snapshot

    def results_snapshot(self) -> dict[str, Any]:
        with self._lock:
            snapshot = {
                "jobId": self.id,
                "status": self.status.value,
                "startUrl": self.start_url,
                "pagesScanned": self.pages_scanned,
                "elapsedTime": self.elapsed_seconds(),
                "results": self.results.model_dump(by_alias=True, mode="json", exclude_none=True),
                "summary": self.results.summary(),
            }
            if self.error:
                snapshot["error"] = self.error
            return snapshot
