"""JSON report output."""

from __future__ import annotations

import json
from pathlib import Path

from sitecrawl.models.job import CrawlJob


def generate_json_report(job: CrawlJob, output_path: Path) -> None:
    """Write a machine-readable JSON report of the job's results."""
    report = job.results_snapshot()
    report["maxPages"] = job.max_pages
    report["maxDepth"] = job.max_depth

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w") as f:
        json.dump(report, f, indent=2, default=str)
