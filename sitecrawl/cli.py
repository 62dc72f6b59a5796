"""CLI entry point for the site crawler."""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

import click
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from sitecrawl.api.app import create_app
from sitecrawl.crawler.orchestrator import CrawlOrchestrator
from sitecrawl.jobs.runner import JobRunner
from sitecrawl.jobs.store import CrawlRequest, JobStore
from sitecrawl.models.config import CrawlerConfig
from sitecrawl.models.job import CrawlJob
from sitecrawl.reporter.json_report import generate_json_report
from sitecrawl.url_utils import InvalidURLError

console = Console()

DEFAULT_CONFIG = "crawler-config.json"

_SUMMARY_LABELS = {
    "totalPages": "Pages",
    "brokenLinks": "Broken links",
    "jsErrors": "JS errors",
    "missingImages": "Missing images",
    "consoleLogs": "Console errors/warnings",
    "deadButtons": "Dead buttons/links",
    "slowPages": "Slow pages",
    "missingAlt": "Missing alt text",
    "formIssues": "Form issues",
}


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _print_summary(job: CrawlJob) -> None:
    snapshot = job.results_snapshot()
    status = snapshot["status"]
    colour = {"complete": "green", "stopped": "yellow", "error": "red"}.get(status, "white")
    console.print(f"\n[bold {colour}]Crawl {status}[/bold {colour}]")
    if job.error:
        console.print(f"[red]{job.error}[/red]")

    table = Table(title=f"Results for {job.start_url}")
    table.add_column("Category", style="bold")
    table.add_column("Count", justify="right")
    for key, label in _SUMMARY_LABELS.items():
        count = snapshot["summary"][key]
        style = "red" if count and key != "totalPages" else ""
        table.add_row(label, f"[{style}]{count}[/{style}]" if style else str(count))
    table.add_row("Elapsed", f"{snapshot['elapsedTime']}s")
    console.print(table)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Breadth-first website crawler that reports page quality issues."""
    setup_logging(verbose)


@cli.command()
@click.argument("url")
@click.option("--max-pages", "-p", type=int, default=None, help="Maximum pages to visit")
@click.option("--max-depth", "-d", type=int, default=None, help="Maximum link depth from the start URL")
@click.option("--check-links", is_flag=True, help="Request every discovered link and report broken ones")
@click.option("--output", "-o", type=click.Path(), default=None, help="Write a JSON report here")
@click.option("--config", "-c", default=DEFAULT_CONFIG, help="Config file path")
def crawl(
    url: str,
    max_pages: int | None,
    max_depth: int | None,
    check_links: bool,
    output: str | None,
    config: str,
) -> None:
    """Crawl URL in the foreground and print a summary."""
    cfg = CrawlerConfig.load_or_default(config)
    if check_links:
        cfg.crawl.check_links = True

    store = JobStore(cfg.crawl)
    payload = {"url": url, "maxPages": max_pages, "maxDepth": max_depth}
    try:
        job = store.create(CrawlRequest.from_payload(payload, cfg.crawl))
    except (InvalidURLError, ValidationError) as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(2)

    try:
        asyncio.run(CrawlOrchestrator(cfg).run(job))
    except KeyboardInterrupt:
        console.print("[yellow]Interrupted; keeping results collected so far[/yellow]")

    _print_summary(job)
    if output:
        generate_json_report(job, Path(output))
        console.print(f"  JSON report: [blue]{output}[/blue]")
    if job.error:
        sys.exit(1)


@cli.command()
@click.option("--host", default=None, help="Interface to bind (defaults to config)")
@click.option("--port", type=int, default=None, help="Port to listen on (defaults to $PORT or 3000)")
@click.option("--config", "-c", default=DEFAULT_CONFIG, help="Config file path")
def serve(host: str | None, port: int | None, config: str) -> None:
    """Serve the crawl job API."""
    cfg = CrawlerConfig.load_or_default(config)
    runner = JobRunner(JobStore(cfg.crawl), CrawlOrchestrator(cfg))
    runner.start()
    app = create_app(cfg, runner)

    bind_host = host or cfg.server.host
    bind_port = port or cfg.server.port
    console.print(f"[green]Site Crawler running on port {bind_port}[/green]")
    try:
        app.run(host=bind_host, port=bind_port, threaded=True)
    finally:
        runner.shutdown()


@cli.command()
@click.option("--config", "-c", default=DEFAULT_CONFIG, help="Config file path")
def init(config: str) -> None:
    """Create a default configuration file."""
    config_path = Path(config)
    if config_path.exists():
        if not click.confirm(f"{config_path} already exists. Overwrite?"):
            return

    CrawlerConfig().save(config_path)
    console.print(f"[green]Created {config_path}[/green]")
    console.print("\nYou can now customize this file and run:")
    console.print("  [blue]site-crawler crawl https://example.com[/blue]")
    console.print("  [blue]site-crawler serve[/blue]")


if __name__ == "__main__":
    cli()
