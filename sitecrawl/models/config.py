"""Configuration models for the site crawler."""

from __future__ import annotations

import json
import os
from pathlib import Path

from pydantic import BaseModel, Field


def _default_port() -> int:
    return int(os.environ.get("PORT", "3000"))


class ViewportConfig(BaseModel):
    width: int = 1920
    height: int = 1080


class BrowserConfig(BaseModel):
    headless: bool = True
    launch_args: list[str] = Field(
        default_factory=lambda: [
            "--no-sandbox",
            "--disable-setuid-sandbox",
            "--disable-dev-shm-usage",
            "--disable-accelerated-2d-canvas",
            "--disable-gpu",
        ]
    )
    viewport: ViewportConfig = Field(default_factory=ViewportConfig)
    user_agent: str | None = None


class CrawlSettings(BaseModel):
    default_max_pages: int = 50
    default_max_depth: int = 3
    navigation_timeout_ms: int = 30000
    slow_page_threshold_ms: int = 3000
    dead_text_limit: int = 50

    # Broken-link checking issues one extra request per distinct link
    check_links: bool = False
    check_external_links: bool = False
    link_check_timeout_ms: int = 10000


class ServerConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = Field(default_factory=_default_port)


class CrawlerConfig(BaseModel):
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    crawl: CrawlSettings = Field(default_factory=CrawlSettings)
    server: ServerConfig = Field(default_factory=ServerConfig)

    @classmethod
    def load(cls, path: str | Path) -> "CrawlerConfig":
        """Load config from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            data = json.load(f)
        return cls(**data)

    @classmethod
    def load_or_default(cls, path: str | Path | None) -> "CrawlerConfig":
        """Load config from ``path`` if it exists, otherwise return defaults."""
        if path and Path(path).exists():
            return cls.load(path)
        return cls()

    def save(self, path: str | Path) -> None:
        """Save config to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.model_dump(), f, indent=2)
