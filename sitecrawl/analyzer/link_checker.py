"""Link reachability checks — reports links that answer with an error or not at all."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urldefrag

from playwright.async_api import APIRequestContext, Error as PlaywrightError

from sitecrawl.models.job import BrokenLink
from sitecrawl.url_utils import is_same_host

logger = logging.getLogger(__name__)

# Servers that refuse HEAD get a GET instead
_HEAD_UNSUPPORTED = (405, 501)


@dataclass
class LinkStatus:
    status_code: Optional[int]
    reason: str = ""

    @property
    def is_broken(self) -> bool:
        return self.status_code is None or self.status_code >= 400


class LinkChecker:
    """Checks link targets once per crawl, caching each URL's outcome."""

    def __init__(
        self,
        request: APIRequestContext,
        start_host: str,
        timeout_ms: int = 10000,
        check_external: bool = False,
    ):
        self._request = request
        self._start_host = start_host
        self._timeout_ms = timeout_ms
        self._check_external = check_external
        self._cache: dict[str, LinkStatus] = {}

    def _should_check(self, url: str) -> bool:
        if not url.startswith(("http://", "https://")):
            return False
        return self._check_external or is_same_host(url, self._start_host)

    async def status_of(self, url: str) -> LinkStatus:
        if url in self._cache:
            return self._cache[url]
        try:
            resp = await self._request.head(
                url, timeout=self._timeout_ms, fail_on_status_code=False,
            )
            if resp.status in _HEAD_UNSUPPORTED:
                resp = await self._request.get(
                    url, timeout=self._timeout_ms, fail_on_status_code=False,
                )
            status = LinkStatus(status_code=resp.status, reason=resp.status_text)
        except PlaywrightError as e:
            logger.debug("Link check failed for %s: %s", url, e)
            first_line = (str(e).splitlines() or ["Request failed"])[0]
            status = LinkStatus(status_code=None, reason=first_line)
        self._cache[url] = status
        return status

    async def find_broken(self, links: list[str]) -> list[BrokenLink]:
        broken = []
        # Fragments never reach the server
        for url in dict.fromkeys(urldefrag(link).url for link in links):
            if not self._should_check(url):
                continue
            status = await self.status_of(url)
            if status.is_broken:
                broken.append(BrokenLink(
                    url=url, status_code=status.status_code, reason=status.reason,
                ))
        return broken
