"""Shared URL utilities — validate seeds, resolve discovered links, check scope."""

from __future__ import annotations

from urllib.parse import urldefrag, urljoin, urlparse, urlunparse

_CRAWLABLE_SCHEMES = ("http", "https")


class InvalidURLError(ValueError):
    """Raised when a seed URL is missing or malformed."""


def normalize_start_url(url: str | None) -> str:
    """Validate a seed URL and return it in canonical form.

    Lowercases scheme and host and gives an empty path a trailing slash, so
    ``https://Example.test`` and ``https://example.test/`` name the same page.
    """
    if not url or not url.strip():
        raise InvalidURLError("URL is required")
    try:
        parsed = urlparse(url.strip())
        hostname = parsed.hostname
    except ValueError as e:
        raise InvalidURLError("Invalid URL format") from e
    if parsed.scheme.lower() not in _CRAWLABLE_SCHEMES or not hostname:
        raise InvalidURLError("Invalid URL format")
    netloc = parsed.netloc.lower()
    return urlunparse((
        parsed.scheme.lower(), netloc, parsed.path or "/",
        parsed.params, parsed.query, "",
    ))


def host_of(url: str) -> str:
    """Lowercased hostname without port, or "" when there is none or it cannot be parsed."""
    try:
        return urlparse(url).hostname or ""
    except ValueError:
        return ""


def resolve_link(href: str, base_url: str) -> str | None:
    """Resolve ``href`` against the page it was found on.

    Returns None for anything that cannot be crawled: unparseable URLs and
    non-http(s) schemes. Fragments are dropped, so ``/a#intro`` and ``/a#faq``
    are one page and are visited once. A crawler that keeps the fragment
    would count them as two distinct pages.
    """
    try:
        full_url, _ = urldefrag(urljoin(base_url, href.strip()))
        parsed = urlparse(full_url)
        if parsed.scheme not in _CRAWLABLE_SCHEMES or not parsed.hostname:
            return None
    except ValueError:
        return None
    if not parsed.path:
        full_url = urlunparse(parsed._replace(path="/"))
    return full_url


def is_same_host(url: str, host: str) -> bool:
    return bool(host) and host_of(url) == host
