"""Static allow-list of domains whose resource URLs skip live validation."""

from __future__ import annotations

from typing import Tuple
from urllib.parse import urlsplit

TRUSTED_DOMAINS: Tuple[str, ...] = (
    "youtube.com",
    "youtu.be",
    "developer.mozilla.org",
    "docs.python.org",
    "reactjs.org",
    "react.dev",
    "freecodecamp.org",
    "khanacademy.org",
    "coursera.org",
    "edx.org",
    "github.com",
    "gitlab.com",
    "css-tricks.com",
    "smashingmagazine.com",
    "dev.to",
    "realpython.com",
    "w3schools.com",
    "stackoverflow.com",
)


def _hostname(url: str) -> str:
    try:
        hostname = urlsplit(url.strip()).hostname
    except (AttributeError, ValueError):
        return ""
    if not hostname:
        return ""
    hostname = hostname.lower()
    if hostname.startswith("www."):
        hostname = hostname[4:]
    return hostname


def is_trusted_url(url: str, domains: Tuple[str, ...] = TRUSTED_DOMAINS) -> bool:
    """Return True when the URL's hostname contains an allow-listed domain.

    Matching is a substring test, so subdomains such as ``m.youtube.com`` or
    ``pll.khanacademy.org`` are trusted too. Unparseable URLs are untrusted.
    """
    hostname = _hostname(url)
    if not hostname:
        return False
    return any(domain in hostname for domain in domains)


__all__ = ["TRUSTED_DOMAINS", "is_trusted_url"]
