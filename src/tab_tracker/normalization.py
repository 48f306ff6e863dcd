"""Utilities to normalize URLs, hostnames and page titles."""

from __future__ import annotations

import re
from typing import Optional
from urllib.parse import urlsplit

# Browser-internal pages (chrome://, about:, extension pages...) never start a session.
_TRACKABLE_SCHEMES = {"http", "https"}


def normalize_hostname(hostname: str) -> str:
    """Lower-case a hostname and strip a leading ``www.``."""
    hostname = hostname.strip().lower().rstrip(".")
    if hostname.startswith("www."):
        hostname = hostname[4:]
    return hostname


def extract_domain(url: Optional[str]) -> Optional[str]:
    """Return the normalized hostname of a trackable URL, or None.

    Malformed URLs, URLs without a host and non-web schemes all yield None so
    callers can treat the page as opaque.
    """
    if not url:
        return None
    try:
        parts = urlsplit(url.strip())
        hostname = parts.hostname
    except ValueError:
        return None
    if parts.scheme.lower() not in _TRACKABLE_SCHEMES or not hostname:
        return None
    hostname = normalize_hostname(hostname)
    return hostname or None


_WHITESPACE = re.compile(r"\s{2,}")


def normalize_title(title: Optional[str]) -> Optional[str]:
    """Collapse runs of whitespace in a page title."""
    if not title:
        return None
    normalized = _WHITESPACE.sub(" ", title).strip()
    return normalized or None
