"""Decide how a club URL is fetched and extracted. Pure, no network access."""

from urllib.parse import urlsplit

from clubevents.models import UrlClassification, UrlKind

LINK_AGGREGATOR_HOSTS = {"linktr.ee", "www.linktr.ee"}

# (host, path prefix) -> site id of a module in clubevents.sites
SITE_SPECIFIC_PATTERNS: list[tuple[str, str, str]] = [
    ("ubctradinggroup.com", "/events", "squarespace_eventlist"),
]


def _bare_host(host: str) -> str:
    return host[4:] if host.startswith("www.") else host


def classify(url: str) -> UrlClassification:
    """
    Classify a URL into a fetch/extraction strategy.

    Unknown hosts are ``GENERIC``. URLs without an http(s) scheme or host are
    ``INVALID`` so the caller can skip them without aborting the run.
    """
    try:
        parts = urlsplit((url or "").strip())
        host = (parts.hostname or "").lower()
    except ValueError:
        return UrlClassification(kind=UrlKind.INVALID)

    if parts.scheme not in ("http", "https") or not host:
        return UrlClassification(kind=UrlKind.INVALID)

    if host in LINK_AGGREGATOR_HOSTS:
        return UrlClassification(kind=UrlKind.LINK_AGGREGATOR)

    path = parts.path or "/"
    for site_host, path_prefix, site_id in SITE_SPECIFIC_PATTERNS:
        if _bare_host(host) == site_host and path.startswith(path_prefix):
            return UrlClassification(kind=UrlKind.SITE_SPECIFIC, site_id=site_id)

    return UrlClassification(kind=UrlKind.GENERIC)
