"""Reduce rendered HTML to the plain text worth sending to the LLM."""

import re

from bs4 import BeautifulSoup

from clubevents.config import settings

TRUNCATION_MARKER = "... [content truncated]"

NON_CONTENT_TAGS = [
    "head",
    "meta",
    "link",
    "style",
    "script",
    "noscript",
    "title",
    "svg",
    "iframe",
    "video",
    "audio",
    "canvas",
]

# Substrings of class attributes that mark navigation chrome and overlays.
# nav/header/footer are kept: club pages often list events in them.
NOISE_CLASS_PARTS = ["menu", "sidebar", "cookie", "popup", "modal"]

_WHITESPACE_RE = re.compile(r"\s+")


def _is_noise(class_attr) -> bool:
    if not class_attr:
        return False
    if isinstance(class_attr, (list, tuple)):
        class_attr = " ".join(class_attr)
    class_attr = class_attr.lower()
    return any(part in class_attr for part in NOISE_CLASS_PARTS)


def clean_html(html: str, limit: int | None = None) -> str:
    """
    Strip non-content markup and return whitespace-collapsed page text.

    Args:
        html: Rendered page HTML.
        limit: Maximum characters kept before the truncation marker is
            appended. Defaults to ``settings.content_char_limit``.

    Returns:
        Plain text, at most ``limit`` characters plus the marker.
    """
    if limit is None:
        limit = settings.content_char_limit

    soup = BeautifulSoup(html or "", "html.parser")

    for el in soup.find_all(NON_CONTENT_TAGS):
        el.extract()
    for el in soup.find_all(class_=_is_noise):
        el.extract()

    root = soup.body or soup
    # Text nodes are joined as-is so inline markup does not split words
    content = root.get_text()
    content = _WHITESPACE_RE.sub(" ", content).strip()

    if len(content) > limit:
        content = content[:limit] + TRUNCATION_MARKER

    return content
