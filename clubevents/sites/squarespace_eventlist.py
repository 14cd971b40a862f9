"""Squarespace event list pages (``.eventlist-event`` blocks), e.g. UBC Trading Group.

Site config in ``clubevents.classifier.SITE_SPECIFIC_PATTERNS``::

    ("ubctradinggroup.com", "/events", "squarespace_eventlist")
"""

from urllib.parse import urljoin

from bs4 import BeautifulSoup

from clubevents.normalizer import parse_date

ISO_DATE_LENGTH = 10


def _text(node) -> str:
    return node.get_text(" ", strip=True) if node is not None else ""


def _read_date(node) -> str:
    date_elem = node.select_one("time.event-date")
    if date_elem is None:
        return ""

    start_date = (date_elem.get("datetime") or "").strip()
    if start_date:
        return start_date

    # Visible text must name both month and day ("Oct" alone is skipped)
    parsed = parse_date(_text(date_elem))
    return parsed.isoformat() if parsed else ""


def _read_description(node) -> str:
    container = node.select_one(".eventlist-description") or node
    paragraphs = (_text(p) for p in container.find_all("p"))
    return "\n".join(p for p in paragraphs if p)


def _read_image(node, page_url: str, default_image: str) -> str:
    img = node.find("img")
    if img is None:
        return default_image
    src = img.get("src") or img.get("data-src") or img.get("data-image") or ""
    return urljoin(page_url, src) if src else default_image


def extract(html: str, page_url: str, club_id: str, default_image: str) -> list[dict]:
    """Read every event block that has both a title and a full ISO date."""
    soup = BeautifulSoup(html or "", "html.parser")
    events = []

    for node in soup.select(".eventlist-event"):
        title = _text(node.select_one(".eventlist-title")) or _text(
            node.select_one(".eventlist-title-link")
        )
        start_date = _read_date(node)

        if not title or len(start_date) != ISO_DATE_LENGTH:
            continue

        events.append(
            {
                "title": title,
                "startDate": start_date,
                "description": _read_description(node),
                "eventURL": page_url,
                "image": _read_image(node, page_url, default_image),
                "clubID": club_id,
            }
        )

    return events
