"""Turn raw extracted events into validated Event records."""

import calendar
import re
from datetime import date, datetime
from typing import Any, Optional

from dateutil import parser as date_parser
from pydantic import ValidationError

from clubevents.config import settings
from clubevents.models import Club, ClubPolicy, Event, RawEvent

_YEAR_RE = re.compile(r"(20\d{2})")

# Two leap-year defaults: any field dateutil had to fill in differs between them
_PARSE_DEFAULTS = (datetime(2000, 1, 1), datetime(2004, 2, 2))


def extract_year(text: Any) -> Optional[int]:
    """First ``20xx`` year found in ``text``, or None."""
    if not isinstance(text, str) or not text:
        return None
    match = _YEAR_RE.search(text)
    return int(match.group(1)) if match else None


def parse_date(value: Any) -> Optional[date]:
    """
    Parse an LLM-supplied or page date string. Returns None when it cannot be read.

    Month and day must both be present in the text ("March" alone is not a
    date). A missing year means the current year.
    """
    if not isinstance(value, str) or not value.strip():
        return None
    value = value.strip()
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        pass
    try:
        first, second = (
            date_parser.parse(value, default=default) for default in _PARSE_DEFAULTS
        )
    except (ValueError, OverflowError):
        return None
    if (first.month, first.day) != (second.month, second.day):
        return None
    if first.year != second.year:
        return _with_year(first.date(), date.today().year)
    return first.date()


def _with_year(d: date, year: int) -> date:
    # Feb 29 moved into a non-leap year clamps to Feb 28
    last_day = calendar.monthrange(year, d.month)[1]
    return d.replace(year=year, day=min(d.day, last_day))


def correct_start_date(start_date: Any, title: Any, default_image: str) -> Any:
    """
    Rewrite the year of ``start_date`` to the year named in the title or banner.

    The title wins over the club banner URL. Month and day are kept. Any
    mismatch is corrected, earlier or later. Unparseable dates come back
    unchanged.
    """
    correct_year = extract_year(title) or extract_year(default_image)
    if not correct_year:
        return start_date

    parsed = parse_date(start_date)
    if parsed is None:
        return start_date

    if parsed.year != correct_year:
        parsed = _with_year(parsed, correct_year)
    return parsed.isoformat()


def resolve_image(suggested: Any, default_image: str, *, force_default: bool = False) -> str:
    """The LLM's image when it is a usable string, otherwise the club banner."""
    if force_default:
        return default_image
    if isinstance(suggested, str):
        suggested = suggested.strip()
        if suggested and suggested.lower() != "undefined":
            return suggested
    return default_image


class Normalizer:
    """Applies image fallback and year correction using per-club policies."""

    def __init__(self, policies: Optional[dict[str, ClubPolicy]] = None) -> None:
        if policies is None:
            policies = {
                club_id: ClubPolicy(force_default_image=True)
                for club_id in settings.force_default_image_clubs
            }
        self.policies = policies

    def policy_for(self, club_id: str) -> ClubPolicy:
        return self.policies.get(club_id) or ClubPolicy()

    def normalize(self, item: dict[str, Any], club: Club, page_url: str) -> Optional[Event]:
        """
        Build an Event from one raw extracted dict.

        Returns None when the entry cannot become a valid Event (no title, or a
        start date that is not a real date). Such entries are dropped silently.
        """
        raw = RawEvent.model_validate(item)
        if not raw.title or not raw.startDate:
            return None

        policy = self.policy_for(club.id)
        image = resolve_image(
            raw.image, club.image_url, force_default=policy.force_default_image
        )

        start_date = correct_start_date(raw.startDate, raw.title, club.image_url)
        parsed_start = parse_date(start_date)
        parsed_end = parse_date(raw.endDate)

        try:
            return Event(
                title=raw.title if isinstance(raw.title, str) else str(raw.title),
                startDate=parsed_start.isoformat() if parsed_start else start_date,
                endDate=parsed_end.isoformat() if parsed_end else None,
                description=raw.description if isinstance(raw.description, str) else "",
                eventURL=raw.eventURL if isinstance(raw.eventURL, str) and raw.eventURL else page_url,
                image=image,
                clubID=club.id,
            )
        except ValidationError:
            return None

    def normalize_all(
        self, items: list[dict[str, Any]], club: Club, page_url: str
    ) -> list[Event]:
        events = []
        for item in items:
            event = self.normalize(item, club, page_url)
            if event is not None:
                events.append(event)
        return events
