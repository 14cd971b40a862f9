"""Filter out already-known and repeated events, then batch them per club."""

from typing import Iterable

from clubevents.models import Event


def filter_existing(events: list[Event], existing_titles: set[str]) -> tuple[list[Event], int]:
    """
    Drop events whose title is already stored for the club (case-insensitive).

    ``existing_titles`` must already be lowercased. Returns the kept events and
    how many were removed.
    """
    kept = [e for e in events if e.title.lower() not in existing_titles]
    return kept, len(events) - len(kept)


def dedupe_run(events: Iterable[Event]) -> list[Event]:
    """Keep the first event for each ``(club_id, lowercase title)`` key."""
    seen: set[tuple[str, str]] = set()
    unique: list[Event] = []
    for event in events:
        if event.dedup_key not in seen:
            seen.add(event.dedup_key)
            unique.append(event)
    return unique


def group_by_club(events: Iterable[Event]) -> dict[str, list[Event]]:
    grouped: dict[str, list[Event]] = {}
    for event in events:
        grouped.setdefault(event.club_id, []).append(event)
    return grouped
