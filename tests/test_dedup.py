from clubevents.dedup import dedupe_run, filter_existing, group_by_club
from clubevents.models import Event


def _event(title: str, club_id: str = "chess", start_date: str = "2025-04-01") -> Event:
    return Event(title=title, startDate=start_date, clubID=club_id, image="img")


def test_filter_existing_is_case_insensitive():
    events = [_event("Spring Open"), _event("BLITZ NIGHT"), _event("Simul")]

    kept, removed = filter_existing(events, {"blitz night", "spring open"})

    assert [e.title for e in kept] == ["Simul"]
    assert removed == 2


def test_filter_existing_with_empty_set_keeps_everything():
    events = [_event("Spring Open")]

    assert filter_existing(events, set()) == (events, 0)


def test_dedupe_run_keeps_first_occurrence():
    first = _event("Spring Open", start_date="2025-04-01")
    events = [
        first,
        _event("spring open", start_date="2025-04-08"),
        _event("Simul"),
        _event("SPRING OPEN"),
    ]

    unique = dedupe_run(events)

    assert unique == [first, events[2]]
    assert unique[0].start_date == "2025-04-01"


def test_same_title_in_different_clubs_is_kept():
    events = [_event("Welcome Social", "chess"), _event("Welcome Social", "trading")]

    assert len(dedupe_run(events)) == 2


def test_group_by_club_preserves_order():
    events = [_event("A", "chess"), _event("B", "trading"), _event("C", "chess")]

    grouped = group_by_club(events)

    assert list(grouped) == ["chess", "trading"]
    assert [e.title for e in grouped["chess"]] == ["A", "C"]
    assert [e.title for e in grouped["trading"]] == ["B"]
