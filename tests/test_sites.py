import pytest

from clubevents.sites import get_extractor
from clubevents.sites.squarespace_eventlist import extract

PAGE_URL = "https://ubctradinggroup.com/events"
BANNER = "https://cdn.example.com/utg-banner.png"

TWO_EVENTS_ONE_UNDATED = """
<html><body>
<article class="eventlist-event">
  <h1 class="eventlist-title">Markets Outlook Panel</h1>
  <time class="event-date" datetime="2025-10-02">Thursday, October 2, 2025</time>
  <div class="eventlist-description">
    <p>Industry panel on rates.</p>
    <p></p>
    <p>Free pizza.</p>
  </div>
  <img src="/s/panel.jpg">
</article>
<article class="eventlist-event">
  <h1 class="eventlist-title">Trading Competition Kickoff</h1>
  <p>Date to be announced.</p>
</article>
</body></html>
"""


def test_only_nodes_with_title_and_date_are_emitted():
    events = extract(TWO_EVENTS_ONE_UNDATED, PAGE_URL, "utg", BANNER)

    assert events == [
        {
            "title": "Markets Outlook Panel",
            "startDate": "2025-10-02",
            "description": "Industry panel on rates.\nFree pizza.",
            "eventURL": PAGE_URL,
            "image": "https://ubctradinggroup.com/s/panel.jpg",
            "clubID": "utg",
        }
    ]


def test_fallbacks_for_title_date_and_image():
    html = """
    <div class="eventlist-event">
      <a class="eventlist-title-link" href="/events/algo">Algo Workshop</a>
      <time class="event-date">March 5, 2025</time>
      <p>Bring a laptop.</p>
    </div>
    """

    events = extract(html, PAGE_URL, "utg", BANNER)

    assert len(events) == 1
    assert events[0]["title"] == "Algo Workshop"
    assert events[0]["startDate"] == "2025-03-05"
    assert events[0]["description"] == "Bring a laptop."
    assert events[0]["image"] == BANNER


def test_non_canonical_date_attribute_is_skipped():
    html = """
    <div class="eventlist-event">
      <h1 class="eventlist-title">Short Date</h1>
      <time class="event-date" datetime="2025-3-5">March 5</time>
    </div>
    """

    assert extract(html, PAGE_URL, "utg", BANNER) == []


def test_month_only_visible_date_is_skipped():
    html = """
    <div class="eventlist-event">
      <h1 class="eventlist-title">Networking Night</h1>
      <time class="event-date">Oct</time>
    </div>
    """

    assert extract(html, PAGE_URL, "utg", BANNER) == []


def test_get_extractor_by_site_id():
    assert get_extractor("squarespace_eventlist") is extract


def test_get_extractor_unknown_site():
    with pytest.raises(LookupError):
        get_extractor("no_such_site")
