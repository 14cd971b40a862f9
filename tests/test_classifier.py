import pytest

from clubevents.classifier import classify
from clubevents.models import UrlKind


@pytest.mark.parametrize(
    "url",
    ["https://linktr.ee/ubcchess", "https://www.linktr.ee/ubcchess", "http://LINKTR.EE/x"],
)
def test_link_aggregator_hosts(url):
    assert classify(url).kind == UrlKind.LINK_AGGREGATOR


def test_known_site_maps_to_its_extractor():
    result = classify("https://www.ubctradinggroup.com/events?view=list")
    assert result.kind == UrlKind.SITE_SPECIFIC
    assert result.site_id == "squarespace_eventlist"


def test_known_host_outside_event_path_is_generic():
    assert classify("https://ubctradinggroup.com/about").kind == UrlKind.GENERIC


def test_unknown_host_is_generic():
    result = classify("https://chess.example.com/events")
    assert result.kind == UrlKind.GENERIC
    assert result.site_id is None


@pytest.mark.parametrize(
    "url",
    ["", "not a url", "ftp://files.example.com/events", "mailto:club@example.com", "https://", "http://[::1"],
)
def test_malformed_urls_are_invalid(url):
    assert classify(url).kind == UrlKind.INVALID
