import asyncio

from conftest import FakeRenderer

from clubevents.scraper import ANCHOR_SELECTOR, collect_image_urls, expand_links, external_links

LINKTREE_URL = "https://linktr.ee/ubcchess"

LINKTREE_HTML = """
<html><body>
  <a href="/ubcchess">Profile</a>
  <a href="https://linktr.ee/ubcchess#share">Share</a>
  <a href="https://www.linktr.ee/discover">Discover</a>
  <a href="mailto:chess@example.com">Email us</a>
  <a href="tel:+16045550100">Call</a>
  <a href="https://example.com/events">Our events</a>
  <a href="https://example.com/events">Events again</a>
</body></html>
"""


def test_external_links_keeps_only_outbound_http_links():
    assert external_links(LINKTREE_HTML, LINKTREE_URL) == ["https://example.com/events"]


def test_external_links_preserves_page_order():
    html = """
    <a href="https://b.example.org/">B</a>
    <a href="http://a.example.org/signup">A</a>
    <a href="javascript:void(0)">noop</a>
    """
    assert external_links(html, LINKTREE_URL) == [
        "https://b.example.org/",
        "http://a.example.org/signup",
    ]


def test_collect_image_urls_covers_lazy_and_background_images():
    html = """
    <img src="/img/gala.png">
    <img src="" data-src="https://cdn.example.com/lazy.jpg">
    <img data-lazy="https://cdn.example.com/lazier.jpg">
    <img src="data:image/gif;base64,R0lGOD">
    <div style="background-image: url('https://cdn.example.com/hero.jpg')"></div>
    <section style="color: red; background-image:url(/img/bg.png)"></section>
    <img src="/img/gala.png">
    """

    urls = collect_image_urls(html, "https://chess.example.com/events")

    assert urls == [
        "https://chess.example.com/img/gala.png",
        "https://cdn.example.com/lazy.jpg",
        "https://cdn.example.com/lazier.jpg",
        "https://cdn.example.com/hero.jpg",
        "https://chess.example.com/img/bg.png",
    ]


def test_expand_links_waits_for_anchors():
    renderer = FakeRenderer({LINKTREE_URL: LINKTREE_HTML})

    links = asyncio.run(expand_links(renderer, LINKTREE_URL))

    assert links == ["https://example.com/events"]
    assert renderer.fetched == [(LINKTREE_URL, ANCHOR_SELECTOR)]


def test_expand_links_failure_yields_empty_list(capsys):
    renderer = FakeRenderer({})

    links = asyncio.run(expand_links(renderer, LINKTREE_URL))

    assert links == []
    assert "Error extracting links" in capsys.readouterr().out
