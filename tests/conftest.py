"""Shared fakes for the renderer, LLM and store collaborators."""

import asyncio
from contextlib import asynccontextmanager

import pytest

from clubevents.models import Club, Event, FetchError
from clubevents.scraper import RenderedPage, collect_image_urls


class FakeRenderer:
    """Serves fixed HTML per URL; unknown URLs fail like a navigation error."""

    def __init__(self, pages: dict[str, str], delay: float = 0.0) -> None:
        self.pages = pages
        self.delay = delay
        self.fetched: list[tuple[str, str | None]] = []
        self.closed = False

    async def fetch(self, url: str, *, wait_for: str | None = None) -> RenderedPage:
        self.fetched.append((url, wait_for))
        if self.delay:
            await asyncio.sleep(self.delay)
        if url not in self.pages:
            raise FetchError(f"Crawl failed for {url}: net::ERR_NAME_NOT_RESOLVED")
        html = self.pages[url]
        return RenderedPage(url=url, html=html, image_urls=collect_image_urls(html, url))


class ScriptedGenerator:
    """Answers with a canned response for whichever page URL the prompt is about."""

    def __init__(self, responses: dict[str, str], default: str = "[]") -> None:
        self.responses = responses
        self.default = default
        self.prompts: list[str] = []

    async def complete(self, messages: list[dict[str, str]]) -> str:
        prompt = messages[-1]["content"]
        self.prompts.append(prompt)
        for url, response in self.responses.items():
            if f'"eventURL": "{url}"' in prompt:
                return response
        return self.default

    def was_asked_about(self, url: str) -> bool:
        return any(f'"eventURL": "{url}"' in p for p in self.prompts)


class FakeStore:
    """In-memory stand-in for EventStore."""

    def __init__(self, clubs: list[Club], fail_on: set[str] | None = None) -> None:
        self.clubs = clubs
        self.events: dict[str, list[dict]] = {}
        self.last_checked: dict[str, bool] = {}
        self.fail_on = fail_on or set()

    async def list_clubs(self) -> list[Club]:
        return list(self.clubs)

    async def get_club(self, club_id: str) -> Club | None:
        return next((c for c in self.clubs if c.id == club_id), None)

    async def list_existing_titles(self, club_id: str) -> list[str]:
        return [doc["title"].lower() for doc in self.events.get(club_id, [])]

    async def append_events(self, club_id: str, events: list[Event]) -> int:
        if club_id in self.fail_on:
            raise RuntimeError("write rejected")
        self.events.setdefault(club_id, []).extend(e.to_document() for e in events)
        self.last_checked[club_id] = True
        return len(events)

    async def delete_events_by_title(self, club_id: str, title: str) -> bool:
        docs = self.events.get(club_id, [])
        self.events[club_id] = [d for d in docs if d["title"] != title]
        return True

    async def delete_all_events_for_all_clubs(self) -> int:
        total = sum(len(docs) for docs in self.events.values())
        self.events = {}
        return total

    def titles(self, club_id: str) -> list[str]:
        return [doc["title"] for doc in self.events.get(club_id, [])]


def renderer_factory_for(renderer: FakeRenderer):
    @asynccontextmanager
    async def factory():
        try:
            yield renderer
        finally:
            renderer.closed = True

    return factory


@pytest.fixture
def club() -> Club:
    return Club(
        id="chess",
        image_url="https://cdn.example.com/chess-banner.png",
        urls=["https://chess.example.com/events"],
    )
