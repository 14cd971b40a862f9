"""Full ingestion pipeline: crawl club URLs, extract and normalize events, save to MongoDB."""

import asyncio
import sys
from contextlib import AbstractAsyncContextManager
from typing import Callable, Optional

from clubevents.classifier import classify
from clubevents.config import settings
from clubevents.db import close_db, init_db
from clubevents.dedup import dedupe_run, filter_existing, group_by_club
from clubevents.extractor import LLMClient, TextGenerator, extract_events
from clubevents.models import (
    Club,
    Event,
    InvalidUrlError,
    RunSummary,
    UrlKind,
    UrlResult,
)
from clubevents.normalizer import Normalizer
from clubevents.sanitizer import clean_html
from clubevents.scraper import Renderer, expand_links, open_renderer
from clubevents.sites import get_extractor
from clubevents.store import EventStore

RendererFactory = Callable[[], AbstractAsyncContextManager[Renderer]]


class Pipeline:
    """
    Runs the per-URL extraction tasks for clubs against shared collaborators.

    ``max_concurrent_urls`` bounds how many URLs of a club are fetched at once;
    the default of 1 processes everything sequentially on one browser session.
    """

    def __init__(
        self,
        store: EventStore,
        renderer: Renderer,
        generator: TextGenerator,
        normalizer: Normalizer,
        *,
        max_concurrent_urls: Optional[int] = None,
        url_timeout_s: Optional[float] = None,
    ) -> None:
        self.store = store
        self.renderer = renderer
        self.generator = generator
        self.normalizer = normalizer
        self.semaphore = asyncio.Semaphore(max(1, max_concurrent_urls or settings.max_concurrent_urls))
        self.url_timeout_s = url_timeout_s or settings.url_timeout_s

    async def extract_from_url(self, url: str, club: Club) -> list[Event]:
        """
        Fetch one page and return its normalized events.

        Known site layouts use their deterministic extractor, everything else
        goes through the LLM.
        """
        classification = classify(url)
        if classification.kind == UrlKind.INVALID:
            raise InvalidUrlError(f"Invalid URL: {url!r}")

        page = await self.renderer.fetch(url)

        if classification.kind == UrlKind.SITE_SPECIFIC:
            extract_fn = get_extractor(classification.site_id)
            items = extract_fn(page.html, url, club.id, club.image_url)
        else:
            items = await extract_events(
                url,
                clean_html(page.html),
                page.image_urls,
                club.image_url,
                club.id,
                self.generator,
            )

        return self.normalizer.normalize_all(items, club, url)

    async def run_url_task(self, url: str, club: Club, existing_titles: set[str]) -> UrlResult:
        """Process one URL. Failures and timeouts become an empty result with an error."""
        async with self.semaphore:
            try:
                events = await asyncio.wait_for(
                    self.extract_from_url(url, club), timeout=self.url_timeout_s
                )
            except asyncio.TimeoutError:
                print(f"[{club.id}] Timed out processing {url}")
                return UrlResult(url=url, error="timeout")
            except Exception as e:
                print(f"[{club.id}] Error processing URL {url}: {e}")
                return UrlResult(url=url, error=str(e))

        kept, removed = filter_existing(events, existing_titles)
        if removed:
            print(f"[{club.id}] Filtered out {removed} existing events from {url}")
        print(f"[{club.id}] Found {len(kept)} new events from {url}")
        return UrlResult(url=url, events=kept, filtered_existing=removed)

    async def resolve_targets(self, club: Club) -> tuple[list[str], list[UrlResult]]:
        """
        Expand link-aggregator URLs and set aside invalid ones.

        Returns the URLs to extract from, in order, and results for the
        URLs that were skipped.
        """
        targets: list[str] = []
        skipped: list[UrlResult] = []

        for url in club.urls:
            classification = classify(url)
            if classification.kind == UrlKind.INVALID:
                print(f"[{club.id}] Skipping invalid URL: {url!r}")
                skipped.append(UrlResult(url=str(url), error="invalid URL"))
            elif classification.kind == UrlKind.LINK_AGGREGATOR:
                print(f"[{club.id}] Expanding link page: {url}")
                targets.extend(await expand_links(self.renderer, url))
            else:
                targets.append(url)

        return targets, skipped

    async def process_club(self, club: Club) -> list[UrlResult]:
        """Run every URL of a club against the club's existing-title set."""
        # Loaded once, before any URL of the club starts, and only read after
        existing_titles = set(await self.store.list_existing_titles(club.id))
        print(f"[{club.id}] Found {len(existing_titles)} existing events")

        if not club.urls:
            print(f"[{club.id}] No URLs configured, skipping.")
            return []

        print(f"[{club.id}] Processing {len(club.urls)} URLs")
        targets, results = await self.resolve_targets(club)

        results.extend(
            await asyncio.gather(
                *(self.run_url_task(url, club, existing_titles) for url in targets)
            )
        )
        return results

    async def collect(self, clubs: list[Club]) -> list[Event]:
        """All candidate events across clubs, in club then URL order."""
        candidates: list[Event] = []
        for club in clubs:
            for result in await self.process_club(club):
                candidates.extend(result.events)
        return candidates


# ---------------------------------------------------------------------------
# Save
# ---------------------------------------------------------------------------


async def _save_club_events(
    store: EventStore, club_id: str, events: list[Event]
) -> tuple[str, int, Optional[str]]:
    try:
        saved = await store.append_events(club_id, events)
    except Exception as e:
        print(f"[{club_id}] Error saving events: {e}")
        return club_id, 0, str(e)
    print(f"[{club_id}] Saved {saved} events.")
    return club_id, saved, None


async def save_batches(
    store: EventStore, batches: dict[str, list[Event]]
) -> tuple[dict[str, int], list[str]]:
    """Save each club's batch concurrently. One club failing does not stop the others."""
    outcomes = await asyncio.gather(
        *(_save_club_events(store, club_id, events) for club_id, events in batches.items())
    )
    saved_by_club = {club_id: saved for club_id, saved, error in outcomes if error is None}
    failed = [club_id for club_id, _, error in outcomes if error is not None]
    return saved_by_club, failed


# ---------------------------------------------------------------------------
# Main pipeline
# ---------------------------------------------------------------------------


async def run_pipeline(
    store: Optional[EventStore] = None,
    generator: Optional[TextGenerator] = None,
    normalizer: Optional[Normalizer] = None,
    *,
    renderer_factory: RendererFactory = open_renderer,
    club_filter: Optional[str] = None,
    dry_run: bool = False,
) -> RunSummary:
    """
    Run one full ingestion pass over all clubs.

    Any failure outside per-URL and per-club handling (browser cannot start,
    clubs cannot be listed) aborts the run; the browser is always released
    and a failed summary is returned.
    """
    store = store if store is not None else EventStore()
    generator = generator if generator is not None else LLMClient()
    normalizer = normalizer if normalizer is not None else Normalizer()

    try:
        async with renderer_factory() as renderer:
            if club_filter:
                club = await store.get_club(club_filter)
                clubs = [club] if club else []
            else:
                clubs = await store.list_clubs()
            print(f"Fetched {len(clubs)} clubs")

            pipeline = Pipeline(store, renderer, generator, normalizer)
            candidates = await pipeline.collect(clubs)
    except Exception as e:
        print(f"Error in scrape run: {e}")
        return RunSummary(success=False, error="Error scraping events", message=str(e))

    print(f"Total events found: {len(candidates)}")

    # Global barrier: only after every club and URL has finished
    unique = dedupe_run(candidates)
    print(f"After removing duplicates: {len(unique)} unique events")
    batches = group_by_club(unique)

    if dry_run:
        for club_id, events in batches.items():
            for event in events:
                print(f"  [{club_id}] {event.start_date} | {event.title}")
        saved_by_club, failed = {}, []
    else:
        saved_by_club, failed = await save_batches(store, batches)

    return RunSummary(
        total_events=len(candidates),
        clubs_processed=len(batches),
        events_by_club={club_id: len(events) for club_id, events in batches.items()},
        saved_by_club=saved_by_club,
        failed_clubs=failed,
    )


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def _parse_main_args() -> tuple[bool, Optional[str]]:
    """Return (dry_run, club_filter)."""
    dry_run = "--dry-run" in sys.argv
    positionals = [a for a in sys.argv[1:] if not a.startswith("--")]
    club_filter = positionals[0] if positionals else None
    return dry_run, club_filter


async def main() -> None:
    """CLI entry point."""
    dry_run, club_filter = _parse_main_args()

    await init_db()
    try:
        summary = await run_pipeline(club_filter=club_filter, dry_run=dry_run)
    finally:
        await close_db()

    print(f"\n{'=' * 60}")
    if not summary.success:
        print(f"FAILED: {summary.message}")
        sys.exit(1)
    print(f"Done. {summary.total_events} events found, {len(summary.events_by_club)} clubs with new events.")
    for club_id, count in summary.events_by_club.items():
        print(f"  {club_id}: {count}")
    if summary.failed_clubs:
        print(f"  Failed to save: {', '.join(summary.failed_clubs)}")


if __name__ == "__main__":
    asyncio.run(main())
