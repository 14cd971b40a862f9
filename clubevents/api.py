"""FastAPI service: trigger a scrape run and manage stored events."""

from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from clubevents.config import settings
from clubevents.db import close_db, init_db
from clubevents.pipeline import run_pipeline
from clubevents.store import EventStore


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    yield
    await close_db()


app = FastAPI(title="Club Events API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.cors_origins.split(",") if o.strip()],
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_store() -> EventStore:
    return EventStore()


@app.get("/", response_class=PlainTextResponse)
async def root():
    return "Club events scraper is running."


# ── Scraping ────────────────────────────────────────────────


@app.get("/scrape-events")
async def scrape_events(store: EventStore = Depends(get_store)):
    """Run one full scrape over all clubs and report what was found."""
    summary = await run_pipeline(store=store)
    if not summary.success:
        return JSONResponse(status_code=500, content=summary.to_response())
    return summary.to_response()


# ── Admin ───────────────────────────────────────────────────


@app.post("/delete")
async def delete_all_events(store: EventStore = Depends(get_store)):
    """Delete all stored events for all clubs."""
    try:
        deleted = await store.delete_all_events_for_all_clubs()
    except Exception as e:
        print(f"Error deleting all events: {e}")
        return JSONResponse(status_code=500, content={"success": False, "error": str(e)})
    return {
        "success": True,
        "deleted": deleted,
        "message": "All events deleted for all clubs.",
    }


@app.delete("/clubs/{club_id}/events")
async def delete_club_events_by_title(
    club_id: str,
    title: str = Query(..., description="Exact title of the events to delete"),
    store: EventStore = Depends(get_store),
):
    """Delete a club's events with the given title."""
    if not await store.delete_events_by_title(club_id, title):
        raise HTTPException(status_code=500, detail="Failed to delete events")
    return {"success": True, "clubID": club_id, "title": title}
