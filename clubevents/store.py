"""Club and event persistence in MongoDB."""

import asyncio
from datetime import datetime, timezone
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import ValidationError

from clubevents.db import get_db
from clubevents.models import Club, Event

DELETE_BATCH_SIZE = 500


class EventStore:
    """
    Reads clubs and writes their events.

    Events live in the ``events`` collection, scoped by their ``clubID``.
    """

    def __init__(self, db: Optional[AsyncIOMotorDatabase] = None) -> None:
        self.db = db if db is not None else get_db()

    async def list_clubs(self) -> list[Club]:
        """All clubs. A document that cannot become a Club is logged and skipped."""
        docs = await self.db.clubs.find().to_list(None)
        clubs = []
        for doc in docs:
            try:
                clubs.append(Club.from_document(doc))
            except ValidationError as e:
                print(f"[{doc.get('_id')}] Skipping malformed club document: {e}")
        return clubs

    async def get_club(self, club_id: str) -> Optional[Club]:
        doc = await self.db.clubs.find_one({"_id": club_id})
        if not doc:
            return None
        try:
            return Club.from_document(doc)
        except ValidationError as e:
            print(f"[{club_id}] Skipping malformed club document: {e}")
            return None

    async def list_existing_titles(self, club_id: str) -> list[str]:
        """Lowercased titles already stored for a club. Errors yield an empty list."""
        try:
            docs = await self.db.events.find(
                {"clubID": club_id}, {"title": 1}
            ).to_list(None)
        except Exception as e:
            print(f"[{club_id}] Error getting existing event titles: {e}")
            return []
        return [doc["title"].lower() for doc in docs if doc.get("title")]

    async def append_events(self, club_id: str, events: list[Event]) -> int:
        """
        Insert events for a club and stamp the club's ``last_checked`` time.

        Both writes are awaited together; they are not atomic.
        """
        now = datetime.now(timezone.utc)
        docs = [{**event.to_document(), "created_at": now} for event in events]

        writes = [
            self.db.clubs.update_one(
                {"_id": club_id}, {"$set": {"last_checked": now}}, upsert=True
            )
        ]
        if docs:
            writes.append(self.db.events.insert_many(docs, ordered=False))

        await asyncio.gather(*writes)
        return len(docs)

    async def delete_events_by_title(self, club_id: str, title: str) -> bool:
        try:
            await self.db.events.delete_many({"clubID": club_id, "title": title})
        except Exception as e:
            print(f"[{club_id}] Error deleting event by title '{title}': {e}")
            return False
        return True

    async def delete_all_events(self, club_id: str, batch_size: int = DELETE_BATCH_SIZE) -> int:
        """Delete every event of a club in batches. Returns the number deleted."""
        deleted = 0
        while True:
            docs = await self.db.events.find(
                {"clubID": club_id}, {"_id": 1}
            ).limit(batch_size).to_list(batch_size)
            if not docs:
                break
            result = await self.db.events.delete_many(
                {"_id": {"$in": [doc["_id"] for doc in docs]}}
            )
            deleted += result.deleted_count
            if len(docs) < batch_size:
                break
        return deleted

    async def delete_all_events_for_all_clubs(self) -> int:
        total = 0
        for club in await self.list_clubs():
            deleted = await self.delete_all_events(club.id)
            print(f"[{club.id}] Deleted {deleted} events")
            total += deleted
        return total
