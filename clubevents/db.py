"""MongoDB connection for the ``clubs`` and ``events`` collections."""

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from clubevents.config import settings

_client: AsyncIOMotorClient | None = None


def get_client() -> AsyncIOMotorClient:
    """Shared client, created on first use from ``MONGODB_URI``."""
    global _client
    if _client is None:
        _client = AsyncIOMotorClient(settings.mongodb_uri)
    return _client


def get_db() -> AsyncIOMotorDatabase:
    return get_client()[settings.mongodb_db]


async def init_db() -> None:
    """Create the indexes used to scope events by club."""
    db = get_db()

    # Per-club title lookups: existing-title filter and delete by title
    await db.events.create_index("clubID")
    await db.events.create_index([("clubID", 1), ("title", 1)])


async def close_db() -> None:
    global _client
    if _client is None:
        return
    _client.close()
    _client = None
