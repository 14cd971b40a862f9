"""Run the API server, or check MongoDB and create indexes with ``init-db``."""

import asyncio
import sys

import uvicorn

from clubevents.db import close_db, get_client, get_db, init_db

PORT = 3000


async def check_db() -> None:
    client = get_client()
    db = get_db()

    result = await client.admin.command("ping")
    print(f"MongoDB ping: {result}")

    await init_db()
    print("Indexes created.")

    clubs = await db.clubs.count_documents({})
    events = await db.events.count_documents({})
    print(f"Database '{db.name}': {clubs} clubs, {events} events")

    await close_db()


def main() -> None:
    if len(sys.argv) > 1 and sys.argv[1] == "init-db":
        asyncio.run(check_db())
        return

    print(f"Server running at http://localhost:{PORT}")
    uvicorn.run("clubevents.api:app", host="0.0.0.0", port=PORT)


if __name__ == "__main__":
    main()
