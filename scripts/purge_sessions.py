# scripts/purge_sessions.py
import asyncio

from sessapi.db.session import AsyncSessionLocal
from sessapi.services.session_manager import purge_expired


async def main():
    async with AsyncSessionLocal() as db:
        deleted = await purge_expired(db)
    print({"deleted": deleted})


if __name__ == "__main__":
    asyncio.run(main())
