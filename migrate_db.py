"""Create the schema and backfill any missing owner memberships"""
import asyncio
import os
from dotenv import load_dotenv
from sqlalchemy import text
from dicewizard.database import Database

# Load environment variables
load_dotenv()

async def migrate():
    database_url = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./dicewizard.db")
    db = Database(database_url, echo=os.getenv("DATABASE_ECHO", "").lower() in ("1", "true"))

    await db.init_db()
    print("Schema is up to date")

    async with db.engine.begin() as conn:
        # every campaign owner must hold an accepted owner membership
        result = await conn.execute(text("""
            INSERT INTO campaign_members (campaign_id, user_id, role, status, created_at)
            SELECT c.id, c.owner_id, 'owner', 'accepted', c.created_at
            FROM campaigns c
            LEFT JOIN campaign_members m ON m.campaign_id = c.id AND m.user_id = c.owner_id
            WHERE m.id IS NULL
        """))
        print(f"Backfilled {result.rowcount} owner memberships")

    await db.dispose()
    print("Migration complete")

if __name__ == "__main__":
    asyncio.run(migrate())
