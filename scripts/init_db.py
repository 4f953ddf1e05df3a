"""
Initialize database tables and the default catalogue.
Safe to run repeatedly: seeding is skipped once the catalogue exists.
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from config.settings import settings
from core import configure_logging, get_logger
from storage.database import db
from storage.seed import seed_database

logger = get_logger(__name__)


async def main():
    """Create all tables, then seed characters, philosophies and quotes."""
    configure_logging(settings.LOG_LEVEL, settings.LOG_JSON)

    logger.info("Starting database initialization")

    try:
        await db.create_tables()
        seeded = await seed_database(db)
        logger.info("✓ Database initialization complete!", seeded=seeded)

    except Exception as e:
        logger.error("Database initialization failed", error=str(e), exc_info=True)
        sys.exit(1)
    finally:
        await db.close()


if __name__ == "__main__":
    asyncio.run(main())
