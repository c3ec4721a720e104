"""
Migration script to create all database tables

Run this script to create all database tables:
    python -m screenscore.migrations.create_all_tables

Safe to re-run: existing tables are left untouched.
"""

import logging

from screenscore.database import engine, Base
# Import all models to ensure they're registered with Base
from screenscore.models import User, Review, Watchlist, WatchlistItem  # noqa: F401

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def create_tables():
    """Create all database tables"""
    logger.info("=" * 60)
    logger.info("Creating all database tables...")
    logger.info("=" * 60)

    try:
        # Create all tables defined in Base metadata
        Base.metadata.create_all(bind=engine)
    except Exception as e:
        logger.error(f"❌ Error creating tables: {e}", exc_info=True)
        raise

    logger.info("✅ All tables created successfully!")
    for table in Base.metadata.sorted_tables:
        logger.info(f"   - {table.name}")
    logger.info("=" * 60)


if __name__ == "__main__":
    create_tables()
