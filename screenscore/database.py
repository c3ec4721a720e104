from sqlalchemy import create_engine, pool, event
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.dialects import postgresql, sqlite
import os
from dotenv import load_dotenv
import logging

load_dotenv()
logger = logging.getLogger(__name__)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./screenscore.db")

# SQLite needs cross-thread access because FastAPI runs sync routes in a threadpool
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

# Connection pooling configuration for better performance
# QueuePool maintains a pool of connections that can be reused
engine = create_engine(
    DATABASE_URL,
    connect_args=connect_args,
    poolclass=pool.QueuePool,
    pool_size=int(os.getenv("DB_POOL_SIZE", 5)),  # Number of connections to keep open
    max_overflow=int(os.getenv("DB_MAX_OVERFLOW", 10)),  # Max connections beyond pool_size
    pool_timeout=int(os.getenv("DB_POOL_TIMEOUT", 30)),  # Seconds to wait for connection
    pool_recycle=int(os.getenv("DB_POOL_RECYCLE", 3600)),  # Recycle connections after 1 hour
    pool_pre_ping=True,  # Test connections before using them
    echo=os.getenv("DB_ECHO", "false").lower() == "true"  # Set to true for SQL debugging
)

# Log pool statistics for monitoring
@event.listens_for(engine, "connect")
def receive_connect(dbapi_conn, connection_record):
    """Log when a new connection is created"""
    logger.debug("Database connection established")

@event.listens_for(engine, "checkout")
def receive_checkout(dbapi_conn, connection_record, connection_proxy):
    """Log when a connection is checked out from the pool"""
    logger.debug(f"Connection checked out from pool. Pool size: {engine.pool.size()}")

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

# Dependency for FastAPI routes
def get_db():
    """
    Database session dependency for FastAPI.
    Automatically handles session creation and cleanup.

    Usage:
        @router.get("/endpoint")
        def endpoint(db: Session = Depends(get_db)):
            # Use db here
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def insert_ignoring_conflicts(db: Session, table, values: dict, index_elements: list):
    """
    Build an INSERT that silently skips rows violating the given unique key.

    The statement is atomic on the database side, so concurrent callers
    never produce duplicates and never see an IntegrityError.

    Usage:
        stmt = insert_ignoring_conflicts(db, WatchlistItem.__table__, {...}, ["watchlist_id", "tmdb_id"])
        db.execute(stmt)
    """
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        stmt = postgresql.insert(table).values(**values)
    elif dialect == "sqlite":
        stmt = sqlite.insert(table).values(**values)
    else:
        raise RuntimeError(f"Unsupported database dialect for upserts: {dialect}")
    return stmt.on_conflict_do_nothing(index_elements=index_elements)
