from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from typing import Callable, Generator
from datetime import datetime, timezone
import uuid
import redis
from .config import settings

def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_size": 5,
        "max_overflow": 10,
        "pool_timeout": 30,
        "pool_recycle": 1800,  # Recycle connections after 30 minutes
    }

engine = create_engine(settings.get_database_url, **_engine_options(settings.get_database_url))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

redis_client = redis.from_url(settings.REDIS_URL, decode_responses=True)

def utcnow() -> datetime:
    """Naive UTC timestamp with microseconds, so rows created in one second still sort."""
    return datetime.now(timezone.utc).replace(tzinfo=None)

def generate_id() -> str:
    """Opaque identifier shared with other services."""
    return uuid.uuid4().hex

# Database dependency
def get_db() -> Generator[Session, None, None]:
    """Get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def get_session_factory() -> Callable[[], Session]:
    """Session factory for work that outlives the request (background tasks)."""
    return SessionLocal

# Redis dependency
def get_redis():
    """Get Redis client."""
    return redis_client

def init_db(tables=None):
    """Create the given tables, or every mapped table when none are given."""
    Base.metadata.create_all(bind=engine, tables=tables)
