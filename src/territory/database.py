"""
Database connection for Supabase PostgreSQL.

Check-ins are stored in PostgreSQL because:
- The check-in log should survive restarts (Redis only holds the revealed set)
- It lets the revealed territory be rebuilt or audited later
"""
import logging
import os
from datetime import datetime, timezone
from typing import Optional

from dotenv import load_dotenv
from sqlalchemy import create_engine, Column, String, Float, Integer, DateTime
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)

# Set SUPABASE_DATABASE_URL in your .env file or environment
DATABASE_URL = os.getenv("SUPABASE_DATABASE_URL")

# Only created when DATABASE_URL is set (allows tests to run without DB)
engine = None
SessionLocal = None

if DATABASE_URL:
    engine = create_engine(DATABASE_URL)
    SessionLocal = sessionmaker(bind=engine)

Base = declarative_base()


class CheckInRecord(Base):
    """One check-in: a user standing in an H3 cell at a point in time."""
    __tablename__ = "check_ins"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=False)
    h3_index = Column(String(20), nullable=False, index=True)
    collection = Column(String(64), nullable=False)
    event_type = Column(String(32), nullable=False, default="check_in")
    region = Column(String(64), nullable=True)
    lat = Column(Float, nullable=False)
    lon = Column(Float, nullable=False)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))


def get_db_session():
    """
    Get a database session.

    Returns None if database is not configured (useful for tests).
    """
    if SessionLocal is None:
        return None
    return SessionLocal()


def is_database_configured():
    """Check if database connection is configured."""
    return DATABASE_URL is not None and engine is not None


def save_check_in(
    user_id: str,
    h3_index: str,
    collection: str,
    lat: float,
    lon: float,
    event_type: str = "check_in",
    region: Optional[str] = None,
    created_at: Optional[datetime] = None,
) -> bool:
    """
    Append a check-in to the history table.

    Returns:
        True if saved, False if the database is not configured or the
        insert failed
    """
    if not is_database_configured():
        return False

    session = get_db_session()
    if session is None:
        return False

    try:
        record = CheckInRecord(
            user_id=user_id,
            h3_index=h3_index,
            collection=collection,
            event_type=event_type,
            region=region,
            lat=lat,
            lon=lon,
            created_at=created_at or datetime.now(timezone.utc),
        )
        session.add(record)
        session.commit()
        return True
    except SQLAlchemyError:
        logger.warning("Failed to save check-in for cell %s", h3_index, exc_info=True)
        session.rollback()
        return False
    finally:
        session.close()
