"""
Database schema and connection management.

Uses SQLite with SQLAlchemy for dictionary versions, bid profiles and the
unknown-skill review queue.
"""

from datetime import datetime
from pathlib import Path
from sqlalchemy import create_engine, Column, Integer, String, Text, DateTime
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()


class DictionaryVersionRow(Base):
    """One serialized skill dictionary snapshot."""

    __tablename__ = "skill_dictionaries"

    version = Column(String, primary_key=True)  # YYYY.N
    payload = Column(Text, nullable=False)  # to_json() document
    saved_seq = Column(Integer, nullable=False, index=True)  # highest = current
    saved_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)


class BidRow(Base):
    """Bid profile record."""

    __tablename__ = "bids"

    pk = Column(Integer, primary_key=True, autoincrement=True)  # insertion order
    bid_id = Column(String, nullable=False, unique=True)
    company = Column(String, nullable=False)
    role = Column(String, nullable=False)
    main_stacks = Column(Text, nullable=False)  # LayerSkills object or legacy list, as JSON
    created_at = Column(DateTime, nullable=False, default=datetime.now)


class SkillReviewItemRow(Base):
    """Unknown skill awaiting (or past) review."""

    __tablename__ = "skill_review_items"

    skill_name = Column(String, primary_key=True)  # normalized
    frequency = Column(Integer, nullable=False, default=1)
    first_detected_at = Column(String, nullable=False)  # ISO-8601, Z suffix
    detected_in = Column(Text, nullable=False)  # JSON list of bid ids / sources
    status = Column(String, nullable=False, default="pending", index=True)  # pending|approved|rejected
    reason = Column(Text)  # rejection reason


def _engine(db_path: Path):
    return create_engine(f"sqlite:///{db_path}")


def init_database(db_path: Path) -> None:
    """
    Initialize database and create tables.

    Args:
        db_path: Path to SQLite database file
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = _engine(db_path)
    Base.metadata.create_all(engine)
    engine.dispose()


def get_session(db_path: Path):
    """
    Get database session.

    Args:
        db_path: Path to SQLite database file

    Returns:
        SQLAlchemy session
    """
    engine = _engine(db_path)
    Session = sessionmaker(bind=engine)
    return Session()
