"""Database models for slot catalogs and detection history (SQLAlchemy)."""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, Text, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool


Base = declarative_base()


def _utcnow():
    return datetime.now(timezone.utc)


class ParkingLot(Base):
    __tablename__ = "parking_lots"
    id   = Column(Integer, primary_key=True, autoincrement=False)
    name = Column(String(100), nullable=True)


class ParkingSlotRecord(Base):
    __tablename__ = "parking_slots"
    id             = Column(Integer, primary_key=True, autoincrement=True)
    parking_lot_id = Column(Integer, ForeignKey("parking_lots.id"), index=True, nullable=False)
    label          = Column(String(20), nullable=False)
    x1             = Column(Float, nullable=False)
    y1             = Column(Float, nullable=False)
    x2             = Column(Float, nullable=False)
    y2             = Column(Float, nullable=False)


class DetectionLogRecord(Base):
    __tablename__ = "detection_logs"
    id              = Column(Integer, primary_key=True, autoincrement=True)
    parking_lot_id  = Column(Integer, index=True, nullable=False)
    occupied_labels = Column(Text, nullable=False)   # JSON list
    occupied_count  = Column(Integer, nullable=False)
    source_image    = Column(String(255), nullable=True)
    created_at      = Column(DateTime(timezone=True), default=_utcnow, index=True)


def create_session_factory(database_url: str):
    """Create the engine and a session factory, creating tables if needed.
    
    In-memory SQLite shares one connection so every session sees the same data.
    """
    if database_url.startswith("sqlite") and ":memory:" in database_url:
        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    elif database_url.startswith("sqlite"):
        engine = create_engine(database_url, connect_args={"check_same_thread": False})
    else:
        engine = create_engine(database_url, pool_pre_ping=True)
    
    Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)
