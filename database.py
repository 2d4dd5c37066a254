"""
Trip storage with SQLAlchemy.

One `trips` row is written per successful itinerary generation and never
updated afterwards. `TripStore` is the only thing the pipeline talks to.
"""
from datetime import datetime, timezone
from typing import Optional
import logging
import uuid

from sqlalchemy import create_engine, Column, String, Integer, Float, DateTime, JSON
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

Base = declarative_base()


def generate_id():
    return uuid.uuid4().hex


def _utcnow():
    return datetime.now(timezone.utc)


class Trip(Base):
    __tablename__ = "trips"

    id = Column(String, primary_key=True, default=generate_id)
    user_id = Column(String, index=True, nullable=False)
    title = Column(String, default="")
    origin = Column(String, nullable=False)
    destination = Column(String, nullable=False)
    start_date = Column(String, nullable=False)  # YYYY-MM-DD
    end_date = Column(String, nullable=False)  # YYYY-MM-DD
    budget = Column(Float, nullable=False)
    budget_category = Column(String, nullable=False)  # low, medium, high
    adults = Column(Integer, default=1)
    children_ages = Column(JSON, default=list)
    preferences = Column(JSON, default=dict)  # style, transport, dietary, ...
    interests = Column(JSON, default=list)
    itinerary = Column(JSON, nullable=False)
    weather_data = Column(JSON, nullable=True)
    local_cuisine = Column(JSON, nullable=True)
    generation = Column(JSON, default=dict)  # attempts, coverage, best_effort
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "origin": self.origin,
            "destination": self.destination,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "budget": self.budget,
            "budget_category": self.budget_category,
            "adults": self.adults,
            "children_ages": self.children_ages,
            "preferences": self.preferences,
            "interests": self.interests,
            "itinerary": self.itinerary,
            "weather_data": self.weather_data,
            "local_cuisine": self.local_cuisine,
            "generation": self.generation,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class PersistenceError(Exception):
    """A storage operation failed; carries the backing store's diagnostics."""

    def __init__(self, message: str, code: Optional[str] = None, hint: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.hint = hint

    @classmethod
    def from_sqlalchemy(cls, exc: SQLAlchemyError) -> "PersistenceError":
        orig = getattr(exc, "orig", None)
        code = getattr(orig, "pgcode", None) or (type(orig).__name__ if orig else type(exc).__name__)
        return cls(str(orig or exc), code=code, hint=getattr(exc, "code", None))

    def details(self) -> dict:
        return {"code": self.code, "message": self.message, "hint": self.hint}


def make_engine(url: str):
    """Create an engine; in-memory SQLite shares one connection across threads."""
    kwargs = {}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    return create_engine(url, **kwargs)


def init_db(url: str):
    """Create the tables and return a session factory bound to *url*."""
    engine = make_engine(url)
    Base.metadata.create_all(bind=engine)
    return sessionmaker(bind=engine, expire_on_commit=False)


class TripStore:
    """Insert and owner-scoped reads over the trips table."""

    def __init__(self, session_factory):
        self._session_factory = session_factory

    def insert_trip(self, record: dict) -> str:
        """Insert one trip record and return its generated id."""
        db = self._session_factory()
        try:
            trip = Trip(**record)
            db.add(trip)
            db.commit()
            return trip.id
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error("Failed to save trip for user %s: %s", record.get("user_id"), exc)
            raise PersistenceError.from_sqlalchemy(exc) from exc
        finally:
            db.close()

    def get_trip(self, trip_id: str, user_id: str) -> Optional[dict]:
        db = self._session_factory()
        try:
            trip = db.query(Trip).filter(Trip.id == trip_id, Trip.user_id == user_id).first()
            return trip.to_dict() if trip else None
        except SQLAlchemyError as exc:
            raise PersistenceError.from_sqlalchemy(exc) from exc
        finally:
            db.close()

    def list_trips(self, user_id: str) -> list[dict]:
        db = self._session_factory()
        try:
            trips = (
                db.query(Trip)
                .filter(Trip.user_id == user_id)
                .order_by(Trip.created_at.desc())
                .all()
            )
            return [
                {
                    "id": t.id,
                    "title": t.title,
                    "origin": t.origin,
                    "destination": t.destination,
                    "start_date": t.start_date,
                    "end_date": t.end_date,
                    "budget_category": t.budget_category,
                    "created_at": t.created_at.isoformat() if t.created_at else None,
                }
                for t in trips
            ]
        except SQLAlchemyError as exc:
            raise PersistenceError.from_sqlalchemy(exc) from exc
        finally:
            db.close()
