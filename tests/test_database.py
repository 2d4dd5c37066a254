"""
Unit tests for database.py (in-memory SQLite)
"""
import pytest
from sqlalchemy.exc import OperationalError

from database import PersistenceError, TripStore, init_db, make_engine


def _record(user_id="user-1", **overrides):
    record = {
        "user_id": user_id,
        "title": "Rio long weekend",
        "origin": "São Paulo",
        "destination": "Rio de Janeiro",
        "start_date": "2024-06-10",
        "end_date": "2024-06-13",
        "budget": 3000.0,
        "budget_category": "medium",
        "adults": 2,
        "children_ages": [5],
        "preferences": {"travel_style": "relaxed"},
        "interests": ["Gastronomy"],
        "itinerary": {"overview": {}, "days": [{"day": 1}], "final_tips": {}},
        "weather_data": {"current": {"temperature": 24}},
        "local_cuisine": None,
        "generation": {"attempts": 1, "best_effort": False},
    }
    record.update(overrides)
    return record


@pytest.fixture
def store():
    return TripStore(init_db("sqlite://"))


class TestInsertAndGet:
    def test_round_trip(self, store):
        trip_id = store.insert_trip(_record())
        trip = store.get_trip(trip_id, "user-1")
        assert trip["id"] == trip_id
        assert trip["itinerary"]["days"] == [{"day": 1}]
        assert trip["children_ages"] == [5]
        assert trip["weather_data"] == {"current": {"temperature": 24}}
        assert trip["local_cuisine"] is None
        assert trip["created_at"] is not None

    def test_ids_are_unique(self, store):
        assert store.insert_trip(_record()) != store.insert_trip(_record())

    def test_scoped_to_owner(self, store):
        trip_id = store.insert_trip(_record(user_id="alice"))
        assert store.get_trip(trip_id, "bob") is None
        assert store.get_trip("missing", "alice") is None


class TestListTrips:
    def test_only_own_trips(self, store):
        store.insert_trip(_record(user_id="alice", title="first"))
        store.insert_trip(_record(user_id="alice", title="second"))
        store.insert_trip(_record(user_id="bob"))
        trips = store.list_trips("alice")
        assert sorted(t["title"] for t in trips) == ["first", "second"]
        assert "itinerary" not in trips[0]

    def test_empty(self, store):
        assert store.list_trips("nobody") == []


class TestPersistenceErrors:
    def test_constraint_violation_carries_diagnostics(self, store):
        with pytest.raises(PersistenceError) as exc_info:
            store.insert_trip(_record(origin=None))
        details = exc_info.value.details()
        assert details["code"] == "IntegrityError"
        assert "NOT NULL" in details["message"]
        assert details["hint"]

    def test_store_still_usable_after_failure(self, store):
        with pytest.raises(PersistenceError):
            store.insert_trip(_record(origin=None))
        assert store.get_trip(store.insert_trip(_record()), "user-1") is not None

    def test_missing_table(self):
        from sqlalchemy.orm import sessionmaker
        bare = TripStore(sessionmaker(bind=make_engine("sqlite://")))
        with pytest.raises(PersistenceError) as exc_info:
            bare.list_trips("user-1")
        assert isinstance(exc_info.value.__cause__, OperationalError)
