"""
Unit tests for agents/PlacesAgent.py

Geoapify is faked with httpx.MockTransport; no network access is needed.
"""
import asyncio

import httpx
import pytest

import config
from agents import PlacesAgent as pl
from agents.errors import LocationNotFoundError, PlacesLookupError
from models import Place, PlacesResult
from conftest import RIO_ATTRACTIONS, RIO_RESTAURANTS, geoapify_feature, rio_features


def _geoapify_handler(features, geocode_features=None, seen=None):
    if geocode_features is None:
        geocode_features = [{"geometry": {"coordinates": [-43.18, -22.91]}}]

    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        if request.url.path == "/v1/geocode/search":
            return httpx.Response(200, json={"features": geocode_features})
        if request.url.path == "/v2/places":
            return httpx.Response(200, json={"features": features})
        return httpx.Response(404)

    return handler


def _fetch(handler, destination="Rio de Janeiro", interests=(), **kwargs):
    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await pl.fetch_places(client, destination, interests, **kwargs)
    return asyncio.run(run())


# ---------------------------------------------------------------------------
# Interest tags → categories
# ---------------------------------------------------------------------------

class TestCategoriesForInterests:
    def test_no_interests_uses_defaults(self):
        assert pl.categories_for_interests([]) == pl.DEFAULT_CATEGORIES
        assert len(pl.DEFAULT_CATEGORIES) == 6

    def test_union_without_duplicates(self):
        cats = pl.categories_for_interests(["Gastronomy", "Nightlife"])
        assert cats[0] == "catering.restaurant"
        assert cats.count("catering.bar") == 1
        assert "adult.nightclub" in cats

    def test_unknown_tags_ignored(self):
        assert pl.categories_for_interests(["Underwater Basket Weaving", "Shopping"]) == \
            pl.INTEREST_TO_CATEGORIES["Shopping"]

    def test_only_unknown_tags_fall_back(self):
        assert pl.categories_for_interests(["Nope"]) == pl.DEFAULT_CATEGORIES

    def test_defaults_are_a_copy(self):
        cats = pl.categories_for_interests([])
        cats.append("x")
        assert "x" not in pl.DEFAULT_CATEGORIES


# ---------------------------------------------------------------------------
# Bucketing and reference extraction
# ---------------------------------------------------------------------------

class TestCategorizePlaces:
    def test_buckets(self):
        places = [
            Place(name="Cafe", categories=["catering.cafe"]),
            Place(name="Fort", categories=["tourism.sights.fort"]),
            Place(name="Mall", categories=["commercial.shopping_mall"]),
            Place(name="Park", categories=["leisure.park"]),
        ]
        buckets = pl.categorize_places(places)
        assert [p.name for p in buckets["restaurants"]] == ["Cafe"]
        # sights are both an attraction and a cultural venue
        assert [p.name for p in buckets["attractions"]] == ["Fort"]
        assert [p.name for p in buckets["culture"]] == ["Fort"]
        assert [p.name for p in buckets["shopping"]] == ["Mall"]
        assert [p.name for p in buckets["nature"]] == ["Park"]
        assert buckets["wellness"] == []


class TestExtractPlaceNames:
    def test_none_gives_empty_list(self):
        assert pl.extract_place_names(None) == []

    def test_order_and_excluded_buckets(self):
        places = [
            Place(name="Mall", categories=["commercial.shopping_mall"]),
            Place(name="Spa", categories=["leisure.spa"]),
            Place(name="Park", categories=["leisure.park"]),
            Place(name="Pub", categories=["catering.pub"]),
            Place(name="Bistro", categories=["catering.restaurant"]),
            Place(name="Museum", categories=["entertainment.museum"]),
        ]
        result = PlacesResult(
            destination="X", latitude=0, longitude=0,
            places=places, categorized=pl.categorize_places(places),
        )
        assert pl.extract_place_names(result) == ["Bistro", "Museum", "Pub", "Park"]

    def test_rio_fixture(self, rio_places):
        names = pl.extract_place_names(rio_places)
        assert names == [n for n, _ in RIO_RESTAURANTS] + [n for n, _ in RIO_ATTRACTIONS]


# ---------------------------------------------------------------------------
# fetch_places
# ---------------------------------------------------------------------------

class TestFetchPlaces:
    def test_returns_bucketed_places(self):
        result = _fetch(_geoapify_handler(rio_features()), interests=["Gastronomy"])
        assert result.destination == "Rio de Janeiro"
        assert result.interests == ["Gastronomy"]
        assert result.total_places == 10
        assert len(result.bucket("restaurants")) == 5
        assert len(result.bucket("attractions")) == 5
        first = result.bucket("restaurants")[0]
        assert first.name == "Confeitaria Colombo"
        assert first.cuisine == "brazilian"
        assert first.coordinates == (-43.18, -22.91)

    def test_request_parameters(self):
        seen = []
        _fetch(_geoapify_handler([], seen=seen), interests=["Nightlife"], limit=7)
        geocode, places = seen
        assert geocode.url.params["text"] == "Rio de Janeiro"
        assert places.url.params["categories"] == ",".join(pl.INTEREST_TO_CATEGORIES["Nightlife"])
        assert places.url.params["filter"] == f"circle:-43.18,-22.91,{config.PLACES_RADIUS_METERS}"
        assert places.url.params["limit"] == "7"
        assert places.url.params["apiKey"] == "test-geoapify-key"

    def test_blank_interests_use_defaults(self):
        seen = []
        _fetch(_geoapify_handler([], seen=seen), interests=["", "  "])
        assert seen[1].url.params["categories"] == ",".join(pl.DEFAULT_CATEGORIES)

    def test_features_without_name_are_dropped(self):
        features = [
            geoapify_feature("", "Nowhere", ["catering.restaurant"]),
            geoapify_feature("Real Place", "Somewhere 1", ["catering.restaurant"]),
        ]
        result = _fetch(_geoapify_handler(features))
        assert [p.name for p in result.places] == ["Real Place"]

    def test_null_address_becomes_empty(self):
        features = [geoapify_feature("Bar do Mineiro", None, ["catering.restaurant"], cuisine="brazilian")]
        result = _fetch(_geoapify_handler(features))
        assert [p.name for p in result.places] == ["Bar do Mineiro"]
        assert result.places[0].address == ""

    def test_unknown_destination(self):
        with pytest.raises(LocationNotFoundError):
            _fetch(_geoapify_handler([], geocode_features=[]), destination="Atlantis")

    def test_upstream_error(self):
        def handler(request):
            return httpx.Response(500, json={"message": "boom"})

        with pytest.raises(PlacesLookupError):
            _fetch(handler)

    def test_missing_api_key(self, monkeypatch):
        monkeypatch.delenv("GEOAPIFY_API_KEY", raising=False)
        with pytest.raises(PlacesLookupError, match="GEOAPIFY_API_KEY"):
            _fetch(_geoapify_handler([]))
