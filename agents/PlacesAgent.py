"""
Places lookup via the Geoapify geocoding and Places APIs.

Geocodes the destination, searches a fixed radius around it for the
categories implied by the traveller's interests, and groups the results
into named buckets (restaurants, attractions, culture, ...).
"""

from __future__ import annotations

import logging
import os
from typing import Iterable, Optional

import httpx

import config
from models import PLACE_BUCKETS, Place, PlacesResult
from .errors import LocationNotFoundError, PlacesLookupError

log = logging.getLogger(__name__)

_GEOCODE_URL = "https://api.geoapify.com/v1/geocode/search"
_PLACES_URL = "https://api.geoapify.com/v2/places"


def _get_geoapify_key() -> str:
    """Read the API key lazily so that dotenv has loaded by the time we need it."""
    return os.getenv("GEOAPIFY_API_KEY", "")


# ---------------------------------------------------------------------------
# Interest tags → Geoapify categories
# ---------------------------------------------------------------------------

INTEREST_TO_CATEGORIES: dict[str, list[str]] = {
    "Culture & History": [
        "entertainment.museum",
        "entertainment.culture.gallery",
        "entertainment.culture.theatre",
        "entertainment.culture.arts_centre",
        "tourism.sights.castle",
        "tourism.sights.archaeological_site",
        "tourism.sights.memorial.monument",
        "heritage.unesco",
    ],
    "Nature & Adventure": [
        "leisure.park",
        "leisure.park.nature_reserve",
        "leisure.park.garden",
        "natural.water",
        "natural.mountain.peak",
        "natural.forest",
        "tourism.attraction.viewpoint",
    ],
    "Gastronomy": [
        "catering.restaurant",
        "catering.fast_food",
        "catering.cafe",
        "catering.bar",
        "catering.pub",
        "catering.restaurant.pizza",
        "catering.restaurant.italian",
        "catering.restaurant.chinese",
    ],
    "Nightlife": [
        "catering.bar",
        "catering.pub",
        "adult.nightclub",
        "adult.casino",
        "catering.biergarten",
    ],
    "Shopping": [
        "commercial.shopping_mall",
        "commercial.marketplace",
        "commercial.department_store",
        "commercial.supermarket",
    ],
    "Wellness": [
        "leisure.spa",
        "service.beauty.spa",
        "service.beauty.massage",
        "sport.fitness.fitness_centre",
    ],
    "Family": [
        "entertainment.zoo",
        "entertainment.aquarium",
        "entertainment.theme_park",
        "entertainment.water_park",
        "leisure.playground",
    ],
    "Sports": [
        "sport.stadium",
        "sport.sports_centre",
        "sport.swimming_pool",
        "sport.fitness.fitness_centre",
    ],
    "Art & Museums": [
        "entertainment.museum",
        "entertainment.culture.gallery",
        "entertainment.culture.arts_centre",
        "entertainment.culture.theatre",
    ],
}

DEFAULT_CATEGORIES = [
    "catering.restaurant",
    "entertainment.museum",
    "leisure.park",
    "commercial.shopping_mall",
    "tourism.sights.castle",
    "entertainment.culture.gallery",
]

# Bucket name → category-code fragments; a place lands in every bucket it matches.
_BUCKET_RULES: dict[str, tuple[str, ...]] = {
    "restaurants": ("catering.restaurant", "catering.fast_food", "catering.cafe"),
    "attractions": ("tourism.sights", "tourism.attraction", "heritage"),
    "culture": ("entertainment.museum", "entertainment.culture", "tourism.sights"),
    "nature": ("natural", "leisure.park"),
    "nightlife": ("catering.bar", "catering.pub", "adult.nightclub"),
    "shopping": ("commercial",),
    "wellness": ("leisure.spa", "service.beauty"),
    "sports": ("sport",),
    "family": ("entertainment.zoo", "entertainment.theme_park", "leisure.playground"),
}

# Buckets whose places anchor meals and activities, in reference order.
REFERENCE_BUCKETS = ("restaurants", "attractions", "culture", "nightlife", "nature")


def categories_for_interests(interests: Iterable[str]) -> list[str]:
    """Union of Geoapify categories for the given interest tags, order preserved."""
    categories: list[str] = []
    for interest in interests:
        for cat in INTEREST_TO_CATEGORIES.get(interest.strip(), []):
            if cat not in categories:
                categories.append(cat)
    return categories or list(DEFAULT_CATEGORIES)


def categorize_places(places: list[Place]) -> dict[str, list[Place]]:
    return {
        bucket: [
            place for place in places
            if any(fragment in cat for cat in place.categories for fragment in _BUCKET_RULES[bucket])
        ]
        for bucket in PLACE_BUCKETS
    }


def extract_place_names(places: Optional[PlacesResult]) -> list[str]:
    """Flatten the meal/activity buckets into the reference list used for validation.

    Shopping, wellness, sports and family places are not meal or activity
    anchors, so they are left out. No places → empty list.
    """
    if places is None:
        return []
    names: list[str] = []
    for bucket in REFERENCE_BUCKETS:
        names.extend(place.name for place in places.bucket(bucket))
    return names


def _parse_feature(feature: dict) -> Optional[Place]:
    props = feature.get("properties") or {}
    name = (props.get("name") or "").strip()
    if not name:
        return None
    raw = (props.get("datasource") or {}).get("raw") or {}
    coords = (feature.get("geometry") or {}).get("coordinates")
    return Place(
        name=name,
        address=props.get("formatted") or "",
        categories=props.get("categories") or [],
        cuisine=raw.get("cuisine"),
        type=raw.get("amenity") or raw.get("tourism") or raw.get("leisure") or "place",
        website=props.get("website"),
        phone=props.get("phone"),
        opening_hours=props.get("opening_hours"),
        coordinates=tuple(coords[:2]) if coords else None,
    )


async def geocode_destination(client: httpx.AsyncClient, destination: str, api_key: str) -> tuple[float, float]:
    """Return (lat, lon) of the best geocoding match for *destination*."""
    resp = await client.get(_GEOCODE_URL, params={
        "text": destination,
        "limit": 1,
        "apiKey": api_key,
        "format": "geojson",
    })
    resp.raise_for_status()
    features = resp.json().get("features") or []
    if not features:
        raise LocationNotFoundError(f"No coordinates found for {destination!r}")
    lon, lat = features[0]["geometry"]["coordinates"][:2]
    return lat, lon


async def fetch_places(
    client: httpx.AsyncClient,
    destination: str,
    interests: Iterable[str] = (),
    limit: int = config.PLACES_LIMIT,
) -> PlacesResult:
    """Look up real places around *destination* for the given interests.

    Raises:
        PlacesLookupError: no API key, or the Geoapify request failed.
        LocationNotFoundError: the destination could not be geocoded.
    """
    api_key = _get_geoapify_key()
    if not api_key:
        raise PlacesLookupError("GEOAPIFY_API_KEY is not configured")

    interests = [i for i in interests if i and i.strip()]
    try:
        lat, lon = await geocode_destination(client, destination, api_key)
        categories = categories_for_interests(interests)
        log.info("Searching %d place categories around %s (%.4f, %.4f)",
                 len(categories), destination, lat, lon)
        resp = await client.get(_PLACES_URL, params={
            "categories": ",".join(categories),
            "filter": f"circle:{lon},{lat},{config.PLACES_RADIUS_METERS}",
            "limit": limit,
            "apiKey": api_key,
        })
        resp.raise_for_status()
        features = resp.json().get("features") or []
    except httpx.HTTPError as exc:
        raise PlacesLookupError(f"Geoapify request failed: {exc}") from exc

    places = [p for p in (_parse_feature(f) for f in features) if p is not None]
    categorized = categorize_places(places)
    log.info("Found %d places for %s (%s)", len(places), destination,
             ", ".join(f"{k}={len(v)}" for k, v in categorized.items() if v))

    return PlacesResult(
        destination=destination,
        interests=interests,
        latitude=lat,
        longitude=lon,
        total_places=len(places),
        places=places,
        categorized=categorized,
    )
