"""Concurrent fetch of places, weather and cuisine for one trip request."""

from __future__ import annotations

import asyncio
import logging

import httpx

import config
from models import TripContext
from TripRequest import TripRequest
from .CuisineAgent import fetch_cuisine
from .PlacesAgent import fetch_places
from .WeatherAgent import fetch_weather
from .llm_client import LLMClient

logger = logging.getLogger(__name__)


async def gather_trip_context(
    request: TripRequest,
    client: httpx.AsyncClient,
    llm: LLMClient,
    places_limit: int = config.PLACES_LIMIT,
) -> TripContext:
    """Issue the three lookups together and keep whatever succeeded.

    A failing source is logged and left as None; it never fails the request.
    """
    results = await asyncio.gather(
        fetch_places(client, request.destination, request.interests, limit=places_limit),
        fetch_weather(client, request.destination, request.start_date, request.end_date),
        fetch_cuisine(llm, request.destination),
        return_exceptions=True,
    )

    fetched = {}
    for source, result in zip(("places", "weather", "cuisine"), results):
        if isinstance(result, Exception):
            logger.warning("%s lookup for %s failed: %s", source.capitalize(), request.destination, result)
            fetched[source] = None
        elif isinstance(result, BaseException):
            raise result
        else:
            fetched[source] = result

    context = TripContext(**fetched)
    logger.info(
        "Context for %s: places=%s weather=%s cuisine=%s",
        request.destination, context.has_places, context.has_weather, context.has_cuisine,
    )
    return context
