"""
Itinerary planning pipeline.

  1. Context        → places + weather + cuisine, fetched concurrently
  2. References     → flat list of real place names (validation only)
  3. Prompt         → one instruction document for the whole trip
  4. Generation     → up to N ordinary attempts + 1 final attempt
  5. Persistence    → exactly one stored trip per successful run

Steps 1-4 run under one overall deadline; each generation attempt has its
own timeout as well. Nothing is written until step 4 has produced an
itinerary.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

import httpx

import config
from models import TripContext
from TripRequest import TripRequest
from .context import gather_trip_context
from .errors import GenerationError, ItineraryGenerationError, PipelineTimeoutError
from .llm_client import FINAL_ATTEMPT_SYSTEM, ITINERARY_SYSTEM, ItineraryGenerator, LLMClient
from .PlacesAgent import extract_place_names
from .prompt_builder import build_itinerary_prompt
from .validation import PlaceUsage, validate_places_usage

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Retry policy
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RetryPolicy:
    """Attempt budget and temperature schedule for itinerary generation."""

    max_attempts: int = config.MAX_GENERATION_ATTEMPTS
    temperatures: tuple[float, ...] = config.ATTEMPT_TEMPERATURES
    final_temperature: float = config.FINAL_ATTEMPT_TEMPERATURE
    threshold: float = config.PLACE_USAGE_THRESHOLD
    attempt_timeout: Optional[float] = config.ATTEMPT_TIMEOUT_SECONDS

    def temperature_for(self, attempt: int) -> float:
        """Temperature of ordinary attempt *attempt* (1-based); the schedule's last value repeats."""
        if not self.temperatures:
            return self.final_temperature
        return self.temperatures[min(attempt, len(self.temperatures)) - 1]


class AttemptState(str, Enum):
    ATTEMPTING = "attempting"
    FINAL_ATTEMPT = "final_attempt"
    SUCCEEDED = "succeeded"
    BEST_EFFORT = "best_effort"


@dataclass
class GenerationOutcome:
    itinerary: dict
    attempts: int
    usage: PlaceUsage
    state: AttemptState
    missing_days: int = 0

    @property
    def best_effort(self) -> bool:
        return self.state is AttemptState.BEST_EFFORT

    def metadata(self) -> dict:
        return {
            "attempts": self.attempts,
            "state": self.state.value,
            "best_effort": self.best_effort,
            "coverage": self.usage.to_dict(),
            "missing_days": self.missing_days,
        }


# ---------------------------------------------------------------------------
# Retry controller
# ---------------------------------------------------------------------------

class ItineraryRetryController:
    """Drives the attempt state machine for one request.

    Ordinary attempts absorb transport, empty-response, parse and timeout
    failures as well as low place coverage. The final attempt runs at the
    lowest temperature with the stricter system prompt; its itinerary is
    accepted whatever its coverage, and any failure there is terminal.
    """

    def __init__(self, generator: ItineraryGenerator, policy: Optional[RetryPolicy] = None):
        self.generator = generator
        self.policy = policy or RetryPolicy()
        self.state = AttemptState.ATTEMPTING
        self.calls = 0

    async def _attempt(self, prompt: str, temperature: float, system_prompt: str) -> dict:
        self.calls += 1
        call = self.generator.generate(prompt, temperature, system_prompt=system_prompt)
        if self.policy.attempt_timeout:
            return await asyncio.wait_for(call, timeout=self.policy.attempt_timeout)
        return await call

    async def run(self, prompt: str, expected_places: list[str]) -> GenerationOutcome:
        policy = self.policy
        self.state = AttemptState.ATTEMPTING
        self.calls = 0

        for attempt in range(1, policy.max_attempts + 1):
            temperature = policy.temperature_for(attempt)
            try:
                itinerary = await self._attempt(prompt, temperature, ITINERARY_SYSTEM)
            except asyncio.TimeoutError:
                logger.warning("Attempt %d timed out after %ss", attempt, policy.attempt_timeout)
                continue
            except GenerationError as exc:
                raw = getattr(exc, "raw_text", "")
                logger.warning("Attempt %d failed: %s", attempt, exc)
                if raw:
                    logger.debug("Raw model output of attempt %d: %s", attempt, raw)
                continue

            usage = validate_places_usage(itinerary, expected_places, policy.threshold)
            if usage.passed:
                self.state = AttemptState.SUCCEEDED
                logger.info(
                    "Attempt %d succeeded: %d/%d places used (%.0f%%)",
                    attempt, usage.matches, usage.expected, usage.ratio * 100,
                )
                return GenerationOutcome(itinerary, self.calls, usage, self.state)
            logger.warning(
                "Attempt %d used too few real places: %.0f%% < %.0f%% (matched: %s)",
                attempt, usage.ratio * 100, policy.threshold * 100, usage.matched_places,
            )

        self.state = AttemptState.FINAL_ATTEMPT
        logger.info("Ordinary attempts exhausted, running final attempt")
        try:
            itinerary = await self._attempt(prompt, policy.final_temperature, FINAL_ATTEMPT_SYSTEM)
        except asyncio.TimeoutError as exc:
            logger.error("Final attempt timed out after %ss", policy.attempt_timeout)
            raise ItineraryGenerationError("could not generate itinerary") from exc
        except GenerationError as exc:
            logger.error("Final attempt failed: %s", exc)
            raise ItineraryGenerationError("could not generate itinerary") from exc

        usage = validate_places_usage(itinerary, expected_places, policy.threshold)
        self.state = AttemptState.SUCCEEDED if usage.passed else AttemptState.BEST_EFFORT
        if not usage.passed:
            logger.warning(
                "Accepting final attempt with low place coverage: %.0f%%", usage.ratio * 100,
            )
        return GenerationOutcome(itinerary, self.calls, usage, self.state)


# ---------------------------------------------------------------------------
# Post-processing
# ---------------------------------------------------------------------------

def normalise_itinerary(itinerary: dict, day_count: int) -> dict:
    """Trim the itinerary to the trip length and fill the blocks the model may omit."""
    days = [day for day in itinerary.get("days", []) if isinstance(day, dict)][:day_count]
    for number, day in enumerate(days, 1):
        if not isinstance(day.get("day"), int):
            day["day"] = number
    itinerary["days"] = days
    if not isinstance(itinerary.get("overview"), dict):
        itinerary["overview"] = {}
    if not isinstance(itinerary.get("final_tips"), dict):
        itinerary["final_tips"] = {}
    return itinerary


PREFERENCE_FIELDS = (
    "travel_style",
    "transport_preference",
    "accommodation_preference",
    "dietary_restrictions",
    "accessibility",
    "special_notes",
)


def build_trip_record(
    user_id: str,
    request: TripRequest,
    outcome: GenerationOutcome,
    context: TripContext,
) -> dict:
    """The row inserted into the trips table for one successful run."""
    fields = request.to_dict()
    fields.pop("budget_category_override", None)
    preferences = {name: fields.pop(name) for name in PREFERENCE_FIELDS}
    return {
        **fields,
        "user_id": user_id,
        "title": request.title or f"Trip to {request.destination}",
        "budget_category": request.budget_category().value,
        "preferences": preferences,
        "itinerary": outcome.itinerary,
        "weather_data": context.weather.model_dump(mode="json") if context.weather else None,
        "local_cuisine": context.cuisine.model_dump(mode="json") if context.cuisine else None,
        "generation": outcome.metadata(),
    }


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

def _default_http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=config.HTTP_TIMEOUT_SECONDS)


class TripPlanner:
    """Context → prompt → generation → persistence for one trip request.

    The LLM client, the trip store and the HTTP client factory are all
    injected so tests can substitute fakes for every network boundary.
    """

    def __init__(
        self,
        llm: LLMClient,
        store,
        http_client_factory: Callable[[], httpx.AsyncClient] = _default_http_client,
        policy: Optional[RetryPolicy] = None,
        pipeline_timeout: Optional[float] = config.PIPELINE_TIMEOUT_SECONDS,
    ):
        self.llm = llm
        self.store = store
        self.http_client_factory = http_client_factory
        self.policy = policy or RetryPolicy()
        self.pipeline_timeout = pipeline_timeout

    async def _generate(self, request: TripRequest) -> tuple[GenerationOutcome, TripContext]:
        async with self.http_client_factory() as client:
            context = await gather_trip_context(request, client, self.llm)

        expected = extract_place_names(context.places)
        prompt = build_itinerary_prompt(request, context)
        logger.info(
            "Generating %d-day itinerary for %s with %d reference places",
            request.day_count(), request.destination, len(expected),
        )

        controller = ItineraryRetryController(ItineraryGenerator(self.llm), self.policy)
        outcome = await controller.run(prompt, expected)
        day_count = request.day_count()
        outcome.itinerary = normalise_itinerary(outcome.itinerary, day_count)
        outcome.missing_days = day_count - len(outcome.itinerary["days"])
        if outcome.missing_days:
            logger.warning(
                "Itinerary for %s covers %d of %d days",
                request.destination, len(outcome.itinerary["days"]), day_count,
            )
        return outcome, context

    async def generate(self, request: TripRequest) -> tuple[GenerationOutcome, TripContext]:
        """Produce an itinerary within the overall deadline; nothing is stored."""
        if not self.pipeline_timeout:
            return await self._generate(request)
        try:
            return await asyncio.wait_for(self._generate(request), timeout=self.pipeline_timeout)
        except asyncio.TimeoutError as exc:
            logger.error(
                "Itinerary for %s exceeded the %ss deadline", request.destination, self.pipeline_timeout,
            )
            raise PipelineTimeoutError("itinerary generation timed out") from exc

    async def plan_trip(self, user_id: str, request: TripRequest) -> str:
        """Run the full pipeline and return the stored trip's id."""
        outcome, context = await self.generate(request)
        record = build_trip_record(user_id, request, outcome, context)
        trip_id = await asyncio.to_thread(self.store.insert_trip, record)
        logger.info(
            "Stored trip %s for user %s (%d attempts, best_effort=%s)",
            trip_id, user_id, outcome.attempts, outcome.best_effort,
        )
        return trip_id
