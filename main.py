"""FastAPI backend for Taste & Trip itinerary generation"""
import logging
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional, Union

# Load .env before anything else
from dotenv import load_dotenv
load_dotenv()

import httpx
from fastapi import FastAPI, HTTPException, Depends, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from jose import JWTError, jwt
from pydantic import BaseModel, ConfigDict, Field

import config
from database import init_db, TripStore, PersistenceError
from TripRequest import TripRequest, TripRequestError
from agents.errors import (
    ContextLookupError,
    ItineraryGenerationError,
    LocationNotFoundError,
    PipelineTimeoutError,
)
from agents.llm_client import LLMClient, _llm_name
from agents.planning_agent import TripPlanner
from agents.CuisineAgent import fetch_cuisine
from agents.PlacesAgent import fetch_places
from agents.WeatherAgent import fetch_weather

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize database
SessionLocal = init_db(config.DATABASE_URL)

# FastAPI app
app = FastAPI(
    title="Taste & Trip API",
    description="AI itineraries grounded in real places, weather and local cuisine",
    version=config.APP_VERSION,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


# Pydantic models
class TripGenerateBody(BaseModel):
    """Inbound trip description; presence of required fields is checked by TripRequest."""
    model_config = ConfigDict(populate_by_name=True)

    origin: Optional[str] = None
    destination: Optional[str] = None
    start_date: Optional[str] = Field(default=None, alias="startDate")  # YYYY-MM-DD
    end_date: Optional[str] = Field(default=None, alias="endDate")  # YYYY-MM-DD
    budget: Optional[float] = None
    budget_category: Optional[str] = Field(default=None, alias="budgetCategory")
    title: Optional[str] = None
    adults: Optional[int] = None
    children_ages: Optional[Union[str, List[int]]] = Field(default=None, alias="childrenAges")
    travel_style: Optional[str] = Field(default=None, alias="travelStyle")
    transport_preference: Optional[str] = Field(default=None, alias="transportPreference")
    accommodation_preference: Optional[str] = Field(default=None, alias="accommodationPreference")
    dietary_restrictions: Optional[str] = Field(default=None, alias="dietaryRestrictions")
    accessibility: Optional[str] = None
    special_notes: Optional[str] = Field(default=None, alias="specialNotes")
    interests: List[str] = []


# Identity
def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, config.SECRET_KEY, algorithm=config.ALGORITHM)


def _bearer_token(request: Request) -> Optional[str]:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        return token.strip()
    return request.cookies.get(config.ACCESS_TOKEN_COOKIE)


def require_user(request: Request) -> str:
    """Resolve the caller's user id from the JWT, or fail with 401."""
    token = _bearer_token(request)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        payload = jwt.decode(token, config.SECRET_KEY, algorithms=[config.ALGORITHM])
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    return user_id


# Dependencies
def get_store() -> TripStore:
    return TripStore(SessionLocal)


def get_llm() -> LLMClient:
    return LLMClient()


def get_planner(llm: LLMClient = Depends(get_llm), store: TripStore = Depends(get_store)) -> TripPlanner:
    return TripPlanner(llm, store)


async def get_http_client():
    async with httpx.AsyncClient(timeout=config.HTTP_TIMEOUT_SECONDS) as client:
        yield client


def _parse_query_date(value: Optional[str], name: str) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"{name} must be an ISO date (YYYY-MM-DD)")


# Trip endpoints
@app.post("/trips/generate")
async def generate_trip(
    body: TripGenerateBody,
    user_id: str = Depends(require_user),
    planner: TripPlanner = Depends(get_planner),
):
    try:
        trip_request = TripRequest.from_payload(body.model_dump())
    except TripRequestError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        trip_id = await planner.plan_trip(user_id, trip_request)
    except PipelineTimeoutError:
        raise HTTPException(status_code=504, detail="Itinerary generation timed out, please try again")
    except ItineraryGenerationError:
        raise HTTPException(status_code=500, detail="Could not generate itinerary")
    except PersistenceError as e:
        raise HTTPException(
            status_code=500,
            detail={"error": "Failed to save trip", "details": e.details()},
        )
    except Exception:
        logger.exception("Trip generation failed for user %s", user_id)
        raise HTTPException(status_code=500, detail="Internal server error")

    return {"tripId": trip_id}


@app.get("/trips")
def get_trips(user_id: str = Depends(require_user), store: TripStore = Depends(get_store)):
    try:
        return store.list_trips(user_id)
    except PersistenceError as e:
        raise HTTPException(status_code=500, detail={"error": "Failed to load trips", "details": e.details()})


@app.get("/trips/{trip_id}")
def get_trip(trip_id: str, user_id: str = Depends(require_user), store: TripStore = Depends(get_store)):
    try:
        trip = store.get_trip(trip_id, user_id)
    except PersistenceError as e:
        raise HTTPException(status_code=500, detail={"error": "Failed to load trip", "details": e.details()})
    if not trip:
        raise HTTPException(status_code=404, detail="Trip not found")
    return trip


# Context lookups
@app.get("/places")
async def search_places(
    destination: str = "",
    interests: str = "",
    limit: int = Query(config.PLACES_LIMIT, ge=1, le=100),
    client: httpx.AsyncClient = Depends(get_http_client),
):
    if not destination.strip():
        raise HTTPException(status_code=400, detail="destination is required")
    tags = [tag.strip() for tag in interests.split(",") if tag.strip()]
    try:
        result = await fetch_places(client, destination.strip(), tags, limit=limit)
    except LocationNotFoundError:
        raise HTTPException(status_code=404, detail="City not found")
    except ContextLookupError as e:
        logger.warning("Places lookup failed: %s", e)
        raise HTTPException(status_code=502, detail="Places lookup failed")
    return result.model_dump()


@app.get("/weather")
async def get_weather(
    city: str = "",
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    client: httpx.AsyncClient = Depends(get_http_client),
):
    if not city.strip():
        raise HTTPException(status_code=400, detail="city is required")
    start = _parse_query_date(start_date, "startDate")
    end = _parse_query_date(end_date, "endDate")
    try:
        outlook = await fetch_weather(client, city.strip(), start, end)
    except LocationNotFoundError:
        raise HTTPException(status_code=404, detail="City not found")
    except ContextLookupError as e:
        logger.warning("Weather lookup failed: %s", e)
        raise HTTPException(status_code=502, detail="Weather lookup failed")
    return outlook.model_dump()


@app.get("/cuisine")
async def get_cuisine(destination: str = "", llm: LLMClient = Depends(get_llm)):
    if not destination.strip():
        raise HTTPException(status_code=400, detail="destination is required")
    try:
        profile = await fetch_cuisine(llm, destination.strip())
    except ContextLookupError as e:
        logger.warning("Cuisine lookup failed: %s", e)
        raise HTTPException(status_code=502, detail="Cuisine lookup failed")
    return profile.model_dump()


# Health check
@app.get("/health")
def health_check():
    return {
        "status": "ok",
        "version": config.APP_VERSION,
        "llm": _llm_name(),
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
