"""
config.py
---------
Central configuration for the Taste & Trip itinerary service.
All values come from environment variables; API keys are read lazily by the
agents that need them so that dotenv has loaded by the time they are used.
"""

import os


def _floats(raw: str) -> tuple[float, ...]:
    return tuple(float(part) for part in raw.split(",") if part.strip())


# ── Service ──────────────────────────────────────────────────────────────────
APP_VERSION: str = "1.0.0"
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./taste_and_trip.db")

# ── Identity (JWT issued by the auth provider) ───────────────────────────────
SECRET_KEY: str = os.getenv("SECRET_KEY", "taste-and-trip-secret-key")
ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24)))
ACCESS_TOKEN_COOKIE: str = "access_token"

# ── External data sources ────────────────────────────────────────────────────
HTTP_TIMEOUT_SECONDS: float = float(os.getenv("HTTP_TIMEOUT_SECONDS", "10"))
PLACES_LIMIT: int = int(os.getenv("PLACES_LIMIT", "20"))
PLACES_RADIUS_METERS: int = int(os.getenv("PLACES_RADIUS_METERS", "5000"))
WEATHER_LANG: str = os.getenv("WEATHER_LANG", "en")
FORECAST_HORIZON_DAYS: int = 8  # One Call daily forecast length

# ── Generation ───────────────────────────────────────────────────────────────
CURRENCY: str = os.getenv("CURRENCY", "USD")
ITINERARY_MAX_TOKENS: int = int(os.getenv("ITINERARY_MAX_TOKENS", "4000"))
CUISINE_MAX_TOKENS: int = int(os.getenv("CUISINE_MAX_TOKENS", "2000"))
CUISINE_TEMPERATURE: float = float(os.getenv("CUISINE_TEMPERATURE", "0.7"))

# Retry schedule: one temperature per ordinary attempt, then the final attempt.
MAX_GENERATION_ATTEMPTS: int = int(os.getenv("MAX_GENERATION_ATTEMPTS", "3"))
ATTEMPT_TEMPERATURES: tuple[float, ...] = _floats(os.getenv("ATTEMPT_TEMPERATURES", "0.3,0.3,0.2"))
FINAL_ATTEMPT_TEMPERATURE: float = float(os.getenv("FINAL_ATTEMPT_TEMPERATURE", "0.1"))
PLACE_USAGE_THRESHOLD: float = float(os.getenv("PLACE_USAGE_THRESHOLD", "0.25"))

# Deadlines (seconds)
ATTEMPT_TIMEOUT_SECONDS: float = float(os.getenv("ATTEMPT_TIMEOUT_SECONDS", "90"))
PIPELINE_TIMEOUT_SECONDS: float = float(os.getenv("PIPELINE_TIMEOUT_SECONDS", "420"))
