"""Weather outlook via the OpenWeather geocoding and One Call APIs."""

from __future__ import annotations

import logging
import os
from datetime import date, datetime, timedelta, timezone
from typing import Optional

import httpx

import config
from models import CurrentWeather, DailyForecast, TripForecastDay, WeatherLocation, WeatherOutlook
from .errors import LocationNotFoundError, WeatherLookupError

log = logging.getLogger(__name__)

_GEOCODING_URL = "https://api.openweathermap.org/geo/1.0/direct"
_ONECALL_URL = "https://api.openweathermap.org/data/3.0/onecall"

DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


def _get_openweather_key() -> str:
    return os.getenv("OPENWEATHER_API_KEY", "")


def _local_date(timestamp: int, offset_seconds: int) -> date:
    moment = datetime.fromtimestamp(timestamp, tz=timezone.utc) + timedelta(seconds=offset_seconds)
    return moment.date()


def _description(entry: dict) -> tuple[str, str]:
    weather = (entry.get("weather") or [{}])[0]
    return weather.get("description", ""), weather.get("icon", "")


def trip_window_forecast(
    daily: list[dict],
    start: date,
    end: date,
    offset_seconds: int = 0,
    horizon: int = config.FORECAST_HORIZON_DAYS,
) -> list[TripForecastDay]:
    """Forecast entries whose local date falls inside [start, end].

    Only the first *horizon* daily entries are considered; trip days past the
    forecast horizon are simply missing from the result.
    """
    days = []
    for entry in daily[:horizon]:
        day = _local_date(entry["dt"], offset_seconds)
        if not start <= day <= end:
            continue
        t_min, t_max = entry["temp"]["min"], entry["temp"]["max"]
        description, icon = _description(entry)
        days.append(TripForecastDay(
            date=day.isoformat(),
            day_name=DAY_NAMES[day.weekday()],
            temperature=round((t_min + t_max) / 2),
            temperature_min=round(t_min),
            temperature_max=round(t_max),
            description=description,
            icon=icon,
        ))
    return days


async def fetch_weather(
    client: httpx.AsyncClient,
    city: str,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> WeatherOutlook:
    """Current conditions and forecast for *city*.

    With trip dates the outlook also carries the per-day forecast of the
    trip window; without them only the generic forecast is filled.
    """
    api_key = _get_openweather_key()
    if not api_key:
        raise WeatherLookupError("OPENWEATHER_API_KEY is not configured")

    try:
        geo = await client.get(_GEOCODING_URL, params={"q": city, "limit": 1, "appid": api_key})
        geo.raise_for_status()
        matches = geo.json()
        if not matches:
            raise LocationNotFoundError(f"City not found: {city!r}")
        match = matches[0]

        resp = await client.get(_ONECALL_URL, params={
            "lat": match["lat"],
            "lon": match["lon"],
            "exclude": "minutely,alerts",
            "units": "metric",
            "lang": config.WEATHER_LANG,
            "appid": api_key,
        })
        resp.raise_for_status()
        data = resp.json()
    except httpx.HTTPError as exc:
        raise WeatherLookupError(f"OpenWeather request failed: {exc}") from exc

    offset = data.get("timezone_offset", 0)
    daily = data.get("daily") or []
    current = data.get("current") or {}
    description, icon = _description(current)

    try:
        forecast = []
        for entry in daily[:7]:
            d_desc, d_icon = _description(entry)
            forecast.append(DailyForecast(
                date=_local_date(entry["dt"], offset).isoformat(),
                temperature_min=round(entry["temp"]["min"]),
                temperature_max=round(entry["temp"]["max"]),
                description=d_desc,
                icon=d_icon,
            ))
        trip_forecast = trip_window_forecast(daily, start, end, offset) if start and end else []
    except (KeyError, TypeError) as exc:
        raise WeatherLookupError(f"Unexpected OpenWeather payload: {exc}") from exc

    if start and end and not trip_forecast:
        log.info("Trip %s..%s for %s is beyond the forecast horizon", start, end, city)

    return WeatherOutlook(
        current=CurrentWeather(
            temperature=round(current.get("temp", 0)),
            description=description,
            icon=icon,
        ),
        forecast=forecast,
        trip_forecast=trip_forecast,
        location=WeatherLocation(
            name=match.get("name", city),
            country=match.get("country", ""),
            state=match.get("state", ""),
        ),
    )
