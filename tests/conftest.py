import sys
import os
import pytest
from datetime import datetime, timezone

# Test environment — must be set before config.py is imported anywhere.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ.setdefault("GEOAPIFY_API_KEY", "test-geoapify-key")
os.environ.setdefault("OPENWEATHER_API_KEY", "test-openweather-key")

# Project root — needed for config, models, TripRequest, database, main.
_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _root not in sys.path:
    sys.path.insert(0, _root)

from TripRequest import TripRequest
from models import (
    CuisineProfile,
    CurrentWeather,
    PlacesResult,
    Place,
    TripForecastDay,
    TypicalDish,
    WeatherOutlook,
)
from agents.PlacesAgent import categorize_places

RIO_RESTAURANTS = [
    ("Confeitaria Colombo", "Rua Gonçalves Dias, 32 - Centro"),
    ("Aprazível", "Rua Aprazível, 62 - Santa Teresa"),
    ("Bar do Mineiro", "Rua Paschoal Carlos Magno, 99 - Santa Teresa"),
    ("Casa Cavé", "Rua Sete de Setembro, 137 - Centro"),
    ("Térèze", "Rua Felício dos Santos, 20 - Santa Teresa"),
]

RIO_ATTRACTIONS = [
    ("Christ the Redeemer", "Parque Nacional da Tijuca - Alto da Boa Vista"),
    ("Sugarloaf Mountain", "Av. Pasteur, 520 - Urca"),
    ("Escadaria Selarón", "Rua Joaquim Silva - Lapa"),
    ("Museu do Amanhã", "Praça Mauá, 1 - Centro"),
    ("Jardim Botânico", "Rua Jardim Botânico, 1008"),
]


def geoapify_feature(name, address, categories, cuisine=None, lon=-43.18, lat=-22.91):
    raw = {"amenity": "restaurant", "cuisine": cuisine} if cuisine else {"tourism": "attraction"}
    return {
        "type": "Feature",
        "properties": {
            "name": name,
            "formatted": address,
            "categories": categories,
            "datasource": {"raw": raw},
        },
        "geometry": {"type": "Point", "coordinates": [lon, lat]},
    }


def rio_features():
    features = [
        geoapify_feature(name, address, ["catering", "catering.restaurant"], cuisine="brazilian")
        for name, address in RIO_RESTAURANTS
    ]
    features += [
        geoapify_feature(name, address, ["tourism", "tourism.attraction"])
        for name, address in RIO_ATTRACTIONS
    ]
    return features


def onecall_daily(first_day, count=8, offset_hours=-3):
    """One Call style daily entries at local noon, starting on *first_day*."""
    start = datetime(first_day.year, first_day.month, first_day.day, 12 - offset_hours, tzinfo=timezone.utc)
    return [
        {
            "dt": int(start.timestamp()) + i * 86400,
            "temp": {"min": 19.6 + i, "max": 27.4 + i},
            "weather": [{"description": "scattered clouds", "icon": "03d"}],
        }
        for i in range(count)
    ]


@pytest.fixture
def rio_request():
    return TripRequest.from_payload({
        "origin": "São Paulo",
        "destination": "Rio de Janeiro",
        "start_date": "2024-06-10",
        "end_date": "2024-06-13",
        "budget": 3000,
        "adults": 2,
    })


@pytest.fixture
def rio_places():
    places = [
        Place(name=name, address=address, categories=["catering.restaurant"], cuisine="brazilian")
        for name, address in RIO_RESTAURANTS
    ] + [
        Place(name=name, address=address, categories=["tourism.attraction"])
        for name, address in RIO_ATTRACTIONS
    ]
    return PlacesResult(
        destination="Rio de Janeiro",
        latitude=-22.91,
        longitude=-43.18,
        total_places=len(places),
        places=places,
        categorized=categorize_places(places),
    )


@pytest.fixture
def rio_weather():
    return WeatherOutlook(
        current=CurrentWeather(temperature=24, description="clear sky", icon="01d"),
        trip_forecast=[
            TripForecastDay(date="2024-06-11", day_name="Tuesday", temperature=24,
                            temperature_min=20, temperature_max=28, description="scattered clouds"),
            TripForecastDay(date="2024-06-12", day_name="Wednesday", temperature=25,
                            temperature_min=21, temperature_max=29, description="light rain"),
            TripForecastDay(date="2024-06-13", day_name="Thursday", temperature=23,
                            temperature_min=19, temperature_max=27, description="clear sky"),
        ],
    )


@pytest.fixture
def rio_cuisine():
    return CuisineProfile(
        typical_dishes=[
            TypicalDish(name="Feijoada", description="Black bean and pork stew"),
            TypicalDish(name="Pão de queijo", description="Cheese bread"),
            TypicalDish(name="Moqueca", description="Fish stew with coconut milk"),
            TypicalDish(name="Açaí na tigela", description="Frozen açaí bowl"),
        ],
        food_culture="Botecos, beach kiosks and long Saturday feijoadas",
    )
