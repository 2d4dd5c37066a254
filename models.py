"""Pydantic models for the context data gathered before itinerary generation."""
from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, Field


class Place(BaseModel):
    """A real place returned by the places source."""
    name: str
    address: str = ""
    categories: list[str] = []
    cuisine: Optional[str] = None
    type: str = "place"
    website: Optional[str] = None
    phone: Optional[str] = None
    opening_hours: Optional[str] = None
    coordinates: Optional[tuple[float, float]] = Field(default=None, description="(lon, lat)")


PLACE_BUCKETS = (
    "restaurants", "attractions", "culture", "nature", "nightlife",
    "shopping", "wellness", "sports", "family",
)


class PlacesResult(BaseModel):
    """Places around a destination, grouped into named buckets."""
    destination: str
    interests: list[str] = []
    latitude: float
    longitude: float
    total_places: int = 0
    places: list[Place] = []
    categorized: dict[str, list[Place]] = {}

    def bucket(self, name: str) -> list[Place]:
        return self.categorized.get(name, [])


class CurrentWeather(BaseModel):
    temperature: float
    description: str
    icon: str = ""


class DailyForecast(BaseModel):
    date: str
    temperature_min: float
    temperature_max: float
    description: str
    icon: str = ""


class TripForecastDay(BaseModel):
    """Forecast for one day inside the trip window."""
    date: str
    day_name: str
    temperature: float = Field(description="Mean of min and max, in Celsius")
    temperature_min: float
    temperature_max: float
    description: str
    icon: str = ""


class WeatherLocation(BaseModel):
    name: str
    country: str = ""
    state: str = ""


class WeatherOutlook(BaseModel):
    current: CurrentWeather
    forecast: list[DailyForecast] = []
    trip_forecast: list[TripForecastDay] = []
    location: Optional[WeatherLocation] = None


class TypicalDish(BaseModel):
    name: str
    description: str = ""
    ingredients: list[str] = []
    recipe_summary: str = ""
    difficulty: str = "medium"
    preparation_time: int = 0
    cultural_significance: str = ""


class RestaurantRecommendation(BaseModel):
    name: str
    type: str = ""
    description: str = ""
    price_range: str = ""
    specialties: list[str] = []


class CuisineProfile(BaseModel):
    typical_dishes: list[TypicalDish] = []
    local_ingredients: list[str] = []
    food_culture: str = ""
    restaurant_recommendations: list[RestaurantRecommendation] = []


@dataclass
class TripContext:
    """Whatever subset of places / weather / cuisine was fetched for a trip.

    Each source is independently optional; consumers branch on the has_* flags.
    """
    places: Optional[PlacesResult] = None
    weather: Optional[WeatherOutlook] = None
    cuisine: Optional[CuisineProfile] = None

    @property
    def has_places(self) -> bool:
        return self.places is not None and any(self.places.categorized.values())

    @property
    def has_weather(self) -> bool:
        return self.weather is not None

    @property
    def has_cuisine(self) -> bool:
        return self.cuisine is not None and bool(self.cuisine.typical_dishes)
