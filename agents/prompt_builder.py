"""
Itinerary prompt rendering.

`build_itinerary_prompt` is a pure function of the trip request and the
gathered context: identical inputs always render the identical prompt.
The model has no structural output guarantee, so the field-by-field shape,
the worked example and the repeated "exact names and addresses" rules are
what steer it toward the supplied places.
"""

from __future__ import annotations

from typing import Optional

import config
from models import CuisineProfile, PlacesResult, TripContext, WeatherOutlook
from TripRequest import BudgetCategory, TripRequest

BUDGET_GUIDELINES: dict[BudgetCategory, dict[str, str]] = {
    BudgetCategory.LOW: {
        "accommodation": "hostels, simple guesthouses, budget Airbnb",
        "transportation": "public transport, walking, buses",
        "food": "street food, popular local eateries, local markets",
        "activities": "free attractions, parks, free museums",
    },
    BudgetCategory.MEDIUM: {
        "accommodation": "3-star hotels, comfortable guesthouses",
        "transportation": "mix of public transport and taxi/ride-hailing",
        "food": "local restaurants, some gastronomic experiences",
        "activities": "mix of paid and free attractions, guided tours",
    },
    BudgetCategory.HIGH: {
        "accommodation": "4-5 star hotels, resorts, premium Airbnb",
        "transportation": "taxi, ride-hailing, private transfers, car rental",
        "food": "renowned restaurants, gastronomic experiences",
        "activities": "private tours, exclusive experiences, spas",
    },
}

# (bucket, heading, max entries, show cuisine)
PLACE_SECTIONS = (
    ("restaurants", "RESTAURANTS (use for meals)", 8, True),
    ("attractions", "TOURIST ATTRACTIONS (use for activities)", 8, False),
    ("culture", "CULTURAL VENUES (use for cultural activities)", 6, False),
    ("nightlife", "NIGHTLIFE", 6, False),
    ("shopping", "SHOPPING", 4, False),
    ("nature", "NATURE AND PARKS", 4, False),
)

WEATHER_HEADING = "WEATHER OUTLOOK"
CUISINE_HEADING = "LOCAL CUISINE"
PLACES_HEADING = "REAL PLACES FOUND IN"


def _or(value: str, default: str) -> str:
    return value.strip() if value and value.strip() else default


def output_schema(destination: str) -> str:
    """The JSON document shape every itinerary answer must follow."""
    return f"""{{
  "overview": {{
    "title": "Itinerary for {destination}",
    "introduction": "Description of the trip and the experiences ahead"
  }},
  "days": [
    {{
      "day": 1,
      "title": "Name of the day based on its activities",
      "morning": {{
        "description": "Morning activities naming specific places",
        "tip": "Useful tip for the morning"
      }},
      "lunch": {{
        "description": "Name and address of the lunch restaurant (use real places from the list)",
        "tip": "Tip about the restaurant or the food"
      }},
      "afternoon": {{
        "activity": "Afternoon activity at specific places",
        "location": "Name and address of the place (use real places from the list)",
        "duration": "2-3 hours",
        "tip": "Tip for the activity"
      }},
      "dinner": {{
        "name": "Name and address of the dinner restaurant (use real places from the list)",
        "type": "Kind of cuisine",
        "link": ""
      }},
      "night_activity": "Optional night activity"
    }}
  ],
  "final_tips": {{
    "transportation": "Transport tips",
    "weather": "Weather and clothing tips",
    "tipping": "Tipping customs",
    "safety": "Safety tips",
    "local_culture": "Important cultural notes",
    "shopping": "Shopping and souvenir tips"
  }}
}}"""


def weather_section(weather: Optional[WeatherOutlook]) -> str:
    if weather is None:
        return ""
    if weather.trip_forecast:
        lines = [f"{WEATHER_HEADING} DURING THE TRIP:"]
        lines += [
            f"- {day.day_name} ({day.date}): average {day.temperature:.0f}°C "
            f"(min {day.temperature_min:.0f}°C, max {day.temperature_max:.0f}°C), {day.description}"
            for day in weather.trip_forecast
        ]
        return "\n".join(lines)
    return (f"{WEATHER_HEADING} (current conditions): "
            f"{weather.current.description}, {weather.current.temperature:.0f}°C")


def cuisine_section(cuisine: Optional[CuisineProfile]) -> str:
    if cuisine is None or not cuisine.typical_dishes:
        return ""
    lines = [f"{CUISINE_HEADING} (suggest trying these dishes):"]
    for dish in cuisine.typical_dishes:
        lines.append(f"- {dish.name}: {dish.description}" if dish.description else f"- {dish.name}")
    return "\n".join(lines)


def places_section(places: PlacesResult, destination: str) -> str:
    out = [f"=== {PLACES_HEADING} {destination.upper()} ===",
           "USE THESE SPECIFIC PLACES IN THE ITINERARY", ""]
    for bucket, heading, cap, show_cuisine in PLACE_SECTIONS:
        entries = places.bucket(bucket)[:cap]
        if not entries:
            continue
        out.append(f"{heading}:")
        for index, place in enumerate(entries, 1):
            suffix = f" ({place.cuisine})" if show_cuisine and place.cuisine else ""
            out.append(f"{index}. {place.name}{suffix}")
            out.append(f"   Address: {place.address}")
        out.append("")
    out.append("IMPORTANT: include these places in the itinerary with their exact names and addresses!")
    return "\n".join(out)


def _places_instructions(destination: str, days: int) -> str:
    return f"""IMPORTANT: specific places were found in {destination}.
YOU MUST include these real places in the itinerary:

- FOR MEALS (lunch/dinner): use the restaurants from the "RESTAURANTS" list
- FOR CULTURAL ACTIVITIES: use the venues from the "CULTURAL VENUES" list
- FOR ATTRACTIONS: use the ones from the "TOURIST ATTRACTIONS" list
- ALWAYS give the full name and address of each place
- lunch.description and dinner.name must each read "Name - Address"
- afternoon.location must read "Name - Address"

EXAMPLE OF HOW TO USE THE PLACES:
- Lunch: "Can Pep - Carrer des Rafal, 6"
- Dinner: "Es Baluard Restaurant - Plaça Porta de Santa Catalina"
- Activity: "Palma Cathedral - Plaça de la Seu"

Spread these places across the {days} days of the itinerary."""


def build_itinerary_prompt(request: TripRequest, context: TripContext) -> str:
    """Render the full instruction document for one trip."""
    days = request.day_count()
    category = request.budget_category()
    guide = BUDGET_GUIDELINES[category]
    dest = request.destination
    interests = ", ".join(request.interests)
    currency = config.CURRENCY

    header = f"""Create a travel itinerary for {dest}, departing from {request.origin}, lasting {days} days \
(from {request.start_date.isoformat()} to {request.end_date.isoformat()}), with a total budget of \
{request.budget:.2f} {currency} ({category.value} budget).

TRIP DETAILS:
- Title: {_or(request.title, "Custom Itinerary")}
- Travelers: {request.traveler_summary()}
- Style: {_or(request.travel_style, "not informed")}
- Transport: {_or(request.transport_preference, "not informed")}
- Accommodation: {_or(request.accommodation_preference, "not informed")}
- Dietary restrictions: {_or(request.dietary_restrictions, "none")}
- Accessibility: {_or(request.accessibility, "none")}
- Interests: {_or(interests, "not informed")}
- Notes: {_or(request.special_notes, "none")}

BUDGET GUIDANCE ({category.value}):
- Accommodation: {guide["accommodation"]}
- Transportation: {guide["transportation"]}
- Food: {guide["food"]}
- Activities: {guide["activities"]}
- Estimated daily budget: {request.daily_budget()} {currency}"""

    sections = [header]
    for extra in (weather_section(context.weather), cuisine_section(context.cuisine)):
        if extra:
            sections.append(extra)

    if context.has_places:
        sections.append(places_section(context.places, dest))
        sections.append(_places_instructions(dest, days))
    else:
        sections.append(
            f"Use your general knowledge of {dest} to suggest places that suit a "
            f"{category.value} budget."
        )

    sections.append(f"""- Adapt to the travel style: {_or(request.travel_style, "balanced")}
- Consider the interests: {_or(interests, "general")}

MANDATORY JSON STRUCTURE (answer with valid JSON only, no comments), with exactly {days} entries in "days":
{output_schema(dest)}

CRITICAL RULES:
1. Use EXACTLY the names of the restaurants and places from the list provided
2. In "location" and in the restaurants, include name + full address
3. For every meal (lunch/dinner), pick a different restaurant from the list
4. Spread the real places across the {days} days
5. If there is no specific place for something, use general knowledge, but prioritise the real places""")

    return "\n\n".join(sections)
