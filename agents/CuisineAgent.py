"""Local cuisine profile for a destination, generated with one LLM call."""

from __future__ import annotations

import logging

from pydantic import ValidationError

import config
from models import CuisineProfile, RestaurantRecommendation, TypicalDish
from .errors import CuisineLookupError, GenerationError
from .llm_client import LLMClient, safe_json_parse

logger = logging.getLogger(__name__)

_CUISINE_PROMPT = """\
You are an expert in local gastronomy. For the city of {destination}, provide:

1. The 3-4 most famous typical dishes
2. Characteristic regional ingredients
3. The local food culture
4. 2-3 recommended kinds of restaurant

For every typical dish include:
- Name of the dish
- Short description (2-3 lines)
- Main ingredients
- Recipe summary (no excessive detail)
- Preparation difficulty (easy/medium/hard)
- Approximate preparation time in minutes
- Cultural significance

Format the answer as valid JSON with this structure:
{{
  "typical_dishes": [
    {{
      "name": "Dish name",
      "description": "Dish description",
      "ingredients": ["ingredient1", "ingredient2"],
      "recipe_summary": "Recipe summary",
      "difficulty": "easy|medium|hard",
      "preparation_time": 60,
      "cultural_significance": "Cultural significance"
    }}
  ],
  "local_ingredients": ["ingredient1", "ingredient2"],
  "food_culture": "Description of the local food culture",
  "restaurant_recommendations": [
    {{
      "name": "Kind of restaurant",
      "type": "category",
      "description": "Description",
      "price_range": "low|medium|high",
      "specialties": ["specialty1", "specialty2"]
    }}
  ]
}}

Be specific about {destination} and keep it culturally authentic."""


def fallback_cuisine_profile(destination: str) -> CuisineProfile:
    """Generic filler used when the model's answer cannot be parsed."""
    return CuisineProfile(
        typical_dishes=[TypicalDish(
            name="Typical local dish",
            description=f"Traditional specialty of {destination}",
            ingredients=["Local ingredients"],
            recipe_summary="Traditional regional recipe",
            difficulty="medium",
            preparation_time=60,
            cultural_significance="Traditional dish of the local cuisine",
        )],
        local_ingredients=["Regional ingredients"],
        food_culture=f"The cuisine of {destination} is rich in local traditions",
        restaurant_recommendations=[RestaurantRecommendation(
            name="Traditional restaurants",
            type="local cuisine",
            description="Places serving typical food",
            price_range="medium",
            specialties=["Traditional dishes"],
        )],
    )


async def fetch_cuisine(llm: LLMClient, destination: str) -> CuisineProfile:
    """Ask the model for *destination*'s cuisine profile.

    A backend failure raises CuisineLookupError; an answer that is not a
    valid profile degrades to the generic filler profile instead.
    """
    try:
        raw = await llm.complete(
            None,
            _CUISINE_PROMPT.format(destination=destination),
            temperature=config.CUISINE_TEMPERATURE,
            max_tokens=config.CUISINE_MAX_TOKENS,
        )
    except GenerationError as exc:
        raise CuisineLookupError(f"Cuisine generation failed: {exc}") from exc

    try:
        return CuisineProfile.model_validate(safe_json_parse(raw))
    except (ValueError, ValidationError) as exc:
        logger.warning("Cuisine profile for %s was not valid JSON, using filler: %s", destination, exc)
        return fallback_cuisine_profile(destination)
