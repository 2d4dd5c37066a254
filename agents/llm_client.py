"""
Generation backend client (litellm).

`LLMClient` is constructed explicitly and handed to the pipeline, so tests can
pass a fake `completion_fn` instead of reaching a real provider.
`ItineraryGenerator` adds the fixed tourism-expert framing, the output-length
ceiling and the fenced-JSON parsing used for itineraries.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Awaitable, Callable, Optional

import litellm

import config
from .errors import EmptyResponseError, GenerationError, ItineraryParseError

logger = logging.getLogger(__name__)

# Silence litellm's own verbose logging
litellm.suppress_debug_info = True
# Drop params unsupported by the active model (e.g. temperature on gpt-5)
litellm.drop_params = True


# ---------------------------------------------------------------------------
# LLM model helper  (supports OpenAI, Gemini, Claude via LLM_PROVIDER)
# ---------------------------------------------------------------------------

_LLM_DEFAULTS = {
    "openai":    "gpt-4o-mini",
    "gemini":    "gemini-2.0-flash",
    "anthropic": "claude-sonnet-4-20250514",
}


def _llm_name() -> str:
    """Return the litellm model string (provider/model format)."""
    provider = os.getenv("LLM_PROVIDER", "openai").lower().strip()
    if provider not in _LLM_DEFAULTS:
        provider = "openai"
    model = os.getenv("LLM_MODEL", _LLM_DEFAULTS[provider])
    if provider == "openai":
        return model  # litellm uses bare model name for OpenAI
    return f"{provider}/{model}"


def safe_json_parse(text: str) -> Any:
    """Extract and parse JSON from an LLM response that may include markdown fences."""
    cleaned = text.strip()
    if cleaned.startswith("```json"):
        cleaned = cleaned[len("```json"):]
    elif cleaned.startswith("```"):
        cleaned = cleaned[len("```"):]
    if cleaned.endswith("```"):
        cleaned = cleaned[:-len("```")]
    return json.loads(cleaned.strip())


CompletionFn = Callable[..., Awaitable[Any]]


class LLMClient:
    """One chat-completion round-trip per call: system + user message in, text out."""

    def __init__(self, model: Optional[str] = None, completion_fn: Optional[CompletionFn] = None):
        self.model = model or _llm_name()
        self._completion = completion_fn or litellm.acompletion

    async def complete(
        self,
        system_prompt: Optional[str],
        user_prompt: str,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
    ) -> str:
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": user_prompt})

        try:
            response = await self._completion(
                model=self.model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except Exception as exc:
            raise GenerationError(f"LLM call failed: {exc}") from exc

        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError) as exc:
            raise EmptyResponseError("LLM response had no choices") from exc
        if not content or not content.strip():
            raise EmptyResponseError("LLM returned an empty response")
        return content


# ---------------------------------------------------------------------------
# Itinerary generation
# ---------------------------------------------------------------------------

ITINERARY_SYSTEM = """\
You are a tourism expert who ALWAYS uses the real places supplied to you.

MANDATORY RULES:
- Use EXACTLY the names of the restaurants and places given in the list
- In "lunch.description" write: "Restaurant Name - Full address"
- In "dinner.name" write: "Restaurant Name - Full address"
- In "afternoon.location" write: "Place Name - Full address"
- In "morning.description" mention place names whenever possible
- Spread the real places across the days of the itinerary
- Use a different restaurant from the list for every meal

CORRECT EXAMPLE:
{
  "day": 1,
  "lunch": {
    "description": "Can Pep - Carrer des Rafal, 6, 07001 Palma",
    "tip": "Famous for its handmade burgers and pizzas"
  },
  "dinner": {
    "name": "Es Baluard Restaurant - Plaça Porta de Santa Catalina, 10",
    "type": "Mediterranean",
    "link": ""
  },
  "afternoon": {
    "activity": "Cultural visit",
    "location": "Palma Cathedral - Plaça de la Seu, s/n",
    "duration": "2 hours"
  }
}

Respond with valid JSON only."""

FINAL_ATTEMPT_SYSTEM = """\
You MUST use the real places supplied. This is the last attempt.

MANDATORY: every field below must use real place names from the list:
- lunch.description: "Real Restaurant Name - Address"
- dinner.name: "Real Restaurant Name - Address"
- afternoon.location: "Real Place Name - Address"

Respond with valid JSON only."""


def parse_itinerary(raw: str) -> dict:
    """Parse model text into an itinerary dict, stripping code fences first."""
    try:
        data = safe_json_parse(raw)
    except (ValueError, IndexError) as exc:
        raise ItineraryParseError(f"Malformed itinerary JSON: {exc}", raw) from exc
    if not isinstance(data, dict) or not isinstance(data.get("days"), list):
        raise ItineraryParseError("Itinerary JSON has no 'days' list", raw)
    return data


class ItineraryGenerator:
    """Single itinerary attempt: prompt + temperature in, parsed itinerary out.

    Transport errors surface as GenerationError, empty bodies as
    EmptyResponseError and malformed output as ItineraryParseError.
    """

    def __init__(self, llm: LLMClient, max_tokens: int = config.ITINERARY_MAX_TOKENS):
        self.llm = llm
        self.max_tokens = max_tokens

    async def generate(self, prompt: str, temperature: float, system_prompt: str = ITINERARY_SYSTEM) -> dict:
        raw = await self.llm.complete(
            system_prompt, prompt, temperature=temperature, max_tokens=self.max_tokens,
        )
        return parse_itinerary(raw)
