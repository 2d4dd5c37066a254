"""Itinerary-generation pipeline: context agents, prompt, generation, validation, retries."""
