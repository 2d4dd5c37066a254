"""Exception types raised across the itinerary pipeline."""


class ContextLookupError(Exception):
    """A context source (places, weather, cuisine) could not produce data."""


class PlacesLookupError(ContextLookupError):
    pass


class WeatherLookupError(ContextLookupError):
    pass


class CuisineLookupError(ContextLookupError):
    pass


class LocationNotFoundError(ContextLookupError):
    """Geocoding returned zero matches for the destination."""


class GenerationError(Exception):
    """The generation backend failed or could not be reached."""


class EmptyResponseError(GenerationError):
    """The generation backend answered with no content."""


class ItineraryParseError(GenerationError):
    """The model output is not a well-formed itinerary document."""

    def __init__(self, message: str, raw_text: str = ""):
        super().__init__(message)
        self.raw_text = raw_text


class ItineraryGenerationError(Exception):
    """Every attempt, including the final one, failed to yield an itinerary."""


class PipelineTimeoutError(Exception):
    """The overall generation deadline elapsed; the request can be retried."""
