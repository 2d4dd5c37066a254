"""Check that a generated itinerary actually uses the supplied real places."""

from __future__ import annotations

from dataclasses import dataclass, field

import config

# (section, field) pairs searched in every day, in check order.
CHECKED_FIELDS = (
    ("lunch", "description"),
    ("dinner", "name"),
    ("afternoon", "location"),
    ("morning", "description"),
)


@dataclass
class PlaceUsage:
    passed: bool
    ratio: float
    matches: int
    expected: int
    matched_places: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "passed": self.passed,
            "ratio": round(self.ratio, 3),
            "matches": self.matches,
            "expected": self.expected,
            "matched_places": self.matched_places,
        }


def _field_text(day: dict, section: str, name: str) -> str:
    block = day.get(section)
    if not isinstance(block, dict):
        return ""
    value = block.get(name)
    return value.lower() if isinstance(value, str) else ""


def validate_places_usage(
    itinerary: dict,
    expected_places: list[str],
    threshold: float = config.PLACE_USAGE_THRESHOLD,
) -> PlaceUsage:
    """Coverage of *expected_places* inside the itinerary's meal and activity fields.

    Every (day, field, place) triple where the place name is a case-insensitive
    substring of the field counts once. ratio = matches / len(expected_places).
    An empty reference list passes trivially.
    """
    if not expected_places:
        return PlaceUsage(passed=True, ratio=1.0, matches=0, expected=0)

    matches = 0
    matched: list[str] = []
    days = itinerary.get("days") if isinstance(itinerary, dict) else None
    for day in days or []:
        if not isinstance(day, dict):
            continue
        for section, name in CHECKED_FIELDS:
            text = _field_text(day, section, name)
            if not text:
                continue
            for place in expected_places:
                if place.lower() in text:
                    matches += 1
                    if place not in matched:
                        matched.append(place)

    ratio = matches / max(1, len(expected_places))
    return PlaceUsage(
        passed=ratio >= threshold,
        ratio=ratio,
        matches=matches,
        expected=len(expected_places),
        matched_places=matched,
    )
